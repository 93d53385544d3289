"""
Database models, session management and pydantic schemas
"""
