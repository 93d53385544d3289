"""
Pipeline services: upload, analysis, personality, approval, conversation
"""
