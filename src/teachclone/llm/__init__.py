"""
Inference gateway over the hosted Gemini models
"""
