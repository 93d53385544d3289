"""
API Routes package
"""
from . import admin, auth, chat, jobs, videos

__all__ = ['admin', 'auth', 'chat', 'jobs', 'videos']
