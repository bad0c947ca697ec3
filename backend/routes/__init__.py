"""
Routes package for the gallery API

Routes are organized by domain:
- health: Health check endpoints
- auth: Login and current user
- users: User administration
- gallery: Collections, uploads, images and downloads
- files: Local storage fallback file serving
"""
from .health import router as health_router
from .auth import router as auth_router
from .users import router as users_router
from .gallery import router as gallery_router
from .files import router as files_router

__all__ = ['health_router', 'auth_router', 'users_router', 'gallery_router', 'files_router']
