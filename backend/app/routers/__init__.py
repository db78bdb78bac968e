"""
API routers.
"""
from .campaigns import router as campaigns_router
from .articles import router as articles_router

__all__ = ["campaigns_router", "articles_router"]
