"""Case Engine - API Routers"""
from .cases import router as cases_router

__all__ = [
    "cases_router",
]
