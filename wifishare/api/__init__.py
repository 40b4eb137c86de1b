"""API routers package."""

from .local import router as local_router
from .transfer import build_router as build_transfer_router

__all__ = ["local_router", "build_transfer_router"]
