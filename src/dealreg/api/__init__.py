"""REST handlers for deal submission and admin review."""

from dealreg.api.routes import router

__all__ = ["router"]
