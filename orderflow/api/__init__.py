"""REST API for the order lifecycle service."""

from orderflow.api.routes import router

__all__ = ["router"]
