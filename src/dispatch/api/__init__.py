"""Dispatch domain API package."""

from dispatch.api.errors import register_dispatch_error_handlers
from dispatch.api.routes import dispatch_router, order_router, pilot_router

__all__ = ["dispatch_router", "order_router", "pilot_router", "register_dispatch_error_handlers"]
