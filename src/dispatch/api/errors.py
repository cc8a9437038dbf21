"""HTTP mapping for dispatch errors.

Every DispatchError becomes ``{"error": {"code", "message", "details"}}``
with the status code the error class declares.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from dispatch.errors import DispatchError

logger = structlog.get_logger(__name__)


async def dispatch_error_handler(request: Request, exc: DispatchError) -> JSONResponse:
    logger.info(
        "Dispatch request rejected",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


def register_dispatch_error_handlers(app: FastAPI) -> None:
    """Install dispatch and Protean exception handlers on the app."""
    register_exception_handlers(app)
    app.add_exception_handler(DispatchError, dispatch_error_handler)
