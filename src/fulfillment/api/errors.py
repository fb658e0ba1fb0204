"""Maps domain failures to HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError, InvalidOperationError, ObjectNotFoundError, ValidationError

from fulfillment.errors import InvalidTransition, PermissionDenied

_STATUS_CODES = [
    (ObjectNotFoundError, 404),
    (InvalidTransition, 409),
    # Concurrent write to the same aggregate from another worker
    (ExpectedVersionError, 409),
    (ValidationError, 400),
    (PermissionDenied, 403),
    (InvalidOperationError, 400),
]


def _error_body(exc: Exception) -> dict:
    messages = getattr(exc, "messages", None)
    return {"error": type(exc).__name__, "messages": messages or {"_entity": [str(exc)]}}


def register_exception_handlers(app: FastAPI) -> None:
    for exc_class, status_code in _STATUS_CODES:

        async def handler(request: Request, exc: Exception, status_code=status_code):
            return JSONResponse(status_code=status_code, content=_error_body(exc))

        app.add_exception_handler(exc_class, handler)
