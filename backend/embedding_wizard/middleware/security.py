from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from embedding_wizard.config import settings

_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


class SecurityMiddleware(BaseHTTPMiddleware):
    """Input validation: JSON-only bodies, body size limit."""

    async def dispatch(self, request: Request, call_next):
        if request.method in _BODY_METHODS:
            content_length = request.headers.get("content-length")
            if content_length is not None and not content_length.isdigit():
                return JSONResponse(
                    status_code=400,
                    content={"detail": "Invalid Content-Length header."},
                )
            if content_length and int(content_length) > settings.max_body_size:
                return JSONResponse(
                    status_code=413,
                    content={
                        "detail": f"Request body too large. Maximum size: {settings.max_body_size} bytes."
                    },
                )
            content_type = request.headers.get("content-type", "")
            if content_length not in (None, "0") and not content_type.startswith("application/json"):
                return JSONResponse(
                    status_code=415,
                    content={"detail": "Request body must be application/json."},
                )

        return await call_next(request)
