"""
Gateway authentication for relay function calls.

Validates ``Authorization: Bearer <key>`` (or an ``apikey`` header) on
``/functions/v1/`` routes when ``settings.relay_api_key`` is configured.
Pre-flight requests and the health endpoint are never authenticated.
"""

import secrets

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from voicenotes.api.middleware.error_handler import error_response
from voicenotes.core.config import get_settings


class RelayAuthMiddleware(BaseHTTPMiddleware):
    """Enforce the relay key on /functions/v1/ routes when relay_api_key is set."""

    _PROTECTED_PREFIX = "/functions/v1/"

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        settings = get_settings()

        # If no key configured, allow all requests through
        if not settings.relay_api_key:
            return await call_next(request)

        if request.method == "OPTIONS" or not request.url.path.startswith(self._PROTECTED_PREFIX):
            return await call_next(request)

        token = ""
        auth_header = request.headers.get("authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[len("Bearer ") :]
        elif request.headers.get("apikey"):
            token = request.headers["apikey"]

        if not token or not secrets.compare_digest(token, settings.relay_api_key):
            return error_response("Invalid API key", status_code=401)

        return await call_next(request)
