"""Request ID middleware for request tracing.

Propagates a well-formed inbound ``X-Request-ID`` or generates a new one,
stores it on ``request.state`` and echoes it in the response.
"""

from __future__ import annotations

import re
import uuid
from typing import TYPE_CHECKING, Final

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from zap_gateway.observability.logging import bind_context, clear_context


if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.responses import Response
    from starlette.types import ASGIApp


# Inbound ids end up in logs; anything else is replaced
_VALID_REQUEST_ID: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request id to every request and response."""

    def __init__(self, app: ASGIApp, header_name: str = "X-Request-ID") -> None:
        super().__init__(app)
        self.header_name = header_name

    def _request_id(self, request: Request) -> str:
        inbound = request.headers.get(self.header_name)
        if inbound and _VALID_REQUEST_ID.match(inbound):
            return inbound
        return str(uuid.uuid4())

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request and add request ID."""
        clear_context()

        request_id = self._request_id(request)
        request.state.request_id = request_id
        bind_context(request_id=request_id)

        try:
            response = await call_next(request)
        finally:
            clear_context()

        response.headers[self.header_name] = request_id
        return response
