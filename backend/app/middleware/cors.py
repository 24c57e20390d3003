"""
Training Record Backend: CORS Middleware
=========================================

What:  Answers every OPTIONS request with 200 "ok" and the CORS header set,
       and stamps Access-Control-Allow-Origin on every other response.
How:   Starlette BaseHTTPMiddleware; preflight returns before routing, so no
       handler and no database session are involved.
When:  Innermost middleware (closest to the router).

Starlette's CORSMiddleware only treats a request as preflight when it
carries Origin and Access-Control-Request-Method, and only adds headers when
an Origin header is present. Browser-less clients of this endpoint send
neither, and still expect the header set.
"""

from typing import Dict

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp


class CORSPreflightMiddleware(BaseHTTPMiddleware):
    """
    Args:
        headers: Full preflight header set (Settings.cors_headers); must
                 contain Access-Control-Allow-Origin
    """

    def __init__(self, app: ASGIApp, headers: Dict[str, str]):
        super().__init__(app)
        self.headers = dict(headers)
        self.allow_origin = self.headers["Access-Control-Allow-Origin"]

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method == "OPTIONS":
            return PlainTextResponse("ok", status_code=200, headers=self.headers)

        response = await call_next(request)
        response.headers.setdefault("Access-Control-Allow-Origin", self.allow_origin)
        return response
