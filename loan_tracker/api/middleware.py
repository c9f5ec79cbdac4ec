"""FastAPI middleware for request tracing, client sessions, and metrics"""

import uuid
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.types import ASGIApp
from loan_tracker.infrastructure.observability.metrics import request_duration_histogram


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Add unique request ID to each request for distributed tracing"""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class SessionCookieMiddleware(BaseHTTPMiddleware):
    """Identify the client session by cookie, issuing one on first contact"""

    def __init__(self, app: ASGIApp, cookie_name: str, max_age: int):
        super().__init__(app)
        self.cookie_name = cookie_name
        self.max_age = max_age

    async def dispatch(self, request: Request, call_next):
        session_id = request.cookies.get(self.cookie_name, "")
        issued = not _is_session_id(session_id)
        if issued:
            session_id = uuid.uuid4().hex
        request.state.session_id = session_id

        response = await call_next(request)
        if issued:
            response.set_cookie(
                self.cookie_name,
                session_id,
                max_age=self.max_age,
                httponly=True,
                samesite="lax",
            )
        return response


def _is_session_id(value: str) -> bool:
    try:
        return uuid.UUID(hex=value).hex == value
    except ValueError:
        return False


class MetricsMiddleware(BaseHTTPMiddleware):
    """Record HTTP request metrics"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        duration = time.time() - start_time
        request_duration_histogram.labels(
            method=request.method,
            endpoint=request.url.path,
            status=response.status_code,
        ).observe(duration)

        return response
