"""
Request logging middleware for Glacier Watch API
"""
import time
import uuid
from typing import Callable
from fastapi import HTTPException, Request, Response
from fastapi.routing import APIRoute
import structlog

logger = structlog.get_logger(__name__)


class LoggingMiddleware:
    """ASGI middleware logging one line per HTTP response, tagged with a request id"""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = str(uuid.uuid4())[:8]
        start_time = time.perf_counter()
        scope.setdefault("state", {})["request_id"] = request_id

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                logger.info(
                    "HTTP Request",
                    request_id=request_id,
                    method=scope.get("method", "UNKNOWN"),
                    path=scope.get("path", "UNKNOWN"),
                    query_string=scope.get("query_string", b"").decode(),
                    status_code=message.get("status", 0),
                    process_time_ms=round((time.perf_counter() - start_time) * 1000, 2)
                )
            await send(message)

        await self.app(scope, receive, send_wrapper)


class LoggingRoute(APIRoute):
    """Route class that logs handler failures with the request id"""

    def get_route_handler(self) -> Callable:
        original_route_handler = super().get_route_handler()

        async def custom_route_handler(request: Request) -> Response:
            request_id = getattr(request.state, "request_id", "unknown")
            try:
                return await original_route_handler(request)
            except HTTPException:
                raise
            except Exception as e:
                logger.error(
                    "Route Handler Error",
                    request_id=request_id,
                    route_name=self.name,
                    error=str(e),
                    exc_info=True
                )
                raise

        return custom_route_handler


def setup_logging_middleware(app):
    """Setup logging middleware for the application"""
    app.add_middleware(LoggingMiddleware)
    app.router.route_class = LoggingRoute
    return app
