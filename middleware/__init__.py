from .logging_middleware import LoggingMiddleware, LoggingRoute, setup_logging_middleware

__all__ = ["LoggingMiddleware", "LoggingRoute", "setup_logging_middleware"]
