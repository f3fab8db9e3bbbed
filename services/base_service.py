"""
Base Service Class for Glacier Watch
Shared plumbing for the HTTP-backed collaborator clients
"""

from abc import ABC
from typing import Optional, Dict, Any, Callable
import structlog
from tenacity import AsyncRetrying, stop_after_attempt, wait_exponential, retry_if_exception_type
import httpx

from config import settings

# Failures worth another attempt; HTTP status errors are final
RETRYABLE_ERRORS = (httpx.TimeoutException, httpx.TransportError)


class BaseService(ABC):
    """Owns an AsyncClient, a bound logger and the retry policy for idempotent calls"""

    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        retry_attempts: Optional[int] = None
    ):
        """
        Args:
            base_url: Root URL of the external API
            client: Shared AsyncClient; tests pass one built on a MockTransport
            timeout: Per-request timeout in seconds
            retry_attempts: Attempts for idempotent (GET) requests
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self.retry_attempts = retry_attempts if retry_attempts is not None else settings.retry_attempts
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=self.timeout)
        self.logger = structlog.get_logger(self.__class__.__name__)
        self._setup()

    def _setup(self):
        """Hook for subclass state"""

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def close(self):
        """Close the underlying client if this service created it"""
        if self._owns_client:
            await self.client.aclose()

    async def _api_call_with_retry(self, func: Callable, *args, **kwargs) -> Any:
        """
        Await func(*args, **kwargs), retrying timeouts and transport failures
        with exponential backoff (2s up to 10s).

        Raises:
            httpx.TimeoutException: If every attempt timed out
            httpx.HTTPError: Any other HTTP failure, without retrying
        """
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            retry=retry_if_exception_type(RETRYABLE_ERRORS),
            reraise=True
        ):
            with attempt:
                try:
                    return await func(*args, **kwargs)
                except RETRYABLE_ERRORS as e:
                    self.logger.warning(
                        "Request failed, will retry if attempts remain",
                        function=getattr(func, "__name__", repr(func)),
                        attempt=attempt.retry_state.attempt_number,
                        max_attempts=self.retry_attempts,
                        error=str(e) or type(e).__name__
                    )
                    raise
                except httpx.HTTPStatusError as e:
                    self.logger.error(
                        "Upstream returned an error status",
                        function=getattr(func, "__name__", repr(func)),
                        status_code=e.response.status_code
                    )
                    raise

    def _log_operation(self, operation: str, details: Dict[str, Any], level: str = "info"):
        """Emit `<ServiceName>.<operation>` with the details as structured fields"""
        log_func = getattr(self.logger, level, self.logger.info)
        log_func(f"{self.__class__.__name__}.{operation}", **details)
