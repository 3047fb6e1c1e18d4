"""
HTTP fetch with retry and backoff.

Key patterns:
- Serialized retries: no request is issued while a backoff sleep is pending
- Server hints first: a numeric Retry-After header overrides exponential backoff
- Jitter on every delay to desynchronize clients sharing a rate limit
- Blocking I/O (requests) runs in a worker thread so the event loop stays free
"""

import asyncio
import random
from collections.abc import Awaitable, Callable
from typing import Any

import requests
import structlog

from core.config import RetryPolicy
from core.errors import ExhaustedRetriesError, NetworkError
from core.services.normalizers import normalize_number

logger = structlog.get_logger(__name__)

Sleeper = Callable[[float], Awaitable[None]]

# Body read failures (reset mid-stream, broken encoding) surface as the last two
TRANSPORT_ERRORS = (
    requests.ConnectionError,
    requests.Timeout,
    requests.exceptions.ChunkedEncodingError,
    requests.exceptions.ContentDecodingError,
)


class ResilientFetcher:
    """
    Issues HTTP requests and transparently retries transient failures.

    Retryable statuses are retried until the policy's budget is spent, then
    ExhaustedRetriesError is raised. Every other response is returned as-is;
    the caller decides success from the status. Transport failures use the
    same backoff and end in NetworkError chained to the original exception.
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        session: requests.Session | None = None,
        timeout_seconds: float = 30.0,
        sleep: Sleeper = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self.policy = policy or RetryPolicy()
        self.session = session or requests.Session()
        self._owns_session = session is None
        self.timeout_seconds = timeout_seconds
        self._sleep = sleep
        self._rng = rng or random.Random()
        self.logger = logger.bind(component="resilient_fetcher")

    async def __aenter__(self) -> "ResilientFetcher":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def _jitter_ms(self) -> float:
        return self._rng.uniform(0.0, self.policy.max_jitter_ms)

    def _backoff_delay(self, attempt: int) -> float:
        return self.policy.backoff_seconds(attempt, self._jitter_ms())

    def _retry_delay(self, response: requests.Response, attempt: int) -> float:
        """Retry-After seconds plus jitter when numeric, else exponential backoff."""
        hint = normalize_number(response.headers.get("Retry-After"), "Retry-After")
        if hint.is_ok():
            return hint.unwrap() + self._jitter_ms() / 1000.0
        return self._backoff_delay(attempt)

    async def fetch(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        """
        Perform one logical request.

        Keyword arguments are passed through to requests.Session.request. The
        attempt counter is local to this call.
        """
        kwargs.setdefault("timeout", self.timeout_seconds)
        attempt = 0

        while True:
            try:
                response = await asyncio.to_thread(self.session.request, method, url, **kwargs)
            except TRANSPORT_ERRORS as e:
                if attempt >= self.policy.max_retries:
                    self.logger.error(
                        "transport_retries_exhausted",
                        method=method,
                        url=url,
                        attempts=attempt + 1,
                        error=str(e),
                    )
                    raise NetworkError(url, attempt + 1, str(e)) from e

                delay = self._backoff_delay(attempt)
                self.logger.warning(
                    "transport_error",
                    method=method,
                    url=url,
                    attempt=attempt + 1,
                    error_type=type(e).__name__,
                    retry_in_seconds=round(delay, 3),
                )
                await self._sleep(delay)
                attempt += 1
                continue

            if response.status_code not in self.policy.retryable_statuses:
                return response

            if attempt >= self.policy.max_retries:
                self.logger.error(
                    "status_retries_exhausted",
                    method=method,
                    url=url,
                    status_code=response.status_code,
                    attempts=attempt + 1,
                )
                raise ExhaustedRetriesError(url, response.status_code, attempt + 1)

            delay = self._retry_delay(response, attempt)
            self.logger.warning(
                "retryable_status",
                method=method,
                url=url,
                status_code=response.status_code,
                attempt=attempt + 1,
                retry_after=response.headers.get("Retry-After"),
                retry_in_seconds=round(delay, 3),
            )
            await self._sleep(delay)
            attempt += 1

    async def get(self, url: str, **kwargs: Any) -> requests.Response:
        return await self.fetch("GET", url, **kwargs)

    async def post(self, url: str, **kwargs: Any) -> requests.Response:
        return await self.fetch("POST", url, **kwargs)
