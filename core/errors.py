"""
Typed error taxonomy.

Callers branch on the class, never on message text:
- TransientError: retried by the fetcher, surfaced only after the budget is spent
- FatalAPIError: surfaced immediately, no retry
- InvalidVitalSign: a validation outcome carried inside a Result, never raised
"""


class AssessmentError(Exception):
    """Base class for every failure that aborts an assessment run."""


class TransientError(AssessmentError):
    """A failure class the fetcher retries with backoff."""


class NetworkError(TransientError):
    """Transport failure (connection error, timeout) after retry exhaustion."""

    def __init__(self, url: str, attempts: int, reason: str) -> None:
        self.url = url
        self.attempts = attempts
        self.reason = reason
        super().__init__(f"Network error for {url} after {attempts} attempt(s): {reason}")


class ExhaustedRetriesError(TransientError):
    """A retryable HTTP status persisted past the retry budget."""

    def __init__(self, url: str, status_code: int, attempts: int) -> None:
        self.url = url
        self.status_code = status_code
        self.attempts = attempts
        super().__init__(
            f"Retries exhausted for {url}: status {status_code} after {attempts} attempt(s)"
        )


class FatalAPIError(AssessmentError):
    """A failure that is never retried."""


class FatalHTTPError(FatalAPIError):
    """Non-2xx response outside the retryable status set."""

    def __init__(self, url: str, status_code: int, body_snippet: str = "") -> None:
        self.url = url
        self.status_code = status_code
        self.body_snippet = body_snippet
        super().__init__(f"HTTP {status_code} from {url}: {body_snippet}".rstrip(": "))


class ResponseFormatError(FatalAPIError):
    """Response body could not be decoded into the expected JSON shape."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Malformed response from {url}: {reason}")


class InvalidVitalSign(ValueError):
    """Why a raw vital-sign value was rejected by a normalizer."""

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")
