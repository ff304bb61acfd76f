"""HTTP requests with exponential backoff retry."""

import logging
import time
from typing import Any, Callable

import requests

logger = logging.getLogger(__name__)


class RetryError(RuntimeError):
    """Raised when a request still fails after the last attempt."""

    def __init__(self, message: str, attempts: int, last_error: Exception) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


def is_retryable_status(status: int) -> bool:
    """5xx responses are retried; 4xx are the caller's problem."""
    return 500 <= status < 600


def retry_request(
    method: str,
    url: str,
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    on_retry: Callable[[int, Exception], None] | None = None,
    session: requests.Session | None = None,
    **kwargs: Any,
) -> requests.Response:
    """
    Send a request, retrying network errors and 5xx responses.

    The delay before attempt n+1 is base_delay * 2**(n-1) seconds. Any other
    response (including 4xx) is returned as-is.
    """
    sender = session or requests
    last_error: Exception | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            response = sender.request(method, url, **kwargs)
        except (requests.ConnectionError, requests.Timeout) as e:
            last_error = e
            if attempt == max_attempts:
                raise RetryError(f"Failed after {attempt} attempts: {e}", attempt, e) from e
        else:
            if response.ok or not is_retryable_status(response.status_code):
                return response
            last_error = RuntimeError(f"Server error: {response.status_code} {response.reason}")
            if attempt == max_attempts:
                raise RetryError(str(last_error), attempt, last_error)

        delay = base_delay * 2 ** (attempt - 1)
        logger.warning("%s %s attempt %d failed (%s); retrying in %.2fs", method, url, attempt, last_error, delay)
        if on_retry:
            on_retry(attempt, last_error)
        time.sleep(delay)

    raise RetryError(f"Failed after {max_attempts} attempts", max_attempts, last_error or RuntimeError("Unknown error"))
