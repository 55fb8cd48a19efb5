"""Authenticated HTTP transport for the Joplin data API.

Every call carries the API token as the ``token`` query parameter. Network
level failures (refused connections, timeouts) are retried with exponential
backoff; any HTTP response is final and is classified as success, an
"already exists" conflict, or a hard status error.
"""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

import httpx

from joplin_tagger.config import TaggerConfig
from joplin_tagger.exceptions import (
    HardStatusError,
    ResponseParseError,
    SoftConflictError,
    TransportExhaustedError,
)

logger = logging.getLogger(__name__)

SUCCESS_STATUSES = (200, 201)


def exponential_backoff(attempt: int) -> float:
    """Seconds to wait after the zero-based ``attempt`` failed: 1, 2, 4, ..."""
    return float(2**attempt)


def is_already_exists(body: str) -> bool:
    """Return True if an error body means the target already exists.

    Joplin answers a duplicate tag title with a 500 whose message contains
    this text; it has no structured error code for it.
    """
    return "already exists" in body


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try a request and how long to wait between tries."""

    max_attempts: int = 3
    backoff: Callable[[int], float] = exponential_backoff
    sleep: Callable[[float], None] = field(default=time.sleep)

    def wait(self, attempt: int) -> None:
        self.sleep(self.backoff(attempt))


class JoplinTransport:
    """Issues single API requests against a Joplin instance."""

    def __init__(
        self,
        config: TaggerConfig,
        client: Optional[httpx.Client] = None,
        policy: Optional[RetryPolicy] = None,
    ):
        """Initialize the transport.

        Args:
            config: Validated configuration (base URL, token, timeout)
            client: httpx client to use; one is created if not provided
            policy: Retry policy; defaults to ``config.max_attempts`` tries
                with exponential backoff
        """
        self.config = config
        self.policy = policy or RetryPolicy(max_attempts=config.max_attempts)
        self._owns_client = client is None
        # httpx applies this to each phase (connect, read, write, pool)
        self.timeout = httpx.Timeout(config.timeout)
        self._client = client or httpx.Client(timeout=self.timeout)

    def _url(self, path: str) -> httpx.URL:
        """Full URL for ``path``, keeping its query and adding the token."""
        url = httpx.URL(f"{self.config.base_url}{path}")
        return url.copy_merge_params({"token": self.config.token})

    def request(
        self, method: str, path: str, body: Optional[Dict[str, Any]] = None
    ) -> str:
        """Perform a request and return the raw response body.

        Args:
            method: HTTP verb
            path: Resource path, optionally with a query string
            body: JSON payload, serialized afresh for each attempt

        Raises:
            SoftConflictError: The server says the target already exists
            HardStatusError: Any other non-success status
            TransportExhaustedError: Every attempt failed at the network level
        """
        url = self._url(path)
        last_error: Optional[Exception] = None

        for attempt in range(self.policy.max_attempts):
            headers = {}
            content = None
            if body is not None:
                content = json.dumps(body)
                headers["Content-Type"] = "application/json"

            try:
                response = self._client.request(
                    method,
                    url,
                    content=content,
                    headers=headers,
                    timeout=self.timeout,
                )
            except httpx.TransportError as e:
                last_error = e
                logger.warning(
                    f"Error executing {method} {path} (attempt {attempt + 1}/{self.policy.max_attempts}): {e}"
                )
                self.policy.wait(attempt)
                continue

            text = response.text
            if response.status_code in SUCCESS_STATUSES:
                logger.debug(f"{method} {path} -> {response.status_code}")
                return text

            if is_already_exists(text):
                raise SoftConflictError(response.status_code, text)
            raise HardStatusError(response.status_code, text)

        raise TransportExhaustedError(self.policy.max_attempts, last_error)

    def request_json(
        self, method: str, path: str, body: Optional[Dict[str, Any]] = None
    ) -> Any:
        """Perform a request and decode the JSON response body."""
        text = self.request(method, path, body)
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise ResponseParseError(
                f"Invalid JSON in response to {method} {path}: {e}"
            ) from e

    def close(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        """String representation hiding sensitive information."""
        return f"JoplinTransport(base_url={self.config.base_url}, token=***)"
