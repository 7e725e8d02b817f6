"""Error classes raised by the Hypernym client and request adapter."""

from typing import Any, Dict, Optional


class HypernymError(Exception):
    """Base class for every error raised by the gateway"""


class InvalidArgumentsError(HypernymError):
    """Tool arguments failed validation. Raised before any network call."""


class UnknownToolError(HypernymError):
    """The requested tool name is not one we expose"""

    def __init__(self, name: Any):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class UpstreamError(HypernymError):
    """
    A call to the Hypernym API failed permanently.

    Carries whatever the last attempt produced so callers can report it:

    Attributes:
        status: HTTP status of the last response (None for network failures)
        body: Parsed JSON body of the last response, or its raw text
        headers: Response headers of the last response
        attempts: How many attempts were made in total
    """

    def __init__(self, message: str, status: Optional[int] = None, body: Any = None,
                 headers: Optional[Dict[str, str]] = None, attempts: int = 1):
        super().__init__(message)
        self.status = status
        self.body = body
        self.headers = headers or {}
        self.attempts = attempts

    @property
    def upstream_message(self) -> str:
        """Best human-readable message the upstream gave us"""
        if isinstance(self.body, dict):
            for key in ('message', 'error', 'detail'):
                value = self.body.get(key)
                if isinstance(value, str) and value:
                    return value
        if isinstance(self.body, str) and self.body.strip():
            return self.body.strip()[:200]
        return str(self)


class RateLimitError(UpstreamError):
    """HTTP 429 that outlasted the retry budget"""

    @property
    def retry_after(self) -> Optional[str]:
        for key, value in self.headers.items():
            if key.lower() == 'retry-after':
                return value
        return None


class AuthenticationError(UpstreamError):
    """HTTP 401/403. Never retried."""


class UpstreamServerError(UpstreamError):
    """HTTP 5xx that outlasted the retry budget"""


class UpstreamRequestError(UpstreamError):
    """Any other 4xx. Never retried."""


class UpstreamConnectionError(UpstreamError):
    """No response was received (connection failure or timeout)"""


class ResponseShapeError(UpstreamError):
    """The upstream answered 2xx but the expected text field is missing"""


__all__ = [
    'HypernymError',
    'InvalidArgumentsError',
    'UnknownToolError',
    'UpstreamError',
    'RateLimitError',
    'AuthenticationError',
    'UpstreamServerError',
    'UpstreamRequestError',
    'UpstreamConnectionError',
    'ResponseShapeError',
]
