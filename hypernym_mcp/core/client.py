"""Resilient HTTP client for the Hypernym API."""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import aiohttp

from ..models import AnalysisRequest, SERVER_NAME, SERVER_VERSION
from .errors import (
    AuthenticationError,
    RateLimitError,
    ResponseShapeError,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamRequestError,
    UpstreamServerError,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://fc-api-development.hypernym.ai"
ANALYZE_SYNC_PATH = "/analyze_sync"

DEFAULT_TIMEOUT = 60  # seconds per attempt, large texts take a while
MAX_TIMEOUT = 120

MAX_ATTEMPTS = 3
MAX_NETWORK_RETRIES = 2
RATE_LIMIT_FALLBACK = 10.0  # used when 429 carries no usable Retry-After
BACKOFF_BASE = 1.0
BACKOFF_CAP = 10.0
RETRYABLE_SERVER_STATUSES = (500, 502, 503, 504)

# Failures where no complete response arrived. A truncated body
# (ClientPayloadError) is treated like a dropped connection.
NETWORK_ERRORS = (aiohttp.ClientConnectionError, aiohttp.ClientPayloadError, asyncio.TimeoutError)


def backoff_delay(retry_count: int, base: float = BACKOFF_BASE, cap: float = BACKOFF_CAP) -> float:
    """Exponential backoff: 1s, 2s, 4s ... capped at 10s"""
    return min(base * (2 ** retry_count), cap)


def parse_retry_after(value: Optional[str], fallback: float = RATE_LIMIT_FALLBACK) -> float:
    """Read a Retry-After header given in seconds"""
    if value is None:
        return fallback
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return fallback
    if seconds != seconds or seconds < 0:  # NaN or negative
        return fallback
    return seconds


def clamp_timeout(timeout: Optional[float], default: float = DEFAULT_TIMEOUT) -> float:
    if timeout is None or timeout <= 0:
        return float(default)
    return float(min(timeout, MAX_TIMEOUT))


def normalize_base_url(url: str) -> str:
    """
    Accept either the API base or the full analyze_sync endpoint.

    HYPERNYM_API_URL has historically pointed at .../analyze_sync, so both
    'https://host' and 'https://host/analyze_sync' give 'https://host'.
    """
    url = url.strip().rstrip('/')
    if url.endswith(ANALYZE_SYNC_PATH):
        url = url[:-len(ANALYZE_SYNC_PATH)]
    return url


def error_for_status(status: int, body: Any, headers: Dict[str, str], attempts: int) -> UpstreamError:
    """Map a failed HTTP status onto the matching error class"""
    message = f"Hypernym API returned HTTP {status}"
    if status == 429:
        error_class = RateLimitError
    elif status in (401, 403):
        error_class = AuthenticationError
    elif status >= 500:
        error_class = UpstreamServerError
    else:
        error_class = UpstreamRequestError
    return error_class(message, status=status, body=body, headers=headers, attempts=attempts)


async def _read_body(response: aiohttp.ClientResponse) -> Any:
    raw = await response.read()
    try:
        return json.loads(raw.decode("utf-8"))
    except UnicodeDecodeError:
        # Not UTF-8, so not JSON either
        return raw.decode("utf-8", errors="replace")
    except ValueError:
        return raw.decode("utf-8")


class HypernymClient:
    """
    Sends requests to the Hypernym API and retries transient failures.

    One client is shared by every invocation in the process. Its configuration
    (base URL, default credential, headers, timeout) is read-only after
    construction; each call builds its own headers, so concurrent calls never
    see each other's retry state or API key override.

    Retry policy, at most `max_attempts` attempts in total:
        - 429: wait for Retry-After seconds (10s when absent), then retry
        - 500/502/503/504: exponential backoff (1s, 2s, ... max 10s)
        - no response (connection error/timeout): same backoff, at most 2 retries
        - anything else: fail straight away

    Example:
        async with HypernymClient(api_key='your-key-here') as client:
            result = await client.analyze_sync(AnalysisRequest(text="Long text here..."))

    Args:
        api_key: Default Hypernym API key (sent as X-API-Key)
        base_url: API base URL (a trailing /analyze_sync is stripped)
        timeout: Seconds allowed per attempt, capped at 120
        max_attempts: Total attempts including the first one
        session: Optional aiohttp session to use instead of creating one
        sleep: Awaitable used for backoff waits (injectable for tests)
    """

    def __init__(self, api_key: str, base_url: Optional[str] = None,
                 timeout: float = DEFAULT_TIMEOUT, max_attempts: int = MAX_ATTEMPTS,
                 session: Optional[aiohttp.ClientSession] = None,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        if not api_key:
            raise ValueError("API key is required")

        self.api_key = api_key
        self.base_url = normalize_base_url(base_url or DEFAULT_BASE_URL)
        self.timeout = clamp_timeout(timeout)
        self.max_attempts = max(1, max_attempts)
        self.default_headers = {
            'Content-Type': 'application/json',
            'Accept': 'application/json',
            'User-Agent': f'{SERVER_NAME}/{SERVER_VERSION}',
        }

        self._session = session
        self._owns_session = session is None
        self._sleep = sleep

    async def __aenter__(self) -> 'HypernymClient':
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        # Created lazily so it binds to the running event loop
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def _build_headers(self, api_key: Optional[str], retry_count: int) -> Dict[str, str]:
        """Fresh header set for one attempt"""
        headers = dict(self.default_headers)
        headers['X-API-Key'] = api_key or self.api_key
        if retry_count:
            headers['X-Retry-Count'] = str(retry_count)
        return headers

    def _retry_delay(self, status: int, retry_after: Optional[str], retry_count: int) -> Optional[float]:
        """Seconds to wait before retrying this status, None if it is not retryable"""
        if status == 429:
            return parse_retry_after(retry_after)
        if status in RETRYABLE_SERVER_STATUSES:
            return backoff_delay(retry_count)
        return None

    async def post(self, path: str, body: Dict[str, Any], timeout: Optional[float] = None,
                   api_key: Optional[str] = None) -> Dict[str, Any]:
        """
        POST a JSON body and return the parsed JSON response.

        Args:
            path: Path under the base URL, e.g. '/analyze_sync'
            body: JSON-serializable request body (never modified)
            timeout: Per-attempt timeout override in seconds
            api_key: Credential for this call only (defaults to the client's)

        Returns:
            Parsed JSON body of the 2xx response

        Raises:
            RateLimitError, AuthenticationError, UpstreamServerError,
            UpstreamRequestError: HTTP failure that was not (or no longer) retried
            UpstreamConnectionError: No response after the network retries
            ResponseShapeError: 2xx response whose body is not JSON
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        attempt_timeout = aiohttp.ClientTimeout(total=clamp_timeout(timeout, self.timeout))
        session = self._get_session()
        retry_count = 0

        while True:
            attempts = retry_count + 1
            headers = self._build_headers(api_key, retry_count)

            try:
                async with session.post(url, json=body, headers=headers, timeout=attempt_timeout) as response:
                    status = response.status
                    response_headers = dict(response.headers)
                    retry_after = response.headers.get('Retry-After')
                    response_body = await _read_body(response)
            except NETWORK_ERRORS as e:
                reason = str(e) or type(e).__name__
                if retry_count < min(MAX_NETWORK_RETRIES, self.max_attempts - 1):
                    delay = backoff_delay(retry_count)
                    logger.warning("Network error (%s) calling %s. Retrying in %.1fs (%d/%d)...",
                                   type(e).__name__, url, delay, attempts, self.max_attempts)
                    await self._sleep(delay)
                    retry_count += 1
                    continue
                logger.error("Network error calling %s after %d attempt(s): %s", url, attempts, reason)
                raise UpstreamConnectionError(
                    f"Could not reach Hypernym API: {reason}", attempts=attempts
                ) from e

            if 200 <= status < 300:
                if retry_count:
                    logger.info("Hypernym API succeeded after %d attempt(s)", attempts)
                if isinstance(response_body, str):
                    raise ResponseShapeError(
                        "Hypernym API returned a non-JSON response",
                        status=status, body=response_body, headers=response_headers, attempts=attempts
                    )
                return response_body

            delay = self._retry_delay(status, retry_after, retry_count)
            if delay is not None and attempts < self.max_attempts:
                if status == 429:
                    logger.warning("Rate limited (429). Waiting %.1fs before retry %d/%d...",
                                   delay, attempts, self.max_attempts - 1)
                else:
                    logger.warning("Server error (%d). Retrying in %.1fs (%d/%d)...",
                                   status, delay, attempts, self.max_attempts - 1)
                await self._sleep(delay)
                retry_count += 1
                continue

            logger.error("Hypernym API returned %d for %s after %d attempt(s)", status, url, attempts)
            raise error_for_status(status, response_body, response_headers, attempts)

    async def analyze_sync(self, request: AnalysisRequest, api_key: Optional[str] = None,
                           timeout: Optional[float] = None) -> Dict[str, Any]:
        """Run a synchronous analysis of one text"""
        return await self.post(ANALYZE_SYNC_PATH, request.to_payload(), timeout=timeout, api_key=api_key)


__all__ = [
    'HypernymClient',
    'DEFAULT_BASE_URL',
    'DEFAULT_TIMEOUT',
    'MAX_TIMEOUT',
    'MAX_ATTEMPTS',
    'RATE_LIMIT_FALLBACK',
    'backoff_delay',
    'parse_retry_after',
    'clamp_timeout',
    'normalize_base_url',
    'error_for_status',
]
