"""Bridges the two tools onto the Hypernym client."""

import logging
from typing import Any, Dict, List, Optional, Tuple

from ..models import (
    ANALYZE_TEXT,
    SEMANTIC_COMPRESSION,
    TOOLS,
    AnalysisRequest,
    ToolResult,
    DEFAULT_COMPRESSION_RATIO,
    DEFAULT_SEMANTIC_SIMILARITY,
)
from .client import HypernymClient
from .errors import (
    AuthenticationError,
    InvalidArgumentsError,
    RateLimitError,
    ResponseShapeError,
    UnknownToolError,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamServerError,
)

logger = logging.getLogger(__name__)

# Where the compressed text has lived across API revisions, newest wrapper first
TEXT_CONTAINER_PATHS: List[Tuple[str, ...]] = [
    ('results', 'response', 'texts'),
    ('response', 'texts'),
]
TEXT_FIELDS = ('suggested', 'compressed')


def _ratio(arguments: Dict[str, Any], name: str, default: float) -> float:
    value = arguments.get(name)
    if value is None:
        return default
    # bool is an int subclass but never a valid ratio
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgumentsError(f"'{name}' must be a number, got {type(value).__name__}")
    if not 0 <= value <= 1:
        raise InvalidArgumentsError(f"'{name}' must be between 0 and 1, got {value}")
    return float(value)


def parse_arguments(arguments: Any, tool_name: str = 'tool') -> AnalysisRequest:
    """
    Validate tool arguments and turn them into an AnalysisRequest.

    Args:
        arguments: Raw arguments object from the caller
        tool_name: Used in the error message

    Returns:
        AnalysisRequest with defaults filled in (0.5 / 0.8)

    Raises:
        InvalidArgumentsError: arguments are not an object, 'text' is missing,
            not a string or empty, or a ratio is not a number in [0, 1]
    """
    expected = ("expected {text: string, min_compression_ratio?: number, "
                "min_semantic_similarity?: number}")
    if not isinstance(arguments, dict):
        raise InvalidArgumentsError(f"Invalid {tool_name} arguments: {expected}")

    text = arguments.get('text')
    if not isinstance(text, str):
        raise InvalidArgumentsError(f"Invalid {tool_name} arguments: missing or invalid 'text' parameter")
    if not text.strip():
        raise InvalidArgumentsError(f"Invalid {tool_name} arguments: 'text' must not be empty")

    try:
        return AnalysisRequest(
            text=text,
            min_compression_ratio=_ratio(arguments, 'min_compression_ratio', DEFAULT_COMPRESSION_RATIO),
            min_semantic_similarity=_ratio(arguments, 'min_semantic_similarity', DEFAULT_SEMANTIC_SIMILARITY),
        )
    except InvalidArgumentsError as e:
        raise InvalidArgumentsError(f"Invalid {tool_name} arguments: {e}") from e


def _lookup(payload: Any, path: Tuple[str, ...]) -> Any:
    node = payload
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def extract_compressed_text(payload: Any) -> str:
    """
    Pull the suggested (or compressed) text out of an analyze_sync response.

    Both shapes are supported permanently:
        {"results": {"response": {"texts": {"suggested": "..."}}}}
        {"response": {"texts": {"suggested": "..."}}}

    Raises:
        ResponseShapeError: no known path holds a string
    """
    for path in TEXT_CONTAINER_PATHS:
        texts = _lookup(payload, path)
        if not isinstance(texts, dict):
            continue
        for field in TEXT_FIELDS:
            value = texts.get(field)
            if isinstance(value, str):
                return value

    keys = list(payload.keys())[:5] if isinstance(payload, dict) else type(payload).__name__
    logger.warning("Unexpected API response structure (top-level keys: %s)", keys)
    raise ResponseShapeError("Unexpected API response structure", status=200, body=payload)


def describe_upstream_error(error: UpstreamError) -> str:
    """Human-readable message for a failed upstream call"""
    if isinstance(error, RateLimitError):
        retry_after = error.retry_after
        hint = f" Retry after: {retry_after} seconds." if retry_after else ""
        return f"Rate limit exceeded with Hypernym API. Please try again later.{hint}"
    if isinstance(error, AuthenticationError):
        return "Authentication error with Hypernym API. Please check your API key."
    if isinstance(error, UpstreamServerError):
        return "Hypernym API server error. Please try again later."
    if isinstance(error, UpstreamConnectionError):
        return f"Could not connect to Hypernym API after {error.attempts} attempt(s): {error}"
    if isinstance(error, ResponseShapeError):
        return str(error)
    if error.status == 400:
        return f"Bad request: {error.upstream_message}"
    return error.upstream_message


class RequestAdapter:
    """
    Turns tool invocations into Hypernym API calls and shapes the results.

    Stateless apart from the shared client: every invocation validates its own
    arguments, makes its own call and builds its own result.

    Validation and unknown-tool failures are raised (InvalidArgumentsError,
    UnknownToolError) so the transport can report them as protocol errors.
    Upstream failures come back as ToolResult(is_error=True).

    Args:
        client: Shared HypernymClient
        raw_response: Make semantic_compression return the full JSON instead
            of just the compressed text
    """

    def __init__(self, client: HypernymClient, raw_response: bool = False):
        self.client = client
        self.raw_response = raw_response
        self._handlers = {
            ANALYZE_TEXT: self.analyze_text,
            SEMANTIC_COMPRESSION: self.semantic_compression,
        }

    def list_tools(self) -> List[Dict[str, Any]]:
        return [dict(tool) for tool in TOOLS]

    async def call_tool(self, name: Any, arguments: Any, api_key: Optional[str] = None) -> ToolResult:
        handler = self._handlers.get(name) if isinstance(name, str) else None
        if handler is None:
            raise UnknownToolError(name)
        return await handler(arguments, api_key=api_key)

    async def _run(self, tool_name: str, arguments: Any,
                   api_key: Optional[str]) -> Tuple[Optional[Dict[str, Any]], Optional[ToolResult]]:
        request = parse_arguments(arguments, tool_name)
        logger.info("Processing %s request with %d characters", tool_name, len(request.text))
        try:
            payload = await self.client.analyze_sync(request, api_key=api_key)
        except UpstreamError as e:
            logger.error("%s failed: %s (status=%s, attempts=%d)", tool_name, e, e.status, e.attempts)
            return None, ToolResult(text=f"Hypernym API error: {describe_upstream_error(e)}", is_error=True)
        logger.info("Successfully received response from Hypernym API")
        return payload, None

    async def analyze_text(self, arguments: Any, api_key: Optional[str] = None) -> ToolResult:
        """Full analysis: the whole upstream JSON, pretty-printed"""
        payload, error = await self._run(ANALYZE_TEXT, arguments, api_key)
        if error is not None:
            return error
        return ToolResult.from_json(payload)

    async def semantic_compression(self, arguments: Any, api_key: Optional[str] = None) -> ToolResult:
        """Only the suggested compressed text (or the raw JSON when configured)"""
        payload, error = await self._run(SEMANTIC_COMPRESSION, arguments, api_key)
        if error is not None:
            return error
        if self.raw_response:
            return ToolResult.from_json(payload)
        try:
            return ToolResult(text=extract_compressed_text(payload))
        except ResponseShapeError as e:
            return ToolResult(text=f"Hypernym API error: {describe_upstream_error(e)}", is_error=True)

    async def proxy_analyze_sync(self, essay_text: Any, params: Any = None,
                                 api_key: Optional[str] = None) -> Dict[str, Any]:
        """
        Forward a raw analyze_sync body, as used by the REST endpoint.

        Raises:
            InvalidArgumentsError: bad essay_text or params
            UpstreamError: the call failed (left for the REST layer to map)
        """
        if params is not None and not isinstance(params, dict):
            raise InvalidArgumentsError("'params' must be an object")
        arguments = dict(params or {})
        arguments['text'] = essay_text
        request = parse_arguments(arguments, 'analyze_sync')
        logger.info("Proxying analyze_sync request with %d characters", len(request.text))
        return await self.client.analyze_sync(request, api_key=api_key)

    async def close(self) -> None:
        await self.client.close()


__all__ = [
    'RequestAdapter',
    'parse_arguments',
    'extract_compressed_text',
    'describe_upstream_error',
]
