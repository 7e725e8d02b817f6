"""Resilient client, request adapter and error classes."""

from .errors import (
    HypernymError,
    InvalidArgumentsError,
    UnknownToolError,
    UpstreamError,
    RateLimitError,
    AuthenticationError,
    UpstreamServerError,
    UpstreamRequestError,
    UpstreamConnectionError,
    ResponseShapeError,
)
from .client import HypernymClient
from .adapter import RequestAdapter, parse_arguments, extract_compressed_text

__all__ = [
    'HypernymClient',
    'RequestAdapter',
    'parse_arguments',
    'extract_compressed_text',
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
