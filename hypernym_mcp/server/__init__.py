"""Transports: MCP over stdio and the REST/JSON-RPC app."""

from ..config import Settings
from ..core import HypernymClient, RequestAdapter


def build_adapter(settings: Settings) -> RequestAdapter:
    """Wire a client and adapter from settings"""
    client = HypernymClient(
        api_key=settings.api_key,
        base_url=settings.api_url,
        timeout=settings.timeout,
    )
    return RequestAdapter(client, raw_response=settings.raw_response)


__all__ = ['build_adapter']
