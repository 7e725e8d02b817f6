"""Hypernym MCP gateway - exposes the Hypernym API as MCP tools and a REST API."""

from .models import AnalysisRequest, ToolResult, TOOLS, SERVER_NAME, SERVER_VERSION
from .core import HypernymClient, RequestAdapter
from .config import Settings

__version__ = SERVER_VERSION

__all__ = ['AnalysisRequest', 'ToolResult', 'TOOLS', 'HypernymClient', 'RequestAdapter', 'Settings']
