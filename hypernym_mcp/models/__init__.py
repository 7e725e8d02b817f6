"""Data models for the Hypernym MCP gateway."""

import json
from dataclasses import dataclass
from typing import Dict, Any, List

SERVER_NAME = 'hypernym-mcp-server'
SERVER_VERSION = '1.0.0'

DEFAULT_COMPRESSION_RATIO = 0.5
DEFAULT_SEMANTIC_SIMILARITY = 0.8


@dataclass
class AnalysisRequest:
    """
    A single text to send through the Hypernym API.

    Lives only for one request/response exchange. The ratios are the knobs
    the API exposes for how hard it may compress:

    Attributes:
        text: The text to analyze (must not be empty)
        min_compression_ratio: 0.0-1.0, lower values allow more compression
            (1.0 = no compression, 0.8 = 20% compression)
        min_semantic_similarity: 0.0-1.0, minimum similarity a compressed
            segment needs before it is used in the suggested output

    Example:
        request = AnalysisRequest(
            text="Quarterly revenue grew 12% on the back of strong cloud demand...",
            min_compression_ratio=0.5,
            min_semantic_similarity=0.8
        )
        payload = request.to_payload()
    """
    text: str
    min_compression_ratio: float = DEFAULT_COMPRESSION_RATIO
    min_semantic_similarity: float = DEFAULT_SEMANTIC_SIMILARITY

    def to_payload(self) -> Dict[str, Any]:
        """Build the body expected by POST /analyze_sync"""
        return {
            'essay_text': self.text,
            'params': {
                'min_compression_ratio': self.min_compression_ratio,
                'min_semantic_similarity': self.min_semantic_similarity
            }
        }


@dataclass
class ToolResult:
    """Text returned by a tool, optionally flagged as an error"""
    text: str
    is_error: bool = False

    @classmethod
    def from_json(cls, payload: Any) -> 'ToolResult':
        return cls(text=json.dumps(payload, indent=2))

    def to_content(self) -> Dict[str, Any]:
        """Render in the MCP CallToolResult shape"""
        return {
            'content': [{'type': 'text', 'text': self.text}],
            'isError': self.is_error
        }


def _ratio_schema(description: str, default: float) -> Dict[str, Any]:
    return {
        'type': 'number',
        'description': description,
        'minimum': 0,
        'maximum': 1,
        'default': default,
    }


def _tool_schema(text_description: str) -> Dict[str, Any]:
    return {
        'type': 'object',
        'properties': {
            'text': {
                'type': 'string',
                'description': text_description,
            },
            'min_compression_ratio': _ratio_schema(
                'Minimum compression ratio (0.0-1.0). Lower values allow more compression '
                '(1.0 = no compression, 0.8 = 20% compression, 0.0 = 100% compression)',
                DEFAULT_COMPRESSION_RATIO
            ),
            'min_semantic_similarity': _ratio_schema(
                'Minimum semantic similarity to consider for suggested output (0.0-1.0)',
                DEFAULT_SEMANTIC_SIMILARITY
            ),
        },
        'required': ['text'],
    }


ANALYZE_TEXT = 'analyze_text'
SEMANTIC_COMPRESSION = 'semantic_compression'

TOOLS: List[Dict[str, Any]] = [
    {
        'name': ANALYZE_TEXT,
        'description': (
            'Analyze text using Hypernym AI for semantic categorization and compression. '
            'Returns detailed JSON with semantic categories, compression ratios, and more.'
        ),
        'inputSchema': _tool_schema('The text to analyze'),
    },
    {
        'name': SEMANTIC_COMPRESSION,
        'description': (
            'Get compressed version of text using Hypernym AI. '
            'Returns only the compressed text as a string, not the full analysis.'
        ),
        'inputSchema': _tool_schema('The text to compress'),
    },
]

TOOL_NAMES = [tool['name'] for tool in TOOLS]


__all__ = [
    'AnalysisRequest',
    'ToolResult',
    'TOOLS',
    'TOOL_NAMES',
    'ANALYZE_TEXT',
    'SEMANTIC_COMPRESSION',
    'DEFAULT_COMPRESSION_RATIO',
    'DEFAULT_SEMANTIC_SIMILARITY',
    'SERVER_NAME',
    'SERVER_VERSION',
]
