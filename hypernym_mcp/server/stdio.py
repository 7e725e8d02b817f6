"""MCP server over stdin/stdout."""

import logging
from typing import Any, Dict, List, Optional

from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError

from ..core import InvalidArgumentsError, RequestAdapter, UnknownToolError
from ..models import SERVER_NAME, SERVER_VERSION

logger = logging.getLogger(__name__)


def tool_definitions(adapter: RequestAdapter) -> List[types.Tool]:
    return [
        types.Tool(name=tool['name'], description=tool['description'], inputSchema=tool['inputSchema'])
        for tool in adapter.list_tools()
    ]


async def handle_call_tool(adapter: RequestAdapter, name: str,
                           arguments: Optional[Dict[str, Any]]) -> types.CallToolResult:
    """
    Run one tool call and translate the outcome for MCP.

    Bad arguments and unknown tools become protocol errors (McpError);
    upstream failures are ordinary results with isError set.
    """
    try:
        result = await adapter.call_tool(name, arguments)
    except InvalidArgumentsError as e:
        raise McpError(types.ErrorData(code=types.INVALID_PARAMS, message=str(e))) from e
    except UnknownToolError as e:
        raise McpError(types.ErrorData(code=types.METHOD_NOT_FOUND, message=str(e))) from e
    except McpError:
        raise
    except Exception as e:
        logger.exception("Uncaught error in tool handler")
        raise McpError(types.ErrorData(code=types.INTERNAL_ERROR, message=f"Internal error: {e}")) from e

    return types.CallToolResult(
        content=[types.TextContent(type='text', text=result.text)],
        isError=result.is_error,
    )


def build_mcp_server(adapter: RequestAdapter) -> Server:
    server = Server(SERVER_NAME, version=SERVER_VERSION)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return tool_definitions(adapter)

    # Registered directly: the call_tool decorator turns every exception,
    # McpError included, into an isError result
    async def call_tool(request: types.CallToolRequest) -> types.ServerResult:
        result = await handle_call_tool(adapter, request.params.name, request.params.arguments)
        return types.ServerResult(result)

    server.request_handlers[types.CallToolRequest] = call_tool
    return server


async def serve_stdio(adapter: RequestAdapter) -> None:
    """Serve MCP on stdin/stdout until the client disconnects"""
    server = build_mcp_server(adapter)
    logger.info("Hypernym MCP server running on stdio")
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        await adapter.close()
