"""REST surface: health check, analyze_sync proxy and JSON-RPC tool calls."""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse

from ..config import Settings
from ..core import (
    InvalidArgumentsError,
    RateLimitError,
    RequestAdapter,
    ResponseShapeError,
    UnknownToolError,
    UpstreamConnectionError,
    UpstreamError,
)
from ..core.adapter import describe_upstream_error
from ..models import SERVER_NAME, SERVER_VERSION, TOOL_NAMES
from . import build_adapter
from .schemas import HealthResponse, JsonRpcError, JsonRpcResponse

logger = logging.getLogger(__name__)

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# MCP method names plus the older camelCase aliases
LIST_TOOLS_METHODS = ('tools/list', 'listTools')
CALL_TOOL_METHODS = ('tools/call', 'callTool')

RATE_LIMIT_RETRY_AFTER_DEFAULT = "60"


def _rpc_response(rpc_id: Any, result: Optional[Dict[str, Any]] = None,
                  error: Optional[JsonRpcError] = None, status_code: int = 200) -> JSONResponse:
    body = JsonRpcResponse(id=rpc_id, result=result, error=error).model_dump(exclude_none=True)
    body['id'] = rpc_id
    return JSONResponse(body, status_code=status_code)


def _rpc_error(rpc_id: Any, code: int, message: str, status_code: int = 400) -> JSONResponse:
    return _rpc_response(rpc_id, error=JsonRpcError(code=code, message=message), status_code=status_code)


def get_adapter(request: Request) -> RequestAdapter:
    return request.app.state.adapter


def create_app(settings: Optional[Settings] = None, adapter: Optional[RequestAdapter] = None) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        settings: Used to build the adapter at startup when none is given
        adapter: Pre-built adapter (tests inject one)
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.adapter is None:
            app.state.adapter = build_adapter(settings or Settings.from_env())
        logger.info("%s %s ready", SERVER_NAME, SERVER_VERSION)
        try:
            yield
        finally:
            await app.state.adapter.close()
            logger.info("Upstream client closed")

    app = FastAPI(title=SERVER_NAME, version=SERVER_VERSION, lifespan=lifespan)
    app.state.adapter = adapter
    app.state.started_at = time.monotonic()

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(
            status="ok",
            name=SERVER_NAME,
            version=SERVER_VERSION,
            tools=TOOL_NAMES,
            uptime=round(time.monotonic() - app.state.started_at, 3),
        )

    @app.post("/analyze_sync")
    async def analyze_sync(request: Request, x_api_key: Optional[str] = Header(default=None),
                           adapter: RequestAdapter = Depends(get_adapter)):
        """Same contract as the Hypernym endpoint; X-API-Key overrides the server key"""
        try:
            body = await request.json()
        except ValueError:
            return JSONResponse({'error': 'Request body must be JSON'}, status_code=400)

        essay_text = body.get('essay_text') if isinstance(body, dict) else None
        if not isinstance(essay_text, str) or not essay_text:
            return JSONResponse({'error': 'Missing or invalid essay_text parameter'}, status_code=400)

        try:
            return await adapter.proxy_analyze_sync(essay_text, body.get('params'), api_key=x_api_key)
        except InvalidArgumentsError as e:
            return JSONResponse({'error': str(e)}, status_code=400)
        except RateLimitError as e:
            logger.error("Rate limit exceeded with Hypernym API.")
            return JSONResponse({
                'error': 'Rate limit exceeded with Hypernym API. Please try again later.',
                'retryAfter': e.retry_after or RATE_LIMIT_RETRY_AFTER_DEFAULT,
            }, status_code=429)
        except (UpstreamConnectionError, ResponseShapeError) as e:
            return JSONResponse({'error': f'Hypernym API error: {describe_upstream_error(e)}'}, status_code=502)
        except UpstreamError as e:
            # Forward the upstream status and body as-is
            content = e.body if isinstance(e.body, dict) else {'error': f'Hypernym API error: {e.upstream_message}'}
            return JSONResponse(content, status_code=e.status or 502)
        except Exception:
            logger.exception("Error handling analyze_sync request")
            return JSONResponse({'error': 'Internal server error'}, status_code=500)

    @app.post("/")
    async def json_rpc(request: Request, x_api_key: Optional[str] = Header(default=None),
                       adapter: RequestAdapter = Depends(get_adapter)):
        """MCP tool calls over plain HTTP (JSON-RPC 2.0)"""
        try:
            message = await request.json()
        except ValueError:
            return _rpc_error(None, PARSE_ERROR, "Parse error: body is not valid JSON")

        if not isinstance(message, dict) or message.get('jsonrpc') != '2.0':
            rpc_id = message.get('id') if isinstance(message, dict) else None
            return _rpc_error(rpc_id, INVALID_REQUEST, "Invalid request: Not a valid JSON-RPC 2.0 request")

        rpc_id = message.get('id')
        method = message.get('method')

        if method in LIST_TOOLS_METHODS:
            return _rpc_response(rpc_id, result={'tools': adapter.list_tools()})
        if method not in CALL_TOOL_METHODS:
            return _rpc_error(rpc_id, METHOD_NOT_FOUND, f"Method not found: {method}")

        params = message.get('params')
        tool_name = params.get('name') if isinstance(params, dict) else None
        if not tool_name:
            return _rpc_error(rpc_id, INVALID_PARAMS, "Invalid params: Missing tool name")

        try:
            result = await adapter.call_tool(tool_name, params.get('arguments'), api_key=x_api_key)
        except UnknownToolError:
            return _rpc_error(rpc_id, METHOD_NOT_FOUND, f"Method not found: {tool_name}")
        except InvalidArgumentsError as e:
            return _rpc_error(rpc_id, INVALID_PARAMS, f"Invalid params: {e}")
        except Exception:
            logger.exception("Error handling MCP request")
            return _rpc_error(rpc_id, INTERNAL_ERROR, "Internal error", status_code=500)

        return _rpc_response(rpc_id, result=result.to_content())

    return app


__all__ = ['create_app', 'get_adapter']
