"""Response models for the REST surface."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"
    name: str
    version: str
    tools: List[str]
    uptime: float = Field(description="Seconds since the app started")


class JsonRpcError(BaseModel):
    code: int
    message: str


class JsonRpcResponse(BaseModel):
    """JSON-RPC 2.0 envelope; exactly one of result/error is set"""
    jsonrpc: str = "2.0"
    id: Any = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[JsonRpcError] = None
