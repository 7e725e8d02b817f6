"""
Shared fixtures: a scripted fake Hypernym API and a stub client.

The fake upstream is a real aiohttp app on a local port, so the client's
retry loop runs against genuine HTTP responses. Backoff waits go through
SleepRecorder instead of actually sleeping.
"""

import asyncio
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from hypernym_mcp.core.client import HypernymClient

NESTED_RESPONSE = {
    "results": {
        "metadata": {"version": "0.2.0", "tokens": {"in": 105, "out": 93, "total": 198}},
        "response": {
            "segments": [{
                "semantic_category": "Financial markets and theory evolution.",
                "semantic_similarity": 0.93,
                "compression_ratio": 0.95
            }],
            "texts": {"compressed": "compressed text", "suggested": "suggested text"}
        }
    }
}


class FakeUpstream:
    """Scripted stand-in for POST /analyze_sync"""

    def __init__(self):
        self.url: Optional[str] = None
        self.requests: List[Dict[str, Any]] = []
        self._script: List[Dict[str, Any]] = []

    def respond(self, status: int = 200, json: Any = None, headers: Optional[Dict[str, str]] = None,
                text: Optional[str] = None, delay: float = 0.0, body: Optional[bytes] = None) -> None:
        """Queue the next response; once the queue is empty every call gets NESTED_RESPONSE"""
        self._script.append({'status': status, 'json': json, 'headers': headers, 'text': text,
                             'delay': delay, 'body': body})

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def handle(self, request: web.Request) -> web.Response:
        self.requests.append({
            'path': request.path,
            'headers': request.headers.copy(),
            'body': await request.json(),
        })
        step = self._script.pop(0) if self._script else {'status': 200, 'json': NESTED_RESPONSE}
        if step.get('delay'):
            await asyncio.sleep(step['delay'])
        if step.get('body') is not None:
            return web.Response(status=step['status'], body=step['body'], headers=step.get('headers'),
                                content_type='application/json')
        if step.get('text') is not None:
            return web.Response(status=step['status'], text=step['text'], headers=step.get('headers'))
        return web.json_response(step.get('json') or {}, status=step['status'], headers=step.get('headers'))


class SleepRecorder:
    """Drop-in for asyncio.sleep that records the requested delays"""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class StubClient:
    """Records analyze_sync calls and returns a canned payload or raises"""

    def __init__(self, payload: Any = None, error: Optional[Exception] = None):
        self.payload = NESTED_RESPONSE if payload is None else payload
        self.error = error
        self.calls: List[Any] = []
        self.closed = False

    async def analyze_sync(self, request, api_key=None, timeout=None):
        self.calls.append((request, api_key))
        if self.error is not None:
            raise self.error
        return self.payload

    async def close(self):
        self.closed = True


@pytest_asyncio.fixture
async def upstream():
    fake = FakeUpstream()
    app = web.Application()
    app.router.add_post('/analyze_sync', fake.handle)
    server = TestServer(app)
    await server.start_server()
    fake.url = str(server.make_url('/'))
    yield fake
    await server.close()


@pytest.fixture
def sleeps():
    return SleepRecorder()


@pytest_asyncio.fixture
async def client(upstream, sleeps):
    hypernym_client = HypernymClient(api_key='test_key', base_url=upstream.url, sleep=sleeps)
    yield hypernym_client
    await hypernym_client.close()
