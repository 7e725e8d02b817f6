"""
Tests for the REST surface: /health, the /analyze_sync proxy and JSON-RPC
tool calls on POST /.
"""

import pytest
from fastapi.testclient import TestClient

from conftest import NESTED_RESPONSE, StubClient
from hypernym_mcp.core import (
    AuthenticationError,
    RateLimitError,
    RequestAdapter,
    UpstreamConnectionError,
    UpstreamServerError,
)
from hypernym_mcp.server.rest import create_app


def make_client(stub: StubClient, raw_response: bool = False) -> TestClient:
    # No context manager: the lifespan would otherwise close the stub
    return TestClient(create_app(adapter=RequestAdapter(stub, raw_response=raw_response)))


def rpc(method, params=None, rpc_id=1):
    message = {'jsonrpc': '2.0', 'id': rpc_id, 'method': method}
    if params is not None:
        message['params'] = params
    return message


class TestHealth:

    def test_health(self):
        response = make_client(StubClient()).get('/health')

        assert response.status_code == 200
        data = response.json()
        assert data['status'] == 'ok'
        assert data['name'] == 'hypernym-mcp-server'
        assert data['version'] == '1.0.0'
        assert data['tools'] == ['analyze_text', 'semantic_compression']
        assert data['uptime'] >= 0


class TestAnalyzeSync:

    def test_success_returns_upstream_json(self):
        stub = StubClient()
        response = make_client(stub).post('/analyze_sync', json={
            'essay_text': 'An essay',
            'params': {'min_compression_ratio': 0.7}
        })

        assert response.status_code == 200
        assert response.json() == NESTED_RESPONSE
        request, api_key = stub.calls[0]
        assert request.min_compression_ratio == 0.7
        assert request.min_semantic_similarity == 0.8
        assert api_key is None

    def test_x_api_key_overrides_server_key(self):
        stub = StubClient()
        make_client(stub).post('/analyze_sync', json={'essay_text': 'An essay'},
                               headers={'X-API-Key': 'caller-key'})

        assert stub.calls[0][1] == 'caller-key'

    @pytest.mark.parametrize("body", [{}, {'essay_text': ''}, {'essay_text': 7}, ['essay']])
    def test_missing_essay_text(self, body):
        stub = StubClient()
        response = make_client(stub).post('/analyze_sync', json=body)

        assert response.status_code == 400
        assert response.json() == {'error': 'Missing or invalid essay_text parameter'}
        assert stub.calls == []

    def test_non_json_body(self):
        response = make_client(StubClient()).post(
            '/analyze_sync', content=b'not json', headers={'Content-Type': 'application/json'})

        assert response.status_code == 400
        assert response.json() == {'error': 'Request body must be JSON'}

    def test_bad_params(self):
        stub = StubClient()
        response = make_client(stub).post('/analyze_sync', json={
            'essay_text': 'An essay', 'params': {'min_semantic_similarity': 3}})

        assert response.status_code == 400
        assert 'min_semantic_similarity' in response.json()['error']
        assert stub.calls == []

    def test_rate_limit_maps_to_429_with_retry_after(self):
        error = RateLimitError("HTTP 429", status=429, headers={'Retry-After': '12'}, attempts=3)
        response = make_client(StubClient(error=error)).post('/analyze_sync', json={'essay_text': 'x'})

        assert response.status_code == 429
        assert response.json()['retryAfter'] == '12'
        assert 'Rate limit exceeded' in response.json()['error']

    def test_rate_limit_without_header_defaults_retry_after(self):
        error = RateLimitError("HTTP 429", status=429, attempts=3)
        response = make_client(StubClient(error=error)).post('/analyze_sync', json={'essay_text': 'x'})

        assert response.json()['retryAfter'] == '60'

    def test_upstream_status_and_body_are_forwarded(self):
        error = AuthenticationError("HTTP 401", status=401, body={'message': 'invalid key'})
        response = make_client(StubClient(error=error)).post('/analyze_sync', json={'essay_text': 'x'})

        assert response.status_code == 401
        assert response.json() == {'message': 'invalid key'}

    def test_non_json_upstream_body_is_wrapped(self):
        error = UpstreamServerError("HTTP 503", status=503, body='Service Unavailable', attempts=3)
        response = make_client(StubClient(error=error)).post('/analyze_sync', json={'essay_text': 'x'})

        assert response.status_code == 503
        assert response.json() == {'error': 'Hypernym API error: Service Unavailable'}

    def test_connection_failure_is_bad_gateway(self):
        error = UpstreamConnectionError("Could not reach Hypernym API: refused", attempts=3)
        response = make_client(StubClient(error=error)).post('/analyze_sync', json={'essay_text': 'x'})

        assert response.status_code == 502
        assert 'Could not connect to Hypernym API' in response.json()['error']

    def test_unexpected_exception_is_internal_server_error(self):
        stub = StubClient(error=RuntimeError("kaboom"))
        response = make_client(stub).post('/analyze_sync', json={'essay_text': 'x'})

        assert response.status_code == 500
        assert response.json() == {'error': 'Internal server error'}


class TestJsonRpc:

    @pytest.mark.parametrize("method", ['tools/list', 'listTools'])
    def test_list_tools(self, method):
        response = make_client(StubClient()).post('/', json=rpc(method, rpc_id='abc'))

        assert response.status_code == 200
        data = response.json()
        assert data['jsonrpc'] == '2.0'
        assert data['id'] == 'abc'
        assert [tool['name'] for tool in data['result']['tools']] == ['analyze_text', 'semantic_compression']

    @pytest.mark.parametrize("method", ['tools/call', 'callTool'])
    def test_call_semantic_compression(self, method):
        response = make_client(StubClient()).post('/', json=rpc(method, {
            'name': 'semantic_compression',
            'arguments': {'text': 'Some text'}
        }))

        assert response.status_code == 200
        assert response.json() == {
            'jsonrpc': '2.0',
            'id': 1,
            'result': {'content': [{'type': 'text', 'text': 'suggested text'}], 'isError': False}
        }

    def test_upstream_failure_is_an_error_result(self):
        stub = StubClient(error=UpstreamServerError("HTTP 503", status=503, attempts=3))
        response = make_client(stub).post('/', json=rpc('tools/call', {
            'name': 'analyze_text', 'arguments': {'text': 'Some text'}}))

        assert response.status_code == 200
        result = response.json()['result']
        assert result['isError'] is True
        assert result['content'][0]['text'] == \
            "Hypernym API error: Hypernym API server error. Please try again later."

    def test_x_api_key_is_honored(self):
        stub = StubClient()
        make_client(stub).post('/', json=rpc('tools/call', {
            'name': 'analyze_text', 'arguments': {'text': 'Some text'}}), headers={'X-API-Key': 'mine'})

        assert stub.calls[0][1] == 'mine'

    def test_parse_error(self):
        response = make_client(StubClient()).post(
            '/', content=b'{broken', headers={'Content-Type': 'application/json'})

        assert response.status_code == 400
        assert response.json()['error']['code'] == -32700
        assert response.json()['id'] is None

    @pytest.mark.parametrize("message", [
        {'id': 3, 'method': 'tools/list'},
        {'jsonrpc': '1.0', 'id': 3, 'method': 'tools/list'},
    ])
    def test_invalid_request(self, message):
        response = make_client(StubClient()).post('/', json=message)

        assert response.status_code == 400
        assert response.json()['error']['code'] == -32600
        assert response.json()['id'] == 3

    def test_unknown_method(self):
        response = make_client(StubClient()).post('/', json=rpc('resources/list'))

        assert response.status_code == 400
        assert response.json()['error'] == {'code': -32601, 'message': 'Method not found: resources/list'}

    def test_missing_tool_name(self):
        response = make_client(StubClient()).post('/', json=rpc('tools/call', {'arguments': {'text': 'x'}}))

        assert response.json()['error']['code'] == -32602

    def test_unknown_tool(self):
        stub = StubClient()
        response = make_client(stub).post('/', json=rpc('tools/call', {
            'name': 'summarize', 'arguments': {'text': 'x'}}))

        assert response.status_code == 400
        assert response.json()['error'] == {'code': -32601, 'message': 'Method not found: summarize'}
        assert stub.calls == []

    def test_invalid_arguments(self):
        stub = StubClient()
        response = make_client(stub).post('/', json=rpc('tools/call', {
            'name': 'semantic_compression', 'arguments': {'text': ''}}))

        assert response.status_code == 400
        error = response.json()['error']
        assert error['code'] == -32602
        assert error['message'].startswith('Invalid params: Invalid semantic_compression arguments')
        assert stub.calls == []

    def test_unexpected_exception_is_internal_error(self):
        response = make_client(StubClient(error=RuntimeError("kaboom"))).post('/', json=rpc('tools/call', {
            'name': 'analyze_text', 'arguments': {'text': 'x'}}))

        assert response.status_code == 500
        assert response.json()['error'] == {'code': -32603, 'message': 'Internal error'}
