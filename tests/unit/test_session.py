"""
Unit tests for DebuggerEndpoint and Target.
"""

import json
import pytest
from unittest.mock import Mock, patch

from tinycdp.session import DebuggerEndpoint, Target
from tinycdp.exceptions import CDPError, CDPTargetNotFoundError, EndpointUnavailableError


@pytest.fixture
def mock_targets_response():
    """Mock /json endpoint response."""
    return [
        {
            "id": "page-1",
            "type": "page",
            "title": "Example Domain",
            "url": "https://example.com",
            "webSocketDebuggerUrl": "ws://127.0.0.1:9222/devtools/page/page-1",
        },
        {
            "id": "page-2",
            "type": "page",
            "title": "GitHub",
            "url": "https://github.com",
            "webSocketDebuggerUrl": "ws://127.0.0.1:9222/devtools/page/page-2",
        },
        {
            "id": "worker-1",
            "type": "service_worker",
            "title": "Service Worker",
            "url": "https://example.com/sw.js",
        },
    ]


def http_response(payload):
    response = Mock()
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
    response.read.return_value = body
    response.__enter__ = Mock(return_value=response)
    response.__exit__ = Mock(return_value=False)
    return response


@pytest.mark.unit
def test_target_to_dict():
    target = Target(
        {
            "id": "test-id",
            "type": "page",
            "title": "Test Page",
            "url": "https://test.com",
            "webSocketDebuggerUrl": "ws://127.0.0.1:9222/devtools/page/test-id",
        }
    )

    assert target.to_dict() == {
        "id": "test-id",
        "type": "page",
        "title": "Test Page",
        "url": "https://test.com",
        "webSocketDebuggerUrl": "ws://127.0.0.1:9222/devtools/page/test-id",
    }
    assert repr(target) == "Target(id='test-id', type='page', url='https://test.com')"


@pytest.mark.unit
def test_endpoint_invalid_port():
    with pytest.raises(ValueError, match="port must be 1-65535"):
        DebuggerEndpoint(port=0)
    with pytest.raises(ValueError, match="port must be 1-65535"):
        DebuggerEndpoint(port=65536)


@pytest.mark.unit
def test_get_version():
    endpoint = DebuggerEndpoint("127.0.0.1", 9333, timeout=2.0)
    version = {
        "Browser": "HeadlessChrome/126.0",
        "webSocketDebuggerUrl": "ws://127.0.0.1:9333/devtools/browser/abc",
    }

    with patch("urllib.request.urlopen", return_value=http_response(version)) as mock_urlopen:
        assert endpoint.get_version() == version

    args, kwargs = mock_urlopen.call_args
    assert args[0] == "http://127.0.0.1:9333/json/version"
    assert kwargs["timeout"] == 2.0


@pytest.mark.unit
def test_list_targets_with_filters(mock_targets_response):
    endpoint = DebuggerEndpoint()

    with patch("urllib.request.urlopen", return_value=http_response(mock_targets_response)):
        assert [t.id for t in endpoint.list_targets()] == ["page-1", "page-2", "worker-1"]

    with patch("urllib.request.urlopen", return_value=http_response(mock_targets_response)):
        assert [t.id for t in endpoint.list_targets(target_type="page")] == ["page-1", "page-2"]

    with patch("urllib.request.urlopen", return_value=http_response(mock_targets_response)):
        assert [t.id for t in endpoint.list_targets(url_pattern="GITHUB")] == ["page-2"]


@pytest.mark.unit
def test_get_target_by_id(mock_targets_response):
    endpoint = DebuggerEndpoint()

    with patch("urllib.request.urlopen", return_value=http_response(mock_targets_response)):
        assert endpoint.get_target_by_id("worker-1").type == "service_worker"

    with patch("urllib.request.urlopen", return_value=http_response(mock_targets_response)):
        with pytest.raises(CDPTargetNotFoundError, match="missing"):
            endpoint.get_target_by_id("missing")


@pytest.mark.unit
def test_unreachable_endpoint_raises_cdp_error():
    endpoint = DebuggerEndpoint()

    with patch("urllib.request.urlopen", side_effect=ConnectionRefusedError("refused")):
        with pytest.raises(CDPError, match="Failed to reach browser") as exc_info:
            endpoint.get_version()

    assert "remote-debugging-port" in exc_info.value.details["recovery"]


@pytest.mark.unit
def test_invalid_json_raises_cdp_error():
    endpoint = DebuggerEndpoint()

    with patch("urllib.request.urlopen", return_value=http_response(b"<html>")):
        with pytest.raises(CDPError, match="Invalid JSON"):
            endpoint.get_version()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_wait_for_websocket_url_retries_until_ready():
    endpoint = DebuggerEndpoint()
    ws_url = "ws://127.0.0.1:9222/devtools/browser/abc"
    responses = [
        CDPError("not yet"),
        {"Browser": "Chrome"},
        {"webSocketDebuggerUrl": ws_url},
    ]

    with patch.object(endpoint, "get_version", side_effect=responses) as get_version:
        assert await endpoint.wait_for_websocket_url(retries=5, interval=0) == ws_url

    assert get_version.call_count == 3


@pytest.mark.unit
@pytest.mark.asyncio
async def test_wait_for_websocket_url_gives_up():
    endpoint = DebuggerEndpoint()

    with patch.object(endpoint, "get_version", side_effect=CDPError("refused")) as get_version:
        with pytest.raises(EndpointUnavailableError, match="debugger endpoint") as exc_info:
            await endpoint.wait_for_websocket_url(retries=3, interval=0)

    assert get_version.call_count == 3
    assert exc_info.value.details["retries"] == 3
    assert exc_info.value.details["error"] == "refused"
