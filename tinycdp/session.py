"""
Debugger endpoint discovery.

Reads the browser's DevTools HTTP endpoint (/json/version, /json) to find the
WebSocket URL a CDPClient connects to.
"""

import asyncio
import json
import logging
import urllib.request
from typing import Any, Dict, List, Optional

from .exceptions import CDPError, CDPTargetNotFoundError, EndpointUnavailableError

logger = logging.getLogger(__name__)


class Target:
    """
    A debuggable browser target as listed by the /json endpoint.

    Attributes:
        id: Unique target ID
        type: Target type ("page", "iframe", "worker", "service_worker", "browser")
        title: Page title or worker name
        url: Target URL
        webSocketDebuggerUrl: CDP WebSocket URL for this target
    """

    def __init__(self, target_data: Dict[str, Any]):
        self.id = target_data["id"]
        self.type = target_data["type"]
        self.title = target_data.get("title", "")
        self.url = target_data.get("url", "")
        self.webSocketDebuggerUrl = target_data.get("webSocketDebuggerUrl", "")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "url": self.url,
            "webSocketDebuggerUrl": self.webSocketDebuggerUrl,
        }

    def __repr__(self):
        return f"Target(id={self.id!r}, type={self.type!r}, url={self.url!r})"


class DebuggerEndpoint:
    """
    HTTP side of a browser started with --remote-debugging-port.

    Usage:
        endpoint = DebuggerEndpoint("127.0.0.1", 9222)
        ws_url = await endpoint.wait_for_websocket_url()
        client = await create_client(ws_url)

    Attributes:
        host: Browser host (default: "127.0.0.1")
        port: Browser debugging port (default: 9222)
        timeout: HTTP request timeout in seconds (default: 5s)
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 9222, timeout: float = 5.0):
        if not 1 <= port <= 65535:
            raise ValueError(f"port must be 1-65535, got {port}")

        self.host = host
        self.port = port
        self.timeout = timeout

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def _get_json(self, path: str) -> Any:
        endpoint_url = f"{self.base_url}{path}"
        try:
            with urllib.request.urlopen(endpoint_url, timeout=self.timeout) as response:
                return json.loads(response.read())
        except OSError as e:  # URLError, refused and reset connections
            raise CDPError(
                f"Failed to reach browser at {endpoint_url}: {e}",
                details={
                    "host": self.host,
                    "port": self.port,
                    "recovery": "Ensure the browser is running with --remote-debugging-port",
                },
            ) from e
        except json.JSONDecodeError as e:
            raise CDPError(
                f"Invalid JSON response from browser endpoint: {e}",
                details={"endpoint": endpoint_url},
            ) from e

    def get_version(self) -> Dict[str, Any]:
        """Fetch /json/version (Browser, Protocol-Version, webSocketDebuggerUrl, ...).

        Raises:
            CDPError: If the endpoint is unreachable or returns invalid data
        """
        return self._get_json("/json/version")

    def list_targets(
        self,
        target_type: Optional[str] = None,
        url_pattern: Optional[str] = None,
    ) -> List[Target]:
        """
        Fetch targets from /json with optional filtering.

        Args:
            target_type: Keep only targets of this type
            url_pattern: Case-insensitive substring the target URL must contain

        Raises:
            CDPError: If the endpoint is unreachable or returns invalid data
        """
        targets = [Target(data) for data in self._get_json("/json")]

        if target_type:
            targets = [t for t in targets if t.type == target_type]

        if url_pattern:
            url_pattern_lower = url_pattern.lower()
            targets = [t for t in targets if url_pattern_lower in t.url.lower()]

        return targets

    def get_target_by_id(self, target_id: str) -> Target:
        """
        Raises:
            CDPTargetNotFoundError: If no target has this ID
        """
        for target in self.list_targets():
            if target.id == target_id:
                return target
        raise CDPTargetNotFoundError(f"Target not found: {target_id}", target_id=target_id)

    async def wait_for_websocket_url(self, retries: int = 20, interval: float = 0.25) -> str:
        """
        Poll /json/version until the browser reports its WebSocket URL.

        A freshly spawned browser needs a moment before the endpoint answers;
        connection errors in between are expected and retried.

        Args:
            retries: Number of attempts
            interval: Seconds to sleep between attempts

        Raises:
            EndpointUnavailableError: If no attempt succeeded
        """
        last_error: Optional[CDPError] = None
        for attempt in range(1, retries + 1):
            try:
                version = await asyncio.to_thread(self.get_version)
                ws_url = version.get("webSocketDebuggerUrl")
                if ws_url:
                    logger.debug(f"Debugger endpoint ready after {attempt} attempt(s)")
                    return ws_url
            except CDPError as e:
                last_error = e
                logger.debug(f"Debugger endpoint not ready (attempt {attempt}/{retries}): {e.message}")

            await asyncio.sleep(interval)

        raise EndpointUnavailableError(
            "Failed to connect to the browser's debugger endpoint",
            details={
                "endpoint": f"{self.base_url}/json/version",
                "retries": retries,
                "error": last_error.message if last_error else None,
                "recovery": f"Start the browser with --remote-debugging-port={self.port}",
            },
        )
