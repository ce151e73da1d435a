"""WebSocket transport for the CDP client.

Owns the single socket to a debugger endpoint: opens it, writes text frames,
pushes every received frame to one callback in arrival order, and reports
closure. The transport never reconnects; once closed it stays closed.
"""

import asyncio
import enum
import logging
from typing import Any, Callable, Optional

try:
    import websockets
    from websockets.exceptions import ConnectionClosed
except ImportError:
    raise ImportError(
        "websockets library not found. Install with: pip3 install websockets"
    )

from .exceptions import ConnectionClosedError, ConnectionFailedError, NotOpenError

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIZE = 2_097_152  # 2MB, large screenshots and DOM snapshots

FrameHandler = Callable[[Any], None]
CloseHandler = Callable[[Optional[BaseException]], None]


class ConnectionState(enum.Enum):
    """Lifecycle of a transport. CLOSED is terminal."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class WebSocketTransport:
    """Single WebSocket connection to one CDP endpoint.

    Usage:
        transport = WebSocketTransport("ws://127.0.0.1:9222/devtools/browser/abc")
        await transport.open(on_frame=handle, on_close=closed)
        await transport.send('{"id": 1, "method": "Browser.getVersion", "params": {}}')
        transport.close()
        await transport.wait_closed()

    Attributes:
        ws_url: WebSocket debugger URL
        max_size: Maximum incoming message size in bytes
        state: Current ConnectionState
    """

    def __init__(self, ws_url: str, *, max_size: int = DEFAULT_MAX_SIZE):
        if not ws_url.startswith(("ws://", "wss://")):
            raise ValueError(f"Invalid WebSocket URL: {ws_url}")

        self.ws_url = ws_url
        self.max_size = max_size
        self.state = ConnectionState.CONNECTING

        self._ws = None
        self._opened = False
        self._on_frame: Optional[FrameHandler] = None
        self._on_close: Optional[CloseHandler] = None
        self._receive_task: Optional[asyncio.Task] = None
        self._close_task: Optional[asyncio.Task] = None

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN

    async def open(
        self,
        on_frame: FrameHandler,
        on_close: Optional[CloseHandler] = None,
    ) -> None:
        """Connect and start delivering frames.

        Returns only once the socket is open. One-shot: no retry, no backoff.

        Args:
            on_frame: Called with each received frame, one at a time
            on_close: Called once when the socket reaches CLOSED, with the
                error that ended the connection (None for a clean close)

        Raises:
            ConnectionFailedError: If the socket fails or closes before opening
        """
        if self._opened:
            raise ConnectionFailedError(
                "Transport has already been opened",
                details={"url": self.ws_url, "state": self.state.value},
            )
        self._opened = True
        self._on_frame = on_frame
        self._on_close = on_close

        try:
            logger.info(f"Connecting to {self.ws_url}")
            self._ws = await websockets.connect(self.ws_url, max_size=self.max_size)
        except Exception as e:
            self.state = ConnectionState.CLOSED
            raise ConnectionFailedError(
                f"Failed to connect to {self.ws_url}: {e}",
                details={"url": self.ws_url, "error": str(e)},
            ) from e

        self.state = ConnectionState.OPEN
        self._receive_task = asyncio.create_task(self._receive_loop())
        logger.info("CDP connection established")

    def ensure_open(self) -> None:
        """Raise NotOpenError unless the socket is open."""
        if self.state is not ConnectionState.OPEN:
            raise NotOpenError(details={"state": self.state.value})

    async def send(self, frame: str) -> None:
        """Write one serialized text frame.

        The open check runs before the first suspension point, so a send on a
        socket that is not open fails without touching the wire.

        Raises:
            NotOpenError: If the socket is not open
            ConnectionClosedError: If the socket drops during the write
        """
        self.ensure_open()
        try:
            await self._ws.send(frame)
        except ConnectionClosed as e:
            raise ConnectionClosedError(
                f"Connection closed while sending: {e}",
                details={"url": self.ws_url},
            ) from e

    def close(self) -> None:
        """Request the socket to close without waiting for the handshake.

        No-op unless the socket is open, so repeated calls are safe.
        """
        if self.state is not ConnectionState.OPEN:
            return

        logger.info("Closing CDP connection")
        self.state = ConnectionState.CLOSING
        self._close_task = asyncio.create_task(self._ws.close())

    async def wait_closed(self) -> None:
        """Wait until a requested close has finished and the receive loop exited."""
        if self._close_task is not None:
            try:
                await self._close_task
            except Exception as e:
                logger.warning(f"Error closing WebSocket: {e}")
        if self._receive_task is not None:
            await self._receive_task

    async def _receive_loop(self) -> None:
        error: Optional[BaseException] = None
        try:
            async for message in self._ws:
                self._on_frame(message)
        except ConnectionClosed as e:
            logger.warning(f"WebSocket connection closed: {e}")
            error = e
        except Exception as e:
            logger.error(f"Receive loop error: {e}", exc_info=True)
            error = e
        finally:
            self.state = ConnectionState.CLOSED
            logger.info("CDP connection closed")
            if self._on_close is not None:
                self._on_close(error)
