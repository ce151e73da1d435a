"""CDP client: command correlation and event dispatch.

Provides CDPClient, which turns the caller-facing command/event API into raw
frames on a WebSocketTransport and routes every incoming frame either to the
command waiting on its id or to the listeners registered for its method.
"""

import asyncio
import inspect
import json
import logging
from typing import Any, Callable, Dict, Optional, Set

from .exceptions import CommandFailedError, ConnectionClosedError
from .transport import DEFAULT_MAX_SIZE, ConnectionState, WebSocketTransport

logger = logging.getLogger(__name__)

EventListener = Callable[[dict], Any]


class PendingCommand:
    """A sent command still waiting for the reply bearing its id."""

    __slots__ = ("id", "method", "future")

    def __init__(self, command_id: int, method: str, future: asyncio.Future):
        self.id = command_id
        self.method = method
        self.future = future

    def __repr__(self):
        return f"PendingCommand(id={self.id}, method={self.method!r})"


class CDPClient:
    """Client for one Chrome DevTools Protocol WebSocket endpoint.

    Handles:
    - Connection lifecycle (connect, close, context manager)
    - Correlation ids and the pending-command table
    - Event listener registration and dispatch

    Commands are resolved in whatever order their replies arrive. The client
    never times a command out; callers that need a deadline race the wait
    against their own timer.

    Usage:
        async with CDPClient(ws_url) as client:
            version = await client.send_command("Browser.getVersion")
            client.on("Network.requestWillBeSent", on_request)

    Attributes:
        ws_url: WebSocket debugger URL
        max_size: Maximum incoming message size in bytes
    """

    def __init__(self, ws_url: str, *, max_size: int = DEFAULT_MAX_SIZE):
        self._transport = WebSocketTransport(ws_url, max_size=max_size)
        self._last_command_id: int = 0
        self._pending_commands: Dict[int, PendingCommand] = {}
        # dict keys give ordered-set semantics: registration order, no duplicates
        self._event_listeners: Dict[str, Dict[EventListener, None]] = {}
        self._listener_tasks: Set[asyncio.Task] = set()

    @property
    def ws_url(self) -> str:
        return self._transport.ws_url

    @property
    def max_size(self) -> int:
        return self._transport.max_size

    @property
    def state(self) -> ConnectionState:
        return self._transport.state

    @property
    def is_connected(self) -> bool:
        """Check if WebSocket connection is open."""
        return self._transport.is_open

    async def connect(self) -> None:
        """Open the socket; returns once the endpoint reports open.

        Raises:
            ConnectionFailedError: If the socket fails or closes before opening
        """
        await self._transport.open(self._handle_frame, self._on_transport_closed)

    def close(self) -> None:
        """Request the socket to close. Safe to call any number of times."""
        self._transport.close()

    async def wait_closed(self) -> None:
        """Wait for a requested close to complete."""
        await self._transport.wait_closed()

    async def __aenter__(self) -> "CDPClient":
        if self.state is ConnectionState.CONNECTING:
            await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
        await self.wait_closed()

    async def send_command(
        self,
        method: str,
        params: Optional[dict] = None,
        session_id: Optional[str] = None,
    ) -> dict:
        """Send a CDP command and wait for its reply.

        Args:
            method: CDP method name (e.g., "Runtime.evaluate", "Page.enable")
            params: Method parameters (default: empty dict)
            session_id: Flattened target session to address; omitted from
                the frame entirely when None or empty

        Returns:
            Command result dict (contents of "result" field in response)

        Raises:
            NotOpenError: If the connection is not open; nothing is sent
            CommandFailedError: If the browser returns an error response
            ConnectionClosedError: If the connection closes before the reply
        """
        self._transport.ensure_open()

        self._last_command_id += 1
        command_id = self._last_command_id

        message: Dict[str, Any] = {
            "id": command_id,
            "method": method,
            "params": params if params is not None else {},
        }
        if session_id:
            message["sessionId"] = session_id

        future = asyncio.get_running_loop().create_future()
        self._pending_commands[command_id] = PendingCommand(command_id, method, future)

        try:
            await self._transport.send(json.dumps(message))
            logger.debug(f"Sent command {command_id}: {method}")
            return await future
        finally:
            self._pending_commands.pop(command_id, None)

    def on(self, method: str, callback: EventListener) -> None:
        """Register a callback for a CDP event.

        Registering the same callback twice for one method is a no-op.
        Callbacks receive the event's params dict. A callback may be a
        coroutine function; its coroutine is scheduled as a task.

        Note:
            Most events need their domain enabled first, e.g.
            await client.send_command("Network.enable")
        """
        listeners = self._event_listeners.setdefault(method, {})
        if callback not in listeners:
            listeners[callback] = None
            logger.debug(f"Subscribed to event: {method}")

    def off(self, method: str, callback: EventListener) -> None:
        """Remove a previously registered callback."""
        listeners = self._event_listeners.get(method)
        if listeners is None or callback not in listeners:
            logger.debug(f"Callback not registered for event: {method}")
            return
        del listeners[callback]
        if not listeners:
            del self._event_listeners[method]

    def _handle_frame(self, frame: Any) -> None:
        """Route one incoming frame.

        A frame whose id matches a pending command settles that command and
        goes no further, even if it also carries a method. Anything else with
        a method is an event. Everything else is dropped.
        """
        try:
            data = json.loads(frame)
        except ValueError as e:
            logger.warning(f"Malformed CDP message: {e}")
            return

        if not isinstance(data, dict):
            logger.debug(f"Ignoring non-object CDP message: {type(data).__name__}")
            return

        command_id = data.get("id")
        if isinstance(command_id, int) and not isinstance(command_id, bool):
            pending = self._pending_commands.pop(command_id, None)
            if pending is not None:
                self._settle(pending, data)
                return

        method = data.get("method")
        if isinstance(method, str):
            self._dispatch_event(method, data.get("params", {}))

    def _settle(self, pending: PendingCommand, data: dict) -> None:
        if pending.future.done():
            # Caller stopped waiting
            return

        error = data.get("error")
        if error:
            if not isinstance(error, dict):
                error = {"message": str(error)}
            logger.debug(f"Command {pending.id} failed: {pending.method}")
            pending.future.set_exception(
                CommandFailedError(
                    error.get("message", "Unknown CDP error"),
                    method=pending.method,
                    error_code=error.get("code"),
                    error=error,
                    details={"method": pending.method, "code": error.get("code")},
                )
            )
        else:
            logger.debug(f"Received result for command {pending.id}: {pending.method}")
            pending.future.set_result(data.get("result", {}))

    def _dispatch_event(self, method: str, params: Any) -> None:
        listeners = self._event_listeners.get(method)
        if not listeners:
            return

        logger.debug(f"Received event: {method}")
        for callback in list(listeners):
            try:
                outcome = callback(params)
                if inspect.isawaitable(outcome):
                    task = asyncio.ensure_future(outcome)
                    self._listener_tasks.add(task)
                    task.add_done_callback(self._listener_task_done)
            except Exception as e:
                logger.error(f"Event handler error for {method}: {e}", exc_info=True)

    def _listener_task_done(self, task: asyncio.Task) -> None:
        self._listener_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                f"Event handler error: {task.exception()}",
                exc_info=task.exception(),
            )

    def _on_transport_closed(self, error: Optional[BaseException]) -> None:
        if not self._pending_commands:
            return

        reason = f"Connection closed: {error}" if error else "Connection closed"
        logger.warning(f"{reason}; failing {len(self._pending_commands)} pending command(s)")
        for pending in list(self._pending_commands.values()):
            if not pending.future.done():
                pending.future.set_exception(
                    ConnectionClosedError(
                        reason,
                        details={"id": pending.id, "method": pending.method},
                    )
                )
        self._pending_commands.clear()


async def create_client(ws_url: str, *, max_size: int = DEFAULT_MAX_SIZE) -> CDPClient:
    """Create a CDPClient and wait until its socket is open.

    Args:
        ws_url: WebSocket debugger URL (e.g., ws://127.0.0.1:9222/devtools/browser/abc)
        max_size: Maximum incoming message size in bytes

    Raises:
        ConnectionFailedError: If the socket fails or closes before opening
    """
    client = CDPClient(ws_url, max_size=max_size)
    await client.connect()
    return client
