"""Shared fixtures: an in-memory stand-in for a websockets client connection."""

import asyncio
import json
from typing import Any, List, Optional
from unittest.mock import patch

import pytest

_CLOSE = object()


class FakeWebSocket:
    """Mimics the parts of a websockets connection the transport uses.

    Incoming frames are queued by the test and consumed by the transport's
    receive loop. deliver() returns once the frame has been handled.
    """

    def __init__(self):
        self.sent: List[str] = []
        self.close_calls = 0
        self.connect_args: Optional[tuple] = None
        self._incoming: Optional[asyncio.Queue] = None
        self._awaiting_ack = False

    @property
    def incoming(self) -> asyncio.Queue:
        if self._incoming is None:
            self._incoming = asyncio.Queue()
        return self._incoming

    @property
    def sent_frames(self) -> List[dict]:
        return [json.loads(frame) for frame in self.sent]

    async def send(self, data: str) -> None:
        self.sent.append(data)

    async def close(self) -> None:
        self.close_calls += 1
        await self.incoming.put(_CLOSE)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._awaiting_ack:
            self._awaiting_ack = False
            self.incoming.task_done()
        item = await self.incoming.get()
        if item is _CLOSE:
            self.incoming.task_done()
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            self.incoming.task_done()
            raise item
        self._awaiting_ack = True
        return item

    async def deliver(self, message: Any) -> None:
        """Push one frame (dict or raw text) and wait until it was routed."""
        data = message if isinstance(message, str) else json.dumps(message)
        await self.incoming.put(data)
        await self.incoming.join()

    async def reply(self, result: Optional[dict] = None, error: Optional[dict] = None) -> None:
        """Answer the most recently sent command."""
        frame: dict = {"id": self.sent_frames[-1]["id"]}
        if error is not None:
            frame["error"] = error
        else:
            frame["result"] = result if result is not None else {}
        await self.deliver(frame)

    async def drop(self, error: BaseException) -> None:
        """Simulate the remote end vanishing."""
        await self.incoming.put(error)
        await self.incoming.join()

    async def wait_sent(self, count: int) -> None:
        """Yield to the loop until at least `count` frames were written."""
        for _ in range(100):
            if len(self.sent) >= count:
                return
            await asyncio.sleep(0)
        raise AssertionError(f"expected {count} sent frames, got {len(self.sent)}")


@pytest.fixture
def fake_ws():
    """Patch websockets.connect so every client connects to one FakeWebSocket."""
    ws = FakeWebSocket()

    async def connect(*args, **kwargs):
        ws.connect_args = (args, kwargs)
        return ws

    with patch("tinycdp.transport.websockets.connect", side_effect=connect):
        yield ws
