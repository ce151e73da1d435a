"""Minimal Chrome DevTools Protocol client.

This package provides:
- CDPClient / create_client: WebSocket client with command correlation and event dispatch
- DebuggerEndpoint: WebSocket URL discovery over the browser's HTTP endpoint
- browser / page: launch, new_page, goto, screenshot helpers
- CLI: `tinycdp` command for screenshots and raw commands
"""

from .connection import CDPClient, create_client
from .exceptions import (
    CDPError,
    CDPConnectionError,
    ConnectionFailedError,
    ConnectionClosedError,
    NotOpenError,
    CDPCommandError,
    CommandFailedError,
    CDPTimeoutError,
    NavigationTimeoutError,
)
from .transport import ConnectionState

__version__ = "0.1.0"

__all__ = [
    "CDPClient",
    "create_client",
    "ConnectionState",
    "CDPError",
    "CDPConnectionError",
    "ConnectionFailedError",
    "ConnectionClosedError",
    "NotOpenError",
    "CDPCommandError",
    "CommandFailedError",
    "CDPTimeoutError",
    "NavigationTimeoutError",
]
