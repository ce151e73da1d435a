"""Exception hierarchy for tinycdp.

All tinycdp exceptions inherit from the CDPError base class.
Connection, command, navigation timeout and discovery failures each get their
own branch so callers can decide whether to retry, abort or tear down.
"""

from typing import Optional


class CDPError(Exception):
    """Base exception for all CDP-related errors.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary with additional error context
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class CDPConnectionError(CDPError):
    """WebSocket connection failures."""

    pass


class ConnectionFailedError(CDPConnectionError):
    """Socket failed or closed before reaching the open state.

    Fatal to the connection attempt. Common causes: wrong port, browser not
    running, endpoint refused the upgrade.
    """

    pass


class ConnectionClosedError(CDPConnectionError):
    """Connection closed while a command was still waiting for its reply."""

    pass


class NotOpenError(CDPConnectionError):
    """Command attempted while the connection is not open.

    Raised before any frame is written or any command id is allocated.
    """

    def __init__(self, message: str = "WebSocket is not open", details: Optional[dict] = None):
        super().__init__(message, details)


class CDPCommandError(CDPError):
    """Command execution failures."""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        error_code: Optional[int] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.method = method
        self.error_code = error_code


class CommandFailedError(CDPCommandError):
    """Browser returned an error response for a command.

    The raw protocol error payload is kept on ``error``.
    Example: invalid JavaScript expression in Runtime.evaluate
    """

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        error_code: Optional[int] = None,
        error: Optional[dict] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, method=method, error_code=error_code, details=details)
        self.error = error or {}


class CDPTimeoutError(CDPError):
    """An event-driven wait did not complete in time.

    The client itself never times out commands; this is raised by helpers
    layered on top of it.
    """

    def __init__(
        self,
        message: str,
        timeout: Optional[float] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.timeout = timeout


class NavigationTimeoutError(CDPTimeoutError):
    """Page did not fire its load event within the navigation timeout."""

    def __init__(self, url: str, timeout: float):
        super().__init__(
            f"Navigation timeout of {timeout}s exceeded",
            timeout=timeout,
            details={"url": url},
        )
        self.url = url

    def __str__(self):
        return f"Navigation to {self.url} timed out after {self.timeout}s"


class CDPTargetNotFoundError(CDPError):
    """Target discovery failures.

    Raised when requested browser target cannot be found.
    """

    def __init__(
        self,
        message: str,
        target_id: Optional[str] = None,
        url_pattern: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details)
        self.target_id = target_id
        self.url_pattern = url_pattern

    def __str__(self):
        if self.target_id:
            return f"Target not found: {self.target_id}"
        if self.url_pattern:
            return f"No target matching URL pattern: {self.url_pattern}"
        return self.message


class EndpointUnavailableError(CDPError):
    """Debugger HTTP endpoint never answered with a WebSocket URL."""

    pass


class BrowserNotFoundError(CDPError):
    """No compatible browser executable found on this system."""

    pass
