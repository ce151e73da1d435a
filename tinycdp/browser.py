"""Browser process helpers.

Finds a Chrome/Chromium executable, launches it with remote debugging
enabled, connects a CDPClient to its browser endpoint, and tears it all down.
"""

import asyncio
import logging
import shutil
import signal
import subprocess
import sys
import tempfile
from typing import List, Optional

import psutil

from .config import Configuration
from .connection import CDPClient, create_client
from .exceptions import BrowserNotFoundError
from .logging_setup import log_with_context
from .session import DebuggerEndpoint

logger = logging.getLogger(__name__)

LINUX_CANDIDATES = [
    "google-chrome",
    "google-chrome-stable",
    "chromium-browser",
    "chromium",
]
MACOS_CANDIDATES = ["/Applications/Google Chrome.app/Contents/MacOS/Google Chrome"]

SHUTDOWN_TIMEOUT = 5.0


class Browser:
    """A running browser process and the client connected to it.

    Attributes:
        process: Browser process handle
        client: Open CDPClient on the browser-level endpoint
        ws_url: Browser WebSocket debugger URL
        user_data_dir: Throwaway profile directory removed on close
    """

    def __init__(
        self,
        process: subprocess.Popen,
        client: CDPClient,
        ws_url: str,
        user_data_dir: Optional[str] = None,
    ):
        self.process = process
        self.client = client
        self.ws_url = ws_url
        self.user_data_dir = user_data_dir

    def __repr__(self):
        return f"Browser(pid={self.process.pid}, ws_url={self.ws_url!r})"


def executable_candidates(platform: Optional[str] = None) -> List[str]:
    platform = platform or sys.platform
    if platform.startswith("linux"):
        return list(LINUX_CANDIDATES)
    if platform == "darwin":
        return list(MACOS_CANDIDATES)
    return []


def check_executable(path: str) -> bool:
    """True if `path --version` runs and exits 0."""
    try:
        completed = subprocess.run(
            [path, "--version"],
            capture_output=True,
            timeout=10,
        )
    except (OSError, subprocess.SubprocessError):
        return False
    return completed.returncode == 0


def find_chrome_executable(platform: Optional[str] = None) -> str:
    """Return the first usable browser executable for this platform.

    Raises:
        BrowserNotFoundError: If no candidate runs
    """
    candidates = executable_candidates(platform)
    for path in candidates:
        if check_executable(path):
            logger.debug(f"Using browser executable: {path}")
            return path

    raise BrowserNotFoundError(
        "Could not find a compatible browser installed on this system",
        details={
            "candidates": candidates,
            "recovery": "Install Chrome/Chromium or set TINYCDP_CHROME_PATH",
        },
    )


def build_arguments(port: int, user_data_dir: str, headless: bool = True) -> List[str]:
    args = [
        f"--remote-debugging-port={port}",
        f"--user-data-dir={user_data_dir}",
        "--disable-gpu",
        "--no-sandbox",
        "--no-first-run",
        "--no-default-browser-check",
    ]
    if headless:
        args.insert(0, "--headless")
    return args


async def launch(config: Optional[Configuration] = None) -> Browser:
    """Launch a browser and connect a client to it.

    Raises:
        BrowserNotFoundError: If no executable is configured or discoverable
        EndpointUnavailableError: If the debugger endpoint never comes up
        ConnectionFailedError: If the WebSocket cannot be opened
    """
    config = config or Configuration()
    chrome_path = config.chrome_path or find_chrome_executable()
    user_data_dir = tempfile.mkdtemp(prefix="tinycdp-profile-")

    process = subprocess.Popen(
        [chrome_path, *build_arguments(config.chrome_port, user_data_dir, config.headless)],
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
    )
    log_with_context(
        logger, logging.INFO, "Browser process started",
        pid=process.pid, executable=chrome_path, port=config.chrome_port,
    )

    try:
        endpoint = DebuggerEndpoint("127.0.0.1", config.chrome_port)
        ws_url = await endpoint.wait_for_websocket_url(
            retries=config.endpoint_retries,
            interval=config.endpoint_retry_interval,
        )
        client = await create_client(ws_url, max_size=config.max_size)
    except BaseException:
        await _terminate(process)
        shutil.rmtree(user_data_dir, ignore_errors=True)
        raise

    return Browser(process, client, ws_url, user_data_dir)


async def close(browser: Browser) -> None:
    """Close the connection, stop the browser process and wait for it to exit."""
    browser.client.close()
    await _terminate(browser.process)
    await browser.client.wait_closed()

    if browser.user_data_dir:
        shutil.rmtree(browser.user_data_dir, ignore_errors=True)
    logger.info("Browser closed")


async def _terminate(process: subprocess.Popen) -> None:
    try:
        children = psutil.Process(process.pid).children(recursive=True)
    except psutil.NoSuchProcess:
        children = []

    try:
        process.send_signal(signal.SIGINT)
    except ProcessLookupError:
        # Already gone
        pass

    try:
        await asyncio.to_thread(process.wait, SHUTDOWN_TIMEOUT)
    except subprocess.TimeoutExpired:
        logger.warning(f"Browser {process.pid} ignored SIGINT, killing")
        process.kill()
        await asyncio.to_thread(process.wait)

    # Renderer and GPU helpers can outlive the main process
    alive = [child for child in children if child.is_running()]
    if alive:
        for child in alive:
            try:
                child.terminate()
            except psutil.NoSuchProcess:
                pass
        _, still_alive = psutil.wait_procs(alive, timeout=SHUTDOWN_TIMEOUT)
        for child in still_alive:
            try:
                child.kill()
            except psutil.NoSuchProcess:
                pass
