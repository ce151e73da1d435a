"""Page (tab) helpers built on a browser-level CDPClient.

Each page is a target attached in flattened mode, so its commands travel on
the browser connection tagged with the page's session id.
"""

import asyncio
import base64
import logging
from pathlib import Path
from typing import Optional, Union

from .browser import Browser
from .connection import CDPClient
from .exceptions import CommandFailedError, NavigationTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_NAVIGATION_TIMEOUT = 30.0
SCREENSHOT_FORMATS = ("png", "jpeg", "webp")


class Page:
    """A browser tab attached to the browser's client.

    Attributes:
        client: Browser-level CDPClient the page shares
        target_id: CDP target ID
        session_id: Flattened session ID used to address page commands
    """

    def __init__(self, client: CDPClient, target_id: str, session_id: str):
        self.client = client
        self.target_id = target_id
        self.session_id = session_id

    def __repr__(self):
        return f"Page(target_id={self.target_id!r}, session_id={self.session_id!r})"


async def new_page(browser: Browser, url: str = "about:blank") -> Page:
    """Create a tab, attach to it and enable page events."""
    client = browser.client
    created = await client.send_command("Target.createTarget", {"url": url})
    target_id = created["targetId"]

    attached = await client.send_command(
        "Target.attachToTarget", {"targetId": target_id, "flatten": True}
    )
    session_id = attached["sessionId"]

    await client.send_command("Page.enable", {}, session_id)
    logger.debug(f"Created page {target_id} (session {session_id})")
    return Page(client, target_id, session_id)


async def goto(page: Page, url: str, timeout: float = DEFAULT_NAVIGATION_TIMEOUT) -> None:
    """Navigate and wait for Page.loadEventFired.

    The load listener sits on the shared browser client and does not check
    the event's sessionId, so concurrent goto() calls on different pages of
    one browser are not isolated: any page's load event ends every wait.

    Args:
        page: Page to navigate
        url: Destination URL
        timeout: Seconds to wait for the load event; 0 disables the limit

    Raises:
        NavigationTimeoutError: If the page did not load in time
        CommandFailedError: If Page.navigate fails or reports errorText
    """
    loop = asyncio.get_running_loop()
    loaded = loop.create_future()

    def on_load(params: dict) -> None:
        if not loaded.done():
            loaded.set_result(params)

    async def navigate() -> None:
        result = await page.client.send_command("Page.navigate", {"url": url}, page.session_id)
        if result.get("errorText"):
            raise CommandFailedError(
                result["errorText"],
                method="Page.navigate",
                details={"url": url},
            )
        await loaded

    page.client.on("Page.loadEventFired", on_load)
    navigation = asyncio.ensure_future(navigate())
    try:
        done, _ = await asyncio.wait({navigation}, timeout=timeout if timeout > 0 else None)
        if navigation in done:
            navigation.result()
            logger.info(f"Navigated to {url}")
            return
        raise NavigationTimeoutError(url, timeout)
    finally:
        page.client.off("Page.loadEventFired", on_load)
        if not navigation.done():
            # Abandon, not cancel: an in-flight Page.navigate still gets its reply
            loaded.cancel()
            navigation.add_done_callback(_discard_outcome)


def _discard_outcome(task: asyncio.Future) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.debug(f"Abandoned navigation finished with: {task.exception()}")


async def screenshot(
    page: Page,
    path: Union[str, Path],
    format: str = "png",
    quality: Optional[int] = None,
) -> Path:
    """Capture the viewport and write the decoded image to `path`.

    Args:
        format: "png", "jpeg" or "webp"
        quality: Compression quality 0-100 (jpeg/webp only); omitted when None
    """
    if format not in SCREENSHOT_FORMATS:
        raise ValueError(f"format must be one of {SCREENSHOT_FORMATS}, got {format!r}")

    params = {"format": format}
    if quality is not None:
        params["quality"] = quality

    result = await page.client.send_command("Page.captureScreenshot", params, page.session_id)
    output = Path(path)
    output.write_bytes(base64.b64decode(result["data"]))
    logger.info(f"Screenshot saved to {output}")
    return output


async def close_page(page: Page) -> None:
    await page.client.send_command("Target.closeTarget", {"targetId": page.target_id})
