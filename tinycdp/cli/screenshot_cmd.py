"""
Screenshot subcommand: launch a browser, load a URL and save a screenshot.
"""

import argparse
import asyncio
import sys

from .. import browser as browser_helpers
from .. import page as page_helpers
from ..exceptions import CDPError
from .common import report_error


async def screenshot_handler_async(args: argparse.Namespace) -> int:
    config = args.config
    try:
        browser = await browser_helpers.launch(config)
    except CDPError as e:
        return report_error(args, e)

    try:
        page = await page_helpers.new_page(browser)
        await page_helpers.goto(page, args.url, timeout=config.navigation_timeout)
        output = await page_helpers.screenshot(
            page, args.output, format=args.image_format, quality=args.quality
        )
        await page_helpers.close_page(page)
    except CDPError as e:
        return report_error(args, e)
    finally:
        await browser_helpers.close(browser)

    if not args.quiet:
        print(f"Screenshot saved to {output}", file=sys.stderr)
    return 0


def screenshot_handler(args: argparse.Namespace) -> int:
    return asyncio.run(screenshot_handler_async(args))


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    screenshot_parser = subparsers.add_parser(
        "screenshot",
        parents=[parent],
        help="Screenshot a URL with a throwaway browser",
        epilog="""
Examples:
  tinycdp screenshot https://example.com
  tinycdp screenshot https://example.com --output shot.jpg --image-format jpeg --quality 80
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    screenshot_parser.add_argument("url", help="URL to load")
    screenshot_parser.add_argument(
        "--output",
        "-o",
        default="screenshot.png",
        help="Destination file (default: screenshot.png)",
    )
    screenshot_parser.add_argument(
        "--image-format",
        choices=list(page_helpers.SCREENSHOT_FORMATS),
        default="png",
        help="Image format (default: png)",
    )
    screenshot_parser.add_argument(
        "--quality",
        type=int,
        default=None,
        help="Compression quality 0-100 (jpeg/webp only)",
    )
    screenshot_parser.add_argument(
        "--chrome-path",
        default=None,
        help="Browser executable (default: auto-discover)",
    )
    screenshot_parser.add_argument(
        "--headful",
        action="store_true",
        help="Show the browser window",
    )
    screenshot_parser.set_defaults(func=screenshot_handler)
