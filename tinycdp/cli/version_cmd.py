"""
Version subcommand: print Browser.getVersion of a running browser.
"""

import argparse
import asyncio

from ..connection import CDPClient
from ..exceptions import CDPError
from .common import print_result, report_error, resolve_ws_url


async def version_handler_async(args: argparse.Namespace) -> int:
    try:
        ws_url = await resolve_ws_url(args)
        async with CDPClient(ws_url, max_size=args.config.max_size) as client:
            version = await client.send_command("Browser.getVersion")
    except CDPError as e:
        return report_error(args, e)

    if args.config.log_format == "json":
        print_result(args, version)
    else:
        print(f"{version.get('product', '')} (protocol {version.get('protocolVersion', '?')})")
    return 0


def version_handler(args: argparse.Namespace) -> int:
    return asyncio.run(version_handler_async(args))


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    version_parser = subparsers.add_parser(
        "version",
        parents=[parent],
        help="Print the browser's product and protocol version",
    )
    version_parser.add_argument(
        "--ws-url",
        help="WebSocket debugger URL (default: discovered via --chrome-host/--chrome-port)",
    )
    version_parser.set_defaults(func=version_handler)
