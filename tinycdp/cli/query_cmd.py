"""
Query subcommand: send one raw CDP command to a running browser.
"""

import argparse
import asyncio
import json
import sys

from ..connection import CDPClient
from ..exceptions import CDPError
from .common import print_result, report_error, resolve_ws_url


async def query_handler_async(args: argparse.Namespace) -> int:
    try:
        params = {}
        if args.params:
            try:
                params = json.loads(args.params)
            except json.JSONDecodeError as e:
                print(f"Error: Invalid JSON params: {e}", file=sys.stderr)
                return 1
            if not isinstance(params, dict):
                print("Error: --params must be a JSON object", file=sys.stderr)
                return 1

        ws_url = await resolve_ws_url(args)
        async with CDPClient(ws_url, max_size=args.config.max_size) as client:
            result = await client.send_command(args.method, params, args.session_id)

        print_result(args, result)
        return 0

    except CDPError as e:
        return report_error(args, e)


def query_handler(args: argparse.Namespace) -> int:
    return asyncio.run(query_handler_async(args))


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    query_parser = subparsers.add_parser(
        "query",
        parents=[parent],
        help="Send an arbitrary CDP command",
        description="Send any CDP method with custom parameters and print its result",
        epilog="""
Examples:
  tinycdp query --method Browser.getVersion
  tinycdp query --method Target.createTarget --params '{"url":"about:blank"}'
  tinycdp query --ws-url ws://127.0.0.1:9222/devtools/page/ABC --method Runtime.evaluate \\
      --params '{"expression":"document.title","returnByValue":true}'
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    query_parser.add_argument(
        "--method",
        required=True,
        help="CDP method to send (e.g., Target.getTargets)",
    )
    query_parser.add_argument(
        "--params",
        help="JSON object with the method parameters",
    )
    query_parser.add_argument(
        "--session-id",
        default=None,
        help="Flattened target session to address",
    )
    query_parser.add_argument(
        "--ws-url",
        help="WebSocket debugger URL (default: discovered via --chrome-host/--chrome-port)",
    )
    query_parser.set_defaults(func=query_handler)
