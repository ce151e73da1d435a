"""Helpers shared by the subcommand modules."""

import argparse
import json
import sys
from typing import Any

from ..exceptions import CDPError


def report_error(args: argparse.Namespace, error: CDPError) -> int:
    """Print a CDPError (plus any recovery hint) and return exit code 1.

    Re-raises in DEBUG so the full traceback is visible.
    """
    config = getattr(args, "config", None)
    if config is not None and str(config.log_level).upper() == "DEBUG":
        raise error
    print(f"Error: {error}", file=sys.stderr)
    if error.details.get("recovery"):
        print(f"Recovery hint: {error.details['recovery']}", file=sys.stderr)
    return 1


def print_result(args: argparse.Namespace, result: Any) -> None:
    if args.config.log_format == "json":
        print(json.dumps(result))
    else:
        print(json.dumps(result, indent=2))


async def resolve_ws_url(args: argparse.Namespace) -> str:
    """--ws-url if given, otherwise ask the running browser's /json/version."""
    if getattr(args, "ws_url", None):
        return args.ws_url

    from ..session import DebuggerEndpoint

    endpoint = DebuggerEndpoint(args.chrome_host, args.config.chrome_port)
    return await endpoint.wait_for_websocket_url(retries=1, interval=0)
