"""
Targets subcommand: list the targets of a running browser.
"""

import argparse
import json

from ..exceptions import CDPError
from ..session import DebuggerEndpoint
from .common import report_error


def targets_handler(args: argparse.Namespace) -> int:
    try:
        endpoint = DebuggerEndpoint(args.chrome_host, args.config.chrome_port)
        if args.id:
            targets = [endpoint.get_target_by_id(args.id)]
        else:
            targets = endpoint.list_targets(target_type=args.type, url_pattern=args.url)
    except CDPError as e:
        return report_error(args, e)

    if args.config.log_format == "json":
        print(json.dumps([target.to_dict() for target in targets], indent=2))
    else:
        for target in targets:
            print(f"{target.id}\t{target.type}\t{target.url}\t{target.title}")
    return 0


def register_subcommand(
    subparsers: argparse._SubParsersAction, parent: argparse.ArgumentParser
) -> None:
    targets_parser = subparsers.add_parser(
        "targets",
        parents=[parent],
        help="List browser targets",
        description="List targets from the browser's /json endpoint",
    )
    targets_parser.add_argument(
        "--type",
        choices=["page", "iframe", "worker", "service_worker", "browser", "other"],
        help="Only targets of this type",
    )
    targets_parser.add_argument(
        "--url",
        help="Only targets whose URL contains this text (case-insensitive)",
    )
    targets_parser.add_argument(
        "--id",
        help="Show only the target with this ID (fails if it does not exist)",
    )
    targets_parser.set_defaults(func=targets_handler)
