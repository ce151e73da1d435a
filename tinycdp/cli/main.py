"""
Main CLI entry point for tinycdp.

Usage:
    tinycdp <subcommand> [options]

Subcommands:
    screenshot  - Launch a headless browser, load a URL, save a screenshot
    query       - Send one raw CDP command to a running browser
    version     - Print Browser.getVersion of a running browser
    targets     - List targets of a running browser
"""

import argparse
import sys
from typing import List, Optional

from ..config import Configuration, DEFAULT_CONFIG_FILE
from ..logging_setup import setup_logging


def create_parent_parser() -> argparse.ArgumentParser:
    """
    Create parent parser with global options shared across all subcommands.

    Options default to None so that unset flags leave the environment and
    config file values in place.
    """
    parent = argparse.ArgumentParser(add_help=False)

    parent.add_argument(
        "--chrome-host",
        default="127.0.0.1",
        help="Browser debugging host (default: 127.0.0.1)",
    )
    parent.add_argument(
        "--chrome-port",
        type=int,
        default=None,
        help="Browser debugging port (default: 9222)",
    )
    parent.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Navigation timeout in seconds, 0 disables (default: 30.0)",
    )
    parent.add_argument(
        "--format",
        choices=["text", "json"],
        default=None,
        help="Output and log format (default: text)",
    )
    parent.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (default: info)",
    )

    verbosity_group = parent.add_mutually_exclusive_group()
    verbosity_group.add_argument(
        "--quiet",
        action="store_true",
        help="Only log errors",
    )
    verbosity_group.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug output, including protocol frames",
    )

    return parent


def create_main_parser(parent: argparse.ArgumentParser) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tinycdp",
        description="Minimal Chrome DevTools Protocol client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Screenshot a page with a throwaway headless browser
  tinycdp screenshot https://example.com --output example.png

  # Ask a running browser for its version
  tinycdp version --chrome-port 9222

  # Send an arbitrary command
  tinycdp query --method Target.getTargets

For more information on subcommands, run: tinycdp <subcommand> --help
        """,
    )

    subparsers = parser.add_subparsers(
        dest="subcommand",
        title="subcommands",
        required=True,
    )

    from . import query_cmd, screenshot_cmd, targets_cmd, version_cmd

    screenshot_cmd.register_subcommand(subparsers, parent)
    query_cmd.register_subcommand(subparsers, parent)
    version_cmd.register_subcommand(subparsers, parent)
    targets_cmd.register_subcommand(subparsers, parent)

    return parser


def build_configuration(args: argparse.Namespace, config_file: Optional[str] = None) -> Configuration:
    """Layer config file, environment and CLI flags (highest wins)."""
    config = Configuration()
    config.load_from_file(config_file or DEFAULT_CONFIG_FILE)
    config.load_from_env()
    config.merge(
        chrome_port=getattr(args, "chrome_port", None),
        navigation_timeout=getattr(args, "timeout", None),
        log_level=args.log_level.upper() if getattr(args, "log_level", None) else None,
        log_format=getattr(args, "format", None),
        chrome_path=getattr(args, "chrome_path", None),
    )
    if getattr(args, "headful", False):
        config.headless = False

    if getattr(args, "quiet", False):
        config.log_level = "ERROR"
    elif getattr(args, "verbose", False):
        config.log_level = "DEBUG"
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for CLI.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    parent = create_parent_parser()
    parser = create_main_parser(parent)
    args = parser.parse_args(argv)

    config = build_configuration(args)
    setup_logging(
        format_type=config.log_format,
        level=config.log_level,
        quiet=getattr(args, "quiet", False),
        verbose=getattr(args, "verbose", False),
    )
    args.config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
