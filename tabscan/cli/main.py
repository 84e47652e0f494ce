#!/usr/bin/env python3

import argparse
import logging
from collections.abc import Sequence

from tabscan.runtime.logging import set_log_level


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Receipt text-extraction CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  extract <image> [<image> ...]
                             Extract items and total from receipt pages
  parse-lines <file|->       Run the local parser over recognized text lines
  endpoints [--set URL]      Show or persist the processing endpoints
  serve [--host] [--port]    Start receipt upload server

Output is JSON on stdout; logs go to stderr.
""",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # extract command
    extract_parser = subparsers.add_parser("extract", help="Extract a receipt from images")
    extract_parser.add_argument("images", nargs="+", help="Receipt page images, in page order")
    extract_parser.add_argument("--lat", type=float, default=None, help="Capture latitude")
    extract_parser.add_argument("--lon", type=float, default=None, help="Capture longitude")
    extract_parser.add_argument("--accuracy", type=float, default=None, help="Location accuracy in meters")
    extract_parser.add_argument(
        "--ocr-url", default=None, help="Local OCR service URL (default: TABSCAN_OCR_SERVICE_URL or config)"
    )
    extract_parser.add_argument(
        "--local-only", action="store_true", help="Skip the remote service and parse locally"
    )

    # parse-lines command
    parse_parser = subparsers.add_parser("parse-lines", help="Parse recognized text lines")
    parse_parser.add_argument("source", help="Text file with one line per row, or - for stdin")

    # endpoints command
    endpoints_parser = subparsers.add_parser("endpoints", help="Show processing endpoints")
    endpoints_parser.add_argument(
        "--set", dest="set_url", default=None, help="Persist a receipt processing URL to user settings"
    )

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start receipt upload server")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Host to bind to (default: 0.0.0.0)")
    serve_parser.add_argument("--port", type=int, default=8080, help="Port to bind to (default: 8080)")

    args = parser.parse_args(argv)

    if args.verbose:
        set_log_level(logging.DEBUG)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "extract":
        from tabscan.cli.receipt import cmd_extract

        return cmd_extract(args)
    elif args.command == "parse-lines":
        from tabscan.cli.receipt import cmd_parse_lines

        return cmd_parse_lines(args)
    elif args.command == "endpoints":
        from tabscan.cli.receipt import cmd_endpoints

        return cmd_endpoints(args)
    elif args.command == "serve":
        from tabscan.cli.receipt import cmd_serve

        return cmd_serve(args)

    return 1


if __name__ == "__main__":
    raise SystemExit(main())
