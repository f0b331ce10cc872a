"""Perch CLI: serve a built site.

Entry point registered as ``perch`` in ``pyproject.toml``::

    [project.scripts]
    perch = "perch.cli:main"
"""

import argparse
import sys

from perch.config import DEFAULT_HOST, DEFAULT_PORT


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``perch`` command."""
    parser = argparse.ArgumentParser(
        prog="perch",
        description="Perch: serve a built static site with client-side route fallbacks.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- perch serve ------------------------------------------------------
    serve_parser = subparsers.add_parser("serve", help="Serve a built site")
    serve_parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Site directory containing public/ and .cache/ (default: current directory)",
    )
    serve_parser.add_argument(
        "-H", "--host", default=DEFAULT_HOST, help=f"Bind host address (default: {DEFAULT_HOST})"
    )
    serve_parser.add_argument(
        "-p", "--port", type=int, default=DEFAULT_PORT, help=f"Bind port number (default: {DEFAULT_PORT})"
    )
    serve_parser.add_argument(
        "-o",
        "--open",
        action="store_true",
        help="Open the site in your browser",
    )
    serve_parser.add_argument(
        "--prefix-paths",
        action="store_true",
        help="Serve the site under its configured pathPrefix",
    )

    # TLS flags
    serve_parser.add_argument(
        "-S",
        "--https",
        action="store_true",
        help="Serve over HTTPS (generates a development certificate unless one is given)",
    )
    serve_parser.add_argument("-c", "--cert-file", default=None, help="Custom HTTPS certificate file")
    serve_parser.add_argument("-k", "--key-file", default=None, help="Custom HTTPS key file")
    serve_parser.add_argument("--ca-file", default=None, help="Custom HTTPS CA certificate file")

    serve_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "serve":
        from perch.cli._serve import run_serve

        run_serve(args)
