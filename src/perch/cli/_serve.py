"""``perch serve``: build a ServeConfig from arguments and run the bootstrap."""

import argparse
import logging

from perch.config import ServeConfig


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def config_from_args(args: argparse.Namespace) -> ServeConfig:
    return ServeConfig(
        directory=args.directory,
        host=args.host,
        port=args.port,
        prefix_paths=args.prefix_paths,
        https=args.https,
        cert_file=args.cert_file,
        key_file=args.key_file,
        ca_file=args.ca_file,
        open=args.open,
    )


def run_serve(args: argparse.Namespace) -> None:
    """Serve the site until interrupted.

    Exits with status 1 when startup aborts on a configuration error.
    A declined port conflict exits normally.
    """
    configure_logging(args.verbose)

    from perch.server.bootstrap import serve

    boot = serve(config_from_args(args))
    if boot.exit_code:
        raise SystemExit(boot.exit_code)
