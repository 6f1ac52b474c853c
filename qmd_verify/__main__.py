"""
Entry point for the qmd_verify component.
"""

import argparse
import logging
import sys

from .application.domain import KNOWN_DEVICES, FilterCriteria
from .application.exceptions import QmdVerifyError
from .infrastructure.containers import Container
from .presentation import text

logger = logging.getLogger(__name__)

__version__ = "0.1.0"


def setup_logging(level: str):
    """Applies basic logging configuration."""
    logging.basicConfig(level=level)


def run_check(container: Container, args: argparse.Namespace) -> int:
    criteria = FilterCriteria.from_values(
        devices=args.device,
        versions=args.version,
        files=args.file,
        failed_only=args.failed_only,
    )
    print(f"Checking against {container.host()}...\n")

    outcome = container.checker().run(args.paths, criteria)
    print(text.render_outcome(outcome, verbose=args.verbose))

    return 0 if outcome.passed else 1


def run_list(container: Container, args: argparse.Namespace) -> int:
    print(f"Fetching hashtables from {container.host()}...\n")
    print(text.render_hashtables(container.comparison_client().list_hashtables()))
    return 0


def run_trees(container: Container, args: argparse.Namespace) -> int:
    print(f"Fetching trees from {container.host()}...\n")
    print(text.render_trees(container.comparison_client().list_trees()))
    return 0


def run_version(container: Container, args: argparse.Namespace) -> int:
    print("qmdverify CLI")
    print(f"  Version: {__version__}\n")
    print(f"Server ({container.host()})")
    try:
        server = container.comparison_client().get_version()
    except QmdVerifyError as e:
        print(f"  Error: {e}")
    else:
        print(f"  Version: {server.version}")
    return 0


def run_application(args: argparse.Namespace) -> int:
    """Wires and runs the selected command using the DI container."""

    container = Container()
    setup_logging(level=container.config().logging.level)
    container.init_resources()

    try:
        return args.handler(container, args)
    except QmdVerifyError as e:
        logger.error(f"An application error occurred: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        container.shutdown_resources()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qmdverify",
        description="QMD file compatibility checker for reMarkable devices",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    check = commands.add_parser(
        "check", help="Check QMD file compatibility"
    )
    check.add_argument(
        "paths",
        nargs="+",
        help="One or more .qmd files or directories containing them",
    )
    check.add_argument(
        "-d", "--device",
        action="append",
        help=f"Filter by device (can be repeated: {', '.join(KNOWN_DEVICES)})",
    )
    check.add_argument(
        "--version",
        action="append",
        help="Filter by version prefix (can be repeated, e.g. 3.22)",
    )
    check.add_argument(
        "-f", "--file",
        action="append",
        help="Filter output to specific files (glob or substring)",
    )
    check.add_argument(
        "--failed-only",
        action="store_true",
        help="Only show files with incompatibilities",
    )
    check.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show error details for incompatible devices",
    )
    check.set_defaults(handler=run_check)

    commands.add_parser(
        "list", help="List available hashtables on the server"
    ).set_defaults(handler=run_list)

    commands.add_parser(
        "trees", help="List available dependency trees on the server"
    ).set_defaults(handler=run_trees)

    commands.add_parser(
        "version", help="Show CLI and server version information"
    ).set_defaults(handler=run_version)

    return parser


def main(argv=None) -> int:
    cli_args = build_parser().parse_args(argv)
    return run_application(cli_args)


if __name__ == "__main__":
    sys.exit(main())
