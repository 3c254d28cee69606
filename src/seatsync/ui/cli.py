# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from seatsync.app import create, delete, import_by_handle, list_seats, open_session, read_assigned
from seatsync.config import configure_logging, get_seats_config
from seatsync.config.errors import ConfigurationError
from seatsync.domain import SeatReconcileError
from seatsync.errors import SeatSyncError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from seatsync.session import SeatSession

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage CodeRabbit seat assignments")
    parser.add_argument(
        "--api-key",
        type=str,
        help="CodeRabbit API key (defaults to $CODERABBITAI_API_KEY)",
    )
    parser.add_argument(
        "--base-url",
        type=str,
        help="CodeRabbit API base URL (defaults to $CODERABBIT_BASE_URL or production)",
    )
    parser.add_argument(
        "--github-token",
        type=str,
        help="GitHub token for login lookups (defaults to $GITHUB_TOKEN)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log every request attempt",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    assign = subparsers.add_parser("assign", help="Assign a seat to a GitHub login")
    assign.add_argument("github_id", help="GitHub login, e.g. octocat")

    check = subparsers.add_parser("check", help="Report whether a git user id holds a seat")
    check.add_argument("git_user_id", help="Numeric GitHub user id")

    unassign = subparsers.add_parser("unassign", help="Release the seat of a git user id")
    unassign.add_argument("git_user_id", help="Numeric GitHub user id")

    adopt = subparsers.add_parser("import", help="Look up an existing seat by GitHub login")
    adopt.add_argument("github_id", help="GitHub login, e.g. octocat")

    subparsers.add_parser("list", help="List users with and without seats")

    return parser.parse_args(list(argv))


def _run(session: SeatSession, args: argparse.Namespace) -> None:
    if args.command == "assign":
        print(create(session, args.github_id))
    elif args.command == "check":
        assigned = read_assigned(session, args.git_user_id)
        print("assigned" if assigned else "not assigned")
    elif args.command == "unassign":
        delete(session, args.git_user_id)
    elif args.command == "import":
        print(import_by_handle(session, args.github_id))
    elif args.command == "list":
        summary = list_seats(session)
        print("users_with_seats:", ", ".join(summary.users_with_seats) or "-")
        print("users_without_seats:", ", ".join(summary.users_without_seats) or "-")
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> int:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        config = get_seats_config(
            api_key=parsed_args.api_key,
            base_url=parsed_args.base_url,
            github_token=parsed_args.github_token,
        )
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    try:
        with open_session(config) as session:
            _run(session, parsed_args)
    except SeatReconcileError as exc:
        print(f"{exc.summary}: {exc.detail}", file=sys.stderr)
        return 1
    except SeatSyncError:
        log.exception("Seat operation failed")
        return 1
    return 0


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    sys.exit(main())


if __name__ == "__main__":
    run()
