# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from spearmint import __version__
from spearmint.app import init_config, list_products, sync_products
from spearmint.config import DEFAULT_CONFIG_PATH, DEFAULT_MAPPING_PATH, configure_logging
from spearmint.domain.retry import CancellationToken

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

    from spearmint.app import SyncRunResult

log = logging.getLogger(__name__)

# 128 + SIGINT, as shells report an interrupted process.
ABORTED_EXIT_CODE = 130


def _add_path_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Config file path (default: %(default)s)",
    )
    parser.add_argument(
        "-m",
        "--mapping",
        type=Path,
        default=DEFAULT_MAPPING_PATH,
        help="Mapping file path (default: %(default)s)",
    )


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="spearmint",
        description="Sync developer products and gamepasses to Roblox",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init = subparsers.add_parser("init", help="Initialize a new spearmint.toml config file")
    init.add_argument("-f", "--force", action="store_true", help="Overwrite existing config file")
    init.add_argument(
        "-c",
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Config file path (default: %(default)s)",
    )

    sync = subparsers.add_parser("sync", help="Sync all products to Roblox (create/update)")
    _add_path_arguments(sync)
    sync.add_argument(
        "--deadline",
        type=float,
        help="Stop starting new work after this many seconds",
    )

    listing = subparsers.add_parser("list", help="List current products and their status")
    _add_path_arguments(listing)

    return parser.parse_args(list(argv))


def _print_summary(result: SyncRunResult) -> None:
    reconciliation = result.reconciliation
    print(
        f"\nSummary: {reconciliation.created} created, {reconciliation.updated} updated, "
        f"{reconciliation.skipped} unchanged, {reconciliation.failed} failed"
    )
    for outcome in reconciliation.outcomes:
        if outcome.failed:
            print(f"  {outcome.key}: {outcome.reason} - {outcome.error}")


def _run_list(config: Path, mapping: Path) -> None:
    universe_id, statuses = list_products(config_path=config, mapping_path=mapping)
    print(f"Universe ID: {universe_id}")
    print("\nProducts:")
    print("-" * 60)
    for status in statuses:
        if status.remote_id is None:
            state = "Not synced"
        else:
            state = f"ID: {status.remote_id} (from {status.source})"
        print(f"  {status.key}")
        print(f"    Type: {status.kind.label}")
        print(f"    Name: {status.name}")
        print(f"    Price: {status.price} Robux")
        print(f"    Status: {state}")
        print()


def _run_init(config: Path, *, force: bool) -> None:
    path = init_config(config, force=force)
    print(f"Created config file: {path}")
    print("\nNext steps:")
    print(f"1. Edit {path} with your universe ID and products")
    print("2. Set ROBLOX_PRODUCTS_API_KEY in your .env file")
    print("3. Run: spearmint sync")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        if getattr(parsed_args, "deadline", None) is not None and parsed_args.deadline <= 0:
            raise ValueError("Deadline must be positive")  # noqa: TRY301
    except ValueError:
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)

    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        if parsed_args.command == "init":
            _run_init(parsed_args.config, force=parsed_args.force)
        elif parsed_args.command == "list":
            _run_list(parsed_args.config, parsed_args.mapping)
        elif parsed_args.command == "sync":
            cancellation = (
                CancellationToken.with_timeout(parsed_args.deadline)
                if parsed_args.deadline is not None
                else CancellationToken()
            )
            previous_handler = signal(SIGINT, _cancelling_sigint_handler(cancellation))
            try:
                result = sync_products(
                    config_path=parsed_args.config,
                    mapping_path=parsed_args.mapping,
                    cancellation=cancellation,
                )
            finally:
                signal(SIGINT, previous_handler)
            _print_summary(result)
            if result.reconciliation.has_failures:
                sys.exit(1)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during sync")
        sys.exit(1)


def _cancelling_sigint_handler(
    token: CancellationToken,
) -> Callable[[int, FrameType | None], None]:
    interrupted = False

    def handler(_signal_received: int, _frame: FrameType | None) -> None:
        nonlocal interrupted
        if interrupted:
            log.error("Aborted by user (Ctrl+C); remaining resources were not synced")
            sys.exit(ABORTED_EXIT_CODE)
        interrupted = True
        log.warning("Interrupted; finishing the current resource (Ctrl+C again to abort)")
        token.cancel()

    return handler


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
