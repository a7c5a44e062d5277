"""CLI entry point for txndedup.

Commands:
    txndedup check CANDIDATES EXISTING [--mode MODE]   Deduplicate a batch
    txndedup provenance status                         Imported-file count
    txndedup provenance check FILE                     Was FILE imported?
    txndedup provenance mark FILE                      Record FILE as imported
    txndedup provenance clear                          Forget all imports
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def _setup_logging() -> None:
    """Configure logging based on TXNDEDUP_LOG_LEVEL env var."""
    level = os.environ.get("TXNDEDUP_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _get_settings():
    """Load DedupSettings from the config directory, or defaults if absent.

    An explicitly configured TXNDEDUP_CONFIG_DIR must exist; the implicit
    ``config`` directory is optional.
    """
    from txndedup.config import Config, DedupSettings

    config_dir = os.environ.get("TXNDEDUP_CONFIG_DIR")
    if config_dir is None:
        if not (Path("config") / Config.SETTINGS_FILE).exists():
            logger.debug("No config/%s found, using default settings", Config.SETTINGS_FILE)
            return DedupSettings()
        config_dir = "config"
    return Config(config_dir=config_dir).settings


def _db_path() -> Path:
    return Path(os.environ.get("TXNDEDUP_DB_PATH", "txndedup.db"))


def _get_store():
    """Open the SQLite provenance store with its schema applied."""
    from txndedup.provenance.store import SqliteStore

    store = SqliteStore(db_path=str(_db_path()))
    store.apply_migrations()
    return store


# ── Command handlers ─────────────────────────────────────


def cmd_check(args: argparse.Namespace) -> int:
    """Deduplicate a candidate file against an existing-records file.

    The provenance database is only opened when it already exists or
    --mark asks for the file to be recorded.
    """
    from txndedup.matching.batch import BatchDeduplicator
    from txndedup.parsers.records import RecordLoader
    from txndedup.provenance.tracker import ImportTracker
    from txndedup.report import format_summary

    for path in (args.candidates, args.existing):
        if not path.exists():
            print(f"Error: File not found: {path}")
            return 1

    try:
        settings = _get_settings()
        loader = RecordLoader()
        candidates = loader.load(args.candidates)
        candidate_skips = loader.skipped_count
        existing = loader.load(args.existing)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    store = _get_store() if args.mark or _db_path().exists() else None
    try:
        tracker = ImportTracker(store) if store is not None else None
        if tracker is not None and tracker.has_been_imported_path(args.candidates):
            print(f"Warning: {args.candidates.name} has already been imported.")

        summary = BatchDeduplicator(settings).deduplicate_batch(
            candidates, existing, args.mode,
        )
        print(format_summary(summary, currency=args.currency))
        if candidate_skips:
            print(f"\n{candidate_skips} unreadable row(s) skipped in {args.candidates.name}")

        if args.mark:
            tracker.mark_imported_path(args.candidates)
    finally:
        if store is not None:
            store.close()

    return 2 if summary.has_blocking_duplicates else 0


def cmd_provenance(args: argparse.Namespace) -> int:
    """Inspect or modify the imported-file history."""
    from txndedup.provenance.tracker import ImportTracker

    if args.provenance_command is None:
        print("Usage: txndedup provenance {status,check,mark,clear}")
        return 1

    if args.provenance_command in ("check", "mark") and not args.file.exists():
        print(f"Error: File not found: {args.file}")
        return 1

    store = _get_store()
    try:
        tracker = ImportTracker(store)
        if args.provenance_command == "status":
            stats = tracker.stats()
            print(f"Imported files: {stats.total_files}")
            print(f"Last import:    {stats.last_import or 'never'}")
        elif args.provenance_command == "check":
            if tracker.has_been_imported_path(args.file):
                print(f"{args.file.name}: already imported")
                return 2
            print(f"{args.file.name}: not imported")
        elif args.provenance_command == "mark":
            tracker.mark_imported_path(args.file)
            print(f"Marked {args.file.name} as imported")
        elif args.provenance_command == "clear":
            tracker.clear()
            print("Import history cleared")
        return 0
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    finally:
        store.close()


_COMMANDS = {
    "check": cmd_check,
    "provenance": cmd_provenance,
}


def main(argv: list[str] | None = None):
    _setup_logging()

    parser = argparse.ArgumentParser(
        prog="txndedup",
        description="txndedup transaction duplicate detector",
    )
    subparsers = parser.add_subparsers(dest="command")

    # check
    check_p = subparsers.add_parser("check", help="Deduplicate a batch against existing records")
    check_p.add_argument("candidates", type=Path, help="CSV/JSON file of new transactions")
    check_p.add_argument("existing", type=Path, help="CSV/JSON file of recorded transactions")
    check_p.add_argument(
        "--mode", choices=["smart", "standard", "strict"], default=None,
        help="Duplicate sensitivity (default from config, else smart)",
    )
    check_p.add_argument("--currency", default="₹", help="Currency symbol for the report")
    check_p.add_argument(
        "--mark", action="store_true",
        help="Record the candidates file as imported after checking "
             "(creates the provenance database if needed)",
    )

    # provenance
    prov_p = subparsers.add_parser("provenance", help="Manage imported-file history")
    prov_sub = prov_p.add_subparsers(dest="provenance_command")
    prov_sub.add_parser("status", help="Show imported-file count and last import")
    prov_check_p = prov_sub.add_parser("check", help="Check whether a file was imported")
    prov_check_p.add_argument("file", type=Path)
    prov_mark_p = prov_sub.add_parser("mark", help="Record a file as imported")
    prov_mark_p.add_argument("file", type=Path)
    prov_sub.add_parser("clear", help="Forget every imported file")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    handler = _COMMANDS.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}")
        sys.exit(1)

    sys.exit(handler(args))


if __name__ == "__main__":
    main()
