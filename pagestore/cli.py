"""
PageStore CLI — Operational commands over the page store.

Commands:
- pagestore list       — List page summaries (newest first)
- pagestore search     — Search pages by id, title or slug
- pagestore show       — Print a page's JSON
- pagestore stats      — File statistics for a page
- pagestore export     — Export a page to stdout or a file
- pagestore import     — Import a page from a JSON file
- pagestore delete     — Delete a page (optionally with secure wipe)
- pagestore backup     — Write a backup bundle of all pages
- pagestore restore    — Restore pages from a backup bundle
- pagestore cleanup    — Remove stale temp files from abandoned writes

Exit codes: 0 success, 1 error, 2 page not found.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pagestore.engine.config import PageStoreConfig, load_config
from pagestore.engine.errors import ErrorKind, MalformedJsonError, PageStoreError
from pagestore.engine.logging import configure_logging, init_logging, shutdown_logging
from pagestore.storage.backup import BackupEngine
from pagestore.storage.models import PageSummary
from pagestore.storage.store import PageStore

logger = logging.getLogger("pagestore.cli")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NOT_FOUND = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pagestore",
        description="PageStore — JSON-file page storage",
    )
    parser.add_argument(
        "--config", default=None, help="Path to pagestore.yaml (default: auto-discover)"
    )
    parser.add_argument("--storage-dir", help="Override storage.directory")
    parser.add_argument("--log-level", help="Override logging.level")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    list_parser = subparsers.add_parser("list", help="List pages")
    list_parser.add_argument("--json", action="store_true", help="Output JSON")

    search_parser = subparsers.add_parser("search", help="Search pages by id, title or slug")
    search_parser.add_argument("query", help="Case-insensitive substring")
    search_parser.add_argument("--json", action="store_true", help="Output JSON")

    show_parser = subparsers.add_parser("show", help="Print a page")
    show_parser.add_argument("page_id")

    stats_parser = subparsers.add_parser("stats", help="File statistics for a page")
    stats_parser.add_argument("page_id")

    export_parser = subparsers.add_parser("export", help="Export a page as JSON")
    export_parser.add_argument("page_id")
    export_parser.add_argument("--output", "-o", help="Write to file instead of stdout")

    import_parser = subparsers.add_parser("import", help="Import a page from a JSON file")
    import_parser.add_argument("file", help="JSON file ('-' for stdin)")
    import_parser.add_argument("--overwrite", action="store_true", help="Replace an existing page")

    delete_parser = subparsers.add_parser("delete", help="Delete a page")
    delete_parser.add_argument("page_id")
    delete_parser.add_argument(
        "--secure", action="store_true", help="Overwrite with random bytes before deleting"
    )

    backup_parser = subparsers.add_parser("backup", help="Back up all pages")
    backup_parser.add_argument("--output", "-o", help="Bundle path (default: backup.directory)")

    restore_parser = subparsers.add_parser("restore", help="Restore pages from a bundle")
    restore_parser.add_argument("file", help="Backup bundle path")
    restore_parser.add_argument("--overwrite", action="store_true", help="Replace existing pages")

    cleanup_parser = subparsers.add_parser("cleanup", help="Remove stale temp files")
    cleanup_parser.add_argument(
        "--older-than", type=float, default=3600, help="Minimum age in seconds (default: 3600)"
    )

    return parser


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_OK

    try:
        config = load_config(args.config)
    except PageStoreError as e:
        print(f"[ERROR] {e.message}", file=sys.stderr)
        return EXIT_ERROR

    if args.storage_dir:
        config.storage.directory = str(Path(args.storage_dir).resolve())
    configure_logging(args.log_level or config.logging.level)
    if config.logging.event_log:
        init_logging(
            log_dir=config.logging.directory,
            flush_interval_ms=config.logging.flush_interval_ms,
            flush_batch_size=config.logging.flush_batch_size,
            max_queue_size=config.logging.max_queue_size,
        )

    store = PageStore(config.storage)
    try:
        return _dispatch(args, store, config)
    except PageStoreError as e:
        logger.debug("Command failed: %s", e.to_json())
        print(f"[ERROR] {e.message}", file=sys.stderr)
        return EXIT_NOT_FOUND if e.kind is ErrorKind.NOT_FOUND else EXIT_ERROR
    except OSError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return EXIT_ERROR
    finally:
        shutdown_logging()


def _dispatch(args: argparse.Namespace, store: PageStore, config: PageStoreConfig) -> int:
    if args.command == "list":
        return cmd_list(args, store, config)
    elif args.command == "search":
        return cmd_search(args, store, config)
    elif args.command == "show":
        return cmd_show(args, store, config)
    elif args.command == "stats":
        return cmd_stats(args, store, config)
    elif args.command == "export":
        return cmd_export(args, store, config)
    elif args.command == "import":
        return cmd_import(args, store, config)
    elif args.command == "delete":
        return cmd_delete(args, store, config)
    elif args.command == "backup":
        return cmd_backup(args, store, config)
    elif args.command == "restore":
        return cmd_restore(args, store, config)
    elif args.command == "cleanup":
        return cmd_cleanup(args, store, config)
    raise ValueError(f"unknown command: {args.command}")


def _print_summaries(summaries: List[PageSummary], as_json: bool) -> None:
    if as_json:
        print(json.dumps([s.model_dump() for s in summaries], indent=2))
        return
    if not summaries:
        print("No pages found.")
        return
    for s in summaries:
        print(f"  {s.id:<30} {s.status:<10} {s.updated or '-':<34} {s.title}")
    print(f"\n{len(summaries)} page(s)")


def cmd_list(args: argparse.Namespace, store: PageStore, config: PageStoreConfig) -> int:
    _print_summaries(store.list(), args.json)
    return EXIT_OK


def cmd_search(args: argparse.Namespace, store: PageStore, config: PageStoreConfig) -> int:
    _print_summaries(store.search(args.query), args.json)
    return EXIT_OK


def cmd_show(args: argparse.Namespace, store: PageStore, config: PageStoreConfig) -> int:
    print(store.export(args.page_id))
    return EXIT_OK


def cmd_stats(args: argparse.Namespace, store: PageStore, config: PageStoreConfig) -> int:
    stats = store.stats(args.page_id)
    for key, value in stats.model_dump().items():
        print(f"  {key:<16} {value}")
    return EXIT_OK


def cmd_export(args: argparse.Namespace, store: PageStore, config: PageStoreConfig) -> int:
    text = store.export(args.page_id)
    if args.output:
        Path(args.output).write_text(text + "\n", encoding="utf-8")
        print(f"[OK] Exported '{args.page_id}' to {args.output}")
    else:
        print(text)
    return EXIT_OK


def cmd_import(args: argparse.Namespace, store: PageStore, config: PageStoreConfig) -> int:
    try:
        if args.file == "-":
            text = sys.stdin.read()
        else:
            text = Path(args.file).read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise MalformedJsonError(f"{args.file} is not UTF-8 text", cause=e) from e
    page = store.import_page(text, overwrite=args.overwrite)
    print(f"[OK] Imported page '{page['id']}'")
    return EXIT_OK


def cmd_delete(args: argparse.Namespace, store: PageStore, config: PageStoreConfig) -> int:
    store.delete(args.page_id, secure_wipe=args.secure)
    print(f"[OK] Deleted page '{args.page_id}'")
    return EXIT_OK


def cmd_backup(args: argparse.Namespace, store: PageStore, config: PageStoreConfig) -> int:
    engine = BackupEngine(store)
    path = engine.write_backup_file(args.output, directory=config.backup.directory)
    print(f"[OK] Backup written to {path}")
    return EXIT_OK


def cmd_restore(args: argparse.Namespace, store: PageStore, config: PageStoreConfig) -> int:
    result = BackupEngine(store).restore_file(args.file, overwrite=args.overwrite)
    print(
        f"Restored {result.restored}/{result.total} page(s), "
        f"{result.skipped} skipped, {len(result.errors)} error(s)"
    )
    for err in result.errors:
        print(f"  [ERROR] {err.id}: {err.message}")
    return EXIT_ERROR if result.errors else EXIT_OK


def cmd_cleanup(args: argparse.Namespace, store: PageStore, config: PageStoreConfig) -> int:
    removed = store.cleanup_temp_files(older_than_seconds=args.older_than)
    print(f"[OK] Removed {removed} temp file(s)")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
