"""
app.py — Command-line entry point for the file share lifecycle audit.
Run with:  share-audit --storage-account <name> --file-share <share>
or set AUDIT_STORAGE_ACCOUNT_NAME / AUDIT_FILE_SHARE_NAME and run ``share-audit``.

Exit codes: 0 success (warnings included), 1 fatal audit error,
2 invalid configuration.
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from audit_runner import run_audit
from config import SETTINGS_SOURCES, Config, SettingsError, resolve_settings
from errors import AuditError

logger = logging.getLogger("app")

EXIT_OK = 0
EXIT_AUDIT_FAILED = 1
EXIT_BAD_CONFIG = 2


def configure_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    # The Azure SDK logs every HTTP request at INFO
    logging.getLogger("azure").setLevel(logging.WARNING)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Audit an Azure file share and keep a rolling history of CSV snapshots.",
    )
    parser.add_argument(
        "--settings-source",
        choices=sorted(SETTINGS_SOURCES),
        default="env",
        help="Where the target comes from: environment/.env with flag overrides, "
             "or flags only (default: env)",
    )
    parser.add_argument("--storage-account", help="Storage account name")
    parser.add_argument("--file-share", help="File share name")
    parser.add_argument("--resource-group", help="Resource group containing the storage account")
    parser.add_argument("--subscription-id", help="Subscription to search (default: all visible)")
    parser.add_argument(
        "--managed-identity-client-id",
        help="Client id of a user-assigned managed identity",
    )
    parser.add_argument(
        "--retention-days",
        type=int,
        help="Delete snapshots older than this many days (default: 31)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        help="Maximum folder depth to walk (default: 100, at most 500)",
    )
    parser.add_argument(
        "--detailed",
        action="store_true",
        help="Write the detailed 26-column report",
    )
    parser.add_argument(
        "--dry-run-retention",
        action="store_true",
        help="Only report which old snapshots would be deleted",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        settings = resolve_settings(args.settings_source, args)
    except SettingsError as exc:
        for error in exc.errors:
            logger.error("Configuration error: %s", error)
        return EXIT_BAD_CONFIG

    try:
        summary = run_audit(settings)
    except AuditError as exc:
        logger.error("Audit failed: %s", exc)
        return EXIT_AUDIT_FAILED

    print(f"Files audited : {summary.files_audited}")
    print(f"Snapshot      : {summary.artifact_path}")
    if summary.retention_dry_run:
        print(f"Would delete  : {summary.files_deleted} file(s) (dry run)")
    else:
        print(f"Files deleted : {summary.files_deleted}")
    if not summary.complete:
        print(f"Incomplete    : {len(summary.failed_paths)} path(s) could not be read")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
