"""
retention_engine.py — Ages out old snapshot reports.
Deletes files in the snapshot folder whose last-modified time is before the cutoff.

The sweep never raises: a failure here must not turn a successful audit
into a failed run. Problems are logged and reported in the SweepResult.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from azure.core.exceptions import AzureError

from models import ShareEntry, SweepResult
from share_client import ShareNamespaceClient
from utils import as_utc, join_share_path

logger = logging.getLogger(__name__)


def retention_cutoff(now: datetime, retention_days: int) -> datetime:
    """Snapshots last modified strictly before the returned instant are expired."""
    if retention_days < 0:
        raise ValueError("retention_days must be non-negative")
    return as_utc(now) - timedelta(days=retention_days)


def _last_modified(
    client: ShareNamespaceClient, path: str, entry: ShareEntry
) -> Optional[datetime]:
    if entry.last_modified is not None:
        return as_utc(entry.last_modified)
    # Some listings omit timestamps; fall back to a properties call
    modified = client.get_file_metadata(path).last_modified
    return as_utc(modified) if modified is not None else None


def sweep_retention(
    client: ShareNamespaceClient,
    destination_dir: str,
    cutoff: datetime,
    dry_run: bool = False,
) -> SweepResult:
    """
    Delete expired files directly under *destination_dir*.

    Sub-folders are ignored and the sweep does not recurse. The snapshot
    written earlier in the same run is newer than any sane cutoff, so it is
    not special-cased.

    Args:
        client:          Namespace client for the audited share.
        destination_dir: Share-relative snapshot folder.
        cutoff:          Files modified strictly before this are removed.
        dry_run:         When True, report candidates without deleting them.
    """
    result = SweepResult(dry_run=dry_run)
    cutoff = as_utc(cutoff)

    try:
        entries = client.list_directory(destination_dir)
    except AzureError as exc:
        logger.warning("Retention sweep skipped, cannot list '%s': %s", destination_dir, exc)
        return result

    for entry in entries:
        if entry.is_directory:
            continue

        path = join_share_path(destination_dir, entry.name)
        try:
            modified = _last_modified(client, path, entry)
            if modified is None:
                logger.warning("No last-modified time for '%s'; keeping it.", path)
                continue
            if modified >= cutoff:
                continue

            if dry_run:
                logger.info("[DRY RUN] Would delete '%s' (modified %s).", path, modified.isoformat())
            else:
                client.delete_file(path)
                logger.info("Deleted expired snapshot '%s' (modified %s).", path, modified.isoformat())
            result.deleted.append(path)
        except AzureError as exc:
            logger.warning("Could not remove '%s': %s", path, exc)
            result.failed.append(path)

    mode = "DRY RUN" if dry_run else "APPLY"
    logger.info(
        "[%s] Retention sweep of '%s': %d expired, %d failed (cutoff %s).",
        mode, destination_dir, result.deleted_count, len(result.failed), cutoff.isoformat(),
    )
    return result
