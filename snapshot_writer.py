"""
snapshot_writer.py — Serializes audit records to CSV and publishes the snapshot.

A snapshot is either fully visible under its final name or not there at all:
the CSV is uploaded under a hidden temporary name and renamed into place.
"""
from __future__ import annotations

import csv
import io
import logging
from datetime import datetime
from typing import List, Optional

import pandas as pd
from azure.core.exceptions import AzureError, ResourceExistsError

from errors import SnapshotError
from models import FileRecord, RunContext, columns_for
from share_client import ShareNamespaceClient
from utils import as_utc, join_share_path, utc_now

logger = logging.getLogger(__name__)

ARTIFACT_PREFIX = "LifeCycleAudit_"
ARTIFACT_SUFFIX = ".csv"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


def artifact_name(moment: datetime) -> str:
    """Sortable snapshot file name, e.g. ``LifeCycleAudit_20261019_083000.csv``."""
    return f"{ARTIFACT_PREFIX}{as_utc(moment).strftime(TIMESTAMP_FORMAT)}{ARTIFACT_SUFFIX}"


# ── CSV codec ─────────────────────────────────────────────────────────────────

def serialize_records(records: List[FileRecord], detailed: bool) -> bytes:
    """
    Render *records* as UTF-8 CSV with a fixed header.

    Text cells are quoted; an empty list still yields the header row.
    """
    columns = columns_for(detailed)
    frame = pd.DataFrame([record.to_row(columns) for record in records], columns=columns)
    text = frame.to_csv(index=False, quoting=csv.QUOTE_NONNUMERIC, lineterminator="\n")
    return text.encode("utf-8")


def read_snapshot(content: bytes) -> List[FileRecord]:
    """Parse a snapshot produced by :func:`serialize_records` back into records."""
    frame = pd.read_csv(
        io.BytesIO(content),
        dtype=str,
        keep_default_na=False,
        encoding="utf-8",
    )
    return [FileRecord.model_validate(row) for row in frame.to_dict(orient="records")]


# ── Publishing ────────────────────────────────────────────────────────────────

def ensure_destination(client: ShareNamespaceClient, path: str) -> bool:
    """
    Make sure the snapshot folder exists.

    Returns True when the folder was created by this call. A folder created
    concurrently by someone else counts as already present.
    """
    try:
        if client.directory_exists(path):
            return False
        client.create_directory(path)
    except ResourceExistsError:
        return False
    except AzureError as exc:
        logger.error("Cannot create snapshot folder '%s': %s", path, exc)
        raise SnapshotError(f"Cannot create snapshot folder '{path}': {exc}") from exc
    logger.info("Created snapshot folder '%s'.", path)
    return True


def _discard(client: ShareNamespaceClient, path: str) -> None:
    try:
        client.delete_file(path)
    except AzureError as exc:
        logger.warning("Could not remove temporary snapshot '%s': %s", path, exc)


def write_snapshot(
    client: ShareNamespaceClient,
    context: RunContext,
    records: List[FileRecord],
    now: Optional[datetime] = None,
) -> str:
    """
    Publish *records* as a new snapshot in the audit folder.

    Args:
        client:  Namespace client for the audited share.
        context: Run context; selects the folder and the column schema.
        records: Walk output, in any order.
        now:     Timestamp used for the file name (defaults to the current time).

    Returns:
        Share-relative path of the published snapshot.

    Raises:
        SnapshotError: on any failure; no partial snapshot is left behind.
    """
    destination = context.audit_folder_name
    ensure_destination(client, destination)

    name = artifact_name(now or utc_now())
    final_path = join_share_path(destination, name)
    temp_path = join_share_path(destination, f".{name}.partial")

    try:
        content = serialize_records(records, context.detailed_metadata)
    except (ValueError, TypeError) as exc:
        logger.error("Cannot serialize snapshot: %s", exc)
        raise SnapshotError(f"Cannot serialize snapshot: {exc}") from exc

    try:
        client.upload_file(temp_path, content)
        client.rename_file(temp_path, final_path)
    except AzureError as exc:
        logger.error("Upload of snapshot '%s' failed: %s", final_path, exc)
        _discard(client, temp_path)
        raise SnapshotError(f"Upload of snapshot '{final_path}' failed: {exc}") from exc

    logger.info(
        "Snapshot '%s' written, %d row(s), %d byte(s).",
        final_path, len(records), len(content),
    )
    return final_path
