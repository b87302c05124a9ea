"""
tree_walker.py — Recursive share walker for the lifecycle audit.
Enumerates every file below the share root and builds one FileRecord per file.
"""
from __future__ import annotations

import logging

from azure.core.exceptions import AzureError

from models import FileRecord, RunContext, WalkResult
from share_client import ShareNamespaceClient
from utils import join_share_path

logger = logging.getLogger(__name__)


def walk_share(client: ShareNamespaceClient, context: RunContext) -> WalkResult:
    """
    Walk the whole share starting at its root.

    The audit folder at the share root is never entered, so earlier
    snapshots are not audited as data. Folders with the same name deeper in
    the tree are ordinary folders.

    Failures are contained: an unlistable directory or an unreadable file
    is logged, added to ``failed_paths``, and the walk carries on with the
    rest of the tree.

    Returns:
        A :class:`WalkResult` with records in no particular order.
    """
    result = WalkResult()
    _walk_directory(client, context, "", 0, result)
    logger.info(
        "Walk of '%s' finished: %d file(s), %d failed path(s).",
        context.file_share_name, len(result.records), len(result.failed_paths),
    )
    return result


def _walk_directory(
    client: ShareNamespaceClient,
    context: RunContext,
    path: str,
    depth: int,
    result: WalkResult,
) -> None:
    if depth > context.max_depth:
        logger.warning(
            "Not descending into '%s': depth %d exceeds the limit of %d.",
            path, depth, context.max_depth,
        )
        result.failed_paths.append(path)
        return

    try:
        entries = client.list_directory(path)
    except AzureError as exc:
        logger.warning("Cannot list directory '%s': %s", path or "/", exc)
        result.failed_paths.append(path or "/")
        return

    logger.debug("Listing '%s': %d entries.", path or "/", len(entries))

    for entry in entries:
        if not path and entry.name == context.audit_folder_name:
            logger.debug("Skipping audit output folder '%s'.", entry.name)
            continue

        entry_path = join_share_path(path, entry.name)

        if entry.is_directory:
            _walk_directory(client, context, entry_path, depth + 1, result)
            continue

        try:
            metadata = client.get_file_metadata(entry_path)
        except AzureError as exc:
            logger.warning("Cannot read properties of '%s': %s", entry_path, exc)
            result.failed_paths.append(entry_path)
            continue

        result.records.append(
            FileRecord.from_metadata(path, entry.name, metadata, context)
        )
