"""
audit_runner.py — Orchestrates one audit run.

Authenticate → resolve target → walk → write snapshot → sweep → summarize.
Setup and snapshot failures raise :class:`errors.AuditError`; walk and
retention problems are absorbed and show up in the summary instead.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from models import AuditSettings, AuditSummary, RunContext
from retention_engine import retention_cutoff, sweep_retention
from share_client import AzureConnector
from snapshot_writer import write_snapshot
from tree_walker import walk_share
from utils import format_file_size, utc_now

logger = logging.getLogger(__name__)


def run_audit(
    settings: AuditSettings,
    connector: Optional[AzureConnector] = None,
    now: Optional[datetime] = None,
) -> AuditSummary:
    """
    Run a full audit of the configured file share.

    Args:
        settings:  Resolved settings for this run.
        connector: Supplies credential, target and share handles. Defaults to
                   an :class:`AzureConnector` built from *settings*.
        now:       Fixed start time; the current UTC time when omitted.

    Returns:
        The :class:`AuditSummary` of the run.
    """
    connector = connector or AzureConnector(settings)
    started_at = now or utc_now()
    context = RunContext.from_settings(settings, started_at)

    logger.info(
        "Starting lifecycle audit of share '%s' on account '%s'.",
        settings.file_share_name, settings.storage_account_name,
    )

    credential = connector.authenticate()
    target = connector.resolve_target(credential)
    client = connector.open_share(credential, target)

    walk = walk_share(client, context)

    artifact_path = write_snapshot(client, context, walk.records, now=now)

    cutoff = retention_cutoff(now or utc_now(), settings.retention_days)
    sweep = sweep_retention(
        client, context.audit_folder_name, cutoff, dry_run=settings.dry_run_retention
    )

    summary = AuditSummary(
        storage_account_name=context.storage_account_name,
        file_share_name=context.file_share_name,
        files_audited=len(walk.records),
        total_bytes=sum(record.size_bytes for record in walk.records),
        artifact_path=artifact_path,
        files_deleted=sweep.deleted_count,
        retention_dry_run=sweep.dry_run,
        failed_paths=walk.failed_paths,
        sweep_failures=sweep.failed,
        started_at=started_at,
        finished_at=utc_now(),
    )
    log_summary(summary)
    return summary


def log_summary(summary: AuditSummary) -> None:
    """Write the end-of-run summary to the log."""
    logger.info(
        "Audit of '%s/%s' finished: %d file(s) (%s) → '%s'; %d old snapshot(s) %s.",
        summary.storage_account_name,
        summary.file_share_name,
        summary.files_audited,
        format_file_size(summary.total_bytes),
        summary.artifact_path,
        summary.files_deleted,
        "would be deleted" if summary.retention_dry_run else "deleted",
    )
    if not summary.complete:
        logger.warning(
            "Audit is INCOMPLETE: %d path(s) could not be read: %s",
            len(summary.failed_paths), ", ".join(summary.failed_paths),
        )
    if summary.sweep_failures:
        logger.warning(
            "%d expired snapshot(s) could not be removed.", len(summary.sweep_failures)
        )
