"""
errors.py — Exception hierarchy for the audit run.

Only fatal conditions are raised out of the components. Recoverable problems
(an unreadable subtree, a snapshot that cannot be pruned) are logged where they
happen and surface only in the run summary.
"""
from __future__ import annotations


class AuditError(Exception):
    """Base class for errors that abort an audit run."""


class AuthenticationError(AuditError):
    """No usable Azure identity could be obtained."""


class TargetNotFoundError(AuditError):
    """The named storage account (or file share) does not exist or is not visible."""


class SnapshotError(AuditError):
    """The snapshot report could not be created, serialized or uploaded."""
