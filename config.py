"""
config.py — Central configuration loaded from environment variables.
Create a .env file in the project root or export variables before running.

Two settings sources are supported. ``env`` reads everything from the
environment (Automation variables, container env, .env file) and lets
command-line flags override individual values. ``args`` takes the target
from command-line flags only.
"""
from __future__ import annotations

import argparse
import os
from typing import Any, Callable, Dict, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from models import (
    DEFAULT_AUDIT_FOLDER,
    DEFAULT_MAX_DEPTH,
    DEFAULT_RETENTION_DAYS,
    AuditSettings,
)

# Load variables from a .env file if present
load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


class Config:
    # ── Audit target ────────────────────────────────────────────────────────
    STORAGE_ACCOUNT_NAME: str = os.getenv("AUDIT_STORAGE_ACCOUNT_NAME", "")
    FILE_SHARE_NAME: str = os.getenv("AUDIT_FILE_SHARE_NAME", "")

    # Optional resource group used to narrow the storage account lookup
    RESOURCE_GROUP: str = os.getenv("AUDIT_RESOURCE_GROUP", "")

    # ── Azure identity ───────────────────────────────────────────────────────
    SUBSCRIPTION_ID: str = os.getenv("AZURE_SUBSCRIPTION_ID", "")

    # Client id of a user-assigned managed identity; empty = system-assigned/default chain
    MANAGED_IDENTITY_CLIENT_ID: str = os.getenv("AZURE_CLIENT_ID", "")

    # ── Snapshot & retention ─────────────────────────────────────────────────
    AUDIT_FOLDER_NAME: str = os.getenv("AUDIT_FOLDER_NAME", DEFAULT_AUDIT_FOLDER)
    # Kept as raw text; AuditSettings parses and validates the number
    RETENTION_DAYS: str = os.getenv("AUDIT_RETENTION_DAYS", str(DEFAULT_RETENTION_DAYS))

    # ── Walk ─────────────────────────────────────────────────────────────────
    MAX_DEPTH: str = os.getenv("AUDIT_MAX_DEPTH", str(DEFAULT_MAX_DEPTH))

    # Emit the 26-column report (timestamps, lease and SMB properties)
    DETAILED_METADATA: bool = _env_bool("AUDIT_DETAILED_METADATA")

    # ── Logging ──────────────────────────────────────────────────────────────
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def as_dict(cls) -> Dict[str, Any]:
        return {
            "storage_account_name": cls.STORAGE_ACCOUNT_NAME,
            "file_share_name": cls.FILE_SHARE_NAME,
            "resource_group": cls.RESOURCE_GROUP,
            "subscription_id": cls.SUBSCRIPTION_ID,
            "managed_identity_client_id": cls.MANAGED_IDENTITY_CLIENT_ID,
            "retention_days": cls.RETENTION_DAYS,
            "audit_folder_name": cls.AUDIT_FOLDER_NAME,
            "max_depth": cls.MAX_DEPTH,
            "detailed_metadata": cls.DETAILED_METADATA,
        }


# ── Settings sources ──────────────────────────────────────────────────────────

class SettingsError(ValueError):
    """Configuration could not be turned into valid AuditSettings."""

    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


_ARG_FIELDS = {
    "storage_account": "storage_account_name",
    "file_share": "file_share_name",
    "resource_group": "resource_group",
    "subscription_id": "subscription_id",
    "managed_identity_client_id": "managed_identity_client_id",
    "retention_days": "retention_days",
    "max_depth": "max_depth",
}


def _overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for arg_name, field in _ARG_FIELDS.items():
        value = getattr(args, arg_name, None)
        if value is not None:
            overrides[field] = value
    if getattr(args, "detailed", False):
        overrides["detailed_metadata"] = True
    if getattr(args, "dry_run_retention", False):
        overrides["dry_run_retention"] = True
    return overrides


def _build(values: Dict[str, Any]) -> AuditSettings:
    try:
        return AuditSettings(**values)
    except ValidationError as exc:
        errors = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        ]
        raise SettingsError(errors) from exc


def settings_from_env(args: Optional[argparse.Namespace] = None) -> AuditSettings:
    """Settings from :class:`Config`, with any explicit *args* taking precedence."""
    values = Config.as_dict()
    if args is not None:
        values.update(_overrides_from_args(args))
    return _build(values)


def settings_from_args(args: argparse.Namespace) -> AuditSettings:
    """Settings taken from command-line flags only; tuning defaults still apply."""
    values: Dict[str, Any] = {
        "storage_account_name": "",
        "file_share_name": "",
        "audit_folder_name": Config.AUDIT_FOLDER_NAME,
    }
    values.update(_overrides_from_args(args))
    return _build(values)


SETTINGS_SOURCES: Dict[str, Callable[[argparse.Namespace], AuditSettings]] = {
    "env": settings_from_env,
    "args": settings_from_args,
}


def resolve_settings(source: str, args: argparse.Namespace) -> AuditSettings:
    """Resolve settings with the named strategy (``env`` or ``args``)."""
    try:
        strategy = SETTINGS_SOURCES[source]
    except KeyError:
        raise SettingsError([f"Unknown settings source: {source!r}"]) from None
    return strategy(args)
