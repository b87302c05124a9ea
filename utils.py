"""
utils.py — Shared helper utilities for the file share lifecycle audit.
"""
from __future__ import annotations

from datetime import datetime, timezone

# ── Share paths ───────────────────────────────────────────────────────────────

def join_share_path(parent: str, name: str) -> str:
    """Join a share-relative *parent* path and an entry *name* with '/'."""
    if not parent:
        return name
    return f"{parent.rstrip('/')}/{name}"


def split_share_path(path: str) -> tuple[str, str]:
    """Split a share-relative path into (directory, leaf name)."""
    directory, _, name = path.rstrip("/").rpartition("/")
    return directory, name


# ── Sizes ─────────────────────────────────────────────────────────────────────

def round_size(size_bytes: int, unit: int) -> float:
    """Size expressed in *unit* bytes, rounded to 2 decimals."""
    return round(size_bytes / unit, 2)


def format_file_size(size_bytes: int) -> str:
    """Return a human-readable file size string (e.g. '1.2 MB')."""
    size = float(size_bytes)
    for unit in ("B", "KB", "MB", "GB", "TB"):
        if size < 1024.0:
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} PB"


# ── Time ──────────────────────────────────────────────────────────────────────

def utc_now() -> datetime:
    """Current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
