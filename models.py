"""
models.py — Pydantic data models for the file share lifecycle audit.
All models use Pydantic v2 for strict validation.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from utils import round_size

DEFAULT_AUDIT_FOLDER = "AuditLifeCycle"
DEFAULT_RETENTION_DAYS = 31
DEFAULT_MAX_DEPTH = 100
# Keeps the recursive walk well inside the interpreter recursion limit
MAX_DEPTH_LIMIT = 500

# ── CSV schemas ───────────────────────────────────────────────────────────────

LEAN_COLUMNS: List[str] = [
    "FileName",
    "FullPath",
    "Directory",
    "SizeBytes",
    "SizeKB",
    "SizeMB",
    "LastModified",
    "ETag",
    "ContentType",
    "ContentEncoding",
    "CacheControl",
    "ContentDisposition",
    "AuditDate",
    "StorageAccountName",
    "FileShareName",
]

DETAILED_COLUMNS: List[str] = [
    "FileName",
    "FullPath",
    "Directory",
    "SizeBytes",
    "SizeKB",
    "SizeMB",
    "CreationTime",
    "LastWriteTime",
    "ChangeTime",
    "LastModified",
    "ETag",
    "ContentType",
    "ContentEncoding",
    "CacheControl",
    "ContentDisposition",
    "ContentLanguage",
    "IsServerEncrypted",
    "LeaseStatus",
    "LeaseState",
    "FileId",
    "ParentId",
    "FileAttributes",
    "FilePermissionKey",
    "AuditDate",
    "StorageAccountName",
    "FileShareName",
]


def columns_for(detailed: bool) -> List[str]:
    return DETAILED_COLUMNS if detailed else LEAN_COLUMNS


# ── Settings & run context ────────────────────────────────────────────────────

class AuditSettings(BaseModel):
    """Resolved configuration for one audit run, whatever source produced it."""
    model_config = ConfigDict(frozen=True)

    storage_account_name: str
    file_share_name: str
    resource_group: Optional[str] = None
    subscription_id: Optional[str] = None
    managed_identity_client_id: Optional[str] = None
    retention_days: int = Field(default=DEFAULT_RETENTION_DAYS, ge=0)
    audit_folder_name: str = DEFAULT_AUDIT_FOLDER
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=0, le=MAX_DEPTH_LIMIT)
    detailed_metadata: bool = False
    dry_run_retention: bool = False

    @field_validator("storage_account_name", "file_share_name", "audit_folder_name")
    @classmethod
    def _required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("resource_group", "subscription_id", "managed_identity_client_id")
    @classmethod
    def _blank_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None


class RunContext(BaseModel):
    """Immutable per-run values threaded through every component."""
    model_config = ConfigDict(frozen=True)

    storage_account_name: str
    file_share_name: str
    audit_date: datetime
    audit_folder_name: str = DEFAULT_AUDIT_FOLDER
    detailed_metadata: bool = False
    max_depth: int = DEFAULT_MAX_DEPTH
    retention_days: int = DEFAULT_RETENTION_DAYS

    @classmethod
    def from_settings(cls, settings: AuditSettings, started_at: datetime) -> "RunContext":
        return cls(
            storage_account_name=settings.storage_account_name,
            file_share_name=settings.file_share_name,
            audit_date=started_at.replace(microsecond=0),
            audit_folder_name=settings.audit_folder_name,
            detailed_metadata=settings.detailed_metadata,
            max_depth=settings.max_depth,
            retention_days=settings.retention_days,
        )


class StorageTarget(BaseModel):
    """A storage account located through the management plane."""
    account_name: str
    resource_group: str = ""
    subscription_id: str = ""
    file_endpoint: str


# ── Remote namespace entries ──────────────────────────────────────────────────

class ShareEntry(BaseModel):
    """One item of a directory listing. Listings carry abbreviated metadata only."""
    name: str
    is_directory: bool
    size: int = 0
    last_modified: Optional[datetime] = None


class FileMetadata(BaseModel):
    """Full property set of a single file, as returned by a properties call."""
    size: int = Field(default=0, ge=0)
    last_modified: Optional[datetime] = None
    etag: Optional[str] = None
    content_type: Optional[str] = None
    content_encoding: Optional[str] = None
    cache_control: Optional[str] = None
    content_disposition: Optional[str] = None
    content_language: Optional[str] = None
    creation_time: Optional[datetime] = None
    last_write_time: Optional[datetime] = None
    change_time: Optional[datetime] = None
    is_server_encrypted: Optional[bool] = None
    lease_status: Optional[str] = None
    lease_state: Optional[str] = None
    file_id: Optional[str] = None
    parent_id: Optional[str] = None
    file_attributes: Optional[str] = None
    file_permission_key: Optional[str] = None


# ── Audit records ─────────────────────────────────────────────────────────────

_OPTIONAL_FIELDS = (
    "creation_time", "last_write_time", "change_time", "last_modified", "etag",
    "content_type", "content_encoding", "cache_control", "content_disposition",
    "content_language", "is_server_encrypted", "lease_status", "lease_state",
    "file_id", "parent_id", "file_attributes", "file_permission_key",
)


class FileRecord(BaseModel):
    """One row of a snapshot report. Field aliases are the CSV column names."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    file_name: str = Field(alias="FileName")
    full_path: str = Field(alias="FullPath")
    directory: str = Field(default="", alias="Directory")
    size_bytes: int = Field(ge=0, alias="SizeBytes")
    size_kb: float = Field(alias="SizeKB")
    size_mb: float = Field(alias="SizeMB")
    creation_time: Optional[datetime] = Field(default=None, alias="CreationTime")
    last_write_time: Optional[datetime] = Field(default=None, alias="LastWriteTime")
    change_time: Optional[datetime] = Field(default=None, alias="ChangeTime")
    last_modified: Optional[datetime] = Field(default=None, alias="LastModified")
    etag: Optional[str] = Field(default=None, alias="ETag")
    content_type: Optional[str] = Field(default=None, alias="ContentType")
    content_encoding: Optional[str] = Field(default=None, alias="ContentEncoding")
    cache_control: Optional[str] = Field(default=None, alias="CacheControl")
    content_disposition: Optional[str] = Field(default=None, alias="ContentDisposition")
    content_language: Optional[str] = Field(default=None, alias="ContentLanguage")
    is_server_encrypted: Optional[bool] = Field(default=None, alias="IsServerEncrypted")
    lease_status: Optional[str] = Field(default=None, alias="LeaseStatus")
    lease_state: Optional[str] = Field(default=None, alias="LeaseState")
    file_id: Optional[str] = Field(default=None, alias="FileId")
    parent_id: Optional[str] = Field(default=None, alias="ParentId")
    file_attributes: Optional[str] = Field(default=None, alias="FileAttributes")
    file_permission_key: Optional[str] = Field(default=None, alias="FilePermissionKey")
    audit_date: datetime = Field(alias="AuditDate")
    storage_account_name: str = Field(alias="StorageAccountName")
    file_share_name: str = Field(alias="FileShareName")

    @field_validator(*_OPTIONAL_FIELDS, mode="before")
    @classmethod
    def _empty_cell_is_none(cls, value: Any) -> Any:
        # CSV readers hand back "" for missing values
        if isinstance(value, str) and value == "":
            return None
        return value

    @field_validator("directory", mode="before")
    @classmethod
    def _directory_never_none(cls, value: Any) -> Any:
        return "" if value is None else value

    @classmethod
    def from_metadata(
        cls,
        directory: str,
        file_name: str,
        metadata: FileMetadata,
        context: RunContext,
    ) -> "FileRecord":
        full_path = f"{directory}/{file_name}" if directory else file_name
        fields: Dict[str, Any] = dict(
            file_name=file_name,
            full_path=full_path,
            directory=directory,
            size_bytes=metadata.size,
            size_kb=round_size(metadata.size, 1024),
            size_mb=round_size(metadata.size, 1024 * 1024),
            last_modified=metadata.last_modified,
            etag=metadata.etag,
            content_type=metadata.content_type,
            content_encoding=metadata.content_encoding,
            cache_control=metadata.cache_control,
            content_disposition=metadata.content_disposition,
            audit_date=context.audit_date,
            storage_account_name=context.storage_account_name,
            file_share_name=context.file_share_name,
        )
        if context.detailed_metadata:
            fields.update(
                creation_time=metadata.creation_time,
                last_write_time=metadata.last_write_time,
                change_time=metadata.change_time,
                content_language=metadata.content_language,
                is_server_encrypted=metadata.is_server_encrypted,
                lease_status=metadata.lease_status,
                lease_state=metadata.lease_state,
                file_id=metadata.file_id,
                parent_id=metadata.parent_id,
                file_attributes=metadata.file_attributes,
                file_permission_key=metadata.file_permission_key,
            )
        return cls(**fields)

    def to_row(self, columns: List[str]) -> Dict[str, Any]:
        """Return the JSON-mode dump restricted to *columns*, keyed by column name."""
        dumped = self.model_dump(mode="json", by_alias=True)
        return {column: dumped[column] for column in columns}


# ── Results ───────────────────────────────────────────────────────────────────

class WalkResult(BaseModel):
    records: List[FileRecord] = Field(default_factory=list)
    failed_paths: List[str] = Field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed_paths


class SweepResult(BaseModel):
    deleted: List[str] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)
    dry_run: bool = False

    @property
    def deleted_count(self) -> int:
        return len(self.deleted)


class AuditSummary(BaseModel):
    """Final counts reported at the end of a run."""
    storage_account_name: str
    file_share_name: str
    files_audited: int
    total_bytes: int
    artifact_path: str
    files_deleted: int
    retention_dry_run: bool = False
    failed_paths: List[str] = Field(default_factory=list)
    sweep_failures: List[str] = Field(default_factory=list)
    started_at: datetime
    finished_at: datetime

    @property
    def complete(self) -> bool:
        return not self.failed_paths
