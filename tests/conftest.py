"""Shared fixtures: an in-memory file share and a connector that hands it out."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Set

import pytest
from azure.core.exceptions import (
    HttpResponseError,
    ResourceExistsError,
    ResourceNotFoundError,
)

from errors import AuthenticationError, TargetNotFoundError
from models import AuditSettings, FileMetadata, RunContext, ShareEntry, StorageTarget
from utils import split_share_path

NOW = datetime(2026, 10, 19, 8, 30, 15, tzinfo=timezone.utc)


@dataclass
class FakeFile:
    content: bytes
    metadata: FileMetadata


class FakeShareClient:
    """Dict-backed stand-in for ShareNamespaceClient with failure injection."""

    def __init__(self, clock: datetime = NOW) -> None:
        self.clock = clock
        self.directories: Set[str] = {""}
        self.files: Dict[str, FakeFile] = {}
        self.listing_timestamps = True
        self.fail_list: Set[str] = set()
        self.fail_metadata: Set[str] = set()
        self.fail_delete: Set[str] = set()
        self.fail_create = False
        self.create_races = False
        self.fail_upload = False
        self.fail_rename = False
        self.deleted: List[str] = []

    # ── test helpers ────────────────────────────────────────────────────────
    def add_dir(self, path: str) -> None:
        parts = path.split("/") if path else []
        for index in range(1, len(parts) + 1):
            self.directories.add("/".join(parts[:index]))

    def add_file(
        self,
        path: str,
        size: int = 0,
        last_modified: Optional[datetime] = None,
        content: bytes = b"",
        **metadata: object,
    ) -> None:
        self.add_dir(split_share_path(path)[0])
        self.files[path] = FakeFile(
            content=content,
            metadata=FileMetadata(
                size=size,
                last_modified=last_modified or self.clock - timedelta(days=1),
                **metadata,
            ),
        )

    def add_aged_file(self, path: str, age: timedelta) -> None:
        self.add_file(path, size=10, last_modified=self.clock - age)

    # ── client surface ──────────────────────────────────────────────────────
    def list_directory(self, path: str) -> List[ShareEntry]:
        if path in self.fail_list:
            raise HttpResponseError(message=f"listing of {path!r} refused")
        if path not in self.directories:
            raise ResourceNotFoundError(message=f"{path!r} does not exist")
        entries: List[ShareEntry] = []
        for directory in sorted(self.directories):
            if directory and split_share_path(directory)[0] == path:
                entries.append(
                    ShareEntry(name=split_share_path(directory)[1], is_directory=True)
                )
        for file_path, fake in sorted(self.files.items()):
            parent, name = split_share_path(file_path)
            if parent == path:
                entries.append(
                    ShareEntry(
                        name=name,
                        is_directory=False,
                        size=fake.metadata.size,
                        last_modified=fake.metadata.last_modified if self.listing_timestamps else None,
                    )
                )
        return entries

    def get_file_metadata(self, path: str) -> FileMetadata:
        if path in self.fail_metadata:
            raise HttpResponseError(message=f"properties of {path!r} refused")
        if path not in self.files:
            raise ResourceNotFoundError(message=f"{path!r} does not exist")
        return self.files[path].metadata

    def directory_exists(self, path: str) -> bool:
        return path in self.directories

    def create_directory(self, path: str) -> None:
        if self.fail_create:
            raise HttpResponseError(message="create refused")
        self.add_dir(path)
        if self.create_races:
            raise ResourceExistsError(message=f"{path!r} already exists")

    def upload_file(self, path: str, data: bytes) -> None:
        if self.fail_upload:
            raise HttpResponseError(message="upload refused")
        self.files[path] = FakeFile(
            content=data,
            metadata=FileMetadata(size=len(data), last_modified=self.clock),
        )

    def rename_file(self, source: str, destination: str) -> None:
        if self.fail_rename:
            raise HttpResponseError(message="rename refused")
        self.files[destination] = self.files.pop(source)

    def delete_file(self, path: str) -> None:
        if path in self.fail_delete:
            raise HttpResponseError(message=f"delete of {path!r} refused")
        if path not in self.files:
            raise ResourceNotFoundError(message=f"{path!r} does not exist")
        del self.files[path]
        self.deleted.append(path)


class FakeConnector:
    """Connector returning a prepared FakeShareClient; stages can be made to fail."""

    def __init__(
        self,
        client: FakeShareClient,
        auth_error: Optional[str] = None,
        missing_target: bool = False,
    ) -> None:
        self.client = client
        self.auth_error = auth_error
        self.missing_target = missing_target
        self.stages: List[str] = []

    def authenticate(self) -> object:
        self.stages.append("authenticate")
        if self.auth_error:
            raise AuthenticationError(self.auth_error)
        return object()

    def resolve_target(self, credential: object) -> StorageTarget:
        self.stages.append("resolve_target")
        if self.missing_target:
            raise TargetNotFoundError("Storage account 'auditacct' not found.")
        return StorageTarget(
            account_name="auditacct",
            resource_group="rg-files",
            subscription_id="00000000-0000-0000-0000-000000000000",
            file_endpoint="https://auditacct.file.core.windows.net/",
        )

    def open_share(self, credential: object, target: StorageTarget) -> FakeShareClient:
        self.stages.append("open_share")
        return self.client


@pytest.fixture
def share() -> FakeShareClient:
    return FakeShareClient()


@pytest.fixture
def settings() -> AuditSettings:
    return AuditSettings(storage_account_name="auditacct", file_share_name="teamshare")


@pytest.fixture
def context(settings: AuditSettings) -> RunContext:
    return RunContext.from_settings(settings, NOW)


@pytest.fixture
def detailed_context(settings: AuditSettings) -> RunContext:
    detailed = settings.model_copy(update={"detailed_metadata": True})
    return RunContext.from_settings(detailed, NOW)
