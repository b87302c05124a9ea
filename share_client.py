"""
share_client.py — Azure Files access for the lifecycle audit.

``AzureConnector`` covers the control plane: obtaining an identity and
locating the storage account and share. ``ShareNamespaceClient`` is the
narrow data-plane surface the walker, writer and sweeper depend on; every
path it accepts is relative to the share root and '/'-delimited.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from azure.core.credentials import TokenCredential
from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.identity import DefaultAzureCredential, ManagedIdentityCredential
from azure.mgmt.resource import SubscriptionClient
from azure.mgmt.storage import StorageManagementClient
from azure.storage.fileshare import ShareClient

from errors import AuthenticationError, TargetNotFoundError
from models import AuditSettings, FileMetadata, ShareEntry, StorageTarget

logger = logging.getLogger(__name__)

MANAGEMENT_SCOPE = "https://management.azure.com/.default"

# Listing details requested alongside names; timestamps let the sweeper
# age snapshots without a second call per file.
LISTING_INCLUDE = ["timestamps", "Etag"]


def _optional_str(value: object) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


class ShareNamespaceClient:
    """Synchronous wrapper over :class:`azure.storage.fileshare.ShareClient`."""

    def __init__(self, share: ShareClient):
        self._share = share

    @property
    def share_name(self) -> str:
        return self._share.share_name

    def list_directory(self, path: str) -> List[ShareEntry]:
        """List the immediate children of *path* ('' = share root)."""
        directory = self._share.get_directory_client(path)
        entries: List[ShareEntry] = []
        for item in directory.list_directories_and_files(include=LISTING_INCLUDE):
            entries.append(
                ShareEntry(
                    name=item.name,
                    is_directory=bool(item.is_directory),
                    size=getattr(item, "size", None) or 0,
                    last_modified=getattr(item, "last_modified", None),
                )
            )
        return entries

    def get_file_metadata(self, path: str) -> FileMetadata:
        props = self._share.get_file_client(path).get_file_properties()
        content = props.content_settings
        lease = props.lease
        return FileMetadata(
            size=props.size or 0,
            last_modified=props.last_modified,
            etag=_optional_str(props.etag),
            content_type=_optional_str(content.content_type),
            content_encoding=_optional_str(content.content_encoding),
            cache_control=_optional_str(content.cache_control),
            content_disposition=_optional_str(content.content_disposition),
            content_language=_optional_str(content.content_language),
            creation_time=props.creation_time,
            last_write_time=props.last_write_time,
            change_time=props.change_time,
            is_server_encrypted=props.server_encrypted,
            lease_status=_optional_str(lease.status) if lease else None,
            lease_state=_optional_str(lease.state) if lease else None,
            file_id=_optional_str(props.file_id),
            parent_id=_optional_str(props.parent_id),
            file_attributes=_optional_str(props.file_attributes),
            file_permission_key=_optional_str(props.permission_key),
        )

    def directory_exists(self, path: str) -> bool:
        return self._share.get_directory_client(path).exists()

    def create_directory(self, path: str) -> None:
        self._share.get_directory_client(path).create_directory()

    def upload_file(self, path: str, data: bytes) -> None:
        self._share.get_file_client(path).upload_file(data)

    def rename_file(self, source: str, destination: str) -> None:
        self._share.get_file_client(source).rename_file(destination, overwrite=True)

    def delete_file(self, path: str) -> None:
        self._share.get_file_client(path).delete_file()


# ── Control plane ─────────────────────────────────────────────────────────────

def _resource_group_from_id(resource_id: str) -> str:
    parts = resource_id.split("/")
    for index, part in enumerate(parts[:-1]):
        if part.lower() == "resourcegroups":
            return parts[index + 1]
    return ""


class AzureConnector:
    """
    Builds the handles an audit run needs from the ambient Azure identity.

    No secrets are read: ``DefaultAzureCredential`` picks up a managed
    identity, workload identity, environment credentials or a developer
    login, and a configured client id selects a user-assigned identity.
    """

    def __init__(self, settings: AuditSettings):
        self.settings = settings

    def authenticate(self) -> TokenCredential:
        client_id = self.settings.managed_identity_client_id
        try:
            if client_id:
                credential: TokenCredential = ManagedIdentityCredential(client_id=client_id)
            else:
                credential = DefaultAzureCredential(exclude_interactive_browser_credential=True)
            # Fail here rather than on the first storage call
            credential.get_token(MANAGEMENT_SCOPE)
        except AzureError as exc:
            logger.error("Azure authentication failed: %s", exc)
            raise AuthenticationError(f"Could not obtain an Azure identity: {exc}") from exc
        logger.info(
            "Authenticated with %s.",
            "user-assigned managed identity" if client_id else "default credential chain",
        )
        return credential

    def _subscription_ids(self, credential: TokenCredential) -> Iterable[str]:
        if self.settings.subscription_id:
            return [self.settings.subscription_id]
        client = SubscriptionClient(credential)
        return [sub.subscription_id for sub in client.subscriptions.list()]

    def _find_account(
        self, storage: StorageManagementClient, subscription_id: str
    ) -> Optional[StorageTarget]:
        name = self.settings.storage_account_name
        group = self.settings.resource_group
        if group:
            accounts = storage.storage_accounts.list_by_resource_group(group)
        else:
            accounts = storage.storage_accounts.list()
        for account in accounts:
            if account.name.lower() != name.lower():
                continue
            endpoint = account.primary_endpoints.file if account.primary_endpoints else None
            if not endpoint:
                raise TargetNotFoundError(
                    f"Storage account '{name}' has no file service endpoint."
                )
            return StorageTarget(
                account_name=account.name,
                resource_group=_resource_group_from_id(account.id or ""),
                subscription_id=subscription_id,
                file_endpoint=endpoint,
            )
        return None

    def resolve_target(self, credential: TokenCredential) -> StorageTarget:
        """
        Locate the storage account by name.

        Without a resource group the first account with a matching name wins;
        names are globally unique in public Azure so this only matters for
        sovereign clouds or stale subscriptions. A resource group missing from
        one subscription just moves the search on to the next.
        """
        name = self.settings.storage_account_name
        group = self.settings.resource_group
        try:
            subscription_ids = self._subscription_ids(credential)
        except AzureError as exc:
            logger.error("Subscription lookup failed: %s", exc)
            raise TargetNotFoundError(f"Could not list subscriptions: {exc}") from exc

        for subscription_id in subscription_ids:
            storage = StorageManagementClient(credential, subscription_id)
            try:
                target = self._find_account(storage, subscription_id)
            except ResourceNotFoundError:
                logger.debug(
                    "Resource group '%s' not found in subscription %s.", group, subscription_id
                )
                continue
            except AzureError as exc:
                logger.error("Storage account lookup failed: %s", exc)
                raise TargetNotFoundError(
                    f"Could not look up storage account '{name}': {exc}"
                ) from exc
            if target is not None:
                logger.info(
                    "Resolved storage account '%s' in resource group '%s'.",
                    target.account_name, target.resource_group,
                )
                return target

        scope = f" in resource group '{group}'" if group else ""
        raise TargetNotFoundError(f"Storage account '{name}' not found{scope}.")

    def open_share(self, credential: TokenCredential, target: StorageTarget) -> ShareNamespaceClient:
        """Open the configured share and confirm it exists."""
        share_name = self.settings.file_share_name
        share = ShareClient(
            account_url=target.file_endpoint,
            share_name=share_name,
            credential=credential,
            token_intent="backup",
        )
        try:
            share.get_share_properties()
        except ResourceNotFoundError as exc:
            raise TargetNotFoundError(
                f"File share '{share_name}' not found in '{target.account_name}'."
            ) from exc
        except AzureError as exc:
            logger.error("Cannot open file share '%s': %s", share_name, exc)
            raise TargetNotFoundError(f"Cannot open file share '{share_name}': {exc}") from exc
        return ShareNamespaceClient(share)
