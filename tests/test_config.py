from __future__ import annotations

import pytest

import app
from config import Config, SettingsError, resolve_settings, settings_from_args, settings_from_env


@pytest.fixture
def blank_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(Config, "STORAGE_ACCOUNT_NAME", "")
    monkeypatch.setattr(Config, "FILE_SHARE_NAME", "")
    monkeypatch.setattr(Config, "RESOURCE_GROUP", "")
    monkeypatch.setattr(Config, "SUBSCRIPTION_ID", "")
    monkeypatch.setattr(Config, "MANAGED_IDENTITY_CLIENT_ID", "")
    monkeypatch.setattr(Config, "RETENTION_DAYS", "31")
    monkeypatch.setattr(Config, "MAX_DEPTH", "100")
    monkeypatch.setattr(Config, "DETAILED_METADATA", False)


def test_env_source_reads_config(blank_config, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(Config, "STORAGE_ACCOUNT_NAME", "auditacct")
    monkeypatch.setattr(Config, "FILE_SHARE_NAME", "teamshare")
    monkeypatch.setattr(Config, "RESOURCE_GROUP", "rg-files")
    monkeypatch.setattr(Config, "DETAILED_METADATA", True)

    settings = settings_from_env()

    assert settings.storage_account_name == "auditacct"
    assert settings.file_share_name == "teamshare"
    assert settings.resource_group == "rg-files"
    assert settings.subscription_id is None
    assert settings.detailed_metadata is True
    assert settings.retention_days == 31
    assert settings.audit_folder_name == "AuditLifeCycle"


def test_flags_override_environment(blank_config, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(Config, "STORAGE_ACCOUNT_NAME", "fromenv")
    monkeypatch.setattr(Config, "FILE_SHARE_NAME", "teamshare")
    args = app.parse_args(["--storage-account", "fromflag", "--retention-days", "7"])

    settings = settings_from_env(args)

    assert settings.storage_account_name == "fromflag"
    assert settings.file_share_name == "teamshare"
    assert settings.retention_days == 7


def test_args_source_ignores_environment(blank_config, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(Config, "STORAGE_ACCOUNT_NAME", "fromenv")
    args = app.parse_args(["--file-share", "teamshare"])

    with pytest.raises(SettingsError) as excinfo:
        settings_from_args(args)

    assert any("storage_account_name" in error for error in excinfo.value.errors)


def test_required_values_must_not_be_blank(blank_config) -> None:
    args = app.parse_args(["--storage-account", "   ", "--file-share", "share"])

    with pytest.raises(SettingsError):
        resolve_settings("args", args)


def test_negative_retention_is_invalid(blank_config) -> None:
    args = app.parse_args(
        ["--storage-account", "acct", "--file-share", "share", "--retention-days", "-1"]
    )

    with pytest.raises(SettingsError):
        resolve_settings("args", args)


def test_unknown_source_is_rejected(blank_config) -> None:
    with pytest.raises(SettingsError):
        resolve_settings("keyvault", app.parse_args([]))


def test_blank_optional_values_become_none(blank_config) -> None:
    args = app.parse_args(
        ["--storage-account", "acct", "--file-share", "share", "--resource-group", " "]
    )

    assert resolve_settings("args", args).resource_group is None


def test_env_numbers_are_parsed_from_text(blank_config, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(Config, "STORAGE_ACCOUNT_NAME", "auditacct")
    monkeypatch.setattr(Config, "FILE_SHARE_NAME", "teamshare")
    monkeypatch.setattr(Config, "RETENTION_DAYS", "7")
    monkeypatch.setattr(Config, "MAX_DEPTH", "12")

    settings = settings_from_env()

    assert settings.retention_days == 7
    assert settings.max_depth == 12


@pytest.mark.parametrize("name", ["RETENTION_DAYS", "MAX_DEPTH"])
def test_non_numeric_env_value_is_a_settings_error(
    blank_config, monkeypatch: pytest.MonkeyPatch, name: str
) -> None:
    monkeypatch.setattr(Config, "STORAGE_ACCOUNT_NAME", "auditacct")
    monkeypatch.setattr(Config, "FILE_SHARE_NAME", "teamshare")
    monkeypatch.setattr(Config, name, "thirty")

    with pytest.raises(SettingsError) as excinfo:
        settings_from_env()

    assert any(name.lower() in error for error in excinfo.value.errors)


def test_max_depth_above_limit_is_invalid(blank_config) -> None:
    args = app.parse_args(
        ["--storage-account", "acct", "--file-share", "share", "--max-depth", "5000"]
    )

    with pytest.raises(SettingsError):
        resolve_settings("args", args)
