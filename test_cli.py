"""Tests for the snapdeck command line."""

import json
from unittest.mock import Mock, patch

import pytest
from click.testing import CliRunner

from snapdeck import config as config_module
from snapdeck import log
from snapdeck.cli import main
from snapdeck.errors import SnapperError
from snapdeck.runner import CommandResult
from snapdeck.snapshots import Snapshot
from snapdeck.status import Change


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    monkeypatch.setattr(config_module, "GLOBAL_CONFIG_FILE", tmp_path / "config.json")
    monkeypatch.setattr(log, "LOGS_FILE", tmp_path / "audit.jsonl")
    for key in config_module.DEFAULT_CONFIG:
        monkeypatch.delenv(config_module.ENV_PREFIX + key.upper(), raising=False)
    return tmp_path


@pytest.fixture
def snapper():
    mock = Mock()
    with patch("snapdeck.cli.create_snapper", return_value=mock):
        yield mock


@pytest.fixture
def runner():
    return CliRunner()


def test_configs(runner, snapper):
    snapper.list_configs.return_value = ["home", "root"]
    result = runner.invoke(main, ["configs"])
    assert result.exit_code == 0
    assert "home" in result.output
    assert "root" in result.output


def test_list(runner, snapper):
    snapper.list_snapshots.return_value = [
        Snapshot(id=3, type="single", pre_id="", date="2024-01-01", user="root",
                 cleanup="", description="nightly", default=True),
    ]
    result = runner.invoke(main, ["list", "root"])
    assert result.exit_code == 0
    assert "3*" in result.output
    assert "nightly" in result.output
    snapper.list_snapshots.assert_called_once_with("root")


def test_list_failure_exits_1(runner, snapper):
    snapper.list_snapshots.side_effect = SnapperError(
        CommandResult(1, "", "Unknown config."), ["-c", "nope", "list"]
    )
    result = runner.invoke(main, ["list", "nope"])
    assert result.exit_code == 1
    assert "Unknown config." in result.output


def test_status(runner, snapper):
    snapper.status.return_value = [Change("modified", "/etc/fstab"), Change("+", "/etc/new")]
    result = runner.invoke(main, ["status", "root", "1..2"])
    assert result.exit_code == 0
    assert "/etc/fstab" in result.output
    assert "2 file(s) changed" in result.output


def test_settings_plain(runner, snapper):
    snapper.get_settings.return_value = {"SUBVOLUME": "/", "FSTYPE": "btrfs"}
    result = runner.invoke(main, ["settings", "root", "--plain"])
    assert result.exit_code == 0
    assert result.output.splitlines()[0].startswith("Key")
    assert "SUBVOLUME | /" in result.output


def test_create_writes_audit_log(runner, snapper, isolated_home):
    snapper.create.return_value = 12
    result = runner.invoke(main, ["create", "root", "-d", "before upgrade", "--userdata", "k=v"])
    assert result.exit_code == 0
    assert "12" in result.output
    snapper.create.assert_called_once_with("root", "before upgrade", userdata="k=v", cleanup=None)

    entry = json.loads((isolated_home / "audit.jsonl").read_text().splitlines()[0])
    assert entry["event"] == "create"
    assert entry["source"] == "cli"
    assert entry["result"] == "ok"


def test_delete_confirmation_declined(runner, snapper):
    result = runner.invoke(main, ["delete", "root", "4"], input="n\n")
    assert result.exit_code == 0
    assert "Cancelled" in result.output
    snapper.delete.assert_not_called()


def test_delete_confirmed(runner, snapper):
    result = runner.invoke(main, ["delete", "root", "4"], input="y\n")
    assert result.exit_code == 0
    snapper.delete.assert_called_once_with("root", "4")


def test_rollback_failure_is_audited(runner, snapper, isolated_home):
    snapper.rollback.side_effect = SnapperError(
        CommandResult(1, "", "Command 'rollback' cannot be used on a non-root subvolume."),
        ["-c", "home", "rollback"],
    )
    result = runner.invoke(main, ["rollback", "home", "4", "-y"])
    assert result.exit_code == 1
    entry = json.loads((isolated_home / "audit.jsonl").read_text().splitlines()[0])
    assert entry["result"] == "failed"


def test_undo(runner, snapper):
    snapper.undo_change.return_value = ""
    result = runner.invoke(main, ["undo", "root", "1..2", "/etc/fstab", "/etc/hosts"])
    assert result.exit_code == 0
    snapper.undo_change.assert_called_once_with("root", "1..2", ["/etc/fstab", "/etc/hosts"])


def test_logs(runner, snapper):
    log.write_log({"event": "delete", "config": "root", "id": "4", "result": "ok", "source": "cli"})
    result = runner.invoke(main, ["logs"])
    assert result.exit_code == 0
    assert "delete" in result.output


def test_logs_empty(runner):
    result = runner.invoke(main, ["logs"])
    assert "No audit entries" in result.output


def test_config_saves_global_setting(runner, isolated_home):
    result = runner.invoke(main, ["config", "port", "9000"])
    assert result.exit_code == 0
    assert json.loads((isolated_home / "config.json").read_text()) == {"port": "9000"}


def test_config_unknown_key(runner):
    result = runner.invoke(main, ["config", "colour", "blue"])
    assert result.exit_code != 0


def test_invalid_config_file(runner, tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("{nope")
    result = runner.invoke(main, ["--config", str(bad), "configs"])
    assert result.exit_code == 1
    assert "Invalid JSON" in result.output


def test_unwritable_audit_log_does_not_fail_command(runner, snapper, tmp_path, monkeypatch):
    blocker = tmp_path / "blocker"
    blocker.write_text("")
    monkeypatch.setattr(log, "LOGS_FILE", blocker / "audit.jsonl")
    snapper.create.return_value = 3
    result = runner.invoke(main, ["create", "root", "-d", "x"])
    assert result.exit_code == 0
    assert "could not write audit log" in result.output
