"""Tests for the CLI commands."""

from pathlib import Path

import httpx
import pytest

import flora_admin.cli as cli
from flora_admin import config_commands
from flora_admin.client import FloraClient
from flora_admin.config import FloraSettings
from flora_admin.errors import ErrorKind, RemoteError
from flora_admin.location_commands import delete
from flora_admin.models import Notification
from flora_admin.notifications import ERROR, SUCCESS
from flora_admin.tax_commands import assign, list_taxes
from tests.conftest import FakeFlora, json_response

TAXES_PATH = "/wp-json/flora-im/v1/locations/3/taxes"


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run commands in an empty project directory with an isolated home."""
    home = tmp_path / "home"
    home.mkdir()
    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(project)
    return project


@pytest.fixture
def scripted_api(
    fake_flora: FakeFlora, settings: FloraSettings, monkeypatch: pytest.MonkeyPatch, workspace: Path
) -> FakeFlora:
    """Route every command's client to the scripted server."""
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    monkeypatch.setattr(
        cli,
        "FloraClient",
        lambda s: FloraClient(s, transport=httpx.MockTransport(fake_flora.handler)),
    )
    return fake_flora


def test_print_notification_streams(capsys: pytest.CaptureFixture[str]) -> None:
    """Test errors go to stderr and everything else to stdout."""
    cli.print_notification(Notification(level=SUCCESS, text="Tax rate assigned successfully", duration=2.0))
    cli.print_notification(Notification(level=ERROR, text="Failed to assign tax rate: Boom", duration=6.0))
    cli.print_notification(None)

    captured = capsys.readouterr()
    assert captured.out == "Tax rate assigned successfully\n"
    assert captured.err == "Failed to assign tax rate: Boom\n"


def test_run_exits_on_flora_error() -> None:
    """Test a failed command exits non-zero."""

    async def failing() -> None:
        raise RemoteError("Service Unavailable", ErrorKind.SERVER, status_code=503)

    with pytest.raises(SystemExit) as exc_info:
        cli.run(failing())

    assert exc_info.value.code == 1


def test_config_secrets_masked(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    """Test secrets are never echoed back."""
    config_commands.set("flora.consumer_secret", "cs_live_secret")
    config_commands.get("flora.consumer_secret")
    config_commands.set("flora.api_base", "https://shop.example.com")

    out = capsys.readouterr().out
    assert "cs_live_secret" not in out
    assert "flora.consumer_secret = ********" in out
    assert "Set flora.api_base = https://shop.example.com (local)" in out


def test_tax_list(scripted_api: FakeFlora, capsys: pytest.CaptureFixture[str]) -> None:
    """Test listing taxes marks the default rate."""
    scripted_api.add(
        "GET",
        TAXES_PATH,
        json_response(
            200,
            [
                {"location_id": "3", "tax_rate_id": "7", "is_default": "1", "tax_rate_name": "NC", "tax_rate": "4.75"},
                {"location_id": "3", "tax_rate_id": "8", "is_default": "0", "tax_rate_name": "Mecklenburg"},
            ],
        ),
    )

    list_taxes(3)

    out = capsys.readouterr().out
    assert "* 7: NC (4.75%)" in out
    assert "  8: Mecklenburg (0%)" in out


def test_tax_assign_failure_exits(scripted_api: FakeFlora, capsys: pytest.CaptureFixture[str]) -> None:
    """Test a rejected assignment prints the reason and exits 1."""
    scripted_api.add("GET", TAXES_PATH, json_response(200, []))
    scripted_api.add("POST", TAXES_PATH, json_response(400, {"error": "Invalid tax rate"}))

    with pytest.raises(SystemExit) as exc_info:
        assign(3, 7, default=True)

    assert exc_info.value.code == 1
    assert len(scripted_api.calls("POST", TAXES_PATH)) == 1
    assert "Failed to assign tax rate: Invalid tax rate" in capsys.readouterr().err


def test_location_delete_cancelled(
    scripted_api: FakeFlora, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test answering no to the prompt leaves the location alone."""
    scripted_api.add("GET", "/wp-json/flora-im/v1/locations", json_response(200, [{"id": 2, "name": "Salisbury"}]))
    monkeypatch.setattr("builtins.input", lambda prompt: "n")

    delete(2)

    assert "Cancelled" in capsys.readouterr().out
    assert scripted_api.calls("DELETE", "/wp-json/flora-im/v1/locations/2") == []


@pytest.mark.parametrize(
    "command",
    [config_commands.set, config_commands.unset, config_commands.get, config_commands.list_config],
)
def test_config_commands_document_scope(command) -> None:
    """Test every config command documents its --global option for the help text."""
    assert "global_:" in command.__doc__
