"""Tests for CLI main module."""

from unittest.mock import AsyncMock, patch

import yaml
from typer.testing import CliRunner

from triggerbot.cli.main import app

runner = CliRunner()


def test_missing_workspace(tmp_path):
    """A workspace that does not exist is reported and aborts."""
    result = runner.invoke(app, ["--workspace", str(tmp_path / "missing"), "commands"])
    assert result.exit_code == 1
    assert "Workspace directory not found" in result.output


def test_invalid_config(tmp_path):
    (tmp_path / "config.user.yaml").write_text(yaml.dump({"messagebus": {"enabled": True}}))
    result = runner.invoke(app, ["--workspace", str(tmp_path), "commands"])
    assert result.exit_code == 1
    assert "Error loading config" in result.output


def test_commands_lists_builtins(tmp_path):
    result = runner.invoke(app, ["--workspace", str(tmp_path), "commands"])
    assert result.exit_code == 0
    assert "!ping" in result.output
    assert "[command...]" in result.output


def test_commands_with_all_flag(tmp_path):
    result = runner.invoke(app, ["--workspace", str(tmp_path), "commands", "--all"])
    assert result.exit_code == 0
    assert "!ping" in result.output


def test_run_requires_message_bus(tmp_path):
    with patch("triggerbot.cli.server.setup_logging"):
        result = runner.invoke(app, ["--workspace", str(tmp_path), "run"])
    assert result.exit_code == 1
    assert "Message bus disabled, nothing to serve" in result.output


def test_run_starts_server(tmp_path):
    (tmp_path / "config.user.yaml").write_text(
        yaml.dump({"messagebus": {"enabled": True, "telegram": {"bot_token": "t"}}})
    )
    with (
        patch("triggerbot.cli.server.setup_logging"),
        patch("triggerbot.cli.server.Server") as mock_server,
    ):
        mock_server.return_value.run = AsyncMock()
        result = runner.invoke(app, ["--workspace", str(tmp_path), "run"])

    assert result.exit_code == 0
    assert "platform(s): telegram" in result.output
    assert "Prefixes: !" in result.output
    mock_server.return_value.run.assert_awaited_once()


def test_chat_runs_console_session(tmp_path):
    with (
        patch("triggerbot.cli.chat.setup_logging"),
        patch("triggerbot.cli.chat.run_chat", new_callable=AsyncMock) as mock_run_chat,
    ):
        result = runner.invoke(app, ["--workspace", str(tmp_path), "chat"])

    assert result.exit_code == 0
    mock_run_chat.assert_awaited_once()
    assert mock_run_chat.await_args.args[0].workspace == tmp_path


def test_malformed_yaml(tmp_path):
    (tmp_path / "config.user.yaml").write_text("dispatch: [unclosed")
    result = runner.invoke(app, ["--workspace", str(tmp_path), "commands"])
    assert result.exit_code == 1
    assert "Error loading config" in result.output
