"""Tests for the crudmind command line."""

from unittest.mock import patch

import httpx
from typer.testing import CliRunner

from crudmind.cli.app import app

runner = CliRunner()


def _write_config(tmp_path, db_path) -> str:
    path = tmp_path / "crudmind.yaml"
    path.write_text(f"database:\n  path: {db_path}\n  read_only_tables: [audit_log]\n")
    return str(path)


def test_version_command():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "crudmind version" in result.output


def test_no_args_shows_help():
    result = runner.invoke(app, [])
    assert result.exit_code in (0, 2)
    assert "Usage" in result.output


def test_schema_command(tmp_path, db_path):
    result = runner.invoke(app, ["schema", "--config", _write_config(tmp_path, db_path)])

    assert result.exit_code == 0
    assert "customers" in result.output
    assert "audit_log [read]" in result.output
    assert "belongs_to customers via customer_id" in result.output


def test_schema_command_with_empty_database(tmp_path):
    result = runner.invoke(app, ["schema", "--config", _write_config(tmp_path, tmp_path / "empty.db")])

    assert result.exit_code == 0
    assert "No tables found" in result.output


def test_chat_delegates(tmp_path):
    with patch("crudmind.cli.chat.chat_command") as mock_chat:
        result = runner.invoke(app, ["chat", "--config", "x.yaml", "--conversation", "abc"])

    assert result.exit_code == 0
    mock_chat.assert_called_once_with(config_path="x.yaml", conversation_id="abc")


def test_start_refuses_missing_database(tmp_path, monkeypatch):
    monkeypatch.setattr("crudmind.cli.server_cmd.PID_FILE", tmp_path / "server.pid")
    config = tmp_path / "crudmind.yaml"
    config.write_text("database:\n  path: missing.db\n")

    with patch("uvicorn.run") as mock_run:
        result = runner.invoke(app, ["start", "--config", str(config)])

    assert result.exit_code == 0
    assert "Database not found" in result.output
    mock_run.assert_not_called()


def test_status_when_server_down(tmp_path, monkeypatch):
    monkeypatch.setattr("crudmind.cli.server_cmd.PID_FILE", tmp_path / "server.pid")
    monkeypatch.setenv("CRUDMIND_CONFIG", str(tmp_path / "none.yaml"))

    with patch("crudmind.cli.server_cmd.httpx.get", side_effect=httpx.ConnectError("refused")):
        result = runner.invoke(app, ["status"])

    assert result.exit_code == 0
    assert "not running" in result.output.lower()


def test_stop_without_server(tmp_path, monkeypatch):
    monkeypatch.setattr("crudmind.cli.server_cmd.PID_FILE", tmp_path / "server.pid")

    result = runner.invoke(app, ["stop"])

    assert result.exit_code == 0
    assert "No running crudmind server found" in result.output


def test_stop_signals_recorded_pid(tmp_path, monkeypatch):
    pid_file = tmp_path / "server.pid"
    pid_file.write_text("4242")
    monkeypatch.setattr("crudmind.cli.server_cmd.PID_FILE", pid_file)

    with patch("crudmind.cli.server_cmd.os.kill") as mock_kill:
        result = runner.invoke(app, ["stop"])

    assert result.exit_code == 0
    assert "PID 4242" in result.output
    assert mock_kill.call_count == 2
    assert not pid_file.exists()
