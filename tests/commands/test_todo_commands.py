"""Tests for the todo CLI commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from todofx.cli import cli


def _create(cli_runner: CliRunner, title: str, *extra: str) -> dict[str, Any]:
    r = cli_runner.invoke(cli, ["--json", "create", title, *extra])
    assert r.exit_code == 0, r.output
    return json.loads(r.output)["data"]


@pytest.mark.usefixtures("_isolated_db")
class TestCreateCommand:
    def test_create_json(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "create", "Buy milk", "-d", "2 litres"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["ok"] is True
        assert data["op"] == "create_todo"
        assert data["status"] == 201
        assert data["data"]["title"] == "Buy milk"
        assert data["data"]["description"] == "2 litres"
        assert data["data"]["is_completed"] is False
        assert data["data"]["completed_at"] is None

    def test_create_writes_database_in_cwd(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        _create(cli_runner, "Persisted")
        assert (tmp_path / "todofx.db").is_file()

    def test_create_human_output(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["create", "Walk the dog"])
        assert result.exit_code == 0
        assert "create_todo" in result.output
        assert "Walk the dog" in result.output

    def test_create_quiet_prints_id(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "create", "Quiet one"])
        assert result.exit_code == 0
        assert result.output.strip() == "1"

    def test_empty_title_is_rejected(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--json", "create", ""])
        assert result.exit_code == 1
        assert '"ok": false' in result.output
        assert '"status": 400' in result.output
        assert "Title is required" in result.output

    def test_rejected_create_persists_nothing(self, cli_runner: CliRunner) -> None:
        cli_runner.invoke(cli, ["create", "x" * 201])
        result = cli_runner.invoke(cli, ["--json", "list"])
        assert result.exit_code == 0
        assert json.loads(result.output)["data"] == []


@pytest.mark.usefixtures("_isolated_db")
class TestReadCommands:
    def test_get_after_create(self, cli_runner: CliRunner) -> None:
        created = _create(cli_runner, "Read me")
        result = cli_runner.invoke(cli, ["--json", "get", str(created["id"])])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["status"] == 200
        assert data["data"] == created

    def test_get_missing(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["get", "99"])
        assert result.exit_code == 1
        assert "Todo with id 99 not found" in result.output
        assert "404" in result.output
        assert "Running get_todo failed" in result.output

    def test_get_missing_quiet_hides_warnings(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "get", "99"])
        assert result.exit_code == 1
        assert "ERROR: get_todo" in result.output
        assert "Running get_todo failed" not in result.output

    def test_get_rejects_non_integer_id(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["get", "abc"])
        assert result.exit_code == 2

    def test_list_empty(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["list"])
        assert result.exit_code == 0
        assert "0 todos" in result.output

    def test_list_order(self, cli_runner: CliRunner) -> None:
        for title in ("banana", "cherry", "apple"):
            _create(cli_runner, title)
        result = cli_runner.invoke(cli, ["--json", "list", "--order", "title_asc"])
        assert result.exit_code == 0
        titles = [t["title"] for t in json.loads(result.output)["data"]]
        assert titles == ["apple", "banana", "cherry"]

    def test_list_rejects_unknown_order(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["list", "--order", "random"])
        assert result.exit_code == 2

    def test_list_human_table(self, cli_runner: CliRunner) -> None:
        _create(cli_runner, "Table row")
        result = cli_runner.invoke(cli, ["list"])
        assert result.exit_code == 0
        assert "Table row" in result.output
        assert "1 todos" in result.output

    def test_list_quiet_prints_ids(self, cli_runner: CliRunner) -> None:
        _create(cli_runner, "a")
        _create(cli_runner, "b")
        result = cli_runner.invoke(cli, ["-q", "list", "--order", "title_asc"])
        assert result.exit_code == 0
        assert result.output.split() == ["1", "2"]


@pytest.mark.usefixtures("_isolated_db")
class TestWriteCommands:
    def test_update_replaces_fields(self, cli_runner: CliRunner) -> None:
        created = _create(cli_runner, "Old", "-d", "old details")
        result = cli_runner.invoke(cli, ["--json", "update", str(created["id"]), "New"])
        assert result.exit_code == 0
        data = json.loads(result.output)["data"]
        assert data["title"] == "New"
        assert data["description"] is None
        assert data["created_at"] == created["created_at"]

    def test_update_invalid_title(self, cli_runner: CliRunner) -> None:
        created = _create(cli_runner, "Keep")
        result = cli_runner.invoke(cli, ["update", str(created["id"]), "t" * 201])
        assert result.exit_code == 1
        fetched = cli_runner.invoke(cli, ["--json", "get", str(created["id"])])
        assert json.loads(fetched.output)["data"]["title"] == "Keep"

    def test_update_missing(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["update", "7", "Nothing"])
        assert result.exit_code == 1
        assert "Todo with id 7 not found" in result.output

    def test_toggle_twice(self, cli_runner: CliRunner) -> None:
        todo_id = str(_create(cli_runner, "Flip")["id"])
        first = cli_runner.invoke(cli, ["--json", "toggle", todo_id])
        assert first.exit_code == 0
        done = json.loads(first.output)["data"]
        assert done["is_completed"] is True
        assert done["completed_at"] is not None

        second = cli_runner.invoke(cli, ["--json", "toggle", todo_id])
        reopened = json.loads(second.output)["data"]
        assert reopened["is_completed"] is False
        assert reopened["completed_at"] is None

    def test_delete(self, cli_runner: CliRunner) -> None:
        todo_id = str(_create(cli_runner, "Gone soon")["id"])
        result = cli_runner.invoke(cli, ["--json", "delete", todo_id])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["status"] == 204
        assert data["data"] is None

        again = cli_runner.invoke(cli, ["get", todo_id])
        assert again.exit_code == 1

    def test_delete_quiet(self, cli_runner: CliRunner) -> None:
        todo_id = str(_create(cli_runner, "Quiet delete")["id"])
        result = cli_runner.invoke(cli, ["-q", "delete", todo_id])
        assert result.exit_code == 0
        assert result.output.strip() == "OK: delete_todo"

    def test_delete_missing(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["-q", "delete", "5"])
        assert result.exit_code == 1
        assert "ERROR: delete_todo" in result.output


@pytest.mark.usefixtures("_isolated_db")
class TestDatabaseOption:
    def test_db_flag_selects_file(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        target = tmp_path / "elsewhere" / "todos.db"
        result = cli_runner.invoke(cli, ["--db", f"sqlite:///{target}", "create", "Moved"])
        assert result.exit_code == 0
        assert target.is_file()
        assert not (tmp_path / "todofx.db").exists()

    def test_env_var_selects_file(
        self, cli_runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        target = tmp_path / "env.db"
        monkeypatch.setenv("TODOFX_DATABASE__URL", f"sqlite+aiosqlite:///{target}")
        result = cli_runner.invoke(cli, ["create", "From env"])
        assert result.exit_code == 0
        assert target.is_file()

    def test_unopenable_database(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        result = cli_runner.invoke(cli, ["--db", f"sqlite:///{blocker}/sub/todos.db", "list"])
        assert result.exit_code == 1
        assert "Cannot open database" in result.output
