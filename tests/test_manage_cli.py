from __future__ import annotations

from pathlib import Path

import pytest

from taskboard.tools.manage import main


@pytest.fixture()
def db_file(tmp_path: Path) -> str:
    return str(tmp_path / "cli.db")


def _run(capsys, db_file, *argv):
    code = main(["--db", db_file, *argv])
    out, err = capsys.readouterr()
    return code, out, err


@pytest.fixture()
def seeded(capsys, db_file):
    assert _run(capsys, db_file, "migrate")[0] == 0
    _run(capsys, db_file, "add-user", "--email", "ada@example.com", "--role", "admin", "--name", "Ada")
    _run(capsys, db_file, "add-user", "--email", "bob@example.com", "--name", "Bob")
    code, out, _ = _run(
        capsys, db_file, "add-task", "--as", "ada@example.com", "--title", "Ship it",
        "--start", "2026-01-05", "--assign", "2026-01-05", "--due", "2026-01-20",
        "--assignee", "bob@example.com",
    )
    assert code == 0
    return out.strip()


def test_migrate_then_status(capsys, db_file):
    code, out, _ = _run(capsys, db_file, "status")
    assert "No migrations applied." in out
    assert "0001_init.sql  pending" in out

    code, out, _ = _run(capsys, db_file, "migrate")
    assert code == 0
    assert "0001_init.sql" in out

    code, out, _ = _run(capsys, db_file, "migrate")
    assert "No pending migrations." in out

    code, out, _ = _run(capsys, db_file, "status")
    assert out.startswith("0001_init.sql")


def test_board_lists_columns(capsys, db_file, seeded):
    code, out, _ = _run(capsys, db_file, "board", "--as", "bob@example.com")
    assert code == 0
    assert "== To Do (1)" in out
    assert "== Done (0)" in out
    assert f"{seeded}  [medium] Ship it  @Bob  due 2026-01-20" in out


def test_move_to_done_prints_delivery(capsys, db_file, seeded):
    code, out, _ = _run(capsys, db_file, "move", seeded, "done", "--as", "ada@example.com")
    assert code == 0
    assert f"{seeded}  done  delivered " in out
    assert "delivered -" not in out


def test_member_may_note_but_not_move(capsys, db_file, seeded):
    code, out, _ = _run(capsys, db_file, "note", seeded, "checked", "--as", "bob@example.com")
    assert code == 0
    assert out.strip().endswith("note: checked")

    code, _, err = _run(capsys, db_file, "move", seeded, "done", "--as", "bob@example.com")
    assert code == 1
    assert "error 403" in err


def test_unknown_user_is_unauthenticated(capsys, db_file, seeded):
    code, _, err = _run(capsys, db_file, "board", "--as", "mallory@example.com")
    assert code == 1
    assert "error 401" in err


def test_duplicate_user_is_reported(capsys, db_file, seeded):
    code, _, err = _run(capsys, db_file, "add-user", "--email", "bob@example.com")
    assert code == 1
    assert "already registered" in err
