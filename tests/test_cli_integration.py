"""Integration-style tests that exercise the CLI entrypoint."""
import os
import sys
from pathlib import Path

import pytest
from openpyxl import load_workbook

from bizrecords.core.models import SHEET_NAMES
from bizrecords.records import save_customer, save_product
from bizrecords.store import RecordStore

from conftest import JAN, JUN, make_customer, make_product, make_workbook


@pytest.fixture(autouse=True)
def _reset_argv(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure sys.argv starts clean for each CLI invocation."""

    monkeypatch.setattr(sys, "argv", ["bizrecords.cli"])


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    path = tmp_path / "records.db"
    with RecordStore(path) as store:
        save_product(store, make_product("p1"))
        save_customer(store, make_customer("c1"))
    return path


def test_cli_export_writes_workbook(run_cli, db_path: Path, tmp_path: Path, capsys) -> None:
    output = tmp_path / "export" / "records.xlsx"

    run_cli(["--db", str(db_path), "export", "--output", str(output)])

    workbook = load_workbook(output)
    assert workbook.sheetnames == list(SHEET_NAMES)
    assert workbook["products"].max_row == 2
    assert f"Wrote {output}" in capsys.readouterr().out


def test_cli_import_merges_and_reports(run_cli, db_path: Path, tmp_path: Path, capsys) -> None:
    document = tmp_path / "incoming.xlsx"
    document.write_bytes(
        make_workbook(
            {
                "customers": [
                    ["id", "name", "createdAt", "updatedAt"],
                    ["c1", "Renamed", JAN, JUN],
                    ["c2", "Broken", JAN, "soon"],
                ]
            }
        )
    )

    run_cli(["--db", str(db_path), "import", str(document)])

    out = capsys.readouterr().out
    assert "Import succeeded: 1 records written, 1 rows skipped" in out
    assert "customers row 3 (c2)" in out
    with RecordStore(db_path) as store:
        assert store.get("customers", "c1").name == "Renamed"


def test_cli_status_reports_import_count(run_cli, db_path: Path, tmp_path: Path, capsys) -> None:
    output = tmp_path / "records.xlsx"
    run_cli(["--db", str(db_path), "export", "--output", str(output)])
    run_cli(["--db", str(db_path), "import", str(output)])
    capsys.readouterr()

    run_cli(["--db", str(db_path), "status"])

    assert "Imports: 1" in capsys.readouterr().out


def test_cli_status_before_any_import(run_cli, db_path: Path, capsys) -> None:
    run_cli(["--db", str(db_path), "status"])
    assert "Imports: 0 (last: never)" in capsys.readouterr().out


def test_cli_import_of_unreadable_file_exits_nonzero(run_cli, db_path: Path, tmp_path: Path) -> None:
    bad = tmp_path / "bad.xlsx"
    bad.write_bytes(b"not a workbook")

    with pytest.raises(SystemExit) as excinfo:
        run_cli(["--db", str(db_path), "import", str(bad)])

    assert excinfo.value.code == 1


def test_cli_uses_database_from_env_file(run_cli, db_path: Path, tmp_path: Path, monkeypatch, capsys) -> None:
    env_file = tmp_path / "bizrecords.env"
    env_file.write_text(f"# local settings\nBIZRECORDS_DB_PATH={db_path}\n", encoding="utf-8")
    # load_env_file writes straight into os.environ; keep that local to the test.
    monkeypatch.setattr(os, "environ", dict(os.environ))
    monkeypatch.setenv("BIZRECORDS_ENV_FILE", str(env_file))
    output = tmp_path / "from-env.xlsx"

    run_cli(["export", "--output", str(output)])

    assert load_workbook(output)["customers"].max_row == 2
