"""Tests for the command-line entry points against a local SQLite file."""

import sys

import pytest

from ingestion.schema import OTC_TABLE, ensure_otc_schema
from otcbackend import create_service
from projects.schema import PROJECTS_TABLE, ensure_projects_schema
from scripts import calculation_method, delete_otc_order, export_otc, import_otc

HEADER = "SUCCURSALE;OPERATEUR;DATE CDE;NUM CDE;REFERENCE;DESIGNATION;QTE CDE"
ROWS = [
    "GDC;john;24/06/2024;CMD001;REF1;Part A;10",
    "GDC;john;25/06/2024;CMD002;REF2;Part B;4",
]


@pytest.fixture
def db_url(tmp_path, monkeypatch):
    for name in ("OTC_DB_URL", "SUPABASE_URL", "SUPABASE_KEY", "OTC_BATCH_PAUSE"):
        monkeypatch.delenv(name, raising=False)
    return f"sqlite:///{tmp_path / 'otc.db'}"


@pytest.fixture
def csv_file(tmp_path):
    path = tmp_path / "otc.csv"
    path.write_text("\n".join([HEADER, *ROWS]) + "\n", encoding="utf-8")
    return path


def run(monkeypatch, module, *args):
    monkeypatch.setattr(sys, "argv", [module.__name__, *args])
    module.main()


def read_table(db_url, table, order_by="id"):
    service = create_service(db_url)
    service.connect()
    try:
        return service.select(table, order_by=order_by)
    finally:
        service.close()


def seed_project(db_url):
    service = create_service(db_url)
    service.connect()
    try:
        ensure_otc_schema(service)
        ensure_projects_schema(service)
        service.insert(PROJECTS_TABLE, [{"id": "p1", "name": "Airport"}])
    finally:
        service.close()


class TestImportCommand:
    def test_import_into_fresh_database(self, monkeypatch, db_url, csv_file):
        run(monkeypatch, import_otc, "--db-url", db_url, "--file", str(csv_file), "--pause", "0")

        rows = read_table(db_url, OTC_TABLE)
        assert [r["num_cde"] for r in rows] == ["CMD001", "CMD002"]
        assert [r["id"] for r in rows] == [1, 2]

    def test_reimport_restarts_identity(self, monkeypatch, db_url, csv_file):
        for _ in range(2):
            run(monkeypatch, import_otc, "--db-url", db_url, "--file", str(csv_file), "--pause", "0")

        rows = read_table(db_url, OTC_TABLE)
        assert [r["id"] for r in rows] == [1, 2]

    def test_missing_headers_exit_code(self, monkeypatch, db_url, tmp_path):
        bad = tmp_path / "bad.csv"
        bad.write_text("SUCCURSALE;OPERATEUR\nGDC;john\n", encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            run(monkeypatch, import_otc, "--db-url", db_url, "--file", str(bad))
        assert exc_info.value.code == 1


class TestCalculationMethodCommand:
    def test_switch(self, monkeypatch, db_url):
        seed_project(db_url)
        run(monkeypatch, calculation_method, "--db-url", db_url, "switch", "p1", "otc_based")

        [project] = read_table(db_url, PROJECTS_TABLE)
        assert project["calculation_method"] == "otc_based"

    def test_refresh_on_fresh_database(self, monkeypatch, db_url):
        run(monkeypatch, calculation_method, "--db-url", db_url, "refresh")

    def test_list(self, monkeypatch, db_url, capsys):
        seed_project(db_url)
        run(monkeypatch, calculation_method, "--db-url", db_url, "list")
        assert "Airport" in capsys.readouterr().out


class TestDeleteCommand:
    def test_delete_with_yes(self, monkeypatch, db_url, csv_file):
        run(monkeypatch, import_otc, "--db-url", db_url, "--file", str(csv_file), "--pause", "0")
        run(monkeypatch, delete_otc_order, "--db-url", db_url, "--id", "1", "--yes")

        assert [r["num_cde"] for r in read_table(db_url, OTC_TABLE)] == ["CMD002"]

    def test_declined_confirmation_keeps_order(self, monkeypatch, db_url, csv_file):
        run(monkeypatch, import_otc, "--db-url", db_url, "--file", str(csv_file), "--pause", "0")
        monkeypatch.setattr("builtins.input", lambda _prompt: "n")
        run(monkeypatch, delete_otc_order, "--db-url", db_url, "--id", "1")

        assert len(read_table(db_url, OTC_TABLE)) == 2

    def test_unknown_id_exit_code(self, monkeypatch, db_url):
        with pytest.raises(SystemExit) as exc_info:
            run(monkeypatch, delete_otc_order, "--db-url", db_url, "--id", "99", "--yes")
        assert exc_info.value.code == 1


class TestExportCommand:
    def test_export_filtered(self, monkeypatch, db_url, csv_file, tmp_path):
        run(monkeypatch, import_otc, "--db-url", db_url, "--file", str(csv_file), "--pause", "0")
        out = tmp_path / "export.csv"
        run(monkeypatch, export_otc, "--db-url", db_url, "--out", str(out), "--search", "CMD002")

        lines = out.read_text(encoding="utf-8").splitlines()
        assert lines[0].startswith("SUCCURSALE,OPERATEUR")
        assert len(lines) == 2
        assert "CMD002" in lines[1]
