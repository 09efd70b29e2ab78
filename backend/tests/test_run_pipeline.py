from __future__ import annotations
import json

import run_pipeline
from app.core.errors import SourceFetchError
from app.models.zipcode import UsZipcode


def _init_db_must_not_run():
    raise AssertionError("init_db ran without configuration")


def test_missing_configuration_exits_before_running(monkeypatch):
    monkeypatch.setattr(run_pipeline.settings, "algolia_api_key", "")
    monkeypatch.setattr(run_pipeline, "init_db", _init_db_must_not_run)

    assert run_pipeline.main(["--batch-size", "5"]) == 2


def test_single_run_prints_result(monkeypatch, make_orchestrator, capsys):
    orchestrator = make_orchestrator(upstream=["J1", "J2", "J3"])
    monkeypatch.setattr(run_pipeline, "validate_settings", lambda cfg: None)
    monkeypatch.setattr(run_pipeline, "init_db", lambda: None)
    monkeypatch.setattr(run_pipeline, "build_orchestrator", lambda: orchestrator)

    assert run_pipeline.main(["--batch-size", "2"]) == 0

    result = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert result["total_jobs"] == 2
    assert result["new_jobs"] == 2


def test_failed_run_exits_non_zero(monkeypatch, make_orchestrator):
    orchestrator = make_orchestrator(source_error=SourceFetchError("search index returned 500 on page 0"))
    monkeypatch.setattr(run_pipeline, "validate_settings", lambda cfg: None)
    monkeypatch.setattr(run_pipeline, "init_db", lambda: None)
    monkeypatch.setattr(run_pipeline, "build_orchestrator", lambda: orchestrator)

    assert run_pipeline.main([]) == 1


def test_load_zipcodes_upserts_file_and_exits(monkeypatch, session_factory, tmp_path, capsys):
    path = tmp_path / "zipcodes.csv"
    path.write_text(
        "postal_code,city,state,state_abbrev,latitude,longitude\n77494,Katy,Texas,TX,29.7858,-95.8245\n",
        encoding="utf-8",
    )
    monkeypatch.setattr(run_pipeline.settings, "database_url", "sqlite+pysqlite:///:memory:")
    monkeypatch.setattr(run_pipeline, "init_db", lambda: None)
    monkeypatch.setattr(run_pipeline, "SessionLocal", session_factory)
    monkeypatch.setattr(run_pipeline, "build_orchestrator", _init_db_must_not_run)

    assert run_pipeline.main(["--load-zipcodes", str(path)]) == 0
    assert run_pipeline.main(["--load-zipcodes", str(path)]) == 0

    lines = capsys.readouterr().out.strip().splitlines()
    assert json.loads(lines[0])["inserted"] == 1
    assert json.loads(lines[-1]) == {"path": str(path), "inserted": 0, "updated": 1}
    with session_factory() as db:
        assert db.query(UsZipcode).filter(UsZipcode.postal_code == "77494").count() == 1


def test_load_zipcodes_needs_database_url(monkeypatch):
    monkeypatch.setattr(run_pipeline.settings, "database_url", "")
    monkeypatch.setattr(run_pipeline, "init_db", _init_db_must_not_run)

    assert run_pipeline.main(["--load-zipcodes"]) == 2


def test_load_zipcodes_missing_file_exits_non_zero(monkeypatch, session_factory, tmp_path):
    monkeypatch.setattr(run_pipeline.settings, "database_url", "sqlite+pysqlite:///:memory:")
    monkeypatch.setattr(run_pipeline, "init_db", lambda: None)
    monkeypatch.setattr(run_pipeline, "SessionLocal", session_factory)

    assert run_pipeline.main(["--load-zipcodes", str(tmp_path / "absent.csv")]) == 1
