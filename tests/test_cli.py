import json
import logging

import pytest

from programs_sync import cli
from programs_sync.sync import SyncStats

from conftest import BIOLOGY_REQUIREMENTS, BIOLOGY_URL, detail_page


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("programs_sync.sync", logging.INFO, __file__, 1, "program synced", (), None)
    record.source_url = BIOLOGY_URL
    record.status = "updated"
    payload = json.loads(cli.JsonFormatter().format(record))
    assert payload["level"] == "INFO"
    assert payload["name"] == "programs_sync.sync"
    assert payload["msg"] == "program synced"
    assert payload["source_url"] == BIOLOGY_URL
    assert payload["status"] == "updated"
    assert "args" not in payload
    assert payload["ts"].endswith("+00:00")


def test_parse_command_prints_record(tmp_path, capsys):
    page = tmp_path / "biology.html"
    page.write_text(detail_page("Biology Major (BA)", BIOLOGY_REQUIREMENTS), encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["parse", "--html", str(page), "--url", BIOLOGY_URL, "--degree", "BA"])
    assert excinfo.value.code == 0
    record = json.loads(capsys.readouterr().out)
    assert record["kind"] == "major"
    assert record["name"] == "Biology"
    assert record["electiveLevelFloor"] == 300


def test_parse_command_missing_requirements(tmp_path):
    page = tmp_path / "empty.html"
    page.write_text("<h1>Nothing</h1>", encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["parse", "--html", str(page), "--url", BIOLOGY_URL])
    assert excinfo.value.code == 1


def test_sync_list_show_commands(tmp_path, capsys, monkeypatch):
    db_url = f"sqlite:///{tmp_path / 'cli.db'}"
    seen = {}

    def fake_sync(rate_delay_ms, session_factory=None, deactivate_missing=False):
        seen["rate_delay_ms"] = rate_delay_ms
        seen["deactivate_missing"] = deactivate_missing
        return SyncStats(fetched_programs=0)

    monkeypatch.setattr(cli, "sync_programs", fake_sync)
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--database-url", db_url, "sync", "--rate-delay-ms", "0", "--deactivate-missing"])
    assert excinfo.value.code == 0
    assert seen == {"rate_delay_ms": 0, "deactivate_missing": True}
    assert json.loads(capsys.readouterr().out)["fetchedPrograms"] == 0

    with pytest.raises(SystemExit):
        cli.main(["--database-url", db_url, "list"])
    assert json.loads(capsys.readouterr().out) == []

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--database-url", db_url, "show", "1"])
    assert excinfo.value.code == 1
