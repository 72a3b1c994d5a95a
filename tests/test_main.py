import json
from datetime import date

import statement_ocr.main as cli
from conftest import FakeEngine, FakeRasterizer, PassThroughPreprocessor
from statement_ocr.pipeline import ExtractionSession, StatementPipeline


def _fake_pipeline(store, settings=None, rules=()):
    session = ExtractionSession(
        rasterizer=FakeRasterizer(), engine=FakeEngine(), preprocessor=PassThroughPreprocessor()
    )
    return StatementPipeline(store, session=session, settings=settings, rules=rules,
                             today=lambda: date(2025, 3, 1))


def test_cli_prints_summaries_and_writes_audit(tmp_path, monkeypatch, capsys, statement_bytes):
    monkeypatch.setattr(cli, "StatementPipeline", _fake_pipeline)
    pdf = tmp_path / "acme.pdf"
    pdf.write_bytes(statement_bytes)
    audit = tmp_path / "audit"
    audit.mkdir()
    (audit / "stale.txt").write_text("old", encoding="utf-8")
    store_path = tmp_path / "store.json"

    rc = cli.main([
        str(pdf), str(pdf), str(tmp_path / "missing.pdf"),
        "--store", str(store_path), "--audit", str(audit), "--clean",
    ])

    out = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert rc == 1
    assert out[0]["status"] == "completed"
    assert out[0]["transactions"] == 7
    assert out[0]["pages"] == 2
    assert out[0]["statement_period"] == {"start_date": "2024-12-01", "end_date": "2025-01-15"}
    assert out[1]["status"] == "duplicate"
    assert out[2] == {"file": str(tmp_path / "missing.pdf"), "error": "not_found"}

    assert not (audit / "stale.txt").exists()
    dump = (audit / "acme_ocr_dump.txt").read_text(encoding="utf-8")
    assert "=== Page 2 ===" in dump and "PAYROLL ACME CORP" in dump
    structured = json.loads((audit / "acme_structured.json").read_text(encoding="utf-8"))
    assert structured["document"]["status"] == "completed"
    assert len(structured["transactions"]) == 7

    stored = json.loads(store_path.read_text(encoding="utf-8"))
    assert len(stored["transactions"]) == 7


def test_cli_uses_custom_rules(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(cli, "StatementPipeline", _fake_pipeline)
    rules = tmp_path / "rules.json"
    rules.write_text(json.dumps([{"pattern": "lunch", "category": "Meals"}]), encoding="utf-8")
    pdf = tmp_path / "lunch.pdf"
    pdf.write_bytes(b"01/06 LUNCH PURCHASE 12.00")
    store_path = tmp_path / "store.json"

    assert cli.main([str(pdf), "--store", str(store_path), "--rules", str(rules)]) == 0
    stored = json.loads(store_path.read_text(encoding="utf-8"))
    (tx,) = stored["transactions"].values()
    assert tx["category"] == "Meals"
