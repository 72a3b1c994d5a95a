# main.py
from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from statement_ocr.classify import load_category_rules
from statement_ocr.config import load_settings
from statement_ocr.errors import StatementOcrError
from statement_ocr.logging_config import configure_logging
from statement_ocr.ocr.ocr_dump import save_ocr_text_dump, save_structured_json
from statement_ocr.pipeline import DocumentRun, StatementPipeline
from statement_ocr.store import JsonFileStore
from statement_ocr.utils import nuke_dir


def _summary(path: Path, run: DocumentRun) -> Dict[str, Any]:
    doc = run.document
    period = doc.statement_period if doc else None
    return {
        "file": str(path),
        "document_id": doc.id if doc else None,
        "status": "duplicate" if run.duplicate else (doc.status.value if doc else None),
        "pages": len(run.pages),
        "statement_period": period.to_dict() if period else None,
        "transactions": len(run.transactions),
    }


def _write_audit(audit_dir: Path, path: Path, run: DocumentRun) -> None:
    save_ocr_text_dump(run.pages, audit_dir / (path.stem + "_ocr_dump.txt"))
    save_structured_json(
        {
            "document": run.document.to_dict() if run.document else None,
            "transactions": [t.to_dict() for t in run.transactions],
        },
        audit_dir / (path.stem + "_structured.json"),
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="OCR bank/credit-card statement PDFs into transactions")
    parser.add_argument("paths", nargs="+", help="PDF file paths")
    parser.add_argument("--store", default="results/transactions.json", help="JSON store file")
    parser.add_argument("--rules", default=None, help="JSON file with custom category rules")
    parser.add_argument("--audit", default=None, help="Write OCR dump + structured JSON per file here")
    parser.add_argument("--clean", action="store_true", help="Wipe the audit directory first")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING…")
    args = parser.parse_args(argv)

    settings = load_settings()
    configure_logging(args.log_level or settings.log_level)

    audit_dir = Path(args.audit) if args.audit else None
    if audit_dir and args.clean:
        nuke_dir(audit_dir)

    rules = load_category_rules(Path(args.rules)) if args.rules else []
    pipeline = StatementPipeline(JsonFileStore(Path(args.store)), settings=settings, rules=rules)

    failures = 0
    for raw_path in args.paths:
        path = Path(raw_path)
        if not path.exists():
            print(json.dumps({"file": raw_path, "error": "not_found"}))
            failures += 1
            continue
        try:
            run = pipeline.run_document(path.read_bytes(), path.name)
        except (StatementOcrError, OSError) as e:
            print(json.dumps({"file": raw_path, "error": str(e)}))
            failures += 1
            continue
        if audit_dir and not run.duplicate:
            _write_audit(audit_dir, path, run)
        print(json.dumps(_summary(path, run), ensure_ascii=False))

    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())
