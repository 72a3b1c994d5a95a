# ocr/ocr_dump.py
import json
import logging
from pathlib import Path
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


def save_ocr_text_dump(pages: List[str], out_path: Path) -> Path:
    """One '=== Page N ===' block per page, raw OCR lines underneath."""
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        for i, text in enumerate(pages, start=1):
            f.write(f"\n=== Page {i} ===\n")
            f.write((text or "") + "\n")
    logger.info("OCR text dump saved to %s", out_path)
    return out_path


def save_structured_json(payload: Dict[str, Any], out_path: Path) -> Path:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
    logger.info("Structured output saved to %s", out_path)
    return out_path
