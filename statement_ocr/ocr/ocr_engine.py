# ocr/ocr_engine.py
from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np
import pandas as pd
import pytesseract

from statement_ocr.errors import EngineInitError
from statement_ocr.ocr.classes import TesseractSettings

logger = logging.getLogger(__name__)


def words_frame(data: dict) -> pd.DataFrame:
    """image_to_data DICT -> DataFrame of real words (conf != -1, non-blank)."""
    df = pd.DataFrame(data)
    if df.empty:
        return df
    df["conf"] = pd.to_numeric(df["conf"], errors="coerce")
    df["text"] = df["text"].astype(str).str.strip()
    df = df[(df["conf"] != -1) & (df["text"] != "") & (df["text"] != "nan")].copy()
    return df


def frame_to_lines(df: pd.DataFrame) -> List[str]:
    """Regroup words into text lines by (block, paragraph, line), each ordered by x."""
    if df.empty:
        return []
    lines = []
    for _, line_df in df.sort_values(["block_num", "par_num", "line_num", "left"]).groupby(
        ["block_num", "par_num", "line_num"], sort=False
    ):
        text = " ".join(line_df["text"])
        if text.strip():
            lines.append(text)
    return lines


class TesseractEngine:
    """
    Tesseract session: started lazily on first use, reused for every page,
    closed by the owner when the document is done.
    """

    def __init__(self, settings: Optional[TesseractSettings] = None):
        self.settings = settings or TesseractSettings()
        self._config: Optional[str] = None
        self.version: Optional[str] = None
        self.last_mean_conf: float = 0.0

    @property
    def started(self) -> bool:
        return self._config is not None

    def start(self) -> None:
        if self.started:
            return
        try:
            self.version = str(pytesseract.get_tesseract_version())
        except (pytesseract.TesseractNotFoundError, OSError) as exc:
            raise EngineInitError(f"Tesseract is not available: {exc}") from exc
        langs = self.settings.lang.split("+")
        try:
            available = set(pytesseract.get_languages(config=""))
        except pytesseract.TesseractError:
            available = set()
        missing = [l for l in langs if available and l not in available]
        if missing:
            raise EngineInitError(f"Tesseract language data missing: {', '.join(missing)}")
        self._config = self.settings.build_config()
        logger.info("Tesseract %s ready (config: %s)", self.version, self._config)

    def recognize(self, img: np.ndarray) -> str:
        self.start()
        data = pytesseract.image_to_data(
            img, lang=self.settings.lang, config=self._config, output_type=pytesseract.Output.DICT
        )
        df = words_frame(data)
        self.last_mean_conf = float(df["conf"].mean()) if not df.empty else 0.0
        lines = frame_to_lines(df)
        logger.debug("OCR: %d words, %d lines, mean conf %.1f", len(df), len(lines), self.last_mean_conf)
        return "\n".join(lines)

    def close(self) -> None:
        self._config = None
