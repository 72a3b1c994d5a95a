# config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Optional

from statement_ocr.ocr.classes import OcrProfile
from statement_ocr.ocr.model_settings import DEFAULT_PROFILE, PROFILES


def getenv_str(name: str, default: Optional[str] = None) -> str:
    v = os.getenv(name)
    return v if v is not None else default


def getenv_int(name: str, default: int) -> int:
    v = os.getenv(name)
    try:
        return int(v) if v is not None else default
    except ValueError:
        return default


def getenv_float(name: str, default: float) -> float:
    v = os.getenv(name)
    try:
        return float(v) if v is not None else default
    except ValueError:
        return default


def getenv_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class PipelineSettings:
    max_abs_amount: float = 100_000.0
    similarity_threshold: float = 0.8
    summary_max_amount: float = 50_000.0
    preprocess_enabled: bool = True
    profile: OcrProfile = field(default_factory=lambda: DEFAULT_PROFILE)
    log_level: str = "INFO"


def load_settings() -> PipelineSettings:
    """Defaults overlaid with STMT_OCR_* environment variables. Bad values keep the default."""
    base = PipelineSettings()

    profile = PROFILES.get(getenv_str("STMT_OCR_PROFILE", base.profile.name).upper(), base.profile)
    mode = getenv_str("STMT_OCR_MODE", profile.preprocess.mode).lower()
    if mode not in {"basic", "enhanced"}:
        mode = profile.preprocess.mode
    profile = replace(
        profile,
        preprocess=replace(
            profile.preprocess,
            mode=mode,
            dpi=getenv_int("STMT_OCR_DPI", profile.preprocess.dpi),
        ),
        tesseract=replace(
            profile.tesseract,
            lang=getenv_str("STMT_OCR_LANG", profile.tesseract.lang),
        ),
    )

    return PipelineSettings(
        max_abs_amount=getenv_float("STMT_OCR_MAX_AMOUNT", base.max_abs_amount),
        similarity_threshold=getenv_float("STMT_OCR_SIMILARITY", base.similarity_threshold),
        summary_max_amount=getenv_float("STMT_OCR_SUMMARY_MAX", base.summary_max_amount),
        preprocess_enabled=getenv_bool("STMT_OCR_PREPROCESS", base.preprocess_enabled),
        profile=profile,
        log_level=getenv_str("STMT_OCR_LOG_LEVEL", base.log_level),
    )
