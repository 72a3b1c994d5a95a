# extract/period.py
from __future__ import annotations

import logging
import re
from datetime import date
from typing import List, Optional

from statement_ocr.models import StatementPeriod
from statement_ocr.utils import parse_date, parse_date_parts

logger = logging.getLogger(__name__)

# A date that carries its year, in any of the printed forms we parse.
_D = (
    r"(\d{1,2}[-/. ]\d{1,2}[-/. ]\d{2,4}"
    r"|\d{4}[-/. ]\d{1,2}[-/. ]\d{1,2}"
    r"|[^\W\d_]{3,9}\.?\s+\d{1,2},?\s+\d{4}"
    r"|\d{1,2}\s+[^\W\d_]{3,9}\.?,?\s+\d{4})"
)

# Ordered: first pattern whose two dates parse and are in order wins.
PERIOD_PATTERNS = [
    re.compile(
        r"(?:Statement Period|Billing Period|Account Period|Billing Cycle|Activity from)"
        rf"\s*[:\-]?\s*{_D}\s*(?:to|-|through|–)\s*{_D}", re.I),
    re.compile(rf"Statement Dates?\s*[:\-]?\s*{_D}\s*(?:to|-|through|–)\s*{_D}", re.I),
    re.compile(
        rf"(?:Opening Date|Statement open)\s*[:\-]?\s*{_D}\s*"
        rf"(?:Closing Date|Statement close)\s*[:\-]?\s*{_D}", re.I),
    re.compile(rf"\bfrom\s*{_D}\s*(?:to|through|–)\s*{_D}", re.I),
    re.compile(rf"activity between\s*{_D}\s*(?:and|&)\s*{_D}", re.I),
]

RE_ANY_DATE = re.compile(
    r"\b(?:\d{4}[-/.]\d{1,2}[-/.]\d{1,2}"
    r"|\d{1,2}[-/.]\d{1,2}[-/.]\d{2,4}"
    r"|[^\W\d_]{3,9}\.?\s\d{1,2},?\s\d{4}"
    r"|\d{1,2}\s[^\W\d_]{3,9}\.?\s\d{4})\b"
)


def _period_from_keywords(text: str) -> Optional[StatementPeriod]:
    for regex in PERIOD_PATTERNS:
        for m in regex.finditer(text):
            start, end = parse_date(m.group(1)), parse_date(m.group(2))
            if start and end and start <= end:
                logger.info("Statement period found: %s .. %s", start, end)
                return StatementPeriod(start, end)
    return None


def _dated_tokens(text: str) -> List[date]:
    """Every distinct date in the text that prints its own year."""
    found = set()
    for m in RE_ANY_DATE.finditer(text):
        parts = parse_date_parts(m.group(0))
        if parts is None or parts.year is None:
            continue
        found.add(date(parts.year, parts.month, parts.day))
    return sorted(found)


def detect_statement_period(text: str) -> Optional[StatementPeriod]:
    """
    Keyword-anchored phrases first ('Statement Period: 01/01/2025 to 01/31/2025',
    'Opening Date ... Closing Date ...', 'activity between ... and ...').
    Fallback: earliest..latest of all year-bearing dates in the text, when
    there are at least two distinct ones. Returns None when undetermined.
    """
    if not text:
        return None

    period = _period_from_keywords(text)
    if period:
        return period

    dates = _dated_tokens(text)
    if len(dates) >= 2 and dates[0] < dates[-1]:
        logger.info("Statement period inferred from %d dates: %s .. %s", len(dates), dates[0], dates[-1])
        return StatementPeriod(dates[0], dates[-1])

    logger.info("Statement period undetermined")
    return None
