# utils.py
from __future__ import annotations

import hashlib
import logging
import os
import re
import shutil
import stat
import time
import unicodedata
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from statement_ocr.errors import HashingError
from statement_ocr.lang import MONTHS_MAP
from statement_ocr.models import StatementPeriod

logger = logging.getLogger(__name__)

DEFAULT_MAX_ABS_AMOUNT = 100_000.0


def sha256_bytes(content: bytes) -> str:
    """Hex SHA-256 of the raw document bytes. Equality key only."""
    if not isinstance(content, (bytes, bytearray, memoryview)):
        raise HashingError(f"Cannot hash {type(content).__name__}; expected bytes")
    return hashlib.sha256(bytes(content)).hexdigest()


def strip_accents(s: str) -> str:
    return "".join(c for c in unicodedata.normalize("NFD", s)
                   if unicodedata.category(c) != "Mn")


# ----------------------------
# Amounts
# ----------------------------
_OCR_DIGIT_FIXES = {
    "S": "5", "B": "8", "I": "1", "l": "1", "Z": "2",
    "O": "0", "o": "0", "k": "0",
}
# a confusable letter only counts when it touches a digit or a separator
RE_CONFUSABLE = re.compile(r"(?<=[\d.,])[SBIlZOok]|[SBIlZOok](?=[\d.,])")
RE_CURRENCY_NOISE = re.compile(r"[$€£¥\s]|USD|EUR|GBP")


def _fix_ocr_digits(s: str) -> str:
    # "SO0" needs two passes: O is fixed first, then S sees a digit
    for _ in range(len(s)):
        fixed = RE_CONFUSABLE.sub(lambda m: _OCR_DIGIT_FIXES[m.group(0)], s)
        if fixed == s:
            break
        s = fixed
    return s


def _normalise_separators(s: str) -> str:
    """
    Decide which of '.' and ',' is the decimal point.
    Returns a string where the only remaining '.' (if any) is decimal,
    except for dot-only input which is left for the caller.
    """
    has_dot, has_comma = "." in s, "," in s

    if has_dot and has_comma:
        last = max(s.rfind("."), s.rfind(","))
        tail = s[last + 1:]
        if 1 <= len(tail) <= 2 and tail.isdigit():
            return s[:last].replace(".", "").replace(",", "") + "." + tail
        return s.replace(",", "")

    if has_comma:
        last = s.rfind(",")
        tail = s[last + 1:]
        if 1 <= len(tail) <= 2 and tail.isdigit():
            return s[:last].replace(",", "") + "." + tail
        return s.replace(",", "")

    return s


def parse_currency(value: str, max_abs: float = DEFAULT_MAX_ABS_AMOUNT) -> float:
    """
    Parse an OCR'd amount token into a signed float rounded to cents.

    Handles '(45.00)', '45.00-', '$1,234.56', '1.234,56', '1O0.00'.
    Never raises: unparseable or implausible values become 0.0 (logged).
    """
    if not value or not isinstance(value, str) or not value.strip():
        logger.warning("Empty amount token %r; using 0", value)
        return 0.0

    s = value.strip()
    negative = False

    # (a) accounting negatives
    if s.startswith("(") and s.endswith(")"):
        negative = True
        s = s[1:-1].strip()

    # (b) dashes and OCR confusions
    s = s.replace("–", "-").replace("—", "-").replace("−", "-")
    s = _fix_ocr_digits(s)

    # (c) currency symbols / spaces
    s = RE_CURRENCY_NOISE.sub("", s)

    # (d) sign, leading or trailing
    if s.endswith("-"):
        negative = True
        s = s.rstrip("-")
    if s.startswith("-"):
        negative = True
        s = s.lstrip("-")
    s = s.lstrip("+")

    # (e) decimal vs thousands
    s = _normalise_separators(s)

    # (f) keep digits and the last dot only
    s = re.sub(r"[^\d.]", "", s)
    if s.count(".") > 1:
        head, _, tail = s.rpartition(".")
        s = head.replace(".", "") + "." + tail

    # (g)
    try:
        amount = float(s)
    except ValueError:
        logger.warning("Unparseable amount %r; using 0", value)
        return 0.0

    if negative:
        amount = -amount

    # (h)
    if abs(amount) > max_abs:
        logger.warning("Amount %r out of plausible range (±%s); using 0", value, max_abs)
        return 0.0

    return round(amount, 2)


# ----------------------------
# Dates
# ----------------------------
@dataclass(frozen=True)
class DateParts:
    """A parsed date token before year resolution."""
    month: int
    day: int
    year: Optional[int] = None
    two_digit_year: bool = False

    @property
    def year_is_ambiguous(self) -> bool:
        return self.year is None or self.two_digit_year


def _valid(y: int, m: int, d: int) -> bool:
    try:
        date(y, m, d)
        return True
    except ValueError:
        return False


def _month_from_name(name: str) -> Optional[int]:
    return MONTHS_MAP.get(strip_accents(name).lower().rstrip("."))


def _from_ymd(m: re.Match) -> Optional[DateParts]:
    y, mo, d = (int(g) for g in m.groups())
    return DateParts(mo, d, y) if _valid(y, mo, d) else None


def _from_mdy(m: re.Match) -> Optional[DateParts]:
    mo, d, y = (int(g) for g in m.groups())
    return DateParts(mo, d, y) if _valid(y, mo, d) else None


def _from_mdyy(m: re.Match) -> Optional[DateParts]:
    mo, d, yy = (int(g) for g in m.groups())
    y = 2000 + yy
    return DateParts(mo, d, y, two_digit_year=True) if _valid(y, mo, d) else None


def _from_month_day_year(m: re.Match) -> Optional[DateParts]:
    month_str, d, y = m.groups()
    mo = _month_from_name(month_str)
    if not mo or not _valid(int(y), mo, int(d)):
        return None
    return DateParts(mo, int(d), int(y))


def _from_day_month_year(m: re.Match) -> Optional[DateParts]:
    d, month_str, y = m.groups()
    mo = _month_from_name(month_str)
    if not mo or not _valid(int(y), mo, int(d)):
        return None
    return DateParts(mo, int(d), int(y))


def _from_month_day(m: re.Match) -> Optional[DateParts]:
    mo, d = (int(g) for g in m.groups())
    # 2000 is a leap year, so 02/29 survives until a real year is known
    return DateParts(mo, d) if _valid(2000, mo, d) else None


# Tried in order; first pattern whose extractor returns a value wins.
DATE_FORMATS: List[Tuple[re.Pattern, Callable[[re.Match], Optional[DateParts]]]] = [
    (re.compile(r"^(\d{4})[-/. ](\d{1,2})[-/. ](\d{1,2})$"), _from_ymd),
    (re.compile(r"^(\d{1,2})[-/. ](\d{1,2})[-/. ](\d{4})$"), _from_mdy),
    (re.compile(r"^(\d{1,2})[-/. ](\d{1,2})[-/. ](\d{2})$"), _from_mdyy),
    (re.compile(r"^([^\W\d_]{3,}\.?)\s+(\d{1,2}),?\s+(\d{4})$"), _from_month_day_year),
    (re.compile(r"^(\d{1,2})\s+([^\W\d_]{3,}\.?),?\s+(\d{4})$"), _from_day_month_year),
    (re.compile(r"^(\d{1,2})[-/](\d{1,2})$"), _from_month_day),
]


def parse_date_parts(date_str: str) -> Optional[DateParts]:
    if not date_str or not isinstance(date_str, str):
        return None
    s = re.sub(r"\s+", " ", date_str.strip())
    for regex, extract in DATE_FORMATS:
        m = regex.match(s)
        if not m:
            continue
        parts = extract(m)
        if parts:
            return parts
    return None


def parse_date(date_str: str, reference: Optional[date] = None) -> Optional[date]:
    """
    Parse '2025-01-15', '01/15/2025', '01/15/25', 'Jan 15, 2025',
    '15 janvier 2025' or '01/15' into a date. A missing year takes the
    reference year (today by default). Returns None if not recognised.
    """
    parts = parse_date_parts(date_str)
    if parts is None:
        return None
    year = parts.year if parts.year is not None else (reference or date.today()).year
    try:
        return date(year, parts.month, parts.day)
    except ValueError:
        return None


def resolve_date(parts: DateParts, reference: date,
                 period: Optional[StatementPeriod] = None,
                 context_year: Optional[int] = None) -> Optional[date]:
    """
    Turn DateParts into a date, picking the year for bare or two-digit tokens.

    Period known: single-year period -> that year; year-spanning period ->
    end year if month <= end month, else start year.
    No period: month-header context year if any, otherwise the token's year
    (or the reference year), pulled back one year if that lands in the future.
    Returns None only for impossible dates such as Feb 29 in a common year.
    """
    if not parts.year_is_ambiguous:
        return date(parts.year, parts.month, parts.day)

    if period is not None:
        if not period.spans_year_boundary:
            year = period.end_date.year
        elif parts.month <= period.end_date.month:
            year = period.end_date.year
        else:
            year = period.start_date.year
        if not _valid(year, parts.month, parts.day):
            logger.debug("Dropping impossible date %02d/%02d/%d", parts.month, parts.day, year)
            return None
        resolved = date(year, parts.month, parts.day)
        if not period.contains(resolved):
            logger.debug("Date %s falls outside statement period %s..%s",
                         resolved, period.start_date, period.end_date)
        return resolved

    if context_year is not None:
        year = context_year
        pull_back = False
    else:
        year = parts.year if parts.year is not None else reference.year
        pull_back = True

    if not _valid(year, parts.month, parts.day):
        return None
    resolved = date(year, parts.month, parts.day)
    if pull_back and resolved > reference and _valid(year - 1, parts.month, parts.day):
        resolved = date(year - 1, parts.month, parts.day)
    return resolved


RE_FILENAME_DATE = re.compile(r"^(\d{4})-?(\d{2})-?(\d{2})(?!\d)")


def date_from_filename(name: str) -> Optional[date]:
    """'20250131_chase.pdf' / '2025-01-31 statement.pdf' -> date(2025, 1, 31)."""
    if not name:
        return None
    m = RE_FILENAME_DATE.match(Path(name).name)
    if not m:
        return None
    y, mo, d = (int(g) for g in m.groups())
    return date(y, mo, d) if _valid(y, mo, d) else None


# ----------------------------
# Filesystem
# ----------------------------
def nuke_dir(path: Path, tries: int = 3, delay: float = 0.25) -> None:
    """
    Remove a directory tree, tolerating Windows file-lock weirdness.
    Retries a few times after chmod-ing read-only files.
    """
    path = Path(path)
    if not path.exists():
        return

    def _on_rm_error(func, p, exc_info):
        os.chmod(p, stat.S_IWRITE)
        func(p)

    for i in range(tries):
        try:
            shutil.rmtree(path, onerror=_on_rm_error)
            return
        except OSError as exc:
            logger.debug("rmtree %s failed (attempt %d/%d): %s", path, i + 1, tries, exc)
            time.sleep(delay)
    shutil.rmtree(path, ignore_errors=True)
