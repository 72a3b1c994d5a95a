# extract/lines.py
from __future__ import annotations

import logging
import re
from typing import Iterable, List, NamedTuple, Optional, Union

from statement_ocr.lang import MONTH_NAME_ALT, MONTHS_MAP
from statement_ocr.utils import strip_accents

logger = logging.getLogger(__name__)

# "Jan 2025", "JANUARY, 2025", "décembre 2024" on a line of its own
RE_MONTH_HEADER = re.compile(rf"^\s*({MONTH_NAME_ALT})\.?,?\s+(\d{{4}})\s*$", re.I)

# date  description  amount  [balance]
# amount: one token, may carry OCR letters, parens, $ and a sign; always ends in 2 decimals
_AMOUNT = r"\(?[-+]?\$?[\dSBIlZOok.,]*[.,][\dOo]{2}\)?-?"
RE_TRANSACTION_LINE = re.compile(
    r"^\s*(?P<date>\d{1,2}[/-]\d{1,2}(?:[/-]\d{2,4})?)\s+"
    r"(?P<description>.+?)\s+"
    rf"(?P<amount>{_AMOUNT})"
    rf"(?:\s+(?P<balance>{_AMOUNT}))?"
    r"\s*$"
)

# --- statement summary block ---
RE_NEW_BALANCE = re.compile(r"New\s*Balance[:\s]*\$?\s*(\d(?:[\d,.]*\d)?)", re.I)
RE_DUE_DATE = re.compile(r"(?:Payment\s*Due\s*Date|Due\s*Date)[:\s]*(\d{1,2}/\d{1,2}/\d{2,4})", re.I)
RE_ACCOUNT_SUFFIX = re.compile(r"(?:Account\s*Ending(?:\s*in)?|ending\s*in)[:\s]*([\d-]*\d)", re.I)


class CandidateLine(NamedTuple):
    date: str
    description: str
    amount: str
    context_year: Optional[int] = None   # from the last month header above the line
    line_no: int = 0


class StatementSummary(NamedTuple):
    balance: Optional[str] = None
    due_date: Optional[str] = None
    account_suffix: Optional[str] = None


def _split(text_or_lines: Union[str, Iterable[str]]) -> List[str]:
    if isinstance(text_or_lines, str):
        return text_or_lines.splitlines()
    return list(text_or_lines)


def extract_transaction_lines(text_or_lines: Union[str, Iterable[str]]) -> List[CandidateLine]:
    """
    Scan OCR lines for (date, description, amount) rows.
    Month headers update the context year for rows below them; anything
    else that doesn't look like a row is skipped.
    """
    out: List[CandidateLine] = []
    context_year: Optional[int] = None

    for i, raw in enumerate(_split(text_or_lines), start=1):
        line = raw.strip()
        if not line:
            continue

        hm = RE_MONTH_HEADER.match(strip_accents(line))
        if hm and MONTHS_MAP.get(hm.group(1).lower()):
            context_year = int(hm.group(2))
            continue

        m = RE_TRANSACTION_LINE.match(line)
        if not m:
            logger.debug("Skipping line %d: %r", i, line)
            continue

        out.append(CandidateLine(
            date=m.group("date"),
            description=m.group("description").strip(),
            amount=m.group("amount"),
            context_year=context_year,
            line_no=i,
        ))
    return out


def extract_summary(text: str) -> StatementSummary:
    """New Balance / Payment Due Date / account suffix, first occurrence of each."""
    if not text:
        return StatementSummary()
    bal = RE_NEW_BALANCE.search(text)
    due = RE_DUE_DATE.search(text)
    acct = RE_ACCOUNT_SUFFIX.search(text)
    return StatementSummary(
        balance=bal.group(1) if bal else None,
        due_date=due.group(1) if due else None,
        account_suffix=acct.group(1).replace("-", "") if acct else None,
    )
