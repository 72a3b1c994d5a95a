# classify.py
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from statement_ocr.constants import (
    ABBREVIATIONS,
    BOILERPLATE_PATTERNS,
    CATEGORY_RULES,
    CREDIT_CARD_PAYMENT,
    CREDIT_CARD_PHRASES,
    EXPENSE_KEYWORDS,
    INCOME_CATEGORY,
    INCOME_KEYWORDS,
    INVESTMENT_KEYWORDS,
    OTHER_EXPENSES,
    P2P_EXPENSE_WORDS,
    P2P_INCOME_WORDS,
    P2P_SERVICES,
    PHRASE_EXPANSIONS,
)
from statement_ocr.models import ExtractedTransaction, TransactionType

logger = logging.getLogger(__name__)

RE_ABBREVIATION = re.compile(r"\b(" + "|".join(sorted(ABBREVIATIONS, key=len, reverse=True)) + r")\b", re.I)
RE_DISALLOWED = re.compile(r"[^A-Za-z0-9\s\-&/.#]")
RE_SYMBOLS_ONLY = re.compile(r"^[\s\-&/.#]*$")

RE_CARD_REFERENCE = re.compile(r"\b(?:store card|credit card)\b", re.I)
RE_CARD_PAYMENT_WORD = re.compile(r"\b(?:ach pmt|ach payment|payment)\b", re.I)
RE_ACH_PAYMENT = re.compile(r"\bach (?:pmt|payment)\b", re.I)
RE_INSURANCE_PREMIUM = re.compile(r"\binsurance premium\b", re.I)


@lru_cache(maxsize=None)
def _word_re(keyword: str) -> re.Pattern:
    return re.compile(r"(?<![A-Za-z0-9])" + re.escape(keyword) + r"(?![A-Za-z0-9])", re.I)


def has_keyword(text: str, keywords: Iterable[str]) -> bool:
    """Whole-word, case-insensitive match of any keyword."""
    return any(_word_re(k).search(text) for k in keywords)


# ----------------------------
# Description cleanup
# ----------------------------
def clean_description(description: str) -> str:
    if not description:
        return ""
    s = description
    for regex in BOILERPLATE_PATTERNS:
        s = regex.sub(" ", s)
    for regex, replacement in PHRASE_EXPANSIONS:
        s = regex.sub(replacement, s)
    s = RE_ABBREVIATION.sub(lambda m: ABBREVIATIONS[m.group(1).upper()], s)
    s = RE_DISALLOWED.sub(" ", s)
    s = re.sub(r"\s+", " ", s).strip()
    if RE_SYMBOLS_ONLY.match(s):
        return ""
    return s


# ----------------------------
# Income vs expense
# ----------------------------
def classify_transaction(description: str, amount: float) -> TransactionType:
    """
    Negative amounts are expenses, full stop. Otherwise: P2P direction,
    investment movement, income keywords, expense keywords, then the sign.
    """
    if amount < 0:
        return TransactionType.EXPENSE

    text = description or ""

    if has_keyword(text, P2P_SERVICES):
        if has_keyword(text, P2P_INCOME_WORDS):
            return TransactionType.INCOME
        if has_keyword(text, P2P_EXPENSE_WORDS):
            return TransactionType.EXPENSE

    if has_keyword(text, INVESTMENT_KEYWORDS):
        return TransactionType.INCOME
    if has_keyword(text, INCOME_KEYWORDS):
        return TransactionType.INCOME
    if has_keyword(text, EXPENSE_KEYWORDS):
        return TransactionType.EXPENSE

    return TransactionType.INCOME if amount > 0 else TransactionType.EXPENSE


# ----------------------------
# Categories
# ----------------------------
MATCH_TYPES = ("contains", "startswith", "endswith", "regex")


@dataclass
class CategoryRule:
    pattern: str
    category: str
    match_type: str = "contains"
    priority: int = 0
    enabled: bool = True

    def matches(self, description: str) -> bool:
        text, pattern = description.lower(), self.pattern.lower()
        if self.match_type == "contains":
            return pattern in text
        if self.match_type == "startswith":
            return text.startswith(pattern)
        if self.match_type == "endswith":
            return text.endswith(pattern)
        if self.match_type == "regex":
            try:
                return re.search(self.pattern, description, re.I) is not None
            except re.error as exc:
                logger.error("Invalid category rule regex %r: %s", self.pattern, exc)
                return False
        return False


def load_category_rules(path: Path) -> List[CategoryRule]:
    """
    Read user rules from a JSON list of
    {"pattern", "category", "match_type", "priority", "enabled"}.
    A missing or malformed file yields no rules.
    """
    path = Path(path)
    if not path.exists():
        return []
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Failed to read category rules from %s: %s", path, exc)
        return []

    rules = []
    for item in raw if isinstance(raw, list) else []:
        if not isinstance(item, dict) or not item.get("pattern") or not item.get("category"):
            logger.warning("Ignoring malformed category rule: %r", item)
            continue
        match_type = str(item.get("match_type", "contains")).lower()
        if match_type not in MATCH_TYPES:
            logger.warning("Unknown match_type %r in rule %r", match_type, item["pattern"])
            continue
        rules.append(CategoryRule(
            pattern=str(item["pattern"]),
            category=str(item["category"]),
            match_type=match_type,
            priority=int(item.get("priority", 0)),
            enabled=bool(item.get("enabled", True)),
        ))
    return rules


def apply_category_rules(description: str, rules: Sequence[CategoryRule]) -> Optional[str]:
    active = sorted((r for r in rules if r.enabled), key=lambda r: r.priority, reverse=True)
    for rule in active:
        if rule.matches(description):
            logger.debug("Category rule %r matched %r -> %s", rule.pattern, description, rule.category)
            return rule.category
    return None


def expense_category(description: str) -> str:
    text = description or ""

    if has_keyword(text, CREDIT_CARD_PHRASES):
        return CREDIT_CARD_PAYMENT
    if RE_CARD_REFERENCE.search(text) and RE_CARD_PAYMENT_WORD.search(text):
        return CREDIT_CARD_PAYMENT
    lower = text.lower()
    if RE_ACH_PAYMENT.search(text) and "rent" not in lower and "utility" not in lower:
        return CREDIT_CARD_PAYMENT

    if RE_INSURANCE_PREMIUM.search(text):
        return "Insurance"

    for category, keywords in CATEGORY_RULES:
        if has_keyword(text, keywords):
            return category
    return OTHER_EXPENSES


def categorize(description: str, tx_type: TransactionType,
               rules: Sequence[CategoryRule] = ()) -> str:
    if tx_type == TransactionType.INCOME:
        return INCOME_CATEGORY
    return apply_category_rules(description, rules) or expense_category(description)


# ----------------------------
# Finalisation
# ----------------------------
def finalize_transaction(tx: ExtractedTransaction,
                         rules: Sequence[CategoryRule] = ()) -> ExtractedTransaction:
    """
    The one place where sign and type are reconciled:
    expense -> amount <= 0, income -> amount >= 0.
    Summary lines arrive typed and categorised; everything else is
    classified and categorised here.
    """
    if not tx.is_summary_line:
        tx.type = classify_transaction(tx.description, tx.amount)
        tx.category = categorize(tx.description, tx.type, rules)

    magnitude = abs(tx.amount)
    tx.amount = -magnitude if tx.type == TransactionType.EXPENSE and magnitude else magnitude
    return tx
