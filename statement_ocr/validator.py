# validator.py
# Fuzzy duplicate check of candidate transactions against stored ones.
from __future__ import annotations

import logging
import math
from typing import Iterable, List, Sequence

from rapidfuzz.distance import Levenshtein

from statement_ocr.models import ExtractedTransaction

logger = logging.getLogger(__name__)

ABS_TOL = 0.005   # amounts are cents; anything closer is the same amount
DEFAULT_SIMILARITY = 0.8


# ----------------------------
# Small helpers
# ----------------------------
def description_similarity(a: str, b: str) -> float:
    """1 - levenshtein / max(len), case-insensitive. Two empty strings are identical."""
    a, b = (a or "").lower(), (b or "").lower()
    if not a and not b:
        return 1.0
    return Levenshtein.normalized_similarity(a, b)


def _same_amount(a: float, b: float) -> bool:
    # the store owns its sign convention; compare magnitudes
    return math.isclose(round(abs(a), 2), round(abs(b), 2), abs_tol=ABS_TOL)


def is_duplicate(candidate: ExtractedTransaction,
                 existing: Iterable[ExtractedTransaction],
                 threshold: float = DEFAULT_SIMILARITY) -> bool:
    for tx in existing:
        if tx.date != candidate.date:
            continue
        if not _same_amount(tx.amount, candidate.amount):
            continue
        score = description_similarity(candidate.description, tx.description)
        if score >= threshold:
            logger.debug("Duplicate: %r ~ %r (%.2f) on %s", candidate.description, tx.description,
                         score, candidate.date)
            return True
    return False


def is_new(candidate: ExtractedTransaction,
           existing: Iterable[ExtractedTransaction],
           threshold: float = DEFAULT_SIMILARITY) -> bool:
    return not is_duplicate(candidate, existing, threshold)


def filter_new(candidates: Sequence[ExtractedTransaction],
               existing: Iterable[ExtractedTransaction],
               threshold: float = DEFAULT_SIMILARITY) -> List[ExtractedTransaction]:
    """
    Keep candidates that match neither a stored transaction nor a candidate
    already kept from the same batch.
    """
    seen = list(existing)
    kept: List[ExtractedTransaction] = []
    for tx in candidates:
        if is_duplicate(tx, seen, threshold):
            continue
        kept.append(tx)
        seen.append(tx)
    dropped = len(candidates) - len(kept)
    if dropped:
        logger.info("Dropped %d duplicate transaction(s)", dropped)
    return kept
