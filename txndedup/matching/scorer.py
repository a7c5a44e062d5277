"""Similarity scoring between two transaction records.

Score is an integer 0-100 built from four weighted sub-scores:

  date         (35)  1.0 same day, 0.8 within tolerance, 0.5 within a week,
                     0.2 within 30 days
  amount       (45)  1.0 equal, 0.95 within 0.1%, 0.8 within 5%, 0.5 within 10%
  description  (15)  1.0 identical, 0.8 substring, else Levenshtein ratio
  categorical   (5)  half for equal type, half for equal category

Records with the same date, amount, normalized description and type
short-circuit to 100. Records on different calendar days are capped at 85
so amount and description similarity alone can never make a certain
duplicate out of two different days.
"""

from __future__ import annotations

import logging
import math
from datetime import date

from txndedup.config import DedupSettings
from txndedup.matching.models import TransactionRecord
from txndedup.matching.normalize import normalize_description, parse_record_date

logger = logging.getLogger(__name__)


class SimilarityScorer:
    """Symmetric, deterministic 0-100 scorer configured by DedupSettings."""

    def __init__(self, settings: DedupSettings | None = None):
        self.settings = settings or DedupSettings()

    def score(self, a: TransactionRecord, b: TransactionRecord) -> int:
        date_a = parse_record_date(a.date)
        date_b = parse_record_date(b.date)
        amount_a = float(a.amount)
        amount_b = float(b.amount)
        desc_a = normalize_description(a.description)
        desc_b = normalize_description(b.description)

        same_day = date_a is not None and date_a == date_b
        if same_day and amount_a == amount_b and desc_a == desc_b and a.type == b.type:
            return 100

        weights = self.settings.weights
        total = (
            weights.date * self.date_similarity(date_a, date_b)
            + weights.amount * self.amount_similarity(amount_a, amount_b)
            + weights.description * description_similarity(desc_a, desc_b)
        )
        if a.type == b.type:
            total += weights.categorical / 2
        if a.category == b.category:
            total += weights.categorical / 2

        final = _round_half_up(total / weights.total * 100)
        final = max(0, min(100, final))

        if not same_day:
            final = min(final, self.settings.cross_day_cap)

        logger.debug(
            "score %s vs %s = %d (dates %s/%s)",
            a.id, b.id, final, date_a, date_b,
        )
        return final

    def date_similarity(self, a: date | None, b: date | None) -> float:
        """Proximity of two calendar dates; unreadable dates score 0.0."""
        if a is None or b is None:
            return 0.0
        days = abs((a - b).days)
        if days == 0:
            return 1.0
        if days <= self.settings.date_tolerance_days:
            return 0.8
        if days <= 7:
            return 0.5
        if days <= 30:
            return 0.2
        return 0.0

    def amount_similarity(self, a: float, b: float) -> float:
        """Proximity of two signed amounts by relative difference to their mean."""
        if a == b:
            return 1.0
        avg = abs((a + b) / 2)
        if avg == 0:
            # Opposite signs, same magnitude.
            return 0.0
        pct = abs(a - b) / avg
        if pct <= self.settings.amount_tolerance:
            return 0.95
        if pct <= 0.05:
            return 0.8
        if pct <= 0.1:
            return 0.5
        return 0.0


def description_similarity(a: str, b: str) -> float:
    """Compare two normalized descriptions (0-1).

    Empty on either side gives no credit: a blank description carries no
    evidence that two records are the same.
    """
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    if a in b or b in a:
        return 0.8
    return levenshtein_similarity(a, b)


def levenshtein_similarity(a: str, b: str) -> float:
    """(maxLen - editDistance) / maxLen; two empty strings are identical."""
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return (max_len - levenshtein_distance(a, b)) / max_len


def levenshtein_distance(a: str, b: str) -> int:
    """Unit-cost insert/delete/substitute edit distance, two-row DP."""
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, ch_a in enumerate(a, start=1):
        current = [i]
        for j, ch_b in enumerate(b, start=1):
            cost = 0 if ch_a == ch_b else 1
            current.append(min(
                current[j - 1] + 1,       # insertion
                previous[j] + 1,          # deletion
                previous[j - 1] + cost,   # substitution
            ))
        previous = current
    return previous[-1]


def _round_half_up(value: float) -> int:
    # Trim float noise first so 70.49999999999999 rounds like 70.5.
    return int(math.floor(round(value, 9) + 0.5))
