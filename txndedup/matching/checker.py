"""Pairwise duplicate checks of one candidate against an existing set."""

from __future__ import annotations

from collections.abc import Iterable

from txndedup.config import DedupSettings
from txndedup.matching.models import (
    DuplicateCheckResult,
    MatchResult,
    TransactionRecord,
)
from txndedup.matching.scorer import SimilarityScorer


class DuplicateChecker:
    """Compare a candidate against existing records using SimilarityScorer."""

    def __init__(self, scorer: SimilarityScorer | None = None):
        self.scorer = scorer or SimilarityScorer()

    @property
    def settings(self) -> DedupSettings:
        return self.scorer.settings

    def check_duplicate(
        self,
        candidate: TransactionRecord,
        existing: Iterable[TransactionRecord],
    ) -> DuplicateCheckResult:
        """Bucket every existing record by its score against the candidate.

        Scores >= high_confidence are duplicates; scores in
        [medium_confidence, high_confidence) are similar but not blocking.
        """
        duplicates: list[TransactionRecord] = []
        similar: list[TransactionRecord] = []
        best = 0

        for record in existing:
            confidence = self.scorer.score(candidate, record)
            best = max(best, confidence)
            if confidence >= self.settings.high_confidence:
                duplicates.append(record)
            elif confidence >= self.settings.medium_confidence:
                similar.append(record)

        return DuplicateCheckResult(
            is_duplicate=bool(duplicates),
            match_count=len(duplicates),
            duplicate_matches=duplicates,
            similar_matches=similar,
            best_confidence=best,
        )

    def find_best_match(
        self,
        candidate: TransactionRecord,
        existing: Iterable[TransactionRecord],
    ) -> MatchResult:
        """Return the highest-scoring record; ties go to the first one seen."""
        best_match: TransactionRecord | None = None
        best_score = 0

        for record in existing:
            confidence = self.scorer.score(candidate, record)
            if confidence > best_score:
                best_score = confidence
                best_match = record

        return MatchResult(confidence=best_score, match=best_match)
