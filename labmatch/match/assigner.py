"""
One-to-one cross-catalog assignment for LabMatch.

Scores every right record against every left record, keeps candidates at or
above the match threshold and commits pairs greedily, highest score first.
Right records whose best candidates are too close to call are reported as
conflicts; they are still assigned.
"""

import time
import logging
import concurrent.futures
from typing import Dict, List, Optional, Sequence, Set

from ..exceptions import MatchingBudgetExceeded
from ..models import (
    CandidatePair,
    ConflictRecord,
    LabTestRecord,
    MatchAssignment,
    MatchResult,
)
from .similarity import PreparedRecord, SimilarityScorer

logger = logging.getLogger(__name__)


class GreedyAssigner:
    """
    Greedy bipartite assignment between two catalogs.

    Greedy commitment is an approximation of optimal matching: a strong pair
    can block two slightly weaker pairs whose sum would be larger.
    """

    def __init__(self, config: Optional[Dict] = None, scorer: Optional[SimilarityScorer] = None):
        """
        Initialize assigner with configuration.

        Args:
            config: Pipeline configuration (uses the `matching` section)
            scorer: Similarity scorer; built from `config` when omitted
        """
        config = config or {}
        matching = config.get("matching", {})

        self.scorer = scorer or SimilarityScorer(config)
        self.conflict_margin = matching.get("conflict_margin", 0.15)
        self.conflict_top_n = matching.get("conflict_top_n", 3)
        self.workers = matching.get("workers", 1)
        self.max_comparisons = matching.get("max_comparisons")
        self.max_seconds = matching.get("max_seconds")

        logger.info(f"Initialized GreedyAssigner with {self.workers} worker(s)")

    def match(self, left: Sequence[LabTestRecord], right: Sequence[LabTestRecord],
              threshold: float = 0.35) -> MatchResult:
        """
        Assign right records to left records one-to-one.

        Args:
            left: Records from the left catalog
            right: Records from the right catalog
            threshold: Minimum score for a pair to become a candidate

        Returns:
            MatchResult with assignments, conflicts and unmatched indices

        Raises:
            MatchingBudgetExceeded: If the comparison count or time budget is exceeded
        """
        comparisons = len(left) * len(right)
        if self.max_comparisons is not None and comparisons > self.max_comparisons:
            raise MatchingBudgetExceeded(
                f"{len(left)} x {len(right)} = {comparisons} comparisons exceeds "
                f"max_comparisons={self.max_comparisons}"
            )

        logger.info(f"Scoring {comparisons} pairs ({len(left)} left x {len(right)} right)")

        prepared_left = [self.scorer.prepare(record) for record in left]
        prepared_right = [self.scorer.prepare(record) for record in right]

        candidates_by_right = self._score_all(prepared_left, prepared_right, threshold)
        assignments = self._assign(candidates_by_right)
        conflicts = self._find_conflicts(candidates_by_right)

        matched_left = {assignment.left_idx for assignment in assignments}
        matched_right = {assignment.right_idx for assignment in assignments}

        result = MatchResult(
            assignments=assignments,
            conflicts=conflicts,
            unmatched_left=[i for i in range(len(left)) if i not in matched_left],
            unmatched_right=[i for i in range(len(right)) if i not in matched_right],
            candidates_by_right=candidates_by_right,
        )

        logger.info(f"Matched pairs: {len(result.assignments)}")
        logger.info(f"Unmatched left: {len(result.unmatched_left)}")
        logger.info(f"Unmatched right: {len(result.unmatched_right)}")
        logger.info(f"Conflicts: {len(result.conflicts)}")

        return result

    def _score_all(self, prepared_left: List[PreparedRecord], prepared_right: List[PreparedRecord],
                   threshold: float) -> Dict[int, List[CandidatePair]]:
        """Score every right record against the left catalog, in right-index order."""
        deadline = time.monotonic() + self.max_seconds if self.max_seconds else None

        def score_right(right_idx: int) -> List[CandidatePair]:
            if deadline is not None and time.monotonic() > deadline:
                raise MatchingBudgetExceeded(
                    f"Scoring exceeded max_seconds={self.max_seconds} at right record {right_idx}"
                )
            return self._candidates_for(right_idx, prepared_right[right_idx], prepared_left, threshold)

        indices = range(len(prepared_right))
        if self.workers > 1 and len(prepared_right) > 1:
            with concurrent.futures.ThreadPoolExecutor(max_workers=self.workers) as executor:
                # map yields in submission order
                results = list(executor.map(score_right, indices))
        else:
            results = []
            for right_idx in indices:
                if right_idx and right_idx % 100 == 0:
                    logger.debug(f"Scoring right record {right_idx}/{len(prepared_right)}")
                results.append(score_right(right_idx))

        return dict(zip(indices, results))

    def _candidates_for(self, right_idx: int, right: PreparedRecord,
                        prepared_left: List[PreparedRecord], threshold: float) -> List[CandidatePair]:
        candidates = []
        for left_idx, left in enumerate(prepared_left):
            result = self.scorer.score_prepared(left, right)
            if result.score >= threshold:
                candidates.append(CandidatePair(
                    left_idx=left_idx,
                    right_idx=right_idx,
                    score=result.score,
                    reasons=result.reasons,
                ))
        # Stable: ties keep left-index order
        candidates.sort(key=lambda c: c.score, reverse=True)
        return candidates

    def _assign(self, candidates_by_right: Dict[int, List[CandidatePair]]) -> List[MatchAssignment]:
        """Commit pairs highest score first, skipping claimed endpoints."""
        all_pairs = [
            candidate
            for right_idx in sorted(candidates_by_right)
            for candidate in candidates_by_right[right_idx]
        ]
        # Stable: ties keep (right index, candidate rank) order
        all_pairs.sort(key=lambda c: c.score, reverse=True)

        claimed_left: Set[int] = set()
        claimed_right: Set[int] = set()
        assignments = []

        for pair in all_pairs:
            if pair.left_idx in claimed_left or pair.right_idx in claimed_right:
                continue
            claimed_left.add(pair.left_idx)
            claimed_right.add(pair.right_idx)
            assignments.append(MatchAssignment(
                left_idx=pair.left_idx,
                right_idx=pair.right_idx,
                score=pair.score,
                reasons=pair.reasons,
            ))

        return assignments

    def _find_conflicts(self, candidates_by_right: Dict[int, List[CandidatePair]]) -> List[ConflictRecord]:
        conflicts = []
        for right_idx in sorted(candidates_by_right):
            candidates = candidates_by_right[right_idx]
            if len(candidates) >= 2 and candidates[0].score - candidates[1].score < self.conflict_margin:
                conflicts.append(ConflictRecord(
                    right_idx=right_idx,
                    candidates=candidates[:self.conflict_top_n],
                ))
        return conflicts
