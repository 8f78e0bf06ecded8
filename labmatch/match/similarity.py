"""
Similarity scoring for LabMatch.

Scores a (left, right) pair of lab test records in [0, 1]. Hard gates run
first and zero out pairs that must never match; the remaining evidence
(code, name overlap, edit distance, synonyms, components, type) is added up
and capped at 1.0.
"""

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple

from Levenshtein import distance as levenshtein_distance

from ..blocking.gates import (
    DEFAULT_ALLOWED_SPECIMEN_PAIRS,
    has_number_conflict,
    is_blocked_pair,
    specimens_compatible,
)
from ..models import LabTestRecord, ScoreResult, SpecimenTag
from ..normalize.specimen_classifier import SpecimenClassifier
from ..normalize.text_normalizer import TextNormalizer
from ..rules.synonyms import synonym_groups

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreparedRecord:
    """Per-record features computed once before pairwise scoring."""

    record: LabTestRecord
    norm_name: str
    tokens: FrozenSet[str]
    specimen: SpecimenTag
    components: FrozenSet[str]
    # group index -> normalized synonym forms present in the name
    synonym_forms: Dict[int, FrozenSet[str]]


def jaccard_similarity(set_a: FrozenSet[str], set_b: FrozenSet[str]) -> float:
    """Jaccard index of two sets; 0.0 when both are empty."""
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


def normalized_levenshtein(a: str, b: str) -> float:
    """1 - edits / max length; 1.0 for two empty strings."""
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / max_len


class SimilarityScorer:
    """
    Composite pairwise scorer with false-positive gates.

    Stateless once constructed: every per-record feature lives in a
    PreparedRecord, so one scorer can be shared across worker threads.
    """

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize scorer with configuration.

        Args:
            config: Pipeline configuration (uses `scoring` and `gates` sections)
        """
        config = config or {}
        scoring = config.get("scoring", {})
        self.weights = dict(scoring.get("weights", {}))
        self.thresholds = dict(scoring.get("thresholds", {}))

        self.default_weights = {
            "exact_code": 0.50,
            "exact_name": 0.45,
            "jaccard": 0.35,
            "levenshtein": 0.15,
            "synonym": 0.30,
            "containment": 0.10,
            "components": 0.20,
            "same_type": 0.02
        }
        for key, value in self.default_weights.items():
            if key not in self.weights:
                self.weights[key] = value

        self.default_thresholds = {
            "jaccard_min": 0.3,
            "levenshtein_min": 0.6,
            "length_ratio_min": 0.5,
            "containment_min": 0.7
        }
        for key, value in self.default_thresholds.items():
            if key not in self.thresholds:
                self.thresholds[key] = value

        gates = config.get("gates", {})
        self.allowed_specimen_pairs = [
            tuple(pair) for pair in gates.get("allowed_specimen_pairs", DEFAULT_ALLOWED_SPECIMEN_PAIRS)
        ]

        self.normalizer = TextNormalizer()
        self.classifier = SpecimenClassifier()
        self.synonym_groups: List[Tuple[str, ...]] = self._normalize_synonym_groups()

        logger.info(f"Initialized SimilarityScorer with {len(self.synonym_groups)} synonym groups")

    def _normalize_synonym_groups(self) -> List[Tuple[str, ...]]:
        groups = []
        for group in synonym_groups():
            forms = []
            for form in group:
                norm_form = self.normalizer.normalize_name(form)
                if norm_form and norm_form not in forms:
                    forms.append(norm_form)
            groups.append(tuple(forms))
        return groups

    def prepare(self, record: LabTestRecord) -> PreparedRecord:
        """
        Compute the per-record features used by score_prepared.

        Args:
            record: Lab test record

        Returns:
            PreparedRecord for the record
        """
        norm_name = self.normalizer.normalize_name(record.raw_name)
        padded = f" {norm_name} "

        synonym_forms = {}
        for group_idx, forms in enumerate(self.synonym_groups):
            present = frozenset(form for form in forms if f" {form} " in padded)
            if present:
                synonym_forms[group_idx] = present

        components = frozenset(
            self.normalizer.normalize_name(component) for component in (record.components or ())
        )

        return PreparedRecord(
            record=record,
            norm_name=norm_name,
            tokens=frozenset(self.normalizer.tokenize(norm_name)),
            specimen=self.classifier.extract_specimen(record.raw_name),
            components=components - {""},
            synonym_forms=synonym_forms,
        )

    def score(self, left: LabTestRecord, right: LabTestRecord) -> ScoreResult:
        """
        Score a pair of records.

        Args:
            left: Record from the left catalog
            right: Record from the right catalog

        Returns:
            ScoreResult with score in [0, 1] and the reasons that contributed
        """
        return self.score_prepared(self.prepare(left), self.prepare(right))

    def score_prepared(self, left: PreparedRecord, right: PreparedRecord) -> ScoreResult:
        """
        Score a pair of prepared records.

        Args:
            left: Prepared left record
            right: Prepared right record

        Returns:
            ScoreResult; a gate hit yields score 0 with the gate as only reason
        """
        norm_a, norm_b = left.norm_name, right.norm_name
        code_match = left.record.code == right.record.code

        if is_blocked_pair(norm_a, norm_b):
            return ScoreResult(score=0.0, reasons=["blocked"])
        if has_number_conflict(norm_a, norm_b) and not code_match:
            return ScoreResult(score=0.0, reasons=["number_conflict"])
        if not code_match and not specimens_compatible(left.specimen, right.specimen,
                                                       self.allowed_specimen_pairs):
            return ScoreResult(score=0.0, reasons=["specimen_mismatch"])

        score = 0.0
        reasons = []

        if code_match:
            score += self.weights["exact_code"]
            reasons.append("exact_code")

        if norm_a == norm_b:
            score += self.weights["exact_name"]
            reasons.append("exact_name")
        else:
            score += self._name_evidence(left, right, reasons)

        # Profiles only
        if left.components and right.components:
            overlap = jaccard_similarity(left.components, right.components)
            if overlap > 0:
                score += overlap * self.weights["components"]
                reasons.append(f"component_overlap:{overlap:.2f}")

        left_type, right_type = left.record.type, right.record.type
        if left_type and right_type and left_type == right_type:
            score += self.weights["same_type"]

        return ScoreResult(score=min(score, 1.0), reasons=reasons)

    def _name_evidence(self, left: PreparedRecord, right: PreparedRecord, reasons: List[str]) -> float:
        """Sum the fuzzy name signals for two different normalized names."""
        score = 0.0
        tok_a, tok_b = left.tokens, right.tokens

        jaccard = jaccard_similarity(tok_a, tok_b)
        if jaccard > self.thresholds["jaccard_min"]:
            score += jaccard * self.weights["jaccard"]
            reasons.append(f"jaccard:{jaccard:.2f}")

        len_a, len_b = len(left.norm_name), len(right.norm_name)
        length_ratio = min(len_a, len_b) / max(len_a, len_b)
        if length_ratio > self.thresholds["length_ratio_min"]:
            lev_sim = normalized_levenshtein(left.norm_name, right.norm_name)
            if lev_sim > self.thresholds["levenshtein_min"]:
                score += lev_sim * self.weights["levenshtein"]
                reasons.append(f"lev:{lev_sim:.2f}")

        if self._synonym_hit(left, right):
            score += self.weights["synonym"]
            reasons.append("synonym")

        smaller, larger = (tok_a, tok_b) if len(tok_a) <= len(tok_b) else (tok_b, tok_a)
        containment = len(smaller & larger) / len(smaller) if smaller else 0.0
        if containment > self.thresholds["containment_min"]:
            score += containment * self.weights["containment"]
            reasons.append(f"contain:{containment:.2f}")

        return score

    @staticmethod
    def _synonym_hit(left: PreparedRecord, right: PreparedRecord) -> bool:
        """One name holds a form of a synonym group, the other a different form."""
        for group_idx, forms_a in left.synonym_forms.items():
            forms_b = right.synonym_forms.get(group_idx)
            if not forms_b:
                continue
            if any(form_a != form_b for form_a in forms_a for form_b in forms_b):
                return True
        return False
