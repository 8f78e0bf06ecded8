"""
Canonical catalog builder for LabMatch.

Turns match assignments into canonical test concepts: one concept per
matched pair and one per unmatched record, each carrying a snapshot of the
lab offerings it groups. Concepts are sorted and given sequential
canonical IDs.
"""

import math
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..models import ConflictRecord, LabTestRecord, MatchAssignment, SpecimenTag
from ..normalize.specimen_classifier import SpecimenClassifier, specimen_label
from ..normalize.text_normalizer import TextNormalizer
from ..rules.categories import classify_category

logger = logging.getLogger(__name__)


def round_half_up(value: float, digits: int = 2) -> float:
    """Round to `digits` decimals, halves away from zero for positive scores."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _char_class(char: str) -> int:
    if char.isspace():
        return 0
    if char.isdigit():
        return 2
    if char.isalpha():
        return 3
    return 1


def name_sort_key(name: str) -> Tuple[List[Tuple[int, str]], str]:
    """
    Collation key for canonical names.

    Case-insensitive, with whitespace before punctuation before digits
    before letters; ties fall back to the exact string.
    """
    return [(_char_class(char), char.casefold()) for char in name], name


def build_offering(record: LabTestRecord) -> Dict[str, Any]:
    """
    Snapshot one lab's offering of a test.

    Args:
        record: Source record

    Returns:
        New dictionary; optional specimen fields and components only when present
    """
    offering = {
        "lab": record.lab_id,
        "code": record.code,
        "raw_name": record.raw_name,
        "type": record.type or "individual",
        "category": record.category or None,
        "price": record.price,
    }

    meta = record.specimen_meta
    if meta is not None:
        if meta.tube:
            offering["tube"] = meta.tube
        if meta.temperature:
            offering["temperature"] = meta.temperature
        if meta.turnaround_time:
            offering["turnaroundTime"] = meta.turnaround_time

    if record.components:
        offering["components"] = list(record.components)

    return offering


class CanonicalCatalogBuilder:
    """
    Builds the canonical catalog from match results.

    Every input record ends up in exactly one concept. Matched concepts
    take their specimen and category from the left record.
    """

    def __init__(self, config: Optional[Dict] = None):
        """
        Initialize catalog builder.

        Args:
            config: Pipeline configuration (uses the `labs` section)
        """
        config = config or {}
        labs = config.get("labs", {})
        self.left_lab = labs.get("left", "CDL")
        self.right_lab = labs.get("right", "Dynacare")

        self.normalizer = TextNormalizer()
        self.classifier = SpecimenClassifier()

        logger.info("Initialized CanonicalCatalogBuilder")

    def _full_name(self, canonical_name: str, specimen: SpecimenTag) -> str:
        label = specimen_label(specimen)
        return f"{canonical_name} [{label}]" if label else canonical_name

    def _concept(self, canonical_name: str, source: LabTestRecord, offerings: List[LabTestRecord],
                 confidence: Optional[float], reasons: Optional[List[str]]) -> Dict[str, Any]:
        specimen = self.classifier.extract_specimen(source.raw_name)
        return {
            "canonical_id": None,
            "canonical_name": self._full_name(canonical_name, specimen),
            "medical_category": classify_category(source.raw_name),
            "specimen_type": specimen.value,
            "match_confidence": confidence,
            "match_reasons": reasons,
            "offerings": {record.lab_id: build_offering(record) for record in offerings},
        }

    def build(self, left: Sequence[LabTestRecord], right: Sequence[LabTestRecord],
              assignments: Sequence[MatchAssignment], unmatched_left: Sequence[int],
              unmatched_right: Sequence[int]) -> List[Dict[str, Any]]:
        """
        Build the sorted canonical catalog.

        Args:
            left: Left catalog records
            right: Right catalog records
            assignments: Committed 1:1 pairs
            unmatched_left: Left indices with no assignment
            unmatched_right: Right indices with no assignment

        Returns:
            List of canonical concept dictionaries with IDs CAN-0001, CAN-0002, ...
        """
        catalog = []

        for assignment in assignments:
            left_record = left[assignment.left_idx]
            right_record = right[assignment.right_idx]

            norm_a = self.normalizer.normalize_name(left_record.raw_name)
            norm_b = self.normalizer.normalize_name(right_record.raw_name)
            canonical_name = norm_a if len(norm_a) <= len(norm_b) else norm_b

            catalog.append(self._concept(
                canonical_name,
                left_record,
                [left_record, right_record],
                round_half_up(assignment.score),
                list(assignment.reasons),
            ))

        for records, indices in ((left, unmatched_left), (right, unmatched_right)):
            for idx in indices:
                record = records[idx]
                catalog.append(self._concept(
                    self.normalizer.normalize_name(record.raw_name),
                    record,
                    [record],
                    None,
                    None,
                ))

        matched = [concept for concept in catalog if len(concept["offerings"]) > 1]
        single = [concept for concept in catalog if len(concept["offerings"]) == 1]
        # Stable: equal confidences keep assignment order
        matched.sort(key=lambda concept: concept["match_confidence"] or 0, reverse=True)
        single.sort(key=lambda concept: name_sort_key(concept["canonical_name"]))

        catalog = matched + single
        for position, concept in enumerate(catalog, start=1):
            concept["canonical_id"] = f"CAN-{position:04d}"

        logger.info(f"Built {len(catalog)} canonical concepts ({len(matched)} matched in both labs)")
        return catalog

    def find_specimen_variants(self, catalog: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Find analytes present in the catalog under several specimen types.

        Audit only: confirms that specimen variants stayed separate concepts.

        Args:
            catalog: Canonical catalog

        Returns:
            List of {base_concept, variants} for bases with 2+ distinct specimen types
        """
        by_base: Dict[str, List[Dict[str, Any]]] = {}
        for concept in catalog:
            base = self.classifier.strip_specimen_words(concept["canonical_name"])
            by_base.setdefault(base, []).append({
                "canonical_id": concept["canonical_id"],
                "canonical_name": concept["canonical_name"],
                "specimen_type": concept["specimen_type"],
            })

        variants = [
            {"base_concept": base, "variants": entries}
            for base, entries in by_base.items()
            if len({entry["specimen_type"] for entry in entries}) > 1
        ]
        logger.info(f"Specimen variant separation: {len(variants)} base concepts")
        return variants

    def format_conflicts(self, left: Sequence[LabTestRecord], right: Sequence[LabTestRecord],
                         conflicts: Sequence[ConflictRecord]) -> List[Dict[str, Any]]:
        """
        Render conflict records for the output document.

        Args:
            left: Left catalog records
            right: Right catalog records
            conflicts: Conflict records from the matcher

        Returns:
            List of {<right>: {code, raw_name}, <left>_candidates: [...]} dictionaries
        """
        right_key = self.right_lab.lower()
        candidates_key = f"{self.left_lab.lower()}_candidates"

        formatted = []
        for conflict in conflicts:
            right_record = right[conflict.right_idx]
            formatted.append({
                right_key: {"code": right_record.code, "raw_name": right_record.raw_name},
                candidates_key: [
                    {
                        "code": left[candidate.left_idx].code,
                        "raw_name": left[candidate.left_idx].raw_name,
                        "score": round_half_up(candidate.score),
                        "reasons": list(candidate.reasons),
                    }
                    for candidate in conflict.candidates
                ],
            })
        return formatted
