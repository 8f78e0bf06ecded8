"""
Pair-level match report for LabMatch.

A reviewer-oriented view of one matching run: every committed pair with
its confidence and reasons, the records left unmatched on each side, and
matched pairs grouped by medical category.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..merge.catalog_builder import round_half_up
from ..models import LabTestRecord, MatchResult
from ..normalize.text_normalizer import normalize
from ..rules.categories import classify_category
from .summary import confidence_distribution, utc_timestamp

logger = logging.getLogger(__name__)

REPORT_CONFIDENCE_BINS: List[Tuple[str, float]] = [
    ("0.90-1.00", 0.90),
    ("0.80-0.89", 0.80),
    ("0.70-0.79", 0.70),
    ("0.60-0.69", 0.60),
    ("0.50-0.59", 0.50),
    ("0.35-0.49", 0.0),
]


def _record_summary(record: LabTestRecord, with_lab: bool = True) -> Dict[str, Any]:
    summary = {"lab": record.lab_id} if with_lab else {}
    summary.update({
        "code": record.code,
        "raw_name": record.raw_name,
        "type": record.type,
        "price": record.price,
    })
    return summary


def build_match_report(left: Sequence[LabTestRecord], right: Sequence[LabTestRecord],
                       result: MatchResult, conflicts: Sequence[Dict[str, Any]],
                       left_lab: str, right_lab: str, threshold: float,
                       generated_at: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the pair-level match report.

    Args:
        left: Left catalog records
        right: Right catalog records
        result: Matcher output
        conflicts: Formatted conflict records
        left_lab: Left lab identifier
        right_lab: Right lab identifier
        threshold: Match threshold used for the run
        generated_at: Timestamp to record; current UTC time when omitted

    Returns:
        Report dictionary
    """
    matched_pairs = [
        {
            "lab_a": _record_summary(left[assignment.left_idx]),
            "lab_b": _record_summary(right[assignment.right_idx]),
            "confidence": round_half_up(assignment.score),
            "match_reasons": list(assignment.reasons),
        }
        for assignment in result.assignments
    ]
    matched_pairs.sort(key=lambda pair: pair["confidence"], reverse=True)

    groups: Dict[str, List[Dict[str, Any]]] = {}
    for pair in matched_pairs:
        name_a = normalize(pair["lab_a"]["raw_name"])
        name_b = normalize(pair["lab_b"]["raw_name"])
        groups.setdefault(classify_category(pair["lab_a"]["raw_name"]), []).append({
            "canonical_name": name_a if len(name_a) <= len(name_b) else name_b,
            "members": [
                {key: pair[side][key] for key in ("lab", "code", "raw_name")}
                for side in ("lab_a", "lab_b")
            ],
        })

    report = {
        "metadata": {
            "generated_at": generated_at or utc_timestamp(),
            "lab_a": left_lab,
            "lab_b": right_lab,
            "lab_a_total_tests": len(left),
            "lab_b_total_tests": len(right),
            "total_matched": len(matched_pairs),
            "total_unmatched_lab_a": len(result.unmatched_left),
            "total_unmatched_lab_b": len(result.unmatched_right),
            "total_conflicts": len(conflicts),
            "match_threshold": threshold,
            "confidence_distribution": confidence_distribution(
                (pair["confidence"] for pair in matched_pairs), REPORT_CONFIDENCE_BINS
            ),
        },
        "matched_pairs": matched_pairs,
        "unmatched_in_lab_a": [_record_summary(left[i], with_lab=False) for i in result.unmatched_left],
        "unmatched_in_lab_b": [_record_summary(right[i], with_lab=False) for i in result.unmatched_right],
        "potential_canonical_groups": groups,
        "conflicts": list(conflicts),
    }

    logger.info(f"Match report: {len(matched_pairs)} pairs, {len(groups)} category groups")
    return report
