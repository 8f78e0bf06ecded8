"""
Catalog build statistics for LabMatch.

Computes the metadata block of the output document (source counts, match
summary, confidence and category distributions, specimen variant audit)
and renders the console summary printed by the CLI.
"""

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

# (label, lower bound) from highest to lowest; the last bin takes everything below
CATALOG_CONFIDENCE_BINS: List[Tuple[str, float]] = [
    ("0.90-1.00", 0.90),
    ("0.70-0.89", 0.70),
    ("0.50-0.69", 0.50),
    ("0.35-0.49", 0.0),
]


def utc_timestamp() -> str:
    """Current UTC time as ISO 8601 with milliseconds and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def confidence_distribution(confidences: Iterable[float],
                            bins: Sequence[Tuple[str, float]] = CATALOG_CONFIDENCE_BINS) -> Dict[str, int]:
    """
    Count confidences per bin.

    Args:
        confidences: Rounded match confidences
        bins: (label, lower bound) pairs, highest first

    Returns:
        Dictionary of bin label to count, in bin order
    """
    counts = {label: 0 for label, _ in bins}
    for confidence in confidences:
        for label, lower in bins:
            if confidence >= lower:
                counts[label] += 1
                break
        else:
            counts[bins[-1][0]] += 1
    return counts


def build_metadata(config: Dict[str, Any], catalog: Sequence[Dict[str, Any]],
                   conflicts: Sequence[Dict[str, Any]], specimen_variants: Sequence[Dict[str, Any]],
                   source_counts: Dict[str, int], generated_at: Optional[str] = None) -> Dict[str, Any]:
    """
    Build the metadata block of the canonical catalog document.

    Args:
        config: Pipeline configuration
        catalog: Canonical catalog
        conflicts: Formatted conflict records
        specimen_variants: Output of find_specimen_variants
        source_counts: Counts with keys main, specimen_entries, enriched,
            deduplicated (left) and right
        generated_at: Timestamp to record; current UTC time when omitted

    Returns:
        Metadata dictionary
    """
    left = config["labs"]["left"]
    right = config["labs"]["right"]
    output_config = config.get("output", {})
    threshold = config["matching"]["threshold"]

    matched = [c for c in catalog if len(c["offerings"]) > 1]
    left_only = [c for c in catalog if len(c["offerings"]) == 1 and left in c["offerings"]]
    right_only = [c for c in catalog if len(c["offerings"]) == 1 and right in c["offerings"]]

    examples_limit = output_config.get("variant_examples", 10)

    metadata = {
        "generated_at": generated_at or utc_timestamp(),
        "description": output_config.get("description", "Canonical Test Catalog").format(left=left, right=right),
        "source_counts": {
            f"{left}_main": source_counts["main"],
            f"{left}_specimen_manual_entries": source_counts["specimen_entries"],
            f"{left}_enriched_with_specimen_data": source_counts["enriched"],
            f"{left}_deduplicated": source_counts["deduplicated"],
            right: source_counts["right"],
        },
        "matching_summary": {
            "total_canonical_concepts": len(catalog),
            "matched_both_labs": len(matched),
            f"{left.lower()}_only": len(left_only),
            f"{right.lower()}_only": len(right_only),
            "conflicts_detected": len(conflicts),
            "match_threshold": threshold,
        },
        "confidence_distribution": confidence_distribution(c["match_confidence"] for c in matched),
        "specimen_variant_separation": {
            "count": len(specimen_variants),
            "examples": list(specimen_variants[:examples_limit]),
        },
        # First-seen order
        "category_distribution": dict(Counter(c["medical_category"] for c in catalog)),
    }

    logger.debug(f"Built metadata for {len(catalog)} concepts")
    return metadata


def format_console_summary(document: Dict[str, Any], left: str, right: str, preview: int = 5) -> str:
    """
    Render a human-readable summary of a catalog document.

    Args:
        document: Output document ({metadata, canonical_catalog, conflicts})
        left: Left lab identifier
        right: Right lab identifier
        preview: Number of specimen variants and conflicts to list

    Returns:
        Multi-line summary string
    """
    metadata = document["metadata"]
    counts = metadata["source_counts"]
    summary = metadata["matching_summary"]
    variants = metadata["specimen_variant_separation"]
    conflicts = document["conflicts"]

    lines = [
        "",
        "=" * 50,
        "CANONICAL TEST CATALOG SUMMARY",
        "=" * 50,
        f"Sources: {left}={counts[f'{left}_deduplicated']:,} "
        f"({counts[f'{left}_enriched_with_specimen_data']:,} enriched) | {right}={counts[right]:,}",
        "",
        f"Canonical Concepts: {summary['total_canonical_concepts']:,}",
        f"  Matched (both labs): {summary['matched_both_labs']:,}",
        f"  {left} only: {summary[f'{left.lower()}_only']:,}",
        f"  {right} only: {summary[f'{right.lower()}_only']:,}",
        "",
        "Confidence Distribution:",
    ]
    lines.extend(f"  {label}: {count}" for label, count in metadata["confidence_distribution"].items())

    lines.append("")
    lines.append(f"Specimen Variant Separation: {variants['count']} concepts properly separated")
    for variant in variants["examples"][:preview]:
        lines.append(f'  "{variant["base_concept"]}":')
        lines.extend(f"    -> {v['canonical_name']} ({v['specimen_type']})" for v in variant["variants"])

    right_key = right.lower()
    candidates_key = f"{left.lower()}_candidates"
    lines.append("")
    lines.append(f"Conflicts: {len(conflicts)}")
    for conflict in conflicts[:preview]:
        lines.append(f'  {right} {conflict[right_key]["code"]}: "{conflict[right_key]["raw_name"]}"')
        lines.extend(f'    -> {left} {c["code"]}: "{c["raw_name"]}" [{c["score"]}]'
                     for c in conflict[candidates_key])

    lines.append("=" * 50)
    return "\n".join(lines)
