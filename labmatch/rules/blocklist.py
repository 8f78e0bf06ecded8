"""
False-positive blocklist for cross-catalog matching.
"""

from typing import Tuple

# (word_a, word_b): a name with word_a must never match a name with word_b,
# unless both names (or neither) carry both words. Iron is not fertility.
BLOCKED_WORD_PAIRS: Tuple[Tuple[str, str], ...] = (
    ("FER", "FERTILITE"),
    ("FER", "FERT"),
    ("IRON", "FERTILITE"),
    ("IRON", "FERT"),
)

# Screening panels never match a specific single assay
SCREENING_TERMS: Tuple[str, ...] = ("DEPISTAGE", "SCREENING")
SINGLE_ASSAY_TERMS: Tuple[str, ...] = ("TOTAL", "IGG", "IGM", "AIGU")
