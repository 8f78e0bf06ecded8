"""
False-positive gates applied before similarity scoring.

A pair rejected by any gate scores 0 regardless of how similar the names
are. Gates operate on normalized names.
"""

import re
import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from ..models import SpecimenTag
from ..rules.blocklist import BLOCKED_WORD_PAIRS, SCREENING_TERMS, SINGLE_ASSAY_TERMS

logger = logging.getLogger(__name__)

NUMBER_PATTERN = re.compile(r"\b(\d+)\b")

DEFAULT_ALLOWED_SPECIMEN_PAIRS: Tuple[Tuple[str, str], ...] = (("DEFAULT", "SERUM"),)


def _has_word(text: str, word: str) -> bool:
    return re.search(rf"\b{re.escape(word)}\b", text) is not None


def _contains_any(text: str, terms: Iterable[str]) -> bool:
    return any(term in text for term in terms)


def is_blocked_pair(norm_a: str, norm_b: str,
                    word_pairs: Sequence[Tuple[str, str]] = BLOCKED_WORD_PAIRS) -> bool:
    """
    Check the blocklist for a pair of normalized names.

    A word pair (A, B) blocks when one name has A without B and the other
    has B without A. A screening panel on exactly one side blocks against
    a single-assay name on the other side.

    Args:
        norm_a: First normalized name
        norm_b: Second normalized name
        word_pairs: Blocked (word_a, word_b) pairs

    Returns:
        True if the pair must not match
    """
    str_a = " ".join(norm_a.split())
    str_b = " ".join(norm_b.split())

    for word_a, word_b in word_pairs:
        a_has_a, a_has_b = _has_word(str_a, word_a), _has_word(str_a, word_b)
        b_has_a, b_has_b = _has_word(str_b, word_a), _has_word(str_b, word_b)
        if (a_has_a and not a_has_b and b_has_b and not b_has_a) or \
                (b_has_a and not b_has_b and a_has_b and not a_has_a):
            return True

    a_screen = _contains_any(str_a, SCREENING_TERMS)
    b_screen = _contains_any(str_b, SCREENING_TERMS)
    if a_screen != b_screen:
        other = str_b if a_screen else str_a
        if _contains_any(other, SINGLE_ASSAY_TERMS):
            return True

    return False


def extract_numbers(norm_name: str) -> List[int]:
    """Return the standalone integers of a normalized name, in order."""
    return [int(match) for match in NUMBER_PATTERN.findall(norm_name)]


def has_number_conflict(norm_a: str, norm_b: str) -> bool:
    """
    Check whether two names carry different numeric suffixes.

    Only names with exactly one number each are compared; "CA 125" against
    "CA 15 3" is left to the scorer.

    Args:
        norm_a: First normalized name
        norm_b: Second normalized name

    Returns:
        True if both names hold exactly one integer and they differ
    """
    nums_a = extract_numbers(norm_a)
    nums_b = extract_numbers(norm_b)
    if len(nums_a) == 1 and len(nums_b) == 1:
        return nums_a[0] != nums_b[0]
    return False


def specimens_compatible(spec_a: SpecimenTag, spec_b: SpecimenTag,
                         allowed_pairs: Optional[Iterable[Sequence[str]]] = None) -> bool:
    """
    Check whether two specimen tags may describe the same test.

    Args:
        spec_a: Specimen tag of the first record
        spec_b: Specimen tag of the second record
        allowed_pairs: Unordered tag pairs treated as equivalent

    Returns:
        True if the tags are equal or form an allowed pair
    """
    if spec_a == spec_b:
        return True

    pairs = DEFAULT_ALLOWED_SPECIMEN_PAIRS if allowed_pairs is None else allowed_pairs
    values = {SpecimenTag(spec_a).value, SpecimenTag(spec_b).value}
    return any(values == {str(x).upper(), str(y).upper()} for x, y in pairs)
