"""
Unit tests for the false-positive gates.
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from labmatch.blocking.gates import (
    extract_numbers,
    has_number_conflict,
    is_blocked_pair,
    specimens_compatible,
)
from labmatch.models import SpecimenTag


class TestBlocklist:
    """Test cases for blocklisted word pairs and screening panels."""

    def test_iron_is_not_fertility(self):
        """Test FER and FERTILITE never pair up."""
        assert is_blocked_pair("FER 1", "FERTILITE 1")
        assert is_blocked_pair("FERTILITE 1", "FER 1")
        assert is_blocked_pair("IRON", "FERT PANEL")

    def test_whole_words_only(self):
        """Test blocklist words match on word boundaries."""
        assert not is_blocked_pair("FER SERIQUE", "FER")
        assert not is_blocked_pair("FERRITINE", "FERTILITE")

    def test_both_words_on_one_side(self):
        """Test a name holding both words does not block."""
        assert not is_blocked_pair("FERTILITE FER", "FER")

    def test_screening_against_single_assay(self):
        """Test screening panels do not match specific assays."""
        assert is_blocked_pair("DEPISTAGE HEPATITE B", "HEPATITE B IGM")
        assert is_blocked_pair("HEPATITE A TOTAL", "SCREENING HEPATITE A")
        assert not is_blocked_pair("DEPISTAGE DROGUES", "DEPISTAGE DROGUES URINE")
        assert not is_blocked_pair("DEPISTAGE HEPATITE B", "HEPATITE B")


class TestNumberConflict:
    """Test cases for numeric suffix conflicts."""

    def test_extract_numbers(self):
        """Test only standalone integers are extracted."""
        assert extract_numbers("CA 15 3") == [15, 3]
        assert extract_numbers("VITAMINE B12") == []
        assert extract_numbers("FER 01") == [1]

    def test_single_numbers_differ(self):
        """Test differing single numbers conflict."""
        assert has_number_conflict("FER 1", "FER 6")
        assert not has_number_conflict("FER 1", "FER 01")

    def test_multiple_or_missing_numbers(self):
        """Test names without exactly one number never conflict."""
        assert not has_number_conflict("CA 125", "CA 15 3")
        assert not has_number_conflict("TSH", "TSH 3")
        assert not has_number_conflict("VITAMINE B12", "B12")


class TestSpecimenGate:
    """Test cases for specimen compatibility."""

    def test_equal_tags(self):
        """Test identical tags are always compatible."""
        assert specimens_compatible(SpecimenTag.URINE, SpecimenTag.URINE)
        assert specimens_compatible(SpecimenTag.DEFAULT, SpecimenTag.DEFAULT)

    def test_default_serum(self):
        """Test the default DEFAULT/SERUM equivalence in both directions."""
        assert specimens_compatible(SpecimenTag.DEFAULT, SpecimenTag.SERUM)
        assert specimens_compatible(SpecimenTag.SERUM, SpecimenTag.DEFAULT)

    def test_incompatible(self):
        """Test differing specimens are rejected."""
        assert not specimens_compatible(SpecimenTag.DEFAULT, SpecimenTag.URINE_24H)
        assert not specimens_compatible(SpecimenTag.URINE, SpecimenTag.URINE_24H)
        assert not specimens_compatible(SpecimenTag.SERUM, SpecimenTag.PLASMA)

    def test_configured_pairs(self):
        """Test the allowed pairs can be changed."""
        assert not specimens_compatible(SpecimenTag.DEFAULT, SpecimenTag.SERUM, allowed_pairs=[])
        assert specimens_compatible(SpecimenTag.PLASMA, SpecimenTag.SERUM,
                                    allowed_pairs=[["SERUM", "PLASMA"]])


if __name__ == "__main__":
    pytest.main([__file__])
