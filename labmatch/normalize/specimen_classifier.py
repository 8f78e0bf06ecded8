"""
Specimen type extraction for LabMatch.

Classifies the specimen (serum, 24h urine, throat swab, ...) implied by a raw
test name. Specimen variants of the same analyte are distinct tests, so the
tag gates scoring and separates canonical concepts.
"""

import re
import logging
from typing import List, Optional, Tuple

from ..models import SpecimenTag

logger = logging.getLogger(__name__)


# First match wins. 24h and random urine must precede the generic urine rules.
SPECIMEN_RULES: List[Tuple[str, SpecimenTag]] = [
    (r"URINES?\s*(?:DE\s+)?24\s*H", SpecimenTag.URINE_24H),
    (r"24\s*H(?:EURES?)?\s*(?:D['’E]\s*)?URINE", SpecimenTag.URINE_24H),
    (r"URINES\s+DE\s+24\s+HEURES", SpecimenTag.URINE_24H),
    (r"URINAIRE.*24H", SpecimenTag.URINE_24H),

    (r"URINE\s+AU\s+HASARD", SpecimenTag.URINE_RANDOM),
    (r"URINE\s+AL[EÉ]ATOIRE", SpecimenTag.URINE_RANDOM),

    (r"\bURINES?\b", SpecimenTag.URINE),
    (r"\bURINAIRE\b", SpecimenTag.URINE),

    (r"SANG\s+ENTIER", SpecimenTag.WHOLE_BLOOD),
    (r"\bPLASMA\b", SpecimenTag.PLASMA),
    (r"\bS[ÉE]RUM\b", SpecimenTag.SERUM),
    (r"\bSELLES\b", SpecimenTag.STOOL),

    # Culture sites
    (r"\bGORGE\b", SpecimenTag.THROAT),
    (r"\bVAGINAL", SpecimenTag.VAGINAL),
    (r"\bCERVICAL", SpecimenTag.CERVICAL),
    (r"\bRECTAL", SpecimenTag.RECTAL),
    (r"\bNEZ\b|\bNASAL", SpecimenTag.NASAL),
    (r"\bPLAIE|WOUND", SpecimenTag.WOUND),
    (r"\bCRACHAT|SPUTUM", SpecimenTag.SPUTUM),

    (r"GLOBULES\s+ROUGES", SpecimenTag.RBC),
    (r"\bCHEVEUX\b", SpecimenTag.HAIR),
]

SPECIMEN_LABELS = {
    SpecimenTag.DEFAULT: None,
    SpecimenTag.SERUM: "Serum",
    SpecimenTag.URINE: "Urine",
    SpecimenTag.URINE_24H: "Urine 24h",
    SpecimenTag.URINE_RANDOM: "Urine Random",
    SpecimenTag.WHOLE_BLOOD: "Whole Blood",
    SpecimenTag.PLASMA: "Plasma",
    SpecimenTag.STOOL: "Stool",
    SpecimenTag.THROAT: "Throat",
    SpecimenTag.VAGINAL: "Vaginal",
    SpecimenTag.CERVICAL: "Cervical",
    SpecimenTag.RECTAL: "Rectal",
    SpecimenTag.NASAL: "Nasal",
    SpecimenTag.WOUND: "Wound",
    SpecimenTag.SPUTUM: "Sputum",
    SpecimenTag.RBC: "RBC",
    SpecimenTag.HAIR: "Hair",
}

# Words removed when reducing a canonical name to its base analyte
SPECIMEN_WORD_PATTERNS: Tuple[str, ...] = (
    r"\s*\[.*?\]\s*$",
    r"\bURINES?\b",
    r"\bURINAIRE\b",
    r"\b24\s*H(?:EURES?)?\b",
    r"\bHASARD\b",
    r"\bALEATOIRE\b",
    r"\bSANG\s+ENTIER\b",
    r"\bSERUM\b",
    r"\bPLASMA\b",
    r"\bGLOBULES\s+ROUGES\b",
    r"\bSELLES\b",
)


class SpecimenClassifier:
    """
    Ordered rule table mapping raw test names to specimen tags.
    """

    def __init__(self, rules: Optional[List[Tuple[str, SpecimenTag]]] = None):
        """
        Initialize classifier.

        Args:
            rules: Ordered (regex, tag) pairs; defaults to SPECIMEN_RULES
        """
        self.rules: List[Tuple[re.Pattern, SpecimenTag]] = [
            (re.compile(pattern, re.IGNORECASE), tag)
            for pattern, tag in (rules if rules is not None else SPECIMEN_RULES)
        ]
        self.strip_patterns = [re.compile(p, re.IGNORECASE) for p in SPECIMEN_WORD_PATTERNS]
        self.whitespace_pattern = re.compile(r"\s+")

    def extract_specimen(self, raw_name: str) -> SpecimenTag:
        """
        Classify the specimen implied by a raw (un-normalized) test name.

        Args:
            raw_name: Test name as printed in the catalog

        Returns:
            First matching SpecimenTag, or SpecimenTag.DEFAULT
        """
        if not isinstance(raw_name, str):
            return SpecimenTag.DEFAULT

        name = raw_name.upper()
        for pattern, tag in self.rules:
            if pattern.search(name):
                return tag
        return SpecimenTag.DEFAULT

    def strip_specimen_words(self, name: str) -> str:
        """Remove the specimen label and specimen words from a canonical name."""
        for pattern in self.strip_patterns:
            name = pattern.sub(" ", name)
        return self.whitespace_pattern.sub(" ", name).strip()


def specimen_label(tag: SpecimenTag) -> Optional[str]:
    """Display label appended to canonical names; None for DEFAULT."""
    return SPECIMEN_LABELS.get(tag, tag.value)
