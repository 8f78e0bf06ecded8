"""
Test name normalization for LabMatch.

Folds accents, case, apostrophes and punctuation and strips French
connector words so that names from different catalogs compare on their
medical content only.
"""

import re
import logging
import unicodedata
from typing import List, Tuple
import pandas as pd

logger = logging.getLogger(__name__)


# Ordered: multi-word connectors must be removed before their one-word prefixes
STOPWORD_PATTERNS: Tuple[str, ...] = (
    r"\bPROFIL\b",
    r"\bNO(?:\b|(?=\d))",
    r"\bDE\s+LA\b",
    r"\bDE\s+L'",
    r"\bDU\b",
    r"\bDES\b",
    r"\bDE\b",
    r"\bD'",
    r"\bET\b",
    r"\bLE\b",
    r"\bLA\b",
    r"\bLES\b",
    r"\bDIRIGES?\s+CONTRE\b",
    r"\bAVEC\b",
    r"\bPAR\b",
    r"\bAU\b",
    r"\bEN\b",
)


class TextNormalizer:
    """
    Normalizes lab test names for cross-catalog comparison.

    Stopwords are removed on word boundaries only, so tokens such as
    "LESION" or "DESMOSINE" keep their leading letters.
    """

    def __init__(self):
        self.apostrophe_pattern = re.compile(r"[‘’ʼ´`]")
        self.stopword_patterns = [re.compile(p) for p in STOPWORD_PATTERNS]
        self.punctuation_pattern = re.compile(r"[()\[\],.:;/\-+&]")
        self.whitespace_pattern = re.compile(r"\s+")

    def normalize_name(self, name: str) -> str:
        """
        Normalize a single test name.

        Args:
            name: Raw test name

        Returns:
            Normalized name (uppercase, ASCII letters, single spaces)
        """
        if not isinstance(name, str):
            return ""

        # Strip diacritics
        name = unicodedata.normalize("NFD", name)
        name = "".join(c for c in name if not unicodedata.combining(c))

        name = name.upper()
        name = self.apostrophe_pattern.sub("'", name)
        name = name.replace("#", " ")

        for pattern in self.stopword_patterns:
            name = pattern.sub(" ", name)

        name = self.punctuation_pattern.sub(" ", name)
        name = self.whitespace_pattern.sub(" ", name).strip()

        return name

    def tokenize(self, name: str) -> List[str]:
        """
        Split a normalized name into tokens.

        Args:
            name: Normalized test name

        Returns:
            List of non-empty tokens
        """
        if not isinstance(name, str):
            return []
        return [token for token in name.split() if token]

    def normalize_dataframe(self, df: pd.DataFrame, name_column: str = "raw_name") -> pd.DataFrame:
        """
        Add a normalized name column to a catalog DataFrame.

        Args:
            df: Catalog DataFrame
            name_column: Column holding raw test names

        Returns:
            Copy of the DataFrame with a `norm_name` column
        """
        result_df = df.copy()
        result_df["norm_name"] = result_df[name_column].apply(self.normalize_name)
        logger.debug(f"Normalized names for {len(result_df)} records")
        return result_df


_default_normalizer = TextNormalizer()


def normalize(name: str) -> str:
    """Normalize a test name with the shared default normalizer."""
    return _default_normalizer.normalize_name(name)


def tokenize(name: str) -> List[str]:
    """Tokenize a normalized test name."""
    return _default_normalizer.tokenize(name)
