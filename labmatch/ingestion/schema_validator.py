"""
Schema validation for LabMatch catalogs.

Checks that a loaded catalog carries the required columns with non-blank
values before any matching runs. Fails fast: a bad input aborts the build
before anything is written.
"""

import logging
from typing import Any, Dict, List, Optional

import pandas as pd

from ..exceptions import CatalogValidationError

logger = logging.getLogger(__name__)

MAX_REPORTED_ROWS = 10


class CatalogSchemaValidator:
    """
    Validates catalog DataFrames against required-column rules.
    """

    def __init__(self, required_columns: Optional[List[str]] = None):
        """
        Initialize validator.

        Args:
            required_columns: Columns that must exist and be non-blank in every row
        """
        self.required_columns = list(required_columns) if required_columns is not None else ["code", "raw_name"]

    def validate(self, df: pd.DataFrame, source_name: str) -> Dict[str, Any]:
        """
        Validate a catalog DataFrame.

        Args:
            df: Catalog DataFrame
            source_name: Input name used in error messages

        Returns:
            Validation summary dictionary

        Raises:
            CatalogValidationError: If a column is missing or has blank values
        """
        summary = {
            "source": source_name,
            "rows": len(df),
            "required_columns": self.required_columns,
            "success": True
        }

        # An empty catalog has no columns to check
        if df.empty:
            logger.warning(f"{source_name} is empty")
            return summary

        missing = [column for column in self.required_columns if column not in df.columns]
        if missing:
            raise CatalogValidationError(source_name, f"missing required columns {missing}")

        for column in self.required_columns:
            blank_mask = df[column].isna() | df[column].map(lambda v: isinstance(v, str) and not v.strip())
            if blank_mask.any():
                rows = [int(i) for i in df.index[blank_mask][:MAX_REPORTED_ROWS]]
                raise CatalogValidationError(
                    source_name,
                    f"{int(blank_mask.sum())} row(s) with blank '{column}' (rows {rows})"
                )

        logger.info(f"Validation passed for {source_name}: {len(df)} rows")
        return summary


def validate_catalog(df: pd.DataFrame, source_name: str,
                     required_columns: Optional[List[str]] = None) -> Dict[str, Any]:
    """
    Convenience function to validate a catalog DataFrame.

    Args:
        df: Catalog DataFrame
        source_name: Input name used in error messages
        required_columns: Columns that must exist and be non-blank

    Returns:
        Validation summary dictionary
    """
    validator = CatalogSchemaValidator(required_columns)
    return validator.validate(df, source_name)
