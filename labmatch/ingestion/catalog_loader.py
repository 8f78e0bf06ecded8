"""
Catalog loading for LabMatch.

Reads lab catalogs and the specimen side table from JSON files into pandas
DataFrames, removes same-lab duplicate codes, joins specimen collection
metadata and converts rows into validated LabTestRecord models.
"""

import json
import logging
from pathlib import Path
from typing import List, Tuple

import pandas as pd
from pydantic import ValidationError

from ..exceptions import CatalogLoadError, CatalogValidationError
from ..models import LabTestRecord, SpecimenMeta, code_key

logger = logging.getLogger(__name__)

SPECIMEN_COLUMNS = ["tube", "temperature", "turnaroundTime"]


def load_catalog(path: str, source_name: str) -> pd.DataFrame:
    """
    Load a JSON array of records into a DataFrame.

    Args:
        path: Path to the JSON file
        source_name: Input name used in error messages (e.g. "left catalog")

    Returns:
        DataFrame with one row per record, in file order

    Raises:
        CatalogLoadError: If the file is missing, malformed or not an array of objects
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise CatalogLoadError(source_name, "file not found", path=str(path))

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError) as e:
        raise CatalogLoadError(source_name, f"cannot read file: {e}", path=str(path)) from e
    except json.JSONDecodeError as e:
        raise CatalogLoadError(source_name, f"malformed JSON: {e}", path=str(path)) from e

    if not isinstance(data, list):
        raise CatalogLoadError(source_name, f"expected a JSON array, got {type(data).__name__}",
                               path=str(path))
    bad_rows = [i for i, row in enumerate(data) if not isinstance(row, dict)]
    if bad_rows:
        raise CatalogLoadError(source_name, f"non-object entries at positions {bad_rows[:10]}",
                               path=str(path))

    # Object dtype keeps values exactly as written (integer prices stay integers)
    df = pd.DataFrame(data, dtype=object) if data else pd.DataFrame()

    logger.info(f"Loaded {len(df)} records from {source_name} ({path})")
    return df


def deduplicate_codes(df: pd.DataFrame) -> pd.DataFrame:
    """
    Keep one row per code.

    Codes are compared as strings, so 101 and "101" are the same code.
    The first row with a non-null category wins; if no row for a code has
    a category, the first row wins. Codes keep their first-seen order.

    Args:
        df: Catalog DataFrame with a `code` column

    Returns:
        Deduplicated DataFrame with a fresh index
    """
    if df.empty:
        return df.reset_index(drop=True)

    df = df.assign(code=df["code"].map(code_key))
    has_category = df["category"].notna() if "category" in df.columns else pd.Series(False, index=df.index)
    ranked = df.reset_index(drop=True).assign(
        _order=range(len(df)),
        _no_category=(~has_category).astype(int).to_numpy(),
    )
    ranked["_first_seen"] = ranked.groupby("code", sort=False)["_order"].transform("min")

    deduped = (
        ranked.sort_values(["_no_category", "_order"], kind="mergesort")
        .drop_duplicates(subset="code", keep="first")
        .sort_values("_first_seen", kind="mergesort")
        .drop(columns=["_order", "_no_category", "_first_seen"])
        .reset_index(drop=True)
    )

    removed = len(df) - len(deduped)
    if removed:
        logger.info(f"Removed {removed} duplicate code rows")
    return deduped


def enrich_with_specimens(df: pd.DataFrame, specimen_df: pd.DataFrame) -> Tuple[pd.DataFrame, int]:
    """
    Join specimen collection metadata onto a catalog by exact code.

    When the side table repeats a code, its last row wins. Codes absent from
    the catalog are ignored.

    Args:
        df: Catalog DataFrame
        specimen_df: Side table with `code`, `tube`, `temperature`, `turnaroundTime`

    Returns:
        Tuple of (enriched copy of the catalog, number of rows enriched)
    """
    result_df = df.copy()
    if specimen_df.empty or result_df.empty:
        return result_df, 0

    result_df["code"] = result_df["code"].map(code_key)
    side = specimen_df.assign(code=specimen_df["code"].map(code_key))
    side = side.drop_duplicates(subset="code", keep="last").copy()
    for column in SPECIMEN_COLUMNS:
        if column not in side.columns:
            side[column] = None
    side = side[["code"] + SPECIMEN_COLUMNS].rename(
        columns={column: f"_spec_{column}" for column in SPECIMEN_COLUMNS}
    )

    merged = result_df.merge(side, on="code", how="left", indicator=True)
    matched = merged["_merge"] == "both"

    for column in SPECIMEN_COLUMNS:
        # Empty strings count as absent
        values = merged[f"_spec_{column}"].where(merged[f"_spec_{column}"] != "", None)
        result_df[column] = values.where(matched, None).astype(object).to_numpy()

    enriched_count = int(matched.sum())
    logger.info(f"Enriched {enriched_count} records with specimen data")
    return result_df, enriched_count


def records_from_frame(df: pd.DataFrame, lab_id: str) -> List[LabTestRecord]:
    """
    Convert catalog rows into validated, frozen records.

    Args:
        df: Catalog DataFrame (optionally enriched)
        lab_id: Lab identifier stamped on every record

    Returns:
        List of LabTestRecord in row order

    Raises:
        CatalogValidationError: If a row fails model validation
    """
    records = []
    for position, row in enumerate(df.to_dict(orient="records")):
        meta = None
        if any(column in row for column in SPECIMEN_COLUMNS):
            meta = SpecimenMeta(**{column: row.get(column) for column in SPECIMEN_COLUMNS})
            if meta.is_empty():
                meta = None

        fields = {**row, "lab_id": lab_id, "specimen_meta": meta}
        try:
            records.append(LabTestRecord(**fields))
        except ValidationError as e:
            raise CatalogValidationError(
                lab_id, f"row {position} (code={row.get('code')!r}) is invalid: {e}"
            ) from e

    logger.debug(f"Built {len(records)} {lab_id} records")
    return records
