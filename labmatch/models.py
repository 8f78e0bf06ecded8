"""
Domain models for LabMatch.

Lab test records are frozen pydantic models: loading validates them once and
every later stage (enrichment included) works on copies, never mutating the
records read from the input catalogs.
"""

import math
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: Any) -> Any:
    """Map NaN (pandas missing values) and empty strings to None."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


def code_key(value: Any) -> Any:
    """Read a catalog code as a string; integral numbers become their digits."""
    # Catalogs sometimes carry numeric codes
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return value


class SpecimenTag(str, Enum):
    """Specimen type implied by a test name."""

    SERUM = "SERUM"
    URINE = "URINE"
    URINE_24H = "URINE_24H"
    URINE_RANDOM = "URINE_RANDOM"
    WHOLE_BLOOD = "WHOLE_BLOOD"
    PLASMA = "PLASMA"
    STOOL = "STOOL"
    THROAT = "THROAT"
    VAGINAL = "VAGINAL"
    CERVICAL = "CERVICAL"
    RECTAL = "RECTAL"
    NASAL = "NASAL"
    WOUND = "WOUND"
    SPUTUM = "SPUTUM"
    RBC = "RBC"
    HAIR = "HAIR"
    DEFAULT = "DEFAULT"


class SpecimenMeta(BaseModel):
    """Specimen collection metadata joined from the side table."""

    tube: Optional[str] = None
    temperature: Optional[str] = None
    turnaround_time: Optional[str] = Field(default=None, alias="turnaroundTime")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("tube", "temperature", "turnaround_time", mode="before")
    @classmethod
    def _clean(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        return str(value) if value is not None else None

    def is_empty(self) -> bool:
        return self.tube is None and self.temperature is None and self.turnaround_time is None


class LabTestRecord(BaseModel):
    """One lab's offering of a test, as read from its catalog."""

    code: str
    raw_name: str
    lab_id: str
    type: Optional[Literal["individual", "profile"]] = None
    category: Optional[str] = None
    price: Optional[Union[int, float]] = None
    components: Optional[Tuple[str, ...]] = None
    specimen_meta: Optional[SpecimenMeta] = None

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("code", mode="before")
    @classmethod
    def _code_to_str(cls, value: Any) -> Any:
        return code_key(value)

    @field_validator("type", "category", "price", mode="before")
    @classmethod
    def _missing_to_none(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("components", mode="before")
    @classmethod
    def _components(cls, value: Any) -> Any:
        value = _blank_to_none(value)
        if value is None:
            return None
        return tuple(value)


class ScoreResult(BaseModel):
    """Composite similarity between two records."""

    score: float
    reasons: List[str] = Field(default_factory=list)


class CandidatePair(BaseModel):
    """A scored (left, right) pair at or above the match threshold."""

    left_idx: int
    right_idx: int
    score: float
    reasons: List[str] = Field(default_factory=list)


class MatchAssignment(BaseModel):
    """A committed 1:1 pairing between a left and a right record."""

    left_idx: int
    right_idx: int
    score: float
    reasons: List[str] = Field(default_factory=list)


class ConflictRecord(BaseModel):
    """A right record whose best candidates are too close to call."""

    right_idx: int
    candidates: List[CandidatePair]


class MatchResult(BaseModel):
    """Output of the matcher: assignments, conflicts and leftovers."""

    assignments: List[MatchAssignment]
    conflicts: List[ConflictRecord]
    unmatched_left: List[int]
    unmatched_right: List[int]
    candidates_by_right: Dict[int, List[CandidatePair]] = Field(default_factory=dict)
