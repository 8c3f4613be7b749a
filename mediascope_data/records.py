from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Literal


FieldKind = Literal["numeric", "categorical", "boolean"]


@dataclass(frozen=True)
class Record:
    """One survey respondent. Never mutated after load."""

    student_id: int
    age: float
    gender: str
    academic_level: str
    country: str
    avg_daily_usage_hours: float
    most_used_platform: str
    affects_academic_performance: bool
    sleep_hours_per_night: float
    mental_health_score: float
    relationship_status: str
    conflicts_over_social_media: float
    addicted_score: float

    def get(self, name: str) -> Any:
        return getattr(self, resolve_field(name))


# Dataset column -> attribute name.
COLUMN_FIELDS: dict[str, str] = {
    "Student_ID": "student_id",
    "Age": "age",
    "Gender": "gender",
    "Academic_Level": "academic_level",
    "Country": "country",
    "Avg_Daily_Usage_Hours": "avg_daily_usage_hours",
    "Most_Used_Platform": "most_used_platform",
    "Affects_Academic_Performance": "affects_academic_performance",
    "Sleep_Hours_Per_Night": "sleep_hours_per_night",
    "Mental_Health_Score": "mental_health_score",
    "Relationship_Status": "relationship_status",
    "Conflicts_Over_Social_Media": "conflicts_over_social_media",
    "Addicted_Score": "addicted_score",
}

FIELD_KINDS: dict[str, FieldKind] = {
    "student_id": "numeric",
    "age": "numeric",
    "gender": "categorical",
    "academic_level": "categorical",
    "country": "categorical",
    "avg_daily_usage_hours": "numeric",
    "most_used_platform": "categorical",
    "affects_academic_performance": "boolean",
    "sleep_hours_per_night": "numeric",
    "mental_health_score": "numeric",
    "relationship_status": "categorical",
    "conflicts_over_social_media": "numeric",
    "addicted_score": "numeric",
}

NUMERIC_FIELDS = tuple(name for name, kind in FIELD_KINDS.items() if kind == "numeric")
CATEGORICAL_FIELDS = tuple(name for name, kind in FIELD_KINDS.items() if kind == "categorical")

_ATTRIBUTES = frozenset(f.name for f in fields(Record))


def resolve_field(name: str) -> str:
    """Map a dataset column name or attribute name to the Record attribute."""

    if name in _ATTRIBUTES:
        return name
    mapped = COLUMN_FIELDS.get(name)
    if mapped is None:
        raise KeyError(f"unknown record field: {name}")
    return mapped


def column_for(attribute: str) -> str:
    for column, attr in COLUMN_FIELDS.items():
        if attr == attribute:
            return column
    raise KeyError(f"unknown record attribute: {attribute}")


def field_label(name: str) -> str:
    return column_for(resolve_field(name)).replace("_", " ")
