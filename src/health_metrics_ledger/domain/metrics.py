"""
Health metric domain models.

This module defines the record schema for each metric category and the
three-series aggregate that is persisted as a single unit.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Category(str, Enum):
    """Enumeration of ingestion categories."""

    LABS = "labs"
    DEXA = "dexa"
    VO2MAX = "vo2max"


class MetricRecord(BaseModel):
    """
    One test or report event: a month key plus sparse numeric fields.

    Fields that were not extracted stay ``None`` in memory and are never
    serialized.
    """

    date: str = Field(description="Canonical month key (YYYY-MM)")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @classmethod
    def metric_names(cls) -> list[str]:
        """Display names (aliases) of the metric fields, excluding date."""
        return [info.alias or name for name, info in cls.model_fields.items() if name != "date"]

    def get_value(self, field_name: str) -> float | None:
        """
        Look up a metric by attribute name or display alias.

        Args:
            field_name: Attribute name (``body_fat``) or alias (``bodyFat``).

        Returns:
            The value, or None if the field is absent or unknown.
        """
        for name, info in type(self).model_fields.items():
            if field_name in (name, info.alias):
                return getattr(self, name)
        return None

    def metrics(self) -> dict[str, float]:
        """Present metric values keyed by display name."""
        data = self.to_dict()
        data.pop("date")
        return data

    def has_metrics(self) -> bool:
        """Whether at least one metric besides date is present."""
        return bool(self.metrics())

    def to_dict(self) -> dict[str, Any]:
        """
        Convert record to its persisted representation.

        Returns:
            Dictionary keyed by display names with absent fields omitted.
        """
        return self.model_dump(by_alias=True, exclude_none=True)


class LabRecord(MetricRecord):
    """Blood panel results from a single draw."""

    cholesterol: float | None = Field(None, description="Total cholesterol (mg/dL)")
    triglycerides: float | None = Field(None, description="Triglycerides (mg/dL)")
    ldl: float | None = Field(None, description="LDL cholesterol (mg/dL)")
    hdl: float | None = Field(None, description="HDL cholesterol (mg/dL)")
    glucose: float | None = Field(None, description="Fasting glucose (mg/dL)")
    hba1c: float | None = Field(None, description="Hemoglobin A1C (%)")


class BodyCompositionRecord(MetricRecord):
    """DEXA scan results."""

    body_fat: float | None = Field(None, alias="bodyFat", description="Total body fat (%)")
    lean_mass: float | None = Field(None, alias="leanMass", description="Lean tissue (kg)")
    fat_tissue: float | None = Field(None, alias="fatTissue", description="Fat tissue (lbs)")
    visceral_fat: float | None = Field(
        None, alias="visceralFat", description="Visceral fat area (cm2)"
    )
    bone_density: float | None = Field(
        None, alias="boneDensity", description="Bone density (T-score)"
    )


class CardioFitnessRecord(MetricRecord):
    """
    Cardio-pulmonary exercise test results.

    ``resting_hr`` falls back to 60 when the report does not state it, so a
    stored value of exactly 60 may not be a measurement.
    """

    vo2max: float = Field(description="VO2 max (ml/kg/min)")
    heart_rate_max: float | None = Field(
        None, alias="heartRateMax", description="Max heart rate (bpm)"
    )
    resting_hr: float | None = Field(None, alias="restingHR", description="Resting heart rate (bpm)")


RECORD_TYPES: dict[Category, type[MetricRecord]] = {
    Category.LABS: LabRecord,
    Category.DEXA: BodyCompositionRecord,
    Category.VO2MAX: CardioFitnessRecord,
}


class HealthStore(BaseModel):
    """
    Aggregate of the three time series.

    Each series is ordered by ascending month key. This is the unit of
    persistence: it is always written whole.
    """

    labs: list[LabRecord] = Field(default_factory=list)
    dexa: list[BodyCompositionRecord] = Field(default_factory=list)
    vo2max: list[CardioFitnessRecord] = Field(default_factory=list)

    def series(self, category: Category) -> list[MetricRecord]:
        """Get the series for a category."""
        return getattr(self, Category(category).value)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert store to its persisted representation.

        Returns:
            ``{"labs": [...], "dexa": [...], "vo2max": [...]}``.
        """
        return {
            category.value: [record.to_dict() for record in self.series(category)]
            for category in Category
        }
