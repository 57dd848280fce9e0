"""
Pattern-based parser for medical report text.

Body-composition (DEXA) and cardio-fitness (VO2 max) reports arrive as PDFs
whose text has been flattened into a single whitespace-joined string. Each
report category is described by a table of field rules; adding a vendor
layout means adding a pattern, not new control flow.
"""

import logging
import math
import re
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from health_metrics_ledger.domain.metrics import (
    BodyCompositionRecord,
    CardioFitnessRecord,
    MetricRecord,
)
from health_metrics_ledger.utils.date_utils import normalize_date
from health_metrics_ledger.utils.exceptions import ExtractionError

logger = logging.getLogger(__name__)

LBS_PER_KG = 2.205
DEFAULT_RESTING_HR = 60.0

NUMBER = r"(-?\d+(?:\.\d+)?)"
SLASH_DATE = r"(\d{1,2}/\d{1,2}/\d{2,4})"


def to_float(raw: str) -> float:
    """Parse a matched number, rejecting non-finite values."""
    value = float(raw)
    if not math.isfinite(value):
        raise ValueError(f"Non-finite value: {raw}")
    return value


def pounds_to_kg(raw: str) -> float:
    """Parse a pound value and convert it to kilograms."""
    return to_float(raw) / LBS_PER_KG


class FieldRule(BaseModel):
    """
    Extraction rule for one record field.

    Patterns are tried in order and the first match wins. The first capture
    group is passed to ``postprocess``; a ValueError there counts as no
    match.
    """

    field: str = Field(description="Record field (display name)")
    patterns: list[str] = Field(description="Case-insensitive regexes with one capture group")
    required: bool = False
    postprocess: Callable[[str], Any] = to_float
    default: float | None = None

    model_config = ConfigDict(frozen=True)

    def apply(self, text: str) -> Any:
        """
        Evaluate the rule against report text.

        Args:
            text: Flattened report text.

        Returns:
            Post-processed value, or None if nothing usable matched.
        """
        for pattern in self.patterns:
            match = re.search(pattern, text, re.IGNORECASE | re.DOTALL)
            if match is None:
                continue
            try:
                return self.postprocess(match.group(1).strip())
            except ValueError:
                logger.debug(f"Discarding unusable {self.field} match {match.group(1)!r}")
                return None
        return None


DEXA_RULES: list[FieldRule] = [
    FieldRule(
        field="date",
        patterns=[
            rf"measured(?:\s+date)?\s*:?\s*{SLASH_DATE}",
            rf"(?:scan\s+)?date\s*:?\s*{SLASH_DATE}",
        ],
        required=True,
        postprocess=normalize_date,
    ),
    FieldRule(field="bodyFat", patterns=[rf"total\s+body\s+fat\s*%?\s*:?\s*{NUMBER}"]),
    FieldRule(
        field="leanMass",
        patterns=[rf"lean\s+tissue\s*\(\s*lbs\s*\)\s*:?\s*{NUMBER}"],
        postprocess=pounds_to_kg,
    ),
    FieldRule(field="fatTissue", patterns=[rf"fat\s+tissue\s*\(\s*lbs\s*\)\s*:?\s*{NUMBER}"]),
    FieldRule(
        field="visceralFat",
        patterns=[
            rf"visceral\s+fat(?:\s+area)?\s*(?:\(\s*cm(?:²|2|\^2)\s*\))?\s*:?\s*{NUMBER}"
        ],
    ),
    FieldRule(field="boneDensity", patterns=[rf"\bt-?\s?score\s*:?\s*{NUMBER}"]),
]

VO2MAX_RULES: list[FieldRule] = [
    FieldRule(
        field="date",
        patterns=[r"(\d{1,2}/\d{1,2}/\d{4})"],
        required=True,
        postprocess=normalize_date,
    ),
    FieldRule(
        field="vo2max",
        patterns=[
            rf"max\s+values.*?vo2\s*(?:max)?\s*:?\s*{NUMBER}",
            rf"vo2\s*(?:max)?\s*:?\s*{NUMBER}",
        ],
        required=True,
    ),
    FieldRule(
        field="heartRateMax",
        patterns=[
            rf"max\s+hr\s*:?\s*{NUMBER}",
            rf"max(?:imum)?\s+heart\s+rate\s*:?\s*{NUMBER}",
        ],
    ),
    FieldRule(
        field="restingHR",
        patterns=[rf"resting\s+(?:hr|heart\s+rate)\s*:?\s*{NUMBER}"],
        default=DEFAULT_RESTING_HR,
    ),
]


class ReportTextParser:
    """
    Rule-table driven extractor for a single report category.

    A report describes one point-in-time test, so a document yields at most
    one record.
    """

    def __init__(self, rules: list[FieldRule], record_type: type[MetricRecord]) -> None:
        """
        Initialize report parser.

        Args:
            rules: Field rules for the report category.
            record_type: Record model the extracted fields populate.
        """
        self.rules = rules
        self.record_type = record_type

    def extract(self, text: str) -> list[MetricRecord]:
        """
        Extract a record from report text.

        Args:
            text: Flattened, whitespace-joined document text.

        Returns:
            A single-element list, or an empty list when the date was found
            but no metric was.

        Raises:
            ExtractionError: If a required field is missing.
        """
        values: dict[str, Any] = {}

        for rule in self.rules:
            value = rule.apply(text)

            if value is None and rule.required:
                raise ExtractionError(f"{rule.field} not found")

            if value is None and rule.default is not None:
                logger.debug(f"{rule.field} not found, using default {rule.default}")
                value = rule.default

            if value is not None:
                values[rule.field] = value

        record = self.record_type.model_validate(values)
        if not record.has_metrics():
            logger.warning(f"No {self.record_type.__name__} metrics found for {record.date}")
            return []

        logger.info(f"Extracted {self.record_type.__name__} for {record.date}: {record.metrics()}")
        return [record]


def body_composition_parser() -> ReportTextParser:
    """Parser for DEXA body-composition reports."""
    return ReportTextParser(DEXA_RULES, BodyCompositionRecord)


def cardio_fitness_parser() -> ReportTextParser:
    """Parser for VO2 max cardio-fitness reports."""
    return ReportTextParser(VO2MAX_RULES, CardioFitnessRecord)
