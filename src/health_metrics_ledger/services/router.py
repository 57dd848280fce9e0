"""
Document routing.

Selects the extractor for an upload from its declared category and file
extension, and rejects combinations no extractor handles.
"""

import logging
from collections.abc import Callable
from pathlib import PurePath
from typing import Protocol

from health_metrics_ledger.domain.metrics import Category, MetricRecord
from health_metrics_ledger.infrastructure.parsers.lab_panel_parser import LabPanelParser
from health_metrics_ledger.infrastructure.parsers.pdf_text import extract_pdf_text
from health_metrics_ledger.infrastructure.parsers.report_text_parser import (
    ReportTextParser,
    body_composition_parser,
    cardio_fitness_parser,
)
from health_metrics_ledger.utils.exceptions import ExtractionError, UnsupportedFormatError
from health_metrics_ledger.utils.parameters import LabPanelConfig

logger = logging.getLogger(__name__)

TextExtractor = Callable[[bytes], str]

CATEGORY_EXTENSIONS: dict[Category, tuple[str, ...]] = {
    Category.LABS: (".csv", ".xlsx"),
    Category.DEXA: (".pdf",),
    Category.VO2MAX: (".pdf",),
}


class Extractor(Protocol):
    """Turns uploaded file bytes into records."""

    def extract(self, content: bytes, file_name: str) -> list[MetricRecord]: ...


class LabPanelExtractor:
    """Extractor for tabular lab panels."""

    def __init__(self, parser: LabPanelParser) -> None:
        self.parser = parser

    def extract(self, content: bytes, file_name: str) -> list[MetricRecord]:
        return list(self.parser.parse(content, file_name))


class ReportDocumentExtractor:
    """Extractor for PDF reports: text extraction followed by rule matching."""

    def __init__(self, parser: ReportTextParser, text_extractor: TextExtractor) -> None:
        self.parser = parser
        self.text_extractor = text_extractor

    def extract(self, content: bytes, file_name: str) -> list[MetricRecord]:
        try:
            text = self.text_extractor(content)
        except Exception as e:
            raise ExtractionError(f"Could not read text from {file_name}: {e}") from e

        return self.parser.extract(text)


class DocumentRouter:
    """
    Router from (file name, declared category) to an extractor.

    The category is declared by the caller, never inferred from content;
    the file extension only has to agree with it.
    """

    def __init__(
        self,
        lab_panel_config: LabPanelConfig,
        text_extractor: TextExtractor = extract_pdf_text,
    ) -> None:
        """
        Initialize router.

        Args:
            lab_panel_config: Lab panel parsing configuration.
            text_extractor: PDF bytes to flattened text.
        """
        self.extractors: dict[Category, Extractor] = {
            Category.LABS: LabPanelExtractor(LabPanelParser(lab_panel_config)),
            Category.DEXA: ReportDocumentExtractor(body_composition_parser(), text_extractor),
            Category.VO2MAX: ReportDocumentExtractor(cardio_fitness_parser(), text_extractor),
        }

    def route(self, file_name: str, category: str) -> Extractor:
        """
        Select the extractor for an upload.

        Args:
            file_name: Uploaded file name (only the extension is used).
            category: Declared category (labs, dexa or vo2max).

        Returns:
            Extractor for the category.

        Raises:
            UnsupportedFormatError: If the category is unknown or the
                extension does not match it.
        """
        try:
            resolved = Category(category)
        except ValueError as e:
            raise UnsupportedFormatError(f"Unsupported category: {category}") from e

        extension = PurePath(file_name).suffix.lower()
        allowed = CATEGORY_EXTENSIONS[resolved]
        if extension not in allowed:
            raise UnsupportedFormatError(
                f"{resolved.value} uploads must be {' or '.join(allowed)} files, got {file_name!r}"
            )

        logger.debug(f"Routing {file_name} to {resolved.value} extractor")
        return self.extractors[resolved]
