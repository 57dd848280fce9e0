"""
Lab panel parser for transposed tabular exports.

Lab portals export panels with one metric per row and one blood draw per
column. This parser reads CSV or XLSX files and turns each draw column
into a sparse lab record.
"""

import io
import logging
import math
from datetime import date, datetime
from typing import Any

import pandas as pd

from health_metrics_ledger.domain.metrics import LabRecord
from health_metrics_ledger.utils.date_utils import normalize_date
from health_metrics_ledger.utils.exceptions import ParseError
from health_metrics_ledger.utils.parameters import LabPanelConfig

logger = logging.getLogger(__name__)


class LabPanelParser:
    """
    Parser for lab panel files.

    Row 0 holds the draw dates (column 0 is blank), every following row is
    a metric label followed by one value per draw date.
    """

    def __init__(self, config: LabPanelConfig) -> None:
        """
        Initialize lab panel parser.

        Args:
            config: Lab panel parsing configuration.
        """
        self.config = config
        self.label_mappings = config.label_mappings

    def _decode(self, content: bytes) -> str:
        """
        Decode file bytes using the first encoding that works.

        Args:
            content: Raw file bytes.

        Returns:
            Decoded text.
        """
        for encoding in self.config.encodings:
            try:
                text = content.decode(encoding)
                logger.debug(f"Detected encoding: {encoding}")
                return text
            except (UnicodeDecodeError, LookupError):
                continue

        logger.warning("Encoding detection failed, using utf-8 with replacement")
        return content.decode("utf-8", errors="replace")

    @staticmethod
    def _cell_to_str(value: Any) -> str:
        """Render a spreadsheet cell as the text a CSV export would hold."""
        if value is None:
            return ""
        if isinstance(value, (datetime, date)):
            return f"{value.month}/{value.day}/{value.year}"
        if isinstance(value, float) and math.isnan(value):
            return ""
        return str(value)

    def _read_rows(self, content: bytes, file_name: str) -> list[list[str]]:
        """
        Read a CSV or XLSX file into a grid of strings.

        Args:
            content: Raw file bytes.
            file_name: File name, used to pick the reader.

        Returns:
            Rows of cell strings, empty cells as "".
        """
        if file_name.lower().endswith(".xlsx"):
            df = pd.read_excel(io.BytesIO(content), header=None, dtype=object)
        else:
            text = self._decode(content)
            if not text.strip():
                raise ValueError("file is empty")

            # Rows may be wider than the date row (units, reference ranges).
            width = max(line.count(",") + 1 for line in text.splitlines())
            df = pd.read_csv(
                io.StringIO(text),
                header=None,
                names=list(range(width)),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                engine="python",
            )

        return [[self._cell_to_str(cell) for cell in row] for row in df.itertuples(index=False)]

    def _safe_float_conversion(self, value: str) -> float | None:
        """
        Safely convert a cell to float.

        Args:
            value: Cell text.

        Returns:
            Float value or None if the cell is empty or not a finite number.
        """
        value = value.strip()
        if not value:
            return None

        try:
            number = float(value)
        except ValueError:
            return None

        return number if math.isfinite(number) else None

    def extract_rows(self, rows: list[list[str]]) -> list[LabRecord]:
        """
        Build one lab record per draw date column.

        Args:
            rows: Grid of cell strings, dates in row 0.

        Returns:
            Records for the columns that produced at least one metric.
        """
        if not rows:
            return []

        header = rows[0]
        records: list[LabRecord] = []

        for col in range(1, len(header)):
            date_cell = header[col].strip()
            if not date_cell:
                continue

            values: dict[str, Any] = {"date": normalize_date(date_cell)}

            for row in rows[1:]:
                if not row or col >= len(row):
                    continue

                field = self.label_mappings.get(row[0].strip())
                if field is None:
                    continue

                number = self._safe_float_conversion(row[col])
                if number is None:
                    if row[col].strip():
                        logger.debug(f"Skipping non-numeric {field} value {row[col]!r} for {date_cell}")
                    continue

                values[field] = number

            record = LabRecord(**values)
            if record.has_metrics():
                records.append(record)
            else:
                logger.debug(f"No recognized metrics for {date_cell}, skipping column")

        return records

    def parse(self, content: bytes, file_name: str) -> list[LabRecord]:
        """
        Parse a lab panel file into lab records.

        Args:
            content: Raw file bytes.
            file_name: Original file name.

        Returns:
            List of lab records, one per draw date with data.

        Raises:
            ParseError: If the tabular reader fails.
        """
        try:
            rows = self._read_rows(content, file_name)
        except Exception as e:
            raise ParseError(f"Failed to parse lab panel {file_name}: {e}") from e

        records = self.extract_rows(rows)
        logger.info(f"Parsed {len(records)} lab records from {file_name}")
        return records
