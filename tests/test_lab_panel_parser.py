"""Unit tests for lab panel parser."""

import io
from datetime import datetime

import pandas as pd
import pytest

from health_metrics_ledger.domain.metrics import LabRecord
from health_metrics_ledger.infrastructure.parsers.lab_panel_parser import LabPanelParser
from health_metrics_ledger.utils.exceptions import ParseError
from health_metrics_ledger.utils.parameters import LabPanelConfig


def test_extract_rows_one_record_per_date() -> None:
    """Test each date column becomes a sparse record."""
    parser = LabPanelParser(LabPanelConfig())

    rows = [
        ["", "1/1/2024", "2/1/2024"],
        ["Cholesterol S/P", "190", "185"],
        ["LDL", "110", "x"],
    ]

    records = parser.extract_rows(rows)

    if len(records) != 2:
        raise AssertionError(f"Expected 2 records, got {len(records)}")

    if records[0].to_dict() != {"date": "2024-01", "cholesterol": 190.0, "ldl": 110.0}:
        raise AssertionError(f"Unexpected first record: {records[0].to_dict()}")

    if records[1].to_dict() != {"date": "2024-02", "cholesterol": 185.0}:
        raise AssertionError(f"Unexpected second record: {records[1].to_dict()}")

    if records[1].ldl is not None:
        raise AssertionError("Expected non-numeric LDL to be absent, not zeroed")


def test_extract_rows_suppresses_empty_columns() -> None:
    """Test a date column without recognized values produces no record."""
    parser = LabPanelParser(LabPanelConfig())

    rows = [
        ["", "1/1/2024", "2/1/2024", ""],
        ["HGB A1C", "5.4", "", "5.9"],
        ["Vitamin D", "30", "32", ""],
    ]

    records = parser.extract_rows(rows)

    if len(records) != 1:
        raise AssertionError(f"Expected 1 record, got {len(records)}")

    if records[0].to_dict() != {"date": "2024-01", "hba1c": 5.4}:
        raise AssertionError(f"Unexpected record: {records[0].to_dict()}")


def test_extract_rows_ignores_short_rows_and_nan() -> None:
    """Test ragged rows and non-finite values are skipped."""
    parser = LabPanelParser(LabPanelConfig())

    rows = [
        ["", "6/15/23", "9/1/23"],
        ["Glucose", "nan"],
        [" HDL ", "55", "60"],
        [],
    ]

    records = parser.extract_rows(rows)

    dates = [r.date for r in records]
    if dates != ["2023-06", "2023-09"]:
        raise AssertionError(f"Expected ['2023-06', '2023-09'], got {dates}")

    if any(r.glucose is not None for r in records):
        raise AssertionError("Expected glucose to be absent")


def test_parse_csv_bytes() -> None:
    """Test parsing a CSV export end to end."""
    parser = LabPanelParser(LabPanelConfig())

    content = (
        ",1/10/2024,4/12/2024\n"
        "Cholesterol S/P,201,188\n"
        "Triglycerides,150,\n"
        "HDL,48,52\n"
        "Hemoglobin,14.1,14.3\n"
    ).encode("utf-8")

    records = parser.parse(content, "panel.csv")

    if len(records) != 2:
        raise AssertionError(f"Expected 2 records, got {len(records)}")

    if not all(isinstance(r, LabRecord) for r in records):
        raise AssertionError("Expected LabRecord instances")

    if records[0].triglycerides != 150.0:
        raise AssertionError(f"Expected triglycerides=150.0, got {records[0].triglycerides}")

    if "triglycerides" in records[1].to_dict():
        raise AssertionError("Expected missing triglycerides to be omitted")


def test_parse_empty_file_raises() -> None:
    """Test an unreadable file raises ParseError."""
    parser = LabPanelParser(LabPanelConfig())

    with pytest.raises(ParseError):
        parser.parse(b"", "empty.csv")


def test_custom_label_mappings() -> None:
    """Test configured labels replace the defaults."""
    parser = LabPanelParser(LabPanelConfig(label_mappings={"Chol": "cholesterol"}))

    records = parser.extract_rows([["", "2/2/2022"], ["Chol", "170"], ["LDL", "90"]])

    if len(records) != 1 or records[0].to_dict() != {"date": "2022-02", "cholesterol": 170.0}:
        raise AssertionError(f"Unexpected records: {[r.to_dict() for r in records]}")


def test_parse_csv_rows_wider_than_dates() -> None:
    """Test trailing cells beyond the date columns do not reject the file."""
    parser = LabPanelParser(LabPanelConfig())

    content = b",1/1/2024\nCholesterol S/P,190\nLDL,110,<100 mg/dL\n"

    records = parser.parse(content, "panel.csv")

    if [r.to_dict() for r in records] != [{"date": "2024-01", "cholesterol": 190.0, "ldl": 110.0}]:
        raise AssertionError(f"Unexpected records: {[r.to_dict() for r in records]}")


def test_parse_xlsx_with_date_cells() -> None:
    """Test spreadsheet panels, including real date cells in the header row."""
    parser = LabPanelParser(LabPanelConfig())

    buffer = io.BytesIO()
    pd.DataFrame(
        [
            ["", datetime(2024, 1, 1), "2/1/2024"],
            ["Cholesterol S/P", 190, 185],
            ["LDL", 110, "x"],
        ]
    ).to_excel(buffer, header=False, index=False)

    records = parser.parse(buffer.getvalue(), "panel.xlsx")

    expected = [
        {"date": "2024-01", "cholesterol": 190.0, "ldl": 110.0},
        {"date": "2024-02", "cholesterol": 185.0},
    ]
    if [r.to_dict() for r in records] != expected:
        raise AssertionError(f"Expected {expected}, got {[r.to_dict() for r in records]}")
