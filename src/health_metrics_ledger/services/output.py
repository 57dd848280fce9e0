"""
Output service for exports and the ingestion log.

Handles JSON, CSV and Parquet exports of the store and the JSONL log of
ingestion attempts.
"""

import json
import logging
from pathlib import Path
from typing import Any

import pandas as pd

from health_metrics_ledger.domain.metrics import RECORD_TYPES, Category, HealthStore
from health_metrics_ledger.utils.date_utils import now_in_timezone
from health_metrics_ledger.utils.parameters import OutputConfig

logger = logging.getLogger(__name__)


class OutputService:
    """
    Service for writing data to output files.

    Exports use the same structure as the persisted state.
    """

    def __init__(self, config: OutputConfig, timezone: str = "UTC") -> None:
        """
        Initialize output service.

        Args:
            config: Output configuration.
            timezone: Timezone for dated export names.
        """
        self.config = config
        self.timezone = timezone
        self.output_dir = Path(config.dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def export_name(self) -> str:
        """Base name of today's export artifacts."""
        today = now_in_timezone(self.timezone).date().isoformat()
        return self.config.export_file_template.format(date=today)

    def export_store(self, store: HealthStore, name: str | None = None) -> list[Path]:
        """
        Export the store in every configured format.

        Args:
            store: Aggregate to export.
            name: Base file name; defaults to the dated template.

        Returns:
            Paths of the written files.
        """
        base_name = name or self.export_name()
        written: list[Path] = []

        if "json" in self.config.formats:
            written.append(self._write_json(store, base_name))

        if "csv" in self.config.formats:
            written.extend(self._write_tables(store, base_name, "csv"))

        if "parquet" in self.config.formats:
            written.extend(self._write_tables(store, base_name, "parquet"))

        logger.info(f"Exported store to {len(written)} files")
        return written

    def _write_json(self, store: HealthStore, base_name: str) -> Path:
        """
        Write the store as a single JSON document.

        Args:
            store: Aggregate to export.
            base_name: Base file name.

        Returns:
            Path of the written file.
        """
        json_path = self.output_dir / f"{base_name}.json"

        with open(json_path, "w", encoding="utf-8") as f:
            json.dump(store.to_dict(), f, indent=2)

        logger.info(f"Wrote JSON export to {json_path}")
        return json_path

    def _write_tables(self, store: HealthStore, base_name: str, fmt: str) -> list[Path]:
        """
        Write one table per non-empty series.

        Args:
            store: Aggregate to export.
            base_name: Base file name.
            fmt: "csv" or "parquet".

        Returns:
            Paths of the written files.
        """
        written: list[Path] = []

        for category in Category:
            series = store.series(category)
            if not series:
                continue

            columns = ["date", *RECORD_TYPES[category].metric_names()]
            df = pd.DataFrame([record.to_dict() for record in series], columns=columns)
            path = self.output_dir / f"{base_name}-{category.value}.{fmt}"

            if fmt == "csv":
                df.to_csv(path, index=False, encoding="utf-8")
            else:
                df.to_parquet(  # type: ignore[call-overload]
                    path,
                    engine=self.config.parquet.engine,
                    compression=self.config.parquet.compression,
                    index=False,
                )

            logger.info(f"Wrote {len(df)} {category.value} rows to {path}")
            written.append(path)

        return written

    def append_ingestion_event(self, event: dict[str, Any]) -> None:
        """
        Append an ingestion event to the JSONL log.

        Args:
            event: Event dictionary.
        """
        log_path = self.output_dir / self.config.ingestion_log

        with open(log_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(event, default=str) + "\n")

        logger.debug(f"Logged {event.get('status')} event for {event.get('file')}")
