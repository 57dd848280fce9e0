"""
Ingestion service.

Runs one upload through routing, extraction and the store, and turns any
failure into a status the user can read.
"""

import logging
import threading
from typing import Any

from pydantic import BaseModel

from health_metrics_ledger.services.output import OutputService
from health_metrics_ledger.services.router import DocumentRouter
from health_metrics_ledger.services.store import TimeSeriesStore
from health_metrics_ledger.utils.date_utils import now_in_timezone
from health_metrics_ledger.utils.exceptions import HealthMetricsError, IngestionInProgressError

logger = logging.getLogger(__name__)


class IngestionResult(BaseModel):
    """Outcome of one upload."""

    file_name: str
    category: str
    status: str
    records: int = 0
    message: str

    @property
    def ok(self) -> bool:
        return self.status == "success"


class IngestionService:
    """
    Service for ingesting uploaded files into the store.

    Only one ingestion runs at a time; a failed ingestion never modifies
    the store.
    """

    def __init__(
        self,
        router: DocumentRouter,
        store: TimeSeriesStore,
        output_service: OutputService | None = None,
        timezone: str = "UTC",
    ) -> None:
        """
        Initialize ingestion service.

        Args:
            router: Router selecting the extractor per upload.
            store: Store receiving extracted records.
            output_service: Optional sink for the ingestion log.
            timezone: Timezone for ingestion event timestamps.
        """
        self.router = router
        self.store = store
        self.output_service = output_service
        self.timezone = timezone
        self._lock = threading.Lock()

    def _run(self, file_name: str, content: bytes, category: str) -> int:
        """
        Route, extract and append under the ingestion lock.

        Returns:
            Number of records added.

        Raises:
            HealthMetricsError: If any step fails.
        """
        if not self._lock.acquire(blocking=False):
            raise IngestionInProgressError("Another upload is still being processed")

        try:
            extractor = self.router.route(file_name, category)
            records = extractor.extract(content, file_name)
            if records:
                self.store.append(category, records)
            return len(records)
        finally:
            self._lock.release()

    def ingest(self, file_name: str, content: bytes, category: str) -> IngestionResult:
        """
        Ingest one uploaded file.

        Args:
            file_name: Uploaded file name.
            content: File bytes.
            category: Declared category (labs, dexa or vo2max).

        Returns:
            Result with a user-facing status message.
        """
        event: dict[str, Any] = {
            "timestamp": now_in_timezone(self.timezone).isoformat(),
            "file": file_name,
            "category": category,
            "action": "ingest",
        }

        try:
            count = self._run(file_name, content, category)
        except HealthMetricsError as e:
            logger.error(f"Failed to ingest {file_name} as {category}: {e}")
            event["status"] = "error"
            event["error"] = str(e)
            result = IngestionResult(
                file_name=file_name, category=category, status="error", message=f"Error: {e}"
            )
        else:
            event["status"] = "success"
            event["records"] = count
            if count:
                message = f"Added {count} {category} record{'s' if count != 1 else ''} from {file_name}"
            else:
                message = f"No {category} records found in {file_name}"
            logger.info(message)
            result = IngestionResult(
                file_name=file_name,
                category=category,
                status="success",
                records=count,
                message=message,
            )

        if self.output_service is not None:
            try:
                self.output_service.append_ingestion_event(event)
            except OSError as e:
                logger.warning(f"Could not write ingestion log for {file_name}: {e}")

        return result
