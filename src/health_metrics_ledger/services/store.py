"""
Time-series store.

Holds the three metric series, merges newly extracted records into them,
and persists the aggregate as a single blob.
"""

import json
import logging
from collections.abc import Sequence

from pydantic import ValidationError

from health_metrics_ledger.domain.metrics import RECORD_TYPES, Category, HealthStore, MetricRecord
from health_metrics_ledger.infrastructure.storage.backends import StateBackend
from health_metrics_ledger.utils.exceptions import StorageError

logger = logging.getLogger(__name__)


class TimeSeriesStore:
    """
    Store for the per-category metric series.

    Mutations are all-or-nothing: the merged state is built on a copy and
    becomes visible only once it has been persisted.
    """

    def __init__(self, backend: StateBackend, key: str = "health-data") -> None:
        """
        Initialize store with empty series.

        Args:
            backend: Blob backend used for persistence.
            key: Identifier of the persisted blob.
        """
        self.backend = backend
        self.key = key
        self._state = HealthStore()

    @property
    def state(self) -> HealthStore:
        """Snapshot of the current aggregate."""
        return self._state.model_copy(deep=True)

    def series(self, category: Category | str) -> list[MetricRecord]:
        """
        Get a copy of one category's series.

        Args:
            category: Category of the series.

        Returns:
            Records ordered by ascending month key.
        """
        return [record.model_copy() for record in self._state.series(Category(category))]

    def restore(self) -> HealthStore:
        """
        Load persisted state, falling back to empty series.

        Missing or unreadable state is treated as no state.

        Returns:
            Snapshot of the restored aggregate.
        """
        try:
            raw = self.backend.read(self.key)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read stored state {self.key}, starting empty: {e}")
            raw = None

        if raw is None:
            logger.info(f"No stored state for {self.key}, starting empty")
            self._state = HealthStore()
            return self.state

        try:
            self._state = HealthStore.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Stored state {self.key} is corrupt, starting empty: {e}")
            self._state = HealthStore()
            return self.state

        for category in Category:
            series = self._state.series(category)
            kept = [record for record in series if record.has_metrics()]
            if len(kept) != len(series):
                logger.warning(
                    f"Dropping {len(series) - len(kept)} stored {category.value} records without metrics"
                )
                setattr(self._state, category.value, kept)

        logger.info(
            "Restored "
            + ", ".join(f"{len(self._state.series(c))} {c.value}" for c in Category)
            + " records"
        )
        return self.state

    def _write(self, state: HealthStore) -> None:
        """
        Serialize and write an aggregate.

        Raises:
            StorageError: If the backend fails.
        """
        payload = json.dumps(state.to_dict(), indent=2)
        try:
            self.backend.write(self.key, payload)
        except OSError as e:
            raise StorageError(f"Failed to persist state {self.key}: {e}") from e

    def persist(self) -> None:
        """
        Persist the full aggregate.

        Raises:
            StorageError: If the backend fails.
        """
        self._write(self._state)

    def append(self, category: Category | str, records: Sequence[MetricRecord]) -> HealthStore:
        """
        Merge records into a series, re-sort it and persist the result.

        The sort is stable, so records sharing a month keep insertion order.
        If persisting fails, the in-memory state is left as it was.

        Args:
            category: Target series.
            records: Records of the category's record type.

        Returns:
            Snapshot of the updated aggregate.

        Raises:
            TypeError: If a record does not belong to the category.
            StorageError: If the updated state cannot be persisted.
        """
        category = Category(category)
        record_type = RECORD_TYPES[category]

        for record in records:
            if not isinstance(record, record_type):
                raise TypeError(
                    f"Cannot add {type(record).__name__} to the {category.value} series"
                )

        candidate = self._state.model_copy(deep=True)
        merged = [*candidate.series(category), *(r.model_copy() for r in records)]
        merged.sort(key=lambda r: r.date)
        setattr(candidate, category.value, merged)

        self._write(candidate)
        self._state = candidate

        logger.info(f"Added {len(records)} {category.value} records, {len(merged)} total")
        return self.state

    def reset(self) -> None:
        """
        Replace the stored state with empty series.

        Raises:
            StorageError: If the empty state cannot be persisted.
        """
        empty = HealthStore()
        self._write(empty)
        self._state = empty
        logger.info(f"Reset stored state {self.key}")
