"""Unit tests for time-series store."""

import pytest

from health_metrics_ledger.domain.metrics import (
    BodyCompositionRecord,
    CardioFitnessRecord,
    HealthStore,
    LabRecord,
)
from health_metrics_ledger.infrastructure.storage.backends import (
    FileStateBackend,
    MemoryStateBackend,
)
from health_metrics_ledger.services.store import TimeSeriesStore
from health_metrics_ledger.utils.exceptions import StorageError


class FailingBackend(MemoryStateBackend):
    """Backend whose writes always fail."""

    def write(self, key: str, data: str) -> None:
        raise OSError("disk full")


def test_append_merges_and_sorts() -> None:
    """Test appended records are merged in month order."""
    store = TimeSeriesStore(MemoryStateBackend())
    store.append("labs", [LabRecord(date="2023-01", ldl=120)])

    store.append("labs", [LabRecord(date="2024-01", ldl=100), LabRecord(date="2023-06", ldl=110)])

    dates = [r.date for r in store.series("labs")]
    if dates != ["2023-01", "2023-06", "2024-01"]:
        raise AssertionError(f"Expected ['2023-01', '2023-06', '2024-01'], got {dates}")


def test_append_is_stable_for_duplicate_dates() -> None:
    """Test records sharing a month keep insertion order."""
    store = TimeSeriesStore(MemoryStateBackend())
    store.append("vo2max", [CardioFitnessRecord(date="2024-02", vo2max=40.0)])
    store.append(
        "vo2max",
        [
            CardioFitnessRecord(date="2024-02", vo2max=41.0),
            CardioFitnessRecord(date="2023-12", vo2max=39.0),
        ],
    )

    values = [r.vo2max for r in store.series("vo2max")]
    if values != [39.0, 40.0, 41.0]:
        raise AssertionError(f"Expected [39.0, 40.0, 41.0], got {values}")


def test_append_persists_whole_store() -> None:
    """Test every mutation writes all three series."""
    backend = MemoryStateBackend()
    store = TimeSeriesStore(backend, key="state")

    store.append("dexa", [BodyCompositionRecord(date="2024-03", bodyFat=22.5)])

    if backend.read("state") is None:
        raise AssertionError("Expected state to be persisted")

    restored = TimeSeriesStore(backend, key="state")
    restored.restore()
    if restored.state != store.state:
        raise AssertionError("Expected persisted state to match in-memory state")


def test_persist_restore_round_trip(tmp_path) -> None:
    """Test restoring persisted state reproduces the store."""
    backend = FileStateBackend(tmp_path)
    store = TimeSeriesStore(backend)
    store.append("labs", [LabRecord(date="2024-01", cholesterol=190, ldl=110)])
    store.append("dexa", [BodyCompositionRecord(date="2024-03", bodyFat=22.5, leanMass=110.25 / 2.205)])
    store.append("vo2max", [CardioFitnessRecord(date="2023-09", vo2max=47.3, restingHR=60)])
    store.persist()

    restored = TimeSeriesStore(FileStateBackend(tmp_path))
    state = restored.restore()

    if state != store.state:
        raise AssertionError(f"Expected {store.state}, got {state}")


def test_persisted_records_omit_absent_fields(tmp_path) -> None:
    """Test absent fields are not written as nulls."""
    backend = FileStateBackend(tmp_path)
    store = TimeSeriesStore(backend)
    store.append("labs", [LabRecord(date="2024-02", cholesterol=185)])

    text = backend.path_for("health-data").read_text(encoding="utf-8")
    if "null" in text or "ldl" in text:
        raise AssertionError(f"Expected only present fields, got {text}")


def test_restore_without_state_is_empty() -> None:
    """Test a missing blob restores to three empty series."""
    store = TimeSeriesStore(MemoryStateBackend())

    if store.restore() != HealthStore():
        raise AssertionError("Expected empty store")


def test_restore_corrupt_state_is_empty() -> None:
    """Test unreadable state is treated as no state."""
    backend = MemoryStateBackend()
    store = TimeSeriesStore(backend)

    for blob in ["{not json", "[]", '{"labs": [{"ldl": 100}]}']:
        backend.write("health-data", blob)
        if store.restore() != HealthStore():
            raise AssertionError(f"Expected empty store for corrupt blob {blob!r}")


def test_restore_undecodable_state_is_empty(tmp_path) -> None:
    """Test a state file holding non-UTF-8 bytes is treated as no state."""
    (tmp_path / "health-data.json").write_bytes(b"\xff\xfe\x00garbage")
    store = TimeSeriesStore(FileStateBackend(tmp_path))

    if store.restore() != HealthStore():
        raise AssertionError("Expected empty store for undecodable state")


def test_restore_drops_records_without_metrics() -> None:
    """Test stored records holding only a date are dropped on restore."""
    backend = MemoryStateBackend()
    backend.write(
        "health-data",
        '{"labs": [{"date": "2024-01"}, {"date": "2024-02", "ldl": 100}], '
        '"dexa": [{"date": "2024-03"}]}',
    )
    store = TimeSeriesStore(backend)

    restored = store.restore()

    labs = [r.to_dict() for r in restored.labs]
    if labs != [{"date": "2024-02", "ldl": 100.0}]:
        raise AssertionError(f"Expected only the 2024-02 lab record, got {labs}")
    if restored.dexa:
        raise AssertionError(f"Expected empty dexa series, got {restored.dexa}")


def test_failed_persist_leaves_state_untouched() -> None:
    """Test a backend failure does not partially update the store."""
    store = TimeSeriesStore(FailingBackend())
    before = store.state

    with pytest.raises(StorageError):
        store.append("labs", [LabRecord(date="2024-01", hdl=50)])

    if store.state != before:
        raise AssertionError("Expected state unchanged after failed append")


def test_append_rejects_wrong_record_type() -> None:
    """Test records must match the target series."""
    store = TimeSeriesStore(MemoryStateBackend())

    with pytest.raises(TypeError):
        store.append("labs", [CardioFitnessRecord(date="2024-01", vo2max=40)])

    if store.series("labs"):
        raise AssertionError("Expected labs series to stay empty")


def test_series_returns_copies() -> None:
    """Test callers cannot mutate stored records through snapshots."""
    store = TimeSeriesStore(MemoryStateBackend())
    store.append("labs", [LabRecord(date="2024-01", hdl=50)])

    store.series("labs")[0].hdl = 10
    store.state.labs.clear()

    if store.series("labs")[0].hdl != 50:
        raise AssertionError("Expected stored record to be unchanged")


def test_reset_clears_series() -> None:
    """Test reset persists empty series."""
    backend = MemoryStateBackend()
    store = TimeSeriesStore(backend)
    store.append("labs", [LabRecord(date="2024-01", hdl=50)])

    store.reset()

    if store.state != HealthStore():
        raise AssertionError("Expected empty store after reset")
    if backend.read("health-data") is None:
        raise AssertionError("Expected empty state to be persisted")
