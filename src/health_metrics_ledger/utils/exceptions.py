"""Custom exceptions for the health metrics ledger."""


class HealthMetricsError(Exception):
    """Base exception for all health metrics ledger errors."""

    pass


class ConfigurationError(HealthMetricsError):
    """Raised when there is a configuration error."""

    pass


class UnsupportedFormatError(HealthMetricsError):
    """Raised when a file extension does not match the declared category."""

    pass


class ParseError(HealthMetricsError):
    """Raised when a tabular file cannot be read."""

    pass


class ExtractionError(HealthMetricsError):
    """Raised when a mandatory field cannot be located in report text."""

    pass


class StorageError(HealthMetricsError):
    """Raised when the persisted state cannot be written."""

    pass


class IngestionInProgressError(HealthMetricsError):
    """Raised when an ingestion is attempted while another is running."""

    pass
