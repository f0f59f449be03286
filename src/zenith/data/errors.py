"""Data layer error hierarchy."""

from zenith.errors import ZenithError


class DataError(ZenithError):
    """Base for all zenith.data errors (store failures)."""


class DriverNotInstalledError(DataError):
    """Raised when the required database driver is not installed."""


class ConnectionError(DataError):  # noqa: A001
    """Raised when a database connection cannot be established."""


class QueryError(DataError):
    """Raised when a SQL statement fails."""


class MigrationError(DataError):
    """Raised when migrations cannot be discovered or a migration fails."""
