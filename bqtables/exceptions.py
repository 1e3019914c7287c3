"""
Exceptions raised by the BigQuery table helpers.
"""
from typing import Optional


class BigQueryTableError(Exception):
    """Base class for table management errors."""


class ConfigurationError(BigQueryTableError, ValueError):
    """Provisioning configuration cannot be used to create a table."""


class ProvisioningError(BigQueryTableError):
    """BigQuery rejected a table lookup, creation or metadata query."""

    def __init__(self, message: str, table_id: Optional[str] = None):
        super().__init__(message)
        self.table_id = table_id
