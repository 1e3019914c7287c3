"""
Shared fixtures for the BigQuery table tests.
"""
import pytest
from unittest.mock import Mock

from google.cloud import bigquery

from bqtables.utils.bigquery import TableProvisioner, table_reference


@pytest.fixture
def mock_client():
    """BigQuery client stand-in; no request leaves the test."""
    return Mock(spec=bigquery.Client)


@pytest.fixture
def provisioner(mock_client):
    """Provisioner wired to the mock client."""
    return TableProvisioner(project_id="test-project", client=mock_client)


@pytest.fixture
def events_ref():
    """Reference to a destination table."""
    return table_reference("test-project", "warehouse", "events")


@pytest.fixture
def source_schema():
    """Ordered (name, type) source schema."""
    return [
        ("event_id", "string"),
        ("region", "string"),
        ("amount", "decimal(12,2)"),
        ("event_date", "date"),
    ]
