"""
Tests for table existence checks and destination table creation.
"""
import pytest
from unittest.mock import Mock

from google.api_core.exceptions import Forbidden, NotFound, RetryError, ServiceUnavailable

from bqtables.exceptions import ConfigurationError, ProvisioningError
from bqtables.utils.bigquery import ProvisioningConfig


class TestTableExists:
    """Test the existence check."""

    def test_exists(self, provisioner, mock_client, events_ref):
        mock_client.get_table.return_value = Mock()

        assert provisioner.table_exists(events_ref)
        mock_client.get_table.assert_called_once_with(events_ref)

    def test_missing(self, provisioner, mock_client, events_ref):
        mock_client.get_table.side_effect = NotFound("events")

        assert not provisioner.table_exists(events_ref)

    def test_lookup_rejected(self, provisioner, mock_client, events_ref):
        """Errors other than NotFound are not mistaken for a missing table."""
        mock_client.get_table.side_effect = Forbidden("no access")

        with pytest.raises(ProvisioningError) as exc_info:
            provisioner.table_exists(events_ref)

        assert isinstance(exc_info.value.__cause__, Forbidden)

    def test_lookup_retries_exhausted(self, provisioner, mock_client, events_ref):
        mock_client.get_table.side_effect = RetryError("Deadline exceeded", ServiceUnavailable("backend"))

        with pytest.raises(ProvisioningError) as exc_info:
            provisioner.table_exists(events_ref)

        assert isinstance(exc_info.value.__cause__, RetryError)


class TestEnsureTable:
    """Test create-if-not-exists behaviour."""

    @pytest.fixture
    def missing_table(self, mock_client):
        mock_client.get_table.side_effect = NotFound("events")
        mock_client.create_table.side_effect = lambda table: table

    def test_existing_table_is_left_alone(self, provisioner, mock_client, events_ref, source_schema):
        """An existing table is never recreated, whatever the config."""
        mock_client.get_table.return_value = Mock()

        created = provisioner.ensure_table(events_ref, ProvisioningConfig(), source_schema)

        assert created is False
        mock_client.create_table.assert_not_called()

    def test_empty_cluster_columns_rejected(self, provisioner, mock_client, events_ref, source_schema, missing_table):
        config = ProvisioningConfig(partition_column="event_date", cluster_columns=[])

        with pytest.raises(ConfigurationError, match="clusterColumns"):
            provisioner.ensure_table(events_ref, config, source_schema)

        mock_client.create_table.assert_not_called()

    def test_unset_partition_column_rejected(self, provisioner, mock_client, events_ref, source_schema, missing_table):
        config = ProvisioningConfig(cluster_columns=["region"])

        with pytest.raises(ConfigurationError, match="partitionColumn"):
            provisioner.ensure_table(events_ref, config, source_schema)

        mock_client.create_table.assert_not_called()

    def test_creates_missing_table(self, provisioner, mock_client, events_ref, source_schema, missing_table):
        """'none' partition with a cluster column partitions on the synthetic column."""
        config = ProvisioningConfig(
            partition_column="none",
            cluster_columns=["region"],
            bq_location="EU",
            unused_column_name="unused_date"
        )

        created = provisioner.ensure_table(events_ref, config, source_schema)

        assert created is True
        mock_client.create_table.assert_called_once()
        table = mock_client.create_table.call_args[0][0]
        assert table.reference == events_ref
        assert table.schema[-1].name == "unused_date"
        assert table.schema[-1].field_type == "DATE"
        assert table.time_partitioning.field == "unused_date"
        assert table.clustering_fields == ["region"]
        assert table.location == "EU"
        assert table.expires is None

    def test_creates_with_expiration(self, provisioner, mock_client, events_ref, source_schema, missing_table):
        config = ProvisioningConfig(partition_column="event_date", cluster_columns=["none"])

        provisioner.ensure_table(events_ref, config, source_schema, expiration_ms=3_600_000)

        table = mock_client.create_table.call_args[0][0]
        assert table.expires is not None
        assert table.time_partitioning.field == "event_date"
        assert table.clustering_fields is None

    def test_string_reference_variant(self, provisioner, mock_client, source_schema, missing_table):
        config = ProvisioningConfig(partition_column="event_date", cluster_columns=["region"])

        created = provisioner.create_table_if_not_exists(
            "other-project", "staging", "events", config, source_schema
        )

        assert created is True
        table = mock_client.create_table.call_args[0][0]
        assert table.project == "other-project"
        assert table.dataset_id == "staging"
        assert table.table_id == "events"

    def test_create_rejected(self, provisioner, mock_client, events_ref, source_schema):
        mock_client.get_table.side_effect = NotFound("events")
        mock_client.create_table.side_effect = Forbidden("permission denied")
        config = ProvisioningConfig(partition_column="event_date", cluster_columns=["region"])

        with pytest.raises(ProvisioningError) as exc_info:
            provisioner.ensure_table(events_ref, config, source_schema)

        assert exc_info.value.table_id == str(events_ref)
        assert isinstance(exc_info.value.__cause__, Forbidden)

    def test_create_retries_exhausted(self, provisioner, mock_client, events_ref, source_schema):
        mock_client.get_table.side_effect = NotFound("events")
        mock_client.create_table.side_effect = RetryError("Deadline exceeded", ServiceUnavailable("backend"))
        config = ProvisioningConfig(partition_column="event_date", cluster_columns=["region"])

        with pytest.raises(ProvisioningError) as exc_info:
            provisioner.ensure_table(events_ref, config, source_schema)

        assert isinstance(exc_info.value.__cause__, RetryError)


def test_provisioning_error_without_table():
    error = ProvisioningError("Could not look up table")

    assert error.table_id is None
    assert str(error) == "Could not look up table"
