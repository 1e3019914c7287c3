"""
Destination table provisioning.
"""
from typing import Iterable, Optional
from google.api_core.exceptions import GoogleAPIError
from google.cloud import bigquery

from bqtables.exceptions import ProvisioningError
from bqtables.utils import logger
from .base import BigQueryBase
from .models import ProvisioningConfig
from .schemas import SourceSchemaEntry, build_table_definition
from .utils import table_reference


class BigQueryAdmin(BigQueryBase):
    """Creates destination tables from a provisioning config."""

    def create_table_if_not_exists(
            self,
            project_id: str,
            dataset_id: str,
            table_name: str,
            config: ProvisioningConfig,
            schema: Iterable[SourceSchemaEntry],
            expiration_ms: Optional[int] = None
    ) -> bool:
        """
        Create project.dataset.table unless it already exists.

        See ensure_table.
        """
        table_ref = table_reference(project_id, dataset_id, table_name)
        return self.ensure_table(table_ref, config, schema, expiration_ms)

    def ensure_table(
            self,
            table_ref: bigquery.TableReference,
            config: ProvisioningConfig,
            schema: Iterable[SourceSchemaEntry],
            expiration_ms: Optional[int] = None
    ) -> bool:
        """
        Create a table unless it already exists.

        An existing table is left untouched whatever the config says.
        The existence check and the create call are not atomic.

        Args:
            table_ref: Destination table
            config: Provisioning settings
            schema: Source schema
            expiration_ms: Optional table lifetime in milliseconds

        Returns:
            True if the table was created, False if it already existed

        Raises:
            ConfigurationError: table is missing and config lacks partition or cluster settings
            ProvisioningError: BigQuery rejected the lookup or the creation
        """
        if self.table_exists(table_ref):
            logger.info(f"Table {table_ref} already exists")
            return False

        self.create_table(table_ref, config, schema, expiration_ms)
        return True

    def create_table(
            self,
            table_ref: bigquery.TableReference,
            config: ProvisioningConfig,
            schema: Iterable[SourceSchemaEntry],
            expiration_ms: Optional[int] = None
    ) -> bigquery.Table:
        """
        Create a table with partitioning and clustering derived from config.

        Args:
            table_ref: Destination table
            config: Provisioning settings
            schema: Source schema
            expiration_ms: Optional table lifetime in milliseconds

        Returns:
            The created table
        """
        definition = build_table_definition(config, schema, expiration_ms)
        table = definition.to_table(table_ref)

        try:
            created = self.client.create_table(table)
        except GoogleAPIError as e:
            logger.error(f"Failed to create table {table_ref}: {e}")
            raise ProvisioningError(f"Failed to create table {table_ref}", str(table_ref)) from e

        logger.info(
            f"Created table {table_ref}",
            partition_field=definition.partition_field,
            clustering_fields=definition.clustering_fields,
            location=definition.location,
            expires=definition.expires
        )
        return created
