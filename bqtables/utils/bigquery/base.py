"""
Base BigQuery client with core functionality.
"""
from typing import Optional
from google.api_core.exceptions import GoogleAPIError, NotFound
from google.cloud import bigquery

from bqtables.exceptions import ProvisioningError
from bqtables.utils import logger
from config.settings import GCP_PROJECT_ID, BQ_LOCATION


class BigQueryBase:
    """Base class for BigQuery operations."""

    def __init__(
            self,
            project_id: str = GCP_PROJECT_ID,
            client: Optional[bigquery.Client] = None
    ):
        """
        Initialize BigQuery client.

        Args:
            project_id: GCP project ID used when no client is given
            client: Existing BigQuery client to use
        """
        self.project_id = project_id
        self.location = BQ_LOCATION

        self._client: Optional[bigquery.Client] = client

    @property
    def client(self) -> bigquery.Client:
        """Get or create BigQuery client."""
        if self._client is None:
            self._client = bigquery.Client(project=self.project_id, location=self.location)
            logger.info(f"Initialized BigQuery client for project: {self.project_id}")
        return self._client

    def table_exists(self, table_ref: bigquery.TableReference) -> bool:
        """
        Check if a table exists.

        The answer is only valid at call time; nothing is cached.

        Args:
            table_ref: Table reference

        Returns:
            True if table exists, False otherwise

        Raises:
            ProvisioningError: lookup rejected for any reason other than NotFound
        """
        try:
            self.client.get_table(table_ref)
        except NotFound:
            logger.debug(f"Table {table_ref} does not exist")
            return False
        except GoogleAPIError as e:
            logger.error(f"Could not look up table {table_ref}: {e}")
            raise ProvisioningError(f"Could not look up table {table_ref}", str(table_ref)) from e

        logger.debug(f"Table {table_ref} exists")
        return True
