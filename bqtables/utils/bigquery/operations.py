"""
Table copy and partition metadata operations.
"""
from typing import Optional
from google.api_core.exceptions import GoogleAPIError
from google.cloud import bigquery
from google.cloud.bigquery.table import RowIterator

from bqtables.exceptions import ProvisioningError
from bqtables.utils import logger
from config.settings import COPY_JOB_MISSING_MESSAGE
from .base import BigQueryBase
from .models import CopyOutcome
from .utils import legacy_table_spec, partition_table_name, table_reference, wait_for_job

PARTITIONS_SUMMARY_TABLE = "__PARTITIONS_SUMMARY__"


class BigQueryOperations(BigQueryBase):
    """Copies between tables and reads partition metadata."""

    def copy_onto(
            self,
            src_project: str,
            src_dataset: str,
            src_table: str,
            dest_project: str,
            dest_dataset: str,
            dest_table: str,
            dest_partition: Optional[str] = None
    ) -> CopyOutcome:
        """
        Overwrite a destination table, or one of its partitions, with a source table.

        Blocks until the copy job finishes or the polling timeout runs out.
        Failures are returned, never raised.

        Args:
            src_project: Source project
            src_dataset: Source dataset
            src_table: Source table
            dest_project: Destination project
            dest_dataset: Destination dataset
            dest_table: Destination table, which must already exist
            dest_partition: Optional partition ID to overwrite, e.g. 20230101

        Returns:
            CopyOutcome with the finished job, or with the error text
        """
        src_ref = table_reference(src_project, src_dataset, src_table)
        dest_ref = table_reference(dest_project, dest_dataset, partition_table_name(dest_table, dest_partition))

        try:
            job = self.copy_onto_table_ref(src_ref, dest_ref)
            completed_job = wait_for_job(job)
        except GoogleAPIError as e:
            logger.error(f"Copy {src_ref} -> {dest_ref} rejected: {e}")
            return CopyOutcome.failure(str(e))

        if completed_job is None:
            logger.error(f"Copy {src_ref} -> {dest_ref}: {COPY_JOB_MISSING_MESSAGE}")
            return CopyOutcome.failure(COPY_JOB_MISSING_MESSAGE)

        if completed_job.error_result:
            error = str(completed_job.error_result)
            logger.error(f"Copy job {completed_job.job_id} failed: {error}")
            return CopyOutcome.failure(error)

        logger.info(f"Copied {src_ref} onto {dest_ref}", job_id=completed_job.job_id)
        return CopyOutcome.success(completed_job)

    def copy_onto_table_ref(
            self,
            src_ref: bigquery.TableReference,
            dest_ref: bigquery.TableReference
    ) -> bigquery.CopyJob:
        """
        Submit a copy job that truncates the destination and never creates it.

        Args:
            src_ref: Source table
            dest_ref: Destination table or partition

        Returns:
            The submitted, not yet finished, copy job
        """
        job_config = bigquery.CopyJobConfig(
            create_disposition=bigquery.CreateDisposition.CREATE_NEVER,
            write_disposition=bigquery.WriteDisposition.WRITE_TRUNCATE
        )

        job = self.client.copy_table(src_ref, dest_ref, job_config=job_config)
        logger.info(f"Submitted copy job {job.job_id}: {src_ref} -> {dest_ref}")
        return job

    def get_existing_partitions(self, table_ref: bigquery.TableReference) -> RowIterator:
        """
        List the partitions of a table with their creation time.

        Args:
            table_ref: Partitioned table

        Returns:
            Rows of (partition_id, creation_time)

        Raises:
            ProvisioningError: BigQuery rejected the query
        """
        # Legacy SQL only exposes partition metadata through the summary meta-table
        table_spec = f"{legacy_table_spec(table_ref)}${PARTITIONS_SUMMARY_TABLE}"
        query = f"""SELECT
  partition_id,
  TIMESTAMP(creation_time/1000) AS creation_time
FROM [{table_spec}]"""

        job_config = bigquery.QueryJobConfig(
            use_legacy_sql=True,
            priority=bigquery.QueryPriority.INTERACTIVE
        )

        try:
            query_job = self.client.query(query, job_config=job_config)
            rows = query_job.result()
        except GoogleAPIError as e:
            logger.error(f"Partition summary query failed for {table_ref}: {e}")
            raise ProvisioningError(f"Could not list partitions of {table_ref}", str(table_ref)) from e

        logger.info(f"Fetched partition summary for {table_ref}")
        return rows
