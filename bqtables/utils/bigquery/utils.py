"""
BigQuery helpers: table addressing and job polling.
"""
from typing import Optional, TypeVar

from google.api_core import retry
from google.api_core.exceptions import NotFound, RetryError
from google.cloud import bigquery

from bqtables.utils import logger
from config.settings import COPY_JOB_POLLING

J = TypeVar('J')

PARTITION_DECORATOR = "$"


def table_reference(project_id: str, dataset_id: str, table_name: str) -> bigquery.TableReference:
    """
    Build a table reference from its parts.

    Args:
        project_id: GCP project ID
        dataset_id: BigQuery dataset ID
        table_name: Table name, optionally with a $partition decorator

    Returns:
        TableReference
    """
    return bigquery.DatasetReference(project_id, dataset_id).table(table_name)


def legacy_table_spec(table_ref: bigquery.TableReference) -> str:
    """Legacy SQL table spec: project:dataset.table"""
    return f"{table_ref.project}:{table_ref.dataset_id}.{table_ref.table_id}"


def partition_table_name(table_name: str, partition_id: Optional[str] = None) -> str:
    """
    Address a single partition of a table.

    Args:
        table_name: Table name
        partition_id: Partition ID such as 20230101, or None for the whole table

    Returns:
        table_name$partition_id, or table_name unchanged
    """
    if partition_id is None:
        return table_name
    return f"{table_name}{PARTITION_DECORATOR}{partition_id}"


class JobStillRunning(Exception):
    """Raised by a poll that found the job not yet finished."""


def job_polling_retry(
        initial_delay: Optional[float] = None,
        multiplier: Optional[float] = None,
        max_delay: Optional[float] = None,
        total_timeout: Optional[float] = None
) -> retry.Retry:
    """
    Retry policy that re-polls a running job with exponential backoff.

    Unset arguments fall back to COPY_JOB_POLLING.
    """
    return retry.Retry(
        predicate=retry.if_exception_type(JobStillRunning),
        initial=COPY_JOB_POLLING['initial_delay'] if initial_delay is None else initial_delay,
        maximum=COPY_JOB_POLLING['max_delay'] if max_delay is None else max_delay,
        multiplier=COPY_JOB_POLLING['multiplier'] if multiplier is None else multiplier,
        timeout=COPY_JOB_POLLING['total_timeout'] if total_timeout is None else total_timeout,
        on_error=lambda e: logger.debug(f"Job {e} not done, polling again")
    )


def wait_for_job(
        job: J,
        initial_delay: Optional[float] = None,
        multiplier: Optional[float] = None,
        max_delay: Optional[float] = None,
        total_timeout: Optional[float] = None
) -> Optional[J]:
    """
    Block until a job reaches a terminal state.

    Args:
        job: BigQuery job handle
        initial_delay: First delay between polls in seconds
        multiplier: Growth factor applied to the delay after each poll
        max_delay: Upper bound for a single delay in seconds
        total_timeout: Give up after this many seconds

    Returns:
        The finished job, or None if the job no longer exists or the
        timeout ran out first

    Raises:
        GoogleAPIError: a poll failed for a reason other than NotFound
    """
    def _check_done():
        if not job.done():
            raise JobStillRunning(job.job_id)
        return job

    polling = job_polling_retry(initial_delay, multiplier, max_delay, total_timeout)

    try:
        finished = polling(_check_done)()
    except NotFound:
        logger.warning(f"Job {job.job_id} no longer exists")
        return None
    except RetryError as e:
        if not isinstance(e.cause, JobStillRunning):
            raise
        logger.warning(f"Job {job.job_id} still running, polling timed out")
        return None

    logger.debug(f"Job {job.job_id} finished")
    return finished
