"""
Value types for table provisioning and copy results.

The provisioning configuration accepts the "none" sentinel (any case) for the
partition column and the cluster columns. It is interpreted once here, through
properties, so callers never compare strings themselves.
"""
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Tuple

from google.cloud import bigquery
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from bqtables.exceptions import ConfigurationError
from config.settings import load_provisioning_settings

NONE_SENTINEL = "none"


def is_none_sentinel(value: Optional[str]) -> bool:
    """True when value is the "none" sentinel, in any case."""
    return value is not None and value.strip().lower() == NONE_SENTINEL


class ProvisioningConfig(BaseModel):
    """
    Settings used to create a destination table that does not exist yet.

    Attributes:
        partition_column: Day-partitioning column, "none" for a synthetic DATE
            column, or None when not configured
        cluster_columns: Clustering columns, or ["none"] to disable clustering
        bq_location: Location recorded on the table definition
        unused_column_name: Name of the synthetic DATE column

    Example:
        >>> config = ProvisioningConfig(
        ...     partition_column="none",
        ...     cluster_columns=["region"],
        ...     bq_location="EU",
        ... )
        >>> config.partition_field
        'unused'
    """
    model_config = ConfigDict(frozen=True)

    partition_column: Optional[str] = Field(
        default=None,
        description="Partition column name or the 'none' sentinel"
    )
    cluster_columns: Tuple[str, ...] = Field(
        default=(),
        description="Cluster column names or ('none',)"
    )
    bq_location: str = Field(default="US")
    unused_column_name: str = Field(default="unused", min_length=1)

    @field_validator("partition_column", mode="before")
    @classmethod
    def _blank_partition_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("cluster_columns", mode="before")
    @classmethod
    def _split_cluster_columns(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            return tuple(col.strip() for col in value.split(",") if col.strip())
        return tuple(value)

    @classmethod
    def from_settings(cls, path: Optional[Path] = None) -> "ProvisioningConfig":
        """Build a config from the environment defaults and the optional YAML file."""
        return cls(**load_provisioning_settings(path))

    @property
    def partition_configured(self) -> bool:
        return self.partition_column is not None

    @property
    def synthetic_partition(self) -> bool:
        """Partition column is the "none" sentinel."""
        return is_none_sentinel(self.partition_column)

    @property
    def real_partition_column(self) -> Optional[str]:
        if self.partition_column is None or self.synthetic_partition:
            return None
        return self.partition_column

    @property
    def clusters_on_real_columns(self) -> bool:
        """At least one cluster column is not the sentinel."""
        return any(not is_none_sentinel(col) for col in self.cluster_columns)

    @property
    def clustering_fields(self) -> Optional[List[str]]:
        """Lower-cased cluster columns, or None when clustering is disabled."""
        lowered = [col.lower() for col in self.cluster_columns]
        if lowered == [NONE_SENTINEL]:
            return None
        return lowered

    @property
    def partition_field(self) -> Optional[str]:
        """
        Column the table is day-partitioned on, or None for an unpartitioned table.

        A "none" partition column only partitions on the synthetic column when
        the table is also clustered on at least one real column.
        """
        if self.synthetic_partition and self.clusters_on_real_columns:
            return self.unused_column_name
        return self.real_partition_column

    def require_creatable(self) -> None:
        """
        Check the settings needed to create a table.

        Raises:
            ConfigurationError: cluster columns empty or partition column unset
        """
        if not self.cluster_columns:
            raise ConfigurationError("destination table does not exist, clusterColumns must not be empty")
        if not self.partition_configured:
            raise ConfigurationError("destination table does not exist, partitionColumn must not be empty")


class SourceField(BaseModel):
    """One (name, type) entry of a source schema, with a Spark SQL type name."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)


class TableDefinition(BaseModel):
    """Immutable description of a table to create."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    schema_fields: Tuple[bigquery.SchemaField, ...]
    partition_field: Optional[str] = None
    clustering_fields: Optional[Tuple[str, ...]] = None
    location: str
    expires_ms: Optional[int] = Field(default=None, description="Expiration as epoch milliseconds")

    @property
    def expires(self) -> Optional[datetime]:
        if self.expires_ms is None:
            return None
        return datetime.fromtimestamp(self.expires_ms / 1000, tz=timezone.utc)

    def to_table(self, table_ref: bigquery.TableReference) -> bigquery.Table:
        """Render the definition as a bigquery.Table for the create call."""
        table = bigquery.Table(table_ref, schema=list(self.schema_fields))

        if self.partition_field:
            table.time_partitioning = bigquery.TimePartitioning(
                type_=bigquery.TimePartitioningType.DAY,
                field=self.partition_field
            )

        if self.clustering_fields:
            table.clustering_fields = list(self.clustering_fields)

        if self.expires is not None:
            table.expires = self.expires

        # location has no setter on bigquery.Table
        resource = table.to_api_repr()
        resource["location"] = self.location
        return bigquery.Table.from_api_repr(resource)


class CopyOutcome(BaseModel):
    """
    Terminal result of a copy: the completed job, or an error description.

    Use CopyOutcome.success(job) / CopyOutcome.failure(message).
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    job: Optional[Any] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def _exactly_one_variant(self) -> "CopyOutcome":
        if (self.job is None) == (self.error is None):
            raise ValueError("CopyOutcome needs either a job or an error")
        return self

    @classmethod
    def success(cls, job: Any) -> "CopyOutcome":
        return cls(job=job)

    @classmethod
    def failure(cls, error: str) -> "CopyOutcome":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None
