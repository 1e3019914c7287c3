"""
Source schema conversion and destination table definitions.
"""
import re
import time
from typing import Dict, Iterable, List, Optional, Tuple, Union

from google.cloud import bigquery

from bqtables.utils import logger
from .models import ProvisioningConfig, SourceField, TableDefinition

SourceSchemaEntry = Union[SourceField, bigquery.SchemaField, Tuple[str, str]]

# Spark SQL type names (simpleString and *Type class names) -> BigQuery types
SPARK_TO_BIGQUERY_TYPES = {
    "string": "STRING",
    "varchar": "STRING",
    "char": "STRING",
    "byte": "INTEGER",
    "tinyint": "INTEGER",
    "short": "INTEGER",
    "smallint": "INTEGER",
    "int": "INTEGER",
    "integer": "INTEGER",
    "long": "INTEGER",
    "bigint": "INTEGER",
    "float": "FLOAT",
    "double": "FLOAT",
    "boolean": "BOOLEAN",
    "binary": "BYTES",
    "date": "DATE",
    "timestamp": "TIMESTAMP",
    "timestamp_ntz": "DATETIME",
    "timestampntz": "DATETIME",
    "decimal": "NUMERIC",
}

# BigQuery type names are accepted as they are
BIGQUERY_TYPES = {
    "STRING", "BYTES", "INTEGER", "INT64", "FLOAT", "FLOAT64", "NUMERIC",
    "BIGNUMERIC", "BOOLEAN", "BOOL", "DATE", "DATETIME", "TIME", "TIMESTAMP",
    "GEOGRAPHY", "JSON",
}

_DECIMAL_PATTERN = re.compile(r"^decimal(?:type)?\s*\(\s*(\d+)\s*,\s*(\d+)\s*\)$", re.IGNORECASE)

# NUMERIC holds scale <= 9 with at most 29 integer digits
_NUMERIC_MAX_SCALE = 9
_NUMERIC_MAX_INTEGER_DIGITS = 29


def to_bigquery_type(source_type: str) -> str:
    """
    Map a Spark SQL type name to a BigQuery column type.

    Complex types (array, map, struct) and unknown names fall back to STRING.

    Args:
        source_type: e.g. "bigint", "LongType", "decimal(12,2)"

    Returns:
        BigQuery type name
    """
    name = source_type.strip()

    match = _DECIMAL_PATTERN.match(name)
    if match:
        precision, scale = int(match.group(1)), int(match.group(2))
        if scale <= _NUMERIC_MAX_SCALE and precision - scale <= _NUMERIC_MAX_INTEGER_DIGITS:
            return "NUMERIC"
        return "BIGNUMERIC"

    if name.upper() in BIGQUERY_TYPES:
        return name.upper()

    key = name.lower()
    if key.endswith("type"):
        key = key[:-len("type")]
    if key in SPARK_TO_BIGQUERY_TYPES:
        return SPARK_TO_BIGQUERY_TYPES[key]

    logger.warning(f"No BigQuery mapping for source type '{source_type}', using STRING")
    return "STRING"


def _to_schema_field(entry: SourceSchemaEntry) -> bigquery.SchemaField:
    if isinstance(entry, bigquery.SchemaField):
        return entry
    if not isinstance(entry, SourceField):
        name, type_name = entry
        entry = SourceField(name=name, type=type_name)
    return bigquery.SchemaField(entry.name, to_bigquery_type(entry.type), mode="NULLABLE")


def convert_schema(schema: Iterable[SourceSchemaEntry]) -> List[bigquery.SchemaField]:
    """
    Convert an ordered source schema to BigQuery schema fields.

    Args:
        schema: SourceField models, (name, type) tuples or SchemaFields

    Returns:
        SchemaFields in the same order
    """
    return [_to_schema_field(entry) for entry in schema]


def get_partitioning_config(config: ProvisioningConfig) -> Optional[Dict[str, str]]:
    """Day partitioning settings for a new table, or None for no partitioning."""
    field = config.partition_field
    if field is None:
        return None
    return {'type': bigquery.TimePartitioningType.DAY, 'field': field}


def get_clustering_fields(config: ProvisioningConfig) -> Optional[List[str]]:
    """Clustering fields for a new table, or None for no clustering."""
    return config.clustering_fields


def build_table_definition(
        config: ProvisioningConfig,
        schema: Iterable[SourceSchemaEntry],
        expiration_ms: Optional[int] = None,
        now_ms: Optional[int] = None
) -> TableDefinition:
    """
    Derive the definition of a table to create from the provisioning config.

    A "none" partition column adds a DATE column named after
    config.unused_column_name to the end of the schema.

    Args:
        config: Provisioning settings
        schema: Ordered source schema
        expiration_ms: Optional lifetime of the table in milliseconds
        now_ms: Current epoch milliseconds (defaults to the wall clock)

    Returns:
        TableDefinition

    Raises:
        ConfigurationError: config lacks partition or cluster settings
    """
    config.require_creatable()

    source_fields = list(schema)
    if config.synthetic_partition:
        source_fields.append(SourceField(name=config.unused_column_name, type="date"))

    partitioning = get_partitioning_config(config)
    clustering = get_clustering_fields(config)

    expires_ms = None
    if expiration_ms is not None:
        if now_ms is None:
            now_ms = int(time.time() * 1000)
        expires_ms = now_ms + expiration_ms

    return TableDefinition(
        schema_fields=tuple(convert_schema(source_fields)),
        partition_field=partitioning['field'] if partitioning else None,
        clustering_fields=tuple(clustering) if clustering else None,
        location=config.bq_location,
        expires_ms=expires_ms
    )
