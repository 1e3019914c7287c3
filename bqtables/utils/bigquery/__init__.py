"""
BigQuery table provisioning module.

Split into focused components: client setup and existence checks (base),
table creation (admin), copies and partition metadata (operations), and
the pure definition logic (schemas, models).
"""

# Main interface
from .client import TableProvisioner

# Individual components
from .base import BigQueryBase
from .admin import BigQueryAdmin
from .operations import BigQueryOperations
from .models import ProvisioningConfig, SourceField, TableDefinition, CopyOutcome
from .schemas import (
    build_table_definition,
    convert_schema,
    get_clustering_fields,
    get_partitioning_config,
    to_bigquery_type,
)
from .utils import (
    legacy_table_spec,
    partition_table_name,
    table_reference,
    wait_for_job,
)

__all__ = [
    # Main interface
    'TableProvisioner',

    # Components
    'BigQueryBase',
    'BigQueryAdmin',
    'BigQueryOperations',

    # Models
    'ProvisioningConfig',
    'SourceField',
    'TableDefinition',
    'CopyOutcome',

    # Schema functions
    'build_table_definition',
    'convert_schema',
    'get_clustering_fields',
    'get_partitioning_config',
    'to_bigquery_type',

    # Utilities
    'legacy_table_spec',
    'partition_table_name',
    'table_reference',
    'wait_for_job',
]
