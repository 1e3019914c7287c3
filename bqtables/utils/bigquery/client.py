"""
Main interface combining table provisioning and copy operations.
"""
from .admin import BigQueryAdmin
from .operations import BigQueryOperations


class TableProvisioner(BigQueryAdmin, BigQueryOperations):
    """
    Provisions destination tables and copies data onto them.

    Inherits table creation from BigQueryAdmin and copy/partition
    operations from BigQueryOperations; both share the client held by
    BigQueryBase.

    Example:
        provisioner = TableProvisioner(project_id="my-project")
        config = ProvisioningConfig.from_settings()
        provisioner.create_table_if_not_exists(
            "my-project", "warehouse", "events", config,
            [("event_id", "string"), ("event_date", "date")]
        )
        outcome = provisioner.copy_onto(
            "my-project", "staging", "events",
            "my-project", "warehouse", "events",
            dest_partition="20230101"
        )
        if not outcome.ok:
            logger.error(outcome.error)
    """
