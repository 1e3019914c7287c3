"""BigQuery table provisioning and copy helpers."""
