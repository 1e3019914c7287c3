"""
Central configuration for BigQuery table provisioning.
"""
import os
from pathlib import Path
from typing import Any, Dict, List, Optional
from dotenv import load_dotenv
import yaml

# Load environment variables
load_dotenv()

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"
PROVISIONING_CONFIG_PATH = CONFIG_DIR / "provisioning.yaml"

# Google Cloud settings
GCP_PROJECT_ID = os.getenv("GCP_PROJECT_ID", "your-project-id")
BQ_LOCATION = os.getenv("BQ_LOCATION", "US")


def _split_columns(value: str) -> List[str]:
    return [col.strip() for col in value.split(",") if col.strip()]


# Destination table provisioning. "none" is accepted for both the partition
# column and the cluster columns.
PROVISIONING_DEFAULTS = {
    "partition_column": os.getenv("PARTITION_COLUMN") or None,
    "cluster_columns": _split_columns(os.getenv("CLUSTER_COLUMNS", "")),
    "bq_location": BQ_LOCATION,
    "unused_column_name": os.getenv("UNUSED_COLUMN_NAME", "unused"),
}

# Copy job polling (seconds)
COPY_JOB_POLLING = {
    "initial_delay": 8.0,
    "multiplier": 2.0,
    "max_delay": 60.0,
    "total_timeout": 120 * 60.0,
}

COPY_JOB_MISSING_MESSAGE = "Copy Job doesn't exist"


def load_provisioning_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Merge provisioning settings from YAML over the environment defaults.

    A missing file is not an error; the environment defaults are returned.

    Args:
        path: YAML file path (defaults to config/provisioning.yaml)

    Returns:
        Dictionary of ProvisioningConfig fields
    """
    settings = dict(PROVISIONING_DEFAULTS)
    config_path = Path(path) if path else PROVISIONING_CONFIG_PATH
    if config_path.exists():
        with open(config_path, "r") as f:
            overrides = yaml.safe_load(f) or {}
        settings.update({k: v for k, v in overrides.items() if k in settings})
    return settings
