"""Configuration for the dental clinical rules engine.

Values are read from environment variables at import time and may be
overridden on the shared ``config`` instance (the CLI does this for flags).
"""

import os
from pathlib import Path


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Runtime settings."""

    # Persistence
    DB_PATH = os.path.expanduser(
        os.environ.get("DENTAL_CDS_DB_PATH", "~/.dental_cds/cache.db")
    )

    # Static reference dataset
    DATA_DIR = Path(
        os.environ.get("DENTAL_CDS_DATA_DIR", str(Path(__file__).parent / "data"))
    )

    # Freshness window for the synchronized aggregate
    CACHE_TTL_HOURS = float(os.environ.get("DENTAL_CDS_CACHE_TTL_HOURS", "24"))

    # Sync retry policy: delay for attempt n is RETRY_DELAY_SECONDS * n
    SYNC_MAX_RETRIES = int(os.environ.get("DENTAL_CDS_SYNC_MAX_RETRIES", "3"))
    SYNC_RETRY_DELAY_SECONDS = float(os.environ.get("DENTAL_CDS_SYNC_RETRY_DELAY", "1.0"))
    SYNC_PARALLEL = _env_bool("DENTAL_CDS_SYNC_PARALLEL", False)

    # Patient parameter bounds (exclusive lower, inclusive upper)
    MAX_AGE_YEARS = 120
    MAX_WEIGHT_KG = 300
    MAX_CREATININE_MG_DL = 20


config = Config()
