"""Shared constants and helpers for DuckDB store and repository mixins."""
from pathlib import Path

from core.config import config

# Database configuration
DB_PATH = Path(config.database.path)
DB_DIR = DB_PATH.parent
IN_MEMORY = ":memory:"

# Schema holding the upstream fact, dimension and bridge tables
MART = "analytics_mart"

# Query timeout settings
DEFAULT_QUERY_TIMEOUT = config.database.query_timeout  # seconds
LONG_QUERY_TIMEOUT = config.database.long_query_timeout  # exports
SLOW_QUERY_MS = config.database.slow_query_threshold_ms

# Inventory statuses that need a purchase order
REORDER_STATUSES = ("CRITICAL", "LOW")

AGING_BUCKET_ORDER = ("Current", "Past Due", "Overdue", "Severely Overdue")
PROBLEM_RISK_LEVELS = ("High Risk", "Critical Risk")


def placeholders(values) -> str:
    """``?, ?, ?`` for an IN list of ``values``."""
    return ", ".join("?" for _ in values)
