"""
Centralized configuration for the Sales Insights dashboard.

This module provides a single source of truth for all configuration values.
Configuration is loaded from environment variables with sensible defaults.

Usage:
    from core.config import config

    db_path = config.database.path
    cache_ttl = config.cache.ttl_seconds
"""

import os
from dataclasses import dataclass, field
from typing import List, Tuple

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_bool(name: str, default: str = "true") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class DatabaseConfig:
    """DuckDB analytics database configuration."""

    path: str = field(
        default_factory=lambda: os.getenv("DUCKDB_PATH", "data/analytics.duckdb")
    )
    query_timeout: float = field(
        default_factory=lambda: float(os.getenv("DUCKDB_QUERY_TIMEOUT", "30"))
    )
    long_query_timeout: float = 120.0
    slow_query_threshold_ms: float = 1000.0


@dataclass(frozen=True)
class WebConfig:
    """Web API configuration."""

    host: str = field(default_factory=lambda: os.getenv("WEB_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("WEB_PORT", "8080")))

    # Rate limiting
    rate_limit_per_minute: int = 30
    export_rate_limit_per_minute: int = 10

    request_timeout: float = 30.0
    export_request_timeout: float = 120.0

    admin_token: str = field(default_factory=lambda: os.getenv("ADMIN_TOKEN", ""))


@dataclass(frozen=True)
class CacheConfig:
    """Redis caching configuration."""

    redis_url: str = field(
        default_factory=lambda: os.getenv("REDIS_URL", "redis://localhost:6379/0")
    )
    enabled: bool = field(default_factory=lambda: _env_bool("CACHE_ENABLED"))
    ttl_seconds: int = field(
        default_factory=lambda: int(os.getenv("CACHE_DEFAULT_TTL", "300"))
    )


@dataclass(frozen=True)
class PaginationConfig:
    """Page size limits shared by list endpoints."""

    default_page_size: int = 25
    max_page_size: int = 200
    max_export_rows: int = 50000


@dataclass(frozen=True)
class ReportConfig:
    """Business rules used by the transactional reports."""

    # Free-mail and marketplace domains that identify consumer buyers
    consumer_domains: Tuple[str, ...] = (
        "gmail.com",
        "yahoo.com",
        "hotmail.com",
        "outlook.com",
        "aol.com",
        "icloud.com",
        "protonmail.com",
        "marketplace.amazon.com",
        "comcast.net",
        "verizon.net",
        "msn.com",
        "me.com",
        "att.net",
        "live.com",
        "bellsouth.net",
        "sbcglobal.net",
        "cox.net",
        "mac.com",
        "mail.com",
    )

    canadian_provinces: Tuple[str, ...] = (
        "ON", "BC", "AB", "QC", "MB", "SK", "NB", "NS", "PE", "NL", "YT", "NT", "NU",
    )

    adhesive_product_codes: Tuple[str, ...] = ("82-5002.K", "82-5002.010", "82-6002")

    # Product codes counted by the sales channel report: (exact codes, LIKE prefixes)
    channel_report_codes: Tuple[str, ...] = ("82-5002.K", "82-5002.010")
    channel_report_prefixes: Tuple[str, ...] = ("01-63", "82-6002", "01-70")

    # Order classes hidden from the dashboard channel chart
    excluded_channel_classes: List[str] = field(
        default_factory=lambda: ["Contractor", "EXPORT from WWD"]
    )

    default_day_window: int = 365
    max_day_window: int = 3650


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    format: str = field(default_factory=lambda: os.getenv("LOG_FORMAT", "text"))


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""

    version: str = "1.0.0"
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    web: WebConfig = field(default_factory=WebConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    pagination: PaginationConfig = field(default_factory=PaginationConfig)
    reports: ReportConfig = field(default_factory=ReportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Global config instance
config = AppConfig()


# ─── Convenience Exports ──────────────────────────────────────────────────────
VERSION = config.version
CONSUMER_DOMAINS = config.reports.consumer_domains
CANADIAN_PROVINCES = config.reports.canadian_provinces
ADHESIVE_PRODUCT_CODES = config.reports.adhesive_product_codes


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def validate_config(cfg: AppConfig = None) -> None:
    """
    Validate configuration values.

    Call this on application startup to fail fast with clear error messages
    instead of cryptic runtime failures.

    Args:
        cfg: Configuration to check (defaults to the global config)

    Raises:
        ConfigurationError: If configuration is invalid
    """
    cfg = cfg or config
    errors = []

    if not cfg.database.path:
        errors.append("DUCKDB_PATH must not be empty")

    if cfg.database.query_timeout <= 0:
        errors.append("DUCKDB_QUERY_TIMEOUT must be positive")

    if not 1 <= cfg.web.port <= 65535:
        errors.append(f"WEB_PORT out of range: {cfg.web.port}")

    if cfg.cache.ttl_seconds <= 0:
        errors.append("CACHE_DEFAULT_TTL must be positive")

    if not 1 <= cfg.pagination.default_page_size <= cfg.pagination.max_page_size:
        errors.append("default page size must be between 1 and the max page size")

    if cfg.logging.format not in ("text", "json"):
        errors.append(f"LOG_FORMAT must be 'text' or 'json' (got: {cfg.logging.format!r})")

    if cfg.logging.level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        errors.append(f"LOG_LEVEL is not a logging level: {cfg.logging.level!r}")

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigurationError(error_msg)
