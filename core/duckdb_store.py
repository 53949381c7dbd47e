"""
DuckDB analytics store for the sales insights dashboard.

Reads two families of tables from one embedded database:
- ``analytics_mart``: fact, dimension and bridge tables refreshed by the
  upstream pipeline (orders, line items, products, inventory forecast,
  attribution, trade shows, companies, contacts, receivables)
- ``main``: the transactional QuickBooks tables used by the reports

The store never writes to the mart; ``_init_schema`` only creates empty
tables so that a fresh database answers every query.

Domain-specific query methods are organized into repository mixins:
- DashboardMixin: KPIs, revenue trend, channels, cash flow
- OrdersMixin: Order list and order detail
- ProductsMixin / InventoryMixin: Product catalog, sales and stock history
- ReorderPlanningMixin: Inventory forecast and reorder priorities
- MarketingMixin / TradeShowsMixin: Attribution windows
- CompaniesMixin / ContactsMixin: Company profiles, health and contacts
- FamiliesMixin: Product family performance
- CustomersMixin: People lists by channel, type and company class
- ReportsMixin: Channel, Canadian, adhesive and pop-and-drop reports
"""
import asyncio
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional, List, Dict, Any, Union

import duckdb

from core.exceptions import QueryTimeoutError
from core.duckdb_constants import (
    DB_PATH, IN_MEMORY, MART, DEFAULT_QUERY_TIMEOUT, SLOW_QUERY_MS,
)
from core.observability import get_logger, metrics, Timer
from core.repositories import (
    DashboardMixin, OrdersMixin, ProductsMixin, InventoryMixin,
    ReorderPlanningMixin, MarketingMixin, TradeShowsMixin, CompaniesMixin,
    ContactsMixin, FamiliesMixin, CustomersMixin, ReportsMixin,
)

logger = get_logger(__name__)

# Tables reported by get_stats(), in display order
STAT_TABLES = (
    f"{MART}.fct_orders",
    f"{MART}.fct_order_line_items",
    f"{MART}.fct_products",
    f"{MART}.fct_inventory_forecast",
    f"{MART}.fct_order_attribution",
    f"{MART}.fct_trade_show_leads",
    f"{MART}.fct_companies",
    f"{MART}.dim_customer_contacts",
    "orders",
    "order_items",
    "customers",
)


class DuckDBStore(
    DashboardMixin, OrdersMixin, ProductsMixin, InventoryMixin,
    ReorderPlanningMixin, MarketingMixin, TradeShowsMixin, CompaniesMixin,
    ContactsMixin, FamiliesMixin, CustomersMixin, ReportsMixin,
):
    """
    Async-compatible DuckDB store for analytics queries.

    Features:
    - One connection, serialized through an asyncio lock
    - Blocking queries offloaded to a single worker thread
    - Per-query timeouts raising QueryTimeoutError
    - ``:memory:`` databases for tests
    """

    def __init__(self, db_path: Union[Path, str] = DB_PATH):
        self.db_path = db_path if str(db_path) == IN_MEMORY else Path(db_path)
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        self._lock = asyncio.Lock()  # Serializes all database access

        # Thread pool for offloading blocking DB operations
        self._executor: Optional[ThreadPoolExecutor] = None

        # Stats for monitoring
        self._total_queries = 0

    @property
    def in_memory(self) -> bool:
        return str(self.db_path) == IN_MEMORY

    async def connect(self) -> None:
        """Initialize database connection, schema, and thread pool."""
        if not self.in_memory:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        async with self._lock:
            if self._connection is None:
                self._connection = duckdb.connect(str(self.db_path))
                self._init_schema()

                self._executor = ThreadPoolExecutor(
                    max_workers=1,  # DuckDB requires serialized access
                    thread_name_prefix="duckdb"
                )

                logger.info(f"DuckDB connected: {self.db_path}")

    async def close(self) -> None:
        """Close database connection and thread pool."""
        async with self._lock:
            if self._executor:
                self._executor.shutdown(wait=True)
                self._executor = None

            if self._connection:
                self._connection.close()
                self._connection = None
                logger.info("DuckDB connection closed")

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    def get_connection_info(self) -> Dict[str, Any]:
        """Get connection info for monitoring."""
        return {
            "status": "active" if self._connection else "not_initialized",
            "total_queries": self._total_queries,
            "db_path": str(self.db_path),
        }

    @asynccontextmanager
    async def connection(self):
        """Get database connection, connecting on first use.

        Holds the lock for the duration of the block; DuckDB connections
        must not be used from two threads at once.
        """
        if self._connection is None:
            await self.connect()
        async with self._lock:
            yield self._connection

    # ─── Query Execution with Timeout ────────────────────────────────────────

    async def _run_query(self, query: str, params: list, timeout: float, fetch: str, label: str):
        async with self.connection() as conn:
            self._total_queries += 1
            loop = asyncio.get_running_loop()

            def _run():
                cursor = conn.execute(query, params or [])
                if fetch == "one":
                    return cursor.fetchone()
                rows = cursor.fetchall()
                if fetch == "dicts":
                    columns = [col[0] for col in cursor.description]
                    return [dict(zip(columns, row)) for row in rows]
                return rows

            with Timer(label, logger, warn_threshold_ms=SLOW_QUERY_MS) as timer:
                try:
                    result = await asyncio.wait_for(
                        loop.run_in_executor(self._executor, _run),
                        timeout=timeout
                    )
                except asyncio.TimeoutError:
                    metrics.record_error("QueryTimeoutError")
                    raise QueryTimeoutError(query, timeout, f"{label} failed")
            metrics.record_timing(f"query:{label}", timer.elapsed_ms)
            return result

    async def _fetch_one(
        self,
        query: str,
        params: list = None,
        timeout: float = DEFAULT_QUERY_TIMEOUT,
    ) -> Optional[tuple]:
        """
        Execute query and fetch one row with timeout.

        Raises:
            QueryTimeoutError: If query exceeds timeout
        """
        return await self._run_query(query, params, timeout, "one", "fetch_one")

    async def _fetch_all(
        self,
        query: str,
        params: list = None,
        timeout: float = DEFAULT_QUERY_TIMEOUT,
    ) -> List[tuple]:
        """
        Execute query and fetch all rows as tuples with timeout.

        Raises:
            QueryTimeoutError: If query exceeds timeout
        """
        return await self._run_query(query, params, timeout, "all", "fetch_all")

    async def _fetch_dicts(
        self,
        query: str,
        params: list = None,
        timeout: float = DEFAULT_QUERY_TIMEOUT,
    ) -> List[Dict[str, Any]]:
        """
        Execute query and fetch all rows as column-name dicts with timeout.

        Raises:
            QueryTimeoutError: If query exceeds timeout
        """
        return await self._run_query(query, params, timeout, "dicts", "fetch_dicts")

    async def _fetch_dict(
        self,
        query: str,
        params: list = None,
        timeout: float = DEFAULT_QUERY_TIMEOUT,
    ) -> Optional[Dict[str, Any]]:
        rows = await self._fetch_dicts(query, params, timeout)
        return rows[0] if rows else None

    async def _count(self, query: str, params: list = None) -> int:
        row = await self._fetch_one(query, params)
        return int(row[0] or 0) if row else 0

    def _init_schema(self) -> None:
        """Create mart and transactional tables if they do not exist."""
        self._connection.execute(f"CREATE SCHEMA IF NOT EXISTS {MART}")
        self._connection.execute(MART_SCHEMA_SQL)
        self._connection.execute(TRANSACTIONAL_SCHEMA_SQL)

    async def get_stats(self) -> Dict[str, Any]:
        """Get row counts per table and database size."""
        async with self.connection() as conn:
            tables = {}
            for table in STAT_TABLES:
                tables[table] = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]

            min_date, max_date = conn.execute(
                f"SELECT MIN(order_date), MAX(order_date) FROM {MART}.fct_orders"
            ).fetchone()

        db_size_mb = 0
        if not self.in_memory and self.db_path.exists():
            db_size_mb = round(self.db_path.stat().st_size / 1024 / 1024, 2)

        return {
            "tables": tables,
            "date_range": {
                "min": min_date.isoformat() if min_date else None,
                "max": max_date.isoformat() if max_date else None
            },
            "db_size_mb": db_size_mb,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# SCHEMA
# ═══════════════════════════════════════════════════════════════════════════════

MART_SCHEMA_SQL = f"""
-- Orders with payment, shipping and address attributes
CREATE TABLE IF NOT EXISTS {MART}.fct_orders (
    order_number VARCHAR,
    customer VARCHAR,
    order_date DATE,
    due_date DATE,
    ship_date DATE,
    total_amount DECIMAL(14, 2),
    total_line_items_amount DECIMAL(14, 2),
    total_tax DECIMAL(14, 2),
    effective_tax_rate DECIMAL(10, 6),
    status VARCHAR,
    is_paid BOOLEAN,
    payment_method VARCHAR,
    shipping_method VARCHAR,
    sales_rep VARCHAR,
    currency VARCHAR,
    class VARCHAR,
    billing_address VARCHAR,
    billing_address_city VARCHAR,
    billing_address_state VARCHAR,
    billing_address_postal_code VARCHAR,
    billing_address_country VARCHAR,
    shipping_address VARCHAR,
    shipping_address_city VARCHAR,
    shipping_address_state VARCHAR,
    shipping_address_postal_code VARCHAR,
    shipping_address_country VARCHAR
);

CREATE TABLE IF NOT EXISTS {MART}.fct_order_line_items (
    line_item_id VARCHAR,
    order_number VARCHAR,
    order_date DATE,
    customer VARCHAR,
    product_service VARCHAR,
    product_service_description VARCHAR,
    product_service_quantity DECIMAL(14, 4),
    product_service_rate DECIMAL(14, 4),
    product_service_amount DECIMAL(14, 2),
    unit_of_measure VARCHAR,
    product_family VARCHAR,
    material_type VARCHAR,
    margin_percentage DECIMAL(8, 2),
    margin_amount DECIMAL(14, 2)
);

CREATE TABLE IF NOT EXISTS {MART}.bridge_customer_company (
    customer_id VARCHAR,
    customer_name VARCHAR,
    company_domain_key VARCHAR,
    is_individual_customer BOOLEAN,
    customer_total_revenue DECIMAL(14, 2),
    customer_total_orders INTEGER,
    customer_value_tier VARCHAR,
    customer_activity_status VARCHAR,
    billing_address_city VARCHAR,
    billing_address_state VARCHAR,
    sales_rep VARCHAR
);

CREATE TABLE IF NOT EXISTS {MART}.fct_products (
    quick_books_internal_id VARCHAR,
    item_name VARCHAR,
    sales_description VARCHAR,
    product_family VARCHAR,
    material_type VARCHAR,
    sales_price DECIMAL(14, 2),
    purchase_cost DECIMAL(14, 2),
    margin_percentage DECIMAL(8, 2),
    margin_amount DECIMAL(14, 2),
    is_kit BOOLEAN,
    item_type VARCHAR
);

-- Daily stock snapshots per item
CREATE TABLE IF NOT EXISTS {MART}.fct_inventory_history (
    item_name VARCHAR,
    inventory_date DATE,
    quantity_on_hand DECIMAL(14, 2),
    quantity_on_order DECIMAL(14, 2),
    quantity_on_sales_order DECIMAL(14, 2),
    available_quantity DECIMAL(14, 2),
    total_inventory_visibility DECIMAL(14, 2),
    quantity_change DECIMAL(14, 2),
    previous_quantity_on_hand DECIMAL(14, 2),
    inventory_value_at_cost DECIMAL(14, 2),
    inventory_value_at_sales_price DECIMAL(14, 2),
    item_status VARCHAR,
    is_backup BOOLEAN
);

-- Demand forecast and reorder targets per SKU
CREATE TABLE IF NOT EXISTS {MART}.fct_inventory_forecast (
    sku VARCHAR,
    sales_description VARCHAR,
    product_family VARCHAR,
    material_type VARCHAR,
    quantity_on_hand DECIMAL(14, 2),
    available_qty DECIMAL(14, 2),
    projected_qty DECIMAL(14, 2),
    forecast_daily_qty DECIMAL(14, 4),
    forecast_monthly_qty DECIMAL(14, 2),
    days_remaining_available DECIMAL(10, 2),
    estimated_stockout_date DATE,
    reorder_qty_for_90d_target DECIMAL(14, 2),
    reorder_qty_for_180d_target DECIMAL(14, 2),
    inventory_status VARCHAR,
    demand_trend VARCHAR,
    reorder_priority_rank INTEGER,
    purchase_cost DECIMAL(14, 2),
    sales_price DECIMAL(14, 2),
    inventory_value_at_cost DECIMAL(14, 2),
    units_per_sku INTEGER,
    packaging_type VARCHAR,
    has_recent_sales BOOLEAN
);

CREATE TABLE IF NOT EXISTS {MART}.fct_order_attribution (
    order_id VARCHAR,
    order_date DATE,
    customer_id VARCHAR,
    revenue DECIMAL(14, 2),
    acquisition_channel VARCHAR,
    utm_source VARCHAR,
    utm_medium VARCHAR,
    utm_campaign VARCHAR,
    buyer_accepts_marketing BOOLEAN,
    referring_site VARCHAR,
    landing_site VARCHAR
);

CREATE TABLE IF NOT EXISTS {MART}.fct_trade_show_performance (
    show_name VARCHAR,
    show_date DATE,
    show_location VARCHAR,
    total_leads_collected INTEGER,
    leads_matched_to_companies INTEGER,
    match_rate_pct DECIMAL(6, 2),
    total_revenue_30d DECIMAL(14, 2),
    total_revenue_90d DECIMAL(14, 2),
    total_revenue_365d DECIMAL(14, 2),
    total_revenue_all_time DECIMAL(14, 2),
    conversion_rate_90d_pct DECIMAL(6, 2),
    conversion_rate_365d_pct DECIMAL(6, 2),
    conversion_rate_all_time_pct DECIMAL(6, 2)
);

CREATE TABLE IF NOT EXISTS {MART}.fct_trade_show_leads (
    lead_id VARCHAR,
    show_name VARCHAR,
    show_date DATE,
    full_name VARCHAR,
    email VARCHAR,
    lead_company_name VARCHAR,
    company_domain_key VARCHAR,
    company_match_status VARCHAR,
    consolidated_company_name VARCHAR,
    lead_email_is_customer BOOLEAN,
    distinct_purchasers_count INTEGER,
    company_lifetime_revenue DECIMAL(14, 2),
    revenue_30d DECIMAL(14, 2),
    revenue_90d DECIMAL(14, 2),
    revenue_365d DECIMAL(14, 2),
    revenue_all_time DECIMAL(14, 2),
    attributed_30d BOOLEAN,
    attributed_90d BOOLEAN,
    attributed_365d BOOLEAN,
    attributed_all_time BOOLEAN
);

CREATE TABLE IF NOT EXISTS {MART}.fct_companies (
    company_domain_key VARCHAR,
    company_name VARCHAR,
    domain_type VARCHAR,
    business_size_category VARCHAR,
    revenue_category VARCHAR,
    total_revenue DECIMAL(14, 2),
    total_orders INTEGER,
    customer_count INTEGER,
    first_order_date DATE,
    latest_order_date DATE,
    primary_email VARCHAR,
    primary_phone VARCHAR,
    primary_billing_address_line_1 VARCHAR,
    primary_billing_city VARCHAR,
    primary_billing_state VARCHAR,
    primary_billing_postal_code VARCHAR,
    primary_country VARCHAR,
    region VARCHAR
);

CREATE TABLE IF NOT EXISTS {MART}.dim_company_health (
    company_domain_key VARCHAR,
    health_score DECIMAL(6, 2),
    customer_archetype VARCHAR,
    activity_status VARCHAR,
    engagement_level VARCHAR,
    growth_trend_direction VARCHAR,
    health_category VARCHAR,
    at_risk_flag BOOLEAN,
    growth_opportunity_flag BOOLEAN,
    days_since_last_order INTEGER,
    orders_last_90_days INTEGER,
    revenue_last_90_days DECIMAL(14, 2),
    revenue_percentile INTEGER
);

CREATE TABLE IF NOT EXISTS {MART}.fct_company_orders (
    company_domain_key VARCHAR,
    order_number VARCHAR,
    order_date DATE,
    calculated_order_total DECIMAL(14, 2),
    line_item_count INTEGER,
    unique_products INTEGER,
    order_type VARCHAR,
    recency_category VARCHAR,
    order_size_category VARCHAR,
    days_since_order INTEGER
);

CREATE TABLE IF NOT EXISTS {MART}.fct_company_products (
    company_domain_key VARCHAR,
    product_service VARCHAR,
    product_service_description VARCHAR,
    product_family VARCHAR,
    material_type VARCHAR,
    total_transactions INTEGER,
    total_quantity_purchased DECIMAL(14, 2),
    total_amount_spent DECIMAL(14, 2),
    avg_unit_price DECIMAL(14, 2),
    buyer_status VARCHAR,
    purchase_volume_category VARCHAR,
    days_since_last_purchase INTEGER
);

CREATE TABLE IF NOT EXISTS {MART}.dim_customer_contacts (
    contact_dim_key VARCHAR,
    company_domain_key VARCHAR,
    full_name VARCHAR,
    first_name VARCHAR,
    last_name VARCHAR,
    job_title VARCHAR,
    primary_email VARCHAR,
    primary_phone VARCHAR,
    company_name VARCHAR,
    contact_role VARCHAR,
    is_primary_company_contact BOOLEAN,
    business_size_category VARCHAR,
    revenue_category VARCHAR,
    contact_data_quality VARCHAR,
    contact_tier VARCHAR,
    email_marketable BOOLEAN,
    key_account_contact BOOLEAN,
    company_total_revenue DECIMAL(14, 2),
    company_total_orders INTEGER
);

-- Receivables: one row per DSO snapshot, aging rows per bucket and invoice
CREATE TABLE IF NOT EXISTS {MART}.fct_dso_metrics (
    snapshot_date DATE,
    dso_days DECIMAL(8, 2),
    dso_assessment VARCHAR,
    total_accounts_receivable DECIMAL(14, 2),
    open_invoice_count INTEGER,
    collection_efficiency_pct DECIMAL(6, 2),
    daily_avg_sales DECIMAL(14, 2)
);

CREATE TABLE IF NOT EXISTS {MART}.fct_ar_aging (
    analysis_level VARCHAR,
    aging_bucket VARCHAR,
    customer VARCHAR,
    order_number VARCHAR,
    total_ar_amount DECIMAL(14, 2),
    open_invoice_count INTEGER,
    avg_days_outstanding DECIMAL(8, 2),
    days_outstanding INTEGER,
    collection_risk VARCHAR,
    payment_pattern VARCHAR
);
"""

TRANSACTIONAL_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS addresses (
    id VARCHAR PRIMARY KEY,
    line1 VARCHAR,
    line2 VARCHAR,
    city VARCHAR,
    state VARCHAR,
    postal_code VARCHAR,
    country VARCHAR
);

CREATE TABLE IF NOT EXISTS companies (
    domain VARCHAR PRIMARY KEY,
    name VARCHAR,
    class VARCHAR
);

CREATE TABLE IF NOT EXISTS customers (
    id VARCHAR PRIMARY KEY,
    customer_name VARCHAR NOT NULL,
    first_name VARCHAR,
    last_name VARCHAR,
    customer_type VARCHAR,
    email VARCHAR,
    company_domain VARCHAR,
    billing_address_id VARCHAR,
    shipping_address_id VARCHAR
);

CREATE TABLE IF NOT EXISTS customer_emails (
    customer_id VARCHAR NOT NULL,
    email_address VARCHAR NOT NULL,
    is_primary_email BOOLEAN DEFAULT FALSE
);

CREATE TABLE IF NOT EXISTS products (
    product_code VARCHAR PRIMARY KEY,
    name VARCHAR,
    description VARCHAR
);

CREATE TABLE IF NOT EXISTS orders (
    id VARCHAR PRIMARY KEY,
    order_number VARCHAR,
    quickbooks_id VARCHAR,
    customer_id VARCHAR,
    order_date DATE,
    class VARCHAR,
    status VARCHAR,
    payment_status VARCHAR,
    payment_method VARCHAR,
    total_amount DECIMAL(14, 2),
    due_date DATE,
    shipping_address_id VARCHAR
);

CREATE INDEX IF NOT EXISTS idx_orders_customer ON orders(customer_id);
CREATE INDEX IF NOT EXISTS idx_orders_date ON orders(order_date);

CREATE TABLE IF NOT EXISTS order_items (
    id VARCHAR PRIMARY KEY,
    order_id VARCHAR NOT NULL,
    product_code VARCHAR NOT NULL,
    description VARCHAR,
    quantity DECIMAL(14, 4),
    unit_price DECIMAL(14, 4),
    amount DECIMAL(14, 2)
);

CREATE INDEX IF NOT EXISTS idx_order_items_order ON order_items(order_id);
"""


# ═══════════════════════════════════════════════════════════════════════════════
# SINGLETON INSTANCE
# ═══════════════════════════════════════════════════════════════════════════════

_store_instance: Optional[DuckDBStore] = None
_store_lock = asyncio.Lock()


async def get_store() -> DuckDBStore:
    """Get singleton DuckDB store instance (coroutine-safe)."""
    global _store_instance
    async with _store_lock:
        if _store_instance is None:
            _store_instance = DuckDBStore()
            await _store_instance.connect()
    return _store_instance


async def close_store() -> None:
    """Close singleton store instance."""
    global _store_instance
    if _store_instance:
        await _store_instance.close()
        _store_instance = None
