"""
Pydantic response models for API endpoints.

Provides type-safe response models with automatic validation and documentation.
Money amounts are 2-decimal strings, as the dashboard front end expects.
"""
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field


# ═══════════════════════════════════════════════════════════════════════════════
# HEALTH CHECK
# ═══════════════════════════════════════════════════════════════════════════════

class DateRangeStats(BaseModel):
    min: Optional[str] = None
    max: Optional[str] = None


class DuckDBStats(BaseModel):
    """DuckDB statistics."""
    status: str
    latency_ms: Optional[float] = None
    tables: Dict[str, int] = Field(default_factory=dict, description="Row count per table")
    date_range: Optional[DateRangeStats] = Field(None, description="Order date span of fct_orders")
    db_size_mb: Optional[float] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(description="Service status: healthy or degraded")
    version: str = Field(description="Application version")
    uptime_seconds: int = Field(description="Uptime in seconds")
    correlation_id: Optional[str] = Field(None, description="Request correlation ID")
    duckdb: DuckDBStats


class MetricsResponse(BaseModel):
    """Application metrics snapshot."""
    uptime_seconds: int
    correlation_id: Optional[str] = None
    requests: Dict[str, int] = Field(description="Request counts by endpoint")
    errors: Dict[str, int] = Field(description="Error counts by type")
    timing: Dict[str, Dict[str, Any]] = Field(description="Timing samples by operation")


class CacheStatsResponse(BaseModel):
    """Redis cache statistics."""
    enabled: bool
    connected: bool
    url: Optional[str] = None
    hits: int
    misses: int
    errors: int
    sets: int
    invalidations: int
    hit_rate_percent: float


# ═══════════════════════════════════════════════════════════════════════════════
# DASHBOARD
# ═══════════════════════════════════════════════════════════════════════════════

class DashboardMetricsResponse(BaseModel):
    """Headline KPIs for a period with growth against the comparison window."""
    sales365Days: str = Field(description="Paid sales over the trailing year")
    totalRevenue: str
    totalOrders: int
    averageOrderValue: str
    previousPeriodRevenue: str
    previousPeriodOrders: int
    revenueGrowth: float = Field(description="Percent, one decimal")
    orderGrowth: float
    sales365DaysGrowth: float


class DsoResponse(BaseModel):
    """Latest days-sales-outstanding snapshot."""
    snapshotDate: Optional[str] = None
    dsoDays: str
    dsoAssessment: str
    totalAccountsReceivable: str
    openInvoiceCount: int
    collectionEfficiencyPct: str
    dailyAvgSales: str


# ═══════════════════════════════════════════════════════════════════════════════
# REORDER PLANNING
# ═══════════════════════════════════════════════════════════════════════════════

class ReorderMetricsResponse(BaseModel):
    """Reorder totals over SKUs with recent sales."""
    totalSkusNeedingReorder: int = Field(description="CRITICAL plus LOW SKUs")
    totalReorderUnits90d: str
    totalReorderUnits180d: str
    totalReorderValue90d: str
    totalReorderValue180d: str
    avgDaysUntilStockout: str = Field(description="Days, weighted by SKU count across CRITICAL and LOW")
    criticalCount: int
    lowCount: int
    moderateCount: int
    sufficientCount: int


# ═══════════════════════════════════════════════════════════════════════════════
# MARKETING & TRADE SHOWS
# ═══════════════════════════════════════════════════════════════════════════════

class AttributionMetricsResponse(BaseModel):
    """Attributed revenue totals for a period."""
    totalAttributedRevenue: str
    totalAttributedOrders: int
    totalAttributedCustomers: int
    topChannel: str
    topChannelRevenue: str
    avgRevenuePerChannel: str
    attributedCustomerPercentage: str


class TradeShowMetricsResponse(BaseModel):
    """Lead and attributed revenue totals for shows held in a period."""
    totalShows: int
    totalLeads: int
    avgMatchRate: str
    totalAttributedRevenue30d: str
    totalAttributedRevenue90d: str
    totalAttributedRevenue365d: str
    topShowByRevenue: str
    topShowRevenue: str


# ═══════════════════════════════════════════════════════════════════════════════
# REPORTS
# ═══════════════════════════════════════════════════════════════════════════════

class CompanyChange(BaseModel):
    id: str
    name: Optional[str] = None
    domain: str
    currentTotal: float
    previousTotal: float
    percentageChange: float


class CompanyChangeSummary(BaseModel):
    increasingCount: int
    decreasingCount: int
    averageIncrease: float
    averageDecrease: float


class PopAndDropResponse(BaseModel):
    """Companies ranked by the swing in order totals between two windows."""
    companies: List[CompanyChange]
    summary: CompanyChangeSummary
