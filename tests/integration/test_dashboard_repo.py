"""
Integration tests for the dashboard and cash flow queries.
"""
import pytest

from tests.seed_data import TODAY


class TestDashboardMetrics:
    """Tests for get_dashboard_metrics."""

    @pytest.mark.asyncio
    async def test_thirty_days(self, store):
        """KPIs cover the window and compare with the equally long window before it."""
        metrics = await store.get_dashboard_metrics("30d", TODAY)

        assert metrics["totalRevenue"] == "1750.00"
        assert metrics["totalOrders"] == 3
        assert metrics["averageOrderValue"] == "583.33"
        assert metrics["previousPeriodRevenue"] == "400.00"
        assert metrics["previousPeriodOrders"] == 1
        assert metrics["revenueGrowth"] == 337.5
        assert metrics["orderGrowth"] == 200.0

    @pytest.mark.asyncio
    async def test_paid_sales_trailing_year(self, store):
        """Trailing-year paid sales ignore the selected period."""
        metrics = await store.get_dashboard_metrics("7d", TODAY)

        assert metrics["sales365Days"] == "2450.00"
        assert metrics["sales365DaysGrowth"] == 308.3

    @pytest.mark.asyncio
    async def test_all_time_compares_with_year_before(self, store):
        """'all' compares against the window before the trailing year."""
        metrics = await store.get_dashboard_metrics("all", TODAY)

        assert metrics["totalRevenue"] == "3550.00"
        assert metrics["previousPeriodRevenue"] == "600.00"

    @pytest.mark.asyncio
    async def test_empty_mart(self, empty_store):
        """No orders yields zeros instead of errors."""
        metrics = await empty_store.get_dashboard_metrics("30d", TODAY)

        assert metrics["totalRevenue"] == "0.00"
        assert metrics["totalOrders"] == 0
        assert metrics["averageOrderValue"] == "0.00"
        assert metrics["revenueGrowth"] == 0


class TestRecentOrdersAndTrend:
    """Tests for recent orders, revenue trend and status breakdown."""

    @pytest.mark.asyncio
    async def test_recent_orders(self, store):
        """Newest orders first, orders without an amount skipped."""
        orders = await store.get_recent_orders(2)

        assert [o["orderNumber"] for o in orders] == ["SO-1003", "SO-1001"]
        assert orders[1]["companyDomain"] == "acme.com"
        assert orders[0]["isIndividualCustomer"] is True

    @pytest.mark.asyncio
    async def test_revenue_trend_by_day(self, store):
        """Seven days are bucketed per day."""
        trend = await store.get_revenue_trend("7d", TODAY)

        assert trend == [
            {"date": "2026-01-10", "revenue": "1000.00", "orderCount": 1},
            {"date": "2026-01-12", "revenue": "250.00", "orderCount": 1},
        ]

    @pytest.mark.asyncio
    async def test_order_status_breakdown(self, store):
        """Statuses over the last 30 days, most common first."""
        breakdown = await store.get_order_status_breakdown(TODAY)

        assert breakdown == [
            {"status": "Paid", "count": 2, "totalAmount": "1250.00"},
            {"status": "Open", "count": 1, "totalAmount": "500.00"},
        ]


class TestChannelMetrics:
    """Tests for get_channel_metrics."""

    @pytest.mark.asyncio
    async def test_channels_ordered_by_latest_year(self, store):
        """Channels sort by revenue in the latest trailing year; excluded classes are dropped."""
        channels = await store.get_channel_metrics(TODAY)

        assert [c["sales_channel"] for c in channels] == ["Distributor", "Retail"]

    @pytest.mark.asyncio
    async def test_periods_newest_first(self, store):
        """Each channel lists its trailing years newest first."""
        channels = await store.get_channel_metrics(TODAY)
        distributor = channels[0]

        assert distributor["periods"][0] == {
            "period_start": "2025-01-16",
            "period_end": "2026-01-15",
            "total_revenue": "1900.00",
            "order_count": "3",
        }
        assert distributor["periods"][1]["total_revenue"] == "600.00"

    @pytest.mark.asyncio
    async def test_no_orders(self, empty_store):
        """No orders means no channels."""
        assert await empty_store.get_channel_metrics(TODAY) == []


class TestCashFlow:
    """Tests for DSO, AR aging and problem accounts."""

    @pytest.mark.asyncio
    async def test_current_dso_is_latest_snapshot(self, store):
        """The newest snapshot wins."""
        dso = await store.get_current_dso()

        assert dso["snapshotDate"] == "2026-01-14"
        assert dso["dsoDays"] == "42.5"
        assert dso["totalAccountsReceivable"] == "9500.00"
        assert dso["openInvoiceCount"] == 13
        assert dso["collectionEfficiencyPct"] == "83.2"

    @pytest.mark.asyncio
    async def test_dso_without_snapshots(self, empty_store):
        """Missing snapshots produce zeros."""
        dso = await empty_store.get_current_dso()

        assert dso["snapshotDate"] is None
        assert dso["dsoDays"] == "0.0"
        assert dso["dsoAssessment"] == "Unknown"

    @pytest.mark.asyncio
    async def test_ar_aging_bucket_order(self, store):
        """Rows group by analysis level, then follow the aging bucket order."""
        aging = await store.get_ar_aging_details()

        assert [(r["analysisLevel"], r["agingBucket"]) for r in aging] == [
            ("Bucket Summary", "Current"),
            ("Bucket Summary", "Overdue"),
            ("Invoice Detail", "Current"),
            ("Invoice Detail", "Overdue"),
            ("Invoice Detail", "Severely Overdue"),
        ]

    @pytest.mark.asyncio
    async def test_problem_accounts(self, store):
        """Only high and critical risk invoices, longest outstanding first."""
        problems = await store.get_problem_accounts()

        assert [p["orderNumber"] for p in problems] == ["SO-0500", "SO-1002"]
        assert problems[0]["collectionRisk"] == "Critical Risk"
        assert problems[1]["paymentPattern"] == "Unknown"
