"""
Integration tests for marketing attribution and trade show queries.
"""
import pytest

from tests.seed_data import TODAY


class TestAttribution:
    """Tests for attribution metrics and channel revenue."""

    @pytest.mark.asyncio
    async def test_metrics_last_year(self, store):
        """Only orders with a channel count towards attribution."""
        metrics = await store.get_attribution_metrics("1y", TODAY)

        assert metrics["totalAttributedRevenue"] == "1650.00"
        assert metrics["totalAttributedOrders"] == 3
        assert metrics["totalAttributedCustomers"] == 3
        assert metrics["topChannel"] == "Paid Search"
        assert metrics["topChannelRevenue"] == "1400.00"
        assert metrics["avgRevenuePerChannel"] == "825.00"
        assert metrics["attributedCustomerPercentage"] == "100.0"

    @pytest.mark.asyncio
    async def test_metrics_narrow_window(self, store):
        """A shorter period only sees the newest orders."""
        metrics = await store.get_attribution_metrics("7d", TODAY)

        assert metrics["totalAttributedRevenue"] == "1250.00"
        assert metrics["topChannelRevenue"] == "1000.00"

    @pytest.mark.asyncio
    async def test_metrics_empty(self, empty_store):
        """No attribution rows gives an unknown top channel."""
        metrics = await empty_store.get_attribution_metrics("1y", TODAY)

        assert metrics["totalAttributedRevenue"] == "0.00"
        assert metrics["topChannel"] == "Unknown"

    @pytest.mark.asyncio
    async def test_channel_revenue(self, store):
        """Channels by revenue with their share of the total."""
        channels = await store.get_channel_revenue("1y", TODAY)

        assert [c["acquisitionChannel"] for c in channels] == ["Paid Search", "Organic"]
        paid = channels[0]
        assert paid["totalRevenue"] == "1400.00"
        assert paid["orderCount"] == 2
        assert paid["avgOrderValue"] == "700.00"
        assert round(paid["revenuePercentage"], 2) == 84.85

    @pytest.mark.asyncio
    async def test_campaigns(self, store):
        """Campaigns include orders without a channel and report opt-in rates."""
        campaigns = await store.get_campaign_performance("1y", TODAY)

        assert [c["utmSource"] for c in campaigns] == ["google", "newsletter"]
        assert campaigns[0]["totalRevenue"] == "1400.00"
        assert campaigns[0]["optInRate"] == "50.0"
        assert campaigns[1]["optInRate"] == "100.0"

    @pytest.mark.asyncio
    async def test_monthly_channels(self, store):
        """Months in order; a channel missing from a month is absent."""
        monthly = await store.get_monthly_channel_revenue("1y", TODAY)

        assert monthly == [
            {"month": "2025-12-01", "channels": {"Paid Search": 400.0}},
            {"month": "2026-01-01", "channels": {"Paid Search": 1000.0, "Organic": 250.0}},
        ]

    @pytest.mark.asyncio
    async def test_referrers_and_landing_pages(self, store):
        """Top sites are ranked by revenue and honour the limit."""
        referrers = await store.get_top_referring_sites("1y", today=TODAY)
        pages = await store.get_top_landing_pages("1y", limit=1, today=TODAY)

        assert [r["referringSite"] for r in referrers] == ["google.com", "bing.com"]
        assert referrers[0]["orderCount"] == 2
        assert [p["landingSite"] for p in pages] == ["/widgets"]


class TestTradeShows:
    """Tests for trade show metrics, summaries and leads."""

    @pytest.mark.asyncio
    async def test_metrics(self, store):
        """Shows inside the period only; the top show is by 365-day revenue."""
        metrics = await store.get_trade_show_metrics("1y", TODAY)

        assert metrics["totalShows"] == 2
        assert metrics["totalLeads"] == 100
        assert metrics["avgMatchRate"] == "37.5"
        assert metrics["totalAttributedRevenue365d"] == "13000.00"
        assert metrics["topShowByRevenue"] == "Build Show"
        assert metrics["topShowRevenue"] == "8000.00"

    @pytest.mark.asyncio
    async def test_metrics_empty(self, empty_store):
        """No shows yields zeros and no top show."""
        metrics = await empty_store.get_trade_show_metrics("1y", TODAY)

        assert metrics["totalShows"] == 0
        assert metrics["totalLeads"] == 0
        assert metrics["topShowByRevenue"] == "N/A"

    @pytest.mark.asyncio
    async def test_summaries_newest_first(self, store):
        """Summaries list the newest show first."""
        shows = await store.get_trade_show_summaries("1y", TODAY)

        assert [s["showName"] for s in shows] == ["Expo West", "Build Show"]
        assert shows[0]["matchRate"] == "25.0"

    @pytest.mark.asyncio
    async def test_leads(self, store):
        """Lead conversion flags come from the attribution windows."""
        leads = await store.get_trade_show_leads("1y", today=TODAY)

        assert [lead["leadId"] for lead in leads] == ["LD1", "LD2"]
        first = leads[0]
        assert first["isExistingCustomer"] is True
        assert first["hasConverted30d"] is False
        assert first["hasConverted90d"] is True
        assert first["attributedRevenue90d"] == "1000.00"
        assert leads[1]["isExistingCustomer"] is False

    @pytest.mark.asyncio
    async def test_leads_limit(self, store):
        """The limit caps the number of leads."""
        leads = await store.get_trade_show_leads("1y", limit=1, today=TODAY)
        assert len(leads) == 1
