"""
Integration tests for order, product, inventory and reorder planning queries.
"""
import pytest

from tests.seed_data import TODAY


class TestOrders:
    """Tests for the order list and order detail."""

    @pytest.mark.asyncio
    async def test_first_page(self, store):
        """Newest first with the total of all orders that have an amount."""
        result = await store.get_all_orders(page=1, limit=2)

        assert [o["orderNumber"] for o in result["orders"]] == ["SO-1003", "SO-1001"]
        assert result["totalCount"] == 6

    @pytest.mark.asyncio
    async def test_search(self, store):
        """Search matches the customer name case-insensitively."""
        result = await store.get_all_orders(search="ACME")

        assert result["totalCount"] == 3
        assert {o["customer"] for o in result["orders"]} == {"Acme Corp"}

    @pytest.mark.asyncio
    async def test_sort_by_amount(self, store):
        """Whitelisted sort keys are honoured."""
        result = await store.get_all_orders(sort_by="totalAmount", sort_order="asc")
        assert result["orders"][0]["orderNumber"] == "SO-1003"

    @pytest.mark.asyncio
    async def test_unknown_sort_key(self, store):
        """Unknown sort keys fall back to newest first."""
        result = await store.get_all_orders(sort_by="nope", sort_order="asc")
        assert result["orders"][0]["orderNumber"] == "SO-1003"

    @pytest.mark.asyncio
    async def test_sort_order_case_insensitive(self, store):
        """Sort direction is matched regardless of case."""
        result = await store.get_all_orders(sort_by="orderNumber", sort_order="ASC")
        assert [o["orderNumber"] for o in result["orders"]][:2] == ["SO-0100", "SO-0500"]

    @pytest.mark.asyncio
    async def test_order_detail(self, store):
        """Detail carries addresses and the company link."""
        order = await store.get_order_by_number("SO-1001")

        assert order["totalAmount"] == "1000.00"
        assert order["isPaid"] is True
        assert order["billingAddressCity"] == "Toronto"
        assert order["shippingAddressCountry"] == "Canada"
        assert order["companyDomain"] == "acme.com"

    @pytest.mark.asyncio
    async def test_unknown_order(self, store):
        """Unknown order numbers return None."""
        assert await store.get_order_by_number("SO-9999") is None

    @pytest.mark.asyncio
    async def test_line_items(self, store):
        """Line items keep their id order; missing margins stay None."""
        items = await store.get_order_line_items("SO-1001")

        assert [i["lineItemId"] for i in items] == ["L1", "L2", "L5"]
        assert items[0]["amount"] == "500.00"
        assert items[2]["marginPercentage"] is None


class TestProducts:
    """Tests for the product catalog queries."""

    @pytest.mark.asyncio
    async def test_products_ranked_by_sales(self, store):
        """Sellable products with their sales since the start of the period."""
        products = await store.get_products(period="1y", today=TODAY)

        assert [p["itemName"] for p in products] == ["WIDGET-A", "GADGET-B"]
        assert products[0]["periodSales"] == "1150.00"
        assert products[0]["periodUnits"] == 23
        assert products[0]["periodOrders"] == 3

    @pytest.mark.asyncio
    async def test_product_metrics(self, store):
        """Catalog averages skip non-inventory items; stock value uses the latest snapshot."""
        metrics = await store.get_product_metrics()

        assert metrics["totalProducts"] == 2
        assert metrics["kitProducts"] == 1
        assert metrics["averageMargin"] == "35.0"
        assert metrics["averageSalesPrice"] == "75.00"
        assert metrics["totalInventoryValue"] == "6750.00"

    @pytest.mark.asyncio
    async def test_product_by_name(self, store):
        """Single product with trailing-year sales."""
        product = await store.get_product_by_name("GADGET-B", TODAY)

        assert product["periodSales"] == "500.00"
        assert product["isKit"] is True
        assert await store.get_product_by_name("NOPE", TODAY) is None

    @pytest.mark.asyncio
    async def test_monthly_revenue(self, store):
        """Revenue per calendar month in month order."""
        monthly = await store.get_product_monthly_revenue("WIDGET-A")

        assert monthly == [
            {"date": "2025-12-01", "revenue": "400.00", "orderCount": 1},
            {"date": "2026-01-01", "revenue": "750.00", "orderCount": 2},
        ]

    @pytest.mark.asyncio
    async def test_inventory_status_and_trend(self, store):
        """Latest snapshot plus the full history."""
        status = await store.get_product_inventory_status("WIDGET-A")
        trend = await store.get_product_inventory_trend("WIDGET-A")

        assert status["inventoryDate"] == "2026-01-14"
        assert status["quantityOnHand"] == "95"
        assert [t["date"] for t in trend] == ["2026-01-13", "2026-01-14"]
        assert await store.get_product_inventory_status("NOPE") is None


class TestFamilies:
    """Tests for product family sales."""

    @pytest.mark.asyncio
    async def test_family_growth(self, store):
        """Current window against the previous one, best selling family first."""
        families = await store.get_family_sales("30d", today=TODAY)

        assert [f["productFamily"] for f in families] == ["Widgets", "Gadgets"]
        widgets = families[0]
        assert widgets["currentPeriodSales"] == "750.00"
        assert widgets["currentPeriodUnits"] == "15"
        assert widgets["previousPeriodSales"] == "400.00"
        assert widgets["salesGrowth"] == 87.5
        assert families[1]["salesGrowth"] == 0

    @pytest.mark.asyncio
    async def test_single_family(self, store):
        """A family filter narrows the result."""
        families = await store.get_family_sales("30d", family="Gadgets", today=TODAY)
        assert [f["productFamily"] for f in families] == ["Gadgets"]


class TestReorderPlanning:
    """Tests for reorder planning queries."""

    @pytest.mark.asyncio
    async def test_metrics(self, store):
        """Totals skip SKUs without recent sales; days are weighted by count."""
        metrics = await store.get_reorder_metrics()

        assert metrics["totalSkusNeedingReorder"] == 2
        assert metrics["criticalCount"] == 1
        assert metrics["lowCount"] == 1
        assert metrics["sufficientCount"] == 1
        assert metrics["moderateCount"] == 0
        assert metrics["totalReorderUnits90d"] == "250"
        assert metrics["totalReorderValue90d"] == "9500.00"
        assert metrics["totalReorderValue180d"] == "19000.00"
        assert metrics["avgDaysUntilStockout"] == "20.0"

    @pytest.mark.asyncio
    async def test_metrics_empty(self, empty_store):
        """No forecast rows gives zeros."""
        metrics = await empty_store.get_reorder_metrics()

        assert metrics["totalSkusNeedingReorder"] == 0
        assert metrics["avgDaysUntilStockout"] == "0.0"

    @pytest.mark.asyncio
    async def test_priority_breakdown(self, store):
        """Shares are whole percentages."""
        breakdown = await store.get_priority_breakdown()

        assert [(b["status"], b["count"], b["percentage"]) for b in breakdown] == [
            ("CRITICAL", 1, 33),
            ("LOW", 1, 33),
            ("SUFFICIENT", 1, 33),
        ]

    @pytest.mark.asyncio
    async def test_stockout_timeline(self, store):
        """Stockouts within the horizon grouped per date."""
        timeline = await store.get_stockout_timeline(TODAY)

        assert timeline == [
            {"stockoutDate": "2026-01-25", "skuCount": 1, "totalValue": "2850.00", "skus": ["WIDGET-A"]},
            {"stockoutDate": "2026-02-14", "skuCount": 1, "totalValue": "1400.00", "skus": ["GADGET-B"]},
        ]

    @pytest.mark.asyncio
    async def test_planning_items(self, store):
        """Items come in priority order with reorder values at cost."""
        items = await store.get_reorder_planning_data()

        assert [i["sku"] for i in items] == ["WIDGET-A", "GADGET-B", "BOLT-C"]
        assert items[0]["reorderValueFor90DTarget"] == "6000.00"
        assert items[2]["unitsPerSku"] == 100

    @pytest.mark.asyncio
    async def test_planning_filters(self, store):
        """Status and needs-reorder filters narrow the list."""
        needs = await store.get_reorder_planning_data(only_needs_reorder=True)
        sufficient = await store.get_reorder_planning_data(inventory_status="SUFFICIENT")

        assert [i["sku"] for i in needs] == ["WIDGET-A", "GADGET-B"]
        assert [i["sku"] for i in sufficient] == ["BOLT-C"]

    @pytest.mark.asyncio
    async def test_families_for_reorder(self, store):
        """Distinct families of recently sold SKUs."""
        assert await store.get_product_families_for_reorder() == ["Gadgets", "Hardware", "Widgets"]
