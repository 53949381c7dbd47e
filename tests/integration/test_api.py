"""
Integration tests for the HTTP API.

Runs the FastAPI app against the seeded in-memory store with ``today``
pinned to 2026-01-15.
"""


class TestHealth:
    """Tests for health and metrics endpoints."""

    def test_health(self, client):
        """Health reports a connected store."""
        response = client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["duckdb"]["status"] == "connected"

    def test_detailed_health(self, client):
        """Detailed health lists the cache as not connected."""
        body = client.get("/api/health/detailed").json()

        assert body["components"]["duckdb"]["status"] == "connected"
        assert body["components"]["redis"]["status"] == "not_connected"

    def test_metrics(self, client):
        """Request metrics are exposed."""
        client.get("/api/health")
        response = client.get("/api/metrics")

        assert response.status_code == 200
        assert "uptime_seconds" in response.json()


class TestMiddleware:
    """Tests for request logging headers."""

    def test_request_id_echoed(self, client):
        """A caller's request id comes back unchanged."""
        response = client.get("/api/health", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"
        assert response.headers["X-Response-Time"].endswith("ms")

    def test_request_id_generated(self, client):
        """Requests without an id get one."""
        response = client.get("/api/health")
        assert response.headers["X-Request-ID"]


class TestAdmin:
    """Tests for cache administration."""

    def test_cache_stats(self, client):
        """Stats are available while the cache is disabled."""
        assert client.get("/api/admin/cache/stats").status_code == 200

    def test_invalidate_without_cache(self, client):
        """Invalidation needs a connected cache."""
        assert client.post("/api/admin/cache/invalidate").status_code == 503


class TestDashboard:
    """Tests for dashboard endpoints."""

    def test_metrics(self, client):
        """KPIs for the requested period."""
        response = client.get("/api/dashboard/metrics", params={"period": "30d"})

        assert response.status_code == 200
        body = response.json()
        assert body["totalRevenue"] == "1750.00"
        assert body["revenueGrowth"] == 337.5

    def test_recent_orders_limit(self, client):
        """The limit is honoured and capped."""
        response = client.get("/api/dashboard/recent-orders", params={"limit": 2})

        assert [o["orderNumber"] for o in response.json()] == ["SO-1003", "SO-1001"]
        assert client.get("/api/dashboard/recent-orders", params={"limit": 500}).status_code == 400

    def test_channels(self, client):
        """Channels with their trailing-year periods."""
        channels = client.get("/api/dashboard/channels").json()

        assert channels[0]["sales_channel"] == "Distributor"
        assert len(channels[0]["periods"]) == 2

    def test_revenue_trend_and_status(self, client):
        """Trend buckets and the status breakdown."""
        trend = client.get("/api/dashboard/revenue-trend", params={"period": "7d"}).json()
        status = client.get("/api/dashboard/order-status").json()

        assert [t["date"] for t in trend] == ["2026-01-10", "2026-01-12"]
        assert status[0] == {"status": "Paid", "count": 2, "totalAmount": "1250.00"}

    def test_periods(self, client):
        """Period options plus the resolved timeframe."""
        body = client.get("/api/periods", params={"timeframe": "last-month"}).json()

        assert len(body["periods"]) == 5
        assert body["timeframe"]["start"] == "2025-12-01"
        assert body["timeframe"]["end"] == "2025-12-31"


class TestCashFlow:
    """Tests for cash flow endpoints."""

    def test_overview(self, client):
        """DSO, aging and problem accounts in one payload."""
        body = client.get("/api/cash-flow").json()

        assert body["dso"]["dsoDays"] == "42.5"
        assert len(body["arAging"]) == 5
        assert body["problemAccounts"][0]["orderNumber"] == "SO-0500"

    def test_problem_accounts_limit(self, client):
        """The limit trims the list."""
        body = client.get("/api/cash-flow/problem-accounts", params={"limit": 1}).json()
        assert [p["orderNumber"] for p in body] == ["SO-0500"]


class TestOrders:
    """Tests for order endpoints."""

    def test_paged_list(self, client):
        """Paged list carries paging fields."""
        body = client.get("/api/orders", params={"page": 1, "pageSize": 2}).json()

        assert [o["orderNumber"] for o in body["orders"]] == ["SO-1003", "SO-1001"]
        assert body["totalCount"] == 6
        assert body["page"] == 1
        assert body["pageSize"] == 2
        assert body["totalPages"] == 3

    def test_search(self, client):
        """Search narrows the list."""
        body = client.get("/api/orders", params={"search": "beta"}).json()
        assert body["totalCount"] == 2

    def test_invalid_sort_order(self, client):
        """Sort directions are validated."""
        assert client.get("/api/orders", params={"sortOrder": "sideways"}).status_code == 400

    def test_detail(self, client):
        """Order detail with its line items."""
        body = client.get("/api/orders/SO-1001").json()

        assert body["billingAddressCity"] == "Toronto"
        assert body["companyDomain"] == "acme.com"
        assert len(body["lineItems"]) == 3

    def test_unknown_order(self, client):
        """Unknown orders return 404."""
        response = client.get("/api/orders/XYZ")

        assert response.status_code == 404
        assert response.json() == {"detail": "Order not found: XYZ"}


class TestProducts:
    """Tests for product endpoints."""

    def test_list(self, client):
        """Products ranked by sales in the period."""
        body = client.get("/api/products", params={"period": "1y"}).json()
        assert [p["itemName"] for p in body] == ["WIDGET-A", "GADGET-B"]

    def test_metrics(self, client):
        """Catalog metrics."""
        body = client.get("/api/products/metrics").json()
        assert body["totalInventoryValue"] == "6750.00"

    def test_detail(self, client):
        """Detail bundles sales history and stock."""
        body = client.get("/api/products/WIDGET-A").json()

        assert body["product"]["periodSales"] == "1150.00"
        assert len(body["monthlyRevenue"]) == 2
        assert body["inventoryStatus"]["quantityOnHand"] == "95"
        assert len(body["inventoryTrend"]) == 2

    def test_unknown_product(self, client):
        """Unknown products return 404."""
        response = client.get("/api/products/NOPE")

        assert response.status_code == 404
        assert response.json() == {"detail": "Product not found: NOPE"}

    def test_families(self, client):
        """Family sales for the period."""
        body = client.get("/api/families", params={"period": "30d"}).json()
        assert body[0]["productFamily"] == "Widgets"


class TestReorderPlanning:
    """Tests for reorder planning endpoints."""

    def test_page(self, client):
        """Everything the planning page needs."""
        body = client.get("/api/reorder-planning").json()

        assert body["metrics"]["totalSkusNeedingReorder"] == 2
        assert len(body["priorityBreakdown"]) == 3
        assert [t["stockoutDate"] for t in body["stockoutTimeline"]] == ["2026-01-25", "2026-02-14"]
        assert body["productFamilies"] == ["Gadgets", "Hardware", "Widgets"]

    def test_items_status_filter(self, client):
        """Status filters accept any case."""
        body = client.get("/api/reorder-planning/items", params={"inventoryStatus": "low"}).json()
        assert [i["sku"] for i in body] == ["GADGET-B"]

    def test_items_bad_status(self, client):
        """Unknown statuses are rejected."""
        response = client.get("/api/reorder-planning/items", params={"inventoryStatus": "empty"})
        assert response.status_code == 400

    def test_timeline_horizon(self, client):
        """A short horizon drops later stockouts."""
        body = client.get("/api/reorder-planning/timeline", params={"horizonDays": 15}).json()
        assert [t["stockoutDate"] for t in body] == ["2026-01-25"]


class TestMarketing:
    """Tests for marketing endpoints."""

    def test_attribution_page(self, client):
        """Every section of the attribution page."""
        body = client.get("/api/marketing/attribution").json()

        assert body["metrics"]["topChannel"] == "Paid Search"
        assert [c["acquisitionChannel"] for c in body["channels"]] == ["Paid Search", "Organic"]
        assert len(body["monthlyChannelRevenue"]) == 2
        assert body["referringSites"][0]["referringSite"] == "google.com"
        assert body["landingPages"][0]["landingSite"] == "/widgets"

    def test_campaigns(self, client):
        """Campaigns default to the last year."""
        body = client.get("/api/marketing/campaigns").json()
        assert body[0]["utmCampaign"] == "winter"

    def test_referrers_limit(self, client):
        """Limits above the maximum are rejected."""
        assert client.get("/api/marketing/referrers", params={"limit": 1}).json()[0]["referringSite"] == "google.com"
        assert client.get("/api/marketing/referrers", params={"limit": 1000}).status_code == 400


class TestTradeShows:
    """Tests for trade show endpoints."""

    def test_page(self, client):
        """Metrics and show summaries."""
        body = client.get("/api/trade-shows").json()

        assert body["metrics"]["totalShows"] == 2
        assert body["shows"][0]["showName"] == "Expo West"

    def test_leads(self, client):
        """Leads for the period."""
        body = client.get("/api/trade-shows/leads").json()
        assert [lead["leadId"] for lead in body] == ["LD1", "LD2"]


class TestCompanies:
    """Tests for company endpoints."""

    def test_list(self, client):
        """Corporate companies with paging fields."""
        body = client.get("/api/companies").json()

        assert [c["companyDomainKey"] for c in body["companies"]] == ["acme.com", "beta.com"]
        assert body["totalCount"] == 2
        assert body["totalPages"] == 1

    def test_health_list(self, client):
        """Health mode adds health columns and honours filters."""
        healthy = client.get("/api/companies", params={"health": "true"}).json()
        dormant = client.get(
            "/api/companies", params={"health": "true", "activityStatus": "Dormant"},
        ).json()

        assert healthy["companies"][0]["healthScore"] == "85"
        assert dormant["totalCount"] == 0

    def test_detail(self, client):
        """Company detail with every related section."""
        body = client.get("/api/companies/ACME.com").json()

        assert body["company"]["companyName"] == "Acme Corp"
        assert len(body["customers"]) == 1
        assert len(body["orders"]) == 3
        assert len(body["products"]) == 2
        assert body["contacts"][0]["contactDimKey"] == "K1"
        assert body["healthBasic"]["avgOrderValue"] == "700.00"

    def test_bad_domain(self, client):
        """Malformed domains are rejected before querying."""
        assert client.get("/api/companies/bad domain!").status_code == 400

    def test_unknown_domain(self, client):
        """Unknown companies return 404."""
        response = client.get("/api/companies/unknown.com")

        assert response.status_code == 404
        assert response.json() == {"detail": "Company not found: unknown.com"}


class TestContacts:
    """Tests for the contacts endpoint."""

    def test_filters(self, client):
        """Boolean query filters narrow the list."""
        body = client.get("/api/contacts", params={"emailMarketable": "true"}).json()

        assert [c["contactDimKey"] for c in body["contacts"]] == ["K1", "K3"]
        assert body["totalCount"] == 2

    def test_search(self, client):
        """Search matches company names."""
        body = client.get("/api/contacts", params={"search": "beta"}).json()
        assert [c["contactDimKey"] for c in body["contacts"]] == ["K3"]


class TestPeople:
    """Tests for people endpoints."""

    def test_overview(self, client):
        """Overview of channels and customer types."""
        body = client.get("/api/people").json()
        assert body["channels"][0]["channel"] == "Dealer"

    def test_lists(self, client):
        """Each list kind resolves its people."""
        channel = client.get("/api/people/channel/Distributor").json()
        customer_type = client.get("/api/people/customer-type/Wholesale").json()
        company_class = client.get("/api/people/company-class/Distributor").json()

        assert channel["people"][0]["email"] == "purchasing@acme.com"
        assert customer_type["summary"]["totalPeople"] == 3
        assert company_class["summary"]["totalPeople"] == 2


class TestReports:
    """Tests for report endpoints."""

    def test_channels(self, client):
        """Sales channel report with four periods each."""
        body = client.get("/api/reports/channels", params={"range": "30d"}).json()

        assert [c["sales_channel"] for c in body] == ["Dealer", "Distributor", "Retail"]
        assert all(len(c["periods"]) == 4 for c in body)

    def test_canadian_sales(self, client):
        """Canadian report bundles the US comparison."""
        body = client.get("/api/reports/canadian-sales", params={"range": "30d"}).json()

        assert body["metrics"]["currentPeriod"]["orderCount"] == 2
        assert body["topCustomers"][0]["customerName"] == "Acme Corp"
        assert body["unitsSold"][0]["productCode"] == "01-6310"
        assert body["usComparison"]["currentPeriod"]["totalRevenue"] == 2150.0

    def test_canadian_orders(self, client):
        """Order list with amount filters."""
        body = client.get(
            "/api/reports/canadian-orders", params={"range": "30d", "minAmount": 500},
        ).json()

        assert [o["orderNumber"] for o in body["orders"]] == ["1001"]
        assert body["totalCount"] == 1

    def test_adhesive(self, client):
        """Adhesive metrics and orders with the consumer filter."""
        metrics = client.get("/api/reports/adhesive", params={"range": "30d"}).json()
        orders = client.get(
            "/api/reports/adhesive-orders", params={"range": "30d", "filterConsumer": "true"},
        ).json()

        assert metrics["currentPeriod"]["totalRevenue"] == 450.0
        assert [o["orderNumber"] for o in orders["orders"]] == ["1003"]

    def test_pop_and_drop(self, client):
        """Company swings over the requested months."""
        body = client.get("/api/reports/pop-and-drop", params={"months": 3}).json()

        assert body["summary"]["increasingCount"] == 2
        assert body["summary"]["decreasingCount"] == 1

    def test_invalid_filters(self, client):
        """Malformed ranges, inverted amounts and zero months are rejected."""
        assert client.get("/api/reports/channels", params={"range": "abc"}).status_code == 400
        assert client.get(
            "/api/reports/adhesive", params={"minAmount": 500, "maxAmount": 100},
        ).status_code == 400
        assert client.get("/api/reports/pop-and-drop", params={"months": 0}).status_code == 400
