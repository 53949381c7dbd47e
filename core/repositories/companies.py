"""DuckDBStore company list, profile and health methods."""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from core.duckdb_constants import MART
from core.formatting import iso_date, to_fixed, to_int
from core.pagination import PageRequest, build_order_clause

COMPANY_SORT_COLUMNS = {
    "companyName": "c.company_name",
    "totalRevenue": "c.total_revenue",
    "totalOrders": "c.total_orders",
    "customerCount": "c.customer_count",
    "latestOrderDate": "c.latest_order_date",
}

HEALTH_SORT_COLUMNS = {
    **COMPANY_SORT_COLUMNS,
    "healthScore": "h.health_score",
    "activityStatus": "h.activity_status",
    "daysSinceLastOrder": "h.days_since_last_order",
}

HEALTH_COLUMNS = """
    h.health_score, h.customer_archetype, h.activity_status, h.engagement_level,
    h.growth_trend_direction, h.health_category, h.at_risk_flag,
    h.growth_opportunity_flag, h.days_since_last_order, h.orders_last_90_days,
    h.revenue_last_90_days, h.revenue_percentile
"""

# API filter name -> column
HEALTH_FILTERS = {
    "activityStatus": "h.activity_status",
    "businessSize": "c.business_size_category",
    "revenueCategory": "c.revenue_category",
    "healthCategory": "h.health_category",
    "country": "c.primary_country",
}

# (max days since last order, label), checked in order
ACTIVITY_THRESHOLDS = (
    (30, "Active (30 days)"),
    (90, "Recent (90 days)"),
    (365, "Dormant (1 year)"),
)

# (min orders per month, label), checked in order
FREQUENCY_THRESHOLDS = (
    (4, "High (4+/month)"),
    (1, "Medium (1-4/month)"),
    (0.25, "Low (1/quarter)"),
)


def _company_row(r: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "companyDomainKey": r["company_domain_key"] or "",
        "companyName": r["company_name"] or "Unknown Company",
        "domainType": r["domain_type"] or "unknown",
        "businessSizeCategory": r["business_size_category"] or "Unknown",
        "revenueCategory": r["revenue_category"] or "Unknown",
        "totalRevenue": to_fixed(r["total_revenue"], 2),
        "totalOrders": to_fixed(r["total_orders"], 0),
        "customerCount": to_int(r["customer_count"]),
        "firstOrderDate": iso_date(r["first_order_date"]) or "",
        "latestOrderDate": iso_date(r["latest_order_date"]) or "",
    }


def _health_fields(r: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "healthScore": to_fixed(r["health_score"], 0),
        "activityStatus": r["activity_status"] or "Unknown",
        "healthCategory": r["health_category"] or "Unknown",
        "growthTrendDirection": r["growth_trend_direction"] or "Unknown",
        "atRiskFlag": bool(r["at_risk_flag"]),
        "growthOpportunityFlag": bool(r["growth_opportunity_flag"]),
        "primaryCountry": r["primary_country"] or "Unknown",
    }


def classify_activity(days_since_last_order: int) -> str:
    for max_days, label in ACTIVITY_THRESHOLDS:
        if days_since_last_order <= max_days:
            return label
    return "Inactive"


def classify_frequency(orders_per_month: float) -> str:
    for min_rate, label in FREQUENCY_THRESHOLDS:
        if orders_per_month >= min_rate:
            return label
    return "Very Low (<1/quarter)"


class CompaniesMixin:

    async def _company_page(
        self,
        joins: str,
        columns: Dict[str, str],
        where_clauses: List[str],
        params: list,
        page: int,
        page_size: int,
        sort_by: str,
        sort_order: str,
        select: str,
    ):
        request = PageRequest(page, page_size)
        where_sql = " AND ".join(where_clauses)
        order_sql = build_order_clause(
            sort_by, sort_order, columns, "totalRevenue", tiebreaker="c.company_domain_key",
        )

        rows = await self._fetch_dicts(f"""
            SELECT {select}
            FROM {MART}.fct_companies c
            {joins}
            WHERE {where_sql}
            {order_sql}
            LIMIT ? OFFSET ?
        """, params + [request.limit, request.offset])

        total = await self._count(f"""
            SELECT COUNT(*)
            FROM {MART}.fct_companies c
            {joins}
            WHERE {where_sql}
        """, params)
        return rows, total

    @staticmethod
    def _search_clause(search: Optional[str], where_clauses: List[str], params: list) -> None:
        if search:
            where_clauses.append(
                "(LOWER(c.company_name) LIKE LOWER(?) OR LOWER(c.company_domain_key) LIKE LOWER(?))"
            )
            params.extend([f"%{search}%", f"%{search}%"])

    async def get_all_companies(
        self,
        page: int = 1,
        page_size: int = 50,
        search: Optional[str] = "",
        sort_by: str = "totalRevenue",
        sort_order: str = "desc",
    ) -> Dict[str, Any]:
        """One page of corporate companies (consumer email domains excluded upstream)."""
        where_clauses = ["c.domain_type = 'corporate'"]
        params: list = []
        self._search_clause(search, where_clauses, params)

        rows, total = await self._company_page(
            "", COMPANY_SORT_COLUMNS, where_clauses, params,
            page, page_size, sort_by, sort_order, "c.*",
        )
        return {"companies": [_company_row(r) for r in rows], "totalCount": total}

    async def get_companies_with_health(
        self,
        page: int = 1,
        page_size: int = 50,
        search: Optional[str] = "",
        sort_by: str = "totalRevenue",
        sort_order: str = "desc",
        filters: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Like :meth:`get_all_companies`, restricted to companies with a health record."""
        where_clauses = ["c.domain_type = 'corporate'"]
        params: list = []
        self._search_clause(search, where_clauses, params)

        for key, column in HEALTH_FILTERS.items():
            value = (filters or {}).get(key)
            if value:
                where_clauses.append(f"{column} = ?")
                params.append(value)

        rows, total = await self._company_page(
            f"JOIN {MART}.dim_company_health h ON c.company_domain_key = h.company_domain_key",
            HEALTH_SORT_COLUMNS, where_clauses, params,
            page, page_size, sort_by, sort_order,
            f"c.*, {HEALTH_COLUMNS}",
        )

        companies = []
        for r in rows:
            companies.append({
                **_company_row(r),
                **_health_fields(r),
                "daysSinceLastOrder": to_int(r["days_since_last_order"]),
            })
        return {"companies": companies, "totalCount": total}

    async def get_company_by_domain(self, domain_key: str) -> Optional[Dict[str, Any]]:
        r = await self._fetch_dict(f"""
            SELECT c.*, {HEALTH_COLUMNS}
            FROM {MART}.fct_companies c
            LEFT JOIN {MART}.dim_company_health h ON c.company_domain_key = h.company_domain_key
            WHERE LOWER(c.company_domain_key) = LOWER(?)
            LIMIT 1
        """, [domain_key])

        if r is None:
            return None

        return {
            **_company_row(r),
            "primaryEmail": r["primary_email"] or "",
            "primaryPhone": r["primary_phone"] or "",
            "primaryBillingAddressLine1": r["primary_billing_address_line_1"] or "",
            "primaryBillingCity": r["primary_billing_city"] or "",
            "primaryBillingState": r["primary_billing_state"] or "",
            "primaryBillingPostalCode": r["primary_billing_postal_code"] or "",
            "region": r["region"] or "Unknown",
            **_health_fields(r),
            "customerArchetype": r["customer_archetype"] or "Unknown",
            "engagementLevel": r["engagement_level"] or "Unknown",
            "ordersLast90Days": to_int(r["orders_last_90_days"]),
            "revenueLast90Days": to_fixed(r["revenue_last_90_days"], 2),
            "revenuePercentile": to_int(r["revenue_percentile"]),
        }

    async def get_company_customers(self, domain_key: str) -> List[Dict[str, Any]]:
        rows = await self._fetch_dicts(f"""
            SELECT *
            FROM {MART}.bridge_customer_company
            WHERE LOWER(company_domain_key) = LOWER(?)
            ORDER BY customer_total_revenue DESC NULLS LAST, customer_name
        """, [domain_key])

        return [
            {
                "customerId": r["customer_id"] or "",
                "customerName": r["customer_name"] or "Unknown Customer",
                "customerTotalRevenue": to_fixed(r["customer_total_revenue"], 2),
                "customerTotalOrders": to_fixed(r["customer_total_orders"], 0),
                "customerValueTier": r["customer_value_tier"] or "Unknown",
                "customerActivityStatus": r["customer_activity_status"] or "Unknown",
                "billingAddressCity": r["billing_address_city"] or "",
                "billingAddressState": r["billing_address_state"] or "",
                "salesRep": r["sales_rep"] or "",
                "isIndividualCustomer": bool(r["is_individual_customer"]),
            }
            for r in rows
        ]

    async def get_company_order_timeline(self, domain_key: str) -> List[Dict[str, Any]]:
        rows = await self._fetch_dicts(f"""
            SELECT *
            FROM {MART}.fct_company_orders
            WHERE LOWER(company_domain_key) = LOWER(?)
            ORDER BY order_date DESC, order_number DESC
            LIMIT 50
        """, [domain_key])

        return [
            {
                "orderNumber": r["order_number"] or "",
                "orderDate": iso_date(r["order_date"]) or "",
                "calculatedOrderTotal": to_fixed(r["calculated_order_total"], 2),
                "lineItemCount": to_int(r["line_item_count"]),
                "uniqueProducts": to_int(r["unique_products"]),
                "orderType": r["order_type"] or "Unknown",
                "recencyCategory": r["recency_category"] or "Unknown",
                "orderSizeCategory": r["order_size_category"] or "Unknown",
                "daysSinceOrder": to_int(r["days_since_order"]),
            }
            for r in rows
        ]

    async def get_company_product_analysis(self, domain_key: str) -> List[Dict[str, Any]]:
        rows = await self._fetch_dicts(f"""
            SELECT *
            FROM {MART}.fct_company_products
            WHERE LOWER(company_domain_key) = LOWER(?)
            ORDER BY total_amount_spent DESC NULLS LAST, product_service
            LIMIT 20
        """, [domain_key])

        return [
            {
                "productService": r["product_service"] or "",
                "productServiceDescription": r["product_service_description"] or "",
                "productFamily": r["product_family"] or "Unknown",
                "materialType": r["material_type"] or "Unknown",
                "totalTransactions": to_int(r["total_transactions"]),
                "totalQuantityPurchased": to_fixed(r["total_quantity_purchased"], 2),
                "totalAmountSpent": to_fixed(r["total_amount_spent"], 2),
                "avgUnitPrice": to_fixed(r["avg_unit_price"], 2),
                "buyerStatus": r["buyer_status"] or "Unknown",
                "purchaseVolumeCategory": r["purchase_volume_category"] or "Unknown",
                "daysSinceLastPurchase": to_int(r["days_since_last_purchase"]),
            }
            for r in rows
        ]

    async def get_company_health_basic(
        self,
        domain_key: str,
        today: Optional[date] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Recency and frequency computed from the company's own orders.

        Returns None for a company without orders.
        """
        today = today or date.today()
        row = await self._fetch_one(f"""
            SELECT
                COUNT(*),
                MAX(order_date),
                MIN(order_date),
                SUM(calculated_order_total)
            FROM {MART}.fct_company_orders
            WHERE LOWER(company_domain_key) = LOWER(?)
        """, [domain_key])

        order_count, newest, oldest, revenue = row
        if not order_count:
            return None

        days_since = (today - newest).days
        months = max((newest - oldest).days / 30, 1)

        return {
            "daysSinceLastOrder": days_since,
            "activityStatus": classify_activity(days_since),
            "totalOrders": order_count,
            "orderFrequency": classify_frequency(order_count / months),
            "avgOrderValue": to_fixed(float(revenue or 0) / order_count, 2),
        }
