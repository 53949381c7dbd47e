"""
DuckDBStore transactional report methods.

Reports read the raw orders, order_items, customers and addresses tables
over an N-day window ending today (see ``core.filters.get_day_window``).
The previous window is the N days before the current one.

Every report takes the same order filters:

    min_amount / max_amount  -- bounds on orders.total_amount (ignored when 0 or None)
    filter_consumer          -- drop customers whose company domain is a free-mail
                                or marketplace domain
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

from core.config import config
from core.duckdb_constants import placeholders
from core.filters import get_day_window, shift_months
from core.formatting import iso_date, pct_change_str, to_fixed, to_int, to_number
from core.pagination import PageRequest, build_order_clause

CHANNEL_PERIODS = 4
RECENT_ORDER_DAYS = 30
OPEN_PAYMENT_STATUSES = ("UNPAID", "PARTIAL")

REPORT_ORDER_SORT_COLUMNS = {
    "orderDate": "o.order_date",
    "orderNumber": "o.order_number",
    "totalAmount": "o.total_amount",
    "customerName": "c.customer_name",
    "status": "o.status",
    "dueDate": "o.due_date",
}

_CANADIAN_ADDRESS_SQL = """
    EXISTS (
        SELECT 1
        FROM addresses a
        WHERE a.id IN (c.billing_address_id, c.shipping_address_id)
          AND (
              a.country ILIKE '%canada%'
              OR a.state IN ({provinces})
              OR regexp_matches(COALESCE(a.postal_code, ''), '[A-Z][0-9][A-Z]', 'i')
          )
    )
"""

# Customers who bought any SP product never count towards the adhesive report
_ADHESIVE_ONLY_SQL = """
    NOT EXISTS (
        SELECT 1
        FROM orders so
        JOIN order_items si ON si.order_id = so.id
        WHERE so.customer_id = o.customer_id
          AND si.product_code LIKE '01-%'
    )
    AND EXISTS (
        SELECT 1
        FROM order_items ai
        WHERE ai.order_id = o.id
          AND ai.product_code IN ({codes})
    )
"""

_ORDER_ROW_SQL = """
    SELECT
        o.id, o.order_number, o.order_date, c.customer_name, o.status,
        o.payment_status, o.total_amount, o.due_date, o.payment_method,
        o.quickbooks_id,
        sa.line1, sa.line2, sa.city, sa.state, sa.postal_code, sa.country
    FROM orders o
    JOIN customers c ON c.id = o.customer_id
    LEFT JOIN addresses sa ON sa.id = o.shipping_address_id
"""


def _canadian_clause() -> Tuple[str, list]:
    provinces = list(config.reports.canadian_provinces)
    return _CANADIAN_ADDRESS_SQL.format(provinces=placeholders(provinces)), provinces


def _adhesive_clause() -> Tuple[str, list]:
    codes = list(config.reports.adhesive_product_codes)
    return _ADHESIVE_ONLY_SQL.format(codes=placeholders(codes)), codes


def _order_filters(
    min_amount: Optional[float],
    max_amount: Optional[float],
    filter_consumer: bool,
) -> Tuple[List[str], list]:
    """WHERE clauses and params for the amount and consumer filters on ``orders o``."""
    where_clauses: List[str] = []
    params: list = []

    if min_amount:
        where_clauses.append("o.total_amount >= ?")
        params.append(min_amount)
    if max_amount:
        where_clauses.append("o.total_amount <= ?")
        params.append(max_amount)
    if filter_consumer:
        domains = list(config.reports.consumer_domains)
        where_clauses.append(f"""
            NOT EXISTS (
                SELECT 1 FROM customers cc
                WHERE cc.id = o.customer_id
                  AND cc.company_domain IN ({placeholders(domains)})
            )
        """)
        params.extend(domains)

    return where_clauses, params


def _period_labels(days: int) -> Tuple[str, str]:
    return f"Last {days} Days", f"Previous {days} Days"


def _report_order(row: tuple) -> Dict[str, Any]:
    (order_id, number, order_date, customer, status, payment_status, amount,
     due_date, method, qb_id, line1, line2, city, state, postal, country) = row
    return {
        "id": order_id,
        "orderNumber": number,
        "orderDate": iso_date(order_date),
        "customerName": customer,
        "status": status,
        "paymentStatus": payment_status,
        "totalAmount": to_number(amount),
        "dueDate": iso_date(due_date),
        "paymentMethod": method,
        "quickbooksId": qb_id,
        "shippingAddress": {
            "line1": line1,
            "line2": line2,
            "city": city,
            "state": state,
            "postalCode": postal,
            "country": country,
        },
    }


class ReportsMixin:

    # ─── Sales channels ──────────────────────────────────────────────────────

    async def get_sales_channel_metrics(
        self,
        date_range: Optional[str] = None,
        min_amount: Optional[float] = None,
        max_amount: Optional[float] = None,
        filter_consumer: bool = False,
        today: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        """
        Units and revenue of the tracked product lines per order class.

        Four back-to-back N-day periods, newest first; period i covers
        [today - N*(i+1), today - N*i), except that the current period also
        takes orders dated today. Every channel gets all four slots.
        """
        today = today or date.today()
        days, _, _ = get_day_window(date_range, today)
        periods = [
            (today - timedelta(days=days * (i + 1)), today - timedelta(days=days * i))
            for i in range(CHANNEL_PERIODS)
        ]
        # SQL bounds are exclusive at the end; the current period runs through today
        bounds = [(start, end + timedelta(days=1) if i == 0 else end) for i, (start, end) in enumerate(periods)]

        codes = list(config.reports.channel_report_codes)
        prefixes = list(config.reports.channel_report_prefixes)
        product_sql = " OR ".join(
            [f"oi.product_code IN ({placeholders(codes)})"]
            + ["oi.product_code LIKE ?" for _ in prefixes]
        )

        where_clauses, params = _order_filters(min_amount, max_amount, filter_consumer)
        where_clauses = ["o.order_date >= ?", "o.order_date < ?", f"({product_sql})"] + where_clauses
        params = [bounds[-1][0], bounds[0][1], *codes, *(f"{p}%" for p in prefixes), *params]

        period_values = ", ".join("(?, CAST(? AS DATE), CAST(? AS DATE))" for _ in periods)
        period_params = [value for i, (start, end) in enumerate(bounds) for value in (i, start, end)]

        rows = await self._fetch_all(f"""
            WITH periods(idx, period_start, period_end) AS (VALUES {period_values})
            SELECT
                COALESCE(o.class, 'Unclassified') AS channel,
                p.idx,
                COUNT(DISTINCT o.id) AS orders,
                SUM(oi.quantity) AS units,
                SUM(oi.amount) AS revenue
            FROM orders o
            JOIN order_items oi ON oi.order_id = o.id
            JOIN periods p ON o.order_date >= p.period_start AND o.order_date < p.period_end
            WHERE {" AND ".join(where_clauses)}
            GROUP BY channel, p.idx
        """, period_params + params)

        by_channel: Dict[str, Dict[int, tuple]] = {}
        for channel, idx, orders, units, revenue in rows:
            by_channel.setdefault(channel, {})[idx] = (orders, units, revenue)

        results = []
        for channel in sorted(by_channel):
            slots = []
            for idx, (start, end) in enumerate(periods):
                orders, units, revenue = by_channel[channel].get(idx, (0, 0, 0))
                orders = to_int(orders)
                slots.append({
                    "period_start": iso_date(start),
                    "period_end": iso_date(end),
                    "order_count": str(orders),
                    "total_units": to_fixed(units, 0),
                    "total_revenue": to_fixed(revenue, 2),
                    "avg_unit_price": to_fixed(to_number(revenue) / orders if orders else 0, 2),
                })
            results.append({"sales_channel": channel, "periods": slots})
        return results

    # ─── Canadian and US sales ───────────────────────────────────────────────

    async def _region_metrics(
        self,
        region_sql: str,
        region_params: list,
        date_range: Optional[str],
        min_amount: Optional[float],
        max_amount: Optional[float],
        filter_consumer: bool,
        today: Optional[date],
    ) -> Dict[str, Any]:
        days, current_start, previous_start = get_day_window(date_range, today)
        where_clauses, params = _order_filters(min_amount, max_amount, filter_consumer)
        where_sql = " AND ".join([region_sql, "o.order_date >= ?"] + where_clauses)

        row = await self._fetch_one(f"""
            WITH scoped AS (
                SELECT o.id, o.order_date, o.total_amount
                FROM orders o
                JOIN customers c ON c.id = o.customer_id
                WHERE {where_sql}
            ),
            net AS (
                SELECT oi.order_id, SUM(oi.amount) AS net_amount
                FROM order_items oi
                WHERE oi.product_code NOT LIKE 'SYS-%'
                GROUP BY oi.order_id
            )
            SELECT
                COUNT(*) FILTER (WHERE s.order_date >= ?),
                COALESCE(SUM(s.total_amount) FILTER (WHERE s.order_date >= ?), 0),
                COALESCE(SUM(n.net_amount) FILTER (WHERE s.order_date >= ?), 0),
                COUNT(*) FILTER (WHERE s.order_date < ?),
                COALESCE(SUM(s.total_amount) FILTER (WHERE s.order_date < ?), 0),
                COALESCE(SUM(n.net_amount) FILTER (WHERE s.order_date < ?), 0)
            FROM scoped s
            LEFT JOIN net n ON n.order_id = s.id
        """, region_params + [previous_start] + params + [current_start] * 6)

        cur_orders, cur_revenue, cur_net, prev_orders, prev_revenue, prev_net = row
        current_label, previous_label = _period_labels(days)
        return {
            "currentPeriod": {
                "label": current_label,
                "orderCount": to_int(cur_orders),
                "totalRevenue": to_number(cur_revenue),
                "netRevenue": to_number(cur_net),
            },
            "previousPeriod": {
                "label": previous_label,
                "orderCount": to_int(prev_orders),
                "totalRevenue": to_number(prev_revenue),
                "netRevenue": to_number(prev_net),
            },
            "changes": {
                "orderCount": pct_change_str(cur_orders, prev_orders),
                "totalRevenue": pct_change_str(cur_revenue, prev_revenue),
                "netRevenue": pct_change_str(cur_net, prev_net),
            },
        }

    async def get_canadian_sales_metrics(
        self,
        date_range: Optional[str] = None,
        min_amount: Optional[float] = None,
        max_amount: Optional[float] = None,
        filter_consumer: bool = False,
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        region_sql, region_params = _canadian_clause()
        return await self._region_metrics(
            region_sql, region_params, date_range, min_amount, max_amount, filter_consumer, today,
        )

    async def get_us_sales_metrics(
        self,
        date_range: Optional[str] = None,
        min_amount: Optional[float] = None,
        max_amount: Optional[float] = None,
        filter_consumer: bool = False,
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        """Same shape as the Canadian metrics for every customer that is not Canadian."""
        region_sql, region_params = _canadian_clause()
        return await self._region_metrics(
            f"NOT {region_sql}", region_params, date_range, min_amount, max_amount,
            filter_consumer, today,
        )

    async def get_canadian_top_customers(
        self,
        date_range: Optional[str] = None,
        min_amount: Optional[float] = None,
        max_amount: Optional[float] = None,
        filter_consumer: bool = False,
        today: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        _, current_start, _ = get_day_window(date_range, today)
        region_sql, region_params = _canadian_clause()
        where_clauses, params = _order_filters(min_amount, max_amount, filter_consumer)
        where_sql = " AND ".join([region_sql, "o.order_date >= ?"] + where_clauses)

        rows = await self._fetch_all(f"""
            WITH units AS (
                SELECT order_id, SUM(quantity) AS quantity
                FROM order_items
                GROUP BY order_id
            )
            SELECT
                c.id,
                c.customer_name,
                comp.name,
                c.company_domain,
                COUNT(o.id) AS orders,
                SUM(o.total_amount) AS revenue,
                COALESCE(SUM(u.quantity), 0) AS units
            FROM orders o
            JOIN customers c ON c.id = o.customer_id
            LEFT JOIN companies comp ON comp.domain = c.company_domain
            LEFT JOIN units u ON u.order_id = o.id
            WHERE {where_sql}
            GROUP BY c.id, c.customer_name, comp.name, c.company_domain
            ORDER BY revenue DESC NULLS LAST, c.customer_name
        """, region_params + [current_start] + params)

        return [
            {
                "id": customer_id,
                "customerName": name,
                "companyName": company_name,
                "companyDomain": domain,
                "orderCount": to_int(orders),
                "totalRevenue": to_number(revenue),
                "totalUnits": to_number(units),
            }
            for customer_id, name, company_name, domain, orders, revenue, units in rows
        ]

    async def get_canadian_units_sold(
        self,
        date_range: Optional[str] = None,
        min_amount: Optional[float] = None,
        max_amount: Optional[float] = None,
        filter_consumer: bool = False,
        today: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        _, current_start, _ = get_day_window(date_range, today)
        region_sql, region_params = _canadian_clause()
        where_clauses, params = _order_filters(min_amount, max_amount, filter_consumer)
        where_sql = " AND ".join([region_sql, "o.order_date >= ?"] + where_clauses)

        rows = await self._fetch_all(f"""
            SELECT
                oi.product_code,
                COALESCE(p.name, oi.product_code),
                COALESCE(p.description, MIN(oi.description)),
                SUM(oi.quantity) AS units,
                SUM(oi.amount) AS revenue
            FROM orders o
            JOIN customers c ON c.id = o.customer_id
            JOIN order_items oi ON oi.order_id = o.id
            LEFT JOIN products p ON p.product_code = oi.product_code
            WHERE {where_sql}
            GROUP BY oi.product_code, p.name, p.description
            ORDER BY units DESC NULLS LAST, oi.product_code
        """, region_params + [current_start] + params)

        return [
            {
                "productCode": code,
                "productName": name,
                "description": description,
                "totalUnits": to_number(units),
                "totalRevenue": to_number(revenue),
            }
            for code, name, description, units, revenue in rows
        ]

    async def _report_orders(
        self,
        scope_sql: str,
        scope_params: list,
        current_start: date,
        page: int,
        page_size: int,
        search: Optional[str],
        sort_column: str,
        sort_direction: str,
        min_amount: Optional[float],
        max_amount: Optional[float],
        filter_consumer: bool,
        today: date,
    ) -> Dict[str, Any]:
        request = PageRequest(page, page_size)
        where_clauses, params = _order_filters(min_amount, max_amount, filter_consumer)
        where_clauses = [scope_sql, "o.order_date >= ?"] + where_clauses
        params = scope_params + [current_start] + params

        if search:
            where_clauses.append("(o.order_number ILIKE ? OR c.customer_name ILIKE ?)")
            params.extend([f"%{search}%", f"%{search}%"])

        where_sql = " AND ".join(where_clauses)
        order_sql = build_order_clause(
            sort_column, sort_direction, REPORT_ORDER_SORT_COLUMNS, "orderDate", tiebreaker="o.id",
        )

        rows = await self._fetch_all(f"""
            {_ORDER_ROW_SQL}
            WHERE {where_sql}
            {order_sql}
            LIMIT ? OFFSET ?
        """, params + [request.limit, request.offset])

        total, recent, receivable = await self._fetch_one(f"""
            SELECT
                COUNT(*),
                COUNT(*) FILTER (WHERE o.order_date >= ?),
                COALESCE(SUM(o.total_amount) FILTER (
                    WHERE o.payment_status IN ({placeholders(OPEN_PAYMENT_STATUSES)})
                ), 0)
            FROM orders o
            JOIN customers c ON c.id = o.customer_id
            WHERE {where_sql}
        """, [today - timedelta(days=RECENT_ORDER_DAYS), *OPEN_PAYMENT_STATUSES] + params)

        return {
            "orders": [_report_order(r) for r in rows],
            "totalCount": to_int(total),
            "recentCount": to_int(recent),
            "accountsReceivable": to_number(receivable),
        }

    async def get_canadian_orders(
        self,
        page: int = 1,
        page_size: int = 10,
        search: Optional[str] = "",
        sort_column: str = "orderDate",
        sort_direction: str = "desc",
        date_range: Optional[str] = None,
        min_amount: Optional[float] = None,
        max_amount: Optional[float] = None,
        filter_consumer: bool = False,
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        """
        One page of Canadian orders plus totals over the whole filtered set.

        ``recentCount`` counts the last 30 days; ``accountsReceivable`` sums
        orders that are unpaid or partially paid.
        """
        today = today or date.today()
        _, current_start, _ = get_day_window(date_range, today)
        region_sql, region_params = _canadian_clause()
        return await self._report_orders(
            region_sql, region_params, current_start, page, page_size, search,
            sort_column, sort_direction, min_amount, max_amount, filter_consumer, today,
        )

    # ─── Adhesive ────────────────────────────────────────────────────────────

    async def get_adhesive_metrics(
        self,
        date_range: Optional[str] = None,
        min_amount: Optional[float] = None,
        max_amount: Optional[float] = None,
        filter_consumer: bool = False,
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        """
        Adhesive orders from customers who never bought an SP product.

        Units and revenue count only the adhesive lines of those orders.
        """
        days, current_start, previous_start = get_day_window(date_range, today)
        scope_sql, scope_params = _adhesive_clause()
        codes = list(config.reports.adhesive_product_codes)
        where_clauses, params = _order_filters(min_amount, max_amount, filter_consumer)
        where_sql = " AND ".join([scope_sql, "o.order_date >= ?"] + where_clauses)

        row = await self._fetch_one(f"""
            WITH scoped AS (
                SELECT o.id, o.order_date
                FROM orders o
                WHERE {where_sql}
            ),
            lines AS (
                SELECT order_id, SUM(quantity) AS units, SUM(amount) AS revenue
                FROM order_items
                WHERE product_code IN ({placeholders(codes)})
                GROUP BY order_id
            )
            SELECT
                COUNT(*) FILTER (WHERE s.order_date >= ?),
                COALESCE(SUM(l.units) FILTER (WHERE s.order_date >= ?), 0),
                COALESCE(SUM(l.revenue) FILTER (WHERE s.order_date >= ?), 0),
                COUNT(*) FILTER (WHERE s.order_date < ?),
                COALESCE(SUM(l.units) FILTER (WHERE s.order_date < ?), 0),
                COALESCE(SUM(l.revenue) FILTER (WHERE s.order_date < ?), 0)
            FROM scoped s
            JOIN lines l ON l.order_id = s.id
        """, scope_params + [previous_start] + params + codes + [current_start] * 6)

        cur_orders, cur_units, cur_revenue, prev_orders, prev_units, prev_revenue = row
        current_label, previous_label = _period_labels(days)
        return {
            "currentPeriod": {
                "label": current_label,
                "orderCount": to_int(cur_orders),
                "totalUnits": to_number(cur_units),
                "totalRevenue": to_number(cur_revenue),
            },
            "previousPeriod": {
                "label": previous_label,
                "orderCount": to_int(prev_orders),
                "totalUnits": to_number(prev_units),
                "totalRevenue": to_number(prev_revenue),
            },
            "changes": {
                "orderCount": pct_change_str(cur_orders, prev_orders),
                "totalUnits": pct_change_str(cur_units, prev_units),
                "totalRevenue": pct_change_str(cur_revenue, prev_revenue),
            },
        }

    async def get_adhesive_only_orders(
        self,
        page: int = 1,
        page_size: int = 10,
        search: Optional[str] = "",
        sort_column: str = "orderDate",
        sort_direction: str = "desc",
        date_range: Optional[str] = None,
        min_amount: Optional[float] = None,
        max_amount: Optional[float] = None,
        filter_consumer: bool = False,
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        today = today or date.today()
        _, current_start, _ = get_day_window(date_range, today)
        scope_sql, scope_params = _adhesive_clause()
        result = await self._report_orders(
            scope_sql, scope_params, current_start, page, page_size, search,
            sort_column, sort_direction, min_amount, max_amount, filter_consumer, today,
        )
        result["recentCount"] = result["totalCount"]
        return result

    # ─── Pop and drop ────────────────────────────────────────────────────────

    async def get_company_order_metrics(
        self,
        months: int = 3,
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        """
        Companies whose order totals rose or fell between two windows of
        ``months`` calendar months, biggest swing first.
        """
        today = today or date.today()
        current_start = shift_months(today, -months)
        previous_start = shift_months(current_start, -months)

        rows = await self._fetch_all("""
            SELECT
                comp.domain,
                comp.name,
                COALESCE(SUM(o.total_amount) FILTER (WHERE o.order_date >= ?), 0) AS current_total,
                COALESCE(SUM(o.total_amount) FILTER (WHERE o.order_date < ?), 0) AS previous_total
            FROM orders o
            JOIN customers c ON c.id = o.customer_id
            JOIN companies comp ON comp.domain = c.company_domain
            WHERE o.order_date >= ?
            GROUP BY comp.domain, comp.name
        """, [current_start, current_start, previous_start])

        companies = []
        for domain, name, current_total, previous_total in rows:
            current_total = to_number(current_total)
            previous_total = to_number(previous_total)
            if current_total <= 0 and previous_total <= 0:
                continue
            if previous_total > 0:
                change = (current_total - previous_total) / previous_total * 100
            else:
                change = 100 if current_total > 0 else 0
            companies.append({
                "id": domain,
                "name": name,
                "domain": domain,
                "currentTotal": current_total,
                "previousTotal": previous_total,
                "percentageChange": change,
            })

        companies.sort(key=lambda c: abs(c["percentageChange"]), reverse=True)

        increasing = [c["percentageChange"] for c in companies if c["percentageChange"] > 0]
        decreasing = [c["percentageChange"] for c in companies if c["percentageChange"] < 0]

        return {
            "companies": companies,
            "summary": {
                "increasingCount": len(increasing),
                "decreasingCount": len(decreasing),
                "averageIncrease": sum(increasing) / len(increasing) if increasing else 0,
                "averageDecrease": abs(sum(decreasing) / len(decreasing)) if decreasing else 0,
            },
        }
