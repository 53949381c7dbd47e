"""DuckDBStore dashboard KPI, trend and cash flow methods."""
from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from core.duckdb_constants import MART, AGING_BUCKET_ORDER, PROBLEM_RISK_LEVELS, placeholders
from core.config import config
from core.filters import get_date_range, granularity_for_period, trailing_years
from core.formatting import growth_pct, iso_date, to_fixed, to_int, to_number


class DashboardMixin:

    async def get_dashboard_metrics(
        self,
        period: str = "30d",
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        """Revenue, order and paid-sales KPIs with growth against the comparison window.

        ``all`` has no comparison window of its own, so it is compared with
        the window before the trailing year.
        """
        current = get_date_range(period, True, today)
        previous = current if current.has_comparison else get_date_range("1y", True, today)
        year = get_date_range("1y", True, today)

        row = await self._fetch_one(f"""
            SELECT
                COALESCE(SUM(total_amount) FILTER (WHERE order_date BETWEEN ? AND ?), 0),
                COUNT(*) FILTER (WHERE order_date BETWEEN ? AND ?),
                AVG(total_amount) FILTER (WHERE order_date BETWEEN ? AND ?),
                COALESCE(SUM(total_amount) FILTER (WHERE order_date BETWEEN ? AND ?), 0),
                COUNT(*) FILTER (WHERE order_date BETWEEN ? AND ?),
                COALESCE(SUM(total_amount) FILTER (WHERE is_paid AND order_date BETWEEN ? AND ?), 0),
                COALESCE(SUM(total_amount) FILTER (WHERE is_paid AND order_date BETWEEN ? AND ?), 0)
            FROM {MART}.fct_orders
            WHERE total_amount IS NOT NULL
        """, [
            current.start, current.end,
            current.start, current.end,
            current.start, current.end,
            previous.compare_start, previous.compare_end,
            previous.compare_start, previous.compare_end,
            year.start, year.end,
            year.compare_start, year.compare_end,
        ])

        revenue, orders, aov, prev_revenue, prev_orders, sales_365, prev_sales_365 = row

        return {
            "sales365Days": to_fixed(sales_365, 2),
            "totalRevenue": to_fixed(revenue, 2),
            "totalOrders": to_int(orders),
            "averageOrderValue": to_fixed(aov, 2),
            "previousPeriodRevenue": to_fixed(prev_revenue, 2),
            "previousPeriodOrders": to_int(prev_orders),
            "revenueGrowth": growth_pct(revenue, prev_revenue),
            "orderGrowth": growth_pct(orders, prev_orders),
            "sales365DaysGrowth": growth_pct(sales_365, prev_sales_365),
        }

    async def get_recent_orders(self, limit: int = 20) -> List[Dict[str, Any]]:
        rows = await self._fetch_dicts(f"""
            SELECT
                o.order_number, o.customer, o.order_date, o.total_amount,
                o.status, o.is_paid,
                b.company_domain_key, b.is_individual_customer
            FROM {MART}.fct_orders o
            LEFT JOIN {MART}.bridge_customer_company b ON o.customer = b.customer_name
            WHERE o.total_amount IS NOT NULL
            ORDER BY o.order_date DESC, o.order_number DESC
            LIMIT ?
        """, [limit])

        return [
            {
                "orderNumber": r["order_number"] or "N/A",
                "customer": r["customer"] or "Unknown",
                "orderDate": iso_date(r["order_date"]),
                "totalAmount": to_fixed(r["total_amount"], 2),
                "status": r["status"] or "Unknown",
                "isPaid": bool(r["is_paid"]),
                "companyDomain": r["company_domain_key"],
                "isIndividualCustomer": bool(r["is_individual_customer"]),
            }
            for r in rows
        ]

    async def get_channel_metrics(self, today: Optional[date] = None) -> List[Dict[str, Any]]:
        """Revenue per sales channel (order class) for the last four trailing years.

        Channels are ordered by revenue in the most recent year; every
        channel lists its periods newest first.
        """
        windows = trailing_years(4, today)
        excluded = config.reports.excluded_channel_classes
        values_sql = ", ".join("(?, CAST(? AS DATE), CAST(? AS DATE))" for _ in windows)
        params: list = []
        for i, (start, end) in enumerate(windows):
            params.extend([i, start, end])
        params.extend(excluded)

        rows = await self._fetch_all(f"""
            WITH periods(idx, period_start, period_end) AS (VALUES {values_sql})
            SELECT
                o.class,
                p.idx,
                p.period_start,
                p.period_end,
                SUM(o.total_amount),
                COUNT(*)
            FROM {MART}.fct_orders o
            JOIN periods p ON o.order_date BETWEEN p.period_start AND p.period_end
            WHERE o.total_amount IS NOT NULL
              AND o.class IS NOT NULL
              AND o.class <> ''
              AND o.class NOT IN ({placeholders(excluded)})
            GROUP BY o.class, p.idx, p.period_start, p.period_end
        """, params)

        channels: Dict[str, Dict[str, Any]] = {}
        latest_revenue: Dict[str, float] = {}
        for channel, idx, start, end, revenue, count in rows:
            entry = channels.setdefault(channel, {"sales_channel": channel, "periods": []})
            entry["periods"].append({
                "period_start": iso_date(start),
                "period_end": iso_date(end),
                "total_revenue": to_fixed(revenue, 2),
                "order_count": str(count),
            })
            if idx == 0:
                latest_revenue[channel] = to_number(revenue)

        for entry in channels.values():
            entry["periods"].sort(key=lambda p: p["period_end"], reverse=True)

        return sorted(
            channels.values(),
            key=lambda c: (-latest_revenue.get(c["sales_channel"], 0), c["sales_channel"]),
        )

    async def get_revenue_trend(
        self,
        period: str = "30d",
        today: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        """Revenue and order count per day, week, month or quarter depending on the period."""
        window = get_date_range(period, False, today)
        unit = granularity_for_period(period)

        rows = await self._fetch_all(f"""
            SELECT
                CAST(DATE_TRUNC('{unit}', order_date) AS DATE) AS bucket,
                SUM(total_amount),
                COUNT(*)
            FROM {MART}.fct_orders
            WHERE total_amount IS NOT NULL
              AND order_date BETWEEN ? AND ?
            GROUP BY bucket
            ORDER BY bucket
        """, [window.start, window.end])

        return [
            {"date": iso_date(bucket), "revenue": to_fixed(revenue, 2), "orderCount": to_int(count)}
            for bucket, revenue, count in rows
        ]

    async def get_order_status_breakdown(self, today: Optional[date] = None) -> List[Dict[str, Any]]:
        today = today or date.today()
        rows = await self._fetch_all(f"""
            SELECT COALESCE(status, 'Unknown') AS status, COUNT(*) AS cnt, SUM(total_amount)
            FROM {MART}.fct_orders
            WHERE total_amount IS NOT NULL
              AND order_date BETWEEN ? AND ?
            GROUP BY 1
            ORDER BY cnt DESC, status
        """, [today - timedelta(days=30), today])

        return [
            {"status": status, "count": to_int(count), "totalAmount": to_fixed(total, 2)}
            for status, count, total in rows
        ]

    # ─── Cash Flow ────────────────────────────────────────────────────────────

    async def get_current_dso(self) -> Dict[str, Any]:
        """Latest days-sales-outstanding snapshot (zeros when none is loaded)."""
        row = await self._fetch_dict(f"""
            SELECT *
            FROM {MART}.fct_dso_metrics
            ORDER BY snapshot_date DESC
            LIMIT 1
        """)
        row = row or {}
        return {
            "snapshotDate": iso_date(row.get("snapshot_date")),
            "dsoDays": to_fixed(row.get("dso_days"), 1),
            "dsoAssessment": row.get("dso_assessment") or "Unknown",
            "totalAccountsReceivable": to_fixed(row.get("total_accounts_receivable"), 2),
            "openInvoiceCount": to_int(row.get("open_invoice_count")),
            "collectionEfficiencyPct": to_fixed(row.get("collection_efficiency_pct"), 1),
            "dailyAvgSales": to_fixed(row.get("daily_avg_sales"), 2),
        }

    async def get_ar_aging_details(self) -> List[Dict[str, Any]]:
        bucket_order = " ".join(
            f"WHEN '{bucket}' THEN {i}" for i, bucket in enumerate(AGING_BUCKET_ORDER)
        )
        rows = await self._fetch_dicts(f"""
            SELECT *
            FROM {MART}.fct_ar_aging
            ORDER BY
                analysis_level,
                CASE aging_bucket {bucket_order} ELSE {len(AGING_BUCKET_ORDER)} END,
                days_outstanding DESC NULLS LAST
        """)

        return [
            {
                "analysisLevel": r["analysis_level"],
                "agingBucket": r["aging_bucket"],
                "customer": r["customer"],
                "orderNumber": r["order_number"],
                "totalArAmount": to_fixed(r["total_ar_amount"], 2),
                "openInvoiceCount": to_int(r["open_invoice_count"]),
                "avgDaysOutstanding": to_fixed(r["avg_days_outstanding"], 1),
                "daysOutstanding": to_int(r["days_outstanding"]),
                "collectionRisk": r["collection_risk"],
                "paymentPattern": r["payment_pattern"],
            }
            for r in rows
        ]

    async def get_problem_accounts(self, limit: int = 25) -> List[Dict[str, Any]]:
        """Open invoices flagged High or Critical risk, longest outstanding first."""
        rows = await self._fetch_dicts(f"""
            SELECT customer, order_number, total_ar_amount, days_outstanding,
                   collection_risk, payment_pattern
            FROM {MART}.fct_ar_aging
            WHERE analysis_level = 'Invoice Detail'
              AND collection_risk IN ({placeholders(PROBLEM_RISK_LEVELS)})
            ORDER BY days_outstanding DESC NULLS LAST, order_number
            LIMIT ?
        """, [*PROBLEM_RISK_LEVELS, limit])

        return [
            {
                "customer": r["customer"] or "Unknown",
                "orderNumber": r["order_number"],
                "totalAmount": to_fixed(r["total_ar_amount"], 2),
                "daysOutstanding": to_int(r["days_outstanding"]),
                "collectionRisk": r["collection_risk"],
                "paymentPattern": r["payment_pattern"] or "Unknown",
            }
            for r in rows
        ]
