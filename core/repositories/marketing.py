"""
DuckDBStore marketing attribution methods.

An order counts as attributed when its acquisition channel is known.
Every method reads ``fct_order_attribution`` over the trailing window of
``period`` (one year when no period is given).
"""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from core.duckdb_constants import MART, placeholders
from core.filters import get_date_range
from core.formatting import iso_date, to_fixed, to_int, to_number

_ATTRIBUTION = f"{MART}.fct_order_attribution"
_HAS_CHANNEL = "acquisition_channel IS NOT NULL AND acquisition_channel <> ''"


def _window(period: Optional[str], today: Optional[date]) -> Tuple[date, date]:
    return get_date_range(period or "1y", False, today).as_tuple()


class MarketingMixin:

    async def get_attribution_metrics(
        self,
        period: Optional[str] = None,
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        """Attributed revenue totals, the top channel and the attributed share of customers."""
        start, end = _window(period, today)
        base_where = f"order_date BETWEEN ? AND ? AND revenue IS NOT NULL AND {_HAS_CHANNEL}"

        revenue, orders, customers, channel_count = await self._fetch_one(f"""
            SELECT
                COALESCE(SUM(revenue), 0),
                COUNT(DISTINCT order_id),
                COUNT(DISTINCT customer_id),
                COUNT(DISTINCT acquisition_channel)
            FROM {_ATTRIBUTION}
            WHERE {base_where}
        """, [start, end])

        top = await self._fetch_one(f"""
            SELECT acquisition_channel, SUM(revenue) AS channel_revenue
            FROM {_ATTRIBUTION}
            WHERE {base_where}
            GROUP BY acquisition_channel
            ORDER BY channel_revenue DESC
            LIMIT 1
        """, [start, end])

        all_customers = await self._count(f"""
            SELECT COUNT(DISTINCT customer)
            FROM {MART}.fct_orders
            WHERE order_date BETWEEN ? AND ?
              AND total_amount IS NOT NULL
        """, [start, end])

        total_revenue = to_number(revenue)
        return {
            "totalAttributedRevenue": to_fixed(total_revenue, 2),
            "totalAttributedOrders": to_int(orders),
            "totalAttributedCustomers": to_int(customers),
            "topChannel": top[0] if top else "Unknown",
            "topChannelRevenue": to_fixed(top[1] if top else 0, 2),
            "avgRevenuePerChannel": to_fixed(total_revenue / (channel_count or 1), 2),
            "attributedCustomerPercentage": to_fixed(to_int(customers) / (all_customers or 1) * 100, 1),
        }

    async def get_channel_revenue(
        self,
        period: Optional[str] = None,
        today: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        start, end = _window(period, today)
        rows = await self._fetch_all(f"""
            SELECT
                acquisition_channel,
                SUM(revenue) AS total_revenue,
                COUNT(DISTINCT order_id),
                COUNT(DISTINCT customer_id),
                AVG(revenue)
            FROM {_ATTRIBUTION}
            WHERE order_date BETWEEN ? AND ?
              AND revenue IS NOT NULL
              AND {_HAS_CHANNEL}
            GROUP BY acquisition_channel
            ORDER BY total_revenue DESC
        """, [start, end])

        total = sum(to_number(row[1]) for row in rows)
        return [
            {
                "acquisitionChannel": channel,
                "totalRevenue": to_fixed(revenue, 2),
                "orderCount": to_int(orders),
                "customerCount": to_int(customers),
                "avgOrderValue": to_fixed(aov, 2),
                "revenuePercentage": to_number(revenue) / total * 100 if total > 0 else 0,
            }
            for channel, revenue, orders, customers, aov in rows
        ]

    async def get_campaign_performance(
        self,
        period: Optional[str] = None,
        today: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        """Top 50 UTM source/medium/campaign combinations by revenue."""
        start, end = _window(period, today)
        rows = await self._fetch_all(f"""
            SELECT
                utm_source,
                utm_medium,
                utm_campaign,
                SUM(revenue) AS total_revenue,
                COUNT(DISTINCT order_id),
                COUNT(DISTINCT customer_id),
                AVG(revenue),
                COUNT(DISTINCT CASE WHEN buyer_accepts_marketing THEN customer_id END)
            FROM {_ATTRIBUTION}
            WHERE order_date BETWEEN ? AND ?
              AND revenue IS NOT NULL
              AND (utm_source IS NOT NULL OR utm_medium IS NOT NULL OR utm_campaign IS NOT NULL)
            GROUP BY utm_source, utm_medium, utm_campaign
            ORDER BY total_revenue DESC
            LIMIT 50
        """, [start, end])

        return [
            {
                "utmSource": source,
                "utmMedium": medium,
                "utmCampaign": campaign,
                "totalRevenue": to_fixed(revenue, 2),
                "orderCount": to_int(orders),
                "customerCount": to_int(customers),
                "avgOrderValue": to_fixed(aov, 2),
                "marketingOptIns": to_int(opt_ins),
                "optInRate": to_fixed(opt_ins / customers * 100, 1) if customers else "0.0",
            }
            for source, medium, campaign, revenue, orders, customers, aov, opt_ins in rows
        ]

    async def get_monthly_channel_revenue(
        self,
        period: Optional[str] = None,
        today: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        """
        Monthly revenue of the five biggest channels.

        Returns:
            ``[{"month": "2025-01-01", "channels": {"Organic": 1200.0, ...}}]``
            in month order; a channel without revenue in a month is absent
            from that month's mapping
        """
        start, end = _window(period, today)
        top_rows = await self._fetch_all(f"""
            SELECT acquisition_channel
            FROM {_ATTRIBUTION}
            WHERE order_date BETWEEN ? AND ?
              AND revenue IS NOT NULL
              AND {_HAS_CHANNEL}
            GROUP BY acquisition_channel
            ORDER BY SUM(revenue) DESC
            LIMIT 5
        """, [start, end])
        top_channels = [row[0] for row in top_rows]

        if not top_channels:
            return []

        rows = await self._fetch_all(f"""
            SELECT
                CAST(DATE_TRUNC('month', order_date) AS DATE) AS month,
                acquisition_channel,
                SUM(revenue)
            FROM {_ATTRIBUTION}
            WHERE order_date BETWEEN ? AND ?
              AND revenue IS NOT NULL
              AND acquisition_channel IN ({placeholders(top_channels)})
            GROUP BY month, acquisition_channel
            ORDER BY month
        """, [start, end, *top_channels])

        months: Dict[str, Dict[str, float]] = {}
        for month, channel, revenue in rows:
            months.setdefault(iso_date(month), {})[channel] = to_number(revenue)

        return [{"month": month, "channels": channels} for month, channels in months.items()]

    async def _top_sites(self, column: str, period, limit: int, today) -> List[tuple]:
        start, end = _window(period, today)
        return await self._fetch_all(f"""
            SELECT {column}, SUM(revenue) AS total_revenue, COUNT(DISTINCT order_id), AVG(revenue)
            FROM {_ATTRIBUTION}
            WHERE order_date BETWEEN ? AND ?
              AND revenue IS NOT NULL
              AND {column} IS NOT NULL
              AND {column} <> ''
            GROUP BY {column}
            ORDER BY total_revenue DESC
            LIMIT ?
        """, [start, end, limit])

    async def get_top_referring_sites(
        self,
        period: Optional[str] = None,
        limit: int = 10,
        today: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        rows = await self._top_sites("referring_site", period, limit, today)
        return [
            {
                "referringSite": site,
                "totalRevenue": to_fixed(revenue, 2),
                "orderCount": to_int(orders),
                "avgOrderValue": to_fixed(aov, 2),
            }
            for site, revenue, orders, aov in rows
        ]

    async def get_top_landing_pages(
        self,
        period: Optional[str] = None,
        limit: int = 10,
        today: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        rows = await self._top_sites("landing_site", period, limit, today)
        return [
            {
                "landingSite": site,
                "totalRevenue": to_fixed(revenue, 2),
                "orderCount": to_int(orders),
                "avgOrderValue": to_fixed(aov, 2),
                # Session data is not loaded, so no conversion rate can be computed
                "conversionRate": "0.0",
            }
            for site, revenue, orders, aov in rows
        ]
