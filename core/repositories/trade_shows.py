"""DuckDBStore trade show performance and lead attribution methods."""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from core.duckdb_constants import MART
from core.filters import get_date_range
from core.formatting import iso_date, to_fixed, to_int


class TradeShowsMixin:

    async def get_trade_show_metrics(
        self,
        period: Optional[str] = None,
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        """Lead and attributed revenue totals for shows held in the window."""
        start, end = get_date_range(period or "1y", False, today).as_tuple()

        shows, leads, match_rate, rev_30, rev_90, rev_365 = await self._fetch_one(f"""
            SELECT
                COUNT(DISTINCT show_name),
                SUM(total_leads_collected),
                AVG(match_rate_pct),
                SUM(total_revenue_30d),
                SUM(total_revenue_90d),
                SUM(total_revenue_365d)
            FROM {MART}.fct_trade_show_performance
            WHERE show_date BETWEEN ? AND ?
        """, [start, end])

        top = await self._fetch_one(f"""
            SELECT show_name, total_revenue_365d
            FROM {MART}.fct_trade_show_performance
            WHERE show_date BETWEEN ? AND ?
            ORDER BY total_revenue_365d DESC NULLS LAST
            LIMIT 1
        """, [start, end])

        return {
            "totalShows": to_int(shows),
            "totalLeads": to_int(leads),
            "avgMatchRate": to_fixed(match_rate, 1),
            "totalAttributedRevenue30d": to_fixed(rev_30, 2),
            "totalAttributedRevenue90d": to_fixed(rev_90, 2),
            "totalAttributedRevenue365d": to_fixed(rev_365, 2),
            "topShowByRevenue": top[0] if top else "N/A",
            "topShowRevenue": to_fixed(top[1] if top else 0, 2),
        }

    async def get_trade_show_summaries(
        self,
        period: Optional[str] = None,
        today: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        start, end = get_date_range(period or "1y", False, today).as_tuple()
        rows = await self._fetch_dicts(f"""
            SELECT *
            FROM {MART}.fct_trade_show_performance
            WHERE show_date BETWEEN ? AND ?
            ORDER BY show_date DESC, show_name
        """, [start, end])

        return [
            {
                "showName": r["show_name"],
                "showDate": iso_date(r["show_date"]),
                "location": r["show_location"],
                "totalLeads": to_int(r["total_leads_collected"]),
                "leadsMatched": to_int(r["leads_matched_to_companies"]),
                "matchRate": to_fixed(r["match_rate_pct"], 1),
                "matchedExistingCustomers": to_int(r["leads_matched_to_companies"]),
                "attributedRevenue30d": to_fixed(r["total_revenue_30d"], 2),
                "attributedRevenue90d": to_fixed(r["total_revenue_90d"], 2),
                "attributedRevenue365d": to_fixed(r["total_revenue_365d"], 2),
                "attributedRevenueAllTime": to_fixed(r["total_revenue_all_time"], 2),
                # The performance table carries no 30 day conversion rate
                "conversionRate30d": "0.0",
                "conversionRate90d": to_fixed(r["conversion_rate_90d_pct"], 1),
                "conversionRate365d": to_fixed(r["conversion_rate_365d_pct"], 1),
                "conversionRateAllTime": to_fixed(r["conversion_rate_all_time_pct"], 1),
            }
            for r in rows
        ]

    async def get_trade_show_leads(
        self,
        period: Optional[str] = None,
        limit: int = 100,
        today: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        """
        Leads collected at shows in the window, newest show first.

        Revenue fields are the company revenue that followed the show within
        each attribution window; ``hasConverted*`` flags whether any did.
        """
        start, end = get_date_range(period or "1y", False, today).as_tuple()
        rows = await self._fetch_dicts(f"""
            SELECT *
            FROM {MART}.fct_trade_show_leads
            WHERE show_date BETWEEN ? AND ?
            ORDER BY show_date DESC, lead_id
            LIMIT ?
        """, [start, end, limit])

        return [
            {
                "leadId": r["lead_id"],
                "showName": r["show_name"],
                "collectedAt": iso_date(r["show_date"]),
                "leadName": r["full_name"],
                "leadEmail": r["email"],
                "leadCompany": r["lead_company_name"] or "",
                "companyDomain": r["company_domain_key"],
                "matchStatus": r["company_match_status"],
                "matchedCustomerId": None,
                "matchedCustomerName": r["consolidated_company_name"],
                "isExistingCustomer": r["company_match_status"] == "matched_existing_customer",
                "leadEmailIsCustomer": bool(r["lead_email_is_customer"]),
                "distinctPurchasersCount": to_int(r["distinct_purchasers_count"]),
                "lifetimeRevenue": to_fixed(r["company_lifetime_revenue"], 2),
                "attributedRevenue30d": to_fixed(r["revenue_30d"], 2),
                "attributedRevenue90d": to_fixed(r["revenue_90d"], 2),
                "attributedRevenue365d": to_fixed(r["revenue_365d"], 2),
                "attributedRevenueAllTime": to_fixed(r["revenue_all_time"], 2),
                "hasConverted30d": bool(r["attributed_30d"]),
                "hasConverted90d": bool(r["attributed_90d"]),
                "hasConverted365d": bool(r["attributed_365d"]),
                "hasConvertedAllTime": bool(r["attributed_all_time"]),
            }
            for r in rows
        ]
