"""DuckDBStore product family sales methods."""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from core.duckdb_constants import MART
from core.filters import get_date_range
from core.formatting import growth_pct, to_fixed, to_int, to_number


class FamiliesMixin:

    async def get_family_sales(
        self,
        period: Optional[str] = "1y",
        family: Optional[str] = None,
        today: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        """
        Sales, orders and units per product family against the comparison window.

        A family that only sold in one of the two windows still gets a row
        with zeros for the other.
        """
        window = get_date_range(period or "1y", True, today)
        compare = window if window.has_comparison else get_date_range("1y", True, today)

        family_sql = "AND product_family = ?" if family else ""
        family_params = [family] if family else []

        def period_cte(name: str) -> str:
            return f"""
                {name} AS (
                    SELECT
                        product_family,
                        COUNT(DISTINCT order_number) AS orders,
                        SUM(product_service_quantity) AS units,
                        SUM(product_service_amount) AS sales
                    FROM {MART}.fct_order_line_items
                    WHERE product_family IS NOT NULL
                      AND order_date BETWEEN ? AND ?
                      AND product_service_amount IS NOT NULL
                      {family_sql}
                    GROUP BY product_family
                )
            """

        rows = await self._fetch_all(f"""
            WITH {period_cte("cur")}, {period_cte("prev")}
            SELECT
                COALESCE(c.product_family, p.product_family) AS family,
                COALESCE(c.sales, 0), COALESCE(c.orders, 0), COALESCE(c.units, 0),
                COALESCE(p.sales, 0), COALESCE(p.orders, 0), COALESCE(p.units, 0)
            FROM cur c
            FULL OUTER JOIN prev p ON c.product_family = p.product_family
            ORDER BY COALESCE(c.sales, 0) DESC, family
        """, [
            window.start, window.end, *family_params,
            compare.compare_start, compare.compare_end, *family_params,
        ])

        results = []
        for name, sales, orders, units, prev_sales, prev_orders, prev_units in rows:
            results.append({
                "productFamily": name,
                "currentPeriodSales": to_fixed(sales, 2),
                "currentPeriodOrders": to_int(orders),
                "currentPeriodUnits": to_fixed(units, 0),
                "previousPeriodSales": to_fixed(prev_sales, 2),
                "previousPeriodOrders": to_int(prev_orders),
                "previousPeriodUnits": to_fixed(prev_units, 0),
                "salesGrowth": growth_pct(to_number(sales), to_number(prev_sales)),
                "orderGrowth": growth_pct(orders, prev_orders),
                "unitsGrowth": growth_pct(to_number(units), to_number(prev_units)),
            })
        return results
