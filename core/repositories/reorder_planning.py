"""
DuckDBStore reorder planning methods.

All queries read the inventory forecast and only consider SKUs that sold
recently; dormant SKUs never need a purchase order.
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from core.duckdb_constants import MART, REORDER_STATUSES, placeholders
from core.formatting import iso_date, to_fixed, to_int, to_number

_FORECAST = f"{MART}.fct_inventory_forecast"


def _reorder_item(r: Dict[str, Any]) -> Dict[str, Any]:
    qty_90 = to_number(r["reorder_qty_for_90d_target"])
    qty_180 = to_number(r["reorder_qty_for_180d_target"])
    cost = to_number(r["purchase_cost"])
    return {
        "sku": r["sku"] or "",
        "salesDescription": r["sales_description"] or "",
        "productFamily": r["product_family"] or "Uncategorized",
        "materialType": r["material_type"] or "Uncategorized",
        "quantityOnHand": to_fixed(r["quantity_on_hand"], 0),
        "availableQty": to_fixed(r["available_qty"], 0),
        "projectedQty": to_fixed(r["projected_qty"], 0),
        "forecastDailyQty": to_fixed(r["forecast_daily_qty"], 1),
        "forecastMonthlyQty": to_fixed(r["forecast_monthly_qty"], 0),
        "daysRemainingAvailable": to_fixed(r["days_remaining_available"], 1),
        "estimatedStockoutDate": iso_date(r["estimated_stockout_date"]),
        "reorderQtyFor90DTarget": to_fixed(qty_90, 0),
        "reorderQtyFor180DTarget": to_fixed(qty_180, 0),
        "reorderValueFor90DTarget": to_fixed(qty_90 * cost, 2),
        "reorderValueFor180DTarget": to_fixed(qty_180 * cost, 2),
        "inventoryStatus": r["inventory_status"] or "UNKNOWN",
        "demandTrend": r["demand_trend"] or "Stable",
        "reorderPriorityRank": to_int(r["reorder_priority_rank"]),
        "purchaseCost": to_fixed(cost, 2),
        "salesPrice": to_fixed(r["sales_price"], 2),
        "inventoryValueAtCost": to_fixed(r["inventory_value_at_cost"], 2),
        "unitsPerSku": to_int(r["units_per_sku"]) or 1,
        "packagingType": r["packaging_type"] or "individual",
    }


class ReorderPlanningMixin:

    async def get_reorder_metrics(self) -> Dict[str, Any]:
        """
        Reorder units, values and urgency summed over inventory statuses.

        ``avgDaysUntilStockout`` averages CRITICAL and LOW SKUs weighted by
        their counts, so one status with many SKUs dominates.
        """
        rows = await self._fetch_all(f"""
            SELECT
                inventory_status,
                COUNT(*),
                SUM(reorder_qty_for_90d_target),
                SUM(reorder_qty_for_180d_target),
                SUM(reorder_qty_for_90d_target * purchase_cost),
                SUM(reorder_qty_for_180d_target * purchase_cost),
                AVG(days_remaining_available)
            FROM {_FORECAST}
            WHERE has_recent_sales
            GROUP BY inventory_status
        """)

        by_status = {row[0]: row for row in rows}
        units_90 = sum(to_number(row[2]) for row in rows)
        units_180 = sum(to_number(row[3]) for row in rows)
        value_90 = sum(to_number(row[4]) for row in rows)
        value_180 = sum(to_number(row[5]) for row in rows)

        critical = by_status.get("CRITICAL")
        low = by_status.get("LOW")
        critical_count = critical[1] if critical else 0
        low_count = low[1] if low else 0
        needs_reorder = critical_count + low_count

        if critical and low:
            weighted = to_number(critical[6]) * critical_count + to_number(low[6]) * low_count
            avg_days = to_fixed(weighted / needs_reorder, 1)
        elif critical or low:
            avg_days = to_fixed((critical or low)[6], 1)
        else:
            avg_days = "0.0"

        def count_of(status: str) -> int:
            row = by_status.get(status)
            return row[1] if row else 0

        return {
            "totalSkusNeedingReorder": needs_reorder,
            "totalReorderUnits90d": to_fixed(units_90, 0),
            "totalReorderUnits180d": to_fixed(units_180, 0),
            "totalReorderValue90d": to_fixed(value_90, 2),
            "totalReorderValue180d": to_fixed(value_180, 2),
            "avgDaysUntilStockout": avg_days,
            "criticalCount": critical_count,
            "lowCount": low_count,
            "moderateCount": count_of("MODERATE"),
            "sufficientCount": count_of("SUFFICIENT"),
        }

    async def get_priority_breakdown(self) -> List[Dict[str, Any]]:
        rows = await self._fetch_all(f"""
            SELECT inventory_status, COUNT(*) AS cnt
            FROM {_FORECAST}
            WHERE has_recent_sales
            GROUP BY inventory_status
            ORDER BY cnt DESC, inventory_status
        """)
        total = sum(count for _, count in rows)

        return [
            {
                "status": status or "UNKNOWN",
                "count": count,
                "percentage": int(to_fixed(count / total * 100, 0)) if total > 0 else 0,
            }
            for status, count in rows
        ]

    async def get_stockout_timeline(
        self,
        today: Optional[date] = None,
        horizon_days: int = 90,
    ) -> List[Dict[str, Any]]:
        """SKUs expected to run out within the horizon, grouped per stockout date."""
        today = today or date.today()
        rows = await self._fetch_all(f"""
            SELECT estimated_stockout_date, sku, inventory_value_at_cost
            FROM {_FORECAST}
            WHERE has_recent_sales
              AND estimated_stockout_date IS NOT NULL
              AND estimated_stockout_date BETWEEN ? AND ?
            ORDER BY estimated_stockout_date, reorder_priority_rank, sku
        """, [today, today + timedelta(days=horizon_days)])

        grouped: Dict[str, Dict[str, Any]] = {}
        for stockout_date, sku, value in rows:
            key = iso_date(stockout_date)
            group = grouped.setdefault(key, {"skus": [], "total": 0.0})
            group["skus"].append(sku or "")
            group["total"] += to_number(value)

        return [
            {
                "stockoutDate": key,
                "skuCount": len(group["skus"]),
                "totalValue": to_fixed(group["total"], 2),
                "skus": group["skus"],
            }
            for key, group in grouped.items()
        ]

    async def get_reorder_planning_data(
        self,
        product_family: Optional[str] = None,
        inventory_status: Optional[str] = None,
        demand_trend: Optional[str] = None,
        only_needs_reorder: bool = False,
    ) -> List[Dict[str, Any]]:
        """Forecast rows ordered by reorder priority, most urgent first."""
        where_clauses = ["has_recent_sales"]
        params: list = []

        if product_family:
            where_clauses.append("product_family = ?")
            params.append(product_family)
        if inventory_status:
            where_clauses.append("inventory_status = ?")
            params.append(inventory_status)
        if demand_trend:
            where_clauses.append("demand_trend = ?")
            params.append(demand_trend)
        if only_needs_reorder:
            where_clauses.append(f"inventory_status IN ({placeholders(REORDER_STATUSES)})")
            params.extend(REORDER_STATUSES)

        rows = await self._fetch_dicts(f"""
            SELECT *
            FROM {_FORECAST}
            WHERE {" AND ".join(where_clauses)}
            ORDER BY reorder_priority_rank ASC NULLS LAST, sku
        """, params)

        return [_reorder_item(r) for r in rows]

    async def get_product_families_for_reorder(self) -> List[str]:
        rows = await self._fetch_all(f"""
            SELECT DISTINCT product_family
            FROM {_FORECAST}
            WHERE has_recent_sales
              AND product_family IS NOT NULL
              AND product_family <> 'Uncategorized'
            ORDER BY product_family
        """)
        return [row[0] for row in rows]
