"""DuckDBStore product catalog and product sales methods."""
from __future__ import annotations

import math
from datetime import date
from typing import Any, Dict, List, Optional

from core.duckdb_constants import MART
from core.filters import get_date_range, shift_years
from core.formatting import iso_date, to_fixed, to_int, to_number

# Catalog rows that are not sellable stock
EXCLUDED_ITEM_TYPES = ("NonInventory", "OtherCharge")

_PRODUCT_SALES_SQL = f"""
    SELECT
        p.quick_books_internal_id, p.item_name, p.sales_description,
        p.product_family, p.material_type, p.sales_price, p.purchase_cost,
        p.margin_percentage, p.margin_amount, p.is_kit, p.item_type,
        COALESCE(s.total_sales, 0) AS period_sales,
        COALESCE(s.total_units, 0) AS period_units,
        COALESCE(s.order_count, 0) AS period_orders
    FROM {MART}.fct_products p
    LEFT JOIN (
        SELECT
            product_service,
            SUM(product_service_amount) AS total_sales,
            SUM(product_service_quantity) AS total_units,
            COUNT(DISTINCT order_number) AS order_count
        FROM {MART}.fct_order_line_items
        WHERE order_date >= ?
          AND product_service_amount IS NOT NULL
          AND product_service IS NOT NULL
          AND product_service <> 'Shipping'
        GROUP BY product_service
    ) s ON p.item_name = s.product_service
"""


def _product_row(r: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "quickBooksInternalId": r["quick_books_internal_id"] or "N/A",
        "itemName": r["item_name"] or "Unknown",
        "salesDescription": r["sales_description"] or "",
        "productFamily": r["product_family"] or "Other",
        "materialType": r["material_type"] or "Unknown",
        "salesPrice": to_fixed(r["sales_price"], 2),
        "purchaseCost": to_fixed(r["purchase_cost"], 2),
        "marginPercentage": to_fixed(r["margin_percentage"], 1),
        "marginAmount": to_fixed(r["margin_amount"], 2),
        "isKit": bool(r["is_kit"]),
        "itemType": r["item_type"] or "Unknown",
        "periodSales": to_fixed(r["period_sales"], 2),
        "periodUnits": math.floor(to_number(r["period_units"])),
        "periodOrders": to_int(r["period_orders"]),
    }


class ProductsMixin:

    async def get_product_metrics(self) -> Dict[str, Any]:
        """Catalog-wide averages plus the stock value of the latest inventory snapshot."""
        row = await self._fetch_one(f"""
            SELECT
                COUNT(*),
                AVG(margin_percentage),
                COUNT(*) FILTER (WHERE is_kit),
                AVG(sales_price),
                AVG(purchase_cost)
            FROM {MART}.fct_products
            WHERE sales_price IS NOT NULL
              AND item_type NOT IN (?, ?)
        """, list(EXCLUDED_ITEM_TYPES))
        total, avg_margin, kits, avg_price, avg_cost = row

        inventory_value = await self._fetch_one(f"""
            SELECT COALESCE(SUM(inventory_value_at_sales_price), 0)
            FROM {MART}.fct_inventory_history
            WHERE inventory_date = (SELECT MAX(inventory_date) FROM {MART}.fct_inventory_history)
              AND inventory_value_at_sales_price IS NOT NULL
        """)

        return {
            "totalProducts": to_int(total),
            "averageMargin": to_fixed(avg_margin, 1),
            "totalInventoryValue": to_fixed(inventory_value[0], 2),
            "kitProducts": to_int(kits),
            "averageSalesPrice": to_fixed(avg_price, 2),
            "averagePurchaseCost": to_fixed(avg_cost, 2),
            # No margin history is loaded yet
            "marginGrowth": 0,
        }

    async def get_products(
        self,
        limit: int = 50,
        period: Optional[str] = "1y",
        today: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        """Sellable products with line-item sales since the start of ``period``, best sellers first."""
        window = get_date_range(period or "1y", False, today)
        rows = await self._fetch_dicts(f"""
            {_PRODUCT_SALES_SQL}
            WHERE p.sales_price IS NOT NULL
              AND p.item_type NOT IN (?, ?)
            ORDER BY period_sales DESC NULLS LAST, p.item_name
            LIMIT ?
        """, [window.start, *EXCLUDED_ITEM_TYPES, limit])
        return [_product_row(r) for r in rows]

    async def get_product_by_name(
        self,
        item_name: str,
        today: Optional[date] = None,
    ) -> Optional[Dict[str, Any]]:
        start = shift_years(today or date.today(), -1)
        row = await self._fetch_dict(f"""
            {_PRODUCT_SALES_SQL}
            WHERE p.item_name = ?
            LIMIT 1
        """, [start, item_name])
        return _product_row(row) if row else None

    async def get_product_monthly_revenue(self, item_name: str) -> List[Dict[str, Any]]:
        rows = await self._fetch_all(f"""
            SELECT
                CAST(DATE_TRUNC('month', order_date) AS DATE) AS month_start,
                SUM(product_service_amount),
                COUNT(DISTINCT order_number)
            FROM {MART}.fct_order_line_items
            WHERE product_service_amount IS NOT NULL
              AND product_service = ?
            GROUP BY month_start
            ORDER BY month_start
        """, [item_name])

        return [
            {"date": iso_date(month), "revenue": to_fixed(revenue, 2), "orderCount": to_int(orders)}
            for month, revenue, orders in rows
        ]
