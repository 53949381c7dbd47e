"""DuckDBStore inventory snapshot methods for product detail pages."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from core.duckdb_constants import MART
from core.formatting import iso_date, to_fixed


class InventoryMixin:

    async def get_product_inventory_status(self, item_name: str) -> Optional[Dict[str, Any]]:
        """Latest inventory snapshot for a product, or None if it was never counted."""
        r = await self._fetch_dict(f"""
            SELECT *
            FROM {MART}.fct_inventory_history
            WHERE item_name = ?
            ORDER BY inventory_date DESC
            LIMIT 1
        """, [item_name])

        if r is None:
            return None

        return {
            "itemName": r["item_name"] or "Unknown",
            "inventoryDate": iso_date(r["inventory_date"]),
            "quantityOnHand": to_fixed(r["quantity_on_hand"], 0),
            "quantityOnOrder": to_fixed(r["quantity_on_order"], 0),
            "quantityOnSalesOrder": to_fixed(r["quantity_on_sales_order"], 0),
            "availableQuantity": to_fixed(r["available_quantity"], 0),
            "totalInventoryVisibility": to_fixed(r["total_inventory_visibility"], 0),
            "quantityChange": to_fixed(r["quantity_change"], 0),
            "previousQuantityOnHand": to_fixed(r["previous_quantity_on_hand"], 0),
            "inventoryValueAtCost": to_fixed(r["inventory_value_at_cost"], 2),
            "inventoryValueAtSalesPrice": to_fixed(r["inventory_value_at_sales_price"], 2),
            "itemStatus": r["item_status"] or "Unknown",
            "isBackup": bool(r["is_backup"]),
        }

    async def get_product_inventory_trend(self, item_name: str) -> List[Dict[str, Any]]:
        rows = await self._fetch_all(f"""
            SELECT inventory_date, quantity_on_hand, quantity_change, inventory_value_at_cost
            FROM {MART}.fct_inventory_history
            WHERE item_name = ?
            ORDER BY inventory_date
        """, [item_name])

        return [
            {
                "date": iso_date(inventory_date),
                "quantityOnHand": to_fixed(on_hand, 0),
                "quantityChange": to_fixed(change, 0),
                "inventoryValueAtCost": to_fixed(value, 2),
            }
            for inventory_date, on_hand, change, value in rows
        ]
