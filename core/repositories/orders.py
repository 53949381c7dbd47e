"""DuckDBStore order list and order detail methods."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from core.duckdb_constants import MART
from core.formatting import iso_date, to_fixed, to_fixed_or_none
from core.pagination import PageRequest, build_order_clause

ORDER_SORT_COLUMNS = {
    "orderDate": "o.order_date",
    "totalAmount": "o.total_amount",
    "customer": "o.customer",
    "orderNumber": "o.order_number",
}

# column suffix -> payload suffix
_ADDRESS_PARTS = {
    "": "",
    "_city": "City",
    "_state": "State",
    "_postal_code": "PostalCode",
    "_country": "Country",
}


def _address_fields(row: Dict[str, Any], prefix: str) -> Dict[str, Any]:
    return {
        f"{prefix}Address{suffix}": row.get(f"{prefix}_address{column}")
        for column, suffix in _ADDRESS_PARTS.items()
    }


class OrdersMixin:

    async def get_order_by_number(self, order_number: str) -> Optional[Dict[str, Any]]:
        """Full order detail joined to its company, or None when the order is unknown."""
        row = await self._fetch_dict(f"""
            SELECT o.*, b.company_domain_key, b.is_individual_customer
            FROM {MART}.fct_orders o
            LEFT JOIN {MART}.bridge_customer_company b ON o.customer = b.customer_name
            WHERE o.order_number = ?
            LIMIT 1
        """, [order_number])

        if row is None:
            return None

        return {
            "orderNumber": row["order_number"] or "N/A",
            "customer": row["customer"] or "Unknown",
            "orderDate": iso_date(row["order_date"]),
            "dueDate": iso_date(row["due_date"]),
            "shipDate": iso_date(row["ship_date"]),
            "totalAmount": to_fixed(row["total_amount"], 2),
            "totalLineItemsAmount": to_fixed_or_none(row["total_line_items_amount"], 2),
            "totalTax": to_fixed_or_none(row["total_tax"], 2),
            "effectiveTaxRate": to_fixed_or_none(row["effective_tax_rate"], 4),
            "status": row["status"] or "Unknown",
            "isPaid": bool(row["is_paid"]),
            "paymentMethod": row["payment_method"],
            "shippingMethod": row["shipping_method"],
            "salesRep": row["sales_rep"],
            "currency": row["currency"],
            **_address_fields(row, "billing"),
            **_address_fields(row, "shipping"),
            "companyDomain": row["company_domain_key"],
            "isIndividualCustomer": bool(row["is_individual_customer"]),
        }

    async def get_order_line_items(self, order_number: str) -> List[Dict[str, Any]]:
        rows = await self._fetch_dicts(f"""
            SELECT *
            FROM {MART}.fct_order_line_items
            WHERE order_number = ?
            ORDER BY line_item_id
        """, [order_number])

        return [
            {
                "lineItemId": r["line_item_id"] or "N/A",
                "productService": r["product_service"] or "Unknown",
                "productServiceDescription": r["product_service_description"] or "",
                "quantity": to_fixed(r["product_service_quantity"], 2),
                "rate": to_fixed(r["product_service_rate"], 2),
                "amount": to_fixed(r["product_service_amount"], 2),
                "unitOfMeasure": r["unit_of_measure"],
                "productFamily": r["product_family"],
                "materialType": r["material_type"],
                "marginPercentage": to_fixed_or_none(r["margin_percentage"] or None, 1),
                "marginAmount": to_fixed_or_none(r["margin_amount"] or None, 2),
            }
            for r in rows
        ]

    async def get_all_orders(
        self,
        page: int = 1,
        limit: int = 25,
        search: Optional[str] = "",
        sort_by: str = "orderDate",
        sort_order: str = "desc",
    ) -> Dict[str, Any]:
        """
        One page of orders with the total count of matching orders.

        Search matches order number or customer, case-insensitively.
        Unknown sort keys order by newest first regardless of ``sort_order``.
        """
        request = PageRequest(page, limit)
        where_clauses = ["o.total_amount IS NOT NULL"]
        params: list = []

        if search:
            where_clauses.append("(o.order_number ILIKE ? OR o.customer ILIKE ?)")
            params.extend([f"%{search}%", f"%{search}%"])

        where_sql = " AND ".join(where_clauses)

        if sort_by not in ORDER_SORT_COLUMNS:
            sort_by, sort_order = "orderDate", "desc"
        order_sql = build_order_clause(
            sort_by, sort_order, ORDER_SORT_COLUMNS, "orderDate", tiebreaker="o.order_number",
        )

        rows = await self._fetch_dicts(f"""
            SELECT
                o.order_number, o.customer, o.order_date, o.total_amount,
                o.status, o.is_paid, o.due_date, o.ship_date,
                b.company_domain_key, b.is_individual_customer
            FROM {MART}.fct_orders o
            LEFT JOIN {MART}.bridge_customer_company b ON o.customer = b.customer_name
            WHERE {where_sql}
            {order_sql}
            LIMIT ? OFFSET ?
        """, params + [request.limit, request.offset])

        total = await self._count(f"""
            SELECT COUNT(*) FROM {MART}.fct_orders o WHERE {where_sql}
        """, params)

        return {
            "orders": [
                {
                    "orderNumber": r["order_number"] or "N/A",
                    "customer": r["customer"] or "Unknown",
                    "orderDate": iso_date(r["order_date"]),
                    "totalAmount": to_fixed(r["total_amount"], 2),
                    "status": r["status"] or "Unknown",
                    "isPaid": bool(r["is_paid"]),
                    "dueDate": iso_date(r["due_date"]),
                    "shipDate": iso_date(r["ship_date"]),
                    "companyDomain": r["company_domain_key"],
                    "isIndividualCustomer": bool(r["is_individual_customer"]),
                }
                for r in rows
            ],
            "totalCount": total,
        }
