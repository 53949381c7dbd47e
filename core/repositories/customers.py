"""
DuckDBStore people methods.

People are customers of the transactional tables grouped by the sales
channel of their orders, their customer type or their company class.
These lists feed mailing-list exports.
"""
from __future__ import annotations

from typing import Any, Dict, List

from core.exceptions import ValidationError
from core.formatting import iso_date, to_fixed, to_int

_PEOPLE_CTE = """
    WITH people AS (
        SELECT
            c.id, c.first_name, c.last_name, c.customer_name, c.customer_type,
            c.company_domain,
            COALESCE(pe.email_address, c.email) AS email
        FROM customers c
        LEFT JOIN (
            SELECT customer_id, MIN(email_address) AS email_address
            FROM customer_emails
            WHERE is_primary_email
            GROUP BY customer_id
        ) pe ON pe.customer_id = c.id
    )
"""

# People filter kind -> (join, condition)
PEOPLE_FILTERS = {
    "channel": ("", "o.class = ?"),
    "customer-type": ("", "c.customer_type = ?"),
    "company-class": ("JOIN companies comp ON comp.domain = c.company_domain", "comp.class = ?"),
}


class CustomersMixin:

    async def get_people_overview(self) -> Dict[str, Any]:
        """Channels and customer types with how many people each reaches."""
        channels = await self._fetch_all("""
            SELECT
                o.class,
                COUNT(DISTINCT o.customer_id) AS customers,
                COUNT(*) AS orders
            FROM orders o
            WHERE o.class IS NOT NULL AND o.class <> ''
            GROUP BY o.class
            ORDER BY customers DESC, o.class
        """)

        types = await self._fetch_all(f"""
            {_PEOPLE_CTE}
            SELECT
                c.customer_type,
                COUNT(DISTINCT c.id) AS customers,
                COUNT(DISTINCT c.email) AS emails
            FROM people c
            WHERE c.customer_type IS NOT NULL AND c.customer_type <> ''
            GROUP BY c.customer_type
            ORDER BY customers DESC, c.customer_type
        """)

        return {
            "channels": [
                {"channel": name, "customerCount": to_int(customers), "orderCount": to_int(orders)}
                for name, customers, orders in channels
            ],
            "customerTypes": [
                {"customerType": name, "customerCount": to_int(customers), "emailCount": to_int(emails)}
                for name, customers, emails in types
            ],
        }

    async def _get_people(self, kind: str, value: str) -> Dict[str, Any]:
        join_sql, condition = PEOPLE_FILTERS[kind]

        rows = await self._fetch_dicts(f"""
            {_PEOPLE_CTE}
            SELECT
                c.first_name,
                c.last_name,
                c.email,
                c.customer_name,
                c.customer_type,
                COUNT(o.id) AS order_count,
                SUM(o.total_amount) AS total_spent,
                MAX(o.order_date) AS last_order_date
            FROM people c
            JOIN orders o ON o.customer_id = c.id
            {join_sql}
            WHERE {condition}
            GROUP BY c.id, c.first_name, c.last_name, c.email, c.customer_name, c.customer_type
            ORDER BY total_spent DESC NULLS LAST, c.customer_name
        """, [value])

        summary = await self._fetch_one(f"""
            SELECT
                COUNT(DISTINCT c.id),
                COUNT(o.id),
                COALESCE(SUM(o.total_amount), 0),
                AVG(o.total_amount)
            FROM orders o
            JOIN customers c ON o.customer_id = c.id
            {join_sql}
            WHERE {condition}
        """, [value])

        people: List[Dict[str, Any]] = [
            {
                "firstName": r["first_name"],
                "lastName": r["last_name"],
                "email": r["email"],
                "customerName": r["customer_name"],
                "customerType": r["customer_type"],
                "orderCount": to_int(r["order_count"]),
                "totalSpent": to_fixed(r["total_spent"], 2),
                "lastOrderDate": iso_date(r["last_order_date"]),
            }
            for r in rows
        ]

        return {
            "people": people,
            "summary": {
                "totalPeople": to_int(summary[0]),
                "totalOrders": to_int(summary[1]),
                "totalRevenue": to_fixed(summary[2], 2),
                "avgOrderValue": to_fixed(summary[3], 2),
            },
        }

    async def get_people_by_channel(self, channel: str) -> Dict[str, Any]:
        return await self._get_people("channel", channel)

    async def get_people_by_customer_type(self, customer_type: str) -> Dict[str, Any]:
        return await self._get_people("customer-type", customer_type)

    async def get_people_by_company_class(self, company_class: str) -> Dict[str, Any]:
        return await self._get_people("company-class", company_class)

    async def get_people(self, kind: str, value: str) -> Dict[str, Any]:
        """Dispatch on a people filter kind: ``channel``, ``customer-type`` or ``company-class``."""
        if kind not in PEOPLE_FILTERS:
            raise ValidationError("kind", f"must be one of {sorted(PEOPLE_FILTERS)}", kind)
        return await self._get_people(kind, value)
