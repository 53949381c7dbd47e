"""DuckDBStore customer contact methods."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from core.duckdb_constants import MART
from core.formatting import to_number
from core.pagination import PageRequest, build_order_clause

CONTACT_SORT_COLUMNS = {
    "fullName": "full_name",
    "companyName": "company_name",
    "primaryEmail": "primary_email",
    "companyTotalRevenue": "company_total_revenue",
}

# API filter name -> (column, is boolean)
CONTACT_FILTERS = {
    "contactRole": ("contact_role", False),
    "businessSize": ("business_size_category", False),
    "revenueCategory": ("revenue_category", False),
    "contactTier": ("contact_tier", False),
    "emailMarketable": ("email_marketable", True),
    "keyAccountContact": ("key_account_contact", True),
}


def _contact_row(r: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "contactDimKey": r["contact_dim_key"],
        "companyDomainKey": r["company_domain_key"],
        "fullName": r["full_name"],
        "firstName": r["first_name"],
        "lastName": r["last_name"],
        "jobTitle": r["job_title"],
        "primaryEmail": r["primary_email"],
        "primaryPhone": r["primary_phone"],
        "companyName": r["company_name"],
        "contactRole": r["contact_role"],
        "isPrimaryCompanyContact": r["is_primary_company_contact"],
        "businessSizeCategory": r["business_size_category"],
        "revenueCategory": r["revenue_category"],
        "contactDataQuality": r["contact_data_quality"],
        "contactTier": r["contact_tier"],
        "emailMarketable": r["email_marketable"],
        "keyAccountContact": r["key_account_contact"],
        "companyTotalRevenue": (
            to_number(r["company_total_revenue"]) if r["company_total_revenue"] is not None else None
        ),
        "companyTotalOrders": (
            str(r["company_total_orders"]) if r["company_total_orders"] is not None else None
        ),
    }


class ContactsMixin:

    async def get_contacts(
        self,
        page: int = 1,
        page_size: int = 50,
        search: Optional[str] = "",
        sort_by: str = "companyTotalRevenue",
        sort_order: str = "desc",
        filters: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        One page of contacts with the total count of matching contacts.

        Args:
            filters: Keys of CONTACT_FILTERS; boolean filters apply when
                not None, text filters when non-empty
        """
        request = PageRequest(page, page_size)
        where_clauses: List[str] = []
        params: list = []

        if search:
            where_clauses.append("(full_name ILIKE ? OR primary_email ILIKE ? OR company_name ILIKE ?)")
            params.extend([f"%{search}%"] * 3)

        for key, (column, is_bool) in CONTACT_FILTERS.items():
            value = (filters or {}).get(key)
            if value is None or (not is_bool and value == ""):
                continue
            where_clauses.append(f"{column} = ?")
            params.append(bool(value) if is_bool else value)

        where_sql = f"WHERE {' AND '.join(where_clauses)}" if where_clauses else ""
        order_sql = build_order_clause(
            sort_by, sort_order, CONTACT_SORT_COLUMNS, "companyTotalRevenue",
            tiebreaker="contact_dim_key",
        )

        rows = await self._fetch_dicts(f"""
            SELECT *
            FROM {MART}.dim_customer_contacts
            {where_sql}
            {order_sql}
            LIMIT ? OFFSET ?
        """, params + [request.limit, request.offset])

        total = await self._count(f"""
            SELECT COUNT(*) FROM {MART}.dim_customer_contacts {where_sql}
        """, params)

        return {"contacts": [_contact_row(r) for r in rows], "totalCount": total}

    async def get_company_contacts(self, domain_key: str) -> List[Dict[str, Any]]:
        rows = await self._fetch_dicts(f"""
            SELECT *
            FROM {MART}.dim_customer_contacts
            WHERE LOWER(company_domain_key) = LOWER(?)
            ORDER BY is_primary_company_contact DESC NULLS LAST, full_name
        """, [domain_key])
        return [_contact_row(r) for r in rows]
