"""
CSV rendering for dashboard exports.

Columns are declared as ``(header, key)`` pairs so an export mirrors the
rows of its JSON endpoint field for field.
"""
import csv
import io
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import orjson

from core.observability import timed

Column = Tuple[str, str]


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return orjson.dumps(value).decode()
    return value


@timed("csv_render")
def rows_to_csv(columns: Sequence[Column], rows: Iterable[Dict[str, Any]]) -> str:
    """
    Render rows as CSV text with a header line.

    Quoting follows RFC 4180: fields containing a comma, quote or newline
    are quoted and embedded quotes are doubled.
    """
    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")
    writer.writerow([header for header, _ in columns])
    for row in rows:
        writer.writerow([_cell(row.get(key)) for _, key in columns])
    return output.getvalue()


PEOPLE_ATTRIBUTE_KEYS = ("customerName", "customerType", "orderCount", "totalSpent", "lastOrderDate")


def people_to_csv(people: Iterable[Dict[str, Any]]) -> str:
    """
    Render people as ``email,name,attributes`` for mailing-list imports.

    ``attributes`` is a JSON object holding the customer fields.
    """
    rows: List[Dict[str, Any]] = []
    for person in people:
        name = " ".join(p for p in (person.get("firstName"), person.get("lastName")) if p)
        rows.append({
            "email": person.get("email") or "",
            "name": name or person.get("customerName") or "",
            "attributes": {key: person.get(key) for key in PEOPLE_ATTRIBUTE_KEYS},
        })
    return rows_to_csv([("email", "email"), ("name", "name"), ("attributes", "attributes")], rows)


def csv_filename(prefix: str, today: Optional[date] = None) -> str:
    today = today or date.today()
    safe_prefix = "".join(ch if ch.isalnum() or ch in "-_" else "-" for ch in prefix)
    return f"{safe_prefix}_{today.isoformat()}.csv"


# ═══════════════════════════════════════════════════════════════════════════════
# EXPORT COLUMN SETS
# ═══════════════════════════════════════════════════════════════════════════════

ORDER_COLUMNS: List[Column] = [
    ("Order Number", "orderNumber"),
    ("Customer", "customer"),
    ("Order Date", "orderDate"),
    ("Total Amount", "totalAmount"),
    ("Status", "status"),
    ("Paid", "isPaid"),
    ("Company Domain", "companyDomain"),
]

COMPANY_COLUMNS: List[Column] = [
    ("Company", "companyName"),
    ("Domain", "companyDomainKey"),
    ("Total Revenue", "totalRevenue"),
    ("Total Orders", "totalOrders"),
    ("Customers", "customerCount"),
    ("Latest Order", "latestOrderDate"),
    ("Business Size", "businessSizeCategory"),
    ("Revenue Category", "revenueCategory"),
    ("Health Score", "healthScore"),
    ("Activity Status", "activityStatus"),
]

CONTACT_COLUMNS: List[Column] = [
    ("Name", "fullName"),
    ("Email", "primaryEmail"),
    ("Phone", "primaryPhone"),
    ("Company", "companyName"),
    ("Domain", "companyDomainKey"),
    ("Role", "contactRole"),
    ("Tier", "contactTier"),
    ("Company Revenue", "companyTotalRevenue"),
    ("Email Marketable", "emailMarketable"),
]

REORDER_COLUMNS: List[Column] = [
    ("Priority", "reorderPriorityRank"),
    ("SKU", "sku"),
    ("Description", "salesDescription"),
    ("Family", "productFamily"),
    ("Status", "inventoryStatus"),
    ("Demand Trend", "demandTrend"),
    ("On Hand", "quantityOnHand"),
    ("Available", "availableQty"),
    ("Daily Forecast", "forecastDailyQty"),
    ("Days Remaining", "daysRemainingAvailable"),
    ("Stockout Date", "estimatedStockoutDate"),
    ("Reorder Qty 90D", "reorderQtyFor90DTarget"),
    ("Reorder Value 90D", "reorderValueFor90DTarget"),
    ("Reorder Qty 180D", "reorderQtyFor180DTarget"),
    ("Reorder Value 180D", "reorderValueFor180DTarget"),
]

TRADE_SHOW_LEAD_COLUMNS: List[Column] = [
    ("Show", "showName"),
    ("Show Date", "collectedAt"),
    ("Lead", "leadName"),
    ("Email", "leadEmail"),
    ("Company", "leadCompany"),
    ("Match Status", "matchStatus"),
    ("Matched Company", "matchedCustomerName"),
    ("Existing Customer", "isExistingCustomer"),
    ("Revenue 30D", "attributedRevenue30d"),
    ("Revenue 90D", "attributedRevenue90d"),
    ("Revenue 365D", "attributedRevenue365d"),
    ("Revenue All Time", "attributedRevenueAllTime"),
]

REPORT_ORDER_COLUMNS: List[Column] = [
    ("Order Number", "orderNumber"),
    ("Order Date", "orderDate"),
    ("Customer", "customerName"),
    ("Status", "status"),
    ("Payment Status", "paymentStatus"),
    ("Total Amount", "totalAmount"),
    ("Due Date", "dueDate"),
    ("Payment Method", "paymentMethod"),
    ("City", "shippingCity"),
    ("State", "shippingState"),
    ("Postal Code", "shippingPostalCode"),
    ("Country", "shippingCountry"),
]


def flatten_report_order(order: Dict[str, Any]) -> Dict[str, Any]:
    """Lift the nested shipping address of a report order into flat columns."""
    address = order.get("shippingAddress") or {}
    return {
        **order,
        "shippingCity": address.get("city"),
        "shippingState": address.get("state"),
        "shippingPostalCode": address.get("postalCode"),
        "shippingCountry": address.get("country"),
    }
