"""
Query mixins for the DuckDB store.

DuckDBStore is assembled from one mixin per dashboard area. Each mixin only
relies on the store's fetch helpers (_fetch_one, _fetch_all, _fetch_dicts,
_fetch_dict, _count):
- DashboardMixin: headline KPIs, channels, revenue trend and cash flow
- OrdersMixin / ProductsMixin / InventoryMixin: order, product and stock detail
- ReorderPlanningMixin: reorder metrics, priorities and stockout timeline
- MarketingMixin / TradeShowsMixin: attribution and trade show leads
- CompaniesMixin / ContactsMixin / FamiliesMixin: company profiles and contacts
- CustomersMixin: people lists from the transactional tables
- ReportsMixin: Canadian, adhesive, sales channel and pop-and-drop reports
"""
from core.repositories.dashboard import DashboardMixin
from core.repositories.orders import OrdersMixin
from core.repositories.products import ProductsMixin
from core.repositories.inventory import InventoryMixin
from core.repositories.reorder_planning import ReorderPlanningMixin
from core.repositories.marketing import MarketingMixin
from core.repositories.trade_shows import TradeShowsMixin
from core.repositories.companies import CompaniesMixin
from core.repositories.contacts import ContactsMixin
from core.repositories.families import FamiliesMixin
from core.repositories.customers import CustomersMixin
from core.repositories.reports import ReportsMixin

__all__ = [
    "DashboardMixin",
    "OrdersMixin",
    "ProductsMixin",
    "InventoryMixin",
    "ReorderPlanningMixin",
    "MarketingMixin",
    "TradeShowsMixin",
    "CompaniesMixin",
    "ContactsMixin",
    "FamiliesMixin",
    "CustomersMixin",
    "ReportsMixin",
]
