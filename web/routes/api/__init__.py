"""
API routes split by domain.

Each sub-module defines its own APIRouter which is composed
into the top-level router exposed by this package.
"""
from fastapi import APIRouter

from .health import router as health_router
from .admin import router as admin_router
from .dashboard import router as dashboard_router
from .cash_flow import router as cash_flow_router
from .orders import router as orders_router
from .products import router as products_router
from .reorder_planning import router as reorder_planning_router
from .marketing import router as marketing_router
from .trade_shows import router as trade_shows_router
from .companies import router as companies_router
from .contacts import router as contacts_router
from .people import router as people_router
from .reports import router as reports_router
from .exports import router as exports_router

router = APIRouter(tags=["api"])

router.include_router(health_router)
router.include_router(admin_router)
router.include_router(dashboard_router)
router.include_router(cash_flow_router)
router.include_router(orders_router)
router.include_router(products_router)
router.include_router(reorder_planning_router)
router.include_router(marketing_router)
router.include_router(trade_shows_router)
router.include_router(companies_router)
router.include_router(contacts_router)
router.include_router(people_router)
router.include_router(reports_router)
router.include_router(exports_router)
