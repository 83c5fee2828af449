from fastapi import APIRouter

from backend.app.api.v1.endpoints.health import router as health_router
from backend.app.api.v1.endpoints.users import router as users_router
from backend.app.api.v1.endpoints.suppliers import router as suppliers_router
from backend.app.api.v1.endpoints.products import router as products_router
from backend.app.api.v1.endpoints.requirements import router as requirements_router
from backend.app.api.v1.endpoints.purchase_orders import router as purchase_orders_router
from backend.app.api.v1.endpoints.receptions import router as receptions_router
from backend.app.api.v1.endpoints.outputs import router as outputs_router
from backend.app.api.v1.endpoints.inventory import router as inventory_router
from backend.app.api.v1.endpoints.invoices import router as invoices_router
from backend.app.api.v1.endpoints.activities import router as activities_router
from backend.app.api.v1.endpoints.dashboard import router as dashboard_router
from backend.app.api.v1.endpoints.reports import router as reports_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(users_router, tags=["users"])
router.include_router(suppliers_router, tags=["suppliers"])
router.include_router(products_router, tags=["products"])
router.include_router(requirements_router, tags=["requirements"])
router.include_router(purchase_orders_router, tags=["purchase_orders"])
router.include_router(receptions_router, tags=["receptions"])
router.include_router(outputs_router, tags=["outputs"])
router.include_router(inventory_router, tags=["inventory"])
router.include_router(invoices_router, tags=["invoices"])
router.include_router(activities_router, tags=["activities"])
router.include_router(dashboard_router, tags=["dashboard"])
router.include_router(reports_router, tags=["reports"])
