from .activity_api import router as activity_api_router
from .assets_api import router as assets_api_router
from .bulk_api import router as bulk_api_router
from .employees_api import router as employees_api_router
from .sales_api import router as sales_api_router
from .statuses_api import router as statuses_api_router

ALL_ROUTERS = (
    bulk_api_router,
    assets_api_router,
    sales_api_router,
    employees_api_router,
    statuses_api_router,
    activity_api_router,
)
