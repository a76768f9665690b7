from .asset_requests_api import router as asset_requests_api_router
from .assets_api import router as assets_api_router
from .masters_api import router as masters_api_router
from .purchases_api import router as purchases_api_router
from .reports_api import router as reports_api_router
from .users_api import router as users_api_router
from .vendors_api import router as vendors_api_router

ALL_ROUTERS = (
    users_api_router,
    assets_api_router,
    asset_requests_api_router,
    purchases_api_router,
    vendors_api_router,
    masters_api_router,
    reports_api_router,
)
