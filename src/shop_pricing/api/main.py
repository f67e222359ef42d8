from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config.settings import get_settings
from ..services.catalog_service import CatalogService
from .errors import register_exception_handlers
from .pricing_api import router as pricing_router
from .state import get_catalog_service

app = FastAPI(
    title="Shop Pricing API",
    description="Unit price resolution for the print-shop catalog",
    version=__version__
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(pricing_router)


@app.get("/")
async def root():
    return {"status": "online", "message": "Shop Pricing API Active"}


@app.get("/system/status")
async def get_status(service: CatalogService = Depends(get_catalog_service)):
    settings = get_settings()
    return {
        "engine_active": True,
        "data_dir": str(settings.data_dir),
        "catalog": service.get_stats(),
    }


@app.post("/system/reload")
async def reload_catalog(service: CatalogService = Depends(get_catalog_service)):
    """Re-read every table from the data store."""
    snapshot = service.reload()
    return {"success": True, "products": len(snapshot.products), "tiers": len(snapshot.tiers)}
