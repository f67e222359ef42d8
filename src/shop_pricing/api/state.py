"""
Shared service instances for the API, built on first use.
"""
import logging
from typing import Optional

from ..config.settings import get_settings
from ..engine.pricing_engine import PricingEngine
from ..services.catalog_service import CatalogService
from ..storage.object_storage import LocalObjectStorage
from ..store.table_store import TableStore
from ..utils.logger import setup_logging

logger = logging.getLogger(__name__)

_catalog_service: Optional[CatalogService] = None


def build_catalog_service() -> CatalogService:
    """Wire the table store, local storage and engine from settings."""
    settings = get_settings()
    setup_logging(settings.log_level)

    store = TableStore.from_directory(settings.data_dir)
    storage = LocalObjectStorage(settings.storage_dir, settings.images_bucket, settings.public_base_url)
    service = CatalogService(store, PricingEngine(min_margin_percent=settings.min_resale_margin_percent), storage)
    service.reload()
    logger.info("Catalog service ready (data: %s)", settings.data_dir)
    return service


def get_catalog_service() -> CatalogService:
    """FastAPI dependency returning the process-wide catalog service."""
    global _catalog_service
    if _catalog_service is None:
        _catalog_service = build_catalog_service()
    return _catalog_service
