import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from shop_pricing.engine.pricing_engine import PricingEngine
from shop_pricing.services.catalog_service import CatalogService
from shop_pricing.storage.object_storage import LocalObjectStorage
from shop_pricing.store.table_store import TableStore

DEMO_DIR = Path(__file__).resolve().parent.parent / 'data' / 'demo'
FIXED_NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture(scope="function")  # function scope: tests mutate the store
def demo_store():
    return TableStore.from_directory(DEMO_DIR)


@pytest.fixture
def storage(tmp_path):
    return LocalObjectStorage(tmp_path / 'storage', 'product-images', 'http://localhost:8000')


@pytest.fixture
def catalog_service(demo_store, storage):
    service = CatalogService(demo_store, PricingEngine(clock=lambda: FIXED_NOW), storage)
    service.reload()
    return service
