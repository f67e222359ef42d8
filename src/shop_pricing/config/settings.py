"""
Centralized settings and path configuration for the pricing service.
"""
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


# Advisory floor shown to operators while editing a product (never enforced)
MIN_RESALE_MARGIN_PERCENT = 10.0

PRODUCT_IMAGES_BUCKET = "product-images"


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 4 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path

    # Table files (one CSV per table) backing the data store
    data_dir: Path

    # Local object storage
    storage_dir: Path
    public_base_url: str = "http://localhost:8000"
    images_bucket: str = PRODUCT_IMAGES_BUCKET

    log_level: str = "INFO"
    min_resale_margin_percent: float = MIN_RESALE_MARGIN_PERCENT

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and environment."""
        root = project_root or get_project_root()

        data_dir = os.environ.get('SHOP_PRICING_DATA_DIR')
        storage_dir = os.environ.get('SHOP_PRICING_STORAGE_DIR')

        return cls(
            project_root=root,
            data_dir=Path(data_dir) if data_dir else root / 'data' / 'demo',
            storage_dir=Path(storage_dir) if storage_dir else root / 'data' / 'storage',
            public_base_url=os.environ.get('SHOP_PRICING_PUBLIC_BASE_URL', 'http://localhost:8000'),
            log_level=os.environ.get('SHOP_PRICING_LOG_LEVEL', 'INFO').upper(),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reset_settings():
    """Drop the cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
