"""Engine subpackage - core pricing logic and resolution."""
from .pricing_engine import (
    CatalogSnapshot,
    PricingEngine,
    is_promotion_active,
    resolve_base_price,
    resolve_price,
)
from .models import ManualPrice, PriceQuote, PriceTier, Product, SuggestedPrice

__all__ = [
    'CatalogSnapshot', 'PricingEngine', 'is_promotion_active', 'resolve_base_price',
    'resolve_price', 'ManualPrice', 'PriceQuote', 'PriceTier', 'Product', 'SuggestedPrice',
]
