"""
Data models for the pricing engine.

Uses dataclasses for structured, type-safe data representation. Records coming
from the data store are normalized here, once, through the ``from_record``
constructors: every numeric field the resolver reads is a plain float after
this step.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Union

import pandas as pd


def to_number(value: Any, default: float = 0.0) -> float:
    """Coerce a loosely typed value ("12,50", None, NaN, 3) to a float."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.strip().replace(',', '.')
        if not value:
            return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def to_amount(value: Any) -> float:
    """Coerce to a non-negative amount; missing or invalid values become zero."""
    return max(0.0, to_number(value))


def to_optional_amount(value: Any) -> Optional[float]:
    """Like to_amount, but keeps "not set" distinguishable from zero."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    number = to_number(value, default=math.nan)
    if math.isnan(number):
        return None
    return max(0.0, number)


def to_timestamp(value: Any) -> Optional[datetime]:
    """Parse a datetime or ISO-8601 string as an aware UTC datetime."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    parsed = pd.to_datetime(value, utc=True, errors='coerce')
    if pd.isna(parsed):
        return None
    return parsed.to_pydatetime()


def to_flag(value: Any, default: bool = False) -> bool:
    """Parse booleans stored as text ("true", "1", "yes")."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, float) and math.isnan(value):
        return default
    return str(value).strip().lower() in ('true', '1', 'yes', 't')


def _optional_str(value: Any) -> Optional[str]:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class SuggestedPrice:
    """The product sells at the price computed from its cost composition."""


@dataclass(frozen=True)
class ManualPrice:
    """An operator confirmed a fixed final price for the product."""
    value: float


PriceOverride = Union[SuggestedPrice, ManualPrice]


@dataclass
class Product:
    """A sellable item or service, reduced to the fields pricing reads."""
    id: str
    name: str = ""
    sku: Optional[str] = None
    unit: str = "un"
    is_active: bool = True
    show_in_catalog: bool = False

    # Suggested-price inputs
    base_cost: float = 0.0
    labor_cost: float = 0.0
    waste_percentage: float = 0.0
    profit_margin: float = 0.0

    price_override: PriceOverride = field(default_factory=SuggestedPrice)

    # Promotion window (a missing bound is open on that side)
    promo_price: Optional[float] = None
    promo_start_at: Optional[datetime] = None
    promo_end_at: Optional[datetime] = None

    # Storefront
    catalog_price: Optional[float] = None
    catalog_min_order: Optional[int] = None

    min_order_quantity: int = 1

    @property
    def final_price(self) -> Optional[float]:
        """The manually set price, or None while the suggested price applies."""
        if isinstance(self.price_override, ManualPrice):
            return self.price_override.value
        return None

    @property
    def minimum_quantity(self) -> int:
        """Smallest purchasable quantity, storefront setting first."""
        candidate = self.catalog_min_order or self.min_order_quantity or 1
        return max(1, int(candidate))

    @classmethod
    def from_record(cls, row: dict) -> 'Product':
        """Build a Product from a data-store row."""
        final_price = to_optional_amount(row.get('final_price'))
        touched = row.get('final_price_touched')
        if final_price is not None and to_flag(touched, default=True):
            override: PriceOverride = ManualPrice(final_price)
        else:
            override = SuggestedPrice()

        catalog_min_order = to_optional_amount(row.get('catalog_min_order'))

        return cls(
            id=_optional_str(row.get('id')) or "",
            name=_optional_str(row.get('name')) or "",
            sku=_optional_str(row.get('sku')),
            unit=_optional_str(row.get('unit')) or "un",
            is_active=to_flag(row.get('is_active'), default=True),
            show_in_catalog=to_flag(row.get('show_in_catalog')),
            base_cost=to_amount(row.get('base_cost')),
            labor_cost=to_amount(row.get('labor_cost')),
            waste_percentage=to_amount(row.get('waste_percentage')),
            profit_margin=to_amount(row.get('profit_margin')),
            price_override=override,
            promo_price=to_optional_amount(row.get('promo_price')),
            promo_start_at=to_timestamp(row.get('promo_start_at')),
            promo_end_at=to_timestamp(row.get('promo_end_at')),
            catalog_price=to_optional_amount(row.get('catalog_price')),
            catalog_min_order=int(catalog_min_order) if catalog_min_order else None,
            min_order_quantity=max(1, int(to_amount(row.get('min_order_quantity')) or 1)),
        )


@dataclass
class PriceTier:
    """A quantity-based price break; max_quantity None means unbounded."""
    min_quantity: float
    max_quantity: Optional[float]
    price: float
    id: Optional[str] = None
    product_id: Optional[str] = None

    def matches(self, quantity: float) -> bool:
        if quantity < self.min_quantity:
            return False
        if self.max_quantity is None:
            return True
        return quantity <= self.max_quantity

    def label(self) -> str:
        upper = "∞" if self.max_quantity is None else f"{self.max_quantity:g}"
        return f"{self.min_quantity:g}–{upper}"

    @classmethod
    def from_record(cls, row: dict) -> 'PriceTier':
        min_quantity = to_optional_amount(row.get('min_quantity'))
        return cls(
            id=_optional_str(row.get('id')),
            product_id=_optional_str(row.get('product_id')),
            min_quantity=1.0 if min_quantity is None else min_quantity,
            max_quantity=to_optional_amount(row.get('max_quantity')),
            price=to_amount(row.get('price')),
        )


@dataclass
class Supply:
    """A raw material."""
    id: str
    name: str = ""
    unit: str = "un"
    cost_per_unit: float = 0.0

    @classmethod
    def from_record(cls, row: dict) -> 'Supply':
        return cls(
            id=_optional_str(row.get('id')) or "",
            name=_optional_str(row.get('name')) or "",
            unit=_optional_str(row.get('unit')) or "un",
            cost_per_unit=to_amount(row.get('cost_per_unit')),
        )


@dataclass
class ProductSupply:
    """How much of a supply one unit of a product consumes."""
    product_id: str
    supply_id: str
    quantity: float = 0.0

    @classmethod
    def from_record(cls, row: dict) -> 'ProductSupply':
        return cls(
            product_id=_optional_str(row.get('product_id')) or "",
            supply_id=_optional_str(row.get('supply_id')) or "",
            quantity=to_amount(row.get('quantity')),
        )


@dataclass
class ProductAttribute:
    """An attribute value offered on a product, with its price modifier."""
    product_id: str
    attribute_value_id: str
    price_modifier: float = 0.0
    id: Optional[str] = None

    @classmethod
    def from_record(cls, row: dict) -> 'ProductAttribute':
        return cls(
            id=_optional_str(row.get('id')),
            product_id=_optional_str(row.get('product_id')) or "",
            attribute_value_id=_optional_str(row.get('attribute_value_id')) or "",
            # Modifiers may be discounts, so they are not clamped
            price_modifier=to_number(row.get('price_modifier')),
        )


@dataclass
class CostBreakdown:
    """Cost composition behind the suggested price."""
    base_cost: float
    labor_cost: float
    supplies_cost: float
    total_cost: float
    cost_with_waste: float
    suggested_price: float
    min_resale_price: float


@dataclass
class TraceStep:
    """A single step in the pricing resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class PriceQuote:
    """Resolved price for one product at one quantity."""
    product_id: str
    description: str
    quantity: float
    unit_price: float
    base_unit_price: float
    extended_price: float
    source: str  # "promotion", "tier", "manual", "suggested" or "catalog"
    tier_used: Optional[str] = None
    promotion_active: bool = False
    attribute_modifiers: float = 0.0
    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the trace for this quote."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        """Add a warning for this quote."""
        self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)
