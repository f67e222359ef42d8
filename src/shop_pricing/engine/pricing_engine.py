"""
Pricing Engine - Unit price resolution with traceability.

Resolution order for a product at a quantity:
1. Active promotion: promo_price, regardless of quantity or tiers
2. Quantity tier whose range contains the quantity (highest minimum wins)
3. Manually set final price
4. Suggested price from cost composition:
       total_cost      = base_cost + supplies_cost + labor_cost
       cost_with_waste = total_cost * (1 + waste_percentage / 100)
       suggested_price = cost_with_waste * (1 + profit_margin / 100)

The module-level functions are pure: they never mutate their inputs, never
raise on missing numbers (those count as zero) and only read the clock for the
promotion window. PricingEngine wraps them with catalog lookups, attribute
modifiers and an execution trace for each quote.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from ..config.settings import MIN_RESALE_MARGIN_PERCENT
from .models import (
    CostBreakdown,
    ManualPrice,
    PriceQuote,
    PriceTier,
    Product,
    ProductAttribute,
    to_amount,
    to_number,
    to_timestamp,
)
from .measurements import is_area_unit
from .tier_matcher import find_tier_overlaps, select_tier, tiers_for_product

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return to_timestamp(value)


def is_promotion_active(product: Product, now: Optional[datetime] = None) -> bool:
    """
    A promotion is active when promo_price is set and ``now`` falls inside
    [promo_start_at, promo_end_at], bounds inclusive. A missing bound is open.
    """
    if to_amount(product.promo_price) <= 0:
        return False

    current = _as_utc(now) or utc_now()
    start = _as_utc(product.promo_start_at)
    end = _as_utc(product.promo_end_at)

    if start and current < start:
        return False
    if end and current > end:
        return False
    return True


def calculate_cost_breakdown(
    product: Product,
    supplies_cost: float = 0.0,
    min_margin_percent: float = MIN_RESALE_MARGIN_PERCENT
) -> CostBreakdown:
    """Cost composition of a product, including the advisory minimum resale price."""
    base_cost = to_amount(product.base_cost)
    labor_cost = to_amount(product.labor_cost)
    supplies = to_amount(supplies_cost)

    total_cost = base_cost + supplies + labor_cost
    cost_with_waste = total_cost * (1 + to_amount(product.waste_percentage) / 100)
    suggested_price = cost_with_waste * (1 + to_amount(product.profit_margin) / 100)

    return CostBreakdown(
        base_cost=base_cost,
        labor_cost=labor_cost,
        supplies_cost=supplies,
        total_cost=total_cost,
        cost_with_waste=cost_with_waste,
        suggested_price=suggested_price,
        min_resale_price=cost_with_waste * (1 + to_amount(min_margin_percent) / 100),
    )


def calculate_suggested_price(product: Product, supplies_cost: float = 0.0) -> float:
    return calculate_cost_breakdown(product, supplies_cost).suggested_price


@dataclass
class Resolution:
    """Internal outcome of the resolution chain."""
    price: float
    source: str
    tier: Optional[PriceTier] = None


def _resolve_base(
    product: Product,
    quantity: Any,
    tiers: Iterable[PriceTier],
    supplies_cost: Any
) -> Resolution:
    tier = select_tier(tiers, to_amount(quantity), product.id)
    if tier is not None:
        return Resolution(price=to_amount(tier.price), source="tier", tier=tier)

    if isinstance(product.price_override, ManualPrice):
        return Resolution(price=to_amount(product.price_override.value), source="manual")

    return Resolution(price=calculate_suggested_price(product, supplies_cost), source="suggested")


def _resolve_catalog_base(
    product: Product,
    quantity: Any,
    tiers: Iterable[PriceTier],
    supplies_cost: Any
) -> Resolution:
    tiers = tiers_for_product(tiers, product.id)
    if not tiers and product.catalog_price is not None:
        return Resolution(price=to_amount(product.catalog_price), source="catalog")
    return _resolve_base(product, quantity, tiers, supplies_cost)


def resolve_base_price(
    product: Product,
    quantity: float = 1,
    tiers: Iterable[PriceTier] = (),
    supplies_cost: float = 0.0
) -> float:
    """Unit price ignoring any promotion: tier, then manual price, then suggested price."""
    return _resolve_base(product, quantity, tiers, supplies_cost).price


def resolve_price(
    product: Product,
    quantity: float = 1,
    tiers: Iterable[PriceTier] = (),
    supplies_cost: float = 0.0,
    now: Optional[datetime] = None
) -> float:
    """Unit price at ``quantity``; an active promotion overrides everything else."""
    if is_promotion_active(product, now):
        return to_amount(product.promo_price)
    return resolve_base_price(product, quantity, tiers, supplies_cost)


def resolve_catalog_base_price(
    product: Product,
    quantity: float = 1,
    tiers: Iterable[PriceTier] = (),
    supplies_cost: float = 0.0
) -> float:
    """Storefront "from" price: catalog_price replaces the base chain for untiered products."""
    return _resolve_catalog_base(product, quantity, tiers, supplies_cost).price


def resolve_catalog_price(
    product: Product,
    quantity: float = 1,
    tiers: Iterable[PriceTier] = (),
    supplies_cost: float = 0.0,
    now: Optional[datetime] = None
) -> float:
    """Storefront selling price; promotions still take precedence."""
    if is_promotion_active(product, now):
        return to_amount(product.promo_price)
    return resolve_catalog_base_price(product, quantity, tiers, supplies_cost)


def apply_attribute_modifiers(unit_price: float, modifiers: Iterable[float]) -> float:
    """Add selected attribute price modifiers to a unit price, never going below zero."""
    return max(0.0, to_amount(unit_price) + sum(to_number(m) for m in modifiers))


def line_total(unit_price: float, quantity: float, discount: float = 0.0) -> float:
    return max(0.0, to_amount(unit_price) * to_amount(quantity) - to_amount(discount))


@dataclass
class CatalogSnapshot:
    """In-memory pricing data fetched from the data store."""
    products: dict[str, Product] = field(default_factory=dict)
    tiers: list[PriceTier] = field(default_factory=list)
    supplies_cost: dict[str, float] = field(default_factory=dict)
    attributes: list[ProductAttribute] = field(default_factory=list)

    def tiers_for(self, product_id: str) -> list[PriceTier]:
        return [t for t in self.tiers if t.product_id == product_id]

    def supplies_cost_for(self, product_id: str) -> float:
        return self.supplies_cost.get(product_id, 0.0)

    def modifiers_for(self, product_id: str, attribute_value_ids: Iterable[str]) -> list[ProductAttribute]:
        wanted = set(attribute_value_ids or ())
        return [
            a for a in self.attributes
            if a.product_id == product_id and a.attribute_value_id in wanted
        ]


class PricingEngine:
    """
    Produces traced price quotes over a catalog snapshot.

    The clock is injectable so promotion windows can be evaluated at a fixed
    instant.
    """

    def __init__(
        self,
        snapshot: Optional[CatalogSnapshot] = None,
        clock: Callable[[], datetime] = utc_now,
        min_margin_percent: float = MIN_RESALE_MARGIN_PERCENT
    ):
        self.snapshot = snapshot or CatalogSnapshot()
        self.clock = clock
        self.min_margin_percent = min_margin_percent

    def load(self, snapshot: CatalogSnapshot):
        """Swap in freshly fetched catalog data."""
        self.snapshot = snapshot
        logger.info(
            "Catalog loaded: %d products, %d tiers",
            len(snapshot.products), len(snapshot.tiers)
        )

    def get_product(self, product_id: str) -> Optional[Product]:
        return self.snapshot.products.get(str(product_id))

    def cost_breakdown(self, product: Product) -> CostBreakdown:
        return calculate_cost_breakdown(
            product,
            self.snapshot.supplies_cost_for(product.id),
            self.min_margin_percent
        )

    def quote(
        self,
        product_id: str,
        quantity: float,
        attribute_value_ids: Optional[Iterable[str]] = None,
        discount: float = 0.0,
        catalog: bool = False
    ) -> Optional[PriceQuote]:
        """
        Quote a catalog product.

        Args:
            product_id: Product to price
            quantity: Units (or m² for area-priced items)
            attribute_value_ids: Selected attribute values carrying price modifiers
            discount: Absolute discount on the line total
            catalog: Use storefront pricing (catalog_price for untiered products)

        Returns:
            PriceQuote, or None when the product is unknown
        """
        product = self.get_product(product_id)
        if product is None:
            logger.debug("Quote requested for unknown product %s", product_id)
            return None

        modifiers = self.snapshot.modifiers_for(product.id, attribute_value_ids or ())
        return self.quote_product(
            product,
            quantity,
            tiers=self.snapshot.tiers_for(product.id),
            supplies_cost=self.snapshot.supplies_cost_for(product.id),
            modifiers=modifiers,
            discount=discount,
            catalog=catalog,
        )

    def quote_product(
        self,
        product: Product,
        quantity: float,
        tiers: Iterable[PriceTier] = (),
        supplies_cost: float = 0.0,
        modifiers: Iterable[ProductAttribute] = (),
        discount: float = 0.0,
        catalog: bool = False
    ) -> PriceQuote:
        """Quote a product record with explicitly supplied pricing data."""
        qty = to_amount(quantity)
        tiers = tiers_for_product(list(tiers), product.id)
        now = self.clock()

        resolve = _resolve_catalog_base if catalog else _resolve_base
        base = resolve(product, qty, tiers, supplies_cost)

        quote = PriceQuote(
            product_id=product.id,
            description=product.name or "N/A",
            quantity=qty,
            unit_price=base.price,
            base_unit_price=base.price,
            extended_price=0.0,
            source=base.source,
            tier_used=base.tier.label() if base.tier else None,
        )
        quote.add_trace("Product Lookup", "Pricing product", product.id)

        if base.source == "tier":
            quote.add_trace("Tier Lookup", f"Quantity {qty:g} falls in tier {base.tier.label()}", f"${base.price:.2f}")
        else:
            if tiers:
                quote.add_trace("Tier Lookup", f"No tier covers quantity {qty:g}")
            if base.source == "catalog":
                quote.add_trace("Price Resolution", "Using storefront catalog price", f"${base.price:.2f}")
            elif base.source == "manual":
                quote.add_trace("Price Resolution", "Using manually set final price", f"${base.price:.2f}")
            else:
                quote.add_trace("Price Resolution", "Using suggested price from costs", f"${base.price:.2f}")

        if base.source == "manual":
            breakdown = calculate_cost_breakdown(product, supplies_cost, self.min_margin_percent)
            if base.price < breakdown.min_resale_price:
                quote.add_warning(
                    f"Final price ${base.price:.2f} is below the minimum resale price "
                    f"${breakdown.min_resale_price:.2f} for {product.id}"
                )

        for first, second in find_tier_overlaps(tiers):
            quote.add_warning(f"Overlapping tiers {first.label()} and {second.label()} on {product.id}")

        if is_promotion_active(product, now):
            quote.unit_price = to_amount(product.promo_price)
            quote.source = "promotion"
            quote.promotion_active = True
            quote.add_trace("Promotion", "Active promotion overrides price", f"${quote.unit_price:.2f}")

        modifiers = list(modifiers)
        if modifiers:
            quote.attribute_modifiers = sum(to_number(m.price_modifier) for m in modifiers)
            quote.unit_price = apply_attribute_modifiers(
                quote.unit_price, [m.price_modifier for m in modifiers]
            )
            quote.add_trace(
                "Attributes",
                f"{len(modifiers)} attribute modifier(s) {quote.attribute_modifiers:+.2f}",
                f"${quote.unit_price:.2f}"
            )

        # Area items are sold by any positive m² amount
        if not is_area_unit(product.unit) and qty < product.minimum_quantity:
            quote.add_warning(
                f"Quantity {qty:g} is below the minimum order of {product.minimum_quantity} for {product.id}"
            )

        quote.extended_price = line_total(quote.unit_price, qty, discount)
        description = f"Quantity {qty:g} × ${quote.unit_price:.2f}"
        if discount:
            description += f" − ${to_amount(discount):.2f}"
        quote.add_trace("Extension", description, f"${quote.extended_price:.2f}")

        return quote
