"""
Tier Matcher - Selects the quantity price tier that applies to a line.

Used by the pricing engine before falling back to the manual or suggested
price, and by the catalog service to validate tier sets before saving them.
"""
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .models import PriceTier


@dataclass
class TierValidation:
    """Result of tier set validation."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def tiers_for_product(tiers: Iterable[PriceTier], product_id: Optional[str]) -> list[PriceTier]:
    """Keep tiers owned by the product; unowned tiers are assumed to belong to it."""
    return [
        t for t in tiers
        if product_id is None or t.product_id is None or t.product_id == product_id
    ]


def select_tier(
    tiers: Iterable[PriceTier],
    quantity: float,
    product_id: Optional[str] = None
) -> Optional[PriceTier]:
    """
    Find the tier whose quantity range contains ``quantity``.

    When ranges overlap the tier with the highest min_quantity wins; equal
    thresholds keep input order. Returns None when no tier covers the quantity.
    """
    best = None
    for tier in tiers_for_product(tiers, product_id):
        if not tier.matches(quantity):
            continue
        if best is None or tier.min_quantity > best.min_quantity:
            best = tier
    return best


def find_tier_overlaps(tiers: Iterable[PriceTier]) -> list[tuple[PriceTier, PriceTier]]:
    """Return every pair of tiers whose quantity ranges intersect."""
    ordered = sorted(tiers, key=lambda t: t.min_quantity)
    overlaps = []
    for i, first in enumerate(ordered):
        for second in ordered[i + 1:]:
            # second starts at or after first, so they meet unless first ends earlier
            if first.max_quantity is None or second.min_quantity <= first.max_quantity:
                overlaps.append((first, second))
    return overlaps


def validate_tiers(tiers: Iterable[PriceTier]) -> TierValidation:
    """Validate a product's tier set before saving."""
    tiers = list(tiers)
    result = TierValidation(valid=True)

    for tier in tiers:
        if tier.min_quantity < 1:
            result.errors.append(f"Tier {tier.label()}: minimum quantity must be at least 1")
            result.valid = False
        if tier.max_quantity is not None and tier.max_quantity < tier.min_quantity:
            result.errors.append(f"Tier {tier.label()}: maximum quantity is below the minimum")
            result.valid = False
        if tier.price < 0:
            result.errors.append(f"Tier {tier.label()}: price cannot be negative")
            result.valid = False

    for first, second in find_tier_overlaps(tiers):
        result.warnings.append(
            f"Tiers {first.label()} and {second.label()} overlap; "
            "the tier with the higher minimum quantity wins"
        )

    # Gaps between consecutive bounded tiers fall back to the product price
    ordered = sorted(tiers, key=lambda t: t.min_quantity)
    for first, second in zip(ordered, ordered[1:]):
        if first.max_quantity is not None and second.min_quantity > first.max_quantity + 1:
            result.warnings.append(
                f"No tier covers quantities between {first.max_quantity:g} and {second.min_quantity:g}"
            )

    return result
