"""
Catalog Service - loads pricing data from the data store and serves quotes.

Handles fetching products, tiers, supplies and attribute modifiers into a
CatalogSnapshot for the pricing engine, the public storefront listing, and
validated tier maintenance.
"""
import logging
from typing import Iterable, Optional

from ..engine.costs import supplies_cost_map
from ..engine.measurements import is_area_unit
from ..engine.models import (
    PriceQuote,
    PriceTier,
    Product,
    ProductAttribute,
    ProductSupply,
    Supply,
    to_flag,
    to_number,
)
from ..engine.pricing_engine import (
    CatalogSnapshot,
    PricingEngine,
    is_promotion_active,
    resolve_catalog_base_price,
    resolve_catalog_price,
)
from ..engine.tier_matcher import TierValidation, validate_tiers
from ..storage.object_storage import ObjectStorage, ensure_public_url
from ..store.base import DataStore

logger = logging.getLogger(__name__)

PRODUCTS = 'products'
PRICE_TIERS = 'price_tiers'
SUPPLIES = 'supplies'
PRODUCT_SUPPLIES = 'product_supplies'
PRODUCT_ATTRIBUTES = 'product_attributes'


class ProductNotFoundError(LookupError):
    """No product with the requested id."""

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product '{product_id}' not found")


class TierNotFoundError(LookupError):
    """No price tier with the requested id."""

    def __init__(self, tier_id: str):
        self.tier_id = tier_id
        super().__init__(f"Tier '{tier_id}' not found")


class InvalidTierError(ValueError):
    """A tier failed validation and was not saved."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


class CatalogService:
    """Service that feeds the pricing engine from the data store."""

    def __init__(
        self,
        store: DataStore,
        engine: Optional[PricingEngine] = None,
        storage: Optional[ObjectStorage] = None
    ):
        self.store = store
        self.engine = engine or PricingEngine()
        self.storage = storage
        self._product_rows: dict[str, dict] = {}

    def load_snapshot(self) -> CatalogSnapshot:
        """Fetch every table the resolver needs and normalize the rows."""
        product_rows = self.store.select(PRODUCTS)
        self._product_rows = {str(row.get('id')): row for row in product_rows}

        products = {}
        for row in product_rows:
            product = Product.from_record(row)
            products[product.id] = product

        tiers = [PriceTier.from_record(row) for row in self.store.select(PRICE_TIERS, order_by='min_quantity')]
        costs = supplies_cost_map(
            self.store.select(PRODUCT_SUPPLIES),
            self.store.select(SUPPLIES)
        )
        attributes = [ProductAttribute.from_record(row) for row in self.store.select(PRODUCT_ATTRIBUTES)]

        return CatalogSnapshot(
            products=products,
            tiers=tiers,
            supplies_cost=costs,
            attributes=attributes,
        )

    def reload(self) -> CatalogSnapshot:
        """Reload the engine from the data store."""
        snapshot = self.load_snapshot()
        self.engine.load(snapshot)
        return snapshot

    def get_product(self, product_id: str) -> Product:
        product = self.engine.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def quote(
        self,
        product_id: str,
        quantity: float,
        attribute_value_ids: Optional[Iterable[str]] = None,
        discount: float = 0.0,
        catalog: bool = False
    ) -> PriceQuote:
        quote = self.engine.quote(product_id, quantity, attribute_value_ids, discount, catalog)
        if quote is None:
            raise ProductNotFoundError(product_id)
        return quote

    def validate_quantity(self, product: Product, quantity: float) -> list[str]:
        """
        Caller-side quantity checks; the resolver itself accepts any quantity.

        Area items only need a positive area, the minimum order applies to
        unit-priced products.
        """
        errors = []
        qty = to_number(quantity)
        if qty <= 0:
            errors.append("Quantity must be greater than zero")
        elif not is_area_unit(product.unit) and qty < product.minimum_quantity:
            errors.append(f"Minimum order quantity for {product.name or product.id} is {product.minimum_quantity}")
        return errors

    def public_catalog(self) -> list[dict]:
        """Active storefront products with their "from/to" prices at the minimum order."""
        snapshot = self.engine.snapshot
        now = self.engine.clock()
        items = []

        for product in snapshot.products.values():
            row = self._product_rows.get(product.id, {})
            if not product.is_active or not product.show_in_catalog:
                continue
            if not to_flag(row.get('catalog_enabled'), default=True):
                continue

            quantity = product.minimum_quantity
            tiers = snapshot.tiers_for(product.id)
            supplies_cost = snapshot.supplies_cost_for(product.id)
            price = resolve_catalog_price(product, quantity, tiers, supplies_cost, now=now)
            promotion = is_promotion_active(product, now)

            image_url = row.get('image_url')
            if self.storage is not None:
                image_url = ensure_public_url(self.storage, image_url)

            items.append({
                "id": product.id,
                "name": product.name,
                "sku": product.sku,
                "unit": product.unit,
                "image_url": image_url,
                "min_order_quantity": quantity,
                "price": round(price, 2),
                "original_price": (
                    round(resolve_catalog_base_price(product, quantity, tiers, supplies_cost), 2)
                    if promotion else None
                ),
                "promotion_active": promotion,
                "sort_order": to_number(row.get('catalog_sort_order'), default=float('inf')),
            })

        items.sort(key=lambda item: (item["sort_order"], item["name"].lower()))
        for item in items:
            del item["sort_order"]
        return items

    def list_tiers(self, product_id: str) -> list[PriceTier]:
        rows = self.store.select(PRICE_TIERS, eq={'product_id': product_id}, order_by='min_quantity')
        return [PriceTier.from_record(row) for row in rows]

    def validate_tier_set(self, product_id: str, candidate: Optional[PriceTier] = None) -> TierValidation:
        """Validate the product's stored tiers together with an optional new one."""
        tiers = self.list_tiers(product_id)
        if candidate is not None:
            tiers.append(candidate)
        return validate_tiers(tiers)

    def create_tier(
        self,
        product_id: str,
        min_quantity: float,
        max_quantity: Optional[float],
        price: float
    ) -> tuple[PriceTier, list[str]]:
        """
        Add a price tier to a product.

        Returns:
            (stored tier, validation warnings)

        Raises:
            ProductNotFoundError: unknown product
            InvalidTierError: the tier is invalid
        """
        if self.store.select_one(PRODUCTS, eq={'id': product_id}) is None:
            raise ProductNotFoundError(product_id)

        candidate = PriceTier(
            product_id=product_id,
            min_quantity=min_quantity,
            max_quantity=max_quantity,
            price=price,
        )
        validation = self.validate_tier_set(product_id, candidate)
        if not validation.valid:
            raise InvalidTierError(validation.errors)

        stored = self.store.insert(PRICE_TIERS, {
            'product_id': product_id,
            'min_quantity': min_quantity,
            'max_quantity': max_quantity,
            'price': price,
        })[0]
        for warning in validation.warnings:
            logger.warning("Product %s: %s", product_id, warning)

        self.reload()
        return PriceTier.from_record(stored), validation.warnings

    def delete_tier(self, tier_id: str) -> bool:
        """Delete a tier by id."""
        removed = self.store.delete(PRICE_TIERS, eq={'id': tier_id})
        if not removed:
            raise TierNotFoundError(tier_id)
        self.reload()
        return True

    def update_product_codes(
        self,
        product_id: str,
        sku: Optional[str] = None,
        barcode: Optional[str] = None
    ) -> Product:
        """
        Change a product's SKU and/or barcode; None leaves a code as it is.

        Raises:
            ProductNotFoundError: unknown product
            UniqueViolationError: another product already uses the code
        """
        values = {k: v.strip() for k, v in (('sku', sku), ('barcode', barcode)) if v is not None}
        if not values:
            return self.get_product(product_id)

        updated = self.store.update(PRODUCTS, values, eq={'id': product_id})
        if not updated:
            raise ProductNotFoundError(product_id)

        logger.info("Product %s codes updated: %s", product_id, values)
        self.reload()
        return self.get_product(product_id)

    def supply_lines(self, product_id: str) -> list[dict]:
        """Supplies consumed by one unit of a product, with their cost."""
        supplies = {
            supply.id: supply
            for supply in (Supply.from_record(row) for row in self.store.select(SUPPLIES))
        }
        lines = []
        for row in self.store.select(PRODUCT_SUPPLIES, eq={'product_id': product_id}):
            link = ProductSupply.from_record(row)
            supply = supplies.get(link.supply_id)
            cost_per_unit = supply.cost_per_unit if supply else 0.0
            lines.append({
                'supply_id': link.supply_id,
                'name': supply.name if supply else link.supply_id,
                'unit': supply.unit if supply else None,
                'quantity': link.quantity,
                'cost_per_unit': cost_per_unit,
                'cost': link.quantity * cost_per_unit,
            })
        return lines

    def get_stats(self) -> dict:
        """Statistics about the loaded catalog."""
        snapshot = self.engine.snapshot
        now = self.engine.clock()
        products = list(snapshot.products.values())
        return {
            'products': len(products),
            'active': sum(1 for p in products if p.is_active),
            'in_catalog': sum(1 for p in products if p.is_active and p.show_in_catalog),
            'promotions_active': sum(1 for p in products if is_promotion_active(p, now)),
            'tiers': len(snapshot.tiers),
            'products_with_tiers': len({t.product_id for t in snapshot.tiers}),
        }
