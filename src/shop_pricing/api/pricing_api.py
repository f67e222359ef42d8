"""
Pricing API - FastAPI router for price resolution and tier maintenance.
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field

from ..engine.models import PriceTier, Product
from ..engine.pricing_engine import is_promotion_active, resolve_base_price, resolve_price
from ..engine.tier_matcher import validate_tiers
from ..services.catalog_service import PRODUCTS, CatalogService
from .state import get_catalog_service

router = APIRouter(tags=["pricing"])


# Pydantic models for API
class TierPayload(BaseModel):
    """A price tier as posted by clients."""
    min_quantity: float = Field(1, ge=0)
    max_quantity: Optional[float] = None
    price: float = Field(0, ge=0)


class TierResponse(TierPayload):
    """A stored price tier."""
    id: Optional[str] = None
    product_id: Optional[str] = None


class ProductCodesPayload(BaseModel):
    """SKU and barcode changes; omitted fields stay as they are."""
    sku: Optional[str] = None
    barcode: Optional[str] = None


class ProductPayload(BaseModel):
    """Product fields that take part in pricing."""
    id: str = "adhoc"
    name: str = ""
    base_cost: Optional[float] = None
    labor_cost: Optional[float] = None
    waste_percentage: Optional[float] = None
    profit_margin: Optional[float] = None
    final_price: Optional[float] = None
    final_price_touched: Optional[bool] = None
    promo_price: Optional[float] = None
    promo_start_at: Optional[datetime] = None
    promo_end_at: Optional[datetime] = None
    catalog_price: Optional[float] = None
    min_order_quantity: int = 1


class PriceRequest(BaseModel):
    """Request model for ad hoc price resolution."""
    product: ProductPayload
    quantity: float = Field(1, ge=0)
    tiers: list[TierPayload] = []
    supplies_cost: float = Field(0, ge=0)
    now: Optional[datetime] = None


class PriceResponse(BaseModel):
    unit_price: float
    base_price: float
    promotion_active: bool


class ValidationResponse(BaseModel):
    """Response model for tier validation."""
    valid: bool
    errors: list[str]
    warnings: list[str]


# Endpoints

@router.post("/price", response_model=PriceResponse)
async def price(request: PriceRequest):
    """Resolve a unit price for a posted product without touching the catalog."""
    product = Product.from_record(request.product.model_dump())
    tiers = [PriceTier.from_record(t.model_dump()) for t in request.tiers]
    return PriceResponse(
        unit_price=resolve_price(product, request.quantity, tiers, request.supplies_cost, now=request.now),
        base_price=resolve_base_price(product, request.quantity, tiers, request.supplies_cost),
        promotion_active=is_promotion_active(product, request.now),
    )


@router.get("/products/{product_id}/price")
async def product_price(
    product_id: str,
    quantity: float = Query(1, ge=0),
    attribute_value_ids: list[str] = Query(default=[]),
    discount: float = Query(0, ge=0),
    catalog: bool = False,
    service: CatalogService = Depends(get_catalog_service),
):
    """Traced quote for a catalog product."""
    quote = service.quote(product_id, quantity, attribute_value_ids, discount, catalog)
    product = service.get_product(product_id)
    payload = jsonable_encoder(quote)
    payload["quantity_errors"] = service.validate_quantity(product, quantity)
    return payload


@router.get("/products/{product_id}/costs")
async def product_costs(product_id: str, service: CatalogService = Depends(get_catalog_service)):
    """Cost composition and the advisory minimum resale price."""
    product = service.get_product(product_id)
    return jsonable_encoder(service.engine.cost_breakdown(product))


@router.get("/catalog")
async def catalog(service: CatalogService = Depends(get_catalog_service)):
    """Public storefront listing."""
    return service.public_catalog()


@router.patch("/products/{product_id}")
async def update_product_codes(
    product_id: str,
    codes: ProductCodesPayload,
    service: CatalogService = Depends(get_catalog_service),
):
    """Change SKU/barcode; a code already used by another product is a conflict."""
    product = service.update_product_codes(product_id, codes.sku, codes.barcode)
    row = service.store.select_one(PRODUCTS, eq={"id": product_id}) or {}
    return {"id": product.id, "sku": product.sku, "barcode": row.get("barcode")}


@router.get("/products/{product_id}/supplies")
async def product_supplies(product_id: str, service: CatalogService = Depends(get_catalog_service)):
    service.get_product(product_id)
    return service.supply_lines(product_id)


@router.get("/products/{product_id}/tiers", response_model=list[TierResponse])
async def list_tiers(product_id: str, service: CatalogService = Depends(get_catalog_service)):
    service.get_product(product_id)
    return [TierResponse(**t.__dict__) for t in service.list_tiers(product_id)]


@router.post("/products/{product_id}/tiers", status_code=201)
async def create_tier(product_id: str, tier: TierPayload, service: CatalogService = Depends(get_catalog_service)):
    """Create a price tier; invalid tiers are rejected, overlaps only warned about."""
    created, warnings = service.create_tier(product_id, tier.min_quantity, tier.max_quantity, tier.price)
    return {"tier": jsonable_encoder(created), "warnings": warnings}


@router.post("/products/{product_id}/tiers/validate", response_model=ValidationResponse)
async def validate_tier(product_id: str, tier: TierPayload, service: CatalogService = Depends(get_catalog_service)):
    """Validate a tier against the product's existing tiers without saving."""
    candidate = PriceTier(product_id=product_id, **tier.model_dump())
    result = service.validate_tier_set(product_id, candidate)
    return ValidationResponse(valid=result.valid, errors=result.errors, warnings=result.warnings)


@router.post("/tiers/validate", response_model=ValidationResponse)
async def validate_tier_set(tiers: list[TierPayload]):
    """Validate a full tier set."""
    result = validate_tiers([PriceTier(**t.model_dump()) for t in tiers])
    return ValidationResponse(valid=result.valid, errors=result.errors, warnings=result.warnings)


@router.delete("/tiers/{tier_id}")
async def delete_tier(tier_id: str, service: CatalogService = Depends(get_catalog_service)):
    service.delete_tier(tier_id)
    return {"success": True, "message": f"Tier '{tier_id}' deleted"}
