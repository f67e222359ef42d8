"""
API tests using FastAPI's TestClient against the demo catalog.
"""
import pytest
from fastapi.testclient import TestClient

from shop_pricing.api.main import app
from shop_pricing.api.state import get_catalog_service


@pytest.fixture
def client(catalog_service):
    app.dependency_overrides[get_catalog_service] = lambda: catalog_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "online"


def test_system_status(client):
    response = client.get("/system/status")
    assert response.status_code == 200
    assert response.json()["catalog"]["products"] == 6


def test_reload(client):
    response = client.post("/system/reload")
    assert response.json() == {"success": True, "products": 6, "tiers": 5}


class TestAdHocPrice:

    def test_suggested_price(self, client):
        response = client.post("/price", json={
            "product": {"base_cost": 10, "labor_cost": 5, "waste_percentage": 10, "profit_margin": 30},
            "quantity": 1,
        })
        assert response.status_code == 200
        body = response.json()
        assert body["unit_price"] == pytest.approx(21.45)
        assert body["promotion_active"] is False

    def test_promotion_with_explicit_now(self, client):
        response = client.post("/price", json={
            "product": {
                "final_price": 75,
                "promo_price": 50,
                "promo_start_at": "2026-01-01T00:00:00Z",
                "promo_end_at": "2026-01-31T23:59:59Z",
            },
            "quantity": 10,
            "tiers": [{"min_quantity": 10, "price": 60}],
            "now": "2026-01-31T23:59:59Z",
        })
        body = response.json()
        assert body == {"unit_price": 50, "base_price": 60, "promotion_active": True}

    def test_rejects_negative_quantity(self, client):
        response = client.post("/price", json={"product": {}, "quantity": -1})
        assert response.status_code == 422


class TestProductPrice:

    def test_tiered_quote(self, client):
        response = client.get("/products/p-cards/price", params={"quantity": 500})
        body = response.json()

        assert response.status_code == 200
        assert body["source"] == "tier"
        assert body["unit_price"] == pytest.approx(0.35)
        assert body["tier_used"] == "500–999"
        assert body["quantity_errors"] == []
        assert body["trace"][0]["step"] == "Product Lookup"

    def test_attributes_and_quantity_errors(self, client):
        response = client.get(
            "/products/p-cards/price",
            params={"quantity": 50, "attribute_value_ids": ["lamination-matte", "rounded-corners"]},
        )
        body = response.json()

        assert body["unit_price"] == pytest.approx(0.3388 + 0.08)
        assert body["quantity_errors"] == ["Minimum order quantity for Business Cards 300g is 100"]

    def test_unknown_product(self, client):
        response = client.get("/products/nope/price")
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    def test_costs(self, client):
        body = client.get("/products/p-mug/costs").json()
        assert body["supplies_cost"] == 6
        assert body["min_resale_price"] == pytest.approx(25.41)


def test_catalog(client):
    items = client.get("/catalog").json()
    assert [item["id"] for item in items] == ["p-cards", "p-banner", "p-mug", "p-sticker"]


class TestTiers:

    def test_list(self, client):
        tiers = client.get("/products/p-cards/tiers").json()
        assert [t["min_quantity"] for t in tiers] == [100, 500, 1000]
        assert [t["id"] for t in tiers] == ["t-cards-1", "t-cards-2", "t-cards-3"]
        assert all(t["product_id"] == "p-cards" for t in tiers)
        assert tiers[-1]["max_quantity"] is None

    def test_create(self, client):
        response = client.post("/products/p-mug/tiers", json={"min_quantity": 10, "price": 40})
        assert response.status_code == 201
        assert response.json()["warnings"] == []
        assert len(client.get("/products/p-mug/tiers").json()) == 1

    def test_create_overlapping(self, client):
        response = client.post(
            "/products/p-cards/tiers", json={"min_quantity": 200, "max_quantity": 300, "price": 0.4}
        )
        assert response.status_code == 201
        assert response.json()["warnings"]

    def test_create_invalid(self, client):
        response = client.post(
            "/products/p-mug/tiers", json={"min_quantity": 10, "max_quantity": 5, "price": 40}
        )
        assert response.status_code == 400
        assert response.json()["code"] == "validation_error"

    def test_create_for_unknown_product(self, client):
        response = client.post("/products/nope/tiers", json={"min_quantity": 1, "price": 1})
        assert response.status_code == 404

    def test_validate_against_stored(self, client):
        response = client.post("/products/p-cards/tiers/validate", json={"min_quantity": 900, "price": 0.3})
        body = response.json()
        assert body["valid"] is True
        assert body["warnings"]

    def test_validate_set(self, client):
        response = client.post("/tiers/validate", json=[
            {"min_quantity": 1, "max_quantity": 9, "price": 100},
            {"min_quantity": 10, "price": 90},
        ])
        assert response.json() == {"valid": True, "errors": [], "warnings": []}

    def test_delete(self, client):
        assert client.delete("/tiers/t-cards-1").status_code == 200
        response = client.delete("/tiers/t-cards-1")
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    def test_delete_listed_tier(self, client):
        created = client.post("/products/p-mug/tiers", json={"min_quantity": 10, "price": 40}).json()["tier"]
        listed = client.get("/products/p-mug/tiers").json()
        assert [t["id"] for t in listed] == [created["id"]]

        assert client.delete(f"/tiers/{listed[0]['id']}").status_code == 200
        assert client.get("/products/p-mug/tiers").json() == []


class TestProductCodes:

    def test_update(self, client):
        response = client.patch("/products/p-mug", json={"sku": "MUG-BLK", "barcode": "7891234567895"})
        assert response.status_code == 200
        assert response.json() == {"id": "p-mug", "sku": "MUG-BLK", "barcode": "7891234567895"}

    def test_duplicate_sku_is_conflict(self, client):
        response = client.patch("/products/p-mug", json={"sku": "CARD-300"})
        assert response.status_code == 409
        assert response.json()["code"] == "23505"

    def test_unknown_product(self, client):
        response = client.patch("/products/nope", json={"sku": "X"})
        assert response.status_code == 404


def test_supplies(client):
    lines = client.get("/products/p-mug/supplies").json()
    assert lines == [{
        "supply_id": "s-mug",
        "name": "White ceramic mug",
        "unit": "un",
        "quantity": 1.0,
        "cost_per_unit": 6.0,
        "cost": 6.0,
    }]


def test_unexpected_errors_are_not_mapped(catalog_service, monkeypatch):
    def broken():
        raise KeyError("image_url")

    monkeypatch.setattr(catalog_service, "public_catalog", broken)
    app.dependency_overrides[get_catalog_service] = lambda: catalog_service
    try:
        with TestClient(app, raise_server_exceptions=False) as test_client:
            response = test_client.get("/catalog")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
