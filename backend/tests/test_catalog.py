# Overview: Pytest coverage for catalog services and routes (stock reads, products, categories).

import pytest

from shopflow.services import catalog_service
from shopflow.services.catalog_service import CatalogError
from shopflow.validation import ConflictError


class TestStockQuery:
    def test_read_product_stock(self, db_session, shop, product):
        assert catalog_service.read_product_stock(shop.id, product.id) == 10

    def test_read_is_live_not_cached(self, db_session, shop, product):
        assert catalog_service.read_product_stock(shop.id, product.id) == 10
        db_session.execute(
            product.__table__.update().where(product.__table__.c.id == product.id).values(quantity=4)
        )
        db_session.commit()
        assert catalog_service.read_product_stock(shop.id, product.id) == 4

    def test_missing_product_raises(self, db_session, shop):
        with pytest.raises(CatalogError):
            catalog_service.read_product_stock(shop.id, 999999)

    def test_other_shop_reads_as_missing(self, db_session, shop, other_product):
        with pytest.raises(CatalogError):
            catalog_service.read_product_stock(shop.id, other_product.id)

    def test_stock_lookup_for_missing_is_zero(self, db_session, shop, product):
        lookup = catalog_service.stock_lookup_for(shop.id)
        assert lookup(product.id) == 10
        assert lookup(999999) == 0


class TestProducts:
    def test_list_products_is_shop_scoped(self, db_session, shop, product, other_product):
        names = [p.name for p in catalog_service.list_products(shop.id)]
        assert names == ["Espresso Beans"]

    def test_list_products_filters(self, db_session, shop, product, make_product):
        category = catalog_service.create_category(shop.id, "Dairy")
        make_product(shop, name="Oat Milk", quantity=3)
        milk = catalog_service.list_products(shop.id, search="milk")[0]
        milk.category_id = category.id
        db_session.commit()

        assert [p.name for p in catalog_service.list_products(shop.id, search="MILK")] == ["Oat Milk"]
        assert [p.name for p in catalog_service.list_products(shop.id, category_id=category.id)] == ["Oat Milk"]
        assert len(catalog_service.list_products(shop.id, limit=1)) == 1

    def test_low_stock(self, db_session, shop, product, make_product):
        make_product(shop, name="Nearly Gone", quantity=2)
        make_product(shop, name="Plenty", quantity=50)
        names = [p.name for p in catalog_service.list_low_stock(shop.id)]
        # threshold defaults to 10, so the 10-unit product counts as low too
        assert names == ["Nearly Gone", "Espresso Beans"]

    def test_find_by_code_then_id(self, db_session, shop, product):
        assert catalog_service.find_product_by_code(shop.id, "BEAN").id == product.id
        assert catalog_service.find_product_by_code(shop.id, str(product.id)).id == product.id
        assert catalog_service.find_product_by_code(shop.id, "NOPE") is None
        assert catalog_service.find_product_by_code(shop.id, "  ") is None

    def test_create_product_records_initial_quantity(self, db_session, shop):
        product = catalog_service.create_product(
            shop.id, {"name": "Kettle", "sales_price_cents": 2500, "quantity": 7}
        )
        assert product.quantity == 7
        assert product.initial_quantity == 7

    def test_duplicate_code_conflicts(self, db_session, shop, product):
        with pytest.raises(ConflictError):
            catalog_service.create_product(shop.id, {"name": "Copy", "code": "BEAN", "sales_price_cents": 1})

    def test_same_code_allowed_in_other_shop(self, db_session, shop, other_shop, product):
        created = catalog_service.create_product(
            other_shop.id, {"name": "Beans B", "code": "BEAN", "sales_price_cents": 1}
        )
        assert created.shop_id == other_shop.id

    def test_restock(self, db_session, shop, product, stock_of):
        catalog_service.restock_product(shop.id, product.id, 5)
        assert stock_of(product.id) == 15

    def test_restock_rejects_non_positive(self, db_session, shop, product):
        with pytest.raises(CatalogError):
            catalog_service.restock_product(shop.id, product.id, 0)

    def test_restock_other_shop_not_found(self, db_session, shop, other_product):
        with pytest.raises(CatalogError):
            catalog_service.restock_product(shop.id, other_product.id, 1)

    def test_delete_product(self, db_session, shop, product):
        product_id = product.id
        catalog_service.delete_product(shop.id, product_id)
        with pytest.raises(CatalogError):
            catalog_service.get_product(shop.id, product_id)

    def test_delete_other_shops_product_not_found(self, db_session, shop, other_product, stock_of):
        with pytest.raises(CatalogError):
            catalog_service.delete_product(shop.id, other_product.id)
        assert stock_of(other_product.id) == 5


class TestCategories:
    def test_create_and_list(self, db_session, shop, other_shop):
        catalog_service.create_category(shop.id, "Snacks")
        catalog_service.create_category(shop.id, "Drinks")
        catalog_service.create_category(other_shop.id, "Other")
        assert [c.name for c in catalog_service.list_categories(shop.id)] == ["Drinks", "Snacks"]

    def test_duplicate_conflicts(self, db_session, shop):
        catalog_service.create_category(shop.id, "Snacks")
        with pytest.raises(ConflictError):
            catalog_service.create_category(shop.id, "Snacks")

    def test_blank_name(self, db_session, shop):
        with pytest.raises(CatalogError):
            catalog_service.create_category(shop.id, "   ")


class TestCatalogRoutes:
    def test_list_products(self, client, db_session, shop, product):
        resp = client.get(f"/api/shops/{shop.id}/products")
        assert resp.status_code == 200
        assert [p["id"] for p in resp.get_json()["products"]] == [product.id]

    def test_list_limit_validated(self, client, db_session, shop):
        resp = client.get(f"/api/shops/{shop.id}/products?limit=0")
        assert resp.status_code == 400

    def test_get_product_other_shop_404(self, client, db_session, shop, other_product):
        resp = client.get(f"/api/shops/{shop.id}/products/{other_product.id}")
        assert resp.status_code == 404

    def test_lookup(self, client, db_session, shop, product):
        resp = client.get(f"/api/shops/{shop.id}/products/lookup?code=BEAN")
        assert resp.status_code == 200
        assert resp.get_json()["product"]["id"] == product.id

        assert client.get(f"/api/shops/{shop.id}/products/lookup?code=NOPE").status_code == 404
        assert client.get(f"/api/shops/{shop.id}/products/lookup").status_code == 400

    def test_low_stock_route(self, client, db_session, shop, product):
        resp = client.get(f"/api/shops/{shop.id}/products/low-stock")
        assert resp.status_code == 200
        assert resp.get_json()["products"][0]["is_low_stock"] is True

    def test_create_product(self, client, db_session, shop, seller_headers):
        resp = client.post(f"/api/shops/{shop.id}/products", headers=seller_headers, json={
            "name": "Logo T-Shirt",
            "code": "TEE",
            "sales_price_cents": 1800,
            "quantity": 12,
            "variants": [{"name": "Size XL", "value": "XL", "additional_price_cents": 200}],
        })
        assert resp.status_code == 201
        body = resp.get_json()["product"]
        assert body["quantity"] == 12
        assert body["variants"][0]["additional_price_cents"] == 200

    def test_create_product_validation(self, client, db_session, shop, seller_headers):
        resp = client.post(f"/api/shops/{shop.id}/products", headers=seller_headers, json={
            "name": "Bad", "sales_price_cents": -5,
        })
        assert resp.status_code == 400

        resp = client.post(f"/api/shops/{shop.id}/products", headers=seller_headers, json={
            "name": "Bad", "sales_price_cents": 100, "version_id": 9,
        })
        assert resp.status_code == 400

    def test_create_product_duplicate_code(self, client, db_session, shop, product, seller_headers):
        resp = client.post(f"/api/shops/{shop.id}/products", headers=seller_headers, json={
            "name": "Copy", "code": "BEAN", "sales_price_cents": 100,
        })
        assert resp.status_code == 409

    def test_create_requires_seller(self, client, db_session, shop):
        resp = client.post(f"/api/shops/{shop.id}/products", json={"name": "X", "sales_price_cents": 1})
        assert resp.status_code == 401

    def test_restock_route(self, client, db_session, shop, product, seller_headers):
        resp = client.post(
            f"/api/shops/{shop.id}/products/{product.id}/restock",
            headers=seller_headers,
            json={"quantity": 3},
        )
        assert resp.status_code == 200
        assert resp.get_json()["product"]["quantity"] == 13

        resp = client.post(
            f"/api/shops/{shop.id}/products/{product.id}/restock",
            headers=seller_headers,
            json={"quantity": "2.5"},
        )
        assert resp.status_code == 400

    def test_categories_routes(self, client, db_session, shop, seller_headers):
        resp = client.post(f"/api/shops/{shop.id}/categories", headers=seller_headers, json={"name": "Snacks"})
        assert resp.status_code == 201
        resp = client.post(f"/api/shops/{shop.id}/categories", headers=seller_headers, json={"name": "Snacks"})
        assert resp.status_code == 409

        resp = client.get(f"/api/shops/{shop.id}/categories")
        assert [c["name"] for c in resp.get_json()["categories"]] == ["Snacks"]

    def test_recent_products_route(self, client, db_session, shop, product, make_product):
        newer = make_product(shop, name="Newer", quantity=1)
        resp = client.get(f"/api/shops/{shop.id}/products/recent")
        assert resp.status_code == 200
        ids = [p["id"] for p in resp.get_json()["products"]]
        assert set(ids) == {product.id, newer.id}

    def test_delete_product_route(self, client, db_session, shop, product, seller_headers):
        product_id = product.id
        resp = client.delete(f"/api/shops/{shop.id}/products/{product_id}", headers=seller_headers)
        assert resp.status_code == 200
        assert resp.get_json() == {"deleted": product_id}

        assert client.get(f"/api/shops/{shop.id}/products/{product_id}").status_code == 404
        resp = client.delete(f"/api/shops/{shop.id}/products/{product_id}", headers=seller_headers)
        assert resp.status_code == 404

    def test_delete_product_requires_seller(self, client, db_session, shop, product):
        assert client.delete(f"/api/shops/{shop.id}/products/{product.id}").status_code == 401
