# Overview: Pytest coverage for health/version endpoints and the shops CLI group.

from shopflow.models import Shop, Product, Customer


def test_health(client, db_session, shop):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "healthy"
    assert body["checks"]["database"]["details"]["shops"] == 1
    assert body["timestamp"].endswith("Z")


def test_version(client):
    body = client.get("/version").get_json()
    assert body["api_version"]
    assert "python_version" in body


def test_cors_for_known_origin(client, db_session, shop):
    resp = client.get(f"/api/shops/{shop.id}/products", headers={"Origin": "http://localhost:3000"})
    assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"
    assert "X-Seller-Id" in resp.headers["Access-Control-Allow-Headers"]

    resp = client.get(f"/api/shops/{shop.id}/products", headers={"Origin": "http://evil.example"})
    assert "Access-Control-Allow-Origin" not in resp.headers


class TestShopsCli:
    def test_create_shop_uses_config_defaults(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["shops", "create", "--name", "Corner", "--code", "CORNER"])
        assert "PASS Created shop" in result.output

        shop = db_session.query(Shop).filter_by(code="CORNER").one()
        assert shop.tax_rate_bps == app.config["DEFAULT_TAX_RATE_BPS"]
        assert shop.currency == app.config["DEFAULT_CURRENCY"]

    def test_create_shop_duplicate_code(self, app, db_session, shop):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["shops", "create", "--name", "Again", "--code", shop.code])
        assert "FAIL" in result.output

    def test_seed_demo_is_repeatable(self, app, db_session, shop):
        runner = app.test_cli_runner()
        first = runner.invoke(args=["shops", "seed-demo", "--shop-id", str(shop.id)])
        second = runner.invoke(args=["shops", "seed-demo", "--shop-id", str(shop.id)])

        assert "PASS Created product" in first.output
        assert "already exists" in second.output
        assert db_session.query(Product).filter_by(shop_id=shop.id).count() == 3
        assert db_session.query(Customer).filter_by(shop_id=shop.id).count() == 1

    def test_low_stock_listing(self, app, db_session, shop, make_product):
        make_product(shop, name="Nearly Gone", quantity=1, price_cents=250)
        runner = app.test_cli_runner()
        result = runner.invoke(args=["shops", "low-stock", "--shop-id", str(shop.id)])
        assert "Nearly Gone" in result.output
        assert "USD 2.50" in result.output

    def test_unknown_shop(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["shops", "low-stock", "--shop-id", "9999"])
        assert "FAIL Shop ID 9999 not found" in result.output
