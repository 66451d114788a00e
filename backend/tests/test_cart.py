# Overview: Pytest coverage for the session cart (no database).

from shopflow.cart import (
    Cart,
    CartProduct,
    ProductVariant,
    PAYMENT_CARD,
    PAYMENT_CASH,
    PAYMENT_DEBT,
    REASON_INVALID_QUANTITY,
    REASON_NOT_IN_CART,
    REASON_OUT_OF_STOCK,
    REASON_STOCK_LIMIT,
    REASON_UNKNOWN_VARIANT,
    REASON_VARIANT_MISMATCH,
    REASON_WRONG_SHOP,
)


def snapshot(pid=1, shop_id=1, price=1000, quantity=5, variants=()):
    return CartProduct(
        id=pid,
        shop_id=shop_id,
        name=f"Product {pid}",
        sales_price_cents=price,
        quantity=quantity,
        variants=tuple(variants),
    )


class TestAddLine:
    def test_new_line(self):
        cart = Cart(shop_id=1)
        update = cart.add_line(snapshot(), 2)
        assert update
        assert cart.get_line(1).quantity == 2
        assert cart.item_count == 2

    def test_existing_line_accumulates(self):
        cart = Cart(shop_id=1)
        cart.add_line(snapshot(), 2)
        update = cart.add_line(snapshot(), 3)
        assert update.accepted
        assert cart.get_line(1).quantity == 5
        assert len(cart.lines) == 1

    def test_existing_line_over_stock_rejected_softly(self):
        cart = Cart(shop_id=1)
        cart.add_line(snapshot(quantity=5), 4)
        update = cart.add_line(snapshot(quantity=5), 2)
        assert not update
        assert update.reason == REASON_STOCK_LIMIT
        assert update.is_stock_limit
        assert update.available == 5
        assert cart.get_line(1).quantity == 4

    def test_out_of_stock_rejected(self):
        cart = Cart(shop_id=1)
        update = cart.add_line(snapshot(quantity=0))
        assert update.reason == REASON_OUT_OF_STOCK
        assert cart.is_empty

    def test_request_over_stock_rejected(self):
        cart = Cart(shop_id=1)
        update = cart.add_line(snapshot(quantity=3), 5)
        assert update.reason == REASON_STOCK_LIMIT
        assert update.available == 3
        assert cart.is_empty

    def test_zero_quantity_rejected(self):
        cart = Cart(shop_id=1)
        update = cart.add_line(snapshot(), 0)
        assert update.reason == REASON_INVALID_QUANTITY
        assert cart.is_empty

    def test_other_shop_product_rejected(self):
        cart = Cart(shop_id=1)
        update = cart.add_line(snapshot(shop_id=2))
        assert update.reason == REASON_WRONG_SHOP
        assert cart.is_empty

    def test_variants_add_to_unit_price(self):
        size_xl = ProductVariant(name="Size XL", value="XL", additional_price_cents=200)
        cart = Cart(shop_id=1)
        cart.add_line(snapshot(price=1800, variants=[size_xl]), 2, variants=["Size XL"])
        line = cart.get_line(1)
        assert line.unit_price_cents == 2000
        assert line.line_total_cents == 4000

    def test_unknown_variant_rejected(self):
        cart = Cart(shop_id=1)
        update = cart.add_line(snapshot(), 1, variants=["Nope"])
        assert update.reason == REASON_UNKNOWN_VARIANT
        assert cart.is_empty

    def test_existing_line_keeps_its_variants(self):
        size_xl = ProductVariant(name="Size XL", additional_price_cents=200)
        product = snapshot(variants=[size_xl])
        cart = Cart(shop_id=1)
        cart.add_line(product, 1, variants=["Size XL"])
        cart.add_line(product, 1)
        line = cart.get_line(1)
        assert line.quantity == 2
        assert line.selected_variants == (size_xl,)

    def test_different_variants_on_existing_line_rejected(self):
        size_xl = ProductVariant(name="Size XL", additional_price_cents=200)
        size_s = ProductVariant(name="Size S")
        product = snapshot(variants=[size_xl, size_s])
        cart = Cart(shop_id=1)
        cart.add_line(product, 1, variants=["Size XL"])

        update = cart.add_line(product, 1, variants=["Size S"])
        assert not update
        assert update.reason == REASON_VARIANT_MISMATCH
        assert cart.get_line(1).quantity == 1

        assert cart.add_line(product, 1, variants=["Size XL"])
        assert cart.get_line(1).quantity == 2


class TestSetLineQuantity:
    def test_zero_removes_line(self):
        cart = Cart(shop_id=1)
        cart.add_line(snapshot(), 2)
        update = cart.set_line_quantity(1, 0)
        assert update
        assert cart.is_empty

    def test_negative_removes_line(self):
        cart = Cart(shop_id=1)
        cart.add_line(snapshot(), 2)
        cart.set_line_quantity(1, -3)
        assert cart.get_line(1) is None

    def test_checked_against_live_stock(self):
        live = {1: 5}
        cart = Cart(shop_id=1, stock_lookup=lambda pid: live[pid])
        cart.add_line(snapshot(quantity=5), 1)

        # Sold elsewhere since the line was added
        live[1] = 2
        update = cart.set_line_quantity(1, 3)
        assert not update
        assert update.reason == REASON_STOCK_LIMIT
        assert update.available == 2
        assert cart.get_line(1).quantity == 1

        assert cart.set_line_quantity(1, 2)
        assert cart.get_line(1).quantity == 2

    def test_falls_back_to_snapshot_without_lookup(self):
        cart = Cart(shop_id=1)
        cart.add_line(snapshot(quantity=3), 1)
        assert not cart.set_line_quantity(1, 4)
        assert cart.set_line_quantity(1, 3)

    def test_unknown_line(self):
        cart = Cart(shop_id=1)
        update = cart.set_line_quantity(99, 1)
        assert update.reason == REASON_NOT_IN_CART

    def test_remove_line(self):
        cart = Cart(shop_id=1)
        cart.add_line(snapshot(), 1)
        assert cart.remove_line(1)
        assert cart.is_empty


class TestTotalsAndSelections:
    def test_compute_totals(self):
        cart = Cart(shop_id=1)
        cart.add_line(snapshot(pid=1, price=1000, quantity=10), 2)
        totals = cart.compute_totals(800)
        assert totals.total_cents == 2160

    def test_compute_totals_is_pure(self):
        cart = Cart(shop_id=1)
        cart.add_line(snapshot(), 2)
        assert cart.compute_totals(800) == cart.compute_totals(800)
        assert cart.get_line(1).quantity == 2

    def test_amount_paid_kept_only_for_debt(self):
        cart = Cart(shop_id=1)
        cart.select_payment(PAYMENT_DEBT, 4000)
        assert cart.amount_paid_cents == 4000
        cart.select_payment(PAYMENT_CASH, 4000)
        assert cart.amount_paid_cents is None

    def test_clear_resets_everything(self):
        cart = Cart(shop_id=1)
        cart.add_line(snapshot(), 1)
        cart.select_customer(7)
        cart.select_payment(PAYMENT_DEBT, 100)
        cart.clear()
        assert cart.is_empty
        assert cart.customer_id is None
        assert cart.payment_method == PAYMENT_CARD
        assert cart.amount_paid_cents is None
