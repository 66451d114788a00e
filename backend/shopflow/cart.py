"""
Session-local shopping cart.

The cart never touches the database directly. It holds product snapshots
taken when lines were added, and re-checks quantity updates against a live
stock lookup supplied by the caller (stock can change between add and
checkout). Stock problems are reported through CartUpdate results, never
raised; the caller decides how to surface them.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from .money import Totals, compute_totals, line_total_cents

PAYMENT_CASH = "cash"
PAYMENT_CARD = "card"
PAYMENT_MOBILE_MONEY = "mobile_money"
PAYMENT_DEBT = "debt"

VALID_PAYMENT_METHODS = [
    PAYMENT_CASH,
    PAYMENT_CARD,
    PAYMENT_MOBILE_MONEY,
    PAYMENT_DEBT,
]

DEFAULT_PAYMENT_METHOD = PAYMENT_CARD

# CartUpdate rejection reasons
REASON_STOCK_LIMIT = "STOCK_LIMIT"
REASON_OUT_OF_STOCK = "OUT_OF_STOCK"
REASON_INVALID_QUANTITY = "INVALID_QUANTITY"
REASON_UNKNOWN_VARIANT = "UNKNOWN_VARIANT"
REASON_VARIANT_MISMATCH = "VARIANT_MISMATCH"
REASON_WRONG_SHOP = "WRONG_SHOP"
REASON_NOT_IN_CART = "NOT_IN_CART"


@dataclass(frozen=True)
class ProductVariant:
    name: str
    value: str = ""
    additional_price_cents: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> "ProductVariant":
        return cls(
            name=str(data.get("name", "")),
            value=str(data.get("value", "")),
            additional_price_cents=int(data.get("additional_price_cents") or 0),
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "value": self.value,
            "additional_price_cents": self.additional_price_cents,
        }


@dataclass(frozen=True)
class CartProduct:
    """Product snapshot held by a cart line (name/price/stock as read at add time)."""
    id: int
    shop_id: int
    name: str
    sales_price_cents: int
    quantity: int
    variants: tuple[ProductVariant, ...] = ()

    @classmethod
    def from_model(cls, product) -> "CartProduct":
        return cls(
            id=product.id,
            shop_id=product.shop_id,
            name=product.name,
            sales_price_cents=product.sales_price_cents,
            quantity=product.quantity,
            variants=tuple(ProductVariant.from_dict(v) for v in (product.variants or [])),
        )

    def variant(self, name: str) -> Optional[ProductVariant]:
        for v in self.variants:
            if v.name == name:
                return v
        return None


@dataclass
class CartLine:
    product: CartProduct
    quantity: int
    selected_variants: tuple[ProductVariant, ...] = ()

    @property
    def product_id(self) -> int:
        return self.product.id

    @property
    def unit_price_cents(self) -> int:
        """Sales price plus the additional price of every selected variant."""
        return self.product.sales_price_cents + sum(v.additional_price_cents for v in self.selected_variants)

    @property
    def line_total_cents(self) -> int:
        return line_total_cents(self.unit_price_cents, self.quantity)


@dataclass(frozen=True)
class CartUpdate:
    """Outcome of a cart mutation. Falsy when the change was rejected."""
    accepted: bool
    product_id: int
    quantity: int
    available: Optional[int] = None
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.accepted

    @property
    def is_stock_limit(self) -> bool:
        return self.reason in (REASON_STOCK_LIMIT, REASON_OUT_OF_STOCK)


@dataclass
class Cart:
    shop_id: int
    stock_lookup: Optional[Callable[[int], int]] = None
    customer_id: Optional[int] = None
    payment_method: str = DEFAULT_PAYMENT_METHOD
    amount_paid_cents: Optional[int] = None
    _lines: dict[int, CartLine] = field(default_factory=dict, init=False, repr=False)

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def get_line(self, product_id: int) -> Optional[CartLine]:
        return self._lines.get(product_id)

    def add_line(
        self,
        product: CartProduct,
        requested_qty: int = 1,
        variants: Iterable[str] = (),
    ) -> CartUpdate:
        """
        Add a product, or bump the quantity of its existing line.

        Variant names are resolved against the product when the line is
        created. Bumping an existing line keeps its variants; naming
        different ones is rejected with VARIANT_MISMATCH.
        """
        if product.shop_id != self.shop_id:
            return CartUpdate(False, product.id, requested_qty, reason=REASON_WRONG_SHOP)
        if requested_qty < 1:
            return CartUpdate(False, product.id, requested_qty, reason=REASON_INVALID_QUANTITY)

        existing = self._lines.get(product.id)
        if existing is not None:
            variants = tuple(variants)
            if variants and variants != tuple(v.name for v in existing.selected_variants):
                return CartUpdate(False, product.id, requested_qty, reason=REASON_VARIANT_MISMATCH)
            new_qty = existing.quantity + requested_qty
            if new_qty > product.quantity:
                return CartUpdate(
                    False, product.id, new_qty, available=product.quantity, reason=REASON_STOCK_LIMIT
                )
            existing.quantity = new_qty
            existing.product = product
            return CartUpdate(True, product.id, new_qty, available=product.quantity)

        if product.quantity <= 0:
            return CartUpdate(False, product.id, requested_qty, available=0, reason=REASON_OUT_OF_STOCK)
        if requested_qty > product.quantity:
            return CartUpdate(
                False, product.id, requested_qty, available=product.quantity, reason=REASON_STOCK_LIMIT
            )

        selected = []
        for name in variants:
            variant = product.variant(name)
            if variant is None:
                return CartUpdate(False, product.id, requested_qty, reason=REASON_UNKNOWN_VARIANT)
            selected.append(variant)

        self._lines[product.id] = CartLine(
            product=product,
            quantity=requested_qty,
            selected_variants=tuple(selected),
        )
        return CartUpdate(True, product.id, requested_qty, available=product.quantity)

    def set_line_quantity(self, product_id: int, new_qty: int) -> CartUpdate:
        """
        Set a line's quantity; <= 0 removes the line.

        Checked against the live stock lookup when configured, so a product
        sold elsewhere since it was added cannot be bumped past what is left.
        """
        line = self._lines.get(product_id)
        if line is None:
            return CartUpdate(False, product_id, new_qty, reason=REASON_NOT_IN_CART)

        if new_qty <= 0:
            del self._lines[product_id]
            return CartUpdate(True, product_id, 0)

        available = self._current_stock(line)
        if new_qty > available:
            return CartUpdate(False, product_id, new_qty, available=available, reason=REASON_STOCK_LIMIT)

        line.quantity = new_qty
        return CartUpdate(True, product_id, new_qty, available=available)

    def remove_line(self, product_id: int) -> CartUpdate:
        return self.set_line_quantity(product_id, 0)

    def _current_stock(self, line: CartLine) -> int:
        if self.stock_lookup is None:
            return line.product.quantity
        return self.stock_lookup(line.product_id)

    def select_customer(self, customer_id: Optional[int]) -> None:
        self.customer_id = customer_id

    def select_payment(self, method: str, amount_paid_cents: Optional[int] = None) -> None:
        """Only debt sales carry a caller-chosen amount; everything else pays in full."""
        self.payment_method = method
        self.amount_paid_cents = amount_paid_cents if method == PAYMENT_DEBT else None

    def compute_totals(self, tax_rate_bps: int) -> Totals:
        return compute_totals(
            ((line.unit_price_cents, line.quantity) for line in self._lines.values()),
            tax_rate_bps,
        )

    def clear(self) -> None:
        self._lines.clear()
        self.customer_id = None
        self.payment_method = DEFAULT_PAYMENT_METHOD
        self.amount_paid_cents = None
