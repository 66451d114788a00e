# Overview: Checkout engine; turns a cart into a committed sale and stock decrements.

"""
Checkout Service

WHY: The one operation that must never oversell. A cart is re-validated
against live stock, priced, and written as ONE atomic batch: the sale record
plus a conditional decrement per line. Either all of it lands or none does.

STATE MACHINE:
    IDLE -> VALIDATING -> COMMITTING -> COMMITTED
                 |             |
                 +--> FAILED <-+

- VALIDATING re-reads every line's stock (point reads, no cache) and only
  reads. Running it without committing never changes anything.
- COMMITTING issues the batch. Validation alone is not the correctness
  source: another checkout can commit between the two steps, so each
  decrement carries its own "quantity >= n" guard and a failed guard turns
  into InsufficientStock with a full rollback.
- Once the batch is issued it runs to commit or rollback; it cannot be
  cancelled halfway.

PAYMENT RULES (enforced here, never trusted from the caller):
- debt: 0 <= amount_paid <= total, amount_due = total - amount_paid
- cash / card / mobile_money: amount_paid = total, amount_due = 0

ERRORS: raised internally as CheckoutError subclasses and returned to the
caller inside a CheckoutResult. A database error at any step (stock read,
customer lookup, batch) comes back as a retryable CommitFailure. Nothing is
retried automatically; a caller retrying a CommitFailure starts again from
validation.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from flask import current_app, g
from sqlalchemy.exc import SQLAlchemyError

from ..cart import Cart, CartLine, VALID_PAYMENT_METHODS, PAYMENT_DEBT
from ..extensions import db
from ..models import Transaction, TransactionLine, WALK_IN_CUSTOMER_NAME
from ..money import Totals
from shopflow.time_utils import utcnow
from .catalog_service import CatalogError, read_product_stock
from .commit_service import (
    ABORT_CONDITION_FAILED,
    ConditionalDecrement,
    CreateRecord,
    atomic_commit,
)
from .customer_service import CustomerRef, resolve_customer


# =============================================================================
# STATES
# =============================================================================

STATE_IDLE = "IDLE"
STATE_VALIDATING = "VALIDATING"
STATE_COMMITTING = "COMMITTING"
STATE_COMMITTED = "COMMITTED"
STATE_FAILED = "FAILED"


# =============================================================================
# ERRORS
# =============================================================================

class CheckoutError(Exception):
    """Raised for checkout operation errors."""
    code = "CHECKOUT_ERROR"
    retryable = False

    def __init__(self, message: str, details: dict | None = None, code: str | None = None):
        super().__init__(message)
        self.details = details or {}
        if code:
            self.code = code

    def to_dict(self) -> dict:
        return {
            "error": str(self),
            "code": self.code,
            "details": self.details,
            "retryable": self.retryable,
        }


class EmptyCart(CheckoutError):
    code = "EMPTY_CART"

    def __init__(self):
        super().__init__("Cannot check out an empty cart")


class InsufficientStock(CheckoutError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(
            "Insufficient stock to complete sale",
            details={"product_id": product_id, "requested": requested, "available": available},
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class CommitFailure(CheckoutError):
    code = "COMMIT_FAILURE"
    retryable = True

    def __init__(self, cause: str, original: BaseException | None = None):
        super().__init__("Sale could not be saved; nothing was recorded", details={"cause": cause})
        self.cause = original


class InvalidPaymentState(CheckoutError):
    code = "INVALID_PAYMENT_STATE"


# =============================================================================
# VALUE OBJECTS
# =============================================================================

@dataclass(frozen=True)
class SellerIdentity:
    id: str
    display_name: str


@dataclass(frozen=True)
class PaymentBreakdown:
    method: str
    is_debt: bool
    amount_paid_cents: int
    amount_due_cents: int


@dataclass(frozen=True)
class CheckoutResult:
    transaction_id: Optional[int] = None
    error: Optional[CheckoutError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def resolve_seller_identity() -> Optional[SellerIdentity]:
    """Seller established by the request decorators (see decorators.require_seller)."""
    return getattr(g, "seller", None)


def resolve_payment(
    method: str,
    totals: Totals,
    amount_paid_cents: Optional[int],
) -> PaymentBreakdown:
    """
    Derive paid/due amounts for a payment method.

    Non-debt methods always settle in full; a differing caller amount is
    corrected (and logged by the engine), never stored.
    """
    if method not in VALID_PAYMENT_METHODS:
        raise InvalidPaymentState(
            f"Unknown payment method: {method}",
            details={"payment_method": method, "allowed": VALID_PAYMENT_METHODS},
        )

    total = totals.total_cents
    if method != PAYMENT_DEBT:
        return PaymentBreakdown(method=method, is_debt=False, amount_paid_cents=total, amount_due_cents=0)

    paid = 0 if amount_paid_cents is None else amount_paid_cents
    if paid < 0 or paid > total:
        raise InvalidPaymentState(
            "Amount paid must be between 0 and the sale total",
            details={"amount_paid_cents": paid, "total_cents": total},
        )
    return PaymentBreakdown(
        method=method,
        is_debt=True,
        amount_paid_cents=paid,
        amount_due_cents=totals.amount_due(paid),
    )


# =============================================================================
# ENGINE
# =============================================================================

class CheckoutEngine:
    """
    One checkout attempt pipeline. Collaborators are injectable so the
    validation source and the commit primitive can be swapped in tests;
    the defaults hit the database.

    Create one engine per request: `state` describes the latest attempt.
    """

    def __init__(
        self,
        *,
        tax_rate_bps: int,
        stock_reader: Callable[[int, int], int] = read_product_stock,
        committer: Callable[[list], object] = atomic_commit,
        customer_resolver: Callable[[int, Optional[int]], Optional[CustomerRef]] = resolve_customer,
        seller_resolver: Callable[[], Optional[SellerIdentity]] = resolve_seller_identity,
    ):
        self.tax_rate_bps = tax_rate_bps
        self.stock_reader = stock_reader
        self.committer = committer
        self.customer_resolver = customer_resolver
        self.seller_resolver = seller_resolver
        self.state = STATE_IDLE

    def checkout(
        self,
        cart: Cart,
        shop_id: int,
        seller: Optional[SellerIdentity] = None,
    ) -> CheckoutResult:
        """
        Validate and commit a cart. Never raises for checkout or database
        errors; the outcome (transaction id or error) is returned. The
        caller clears the cart.
        """
        self.state = STATE_IDLE
        try:
            seller = seller or self.seller_resolver()
            self._check_preconditions(cart, shop_id, seller)
            totals = cart.compute_totals(self.tax_rate_bps)
            payment = resolve_payment(cart.payment_method, totals, cart.amount_paid_cents)
            if (
                not payment.is_debt
                and cart.amount_paid_cents is not None
                and cart.amount_paid_cents != totals.total_cents
            ):
                current_app.logger.warning(
                    "Checkout shop=%s: amount_paid_cents=%s corrected to total %s for %s payment",
                    shop_id, cart.amount_paid_cents, totals.total_cents, payment.method,
                )

            self.validate(cart, shop_id)

            transaction_id = self._commit(cart, shop_id, seller, totals, payment)
        except CheckoutError as e:
            self.state = STATE_FAILED
            current_app.logger.info("Checkout shop=%s failed: %s %s", shop_id, e.code, e.details)
            return CheckoutResult(error=e)
        except SQLAlchemyError as e:
            # Store unavailable outside the batch (stock read or customer lookup)
            db.session.rollback()
            self.state = STATE_FAILED
            current_app.logger.error("Checkout shop=%s store error: %s", shop_id, e, exc_info=e)
            return CheckoutResult(error=CommitFailure(e.__class__.__name__, e))

        self.state = STATE_COMMITTED
        current_app.logger.info(
            "Checkout shop=%s committed transaction=%s lines=%s total_cents=%s method=%s",
            shop_id, transaction_id, len(cart.lines), totals.total_cents, payment.method,
        )
        return CheckoutResult(transaction_id=transaction_id)

    def _check_preconditions(self, cart: Cart, shop_id: int, seller: Optional[SellerIdentity]) -> None:
        # No I/O before these pass
        if cart.is_empty:
            raise EmptyCart()
        if cart.shop_id != shop_id or any(line.product.shop_id != shop_id for line in cart.lines):
            raise CheckoutError(
                "Cart belongs to a different shop",
                details={"shop_id": shop_id, "cart_shop_id": cart.shop_id},
                code="TENANT_MISMATCH",
            )
        if seller is None:
            raise CheckoutError("Seller identity required", code="SELLER_REQUIRED")

    def validate(self, cart: Cart, shop_id: int) -> None:
        """
        Re-read live stock for every line. Read-only; safe to repeat.

        Raises InsufficientStock for the first line that no longer fits.
        A product deleted since it was added reads as 0 available.
        """
        self.state = STATE_VALIDATING
        if cart.is_empty:
            raise EmptyCart()
        for line in cart.lines:
            try:
                available = self.stock_reader(shop_id, line.product_id)
            except CatalogError:
                available = 0
            if line.quantity > available:
                raise InsufficientStock(line.product_id, line.quantity, available)

    def _commit(
        self,
        cart: Cart,
        shop_id: int,
        seller: SellerIdentity,
        totals: Totals,
        payment: PaymentBreakdown,
    ) -> int:
        self.state = STATE_COMMITTING

        customer = self.customer_resolver(shop_id, cart.customer_id)
        if cart.customer_id is not None and customer is None:
            current_app.logger.warning(
                "Checkout shop=%s: customer %s not found, recording as walk-in", shop_id, cart.customer_id
            )

        record = build_transaction(shop_id, cart.lines, seller, customer, totals, self.tax_rate_bps, payment)
        writes = [CreateRecord(record)]
        writes.extend(
            ConditionalDecrement(shop_id=shop_id, product_id=line.product_id, amount=line.quantity)
            for line in cart.lines
        )

        outcome = self.committer(writes)
        if not outcome.committed:
            reason = outcome.abort_reason
            if reason.kind == ABORT_CONDITION_FAILED:
                raise InsufficientStock(
                    reason.details["product_id"],
                    reason.details["requested"],
                    reason.details["available"],
                )
            current_app.logger.error(
                "Checkout shop=%s commit rolled back: %s", shop_id, reason.message, exc_info=reason.cause
            )
            raise CommitFailure(reason.message, reason.cause)

        return record.id


def build_transaction(
    shop_id: int,
    lines: list[CartLine],
    seller: SellerIdentity,
    customer: Optional[CustomerRef],
    totals: Totals,
    tax_rate_bps: int,
    payment: PaymentBreakdown,
) -> Transaction:
    """
    Sale record with line snapshots: product name and effective unit price
    as of now, so later catalog edits never rewrite old receipts.
    """
    record = Transaction(
        shop_id=shop_id,
        occurred_at=utcnow(),
        subtotal_cents=totals.subtotal_cents,
        tax_cents=totals.tax_cents,
        total_cents=totals.total_cents,
        tax_rate_bps=tax_rate_bps,
        payment_method=payment.method,
        seller_id=seller.id,
        seller_name=seller.display_name,
        customer_id=customer.id if customer else None,
        customer_name=customer.name if customer else WALK_IN_CUSTOMER_NAME,
        is_debt=payment.is_debt,
        amount_paid_cents=payment.amount_paid_cents,
        amount_due_cents=payment.amount_due_cents,
    )
    for i, line in enumerate(lines):
        record.lines.append(TransactionLine(
            line_number=i + 1,
            product_id=line.product_id,
            product_name=line.product.name,
            quantity=line.quantity,
            unit_price_cents=line.unit_price_cents,
            line_total_cents=line.line_total_cents,
            variants=[v.to_dict() for v in line.selected_variants],
        ))
    return record


def checkout(
    cart: Cart,
    shop_id: int,
    seller: Optional[SellerIdentity] = None,
    *,
    tax_rate_bps: int | None = None,
) -> CheckoutResult:
    """Run a checkout with the database-backed collaborators."""
    if tax_rate_bps is None:
        tax_rate_bps = current_app.config.get("DEFAULT_TAX_RATE_BPS", 800)
    return CheckoutEngine(tax_rate_bps=tax_rate_bps).checkout(cart, shop_id, seller)
