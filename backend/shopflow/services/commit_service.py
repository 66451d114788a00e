# Overview: Atomic multi-write commits; one database transaction per batch.

"""
Atomic Commit Service

A batch is an ordered list of writes applied inside ONE database
transaction. Either every write lands or none does:

- CreateRecord: insert a model instance (and anything cascaded from it)
- ConditionalDecrement: quantity = quantity - n only where quantity >= n

A ConditionalDecrement that matches no row aborts the whole batch with a
CONDITION_FAILED reason (carrying the freshly read quantity). Any database
error aborts it with STORE_ERROR. Both roll back; nothing is retried here.

Writes are applied in list order, so a record created first is rolled back
together with any decrement that fails after it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Product
from .concurrency import begin_write_transaction

ABORT_CONDITION_FAILED = "CONDITION_FAILED"
ABORT_STORE_ERROR = "STORE_ERROR"


class ConditionFailed(Exception):
    """A conditional write found its guard false."""
    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(f"Conditional decrement failed for product {product_id}")
        self.product_id = product_id
        self.requested = requested
        self.available = available


@dataclass
class CreateRecord:
    record: Any

    def apply(self) -> None:
        db.session.add(self.record)
        db.session.flush()  # assigns ids without committing


@dataclass
class ConditionalDecrement:
    shop_id: int
    product_id: int
    amount: int

    def apply(self) -> None:
        stmt = (
            update(Product)
            .where(
                Product.id == self.product_id,
                Product.shop_id == self.shop_id,
                Product.quantity >= self.amount,
            )
            .values(
                quantity=Product.quantity - self.amount,
                version_id=Product.version_id + 1,
            )
            .execution_options(synchronize_session=False)
        )
        result = db.session.execute(stmt)
        if result.rowcount != 1:
            available = (
                db.session.query(Product.quantity)
                .filter(Product.id == self.product_id, Product.shop_id == self.shop_id)
                .scalar()
            )
            raise ConditionFailed(self.product_id, self.amount, int(available or 0))


@dataclass(frozen=True)
class AbortReason:
    kind: str
    message: str
    details: dict = field(default_factory=dict)
    cause: BaseException | None = None


@dataclass(frozen=True)
class CommitOutcome:
    committed: bool
    abort_reason: AbortReason | None = None

    def __bool__(self) -> bool:
        return self.committed


def atomic_commit(writes: list) -> CommitOutcome:
    """
    Apply writes in one transaction; commit on success, roll back on any failure.

    Returns a CommitOutcome instead of raising so the caller can map the
    abort reason onto its own error types.
    """
    try:
        begin_write_transaction()
        for write in writes:
            write.apply()
        db.session.commit()
    except ConditionFailed as exc:
        db.session.rollback()
        return CommitOutcome(
            committed=False,
            abort_reason=AbortReason(
                kind=ABORT_CONDITION_FAILED,
                message=str(exc),
                details={
                    "product_id": exc.product_id,
                    "requested": exc.requested,
                    "available": exc.available,
                },
            ),
        )
    except SQLAlchemyError as exc:
        db.session.rollback()
        return CommitOutcome(
            committed=False,
            abort_reason=AbortReason(
                kind=ABORT_STORE_ERROR,
                message=exc.__class__.__name__,
                cause=exc,
            ),
        )
    return CommitOutcome(committed=True)
