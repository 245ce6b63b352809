# backend/utils/batches.py
"""
Availability and claiming of pre-weighed batches.

A batch is claimed with a single conditional UPDATE that only matches while the
batch is still free. Two terminals racing for the same batch cannot both win:
the loser sees zero updated rows and gets BatchUnavailableError.
"""
import logging
from typing import Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.product import ProductBatch
from utils.cart_engine import BatchUnavailableError

logger = logging.getLogger(__name__)


def is_available(batch, order_id: Optional[int] = None) -> bool:
    if batch.is_sold:
        return False
    return batch.reserved_order_id is None or (
        order_id is not None and batch.reserved_order_id == order_id
    )


def filter_available(batches: Iterable, product_id: int, exclude_ids: Iterable[int] = (),
                     order_id: Optional[int] = None) -> List:
    excluded = set(exclude_ids)
    return [
        b for b in batches
        if b.product_id == product_id and is_available(b, order_id) and b.id not in excluded
    ]


def load_available_batches(db: Session, product_id: int, exclude_ids: Iterable[int] = (),
                           order_id: Optional[int] = None) -> List[ProductBatch]:
    try:
        rows = (db.query(ProductBatch)
                .filter(ProductBatch.product_id == product_id)
                .order_by(ProductBatch.packed_at.asc(), ProductBatch.id.asc())
                .all())
    except SQLAlchemyError as e:
        # Degrade to "no batches available"
        logger.error("Error loading batches for product %s: %s", product_id, e)
        return []
    return filter_available(rows, product_id, exclude_ids, order_id)


def _claim(db: Session, batch_id: int, values: dict, order_id: Optional[int] = None) -> None:
    q = db.query(ProductBatch).filter(ProductBatch.id == batch_id, ProductBatch.is_sold == False)  # noqa: E712
    if order_id is not None:
        q = q.filter(or_(ProductBatch.reserved_order_id.is_(None),
                         ProductBatch.reserved_order_id == order_id))
    else:
        q = q.filter(ProductBatch.reserved_order_id.is_(None))

    updated = q.update(values, synchronize_session="fetch")
    if updated != 1:
        raise BatchUnavailableError(f"Batch {batch_id} was taken by another sale or order")


def claim_for_sale(db: Session, batch_id: int, sale_id: int, order_id: Optional[int] = None) -> None:
    """Mark a batch sold. Batches reserved by `order_id` may be claimed too."""
    _claim(db, batch_id, {
        ProductBatch.is_sold: True,
        ProductBatch.sale_id: sale_id,
        ProductBatch.reserved_order_id: None,
    }, order_id=order_id)


def reserve_for_order(db: Session, batch_id: int, order_id: int) -> None:
    _claim(db, batch_id, {ProductBatch.reserved_order_id: order_id})


def release_order_reservations(db: Session, order_id: int) -> int:
    return (db.query(ProductBatch)
            .filter(ProductBatch.reserved_order_id == order_id, ProductBatch.is_sold == False)  # noqa: E712
            .update({ProductBatch.reserved_order_id: None}, synchronize_session="fetch"))


def release_sale(db: Session, sale_id: int) -> int:
    return (db.query(ProductBatch)
            .filter(ProductBatch.sale_id == sale_id)
            .update({ProductBatch.is_sold: False, ProductBatch.sale_id: None},
                    synchronize_session="fetch"))


def sell_order_reservations(db: Session, order_id: int) -> int:
    """Mark every batch still held by an order as sold, for orders handed over without a sale."""
    return (db.query(ProductBatch)
            .filter(ProductBatch.reserved_order_id == order_id, ProductBatch.is_sold == False)  # noqa: E712
            .update({ProductBatch.is_sold: True, ProductBatch.reserved_order_id: None},
                    synchronize_session="fetch"))


def restore_order_reservations(db: Session, order_id: int, batch_ids: Iterable[int]) -> int:
    # Only packages nobody else has sold or reserved meanwhile
    ids = list(batch_ids)
    if not ids:
        return 0
    return (db.query(ProductBatch)
            .filter(ProductBatch.id.in_(ids), ProductBatch.is_sold == False,  # noqa: E712
                    ProductBatch.reserved_order_id.is_(None))
            .update({ProductBatch.reserved_order_id: order_id}, synchronize_session="fetch"))
