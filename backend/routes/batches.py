# backend/routes/batches.py
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user, manager_required
from utils.audit import write_log, client_ip
from models.users import User
from models.product import Product, ProductBatch
from models.enums import InventoryType
from schemas.batch import BatchCreate, BatchOut

router = APIRouter(prefix="/product-batches", tags=["Batches"])


def _batch_out(batch: ProductBatch, with_reservation: bool) -> BatchOut:
    out = BatchOut.model_validate(batch)
    if not with_reservation:
        out.is_reserved = None
    return out


# List batches; reservation status is opt-in
@router.get("", response_model=List[BatchOut])
def list_batches(
    include_reservation_status: bool = Query(False, alias="includeReservationStatus"),
    product_id: Optional[int] = Query(None, alias="productId"),
    include_sold: bool = Query(True, alias="includeSold"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(ProductBatch)
    if product_id is not None:
        query = query.filter(ProductBatch.product_id == product_id)
    if not include_sold:
        query = query.filter(ProductBatch.is_sold == False)  # noqa: E712
    rows = query.order_by(ProductBatch.packed_at.asc(), ProductBatch.id.asc()).all()
    return [_batch_out(b, include_reservation_status) for b in rows]


@router.post("", response_model=BatchOut, status_code=201)
def create_batch(
    payload: BatchCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    product = db.query(Product).filter(Product.id == payload.product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    if product.inventory_type != InventoryType.VACUUM_PACKED:
        raise HTTPException(status_code=400, detail="Batches are only used for vacuum-packed products")

    number = payload.batch_number.strip().upper()
    if db.query(ProductBatch).filter(ProductBatch.batch_number == number).first():
        raise HTTPException(status_code=409, detail="Batch number already exists")

    batch = ProductBatch(**payload.model_dump(exclude={"batch_number"}), batch_number=number)
    db.add(batch)
    db.commit()
    db.refresh(batch)

    write_log(
        db, user_id=current_user.id, action="BATCH_CREATE", resource="batches", status="SUCCESS",
        ip=client_ip(request),
        meta={"batch_id": batch.id, "product_id": product.id, "weight": batch.actual_weight, "price": batch.unit_price},
    )
    return _batch_out(batch, True)


@router.delete("/{batch_id}", status_code=204)
def delete_batch(
    batch_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    batch = db.query(ProductBatch).filter(ProductBatch.id == batch_id).first()
    if not batch:
        raise HTTPException(status_code=404, detail="Batch not found")
    if batch.is_sold or batch.is_reserved:
        raise HTTPException(status_code=409, detail="Sold or reserved batches cannot be deleted")

    db.delete(batch)
    db.commit()
    write_log(db, user_id=current_user.id, action="BATCH_DELETE", resource="batches", status="SUCCESS",
              ip=client_ip(request), meta={"batch_id": batch_id})
