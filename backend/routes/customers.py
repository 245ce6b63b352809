# backend/routes/customers.py
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user, manager_required
from utils.audit import write_log, client_ip
from models.users import User
from models.customer import Customer
from models.order import Order
from schemas.customer import CustomerCreate, CustomerUpdate, CustomerOut, CustomerPage
from routes.orders import OPEN_STATUSES

router = APIRouter(prefix="/customers", tags=["Customers"])


def _get_or_404(db: Session, customer_id: int) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


def _phone_taken(db: Session, phone: str, exclude_id: Optional[int] = None) -> bool:
    q = db.query(Customer).filter(Customer.phone == phone)
    if exclude_id:
        q = q.filter(Customer.id != exclude_id)
    return q.first() is not None


@router.post("", response_model=CustomerOut, status_code=201)
def create_customer(
    payload: CustomerCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if _phone_taken(db, payload.phone):
        raise HTTPException(status_code=409, detail="A customer with this phone already exists")

    customer = Customer(**payload.model_dump())
    db.add(customer)
    db.commit()
    db.refresh(customer)

    write_log(db, user_id=current_user.id, action="CUSTOMER_CREATE", resource="customers",
              status="SUCCESS", ip=client_ip(request), meta={"customer_id": customer.id})
    return customer


# Search by name or phone, used by the customer selector
@router.get("", response_model=CustomerPage)
def list_customers(
    q: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Customer)
    if q:
        like = f"%{q.strip()}%"
        query = query.filter(or_(Customer.name.ilike(like), Customer.phone.like(like)))

    total = query.count()
    items = query.order_by(Customer.name.asc()).offset((page - 1) * page_size).limit(page_size).all()
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.get("/{customer_id}", response_model=CustomerOut)
def get_customer(
    customer_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_or_404(db, customer_id)


@router.patch("/{customer_id}", response_model=CustomerOut)
def update_customer(
    customer_id: int,
    payload: CustomerUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    customer = _get_or_404(db, customer_id)
    changes = payload.model_dump(exclude_unset=True)

    if changes.get("phone") and _phone_taken(db, changes["phone"], exclude_id=customer.id):
        raise HTTPException(status_code=409, detail="A customer with this phone already exists")

    for key, value in changes.items():
        setattr(customer, key, value)
    db.commit()
    db.refresh(customer)

    write_log(db, user_id=current_user.id, action="CUSTOMER_UPDATE", resource="customers",
              status="SUCCESS", ip=client_ip(request), meta={"customer_id": customer.id, "fields": sorted(changes)})
    return customer


@router.delete("/{customer_id}", status_code=204)
def delete_customer(
    customer_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    customer = _get_or_404(db, customer_id)
    open_orders = db.query(Order).filter(
        Order.customer_id == customer.id, Order.status.in_(OPEN_STATUSES)
    ).count()
    if open_orders:
        raise HTTPException(status_code=409, detail="Customer has open orders")

    db.delete(customer)
    try:
        db.commit()
    except IntegrityError:
        # Past sales and orders still reference the customer
        db.rollback()
        raise HTTPException(status_code=409, detail="Customer has sales or order history")
    write_log(db, user_id=current_user.id, action="CUSTOMER_DELETE", resource="customers",
              status="SUCCESS", ip=client_ip(request), meta={"customer_id": customer_id})
