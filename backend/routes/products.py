# backend/routes/products.py
from typing import Optional, List
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import or_
from sqlalchemy.orm import Session
from sqlalchemy.sql.expression import ColumnElement

from database import get_db
from utils.tokenJWT import get_current_user, manager_required
from utils.audit import write_log, client_ip
from models.users import User
from models.product import Product
from models.enums import InventoryType
import schemas.product as product_schemas

router = APIRouter(tags=["Products"])


# ---- HELPERS ----
def _norm_code(code: Optional[str]) -> Optional[str]:
    if code is None:
        return None
    c = code.strip().upper()
    return c if c else None

def _get_unique_values(db: Session, column: ColumnElement) -> List[str]:
    values = db.query(column).distinct().filter(column != None, column != "").all()  # noqa: E711
    return [v[0] for v in values]

def _get_or_404(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product

def _check_unique(db: Session, sku: Optional[str], barcode: Optional[str], exclude_id: Optional[int] = None):
    if sku:
        q = db.query(Product).filter(Product.sku == sku)
        if exclude_id: q = q.filter(Product.id != exclude_id)
        if q.first(): raise HTTPException(status_code=409, detail="Product SKU already exists")
    if barcode:
        q = db.query(Product).filter(Product.barcode == barcode)
        if exclude_id: q = q.filter(Product.id != exclude_id)
        if q.first(): raise HTTPException(status_code=409, detail="Product barcode already exists")


# =========================
# PRODUCT LIST
# =========================
@router.get("/products", response_model=product_schemas.ProductListPage)
def list_products(
    q: Optional[str] = Query(None, description="Search by name, SKU or barcode"),
    category: Optional[str] = Query(None),
    active: Optional[bool] = Query(True),
    favorites: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=1000),
    sort_by: str = Query("name"),
    order: str = Query("asc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Product)

    if q:
        like = f"%{q}%"
        query = query.filter(or_(Product.name.ilike(like), Product.sku.ilike(like), Product.barcode.ilike(like)))
    if category: query = query.filter(Product.category.ilike(f"%{category}%"))
    if active is not None: query = query.filter(Product.is_active == active)
    if favorites: query = query.filter(Product.is_favorite == True)  # noqa: E712

    allowed = {
        "id": Product.id, "sku": Product.sku, "name": Product.name,
        "price": Product.price, "stock_units": Product.stock_units,
        "created_at": Product.created_at,
    }
    sort_col = allowed.get(sort_by.lower(), Product.name)
    query = query.order_by(sort_col.asc() if order == "asc" else sort_col.desc())

    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()

    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.get("/products/unique/categories", response_model=List[str])
def get_product_categories(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_unique_values(db, Product.category)


# Scanner lookup by barcode or scale PLU
@router.get("/products/barcode/{code}", response_model=product_schemas.ProductOut)
def get_product_by_barcode(
    code: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = db.query(Product).filter(Product.barcode == code.strip(), Product.is_active == True).first()  # noqa: E712
    if not product:
        raise HTTPException(status_code=404, detail=f"Product {code} not found")
    return product


# =========================
# SINGLE PRODUCT
# =========================
@router.get("/products/{product_id}", response_model=product_schemas.ProductOut)
def get_product(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_or_404(db, product_id)


@router.post("/products", response_model=product_schemas.ProductOut, status_code=201)
def add_product(
    payload: product_schemas.ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    data = payload.model_dump()
    data["sku"] = _norm_code(data["sku"])
    data["barcode"] = (data.get("barcode") or "").strip() or None
    _check_unique(db, data["sku"], data["barcode"])

    new_product = Product(**data)
    db.add(new_product)
    db.commit()
    db.refresh(new_product)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"id": new_product.id, "sku": new_product.sku}
    )
    return new_product


@router.patch("/products/{product_id}", response_model=product_schemas.ProductOut)
def edit_product(
    product_id: int,
    payload: product_schemas.ProductEditRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    p = _get_or_404(db, product_id)
    changes = payload.model_dump(exclude_unset=True)

    if "sku" in changes:
        changes["sku"] = _norm_code(changes["sku"])
        if not changes["sku"]: raise HTTPException(400, "SKU cannot be empty")
    if "barcode" in changes:
        changes["barcode"] = (changes["barcode"] or "").strip() or None
    _check_unique(db, changes.get("sku"), changes.get("barcode"), exclude_id=p.id)

    if "stock_units" in changes and changes["stock_units"] is not None and p.inventory_type != InventoryType.UNIT:
        raise HTTPException(400, "Stock units are only tracked for UNIT inventory")

    for key, value in changes.items():
        setattr(p, key, value)

    # A price drop may invalidate the catalog discount
    if p.discount_active and p.discount_price is not None and p.discount_price >= p.price:
        p.discount_active = False

    db.commit()
    db.refresh(p)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_EDIT", resource="products",
        status="SUCCESS", ip=client_ip(request), meta={"product_id": p.id, "fields": sorted(changes)}
    )
    return p


@router.patch("/products/{product_id}/discount", response_model=product_schemas.ProductOut)
def update_discount(
    product_id: int,
    payload: product_schemas.ProductDiscountUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(manager_required),
):
    p = _get_or_404(db, product_id)

    if payload.discount_active:
        if payload.discount_price is None:
            raise HTTPException(status_code=400, detail="Discount price is required")
        if payload.discount_price >= p.price:
            raise HTTPException(status_code=400, detail="Discount price must be lower than the regular price")
        p.discount_price = payload.discount_price
    p.discount_active = payload.discount_active

    db.commit()
    db.refresh(p)

    write_log(
        db, user_id=current_user.id, action="PRODUCT_DISCOUNT", resource="products", status="SUCCESS",
        ip=client_ip(request),
        meta={"product_id": p.id, "active": p.discount_active, "price": p.discount_price},
    )
    return p


@router.post("/products/{product_id}/favorite", response_model=product_schemas.ProductOut)
def toggle_favorite(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    p = _get_or_404(db, product_id)
    p.is_favorite = not p.is_favorite
    db.commit()
    db.refresh(p)
    return p
