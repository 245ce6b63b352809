# backend/routes/cash.py
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user
from utils.audit import write_log, client_ip
from utils.pricing import round_currency
from models.users import User
from models.cash import CashSession, CashMovement
from models.sale import Sale
from models.enums import CashSessionStatus, CashMovementType, SaleStatus, PaymentMethod
from schemas.cash import (
    CashSessionOpen, CashSessionClose, CashMovementCreate, CashMovementOut,
    CashSessionOut, CashSessionPage, CashSessionStats,
)

router = APIRouter(prefix="/cash-sessions", tags=["Cash"])


def cash_collected(sale: Sale) -> float:
    # Part of the sale that ended in the drawer
    if sale.payment_method == PaymentMethod.CASH:
        return sale.total
    if sale.payment_method == PaymentMethod.MIXED:
        return sale.cash_amount or 0.0
    return 0.0


def session_stats(db: Session, session: CashSession) -> CashSessionStats:
    sales = db.query(Sale).filter(
        Sale.cash_session_id == session.id, Sale.status == SaleStatus.COMPLETED
    ).all()

    cash_sales = sum(cash_collected(s) for s in sales)
    card_sales = sum(
        s.total if s.payment_method == PaymentMethod.CARD else (s.card_amount or 0)
        for s in sales if s.payment_method in (PaymentMethod.CARD, PaymentMethod.MIXED)
    )
    transfer_sales = sum(
        s.total if s.payment_method == PaymentMethod.TRANSFER else (s.transfer_amount or 0)
        for s in sales if s.payment_method in (PaymentMethod.TRANSFER, PaymentMethod.MIXED)
    )

    by_type = {t: 0.0 for t in CashMovementType}
    for m in session.movements:
        by_type[m.type] += m.amount

    expected = (session.opening_amount + cash_sales
                + by_type[CashMovementType.DEPOSIT]
                - by_type[CashMovementType.WITHDRAWAL]
                + by_type[CashMovementType.ADJUSTMENT])

    return CashSessionStats(
        session_id=session.id,
        sales_count=len(sales),
        sales_total=sum(s.total for s in sales),
        cash_sales=cash_sales,
        card_sales=card_sales,
        transfer_sales=transfer_sales,
        deposits=by_type[CashMovementType.DEPOSIT],
        withdrawals=by_type[CashMovementType.WITHDRAWAL],
        adjustments=by_type[CashMovementType.ADJUSTMENT],
        expected_amount=round_currency(expected),
    )


def open_session_for_user(db: Session, user_id: int) -> Optional[CashSession]:
    return db.query(CashSession).filter(
        CashSession.user_id == user_id, CashSession.status == CashSessionStatus.OPEN
    ).first()


def _get_or_404(db: Session, session_id: int) -> CashSession:
    session = db.query(CashSession).filter(CashSession.id == session_id).first()
    if not session:
        raise HTTPException(status_code=404, detail="Cash session not found")
    return session


def _ensure_open(session: CashSession):
    if session.status != CashSessionStatus.OPEN:
        raise HTTPException(status_code=400, detail="Cash session is closed")


@router.post("/open", response_model=CashSessionOut, status_code=201)
def open_session(
    payload: CashSessionOpen,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    terminal_busy = db.query(CashSession).filter(
        CashSession.terminal_id == payload.terminal_id, CashSession.status == CashSessionStatus.OPEN
    ).first()
    if terminal_busy:
        raise HTTPException(status_code=409, detail="Terminal already has an open cash session")
    if open_session_for_user(db, current_user.id):
        raise HTTPException(status_code=409, detail="You already have an open cash session")

    session = CashSession(
        terminal_id=payload.terminal_id,
        user_id=current_user.id,
        status=CashSessionStatus.OPEN,
        opening_amount=payload.opening_amount,
        opening_notes=payload.notes,
    )
    db.add(session)
    db.commit()
    db.refresh(session)

    write_log(db, user_id=current_user.id, action="CASH_OPEN", resource="cash", status="SUCCESS",
              ip=client_ip(request),
              meta={"session_id": session.id, "terminal_id": session.terminal_id, "opening": session.opening_amount})
    return session


@router.get("/my-session", response_model=CashSessionOut)
def my_session(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    session = open_session_for_user(db, current_user.id)
    if not session:
        raise HTTPException(status_code=404, detail="No open cash session")
    return session


@router.get("/terminal/{terminal_id}/open", response_model=CashSessionOut)
def terminal_open_session(
    terminal_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    session = db.query(CashSession).filter(
        CashSession.terminal_id == terminal_id, CashSession.status == CashSessionStatus.OPEN
    ).first()
    if not session:
        raise HTTPException(status_code=404, detail="No open cash session for this terminal")
    return session


@router.get("", response_model=CashSessionPage)
def list_sessions(
    terminal_id: Optional[str] = Query(None),
    status: Optional[CashSessionStatus] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(CashSession)
    if terminal_id:
        query = query.filter(CashSession.terminal_id == terminal_id)
    if status:
        query = query.filter(CashSession.status == status)

    total = query.count()
    items = (query.order_by(CashSession.opened_at.desc(), CashSession.id.desc())
             .offset((page - 1) * page_size).limit(page_size).all())
    return {"items": items, "total": total, "page": page, "page_size": page_size}


@router.get("/{session_id}", response_model=CashSessionOut)
def get_session(
    session_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_or_404(db, session_id)


@router.get("/{session_id}/stats", response_model=CashSessionStats)
def get_session_stats(
    session_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return session_stats(db, _get_or_404(db, session_id))


@router.post("/{session_id}/movements", response_model=CashMovementOut, status_code=201)
def add_movement(
    session_id: int,
    payload: CashMovementCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    session = _get_or_404(db, session_id)
    _ensure_open(session)

    if payload.type == CashMovementType.WITHDRAWAL:
        available = session_stats(db, session).expected_amount
        if payload.amount > available:
            raise HTTPException(status_code=400, detail=f"Only {available} available in the drawer")

    movement = CashMovement(
        cash_session_id=session.id, type=payload.type, amount=payload.amount,
        reason=payload.reason, created_by=current_user.id,
    )
    db.add(movement)
    db.commit()
    db.refresh(movement)

    write_log(db, user_id=current_user.id, action="CASH_MOVEMENT", resource="cash", status="SUCCESS",
              ip=client_ip(request),
              meta={"session_id": session.id, "type": payload.type.value, "amount": payload.amount})
    return movement


@router.get("/{session_id}/movements", response_model=List[CashMovementOut])
def list_movements(
    session_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    session = _get_or_404(db, session_id)
    return sorted(session.movements, key=lambda m: m.id)


@router.post("/{session_id}/close", response_model=CashSessionOut)
def close_session(
    session_id: int,
    payload: CashSessionClose,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    session = _get_or_404(db, session_id)
    _ensure_open(session)

    expected = session_stats(db, session).expected_amount
    session.status = CashSessionStatus.CLOSED
    session.closed_at = datetime.now(timezone.utc)
    session.closed_by_id = current_user.id
    session.closing_notes = payload.notes
    session.expected_amount = expected
    session.closing_amount = payload.closing_amount
    session.difference_amount = round_currency(payload.closing_amount - expected)
    db.commit()
    db.refresh(session)

    write_log(db, user_id=current_user.id, action="CASH_CLOSE", resource="cash", status="SUCCESS",
              ip=client_ip(request),
              meta={"session_id": session.id, "expected": expected, "counted": payload.closing_amount,
                    "difference": session.difference_amount})
    return session
