import os

# The app module creates tables on import; keep that away from any real database
os.environ["DATABASE_URL"] = "sqlite://"

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app
from models.users import User
from models.product import Product, ProductBatch
from models.customer import Customer
from models.enums import UserRole, SaleType, InventoryType
from utils.hashing import get_password_hash
from utils.tokenJWT import create_access_token

TEST_PIN = "1234"


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db_session):
    def _get_test_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_test_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_user(db, username, role):
    user = User(username=username, full_name=username.title(), pin_hash=get_password_hash(TEST_PIN), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    token = create_access_token({"sub": user.username, "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def cashier(db_session):
    return make_user(db_session, "caja1", UserRole.CASHIER)


@pytest.fixture
def manager(db_session):
    return make_user(db_session, "gerente", UserRole.MANAGER)


@pytest.fixture
def admin(db_session):
    return make_user(db_session, "admin", UserRole.ADMIN)


@pytest.fixture
def cashier_headers(cashier):
    return auth_headers(cashier)


@pytest.fixture
def manager_headers(manager):
    return auth_headers(manager)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def catalog(db_session):
    """Chorizo by the piece, ground beef by weight and a vacuum-packed cut with two packages."""
    chorizo = Product(sku="CHO-01", name="Chorizo", barcode="7771234500011", sale_type=SaleType.UNIT,
                      inventory_type=InventoryType.UNIT, unit="unidad", price=25, stock_units=10)
    molida = Product(sku="MOL-01", name="Carne molida", barcode="000101", sale_type=SaleType.WEIGHT,
                     inventory_type=InventoryType.WEIGHT, unit="kg", price=40)
    picana = Product(sku="PIC-01", name="Picaña al vacío", sale_type=SaleType.WEIGHT,
                     inventory_type=InventoryType.VACUUM_PACKED, unit="kg", price=45)
    db_session.add_all([chorizo, molida, picana])
    db_session.flush()

    b1 = ProductBatch(product_id=picana.id, batch_number="PIC-0001", actual_weight=0.950, unit_price=45)
    b2 = ProductBatch(product_id=picana.id, batch_number="PIC-0002", actual_weight=1.120, unit_price=50)
    db_session.add_all([b1, b2])
    db_session.commit()

    return SimpleNamespace(chorizo=chorizo, molida=molida, picana=picana, b1=b1, b2=b2)


@pytest.fixture
def customer(db_session):
    c = Customer(name="Restaurante El Fogón", phone="+59170000001")
    db_session.add(c)
    db_session.commit()
    db_session.refresh(c)
    return c


@pytest.fixture
def cash_session(client, cashier_headers):
    res = client.post("/cash-sessions/open", json={"terminal_id": "T1", "opening_amount": 100},
                      headers=cashier_headers)
    assert res.status_code == 201
    return res.json()


def scale_label(plu: str, grams: int, price: int) -> str:
    return f"0{plu}{grams:05d}{price:05d}7"
