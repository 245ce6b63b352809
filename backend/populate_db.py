import os
import sys
from datetime import datetime, timedelta

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from database import SessionLocal, init_db
from models.users import User
from models.product import Product, ProductBatch
from models.customer import Customer
from models.enums import UserRole, SaleType, InventoryType
from utils.hashing import get_password_hash

# Configuration
ADMIN_PIN = os.getenv("SEED_ADMIN_PIN", "1234")
CASHIER_PIN = os.getenv("SEED_CASHIER_PIN", "0000")

PRODUCTS = [
    # sku, name, category, barcode, sale_type, inventory_type, unit, price, stock
    ("MOL-01", "Carne molida especial", "Res", "000101", SaleType.WEIGHT, InventoryType.WEIGHT, "kg", 40, None),
    ("LOM-01", "Lomo fino", "Res", "000102", SaleType.WEIGHT, InventoryType.WEIGHT, "kg", 75, None),
    ("POL-01", "Pollo entero", "Pollo", "000201", SaleType.WEIGHT, InventoryType.WEIGHT, "kg", 22, None),
    ("CHO-01", "Chorizo parrillero", "Embutidos", "7771234500011", SaleType.UNIT, InventoryType.UNIT, "unidad", 25, 60),
    ("CAR-01", "Carbón 3 kg", "Varios", "7771234500028", SaleType.UNIT, InventoryType.UNIT, "bolsa", 30, 20),
    ("PIC-01", "Picaña al vacío", "Res", None, SaleType.WEIGHT, InventoryType.VACUUM_PACKED, "kg", 45, None),
]

# Pre-weighed packages for vacuum-packed products: (sku, batch number, kg, price)
BATCHES = [
    ("PIC-01", "PIC-0001", 0.950, 45),
    ("PIC-01", "PIC-0002", 1.120, 50),
    ("PIC-01", "PIC-0003", 1.305, 59),
]


def seed():
    init_db()
    session = SessionLocal()
    try:
        if not session.query(User).filter(User.username == "admin").first():
            session.add(User(username="admin", full_name="Administrador",
                             pin_hash=get_password_hash(ADMIN_PIN), role=UserRole.ADMIN))
            session.add(User(username="caja1", full_name="Cajero 1",
                             pin_hash=get_password_hash(CASHIER_PIN), role=UserRole.CASHIER))
            print("Users created: admin, caja1")

        by_sku = {}
        for sku, name, category, barcode, sale_type, inv_type, unit, price, stock in PRODUCTS:
            product = session.query(Product).filter(Product.sku == sku).first()
            if not product:
                product = Product(sku=sku, name=name, category=category, barcode=barcode,
                                  sale_type=sale_type, inventory_type=inv_type, unit=unit,
                                  price=price, stock_units=stock, min_stock_alert=5 if stock else None)
                session.add(product)
            by_sku[sku] = product
        session.flush()

        packed = datetime.now() - timedelta(days=1)
        for sku, number, weight, price in BATCHES:
            if session.query(ProductBatch).filter(ProductBatch.batch_number == number).first():
                continue
            session.add(ProductBatch(product_id=by_sku[sku].id, batch_number=number, actual_weight=weight,
                                     unit_price=price, packed_at=packed, expiry_date=packed + timedelta(days=21)))

        if not session.query(Customer).first():
            session.add(Customer(name="Restaurante El Fogón", phone="+59170000001"))

        session.commit()
        print(f"Seed complete: {len(PRODUCTS)} products, {len(BATCHES)} batches.")
    except Exception as e:
        session.rollback()
        print(f"Seed failed: {e}")
        raise
    finally:
        session.close()


if __name__ == "__main__":
    seed()
