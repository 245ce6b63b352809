# backend/models/enums.py
import enum

# Pricing mode of a product: counted pieces or weighed kilograms
class SaleType(str, enum.Enum):
    UNIT = "UNIT"
    WEIGHT = "WEIGHT"

# How stock is tracked for a product
class InventoryType(str, enum.Enum):
    UNIT = "UNIT"                    # pieces with stock control
    WEIGHT = "WEIGHT"                # cuts weighed at the counter, no stock control
    VACUUM_PACKED = "VACUUM_PACKED"  # pre-weighed lots, sold through batches

class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    CASHIER = "CASHIER"

class CashSessionStatus(str, enum.Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"

class CashMovementType(str, enum.Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    ADJUSTMENT = "ADJUSTMENT"

class SaleStatus(str, enum.Enum):
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

class PaymentMethod(str, enum.Enum):
    CASH = "CASH"
    CARD = "CARD"
    TRANSFER = "TRANSFER"
    MIXED = "MIXED"

class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    READY = "READY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
