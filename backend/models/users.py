# backend/models/users.py
from sqlalchemy import Column, Integer, String, Boolean, Enum
from database import Base
from models.enums import UserRole

# Represents a staff account; cashiers sign in with username + PIN
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False, index=True)
    full_name = Column(String, nullable=False)
    pin_hash = Column(String, nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.CASHIER)
    is_active = Column(Boolean, nullable=False, default=True)
