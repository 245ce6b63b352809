# backend/database.py
from sqlalchemy import create_engine
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import sessionmaker
import os
from dotenv import load_dotenv

load_dotenv()

# 1. Database URL from the environment, SQLite file for local runs
SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./butcher_pos.db")

# 2. Hosted Postgres providers still hand out postgres:// URLs
if SQLALCHEMY_DATABASE_URL and SQLALCHEMY_DATABASE_URL.startswith("postgres://"):
    SQLALCHEMY_DATABASE_URL = SQLALCHEMY_DATABASE_URL.replace("postgres://", "postgresql://", 1)

# 3. Driver specific options
if "sqlite" in SQLALCHEMY_DATABASE_URL:
    connect_args = {"check_same_thread": False} # SQLite only
else:
    connect_args = {}

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args=connect_args
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db():
    # Register every table on Base.metadata before creating them
    import models.users, models.product, models.customer, models.cart  # noqa: F401
    import models.cash, models.sale, models.order, models.log  # noqa: F401
    Base.metadata.create_all(bind=engine)
