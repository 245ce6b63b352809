# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 720
    DATABASE_URL: str = "sqlite:///./butcher_pos.db"

    FRONTEND_URL: str = "http://localhost:5173"
    LOG_LEVEL: str = "INFO"

    # Currency label used in messages and logs
    CURRENCY_SYMBOL: str = "Bs"

    # Flag digit that marks a label printed by the scale
    SCALE_BARCODE_FLAG: str = "0"
    # Scanned totals that differ from catalog price by at least this amount are audited
    SCALE_PRICE_TOLERANCE: int = 1

    class Config:
        env_file: ClassVar[str] = str(env_path)

settings = Settings()
