# backend/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from config import settings
from database import init_db

load_dotenv()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

# Router imports
from routes.auth import router as auth_router
from routes.logs import router as logs_router
from routes.products import router as products_router
from routes.batches import router as batches_router
from routes.cart import router as cart_router
from routes.customers import router as customers_router
from routes.orders import router as orders_router
from routes.sales import router as sales_router
from routes.cash import router as cash_router
from routes.reports import router as reports_router

# Initialization
init_db()

app = FastAPI(title="Butcher POS API", version="1.0.0")

# CORS: local Vite dev server plus the deployed frontend
origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Router registration
app.include_router(auth_router)
app.include_router(logs_router)
app.include_router(products_router)
app.include_router(batches_router)
app.include_router(cart_router)
app.include_router(customers_router)
app.include_router(orders_router)
app.include_router(sales_router)
app.include_router(cash_router)
app.include_router(reports_router)

logger.info("Butcher POS API ready (currency %s)", settings.CURRENCY_SYMBOL)

@app.get("/")
def read_root():
    return {"message": "Butcher POS API is running"}
