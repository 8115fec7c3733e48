import logging

from fastapi import FastAPI
import uvicorn
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from core.config import settings
from db.database import create_db_and_tables
from routers.kitchen import router as kitchen_router
from routers.menu import router as menu_router
from routers.orders import router as orders_router
from routers.prepared_stock import router as prepared_stock_router

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_db_and_tables()
    yield


app = FastAPI(
    title="Kitchen POS API",
    description="Kiosk ordering, kitchen display and prepared-stock accounting",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Kiosk
app.include_router(menu_router, prefix="/menu", tags=["menu"])
app.include_router(orders_router, prefix="/orders", tags=["orders"])

# Kitchen display + prepared stock
app.include_router(kitchen_router, prefix="/kitchen", tags=["kitchen"])
app.include_router(prepared_stock_router, prefix="/prepared-stock", tags=["prepared-stock"])

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
