import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from freshcart.api.health import router as health_router
from freshcart.api.routes_admin import router as admin_router
from freshcart.api.routes_catalogue import router as catalogue_router
from freshcart.api.routes_order import router as order_router
from freshcart.api.routes_payment import router as payment_router
from freshcart.config import settings
from freshcart.db import init_db

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    init_db()
    yield


app = FastAPI(title="Freshcart - Grocery Storefront", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router, prefix="/api", tags=["health"])

app.include_router(catalogue_router)

app.include_router(admin_router)

app.include_router(order_router)

app.include_router(payment_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("freshcart.main:app", host=settings.APP_HOST, port=settings.APP_PORT)
