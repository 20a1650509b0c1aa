# app/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
import uvicorn

from app.api import include_routers, register_exception_handlers
from app.data.database import init_db
from app.data.seed import seed
from app.utils.settings import SEED_PRODUCTS
from app.utils.logging import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Initializing database")
    init_db()
    if SEED_PRODUCTS:
        seed()
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Shop Cart Service",
        version="1.0.0",
        lifespan=lifespan,
    )

    include_routers(app)
    register_exception_handlers(app)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
