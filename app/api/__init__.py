# app/api/__init__.py
from fastapi import FastAPI
from app.api.errors import register_exception_handlers
from app.api.routers import carts, health, orders, products, users


def include_routers(app: FastAPI) -> None:
    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(products.router)
    app.include_router(carts.router)
    app.include_router(orders.router)


__all__ = ["include_routers", "register_exception_handlers"]
