import os

# must be set before anything from app is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["CART_LOCK_ATTEMPTS"] = "2"
os.environ["SEED_PRODUCTS"] = "false"

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_lock_service
from app.data.database import Base, SessionLocal, engine, get_db
from app.data.models import ProductModel, UserModel
from app.data.seed import seed
from app.main import create_app
from app.services.cart_service import CartService
from app.services.lock_service import LockService
from app.utils.security import create_access_token, hash_password


@pytest.fixture()
def db():
    """Fresh schema for every test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def redis_client():
    """Stands in for redis: the lock is always free."""
    client = MagicMock()
    client.set.return_value = True
    client.eval.return_value = 1
    return client


@pytest.fixture()
def lock_service(redis_client):
    return LockService(client=redis_client)


@pytest.fixture()
def products(db):
    seed(db)
    return {p.title: p for p in db.query(ProductModel).order_by(ProductModel.id)}


@pytest.fixture()
def laptop(products):
    # price 10000, stock 10
    return products["Laptop hp"]


@pytest.fixture()
def dell(products):
    # price 40000, stock 4
    return products["Dell hp"]


def _make_user(db, email, first_name="Jean", last_name="Dupont"):
    user = UserModel(
        first_name=first_name,
        last_name=last_name,
        email=email,
        password_hash=hash_password("secret123"),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def user(db):
    return _make_user(db, "jean@example.com")


@pytest.fixture()
def other_user(db):
    return _make_user(db, "marie@example.com", first_name="Marie", last_name="Curie")


@pytest.fixture()
def cart_service(db, lock_service):
    return CartService(db=db, lock_service=lock_service)


@pytest.fixture()
def app(db, lock_service):
    application = create_app()
    application.dependency_overrides[get_db] = lambda: db
    application.dependency_overrides[get_lock_service] = lambda: lock_service
    return application


@pytest.fixture()
def client(app):
    return TestClient(app)


@pytest.fixture()
def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token(user)}"}


@pytest.fixture()
def other_auth_headers(other_user):
    return {"Authorization": f"Bearer {create_access_token(other_user)}"}
