# app/data/seed.py
from decimal import Decimal

from sqlalchemy.orm import Session

from app.data.database import SessionLocal
from app.data.models.product import ProductModel
from app.repos.product_repo import ProductRepo
from app.utils.logging import get_logger

logger = get_logger(__name__)

INITIAL_PRODUCTS = [
    {
        "title": "Laptop hp",
        "image": "https://i5.walmartimages.com/seo/HP-15-6-Ryzen-5-8GB-256GB-Laptop-Rose-Gold_36809cf3-480b-47a5-94f0-e1d5e70c58c0_3.fcc0d6494b0e279a13c32c80c28abfa3.jpeg",
        "price": Decimal("10000"),
        "stock": 10,
    },
    {
        "title": "Assos hp",
        "image": "https://encrypted-tbn0.gstatic.com/images?q=tbn:ANd9GcRi8R6gtPpXb9i_6LYOX1K0ynOOrVOJzrl-Mw&s",
        "price": Decimal("25000"),
        "stock": 15,
    },
    {
        "title": "Dell hp",
        "image": "https://spacenet.tn/53335-large_default/pc-portable-dell-inspiron-3501i3-1005g18go1tonoir3501i3n-1t-8.jpg",
        "price": Decimal("40000"),
        "stock": 4,
    },
]


def seed(db: Session | None = None) -> int:
    """Insert the initial catalog. Returns how many products were added."""
    own_session = db is None
    db = db or SessionLocal()
    try:
        repo = ProductRepo(db)
        # not forcing: only seed if empty
        if repo.count_products():
            return 0
        repo.add_products([ProductModel(**data) for data in INITIAL_PRODUCTS])
        logger.info(f"Seeded {len(INITIAL_PRODUCTS)} products")
        return len(INITIAL_PRODUCTS)
    finally:
        if own_session:
            db.close()
