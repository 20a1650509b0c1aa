# app/services/product_service.py
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from app.data.models.product import ProductModel
from app.repos.product_repo import ProductRepo


def product_to_dict(product: ProductModel) -> Dict[str, Any]:
    return {
        "id": product.id,
        "title": product.title,
        "image": product.image,
        "price": product.price,
        "stock": product.stock,
    }


class ProductService:
    """Read-only catalog queries."""

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    def list_products(self) -> List[Dict[str, Any]]:
        return [product_to_dict(p) for p in self.repo.list_products()]
