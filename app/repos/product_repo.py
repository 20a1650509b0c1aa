# app/repos/product_repo.py
from sqlalchemy import func, select
from sqlalchemy.orm import Session
from app.data.models.product import ProductModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def list_products(self) -> list[ProductModel]:
        return list(self.db.execute(select(ProductModel).order_by(ProductModel.id)).scalars())

    def count_products(self) -> int:
        return self.db.execute(select(func.count(ProductModel.id))).scalar_one()

    def add_products(self, products: list[ProductModel]) -> None:
        self.db.add_all(products)
        self.db.commit()
