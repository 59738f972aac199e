from typing import Optional
from sqlalchemy import or_, select
from sqlalchemy.orm import Session
from poscrm.application.errors import NotFoundError
from poscrm.domain.models import Product
from poscrm.infrastructure.db import unit_of_work
from .schemas import ProductCreate

class ProductService:
    def __init__(self, db: Session):
        self.db = db

    def list_products(self, category: Optional[str] = None, search: Optional[str] = None):
        stmt = select(Product)
        if category:
            stmt = stmt.where(Product.category == category)
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(or_(
                Product.name.ilike(pattern),
                Product.model.ilike(pattern),
                Product.barcode.ilike(pattern),
            ))
        return list(self.db.scalars(stmt.order_by(Product.name)))

    def get(self, product_id: int) -> Product:
        product = self.db.get(Product, product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    def create(self, data: ProductCreate) -> Product:
        with unit_of_work(self.db):
            obj = Product(**data.model_dump())
            self.db.add(obj)
        self.db.refresh(obj)
        return obj

    def update(self, product_id: int, data: ProductCreate) -> Product:
        product = self.get(product_id)
        with unit_of_work(self.db):
            for key, value in data.model_dump().items():
                setattr(product, key, value)
        self.db.refresh(product)
        return product
