from typing import List, Optional
from sqlalchemy import select, func
from sqlalchemy.orm import Session
from storefront.db.models import Product

class ProductRepository:
    def __init__(self, db: Session):
        self.db = db

    def find_all(self, **filters) -> List[Product]:
        stmt = select(Product)
        for field, value in filters.items():
            stmt = stmt.where(getattr(Product, field) == value)
        return list(self.db.execute(stmt.order_by(Product.id)).scalars().all())

    def find_by_id(self, product_id: int) -> Optional[Product]:
        return self.db.get(Product, product_id)

    def create(self, fields: dict) -> Product:
        obj = Product(**fields)
        self.db.add(obj); self.db.commit(); self.db.refresh(obj)
        return obj

    def save(self, product: Product) -> Product:
        self.db.add(product); self.db.commit(); self.db.refresh(product)
        return product

    def delete_by_id(self, product_id: int) -> None:
        obj = self.db.get(Product, product_id)
        if obj is not None:
            self.db.delete(obj); self.db.commit()

    def sample_random(self, n: int) -> List[Product]:
        return list(self.db.execute(select(Product).order_by(func.random()).limit(n)).scalars().all())
