# catalog_service/crud/crud_product.py

from typing import Iterable, List, Optional
from sqlalchemy.orm import Session

from .base import CRUDBase
from .. import models, schemas

class CRUDProduct(CRUDBase[models.Product, schemas.ProductCreate, schemas.ProductUpdate]):
    def get_by_sku(self, db: Session, *, sku: str) -> Optional[models.Product]:
        if not sku:
            return None
        return db.query(self.model).filter(self.model.sku == sku).first()

    def get_by_ids(self, db: Session, *, product_ids: Iterable[int]) -> List[models.Product]:
        """Busca vários produtos numa só query. Ids desconhecidos são simplesmente omitidos."""
        ids = list(set(product_ids))
        if not ids:
            return []
        return db.query(self.model).filter(self.model.id.in_(ids)).all()

    def get_multi_active(self, db: Session, *, skip: int = 0, limit: int = 100) -> List[models.Product]:
        """Página do catálogo: só produtos ativos, por ordem de ID."""
        return (
            db.query(self.model)
            .filter(self.model.active.is_(True))
            .order_by(self.model.id)
            .offset(skip)
            .limit(limit)
            .all()
        )

product = CRUDProduct(models.Product)
