# catalog_service/crud/crud_price.py

from decimal import Decimal
from typing import Iterable, List, Optional
from sqlalchemy.orm import Session

from .base import CRUDBase
from .. import models, schemas

# --- Listas de preços ---

class CRUDPriceList(CRUDBase[models.PriceList, schemas.PriceListCreate, schemas.PriceListUpdate]):
    def get_by_name(self, db: Session, *, name: str) -> Optional[models.PriceList]:
        return db.query(self.model).filter(self.model.name == name).first()

price_list = CRUDPriceList(models.PriceList)

# --- Catálogo de preços: um preço por (lista, produto) ---

def get_prices(db: Session, product_id: int, price_list_id: Optional[int] = None) -> List[models.PriceListItem]:
    """
    Preços de um produto. Com `price_list_id` devolve no máximo uma linha;
    sem ele devolve as linhas de todas as listas. Lista vazia = preço não resolvido.
    """
    return get_prices_for_products(db, [product_id], price_list_id=price_list_id)

def get_prices_for_products(
    db: Session, product_ids: Iterable[int], price_list_id: Optional[int] = None
) -> List[models.PriceListItem]:
    """Versão em lote de `get_prices`: uma única query para todos os produtos."""
    ids = list(set(product_ids))
    if not ids:
        return []
    query = db.query(models.PriceListItem).filter(models.PriceListItem.product_id.in_(ids))
    if price_list_id is not None:
        query = query.filter(models.PriceListItem.price_list_id == price_list_id)
    return query.order_by(models.PriceListItem.product_id, models.PriceListItem.price_list_id).all()

def get_price(db: Session, *, price_list_id: int, product_id: int) -> Optional[models.PriceListItem]:
    return db.get(models.PriceListItem, (price_list_id, product_id))

def get_items_for_list(db: Session, *, price_list_id: int, skip: int = 0, limit: int = 100) -> List[models.PriceListItem]:
    return (
        db.query(models.PriceListItem)
        .filter(models.PriceListItem.price_list_id == price_list_id)
        .order_by(models.PriceListItem.product_id)
        .offset(skip)
        .limit(limit)
        .all()
    )

def upsert_price(db: Session, *, price_list_id: int, product_id: int, price: Decimal) -> models.PriceListItem:
    """Atribui o preço: atualiza a linha existente ou cria uma nova."""
    db_item = get_price(db, price_list_id=price_list_id, product_id=product_id)
    if db_item:
        db_item.price = price
    else:
        db_item = models.PriceListItem(price_list_id=price_list_id, product_id=product_id, price=price)
    db.add(db_item)
    db.commit()
    db.refresh(db_item)
    return db_item

def remove_price(db: Session, *, db_item: models.PriceListItem) -> None:
    db.delete(db_item)
    db.commit()
