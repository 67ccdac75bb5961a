# catalog_service/routers/price_lists.py

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
import logging

from .. import schemas, auth, crud
from ..crud import crud_price
from ..database import get_db

logger = logging.getLogger(__name__)

# Todas as rotas deste router exigem admin ou supervisor
router = APIRouter(
    prefix="/price-lists",
    tags=["Price Lists (Admin)"],
    dependencies=[Depends(auth.require_admin_user)]
)

def get_price_list_or_404(price_list_id: int, db: Session = Depends(get_db)):
    db_list = crud.price_list.get(db, id=price_list_id)
    if db_list is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Price list with id {price_list_id} not found."
        )
    return db_list

@router.post("/", response_model=schemas.PriceList, status_code=status.HTTP_201_CREATED)
def create_price_list(list_in: schemas.PriceListCreate, db: Session = Depends(get_db)):
    if crud.price_list.get_by_name(db, name=list_in.name):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Price list name already registered")
    return crud.price_list.create(db, obj_in=list_in)

@router.get("/", response_model=List[schemas.PriceList])
def read_price_lists(skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    return crud.price_list.get_multi(db, skip=skip, limit=limit)

@router.get("/{price_list_id}", response_model=schemas.PriceList)
def read_price_list(db_list=Depends(get_price_list_or_404)):
    return db_list

@router.put("/{price_list_id}", response_model=schemas.PriceList)
def update_price_list(
    list_in: schemas.PriceListUpdate,
    db_list=Depends(get_price_list_or_404),
    db: Session = Depends(get_db)
):
    return crud.price_list.update(db, db_obj=db_list, obj_in=list_in)

# --- Itens (preço por produto) ---

@router.get("/{price_list_id}/items", response_model=List[schemas.PriceListItem])
def read_price_list_items(
    skip: int = 0,
    limit: int = 100,
    db_list=Depends(get_price_list_or_404),
    db: Session = Depends(get_db)
):
    return crud_price.get_items_for_list(db, price_list_id=db_list.id, skip=skip, limit=limit)

@router.put("/{price_list_id}/items/{product_id}", response_model=schemas.PriceListItem)
def assign_price(
    product_id: int,
    price_in: schemas.PriceAssign,
    db_list=Depends(get_price_list_or_404),
    db: Session = Depends(get_db)
):
    """
    Atribui o preço de um produto numa lista. Se já existe, é atualizado:
    nunca há dois preços para o mesmo par (lista, produto).
    """
    if crud.product.get(db, id=product_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    item = crud_price.upsert_price(db, price_list_id=db_list.id, product_id=product_id, price=price_in.price)
    logger.info("Price for product %s in list %s set to %s", product_id, db_list.id, item.price)
    return item

@router.delete("/{price_list_id}/items/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_price(
    product_id: int,
    db_list=Depends(get_price_list_or_404),
    db: Session = Depends(get_db)
):
    db_item = crud_price.get_price(db, price_list_id=db_list.id, product_id=product_id)
    if db_item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Price not found")
    crud_price.remove_price(db, db_item=db_item)
    return None
