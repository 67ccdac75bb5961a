# catalog_service/routers/products.py

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from .. import schemas, auth, crud
from ..database import get_db
from ..services.eligibility import PricingContext
from ..services.exceptions import PriceListNotFound, PricingDataUnavailable, ProductNotFound
from ..services.pricing_engine import PricingEngine, ResolvedPrice

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/products",
    tags=["Products"]
)

def get_pricing_engine(db: Session = Depends(get_db)) -> PricingEngine:
    return PricingEngine(db=db)

def wants_promotions(include_promotions: Optional[bool], context: PricingContext) -> bool:
    # Com lista fixada resolvemos promoções; na vista administrativa só a pedido
    if include_promotions is None:
        return context.price_list_id is not None
    return include_promotions

def to_catalog_product(resolved: ResolvedPrice) -> dict:
    # O schema não sabe juntar produto + preço sozinho, por isso montamos o dict
    product_data = schemas.Product.model_validate(resolved.product).model_dump()
    product_data.update(resolved.as_dict())
    product_data.pop("product_id")
    return product_data

@router.get("/", response_model=List[schemas.CatalogProduct])
def read_catalog(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=200),
    include_promotions: Optional[bool] = Query(default=None, description="Raw view (no price_list_id): also resolve GLOBAL promotions"),
    context: PricingContext = Depends(auth.get_pricing_context),
    db: Session = Depends(get_db),
    pricing_engine: PricingEngine = Depends(get_pricing_engine)
):
    """
    Página do catálogo com preço base e melhor promoção de cada produto.

    - **Clientes**: lista e cliente vêm do token.
    - **Staff**: sem `price_list_id`, devolve todos os preços de cada produto
      (vista administrativa).
    """
    try:
        products = crud.product.get_multi_active(db, skip=skip, limit=limit)
        resolved = pricing_engine.resolve_catalog_page(
            products=products, context=context, include_promotions=wants_promotions(include_promotions, context)
        )
    except SQLAlchemyError as e:
        logger.error("Failed to load catalog page: %s", e)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Could not load products.")
    except PriceListNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PricingDataUnavailable as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return [to_catalog_product(item) for item in resolved]

@router.get("/{product_id}", response_model=schemas.CatalogProduct)
def read_product(
    product_id: int,
    include_promotions: Optional[bool] = Query(default=None),
    context: PricingContext = Depends(auth.get_pricing_context),
    pricing_engine: PricingEngine = Depends(get_pricing_engine)
):
    try:
        resolved = pricing_engine.resolve_product(
            product_id=product_id, context=context, include_promotions=wants_promotions(include_promotions, context)
        )
    except (ProductNotFound, PriceListNotFound) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PricingDataUnavailable as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    return to_catalog_product(resolved)

@router.get("/{product_id}/prices", response_model=List[schemas.PriceRow])
def read_product_prices(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: auth.Principal = Depends(auth.require_staff_user)
):
    """Preços crus do produto em todas as listas."""
    if crud.product.get(db, id=product_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return crud.crud_price.get_prices(db, product_id)

@router.post("/", response_model=schemas.Product, status_code=status.HTTP_201_CREATED)
def create_product(
    product_in: schemas.ProductCreate,
    db: Session = Depends(get_db),
    current_admin: auth.Principal = Depends(auth.require_admin_user)
):
    if crud.product.get_by_sku(db, sku=product_in.sku):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="SKU already registered")
    return crud.product.create(db, obj_in=product_in)

@router.put("/{product_id}", response_model=schemas.Product)
def update_product(
    product_id: int,
    product_in: schemas.ProductUpdate,
    db: Session = Depends(get_db),
    current_admin: auth.Principal = Depends(auth.require_admin_user)
):
    db_product = crud.product.get(db, id=product_id)
    if db_product is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return crud.product.update(db, db_obj=db_product, obj_in=product_in)
