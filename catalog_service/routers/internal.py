# catalog_service/routers/internal.py

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from .. import schemas, auth
from ..core.config import settings
from ..database import get_db
from ..services.eligibility import PricingContext
from ..services.exceptions import PriceListNotFound, PricingDataUnavailable, ProductNotFound
from ..services.pricing_engine import PricingEngine

# Endpoints serviço a serviço (ex: serviço de pedidos). O chamador já
# resolveu cliente -> lista de preços; aqui não há lista por omissão.
router = APIRouter(
    prefix="/internal",
    tags=["Internal"],
    dependencies=[Depends(auth.require_service_token)]
)

def get_pricing_engine(db: Session = Depends(get_db)) -> PricingEngine:
    return PricingEngine(db=db)

def check_batch_size(size: int) -> None:
    if size > settings.MAX_BATCH_ITEMS:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Batch too large: {size} items (max {settings.MAX_BATCH_ITEMS})."
        )

def run_pricing(call):
    """Traduz as exceções do motor de preços em erros HTTP."""
    try:
        return call()
    except (ProductNotFound, PriceListNotFound) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PricingDataUnavailable as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

@router.post("/products/batch", response_model=List[schemas.BatchProduct])
def batch_products(
    batch_in: schemas.BatchProductsRequest,
    pricing_engine: PricingEngine = Depends(get_pricing_engine)
):
    check_batch_size(len(batch_in.ids))
    context = PricingContext(price_list_id=batch_in.price_list_id, client_id=batch_in.client_id)
    resolved = run_pricing(lambda: pricing_engine.resolve_products(product_ids=batch_in.ids, context=context))

    results = []
    for item in resolved:
        promotion = None
        if item.offer is not None:
            promotion = schemas.BatchPromotion(
                campaign_id=item.campaign_id,
                final_price=item.final_price,
                list_price=item.base_price,
            )
        results.append(
            schemas.BatchProduct(
                id=item.product.id,
                sku=item.product.sku,
                name=item.product.name,
                unit_of_measure=item.product.unit_of_measure,
                base_price=item.base_price,
                prices=[schemas.PriceRow.model_validate(row) for row in item.prices],
                promotion=promotion,
            )
        )
    return results

@router.post("/prices/batch-calculator", response_model=List[schemas.BatchCalculatorLine])
def batch_calculator(
    batch_in: schemas.BatchCalculatorRequest,
    pricing_engine: PricingEngine = Depends(get_pricing_engine)
):
    """Preços unitários e subtotais para fotografar num pedido."""
    check_batch_size(len(batch_in.items))
    context = PricingContext(price_list_id=batch_in.price_list_id, client_id=batch_in.client_id)
    return run_pricing(lambda: pricing_engine.calculate_batch(items=batch_in.items, context=context))

@router.get("/promotions/best/{product_id}", response_model=Optional[schemas.Offer])
def best_promotion(
    product_id: int,
    price_list_id: int = Query(...),
    client_id: Optional[str] = Query(default=None),
    pricing_engine: PricingEngine = Depends(get_pricing_engine)
):
    """Melhor oferta atual para o produto, ou null se nenhuma se aplica."""
    context = PricingContext(price_list_id=price_list_id, client_id=client_id)
    best = run_pricing(lambda: pricing_engine.best_offer_for_product(product_id=product_id, context=context))
    return schemas.Offer.model_validate(best) if best else None

@router.get("/promotions/validate/{product_id}", response_model=schemas.PromotionValidation)
def validate_promotion(
    product_id: int,
    price_list_id: int = Query(...),
    campaign_id: Optional[int] = Query(default=None),
    client_id: Optional[str] = Query(default=None),
    pricing_engine: PricingEngine = Depends(get_pricing_engine)
):
    context = PricingContext(price_list_id=price_list_id, client_id=client_id)
    return run_pricing(
        lambda: pricing_engine.validate_promotion(product_id=product_id, campaign_id=campaign_id, context=context)
    )
