# catalog_service/routers/campaigns.py

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from .. import schemas, auth, crud
from ..database import get_db
from ..services.campaign_service import CampaignService
from ..services.exceptions import (
    CampaignNotFound, PriceListNotFound, PricingDataUnavailable, ProductNotFound
)
from ..services.pricing_engine import PricingEngine

router = APIRouter(
    prefix="/campaigns",
    tags=["Campaigns"]
)

def get_campaign_service(db: Session = Depends(get_db)) -> CampaignService:
    return CampaignService(db=db)

def get_pricing_engine(db: Session = Depends(get_db)) -> PricingEngine:
    return PricingEngine(db=db)

# --- Campanhas ---

@router.get("/", response_model=List[schemas.Campaign])
def read_campaigns(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: auth.Principal = Depends(auth.require_staff_user)
):
    return crud.campaign.get_multi_active(db, skip=skip, limit=limit)

@router.get("/{campaign_id}", response_model=schemas.Campaign)
def read_campaign(
    campaign_id: int,
    service: CampaignService = Depends(get_campaign_service),
    current_user: auth.Principal = Depends(auth.require_staff_user)
):
    try:
        return service.get_campaign(campaign_id=campaign_id)
    except CampaignNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

@router.post("/", response_model=schemas.Campaign, status_code=status.HTTP_201_CREATED)
def create_campaign(
    campaign_in: schemas.CampaignCreate,
    service: CampaignService = Depends(get_campaign_service),
    current_admin: auth.Principal = Depends(auth.require_admin_user)
):
    """
    Cria uma campanha. A forma do desconto e o alcance já chegam validados
    pelo schema; aqui confirmamos que a lista alvo (BY_LIST) existe.
    """
    try:
        return service.create_campaign(campaign_in=campaign_in)
    except PriceListNotFound as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

@router.put("/{campaign_id}", response_model=schemas.Campaign)
def update_campaign(
    campaign_id: int,
    campaign_in: schemas.CampaignUpdate,
    service: CampaignService = Depends(get_campaign_service),
    current_admin: auth.Principal = Depends(auth.require_admin_user)
):
    try:
        return service.update_campaign(campaign_id=campaign_id, campaign_in=campaign_in)
    except CampaignNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except (PriceListNotFound, ValueError) as e:
        # InvalidDiscountShape também é um ValueError
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

@router.delete("/{campaign_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_campaign(
    campaign_id: int,
    service: CampaignService = Depends(get_campaign_service),
    current_admin: auth.Principal = Depends(auth.require_admin_user)
):
    """Soft-delete: a campanha deixa de aplicar-se e de aparecer nas listagens."""
    try:
        service.delete_campaign(campaign_id=campaign_id)
    except CampaignNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return None

# --- Produtos em campanha ---

@router.post("/{campaign_id}/products", response_model=schemas.CampaignProductLink, status_code=status.HTTP_201_CREATED)
def link_product(
    campaign_id: int,
    link_in: schemas.CampaignProductLinkCreate,
    service: CampaignService = Depends(get_campaign_service),
    current_admin: auth.Principal = Depends(auth.require_admin_user)
):
    try:
        return service.link_product(campaign_id=campaign_id, link_in=link_in)
    except (CampaignNotFound, ProductNotFound) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

@router.get("/{campaign_id}/products", response_model=List[schemas.CampaignProductPreview])
def read_campaign_products(
    campaign_id: int,
    pricing_engine: PricingEngine = Depends(get_pricing_engine),
    current_user: auth.Principal = Depends(auth.require_staff_user)
):
    """
    Produtos da campanha com o preço base (menor entre listas) e o preço
    de oferta que esta campanha produz.
    """
    try:
        return pricing_engine.preview_campaign(campaign_id=campaign_id)
    except CampaignNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PricingDataUnavailable as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

@router.delete("/{campaign_id}/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def unlink_product(
    campaign_id: int,
    product_id: int,
    service: CampaignService = Depends(get_campaign_service),
    current_admin: auth.Principal = Depends(auth.require_admin_user)
):
    try:
        service.unlink_product(campaign_id=campaign_id, product_id=product_id)
    except (CampaignNotFound, ProductNotFound) as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return None

# --- Clientes permitidos (alcance BY_CLIENT) ---

@router.post("/{campaign_id}/clients", response_model=schemas.CampaignClient, status_code=status.HTTP_201_CREATED)
def add_client(
    campaign_id: int,
    client_in: schemas.CampaignClientCreate,
    service: CampaignService = Depends(get_campaign_service),
    current_admin: auth.Principal = Depends(auth.require_admin_user)
):
    try:
        return service.add_client(campaign_id=campaign_id, client_id=client_in.client_id)
    except CampaignNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

@router.get("/{campaign_id}/clients", response_model=List[schemas.CampaignClient])
def read_clients(
    campaign_id: int,
    service: CampaignService = Depends(get_campaign_service),
    current_admin: auth.Principal = Depends(auth.require_admin_user)
):
    try:
        return service.list_clients(campaign_id=campaign_id)
    except CampaignNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

@router.delete("/{campaign_id}/clients/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_client(
    campaign_id: int,
    client_id: str,
    service: CampaignService = Depends(get_campaign_service),
    current_admin: auth.Principal = Depends(auth.require_admin_user)
):
    try:
        removed = service.remove_client(campaign_id=campaign_id, client_id=client_id)
    except CampaignNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if not removed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not in campaign allowlist")
    return None
