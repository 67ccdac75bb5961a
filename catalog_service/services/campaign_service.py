# catalog_service/services/campaign_service.py

import logging
from typing import List

from sqlalchemy.orm import Session

from .. import models, schemas, crud
from ..models import CampaignScope
from .exceptions import CampaignNotFound, PriceListNotFound, ProductNotFound
from .eligibility import as_utc
from .offer_calculator import validate_discount_shape

logger = logging.getLogger(__name__)

class CampaignService:
    """
    Operações de administração de campanhas, vínculos e allowlists.

    Não há cache: a próxima resolução de preços já vê as alterações.
    """
    def __init__(self, db: Session):
        self.db = db

    def get_campaign(self, *, campaign_id: int) -> models.Campaign:
        db_campaign = crud.campaign.get_active(self.db, campaign_id=campaign_id)
        if db_campaign is None:
            raise CampaignNotFound(campaign_id)
        return db_campaign

    def create_campaign(self, *, campaign_in: schemas.CampaignCreate) -> models.Campaign:
        self._check_target_list(campaign_in.scope, campaign_in.target_price_list_id)
        db_campaign = crud.campaign.create(self.db, obj_in=campaign_in)
        logger.info("Campaign %s created (scope=%s)", db_campaign.id, db_campaign.scope.value)
        return db_campaign

    def update_campaign(self, *, campaign_id: int, campaign_in: schemas.CampaignUpdate) -> models.Campaign:
        db_campaign = self.get_campaign(campaign_id=campaign_id)
        changes = campaign_in.model_dump(exclude_unset=True)

        # Valida a forma final (valores atuais + alterações) antes de escrever
        merged = {
            "discount_type": db_campaign.discount_type,
            "discount_value": db_campaign.discount_value,
            "scope": db_campaign.scope,
            "target_price_list_id": db_campaign.target_price_list_id,
        }
        merged.update({key: value for key, value in changes.items() if key in merged})
        validate_discount_shape(**merged)
        self._check_target_list(merged["scope"], merged["target_price_list_id"])

        start_date = changes.get("start_date", db_campaign.start_date)
        end_date = changes.get("end_date", db_campaign.end_date)
        if start_date is not None and end_date is not None and as_utc(end_date) < as_utc(start_date):
            raise ValueError("end_date cannot be before start_date.")

        updated = crud.campaign.update(self.db, db_obj=db_campaign, obj_in=changes)
        logger.info("Campaign %s updated: %s", campaign_id, sorted(changes))
        return updated

    def delete_campaign(self, *, campaign_id: int) -> models.Campaign:
        db_campaign = self.get_campaign(campaign_id=campaign_id)
        logger.info("Campaign %s soft-deleted", campaign_id)
        return crud.campaign.soft_remove(self.db, db_obj=db_campaign)

    # --- Produtos ---

    def link_product(self, *, campaign_id: int, link_in: schemas.CampaignProductLinkCreate) -> models.ProductCampaignLink:
        self.get_campaign(campaign_id=campaign_id)
        if crud.product.get(self.db, id=link_in.product_id) is None:
            raise ProductNotFound([link_in.product_id])
        return crud.campaign.link_product(
            self.db,
            campaign_id=campaign_id,
            product_id=link_in.product_id,
            fixed_override_price=link_in.fixed_override_price,
        )

    def unlink_product(self, *, campaign_id: int, product_id: int) -> None:
        self.get_campaign(campaign_id=campaign_id)
        db_link = crud.campaign.get_link(self.db, campaign_id=campaign_id, product_id=product_id)
        if db_link is None:
            raise ProductNotFound([product_id])
        crud.campaign.unlink_product(self.db, db_link=db_link)

    # --- Allowlist (alcance BY_CLIENT) ---

    def list_clients(self, *, campaign_id: int) -> List[models.CampaignClientAllowlist]:
        self.get_campaign(campaign_id=campaign_id)
        return crud.campaign.get_clients(self.db, campaign_id=campaign_id)

    def add_client(self, *, campaign_id: int, client_id: str) -> models.CampaignClientAllowlist:
        db_campaign = self.get_campaign(campaign_id=campaign_id)
        if db_campaign.scope != CampaignScope.BY_CLIENT:
            # Guardamos na mesma: a allowlist só é consultada para BY_CLIENT
            logger.warning("Client added to campaign %s with scope %s", campaign_id, db_campaign.scope.value)
        return crud.campaign.add_client(self.db, campaign_id=campaign_id, client_id=client_id)

    def remove_client(self, *, campaign_id: int, client_id: str) -> bool:
        """Devolve False se o cliente não estava na lista."""
        self.get_campaign(campaign_id=campaign_id)
        db_entry = crud.campaign.get_client(self.db, campaign_id=campaign_id, client_id=client_id)
        if db_entry is None:
            return False
        crud.campaign.remove_client(self.db, db_entry=db_entry)
        return True

    def _check_target_list(self, scope: CampaignScope, target_price_list_id) -> None:
        if scope == CampaignScope.BY_LIST and crud.price_list.get(self.db, id=target_price_list_id) is None:
            raise PriceListNotFound(target_price_list_id)
