# catalog_service/crud/crud_campaign.py

from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, List, Optional, Set
from sqlalchemy import and_
from sqlalchemy.orm import Session, contains_eager

from .base import CRUDBase
from .. import models, schemas

class CRUDCampaign(CRUDBase[models.Campaign, schemas.CampaignCreate, schemas.CampaignUpdate]):

    def _not_deleted(self):
        return self.model.deleted_at.is_(None)

    def get_active(self, db: Session, *, campaign_id: int) -> Optional[models.Campaign]:
        """Busca uma campanha que não foi apagada (soft-delete)."""
        return (
            db.query(self.model)
            .filter(and_(self.model.id == campaign_id, self._not_deleted()))
            .first()
        )

    def get_multi_active(self, db: Session, *, skip: int = 0, limit: int = 100) -> List[models.Campaign]:
        return (
            db.query(self.model)
            .filter(self._not_deleted())
            .order_by(self.model.id)
            .offset(skip)
            .limit(limit)
            .all()
        )

    def soft_remove(self, db: Session, *, db_obj: models.Campaign) -> models.Campaign:
        db_obj.active = False
        db_obj.deleted_at = datetime.now(timezone.utc)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    # --- Registo de campanhas usado na resolução de preços ---

    def find_active_links_for_products(
        self, db: Session, *, product_ids: Iterable[int]
    ) -> List[models.ProductCampaignLink]:
        """
        Vínculos produto-campanha cujas campanhas estão ativas e não apagadas,
        com a campanha já carregada. A janela de datas NÃO é filtrada.
        A ordem do resultado não é garantida.
        """
        ids = list(set(product_ids))
        if not ids:
            return []
        return (
            db.query(models.ProductCampaignLink)
            .join(models.ProductCampaignLink.campaign)
            .filter(
                and_(
                    models.ProductCampaignLink.product_id.in_(ids),
                    self.model.active.is_(True),
                    self._not_deleted(),
                )
            )
            .options(contains_eager(models.ProductCampaignLink.campaign))
            .all()
        )

    def get_allowlisted_campaign_ids(
        self, db: Session, *, client_id: Optional[str], campaign_ids: Iterable[int]
    ) -> Set[int]:
        """De entre `campaign_ids`, quais têm o cliente na allowlist. Uma só query."""
        ids = list(set(campaign_ids))
        if client_id is None or not ids:
            return set()
        rows = (
            db.query(models.CampaignClientAllowlist.campaign_id)
            .filter(
                and_(
                    models.CampaignClientAllowlist.client_id == client_id,
                    models.CampaignClientAllowlist.campaign_id.in_(ids),
                )
            )
            .all()
        )
        return {row.campaign_id for row in rows}

    # --- Vínculos com produtos ---

    def get_links(self, db: Session, *, campaign_id: int) -> List[models.ProductCampaignLink]:
        return (
            db.query(models.ProductCampaignLink)
            .filter(models.ProductCampaignLink.campaign_id == campaign_id)
            .order_by(models.ProductCampaignLink.product_id)
            .all()
        )

    def get_link(self, db: Session, *, campaign_id: int, product_id: int) -> Optional[models.ProductCampaignLink]:
        return db.get(models.ProductCampaignLink, (campaign_id, product_id))

    def link_product(
        self, db: Session, *, campaign_id: int, product_id: int, fixed_override_price: Optional[Decimal] = None
    ) -> models.ProductCampaignLink:
        """Vincula um produto à campanha; se já existe, atualiza o preço fixo."""
        db_link = self.get_link(db, campaign_id=campaign_id, product_id=product_id)
        if db_link:
            db_link.fixed_override_price = fixed_override_price
        else:
            db_link = models.ProductCampaignLink(
                campaign_id=campaign_id,
                product_id=product_id,
                fixed_override_price=fixed_override_price,
            )
        db.add(db_link)
        db.commit()
        db.refresh(db_link)
        return db_link

    def unlink_product(self, db: Session, *, db_link: models.ProductCampaignLink) -> None:
        db.delete(db_link)
        db.commit()

    # --- Allowlist de clientes ---

    def get_clients(self, db: Session, *, campaign_id: int) -> List[models.CampaignClientAllowlist]:
        return (
            db.query(models.CampaignClientAllowlist)
            .filter(models.CampaignClientAllowlist.campaign_id == campaign_id)
            .order_by(models.CampaignClientAllowlist.client_id)
            .all()
        )

    def get_client(self, db: Session, *, campaign_id: int, client_id: str) -> Optional[models.CampaignClientAllowlist]:
        return db.get(models.CampaignClientAllowlist, (campaign_id, client_id))

    def add_client(self, db: Session, *, campaign_id: int, client_id: str) -> models.CampaignClientAllowlist:
        """Idempotente: adicionar um cliente que já está na lista devolve a linha existente."""
        db_entry = self.get_client(db, campaign_id=campaign_id, client_id=client_id)
        if db_entry:
            return db_entry
        db_entry = models.CampaignClientAllowlist(campaign_id=campaign_id, client_id=client_id)
        db.add(db_entry)
        db.commit()
        db.refresh(db_entry)
        return db_entry

    def remove_client(self, db: Session, *, db_entry: models.CampaignClientAllowlist) -> None:
        db.delete(db_entry)
        db.commit()

campaign = CRUDCampaign(models.Campaign)
