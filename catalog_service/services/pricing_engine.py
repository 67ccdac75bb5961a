# catalog_service/services/pricing_engine.py

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import crud, models, schemas
from ..crud import crud_price
from ..models import CampaignScope
from .eligibility import PricingContext, as_utc, is_eligible
from .exceptions import (
    CampaignNotFound,
    PriceListNotFound,
    PricingDataUnavailable,
    ProductNotFound,
)
from .offer_calculator import ResolvedOffer, compute_offer, select_base_price, to_money
from .offer_selector import select_best

logger = logging.getLogger(__name__)


@dataclass
class ResolvedPrice:
    """Resultado da resolução de preço de um produto."""
    product_id: int
    price_list_id: Optional[int]
    base_price: Optional[Decimal]
    prices: List[models.PriceListItem] = field(default_factory=list)
    offer: Optional[ResolvedOffer] = None
    product: Optional[models.Product] = None

    @property
    def final_price(self) -> Optional[Decimal]:
        return self.offer.final_price if self.offer else None

    @property
    def savings(self) -> Optional[Decimal]:
        return self.offer.savings if self.offer else None

    @property
    def campaign_id(self) -> Optional[int]:
        return self.offer.campaign_id if self.offer else None

    @property
    def unit_price(self) -> Optional[Decimal]:
        """O preço efetivamente cobrado: o promocional se existir, senão o base."""
        return self.final_price if self.offer else self.base_price

    def as_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "price_list_id": self.price_list_id,
            "base_price": self.base_price,
            "final_price": self.final_price,
            "savings": self.savings,
            "campaign_id": self.campaign_id,
            "discount_type": self.offer.discount_type if self.offer else None,
            "discount_value": self.offer.discount_value if self.offer else None,
            "prices": [schemas.PriceRow.model_validate(row) for row in self.prices],
        }


class PricingEngine:
    """
    Ponto único de resolução de preços e promoções.

    Todos os formatos de chamada (produto único, página do catálogo, lote
    interno, calculadora de pedidos) passam por `_resolve`, por isso o mesmo
    produto no mesmo contexto dá sempre o mesmo resultado.

    Pipeline por pedido:
    1. Preços de todos os produtos numa query (lista fixada ou todas as listas).
    2. Vínculos com campanhas ativas numa query, mais uma consulta à allowlist.
    3. Em memória, por produto: preço base -> elegibilidade -> oferta -> melhor oferta.
    """

    def __init__(self, db: Session):
        self.db = db

    # --- Formatos de chamada ---

    def resolve_product(
        self, *, product_id: int, context: PricingContext, include_promotions: bool = True
    ) -> ResolvedPrice:
        return self.resolve_products(
            product_ids=[product_id], context=context, include_promotions=include_promotions
        )[0]

    def resolve_products(
        self, *, product_ids: List[int], context: PricingContext, include_promotions: bool = True
    ) -> List[ResolvedPrice]:
        """Resolve um lote de produtos. O resultado segue a ordem de `product_ids`."""
        products = self._load_products(product_ids)
        return self._resolve(product_ids, products, context, include_promotions)

    def resolve_catalog_page(
        self, *, products: List[models.Product], context: PricingContext, include_promotions: bool = True
    ) -> List[ResolvedPrice]:
        """Resolve uma página do catálogo já carregada do banco."""
        by_id = {product.id: product for product in products}
        return self._resolve([product.id for product in products], by_id, context, include_promotions)

    def best_offer_for_product(self, *, product_id: int, context: PricingContext) -> Optional[ResolvedOffer]:
        return self.resolve_product(product_id=product_id, context=context).offer

    def validate_promotion(
        self, *, product_id: int, campaign_id: Optional[int], context: PricingContext
    ) -> schemas.PromotionValidation:
        """
        Confirma que a promoção vista pelo carrinho ainda é a melhor oferta
        atual para o produto neste contexto.
        """
        best = self.best_offer_for_product(product_id=product_id, context=context)
        valid = best is not None and campaign_id is not None and best.campaign_id == campaign_id
        return schemas.PromotionValidation(
            valid=valid,
            best=schemas.Offer.model_validate(best) if best else None,
        )

    def calculate_batch(
        self, *, items: List[schemas.BatchCalculatorItem], context: PricingContext
    ) -> List[schemas.BatchCalculatorLine]:
        """
        Fotografia de preços para um pedido. Cada linha leva o preço unitário
        base, o promocional (se houver) e o subtotal. Sem preço, o subtotal é null.
        """
        resolved = self.resolve_products(
            product_ids=[item.product_id for item in items], context=context
        )
        lines = []
        for item, price in zip(items, resolved):
            unit_price = price.unit_price
            lines.append(
                schemas.BatchCalculatorLine(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_base_price=price.base_price,
                    unit_final_price=price.final_price,
                    savings=price.savings,
                    campaign_id=price.campaign_id,
                    subtotal=to_money(unit_price * item.quantity) if unit_price is not None else None,
                )
            )
        return lines

    def preview_campaign(self, *, campaign_id: int) -> List[schemas.CampaignProductPreview]:
        """
        Vista de administração de uma campanha: para cada produto vinculado,
        os preços crus, o preço base (mínimo entre listas) e a oferta que
        ESTA campanha produz. Não avalia elegibilidade.
        """
        try:
            campaign = crud.campaign.get_active(self.db, campaign_id=campaign_id)
            if campaign is None:
                raise CampaignNotFound(campaign_id)
            links = crud.campaign.get_links(self.db, campaign_id=campaign_id)
            product_ids = [link.product_id for link in links]
            products = {p.id: p for p in crud.product.get_by_ids(self.db, product_ids=product_ids)}
            rows = crud_price.get_prices_for_products(self.db, product_ids)
        except SQLAlchemyError as e:
            logger.error("Failed to load campaign %s for preview: %s", campaign_id, e)
            raise PricingDataUnavailable(f"Could not load pricing data for campaign {campaign_id}.") from e

        rows_by_product = self._group_by_product(rows)
        previews = []
        for link in links:
            product = products[link.product_id]
            product_rows = rows_by_product[link.product_id]
            base_price = select_base_price(product_rows)
            offer = compute_offer(base_price, link, campaign)
            previews.append(
                schemas.CampaignProductPreview(
                    product_id=product.id,
                    sku=product.sku,
                    name=product.name,
                    fixed_override_price=link.fixed_override_price,
                    prices=[schemas.PriceRow.model_validate(row) for row in product_rows],
                    base_price=base_price,
                    final_price=offer.final_price if offer else None,
                    savings=offer.savings if offer else None,
                )
            )
        return previews

    # --- Núcleo ---

    def _load_products(self, product_ids: Iterable[int]) -> Dict[int, models.Product]:
        ids = set(product_ids)
        try:
            products = crud.product.get_by_ids(self.db, product_ids=ids)
        except SQLAlchemyError as e:
            logger.error("Failed to load products %s: %s", sorted(ids), e)
            raise PricingDataUnavailable("Could not load products.") from e

        by_id = {product.id: product for product in products}
        missing = ids - set(by_id)
        if missing:
            raise ProductNotFound(missing)
        return by_id

    def _resolve(
        self,
        product_ids: List[int],
        products: Dict[int, models.Product],
        context: PricingContext,
        include_promotions: bool,
    ) -> List[ResolvedPrice]:
        unique_ids = sorted(set(product_ids))
        logger.debug(
            "Resolving %d product(s) for price_list=%s client=%s promotions=%s",
            len(unique_ids), context.price_list_id, context.client_id, include_promotions,
        )

        rows, links, allowlisted = self._fetch(unique_ids, context, include_promotions)
        rows_by_product = self._group_by_product(rows)
        links_by_product = self._group_by_product(links)

        resolved = {}
        for product_id in unique_ids:
            price = self._resolve_one(
                product_id,
                rows_by_product[product_id],
                links_by_product[product_id],
                context,
                allowlisted,
                include_promotions,
            )
            price.product = products.get(product_id)
            resolved[product_id] = price

        return [resolved[product_id] for product_id in product_ids]

    def _fetch(self, product_ids: List[int], context: PricingContext, include_promotions: bool):
        """
        Lê tudo o que a resolução precisa. Qualquer falha aborta o lote inteiro:
        um resultado parcial mostraria preços errados.
        """
        try:
            if context.price_list_id is not None and crud.price_list.get(self.db, id=context.price_list_id) is None:
                raise PriceListNotFound(context.price_list_id)

            rows = crud_price.get_prices_for_products(self.db, product_ids, price_list_id=context.price_list_id)

            links: List[models.ProductCampaignLink] = []
            allowlisted = set()
            if include_promotions:
                links = crud.campaign.find_active_links_for_products(self.db, product_ids=product_ids)
                by_client = [link.campaign_id for link in links if link.campaign.scope == CampaignScope.BY_CLIENT]
                allowlisted = crud.campaign.get_allowlisted_campaign_ids(
                    self.db, client_id=context.client_id, campaign_ids=by_client
                )
        except SQLAlchemyError as e:
            logger.error("Failed to fetch pricing data for %d product(s): %s", len(product_ids), e)
            raise PricingDataUnavailable("Could not load prices or campaigns.") from e

        return rows, links, allowlisted

    def _resolve_one(
        self,
        product_id: int,
        rows: List[models.PriceListItem],
        links: List[models.ProductCampaignLink],
        context: PricingContext,
        allowlisted: set,
        include_promotions: bool,
    ) -> ResolvedPrice:
        if context.price_list_id is not None:
            # Lista fixada: no máximo uma linha (chave composta)
            base_price = to_money(rows[0].price) if rows else None
        else:
            base_price = select_base_price(rows)

        result = ResolvedPrice(
            product_id=product_id,
            price_list_id=context.price_list_id,
            base_price=base_price,
            prices=rows,
        )
        if not include_promotions or base_price is None:
            return result

        candidates = [
            compute_offer(base_price, link, link.campaign)
            for link in links
            if is_eligible(link.campaign, context, allowlisted)
        ]
        result.offer = select_best(candidates)

        if result.offer is not None:
            chosen = next(link.campaign for link in links if link.campaign_id == result.offer.campaign_id)
            if _outside_window(chosen):
                # A janela de datas não é aplicada; fica registado para auditoria
                logger.debug(
                    "Campaign %s applied to product %s outside its date window (%s - %s)",
                    chosen.id, product_id, chosen.start_date, chosen.end_date,
                )
        return result

    @staticmethod
    def _group_by_product(items) -> Dict[int, list]:
        grouped = defaultdict(list)
        for item in items:
            grouped[item.product_id].append(item)
        return grouped


def _outside_window(campaign: models.Campaign) -> bool:
    now = datetime.now(timezone.utc)
    start, end = as_utc(campaign.start_date), as_utc(campaign.end_date)
    return (start is not None and now < start) or (end is not None and now > end)
