from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Collection, Optional

from ..models import CampaignScope


@dataclass(frozen=True)
class PricingContext:
    """
    Contexto de resolução já resolvido pelo chamador.

    price_list_id=None significa vista administrativa (sem lista fixada).
    """
    price_list_id: Optional[int] = None
    client_id: Optional[str] = None


def is_eligible(campaign, context: PricingContext, allowlisted_campaign_ids: Collection[int] = ()) -> bool:
    """
    Decide se uma campanha se aplica ao contexto.

    `allowlisted_campaign_ids` é o resultado da consulta à allowlist para o
    cliente do contexto. Função pura: o resultado não depende da ordem em que
    as campanhas de um produto são avaliadas.
    """
    if campaign.scope == CampaignScope.GLOBAL:
        return True

    if campaign.scope == CampaignScope.BY_LIST:
        # Sem lista fixada, campanhas restritas nunca se aplicam
        return context.price_list_id is not None and context.price_list_id == campaign.target_price_list_id

    if campaign.scope == CampaignScope.BY_CLIENT:
        return context.client_id is not None and campaign.id in allowlisted_campaign_ids

    return False


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Datas sem timezone (ex: lidas do SQLite) são tratadas como UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
