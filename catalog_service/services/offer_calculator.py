"""
Calculadora de ofertas.

Todas as contas são feitas com Decimal e arredondadas ao cêntimo com
ROUND_HALF_UP, seja qual for o ponto de chamada.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from ..models import CampaignScope, DiscountType
from .exceptions import InvalidDiscountShape

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class ResolvedOffer:
    """Oferta calculada (não persistida) de uma campanha para um produto."""
    product_id: int
    campaign_id: int
    base_price: Decimal
    final_price: Decimal
    savings: Decimal
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = None


def to_money(value) -> Decimal:
    """Converte para Decimal e arredonda ao cêntimo (half-up)."""
    if not isinstance(value, Decimal):
        # str() evita herdar o erro binário de um float
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_final_price(
    base_price: Optional[Decimal],
    *,
    fixed_override_price: Optional[Decimal] = None,
    discount_type: Optional[DiscountType] = None,
    discount_value: Optional[Decimal] = None,
) -> Optional[Decimal]:
    """
    Preço final de uma oferta, ou None se não é calculável.

    Ordem de prioridade:
    1. Preço fixo do vínculo produto-campanha (ignora o desconto da campanha).
    2. PERCENTAGE v: base * (1 - v/100).
    3. FIXED_AMOUNT v: base - v.
    Sem preço base, nunca há oferta. O resultado é limitado a 0 e arredondado.
    """
    if base_price is None:
        return None

    base_price = Decimal(base_price)
    if fixed_override_price is not None:
        final_price = Decimal(fixed_override_price)
    elif discount_type == DiscountType.PERCENTAGE and discount_value is not None:
        final_price = base_price * (1 - Decimal(discount_value) / HUNDRED)
    elif discount_type == DiscountType.FIXED_AMOUNT and discount_value is not None:
        final_price = base_price - Decimal(discount_value)
    else:
        return None

    if final_price < 0:
        final_price = ZERO
    return to_money(final_price)


def compute_offer(base_price: Optional[Decimal], link, campaign) -> Optional[ResolvedOffer]:
    """
    Calcula a oferta de `campaign` para o produto de `link`.

    Devolve None quando a oferta não é calculável ou não é aplicável, isto é,
    quando não baixa o preço (final >= base).
    """
    final_price = compute_final_price(
        base_price,
        fixed_override_price=link.fixed_override_price,
        discount_type=campaign.discount_type,
        discount_value=campaign.discount_value,
    )
    if final_price is None:
        return None

    base_price = to_money(base_price)
    if final_price >= base_price:
        return None

    return ResolvedOffer(
        product_id=link.product_id,
        campaign_id=campaign.id,
        base_price=base_price,
        final_price=final_price,
        savings=to_money(base_price - final_price),
        discount_type=campaign.discount_type,
        discount_value=campaign.discount_value,
    )


def select_base_price(rows: Iterable) -> Optional[Decimal]:
    """
    Preço base quando não há uma lista fixada (vista administrativa):
    o menor preço entre todas as listas. None se o produto não tem preços.
    """
    prices = [row.price for row in rows if row.price is not None]
    if not prices:
        return None
    return to_money(min(prices))


def validate_discount_shape(
    *,
    discount_type: Optional[DiscountType],
    discount_value: Optional[Decimal],
    scope: CampaignScope,
    target_price_list_id: Optional[int],
) -> None:
    """Valida a forma do desconto e do alcance de uma campanha."""
    if discount_type is None and discount_value is not None:
        raise InvalidDiscountShape("discount_value requires a discount_type.")
    if discount_type is not None and discount_value is None:
        raise InvalidDiscountShape(f"discount_type {discount_type.value} requires a discount_value.")

    if discount_type == DiscountType.PERCENTAGE and not (0 <= discount_value <= 100):
        raise InvalidDiscountShape("PERCENTAGE discount_value must be between 0 and 100.")
    if discount_type == DiscountType.FIXED_AMOUNT and discount_value < 0:
        raise InvalidDiscountShape("FIXED_AMOUNT discount_value cannot be negative.")

    if scope == CampaignScope.BY_LIST and target_price_list_id is None:
        raise InvalidDiscountShape("BY_LIST campaigns require a target_price_list_id.")
    if scope != CampaignScope.BY_LIST and target_price_list_id is not None:
        raise InvalidDiscountShape(f"target_price_list_id is only allowed for BY_LIST campaigns, not {scope.value}.")
