from typing import Iterable, Optional

from .offer_calculator import ResolvedOffer


def select_best(candidate_offers: Iterable[Optional[ResolvedOffer]]) -> Optional[ResolvedOffer]:
    """
    Escolhe a oferta com o menor preço final.

    Empates vão para o menor campaign_id, por isso a ordem de entrada não
    altera o resultado. Sem candidatos, devolve None.
    """
    offers = [offer for offer in candidate_offers if offer is not None and offer.final_price is not None]
    if not offers:
        return None
    return min(offers, key=lambda offer: (offer.final_price, offer.campaign_id))
