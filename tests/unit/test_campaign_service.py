# tests/unit/test_campaign_service.py

import pytest
from unittest.mock import MagicMock
from pydantic import ValidationError
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from catalog_service.models import Campaign, CampaignScope, DiscountType
from catalog_service.schemas import CampaignCreate, CampaignUpdate, CampaignProductLinkCreate
from catalog_service.services.campaign_service import CampaignService
from catalog_service.services.exceptions import (
    CampaignNotFound, InvalidDiscountShape, PriceListNotFound, ProductNotFound
)

NOW = datetime.now(timezone.utc)

def make_campaign(**overrides):
    values = dict(
        id=1, name="Verano", start_date=NOW, end_date=NOW + timedelta(days=5),
        discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("10"),
        scope=CampaignScope.GLOBAL, target_price_list_id=None, active=True,
    )
    values.update(overrides)
    return Campaign(**values)

def test_operations_on_deleted_campaign_raise_not_found(mocker):
    """
    Campanhas apagadas (soft-delete) não são encontradas pelo CRUD,
    e o serviço traduz isso em CampaignNotFound.
    """
    mocker.patch("catalog_service.crud.campaign.get_active", return_value=None)
    service = CampaignService(db=MagicMock())

    with pytest.raises(CampaignNotFound) as excinfo:
        service.delete_campaign(campaign_id=77)

    assert "77" in str(excinfo.value)

def test_create_by_list_campaign_requires_existing_list(mocker):
    mocker.patch("catalog_service.crud.price_list.get", return_value=None)
    create = mocker.patch("catalog_service.crud.campaign.create")
    service = CampaignService(db=MagicMock())
    campaign_in = CampaignCreate(
        name="Solo mayoristas", start_date=NOW, end_date=NOW + timedelta(days=1),
        discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("5"),
        scope=CampaignScope.BY_LIST, target_price_list_id=9,
    )

    with pytest.raises(PriceListNotFound):
        service.create_campaign(campaign_in=campaign_in)

    create.assert_not_called()

def test_update_validates_the_merged_shape(mocker):
    """
    Mudar só o alcance para BY_LIST sem lista alvo deixa a campanha
    inválida, mesmo que o pedido em si pareça correto.
    """
    mocker.patch("catalog_service.crud.campaign.get_active", return_value=make_campaign())
    update = mocker.patch("catalog_service.crud.campaign.update")
    service = CampaignService(db=MagicMock())

    with pytest.raises(InvalidDiscountShape):
        service.update_campaign(campaign_id=1, campaign_in=CampaignUpdate(scope=CampaignScope.BY_LIST))

    with pytest.raises(InvalidDiscountShape):
        service.update_campaign(campaign_id=1, campaign_in=CampaignUpdate(discount_value=Decimal("150")))

    update.assert_not_called()

def test_update_applies_valid_changes(mocker):
    db_campaign = make_campaign()
    mocker.patch("catalog_service.crud.campaign.get_active", return_value=db_campaign)
    update = mocker.patch("catalog_service.crud.campaign.update", return_value=db_campaign)
    service = CampaignService(db=MagicMock())

    service.update_campaign(
        campaign_id=1,
        campaign_in=CampaignUpdate(discount_type=DiscountType.FIXED_AMOUNT, discount_value=Decimal("2.50")),
    )

    _, kwargs = update.call_args
    assert kwargs["obj_in"] == {"discount_type": DiscountType.FIXED_AMOUNT, "discount_value": Decimal("2.50")}

def test_link_unknown_product_raises(mocker):
    mocker.patch("catalog_service.crud.campaign.get_active", return_value=make_campaign())
    mocker.patch("catalog_service.crud.product.get", return_value=None)
    link = mocker.patch("catalog_service.crud.campaign.link_product")
    service = CampaignService(db=MagicMock())

    with pytest.raises(ProductNotFound):
        service.link_product(campaign_id=1, link_in=CampaignProductLinkCreate(product_id=404))

    link.assert_not_called()

def test_update_compares_dates_with_different_offsets_in_utc(mocker):
    """
    12:00 em +05:00 são 07:00 UTC, antes do início às 10:00 UTC.
    Comparar só a hora local deixaria passar a data errada.
    """
    # --- Arrange ---
    start = datetime(2026, 1, 1, 10, 0, tzinfo=timezone.utc)
    mocker.patch(
        "catalog_service.crud.campaign.get_active",
        return_value=make_campaign(start_date=start, end_date=start + timedelta(days=5)),
    )
    update = mocker.patch("catalog_service.crud.campaign.update")
    service = CampaignService(db=MagicMock())
    end_in_other_offset = datetime(2026, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=5)))

    # --- Act / Assert ---
    with pytest.raises(ValueError, match="end_date"):
        service.update_campaign(campaign_id=1, campaign_in=CampaignUpdate(end_date=end_in_other_offset))

    update.assert_not_called()

def test_update_accepts_naive_stored_dates(mocker):
    # O SQLite devolve datas sem timezone; são tratadas como UTC
    db_campaign = make_campaign(start_date=datetime(2026, 1, 1, 10, 0), end_date=datetime(2026, 1, 5))
    mocker.patch("catalog_service.crud.campaign.get_active", return_value=db_campaign)
    update = mocker.patch("catalog_service.crud.campaign.update", return_value=db_campaign)
    service = CampaignService(db=MagicMock())

    service.update_campaign(
        campaign_id=1,
        campaign_in=CampaignUpdate(end_date=datetime(2026, 1, 3, tzinfo=timezone.utc)),
    )

    update.assert_called_once()

def test_update_schema_rejects_explicit_null_for_required_columns():
    """
    Omitir um campo mantém o valor atual; enviar null para uma coluna
    NOT NULL é um erro de validação.
    """
    for field in ("name", "start_date", "end_date", "scope", "active"):
        with pytest.raises(ValidationError, match=f"{field} cannot be null"):
            CampaignUpdate(**{field: None})

    # Colunas que aceitam null continuam a aceitar
    assert CampaignUpdate(description=None, discount_type=None).model_dump(exclude_unset=True) == {
        "description": None,
        "discount_type": None,
    }
