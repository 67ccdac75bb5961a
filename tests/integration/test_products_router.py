# tests/integration/test_products_router.py

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from catalog_service.core.config import settings
from catalog_service.models import CampaignScope, DiscountType
from tests.utils.auth import auth_headers, client_headers
from tests.utils.catalog import (
    create_random_product, create_price_list, set_price, create_campaign, link_product
)

def test_client_catalog_shows_best_offer_for_its_list(client: TestClient, db: Session):
    """
    Cenário completo: campanha BY_LIST (10%) e GLOBAL (1.00 fixo) sobre
    base 20.00; o cliente da lista alvo vê o preço final 18.00.
    """
    # --- Arrange ---
    price_list = create_price_list(db)
    product = create_random_product(db)
    set_price(db, price_list=price_list, product=product, price=20.00)
    by_list = create_campaign(db, scope=CampaignScope.BY_LIST, target_price_list_id=price_list.id, discount_value=10)
    global_ = create_campaign(db, discount_type=DiscountType.FIXED_AMOUNT, discount_value=1)
    link_product(db, campaign=by_list, product=product)
    link_product(db, campaign=global_, product=product)

    # --- Act ---
    response = client.get(
        f"{settings.API_V1_STR}/products/",
        headers=client_headers(price_list_id=price_list.id),
    )

    # --- Assert ---
    assert response.status_code == 200
    item = next(p for p in response.json() if p["id"] == product.id)
    assert float(item["base_price"]) == 20.0
    assert float(item["final_price"]) == 18.0
    assert float(item["savings"]) == 2.0
    assert item["campaign_id"] == by_list.id

def test_other_list_only_gets_global_campaign(client: TestClient, db: Session):
    # --- Arrange ---
    target_list = create_price_list(db)
    other_list = create_price_list(db)
    product = create_random_product(db)
    set_price(db, price_list=other_list, product=product, price=20.00)
    by_list = create_campaign(db, scope=CampaignScope.BY_LIST, target_price_list_id=target_list.id, discount_value=10)
    global_ = create_campaign(db, discount_type=DiscountType.FIXED_AMOUNT, discount_value=1)
    link_product(db, campaign=by_list, product=product)
    link_product(db, campaign=global_, product=product)

    # --- Act ---
    response = client.get(
        f"{settings.API_V1_STR}/products/{product.id}",
        headers=client_headers(price_list_id=other_list.id),
    )

    # --- Assert ---
    assert response.status_code == 200
    data = response.json()
    assert float(data["final_price"]) == 19.0
    assert data["campaign_id"] == global_.id

def test_product_without_price_is_reported_with_null_base_price(client: TestClient, db: Session):
    price_list = create_price_list(db)
    product = create_random_product(db)
    campaign = create_campaign(db, discount_value=50)
    link_product(db, campaign=campaign, product=product)

    response = client.get(
        f"{settings.API_V1_STR}/products/{product.id}",
        headers=client_headers(price_list_id=price_list.id),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["base_price"] is None
    assert data["final_price"] is None
    assert data["campaign_id"] is None

def test_client_without_price_list_is_rejected(client: TestClient, db: Session):
    """
    Um cliente sem lista de preços resolvida recebe um erro explícito;
    nunca usamos uma lista por omissão.
    """
    create_random_product(db)

    response = client.get(f"{settings.API_V1_STR}/products/", headers=client_headers(price_list_id=None))

    assert response.status_code == 409
    assert "no price list" in response.json()["detail"]

def test_client_cannot_override_its_price_list_with_query_params(client: TestClient, db: Session):
    cheap_list = create_price_list(db)
    own_list = create_price_list(db)
    product = create_random_product(db)
    set_price(db, price_list=cheap_list, product=product, price=5.00)
    set_price(db, price_list=own_list, product=product, price=9.00)

    response = client.get(
        f"{settings.API_V1_STR}/products/{product.id}",
        params={"price_list_id": cheap_list.id},
        headers=client_headers(price_list_id=own_list.id),
    )

    assert response.status_code == 200
    assert float(response.json()["base_price"]) == 9.0

def test_staff_raw_view_returns_all_prices_without_promotions(client: TestClient, db: Session):
    # --- Arrange ---
    list_a = create_price_list(db)
    list_b = create_price_list(db)
    product = create_random_product(db)
    set_price(db, price_list=list_a, product=product, price=12.00)
    set_price(db, price_list=list_b, product=product, price=10.00)
    by_list = create_campaign(db, scope=CampaignScope.BY_LIST, target_price_list_id=list_b.id, discount_value=50)
    global_ = create_campaign(db, discount_value=10)
    link_product(db, campaign=by_list, product=product)
    link_product(db, campaign=global_, product=product)
    headers = auth_headers(role="seller")

    # --- Act ---
    raw = client.get(f"{settings.API_V1_STR}/products/{product.id}", headers=headers)
    promo = client.get(
        f"{settings.API_V1_STR}/products/{product.id}",
        params={"include_promotions": True},
        headers=headers,
    )

    # --- Assert ---
    raw_data = raw.json()
    assert raw.status_code == 200
    assert len(raw_data["prices"]) == 2
    assert float(raw_data["base_price"]) == 10.0
    assert raw_data["final_price"] is None

    # Sem lista fixada, só a campanha GLOBAL pode aplicar-se, sobre o menor preço
    promo_data = promo.json()
    assert promo_data["campaign_id"] == global_.id
    assert float(promo_data["final_price"]) == 9.0

def test_repeated_requests_return_identical_bytes(client: TestClient, db: Session):
    price_list = create_price_list(db)
    for price in (3.33, 10.05, 99.99):
        product = create_random_product(db)
        set_price(db, price_list=price_list, product=product, price=price)
        campaign = create_campaign(db, discount_value=50)
        link_product(db, campaign=campaign, product=product)
    headers = client_headers(price_list_id=price_list.id)

    first = client.get(f"{settings.API_V1_STR}/products/", headers=headers)
    second = client.get(f"{settings.API_V1_STR}/products/", headers=headers)

    assert first.status_code == 200
    assert first.content == second.content

def test_unknown_product_returns_404(client: TestClient, db: Session):
    price_list = create_price_list(db)

    response = client.get(
        f"{settings.API_V1_STR}/products/9999",
        headers=client_headers(price_list_id=price_list.id),
    )

    assert response.status_code == 404

def test_catalog_requires_a_token(client: TestClient, db: Session):
    response = client.get(f"{settings.API_V1_STR}/products/")
    assert response.status_code == 401

def test_admin_creates_product_and_duplicate_sku_is_rejected(client: TestClient, db: Session):
    headers = auth_headers(role="admin")
    payload = {"sku": "7800000000017", "name": "Aceite 1L", "unit_of_measure": "UN"}

    created = client.post(f"{settings.API_V1_STR}/products/", headers=headers, json=payload)
    duplicated = client.post(f"{settings.API_V1_STR}/products/", headers=headers, json=payload)

    assert created.status_code == 201
    assert created.json()["sku"] == "7800000000017"
    assert duplicated.status_code == 400

def test_client_cannot_create_products(client: TestClient, db: Session):
    response = client.post(
        f"{settings.API_V1_STR}/products/",
        headers=client_headers(price_list_id=1),
        json={"sku": "X-1", "name": "Nope"},
    )
    assert response.status_code == 403

def test_update_product_rejects_null_for_required_fields(client: TestClient, db: Session):
    product = create_random_product(db)
    headers = auth_headers(role="admin")
    url = f"{settings.API_V1_STR}/products/{product.id}"

    null_name = client.put(url, headers=headers, json={"name": None})
    null_active = client.put(url, headers=headers, json={"active": None})
    cleared_image = client.put(url, headers=headers, json={"image_url": None})

    assert null_name.status_code == 422
    assert null_active.status_code == 422
    assert cleared_image.status_code == 200
    assert cleared_image.json()["name"] == product.name

def test_catalog_database_failure_returns_503(client: TestClient, db: Session, mocker):
    price_list = create_price_list(db)
    mocker.patch(
        "catalog_service.crud.product.get_multi_active",
        side_effect=OperationalError("SELECT products", {}, Exception("database is locked")),
    )

    response = client.get(f"{settings.API_V1_STR}/products/", headers=client_headers(price_list_id=price_list.id))

    assert response.status_code == 503
