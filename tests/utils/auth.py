# tests/utils/auth.py

from datetime import datetime, timedelta, timezone
from jose import jwt
from faker import Faker

from catalog_service.core.config import settings

fake = Faker()

def create_token(*, role: str, client_id: str | None = None, price_list_id: int | None = None) -> str:
    """
    Emite um token como o serviço de identidade externo faria,
    assinado com a SECRET_KEY de teste.
    """
    claims = {
        "sub": fake.email(),
        "role": role,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=15),
    }
    if client_id is not None:
        claims["client_id"] = client_id
    if price_list_id is not None:
        claims["price_list_id"] = price_list_id
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def auth_headers(*, role: str = "admin", client_id: str | None = None, price_list_id: int | None = None) -> dict[str, str]:
    """Headers Bearer prontos para usar nos pedidos do TestClient."""
    token = create_token(role=role, client_id=client_id, price_list_id=price_list_id)
    return {"Authorization": f"Bearer {token}"}

def client_headers(*, price_list_id: int | None, client_id: str = "CLI-001") -> dict[str, str]:
    return auth_headers(role="client", client_id=client_id, price_list_id=price_list_id)
