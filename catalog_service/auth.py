import enum
import secrets
from dataclasses import dataclass
from typing import List, Optional

from fastapi import Depends, Header, HTTPException, Query, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from .core.config import settings
from .services.eligibility import PricingContext
from .services.exceptions import PriceListUnresolved

# Os tokens são emitidos pelo serviço de identidade externo; aqui só os verificamos.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=settings.TOKEN_URL)

class Role(str, enum.Enum):
    ADMIN = "admin"
    SUPERVISOR = "supervisor"
    SELLER = "seller"
    CLIENT = "client"

STAFF_ROLES = [Role.ADMIN, Role.SUPERVISOR, Role.SELLER]

@dataclass(frozen=True)
class Principal:
    """Identidade já resolvida que vem nas claims do token."""
    subject: str
    role: Role
    client_id: Optional[str] = None
    price_list_id: Optional[int] = None

# --- Dependências (Dependencies) ---

def get_current_principal(token: str = Depends(oauth2_scheme)) -> Principal:
    """
    Valida o token e devolve a identidade do chamador.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        subject = payload.get("sub")
        role = Role(payload.get("role"))
        price_list_id = payload.get("price_list_id")
        client_id = payload.get("client_id")
    except (JWTError, ValueError):
        raise credentials_exception
    if subject is None:
        raise credentials_exception

    return Principal(
        subject=str(subject),
        role=role,
        client_id=str(client_id) if client_id is not None else None,
        price_list_id=int(price_list_id) if price_list_id is not None else None,
    )

def require_role(required_roles: List[Role]):
    """
    Fábrica de dependências que exige um dos 'roles' indicados.
    """
    def role_checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in required_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"User does not have the required privileges. Allowed roles: {[role.value for role in required_roles]}"
            )
        return principal
    return role_checker

require_admin_user = require_role([Role.ADMIN, Role.SUPERVISOR])
require_staff_user = require_role(STAFF_ROLES)
require_catalog_user = require_role(STAFF_ROLES + [Role.CLIENT])

def require_service_token(authorization: str | None = Header(default=None)) -> None:
    """
    Protege os endpoints internos (serviço a serviço) com o SERVICE_TOKEN.
    Sem SERVICE_TOKEN configurado a verificação fica desligada (desenvolvimento).
    """
    if not settings.SERVICE_TOKEN:
        return
    expected = f"Bearer {settings.SERVICE_TOKEN}"
    if authorization is None or not secrets.compare_digest(authorization, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized internal access",
        )

# --- Contexto de preços ---

def build_pricing_context(
    principal: Principal,
    *,
    price_list_id: Optional[int] = None,
    client_id: Optional[str] = None,
) -> PricingContext:
    """
    Clientes: o contexto vem SEMPRE do token; sem lista resolvida é erro,
    nunca se usa uma lista por omissão. Staff: usa os parâmetros pedidos,
    e sem lista obtém a vista administrativa.
    """
    if principal.role == Role.CLIENT:
        if principal.price_list_id is None:
            raise PriceListUnresolved(f"Client {principal.client_id or principal.subject} has no price list assigned.")
        return PricingContext(price_list_id=principal.price_list_id, client_id=principal.client_id)
    return PricingContext(price_list_id=price_list_id, client_id=client_id)

def get_pricing_context(
    price_list_id: Optional[int] = Query(default=None, description="Staff only: price list to resolve against"),
    client_id: Optional[str] = Query(default=None, description="Staff only: client to resolve for"),
    principal: Principal = Depends(require_catalog_user),
) -> PricingContext:
    try:
        return build_pricing_context(principal, price_list_id=price_list_id, client_id=client_id)
    except PriceListUnresolved as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
