from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator, ValidationInfo
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from .core.config import settings
from .models import DiscountType, CampaignScope
from .services.eligibility import as_utc
from .services.offer_calculator import validate_discount_shape

def reject_null(value, info: ValidationInfo):
    """Campos NOT NULL nos updates: omitir é permitido, enviar null explícito não."""
    if value is None:
        raise ValueError(f"{info.field_name} cannot be null")
    return value

# --- Produtos ---

class ProductBase(BaseModel):
    sku: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    unit_of_measure: str = "UN"
    image_url: str | None = None
    active: bool = True

class ProductCreate(ProductBase):
    pass

class ProductUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    unit_of_measure: str | None = None
    image_url: str | None = None
    active: bool | None = None

    @field_validator("name", "unit_of_measure", "active")
    @classmethod
    def check_not_null(cls, value, info: ValidationInfo):
        return reject_null(value, info)

class Product(ProductBase):
    id: int

    model_config = ConfigDict(from_attributes=True)

# --- Listas de preços ---

class PriceListCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    currency: str = Field(settings.DEFAULT_CURRENCY, min_length=3, max_length=3)
    active: bool = True

class PriceListUpdate(BaseModel):
    name: str | None = None
    currency: str | None = Field(None, min_length=3, max_length=3)
    active: bool | None = None

    @field_validator("name", "currency", "active")
    @classmethod
    def check_not_null(cls, value, info: ValidationInfo):
        return reject_null(value, info)

class PriceList(PriceListCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)

class PriceAssign(BaseModel):
    # Não negativo, no máximo 2 casas decimais
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)

class PriceListItem(BaseModel):
    price_list_id: int
    product_id: int
    price: Decimal

    model_config = ConfigDict(from_attributes=True)

class PriceRow(BaseModel):
    """Uma linha crua de preço: o preço do produto numa lista."""
    price_list_id: int
    price: Decimal

    model_config = ConfigDict(from_attributes=True)

# --- Campanhas ---

class CampaignBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    start_date: datetime
    end_date: datetime
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, max_digits=10, decimal_places=2)
    scope: CampaignScope = CampaignScope.GLOBAL
    target_price_list_id: Optional[int] = None
    active: bool = True

class CampaignCreate(CampaignBase):

    @model_validator(mode="after")
    def check_shape(self):
        if as_utc(self.end_date) < as_utc(self.start_date):
            raise ValueError("end_date cannot be before start_date.")
        # InvalidDiscountShape é um ValueError: o pydantic devolve-o como erro 422
        validate_discount_shape(
            discount_type=self.discount_type,
            discount_value=self.discount_value,
            scope=self.scope,
            target_price_list_id=self.target_price_list_id,
        )
        return self

class CampaignUpdate(BaseModel):
    # A forma final é validada no serviço, depois de juntar com os valores atuais
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, max_digits=10, decimal_places=2)
    scope: Optional[CampaignScope] = None
    target_price_list_id: Optional[int] = None
    active: Optional[bool] = None

    @field_validator("name", "start_date", "end_date", "scope", "active")
    @classmethod
    def check_not_null(cls, value, info: ValidationInfo):
        return reject_null(value, info)

class Campaign(CampaignBase):
    id: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class CampaignProductLinkCreate(BaseModel):
    product_id: int
    fixed_override_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)

class CampaignProductLink(CampaignProductLinkCreate):
    campaign_id: int

    model_config = ConfigDict(from_attributes=True)

class CampaignClientCreate(BaseModel):
    client_id: str = Field(..., min_length=1, max_length=64)

class CampaignClient(CampaignClientCreate):
    campaign_id: int

    model_config = ConfigDict(from_attributes=True)

# --- Resolução de preços (saídas) ---

class Offer(BaseModel):
    product_id: int
    campaign_id: int
    base_price: Decimal
    final_price: Decimal
    savings: Decimal
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = None

    model_config = ConfigDict(from_attributes=True)

class CatalogProduct(Product):
    """
    Preço resolvido de um produto. Sem promoção aplicável, os campos
    final_price/savings/campaign_id ficam a null; sem preço, base_price é null.
    """
    price_list_id: Optional[int] = None
    base_price: Optional[Decimal] = None
    final_price: Optional[Decimal] = None
    savings: Optional[Decimal] = None
    campaign_id: Optional[int] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = None
    prices: List[PriceRow] = []

class CampaignProductPreview(BaseModel):
    product_id: int
    sku: str
    name: str
    fixed_override_price: Optional[Decimal] = None
    prices: List[PriceRow] = []
    base_price: Optional[Decimal] = None
    final_price: Optional[Decimal] = None
    savings: Optional[Decimal] = None

# --- Endpoints internos (serviço a serviço) ---

class BatchProductsRequest(BaseModel):
    ids: List[int] = Field(..., min_length=1)
    # O serviço chamador resolve cliente -> lista antes de chamar
    price_list_id: int
    client_id: Optional[str] = None

class BatchPromotion(BaseModel):
    campaign_id: int
    final_price: Decimal
    list_price: Decimal

class BatchProduct(BaseModel):
    id: int
    sku: str
    name: str
    unit_of_measure: str
    base_price: Optional[Decimal] = None
    prices: List[PriceRow] = []
    promotion: Optional[BatchPromotion] = None

class BatchCalculatorItem(BaseModel):
    product_id: int
    quantity: int = Field(..., gt=0, description="Quantity must be greater than zero")

class BatchCalculatorRequest(BaseModel):
    items: List[BatchCalculatorItem] = Field(..., min_length=1)
    price_list_id: int
    client_id: Optional[str] = None

class BatchCalculatorLine(BaseModel):
    product_id: int
    quantity: int
    unit_base_price: Optional[Decimal] = None
    unit_final_price: Optional[Decimal] = None
    savings: Optional[Decimal] = None
    campaign_id: Optional[int] = None
    subtotal: Optional[Decimal] = None

class PromotionValidation(BaseModel):
    valid: bool
    best: Optional[Offer] = None
