# catalog_service/models.py

import enum
from sqlalchemy import (
    Column, Integer, String, Boolean, DECIMAL, DateTime,
    ForeignKey, Enum, CheckConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# --- ENUMS ---

class DiscountType(str, enum.Enum):
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"

class CampaignScope(str, enum.Enum):
    GLOBAL = "GLOBAL"
    BY_LIST = "BY_LIST"       # Apenas clientes cuja lista de preços coincide
    BY_CLIENT = "BY_CLIENT"   # Apenas clientes na allowlist da campanha

# --- CATÁLOGO ---

class PriceList(Base):
    __tablename__ = "price_lists"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False)
    currency = Column(String(3), nullable=False, default="CLP")
    active = Column(Boolean, nullable=False, default=True)

    items = relationship("PriceListItem", back_populates="price_list")

class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    sku = Column(String(100), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(String)
    unit_of_measure = Column(String(50), nullable=False, default="UN")
    image_url = Column(String(1024))
    active = Column(Boolean, nullable=False, default=True)

    prices = relationship("PriceListItem", back_populates="product")

class PriceListItem(Base):
    __tablename__ = "price_list_items"
    # A chave composta garante no máximo um preço por (lista, produto)
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_price_list_items_price_non_negative"),
    )

    price_list_id = Column(Integer, ForeignKey("price_lists.id"), primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id"), primary_key=True)
    price = Column(DECIMAL(10, 2), nullable=False)

    price_list = relationship("PriceList", back_populates="items")
    product = relationship("Product", back_populates="prices")

# --- PROMOÇÕES ---

class Campaign(Base):
    __tablename__ = "campaigns"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String)

    # Janela de validade: guardada, mas NÃO consultada na resolução de preços.
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)

    # Nulo = campanha que só usa preços fixos por produto
    discount_type = Column(Enum(DiscountType))
    discount_value = Column(DECIMAL(10, 2))

    scope = Column(Enum(CampaignScope), nullable=False, default=CampaignScope.GLOBAL)
    target_price_list_id = Column(Integer, ForeignKey("price_lists.id"))

    # Soft-delete: active=False + deleted_at preenchido
    active = Column(Boolean, nullable=False, default=True)
    deleted_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    target_price_list = relationship("PriceList")
    product_links = relationship("ProductCampaignLink", back_populates="campaign")
    allowed_clients = relationship("CampaignClientAllowlist", back_populates="campaign")

class ProductCampaignLink(Base):
    __tablename__ = "campaign_products"

    campaign_id = Column(Integer, ForeignKey("campaigns.id"), primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id"), primary_key=True)
    fixed_override_price = Column(DECIMAL(10, 2))

    campaign = relationship("Campaign", back_populates="product_links")
    product = relationship("Product")

class CampaignClientAllowlist(Base):
    __tablename__ = "campaign_clients"

    campaign_id = Column(Integer, ForeignKey("campaigns.id"), primary_key=True)
    # Id opaco do registo de clientes externo
    client_id = Column(String(64), primary_key=True)

    campaign = relationship("Campaign", back_populates="allowed_clients")
