from sqlalchemy import Column, String, DateTime, Float, Integer, Text
from sqlalchemy.sql import func

from catalog_api.core.database import Base
from catalog_api.models.column_types import JSONType


class CatalogItem(Base):
    """Standalone catalog entry - a workshop service or a stocked product."""

    __tablename__ = "catalog_items"

    id = Column(String(36), primary_key=True, index=True)
    provider_id = Column(String(36), nullable=False, index=True)  # not a FK; validity checked on lookup
    category = Column(String(16), nullable=False, index=True)  # service, product
    name = Column(String(255), nullable=False)
    price = Column(Float, nullable=False)
    status = Column(String(16), default="active", nullable=False)  # active, inactive
    images = Column(JSONType, nullable=False, default=list)
    description = Column(Text, nullable=True)
    tax_percentage = Column(Float, default=0, nullable=False)

    # Service-only
    duration = Column(Integer, nullable=True)  # minutes
    service_types = Column(JSONType, nullable=False, default=list)
    other_service_name = Column(String(255), nullable=True)

    # Product-only
    sub_category = Column(String(128), nullable=True)
    stock = Column(Integer, nullable=True)
    sku = Column(String(64), nullable=True, index=True)
    company = Column(String(255), nullable=True)
    uom = Column(String(64), nullable=True)
    purchase_price = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
