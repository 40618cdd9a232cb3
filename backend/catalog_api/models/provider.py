from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func

from catalog_api.core.database import Base
from catalog_api.models.column_types import JSONType


class ProviderType:
    WORKSHOP = "workshop"
    INDIVIDUAL = "individual"


class Provider(Base):
    """Workshop or individual technician that owns catalog items.

    Individual technicians keep their services embedded in ``services``
    rather than in the catalog_items table.
    """

    __tablename__ = "providers"

    id = Column(String(36), primary_key=True, index=True)
    type = Column(String(16), nullable=False, index=True)  # workshop, individual
    name = Column(String(255), nullable=False)
    mobile_number = Column(String(32), nullable=True)
    email = Column(String(255), nullable=True, index=True)
    address = Column(String(512), nullable=True)
    status = Column(String(16), default="pending", nullable=False)  # pending, approved, rejected
    services = Column(JSONType, nullable=True)  # embedded catalog items (dicts)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
