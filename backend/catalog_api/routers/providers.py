import logging
import uuid
from contextlib import contextmanager

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from catalog_api.core.deps import get_db
from catalog_api.core.errors import NotFound, StoreError
from catalog_api.models.provider import Provider
from catalog_api.schemas.provider import (
    ProviderCreate,
    ProviderListResponse,
    ProviderOut,
    ProviderResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@contextmanager
def _provider_db(db: Session, action: str):
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Provider %s failed", action)
        raise StoreError(f"provider {action} failed: {exc}") from exc


@router.post("", response_model=ProviderResponse, status_code=201)
def create_provider(body: ProviderCreate, db: Session = Depends(get_db)):
    """Register a workshop or an individual technician."""
    provider = Provider(
        id=uuid.uuid4().hex,
        type=body.type,
        name=body.name,
        mobile_number=body.mobile_number,
        email=body.email,
        address=body.address,
        status="pending",
        services=[] if body.type == "individual" else None,
    )
    with _provider_db(db, "create"):
        db.add(provider)
        db.commit()
        db.refresh(provider)
    logger.info("Registered %s provider %s", provider.type, provider.id)
    return ProviderResponse(provider=ProviderOut.model_validate(provider))


@router.get("", response_model=ProviderListResponse)
def list_providers(db: Session = Depends(get_db)):
    with _provider_db(db, "list"):
        providers = db.query(Provider).order_by(Provider.created_at.desc(), Provider.name).all()
    return ProviderListResponse(providers=[ProviderOut.model_validate(p) for p in providers])


@router.get("/{provider_id}", response_model=ProviderResponse)
def get_provider(provider_id: str, db: Session = Depends(get_db)):
    with _provider_db(db, "lookup"):
        provider = db.query(Provider).filter(Provider.id == provider_id).first()
    if not provider:
        raise NotFound("Provider not found")
    return ProviderResponse(provider=ProviderOut.model_validate(provider))
