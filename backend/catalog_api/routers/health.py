import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from catalog_api.core.deps import get_db, get_uploader
from catalog_api.services.object_storage import ImageUploader

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def health_check(
    db: Session = Depends(get_db),
    uploader: ImageUploader = Depends(get_uploader),
):
    """Reports whether the catalog database answers and where images are stored."""
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError as exc:
        logger.warning("Health check: database unreachable: %s", exc)
        database = "disconnected"
    return {
        "status": "ok" if database == "connected" else "degraded",
        "database": database,
        "imageStorage": uploader.backend,
    }
