from typing import Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from catalog_api.services.item_service import CatalogItemService
from catalog_api.services.item_store import CatalogItemStore
from catalog_api.services.object_storage import ImageUploader


def get_db(request: Request) -> Generator[Session, None, None]:
    db = request.app.state.db.session()
    try:
        yield db
    finally:
        db.close()


def get_uploader(request: Request) -> ImageUploader:
    return request.app.state.uploader


def get_item_store(db: Session = Depends(get_db)) -> CatalogItemStore:
    # New store per request so location lookups are only memoized for that request
    return CatalogItemStore(db)


def get_item_service(
    request: Request,
    store: CatalogItemStore = Depends(get_item_store),
    uploader: ImageUploader = Depends(get_uploader),
) -> CatalogItemService:
    settings = request.app.state.settings
    return CatalogItemService(
        store,
        uploader,
        max_images=settings.MAX_ITEM_IMAGES,
        max_image_bytes=settings.IMAGE_MAX_SIZE_BYTES,
        image_extensions=settings.IMAGE_EXTENSIONS,
    )
