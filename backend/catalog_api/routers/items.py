from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from catalog_api.core.deps import get_item_service
from catalog_api.schemas.catalog_item import ItemListResponse, ItemResponse, MessageResponse
from catalog_api.services.item_service import CatalogItemService, ImageFile
from catalog_api.services.item_store import EMBEDDED

router = APIRouter()


def item_form(
    provider_id: Optional[str] = Form(None, alias="providerId"),
    name: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    tax_percentage: Optional[str] = Form(None, alias="taxPercentage"),
    duration: Optional[str] = Form(None),
    service_types: Optional[str] = Form(None, alias="serviceTypes"),
    other_service_name: Optional[str] = Form(None, alias="otherServiceName"),
    sub_category: Optional[str] = Form(None, alias="subCategory"),
    stock: Optional[str] = Form(None),
    sku: Optional[str] = Form(None),
    company: Optional[str] = Form(None),
    uom: Optional[str] = Form(None),
    purchase_price: Optional[str] = Form(None, alias="purchasePrice"),
) -> dict[str, Any]:
    """Multipart catalog fields, snake_cased. Absent fields stay None."""
    return {
        "provider_id": provider_id,
        "name": name,
        "price": price,
        "category": category,
        "status": status,
        "description": description,
        "tax_percentage": tax_percentage,
        "duration": duration,
        "service_types": service_types,
        "other_service_name": other_service_name,
        "sub_category": sub_category,
        "stock": stock,
        "sku": sku,
        "company": company,
        "uom": uom,
        "purchase_price": purchase_price,
    }


async def _read_images(images: Optional[list[UploadFile]]) -> list[ImageFile]:
    files = []
    for upload in images or []:
        if not upload.filename:
            continue
        files.append(ImageFile(filename=upload.filename, content=await upload.read()))
    return files


@router.post("", response_model=ItemResponse, status_code=201)
async def create_item(
    fields: dict[str, Any] = Depends(item_form),
    images: Optional[list[UploadFile]] = File(None),
    service: CatalogItemService = Depends(get_item_service),
):
    """Create a service or product. Individual technicians' services go to their profile."""
    item = await service.create(fields, await _read_images(images))
    return ItemResponse(item=item)


@router.get("", response_model=ItemListResponse)
def list_items(
    provider_id: Optional[str] = Query(None, alias="providerId"),
    service: CatalogItemService = Depends(get_item_service),
):
    """All items of a provider: catalog table first (newest first), then profile services."""
    return ItemListResponse(items=service.list_for_provider(provider_id))


@router.get("/services", response_model=ItemListResponse)
def list_services(
    provider_id: Optional[str] = Query(None, alias="providerId"),
    service: CatalogItemService = Depends(get_item_service),
):
    return ItemListResponse(items=service.list_services(provider_id))


@router.get("/{item_id}", response_model=ItemResponse)
def get_item(
    item_id: str,
    service: CatalogItemService = Depends(get_item_service),
):
    return ItemResponse(item=service.get(item_id))


@router.put("/{item_id}", response_model=ItemResponse)
async def update_item(
    item_id: str,
    fields: dict[str, Any] = Depends(item_form),
    existing_images: Optional[str] = Form(None, alias="existingImages"),
    images: Optional[list[UploadFile]] = File(None),
    service: CatalogItemService = Depends(get_item_service),
):
    """Partial update. ``existingImages`` (JSON list) is the keep-list; uploaded images are appended."""
    item = await service.update(item_id, fields, existing_images, await _read_images(images))
    return ItemResponse(item=item)


@router.delete("/{item_id}", response_model=MessageResponse)
def delete_item(
    item_id: str,
    service: CatalogItemService = Depends(get_item_service),
):
    location = service.delete(item_id)
    if location == EMBEDDED:
        return MessageResponse(message="Service removed from technician profile")
    return MessageResponse(message="Item deleted from catalog")
