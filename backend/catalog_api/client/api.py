"""HTTP client for the catalog API, as used by the mobile catalog screens."""

import json
import logging
import mimetypes
from pathlib import Path
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 15


class CatalogApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


def _local_path(uri: str) -> Path:
    return Path(uri[len("file://"):] if uri.startswith("file://") else uri)


def _form_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return json.dumps(list(value))
    if value is None:
        return ""
    return str(value)


class CatalogApiClient:
    def __init__(
        self,
        base_url: str,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        if http_client is None:
            http_client = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)
        self._client = http_client

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "CatalogApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> dict[str, Any]:
        try:
            resp = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("Catalog API %s %s failed: %s", method, path, e)
            raise CatalogApiError(0, "Could not reach the server") from e
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if resp.status_code >= 400 or body.get("success") is False:
            message = body.get("message") or resp.reason_phrase or "Request failed"
            raise CatalogApiError(resp.status_code, message)
        return body

    def _multipart(self, fields: dict[str, Any], image_paths: list[str]):
        data = {k: _form_value(v) for k, v in fields.items()}
        files = []
        for uri in image_paths:
            path = _local_path(uri)
            mime = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
            files.append(("images", (path.name, path.read_bytes(), mime)))
        return data, files

    # --- items ---

    def list_items(self, provider_id: str) -> list[dict[str, Any]]:
        return self._request("GET", "/items", params={"providerId": provider_id}).get("items", [])

    def list_services(self, provider_id: str) -> list[dict[str, Any]]:
        return self._request("GET", "/items/services", params={"providerId": provider_id}).get("items", [])

    def get_item(self, item_id: str) -> dict[str, Any]:
        return self._request("GET", f"/items/{item_id}")["item"]

    def create_item(self, fields: dict[str, Any], image_paths: Optional[list[str]] = None) -> dict[str, Any]:
        data, files = self._multipart(fields, image_paths or [])
        return self._request("POST", "/items", data=data, files=files or None)["item"]

    def update_item(
        self,
        item_id: str,
        fields: dict[str, Any],
        existing_images: Optional[list[str]] = None,
        image_paths: Optional[list[str]] = None,
    ) -> dict[str, Any]:
        data, files = self._multipart(fields, image_paths or [])
        if existing_images is not None:
            data["existingImages"] = json.dumps(existing_images)
        return self._request("PUT", f"/items/{item_id}", data=data, files=files or None)["item"]

    def delete_item(self, item_id: str) -> str:
        return self._request("DELETE", f"/items/{item_id}").get("message", "")

    # --- providers ---

    def create_provider(self, type: str, name: str, **extra: Any) -> dict[str, Any]:
        return self._request("POST", "/providers", json={"type": type, "name": name, **extra})["provider"]

    def list_providers(self) -> list[dict[str, Any]]:
        return self._request("GET", "/providers").get("providers", [])
