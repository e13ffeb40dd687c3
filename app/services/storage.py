from __future__ import annotations

import json
import logging
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from app.config import settings

LOGGER = logging.getLogger(__name__)


class StorageError(RuntimeError):
    pass


class MediaStorage:
    """Client for the Supabase Storage REST API, scoped to one bucket."""

    def __init__(self, base_url: str, service_key: str, bucket: str) -> None:
        self._base_url = base_url.rstrip("/")
        self._service_key = service_key
        self._bucket = bucket

    @property
    def public_prefix(self) -> str:
        return f"{self._base_url}/storage/v1/object/public/{self._bucket}/"

    def public_url(self, path: str) -> str:
        return f"{self.public_prefix}{path}"

    def path_from_url(self, url: str) -> str | None:
        """Storage key for a public URL of this bucket, ``None`` for foreign URLs."""
        if not url.startswith(self.public_prefix):
            return None
        path = url[len(self.public_prefix):].split("?", 1)[0]
        return path or None

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        self._send(
            "POST",
            f"/storage/v1/object/{self._bucket}/{quote(path)}",
            data,
            self._headers(content_type, {"x-upsert": "false"}),
            action="upload",
        )
        LOGGER.info("Stored media object path=%s bytes=%s", path, len(data))
        return self.public_url(path)

    def remove(self, paths: list[str]) -> None:
        if not paths:
            return
        payload = json.dumps({"prefixes": paths}).encode("utf-8")
        self._send(
            "DELETE",
            f"/storage/v1/object/{self._bucket}",
            payload,
            self._headers("application/json"),
            action="remove",
        )
        LOGGER.info("Removed media objects count=%s", len(paths))

    def _headers(self, content_type: str, extra: dict[str, str] | None = None) -> dict:
        headers = {
            "Authorization": f"Bearer {self._service_key}",
            "apikey": self._service_key,
            "Content-Type": content_type,
        }
        if extra:
            headers.update(extra)
        return headers

    def _send(
        self, method: str, path: str, data: bytes, headers: dict, action: str
    ) -> None:
        if not self._base_url or not self._service_key:
            raise StorageError("Object storage is not configured")
        request = Request(
            f"{self._base_url}{path}", data=data, headers=headers, method=method
        )
        try:
            with urlopen(request, timeout=30) as response:
                response.read()
        except HTTPError as exc:
            error_body = exc.read().decode("utf-8", errors="replace")
            LOGGER.error("Storage %s failed status=%s response=%s", action, exc.code, error_body)
            raise StorageError(f"Failed to {action} media") from exc
        except URLError as exc:
            raise StorageError("Failed to reach object storage") from exc


media_storage = MediaStorage(
    settings.supabase_url, settings.supabase_service_role_key, settings.storage_bucket
)
