"""Client for the hosted object storage REST API."""

import logging
from functools import lru_cache
from typing import Any, Iterable, List, Optional
from urllib.parse import quote, unquote, urlparse

import requests

from app.config import settings
from shared.contract_document import is_docgen_url
from shared.filenames import file_extension, sanitize_file_name, sanitize_storage_name

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when the storage API answers with an error status."""

    def __init__(self, status: int, message: str, body: Optional[str] = None) -> None:
        super().__init__(message)
        self.status = status
        self.body = body or message


def path_from_url(url: str, bucket: str) -> str:
    """Object key inside ``bucket`` for a public or signed URL; plain keys pass through."""
    text = (url or "").strip()
    if not text.startswith("http"):
        return text.lstrip("/")
    path = unquote(urlparse(text).path)
    for marker in (f"/object/public/{bucket}/", f"/object/sign/{bucket}/", f"/object/{bucket}/"):
        index = path.find(marker)
        if index != -1:
            return path[index + len(marker):]
    return path.lstrip("/")


def draft_path(project_id: str, contract_name: str, file_name: str) -> str:
    return f"drafts/{project_id}/{sanitize_storage_name(contract_name)}/{sanitize_storage_name(file_name)}"


def member_document_path(folder: str, member_id: str, file_name: str) -> str:
    """``contractualdocuments/<member>/<key>``, ``precontractualdocuments/...``, ``renuncia/...``."""
    return f"{folder}/{member_id}/{sanitize_file_name(file_name)}"


def extension_path(member_id: str, file_name: str) -> str:
    return f"extension/{member_id}/{sanitize_storage_name(file_name)}"


def extra_document_path(member_id: str, document_id: str, file_name: str, timestamp: int) -> str:
    return f"extra/{member_id}/{document_id}_{timestamp}.{file_extension(file_name)}"


def signature_path(owner: str, owner_id: str, file_name: str) -> str:
    """Signatures live in the images bucket, one file per project or user."""
    return f"signatures/{owner}/{owner_id}.{file_extension(file_name, default='png')}"


def candidate_paths(path: str) -> List[str]:
    """Likely keys for a stored document, most specific first.

    Older uploads sometimes had the member id appended or the extension
    dropped, so a missing object is retried under those spellings.
    """
    parts = path.split("/")
    candidates = [path]
    if len(parts) > 2:
        parent = "/".join(parts[:-1])
        candidates.append(parent)
        if "." not in parts[-1]:
            candidates.append(f"{path}.pdf")
            candidates.append(f"{parent}.pdf")
    if len(parts) > 4:
        candidates.append("/".join(parts[:3] + parts[-1:]))
        candidates.append("/".join(parts[:3]))
    if "." not in parts[-1]:
        candidates.append(f"{path}.pdf")
    unique: List[str] = []
    for item in candidates:
        if item and item not in unique:
            unique.append(item)
    return unique


class StorageClient:
    def __init__(
        self,
        *,
        base_url: str,
        service_key: str,
        bucket: str,
        request_timeout: float = 30.0,
    ) -> None:
        if not base_url:
            raise ValueError("Storage base URL is required")
        self._base_url = base_url.rstrip("/")
        self._service_key = service_key
        self.bucket = bucket
        self._timeout = request_timeout
        self._http = requests.Session()
        self._http.headers.update(
            {"Authorization": f"Bearer {service_key}", "apikey": service_key}
        )

    def _object_url(self, kind: str, bucket: str, path: str) -> str:
        return f"{self._base_url}/storage/v1/object/{kind}{bucket}/{quote(path)}"

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        try:
            response = self._http.request(method, url, timeout=self._timeout, **kwargs)
        except requests.RequestException as exc:
            raise StorageError(502, f"Storage request {method} {url} failed: {exc}") from exc
        if response.status_code >= 400:
            raise StorageError(
                response.status_code,
                f"Storage request {method} {url} failed with {response.status_code}: {response.text}",
                response.text,
            )
        return response

    def public_url(self, path: str, bucket: Optional[str] = None) -> str:
        return self._object_url("public/", bucket or self.bucket, path)

    def upload(
        self,
        path: str,
        content: bytes,
        content_type: Optional[str] = None,
        *,
        upsert: bool = True,
        bucket: Optional[str] = None,
    ) -> str:
        """Store ``content`` at ``path`` and return its public URL."""
        bucket = bucket or self.bucket
        self._request(
            "POST",
            self._object_url("", bucket, path),
            data=content,
            headers={
                "Content-Type": content_type or "application/octet-stream",
                "x-upsert": "true" if upsert else "false",
                "cache-control": "max-age=3600",
            },
        )
        logger.info("Uploaded %s bytes to %s/%s", len(content), bucket, path)
        return self.public_url(path, bucket)

    def remove(self, paths: Iterable[str], bucket: Optional[str] = None) -> None:
        prefixes = [item for item in paths if item]
        if not prefixes:
            return
        self._request(
            "DELETE",
            f"{self._base_url}/storage/v1/object/{bucket or self.bucket}",
            json={"prefixes": prefixes},
        )

    def list(self, prefix: str, bucket: Optional[str] = None, limit: int = 100) -> List[dict]:
        response = self._request(
            "POST",
            f"{self._base_url}/storage/v1/object/list/{bucket or self.bucket}",
            json={"prefix": prefix, "limit": limit, "offset": 0},
        )
        payload = response.json()
        return payload if isinstance(payload, list) else []

    def create_signed_url(self, path: str, expires_in: int, bucket: Optional[str] = None) -> str:
        response = self._request(
            "POST",
            self._object_url("sign/", bucket or self.bucket, path),
            json={"expiresIn": int(expires_in)},
        )
        signed = (response.json() or {}).get("signedURL") or ""
        if not signed:
            raise StorageError(404, f"No signed URL returned for {path}")
        return f"{self._base_url}/storage/v1{signed}" if signed.startswith("/") else signed

    def signed_url_for(self, url: str, expires_in: Optional[int] = None) -> str:
        """Signed URL for a stored document reference; docgen links are returned as is."""
        if is_docgen_url(url, settings.docgen_url_prefix):
            return url
        path = path_from_url(url, self.bucket)
        return self.create_signed_url(path, expires_in or settings.signed_url_expiry_seconds)

    def preview_url(self, url: str, expires_in: Optional[int] = None) -> str:
        """Short-lived URL for a member document, tolerating legacy key spellings."""
        if is_docgen_url(url, settings.docgen_url_prefix):
            return url
        expires_in = expires_in or settings.preview_signed_url_expiry_seconds
        path = path_from_url(url, self.bucket)
        paths = candidate_paths(path)
        parts = path.split("/")
        if len(parts) > 1:
            parent = "/".join(parts[:-1])
            hint = parts[-1].lower()[:5]
            try:
                for item in self.list(parent):
                    name = str(item.get("name") or "")
                    if name.endswith(".pdf") or (hint and hint in name.lower()):
                        paths.append(f"{parent}/{name}")
            except StorageError as exc:
                logger.warning("Could not list %s: %s", parent, exc)
        last_error: Optional[StorageError] = None
        for candidate in paths:
            try:
                return self.create_signed_url(candidate, expires_in)
            except StorageError as exc:
                logger.debug("Signed URL failed for %s: %s", candidate, exc)
                last_error = exc
        raise last_error or StorageError(404, "Object not found")


@lru_cache(maxsize=1)
def get_storage() -> StorageClient:
    service_key = settings.supabase_service_key or settings.supabase_anon_key or ""
    if not service_key:
        logger.warning("Storage key is not configured. Uploads will be rejected.")
    return StorageClient(
        base_url=settings.supabase_url,
        service_key=service_key,
        bucket=settings.storage_bucket,
        request_timeout=settings.storage_timeout_seconds,
    )
