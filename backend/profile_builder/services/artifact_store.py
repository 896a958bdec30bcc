"""Artifact store: object storage for wizard uploads.

ArtifactStore is the interface the submission saga depends on.
SupabaseStorageClient implements it over the Supabase Storage REST API
with plain httpx calls, authenticated with the service key.

Stored objects get a generated name (``<epoch_ms>-<random>.<ext>``) so
client filenames never reach storage paths, and uploads never overwrite.
"""

import secrets
import time
from abc import ABC, abstractmethod
from urllib.parse import quote, unquote, urlsplit

import httpx
import structlog

from profile_builder.core.config import Settings, settings
from profile_builder.services.step_sequencer import FileHandle

logger = structlog.get_logger()

_OBJECT_PATH = "/storage/v1/object"
_PUBLIC_PATH = "/storage/v1/object/public/"

_RANDOM_SUFFIX_BYTES = 4
"""Random hex suffix length (in bytes) for generated object names."""


class ArtifactStoreError(Exception):
    """Object storage request failed or a URL could not be resolved."""


class ArtifactStore(ABC):
    """Binary object store used by the submission saga."""

    @abstractmethod
    async def upload(
        self, artifact: FileHandle, bucket: str, folder: str | None = None
    ) -> str:
        """Store a file and return its stable retrieval URL.

        Raises:
            ArtifactStoreError: If the store rejects the upload.
        """
        ...

    @abstractmethod
    async def delete(self, url: str) -> None:
        """Delete a previously uploaded object by its URL.

        Raises:
            ArtifactStoreError: If the URL is not ours or the delete fails.
        """
        ...


def generate_object_name(extension: str, folder: str | None = None) -> str:
    """Build a collision-resistant object path.

    Args:
        extension: File extension without dot (e.g., "pdf").
        folder: Optional folder prefix (e.g., an owner id).

    Returns:
        Path such as "folder/1718000000000-a1b2c3d4.pdf".
    """
    name = f"{int(time.time() * 1000)}-{secrets.token_hex(_RANDOM_SUFFIX_BYTES)}.{extension}"
    if folder:
        return f"{folder.strip('/')}/{name}"
    return name


def parse_public_url(url: str) -> tuple[str, str]:
    """Split a public object URL into (bucket, path).

    Raises:
        ArtifactStoreError: If the URL is not a public object URL.
    """
    url_path = urlsplit(url).path
    if _PUBLIC_PATH not in url_path:
        raise ArtifactStoreError("Invalid file URL format")
    remainder = url_path.split(_PUBLIC_PATH, 1)[1]
    bucket, _, object_path = remainder.partition("/")
    if not bucket or not object_path:
        raise ArtifactStoreError("Invalid file URL format")
    return bucket, unquote(object_path)


class SupabaseStorageClient(ArtifactStore):
    """Supabase Storage REST client.

    Args:
        base_url: Storage project URL (e.g., "https://xyz.supabase.co").
        service_key: Service role key used for both auth headers.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (tests pass a MockTransport).
    """

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._service_key = service_key
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "SupabaseStorageClient":
        return cls(
            base_url=config.storage_url,
            service_key=config.storage_service_key.get_secret_value(),
            timeout=config.storage_timeout_seconds,
        )

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._service_key}",
            "apikey": self._service_key,
        }

    def _object_url(self, bucket: str, path: str) -> str:
        return f"{self.base_url}{_OBJECT_PATH}/{quote(bucket)}/{quote(path)}"

    def public_url(self, bucket: str, path: str) -> str:
        """Public retrieval URL for an object."""
        return f"{self.base_url}{_PUBLIC_PATH}{quote(bucket)}/{quote(path)}"

    async def upload(
        self, artifact: FileHandle, bucket: str, folder: str | None = None
    ) -> str:
        """Upload a file without overwriting; return its public URL."""
        path = generate_object_name(artifact.extension, folder)
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                resp = await client.post(
                    self._object_url(bucket, path),
                    headers={
                        **self._headers(),
                        "Content-Type": artifact.mime_type,
                        "x-upsert": "false",
                    },
                    content=artifact.data,
                    timeout=self._timeout,
                )
        except httpx.HTTPError as exc:
            raise ArtifactStoreError(f"Upload to '{bucket}' failed: {exc}") from exc

        if resp.status_code >= 300:
            raise ArtifactStoreError(
                f"Upload to '{bucket}' failed with status {resp.status_code}"
            )

        url = self.public_url(bucket, path)
        logger.info(
            "storage_upload_complete",
            bucket=bucket,
            path=path,
            size=artifact.size,
            mime_type=artifact.mime_type,
        )
        return url

    async def delete(self, url: str) -> None:
        """Delete the object behind a public URL from this store."""
        if not url.startswith(self.base_url + "/"):
            raise ArtifactStoreError("URL does not belong to this storage project")
        bucket, path = parse_public_url(url)
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                resp = await client.delete(
                    self._object_url(bucket, path),
                    headers=self._headers(),
                    timeout=self._timeout,
                )
        except httpx.HTTPError as exc:
            raise ArtifactStoreError(f"Delete from '{bucket}' failed: {exc}") from exc

        if resp.status_code >= 300:
            raise ArtifactStoreError(
                f"Delete from '{bucket}' failed with status {resp.status_code}"
            )
        logger.info("storage_delete_complete", bucket=bucket, path=path)
