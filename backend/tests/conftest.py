"""Shared test fixtures and fakes.

The fakes stand in for the wizard's external collaborators (object
storage, persistence endpoints) and record every call so tests can assert
on ordering and compensation.
"""

import uuid
from collections.abc import AsyncGenerator, Iterator
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from profile_builder.providers import factory
from profile_builder.services.artifact_store import ArtifactStore, ArtifactStoreError
from profile_builder.services.profile_persistence import PersistenceEndpoint
from profile_builder.services.step_sequencer import FileHandle
from profile_builder.services.submission_saga import PersistResult
from profile_builder.services.wizard_session_store import reset_session_store

# Owner used by candidate and employer profile tests
TEST_OWNER_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")

TEST_STORAGE_BASE = "https://storage.test"

PDF_BYTES = b"%PDF-1.4 test certificate"
PNG_BYTES = b"\x89PNG\r\n\x1a\n test image"


def make_file(
    data: bytes = PDF_BYTES,
    filename: str = "certificate.pdf",
    mime_type: str = "application/pdf",
    extension: str = "pdf",
) -> FileHandle:
    """Build a selected-file handle."""
    return FileHandle(data=data, filename=filename, mime_type=mime_type, extension=extension)


def make_image(filename: str = "image.png") -> FileHandle:
    """Build a PNG file handle."""
    return make_file(PNG_BYTES, filename, "image/png", "png")


# =============================================================================
# Fakes
# =============================================================================


class FakeArtifactStore(ArtifactStore):
    """In-memory artifact store that records uploads and deletes.

    Attributes:
        fail_upload_at: 1-based upload call number that raises.
        fail_deletes: URLs whose delete raises.
        uploads: (bucket, folder, filename) per successful upload.
        deleted: URLs successfully deleted, in call order.
        delete_calls: Every URL a delete was attempted for.
        objects: URL -> bytes currently stored.
    """

    def __init__(
        self,
        fail_upload_at: int | None = None,
        fail_deletes: set[str] | None = None,
    ) -> None:
        self.fail_upload_at = fail_upload_at
        self.fail_deletes = fail_deletes or set()
        self.upload_calls = 0
        self.uploads: list[tuple[str, str | None, str]] = []
        self.deleted: list[str] = []
        self.delete_calls: list[str] = []
        self.objects: dict[str, bytes] = {}

    async def upload(
        self, artifact: FileHandle, bucket: str, folder: str | None = None
    ) -> str:
        self.upload_calls += 1
        if self.upload_calls == self.fail_upload_at:
            raise ArtifactStoreError(f"Upload to '{bucket}' failed with status 500")
        prefix = f"{folder}/" if folder else ""
        url = (
            f"{TEST_STORAGE_BASE}/storage/v1/object/public/{bucket}/"
            f"{prefix}u{self.upload_calls}.{artifact.extension}"
        )
        self.uploads.append((bucket, folder, artifact.filename))
        self.objects[url] = artifact.data
        return url

    async def delete(self, url: str) -> None:
        self.delete_calls.append(url)
        if url in self.fail_deletes:
            raise ArtifactStoreError("Delete failed with status 503")
        self.objects.pop(url, None)
        self.deleted.append(url)


class FakePersistenceEndpoint(PersistenceEndpoint):
    """Persistence endpoint returning a configured result.

    Attributes:
        result: PersistResult returned by submit().
        error: Raised by submit() instead, when set.
        records: Every record submitted.
        stored: Record returned by load().
    """

    def __init__(
        self,
        result: PersistResult | None = None,
        error: Exception | None = None,
        stored: dict[str, Any] | None = None,
    ) -> None:
        self.result = result or PersistResult.ok("record-1")
        self.error = error
        self.records: list[dict[str, Any]] = []
        self.stored = stored

    async def submit(self, record: dict[str, Any]) -> PersistResult:
        self.records.append(record)
        if self.error is not None:
            raise self.error
        return self.result

    async def load(self, owner_id: str) -> dict[str, Any] | None:
        return self.stored


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_singletons() -> Iterator[None]:
    """Isolate the provider and session store singletons between tests."""
    factory.reset_providers()
    reset_session_store()
    yield
    factory.reset_providers()
    reset_session_store()


@pytest.fixture
def artifact_store() -> FakeArtifactStore:
    return FakeArtifactStore()


@pytest.fixture
def persistence_endpoint() -> FakePersistenceEndpoint:
    return FakePersistenceEndpoint()


@pytest.fixture
def app():
    """Create test application instance."""
    from profile_builder.main import create_app

    return create_app()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
