"""
Pytest configuration and fixtures
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.container import build_container
from app.main import create_app
from app.middleware.auth import create_access_token
from app.services import ArtworkRecordStore, Database
from app.services.registry import ArtworkRegistry
from proof_engine import validate_hash

CREATOR_ADDRESS = "0x1111111111111111111111111111111111111111"
OTHER_ADDRESS = "0x2222222222222222222222222222222222222222"


class FakeRegistry(ArtworkRegistry):
    """In-memory registry recording every call."""

    def __init__(self):
        self.artworks: dict[str, dict] = {}
        self.calls: list[str] = []
        self.next_token_id = 1

    @property
    def configured(self) -> bool:
        return True

    def add(self, content_hash: str, owner: str, verification_count: int = 0) -> None:
        self.artworks[validate_hash(content_hash)] = {
            "owner": owner.lower(),
            "verification_count": verification_count,
        }

    async def exists(self, content_hash: str) -> bool:
        self.calls.append("exists")
        return validate_hash(content_hash) in self.artworks

    async def verification_count(self, content_hash: str) -> int:
        self.calls.append("verification_count")
        return self.artworks[validate_hash(content_hash)]["verification_count"]

    async def verify_ownership(self, content_hash: str, owner: str) -> bool:
        self.calls.append("verify_ownership")
        entry = self.artworks.get(validate_hash(content_hash))
        return entry is not None and entry["owner"] == owner.lower()

    async def get_owner_artworks(self, owner: str) -> list[str]:
        self.calls.append("get_owner_artworks")
        return [h for h, entry in self.artworks.items() if entry["owner"] == owner.lower()]

    async def register(self, content_hash, prompt_hash, ipfs_cid, model_used, metadata_uri=""):
        self.calls.append("register")
        token_id = self.next_token_id
        self.next_token_id += 1
        self.add(content_hash, CREATOR_ADDRESS)
        return token_id


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings isolated from the environment, with the demo provider enabled."""
    return Settings(
        _env_file=None,
        ENABLE_DEMO_PROVIDER=True,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'artworks.db'}",
        STORAGE_PATH=str(tmp_path / "storage"),
        IPFS_BACKEND="local",
        CLEANUP_INTERVAL_HOURS=0,
        PROGRESS_INTERVAL=0.5,
    )


@pytest.fixture
def fake_registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
async def database(tmp_path):
    """SQLite database with the artwork schema."""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    await db.create_schema()
    yield db
    await db.dispose()


@pytest.fixture
def record_store(database) -> ArtworkRecordStore:
    return ArtworkRecordStore(database)


@pytest.fixture
def container(test_settings, fake_registry):
    """Service container wired for tests: SQLite, local IPFS store, fake registry."""
    return build_container(
        test_settings,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(404))),
        registry=fake_registry,
    )


@pytest.fixture
def client(container):
    """FastAPI test client fixture"""
    with TestClient(create_app(container)) as test_client:
        yield test_client


def bearer(address: str, settings: Settings) -> dict:
    token = create_access_token(address, settings.JWT_SECRET, settings.JWT_ALGORITHM)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(test_settings) -> dict:
    return bearer(CREATOR_ADDRESS, test_settings)


@pytest.fixture
def other_auth_headers(test_settings) -> dict:
    return bearer(OTHER_ADDRESS, test_settings)
