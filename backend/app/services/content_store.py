"""
Content-addressed stores for artwork bytes and proof packages.

PinataContentStore pins to IPFS through the Pinata API. LocalContentStore
keeps files on disk under their CIDv1, computed the same way IPFS does for
single-block raw and JSON content, so identifiers stay interchangeable.
"""

import base64
import hashlib
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import httpx

from app.config import Settings
from app.middleware import PinFailedError

logger = logging.getLogger(__name__)

# multicodec codes, varint encoded
CODEC_RAW = b"\x55"
CODEC_JSON = b"\x80\x04"  # 0x0200
CID_VERSION_1 = b"\x01"
MULTIHASH_SHA2_256 = b"\x12\x20"


def compute_cid(content: bytes, codec: bytes = CODEC_RAW) -> str:
    """
    Compute a base32 CIDv1 with a sha2-256 multihash.

    Args:
        content: Block bytes
        codec: Varint-encoded multicodec (CODEC_RAW or CODEC_JSON)

    Returns:
        str: Multibase 'b' (base32 lower, unpadded) CID string
    """
    cid_bytes = CID_VERSION_1 + codec + MULTIHASH_SHA2_256 + hashlib.sha256(content).digest()
    return "b" + base64.b32encode(cid_bytes).decode("ascii").lower().rstrip("=")


@dataclass(frozen=True)
class PinResult:
    cid: str
    url: str


class ContentStore(ABC):
    """
    Abstract base class for content-addressed stores.

    Implementations:
    - PinataContentStore: IPFS pinning via Pinata
    - LocalContentStore: Filesystem store for development and tests
    """

    name: str

    @abstractmethod
    async def pin_bytes(
        self, content: bytes, filename: str, attributes: Optional[dict[str, Any]] = None
    ) -> PinResult:
        """
        Store raw bytes.

        Args:
            content: Bytes to pin
            filename: Display name stored with the pin
            attributes: Pin metadata ({"name": ..., "keyValues": {...}})

        Returns:
            PinResult: CID and retrieval URL

        Raises:
            PinFailedError: If the store rejects the content or cannot be reached
        """
        pass

    @abstractmethod
    async def pin_json(self, obj: dict[str, Any], name: str) -> PinResult:
        """Store a JSON document. Raises PinFailedError on failure."""
        pass


class PinataContentStore(ContentStore):
    """IPFS pinning through the Pinata REST API."""

    name = "pinata"

    def __init__(
        self,
        client: httpx.AsyncClient,
        jwt: str,
        api_url: str = "https://api.pinata.cloud",
        gateway_url: str = "https://gateway.pinata.cloud",
        timeout: float = 60.0,
    ):
        self.client = client
        self.jwt = jwt
        self.api_url = api_url.rstrip("/")
        self.gateway_url = gateway_url.rstrip("/")
        self.timeout = timeout

    def url_for(self, cid: str) -> str:
        return f"{self.gateway_url}/ipfs/{cid}"

    async def _post(self, path: str, **kwargs) -> PinResult:
        if not self.jwt:
            raise PinFailedError("PINATA_JWT is not configured")

        try:
            response = await self.client.post(
                f"{self.api_url}{path}",
                headers={"Authorization": f"Bearer {self.jwt}"},
                timeout=self.timeout,
                **kwargs,
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            raise PinFailedError(
                f"Pinata returned HTTP {e.response.status_code}",
                details={"body": e.response.text[:200]},
            )
        except (httpx.HTTPError, ValueError) as e:
            raise PinFailedError(str(e) or type(e).__name__)

        if not isinstance(body, dict):
            raise PinFailedError(f"Unexpected Pinata response: {type(body).__name__}")
        cid = body.get("IpfsHash")
        if not cid or not isinstance(cid, str):
            raise PinFailedError("Pinata response did not include a CID")
        return PinResult(cid=cid, url=self.url_for(cid))

    async def pin_bytes(
        self, content: bytes, filename: str, attributes: Optional[dict[str, Any]] = None
    ) -> PinResult:
        attributes = attributes or {}
        pinata_metadata = {
            "name": attributes.get("name", filename),
            "keyvalues": attributes.get("keyValues", {}),
        }
        result = await self._post(
            "/pinning/pinFileToIPFS",
            files={"file": (filename, content, "application/octet-stream")},
            data={
                "pinataMetadata": json.dumps(pinata_metadata),
                "pinataOptions": json.dumps({"cidVersion": 1}),
            },
        )
        logger.info(f"Pinned {len(content)} bytes to IPFS: {result.cid}")
        return result

    async def pin_json(self, obj: dict[str, Any], name: str) -> PinResult:
        result = await self._post(
            "/pinning/pinJSONToIPFS",
            json={
                "pinataContent": obj,
                "pinataMetadata": {"name": name},
                "pinataOptions": {"cidVersion": 1},
            },
        )
        logger.info(f"Pinned JSON {name} to IPFS: {result.cid}")
        return result


class LocalContentStore(ContentStore):
    """
    Filesystem content store.

    Files are written as {base_path}/{cid}; pinning identical content twice
    is a no-op returning the same CID.
    """

    name = "local"

    def __init__(self, base_path: str | Path):
        self.base_path = Path(base_path)

    def _write(self, cid: str, content: bytes) -> None:
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
            path = self.base_path / cid
            if not path.exists():
                path.write_bytes(content)
        except OSError as e:
            raise PinFailedError(f"Local store write failed: {e}")

    async def pin_bytes(
        self, content: bytes, filename: str, attributes: Optional[dict[str, Any]] = None
    ) -> PinResult:
        cid = compute_cid(content, CODEC_RAW)
        self._write(cid, content)
        logger.info(f"Stored {filename} ({len(content)} bytes) locally as {cid}")
        return PinResult(cid=cid, url=f"ipfs://{cid}")

    async def pin_json(self, obj: dict[str, Any], name: str) -> PinResult:
        try:
            content = json.dumps(obj, sort_keys=True, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise PinFailedError(f"Document is not JSON serializable: {e}")
        cid = compute_cid(content, CODEC_JSON)
        self._write(cid, content)
        logger.info(f"Stored JSON {name} locally as {cid}")
        return PinResult(cid=cid, url=f"ipfs://{cid}")

    async def get(self, cid: str) -> Optional[bytes]:
        """Return stored bytes for a CID, or None."""
        path = self.base_path / cid
        if not path.is_file():
            return None
        return path.read_bytes()


def build_content_store(settings: Settings, client: httpx.AsyncClient) -> ContentStore:
    """
    Select the content store from IPFS_BACKEND.

    "auto" uses Pinata when PINATA_JWT is set and the local store otherwise.
    """
    backend = settings.IPFS_BACKEND.lower()
    if backend not in ("auto", "pinata", "local"):
        raise ValueError(f"IPFS_BACKEND must be auto, pinata or local, got {backend!r}")

    if backend == "pinata" or (backend == "auto" and settings.PINATA_JWT):
        if not settings.PINATA_JWT:
            logger.warning("IPFS_BACKEND=pinata but PINATA_JWT is not set; pins will fail")
        logger.info("Using Pinata content store")
        return PinataContentStore(
            client,
            settings.PINATA_JWT,
            api_url=settings.PINATA_API_URL,
            gateway_url=settings.IPFS_GATEWAY_URL,
            timeout=settings.CONTENT_PIN_TIMEOUT,
        )

    path = Path(settings.STORAGE_PATH) / "ipfs"
    logger.info(f"Using local content store at {path}")
    return LocalContentStore(path)
