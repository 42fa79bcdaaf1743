"""
Authoritative registry client for the ProofOfArt contract.

Every hash is validated to exactly 32 bytes before an RPC call is made;
malformed input never reaches the chain.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from web3 import AsyncWeb3

from app.middleware import RegistryError, RegistryUnavailableError
from app.models.creator import is_valid_address
from proof_engine import ValidationError, to_bytes32

logger = logging.getLogger(__name__)

PROOF_OF_ART_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "contentExists",
        "stateMutability": "view",
        "inputs": [{"name": "", "type": "bytes32"}],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "function",
        "name": "getVerificationCount",
        "stateMutability": "view",
        "inputs": [{"name": "_contentHash", "type": "bytes32"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "verifyOwnership",
        "stateMutability": "view",
        "inputs": [
            {"name": "_contentHash", "type": "bytes32"},
            {"name": "_address", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "function",
        "name": "getOwnerArtworks",
        "stateMutability": "view",
        "inputs": [{"name": "_owner", "type": "address"}],
        "outputs": [{"name": "", "type": "bytes32[]"}],
    },
    {
        "type": "function",
        "name": "registerArtwork",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "_contentHash", "type": "bytes32"},
            {"name": "_promptHash", "type": "bytes32"},
            {"name": "_ipfsCID", "type": "string"},
            {"name": "_modelUsed", "type": "string"},
            {"name": "_metadataURI", "type": "string"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "event",
        "name": "ArtworkRegistered",
        "anonymous": False,
        "inputs": [
            {"name": "contentHash", "type": "bytes32", "indexed": True},
            {"name": "creator", "type": "address", "indexed": True},
            {"name": "ipfsCID", "type": "string", "indexed": False},
            {"name": "certificateTokenId", "type": "uint256", "indexed": False},
            {"name": "timestamp", "type": "uint256", "indexed": False},
        ],
    },
]


def _checked_address(address: str, field: str = "address") -> str:
    if not is_valid_address(address):
        raise ValidationError(f"Invalid {field}: expected a 0x-prefixed 40 hex character address")
    return AsyncWeb3.to_checksum_address(address)


class ArtworkRegistry(ABC):
    """
    Abstract base class for the on-chain artwork registry.

    Implementations:
    - Web3Registry: ProofOfArt contract over JSON-RPC
    - UnconfiguredRegistry: Raises RegistryUnavailableError for every call
    """

    @property
    @abstractmethod
    def configured(self) -> bool:
        pass

    @abstractmethod
    async def exists(self, content_hash: str) -> bool:
        pass

    @abstractmethod
    async def verification_count(self, content_hash: str) -> int:
        pass

    @abstractmethod
    async def verify_ownership(self, content_hash: str, owner: str) -> bool:
        pass

    @abstractmethod
    async def get_owner_artworks(self, owner: str) -> list[str]:
        """Return bare lowercase content hashes registered to an owner."""
        pass

    @abstractmethod
    async def register(
        self,
        content_hash: str,
        prompt_hash: str,
        ipfs_cid: str,
        model_used: str,
        metadata_uri: str = "",
    ) -> int:
        """Register an artwork and return its certificate token id."""
        pass


class UnconfiguredRegistry(ArtworkRegistry):
    """Stand-in used when RPC_URL or PROOF_OF_ART_ADDRESS is missing."""

    def __init__(self, reason: str = "Registry contract not configured"):
        self.reason = reason

    @property
    def configured(self) -> bool:
        return False

    async def exists(self, content_hash: str) -> bool:
        to_bytes32(content_hash)
        raise RegistryUnavailableError(self.reason)

    async def verification_count(self, content_hash: str) -> int:
        to_bytes32(content_hash)
        raise RegistryUnavailableError(self.reason)

    async def verify_ownership(self, content_hash: str, owner: str) -> bool:
        to_bytes32(content_hash)
        raise RegistryUnavailableError(self.reason)

    async def get_owner_artworks(self, owner: str) -> list[str]:
        raise RegistryUnavailableError(self.reason)

    async def register(
        self,
        content_hash: str,
        prompt_hash: str,
        ipfs_cid: str,
        model_used: str,
        metadata_uri: str = "",
    ) -> int:
        raise RegistryUnavailableError(self.reason)


class Web3Registry(ArtworkRegistry):
    """
    ProofOfArt contract client.

    Handles:
    - Read calls (existence, verification count, ownership, owner listing)
    - Server-side registration signed with REGISTRAR_PRIVATE_KEY
    """

    def __init__(
        self,
        rpc_url: str,
        contract_address: str,
        private_key: str = "",
        tx_timeout: float = 120.0,
        w3: Optional[AsyncWeb3] = None,
    ):
        self.w3 = w3 or AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))
        self.contract = self.w3.eth.contract(
            address=_checked_address(contract_address, "PROOF_OF_ART_ADDRESS"),
            abi=PROOF_OF_ART_ABI,
        )
        self.private_key = private_key
        self.tx_timeout = tx_timeout

    @property
    def configured(self) -> bool:
        return True

    async def _call(self, operation: str, *args) -> Any:
        try:
            return await getattr(self.contract.functions, operation)(*args).call()
        except Exception as e:
            logger.error(f"Registry call {operation} failed: {e}")
            raise RegistryError(operation, str(e) or type(e).__name__) from e

    async def exists(self, content_hash: str) -> bool:
        return bool(await self._call("contentExists", to_bytes32(content_hash)))

    async def verification_count(self, content_hash: str) -> int:
        return int(await self._call("getVerificationCount", to_bytes32(content_hash)))

    async def verify_ownership(self, content_hash: str, owner: str) -> bool:
        b32 = to_bytes32(content_hash)
        return bool(await self._call("verifyOwnership", b32, _checked_address(owner, "owner")))

    async def get_owner_artworks(self, owner: str) -> list[str]:
        hashes = await self._call("getOwnerArtworks", _checked_address(owner, "owner"))
        return [bytes(value).hex() for value in hashes]

    async def register(
        self,
        content_hash: str,
        prompt_hash: str,
        ipfs_cid: str,
        model_used: str,
        metadata_uri: str = "",
    ) -> int:
        """
        Register an artwork from the server's registrar account.

        Returns:
            int: certificateTokenId from the ArtworkRegistered event

        Raises:
            ValidationError: If a hash is not 32 bytes
            RegistryUnavailableError: If no registrar key is configured
            RegistryError: If the transaction fails or emits no event
        """
        content_b32 = to_bytes32(content_hash, field="contentHash")
        prompt_b32 = to_bytes32(prompt_hash, field="promptHash")
        if not self.private_key:
            raise RegistryUnavailableError("REGISTRAR_PRIVATE_KEY is not configured")

        try:
            account = self.w3.eth.account.from_key(self.private_key)
            tx = await self.contract.functions.registerArtwork(
                content_b32, prompt_b32, ipfs_cid, model_used, metadata_uri
            ).build_transaction(
                {
                    "from": account.address,
                    "nonce": await self.w3.eth.get_transaction_count(account.address),
                }
            )
            signed = account.sign_transaction(tx)
            tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
            receipt = await self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.tx_timeout
            )
        except Exception as e:
            logger.error(f"Registration of {content_hash[:16]} failed: {e}")
            raise RegistryError("registerArtwork", str(e) or type(e).__name__) from e

        if receipt.get("status") == 0:
            raise RegistryError("registerArtwork", "transaction reverted")

        events = self.contract.events.ArtworkRegistered().process_receipt(receipt)
        if not events:
            raise RegistryError("registerArtwork", "no ArtworkRegistered event in receipt")

        token_id = int(events[0]["args"]["certificateTokenId"])
        logger.info(f"Registered artwork {content_hash[:16]} as certificate {token_id}")
        return token_id


def build_registry(
    rpc_url: str, contract_address: str, private_key: str = "", tx_timeout: float = 120.0
) -> ArtworkRegistry:
    """Return a Web3Registry, or an UnconfiguredRegistry if settings are incomplete."""
    if not rpc_url or not contract_address:
        logger.warning("RPC_URL or PROOF_OF_ART_ADDRESS not set; registry unavailable")
        return UnconfiguredRegistry()
    try:
        return Web3Registry(rpc_url, contract_address, private_key, tx_timeout)
    except ValidationError as e:
        logger.error(f"Registry disabled: {e.message}")
        return UnconfiguredRegistry(e.message)
