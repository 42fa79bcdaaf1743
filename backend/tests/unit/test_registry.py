"""Unit tests for the registry client."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.middleware import RegistryError, RegistryUnavailableError
from app.services.registry import UnconfiguredRegistry, Web3Registry, build_registry
from proof_engine import ValidationError, content_hash, prompt_hash

CONTRACT = "0x" + "ab" * 20
OWNER = "0x" + "11" * 20
HASH = content_hash(b"registered artwork")


@pytest.fixture
def contract() -> MagicMock:
    return MagicMock()


@pytest.fixture
def w3(contract) -> MagicMock:
    w3 = MagicMock()
    w3.eth.contract.return_value = contract
    return w3


def stub_call(contract: MagicMock, name: str, value) -> AsyncMock:
    call = AsyncMock(return_value=value)
    getattr(contract.functions, name).return_value.call = call
    return call


class TestWeb3RegistryReads:
    """Tests for read calls."""

    @pytest.mark.asyncio
    async def test_exists_passes_bytes32(self, w3, contract):
        stub_call(contract, "contentExists", True)
        registry = Web3Registry("http://rpc", CONTRACT, w3=w3)

        assert await registry.exists("0x" + HASH) is True
        contract.functions.contentExists.assert_called_once_with(bytes.fromhex(HASH))

    @pytest.mark.asyncio
    async def test_short_hash_rejected_before_rpc(self, w3, contract):
        call = stub_call(contract, "contentExists", True)
        registry = Web3Registry("http://rpc", CONTRACT, w3=w3)

        with pytest.raises(ValidationError):
            await registry.exists("ab" * 25)
        contract.functions.contentExists.assert_not_called()
        call.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_verification_count(self, w3, contract):
        stub_call(contract, "getVerificationCount", 5)
        registry = Web3Registry("http://rpc", CONTRACT, w3=w3)
        assert await registry.verification_count(HASH) == 5

    @pytest.mark.asyncio
    async def test_verify_ownership_checksums_owner(self, w3, contract):
        stub_call(contract, "verifyOwnership", True)
        registry = Web3Registry("http://rpc", CONTRACT, w3=w3)

        assert await registry.verify_ownership(HASH, OWNER) is True
        args = contract.functions.verifyOwnership.call_args.args
        assert args[1].lower() == OWNER

    @pytest.mark.asyncio
    async def test_invalid_owner_rejected(self, w3, contract):
        registry = Web3Registry("http://rpc", CONTRACT, w3=w3)
        with pytest.raises(ValidationError):
            await registry.verify_ownership(HASH, "not-an-address")

    @pytest.mark.asyncio
    async def test_owner_artworks_returned_as_hex(self, w3, contract):
        stub_call(contract, "getOwnerArtworks", [bytes.fromhex(HASH)])
        registry = Web3Registry("http://rpc", CONTRACT, w3=w3)
        assert await registry.get_owner_artworks(OWNER) == [HASH]

    @pytest.mark.asyncio
    async def test_rpc_failure_raises_registry_error(self, w3, contract):
        getattr(contract.functions, "contentExists").return_value.call = AsyncMock(
            side_effect=ConnectionError("rpc down")
        )
        registry = Web3Registry("http://rpc", CONTRACT, w3=w3)

        with pytest.raises(RegistryError) as exc_info:
            await registry.exists(HASH)
        assert exc_info.value.details["operation"] == "contentExists"


class TestWeb3RegistryRegister:
    """Tests for server-side registration."""

    @pytest.fixture
    def registrar(self, w3, contract):
        account = MagicMock()
        account.address = OWNER
        account.sign_transaction.return_value.raw_transaction = b"signed"
        w3.eth.account.from_key.return_value = account
        w3.eth.get_transaction_count = AsyncMock(return_value=3)
        w3.eth.send_raw_transaction = AsyncMock(return_value=b"txhash")
        w3.eth.wait_for_transaction_receipt = AsyncMock(return_value={"status": 1})
        contract.functions.registerArtwork.return_value.build_transaction = AsyncMock(
            return_value={"to": CONTRACT}
        )
        contract.events.ArtworkRegistered.return_value.process_receipt.return_value = [
            {"args": {"certificateTokenId": 42}}
        ]
        return Web3Registry("http://rpc", CONTRACT, private_key="0x" + "99" * 32, w3=w3)

    @pytest.mark.asyncio
    async def test_register_returns_token_id(self, registrar, w3, contract):
        token_id = await registrar.register(
            HASH, prompt_hash("a red cube"), "bafkreiart", "dall-e-3", "ipfs://bagaaiera"
        )

        assert token_id == 42
        w3.eth.send_raw_transaction.assert_awaited_once_with(b"signed")
        args = contract.functions.registerArtwork.call_args.args
        assert args[0] == bytes.fromhex(HASH)
        assert args[2:] == ("bafkreiart", "dall-e-3", "ipfs://bagaaiera")

    @pytest.mark.asyncio
    async def test_reverted_transaction_fails(self, registrar, w3):
        w3.eth.wait_for_transaction_receipt = AsyncMock(return_value={"status": 0})
        with pytest.raises(RegistryError, match="reverted"):
            await registrar.register(HASH, prompt_hash("a red cube"), "cid", "dall-e-3")

    @pytest.mark.asyncio
    async def test_missing_event_fails(self, registrar, contract):
        contract.events.ArtworkRegistered.return_value.process_receipt.return_value = []
        with pytest.raises(RegistryError, match="ArtworkRegistered"):
            await registrar.register(HASH, prompt_hash("a red cube"), "cid", "dall-e-3")

    @pytest.mark.asyncio
    async def test_register_without_key_unavailable(self, w3):
        registry = Web3Registry("http://rpc", CONTRACT, w3=w3)
        with pytest.raises(RegistryUnavailableError):
            await registry.register(HASH, prompt_hash("a red cube"), "cid", "dall-e-3")


class TestUnconfiguredRegistry:
    """Tests for the unconfigured stand-in."""

    @pytest.mark.asyncio
    async def test_calls_raise_unavailable(self):
        registry = UnconfiguredRegistry()
        assert registry.configured is False

        with pytest.raises(RegistryUnavailableError):
            await registry.exists(HASH)
        with pytest.raises(RegistryUnavailableError):
            await registry.get_owner_artworks(OWNER)

    @pytest.mark.asyncio
    async def test_malformed_hash_still_rejected_first(self):
        with pytest.raises(ValidationError):
            await UnconfiguredRegistry().exists("ab" * 25)

    def test_build_registry_without_settings(self):
        assert isinstance(build_registry("", ""), UnconfiguredRegistry)

    def test_build_registry_with_bad_address(self):
        registry = build_registry("http://rpc", "0x123")
        assert isinstance(registry, UnconfiguredRegistry)
        assert "PROOF_OF_ART_ADDRESS" in registry.reason
