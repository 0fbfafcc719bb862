"""Facade and fetch entrypoint tests"""

import json
import sys

import pytest

from fetchnft import fetch_entrypoint
from fetchnft.client import FetchNFTClient
from fetchnft.core.errors import CollectibleFetchError
from fetchnft.schemas.collectible import Collectible, CollectionInfo, MediaType


def _collectible(**fields):
    values = {"id": "1:::0xC", "token_id": "1", "media_type": MediaType.IMAGE, "wallet": "0xa"}
    values.update(fields)
    return Collectible(**values)


class FakeOpenSeaClient:
    def __init__(self, collection=None, error=None):
        self.collection = collection
        self.error = error
        self.calls = []

    async def get_all_collectibles(self, wallets):
        self.calls.append(list(wallets))
        if self.error:
            raise self.error
        return {"0xA": [_collectible()]}

    async def get_collection(self, contract_address, token_id):
        self.calls.append((contract_address, token_id))
        return self.collection


class FakeNftPortClient:
    def __init__(self, detail=None):
        self.detail = detail

    async def get_asset_detail(self, contract_address, token_id):
        return self.detail


class TestFetchNFTClient:
    """Provider routing"""

    @pytest.mark.asyncio
    async def test_no_wallets_skips_providers(self):
        opensea = FakeOpenSeaClient()
        client = FetchNFTClient(opensea, FakeNftPortClient())

        assert await client.get_collectibles([]) == {}
        assert await client.get_collectibles() == {}
        assert opensea.calls == []

    @pytest.mark.asyncio
    async def test_collectibles_from_opensea(self):
        opensea = FakeOpenSeaClient()
        client = FetchNFTClient(opensea, FakeNftPortClient())

        state = await client.get_collectibles(["0xA"])

        assert list(state) == ["0xA"]
        assert opensea.calls == [["0xA"]]

    @pytest.mark.asyncio
    async def test_fetch_errors_propagate(self):
        client = FetchNFTClient(FakeOpenSeaClient(error=CollectibleFetchError(["0xA"])), FakeNftPortClient())

        with pytest.raises(CollectibleFetchError):
            await client.get_collectibles(["0xA"])

    @pytest.mark.asyncio
    async def test_collection_prefers_opensea(self):
        opensea = FakeOpenSeaClient(collection=CollectionInfo(name="Punks"))
        client = FetchNFTClient(opensea, FakeNftPortClient())

        collection = await client.get_ethereum_collection("0xC", "1")

        assert collection.name == "Punks"

    @pytest.mark.asyncio
    async def test_collection_falls_back_to_nftport(self):
        detail = _collectible(asset_contract_address="0xCAFE", collection={"name": "Port", "slug": "port"})
        client = FetchNFTClient(FakeOpenSeaClient(), FakeNftPortClient(detail))

        collection = await client.get_ethereum_collection("0xCAFE", "1")

        assert collection.name == "Port"
        assert collection.slug == "port"
        assert collection.contract_address == "0xcafe"

    @pytest.mark.asyncio
    async def test_dev_uses_nftport_only(self):
        opensea = FakeOpenSeaClient(collection=CollectionInfo(name="Punks"))
        client = FetchNFTClient(opensea, FakeNftPortClient(detail=None))

        assert await client.get_ethereum_collection("0xC", "1", is_dev=True) is None
        assert opensea.calls == []

    @pytest.mark.asyncio
    async def test_token_lookup_needs_wallet(self):
        client = FetchNFTClient(FakeOpenSeaClient(), FakeNftPortClient())
        assert await client.get_collectibles_from_opensea_by_contract_addresses_and_token_ids("", ["0xC"], ["1"]) == []


class TestFetchEntrypoint:
    """Command line job"""

    def test_dump_state_uses_camel_case(self):
        dumped = json.loads(fetch_entrypoint.dump_state({"0xA": [_collectible()]}))

        assert dumped["0xA"][0]["tokenId"] == "1"
        assert dumped["0xA"][0]["mediaType"] == "IMAGE"

    def test_requires_wallets(self, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["fetchnft"])

        with pytest.raises(SystemExit) as exc_info:
            fetch_entrypoint.main()

        assert exc_info.value.code == 1

    def test_total_failure_exits_nonzero(self, monkeypatch):
        async def failing(wallets):
            raise CollectibleFetchError(wallets)

        monkeypatch.setattr(sys, "argv", ["fetchnft", "0xA"])
        monkeypatch.setattr(fetch_entrypoint, "fetch_collectibles", failing)

        with pytest.raises(SystemExit) as exc_info:
            fetch_entrypoint.main()

        assert exc_info.value.code == 1

    def test_prints_state(self, monkeypatch, capsys):
        async def fetched(wallets):
            return {"0xA": [_collectible()]}

        monkeypatch.setattr(sys, "argv", ["fetchnft", "0xA"])
        monkeypatch.setattr(fetch_entrypoint, "fetch_collectibles", fetched)

        state = fetch_entrypoint.main()

        assert list(state) == ["0xA"]
        assert '"id": "1:::0xC"' in capsys.readouterr().out
