"""Asset-to-collectible mapper tests"""

import pytest

from fetchnft.schemas.collectible import AssetStatus, MediaType
from fetchnft.services.mapper import CollectibleMapper, asset_key, collectible_key


class BrokenClassifier:
    gateway = None

    async def classify(self, asset):
        raise KeyError("image_url")


class TestCollectibleKey:
    """Key derivation"""

    def test_key_joins_token_and_contract(self):
        assert collectible_key("1", "0xC") == "1:::0xC"

    def test_missing_contract(self):
        assert collectible_key("7", None) == "7:::"

    def test_asset_key(self, asset_factory):
        assert asset_key(asset_factory(token_id="42", contract_address="0xD")) == "42:::0xD"


class TestAssetToCollectible:
    """Mapping of display fields and media"""

    @pytest.mark.asyncio
    async def test_passthrough_fields(self, mapper, asset_factory):
        asset = asset_factory(
            provider_id="123",
            name="Punk #1",
            description="a punk",
            external_link="https://punks.test",
            permalink="https://opensea.test/assets/0xC/1",
            image_url="foo.png",
            owner={"address": "0xA"},
            collection={"name": "Punks"},
        )

        collectible = await mapper.asset_to_collectible(asset)

        assert collectible.id == "1:::0xC"
        assert collectible.token_id == "1"
        assert collectible.asset_contract_address == "0xC"
        assert collectible.opensea_id == "123"
        assert collectible.name == "Punk #1"
        assert collectible.description == "a punk"
        assert collectible.external_link == "https://punks.test"
        assert collectible.perma_link == "https://opensea.test/assets/0xC/1"
        assert collectible.media_type == MediaType.IMAGE
        assert collectible.frame_url == "foo.png"
        assert collectible.is_owned is True
        assert collectible.date_created is None
        assert collectible.date_last_transferred is None
        assert collectible.chain == "eth"
        assert collectible.wallet == "0xA"
        assert collectible.status == AssetStatus.NEW

    @pytest.mark.asyncio
    async def test_name_falls_back_to_contract_name(self, mapper, asset_factory):
        collectible = await mapper.asset_to_collectible(
            asset_factory(contract_name="Punks", image_url="foo.png")
        )
        assert collectible.name == "Punks"

    @pytest.mark.asyncio
    async def test_name_defaults_to_empty(self, mapper, asset_factory):
        collectible = await mapper.asset_to_collectible(asset_factory(image_url="foo.png"))
        assert collectible.name == ""

    @pytest.mark.asyncio
    async def test_nftport_assets_have_no_opensea_id(self, mapper, asset_factory):
        collectible = await mapper.asset_to_collectible(
            asset_factory(provider="nftport", provider_id="abc", image_url="foo.png")
        )
        assert collectible.opensea_id is None

    @pytest.mark.asyncio
    async def test_classifier_errors_degrade_to_image(self, asset_factory):
        mapper = CollectibleMapper(BrokenClassifier())
        asset = asset_factory(image_url=None, image_preview_url="preview.png", animation_url="clip.mp4")

        collectible = await mapper.asset_to_collectible(asset)

        assert collectible.media_type == MediaType.IMAGE
        assert collectible.frame_url == "preview.png"
        assert collectible.image_url == "preview.png"

    @pytest.mark.asyncio
    async def test_serializes_with_camel_case(self, mapper, asset_factory):
        collectible = await mapper.asset_to_collectible(asset_factory(image_url="foo.png"))
        dumped = collectible.model_dump(by_alias=True)

        assert dumped["tokenId"] == "1"
        assert dumped["mediaType"] == MediaType.IMAGE
        assert "threeDUrl" in dumped
        assert "dateLastTransferred" in dumped
        assert "assetContractAddress" in dumped

    @pytest.mark.asyncio
    async def test_map_assets_keeps_order(self, mapper, asset_factory):
        assets = [asset_factory(token_id=str(i), image_url=f"{i}.png") for i in range(5)]

        collectibles = await mapper.map_assets(assets)

        assert [c.token_id for c in collectibles] == ["0", "1", "2", "3", "4"]


class TestEventToCollectible:
    """Creation and transfer events"""

    @pytest.mark.asyncio
    async def test_creation_event(self, mapper, event_factory):
        event = event_factory("2021-05-05T00:00:00", asset={"token_id": "2", "contract_address": "0xD"})

        collectible = await mapper.creation_event_to_collectible(event)

        assert collectible.id == "2:::0xD"
        assert collectible.date_created == "2021-05-05T00:00:00"
        assert collectible.is_owned is False
        assert collectible.date_last_transferred is None

    @pytest.mark.asyncio
    async def test_transfer_event_is_owned_by_default(self, mapper, event_factory):
        collectible = await mapper.transfer_event_to_collectible(event_factory("2022-02-02T00:00:00"))

        assert collectible.is_owned is True
        assert collectible.date_last_transferred == "2022-02-02T00:00:00"
        assert collectible.date_created is None

    @pytest.mark.asyncio
    async def test_transfer_event_not_owned(self, mapper, event_factory):
        collectible = await mapper.transfer_event_to_collectible(
            event_factory("2022-02-02T00:00:00"), is_owned=False
        )
        assert collectible.is_owned is False
