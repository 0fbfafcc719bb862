"""NftPort client tests"""

import httpx
import pytest

from fetchnft.core.errors import ProviderError
from fetchnft.ingestion.nftport import MAX_ASSET_LIMIT, NftPortClient
from fetchnft.schemas.collectible import MediaType

API_URL = "https://api.nftport.test"
WALLET = "0xABCDEF"


@pytest.fixture
def make_client(classifier):
    def make(handler, **kwargs):
        return NftPortClient(
            api_url=API_URL,
            api_key="port-key",
            classifier=classifier,
            requests_per_second=1000,
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            **kwargs,
        )

    return make


class TestGetNfts:
    """Wallet nft pages"""

    @pytest.mark.asyncio
    async def test_maps_nfts_to_collectibles(self, make_client):
        seen = {}

        def handler(request):
            seen["request"] = request
            return httpx.Response(
                200,
                json={
                    "response": "OK",
                    "total": 7,
                    "continuation": "next-page",
                    "nfts": [
                        {
                            "token_id": 12,
                            "contract_address": "0xC",
                            "name": "Cube",
                            "cached_file_url": "cube.png",
                            "metadata": {"description": "a cube"},
                        }
                    ],
                },
            )

        page = await make_client(handler).get_nfts(WALLET)

        request = seen["request"]
        assert request.url.path == f"/v0/accounts/{WALLET}"
        assert request.url.params["chain"] == "ethereum"
        assert request.url.params["include"] == "metadata"
        assert request.url.params["exclude"] == "erc1155"
        assert request.url.params["page_size"] == "50"
        assert request.headers["Authorization"] == "port-key"

        assert page.continuation == "next-page"
        assert page.count == 7
        collectible = page.data[0]
        assert collectible.id == "12:::0xC"
        assert collectible.description == "a cube"
        assert collectible.media_type == MediaType.IMAGE
        assert collectible.image_url == "cube.png"
        assert collectible.opensea_id is None
        assert collectible.wallet == WALLET.lower()
        assert collectible.owner == {"user": None, "address": WALLET.lower()}

    @pytest.mark.asyncio
    async def test_optional_params(self, make_client):
        seen = {}

        def handler(request):
            seen["params"] = request.url.params
            return httpx.Response(200, json={"nfts": []})

        await make_client(handler).get_nfts(
            WALLET, contract_address="0xC", limit=10, continuation="abc", exclude_1155=False
        )

        params = seen["params"]
        assert params["contract_address"] == "0xC"
        assert params["page_size"] == "10"
        assert params["continuation"] == "abc"
        assert "exclude" not in params

    @pytest.mark.asyncio
    async def test_provider_error_yields_empty_page(self, make_client):
        page = await make_client(lambda request: httpx.Response(429)).get_nfts(WALLET)

        assert page.data == []
        assert page.continuation is None
        assert page.count == 0

    def test_asset_limit_is_capped(self, make_client):
        client = make_client(lambda request: httpx.Response(200), asset_limit=500)
        assert client.asset_limit == MAX_ASSET_LIMIT


class TestCollections:
    """Contract listing paged by continuation"""

    @pytest.mark.asyncio
    async def test_follows_continuation(self, make_client):
        pages = {
            None: {"contracts": [{"name": "One", "address": "0xAAA", "num_nfts_owned": 1}], "continuation": "c2"},
            "c2": {
                "contracts": [
                    {
                        "name": "Two",
                        "address": "0xBBB",
                        "num_nfts_owned": 3,
                        "metadata": {"thumbnail_url": "two.png"},
                    }
                ]
            },
        }
        seen = []

        def handler(request):
            seen.append(request.url.params.get("continuation"))
            assert request.url.params["type"] == "owns_contract_nfts"
            return httpx.Response(200, json=pages[request.url.params.get("continuation")])

        collections = await make_client(handler).get_all_collections(WALLET)

        assert seen == [None, "c2"]
        assert [(c.name, c.contract_address, c.num_nfts_owned) for c in collections] == [
            ("One", "0xaaa", 1),
            ("Two", "0xbbb", 3),
        ]
        assert collections[1].image_url == "two.png"

    @pytest.mark.asyncio
    async def test_error_yields_empty_list(self, make_client):
        assert await make_client(lambda request: httpx.Response(500)).get_all_collections(WALLET) == []


class TestAssetLookups:
    """Single nft detail and owner"""

    @pytest.mark.asyncio
    async def test_asset_detail(self, make_client):
        def handler(request):
            assert request.url.path == "/v0/nfts/0xC/3"
            return httpx.Response(
                200,
                json={
                    "response": "OK",
                    "owner": "0xOwner",
                    "nft": {"token_id": "3", "contract_address": "0xC", "file_url": "three.png"},
                },
            )

        collectible = await make_client(handler).get_asset_detail("0xC", "3")

        assert collectible.id == "3:::0xC"
        assert collectible.wallet == "0xowner"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"response": "NOK", "owner": "0xOwner", "nft": {"token_id": "3"}},
            {"response": "OK", "nft": {"token_id": "3"}},
            {"response": "OK", "owner": "0xOwner"},
        ],
    )
    async def test_asset_detail_requires_complete_response(self, make_client, payload):
        client = make_client(lambda request: httpx.Response(200, json=payload))
        assert await client.get_asset_detail("0xC", "3") is None

    @pytest.mark.asyncio
    async def test_asset_owner(self, make_client):
        client = make_client(lambda request: httpx.Response(200, json={"response": "OK", "owner": "0xOwner"}))
        assert await client.get_asset_owner("0xC", "3") == "0xOwner"

    @pytest.mark.asyncio
    async def test_asset_owner_propagates_errors(self, make_client):
        client = make_client(lambda request: httpx.Response(404))

        with pytest.raises(ProviderError) as exc_info:
            await client.get_asset_owner("0xC", "3")

        assert exc_info.value.status_code == 404


THROTTLED = {"detail": "Request was throttled."}


class TestErrorShapedBodies:
    """200 responses whose body is not the documented shape"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [[THROTTLED], THROTTLED, {"nfts": THROTTLED}])
    async def test_nfts_page_is_empty(self, make_client, body):
        page = await make_client(lambda request: httpx.Response(200, json=body)).get_nfts(WALLET)

        assert page.data == []
        assert page.continuation is None

    @pytest.mark.asyncio
    async def test_nfts_with_malformed_paging_fields(self, make_client):
        body = {
            "nfts": [{"token_id": 1, "contract_address": "0xC", "file_url": "one.png"}],
            "continuation": 42,
            "total": "many",
        }

        page = await make_client(lambda request: httpx.Response(200, json=body)).get_nfts(WALLET)

        assert [c.id for c in page.data] == ["1:::0xC"]
        assert page.continuation is None
        assert page.count == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [[THROTTLED], THROTTLED, {"contracts": "oops"}])
    async def test_collections_are_empty(self, make_client, body):
        collections = await make_client(lambda request: httpx.Response(200, json=body)).get_all_collections(WALLET)
        assert collections == []

    @pytest.mark.asyncio
    async def test_collections_keep_pages_before_error_object(self, make_client):
        def handler(request):
            if request.url.params.get("continuation") is None:
                return httpx.Response(
                    200,
                    json={"contracts": [{"name": "One", "address": "0xAAA", "metadata": "x"}], "continuation": "c2"},
                )
            return httpx.Response(200, json=[THROTTLED])

        collections = await make_client(handler).get_all_collections(WALLET)

        assert [(c.name, c.image_url) for c in collections] == [("One", "")]

    @pytest.mark.asyncio
    async def test_repeated_continuation_stops_paging(self, make_client):
        seen = []

        def handler(request):
            seen.append(request.url.params.get("continuation"))
            return httpx.Response(200, json={"contracts": [{"name": "One"}], "continuation": "same"})

        collections = await make_client(handler).get_all_collections(WALLET)

        assert seen == [None, "same"]
        assert len(collections) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            [THROTTLED],
            THROTTLED,
            {"response": "OK", "owner": {"address": "0xOwner"}, "nft": {"token_id": "3", "file_url": "three.png"}},
        ],
    )
    async def test_asset_detail_is_none(self, make_client, body):
        client = make_client(lambda request: httpx.Response(200, json=body))
        assert await client.get_asset_detail("0xC", "3") is None

    @pytest.mark.asyncio
    async def test_asset_owner_without_owner_is_none(self, make_client):
        client = make_client(lambda request: httpx.Response(200, json=THROTTLED))
        assert await client.get_asset_owner("0xC", "3") is None

    @pytest.mark.asyncio
    async def test_asset_owner_list_body_raises(self, make_client):
        client = make_client(lambda request: httpx.Response(200, json=[THROTTLED]))

        with pytest.raises(ProviderError) as exc_info:
            await client.get_asset_owner("0xC", "3")

        assert exc_info.value.status_code == 200
