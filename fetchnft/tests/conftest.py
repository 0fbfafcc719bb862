"""Shared fixtures: fake network capabilities and payload factories."""

from typing import Dict, List, Optional

import pytest

from fetchnft.core.errors import ProbeError
from fetchnft.media.classifier import MediaClassifier
from fetchnft.schemas.provider import AssetRecord, OwnershipEvent
from fetchnft.services.mapper import CollectibleMapper


class FakeProber:
    """Answers probes from a url -> content type table."""

    def __init__(self, content_types: Optional[Dict[str, str]] = None, failing: Optional[set] = None):
        self.content_types = content_types or {}
        self.failing = failing or set()
        self.calls: List[str] = []

    async def probe(self, url: str) -> Optional[str]:
        self.calls.append(url)
        if url in self.failing:
            raise ProbeError(url, "connection refused")
        return self.content_types.get(url)


class FakeConverter:
    def __init__(self, prefix: str = "https://cdn.test/converted/"):
        self.prefix = prefix
        self.calls: List[str] = []

    async def convert(self, url: str) -> Optional[str]:
        self.calls.append(url)
        return f"{self.prefix}{url.rsplit('/', 1)[-1]}"


@pytest.fixture
def make_prober():
    """Build a ``FakeProber`` answering from a content type table."""
    return FakeProber


@pytest.fixture
def prober(make_prober):
    return make_prober()


@pytest.fixture
def converter():
    return FakeConverter()


@pytest.fixture
def classifier(prober):
    return MediaClassifier(prober)


@pytest.fixture
def mapper(classifier):
    return CollectibleMapper(classifier)


@pytest.fixture
def asset_factory():
    """Build an ``AssetRecord`` with sensible defaults."""

    def make(**overrides) -> AssetRecord:
        fields = {
            "provider": "opensea",
            "wallet": "0xA",
            "token_id": "1",
            "contract_address": "0xC",
        }
        fields.update(overrides)
        return AssetRecord(**fields)

    return make


@pytest.fixture
def event_factory(asset_factory):
    """Build an ``OwnershipEvent`` around an asset built from ``asset`` kwargs."""

    def make(
        created_date: str,
        from_address: str = "0x1111111111111111111111111111111111111111",
        to_address: str = "0xA",
        asset: Optional[dict] = None,
        wallet: str = "0xA",
    ) -> OwnershipEvent:
        asset_fields = {"image_url": "foo.png", "wallet": wallet}
        asset_fields.update(asset or {})
        return OwnershipEvent(
            created_date=created_date,
            from_address=from_address,
            to_address=to_address,
            asset=asset_factory(**asset_fields),
            wallet=wallet,
        )

    return make
