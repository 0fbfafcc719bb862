"""Media classification for collectibles.

Providers fill the "image" fields with anything, videos included, and many
URLs carry no useful extension at all. The classifier decides the rendering
media type from the file extensions first and, where the extension cannot be
trusted, from the Content-Type reported by a HEAD probe.

Extensions follow the OpenSea metadata standards:
https://docs.opensea.io/docs/metadata-standards
"""

from __future__ import annotations

import asyncio
from typing import Iterable, Optional, Sequence

from pydantic import BaseModel

from fetchnft.core.config import settings
from fetchnft.core.errors import ProbeError
from fetchnft.core.logging import get_logger
from fetchnft.media.probe import (
    ContentTypeProber,
    HttpxContentTypeProber,
    ImageConverter,
    default_image_converter,
)
from fetchnft.media.urls import normalize_url
from fetchnft.schemas.collectible import MediaType
from fetchnft.schemas.provider import AssetRecord

log = get_logger("media.classifier")

GIF_EXTENSION = ".gif"
THREE_D_EXTENSIONS = ("gltf", "glb")
VIDEO_EXTENSIONS = ("webm", "mp4", "ogv", "ogg", "mov", "html", "htm")
AUDIO_EXTENSIONS = ("mp3", "wav", "oga")
HTML_EXTENSIONS = ("html", "htm")

# OpenSea lists 3D models and m4v among its animation formats, so they are
# never a usable frame either.
NON_IMAGE_EXTENSIONS = THREE_D_EXTENSIONS + VIDEO_EXTENSIONS + ("m4v",) + AUDIO_EXTENSIONS


class MediaClassification(BaseModel):
    media_type: MediaType
    frame_url: Optional[str] = None
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    three_d_url: Optional[str] = None
    gif_url: Optional[str] = None


def _ends_with_any(url: Optional[str], extensions: Iterable[str]) -> bool:
    return bool(url) and any(url.endswith(ext) for ext in extensions)


def _first(urls: Iterable[Optional[str]]) -> Optional[str]:
    return next((url for url in urls if url), None)


def _first_with_extension(urls: Iterable[Optional[str]], extensions: Sequence[str]) -> Optional[str]:
    return next((url for url in urls if _ends_with_any(url, extensions)), None)


def _first_image_like(urls: Iterable[Optional[str]]) -> Optional[str]:
    # Unknown or missing extensions count as images.
    return next((url for url in urls if url and not _ends_with_any(url, NON_IMAGE_EXTENSIONS)), None)


def _has_gif(image_urls: Sequence[Optional[str]]) -> bool:
    return any(_ends_with_any(url, (GIF_EXTENSION,)) for url in image_urls)


def _has_three_d_and_image(
    animation_urls: Sequence[Optional[str]], image_urls: Sequence[Optional[str]]
) -> bool:
    has_three_d = any(_ends_with_any(url, THREE_D_EXTENSIONS) for url in [*animation_urls, *image_urls])
    return has_three_d and _first_image_like(image_urls) is not None


def _has_animation(animation_urls: Sequence[Optional[str]]) -> bool:
    return any(animation_urls)


def _is_probeable(url: Optional[str]) -> bool:
    return bool(url) and url.startswith("http")


def _content_type_has(content_type: Optional[str], needle: str) -> bool:
    return bool(content_type) and needle in content_type.lower()


def is_asset_gif(asset: AssetRecord) -> bool:
    return _has_gif(asset.image_urls)


def is_asset_three_d_and_includes_image(asset: AssetRecord) -> bool:
    return _has_three_d_and_image(asset.animation_urls, asset.image_urls)


def is_asset_video(asset: AssetRecord) -> bool:
    return _has_animation(asset.animation_urls)


def is_asset_image(asset: AssetRecord) -> bool:
    return _first_image_like(asset.image_urls) is not None


def is_asset_valid(asset: Optional[AssetRecord]) -> bool:
    """An asset is usable when at least one classification rule can match."""
    if asset is None:
        return False
    return (
        is_asset_gif(asset)
        or is_asset_three_d_and_includes_image(asset)
        or is_asset_video(asset)
        or is_asset_image(asset)
    )


class MediaClassifier:
    """Decides the media type and media URLs of an asset.

    ``classify`` never raises: a failed probe, or anything unexpected, yields
    an IMAGE classification using the first available URL.
    """

    def __init__(
        self,
        prober: ContentTypeProber,
        image_converter: Optional[ImageConverter] = None,
        max_concurrent_probes: Optional[int] = None,
        gateway: Optional[str] = None,
    ):
        self.prober = prober
        self.image_converter = image_converter
        self.gateway = gateway
        self._probe_slots = asyncio.Semaphore(max_concurrent_probes or settings.PROBE_CONCURRENCY)

    @classmethod
    def default(cls) -> "MediaClassifier":
        """Classifier probing over HTTP, with the configured image converter."""
        return cls(HttpxContentTypeProber(), default_image_converter())

    async def classify(self, asset: AssetRecord) -> MediaClassification:
        animation_urls = [normalize_url(url, self.gateway) for url in asset.animation_urls]
        image_urls = [normalize_url(url, self.gateway) for url in asset.image_urls]
        try:
            if asset.provider == "nftport":
                return await self._classify_minimal(animation_urls, image_urls)
            return await self._classify_rich(animation_urls, image_urls)
        except ProbeError as exc:
            log.debug(f"Falling back to IMAGE for token_id={asset.token_id}: {exc}")
        except Exception as exc:  # noqa: BLE001
            log.error(f"Error classifying token_id={asset.token_id} contract={asset.contract_address}: {exc}")
        return self._fallback(animation_urls, image_urls)

    async def _probe(self, url: str) -> Optional[str]:
        async with self._probe_slots:
            return await self.prober.probe(url)

    @staticmethod
    def _fallback(animation_urls: list[Optional[str]], image_urls: list[Optional[str]]) -> MediaClassification:
        url = _first(image_urls) or _first(animation_urls)
        return MediaClassification(media_type=MediaType.IMAGE, frame_url=url, image_url=url)

    # -------------------------------------------------------------------------
    # Full-featured provider
    # -------------------------------------------------------------------------
    async def _classify_rich(
        self, animation_urls: list[Optional[str]], image_urls: list[Optional[str]]
    ) -> MediaClassification:
        if _has_gif(image_urls):
            # the gif frame is rendered by the consumer
            return MediaClassification(
                media_type=MediaType.GIF,
                gif_url=_first_with_extension(image_urls, (GIF_EXTENSION,)),
            )

        if _has_three_d_and_image(animation_urls, image_urls):
            return await self._classify_three_d(animation_urls, image_urls)

        if _has_animation(animation_urls):
            frame_url = _first_image_like(image_urls)
            if _is_probeable(frame_url):
                content_type = await self._probe(frame_url)
                if _content_type_has(content_type, "video") or _content_type_has(content_type, "gif"):
                    # consumer falls back to the first video frame
                    frame_url = None
            return MediaClassification(
                media_type=MediaType.VIDEO,
                frame_url=frame_url,
                video_url=_first_with_extension([*animation_urls, *image_urls], VIDEO_EXTENSIONS),
            )

        return await self._classify_image(image_urls, minimal=False)

    # -------------------------------------------------------------------------
    # Minimal provider
    # -------------------------------------------------------------------------
    async def _classify_minimal(
        self, animation_urls: list[Optional[str]], image_urls: list[Optional[str]]
    ) -> MediaClassification:
        # NftPort animation URLs rarely carry a trustworthy extension, so the
        # animation slot is probed before anything else.
        if _has_animation(animation_urls):
            return await self._classify_animation(animation_urls, image_urls)

        if _has_three_d_and_image(animation_urls, image_urls):
            return await self._classify_three_d(animation_urls, image_urls)

        if _has_gif(image_urls):
            return MediaClassification(
                media_type=MediaType.GIF,
                gif_url=_first_with_extension(image_urls, (GIF_EXTENSION,)),
            )

        return await self._classify_image(image_urls, minimal=True)

    async def _classify_animation(
        self, animation_urls: list[Optional[str]], image_urls: list[Optional[str]]
    ) -> MediaClassification:
        media_url = _first([*animation_urls, *image_urls])
        content_type = await self._probe(media_url) if _is_probeable(media_url) else None
        image_url = _first(image_urls)

        if _content_type_has(content_type, "video"):
            media_type = MediaType.VIDEO
        elif _content_type_has(content_type, "gif"):
            return MediaClassification(media_type=MediaType.GIF, gif_url=media_url, image_url=image_url)
        elif _content_type_has(content_type, "audio") or _ends_with_any(media_url, AUDIO_EXTENSIONS):
            media_type = MediaType.AUDIO
        elif _content_type_has(content_type, "html") or _ends_with_any(media_url, HTML_EXTENSIONS):
            media_type = MediaType.HTML
        else:
            media_type = MediaType.VIDEO
        return MediaClassification(media_type=media_type, video_url=media_url, image_url=image_url)

    # -------------------------------------------------------------------------
    # Shared rules
    # -------------------------------------------------------------------------
    async def _classify_three_d(
        self, animation_urls: list[Optional[str]], image_urls: list[Optional[str]]
    ) -> MediaClassification:
        three_d_url = _first_with_extension([*animation_urls, *image_urls], THREE_D_EXTENSIONS)
        frame_url = _first_image_like(image_urls)
        # an extensionless frame may still turn out to be a gif
        if _is_probeable(frame_url):
            content_type = await self._probe(frame_url)
            if _content_type_has(content_type, "gif"):
                return MediaClassification(media_type=MediaType.GIF, gif_url=frame_url)
        return MediaClassification(media_type=MediaType.THREE_D, three_d_url=three_d_url, frame_url=frame_url)

    async def _classify_image(self, image_urls: list[Optional[str]], minimal: bool) -> MediaClassification:
        """Classify the first image slot by its probed content type.

        A frame that cannot be probed (relative, data: or otherwise not http)
        is used as ``image_url`` too, for both providers and without going
        through the converter. For the minimal provider a failed probe still
        yields IMAGE with a converted ``image_url``; non-SVG images are
        converted as well.
        """
        frame_url = _first(image_urls)
        if not _is_probeable(frame_url):
            return MediaClassification(media_type=MediaType.IMAGE, frame_url=frame_url, image_url=frame_url)

        try:
            content_type = await self._probe(frame_url)
        except ProbeError:
            if not minimal:
                raise
            return MediaClassification(
                media_type=MediaType.IMAGE,
                frame_url=frame_url,
                image_url=await self._convert_image(frame_url),
            )

        if _content_type_has(content_type, "gif"):
            return MediaClassification(media_type=MediaType.GIF, gif_url=frame_url)
        if _content_type_has(content_type, "video"):
            return MediaClassification(media_type=MediaType.VIDEO, video_url=frame_url)

        image_url = frame_url
        if minimal and not _content_type_has(content_type, "image/svg+xml"):
            image_url = await self._convert_image(frame_url)
        return MediaClassification(media_type=MediaType.IMAGE, frame_url=frame_url, image_url=image_url)

    async def _convert_image(self, url: str) -> str:
        if self.image_converter is None:
            return url
        return await self.image_converter.convert(url) or url
