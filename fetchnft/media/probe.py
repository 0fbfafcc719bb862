"""Network capabilities used by the media classifier.

Both are injected into the classifier so its decision logic can be exercised
without network access.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Protocol

import httpx

from fetchnft.core.config import settings
from fetchnft.core.errors import ProbeError
from fetchnft.core.logging import get_logger

log = get_logger("media.probe")


class ContentTypeProber(Protocol):
    async def probe(self, url: str) -> Optional[str]:
        """Return the declared Content-Type of ``url`` (None if absent).

        Raises ``ProbeError`` when the probe cannot be completed.
        """


class ImageConverter(Protocol):
    async def convert(self, url: str) -> Optional[str]:
        """Return a browser-renderable URL for ``url``, or None."""


class HttpxContentTypeProber:
    """Probes content type with an HTTP HEAD request.

    The total latency of a probe is bounded by ``timeout`` so a stuck
    server cannot hold up a whole reconciliation.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.timeout = timeout if timeout is not None else settings.PROBE_TIMEOUT_SECONDS
        self._client = client

    async def probe(self, url: str) -> Optional[str]:
        try:
            return await asyncio.wait_for(self._head(url), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise ProbeError(url, "timed out") from exc
        except httpx.HTTPError as exc:
            raise ProbeError(url, str(exc) or exc.__class__.__name__) from exc

    async def _head(self, url: str) -> Optional[str]:
        if self._client is not None:
            resp = await self._client.head(url, follow_redirects=True)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.head(url, follow_redirects=True)
        content_type = resp.headers.get("content-type")
        log.debug(f"Probed {url} status={resp.status_code} content_type={content_type}")
        return content_type


class HttpxImageConverter:
    """Asks an image conversion service for a renderable copy of an image.

    The service answers ``GET <endpoint>?url=<image>`` with
    ``{"magic_url": ...}``. Failures are logged and yield None.
    """

    def __init__(
        self,
        endpoint: str,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.endpoint = endpoint
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS
        self._client = client

    async def convert(self, url: str) -> Optional[str]:
        try:
            if self._client is not None:
                resp = await self._client.get(self.endpoint, params={"url": url})
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.get(self.endpoint, params={"url": url})
            if resp.status_code != 200:
                return None
            body = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            log.warning(f"Image conversion failed for {url}: {exc}")
            return None

        magic_url = body.get("magic_url") if isinstance(body, dict) else None
        return magic_url if isinstance(magic_url, str) and magic_url else None


def default_image_converter() -> Optional[ImageConverter]:
    if not settings.IMAGE_CONVERTER_URL:
        return None
    return HttpxImageConverter(settings.IMAGE_CONVERTER_URL)
