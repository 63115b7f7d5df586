"""Download images referenced by assistant replies."""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from .exceptions import AttachmentFetchError
from .models import Attachment

LOGGER = logging.getLogger(__name__)

MAX_IMAGE_BYTES = 5 * 1024 * 1024


class ImageSource(Protocol):
    async def fetch(self, url: str) -> Attachment: ...


class ImageFetcher:
    """Fetch ``image/*`` resources over HTTP(S) with a size cap."""

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        max_bytes: int = MAX_IMAGE_BYTES,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.timeout = timeout
        self.max_bytes = max(1, max_bytes)
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"Accept": "image/*;q=1.0, */*;q=0.1"},
            )
        return self._client

    async def fetch(self, url: str) -> Attachment:
        """Download ``url`` and return it as an :class:`Attachment`."""
        if not (url.startswith("http://") or url.startswith("https://")):
            raise AttachmentFetchError(f"Unsupported URL scheme: {url!r}")

        client = self._get_client()
        try:
            async with client.stream("GET", url) as response:
                if response.status_code >= 400:
                    raise AttachmentFetchError(
                        f"Download of {url} failed with HTTP {response.status_code}."
                    )

                content_type = (
                    response.headers.get("content-type", "").split(";")[0].strip().lower()
                )
                if not content_type.startswith("image/"):
                    raise AttachmentFetchError(
                        f"Resource at {url} is not an image ({content_type or 'unknown'})."
                    )

                size_header = response.headers.get("content-length")
                if size_header and size_header.isdigit() and int(size_header) > self.max_bytes:
                    raise AttachmentFetchError(f"Image at {url} is too large.")

                chunks: list[bytes] = []
                total = 0
                async for chunk in response.aiter_bytes():
                    total += len(chunk)
                    if total > self.max_bytes:
                        raise AttachmentFetchError(f"Image at {url} is too large.")
                    chunks.append(chunk)
        except httpx.HTTPError as exc:
            raise AttachmentFetchError(f"Unable to download {url}: {exc}") from exc

        data = b"".join(chunks)
        if not data:
            raise AttachmentFetchError(f"Image at {url} is empty.")

        LOGGER.info(
            "images.fetch.complete",
            extra={
                "event": "images.fetch.complete",
                "url": url,
                "bytes": len(data),
                "mime_type": content_type,
            },
        )
        return Attachment(url=url, data=data, mime_type=content_type)

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
