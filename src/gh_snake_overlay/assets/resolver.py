"""Async resolution of image references into embeddable data URIs."""

import asyncio
import base64
import logging
import mimetypes
from collections.abc import Iterable
from io import BytesIO
from pathlib import Path
from typing import Protocol

import httpx
from PIL import Image, UnidentifiedImageError

from ..constants import DEFAULT_ASSET_TIMEOUT


class AssetResolver(Protocol):
    async def resolve(self, reference: str) -> str:
        """Return an embeddable string for ``reference``; never raises."""
        ...


def is_external_url(reference: str) -> bool:
    return reference.startswith(("http://", "https://"))


def is_data_uri(reference: str) -> bool:
    return reference.startswith("data:")


def detect_media_type(data: bytes, name: str = "") -> str:
    """Sniff the image type with Pillow, falling back to the file extension."""
    try:
        with Image.open(BytesIO(data)) as image:
            media_type = Image.MIME.get(image.format or "")
    except (UnidentifiedImageError, OSError):
        media_type = None
    if media_type:
        return media_type
    guessed, _ = mimetypes.guess_type(name)
    return guessed or "application/octet-stream"


def to_data_uri(data: bytes, media_type: str) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{media_type};base64,{encoded}"


def decode_data_uri(reference: str) -> bytes | None:
    """Payload of a base64 data URI, or ``None`` for anything else."""
    if not is_data_uri(reference):
        return None
    header, _, payload = reference.partition(",")
    if not header.endswith(";base64"):
        return None
    try:
        return base64.b64decode(payload, validate=True)
    except ValueError:
        return None


class HttpAssetResolver:
    """
    Resolve remote URLs and local paths into base64 data URIs.

    Results are cached per reference and concurrent requests for the same
    reference share one in-flight fetch. Any failure is logged and resolves
    to the original reference.
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_ASSET_TIMEOUT,
        base_dir: str | Path | None = None,
        client: httpx.AsyncClient | None = None,
        logger: logging.Logger | None = None,
    ):
        self.timeout = timeout
        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
        self._client = client
        self._owns_client = client is None
        self._logger = logger or logging.getLogger(__name__)
        self._cache: dict[str, str] = {}
        self._inflight: dict[str, asyncio.Task[str]] = {}

    async def __aenter__(self) -> "HttpAssetResolver":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def resolve(self, reference: str) -> str:
        if not reference or is_data_uri(reference):
            return reference
        cached = self._cache.get(reference)
        if cached is not None:
            return cached

        task = self._inflight.get(reference)
        if task is None:
            task = asyncio.ensure_future(self._load(reference))
            self._inflight[reference] = task
        try:
            result = await task
        finally:
            self._inflight.pop(reference, None)
        self._cache[reference] = result
        return result

    async def _load(self, reference: str) -> str:
        try:
            if is_external_url(reference):
                return await self._fetch(reference)
            return self._read_local(reference)
        except (httpx.HTTPError, OSError) as exc:
            self._logger.warning("Could not resolve asset %s: %s", reference, exc)
            return reference

    async def _fetch(self, url: str) -> str:
        if self._client is None:
            self._client = httpx.AsyncClient(follow_redirects=True)
        response = await self._client.get(url, timeout=self.timeout)
        response.raise_for_status()
        data = response.content
        header_type = response.headers.get("content-type", "").split(";")[0].strip()
        media_type = header_type if header_type.startswith("image/") else detect_media_type(data, url)
        self._logger.debug("Fetched %s (%d bytes, %s)", url, len(data), media_type)
        return to_data_uri(data, media_type)

    def _read_local(self, reference: str) -> str:
        path = Path(reference)
        if not path.is_absolute():
            path = self.base_dir / path
        data = path.read_bytes()
        return to_data_uri(data, detect_media_type(data, path.name))


async def resolve_references(
    references: Iterable[str],
    resolver: AssetResolver,
) -> dict[str, str]:
    """Resolve each distinct reference once, all concurrently."""
    unique = list(dict.fromkeys(ref for ref in references if ref))
    results = await asyncio.gather(*(resolver.resolve(reference) for reference in unique))
    return dict(zip(unique, results))
