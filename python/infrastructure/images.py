"""
Image loading for model calls.
Downloads sampled photos in parallel and inlines them as base64 data URLs.
"""

import asyncio
import base64
import io
from typing import List, Optional, Sequence
import httpx
from PIL import Image, UnidentifiedImageError

from core.logging import get_logger

logger = get_logger(__name__)

# Longest side sent to the model; larger photos are downscaled before encoding
MAX_DIMENSION = 1568
JPEG_QUALITY = 85


def to_data_url(image_bytes: bytes, media_type: str = "image/jpeg") -> str:
    """Encode raw image bytes as a data URL."""
    encoded = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{media_type};base64,{encoded}"


def shrink_image(image_bytes: bytes, max_dimension: int = MAX_DIMENSION) -> tuple:
    """
    Downscale an image so its longest side fits max_dimension.

    Returns:
        (bytes, media_type) - original bytes when no resize was needed
    """
    img = Image.open(io.BytesIO(image_bytes))
    if max(img.size) <= max_dimension:
        media_type = Image.MIME.get(img.format, "image/jpeg")
        return image_bytes, media_type

    if img.mode != "RGB":
        img = img.convert("RGB")
    img.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)

    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", quality=JPEG_QUALITY, optimize=True)
    return buffer.getvalue(), "image/jpeg"


class ImageLoader:
    """
    Turns photo storage locations into image payloads for the model.

    With inline=True each photo is downloaded and sent as a data URL.
    A photo that cannot be downloaded falls back to its remote URL so the
    payload list stays aligned with the sampled positions.
    """

    def __init__(self, inline: bool = True, timeout: float = 15.0, client: Optional[httpx.AsyncClient] = None):
        self.inline = inline
        self.timeout = timeout
        self._client = client

    async def load(self, urls: Sequence[str]) -> List[str]:
        """Return one payload per URL, in the same order."""
        if not self.inline:
            return list(urls)

        if self._client is not None:
            return await self._load_all(self._client, urls)

        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            return await self._load_all(client, urls)

    async def _load_all(self, client: httpx.AsyncClient, urls: Sequence[str]) -> List[str]:
        payloads = await asyncio.gather(*(self._load_one(client, url) for url in urls))
        inlined = sum(1 for p in payloads if p.startswith("data:"))
        logger.debug(f"Inlined {inlined}/{len(urls)} images")
        return list(payloads)

    async def _load_one(self, client: httpx.AsyncClient, url: str) -> str:
        if url.startswith("data:"):
            return url
        try:
            response = await client.get(url)
            response.raise_for_status()
            data, media_type = shrink_image(response.content)
            return to_data_url(data, media_type)
        except (httpx.HTTPError, UnidentifiedImageError, OSError) as e:
            logger.warning(f"Image download failed, sending URL instead: {url} - {e}")
            return url
