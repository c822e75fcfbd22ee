"""
Image Acquisition
=================

Fetches a raster image for a prompt from an external generator and
normalizes it to RGB PNG bytes for the quantizer.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Type
from urllib.parse import quote, urlencode, urljoin
import asyncio
import base64
import io
import random

import aiohttp
from openai import AsyncOpenAI, OpenAIError
from PIL import Image, UnidentifiedImageError

from canvas_art.config.logging import get_logger
from canvas_art.config.settings import Settings, get_settings
from canvas_art.core.imaging.prompting import build_art_prompt, build_short_prompt

logger = get_logger(__name__)

USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko)"
JPEG_MAGIC = b"\xff\xd8\xff"
PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


class UpstreamGenerationError(Exception):
    """Exception raised when the image generator cannot supply an image."""

    pass


class UpstreamHTTPError(UpstreamGenerationError):
    """Terminal response with a non-2xx status."""

    def __init__(self, status_code: int, url: str):
        self.status_code = status_code
        self.url = url
        super().__init__(f"Upstream HTTP error {status_code} fetching {url}")


class RedirectLoopError(UpstreamGenerationError):
    """Redirect chain exceeded the hop limit."""

    pass


class InvalidImageError(UpstreamGenerationError):
    """Fetched bytes are not a decodable JPEG or PNG image."""

    pass


def has_image_signature(data: bytes) -> bool:
    """Whether ``data`` starts with a JPEG or PNG header."""
    return data.startswith(JPEG_MAGIC) or data.startswith(PNG_MAGIC)


async def fetch_image_bytes(
    session: aiohttp.ClientSession, url: str, max_redirects: int = 5
) -> bytes:
    """
    GET ``url`` following at most ``max_redirects`` redirects.

    Args:
        session: Open aiohttp session
        url: Image URL
        max_redirects: Redirect hop limit

    Returns:
        Response body of the terminal 2xx response

    Raises:
        RedirectLoopError: If more than ``max_redirects`` redirects are returned
        UpstreamHTTPError: If the terminal status is not 2xx
        UpstreamGenerationError: On connection failures
    """
    current = url
    for hop in range(max_redirects + 1):
        try:
            async with session.get(
                current, allow_redirects=False, headers={"User-Agent": USER_AGENT}
            ) as response:
                location = response.headers.get("Location")
                if 300 <= response.status < 400 and location:
                    current = urljoin(current, location)
                    logger.debug("Following redirect", hop=hop + 1, location=current)
                    continue
                if not 200 <= response.status < 300:
                    raise UpstreamHTTPError(response.status, current)
                return await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpstreamGenerationError(f"Image fetch failed: {e or type(e).__name__}") from e

    raise RedirectLoopError(f"Redirect loop: more than {max_redirects} redirects fetching {url}")


def normalize_image(data: bytes) -> bytes:
    """
    Re-encode any decodable raster as RGB PNG.

    Raises:
        InvalidImageError: If Pillow cannot decode the bytes
    """
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            rgb = image.convert("RGB")
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImageError(f"Could not decode image: {e}") from e

    output = io.BytesIO()
    rgb.save(output, format="PNG")
    return output.getvalue()


class ImageSource(ABC):
    """Abstract base class for prompt-to-image generators."""

    name = "base"

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.logger: Any = logger.bind(source=self.name)  # structlog.BoundLoggerBase
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.settings.fetch_timeout, connect=10)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    @abstractmethod
    async def fetch(self, prompt: str) -> bytes:
        """Return the generator's raw image bytes for ``prompt``."""
        pass

    async def generate(self, prompt: str) -> bytes:
        """Generate an image for ``prompt`` as normalized PNG bytes."""
        self.logger.info("Generating image", prompt=prompt)
        data = await self.fetch(prompt)
        normalized = normalize_image(data)
        self.logger.info("Image generated", raw_size=len(data), png_size=len(normalized))
        return normalized


class OpenAIImageSource(ImageSource):
    """Paid generation API; a single attempt, failures propagate."""

    name = "openai"

    def __init__(self, settings: Optional[Settings] = None, client: Optional[AsyncOpenAI] = None):
        super().__init__(settings)
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.settings.openai_api_key)
        return self._client

    async def fetch(self, prompt: str) -> bytes:
        try:
            client = self._get_client()
            response = await client.images.generate(
                model=self.settings.openai_model,
                prompt=build_art_prompt(prompt),
                n=1,
                size=self.settings.openai_image_size,
                quality=self.settings.openai_image_quality,
            )
        except OpenAIError as e:
            self.logger.error("Image generation API error", error=str(e))
            raise UpstreamGenerationError(f"Image generation failed: {e}") from e

        if not response.data:
            raise UpstreamGenerationError("Image generation returned no images")

        image = response.data[0]
        if image.b64_json:
            return base64.b64decode(image.b64_json)
        if not image.url:
            raise UpstreamGenerationError("Image generation returned neither URL nor data")

        self.logger.debug("Fetching generated image", url=image.url)
        session = await self._get_session()
        return await fetch_image_bytes(session, image.url, self.settings.fetch_max_redirects)


class PollinationsImageSource(ImageSource):
    """Free URL-addressed generator; renders asynchronously, so invalid bytes are retried."""

    name = "pollinations"

    def build_url(self, prompt: str, seed: Optional[int] = None) -> str:
        if seed is None:
            seed = self.settings.image_seed
        if seed is None:
            seed = random.randrange(1_000_000)
        query = urlencode(
            {
                "width": self.settings.image_width,
                "height": self.settings.image_height,
                "seed": seed,
                "nologo": "true",
            }
        )
        base = self.settings.pollinations_url.rstrip("/")
        return f"{base}/{quote(build_short_prompt(prompt), safe='')}?{query}"

    async def fetch(self, prompt: str) -> bytes:
        url = self.build_url(prompt)
        session = await self._get_session()
        attempts = self.settings.fetch_attempts
        last_error: Optional[UpstreamGenerationError] = None

        for attempt in range(1, attempts + 1):
            try:
                data = await fetch_image_bytes(session, url, self.settings.fetch_max_redirects)
                if has_image_signature(data):
                    return data
                last_error = InvalidImageError(
                    f"Response is not a JPEG or PNG image ({len(data)} bytes)"
                )
            except RedirectLoopError:
                raise
            except UpstreamGenerationError as e:
                last_error = e

            self.logger.warning(
                "Image fetch attempt failed",
                attempt=attempt,
                attempts=attempts,
                error=str(last_error),
            )
            if attempt < attempts:
                await asyncio.sleep(self.settings.fetch_retry_delay)

        assert last_error is not None
        raise last_error


class ImageSourceFactory:
    """Factory for creating image sources."""

    _sources: Dict[str, Type[ImageSource]] = {
        "openai": OpenAIImageSource,
        "pollinations": PollinationsImageSource,
    }

    @classmethod
    def create_source(cls, source_type: str, settings: Optional[Settings] = None) -> ImageSource:
        """
        Create image source instance.

        Args:
            source_type: Registered source name
            settings: Optional settings override

        Returns:
            Image source instance
        """
        if source_type not in cls._sources:
            raise ValueError(f"Unknown image source: {source_type}")
        return cls._sources[source_type](settings)


async def generate_image(prompt: str, settings: Optional[Settings] = None) -> bytes:
    """
    Generate a normalized PNG for ``prompt`` with the configured source.

    Raises:
        UpstreamGenerationError: If the generator fails
    """
    settings = settings or get_settings()
    source = ImageSourceFactory.create_source(settings.image_source, settings)
    try:
        return await source.generate(prompt)
    finally:
        await source.close()
