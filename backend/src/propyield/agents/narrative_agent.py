"""Vision Narrative Agent - satellite image to free-text property description."""

import base64
import binascii
import logging
import re
from typing import Optional
from urllib.parse import urlencode

import httpx

from propyield.agents.base import AgentResult, BaseAgent
from propyield.agents.prompts.vision import VISION_SYSTEM_PROMPT, VISION_TEMPLATE
from propyield.domain.schemas import Coordinates
from propyield.infra.gemini_client import image_part

logger = logging.getLogger(__name__)

STATIC_MAPS_URL = "https://maps.googleapis.com/maps/api/staticmap"

_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[\w.+-]+=[\w.+-]+)*;base64,(?P<data>.+)$", re.DOTALL)


class ImageLoadError(Exception):
    """The image reference could not be turned into image bytes."""


def satellite_image_url(
    coordinates: Coordinates,
    api_key: str,
    zoom: int = 20,
    size: str = "640x640",
) -> str:
    """Google Static Maps satellite tile centred on *coordinates*."""
    params = {
        "center": f"{coordinates.lat},{coordinates.lng}",
        "zoom": zoom,
        "size": size,
        "maptype": "satellite",
        "key": api_key,
    }
    return f"{STATIC_MAPS_URL}?{urlencode(params)}"


class VisionNarrativeAgent(BaseAgent):
    """Asks a Gemini vision model to describe the monetizable features in a satellite image."""

    def __init__(self, model_name: Optional[str] = None, timeout: float = 120.0):
        if model_name is None:
            from propyield.app.config import get_settings
            model_name = get_settings().vision_model
        super().__init__(
            agent_name="vision_narrative",
            model_name=model_name,
            temperature=0.2,  # Descriptive, not creative
            timeout=timeout,
        )

    async def describe(self, image_ref: str, address: str) -> AgentResult:
        """Narrative for the image at *image_ref* (``data:`` URI or http(s) URL)."""
        try:
            data, mime_type = await self._load_image(image_ref)
        except ImageLoadError as exc:
            logger.warning("[%s] Image load failed: %s", self.agent_name, exc)
            return AgentResult.failure(f"Image load failed: {exc}")

        result = await self.generate(
            prompt=[VISION_TEMPLATE.format(address=address), image_part(data, mime_type)],
            system_instruction=VISION_SYSTEM_PROMPT,
        )
        if result.ok and not (result.data or "").strip():
            return AgentResult.failure("Vision model returned an empty narrative", latency_ms=result.latency_ms)
        return result

    async def _load_image(self, image_ref: str) -> tuple[bytes, str]:
        ref = (image_ref or "").strip()
        if ref.startswith("data:"):
            match = _DATA_URI.match(ref)
            if not match:
                raise ImageLoadError("malformed data URI")
            try:
                data = base64.b64decode(match.group("data"), validate=True)
            except (binascii.Error, ValueError) as exc:
                raise ImageLoadError(f"invalid base64 payload: {exc}") from exc
            return data, match.group("mime") or "image/png"

        if ref.startswith(("http://", "https://")):
            try:
                async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                    resp = await client.get(ref)
                    resp.raise_for_status()
            except httpx.HTTPStatusError as exc:
                raise ImageLoadError(f"HTTP {exc.response.status_code} fetching image") from exc
            except httpx.RequestError as exc:
                raise ImageLoadError(f"request failed: {exc}") from exc
            mime_type = resp.headers.get("content-type", "image/png").split(";", 1)[0].strip()
            return resp.content, mime_type or "image/png"

        raise ImageLoadError("unsupported image reference; expected data URI or http(s) URL")
