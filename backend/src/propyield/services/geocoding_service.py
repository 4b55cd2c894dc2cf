"""Geocoding service wrapping the Google Maps Geocoding API.

Provides forward and reverse geocoding with an in-memory LRU cache
and async HTTP via httpx.

Transport, HTTP and API-status failures raise ``GeocodingError``; an
address Google cannot find (``ZERO_RESULTS``) is ``None``.  Only
successful lookups are cached.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass

import httpx

from propyield.domain.schemas import Coordinates, LocationInfo

logger = logging.getLogger(__name__)

GOOGLE_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

CONFIDENCE_MAP: dict[str, float] = {
    "ROOFTOP": 1.0,
    "RANGE_INTERPOLATED": 0.8,
    "GEOMETRIC_CENTER": 0.6,
    "APPROXIMATE": 0.4,
}

_MAX_CACHE_SIZE = 10_000
# Reverse-geocode cache keys are rounded to ~1 m.
_COORD_PRECISION = 5


class GeocodingError(Exception):
    """The geocoding API could not be reached or rejected the request."""


@dataclass(frozen=True)
class GeoResult:
    lat: float
    lng: float
    city: str
    state: str
    zip_code: str
    country: str
    formatted_address: str
    confidence: float

    def to_location_info(self) -> LocationInfo:
        return LocationInfo(
            country=self.country or "US",
            state=self.state or None,
            city=self.city or None,
            zip_code=self.zip_code or None,
            coordinates=Coordinates(lat=self.lat, lng=self.lng),
        )


class GeocodingService:
    """Async geocoding service backed by the Google Maps Geocoding API."""

    def __init__(self, api_key: str, timeout: float = 10.0) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._cache: OrderedDict[str, GeoResult] = OrderedDict()

    # ------------------------------------------------------------------
    # Cache helpers
    # ------------------------------------------------------------------

    def _normalize_key(self, raw: str) -> str:
        return raw.strip().lower()

    def _cache_get(self, key: str) -> GeoResult | None:
        """Return the cached value, moving it to the end on hit (LRU)."""
        if key in self._cache:
            self._cache.move_to_end(key)
            return self._cache[key]
        return None

    def _cache_put(self, key: str, value: GeoResult) -> None:
        # Upsert: concurrent lookups of the same key may both write; last wins.
        self._cache[key] = value
        self._cache.move_to_end(key)
        if len(self._cache) > _MAX_CACHE_SIZE:
            self._cache.popitem(last=False)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def geocode(self, query: str) -> GeoResult | None:
        """Forward-geocode *query* into a `GeoResult`."""
        cache_key = self._normalize_key(query)
        cached = self._cache_get(cache_key)
        if cached is not None:
            return cached

        result = await self._fetch({"address": query, "key": self._api_key})
        if result is not None:
            self._cache_put(cache_key, result)
        return result

    async def reverse_geocode(self, lat: float, lng: float) -> GeoResult | None:
        """Reverse-geocode a lat/lng pair into a `GeoResult`."""
        cache_key = f"{round(lat, _COORD_PRECISION)},{round(lng, _COORD_PRECISION)}"
        cached = self._cache_get(cache_key)
        if cached is not None:
            return cached

        result = await self._fetch({"latlng": f"{lat},{lng}", "key": self._api_key})
        if result is not None:
            self._cache_put(cache_key, result)
        return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _fetch(self, params: dict) -> GeoResult | None:
        """Execute the HTTP request to Google and parse the response."""
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.get(GOOGLE_GEOCODE_URL, params=params)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as exc:
            logger.warning("Google Geocoding API HTTP error: %s", exc)
            raise GeocodingError(f"HTTP {exc.response.status_code} from geocoding API") from exc
        except httpx.RequestError as exc:
            logger.warning("Google Geocoding API request failed: %s", exc)
            raise GeocodingError(f"Geocoding request failed: {exc}") from exc
        except ValueError as exc:
            logger.warning("Google Geocoding API returned invalid JSON: %s", exc)
            raise GeocodingError("Invalid JSON from geocoding API") from exc

        return self._parse_google_response(data)

    def _parse_google_response(self, data: dict) -> GeoResult | None:
        """Extract relevant fields from the Google Geocoding JSON response."""
        status = data.get("status")
        if status == "ZERO_RESULTS":
            return None
        if status != "OK":
            message = data.get("error_message") or "no error message"
            logger.warning("Google Geocoding API returned status: %s (%s)", status, message)
            raise GeocodingError(f"Geocoding API status {status}: {message}")

        results = data.get("results")
        if not results:
            return None

        top = results[0]

        # --- Location ---
        geometry = top.get("geometry", {})
        location = geometry.get("location", {})
        lat = location.get("lat")
        lng = location.get("lng")
        if lat is None or lng is None:
            raise GeocodingError("Missing lat/lng in geocoding response")

        # --- Confidence ---
        location_type = geometry.get("location_type", "")
        confidence = CONFIDENCE_MAP.get(location_type, 0.4)

        # --- Address components ---
        components = top.get("address_components", [])
        city = ""
        state = ""
        zip_code = ""
        country = ""

        for comp in components:
            types = comp.get("types", [])
            if "locality" in types and not city:
                city = comp.get("long_name", "")
            elif "sublocality" in types and not city:
                city = comp.get("long_name", "")
            if "administrative_area_level_1" in types:
                state = comp.get("short_name", "")
            if "postal_code" in types:
                zip_code = comp.get("long_name", "")
            if "country" in types:
                country = comp.get("short_name", "")

        return GeoResult(
            lat=lat,
            lng=lng,
            city=city,
            state=state,
            zip_code=zip_code,
            country=country,
            formatted_address=top.get("formatted_address", ""),
            confidence=confidence,
        )
