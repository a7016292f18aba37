from __future__ import annotations

import logging
from typing import Dict, Optional

import httpx

from app.integrations.geo_fallback import fallback_address

logger = logging.getLogger(__name__)

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"

# google component type -> our address key; first match per component wins
_COMPONENT_KEYS = [
    ("sublocality_level_1", "sublocality1"),
    ("sublocality", "sublocality1"),
    ("sublocality_level_2", "sublocality2"),
    ("sublocality_level_3", "sublocality3"),
    ("locality", "city"),
    ("administrative_area_level_2", "district"),
    ("administrative_area_level_1", "state"),
    ("postal_code", "postalCode"),
    ("country", "country"),
    ("route", "route"),
    ("street_number", "streetNumber"),
    ("premise", "premise"),
]


class GeocoderError(Exception):
    pass


class GoogleGeocoder:
    def __init__(self, api_key: str, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None):
        self.api_key = api_key
        self.timeout = timeout
        self._client = client

    async def _lookup(self, lat: float, lng: float) -> Dict[str, Optional[str]]:
        if not self.api_key:
            raise GeocoderError("geocoding API key not configured")
        params = {"latlng": f"{lat},{lng}", "key": self.api_key, "language": "en"}
        if self._client is not None:
            resp = await self._client.get(GEOCODE_URL, params=params, timeout=self.timeout)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.get(GEOCODE_URL, params=params)
        resp.raise_for_status()
        body = resp.json()
        if body.get("status") != "OK" or not body.get("results"):
            raise GeocoderError(f"geocoding returned {body.get('status')}")
        return parse_geocode_result(body["results"][0])

    async def resolve(self, lat: float, lng: float) -> Dict[str, Optional[str]]:
        """Never raises: API failures resolve through the bounding-box table."""
        try:
            address = await self._lookup(lat, lng)
        except (httpx.HTTPError, GeocoderError, ValueError, KeyError) as exc:
            logger.warning("Geocoding failed for %s,%s (%s); using fallback table", lat, lng, exc)
            return fallback_address(lat, lng)
        if not address.get("city") or not address.get("state"):
            fb = fallback_address(lat, lng)
            address["city"] = address.get("city") or fb["city"]
            address["state"] = address.get("state") or fb["state"]
        return address


def parse_geocode_result(result: dict) -> Dict[str, Optional[str]]:
    parts: Dict[str, Optional[str]] = {}
    for component in result.get("address_components", []):
        types = component.get("types", [])
        for google_type, key in _COMPONENT_KEYS:
            if google_type in types and key not in parts:
                parts[key] = component.get("long_name")
                break

    street = " ".join(p for p in (parts.pop("streetNumber", None), parts.pop("route", None)) if p)
    premise = parts.pop("premise", None)
    street_address = ", ".join(p for p in (premise, street) if p) or None

    formatted = result.get("formatted_address")
    return {
        **parts,
        "sublocality": parts.get("sublocality1"),
        "streetAddress": street_address,
        "formattedAddress": formatted,
        "detailedAddress": formatted,
        "source": "google",
    }
