"""
Nominatim (OpenStreetMap) geocoding client.

Address -> coordinates and coordinates -> display name. Failures never
propagate: every HTTP, timeout or parse problem is logged and reported
as None.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple

import aiohttp
from loguru import logger


class NominatimGeocoder:
    """Client for the Nominatim search/reverse API."""

    BASE_URL = "https://nominatim.openstreetmap.org"

    def __init__(
        self,
        base_url: Optional[str] = None,
        user_agent: str = "SaleHunter/1.0",
        timeout_seconds: float = 10.0,
    ):
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.user_agent = user_agent
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def geocode(self, address: str) -> Optional[Tuple[Decimal, Decimal]]:
        """
        Resolve an address.

        Args:
            address: Free-form address

        Returns:
            (latitude, longitude) of the best match, or None
        """
        if not address or not address.strip():
            return None

        params = {"q": address, "format": "json", "limit": "1"}
        data = await self._get_json("/search", params)
        if not data or not isinstance(data, list):
            logger.warning(f"No geocoding results for address: {address}")
            return None

        try:
            first = data[0]
            return Decimal(str(first["lat"])), Decimal(str(first["lon"]))
        except (KeyError, TypeError, InvalidOperation) as e:
            logger.warning(f"Error parsing geocoding result for '{address}': {e}")
            return None

    async def reverse_geocode(self, latitude: float, longitude: float) -> Optional[str]:
        params = {"lat": str(latitude), "lon": str(longitude), "format": "json"}
        data = await self._get_json("/reverse", params)
        if not isinstance(data, dict):
            return None
        return data.get("display_name")

    async def _get_json(self, path: str, params: dict):
        headers = {"User-Agent": self.user_agent}
        try:
            async with aiohttp.ClientSession(timeout=self.timeout, headers=headers) as session:
                async with session.get(f"{self.base_url}{path}", params=params) as resp:
                    if resp.status != 200:
                        error_text = await resp.text()
                        logger.error(f"Geocoding API error {resp.status}: {error_text}")
                        return None
                    return await resp.json(content_type=None)
        except Exception as e:
            logger.error(f"Geocoding request failed: {type(e).__name__}: {e}")
            return None
