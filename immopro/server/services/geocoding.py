"""
Address geocoding through the Nominatim search API.
"""

from __future__ import annotations

from typing import Optional, Tuple

import httpx

from immopro.core.logging_config import get_logger
from immopro.server.core.config import settings

logger = get_logger(__name__)

Coordinates = Tuple[float, float]


async def geocode_address(
    address: str,
    city: Optional[str] = None,
    postal_code: Optional[str] = None,
) -> Optional[Coordinates]:
    """
    Resolve an address to ``(latitude, longitude)``.

    Returns:
        The coordinates of the best match, or ``None`` when geocoding is
        disabled, nothing matched or the service could not be reached
    """
    config = settings.geocoding
    if not config.enabled:
        return None

    query = ", ".join(part for part in (address, postal_code, city) if part)
    params = {"q": query, "format": "json", "limit": 1}
    headers = {"User-Agent": config.user_agent}

    try:
        async with httpx.AsyncClient(timeout=config.timeout) as client:
            response = await client.get(config.url, params=params, headers=headers)
            response.raise_for_status()
            results = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Geocoding failed for '{query}': {e}")
        return None

    if not results:
        logger.info(f"No geocoding result for '{query}'")
        return None

    try:
        return float(results[0]["lat"]), float(results[0]["lon"])
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Unexpected geocoding result for '{query}': {e}")
        return None
