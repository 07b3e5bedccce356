import logging
from typing import Any, Dict, Optional

import httpx

from app.config import Settings
from app.services.http import ProviderClient

logger = logging.getLogger(__name__)


def _value(payload: Dict[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if not value or value == "N/A":
        return None
    return value


class OMDBClient(ProviderClient):
    """
    OMDB lookups by title (and optional year), used as the ratings provider.
    """

    name = "OMDB"

    def __init__(self, http: httpx.AsyncClient, settings: Settings):
        super().__init__(http, settings.OMDB_API_KEY)
        self.base_url = settings.OMDB_BASE_URL

    async def lookup(self, title: str, year: Optional[int] = None, media_type: str = "movie") -> Dict[str, Any]:
        """
        Fetch a title record from OMDB.

        Args:
            title: Title to look up
            year: Optional release year to disambiguate
            media_type: movie or tv

        Returns:
            Record dict mapped onto NormalizedItem field names; empty if not found
        """
        params: Dict[str, Any] = {
            "apikey": self.api_key,
            "t": title,
            "type": "series" if media_type == "tv" else "movie",
        }
        if year:
            params["y"] = year
        payload = await self._get(self.base_url, params=params)
        if str(payload.get("Response", "False")).lower() != "true":
            logger.info("OMDB has no match for '%s': %s", title, payload.get("Error"))
            return {}
        return self.to_record(payload, media_type)

    @staticmethod
    def to_record(payload: Dict[str, Any], media_type: str = "movie") -> Dict[str, Any]:
        return {
            "title": _value(payload, "Title"),
            "description": _value(payload, "Plot"),
            "release_date": _value(payload, "Released"),
            "genre": _value(payload, "Genre"),
            "cast": _value(payload, "Actors"),
            "director": _value(payload, "Director"),
            "rating": _value(payload, "imdbRating"),
            "type": media_type,
        }
