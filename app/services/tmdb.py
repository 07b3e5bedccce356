"""
TMDB client: title search, details with credits and watch providers,
and the discovery endpoints used for weekly releases.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from app.config import Settings
from app.core.exceptions import ProviderError
from app.core.fusion import title_key as normalize_title
from app.services.http import ProviderClient

logger = logging.getLogger(__name__)


class TMDBClient(ProviderClient):
    """Wrapper for TMDB v3 API interactions."""

    name = "TMDB"

    def __init__(self, http: httpx.AsyncClient, settings: Settings):
        super().__init__(http, settings.TMDB_API_KEY)
        self.base_url = settings.TMDB_BASE_URL.rstrip("/")
        self.region = settings.TMDB_REGION
        self.language = settings.TMDB_LANGUAGE
        self._genres: Dict[str, Dict[int, str]] = {}

    async def get(self, path: str, params: Optional[dict] = None) -> Any:
        query = {"api_key": self.api_key, "language": self.language}
        query.update(params or {})
        return await self._get(f"{self.base_url}/{path.lstrip('/')}", params=query)

    async def search(self, title: str, media_type: str = "movie", year: Optional[int] = None) -> List[dict]:
        """Search titles; returns the raw result list (possibly empty)."""
        params: Dict[str, Any] = {"query": title, "region": self.region, "include_adult": "false"}
        if year:
            params["year" if media_type == "movie" else "first_air_date_year"] = year
        response = await self.get(f"search/{media_type}", params=params)
        return response.get("results") or []

    async def details(self, tmdb_id: int, media_type: str = "movie") -> Dict[str, Any]:
        return await self.get(
            f"{media_type}/{tmdb_id}",
            params={"append_to_response": "credits,watch/providers"},
        )

    async def now_playing(self, media_type: str = "movie") -> List[dict]:
        path = "movie/now_playing" if media_type == "movie" else "tv/on_the_air"
        response = await self.get(path, params={"region": self.region})
        return response.get("results") or []

    async def trending(self, media_type: str = "movie", window: str = "week") -> List[dict]:
        response = await self.get(f"trending/{media_type}/{window}", params={"region": self.region})
        return response.get("results") or []

    async def genre_names(self, media_type: str = "movie") -> Dict[int, str]:
        """Genre id -> name, fetched once per media type and kept on the client."""
        if media_type not in self._genres:
            response = await self.get(f"genre/{media_type}/list")
            self._genres[media_type] = {
                genre["id"]: genre["name"] for genre in response.get("genres") or [] if "id" in genre
            }
        return self._genres[media_type]

    @staticmethod
    def best_match(results: List[dict], title: str) -> Optional[dict]:
        """Prefer an exact (normalized) title match, else TMDB's top hit."""
        if not results:
            return None
        wanted = normalize_title(title)
        for result in results[:10]:
            names = (result.get("title"), result.get("name"), result.get("original_title"), result.get("original_name"))
            if any(name and normalize_title(name) == wanted for name in names):
                return result
        return results[0]

    def _platform(self, details: Dict[str, Any]) -> Optional[str]:
        providers = (details.get("watch/providers") or {}).get("results") or {}
        regional = providers.get(self.region) or {}
        offers = regional.get("flatrate") or regional.get("free") or regional.get("ads") or []
        names = [offer.get("provider_name") for offer in offers if offer.get("provider_name")]
        return ", ".join(names) or None

    def to_record(
        self,
        result: Dict[str, Any],
        media_type: str = "movie",
        details: Optional[Dict[str, Any]] = None,
        genre_names: Optional[Dict[int, str]] = None,
    ) -> Dict[str, Any]:
        """Map a TMDB search/details payload onto NormalizedItem field names."""
        merged = {**result, **(details or {})}
        genres = [genre.get("name") for genre in merged.get("genres") or [] if genre.get("name")]
        if not genres and genre_names:
            genres = [genre_names[gid] for gid in merged.get("genre_ids") or [] if gid in genre_names]

        credits = merged.get("credits") or {}
        cast = [member.get("name") for member in (credits.get("cast") or [])[:5] if member.get("name")]
        directors = [
            member.get("name")
            for member in credits.get("crew") or []
            if member.get("job") == "Director" and member.get("name")
        ]
        if not directors and media_type == "tv":
            directors = [creator.get("name") for creator in merged.get("created_by") or [] if creator.get("name")]

        vote_count = merged.get("vote_count")
        rating = merged.get("vote_average") if vote_count or vote_count is None else None
        return {
            "title": merged.get("title") or merged.get("name"),
            "description": merged.get("overview") or None,
            "release_date": merged.get("release_date") or merged.get("first_air_date") or None,
            "genre": ", ".join(genres) or None,
            "cast": cast or None,
            "director": ", ".join(directors) or None,
            "platform": self._platform(merged) if details else None,
            "rating": rating or None,
            "type": media_type,
        }

    async def find_title(
        self, title: str, media_type: str = "movie", year: Optional[int] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Resolve a title to a full record (search, best match, details).

        Returns:
            Record dict, or None when the search has no results
        """
        results = await self.search(title, media_type, year)
        match = self.best_match(results, title)
        if match is None:
            logger.info(f"TMDB has no {media_type} results for '{title}'")
            return None
        try:
            details = await self.details(match["id"], media_type)
        except (httpx.HTTPError, ProviderError) as exc:
            logger.warning(f"TMDB details failed for id {match.get('id')}: {exc}")
            details = None
        return self.to_record(match, media_type, details)

    async def rating_for(self, title: str, media_type: str = "movie", year: Optional[int] = None) -> Dict[str, Any]:
        """Lightweight search-only record used for list enrichment."""
        results = await self.search(title, media_type, year)
        match = self.best_match(results, title)
        if match is None:
            return {}
        try:
            genre_names = await self.genre_names(media_type)
        except (httpx.HTTPError, ProviderError):
            genre_names = {}
        return self.to_record(match, media_type, genre_names=genre_names)


__all__ = ["TMDBClient"]
