"""HTTP client for the movie backend (users, searches, saved and watched lists)."""

import json
from typing import Any, List, Optional, Tuple
from uuid import UUID

import httpx

from config import logger


class BackendClient:
    """Thin JSON-over-HTTP wrapper around the movie backend.

    Every call is a single request with no retry. Failures (non-2xx, network
    errors, undecodable bodies) are logged and reported as ``None`` for reads
    and ``False`` for writes.
    """

    def __init__(self, base_url: str, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, transport=self._transport)

    async def _request(self, method: str, path: str, **kwargs) -> Optional[httpx.Response]:
        try:
            async with self._client() as client:
                response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"Backend {method} {path} failed: {e}")
            return None

        if not response.is_success:
            logger.warning(f"Backend {method} {path} returned HTTP {response.status_code}")
            return None
        return response

    async def _get_json(self, path: str, params: Optional[dict] = None) -> Optional[Any]:
        response = await self._request("GET", path, params=params)
        if response is None:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.warning(f"Backend GET {path} returned invalid JSON: {e}")
            return None

    async def _get_list(self, path: str, params: Optional[dict] = None) -> Optional[List[dict]]:
        data = await self._get_json(path, params)
        if data is None:
            return None
        if not isinstance(data, list):
            logger.warning(f"Backend GET {path} returned {type(data).__name__}, expected a list")
            return None
        return [item for item in data if isinstance(item, dict)]

    async def _get_envelopes(self, path: str, params: Optional[dict] = None) -> Optional[List[Tuple[int, dict]]]:
        items = await self._get_list(path, params)
        if items is None:
            return None
        return unwrap_envelopes(items)

    async def save_user(self, chat_id: int) -> Optional[UUID]:
        """Create (or fetch) the backend user bound to ``chat_id``."""
        response = await self._request("POST", "/user/save", json={"chatId": chat_id})
        if response is None:
            return None
        try:
            return UUID(str(response.json()["id"]))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Backend returned no usable user id for chat {chat_id}: {e}")
            return None

    async def random_movies(self) -> Optional[List[dict]]:
        data = await self._get_json("/movie/random")
        if isinstance(data, dict):
            return [data]
        if isinstance(data, list):
            return [item for item in data if isinstance(item, dict)]
        return None

    async def search(self, user_id: UUID, query: str) -> Optional[List[dict]]:
        return await self._get_list(f"/search/{user_id}", params={"query": query})

    async def search_by_genre(self, user_id: UUID, genre_id: int) -> Optional[List[dict]]:
        return await self._get_list(f"/search-by-genre/{user_id}", params={"genre": genre_id})

    async def unwatched_movies(self, user_id: UUID) -> Optional[List[Tuple[int, dict]]]:
        return await self._get_envelopes(f"/movie/unwatched/{user_id}")

    async def watched_movies(self, user_id: UUID) -> Optional[List[Tuple[int, dict]]]:
        return await self._get_envelopes(f"/movie/watched/{user_id}")

    async def watched_movies_filtered(self, user_id: UUID, min_rating: float) -> Optional[List[Tuple[int, dict]]]:
        return await self._get_envelopes(
            f"/movie/watched/{user_id}/filter", params={"minRating": min_rating}
        )

    async def stats(self, user_id: UUID) -> Optional[Tuple[int, int]]:
        data = await self._get_json(f"/movie/stats/{user_id}")
        if data is None:
            return None
        try:
            return int(data["watched"]), int(data["unwatched"])
        except (KeyError, TypeError, ValueError):
            logger.warning(f"Backend returned malformed stats for user {user_id}: {data!r}")
            return None

    async def genres(self) -> Optional[List[dict]]:
        return await self._get_list("/app/genres")

    async def save_movie(self, user_id: UUID, movie: dict) -> bool:
        return await self._request("POST", f"/movie/{user_id}/save", json=movie) is not None

    async def add_watched(self, user_id: UUID, movie: dict) -> bool:
        return await self._request("POST", f"/movie/{user_id}/add-watched", json=movie) is not None

    async def set_rating(self, user_id: UUID, movie_id: int, rating: float) -> bool:
        response = await self._request(
            "PUT", f"/movie/{user_id}/{movie_id}/set-rating", json={"rating": rating}
        )
        return response is not None

    async def delete_movie(self, user_id: UUID, movie_id: int) -> bool:
        return await self._request("DELETE", f"/movie/{user_id}/{movie_id}") is not None


def unwrap_envelopes(items: List[dict]) -> List[Tuple[int, dict]]:
    """Turn ``{tmdb_id, details: "<json>"}`` envelopes into ``(movie_id, details)`` pairs.

    Envelopes with missing or malformed details are skipped.
    """
    movies = []
    for item in items:
        raw_details = item.get("details")
        if not raw_details:
            continue
        try:
            movie_id = int(item["tmdb_id"])
            details = json.loads(raw_details) if isinstance(raw_details, str) else raw_details
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed movie envelope: {e}")
            continue
        if isinstance(details, dict):
            movies.append((movie_id, details))
    return movies


def get_backend(context) -> BackendClient:
    return context.bot_data["backend"]
