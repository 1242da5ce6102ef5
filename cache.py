"""In-memory per-chat session cache: identities, movies, search results and genres.

Nothing here is persisted. A restart drops every session and users have to
send /start again. Movie records are only evicted when ``max_movies`` is set.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from config import logger


@dataclass(frozen=True)
class MovieRecord:
    """Snapshot of a backend movie payload.

    Handlers never mutate ``data``; use :meth:`with_user_rating` to derive an
    updated record.
    """

    data: dict = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict, watched: bool = False) -> "MovieRecord":
        data = dict(payload)
        if watched:
            data["watched"] = True
        return cls(data)

    @property
    def movie_id(self) -> Optional[int]:
        try:
            return int(self.data["id"])
        except (KeyError, TypeError, ValueError):
            return None

    @property
    def title(self) -> str:
        return self.data.get("title") or self.data.get("original_title") or "Unknown"

    @property
    def vote_average(self) -> float:
        try:
            return float(self.data.get("vote_average") or 0)
        except (TypeError, ValueError):
            return 0.0

    @property
    def user_rating(self) -> Optional[float]:
        value = self.data.get("user_rating")
        try:
            return float(value) if value is not None else None
        except (TypeError, ValueError):
            return None

    @property
    def poster_path(self) -> Optional[str]:
        return self.data.get("poster_path") or None

    @property
    def watched(self) -> bool:
        return bool(self.data.get("watched"))

    def with_user_rating(self, rating: float) -> "MovieRecord":
        return replace(self, data={**self.data, "user_rating": rating})

    def to_json(self) -> dict:
        return dict(self.data)


@dataclass(frozen=True)
class SearchResultSet:
    """Result list of the last search with the page currently shown."""

    movies: Tuple[dict, ...]
    page: int = 0

    @property
    def count(self) -> int:
        return len(self.movies)


@dataclass(frozen=True)
class PendingRating:
    """Movie awaiting the rating the user is about to type."""

    user_id: UUID
    movie_id: int


class SessionCache:
    """Per-chat key-value stores shared by all handlers.

    Writes are last-write-wins; two rapid events from one chat may interleave.
    """

    def __init__(self, page_size: int = 3, max_movies: Optional[int] = None):
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self.page_size = page_size
        self._user_ids: Dict[int, UUID] = {}
        self._movies: Dict[Tuple[UUID, int], MovieRecord] = {}
        self._last_message_ids: Dict[int, int] = {}
        self._search_results: Dict[int, SearchResultSet] = {}
        self._pending_ratings: Dict[int, PendingRating] = {}
        self._max_movies = max_movies

    # User identity

    def get_user_id(self, chat_id: int) -> Optional[UUID]:
        return self._user_ids.get(chat_id)

    def set_user_id(self, chat_id: int, user_id: UUID):
        self._user_ids[chat_id] = user_id

    def chat_ids(self) -> List[int]:
        """Chats with a resolved backend identity."""
        return list(self._user_ids)

    # Movie records

    def get_movie(self, user_id: UUID, movie_id: int) -> Optional[MovieRecord]:
        return self._movies.get((user_id, movie_id))

    def set_movie(self, user_id: UUID, movie_id: int, record: MovieRecord):
        key = (user_id, movie_id)
        self._movies.pop(key, None)
        self._movies[key] = record
        if self._max_movies is not None and len(self._movies) > self._max_movies:
            oldest_key = next(iter(self._movies))
            del self._movies[oldest_key]
            logger.debug(f"Evicted cached movie {oldest_key[1]} for user {oldest_key[0]}")

    def update_user_rating(self, user_id: UUID, movie_id: int, rating: float) -> bool:
        """Replace the cached record with a copy carrying ``user_rating``.

        Returns False when the movie was never cached.
        """
        record = self._movies.get((user_id, movie_id))
        if record is None:
            return False
        self._movies[(user_id, movie_id)] = record.with_user_rating(rating)
        return True

    def clear_movies(self, user_id: UUID):
        for key in [k for k in self._movies if k[0] == user_id]:
            del self._movies[key]

    # Last rendered message

    def get_last_message_id(self, chat_id: int) -> Optional[int]:
        return self._last_message_ids.get(chat_id)

    def set_last_message_id(self, chat_id: int, message_id: int):
        self._last_message_ids[chat_id] = message_id

    def clear_last_message_id(self, chat_id: int):
        self._last_message_ids.pop(chat_id, None)

    # Search results

    def get_search_results(self, chat_id: int) -> Optional[SearchResultSet]:
        return self._search_results.get(chat_id)

    def set_search_results(self, chat_id: int, movies: Iterable[dict]) -> SearchResultSet:
        results = SearchResultSet(tuple(movies), 0)
        self._search_results[chat_id] = results
        return results

    def set_page(self, chat_id: int, page: int) -> Optional[SearchResultSet]:
        """Move to ``page``, kept inside the valid range of the cached list."""
        results = self._search_results.get(chat_id)
        if results is None:
            return None
        last_page = max(results.count - 1, 0) // self.page_size
        results = replace(results, page=min(max(page, 0), last_page))
        self._search_results[chat_id] = results
        return results

    def clear_search_results(self, chat_id: int):
        self._search_results.pop(chat_id, None)

    # Pending rating

    def set_pending_rating(self, chat_id: int, user_id: UUID, movie_id: int):
        self._pending_ratings[chat_id] = PendingRating(user_id, movie_id)

    def peek_pending_rating(self, chat_id: int) -> Optional[PendingRating]:
        return self._pending_ratings.get(chat_id)

    def pop_pending_rating(self, chat_id: int) -> Optional[PendingRating]:
        return self._pending_ratings.pop(chat_id, None)

    def reset_chat(self, chat_id: int):
        """Drop everything cached for a chat except its identity."""
        self.clear_search_results(chat_id)
        self._pending_ratings.pop(chat_id, None)
        self.clear_last_message_id(chat_id)
        user_id = self._user_ids.get(chat_id)
        if user_id is not None:
            self.clear_movies(user_id)


class GenreIndex:
    """Genre id to display name, loaded once at startup."""

    def __init__(self):
        self._genres: Dict[int, str] = {}

    def load(self, genres: Iterable[dict]) -> int:
        loaded = {}
        for genre in genres:
            try:
                loaded[int(genre["id"])] = genre.get("name") or "Unknown"
            except (KeyError, TypeError, ValueError):
                continue
        self._genres = loaded
        return len(loaded)

    def name(self, genre_id: int) -> Optional[str]:
        return self._genres.get(genre_id)

    def items(self) -> List[Tuple[int, str]]:
        return list(self._genres.items())

    @property
    def is_loaded(self) -> bool:
        return bool(self._genres)


def get_session(context) -> SessionCache:
    return context.bot_data["session"]


def get_genres(context) -> GenreIndex:
    return context.bot_data["genres"]
