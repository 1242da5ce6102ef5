"""Shared fixtures: a fake Telegram context wired with real caches and a mocked backend."""
import os

os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456:TEST-TOKEN")
os.environ.setdefault("ADMIN_CHAT_ID", "1")
os.environ.setdefault("BACKEND_API_URL", "http://backend.test")

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID

import pytest

from backend_client import BackendClient
from cache import GenreIndex, SessionCache
from states import ConversationStates

USER_ID = UUID("3fa85f64-5717-4562-b3fc-2c963f66afa6")
CHAT_ID = 1001


def make_movie(movie_id, title=None, vote_average=7.0, **extra):
    movie = {
        "id": movie_id,
        "title": title or f"Movie {movie_id}",
        "release_date": "1999-03-31",
        "vote_average": vote_average,
        "overview": f"Overview of movie {movie_id}",
        "genre_ids": [28, 878],
    }
    movie.update(extra)
    return movie


def sent_texts(bot):
    """Texts of every send_message call, in order."""
    return [c.kwargs.get("text") for c in bot.send_message.call_args_list]


@pytest.fixture
def backend():
    backend = MagicMock(spec=BackendClient)
    backend.save_user.return_value = USER_ID
    return backend


@pytest.fixture
def session():
    return SessionCache(page_size=3)


@pytest.fixture
def states():
    return ConversationStates()


@pytest.fixture
def genres():
    index = GenreIndex()
    index.load([{"id": 28, "name": "Action"}, {"id": 878, "name": "Science Fiction"}])
    return index


@pytest.fixture
def bot():
    return AsyncMock()


@pytest.fixture
def context(bot, backend, session, states, genres):
    return SimpleNamespace(
        bot=bot,
        args=[],
        bot_data={
            "backend": backend,
            "session": session,
            "states": states,
            "genres": genres,
        },
    )
