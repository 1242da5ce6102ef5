"""Inline-button callback routing.

Payloads are either bare action names (``back_to_menu``) or
``{action}:{user_id}:{movie_id}`` triples. Routes are tried in order and the
first match wins; unknown payloads are just acknowledged.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Tuple
from uuid import UUID

from telegram import Update
from telegram.error import TelegramError
from telegram.ext import ContextTypes

from config import logger
from backend_client import get_backend
from cache import get_genres, get_session
import keyboards as kb
from handlers import (
    prompt_filter, prompt_rating, prompt_search, return_to_menu, run_genre_search,
    show_genres, show_saved, show_watched,
)
from messaging import delete_message, edit_movie_message, send_text
from pagination import turn_page
from utils import format_movie_full, format_movie_short

NOT_IN_CACHE = "⚠️ Movie not found in cache, please open the list again"


def parse_callback_data(data: str, prefix: str) -> Optional[Tuple[UUID, int]]:
    """Parse ``{prefix}:{user_id}:{movie_id}``; None if the shape or types don't match."""
    if not data:
        return None
    parts = data.split(":")
    if len(parts) != 3 or parts[0] != prefix:
        return None
    try:
        return UUID(parts[1]), int(parts[2])
    except ValueError:
        return None


def parse_genre_data(data: str) -> Optional[int]:
    parts = (data or "").split(":")
    if len(parts) != 2 or parts[0] != kb.SEARCH_GENRE_PREFIX:
        return None
    try:
        return int(parts[1])
    except ValueError:
        return None


@dataclass
class CallbackEvent:
    """What a callback handler needs to know about the tapped button."""

    chat_id: int
    message_id: Optional[int]
    has_photo: bool
    args: tuple = ()


# A handler returns an optional text shown as the callback acknowledgement.
Handler = Callable[[ContextTypes.DEFAULT_TYPE, CallbackEvent], Awaitable[Optional[str]]]


@dataclass
class Route:
    name: str
    match: Callable[[str], Optional[tuple]]
    handler: Handler


def exact(action: str) -> Callable[[str], Optional[tuple]]:
    return lambda data: () if data == action else None


def movie_action(prefix: str) -> Callable[[str], Optional[tuple]]:
    return lambda data: parse_callback_data(data, prefix)


def genre_action(data: str) -> Optional[tuple]:
    genre_id = parse_genre_data(data)
    return None if genre_id is None else (genre_id,)


class CallbackRouter:
    def __init__(self, routes: Optional[List[Route]] = None):
        self.routes: List[Route] = list(routes or [])

    def add(self, name: str, match: Callable[[str], Optional[tuple]], handler: Handler):
        self.routes.append(Route(name, match, handler))

    def resolve(self, data: str) -> Optional[Tuple[Route, tuple]]:
        for route in self.routes:
            args = route.match(data)
            if args is not None:
                return route, args
        return None

    async def dispatch(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        query = update.callback_query
        notice = None
        try:
            if query.message is None:
                notice = "❌ Something went wrong"
                return
            resolved = self.resolve(query.data)
            if resolved is None:
                logger.debug(f"No route for callback data {query.data!r}")
                return
            route, args = resolved
            event = CallbackEvent(
                chat_id=query.message.chat_id,
                message_id=query.message.message_id,
                has_photo=bool(getattr(query.message, "photo", None)),
                args=args,
            )
            logger.info(f"[{event.chat_id}] used {route.name}")
            notice = await route.handler(context, event)
        finally:
            # The button keeps its spinner until the query is answered, even if the handler raised
            try:
                await query.answer(notice)
            except TelegramError as e:
                logger.warning(f"Failed to answer callback query: {e}")


# Menu actions


async def on_search_by_title(context, event: CallbackEvent):
    await prompt_search(context, event.chat_id)


async def on_search_by_genre(context, event: CallbackEvent):
    await show_genres(context, event.chat_id)


async def on_saved_movies(context, event: CallbackEvent):
    await show_saved(context, event.chat_id)


async def on_watched_movies(context, event: CallbackEvent):
    await show_watched(context, event.chat_id)


async def on_watched_filter(context, event: CallbackEvent):
    await prompt_filter(context, event.chat_id)


async def on_back_to_menu(context, event: CallbackEvent):
    await return_to_menu(context, event.chat_id)


async def on_search_prev(context, event: CallbackEvent):
    await turn_page(context, event.chat_id, -1)


async def on_search_next(context, event: CallbackEvent):
    await turn_page(context, event.chat_id, 1)


async def on_search_genre(context, event: CallbackEvent):
    (genre_id,) = event.args
    await run_genre_search(context, event.chat_id, genre_id)


# Movie actions


def expand(full_buttons: Callable) -> Handler:
    """Show the full card with the given button set."""
    async def handler(context, event: CallbackEvent):
        user_id, movie_id = event.args
        movie = get_session(context).get_movie(user_id, movie_id)
        if movie is None:
            await send_text(context.bot, event.chat_id, NOT_IN_CACHE)
            return None
        await edit_movie_message(
            context.bot, event.chat_id, event.message_id,
            format_movie_full(movie, get_genres(context)),
            reply_markup=full_buttons(user_id, movie_id),
            has_photo=event.has_photo,
        )
        return None
    return handler


def collapse(short_buttons: Callable) -> Handler:
    """Return to the short card with the given button set."""
    async def handler(context, event: CallbackEvent):
        user_id, movie_id = event.args
        movie = get_session(context).get_movie(user_id, movie_id)
        if movie is None:
            await send_text(context.bot, event.chat_id, NOT_IN_CACHE)
            return None
        await edit_movie_message(
            context.bot, event.chat_id, event.message_id,
            format_movie_short(movie),
            reply_markup=short_buttons(user_id, movie_id),
            has_photo=event.has_photo,
        )
        return None
    return handler


async def on_movie_details(context, event: CallbackEvent):
    """Full card for a fresh result; watched movies get the watched button set."""
    user_id, movie_id = event.args
    movie = get_session(context).get_movie(user_id, movie_id)
    if movie is None:
        await send_text(context.bot, event.chat_id, NOT_IN_CACHE)
        return None
    buttons = kb.watched_movie_full_buttons if movie.watched else kb.search_result_full_buttons
    await edit_movie_message(
        context.bot, event.chat_id, event.message_id,
        format_movie_full(movie, get_genres(context)),
        reply_markup=buttons(user_id, movie_id),
        has_photo=event.has_photo,
    )
    return None


async def on_set_watched(context, event: CallbackEvent):
    user_id, movie_id = event.args
    movie = get_session(context).get_movie(user_id, movie_id)
    if movie is None:
        await send_text(context.bot, event.chat_id, NOT_IN_CACHE)
        return None

    ok = await get_backend(context).add_watched(user_id, movie.to_json())
    await send_text(
        context.bot, event.chat_id,
        "✅ Movie marked as watched" if ok else "❌ Could not mark the movie as watched",
    )
    return None


async def on_saved_set_watched(context, event: CallbackEvent):
    """Move a saved movie to the watched list and drop its card."""
    user_id, movie_id = event.args
    movie = get_session(context).get_movie(user_id, movie_id)
    if movie is None:
        return NOT_IN_CACHE

    if not await get_backend(context).add_watched(user_id, movie.to_json()):
        return "❌ Could not mark the movie as watched"

    await delete_message(context.bot, event.chat_id, event.message_id)
    await send_text(context.bot, event.chat_id, "✅ Movie moved to your watched list")
    return None


async def on_movie_save(context, event: CallbackEvent):
    user_id, movie_id = event.args
    movie = get_session(context).get_movie(user_id, movie_id)
    if movie is None:
        await send_text(context.bot, event.chat_id, NOT_IN_CACHE)
        return None

    ok = await get_backend(context).save_movie(user_id, movie.to_json())
    await send_text(context.bot, event.chat_id, "✅ Saved to your list" if ok else "❌ Could not save the movie")
    return None


async def on_movie_delete(context, event: CallbackEvent):
    user_id, movie_id = event.args
    if not await get_backend(context).delete_movie(user_id, movie_id):
        return "❌ Could not delete the movie"

    await delete_message(context.bot, event.chat_id, event.message_id)
    await send_text(context.bot, event.chat_id, "✅ Movie removed from the list")
    return None


async def on_movie_rate(context, event: CallbackEvent):
    user_id, movie_id = event.args
    await prompt_rating(context, event.chat_id, user_id, movie_id, event.message_id)
    return None


def build_router() -> CallbackRouter:
    """All inline actions in priority order.

    Bare actions are compared for equality and movie actions need an exact
    prefix followed by a UUID and an integer, so no payload matches two routes.
    """
    router = CallbackRouter()
    router.add(kb.SEARCH_BY_TITLE, exact(kb.SEARCH_BY_TITLE), on_search_by_title)
    router.add(kb.SAVED_MOVIES, exact(kb.SAVED_MOVIES), on_saved_movies)
    router.add(kb.SEARCH_BY_GENRE, exact(kb.SEARCH_BY_GENRE), on_search_by_genre)
    router.add(kb.WATCHED_FILTER, exact(kb.WATCHED_FILTER), on_watched_filter)
    router.add(kb.WATCHED_MOVIES, exact(kb.WATCHED_MOVIES), on_watched_movies)
    router.add(kb.SEARCH_PREV, exact(kb.SEARCH_PREV), on_search_prev)
    router.add(kb.SEARCH_NEXT, exact(kb.SEARCH_NEXT), on_search_next)
    router.add(kb.BACK_TO_MENU, exact(kb.BACK_TO_MENU), on_back_to_menu)
    router.add(kb.SEARCH_GENRE_PREFIX, genre_action, on_search_genre)
    router.add(kb.MOVIE_DETAILS, movie_action(kb.MOVIE_DETAILS), on_movie_details)
    router.add(kb.MOVIE_SET_WATCHED, movie_action(kb.MOVIE_SET_WATCHED), on_saved_set_watched)
    router.add(kb.MOVIE_DELETE, movie_action(kb.MOVIE_DELETE), on_movie_delete)
    router.add(kb.MOVIE_RATE, movie_action(kb.MOVIE_RATE), on_movie_rate)
    router.add(kb.MOVIE_SAVE, movie_action(kb.MOVIE_SAVE), on_movie_save)
    router.add(kb.MOVIE_COLLAPSE, movie_action(kb.MOVIE_COLLAPSE), collapse(kb.search_result_buttons))
    router.add(kb.SET_WATCHED, movie_action(kb.SET_WATCHED), on_set_watched)
    router.add(kb.SAVED_DETAILS, movie_action(kb.SAVED_DETAILS), expand(kb.saved_movie_full_buttons))
    router.add(kb.SAVED_COLLAPSE, movie_action(kb.SAVED_COLLAPSE), collapse(kb.saved_movie_buttons))
    router.add(kb.WATCHED_DETAILS, movie_action(kb.WATCHED_DETAILS), expand(kb.watched_movie_full_buttons))
    router.add(kb.WATCHED_COLLAPSE, movie_action(kb.WATCHED_COLLAPSE), collapse(kb.watched_movie_buttons))
    return router


router = build_router()


async def handle_button_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle every inline-button tap."""
    await router.dispatch(update, context)
