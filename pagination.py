"""Page-by-page rendering of cached search results."""

from typing import List, Tuple
from uuid import UUID

from config import logger
from cache import MovieRecord, SearchResultSet, get_session
from keyboards import page_navigation_keyboard, search_result_buttons
from messaging import send_movie, send_text
from utils import format_movie_short


def max_page(count: int, page_size: int) -> int:
    """Zero-based index of the last page."""
    return (count - 1) // page_size


def page_slice(results: SearchResultSet, page_size: int) -> List[dict]:
    start = results.page * page_size
    return list(results.movies[start:start + page_size])


def navigation(results: SearchResultSet, page_size: int) -> Tuple[bool, bool]:
    """Whether previous / next page buttons should be offered."""
    last = max_page(results.count, page_size)
    return results.page > 0, results.page < last


async def show_search_page(context, chat_id: int, user_id: UUID) -> bool:
    """Render the current page of cached results followed by the page navigation.

    Returns False when nothing is cached for the chat.
    """
    session = get_session(context)
    results = session.get_search_results(chat_id)
    if results is None or not results.movies:
        return False

    page_size = session.page_size
    for payload in page_slice(results, page_size):
        movie = MovieRecord.from_payload(payload)
        movie_id = movie.movie_id
        if movie_id is None:
            logger.warning(f"Skipping search result without id in chat {chat_id}")
            continue
        session.set_movie(user_id, movie_id, movie)
        await send_movie(
            context.bot, chat_id, movie, format_movie_short(movie),
            reply_markup=search_result_buttons(user_id, movie_id),
        )

    has_prev, has_next = navigation(results, page_size)
    await send_text(
        context.bot,
        chat_id,
        f"📄 Page {results.page + 1} of {max_page(results.count, page_size) + 1}",
        reply_markup=page_navigation_keyboard(has_prev, has_next),
    )
    return True


async def turn_page(context, chat_id: int, step: int) -> bool:
    """Move the cached results by ``step`` pages and render the new page."""
    session = get_session(context)
    user_id = session.get_user_id(chat_id)
    if user_id is None:
        return False
    current = session.get_search_results(chat_id)
    if current is None:
        return False
    session.set_page(chat_id, current.page + step)
    return await show_search_page(context, chat_id, user_id)
