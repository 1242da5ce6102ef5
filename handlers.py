"""Telegram command handlers, free-text dispatch and the user-facing flows."""

from typing import Callable, List, Optional, Tuple
from uuid import UUID

from telegram import ReplyKeyboardRemove, Update
from telegram.ext import ContextTypes

from config import TOP_SAVED_LIMIT, logger
from backend_client import get_backend
from cache import MovieRecord, get_genres, get_session
from keyboards import (
    BTN_BACK_TO_MENU, BTN_NEXT_PAGE, BTN_PREV_PAGE, BTN_SHOW_ALL_WATCHED,
    back_to_menu_keyboard, filtered_watched_keyboard, genre_keyboard, main_menu_keyboard,
    saved_movie_buttons, search_result_buttons, watched_filter_keyboard,
    watched_movie_buttons, watched_movie_full_buttons,
)
from messaging import edit_movie_message, send_movie, send_text
from pagination import show_search_page, turn_page
from states import InputState, get_states
from utils import format_movie_full, format_movie_short, format_rating, format_stats, parse_rating

RATING_PROMPT = "❗ Enter a number from 1 to 10, for example: <b>8,5</b>"
FILTER_PROMPT = "⚠️ Enter a number from 1 to 10"
FILTER_USAGE = "⚠️ Usage example: /filter 7"
NO_USER = "❗ Could not register you with the movie service. Please try again later."


async def ensure_user_id(context: ContextTypes.DEFAULT_TYPE, chat_id: int, refresh: bool = False) -> Optional[UUID]:
    """Return the backend identity for a chat, creating the backend user on first contact.

    On failure the user is told and None is returned; callers stop there.
    """
    session = get_session(context)
    user_id = session.get_user_id(chat_id)
    if user_id is not None and not refresh:
        return user_id

    logger.info(f"Provisioning backend user for chat {chat_id}")
    new_user_id = await get_backend(context).save_user(chat_id)
    if new_user_id is not None:
        session.set_user_id(chat_id, new_user_id)
        logger.info(f"Chat {chat_id} bound to user {new_user_id}")
        return new_user_id

    if user_id is None:
        await send_text(context.bot, chat_id, NO_USER)
    return user_id


async def send_back_to_menu(context: ContextTypes.DEFAULT_TYPE, chat_id: int, text: str = "⬇️ Back to menu"):
    await send_text(context.bot, chat_id, text, reply_markup=back_to_menu_keyboard())


async def render_movies(
    context: ContextTypes.DEFAULT_TYPE,
    chat_id: int,
    user_id: UUID,
    movies: List[Tuple[int, dict]],
    buttons: Callable,
    watched: bool = False,
):
    """Cache every movie for later button taps and send it as a short card."""
    session = get_session(context)
    for movie_id, payload in movies:
        movie = MovieRecord.from_payload(payload, watched=watched)
        session.set_movie(user_id, movie_id, movie)
        await send_movie(
            context.bot, chat_id, movie, format_movie_short(movie),
            reply_markup=buttons(user_id, movie_id),
        )


# Main menu


async def show_main_menu(context: ContextTypes.DEFAULT_TYPE, chat_id: int, returning: bool = False):
    greeting = "📍 You are in the main menu" if returning else "🎬 Hi! I help you find and keep track of movies."
    await ensure_user_id(context, chat_id, refresh=not returning)
    await send_text(context.bot, chat_id, greeting, reply_markup=ReplyKeyboardRemove())
    await send_text(context.bot, chat_id, "Choose an action below:", reply_markup=main_menu_keyboard())


async def return_to_menu(context: ContextTypes.DEFAULT_TYPE, chat_id: int):
    """Escape hatch from any input mode: drop chat state and show the menu."""
    get_states(context).clear(chat_id)
    get_session(context).reset_chat(chat_id)
    await show_main_menu(context, chat_id, returning=True)


# Flows


async def show_random(context: ContextTypes.DEFAULT_TYPE, chat_id: int):
    user_id = await ensure_user_id(context, chat_id)
    if user_id is None:
        return

    movies = await get_backend(context).random_movies()
    if not movies:
        await send_text(context.bot, chat_id, "⚠️ Could not get a movie")
        return

    pairs = [(MovieRecord(m).movie_id, m) for m in movies]
    await render_movies(context, chat_id, user_id, [p for p in pairs if p[0] is not None], search_result_buttons)
    await send_back_to_menu(context, chat_id, "⬇️ Pick an action or go back to the menu")


async def prompt_search(context: ContextTypes.DEFAULT_TYPE, chat_id: int):
    get_states(context).expect_search_query(chat_id)
    await ensure_user_id(context, chat_id)
    await send_text(
        context.bot, chat_id, "✏️ Enter a movie title to search for:",
        reply_markup=back_to_menu_keyboard(),
    )


async def show_results(context: ContextTypes.DEFAULT_TYPE, chat_id: int, user_id: UUID, results: Optional[List[dict]],
                       error_text: str, empty_text: str):
    """Cache a fresh result list at page 0 and render its first page.

    A failed or empty search drops the previous result set.
    """
    session = get_session(context)
    if results is None:
        session.clear_search_results(chat_id)
        await send_text(context.bot, chat_id, error_text, reply_markup=back_to_menu_keyboard())
        return
    if not results:
        session.clear_search_results(chat_id)
        await send_text(context.bot, chat_id, empty_text, reply_markup=back_to_menu_keyboard())
        return

    session.set_search_results(chat_id, results)
    await show_search_page(context, chat_id, user_id)


async def run_search(context: ContextTypes.DEFAULT_TYPE, chat_id: int, query: str):
    user_id = await ensure_user_id(context, chat_id)
    if user_id is None:
        return

    logger.info(f"[{chat_id}] searching for '{query}'")
    results = await get_backend(context).search(user_id, query)
    await show_results(
        context, chat_id, user_id, results,
        "⚠️ Search failed. Please try again later.",
        "🤷 Nothing found for your query. Try again.",
    )


async def show_genres(context: ContextTypes.DEFAULT_TYPE, chat_id: int):
    if await ensure_user_id(context, chat_id) is None:
        return

    genres = get_genres(context)
    if not genres.is_loaded:
        data = await get_backend(context).genres()
        if data is None:
            await send_text(context.bot, chat_id, "❌ Could not load the list of genres")
            return
        genres.load(data)

    await send_text(context.bot, chat_id, "🎭 Choose a genre:", reply_markup=genre_keyboard(genres.items()))
    await send_back_to_menu(context, chat_id, "⬇️ You can go back to the menu")


async def run_genre_search(context: ContextTypes.DEFAULT_TYPE, chat_id: int, genre_id: int):
    user_id = await ensure_user_id(context, chat_id)
    if user_id is None:
        return

    results = await get_backend(context).search_by_genre(user_id, genre_id)
    await show_results(
        context, chat_id, user_id, results,
        "⚠️ Could not get movies for this genre",
        "😕 No movies in this genre",
    )


async def show_saved(context: ContextTypes.DEFAULT_TYPE, chat_id: int):
    user_id = await ensure_user_id(context, chat_id)
    if user_id is None:
        return

    movies = await get_backend(context).unwatched_movies(user_id)
    if movies is None:
        await send_text(context.bot, chat_id, "⚠️ Could not load your saved movies")
        return
    if not movies:
        await send_text(context.bot, chat_id, "😕 You have no saved movies", reply_markup=back_to_menu_keyboard())
        return

    await render_movies(context, chat_id, user_id, movies, saved_movie_buttons)
    await send_back_to_menu(context, chat_id, "Here is your list of saved movies")


async def show_top_saved(context: ContextTypes.DEFAULT_TYPE, chat_id: int):
    """Best rated saved movies, highest ``vote_average`` first."""
    user_id = await ensure_user_id(context, chat_id)
    if user_id is None:
        return

    movies = await get_backend(context).unwatched_movies(user_id)
    if movies is None:
        await send_text(context.bot, chat_id, "⚠️ Could not load your saved movies")
        return

    top = sorted(movies, key=lambda item: MovieRecord(item[1]).vote_average, reverse=True)[:TOP_SAVED_LIMIT]
    if not top:
        await send_text(context.bot, chat_id, "😕 You have no saved movies to rank", reply_markup=back_to_menu_keyboard())
        return

    await render_movies(context, chat_id, user_id, top, saved_movie_buttons)
    await send_back_to_menu(context, chat_id)


async def show_watched(context: ContextTypes.DEFAULT_TYPE, chat_id: int):
    user_id = await ensure_user_id(context, chat_id)
    if user_id is None:
        return

    movies = await get_backend(context).watched_movies(user_id)
    if movies is None:
        await send_text(context.bot, chat_id, "❌ Could not load your watched movies")
        return
    if not movies:
        await send_text(context.bot, chat_id, "😕 You have no watched movies", reply_markup=back_to_menu_keyboard())
        return

    await render_movies(context, chat_id, user_id, movies, watched_movie_buttons, watched=True)
    await send_text(context.bot, chat_id, "⬇️ I can filter this list", reply_markup=watched_filter_keyboard())
    await send_back_to_menu(context, chat_id)


async def show_filtered_watched(context: ContextTypes.DEFAULT_TYPE, chat_id: int, min_rating: float,
                                interactive: bool = False):
    """Watched movies rated at least ``min_rating``; the backend does the filtering."""
    user_id = await ensure_user_id(context, chat_id)
    if user_id is None:
        return

    movies = await get_backend(context).watched_movies_filtered(user_id, min_rating)
    if movies is None:
        await send_text(context.bot, chat_id, "❌ Could not load your movies")
        return
    if not movies:
        await send_text(
            context.bot, chat_id,
            f"😕 You have no movies rated {format_rating(min_rating)} or higher",
            reply_markup=back_to_menu_keyboard(),
        )
        return

    await render_movies(context, chat_id, user_id, movies, watched_movie_buttons, watched=True)
    if interactive:
        await send_text(context.bot, chat_id, "⬅️ Back to the full list", reply_markup=filtered_watched_keyboard())
    else:
        await send_back_to_menu(context, chat_id)


async def prompt_filter(context: ContextTypes.DEFAULT_TYPE, chat_id: int):
    get_states(context).expect_filter_threshold(chat_id)
    await send_text(
        context.bot, chat_id, "✏️ Enter the minimum rating (from 1 to 10):",
        reply_markup=back_to_menu_keyboard(),
    )


async def show_stats(context: ContextTypes.DEFAULT_TYPE, chat_id: int):
    user_id = await ensure_user_id(context, chat_id)
    if user_id is None:
        return

    stats = await get_backend(context).stats(user_id)
    if stats is None:
        await send_text(context.bot, chat_id, "❌ Could not load your stats")
        return

    await send_text(context.bot, chat_id, format_stats(*stats), reply_markup=back_to_menu_keyboard(), html=True)


async def prompt_rating(context: ContextTypes.DEFAULT_TYPE, chat_id: int, user_id: UUID, movie_id: int,
                        message_id: Optional[int]):
    session = get_session(context)
    get_states(context).expect_rating(chat_id)
    session.set_pending_rating(chat_id, user_id, movie_id)
    if message_id is not None:
        session.set_last_message_id(chat_id, message_id)
    await send_text(
        context.bot, chat_id, "📝 Enter your rating for this movie from 1 to 10:",
        reply_markup=back_to_menu_keyboard(),
    )


async def submit_rating(context: ContextTypes.DEFAULT_TYPE, chat_id: int, text: str):
    """Handle the text typed while a rating is expected.

    Invalid input and backend failures keep the chat waiting for a rating.
    """
    session = get_session(context)
    states = get_states(context)

    pending = session.peek_pending_rating(chat_id)
    if pending is None:
        states.clear(chat_id)
        await send_text(context.bot, chat_id, "❌ No movie selected for rating", reply_markup=back_to_menu_keyboard())
        return

    rating = parse_rating(text)
    if rating is None:
        await send_text(context.bot, chat_id, RATING_PROMPT, reply_markup=back_to_menu_keyboard(), html=True)
        return

    if not await get_backend(context).set_rating(pending.user_id, pending.movie_id, rating):
        await send_text(context.bot, chat_id, "❌ Could not save your rating")
        return

    logger.info(f"[{chat_id}] rated movie {pending.movie_id} with {rating}")
    session.pop_pending_rating(chat_id)
    states.clear(chat_id)
    await send_text(context.bot, chat_id, f"✅ Your rating {format_rating(rating)}/10 has been saved!")

    session.update_user_rating(pending.user_id, pending.movie_id, rating)
    message_id = session.get_last_message_id(chat_id)
    movie = session.get_movie(pending.user_id, pending.movie_id)
    session.clear_last_message_id(chat_id)
    if message_id is not None and movie is not None:
        await edit_movie_message(
            context.bot, chat_id, message_id,
            format_movie_full(movie, get_genres(context)),
            reply_markup=watched_movie_full_buttons(pending.user_id, pending.movie_id),
        )
        await send_back_to_menu(context, chat_id)


async def submit_filter_threshold(context: ContextTypes.DEFAULT_TYPE, chat_id: int, text: str):
    min_rating = parse_rating(text)
    if min_rating is None:
        await send_text(context.bot, chat_id, FILTER_PROMPT, reply_markup=back_to_menu_keyboard())
        return

    get_states(context).clear(chat_id)
    await show_filtered_watched(context, chat_id, min_rating, interactive=True)


# Telegram entry points


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command."""
    chat_id = update.effective_chat.id
    logger.info(f"[{chat_id}] used /start command")
    await show_main_menu(context, chat_id)


async def random_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    chat_id = update.effective_chat.id
    logger.info(f"[{chat_id}] used /random command")
    await show_random(context, chat_id)


async def search_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    chat_id = update.effective_chat.id
    logger.info(f"[{chat_id}] used /search command")
    await prompt_search(context, chat_id)


async def top_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    chat_id = update.effective_chat.id
    logger.info(f"[{chat_id}] used /top command")
    await show_top_saved(context, chat_id)


async def stats_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    chat_id = update.effective_chat.id
    logger.info(f"[{chat_id}] used /stats command")
    await show_stats(context, chat_id)


async def filter_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /filter N; anything but a single rating in [1, 10] gets the usage hint."""
    chat_id = update.effective_chat.id
    args = context.args or []
    min_rating = parse_rating(args[0]) if len(args) == 1 else None
    if min_rating is None:
        await send_text(context.bot, chat_id, FILTER_USAGE)
        return

    logger.info(f"[{chat_id}] used /filter {min_rating}")
    await show_filtered_watched(context, chat_id, min_rating)


async def handle_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Route free text: reply-keyboard buttons first, then the chat's input mode."""
    chat_id = update.effective_chat.id
    if update.message is None:
        logger.debug(f"[{chat_id}] ignoring update without a new message")
        return
    text = (update.message.text or "").strip()
    states = get_states(context)

    if text == BTN_BACK_TO_MENU:
        await return_to_menu(context, chat_id)
        return

    if text in (BTN_PREV_PAGE, BTN_NEXT_PAGE):
        await turn_page(context, chat_id, -1 if text == BTN_PREV_PAGE else 1)
        return

    if text == BTN_SHOW_ALL_WATCHED:
        await show_watched(context, chat_id)
        return

    state = states.current(chat_id)
    if states.consume(chat_id, InputState.AWAITING_SEARCH_QUERY):
        await run_search(context, chat_id, text)
    elif state is InputState.AWAITING_RATING:
        await submit_rating(context, chat_id, text)
    elif state is InputState.AWAITING_FILTER_THRESHOLD:
        await submit_filter_threshold(context, chat_id, text)
    else:
        logger.debug(f"[{chat_id}] ignoring free text outside of any input mode")
