"""Reply and inline keyboards shown by the bot."""

from typing import List, Tuple
from uuid import UUID

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, KeyboardButton, ReplyKeyboardMarkup

# Reply-keyboard texts; incoming messages are matched against these.
BTN_BACK_TO_MENU = "⬅️ Back to main menu"
BTN_PREV_PAGE = "⬅️ Previous page"
BTN_NEXT_PAGE = "➡️ Next page"
BTN_SHOW_ALL_WATCHED = "🔁 Show all watched"

# Bare callback actions
SEARCH_BY_TITLE = "search_by_title"
SEARCH_BY_GENRE = "search_by_genre"
WATCHED_MOVIES = "watched_movies"
SAVED_MOVIES = "saved_movies"
WATCHED_FILTER = "watched_filter"
BACK_TO_MENU = "back_to_menu"
SEARCH_PREV = "search_prev"
SEARCH_NEXT = "search_next"
SEARCH_GENRE_PREFIX = "search_genre"

# Movie actions, encoded as "{action}:{user_id}:{movie_id}"
MOVIE_DETAILS = "movie_details"
MOVIE_COLLAPSE = "movie_collapse"
SAVED_DETAILS = "mds"
SAVED_COLLAPSE = "mcs"
WATCHED_DETAILS = "mdw"
WATCHED_COLLAPSE = "mcw"
SET_WATCHED = "set_watched"
MOVIE_SET_WATCHED = "movie_set_watched"
MOVIE_SAVE = "movie_save"
MOVIE_DELETE = "movie_delete"
MOVIE_RATE = "movie_rate"


def movie_action(action: str, user_id: UUID, movie_id: int) -> str:
    return f"{action}:{user_id}:{movie_id}"


def _button(text: str, action: str, user_id: UUID, movie_id: int) -> InlineKeyboardButton:
    return InlineKeyboardButton(text, callback_data=movie_action(action, user_id, movie_id))


def main_menu_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [
            InlineKeyboardButton("🔍 Search by title", callback_data=SEARCH_BY_TITLE),
            InlineKeyboardButton("🎭 Search by genre", callback_data=SEARCH_BY_GENRE),
        ],
        [
            InlineKeyboardButton("✅ Watched movies", callback_data=WATCHED_MOVIES),
            InlineKeyboardButton("🕒 Saved movies", callback_data=SAVED_MOVIES),
        ],
    ])


def search_result_buttons(user_id: UUID, movie_id: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [_button("ℹ️ Details", MOVIE_DETAILS, user_id, movie_id)],
        [
            _button("🕒 Save for later", MOVIE_SAVE, user_id, movie_id),
            _button("✅ Watched", SET_WATCHED, user_id, movie_id),
        ],
    ])


def search_result_full_buttons(user_id: UUID, movie_id: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [
            _button("🔽 Collapse", MOVIE_COLLAPSE, user_id, movie_id),
            _button("🕒 Save for later", MOVIE_SAVE, user_id, movie_id),
            _button("✅ Watched", SET_WATCHED, user_id, movie_id),
        ]
    ])


def saved_movie_buttons(user_id: UUID, movie_id: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [_button("ℹ️ Details", SAVED_DETAILS, user_id, movie_id)],
        [
            _button("👁 Watched", MOVIE_SET_WATCHED, user_id, movie_id),
            _button("🗑 Delete", MOVIE_DELETE, user_id, movie_id),
        ],
    ])


def saved_movie_full_buttons(user_id: UUID, movie_id: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [_button("🔽 Collapse", SAVED_COLLAPSE, user_id, movie_id)],
        [
            _button("👁 Watched", MOVIE_SET_WATCHED, user_id, movie_id),
            _button("🗑 Delete", MOVIE_DELETE, user_id, movie_id),
        ],
    ])


def watched_movie_buttons(user_id: UUID, movie_id: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [_button("ℹ️ Details", WATCHED_DETAILS, user_id, movie_id)],
        [
            _button("⭐ Rate", MOVIE_RATE, user_id, movie_id),
            _button("🗑 Delete", MOVIE_DELETE, user_id, movie_id),
        ],
    ])


def watched_movie_full_buttons(user_id: UUID, movie_id: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [_button("🔽 Collapse", WATCHED_COLLAPSE, user_id, movie_id)],
        [
            _button("⭐ Rate", MOVIE_RATE, user_id, movie_id),
            _button("🗑 Delete", MOVIE_DELETE, user_id, movie_id),
        ],
    ])


def watched_filter_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [InlineKeyboardButton("🔍 Filter by rating", callback_data=WATCHED_FILTER)]
    ])


def genre_keyboard(genres: List[Tuple[int, str]], per_row: int = 2) -> InlineKeyboardMarkup:
    buttons = [
        InlineKeyboardButton(name, callback_data=f"{SEARCH_GENRE_PREFIX}:{genre_id}")
        for genre_id, name in genres
    ]
    return InlineKeyboardMarkup([buttons[i:i + per_row] for i in range(0, len(buttons), per_row)])


def back_to_menu_keyboard() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup([[KeyboardButton(BTN_BACK_TO_MENU)]], resize_keyboard=True)


def filtered_watched_keyboard() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        [[KeyboardButton(BTN_BACK_TO_MENU), KeyboardButton(BTN_SHOW_ALL_WATCHED)]],
        resize_keyboard=True,
    )


def page_navigation_keyboard(has_prev: bool, has_next: bool) -> ReplyKeyboardMarkup:
    rows = []
    nav_row = []
    if has_prev:
        nav_row.append(KeyboardButton(BTN_PREV_PAGE))
    if has_next:
        nav_row.append(KeyboardButton(BTN_NEXT_PAGE))
    if nav_row:
        rows.append(nav_row)
    rows.append([KeyboardButton(BTN_BACK_TO_MENU)])
    return ReplyKeyboardMarkup(rows, resize_keyboard=True)
