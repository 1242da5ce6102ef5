"""Best-effort wrappers around Telegram send/edit calls.

Transport failures are logged and swallowed so a flow can carry on with
its remaining messages.
"""

from typing import Optional

from telegram import Message
from telegram.constants import ParseMode
from telegram.error import BadRequest, TelegramError

from config import logger
from cache import MovieRecord
from utils import validate_and_build_poster_url


async def send_text(bot, chat_id: int, text: str, reply_markup=None, html: bool = False) -> Optional[Message]:
    try:
        return await bot.send_message(
            chat_id=chat_id,
            text=text,
            reply_markup=reply_markup,
            parse_mode=ParseMode.HTML if html else None,
        )
    except TelegramError as e:
        logger.warning(f"Failed to send message to chat {chat_id}: {e}")
        return None


async def send_movie(bot, chat_id: int, movie: MovieRecord, text: str, reply_markup=None) -> Optional[Message]:
    """Send a movie card as a poster with caption, or as plain text without one."""
    poster_url = validate_and_build_poster_url(movie.poster_path)
    if poster_url:
        try:
            return await bot.send_photo(
                chat_id=chat_id,
                photo=poster_url,
                caption=text,
                reply_markup=reply_markup,
                parse_mode=ParseMode.HTML,
            )
        except TelegramError as e:
            logger.warning(f"Error sending photo for movie {movie.movie_id}: {e}, sending text only")

    return await send_text(bot, chat_id, text, reply_markup=reply_markup, html=True)


async def edit_movie_message(bot, chat_id: int, message_id: int, text: str, reply_markup=None,
                             has_photo: Optional[bool] = None) -> bool:
    """Rewrite a rendered movie card in place.

    Photo cards get a new caption, text cards new text. When the kind of card
    is unknown the caption edit is tried first.
    """
    attempts = []
    if has_photo is not False:
        attempts.append((bot.edit_message_caption, "caption"))
    if has_photo is not True:
        attempts.append((bot.edit_message_text, "text"))

    for edit, text_field in attempts:
        try:
            await edit(
                chat_id=chat_id,
                message_id=message_id,
                reply_markup=reply_markup,
                parse_mode=ParseMode.HTML,
                **{text_field: text},
            )
            return True
        except BadRequest as e:
            logger.debug(f"Edit of message {message_id} in chat {chat_id} rejected: {e}")
        except TelegramError as e:
            logger.warning(f"Failed to edit message {message_id} in chat {chat_id}: {e}")
            return False

    logger.warning(f"Could not edit message {message_id} in chat {chat_id}")
    return False


async def delete_message(bot, chat_id: int, message_id: int) -> bool:
    try:
        await bot.delete_message(chat_id=chat_id, message_id=message_id)
        return True
    except TelegramError as e:
        logger.warning(f"Failed to delete message {message_id} in chat {chat_id}: {e}")
        return False
