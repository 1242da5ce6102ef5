"""Periodic reminder sent to every known chat."""

from telegram.error import TelegramError
from telegram.ext import ContextTypes

from config import REMINDER_MESSAGE, logger
from cache import get_session


async def send_reminders(context: ContextTypes.DEFAULT_TYPE) -> int:
    """Send the reminder to each chat with a backend identity.

    One failing chat never stops the sweep. Stops early once the
    application is shutting down. Returns the number of reminders delivered.
    """
    message = (context.job.data if context.job and context.job.data else None) or REMINDER_MESSAGE
    delivered = 0
    for chat_id in get_session(context).chat_ids():
        if not context.application.running:
            logger.info("Application stopping, reminder sweep interrupted")
            break
        try:
            await context.bot.send_message(chat_id=chat_id, text=message)
            delivered += 1
        except TelegramError as e:
            logger.warning(f"Failed to send reminder to chat {chat_id}: {e}")

    logger.info(f"Reminder sweep delivered {delivered} message(s)")
    return delivered
