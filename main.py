"""Movie Shelf Telegram Bot - Main Entry Point."""

from typing import Optional

from telegram import Bot, Update
from telegram.error import TelegramError
from telegram.ext import Application, CallbackQueryHandler, CommandHandler, ContextTypes, MessageHandler, filters

from config import (
    ADMIN_CHAT_ID, BACKEND_API_URL, MAX_CACHED_MOVIES, REMINDER_INTERVAL_HOURS,
    SEARCH_PAGE_SIZE, TELEGRAM_BOT_TOKEN, logger,
)
from backend_client import BackendClient
from cache import GenreIndex, SessionCache
from callbacks import handle_button_callback
from handlers import (
    filter_command, handle_message, random_command, search_command, start,
    stats_command, top_command,
)
from messaging import send_text
from reminder import send_reminders
from states import ConversationStates


async def load_genres(application: Application) -> None:
    """Fill the genre index; without it genre names render as unknown."""
    genres = await application.bot_data["backend"].genres()
    if genres is None:
        logger.error("Could not load genres")
        return
    count = application.bot_data["genres"].load(genres)
    logger.info(f"Loaded {count} genres")


async def post_init(application: Application) -> None:
    await application.bot.delete_webhook(drop_pending_updates=True)
    await send_text(
        application.bot,
        ADMIN_CHAT_ID,
        "✅ Bot is up and ready, send /start to begin",
    )
    await load_genres(application)

    interval = REMINDER_INTERVAL_HOURS * 3600
    application.job_queue.run_repeating(send_reminders, interval=interval, first=interval, name="reminders")
    logger.info("Bot is running...")


async def on_error(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    logger.error(f"Error while handling update: {context.error}", exc_info=context.error)
    if isinstance(update, Update) and update.effective_chat:
        try:
            await context.bot.send_message(
                chat_id=update.effective_chat.id,
                text="Sorry, I encountered an error. Please try again.",
            )
        except TelegramError as e:
            logger.warning(f"Could not report error to chat {update.effective_chat.id}: {e}")


def build_application(token: str = TELEGRAM_BOT_TOKEN, bot: Optional[Bot] = None) -> Application:
    """Wire services and handlers; a ready ``bot`` replaces the one built from ``token``."""
    builder = Application.builder()
    builder = builder.bot(bot) if bot is not None else builder.token(token)
    application = (
        builder
        .concurrent_updates(True)
        .post_init(post_init)
        .build()
    )

    application.bot_data["session"] = SessionCache(page_size=SEARCH_PAGE_SIZE, max_movies=MAX_CACHED_MOVIES)
    application.bot_data["states"] = ConversationStates()
    application.bot_data["genres"] = GenreIndex()
    application.bot_data["backend"] = BackendClient(BACKEND_API_URL)

    # Register handlers
    application.add_handler(CommandHandler("start", start))
    application.add_handler(CommandHandler("random", random_command))
    application.add_handler(CommandHandler("search", search_command))
    application.add_handler(CommandHandler("top", top_command))
    application.add_handler(CommandHandler("stats", stats_command))
    application.add_handler(CommandHandler("filter", filter_command))
    application.add_handler(
        MessageHandler(filters.UpdateType.MESSAGE & filters.TEXT & ~filters.COMMAND, handle_message)
    )
    application.add_handler(CallbackQueryHandler(handle_button_callback))
    application.add_error_handler(on_error)
    return application


def main():
    """Start the bot."""
    application = build_application()

    logger.info("Bot is starting...")
    try:
        application.run_polling(allowed_updates=Update.ALL_TYPES)
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
    except Exception as e:
        logger.error(f"Error running bot: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    main()
