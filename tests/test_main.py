"""
Tests for application wiring and startup.
"""
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from telegram import Bot, Chat, Message, MessageEntity, Update, User
from telegram.ext import CallbackQueryHandler, CommandHandler, MessageHandler

from backend_client import BackendClient
from cache import GenreIndex, MovieRecord, SessionCache
from config import ADMIN_CHAT_ID
from conftest import CHAT_ID, USER_ID, make_movie
from main import build_application, post_init
from states import ConversationStates, InputState


def startup_app(genres_result):
    backend = MagicMock(spec=BackendClient)
    backend.genres.return_value = genres_result
    return SimpleNamespace(
        bot=AsyncMock(),
        bot_data={"backend": backend, "genres": GenreIndex()},
        job_queue=MagicMock(),
    )


class TestBuildApplication:

    def test_services_and_handlers_registered(self):
        application = build_application("123456:TEST-TOKEN")

        assert isinstance(application.bot_data["session"], SessionCache)
        assert isinstance(application.bot_data["states"], ConversationStates)
        assert isinstance(application.bot_data["genres"], GenreIndex)
        assert isinstance(application.bot_data["backend"], BackendClient)

        handlers = application.handlers[0]
        commands = set()
        for handler in handlers:
            if isinstance(handler, CommandHandler):
                commands |= set(handler.commands)
        assert commands == {"start", "random", "search", "top", "stats", "filter"}
        assert any(isinstance(h, MessageHandler) for h in handlers)
        assert any(isinstance(h, CallbackQueryHandler) for h in handlers)


class TestPostInit:

    async def test_startup_sequence(self):
        app = startup_app([{"id": 28, "name": "Action"}])

        await post_init(app)

        app.bot.delete_webhook.assert_awaited_once_with(drop_pending_updates=True)
        assert app.bot.send_message.call_args.kwargs["chat_id"] == ADMIN_CHAT_ID
        assert app.bot_data["genres"].name(28) == "Action"
        app.job_queue.run_repeating.assert_called_once()

    async def test_genre_failure_is_not_fatal(self):
        app = startup_app(None)

        await post_init(app)

        assert not app.bot_data["genres"].is_loaded
        app.job_queue.run_repeating.assert_called_once()


class OfflineBot(Bot):
    """A bot that never reaches Telegram: outgoing messages are dropped."""

    @property
    def username(self):
        return "movie_shelf_bot"

    async def initialize(self):
        pass

    async def send_message(self, *args, **kwargs):
        return None


def incoming(bot, update_id, text, edited=False):
    entities = None
    if text.startswith("/"):
        entities = (MessageEntity(MessageEntity.BOT_COMMAND, 0, len(text.split()[0])),)
    message = Message(
        update_id,
        datetime.now(timezone.utc),
        Chat(CHAT_ID, Chat.PRIVATE),
        from_user=User(CHAT_ID, "Viewer", False),
        text=text,
        entities=entities,
    )
    message.set_bot(bot)
    if edited:
        return Update(update_id, edited_message=message)
    return Update(update_id, message=message)


class TestUpdateDispatch:
    """Updates go through the registered handlers exactly as in production."""

    def test_edited_text_is_not_routed(self):
        application = build_application("123456:TEST-TOKEN")
        text_handler = next(h for h in application.handlers[0] if isinstance(h, MessageHandler))

        assert text_handler.check_update(incoming(None, 1, "Matrix"))
        assert not text_handler.check_update(incoming(None, 2, "Matrix", edited=True))

    async def test_command_short_circuits_rating_capture(self, backend, session, states, genres):
        bot = OfflineBot("123456:TEST-TOKEN")
        application = build_application(bot=bot)
        application.bot_data.update(backend=backend, session=session, states=states, genres=genres)

        session.set_user_id(CHAT_ID, USER_ID)
        session.set_movie(USER_ID, 42, MovieRecord.from_payload(make_movie(42), watched=True))
        session.set_pending_rating(CHAT_ID, USER_ID, 42)
        states.expect_rating(CHAT_ID)
        backend.unwatched_movies.return_value = [(i, make_movie(i, vote_average=i)) for i in (3, 9, 5)]
        backend.set_rating.return_value = True

        await application.initialize()
        try:
            await application.process_update(incoming(bot, 1, "/top"))

            backend.unwatched_movies.assert_awaited_once_with(USER_ID)
            backend.set_rating.assert_not_called()
            assert states.current(CHAT_ID) is InputState.AWAITING_RATING

            await application.process_update(incoming(bot, 2, "8", edited=True))
            backend.set_rating.assert_not_called()

            await application.process_update(incoming(bot, 3, "8"))
            backend.set_rating.assert_awaited_once_with(USER_ID, 42, 8.0)
            assert states.current(CHAT_ID) is InputState.NONE
        finally:
            await application.shutdown()
