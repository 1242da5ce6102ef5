"""
Tests for paging through cached search results.
"""
import pytest

from cache import SearchResultSet
from conftest import CHAT_ID, USER_ID, make_movie
from keyboards import BTN_NEXT_PAGE, BTN_PREV_PAGE
from pagination import max_page, navigation, page_slice, show_search_page, turn_page


def nav_texts(bot):
    markup = bot.send_message.call_args_list[-1].kwargs["reply_markup"]
    return [button.text for row in markup.keyboard for button in row]


class TestPageMath:

    @pytest.mark.parametrize("count,expected", [(1, 0), (3, 0), (4, 1), (6, 1), (7, 2), (10, 3)])
    def test_max_page(self, count, expected):
        assert max_page(count, 3) == expected

    @pytest.mark.parametrize("count", range(1, 11))
    def test_navigation_buttons(self, count):
        last = (count - 1) // 3
        for page in range(last + 1):
            results = SearchResultSet(tuple(make_movie(i) for i in range(count)), page)
            has_prev, has_next = navigation(results, 3)
            assert has_prev == (page != 0)
            assert has_next == (page != last)

    def test_last_page_may_be_short(self):
        results = SearchResultSet(tuple(make_movie(i) for i in range(7)), 2)
        assert [m["id"] for m in page_slice(results, 3)] == [6]


class TestShowSearchPage:

    async def test_nothing_cached(self, context):
        assert await show_search_page(context, CHAT_ID, USER_ID) is False
        context.bot.send_message.assert_not_called()

    async def test_first_page(self, context, session):
        session.set_search_results(CHAT_ID, [make_movie(i) for i in range(1, 6)])

        assert await show_search_page(context, CHAT_ID, USER_ID) is True

        texts = [c.kwargs["text"] for c in context.bot.send_message.call_args_list]
        assert len(texts) == 4
        assert texts[-1] == "📄 Page 1 of 2"
        assert nav_texts(context.bot) == [BTN_NEXT_PAGE, "⬅️ Back to main menu"]
        for movie_id in (1, 2, 3):
            assert session.get_movie(USER_ID, movie_id) is not None
        assert session.get_movie(USER_ID, 4) is None

    async def test_poster_sent_as_photo(self, context, session):
        session.set_search_results(CHAT_ID, [make_movie(1, poster_path="/poster.jpg")])
        await show_search_page(context, CHAT_ID, USER_ID)
        context.bot.send_photo.assert_awaited_once()
        assert context.bot.send_photo.call_args.kwargs["photo"].endswith("/poster.jpg")

    async def test_turn_page_forward_and_back(self, context, session):
        session.set_user_id(CHAT_ID, USER_ID)
        session.set_search_results(CHAT_ID, [make_movie(i) for i in range(1, 8)])

        await turn_page(context, CHAT_ID, 1)
        assert session.get_search_results(CHAT_ID).page == 1
        assert nav_texts(context.bot)[:2] == [BTN_PREV_PAGE, BTN_NEXT_PAGE]

        await turn_page(context, CHAT_ID, 1)
        assert nav_texts(context.bot)[0] == BTN_PREV_PAGE
        assert BTN_NEXT_PAGE not in nav_texts(context.bot)

        await turn_page(context, CHAT_ID, -2)
        assert session.get_search_results(CHAT_ID).page == 0

    async def test_turn_page_without_identity(self, context, session):
        session.set_search_results(CHAT_ID, [make_movie(1)])
        assert await turn_page(context, CHAT_ID, 1) is False
