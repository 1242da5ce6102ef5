"""
Tests for the per-chat session cache and the genre index.
"""
from uuid import UUID

import pytest

from cache import GenreIndex, MovieRecord, SessionCache
from conftest import CHAT_ID, USER_ID, make_movie

OTHER_USER = UUID("11111111-2222-3333-4444-555555555555")


class TestUserIdentity:
    """Chat to backend user mapping."""

    def test_unknown_chat_has_no_user(self, session):
        assert session.get_user_id(CHAT_ID) is None

    def test_set_and_get_user_id(self, session):
        session.set_user_id(CHAT_ID, USER_ID)
        assert session.get_user_id(CHAT_ID) == USER_ID
        assert session.chat_ids() == [CHAT_ID]


class TestMovieRecords:
    """Movie cache keyed by (user id, movie id)."""

    def test_round_trip_returns_equal_record(self, session):
        record = MovieRecord.from_payload(make_movie(42))
        session.set_movie(USER_ID, 42, record)
        assert session.get_movie(USER_ID, 42) == record

    def test_key_is_composite(self, session):
        session.set_movie(USER_ID, 42, MovieRecord.from_payload(make_movie(42)))
        assert session.get_movie(OTHER_USER, 42) is None
        assert session.get_movie(USER_ID, 43) is None

    def test_update_user_rating_copies_record(self, session):
        original = MovieRecord.from_payload(make_movie(42))
        session.set_movie(USER_ID, 42, original)

        assert session.update_user_rating(USER_ID, 42, 7.5) is True

        updated = session.get_movie(USER_ID, 42)
        assert updated.user_rating == 7.5
        assert {k: v for k, v in updated.data.items() if k != "user_rating"} == original.data
        assert "user_rating" not in original.data

    def test_update_user_rating_replaces_previous_rating(self, session):
        session.set_movie(USER_ID, 42, MovieRecord.from_payload(make_movie(42, user_rating=3)))
        session.update_user_rating(USER_ID, 42, 9)
        assert session.get_movie(USER_ID, 42).user_rating == 9

    def test_update_user_rating_without_record_fails_silently(self, session):
        assert session.update_user_rating(USER_ID, 42, 7.5) is False
        assert session.get_movie(USER_ID, 42) is None

    def test_watched_flag_is_added_on_request(self):
        assert MovieRecord.from_payload(make_movie(1), watched=True).watched is True
        assert MovieRecord.from_payload(make_movie(1)).watched is False

    def test_from_payload_does_not_alias_input(self):
        payload = make_movie(1)
        record = MovieRecord.from_payload(payload)
        payload["title"] = "Changed"
        assert record.title == "Movie 1"

    def test_eviction_only_when_bounded(self):
        bounded = SessionCache(max_movies=2)
        for movie_id in (1, 2, 3):
            bounded.set_movie(USER_ID, movie_id, MovieRecord.from_payload(make_movie(movie_id)))
        assert bounded.get_movie(USER_ID, 1) is None
        assert bounded.get_movie(USER_ID, 3) is not None

        unbounded = SessionCache()
        for movie_id in range(50):
            unbounded.set_movie(USER_ID, movie_id, MovieRecord.from_payload(make_movie(movie_id)))
        assert unbounded.get_movie(USER_ID, 0) is not None


class TestChatSlots:
    """Last message id, search results and pending rating."""

    def test_last_message_id(self, session):
        session.set_last_message_id(CHAT_ID, 77)
        assert session.get_last_message_id(CHAT_ID) == 77
        session.clear_last_message_id(CHAT_ID)
        assert session.get_last_message_id(CHAT_ID) is None

    def test_new_results_start_at_first_page(self, session):
        session.set_search_results(CHAT_ID, [make_movie(i) for i in range(7)])
        session.set_page(CHAT_ID, 2)
        results = session.set_search_results(CHAT_ID, [make_movie(i) for i in range(4)])
        assert results.page == 0
        assert session.get_search_results(CHAT_ID).count == 4

    @pytest.mark.parametrize("requested,expected", [(-1, 0), (0, 0), (2, 2), (3, 2), (10, 2)])
    def test_page_stays_in_range(self, session, requested, expected):
        session.set_search_results(CHAT_ID, [make_movie(i) for i in range(7)])
        assert session.set_page(CHAT_ID, requested).page == expected

    def test_set_page_without_results(self, session):
        assert session.set_page(CHAT_ID, 1) is None

    def test_pending_rating_is_consumed_once(self, session):
        session.set_pending_rating(CHAT_ID, USER_ID, 42)
        pending = session.pop_pending_rating(CHAT_ID)
        assert (pending.user_id, pending.movie_id) == (USER_ID, 42)
        assert session.pop_pending_rating(CHAT_ID) is None

    def test_reset_chat_keeps_identity_only(self, session):
        session.set_user_id(CHAT_ID, USER_ID)
        session.set_movie(USER_ID, 42, MovieRecord.from_payload(make_movie(42)))
        session.set_movie(OTHER_USER, 42, MovieRecord.from_payload(make_movie(42)))
        session.set_search_results(CHAT_ID, [make_movie(1)])
        session.set_pending_rating(CHAT_ID, USER_ID, 42)
        session.set_last_message_id(CHAT_ID, 5)

        session.reset_chat(CHAT_ID)

        assert session.get_user_id(CHAT_ID) == USER_ID
        assert session.get_search_results(CHAT_ID) is None
        assert session.peek_pending_rating(CHAT_ID) is None
        assert session.get_last_message_id(CHAT_ID) is None
        assert session.get_movie(USER_ID, 42) is None
        assert session.get_movie(OTHER_USER, 42) is not None


class TestGenreIndex:
    """Genre id to name lookup."""

    def test_empty_index(self):
        index = GenreIndex()
        assert not index.is_loaded
        assert index.name(28) is None

    def test_load_skips_malformed_entries(self):
        index = GenreIndex()
        count = index.load([{"id": 28, "name": "Action"}, {"name": "No id"}, {"id": "x", "name": "Bad"}])
        assert count == 1
        assert index.name(28) == "Action"
        assert index.items() == [(28, "Action")]
