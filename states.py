"""Free-text input modes tracked per chat."""

from enum import Enum
from typing import Dict


class InputState(Enum):
    NONE = "none"
    AWAITING_SEARCH_QUERY = "awaiting_search_query"
    AWAITING_RATING = "awaiting_rating"
    AWAITING_FILTER_THRESHOLD = "awaiting_filter_threshold"


class ConversationStates:
    """Which kind of free text each chat is expected to send next.

    Chats start in ``InputState.NONE``. There is no terminal state: every
    mode returns to NONE once consumed or when the user goes back to the menu.
    """

    def __init__(self):
        self._states: Dict[int, InputState] = {}

    def current(self, chat_id: int) -> InputState:
        return self._states.get(chat_id, InputState.NONE)

    def expect_search_query(self, chat_id: int):
        self._states[chat_id] = InputState.AWAITING_SEARCH_QUERY

    def expect_rating(self, chat_id: int):
        self._states[chat_id] = InputState.AWAITING_RATING

    def expect_filter_threshold(self, chat_id: int):
        self._states[chat_id] = InputState.AWAITING_FILTER_THRESHOLD

    def consume(self, chat_id: int, state: InputState) -> bool:
        """Reset to NONE if the chat is in ``state``; report whether it was."""
        if self.current(chat_id) is not state:
            return False
        self.clear(chat_id)
        return True

    def clear(self, chat_id: int):
        self._states.pop(chat_id, None)


def get_states(context) -> ConversationStates:
    return context.bot_data["states"]
