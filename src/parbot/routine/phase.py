"""Phases of one conversation round."""

from __future__ import annotations

from enum import Enum


class Phase(Enum):
    SELECT_USER = "select_user"
    FETCH_PLAYER_MESSAGE = "fetch_player_message"
    FETCH_ANSWER = "fetch_answer"
    POST_ANSWER = "post_answer"
