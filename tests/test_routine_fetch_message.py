from __future__ import annotations

from parbot.routine import Phase


def _converse(routine, conversation, reply: str = "hello there") -> None:
    """Run one full select, fetch, answer and post round."""
    conversation.replies.append(reply)
    for _ in range(4):
        routine.update()
    assert routine.phase is Phase.FETCH_PLAYER_MESSAGE


def test_bot_name_is_stripped_from_player_message(chat, conversation, make_routine) -> None:
    routine = make_routine()
    chat.say("Alice", "hi bot")

    routine.update()
    routine.update()

    assert routine.phase is Phase.FETCH_ANSWER
    assert routine.snapshot().player_message == "hi "

    routine.update()

    assert conversation.sessions[0].asked == ["hi "]


def test_bot_name_is_stripped_case_insensitively(chat, make_routine) -> None:
    routine = make_routine()
    chat.say("Alice", "BOT are you there, Bot?")

    routine.update()
    routine.update()

    assert routine.snapshot().player_message == " are you there, ?"


def test_most_recent_partner_message_wins(chat, make_routine) -> None:
    routine = make_routine()
    chat.say("Alice", "first")
    routine.update()

    chat.say("Alice", "second")
    chat.say("Bob", "noise")
    routine.update()

    state = routine.snapshot()
    assert state.player_message == "second"
    assert state.last_known_message.content == "noise"


def test_profane_partner_message_is_skipped(chat, make_routine) -> None:
    routine = make_routine()
    chat.say("Alice", "hi")
    routine.update()

    chat.say("Alice", "clean one")
    chat.say("Alice", "badword")
    routine.update()

    assert routine.snapshot().player_message == "clean one"


def test_message_is_answered_only_once(chat, conversation, make_routine) -> None:
    routine = make_routine()
    chat.say("Alice", "hi")
    _converse(routine, conversation)

    for _ in range(5):
        routine.update()

    assert conversation.sessions[0].asked == ["hi"]
    assert chat.submitted == ["hello there"]
    assert routine.phase is Phase.FETCH_PLAYER_MESSAGE


def test_new_partner_message_after_reply_is_fetched(chat, conversation, make_routine) -> None:
    routine = make_routine()
    chat.say("Alice", "hi")
    _converse(routine, conversation)

    chat.say("Alice", "how are you?")
    routine.update()

    assert routine.phase is Phase.FETCH_ANSWER
    assert routine.snapshot().player_message == "how are you?"


def test_idle_partner_is_dropped_after_timeout(chat, conversation, clock, make_routine) -> None:
    routine = make_routine(focus_lost_timeout_seconds=60.0)
    chat.say("Alice", "hi")
    _converse(routine, conversation)

    routine.update()
    assert routine.phase is Phase.FETCH_PLAYER_MESSAGE
    assert routine.snapshot().no_message_since == 0.0

    clock.advance(30)
    routine.update()
    assert routine.phase is Phase.FETCH_PLAYER_MESSAGE
    assert routine.snapshot().no_message_elapsed == 30.0

    clock.advance(31)
    routine.update()
    assert routine.phase is Phase.SELECT_USER


def test_partner_message_resets_idle_time(chat, conversation, clock, make_routine) -> None:
    routine = make_routine(focus_lost_timeout_seconds=60.0)
    chat.say("Alice", "hi")
    _converse(routine, conversation)

    routine.update()
    clock.advance(50)
    chat.say("Alice", "still here")
    routine.update()

    state = routine.snapshot()
    assert state.phase is Phase.FETCH_ANSWER
    assert state.no_message_elapsed == 0.0
    assert state.no_message_since is None


def test_mention_by_other_player_switches_focus(chat, conversation, make_routine) -> None:
    routine = make_routine()
    chat.say("Alice", "hi")
    _converse(routine, conversation)
    first_session = conversation.sessions[0]

    chat.say("Carol", "hey Bot over here")
    routine.update()
    assert routine.phase is Phase.SELECT_USER

    routine.update()
    assert routine.partner == "Carol"
    assert first_session.close_calls == 1
    assert len(conversation.sessions) == 2


def test_partner_message_wins_over_mention(chat, conversation, make_routine) -> None:
    routine = make_routine()
    chat.say("Alice", "hi")
    _converse(routine, conversation)

    chat.say("Alice", "more")
    chat.say("Carol", "bot?")
    routine.update()

    assert routine.phase is Phase.FETCH_ANSWER
    assert routine.partner == "Alice"


def test_message_without_mention_keeps_focus(chat, conversation, make_routine) -> None:
    routine = make_routine()
    chat.say("Alice", "hi")
    _converse(routine, conversation)

    chat.say("Carol", "hello everyone")
    routine.update()

    assert routine.phase is Phase.FETCH_PLAYER_MESSAGE
    assert routine.partner == "Alice"


def test_fetch_without_partner_returns_to_selection(make_routine) -> None:
    routine = make_routine()
    routine._state.phase = Phase.FETCH_PLAYER_MESSAGE

    routine.update()

    assert routine.phase is Phase.SELECT_USER


def test_own_reply_mentioning_bot_keeps_focus(chat, conversation, make_routine) -> None:
    routine = make_routine()
    chat.say("Alice", "hi")
    _converse(routine, conversation, reply="I am bot, nice to meet you")
    assert chat.submitted == ["I am bot, nice to meet you"]

    routine.update()

    assert routine.phase is Phase.FETCH_PLAYER_MESSAGE
    assert routine.partner == "Alice"
    assert routine.snapshot().last_known_message.sender == "bot"
