import threading

import pytest
from pydantic import ValidationError

from relay.core.memory import ConversationContext
from relay.core.models import ConversationTurn, Role
from relay.core.prompt import PERSONA_ACKNOWLEDGEMENT, PERSONA_PROMPT, priming_seed


def test_seeded_context_is_never_empty():
    context = ConversationContext(priming_seed())

    history = context.snapshot()
    assert len(context) == 2
    assert history[0] == ConversationTurn(role=Role.USER, content=(PERSONA_PROMPT,))
    assert history[1] == ConversationTurn(role=Role.MODEL, content=(PERSONA_ACKNOWLEDGEMENT,))


def test_priming_seed_accepts_custom_persona():
    seed = priming_seed("You are a pirate.", "Arr.")

    assert [t.text for t in seed] == ["You are a pirate.", "Arr."]


def test_snapshot_is_a_copy():
    context = ConversationContext(priming_seed())

    snapshot = context.snapshot()
    context.append(ConversationTurn.user("hi"))

    assert len(snapshot) == 2
    assert len(context) == 3


def test_reset_replaces_history_wholesale():
    context = ConversationContext(priming_seed())
    context.append(ConversationTurn.user("a"))
    context.append(ConversationTurn.model("b"))
    new_seed = [ConversationTurn.user("x")]

    context.reset(new_seed)
    new_seed.append(ConversationTurn.model("not part of the context"))

    assert context.snapshot() == [ConversationTurn.user("x")]


def test_rollback_truncates_to_length():
    context = ConversationContext(priming_seed())
    context.append(ConversationTurn.user("orphan"))

    context.rollback(2)

    assert context.snapshot() == priming_seed()


def test_transaction_blocks_other_writers():
    context = ConversationContext(priming_seed())
    done = threading.Event()

    with context.transaction():
        writer = threading.Thread(
            target=lambda: (context.append(ConversationTurn.user("late")), done.set())
        )
        writer.start()
        assert not done.wait(0.1)
        # re-entrant for the holder
        context.append(ConversationTurn.user("inside"))

    writer.join(5)
    assert [t.text for t in context.snapshot()[2:]] == ["inside", "late"]


def test_turns_are_immutable():
    turn = ConversationTurn.user("fixed")

    with pytest.raises(ValidationError):
        turn.content = ("changed",)

    assert turn.content == ("fixed",)
