import pytest
from pydantic import ValidationError

from relay.core import TranscriptStore, Turn, build_summary_prompt


def test_append_keeps_insertion_order():
    store = TranscriptStore()
    store.append(Turn(role="user", message="one"))
    store.append(Turn(role="user", message="two"))
    store.append(Turn(role="assistant", message="three"))

    assert [turn.message for turn in store.snapshot()] == ["one", "two", "three"]
    assert len(store) == 3


def test_snapshot_is_detached_from_later_appends():
    store = TranscriptStore()
    store.append(Turn(role="user", message="hi"))
    snapshot = store.snapshot()

    store.append(Turn(role="assistant", message="hello"))

    assert len(snapshot) == 1
    assert isinstance(snapshot, tuple)


def test_clear_empties_store():
    store = TranscriptStore()
    store.append(Turn(role="user", message="hi"))
    store.clear()

    assert store.snapshot() == ()
    assert len(store) == 0


def test_turn_is_immutable():
    turn = Turn(role="user", message="hi")
    with pytest.raises(ValidationError):
        turn.message = "changed"


def test_turn_rejects_unknown_role():
    with pytest.raises(ValidationError):
        Turn(role="system", message="hi")


def test_summary_prompt_wraps_content():
    prompt = build_summary_prompt("a | b\nc | {d}")
    assert prompt.endswith("\n\na | b\nc | {d}")
    assert prompt.startswith("Please briefly explain")
