import pytest

from table.console import Command, parse_command, render_state
from zjh.models import ActionType

from .helpers import create_engine, give_cards, start_hand


@pytest.mark.parametrize(
    "line, expected",
    [
        ("call", Command("action", ActionType.CALL)),
        ("  FOLD ", Command("action", ActionType.FOLD)),
        ("all-in", Command("action", ActionType.ALL_IN)),
        ("see", Command("action", ActionType.SEE_CARDS)),
        ("compare", Command("action", ActionType.COMPARE_INIT)),
        ("raise 5000", Command("action", ActionType.RAISE, amount=5_000)),
        ("target 2", Command("action", ActionType.COMPARE_TARGET, target=2)),
        ("start", Command("start")),
        ("", Command("show")),
        ("exit", Command("quit")),
    ],
)
def test_parse_command(line, expected):
    assert parse_command(line) == expected


@pytest.mark.parametrize("line, message", [("raise", "Usage"), ("raise lots", "Usage"), ("dance", "Unknown")])
def test_parse_command_errors(line, message):
    with pytest.raises(ValueError, match=message):
        parse_command(line)


def test_render_hides_other_hands_until_showdown():
    engine = create_engine(seats=2)
    start_hand(engine, first_turn=0)
    give_cards(engine, 0, ["Ah", "Kh", "Qh"])
    give_cards(engine, 1, ["2c", "2d", "9s"])
    state = engine.state
    state.players[0].has_seen_cards = True
    state.players[1].has_seen_cards = True

    text = render_state(state, seat=0)
    assert "A♥ K♥ Q♥ (Straight Flush)" in text
    assert "?? ?? ??" in text
    assert "2♣" not in text
    assert "→Seat 0" in text

    engine.apply_action(0, ActionType.FOLD)
    text = render_state(engine.state, seat=0)
    assert "2♣ 2♦ 9♠ (Pair)" in text
    assert "Winner: seat 1" in text


def test_render_without_snapshot():
    assert render_state(None, None).startswith("Waiting")
