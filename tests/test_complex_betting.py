import pytest

from zjh.game import ActionRejected
from zjh.models import ActionType, Phase, PlayerStatus

from .helpers import chips_in_play, create_engine, start_hand


def test_raise_cap_rejects_eleventh_raise():
    engine = create_engine(seats=2)
    start_hand(engine, first_turn=0)
    state = engine.state

    for _ in range(10):
        engine.apply_action(state.current_turn, ActionType.RAISE, state.current_round_bet + 1_000)
    assert state.raise_count == 10
    assert state.current_round_bet == 11_000

    seat = state.current_turn
    pot = state.pot
    with pytest.raises(ActionRejected) as exc:
        engine.apply_action(seat, ActionType.RAISE, state.current_round_bet + 1_000)

    assert exc.value.code == "RAISE_CAP"
    assert state.raise_count == 10
    assert state.pot == pot
    assert state.current_turn == seat

    # Calling is still allowed once raises are capped.
    engine.apply_action(seat, ActionType.CALL)
    assert state.players[seat].current_bet == 11_000


def test_raise_pays_difference_to_current_bet():
    engine = create_engine(seats=3)
    start_hand(engine, first_turn=0)

    engine.apply_action(0, ActionType.RAISE, 2_000)
    engine.apply_action(1, ActionType.RAISE, 6_000)
    engine.apply_action(2, ActionType.CALL)
    engine.apply_action(0, ActionType.CALL)

    players = engine.state.players
    assert [player.current_bet for player in players] == [6_000, 6_000, 6_000]
    assert [player.chips for player in players] == [94_000, 94_000, 94_000]
    assert engine.state.pot == 18_000
    assert players[0].last_action == "Call 4000"
    assert players[1].last_action == "Raise to 6000"
    assert players[1].last_action_type == "positive"


def test_all_in_below_round_bet_keeps_floor():
    engine = create_engine(seats=3)
    start_hand(engine, first_turn=0)
    engine.state.players[1].chips = 1_500

    engine.apply_action(0, ActionType.RAISE, 5_000)
    engine.apply_action(1, ActionType.ALL_IN)

    state = engine.state
    assert state.current_round_bet == 5_000
    assert state.players[1].current_bet == 2_500
    assert state.players[1].status == PlayerStatus.PLAYING
    assert state.current_turn == 2


def test_chips_conserved_across_several_hands():
    engine = create_engine(seats=4, seed=11)
    total = chips_in_play(engine)

    for _ in range(5):
        start_hand(engine)
        while engine.state.phase != Phase.SHOWDOWN:
            seat = engine.state.current_turn
            if engine.state.raise_count < 2:
                engine.apply_action(seat, ActionType.RAISE, engine.state.current_round_bet + 1_000)
            else:
                engine.apply_action(seat, ActionType.FOLD)
            assert chips_in_play(engine) == total
        assert engine.state.pot == 0
        assert chips_in_play(engine) == total
