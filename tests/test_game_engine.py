import pytest

from zjh.game import ActionRejected, GameEngine, next_turn
from zjh.models import ActionType, Phase, Player, PlayerStatus, TableConfig

from .helpers import chips_in_play, create_engine, give_cards, perform_actions, start_hand


def test_start_hand_collects_antes_and_deals():
    engine = create_engine(seats=3)
    events = engine.start_hand()

    state = engine.state
    assert events[0]["ev"] == "GAME_START"
    assert events[0]["cue"] == {"type": "GAME_START"}
    assert state.phase == Phase.DEALING
    assert state.pot == 3_000
    assert state.current_round_bet == 1_000
    assert state.raise_count == 0
    assert sum(1 for player in state.players if player.is_dealer) == 1
    assert state.players[state.current_turn].status == PlayerStatus.PLAYING

    dealt = [card.id for player in state.players for card in player.cards]
    assert len(dealt) == 9
    assert len(set(dealt)) == 9
    for player in state.players:
        assert player.chips == 99_000
        assert player.current_bet == 1_000
        assert player.status == PlayerStatus.PLAYING
        assert not player.has_seen_cards

    engine.finish_deal()
    assert state.phase == Phase.BETTING


def test_full_hand_ends_with_special_235_beating_leopard():
    engine = create_engine(seats=3)
    start_hand(engine, first_turn=1)
    give_cards(engine, 1, ["Ah", "Ad", "Ac"])
    give_cards(engine, 2, ["2h", "3d", "5c"])
    state = engine.state

    engine.apply_action(1, ActionType.RAISE, 2_000)
    assert state.pot == 4_000
    assert state.current_round_bet == 2_000
    assert state.raise_count == 1
    assert state.current_turn == 2

    engine.apply_action(2, ActionType.CALL)
    assert state.pot == 5_000
    assert state.current_turn == 0

    engine.apply_action(0, ActionType.FOLD)
    assert state.players[0].status == PlayerStatus.FOLDED
    assert state.current_turn == 1

    engine.apply_action(1, ActionType.COMPARE_INIT)
    assert state.phase == Phase.COMPARING
    assert state.comparing_initiator == 1
    assert state.pot == 7_000

    events = engine.apply_action(1, ActionType.COMPARE_TARGET, target=2)
    assert state.phase == Phase.RESOLVING
    assert events[0]["cue"]["data"] == {"seatA": 1, "seatB": 2, "winnerId": 2}

    events = engine.resolve_duel()
    assert [event["ev"] for event in events] == ["COMPARE_RESULT", "POT_AWARD"]
    assert state.phase == Phase.SHOWDOWN
    assert state.winner == 2
    assert state.pot == 0
    assert state.players[1].status == PlayerStatus.LOST
    assert state.players[2].status == PlayerStatus.WON
    assert state.players[2].chips == 105_000
    assert all(player.has_seen_cards for player in state.players)


def test_next_turn_skips_inactive_seats():
    players = [Player(seat=idx, name=f"P{idx}", is_human=True, chips=0) for idx in range(4)]
    for player, status in zip(
        players, [PlayerStatus.PLAYING, PlayerStatus.FOLDED, PlayerStatus.PLAYING, PlayerStatus.LOST]
    ):
        player.status = status

    assert next_turn(players, 0) == 2
    assert next_turn(players, 2) == 0
    assert next_turn(players, 1) == 2


def test_next_turn_returns_current_when_nobody_is_playing():
    players = [Player(seat=idx, name=f"P{idx}", is_human=True, chips=0) for idx in range(3)]
    assert next_turn(players, 1) == 1
    assert next_turn([], 0) == 0


def test_see_cards_keeps_turn():
    engine = create_engine(seats=2)
    start_hand(engine, first_turn=0)

    engine.apply_action(0, ActionType.SEE_CARDS)

    assert engine.state.players[0].has_seen_cards
    assert engine.state.players[0].last_action == "Looked"
    assert engine.state.current_turn == 0


def test_fold_down_to_one_player_awards_pot():
    engine = create_engine(seats=3)
    start_hand(engine, first_turn=0)

    perform_actions(engine, [(0, ActionType.FOLD, None), (1, ActionType.FOLD, None)])

    state = engine.state
    assert state.phase == Phase.SHOWDOWN
    assert state.winner == 2
    assert state.players[2].chips == 99_000 + 3_000
    assert state.players[2].last_action == "+3000"
    assert state.pot == 0


def test_round_count_increments_when_turn_wraps():
    engine = create_engine(seats=3)
    start_hand(engine, first_turn=0)
    state = engine.state

    perform_actions(engine, [(0, ActionType.CALL, None), (1, ActionType.CALL, None)])
    assert state.round_count == 1
    engine.apply_action(2, ActionType.CALL)
    assert state.round_count == 2
    assert state.current_turn == 0


def test_pot_matches_chips_paid_in():
    engine = create_engine(seats=3)
    before = chips_in_play(engine)
    start_hand(engine, first_turn=0)

    perform_actions(
        engine,
        [
            (0, ActionType.RAISE, 3_000),
            (1, ActionType.CALL, None),
            (2, ActionType.RAISE, 5_000),
            (0, ActionType.CALL, None),
            (1, ActionType.COMPARE_INIT, None),
        ],
    )

    state = engine.state
    paid = sum(100_000 - player.chips for player in state.players)
    assert state.pot == paid
    assert chips_in_play(engine) == before


def test_compare_init_charges_round_bet_without_touching_current_bet():
    engine = create_engine(seats=2)
    start_hand(engine, first_turn=0)

    engine.apply_action(0, ActionType.COMPARE_INIT)

    player = engine.state.players[0]
    assert player.chips == 98_000
    assert player.current_bet == 1_000
    assert engine.state.pot == 3_000


def test_defender_wins_tied_duel():
    engine = create_engine(seats=2)
    start_hand(engine, first_turn=0)
    give_cards(engine, 0, ["Ah", "Kd", "Jc"])
    give_cards(engine, 1, ["As", "Kc", "Jd"])

    engine.apply_action(0, ActionType.COMPARE_INIT)
    engine.apply_action(0, ActionType.COMPARE_TARGET, target=1)
    engine.resolve_duel()

    assert engine.state.winner == 1
    assert engine.state.players[0].status == PlayerStatus.LOST


def test_duel_among_three_returns_to_betting():
    engine = create_engine(seats=3)
    start_hand(engine, first_turn=0)
    give_cards(engine, 0, ["9h", "9d", "Kc"])
    give_cards(engine, 1, ["Ah", "7d", "4c"])

    engine.apply_action(0, ActionType.COMPARE_INIT)
    engine.apply_action(0, ActionType.COMPARE_TARGET, target=1)
    engine.resolve_duel()

    state = engine.state
    assert state.phase == Phase.BETTING
    assert state.players[1].status == PlayerStatus.LOST
    assert state.players[0].last_action == "Won duel"
    assert state.comparing_initiator is None
    assert state.current_turn == 2


def test_short_call_becomes_all_in():
    engine = create_engine(seats=2)
    start_hand(engine, first_turn=0)
    engine.state.players[1].chips = 2_000

    engine.apply_action(0, ActionType.RAISE, 4_000)
    events = engine.apply_action(1, ActionType.CALL)

    assert events[0]["ev"] == "ALL_IN"
    assert engine.state.players[1].chips == 0
    assert engine.state.players[1].current_bet == 3_000
    assert engine.state.current_round_bet == 4_000


def test_all_in_lifts_round_bet():
    engine = create_engine(seats=2, starting_chips=10_000)
    start_hand(engine, first_turn=0)

    engine.apply_action(0, ActionType.ALL_IN)

    state = engine.state
    assert state.players[0].chips == 0
    assert state.current_round_bet == 10_000
    assert state.pot == 11_000
    assert state.players[0].last_action == "ALL IN"


def test_new_hand_marks_broke_players_lost():
    engine = create_engine(seats=3)
    engine.state.players[0].chips = 500

    engine.start_hand()

    state = engine.state
    assert state.players[0].status == PlayerStatus.LOST
    assert state.players[0].cards == []
    assert state.players[0].chips == 500
    assert state.pot == 2_000
    assert all(len(player.cards) == 3 for player in state.players[1:])


def test_assign_seat_limits():
    engine = GameEngine(TableConfig(max_seats=2))
    engine.assign_seat("A")
    engine.assign_seat("B")
    with pytest.raises(RuntimeError, match="Table is full"):
        engine.assign_seat("C")
    with pytest.raises(ValueError, match="NAME_REQUIRED"):
        GameEngine(TableConfig()).assign_seat("   ")


def test_start_hand_requires_funded_players():
    engine = create_engine(seats=2, starting_chips=500)
    with pytest.raises(ActionRejected) as exc:
        engine.start_hand()
    assert exc.value.code == "NOT_ENOUGH_PLAYERS"
    assert engine.state.phase == Phase.IDLE


def test_hand_settles_when_nobody_has_chips_left():
    engine = create_engine(seats=2, starting_chips=10_000)
    start_hand(engine, first_turn=0)
    give_cards(engine, 0, ["2h", "3d", "5c"])
    give_cards(engine, 1, ["Qh", "Qd", "Qc"])

    engine.apply_action(0, ActionType.ALL_IN)
    events = engine.apply_action(1, ActionType.CALL)

    state = engine.state
    assert [event["ev"] for event in events] == ["CALL", "SHOWDOWN", "POT_AWARD"]
    assert state.phase == Phase.SHOWDOWN
    assert state.winner == 0
    assert state.players[0].chips == 20_000
    assert state.players[1].status == PlayerStatus.LOST
    assert state.players[1].last_action == "Lost showdown"
