from __future__ import annotations

import random
from typing import Dict, List, Optional, Sequence

from .cards import Card, build_deck, deal
from .evaluator import beats, evaluate_hand
from .models import ActionType, DuelResult, GameState, Phase, Player, PlayerStatus, TableConfig

# GameEngine owns the canonical GameState and applies the Zha Jin Hua rules.
# No networking or pacing lives here; callers decide when to broadcast and
# how long to wait before finish_deal() / resolve_duel().

HOST_SEAT = 0

Event = Dict[str, object]


class ActionRejected(ValueError):
    """An action that leaves the state untouched. ``code`` is machine-readable."""

    def __init__(self, code: str, msg: str) -> None:
        super().__init__(msg)
        self.code = code
        self.msg = msg


def next_turn(players: Sequence[Player], current: int) -> int:
    """First PLAYING seat after ``current``, searching at most one lap."""
    count = len(players)
    if count == 0:
        return current
    idx = (current + 1) % count
    for _ in range(count):
        if players[idx].status == PlayerStatus.PLAYING:
            return idx
        idx = (idx + 1) % count
    return current


class GameEngine:
    """Three-card betting engine for a single table."""

    def __init__(self, config: TableConfig, seed: Optional[int] = None) -> None:
        self.config = config
        self.rng = random.Random(seed)
        self.state = GameState()
        self.deck: List[Card] = []
        self.hand_counter = 0

    # Seat management -------------------------------------------------

    def assign_seat(self, name: str, is_human: bool = True) -> Player:
        display = name.strip()
        if not display:
            raise ValueError("NAME_REQUIRED")
        players = self.state.players
        if len(players) >= self.config.max_seats:
            raise RuntimeError("Table is full")
        player = Player(seat=len(players), name=display, is_human=is_human, chips=self.config.starting_chips)
        players.append(player)
        return player

    def player(self, seat: int) -> Player:
        if not isinstance(seat, int) or seat < 0 or seat >= len(self.state.players):
            raise ActionRejected("UNKNOWN_SEAT", f"No player in seat {seat}")
        return self.state.players[seat]

    # Hand lifecycle --------------------------------------------------

    def can_start_hand(self) -> bool:
        funded = [player for player in self.state.players if player.chips >= self.config.ante]
        return len(funded) >= 2

    def start_hand(self, requester: int = HOST_SEAT) -> List[Event]:
        state = self.state
        if requester != HOST_SEAT:
            raise ActionRejected("NOT_AUTHORITATIVE", "Only the host may start a hand")
        if state.phase not in (Phase.IDLE, Phase.SHOWDOWN):
            raise ActionRejected("HAND_IN_PROGRESS", "A hand is already running")
        if not self.can_start_hand():
            raise ActionRejected("NOT_ENOUGH_PLAYERS", "Need two players who can cover the ante")

        state.phase = Phase.IDLE
        ante = self.config.ante
        for player in state.players:
            player.reset_for_hand()
            if player.chips >= ante:
                player.chips -= ante
                player.current_bet = ante
                player.status = PlayerStatus.PLAYING
            else:
                player.status = PlayerStatus.LOST

        active = [player for player in state.players if player.status == PlayerStatus.PLAYING]
        self.rng.choice(active).is_dealer = True

        self.deck = build_deck(self.rng)
        for _ in range(3):
            for player in active:
                player.cards.extend(deal(self.deck, 1))

        state.pot = ante * len(active)
        state.current_round_bet = ante
        state.raise_count = 0
        state.round_count = 1
        state.comparing_initiator = None
        state.pending_duel = None
        state.winner = None
        state.current_turn = self.rng.choice(active).seat
        state.phase = Phase.DEALING
        self.hand_counter += 1

        return [self._event("GAME_START", None, "Hand started, dealing cards...", cue={"type": "GAME_START"})]

    def finish_deal(self) -> List[Event]:
        if self.state.phase != Phase.DEALING:
            raise RuntimeError("No deal in progress")
        self.state.phase = Phase.BETTING
        events = [self._event("BETTING", None, "Betting begins.")]
        events.extend(self._check_exhausted())
        return events

    def end_hand(self, winner_seat: int) -> List[Event]:
        """Award the whole pot to ``winner_seat`` and move to SHOWDOWN."""
        state = self.state
        winner = self.player(winner_seat)
        amount = state.pot
        winner.chips += amount
        winner.status = PlayerStatus.WON
        winner.mark(f"+{amount}", "positive")
        state.pot = 0
        state.winner = winner_seat
        state.comparing_initiator = None
        state.pending_duel = None
        state.phase = Phase.SHOWDOWN
        for player in state.players:
            player.has_seen_cards = True
        return [
            self._event(
                "POT_AWARD",
                winner_seat,
                f"*** {winner.name} wins the pot ({amount}) ***",
                cue={"type": "POT_AWARD", "playerId": winner_seat, "amount": amount},
                amount=amount,
            )
        ]

    # Action handling -------------------------------------------------

    def apply_action(
        self,
        seat: int,
        action: ActionType,
        amount: Optional[int] = None,
        target: Optional[int] = None,
    ) -> List[Event]:
        player = self.player(seat)
        if action == ActionType.COMPARE_TARGET:
            return self._compare_target(player, target)

        state = self.state
        if state.phase != Phase.BETTING:
            raise ActionRejected("WRONG_PHASE", f"Cannot {action} during {state.phase.value}")
        if state.current_turn != seat:
            raise ActionRejected("OUT_OF_TURN", "Not your turn")
        if player.status != PlayerStatus.PLAYING:
            raise ActionRejected("SEAT_NOT_ACTIVE", "Seat is not in the hand")

        if action == ActionType.FOLD:
            events = self._fold(player)
        elif action == ActionType.SEE_CARDS:
            events = self._see_cards(player)
        elif action == ActionType.CALL:
            events = self._call(player)
        elif action == ActionType.RAISE:
            events = self._raise(player, amount)
        elif action == ActionType.ALL_IN:
            events = self._all_in(player)
        elif action == ActionType.COMPARE_INIT:
            events = self._compare_init(player)
        else:
            raise ActionRejected("UNSUPPORTED", f"Unsupported action {action}")

        events.extend(self._check_last_standing())
        events.extend(self._check_exhausted())
        return events

    def _fold(self, player: Player) -> List[Event]:
        player.status = PlayerStatus.FOLDED
        player.mark("Fold", "negative")
        self._advance_turn()
        return [self._event("FOLD", player.seat, f"{player.name} folds.")]

    def _see_cards(self, player: Player) -> List[Event]:
        player.has_seen_cards = True
        player.mark("Looked", "neutral")
        return [self._event("SEE_CARDS", player.seat, f"{player.name} looks at their cards.")]

    def _call(self, player: Player) -> List[Event]:
        to_pay = max(0, self.state.current_round_bet - player.current_bet)
        if player.chips < to_pay:
            return self._all_in(player)
        self._commit(player, to_pay)
        player.mark(f"Call {to_pay}", "neutral")
        self._advance_turn()
        return [self._chip_event("CALL", player, to_pay, f"{player.name} calls {to_pay}.")]

    def _raise(self, player: Player, amount: Optional[int]) -> List[Event]:
        state = self.state
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise ActionRejected("BAD_AMOUNT", "Raise requires an integer total")
        if state.raise_count >= self.config.raise_cap:
            raise ActionRejected("RAISE_CAP", f"Raise limit reached ({self.config.raise_cap})")
        if amount <= state.current_round_bet:
            raise ActionRejected("RAISE_TOO_SMALL", "Raise must exceed the current bet")
        to_pay = amount - player.current_bet
        if to_pay > player.chips:
            raise ActionRejected("INSUFFICIENT_FUNDS", "Raise exceeds balance")

        self._commit(player, to_pay)
        state.current_round_bet = amount
        state.raise_count += 1
        player.mark(f"Raise to {amount}", "positive")
        self._advance_turn()
        return [self._chip_event("RAISE", player, to_pay, f"{player.name} raises to {amount}.")]

    def _all_in(self, player: Player) -> List[Event]:
        state = self.state
        paid = player.chips
        self._commit(player, paid)
        # No side pots: an all-in above the floor simply lifts the floor.
        if player.current_bet > state.current_round_bet:
            state.current_round_bet = player.current_bet
        player.mark("ALL IN", "positive")
        self._advance_turn()
        return [self._chip_event("ALL_IN", player, paid, f"{player.name} goes ALL-IN ({paid})!")]

    def _compare_init(self, player: Player) -> List[Event]:
        state = self.state
        cost = state.current_round_bet
        if player.chips < cost:
            raise ActionRejected("INSUFFICIENT_FUNDS", "Cannot afford to compare")
        player.chips -= cost
        state.pot += cost
        state.comparing_initiator = player.seat
        state.phase = Phase.COMPARING
        return [self._chip_event("COMPARE_INIT", player, cost, f"{player.name} calls for a comparison...")]

    def _compare_target(self, player: Player, target: Optional[int]) -> List[Event]:
        state = self.state
        if state.phase != Phase.COMPARING:
            raise ActionRejected("WRONG_PHASE", "No comparison in progress")
        if state.comparing_initiator != player.seat:
            raise ActionRejected("NOT_INITIATOR", "Only the initiator picks a target")
        if not isinstance(target, int) or target == player.seat or not 0 <= target < len(state.players):
            raise ActionRejected("BAD_TARGET", f"Invalid comparison target {target}")
        opponent = state.players[target]
        if opponent.status != PlayerStatus.PLAYING:
            raise ActionRejected("BAD_TARGET", f"Seat {target} is not in the hand")

        initiator_wins = beats(evaluate_hand(player.cards), evaluate_hand(opponent.cards))
        winner = player.seat if initiator_wins else opponent.seat
        state.pending_duel = DuelResult(seat_a=player.seat, seat_b=opponent.seat, winner=winner)
        state.phase = Phase.RESOLVING
        return [
            self._event(
                "COMPARE_START",
                player.seat,
                f"{player.name} challenges {opponent.name}...",
                cue={
                    "type": "COMPARE_START",
                    "data": {"seatA": player.seat, "seatB": opponent.seat, "winnerId": winner},
                },
                target=opponent.seat,
                winner=winner,
            )
        ]

    def resolve_duel(self) -> List[Event]:
        state = self.state
        duel = state.pending_duel
        if state.phase != Phase.RESOLVING or duel is None:
            raise RuntimeError("No duel to resolve")

        loser = state.players[duel.loser]
        winner = state.players[duel.winner]
        loser.status = PlayerStatus.LOST
        loser.mark("Lost duel", "negative")
        winner.mark("Won duel", "positive")
        state.pending_duel = None
        state.comparing_initiator = None
        state.phase = Phase.BETTING
        # Turn moves on from the seat that held it before the duel.
        self._advance_turn()

        events = [
            self._event(
                "COMPARE_RESULT",
                winner.seat,
                f"Result: {winner.name} wins the comparison!",
                loser=loser.seat,
            )
        ]
        events.extend(self._check_last_standing())
        events.extend(self._check_exhausted())
        return events

    # Helpers ---------------------------------------------------------

    def _advance_turn(self) -> None:
        state = self.state
        previous = state.current_turn
        state.current_turn = next_turn(state.players, previous)
        if state.current_turn <= previous:
            state.round_count += 1

    def _check_last_standing(self) -> List[Event]:
        state = self.state
        if state.phase in (Phase.IDLE, Phase.DEALING, Phase.SHOWDOWN):
            return []
        playing = state.playing_seats()
        if len(playing) != 1:
            return []
        return self.end_hand(playing[0])

    def _check_exhausted(self) -> List[Event]:
        """Settle the hand once no PLAYING seat has chips left to bet or compare with."""
        state = self.state
        if state.phase != Phase.BETTING:
            return []
        playing = [state.players[seat] for seat in state.playing_seats()]
        if len(playing) < 2 or any(player.chips > 0 for player in playing):
            return []

        best = playing[0]
        for player in playing[1:]:
            if beats(evaluate_hand(player.cards), evaluate_hand(best.cards)):
                best = player
        for player in playing:
            if player is not best:
                player.status = PlayerStatus.LOST
                player.mark("Lost showdown", "negative")
        events = [self._event("SHOWDOWN", None, "No chips left to bet, hands are compared.")]
        events.extend(self.end_hand(best.seat))
        return events

    def _commit(self, player: Player, amount: int) -> None:
        amount = min(amount, player.chips)
        player.chips -= amount
        player.current_bet += amount
        self.state.pot += amount

    def _chip_event(self, ev: str, player: Player, amount: int, log: str) -> Event:
        return self._event(ev, player.seat, log, cue={"type": "CHIP_FLY", "playerId": player.seat}, amount=amount)

    def _event(self, ev: str, seat: Optional[int], log: str, cue: Optional[Dict[str, object]] = None, **extra: object) -> Event:
        self.state.last_log = log
        event: Event = {"ev": ev, "seat": seat, "log": log}
        if cue is not None:
            event["cue"] = cue
        event.update(extra)
        return event
