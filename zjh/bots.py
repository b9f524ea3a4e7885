from __future__ import annotations

import random
from enum import Enum
from typing import Optional, Sequence

from .cards import Card
from .evaluator import HandEvaluation, HandType, evaluate_hand
from .models import ActionPayload, ActionType, GameState, PlayerStatus, TableConfig


_RNG = random.Random()

WEAK_HIGH_CARD_SCORE = 100_000  # below T-x-x
SMALL_BET = 2_000
LARGE_BET = 5_000
BLUFF_ROUNDS = 3
COMPARE_ROUNDS = 5


class BotDecision(str, Enum):
    FOLD = "FOLD"
    CALL = "CALL"
    RAISE = "RAISE"
    COMPARE = "COMPARE"


def decide(evaluation: HandEvaluation, current_round_bet: int, pot: int, round_count: int, bravery: float) -> BotDecision:
    """Policy table for a single draw of ``bravery`` in [0, 1)."""
    hand_type = evaluation.type

    weak = hand_type == HandType.SPECIAL_235 or (
        hand_type == HandType.HIGH_CARD and evaluation.score < WEAK_HIGH_CARD_SCORE
    )
    if weak:
        if bravery > 0.9 and round_count < BLUFF_ROUNDS:
            return BotDecision.RAISE
        if bravery > 0.7 and current_round_bet <= SMALL_BET:
            return BotDecision.CALL
        return BotDecision.FOLD

    if hand_type in (HandType.PAIR, HandType.HIGH_CARD):
        if current_round_bet > LARGE_BET and bravery < 0.4:
            return BotDecision.FOLD
        if bravery > 0.8:
            return BotDecision.RAISE
        if round_count > COMPARE_ROUNDS and bravery > 0.5:
            return BotDecision.COMPARE
        return BotDecision.CALL

    if hand_type in (HandType.FLUSH, HandType.STRAIGHT):
        return BotDecision.RAISE if bravery > 0.3 else BotDecision.CALL

    return BotDecision.RAISE


def bot_decision(
    cards: Sequence[Card],
    current_round_bet: int,
    pot: int,
    round_count: int,
    rng: Optional[random.Random] = None,
) -> BotDecision:
    bravery = (rng or _RNG).random()
    return decide(evaluate_hand(cards), current_round_bet, pot, round_count, bravery)


def raise_target(current_round_bet: int, min_raise: int) -> int:
    if current_round_bet >= min_raise:
        return current_round_bet + min_raise
    return min_raise * 2


def choose_action(
    state: GameState,
    seat: int,
    config: TableConfig,
    rng: Optional[random.Random] = None,
) -> ActionPayload:
    """Turn the policy's decision into a concrete action the engine will accept."""
    rng = rng or _RNG
    player = state.players[seat]
    decision = bot_decision(player.cards, state.current_round_bet, state.pot, state.round_count, rng)
    can_compare = player.chips >= state.current_round_bet

    if decision == BotDecision.FOLD:
        return ActionPayload(ActionType.FOLD, seat)

    if decision == BotDecision.COMPARE:
        if can_compare:
            return ActionPayload(ActionType.COMPARE_INIT, seat)
        return ActionPayload(ActionType.CALL, seat)

    if decision == BotDecision.RAISE:
        if state.raise_count >= config.raise_cap:
            if can_compare and rng.random() > 0.5:
                return ActionPayload(ActionType.COMPARE_INIT, seat)
            return ActionPayload(ActionType.CALL, seat)
        amount = raise_target(state.current_round_bet, config.min_raise)
        if amount - player.current_bet > player.chips:
            # CALL turns into ALL_IN inside the engine when short.
            return ActionPayload(ActionType.CALL, seat)
        return ActionPayload(ActionType.RAISE, seat, amount=amount)

    return ActionPayload(ActionType.CALL, seat)


def choose_compare_target(state: GameState, seat: int, rng: Optional[random.Random] = None) -> Optional[int]:
    opponents = [
        player.seat
        for player in state.players
        if player.status == PlayerStatus.PLAYING and player.seat != seat
    ]
    if not opponents:
        return None
    return (rng or _RNG).choice(opponents)
