from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from .cards import Card


class HandType(str, Enum):
    SPECIAL_235 = "SPECIAL_235"
    HIGH_CARD = "HIGH_CARD"
    PAIR = "PAIR"
    STRAIGHT = "STRAIGHT"
    FLUSH = "FLUSH"
    STRAIGHT_FLUSH = "STRAIGHT_FLUSH"
    LEOPARD = "LEOPARD"


# Weakest to strongest. SPECIAL_235 only ever wins against LEOPARD.
STRENGTH = {
    HandType.SPECIAL_235: 0,
    HandType.HIGH_CARD: 1,
    HandType.PAIR: 2,
    HandType.STRAIGHT: 3,
    HandType.FLUSH: 4,
    HandType.STRAIGHT_FLUSH: 5,
    HandType.LEOPARD: 6,
}

LABELS = {
    HandType.SPECIAL_235: "Special 2-3-5",
    HandType.HIGH_CARD: "High Card",
    HandType.PAIR: "Pair",
    HandType.STRAIGHT: "Straight",
    HandType.FLUSH: "Flush",
    HandType.STRAIGHT_FLUSH: "Straight Flush",
    HandType.LEOPARD: "Leopard",
}


@dataclass(frozen=True)
class HandEvaluation:
    type: HandType
    score: int
    label: str


INVALID_HAND = HandEvaluation(HandType.HIGH_CARD, 0, "Invalid")


def _evaluation(hand_type: HandType, score: int) -> HandEvaluation:
    return HandEvaluation(hand_type, score, LABELS[hand_type])


def _spread(ranks: Sequence[int]) -> int:
    return ranks[0] * 10_000 + ranks[1] * 100 + ranks[2]


def evaluate_hand(cards: Sequence[Card]) -> HandEvaluation:
    """Rank a three-card hand. Anything other than three cards yields INVALID_HAND."""
    if len(cards) != 3:
        return INVALID_HAND

    ranks = sorted((card.rank for card in cards), reverse=True)
    is_flush = len({card.suit for card in cards}) == 1
    # Ace is high only: A-K-Q runs, A-2-3 does not.
    is_straight = ranks[0] - ranks[1] == 1 and ranks[1] - ranks[2] == 1

    if ranks[0] == ranks[2]:
        return _evaluation(HandType.LEOPARD, ranks[0])
    if set(ranks) == {2, 3, 5} and not is_flush:
        return _evaluation(HandType.SPECIAL_235, 0)
    if is_flush and is_straight:
        return _evaluation(HandType.STRAIGHT_FLUSH, ranks[0])
    if is_flush:
        return _evaluation(HandType.FLUSH, _spread(ranks))
    if is_straight:
        return _evaluation(HandType.STRAIGHT, ranks[0])
    if ranks[0] == ranks[1]:
        return _evaluation(HandType.PAIR, ranks[0] * 100 + ranks[2])
    if ranks[1] == ranks[2]:
        return _evaluation(HandType.PAIR, ranks[1] * 100 + ranks[0])
    return _evaluation(HandType.HIGH_CARD, _spread(ranks))


def beats(hand_a: HandEvaluation, hand_b: HandEvaluation) -> bool:
    """True iff ``hand_a`` strictly beats ``hand_b``; ties go to ``hand_b``."""
    if hand_a.type == HandType.SPECIAL_235 and hand_b.type == HandType.LEOPARD:
        return True
    if hand_a.type == HandType.LEOPARD and hand_b.type == HandType.SPECIAL_235:
        return False
    if STRENGTH[hand_a.type] != STRENGTH[hand_b.type]:
        return STRENGTH[hand_a.type] > STRENGTH[hand_b.type]
    return hand_a.score > hand_b.score


def compare_cards(cards_a: Sequence[Card], cards_b: Sequence[Card]) -> bool:
    return beats(evaluate_hand(cards_a), evaluate_hand(cards_b))
