from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Sequence

RANKS = range(2, 15)  # 11=J, 12=Q, 13=K, 14=A
SUITS = "♥♦♣♠"

RANK_LABELS = {10: "T", 11: "J", 12: "Q", 13: "K", 14: "A"}
RANK_FROM_LABEL = {label: rank for rank, label in RANK_LABELS.items()}
SUIT_FROM_LETTER = {"h": "♥", "d": "♦", "c": "♣", "s": "♠"}


@dataclass(frozen=True)
class Card:
    suit: str
    rank: int

    def __post_init__(self) -> None:
        if self.rank not in RANKS:
            raise ValueError(f"Invalid rank: {self.rank}")
        if self.suit not in SUITS:
            raise ValueError(f"Invalid suit: {self.suit}")

    @property
    def id(self) -> str:
        return f"{self.suit}-{self.rank}"

    @property
    def label(self) -> str:
        return f"{RANK_LABELS.get(self.rank, str(self.rank))}{self.suit}"


def build_deck(rng: Optional[random.Random] = None) -> List[Card]:
    rng = rng or random.Random()
    deck = [Card(suit, rank) for suit in SUITS for rank in RANKS]
    rng.shuffle(deck)
    return deck


def deal(deck: List[Card], count: int) -> List[Card]:
    """Pop ``count`` cards off the end of the deck."""
    if len(deck) < count:
        raise ValueError("Not enough cards left in deck")
    return [deck.pop() for _ in range(count)]


def cards_to_labels(cards: Sequence[Card]) -> List[str]:
    return [card.label for card in cards]


def parse_label(label: str) -> Card:
    # Accepts "Ah", "A♥", "10d" and "Td".
    if len(label) < 2:
        raise ValueError(f"Invalid card label: {label}")
    rank_part, suit_part = label[:-1], label[-1]
    suit = SUIT_FROM_LETTER.get(suit_part.lower(), suit_part)
    if rank_part.upper() in RANK_FROM_LABEL:
        rank = RANK_FROM_LABEL[rank_part.upper()]
    elif rank_part.isdigit():
        rank = int(rank_part)
    else:
        raise ValueError(f"Invalid card label: {label}")
    return Card(suit, rank)


def parse_cards(labels: Sequence[str]) -> List[Card]:
    return [parse_label(label) for label in labels]
