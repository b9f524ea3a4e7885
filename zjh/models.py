from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .cards import Card


class Phase(str, Enum):
    IDLE = "IDLE"
    DEALING = "DEALING"
    BETTING = "BETTING"
    COMPARING = "COMPARING"
    RESOLVING = "RESOLVING"
    SHOWDOWN = "SHOWDOWN"


class PlayerStatus(str, Enum):
    WAITING = "WAITING"
    PLAYING = "PLAYING"
    FOLDED = "FOLDED"
    LOST = "LOST"
    WON = "WON"


class ActionType(str, Enum):
    FOLD = "FOLD"
    CALL = "CALL"
    RAISE = "RAISE"
    ALL_IN = "ALL_IN"
    SEE_CARDS = "SEE_CARDS"
    COMPARE_INIT = "COMPARE_INIT"
    COMPARE_TARGET = "COMPARE_TARGET"


class MessageType(str, Enum):
    WELCOME = "WELCOME"
    STATE_SYNC = "STATE_SYNC"
    ACTION = "ACTION"


@dataclass
class TableConfig:
    max_seats: int = 5
    starting_chips: int = 1_000_000
    ante: int = 1_000
    min_raise: int = 1_000
    raise_cap: int = 10
    deal_delay_ms: int = 300
    duel_delay_ms: int = 2_500
    max_bot_steps: int = 500


@dataclass
class Player:
    seat: int
    name: str
    is_human: bool
    chips: int
    cards: List[Card] = field(default_factory=list)
    has_seen_cards: bool = False
    status: PlayerStatus = PlayerStatus.WAITING
    current_bet: int = 0
    is_dealer: bool = False
    last_action: Optional[str] = None
    last_action_type: Optional[str] = None  # positive / negative / neutral

    def reset_for_hand(self) -> None:
        self.cards = []
        self.has_seen_cards = False
        self.current_bet = 0
        self.is_dealer = False
        self.last_action = None
        self.last_action_type = None

    def mark(self, label: str, polarity: str) -> None:
        self.last_action = label
        self.last_action_type = polarity


@dataclass(frozen=True)
class DuelResult:
    seat_a: int
    seat_b: int
    winner: int

    @property
    def loser(self) -> int:
        return self.seat_b if self.winner == self.seat_a else self.seat_a


@dataclass
class GameState:
    # Canonical table state. Only the authoritative engine mutates it.
    phase: Phase = Phase.IDLE
    pot: int = 0
    current_round_bet: int = 0
    current_turn: int = 0
    raise_count: int = 0
    comparing_initiator: Optional[int] = None
    winner: Optional[int] = None
    players: List[Player] = field(default_factory=list)
    last_log: Optional[str] = None
    pending_duel: Optional[DuelResult] = None
    round_count: int = 1

    def playing_seats(self) -> List[int]:
        return [player.seat for player in self.players if player.status == PlayerStatus.PLAYING]


@dataclass
class ActionPayload:
    action: ActionType
    seat: int
    amount: Optional[int] = None
    target: Optional[int] = None


@dataclass
class GameMessage:
    type: MessageType
    payload: Dict[str, Any] = field(default_factory=dict)
