"""Zha Jin Hua game core reused by the relay-hosted and offline tables."""

from .authority import AuthoritativeEngine
from .cards import Card, RANKS, SUITS, build_deck, deal, parse_cards
from .evaluator import HandEvaluation, HandType, beats, evaluate_hand
from .game import HOST_SEAT, ActionRejected, GameEngine, next_turn
from .mirror import ClientMirror
from .models import ActionPayload, ActionType, GameMessage, GameState, MessageType, Phase, Player, PlayerStatus, TableConfig

__all__ = [
    "AuthoritativeEngine",
    "Card",
    "RANKS",
    "SUITS",
    "build_deck",
    "deal",
    "parse_cards",
    "HandEvaluation",
    "HandType",
    "beats",
    "evaluate_hand",
    "HOST_SEAT",
    "ActionRejected",
    "GameEngine",
    "next_turn",
    "ClientMirror",
    "ActionPayload",
    "ActionType",
    "GameMessage",
    "GameState",
    "MessageType",
    "Phase",
    "Player",
    "PlayerStatus",
    "TableConfig",
]
