from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from zjh.authority import AuthoritativeEngine
from zjh.cards import parse_cards
from zjh.game import GameEngine
from zjh.models import ActionType, TableConfig


def create_engine(
    *,
    seats: int = 3,
    starting_chips: int = 100_000,
    ante: int = 1_000,
    seed: int = 42,
) -> GameEngine:
    """Instantiate an engine with ``seats`` human players."""
    engine = GameEngine(TableConfig(starting_chips=starting_chips, ante=ante), seed=seed)
    for idx in range(seats):
        engine.assign_seat(f"Player{idx}")
    return engine


def start_hand(engine: GameEngine, first_turn: Optional[int] = None) -> None:
    engine.start_hand()
    engine.finish_deal()
    if first_turn is not None:
        engine.state.current_turn = first_turn


def give_cards(engine: GameEngine, seat: int, labels: Sequence[str]) -> None:
    engine.state.players[seat].cards = parse_cards(labels)


def perform_actions(engine: GameEngine, actions: Iterable[Tuple[int, ActionType, Optional[int]]]) -> None:
    """Apply a scripted sequence of actions (seat, action, amount)."""
    for seat, action, amount in actions:
        engine.apply_action(seat, action, amount)


def chips_in_play(engine: GameEngine) -> int:
    return sum(player.chips for player in engine.state.players) + engine.state.pot


def quick_config(**overrides: Any) -> TableConfig:
    # No presentation pauses so async paths finish immediately.
    values: Dict[str, Any] = {"deal_delay_ms": 0, "duel_delay_ms": 0}
    values.update(overrides)
    return TableConfig(**values)


def create_authority(humans: int = 1, bots: int = 0, seed: int = 7, **overrides: Any) -> AuthoritativeEngine:
    authority = AuthoritativeEngine(quick_config(**overrides), seed=seed)
    for idx in range(humans):
        authority.add_player(f"Human{idx}")
    authority.add_bots(bots)
    return authority


# Fake sockets so we can exercise async paths without opening real connections.
class DummyWebSocket:
    def __init__(self) -> None:
        self.sent: List[str] = []
        self.closed = False

    async def send(self, message: str) -> None:
        self.sent.append(message)

    async def close(self, *args: Any, **kwargs: Any) -> None:
        self.closed = True

    def frames(self) -> List[Dict[str, Any]]:
        return [json.loads(raw) for raw in self.sent]

    def game_messages(self, msg_type: Optional[str] = None) -> List[Dict[str, Any]]:
        messages = [frame["message"] for frame in self.frames() if frame.get("type") == "game-message"]
        if msg_type is None:
            return messages
        return [message for message in messages if message.get("type") == msg_type]
