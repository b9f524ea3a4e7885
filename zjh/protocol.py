"""Wire format for relay frames and the game messages riding inside them.

Relay frames are flat JSON objects keyed by ``type``:

* ``connected``            relay -> party, carries the party's own ``socketId``
* ``join-room``            party -> relay
* ``player-connected``     relay -> room, a new member's ``socketId``
* ``player-disconnected``  relay -> room
* ``game-message``         either way; ``message`` is forwarded verbatim and
                           the relay stamps the sender's id in ``from``

``message`` is a GameMessage: ``{"type": WELCOME|STATE_SYNC|ACTION, "payload": {...}}``
with camelCase payload keys.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from .cards import Card
from .models import (
    ActionPayload,
    ActionType,
    GameMessage,
    GameState,
    MessageType,
    Phase,
    Player,
    PlayerStatus,
)

CONNECTED = "connected"
JOIN_ROOM = "join-room"
PLAYER_CONNECTED = "player-connected"
PLAYER_DISCONNECTED = "player-disconnected"
GAME_MESSAGE = "game-message"
ERROR = "error"


class ProtocolError(ValueError):
    pass


# Framing -----------------------------------------------------------


def encode(frame: Dict[str, Any]) -> str:
    return json.dumps(frame, ensure_ascii=False)


def decode(raw: Any) -> Dict[str, Any]:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    try:
        frame = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return {}
    return frame if isinstance(frame, dict) else {}


def join_room(room_id: str) -> Dict[str, Any]:
    return {"type": JOIN_ROOM, "roomId": room_id}


def game_message(room_id: str, message: GameMessage) -> Dict[str, Any]:
    return {"type": GAME_MESSAGE, "roomId": room_id, "message": message_to_wire(message)}


def message_to_wire(message: GameMessage) -> Dict[str, Any]:
    return {"type": message.type.value, "payload": message.payload}


def message_from_wire(data: Any) -> GameMessage:
    if not isinstance(data, dict):
        raise ProtocolError("message must be an object")
    try:
        msg_type = MessageType(data.get("type"))
    except ValueError as exc:
        raise ProtocolError(f"Unknown message type {data.get('type')!r}") from exc
    payload = data.get("payload") or {}
    if not isinstance(payload, dict):
        raise ProtocolError("payload must be an object")
    return GameMessage(msg_type, payload)


# Game messages -----------------------------------------------------


def welcome(seat: int, connection_id: str) -> GameMessage:
    return GameMessage(
        MessageType.WELCOME,
        {"playerId": seat, "targetConnectionId": connection_id, "forConnectionId": connection_id},
    )


def action_message(request: ActionPayload) -> GameMessage:
    payload: Dict[str, Any] = {"action": request.action.value, "playerId": request.seat}
    if request.amount is not None:
        payload["amount"] = request.amount
    if request.target is not None:
        payload["targetId"] = request.target
    return GameMessage(MessageType.ACTION, payload)


def _optional_int(payload: Dict[str, Any], key: str) -> Optional[int]:
    value = payload.get(key)
    if value is None:
        return None
    if isinstance(value, bool):
        raise ProtocolError(f"{key} must be an integer")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value)
    if not isinstance(value, int):
        raise ProtocolError(f"{key} must be an integer")
    return value


def parse_action(payload: Dict[str, Any]) -> ActionPayload:
    try:
        action = ActionType(payload.get("action"))
    except ValueError as exc:
        raise ProtocolError(f"Unknown action {payload.get('action')!r}") from exc
    seat = _optional_int(payload, "playerId")
    if seat is None:
        raise ProtocolError("playerId required")
    return ActionPayload(
        action=action,
        seat=seat,
        amount=_optional_int(payload, "amount"),
        target=_optional_int(payload, "targetId"),
    )


# Snapshots ---------------------------------------------------------


def card_to_wire(card: Card) -> Dict[str, Any]:
    return {"suit": card.suit, "rank": card.rank, "id": card.id}


def card_from_wire(data: Dict[str, Any]) -> Card:
    return Card(data["suit"], int(data["rank"]))


def player_to_wire(player: Player) -> Dict[str, Any]:
    return {
        "id": player.seat,
        "name": player.name,
        "isHuman": player.is_human,
        "chips": player.chips,
        "cards": [card_to_wire(card) for card in player.cards],
        "hasSeenCards": player.has_seen_cards,
        "status": player.status.value,
        "currentBet": player.current_bet,
        "isDealer": player.is_dealer,
        "lastAction": player.last_action,
        "lastActionType": player.last_action_type,
    }


def player_from_wire(data: Dict[str, Any]) -> Player:
    return Player(
        seat=int(data["id"]),
        name=data.get("name", f"Seat {data['id']}"),
        is_human=bool(data.get("isHuman", True)),
        chips=int(data.get("chips", 0)),
        cards=[card_from_wire(card) for card in data.get("cards", [])],
        has_seen_cards=bool(data.get("hasSeenCards", False)),
        status=PlayerStatus(data.get("status", PlayerStatus.WAITING.value)),
        current_bet=int(data.get("currentBet", 0)),
        is_dealer=bool(data.get("isDealer", False)),
        last_action=data.get("lastAction"),
        last_action_type=data.get("lastActionType"),
    )


def state_sync_payload(
    state: GameState,
    event: Optional[Dict[str, Any]] = None,
    last_log: Optional[str] = None,
) -> Dict[str, Any]:
    """Full snapshot of ``state``; the event cue and log line are one-shot extras."""
    payload: Dict[str, Any] = {
        "players": [player_to_wire(player) for player in state.players],
        "pot": state.pot,
        "gamePhase": state.phase.value,
        "currentTurnIndex": state.current_turn,
        "currentRoundBet": state.current_round_bet,
        "winnerId": state.winner,
        "comparingInitiatorId": state.comparing_initiator,
        "raiseCount": state.raise_count,
    }
    if event is not None:
        payload["event"] = event
    if last_log:
        payload["lastLog"] = last_log
    return payload


def state_sync(state: GameState, event: Optional[Dict[str, Any]] = None, last_log: Optional[str] = None) -> GameMessage:
    return GameMessage(MessageType.STATE_SYNC, state_sync_payload(state, event, last_log))


def state_from_payload(payload: Dict[str, Any]) -> GameState:
    try:
        players: List[Player] = [player_from_wire(item) for item in payload.get("players", [])]
        return GameState(
            phase=Phase(payload.get("gamePhase", Phase.IDLE.value)),
            pot=int(payload.get("pot", 0)),
            current_round_bet=int(payload.get("currentRoundBet", 0)),
            current_turn=int(payload.get("currentTurnIndex", 0)),
            raise_count=int(payload.get("raiseCount", 0)),
            comparing_initiator=payload.get("comparingInitiatorId"),
            winner=payload.get("winnerId"),
            players=players,
            last_log=payload.get("lastLog"),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ProtocolError(f"Malformed STATE_SYNC: {exc}") from exc
