from __future__ import annotations

import copy
import logging
from collections import deque
from typing import Any, Deque, Dict, Optional

from .models import ActionPayload, ActionType, GameMessage, GameState, MessageType, Phase, PlayerStatus
from .protocol import action_message, state_from_payload

LOGGER = logging.getLogger("zjh_mirror")


class ClientMirror:
    """Read-only copy of the host's state, replaced wholesale on every STATE_SYNC.

    The mirror never applies a user's action itself; ``intent`` only packages
    an ACTION message for the host.
    """

    def __init__(self, log_limit: int = 50) -> None:
        self.connection_id: Optional[str] = None
        self.host_id: Optional[str] = None
        self.seat: Optional[int] = None
        self._state: Optional[GameState] = None
        self.logs: Deque[str] = deque(maxlen=log_limit)
        self.last_event: Optional[Dict[str, Any]] = None
        self.hand_started = False

    @property
    def state(self) -> Optional[GameState]:
        return copy.deepcopy(self._state)

    def handle(self, message: GameMessage, sender: Optional[str] = None) -> bool:
        """Apply a host message relayed from ``sender``. Returns True when the mirror changed.

        The sender of the adopted WELCOME is taken as the host; snapshots from
        anyone else are dropped.
        """
        if message.type == MessageType.WELCOME:
            return self.adopt_welcome(message.payload, sender)
        if message.type == MessageType.STATE_SYNC:
            if sender != self.host_id:
                LOGGER.warning("Dropped STATE_SYNC from %s; host is %s", sender, self.host_id)
                return False
            self.apply_state_sync(message.payload)
            return True
        # ACTION messages from other clients are addressed to the host only.
        return False

    def adopt_welcome(self, payload: Dict[str, Any], sender: Optional[str] = None) -> bool:
        addressed_to = payload.get("forConnectionId", payload.get("targetConnectionId"))
        if self.connection_id is None or addressed_to != self.connection_id:
            return False
        if self.seat is not None and sender != self.host_id:
            return False
        self.host_id = sender
        self.seat = int(payload["playerId"])
        LOGGER.info("Seat %s assigned to connection %s", self.seat, self.connection_id)
        return True

    def apply_state_sync(self, payload: Dict[str, Any]) -> GameState:
        self._state = state_from_payload(payload)
        event = payload.get("event")
        self.last_event = event if isinstance(event, dict) else None
        if self.last_event and self.last_event.get("type") == "GAME_START":
            self.hand_started = True
        last_log = payload.get("lastLog")
        if last_log:
            self.logs.append(last_log)
        return self.state

    # Views -----------------------------------------------------------

    def is_my_turn(self) -> bool:
        state = self._state
        if state is None or self.seat is None or self.seat >= len(state.players):
            return False
        return (
            state.phase == Phase.BETTING
            and state.current_turn == self.seat
            and state.players[self.seat].status == PlayerStatus.PLAYING
        )

    def is_selecting_target(self) -> bool:
        state = self._state
        return bool(state and state.phase == Phase.COMPARING and state.comparing_initiator == self.seat)

    # Intents ---------------------------------------------------------

    def intent(self, action: ActionType, amount: Optional[int] = None, target: Optional[int] = None) -> GameMessage:
        if self.seat is None:
            raise RuntimeError("No seat assigned yet")
        return action_message(ActionPayload(action=action, seat=self.seat, amount=amount, target=target))
