from __future__ import annotations

import asyncio
import copy
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .bots import choose_action, choose_compare_target
from .game import HOST_SEAT, ActionRejected, Event, GameEngine
from .models import ActionPayload, ActionType, GameState, Phase, Player, PlayerStatus, TableConfig
from .protocol import state_sync_payload

LOGGER = logging.getLogger("zjh_authority")

Frame = Dict[str, Any]
Publisher = Callable[[List[Frame]], Awaitable[None]]


class AuthoritativeEngine:
    """The single writer of a table's GameState.

    Every accepted mutation yields one STATE_SYNC payload ("frame") per engine
    event, each carrying the full snapshot. Rejected or unauthorized requests
    yield no frames and leave the state as it was. After any human action the
    engine plays out bot turns until a human must act, the hand needs a
    presentation pause (DEALING / RESOLVING), or ``max_bot_steps`` is reached.
    """

    def __init__(self, config: Optional[TableConfig] = None, seed: Optional[int] = None) -> None:
        self.config = config or TableConfig()
        self.engine = GameEngine(self.config, seed=seed)

    # Seats -----------------------------------------------------------

    def add_player(self, name: str, is_human: bool = True) -> Player:
        return self.engine.assign_seat(name, is_human=is_human)

    def add_bots(self, count: int) -> List[Player]:
        start = len(self.engine.state.players)
        return [self.add_player(f"Bot {start + idx}", is_human=False) for idx in range(count)]

    @property
    def phase(self) -> Phase:
        return self.engine.state.phase

    def snapshot(self) -> GameState:
        return copy.deepcopy(self.engine.state)

    def sync_payload(self, last_log: Optional[str] = None) -> Frame:
        return state_sync_payload(self.engine.state, last_log=last_log)

    # Hand lifecycle --------------------------------------------------

    def start_hand(self, actor_seat: int = HOST_SEAT) -> List[Frame]:
        try:
            events = self.engine.start_hand(requester=actor_seat)
        except ActionRejected as exc:
            LOGGER.warning("Rejected start_hand seat=%s reason=%s", actor_seat, exc.code)
            return []
        LOGGER.info("Hand %s started; pot=%s", self.engine.hand_counter, self.engine.state.pot)
        return self._frames(events)

    def finish_deal(self) -> List[Frame]:
        frames = self._frames(self.engine.finish_deal())
        frames.extend(self.run_bots())
        return frames

    def resolve_duel(self) -> List[Frame]:
        frames = self._frames(self.engine.resolve_duel())
        frames.extend(self.run_bots())
        return frames

    async def run_presentation(self, publish: Publisher) -> None:
        """Apply pending DEALING/RESOLVING transitions once their delay elapses."""
        while self.phase in (Phase.DEALING, Phase.RESOLVING):
            if self.phase == Phase.DEALING:
                await asyncio.sleep(self.config.deal_delay_ms / 1000)
                frames = self.finish_deal()
            else:
                await asyncio.sleep(self.config.duel_delay_ms / 1000)
                frames = self.resolve_duel()
            await publish(frames)

    # Actions ---------------------------------------------------------

    def submit(self, request: ActionPayload, actor_seat: Optional[int]) -> List[Frame]:
        """Validate and apply a human's request made from ``actor_seat``."""
        if actor_seat is None or request.seat != actor_seat:
            self._drop(request, "NOT_AUTHORIZED")
            return []
        try:
            player = self.engine.player(request.seat)
        except ActionRejected as exc:
            self._drop(request, exc.code)
            return []
        if not player.is_human:
            self._drop(request, "NOT_AUTHORIZED")
            return []

        try:
            events = self.engine.apply_action(request.seat, request.action, request.amount, request.target)
        except ActionRejected as exc:
            self._drop(request, exc.code)
            return []

        LOGGER.debug(
            "Applied action seat=%s action=%s amount=%s target=%s",
            request.seat,
            request.action.value,
            request.amount,
            request.target,
        )
        frames = self._frames(events)
        frames.extend(self.run_bots())
        return frames

    def run_bots(self) -> List[Frame]:
        frames: List[Frame] = []
        for _ in range(self.config.max_bot_steps):
            seat = self._bot_to_act()
            if seat is None:
                return frames
            frames.extend(self._frames(self._bot_turn(seat)))
        if self._bot_to_act() is not None:
            LOGGER.warning("Bot cascade paused after %s steps", self.config.max_bot_steps)
        return frames

    def _bot_to_act(self) -> Optional[int]:
        state = self.engine.state
        if state.phase != Phase.BETTING or not state.players:
            return None
        player = state.players[state.current_turn]
        if player.is_human or player.status != PlayerStatus.PLAYING:
            return None
        return player.seat

    def _bot_turn(self, seat: int) -> List[Event]:
        engine = self.engine
        request = choose_action(engine.state, seat, self.config, engine.rng)
        try:
            events = engine.apply_action(seat, request.action, request.amount)
        except ActionRejected as exc:
            LOGGER.warning("Bot seat=%s action=%s rejected (%s); calling instead", seat, request.action.value, exc.code)
            events = engine.apply_action(seat, ActionType.CALL)

        if engine.state.phase == Phase.COMPARING and engine.state.comparing_initiator == seat:
            target = choose_compare_target(engine.state, seat, engine.rng)
            if target is None:
                events.extend(engine.end_hand(seat))
            else:
                events.extend(engine.apply_action(seat, ActionType.COMPARE_TARGET, target=target))
        return events

    def _drop(self, request: ActionPayload, reason: str) -> None:
        LOGGER.warning(
            "Rejected action seat=%s action=%s amount=%s reason=%s",
            request.seat,
            request.action.value,
            request.amount,
            reason,
        )

    def _frames(self, events: List[Event]) -> List[Frame]:
        state = self.engine.state
        return [state_sync_payload(state, event.get("cue"), event.get("log")) for event in events]
