from __future__ import annotations

import asyncio
from typing import Callable, List, Optional

from zjh.authority import AuthoritativeEngine, Frame
from zjh.game import HOST_SEAT
from zjh.models import ActionPayload, ActionType, GameState, TableConfig


class OfflineTable:
    """Local game: the player in seat 0 owns the authoritative state."""

    def __init__(
        self,
        config: Optional[TableConfig] = None,
        bots: int = 2,
        name: str = "You",
        seed: Optional[int] = None,
    ) -> None:
        self.authority = AuthoritativeEngine(config, seed=seed)
        self.authority.add_player(name)
        self.authority.add_bots(bots)
        self.lock = asyncio.Lock()
        self.status = f"Offline table with {bots} computer opponents"
        self.on_update: Optional[Callable[[Frame], None]] = None

    @property
    def seat(self) -> int:
        return HOST_SEAT

    def view(self) -> GameState:
        return self.authority.snapshot()

    async def start_hand(self) -> bool:
        async with self.lock:
            frames = self.authority.start_hand(HOST_SEAT)
            await self._publish(frames)
            await self.authority.run_presentation(self._publish)
        return bool(frames)

    async def act(self, action: ActionType, amount: Optional[int] = None, target: Optional[int] = None) -> bool:
        request = ActionPayload(action=action, seat=HOST_SEAT, amount=amount, target=target)
        async with self.lock:
            frames = self.authority.submit(request, HOST_SEAT)
            await self._publish(frames)
            await self.authority.run_presentation(self._publish)
        return bool(frames)

    async def _publish(self, frames: List[Frame]) -> None:
        if self.on_update is None:
            return
        for payload in frames:
            self.on_update(payload)
