from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

import websockets
from websockets.asyncio.client import ClientConnection, connect

from zjh import protocol
from zjh.authority import AuthoritativeEngine, Frame
from zjh.game import HOST_SEAT
from zjh.models import ActionPayload, ActionType, GameMessage, GameState, MessageType, TableConfig

LOGGER = logging.getLogger("zjh_host")

# HostSession glues the authoritative engine to the relay. Every network
# concern lives here; AuthoritativeEngine stays transport-free.


class HostSession:
    def __init__(
        self,
        url: str,
        room_id: str,
        config: Optional[TableConfig] = None,
        host_name: str = "Host",
        bots: int = 0,
        seed: Optional[int] = None,
    ) -> None:
        self.url = url
        self.room_id = room_id
        self.authority = AuthoritativeEngine(config, seed=seed)
        self.authority.add_player(host_name)
        self.authority.add_bots(bots)
        self.connections: Dict[str, int] = {}
        self.websocket: Optional[ClientConnection] = None
        self.socket_id: Optional[str] = None
        self.lock = asyncio.Lock()
        self.status = ""
        self.on_update: Optional[Callable[[Frame], None]] = None

    @property
    def seat(self) -> int:
        return HOST_SEAT

    def view(self) -> GameState:
        return self.authority.snapshot()

    async def run(self) -> None:
        self.status = "Connecting to relay..."
        try:
            async with connect(self.url) as websocket:
                self.websocket = websocket
                await self._send(protocol.join_room(self.room_id))
                self.status = f"Hosting room {self.room_id}; waiting for players..."
                LOGGER.info("Hosting room %s via %s", self.room_id, self.url)
                async for raw in websocket:
                    await self.handle_frame(protocol.decode(raw))
            self.status = "Relay closed the connection"
        except websockets.ConnectionClosed:
            self.status = "Disconnected from relay"
        except (OSError, websockets.InvalidURI, websockets.InvalidHandshake) as exc:
            self.status = f"Connection failed: {exc}"
            LOGGER.error("Relay connection failed: %s", exc)
        finally:
            self.websocket = None

    async def handle_frame(self, frame: Dict[str, Any]) -> None:
        frame_type = frame.get("type")
        if frame_type == protocol.CONNECTED:
            self.socket_id = frame.get("socketId")
        elif frame_type == protocol.PLAYER_CONNECTED:
            await self._seat_joiner(frame.get("socketId"))
        elif frame_type == protocol.PLAYER_DISCONNECTED:
            seat = self.connections.get(frame.get("socketId"))
            if seat is not None:
                # No forfeit policy: the seat keeps its place and may stall the table.
                LOGGER.info("Seat %s lost its connection", seat)
        elif frame_type == protocol.GAME_MESSAGE:
            await self._handle_game_message(frame)
        elif frame_type == protocol.ERROR:
            LOGGER.warning("Relay error %s: %s", frame.get("code"), frame.get("msg"))

    async def _seat_joiner(self, socket_id: Any) -> None:
        if not isinstance(socket_id, str) or not socket_id:
            return
        async with self.lock:
            seat = self.connections.get(socket_id)
            log_line = None
            if seat is None:
                name = f"Player {len(self.authority.engine.state.players)}"
                try:
                    player = self.authority.add_player(name)
                except RuntimeError:
                    LOGGER.warning("Table full; no seat for connection %s", socket_id)
                    return
                seat = player.seat
                self.connections[socket_id] = seat
                log_line = f"{name} connected, seat {seat} assigned."
                LOGGER.info("Seat %s assigned to connection %s", seat, socket_id)
            await self._send_message(protocol.welcome(seat, socket_id))
            await self._publish([self.authority.sync_payload(last_log=log_line)])

    async def _handle_game_message(self, frame: Dict[str, Any]) -> None:
        try:
            message = protocol.message_from_wire(frame.get("message"))
            if message.type != MessageType.ACTION:
                return
            request = protocol.parse_action(message.payload)
        except protocol.ProtocolError as exc:
            LOGGER.warning("Dropped malformed message from %s: %s", frame.get("from"), exc)
            return
        await self.submit(request, self.connections.get(frame.get("from")))

    # Authoritative mutations ------------------------------------------

    async def start_hand(self) -> bool:
        async with self.lock:
            frames = self.authority.start_hand(HOST_SEAT)
            await self._publish(frames)
            await self.authority.run_presentation(self._publish)
        return bool(frames)

    async def act(self, action: ActionType, amount: Optional[int] = None, target: Optional[int] = None) -> bool:
        request = ActionPayload(action=action, seat=HOST_SEAT, amount=amount, target=target)
        return await self.submit(request, HOST_SEAT)

    async def submit(self, request: ActionPayload, actor_seat: Optional[int]) -> bool:
        async with self.lock:
            frames = self.authority.submit(request, actor_seat)
            await self._publish(frames)
            await self.authority.run_presentation(self._publish)
        return bool(frames)

    # Transport --------------------------------------------------------

    async def _publish(self, frames: List[Frame]) -> None:
        for payload in frames:
            await self._send_message(GameMessage(MessageType.STATE_SYNC, payload))
            if self.on_update:
                self.on_update(payload)

    async def _send_message(self, message: GameMessage) -> None:
        await self._send(protocol.game_message(self.room_id, message))

    async def _send(self, frame: Dict[str, Any]) -> None:
        if self.websocket is None:
            return
        try:
            await self.websocket.send(protocol.encode(frame))
        except websockets.ConnectionClosed:
            self.status = "Disconnected from relay"
