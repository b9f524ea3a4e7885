from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

import websockets
from websockets.asyncio.client import ClientConnection, connect

from zjh import protocol
from zjh.mirror import ClientMirror
from zjh.models import ActionType, GameState, MessageType

LOGGER = logging.getLogger("zjh_client")


class ClientSession:
    """A passive party: mirrors the host's snapshots and forwards intents."""

    def __init__(self, url: str, room_id: str) -> None:
        self.url = url
        self.room_id = room_id
        self.mirror = ClientMirror()
        self.websocket: Optional[ClientConnection] = None
        self.status = ""
        self.on_update: Optional[Callable[[Dict[str, Any]], None]] = None

    @property
    def seat(self) -> Optional[int]:
        return self.mirror.seat

    def view(self) -> Optional[GameState]:
        return self.mirror.state

    async def run(self) -> None:
        self.status = "Connecting..."
        try:
            async with connect(self.url) as websocket:
                self.websocket = websocket
                self.status = "Connected, joining room..."
                await self._send(protocol.join_room(self.room_id))
                async for raw in websocket:
                    await self.handle_frame(protocol.decode(raw))
            self.status = "Disconnected from server"
        except websockets.ConnectionClosed:
            self.status = "Disconnected from server"
        except (OSError, websockets.InvalidURI, websockets.InvalidHandshake) as exc:
            self.status = f"Connection failed: {exc}. Check the relay server."
            LOGGER.error("Relay connection failed: %s", exc)
        finally:
            self.websocket = None

    async def handle_frame(self, frame: Dict[str, Any]) -> None:
        frame_type = frame.get("type")
        if frame_type == protocol.CONNECTED:
            self.mirror.connection_id = frame.get("socketId")
        elif frame_type == protocol.GAME_MESSAGE:
            self._handle_game_message(frame.get("message"), frame.get("from"))
        elif frame_type == protocol.ERROR:
            self.status = f"Relay error: {frame.get('msg')}"

    def _handle_game_message(self, data: Any, sender: Optional[str]) -> None:
        try:
            message = protocol.message_from_wire(data)
            changed = self.mirror.handle(message, sender)
        except protocol.ProtocolError as exc:
            LOGGER.warning("Ignored malformed message: %s", exc)
            return
        if not changed:
            return
        if message.type == MessageType.WELCOME:
            self.status = f"Seat assigned (P{self.mirror.seat}). Waiting for the host to start..."
        elif self.on_update:
            self.on_update(message.payload)

    async def start_hand(self) -> bool:
        self.status = "Only the host can start a hand"
        return False

    async def act(self, action: ActionType, amount: Optional[int] = None, target: Optional[int] = None) -> bool:
        if self.websocket is None or self.mirror.seat is None:
            self.status = "Not seated yet"
            return False
        message = self.mirror.intent(action, amount=amount, target=target)
        await self._send(protocol.game_message(self.room_id, message))
        return True

    async def _send(self, frame: Dict[str, Any]) -> None:
        if self.websocket is None:
            return
        try:
            await self.websocket.send(protocol.encode(frame))
        except websockets.ConnectionClosed:
            self.status = "Disconnected from server"
