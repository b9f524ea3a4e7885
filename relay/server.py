from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Dict, List, Optional, Set

import websockets
from websockets.asyncio.server import ServerConnection, serve
from websockets.http11 import Request, Response

from zjh import protocol

LOGGER = logging.getLogger("zjh_relay")

HEALTH_PATHS = {"/", "/health", "/healthz"}
HEALTH_BODY = "Royal 235 relay server is running OK\n"

# RelayServer forwards room-scoped frames between parties. It knows nothing
# about the game: messages are passed through untouched.


@dataclass
class RelayMember:
    socket_id: str
    websocket: ServerConnection
    rooms: Set[str] = field(default_factory=set)


class RelayServer:
    def __init__(self) -> None:
        self.rooms: Dict[str, Set[str]] = {}
        self.members: Dict[str, RelayMember] = {}

    async def start(self, host: str = "0.0.0.0", port: int = 3000) -> None:
        async with serve(self._handle_connection, host, port, process_request=process_request):
            LOGGER.info("Relay server listening on %s:%s", host, port)
            await asyncio.Future()

    async def _handle_connection(self, websocket: ServerConnection) -> None:
        member = self.register(websocket)
        LOGGER.info("[Connect] %s", member.socket_id)
        await self._send(websocket, {"type": protocol.CONNECTED, "socketId": member.socket_id})
        try:
            async for raw in websocket:
                await self.handle_frame(member, protocol.decode(raw))
        except websockets.ConnectionClosed:
            pass
        finally:
            await self.unregister(member)

    def register(self, websocket: ServerConnection, socket_id: Optional[str] = None) -> RelayMember:
        member = RelayMember(socket_id=socket_id or uuid.uuid4().hex, websocket=websocket)
        self.members[member.socket_id] = member
        return member

    async def unregister(self, member: RelayMember) -> None:
        self.members.pop(member.socket_id, None)
        rooms = sorted(member.rooms)
        for room_id in rooms:
            occupants = self.rooms.get(room_id)
            if occupants is None:
                continue
            occupants.discard(member.socket_id)
            if not occupants:
                self.rooms.pop(room_id, None)
        member.rooms.clear()
        LOGGER.info("[Disconnect] %s", member.socket_id)
        for room_id in rooms:
            await self._broadcast(
                room_id,
                {"type": protocol.PLAYER_DISCONNECTED, "socketId": member.socket_id},
                exclude=member.socket_id,
            )

    async def handle_frame(self, member: RelayMember, frame: Dict[str, Any]) -> None:
        frame_type = frame.get("type")
        if frame_type == protocol.JOIN_ROOM:
            await self._join(member, frame.get("roomId"))
        elif frame_type == protocol.GAME_MESSAGE:
            await self._relay(member, frame)
        else:
            await self._send_error(member.websocket, code="UNKNOWN_TYPE", msg="Unsupported frame type")

    async def _join(self, member: RelayMember, room_id: Any) -> None:
        if not isinstance(room_id, str) or not room_id.strip():
            await self._send_error(member.websocket, code="BAD_ROOM", msg="roomId required")
            return
        room_id = room_id.strip()
        self.rooms.setdefault(room_id, set()).add(member.socket_id)
        member.rooms.add(room_id)
        LOGGER.info("[Join] %s joined room %s", member.socket_id, room_id)
        await self._broadcast(
            room_id,
            {"type": protocol.PLAYER_CONNECTED, "socketId": member.socket_id},
            exclude=member.socket_id,
        )

    async def _relay(self, member: RelayMember, frame: Dict[str, Any]) -> None:
        room_id = frame.get("roomId")
        if not isinstance(room_id, str) or not room_id:
            return
        if room_id not in member.rooms:
            await self._send_error(member.websocket, code="NOT_IN_ROOM", msg="Join the room first")
            return
        await self._broadcast(
            room_id,
            {
                "type": protocol.GAME_MESSAGE,
                "roomId": room_id,
                "message": frame.get("message"),
                "from": member.socket_id,
            },
            exclude=member.socket_id,
        )

    async def _broadcast(self, room_id: str, frame: Dict[str, Any], exclude: Optional[str] = None) -> None:
        targets: List[ServerConnection] = [
            self.members[socket_id].websocket
            for socket_id in self.rooms.get(room_id, set())
            if socket_id != exclude and socket_id in self.members
        ]
        if not targets:
            return
        message = protocol.encode(frame)
        await asyncio.gather(*(socket.send(message) for socket in targets), return_exceptions=True)

    async def _send(self, websocket: ServerConnection, frame: Dict[str, Any]) -> None:
        try:
            await websocket.send(protocol.encode(frame))
        except websockets.ConnectionClosed:
            pass

    async def _send_error(self, websocket: ServerConnection, code: str, msg: str) -> None:
        await self._send(websocket, {"type": protocol.ERROR, "code": code, "msg": msg})


def process_request(connection: ServerConnection, request: Request) -> Optional[Response]:
    """Answer plain HTTP health checks; let WebSocket upgrades through."""
    if request.headers.get("Upgrade", "").lower() == "websocket":
        return None
    path = request.path.split("?", 1)[0]
    if path in HEALTH_PATHS:
        return connection.respond(HTTPStatus.OK, HEALTH_BODY)
    return connection.respond(HTTPStatus.NOT_FOUND, "not found\n")
