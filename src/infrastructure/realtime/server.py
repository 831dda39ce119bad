"""Socket.IO server, ASGI wrapper and the project namespace."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Optional
from uuid import UUID

import socketio

from core.config import settings
from infrastructure.auth.provider import IAuthProvider
from infrastructure.realtime.broadcaster import project_room, user_room

logger = logging.getLogger(__name__)

SOCKETIO_PATH = "socket.io"
SOCKETIO_PING_INTERVAL = 25  # seconds
SOCKETIO_PING_TIMEOUT = 20  # seconds

MembershipCheck = Callable[[UUID, UUID], Awaitable[bool]]


def create_socketio_server() -> socketio.AsyncServer:
    """Create the Socket.IO server (ASGI mode, in-process client manager)."""
    return socketio.AsyncServer(
        async_mode="asgi",
        cors_allowed_origins=settings.cors_origins_list,
        ping_interval=SOCKETIO_PING_INTERVAL,
        ping_timeout=SOCKETIO_PING_TIMEOUT,
        logger=False,
        engineio_logger=False,
    )


def create_socketio_app(sio: socketio.AsyncServer, other_asgi_app: Any) -> socketio.ASGIApp:
    """Wrap an ASGI app so ``/socket.io`` is served by Socket.IO."""
    return socketio.ASGIApp(
        sio,
        other_asgi_app=other_asgi_app,
        socketio_path=SOCKETIO_PATH,
    )


_sio_instance: socketio.AsyncServer | None = None


def get_sio() -> socketio.AsyncServer:
    """Get or create the global Socket.IO server instance."""
    global _sio_instance
    if _sio_instance is None:
        _sio_instance = create_socketio_server()
    return _sio_instance


class ProjectNamespace(socketio.AsyncNamespace):
    """Authenticated namespace for project rooms.

    On connect the client sends ``{"token": "<access token>"}`` as auth
    data (or a ``Authorization: Bearer`` handshake header); the socket then
    joins its ``user:{id}`` room. ``join_project`` subscribes to a project's
    room after a membership check. ``typing_start`` and ``typing_stop`` are
    relayed to the rest of the project room.
    """

    def __init__(
        self,
        auth_provider: Callable[[], IAuthProvider],
        is_member: MembershipCheck,
        namespace: str = "/",
    ) -> None:
        super().__init__(namespace)
        self._auth_provider = auth_provider
        self._is_member = is_member

    async def on_connect(self, sid: str, environ: dict, auth: Optional[dict] = None) -> None:
        token = _handshake_token(environ, auth)
        if not token:
            logger.warning("Socket connection without token sid=%s", sid)
            raise ConnectionRefusedError("Missing authentication token")

        user = await self._auth_provider().validate_token(token)
        if not user:
            logger.warning("Socket connection with invalid token sid=%s", sid)
            raise ConnectionRefusedError("Invalid or expired token")

        await self.save_session(
            sid, {"user_id": str(user.id), "email": user.email, "name": user.name}
        )
        await self.enter_room(sid, user_room(user.id))
        logger.info("Socket connected user=%s sid=%s", user.id, sid)

    async def on_disconnect(self, sid: str, *args: Any) -> None:
        logger.info("Socket disconnected sid=%s", sid)

    async def on_join_project(self, sid: str, data: Any) -> dict[str, Any]:
        user_id = await self._session_user(sid)
        project_id = _parse_project_id(data)
        if user_id is None:
            return {"error": "Not authenticated"}
        if project_id is None:
            return {"error": "Invalid project id"}
        if not await self._is_member(project_id, user_id):
            return {"error": "Access denied"}

        await self.enter_room(sid, project_room(project_id))
        logger.debug("User %s joined project room %s", user_id, project_id)
        return {"joined": str(project_id)}

    async def on_leave_project(self, sid: str, data: Any) -> dict[str, Any]:
        project_id = _parse_project_id(data)
        if project_id is None:
            return {"error": "Invalid project id"}
        await self.leave_room(sid, project_room(project_id))
        return {"left": str(project_id)}

    async def on_typing_start(self, sid: str, data: Any) -> dict[str, Any]:
        return await self._relay_typing(sid, "typing_start", data)

    async def on_typing_stop(self, sid: str, data: Any) -> dict[str, Any]:
        return await self._relay_typing(sid, "typing_stop", data)

    async def _relay_typing(self, sid: str, event: str, data: Any) -> dict[str, Any]:
        session = await self.get_session(sid) or {}
        user_id = UUID(session["user_id"]) if session.get("user_id") else None
        project_id = _parse_project_id(data)
        if user_id is None:
            return {"error": "Not authenticated"}
        if project_id is None:
            return {"error": "Invalid project id"}
        if not await self._is_member(project_id, user_id):
            return {"error": "Access denied"}

        payload = {
            "user_id": str(user_id),
            "user_name": session.get("name"),
            "task_id": data.get("task_id") if isinstance(data, dict) else None,
        }
        await self.emit(event, payload, room=project_room(project_id), skip_sid=sid)
        return {"ok": True}

    async def _session_user(self, sid: str) -> UUID | None:
        session = await self.get_session(sid)
        raw = session.get("user_id") if session else None
        return UUID(raw) if raw else None


def _handshake_token(environ: dict, auth: Any) -> str | None:
    token = auth.get("token") if isinstance(auth, dict) else None
    if token:
        return str(token)
    header = environ.get("HTTP_AUTHORIZATION", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def _parse_project_id(data: Any) -> UUID | None:
    raw = data.get("project_id") if isinstance(data, dict) else data
    try:
        return UUID(str(raw))
    except ValueError:
        return None


def register_project_namespace(
    sio: socketio.AsyncServer,
    auth_provider: Callable[[], IAuthProvider],
    is_member: MembershipCheck,
) -> ProjectNamespace:
    """Register the project namespace on the server."""
    namespace = ProjectNamespace(auth_provider, is_member)
    sio.register_namespace(namespace)
    return namespace
