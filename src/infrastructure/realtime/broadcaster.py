"""Best-effort real-time broadcast of domain events over Socket.IO."""

import asyncio
import logging
from typing import Any, Iterable
from uuid import UUID

import socketio
from fastapi.encoders import jsonable_encoder

logger = logging.getLogger(__name__)


def project_room(project_id: UUID | str) -> str:
    return f"project:{project_id}"


def user_room(user_id: UUID | str) -> str:
    return f"user:{user_id}"


class SocketIOBroadcaster:
    """Emits events to Socket.IO rooms from a background task.

    The mutating request does not wait for delivery; emit failures are
    logged and dropped.
    """

    def __init__(self, sio: socketio.AsyncServer, namespace: str = "/") -> None:
        self._sio = sio
        self._namespace = namespace
        self._pending: set[asyncio.Task[None]] = set()

    def publish(
        self,
        event: str,
        data: dict[str, Any],
        project_id: UUID | None = None,
        user_ids: Iterable[UUID] = (),
    ) -> None:
        rooms = [project_room(project_id)] if project_id else []
        rooms.extend(user_room(uid) for uid in user_ids)
        if not rooms:
            return

        loop = _running_loop()
        if loop is None:
            logger.debug("No running loop, dropping realtime event %s", event)
            return

        self._track(loop.create_task(self._emit(event, jsonable_encoder(data), rooms)))

    def evict(self, project_id: UUID, user_ids: Iterable[UUID] | None = None) -> None:
        """Take sockets out of a project room once queued events are delivered.

        With ``user_ids`` only those users' sockets leave the room;
        otherwise the whole room is closed.
        """
        loop = _running_loop()
        if loop is None:
            return

        earlier = list(self._pending)
        targets = list(user_ids) if user_ids is not None else None
        self._track(loop.create_task(self._evict(project_id, targets, earlier)))

    def _track(self, task: asyncio.Task[None]) -> None:
        # Keep a reference until done so the task is not garbage collected
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _emit(self, event: str, payload: Any, rooms: list[str]) -> None:
        for room in rooms:
            try:
                await self._sio.emit(event, payload, room=room, namespace=self._namespace)
            except Exception:
                logger.exception("Realtime broadcast failed: event=%s room=%s", event, room)

    async def _evict(
        self,
        project_id: UUID,
        user_ids: list[UUID] | None,
        earlier: list[asyncio.Task[None]],
    ) -> None:
        if earlier:
            await asyncio.gather(*earlier, return_exceptions=True)

        room = project_room(project_id)
        try:
            if user_ids is None:
                await self._sio.close_room(room, namespace=self._namespace)
                return
            for user_id in user_ids:
                # Every socket of a user sits in its user room
                participants = self._sio.manager.get_participants(
                    self._namespace, user_room(user_id)
                )
                for sid, _ in list(participants):
                    await self._sio.leave_room(sid, room, namespace=self._namespace)
        except Exception:
            logger.exception("Realtime eviction failed: room=%s", room)

    async def drain(self) -> None:
        """Wait for in-flight broadcasts (used on shutdown and in tests)."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None
