"""Socket.IO fan-out of task and project lifecycle events.

Every connected session receives every event; nothing is filtered per
session and nothing is replayed for sessions that connect later.
"""
from __future__ import annotations

import logging
import threading
from enum import StrEnum
from typing import Any, Callable

from flask import request
from flask_socketio import SocketIO


class LifecycleEvent(StrEnum):
    """Event names emitted to clients."""

    TASK_CREATED = "taskCreated"
    TASK_UPDATED = "taskUpdated"
    TASK_DELETED = "taskDeleted"
    PROJECT_CREATED = "projectCreated"
    PROJECT_UPDATED = "projectUpdated"
    PROJECT_DELETED = "projectDeleted"


Subscriber = Callable[[str, dict[str, Any]], None]


class EventBroadcaster:
    """Delivers lifecycle events to connected sessions and in-process subscribers."""

    def __init__(self, socketio: SocketIO | None = None):
        self.socketio = socketio
        self._sessions: set[str] = set()
        self._subscribers: list[Subscriber] = []
        self._lock = threading.Lock()

    def register(self, sid: str) -> None:
        with self._lock:
            self._sessions.add(sid)

    def unregister(self, sid: str) -> None:
        with self._lock:
            self._sessions.discard(sid)

    @property
    def sessions(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._sessions)

    def subscribe(self, callback: Subscriber) -> None:
        """Register a callback receiving ``(event, payload)`` for every event."""
        with self._lock:
            self._subscribers.append(callback)

    def publish(self, event: str, payload: dict[str, Any]) -> int:
        """Send ``event`` to every session and subscriber; return the delivery count.

        A failure for one receiver is logged and skipped.
        """
        event_name = str(event)
        with self._lock:
            sessions = list(self._sessions)
            subscribers = list(self._subscribers)

        delivered = 0
        if self.socketio is not None:
            for sid in sessions:
                try:
                    self.socketio.emit(event_name, payload, to=sid)
                except Exception:
                    logging.exception("Failed to deliver %s to session %s", event_name, sid)
                    continue
                delivered += 1
        for callback in subscribers:
            try:
                callback(event_name, payload)
            except Exception:
                logging.exception("Subscriber failed while handling %s", event_name)
                continue
            delivered += 1
        logging.debug("Broadcast %s to %d receiver(s)", event_name, delivered)
        return delivered


def init_socketio(app, broadcaster: EventBroadcaster) -> SocketIO:
    """Create the Socket.IO server for ``app`` and wire connect/disconnect tracking."""

    socketio = SocketIO(
        app,
        cors_allowed_origins=app.config.get("CORS_ORIGIN", "*"),
        async_mode=app.config.get("SOCKETIO_ASYNC_MODE") or None,
        logger=False,
        engineio_logger=False,
    )
    broadcaster.socketio = socketio

    def handle_connect(auth=None):
        broadcaster.register(request.sid)
        logging.info("A client connected: %s", request.sid)

    def handle_disconnect(*_args):
        broadcaster.unregister(request.sid)
        logging.info("Client disconnected: %s", request.sid)

    socketio.on_event("connect", handle_connect)
    socketio.on_event("disconnect", handle_disconnect)
    return socketio


__all__ = ["EventBroadcaster", "LifecycleEvent", "init_socketio"]
