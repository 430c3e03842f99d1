"""Helpers shared by the service classes."""
from __future__ import annotations

import logging
from typing import Protocol, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from errors import InternalError, NotFound, Unauthorized

ModelT = TypeVar("ModelT")


class EventPublisher(Protocol):
    def publish(self, event: str, payload: dict) -> int: ...


def require_actor(actor) -> None:
    """Mutations need a verified caller."""
    if actor is None:
        raise Unauthorized("Authentication required")


def load_or_404(session, model: type[ModelT], entity_id, label: str) -> ModelT:
    """Return ``model`` with primary key ``entity_id`` or raise ``NotFound``."""
    if entity_id is None:
        raise NotFound(f"{label} not found")
    try:
        entity = session.get(model, entity_id)
    except SQLAlchemyError as exc:
        logging.exception("Unable to load %s %s", label, entity_id)
        raise InternalError(f"Failed to fetch {label.lower()}") from exc
    if entity is None:
        raise NotFound(f"{label} not found")
    return entity


def publish_event(publisher: EventPublisher | None, event: str, payload: dict) -> None:
    """Hand an event to the publisher after a successful commit; failures are only logged."""
    if publisher is None:
        return
    try:
        publisher.publish(event, payload)
    except Exception:
        logging.exception("Failed to publish %s", event)


def commit_or_raise(session, failure_message: str) -> None:
    """Commit the session, rolling back and raising ``InternalError`` on failure."""
    try:
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logging.error("%s: %s", failure_message, exc, exc_info=True)
        raise InternalError(failure_message) from exc


__all__ = [
    "EventPublisher",
    "commit_or_raise",
    "load_or_404",
    "publish_event",
    "require_actor",
]
