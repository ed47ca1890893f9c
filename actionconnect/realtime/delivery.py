"""
Chat message delivery: persist first, then fan out.

A message is never broadcast unless it was committed. A broadcast failure
does not roll the message back; the sender gets an ``error`` event and the
message stays available through the channel history endpoints.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..errors import PersistenceError, SenderNotFound, ValidationError
from ..extensions import db
from ..lib.utils import commit_with_retry
from ..models import Message, User
from .registry import Connection

logger = logging.getLogger(__name__)


@dataclass
class DeliveryResult:
    message: Message
    payload: dict
    delivered: bool


def build_message_payload(message: Message, sender: User) -> dict:
    return {
        "messageId": message.id,
        "content": message.content,
        "sender": {
            "id": sender.id,
            "name": sender.name,
            "email": sender.email,
        },
        "channelId": message.channel_id,
        "createdAt": message.created_at,
    }


class MessagePipeline:
    def __init__(self, registry, transport) -> None:
        self.registry = registry
        self.transport = transport

    def send(self, connection: Connection, content: Any, channel_id: Optional[str]) -> DeliveryResult:
        if not isinstance(content, str) or not content.strip():
            raise ValidationError("Message content is required")
        if not channel_id:
            raise ValidationError("Channel id is required")
        channel_id = str(channel_id)

        # Profile is read at send time; the token only vouches for the id.
        try:
            sender = db.session.get(User, connection.user_id)
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.exception("sender lookup failed (user_id=%s)", connection.user_id)
            raise PersistenceError("Failed to send message") from e
        if sender is None:
            raise SenderNotFound(detail=f"no user with id {connection.user_id}")

        message = Message(content=content, sender_id=sender.id, channel_id=channel_id)
        try:
            db.session.add(message)
            commit_with_retry(db.session)
        except SQLAlchemyError as e:
            logger.exception(
                "message persistence failed (user_id=%s, channel=%s)", sender.id, channel_id
            )
            raise PersistenceError("Failed to send message") from e

        payload = build_message_payload(message, sender)
        try:
            # whole room, sender included
            self.transport.emit_to_room("receiveMessage", payload, channel_id)
        except Exception:
            logger.exception(
                "receiveMessage fan-out failed (message_id=%s, channel=%s)", message.id, channel_id
            )
            self._report_delivery_failure(connection)
            return DeliveryResult(message=message, payload=payload, delivered=False)

        logger.debug("message %s delivered to channel %s", message.id, channel_id)
        return DeliveryResult(message=message, payload=payload, delivered=True)

    def _report_delivery_failure(self, connection: Connection) -> None:
        if self.registry.get(connection.sid) is not connection:
            return
        try:
            self.transport.emit_to_connection("error", "Failed to deliver message", connection.sid)
        except Exception:
            logger.exception("error report to sender failed (sid=%s)", connection.sid)
