from __future__ import annotations

from flask import Blueprint, g, jsonify

from ...errors import AuthorizationError, NotFoundError, ValidationError
from ...extensions import db
from ...lib.utils import commit_with_retry, now_ms
from ...models import Channel, Message
from ..middleware import json_body, require_auth

messages_bp = Blueprint("messages", __name__, url_prefix="/api/messages")


def _channel_history(channel_id: str) -> list[dict]:
    rows = (
        Message.query.filter_by(channel_id=channel_id)
        .order_by(Message.created_at.desc(), Message.id.desc())
        .all()
    )
    return [m.to_dict() for m in rows]


def _owned_message(message_id: str, action: str) -> Message:
    """Load a message for mutation; existence is checked before ownership."""
    try:
        pk = int(message_id)
    except (TypeError, ValueError):
        raise ValidationError("Invalid message ID format")
    message = db.session.get(Message, pk)
    if not message:
        raise NotFoundError("Message not found")
    if message.sender_id != g.identity.user_id:
        raise AuthorizationError(f"Not authorized to {action} this message")
    return message


@messages_bp.post("/create")
@require_auth
def message_create():
    # REST creation only persists; live fan-out happens over the socket
    data = json_body()
    content = data.get("content")
    channel_id = data.get("channelId")
    if not isinstance(content, str) or not content.strip():
        raise ValidationError("Message content is required")
    if not channel_id:
        raise ValidationError("Channel id is required")

    message = Message(content=content, sender_id=g.identity.user_id, channel_id=str(channel_id))
    db.session.add(message)
    commit_with_retry(db.session)
    return jsonify({"message": "Message created successfully", "data": message.to_dict()})


@messages_bp.get("/channel/<channel_id>")
@require_auth
def channel_messages(channel_id: str):
    channel = db.session.get(Channel, channel_id)
    if not channel:
        raise NotFoundError("Channel not found")
    if channel.is_private and not channel.has_member(g.identity.user_id):
        raise AuthorizationError("You must join this channel to view messages")
    return jsonify(_channel_history(channel_id))


@messages_bp.get("/channel/<channel_id>/all")
@require_auth
def channel_messages_all(channel_id: str):
    return jsonify(_channel_history(channel_id))


@messages_bp.put("/<message_id>")
@require_auth
def message_update(message_id: str):
    data = json_body()
    content = data.get("content")
    message = _owned_message(message_id, "edit")
    if not isinstance(content, str) or not content.strip():
        raise ValidationError("Message content is required")
    message.content = content
    message.updated_at = now_ms()
    commit_with_retry(db.session)
    return jsonify({"message": "Message updated successfully", "updatedMessage": message.to_dict()})


@messages_bp.delete("/<message_id>")
@require_auth
def message_delete(message_id: str):
    message = _owned_message(message_id, "delete")
    db.session.delete(message)
    commit_with_retry(db.session)
    return jsonify({"message": "Message deleted successfully"})
