from __future__ import annotations

import logging

from flask import Blueprint, g, jsonify
from sqlalchemy.exc import IntegrityError

from ...extensions import db
from ...lib.utils import commit_with_retry, text_field
from ...models import Channel
from ..middleware import json_body, require_auth

channels_bp = Blueprint("channels", __name__, url_prefix="/api/channels")


@channels_bp.post("/create")
@require_auth
def channel_create():
    data = json_body()
    name = text_field(data, "name")
    if not name:
        return jsonify({"message": "Channel name is required"}), 400

    channel = Channel(
        name=name,
        description=text_field(data, "description"),
        is_private=bool(data.get("isPrivate", False)),
    )
    channel.add_member(g.identity.user_id)
    db.session.add(channel)
    try:
        commit_with_retry(db.session)
    except IntegrityError:
        logging.info("channel_create: duplicate name %r", name)
        return jsonify({"message": "Channel name already exists"}), 400
    return jsonify({"message": "Channel created successfully", "channel": channel.to_dict()})


@channels_bp.get("/all")
@require_auth
def channel_list():
    channels = Channel.query.order_by(Channel.created_at.asc()).all()
    return jsonify([c.to_dict() for c in channels])


@channels_bp.post("/<channel_id>/join")
@require_auth
def channel_join(channel_id: str):
    channel = db.session.get(Channel, channel_id)
    if not channel:
        return jsonify({"message": "Channel not found"}), 404
    if channel.add_member(g.identity.user_id):
        commit_with_retry(db.session)
    return jsonify({"message": "Joined channel", "channel": channel.to_dict()})


@channels_bp.post("/<channel_id>/leave")
@require_auth
def channel_leave(channel_id: str):
    channel = db.session.get(Channel, channel_id)
    if not channel:
        return jsonify({"message": "Channel not found"}), 404
    if channel.remove_member(g.identity.user_id):
        commit_with_retry(db.session)
    return jsonify({"message": "Left channel"})
