# Enable postponed annotations to avoid runtime import issues and allow future-style typing
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy.orm import Mapped

from ...extensions import db
from ...lib.utils import now_ms

if TYPE_CHECKING:
    from ..auth.user import User


class Message(db.Model):
    # Surrogate primary key id; breaks created_at ties in insertion order
    id: Mapped[int] = db.Column(db.Integer, primary_key=True)
    # Target channel id
    channel_id: Mapped[str] = db.Column(
        db.String(64), db.ForeignKey("channel.id"), nullable=False, index=True
    )
    # Sender user id
    sender_id: Mapped[str] = db.Column(
        db.String(32), db.ForeignKey("user.id"), nullable=False, index=True
    )
    # Message text content
    content: Mapped[str] = db.Column(db.Text, nullable=False)
    # Creation timestamp (epoch ms), assigned by the server on insert
    created_at: Mapped[int] = db.Column(db.BigInteger, default=now_ms, index=True)
    # Last content edit (epoch ms)
    updated_at: Mapped[Optional[int]] = db.Column(db.BigInteger, nullable=True)

    sender: Mapped["User"] = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "content": self.content,
            "sender": self.sender.to_public() if self.sender else {"id": self.sender_id},
            "channelId": self.channel_id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
