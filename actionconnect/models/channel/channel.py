# Enable postponed annotations to avoid runtime import issues and allow future-style typing
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy.orm import Mapped

from ...extensions import db
from ...lib.utils import new_id, now_ms

if TYPE_CHECKING:
    from ..auth.user import User


# A persisted chat channel; its id doubles as the live room id
class Channel(db.Model):
    id: Mapped[str] = db.Column(db.String(64), primary_key=True, default=new_id)
    # Unique human readable name
    name: Mapped[str] = db.Column(db.String(255), unique=True, nullable=False)
    description: Mapped[Optional[str]] = db.Column(db.Text, default="")
    # Private channels only expose their history to members
    is_private: Mapped[bool] = db.Column(db.Boolean, default=False, nullable=False)
    # Epoch milliseconds when the channel was created
    created_at: Mapped[int] = db.Column(db.BigInteger, default=now_ms)

    memberships: Mapped[list["ChannelMember"]] = db.relationship(
        "ChannelMember",
        back_populates="channel",
        lazy=True,
        cascade="all, delete-orphan",
    )

    def has_member(self, user_id: str) -> bool:
        return any(m.user_id == user_id for m in self.memberships)

    def add_member(self, user_id: str) -> bool:
        """Add ``user_id`` unless already a member; returns True when added."""
        if self.has_member(user_id):
            return False
        self.memberships.append(ChannelMember(user_id=user_id))
        return True

    def remove_member(self, user_id: str) -> bool:
        for membership in list(self.memberships):
            if membership.user_id == user_id:
                self.memberships.remove(membership)
                return True
        return False

    def to_dict(self, include_members: bool = True) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "isPrivate": bool(self.is_private),
            "createdAt": self.created_at,
        }
        if include_members:
            data["members"] = [m.user.to_public() for m in self.memberships if m.user]
        return data


# Association between a user and a channel (persisted membership)
class ChannelMember(db.Model):
    __tablename__ = "channel_member"

    # Surrogate primary key id
    id: Mapped[int] = db.Column(db.Integer, primary_key=True)
    # Parent channel id; indexed for fast membership queries
    channel_id: Mapped[str] = db.Column(
        db.String(64), db.ForeignKey("channel.id"), nullable=False, index=True
    )
    # Member user id; indexed for fast "channels of user" lookups
    user_id: Mapped[str] = db.Column(
        db.String(32), db.ForeignKey("user.id"), nullable=False, index=True
    )
    # Timestamp of when user joined the channel
    joined_at: Mapped[int] = db.Column(db.BigInteger, default=now_ms)

    channel: Mapped["Channel"] = db.relationship("Channel", back_populates="memberships")
    user: Mapped["User"] = db.relationship("User")

    # Ensure a user can have at most one membership per channel
    __table_args__ = (
        db.UniqueConstraint("channel_id", "user_id", name="uq_channel_member_channel_user"),
    )
