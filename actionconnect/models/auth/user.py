# Enable postponed annotations to avoid runtime import issues and allow future-style typing
from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Mapped
from werkzeug.security import check_password_hash, generate_password_hash

# Import the SQLAlchemy instance from the shared extensions module
from ...extensions import db
from ...lib.utils import new_id, now_ms


# User accounts persisted in the database
class User(db.Model):
    # Opaque string primary key; also the "sub" claim of issued tokens
    id: Mapped[str] = db.Column(db.String(32), primary_key=True, default=new_id)
    # Display name of the user
    name: Mapped[Optional[str]] = db.Column(db.String(255))
    # Email address; unique to prevent duplicates
    email: Mapped[Optional[str]] = db.Column(db.String(255), unique=True, index=True)
    # Password hash for local accounts; empty for Google-only accounts
    password_hash: Mapped[Optional[str]] = db.Column(db.String(255), nullable=True)
    # Google OpenID subject identifier; unique and indexed for quick lookup
    google_sub: Mapped[Optional[str]] = db.Column(
        db.String(255), unique=True, index=True, nullable=True
    )
    # Profile picture URL
    picture: Mapped[Optional[str]] = db.Column(db.String(1024), default="")
    # Free-form location string shown on the profile
    location: Mapped[Optional[str]] = db.Column(db.String(255), default="")
    # How the account signs in: local | google
    auth_method: Mapped[str] = db.Column(db.String(16), default="local", nullable=False)
    # Epoch milliseconds when the account was created
    created_at: Mapped[int] = db.Column(db.BigInteger, default=now_ms)

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        if not self.password_hash or not password:
            return False
        return check_password_hash(self.password_hash, password)

    def to_public(self) -> dict:
        return {"id": self.id, "name": self.name, "email": self.email}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "picture": self.picture,
            "location": self.location,
            "authMethod": self.auth_method,
            "createdAt": self.created_at,
        }
