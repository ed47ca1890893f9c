"""Bearer token verification shared by the HTTP gate and the socket handshake."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional

import jwt

from ..errors import IncompleteClaim, InvalidToken, MissingToken

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"


@dataclass(frozen=True)
class IdentityClaim:
    """Verified identity of a token holder.

    Only ``user_id`` is trusted; ``claims`` is the full decoded payload and is
    informational (display name and so on may be stale).
    """

    user_id: str
    claims: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


def bearer_token(header: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization`` header value.

    Accepts both ``Bearer <token>`` and a bare token.
    """
    if not header:
        return None
    parts = header.strip().split(None, 1)
    if not parts:
        return None
    if parts[0].lower() == "bearer":
        return parts[1].strip() if len(parts) > 1 else None
    return header.strip()


def issue_token(user_id: str, secret: str, expires_in: int, **extra: Any) -> str:
    payload = {
        "sub": str(user_id),
        "exp": int(time.time()) + int(expires_in),
        **extra,
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def authenticate(token: Optional[str], secret: str, now: Optional[float] = None) -> IdentityClaim:
    """Verify ``token`` against ``secret`` at time ``now`` and return its identity.

    Raises ``MissingToken``, ``InvalidToken`` (malformed, bad signature or
    expired) or ``IncompleteClaim`` (verified but without a subject).
    """
    if not token or not isinstance(token, str):
        raise MissingToken(detail="no credential presented")

    current = time.time() if now is None else now
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            options={"verify_exp": False},
        )
    except jwt.InvalidTokenError as e:
        raise InvalidToken(detail=f"token verification failed: {e}") from e

    if "exp" in payload:
        try:
            expires_at = float(payload["exp"])
        except (TypeError, ValueError) as e:
            raise InvalidToken(detail="exp claim is not numeric") from e
        if expires_at <= current:
            raise InvalidToken(detail="token expired")

    sub = payload.get("sub")
    if sub is None or str(sub).strip() == "":
        raise IncompleteClaim(detail=f"payload has no subject (keys={sorted(payload)})")

    return IdentityClaim(user_id=str(sub), claims=dict(payload))
