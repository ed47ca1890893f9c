# Enable postponed annotations for forward references
from __future__ import annotations

import secrets
import sqlite3
import time

from sqlalchemy.exc import OperationalError as SAOperationalError


# Return current epoch time in milliseconds
def now_ms() -> int:
    return int(time.time() * 1000)


# Opaque 24-hex identifier used for users and channels
def new_id() -> str:
    return secrets.token_hex(12)


# Stripped string value of a JSON body field; non-strings count as missing
def text_field(data: dict, key: str) -> str:
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ""


# Commit a SQLAlchemy session with retries to mitigate SQLite 'database is locked' errors
def commit_with_retry(
    session, retries: int = 5, initial_delay: float = 0.05, backoff: float = 2.0
) -> None:
    """Commit the SQLAlchemy session with retries for SQLite 'database is locked'.

    Rolls back between attempts and uses exponential backoff.
    """
    delay = float(initial_delay)
    last_exc: Exception | None = None
    for _attempt in range(retries):
        try:
            session.commit()
            return
        except (sqlite3.OperationalError, SAOperationalError) as e:
            # Only retry for lock-related errors
            if "database is locked" not in str(e).lower():
                session.rollback()
                raise
            session.rollback()
            time.sleep(delay)
            delay *= backoff
            last_exc = e
        except Exception:
            session.rollback()
            raise
    # If we exhausted retries, re-raise the last lock error to the caller
    if last_exc:
        raise last_exc
