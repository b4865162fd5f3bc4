"""
Database models for the login server.

Defines the SQLAlchemy ORM model backing the credential store. The only
persisted entity is :class:`Account`; sessions and rate-limit counters
live in process memory (see ``sessions.py`` and ``rate_limit.py``).

Key Concepts Demonstrated:
- SQLAlchemy declarative model with explicit table constraints
- Werkzeug password hashing (salted, never plain text)
- Safe serialisation that excludes sensitive fields
- Timezone-aware datetime handling for SQLite compatibility
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from werkzeug.security import check_password_hash, generate_password_hash

from . import db


class Account(db.Model):
    """
    A registered username and its password-derived credential.

    The username is the account's identity and never changes after
    registration. The UNIQUE constraint on ``username`` is what makes
    concurrent registration of the same name safe: whichever insert
    commits second fails with an ``IntegrityError``.

    Attributes:
        id: Auto-incrementing integer primary key.
        username: Unique login name (max 64 chars), indexed for lookups.
        password_hash: Werkzeug-generated hash of the password.
        created_at: Timestamp of account creation, stored as UTC.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        db.CheckConstraint("length(username) <= 64", name="ck_accounts_username_len"),
        db.CheckConstraint(
            "length(password_hash) <= 256", name="ck_accounts_password_hash_len"
        ),
    )

    id: int = db.Column(db.Integer, primary_key=True)
    username: str = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash: str = db.Column(db.String(256), nullable=False)
    created_at: datetime = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    @staticmethod
    def _to_utc_iso(value: datetime) -> str:
        """
        Serialize a datetime to an ISO-8601 UTC string.

        SQLite drops timezone information, so values read back may be
        naive; those are assumed to be UTC.
        """
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        else:
            value = value.astimezone(timezone.utc)
        return value.isoformat()

    def set_password(self, password: str) -> None:
        """Hash and store a plain-text password."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Return ``True`` if *password* matches the stored hash."""
        return check_password_hash(self.password_hash, password)

    def to_dict(self) -> dict[str, Any]:
        """
        Return a client-safe dictionary representation.

        ``password_hash`` is deliberately left out so the result can go
        straight into a JSON response.
        """
        return {
            "id": self.id,
            "username": self.username,
            "created_at": self._to_utc_iso(self.created_at),
        }

    def __repr__(self) -> str:
        return f"<Account {self.id}: {self.username}>"
