"""
Credential store backed by the ``accounts`` table.

Wraps the :class:`~login_app.models.Account` model with the three
operations the handlers need: insert a new account, look one up, and
verify a password. Insertion is safe under concurrent registration of
the same username because the database UNIQUE constraint decides the
winner; the pre-insert lookup only saves a hash computation in the
common case.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from . import db
from .errors import DuplicateAccount
from .models import Account

logger = logging.getLogger(__name__)

# Compared against when the username is unknown so that a miss costs
# about as much as a wrong password.
_dummy_hash: str | None = None


def _get_dummy_hash() -> str:
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = generate_password_hash("unused-dummy-password")
    return _dummy_hash


class CredentialStore:
    """Account persistence operations used by the auth routes."""

    def get(self, username: str) -> Account | None:
        """
        Look up an account by exact username.

        Args:
            username: The login name to search for.

        Returns:
            The matching :class:`Account`, or ``None`` if not found.
        """
        return db.session.scalar(select(Account).where(Account.username == username))

    def put(self, username: str, password: str) -> Account:
        """
        Create and persist a new account.

        Args:
            username: An already-validated login name.
            password: The plain-text password to hash.

        Returns:
            The committed :class:`Account`.

        Raises:
            DuplicateAccount: If the username is already registered,
                including when a concurrent request commits it first.
        """
        if self.get(username) is not None:
            logger.warning("Registration rejected: %r already exists", username)
            raise DuplicateAccount()

        account = Account(username=username)
        account.set_password(password)
        db.session.add(account)
        try:
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            logger.warning("Concurrent registration lost the race for %r", username)
            raise DuplicateAccount() from exc

        return account

    def verify(self, username: str, password: str) -> Account | None:
        """
        Return the account if *password* matches, else ``None``.

        Unknown usernames and wrong passwords are indistinguishable to
        the caller.
        """
        account = self.get(username)
        if account is None:
            check_password_hash(_get_dummy_hash(), password)
            return None
        if not account.check_password(password):
            return None
        return account


credential_store = CredentialStore()
