"""
auth/service.py -- Registration and login orchestration.

AuthService receives its collaborators (store, hasher, issuer) through the
constructor; api/main.py builds one at startup and parks it on app.state.

Login never tells the caller which half of the credentials was wrong. An
unknown username still runs one bcrypt verification (against the hasher's
dummy hash) so response time does not reveal whether the username exists.
"""

from __future__ import annotations

import logging

from auth.errors import AuthenticationFailed, UserNotFound
from auth.models import User
from auth.passwords import PasswordHasher
from auth.store import UserRepository
from auth.tokens import TokenIssuer

logger = logging.getLogger("authshim.auth")


class AuthService:
    def __init__(self, store: UserRepository, hasher: PasswordHasher, issuer: TokenIssuer) -> None:
        self.store = store
        self.hasher = hasher
        self.issuer = issuer

    def register(self, username: str, password: str) -> User:
        """Hash the password and persist a new user. No token is issued.

        Raises DuplicateUsername (from the store) if the username is taken.
        """
        user = self.store.register(username, self.hasher.hash(password))
        logger.info("Registered user id=%s", user.id)
        return user

    def authenticate(self, username: str, password: str) -> User:
        """Return the user if the credentials match, else raise AuthenticationFailed."""
        try:
            user = self.store.find_by_username(username)
        except UserNotFound:
            # Equalize timing -- do NOT return before running bcrypt
            self.hasher.verify_dummy(password)
            raise AuthenticationFailed() from None
        if not self.hasher.verify(password, user.hashed_password):
            raise AuthenticationFailed()
        return user

    def login(self, username: str, password: str) -> str:
        """Authenticate and return a freshly issued bearer token."""
        user = self.authenticate(username, password)
        return self.issuer.issue(user)
