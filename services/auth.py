"""Email/password authentication collaborator.

Stands in for the hosted identity provider. ``AuthService`` is the shared
user registry; ``ClientAuth`` is one client's view of it, keeping the
signed-in uid in that client's own session mapping (the signed session
cookie for HTTP callers) and notifying subscribers when it changes.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from functools import lru_cache
from threading import Lock
from typing import Callable, Dict, MutableMapping, Optional

import bcrypt

from datastore.realtime_store import Subscription

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_BYTES = 72
SESSION_USER_KEY = "uid"


class AuthError(Exception):
    """Authentication failure whose message is safe to show in the form."""


@dataclass(frozen=True)
class User:
    uid: str
    email: str


@dataclass(frozen=True)
class _Credential:
    user: User
    password_hash: bytes


UserListener = Callable[[Optional[User]], None]


def validate_credentials(
    email: str, password: str, confirm_password: Optional[str] = None
) -> None:
    """Client-side form checks, run before the provider is contacted.

    ``confirm_password`` is only checked when given (the sign-up form).
    """
    if not email or not password:
        raise AuthError("Please enter email and password.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise AuthError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    if confirm_password is not None and password != confirm_password:
        raise AuthError("Passwords do not match.")


class AuthService:
    """In-memory account registry with bcrypt password hashes."""

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds
        self._credentials: Dict[str, _Credential] = {}
        self._users: Dict[str, User] = {}
        self._lock = Lock()

    def register(self, email: str, password: str) -> User:
        key = email.strip().lower()
        if "@" not in key:
            raise AuthError("The email address is badly formatted.")
        secret = password.encode("utf-8")
        if len(secret) > MAX_PASSWORD_BYTES:
            raise AuthError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
        password_hash = bcrypt.hashpw(secret, bcrypt.gensalt(rounds=self._rounds))
        with self._lock:
            if key in self._credentials:
                raise AuthError("The email address is already in use by another account.")
            user = User(uid=secrets.token_hex(14), email=key)
            self._credentials[key] = _Credential(user=user, password_hash=password_hash)
            self._users[user.uid] = user
        logger.info("Account created", extra={"email": key})
        return user

    def authenticate(self, email: str, password: str) -> User:
        key = email.strip().lower()
        with self._lock:
            credential = self._credentials.get(key)
        secret = password.encode("utf-8")
        if (
            credential is None
            or len(secret) > MAX_PASSWORD_BYTES
            or not bcrypt.checkpw(secret, credential.password_hash)
        ):
            logger.info("Sign-in rejected", extra={"email": key})
            raise AuthError("Invalid email or password.")
        return credential.user

    def get_user(self, uid: Optional[str]) -> Optional[User]:
        if not uid:
            return None
        with self._lock:
            return self._users.get(uid)


class ClientAuth:
    """Signed-in state of a single client.

    ``session`` is any mutable mapping owned by that client; only the uid
    is stored there, the user record is always looked up in the registry.
    """

    def __init__(self, service: AuthService, session: MutableMapping[str, str]) -> None:
        self._service = service
        self._session = session
        self._listeners: Dict[int, UserListener] = {}
        self._next_id = 0

    @property
    def current_user(self) -> Optional[User]:
        return self._service.get_user(self._session.get(SESSION_USER_KEY))

    def sign_up(self, email: str, password: str) -> User:
        user = self._service.register(email, password)
        self._set_current(user)
        return user

    def sign_in(self, email: str, password: str) -> User:
        user = self._service.authenticate(email, password)
        self._set_current(user)
        return user

    def sign_out(self) -> None:
        self._set_current(None)

    def subscribe(self, listener: UserListener) -> Subscription:
        """Call ``listener`` now and whenever this client's user changes."""
        listener_id = self._next_id
        self._next_id += 1
        self._listeners[listener_id] = listener
        listener(self.current_user)
        return Subscription(lambda: self._listeners.pop(listener_id, None))

    def _set_current(self, user: Optional[User]) -> None:
        if user == self.current_user:
            return
        if user is None:
            self._session.pop(SESSION_USER_KEY, None)
        else:
            self._session[SESSION_USER_KEY] = user.uid
        for listener in list(self._listeners.values()):
            listener(user)


@lru_cache
def build_default_auth() -> AuthService:
    return AuthService()
