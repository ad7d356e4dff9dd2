"""
Session manager — mock login, registration and a JWT session credential.

None of this is security. The credential is a real HS256 JWT, but it is
signed with a fixed demo secret and only carries "who is logged in and
until when" across restarts. Password hashes are a 32-bit rolling hash.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

import jwt
from loguru import logger

from .domain import (
    AuthenticationError,
    DuplicateAccountError,
    User,
    ValidationError,
)
from .store import Key, Store

SESSION_TTL_SECONDS = 3600
MIN_PASSWORD_LENGTH = 8
DEMO_EMAIL = "amrit@codeflow.dev"
DEMO_PASSWORD = "Demo1234!"

# Demo only. Ships in source, so it protects nothing.
DEMO_SECRET = "codeflow-demo-only-signing-secret-do-not-deploy"
ALGORITHM = "HS256"


@dataclass(frozen=True)
class SessionClaims:
    subject_email: str
    display_name: str
    issued_at: int
    expires_at: int


# ---------------------------------------------------------------------------
# Credential codec
# ---------------------------------------------------------------------------


def issue_session(user: User, now: float | None = None) -> str:
    iat = int(time.time() if now is None else now)
    payload = {
        "sub": user.email,
        "name": user.name,
        "iat": iat,
        "exp": iat + SESSION_TTL_SECONDS,
    }
    return jwt.encode(payload, DEMO_SECRET, algorithm=ALGORITHM)


def parse_session(credential: object) -> SessionClaims | None:
    """Decode a credential. Returns ``None`` for anything malformed.

    Expiry is left to :func:`is_valid` so callers can inspect stale claims.
    """
    if not isinstance(credential, str):
        return None
    try:
        payload = jwt.decode(
            credential,
            options={"verify_signature": False, "verify_exp": False},
        )
    except jwt.PyJWTError:
        return None
    sub, name, iat, exp = (payload.get(k) for k in ("sub", "name", "iat", "exp"))
    if not isinstance(sub, str) or not isinstance(name, str):
        return None
    if not isinstance(iat, int) or not isinstance(exp, int):
        return None
    return SessionClaims(subject_email=sub, display_name=name, issued_at=iat, expires_at=exp)


def is_valid(credential: object, now: float | None = None) -> bool:
    claims = parse_session(credential)
    return claims is not None and not _expired(claims, now)


def _expired(claims: SessionClaims, now: float | None = None) -> bool:
    current = time.time() if now is None else now
    return claims.expires_at <= current


def simple_hash(text: str) -> str:
    """31-multiplier rolling hash wrapped to a signed 32-bit int, base 36."""
    h = 0
    for ch in text:
        h = (31 * h + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return _base36(h)


def _base36(n: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    if n == 0:
        return "0"
    sign = "-" if n < 0 else ""
    n = abs(n)
    out = []
    while n:
        n, r = divmod(n, 36)
        out.append(digits[r])
    return sign + "".join(reversed(out))


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------


class SessionManager:
    """
    Owns the user registry, the persisted credential and ``current_user``.

    Args:
        store:      Where ``users`` and ``token`` live.
        demo_login: Accept ``DEMO_PASSWORD`` for any account regardless of
                    its stored hash. Demo behaviour, on by default.
    """

    def __init__(self, store: Store, demo_login: bool = True) -> None:
        self._store = store
        self._demo_login = demo_login
        self.current_user: User | None = None

    @property
    def actor_name(self) -> str:
        return self.current_user.name if self.current_user else "User"

    @property
    def credential(self) -> str | None:
        return self._store.get(Key.TOKEN)

    def login(self, email: str, password: str) -> User:
        email = (email or "").strip()
        if not email or not password:
            raise ValidationError("Please fill in all fields.")

        users = self._users()
        if email not in users:
            users[email] = User(email=email, name=email.split("@")[0], pw_hash=simple_hash(password))
            self._save_users(users)
            logger.info("Auto-registered {}", email)

        user = users[email]
        demo_ok = self._demo_login and password == DEMO_PASSWORD
        if user.pw_hash != simple_hash(password) and not demo_ok:
            logger.warning("Rejected login for {}", email)
            raise AuthenticationError(email)

        return self._start(user)

    def demo_login(self) -> User:
        return self.login(DEMO_EMAIL, DEMO_PASSWORD)

    def register(self, name: str, email: str, password: str) -> User:
        name, email = (name or "").strip(), (email or "").strip()
        if not name or not email or not password:
            raise ValidationError("All fields required.")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
            )

        users = self._users()
        if email in users:
            raise DuplicateAccountError(email)

        user = User(email=email, name=name, pw_hash=simple_hash(password))
        users[email] = user
        self._save_users(users)
        logger.info("Registered {}", email)
        return self._start(user)

    def logout(self) -> None:
        self._store.delete(Key.TOKEN)
        if self.current_user:
            logger.info("Logged out {}", self.current_user.email)
        self.current_user = None

    def restore(self, now: float | None = None) -> bool:
        """Resume from the persisted credential. Expired or corrupt means logged out."""
        credential = self._store.get(Key.TOKEN)
        claims = parse_session(credential)
        if claims is None or _expired(claims, now):
            if credential is not None:
                logger.info("Stored session invalid or expired; login required")
            return False
        self.current_user = self._users().get(claims.subject_email) or User(
            email=claims.subject_email, name=claims.display_name
        )
        logger.info("Session restored for {}", claims.subject_email)
        return True

    def update_profile(self, name: str, email: str) -> User:
        """Rename the current user. The email is display only and never changes the key."""
        if self.current_user is None:
            raise ValidationError("Not logged in.")
        name, email = (name or "").strip(), (email or "").strip()
        if not name or not email:
            raise ValidationError("Please fill in all fields.")

        users = self._users()
        stored = users.get(self.current_user.email)
        if stored is not None:
            stored.name = name
            self._save_users(users)
        self.current_user.name = name
        logger.info("Profile updated for {}", self.current_user.email)
        return self.current_user

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _start(self, user: User) -> User:
        self._store.set(Key.TOKEN, issue_session(user))
        self.current_user = user
        logger.success("Logged in as {}", user.email)
        return user

    def _users(self) -> dict[str, User]:
        raw = self._store.get(Key.USERS, {})
        if not isinstance(raw, dict):
            return {}
        users = {}
        for email, record in raw.items():
            try:
                users[email] = User.from_dict(record)
            except (KeyError, TypeError):
                logger.warning("Dropping malformed user record {!r}", email)
        return users

    def _save_users(self, users: dict[str, User]) -> None:
        self._store.set(Key.USERS, {email: u.to_dict() for email, u in users.items()})
