from __future__ import annotations

import logging
import time

import jwt

from kitab_sync.application.dto.principal import Principal

logger = logging.getLogger(__name__)


class TokenStore:
    """Holds the bearer token. Implements application.ports.auth.CredentialProvider.

    The token is only decoded to read claims (``sub``, ``username``, ``exp``);
    the backend is the one that verifies signatures. An opaque non-JWT token
    counts as present.
    """

    def __init__(self, token: str | None = None) -> None:
        self._token = token or None

    def set_token(self, token: str | None) -> None:
        self._token = token or None

    def clear(self) -> None:
        self._token = None

    def get_token(self) -> str | None:
        if self._token is None:
            return None
        if self._is_expired(self._token):
            logger.info("Access token expired, treating session as logged out")
            return None
        return self._token

    def has_token(self) -> bool:
        return self.get_token() is not None

    def principal(self) -> Principal | None:
        token = self.get_token()
        if token is None:
            return None
        claims = _claims(token)
        sub = claims.get("sub", claims.get("user_id"))
        try:
            subject_id = int(sub) if sub is not None else None
        except (TypeError, ValueError):
            subject_id = None
        return Principal(subject_id=subject_id, username=claims.get("username"))

    @staticmethod
    def _is_expired(token: str) -> bool:
        exp = _claims(token).get("exp")
        if not isinstance(exp, (int, float)):
            return False
        return exp <= time.time()


def _claims(token: str) -> dict:
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return {}
