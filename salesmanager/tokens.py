"""Opaque token helpers used for e-mail links and password resets."""
from __future__ import annotations

import base64
import hashlib
import secrets

from cryptography.fernet import Fernet, InvalidToken

from .errors import ServiceError


class TokenError(ServiceError):
    """Raised when a token is malformed, tampered with, or expired."""


class TokenizeTool:
    """Encrypt short values into URL-safe tokens and back."""

    def __init__(self, secret: str) -> None:
        if not secret:
            raise ValueError("A secret is required to tokenize values")
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        self._cipher = Fernet(base64.urlsafe_b64encode(digest))

    def tokenize(self, value: str) -> str:
        return self._cipher.encrypt(value.encode("utf-8")).decode("ascii")

    def detokenize(self, token: str, *, max_age: int | None = None) -> str:
        try:
            plaintext = self._cipher.decrypt(token.encode("ascii"), ttl=max_age)
        except (InvalidToken, UnicodeEncodeError) as exc:
            raise TokenError("Token is invalid or has expired") from exc
        return plaintext.decode("utf-8")


def generate_reset_token() -> str:
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


__all__ = ["TokenError", "TokenizeTool", "generate_reset_token", "hash_token"]
