"""Security helpers for the storefront admin API."""
from __future__ import annotations

import secrets
from typing import Iterable, List

from fastapi import HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer


class AdminTokenAuth:
    """Bearer token authentication using constant-time comparisons.

    With no tokens configured every private route answers ``403``.
    """

    def __init__(self, tokens: Iterable[str]):
        self._tokens: List[str] = [token.strip() for token in tokens if token.strip()]
        self._bearer = HTTPBearer(auto_error=False)

    @property
    def enabled(self) -> bool:
        return bool(self._tokens)

    async def __call__(self, request: Request) -> None:
        if not self._tokens:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin API is disabled")

        credentials: HTTPAuthorizationCredentials | None = await self._bearer(request)  # type: ignore[assignment]
        if credentials is None or credentials.scheme.lower() != "bearer":
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")

        provided = credentials.credentials
        for token in self._tokens:
            if secrets.compare_digest(provided, token):
                return None

        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid API token")


__all__ = ["AdminTokenAuth"]
