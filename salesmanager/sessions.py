"""In-memory customer sessions for the storefront."""

from __future__ import annotations

import secrets
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

CUSTOMER_ATTRIBUTE = "CUSTOMER"
STORE_ATTRIBUTE = "MERCHANT_STORE"
LANGUAGE_ATTRIBUTE = "LANGUAGE"


@dataclass
class _SessionRecord:
    expires_at: datetime
    attributes: Dict[str, Any] = field(default_factory=dict)


class SessionManager:
    """Generate, validate, and revoke sessions carrying named attributes."""

    def __init__(self, *, ttl: timedelta = timedelta(hours=8)) -> None:
        self._ttl = ttl
        self._sessions: Dict[str, _SessionRecord] = {}
        self._lock = threading.Lock()

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    @property
    def cookie_max_age(self) -> int:
        return int(self._ttl.total_seconds())

    def create(self, **attributes: Any) -> str:
        token = secrets.token_urlsafe(32)
        record = _SessionRecord(expires_at=self._now() + self._ttl, attributes=dict(attributes))
        with self._lock:
            self._sessions[token] = record
        return token

    def resolve(self, token: str) -> bool:
        """Return ``True`` and extend the expiry when ``token`` is live."""

        with self._lock:
            return self._live_record(token) is not None

    def get_attribute(self, token: str, key: str) -> Optional[Any]:
        with self._lock:
            record = self._live_record(token)
            if record is None:
                return None
            return record.attributes.get(key)

    def set_attribute(self, token: str, key: str, value: Any) -> None:
        with self._lock:
            record = self._live_record(token)
            if record is None:
                raise KeyError("Session has expired")
            record.attributes[key] = value

    def remove_attribute(self, token: str, key: str) -> None:
        with self._lock:
            record = self._live_record(token)
            if record is not None:
                record.attributes.pop(key, None)

    def destroy(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)

    def _live_record(self, token: str) -> Optional[_SessionRecord]:
        now = self._now()
        record = self._sessions.get(token)
        if record is None:
            return None
        if record.expires_at <= now:
            self._sessions.pop(token, None)
            return None
        record.expires_at = now + self._ttl
        return record

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)


__all__ = ["CUSTOMER_ATTRIBUTE", "LANGUAGE_ATTRIBUTE", "STORE_ATTRIBUTE", "SessionManager"]
