"""Client for the Google reCAPTCHA v2 ``siteverify`` endpoint."""
from __future__ import annotations

import logging
from typing import Optional

import httpx

from .config import RECAPTCHA_VERIFY_URL, CaptchaSettings
from .errors import IntegrationError

logger = logging.getLogger("salesmanager.captcha")


class CaptchaVerifier:
    """Verify reCAPTCHA response tokens submitted by storefront forms."""

    def __init__(
        self,
        secret: str,
        *,
        verify_url: str = RECAPTCHA_VERIFY_URL,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        if not secret:
            raise ValueError("A reCAPTCHA secret is required")
        self._secret = secret
        self._verify_url = verify_url
        self._timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings: CaptchaSettings, *, client: httpx.Client | None = None) -> "CaptchaVerifier":
        return cls(
            settings.secret or "",
            verify_url=settings.verify_url,
            timeout=settings.timeout,
            client=client,
        )

    def verify(self, response_token: Optional[str], remote_ip: Optional[str] = None) -> bool:
        """Return ``True`` when Google accepts ``response_token``."""

        if not response_token or not response_token.strip():
            return False

        form = {"secret": self._secret, "response": response_token.strip()}
        if remote_ip:
            form["remoteip"] = remote_ip

        try:
            if self._client is not None:
                response = self._client.post(self._verify_url, data=form, timeout=self._timeout)
            else:
                response = httpx.post(self._verify_url, data=form, timeout=self._timeout)
        except httpx.HTTPError as exc:
            raise IntegrationError(f"Unable to reach the reCAPTCHA service: {exc}") from exc

        if not response.is_success:
            raise IntegrationError(
                f"reCAPTCHA service responded with {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise IntegrationError("reCAPTCHA service returned an invalid response") from exc

        if not isinstance(payload, dict):
            raise IntegrationError("reCAPTCHA service returned an invalid response")

        success = payload.get("success") is True
        if not success:
            logger.info("reCAPTCHA verification rejected: %s", payload.get("error-codes") or "no error codes")
        return success


__all__ = ["CaptchaVerifier"]
