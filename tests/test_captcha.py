"""Tests for the reCAPTCHA client using a mocked HTTP transport."""

from __future__ import annotations

import unittest
from typing import Callable, List
from urllib.parse import parse_qs

import httpx

from salesmanager.captcha import CaptchaVerifier
from salesmanager.config import CaptchaSettings
from salesmanager.errors import IntegrationError

VERIFY_URL = "https://captcha.example.com/recaptcha/api/siteverify"


class CaptchaVerifierTests(unittest.TestCase):
    def setUp(self) -> None:
        self.requests: List[httpx.Request] = []

    def _verifier(self, handler: Callable[[httpx.Request], httpx.Response]) -> CaptchaVerifier:
        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        client = httpx.Client(transport=httpx.MockTransport(_record))
        self.addCleanup(client.close)
        return CaptchaVerifier("server-secret", verify_url=VERIFY_URL, timeout=2.0, client=client)

    def test_successful_verification_posts_form_fields(self) -> None:
        verifier = self._verifier(lambda request: httpx.Response(200, json={"success": True}))

        self.assertTrue(verifier.verify("user-token", "203.0.113.7"))

        self.assertEqual(len(self.requests), 1)
        request = self.requests[0]
        self.assertEqual(str(request.url), VERIFY_URL)
        form = parse_qs(request.content.decode())
        self.assertEqual(form["secret"], ["server-secret"])
        self.assertEqual(form["response"], ["user-token"])
        self.assertEqual(form["remoteip"], ["203.0.113.7"])

    def test_rejected_token_returns_false(self) -> None:
        verifier = self._verifier(
            lambda request: httpx.Response(200, json={"success": False, "error-codes": ["invalid-input-response"]})
        )
        with self.assertLogs("salesmanager.captcha", level="INFO") as logs:
            self.assertFalse(verifier.verify("bad-token"))
        self.assertIn("invalid-input-response", logs.output[0])

    def test_missing_success_field_is_false(self) -> None:
        verifier = self._verifier(lambda request: httpx.Response(200, json={"hostname": "shop"}))
        self.assertFalse(verifier.verify("token"))

    def test_empty_token_skips_network_call(self) -> None:
        verifier = self._verifier(lambda request: httpx.Response(200, json={"success": True}))

        self.assertFalse(verifier.verify(""))
        self.assertFalse(verifier.verify(None))
        self.assertEqual(self.requests, [])

    def test_error_status_raises_integration_error(self) -> None:
        verifier = self._verifier(lambda request: httpx.Response(503, text="unavailable"))

        with self.assertRaises(IntegrationError) as ctx:
            verifier.verify("token")
        self.assertEqual(ctx.exception.status_code, 503)

    def test_redirect_status_is_not_treated_as_a_verdict(self) -> None:
        verifier = self._verifier(
            lambda request: httpx.Response(302, json={"success": True}, headers={"Location": "https://example.com/"})
        )

        with self.assertRaises(IntegrationError) as ctx:
            verifier.verify("token")
        self.assertEqual(ctx.exception.status_code, 302)

    def test_non_json_body_raises_integration_error(self) -> None:
        verifier = self._verifier(lambda request: httpx.Response(200, text="<html>nope</html>"))
        with self.assertRaises(IntegrationError):
            verifier.verify("token")

    def test_transport_failure_raises_integration_error(self) -> None:
        def _fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        verifier = self._verifier(_fail)
        with self.assertRaises(IntegrationError):
            verifier.verify("token")

    def test_from_settings_uses_configured_endpoint(self) -> None:
        seen: List[str] = []

        def _handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json={"success": True})

        client = httpx.Client(transport=httpx.MockTransport(_handler))
        self.addCleanup(client.close)
        settings = CaptchaSettings(enabled=True, site_key="site", secret="secret", verify_url=VERIFY_URL)

        verifier = CaptchaVerifier.from_settings(settings, client=client)

        self.assertTrue(verifier.verify("token"))
        self.assertEqual(seen, [VERIFY_URL])

    def test_secret_is_required(self) -> None:
        with self.assertRaises(ValueError):
            CaptchaVerifier("")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
