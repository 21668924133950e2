"""Customer registration, authentication, and password management."""
from __future__ import annotations

import enum
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Annotated, Any, Dict, Optional

from pydantic import AfterValidator, BaseModel, EmailStr, Field, field_validator

from .captcha import CaptchaVerifier
from .database import Database
from .emails import (
    EMAIL_CONTACT_TPL,
    EMAIL_CUSTOMER_REGISTRATION_TPL,
    EMAIL_PASSWORD_CHANGED_TPL,
    EMAIL_PASSWORD_RESET_TPL,
    EmailSender,
    EmailTemplates,
)
from .errors import ServiceError
from .languages import resolve_language
from .models import Customer, MerchantStore
from .tokens import TokenError, TokenizeTool, generate_reset_token, hash_token
from .validation import FieldMatchModel, enum_member

logger = logging.getLogger("salesmanager.customers")

MIN_PASSWORD_LENGTH = 6


class CustomerGender(enum.Enum):
    M = "M"
    F = "F"


class CaptchaError(ServiceError):
    """Raised when a form is submitted without a valid captcha response."""


class CustomerRegistration(FieldMatchModel):
    field_matches = (("password", "repeat_password", "Passwords do not match"),)

    email: EmailStr
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=128)
    repeat_password: str = Field(..., max_length=128)
    first_name: str = Field(..., min_length=1, max_length=64)
    last_name: str = Field(..., min_length=1, max_length=64)
    gender: Annotated[Optional[str], AfterValidator(enum_member(CustomerGender, ignore_case=True))] = None
    language: Optional[str] = Field(default=None, max_length=8)
    captcha_response: Optional[str] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def _strip_names(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be empty")
        return stripped


class PasswordChange(FieldMatchModel):
    field_matches = (("new_password", "repeat_password", "Passwords do not match"),)

    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=128)
    repeat_password: str = Field(..., max_length=128)


class PasswordReset(FieldMatchModel):
    field_matches = (("password", "repeat_password", "Passwords do not match"),)

    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=MIN_PASSWORD_LENGTH, max_length=128)
    repeat_password: str = Field(..., max_length=128)


class ContactMessage(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    email: EmailStr
    message: str = Field(..., min_length=1, max_length=5000)
    captcha_response: Optional[str] = None


class CustomerFacade:
    """Customer workflows that combine persistence, captcha, and e-mail."""

    def __init__(
        self,
        database: Database,
        *,
        tokenizer: TokenizeTool,
        templates: EmailTemplates,
        sender: EmailSender,
        captcha: CaptchaVerifier | None = None,
        public_base_url: str = "",
        reset_token_ttl: timedelta = timedelta(hours=24),
    ) -> None:
        self._database = database
        self._tokenizer = tokenizer
        self._templates = templates
        self._sender = sender
        self._captcha = captcha
        self._public_base_url = public_base_url.rstrip("/")
        self._reset_token_ttl = reset_token_ttl

    @property
    def captcha_enabled(self) -> bool:
        return self._captcha is not None

    def _check_captcha(self, token: Optional[str], remote_ip: Optional[str]) -> None:
        if self._captcha is None:
            return
        if not self._captcha.verify(token, remote_ip):
            raise CaptchaError("Captcha validation failed")

    def _send(
        self,
        store: MerchantStore,
        template: str,
        *,
        to: str,
        subject: str,
        language: str,
        context: Dict[str, Any],
    ) -> None:
        message = self._templates.render(
            template,
            to=to,
            subject=subject,
            from_address=store.email,
            context={"store": store, "language": language, **context},
        )
        self._sender.send(message)

    # ------------------------------------------------------------------
    # Registration and login
    # ------------------------------------------------------------------
    def register(
        self,
        store: MerchantStore,
        registration: CustomerRegistration,
        *,
        remote_ip: Optional[str] = None,
    ) -> Customer:
        self._check_captcha(registration.captcha_response, remote_ip)
        language = resolve_language(store, registration.language)
        if self._database.get_customer_by_email(store.id, registration.email) is not None:
            raise ServiceError("A customer with that email already exists")
        try:
            customer = self._database.create_customer(
                store.id,
                email=registration.email,
                password=registration.password,
                first_name=registration.first_name,
                last_name=registration.last_name,
                gender=registration.gender,
                language_code=language.code,
            )
        except ValueError as exc:
            raise ServiceError(str(exc)) from exc

        logger.info("Registered customer %s in store %s", customer.id, store.code)
        self._send(
            store,
            EMAIL_CUSTOMER_REGISTRATION_TPL,
            to=customer.email,
            subject=f"Welcome to {store.name}",
            language=customer.language_code,
            context={"customer": customer, "login_url": f"{self._public_base_url}/shop/{store.code}/customer/login"},
        )
        return customer

    def authenticate(self, store: MerchantStore, email: str, password: str) -> Optional[Customer]:
        customer = self._database.authenticate_customer(store.id, email, password)
        if customer is None:
            logger.warning("Failed login for %s in store %s", email, store.code)
        return customer

    def get_customer(self, store: MerchantStore, customer_id: int) -> Optional[Customer]:
        return self._database.get_customer(store.id, customer_id)

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------
    def change_password(self, store: MerchantStore, customer: Customer, change: PasswordChange) -> None:
        if not self._database.verify_customer_password(customer.id, change.current_password):
            raise ServiceError("Current password is incorrect")
        self._database.set_customer_password(customer.id, change.new_password)
        logger.info("Customer %s changed their password", customer.id)
        self._notify_password_changed(store, customer)

    def request_password_reset(self, store: MerchantStore, email: str) -> Optional[str]:
        """E-mail a reset link and return its token; unknown addresses return ``None``."""

        customer = self._database.get_customer_by_email(store.id, email)
        if customer is None:
            logger.info("Password reset requested for unknown address in store %s", store.code)
            return None

        raw = generate_reset_token()
        expires_at = datetime.now(timezone.utc) + self._reset_token_ttl
        self._database.set_customer_reset_token(customer.id, hash_token(raw), expires_at)
        token = self._tokenizer.tokenize(f"{customer.id}:{raw}")

        self._send(
            store,
            EMAIL_PASSWORD_RESET_TPL,
            to=customer.email,
            subject=f"{store.name} password reset",
            language=customer.language_code,
            context={
                "customer": customer,
                "reset_url": f"{self._public_base_url}/shop/{store.code}/customer/reset?token={token}",
                "valid_hours": int(self._reset_token_ttl.total_seconds() // 3600),
            },
        )
        logger.info("Issued password reset token for customer %s", customer.id)
        return token

    def reset_password(self, store: MerchantStore, reset: PasswordReset) -> Customer:
        customer_id, raw = self._parse_reset_token(reset.token)
        customer = self._database.get_customer(store.id, customer_id)
        stored = self._database.get_customer_reset_token(customer_id) if customer is not None else None
        if customer is None or stored is None:
            raise TokenError("Password reset token is invalid or has expired")

        token_hash, expires_at = stored
        if not secrets.compare_digest(token_hash, hash_token(raw)) or expires_at <= datetime.now(timezone.utc):
            raise TokenError("Password reset token is invalid or has expired")

        self._database.set_customer_password(customer.id, reset.password)
        logger.info("Customer %s reset their password", customer.id)
        self._notify_password_changed(store, customer)
        return customer

    def _parse_reset_token(self, token: str) -> tuple[int, str]:
        value = self._tokenizer.detokenize(token)
        customer_part, _, raw = value.partition(":")
        if not customer_part.isdigit() or not raw:
            raise TokenError("Password reset token is invalid or has expired")
        return int(customer_part), raw

    def _notify_password_changed(self, store: MerchantStore, customer: Customer) -> None:
        self._send(
            store,
            EMAIL_PASSWORD_CHANGED_TPL,
            to=customer.email,
            subject=f"{store.name} password changed",
            language=customer.language_code,
            context={"customer": customer},
        )

    # ------------------------------------------------------------------
    # Contact form
    # ------------------------------------------------------------------
    def contact_store(self, store: MerchantStore, message: ContactMessage, *, remote_ip: Optional[str] = None) -> None:
        self._check_captcha(message.captcha_response, remote_ip)
        self._send(
            store,
            EMAIL_CONTACT_TPL,
            to=store.email,
            subject=f"Contact form message from {message.name}",
            language=store.default_language.code,
            context={"name": message.name, "email": message.email, "message": message.message},
        )
        logger.info("Forwarded contact message to store %s", store.code)


__all__ = [
    "CaptchaError",
    "ContactMessage",
    "CustomerFacade",
    "CustomerGender",
    "CustomerRegistration",
    "PasswordChange",
    "PasswordReset",
]
