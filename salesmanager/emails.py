"""E-mail templates and delivery hooks for customer notifications."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Protocol

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

from .errors import ServiceError

logger = logging.getLogger("salesmanager.emails")

EMAIL_CUSTOMER_REGISTRATION_TPL = "customer_registration.html"
EMAIL_PASSWORD_RESET_TPL = "password_reset.html"
EMAIL_PASSWORD_CHANGED_TPL = "password_changed.html"
EMAIL_CONTACT_TPL = "contact.html"

_TEMPLATE_DIR = Path(__file__).resolve().parent / "templates" / "email"


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    html_body: str
    from_address: str
    template: str


class EmailSender(Protocol):
    def send(self, message: EmailMessage) -> None: ...


class LoggingEmailSender:
    """Default sender that records outgoing mail in the service log."""

    def send(self, message: EmailMessage) -> None:
        logger.info(
            "E-mail '%s' (%s) queued for %s from %s",
            message.subject,
            message.template,
            message.to,
            message.from_address,
        )


class EmailTemplates:
    """Render the HTML e-mail templates shipped with the package."""

    def __init__(self, template_dir: Path | None = None) -> None:
        self._env = Environment(
            loader=FileSystemLoader(str(template_dir or _TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"]),
        )

    def render(
        self,
        template: str,
        *,
        to: str,
        subject: str,
        from_address: str,
        context: Mapping[str, Any],
    ) -> EmailMessage:
        try:
            body = self._env.get_template(template).render(subject=subject, **context)
        except TemplateNotFound as exc:
            raise ServiceError(f"E-mail template '{template}' is not available") from exc
        return EmailMessage(
            to=to,
            subject=subject,
            html_body=body,
            from_address=from_address,
            template=template,
        )


__all__ = [
    "EMAIL_CONTACT_TPL",
    "EMAIL_CUSTOMER_REGISTRATION_TPL",
    "EMAIL_PASSWORD_CHANGED_TPL",
    "EMAIL_PASSWORD_RESET_TPL",
    "EmailMessage",
    "EmailSender",
    "EmailTemplates",
    "LoggingEmailSender",
]
