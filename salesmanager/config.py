"""Configuration management for the storefront service."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

import yaml

RECAPTCHA_VERIFY_URL = "https://www.google.com/recaptcha/api/siteverify"

_PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _env_flag(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_size(value: object, default: Tuple[int, int]) -> Tuple[int, int]:
    """Parse ``"110x110"`` or ``[110, 110]`` into a width/height pair."""

    if value is None or value == "":
        return default
    if isinstance(value, str):
        parts = value.lower().split("x", 1)
    elif isinstance(value, (list, tuple)):
        parts = list(value)
    else:
        raise ValueError(f"Invalid image size {value!r}")
    if len(parts) != 2:
        raise ValueError(f"Invalid image size {value!r}; expected WIDTHxHEIGHT")
    width, height = int(parts[0]), int(parts[1])
    if width < 0 or height < 0:
        raise ValueError(f"Image size {value!r} must not be negative")
    return width, height


def _resolve_path(raw: object, base_path: Optional[Path]) -> Path:
    candidate = Path(str(raw)).expanduser()
    if not candidate.is_absolute() and base_path is not None:
        candidate = base_path / candidate
    return candidate.resolve(strict=False)


@dataclass(frozen=True)
class CaptchaSettings:
    """reCAPTCHA v2 credentials used by customer registration."""

    enabled: bool = False
    site_key: Optional[str] = None
    secret: Optional[str] = None
    verify_url: str = RECAPTCHA_VERIFY_URL
    timeout: float = 10.0

    @staticmethod
    def from_dict(data: Mapping[str, object]) -> "CaptchaSettings":
        enabled_raw = data.get("enabled", False)
        enabled = _env_flag(enabled_raw) if isinstance(enabled_raw, str) else bool(enabled_raw)
        secret = str(data["secret"]) if data.get("secret") else None
        if enabled and not secret:
            raise ValueError("reCAPTCHA is enabled but no secret was configured")
        return CaptchaSettings(
            enabled=enabled,
            site_key=str(data["site_key"]) if data.get("site_key") else None,
            secret=secret,
            verify_url=str(data.get("verify_url") or RECAPTCHA_VERIFY_URL),
            timeout=float(data.get("timeout", 10.0)),
        )


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the storefront service."""

    database_path: Path
    content_root: Path
    public_base_url: str = "http://localhost:8080"
    admin_tokens: Tuple[str, ...] = ()
    secret_key: Optional[str] = None
    captcha: CaptchaSettings = field(default_factory=CaptchaSettings)
    small_image_size: Tuple[int, int] = (110, 110)
    large_image_size: Tuple[int, int] = (900, 900)
    session_ttl_hours: int = 8
    reset_token_ttl_hours: int = 24
    default_language: str = "en"

    @staticmethod
    def from_dict(data: Mapping[str, object], base_path: Path | None = None) -> "Settings":
        """Create :class:`Settings` from raw dictionary data."""

        database_raw = data.get("database_path") or (_PROJECT_ROOT / "data" / "salesmanager.sqlite3")
        content_raw = data.get("content_root") or (_PROJECT_ROOT / "data" / "content")

        tokens_raw = data.get("admin_tokens") or ()
        if isinstance(tokens_raw, str):
            tokens_raw = tokens_raw.split(",")
        tokens = tuple(str(token).strip() for token in tokens_raw if str(token).strip())

        captcha_raw = data.get("captcha") or {}
        if not isinstance(captcha_raw, Mapping):
            raise ValueError("The 'captcha' section must be a mapping")

        session_ttl = int(data.get("session_ttl_hours", 8))
        reset_ttl = int(data.get("reset_token_ttl_hours", 24))
        if session_ttl <= 0 or reset_ttl <= 0:
            raise ValueError("Session and reset token lifetimes must be positive")

        return Settings(
            database_path=_resolve_path(database_raw, base_path),
            content_root=_resolve_path(content_raw, base_path),
            public_base_url=str(data.get("public_base_url") or "http://localhost:8080").rstrip("/"),
            admin_tokens=tokens,
            secret_key=str(data["secret_key"]) if data.get("secret_key") else None,
            captcha=CaptchaSettings.from_dict(captcha_raw),
            small_image_size=_parse_size(data.get("small_image_size"), (110, 110)),
            large_image_size=_parse_size(data.get("large_image_size"), (900, 900)),
            session_ttl_hours=session_ttl,
            reset_token_ttl_hours=reset_ttl,
            default_language=str(data.get("default_language") or "en").strip().lower(),
        )


def _environment_overrides(environ: Mapping[str, str]) -> Dict[str, object]:
    overrides: Dict[str, object] = {}
    simple = {
        "SALESMANAGER_DB_PATH": "database_path",
        "SALESMANAGER_CONTENT_ROOT": "content_root",
        "SALESMANAGER_PUBLIC_URL": "public_base_url",
        "SALESMANAGER_API_TOKENS": "admin_tokens",
        "SALESMANAGER_SECRET_KEY": "secret_key",
        "SALESMANAGER_SMALL_IMAGE_SIZE": "small_image_size",
        "SALESMANAGER_LARGE_IMAGE_SIZE": "large_image_size",
        "SALESMANAGER_SESSION_TTL_HOURS": "session_ttl_hours",
        "SALESMANAGER_RESET_TOKEN_TTL_HOURS": "reset_token_ttl_hours",
        "SALESMANAGER_DEFAULT_LANGUAGE": "default_language",
    }
    for variable, key in simple.items():
        value = environ.get(variable)
        if value is not None and value.strip():
            overrides[key] = value.strip()

    captcha: Dict[str, object] = {}
    if "SALESMANAGER_RECAPTCHA_ENABLED" in environ:
        captcha["enabled"] = _env_flag(environ.get("SALESMANAGER_RECAPTCHA_ENABLED"))
    for variable, key in (
        ("SALESMANAGER_RECAPTCHA_SITE_KEY", "site_key"),
        ("SALESMANAGER_RECAPTCHA_SECRET", "secret"),
        ("SALESMANAGER_RECAPTCHA_URL", "verify_url"),
        ("SALESMANAGER_RECAPTCHA_TIMEOUT", "timeout"),
    ):
        value = environ.get(variable)
        if value:
            captcha[key] = value.strip()
    if captcha:
        overrides["captcha"] = captcha
    return overrides


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the YAML configuration file."""
    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    return (_PROJECT_ROOT / "config" / "salesmanager.yaml").resolve(strict=False)


def load_settings(
    config_path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Load settings from YAML (when present) and apply environment overrides."""

    environ = os.environ if environ is None else environ
    path = config_path or resolve_config_path(environ.get("SALESMANAGER_CONFIG"))

    raw: Dict[str, object] = {}
    base_path: Optional[Path] = None
    if path.exists():
        with path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Configuration file {path} must contain a mapping")
        raw.update(loaded)
        base_path = path.parent

    overrides = _environment_overrides(environ)
    captcha_override = overrides.pop("captcha", None)
    raw.update(overrides)
    if captcha_override:
        merged = dict(raw.get("captcha") or {})
        merged.update(captcha_override)  # type: ignore[arg-type]
        raw["captcha"] = merged

    return Settings.from_dict(raw, base_path=base_path)


__all__ = [
    "CaptchaSettings",
    "RECAPTCHA_VERIFY_URL",
    "Settings",
    "load_settings",
    "resolve_config_path",
]
