# Overview: Outbound message providers (Twilio SMS/WhatsApp over REST, email over SMTP).

"""
Messaging providers.

Every provider exposes send(to, body, subject=None) -> bool. Delivery
errors never escape send(): they are logged and reported as False, so a
provider outage can only ever produce a FAILED notification record.

Credentials come from the store's settings first and fall back to the
global app config (TWILIO_*, SMTP_*, EMAIL_FROM). A provider with no
usable credentials logs a warning and returns False.
"""

from __future__ import annotations

import smtplib
from email.message import EmailMessage
from typing import Any

import httpx
from flask import current_app

from ..errors import ProviderError


class MessagingProvider:
    channel = ""

    def is_configured(self) -> bool:
        raise NotImplementedError

    def _deliver(self, to: str, body: str, subject: str | None = None) -> None:
        raise NotImplementedError

    def send(self, to: str, body: str, subject: str | None = None) -> bool:
        if not self.is_configured():
            current_app.logger.warning("%s not sent: provider not configured", self.channel)
            return False
        try:
            self._deliver(to, body, subject)
        except Exception:
            current_app.logger.exception("Failed to send %s to %s", self.channel, to)
            return False
        current_app.logger.info("%s sent to %s", self.channel, to)
        return True


class TwilioMessagingProvider(MessagingProvider):
    """Twilio Programmable Messaging via the REST API."""

    channel = "SMS"
    address_prefix = ""

    def __init__(self, account_sid: str | None, auth_token: str | None, from_number: str | None,
                 api_base: str, timeout: float = 10.0):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    def _address(self, number: str) -> str:
        if self.address_prefix and not number.startswith(self.address_prefix):
            return f"{self.address_prefix}{number}"
        return number

    def _deliver(self, to: str, body: str, subject: str | None = None) -> None:
        url = f"{self.api_base}/Accounts/{self.account_sid}/Messages.json"
        payload = {"To": self._address(to), "From": self._address(self.from_number), "Body": body}
        with httpx.Client(timeout=self.timeout) as client:
            response = client.post(url, data=payload, auth=(self.account_sid, self.auth_token))
        if response.status_code >= 400:
            raise ProviderError(f"Twilio responded {response.status_code}: {response.text[:200]}")


class TwilioWhatsAppProvider(TwilioMessagingProvider):
    channel = "WHATSAPP"
    address_prefix = "whatsapp:"


class SmtpEmailProvider(MessagingProvider):
    channel = "EMAIL"

    def __init__(self, host: str | None, port: int | None, user: str | None, password: str | None,
                 from_address: str | None, secure: bool = False, timeout: float = 10.0):
        self.host = host
        self.port = port or 587
        self.user = user
        self.password = password
        self.from_address = from_address
        self.secure = secure
        self.timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.host and self.user and self.password)

    def _deliver(self, to: str, body: str, subject: str | None = None) -> None:
        msg = EmailMessage()
        msg["From"] = self.from_address or self.user
        msg["To"] = to
        msg["Subject"] = subject or ""
        msg.set_content("This message requires an HTML-capable email client.")
        msg.add_alternative(body, subtype="html")

        smtp_cls = smtplib.SMTP_SSL if self.secure else smtplib.SMTP
        with smtp_cls(self.host, self.port, timeout=self.timeout) as smtp:
            if not self.secure:
                smtp.starttls()
            smtp.login(self.user, self.password)
            smtp.send_message(msg)


def _pick(settings: dict[str, Any], key: str, config_key: str):
    value = settings.get(key)
    if value:
        return value
    return current_app.config.get(config_key)


def resolve_provider(channel: str, settings: dict[str, Any]) -> MessagingProvider:
    """Build the provider for `channel` from store settings, falling back to app config."""
    cfg = current_app.config
    timeout = float(cfg.get("PROVIDER_TIMEOUT_SECONDS", 10))
    channel = channel.upper()
    if channel == "EMAIL":
        return SmtpEmailProvider(
            host=_pick(settings, "email.smtp_host", "SMTP_HOST"),
            port=_pick(settings, "email.smtp_port", "SMTP_PORT"),
            user=_pick(settings, "email.smtp_user", "SMTP_USER"),
            password=_pick(settings, "email.smtp_password", "SMTP_PASS"),
            from_address=_pick(settings, "email.from_address", "EMAIL_FROM"),
            secure=bool(cfg.get("SMTP_SECURE")),
            timeout=timeout,
        )
    if channel in ("SMS", "WHATSAPP"):
        provider_cls = TwilioWhatsAppProvider if channel == "WHATSAPP" else TwilioMessagingProvider
        from_key, from_config = (
            ("whatsapp.from_number", "TWILIO_WHATSAPP_NUMBER")
            if channel == "WHATSAPP"
            else ("sms.from_number", "TWILIO_PHONE_NUMBER")
        )
        return provider_cls(
            account_sid=_pick(settings, "sms.twilio_account_sid", "TWILIO_ACCOUNT_SID"),
            auth_token=_pick(settings, "sms.twilio_auth_token", "TWILIO_AUTH_TOKEN"),
            from_number=_pick(settings, from_key, from_config),
            api_base=cfg.get("TWILIO_API_BASE", "https://api.twilio.com/2010-04-01"),
            timeout=timeout,
        )
    raise ProviderError(f"Unsupported channel: {channel}")


def send_sms(to: str, body: str, settings: dict[str, Any] | None = None) -> bool:
    return resolve_provider("SMS", settings or {}).send(to, body)


def send_whatsapp(to: str, body: str, settings: dict[str, Any] | None = None) -> bool:
    return resolve_provider("WHATSAPP", settings or {}).send(to, body)


def send_email(to: str, subject: str, html: str, settings: dict[str, Any] | None = None) -> bool:
    return resolve_provider("EMAIL", settings or {}).send(to, html, subject=subject)
