"""Resend email API client for reminder emails."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from app.config.settings import settings
from app.modules.notifications.email_templates import reminder_html, reminder_subject

logger = logging.getLogger(__name__)


@dataclass
class EmailResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class ResendClient:
    """Thin client for the Resend REST API."""

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        from_email: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else settings.resend_api_key
        self._from_email = from_email or settings.resend_from_email
        self._base_url = (base_url or settings.resend_api_url).rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def send_email(
        self,
        to: str,
        subject: str,
        html: str,
        tags: Optional[List[Dict[str, str]]] = None,
    ) -> EmailResult:
        if not self._api_key:
            logger.error("RESEND_API_KEY not configured")
            return EmailResult(success=False, error="Email service not configured")

        body: Dict[str, Any] = {
            "from": self._from_email,
            "to": to,
            "subject": subject,
            "html": html,
        }
        if tags:
            body["tags"] = tags

        try:
            with httpx.Client(
                timeout=self._timeout,
                transport=self._transport,
                headers={"Authorization": f"Bearer {self._api_key}"},
            ) as client:
                response = client.post(f"{self._base_url}/emails", json=body)
        except httpx.HTTPError as exc:
            logger.error("Resend request failure: %s", exc)
            return EmailResult(success=False, error=str(exc) or "Unknown error")

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if not response.is_success:
            logger.error("Resend error %s: %s", response.status_code, response.text[:500])
            return EmailResult(success=False, error=payload.get("message") or "Failed to send email")

        logger.info("Email sent: %s", payload.get("id"))
        return EmailResult(success=True, message_id=payload.get("id"))

    def send_reminder_email(
        self,
        to: str,
        plate: str,
        expiry_date,
        days_until: int,
        reminder_type: str,
        reminder_id: str,
    ) -> EmailResult:
        return self.send_email(
            to=to,
            subject=reminder_subject(reminder_type, plate, days_until),
            html=reminder_html(reminder_type, plate, expiry_date, days_until),
            tags=[
                {"name": "type", "value": (reminder_type or "itp").lower()},
                {"name": "reminder_id", "value": str(reminder_id)},
            ],
        )


_resend: Optional[ResendClient] = None


def get_resend() -> ResendClient:
    global _resend
    if _resend is None:
        _resend = ResendClient()
    return _resend
