"""NotifyHub SMS gateway client.

Delivery failures are returned as ``SmsResult(success=False, ...)`` rather
than raised, so a batch caller can log them per reminder and move on.

Retry strategy: up to ``max_retries`` attempts with exponential backoff
(1s, 2s, 4s). Network errors and HTTP 5xx are retried; HTTP 4xx (bad
request, auth failure) are returned immediately.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx

from app.config.settings import settings
from app.core.validation import mask_phone
from app.modules.notifications.sms_templates import (
    build_reminder_sms,
    template_id_for,
    verification_sms,
)

logger = logging.getLogger(__name__)


@dataclass
class SmsResult:
    success: bool
    message_id: Optional[str] = None
    provider: Optional[str] = None
    parts: Optional[int] = None
    cost: Optional[float] = None
    error: Optional[str] = None
    code: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "SmsResult":
        return cls(
            success=bool(payload.get("success", True)),
            message_id=payload.get("messageId") or payload.get("message_id"),
            provider=payload.get("provider"),
            parts=payload.get("parts"),
            cost=payload.get("cost"),
            error=payload.get("error"),
            code=payload.get("code"),
        )


class NotifyHubClient:
    """Thin client for the NotifyHub REST API."""

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_base_delay: float = 1.0,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._api_key = api_key if api_key is not None else settings.notifyhub_api_key
        self._base_url = (base_url or settings.notifyhub_url).rstrip("/")
        self._timeout = timeout if timeout is not None else settings.notifyhub_timeout_seconds
        self._max_retries = max_retries if max_retries is not None else settings.notifyhub_max_retries
        self._retry_base_delay = retry_base_delay
        self._transport = transport
        self._sleep = sleep

        if not self._api_key:
            logger.warning("NotifyHub API key not configured")

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self._timeout,
            transport=self._transport,
            headers={"Authorization": f"Bearer {self._api_key}"},
        )

    def send_sms(
        self,
        to: str,
        message: str,
        template_id: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> SmsResult:
        body: Dict[str, Any] = {"to": to, "message": message}
        if template_id:
            body["templateId"] = template_id
        if data:
            body["data"] = data

        last_error = SmsResult(success=False, error="All retry attempts failed", code="MAX_RETRIES_EXCEEDED")
        for attempt in range(1, self._max_retries + 1):
            try:
                with self._client() as client:
                    response = client.post(f"{self._base_url}/api/send", json=body)
                payload = _json_or_empty(response)
            except httpx.HTTPError as exc:
                last_error = SmsResult(success=False, error=str(exc) or "Network error", code="NETWORK_ERROR")
                logger.error(
                    "NotifyHub attempt %s/%s network error for %s: %s",
                    attempt, self._max_retries, mask_phone(to), exc,
                )
            else:
                if response.is_success:
                    if attempt > 1:
                        logger.info("NotifyHub send succeeded on attempt %s/%s", attempt, self._max_retries)
                    return SmsResult.from_payload(payload)

                error = SmsResult(
                    success=False,
                    error=payload.get("error") or "SMS sending failed",
                    code=payload.get("code") or "UNKNOWN_ERROR",
                )
                if 400 <= response.status_code < 500:
                    logger.error("NotifyHub client error (no retry): %s %s", response.status_code, error.error)
                    return error
                last_error = error
                logger.warning(
                    "NotifyHub attempt %s/%s failed: %s %s",
                    attempt, self._max_retries, response.status_code, error.error,
                )

            if attempt < self._max_retries:
                delay = self._retry_base_delay * (2 ** (attempt - 1))
                logger.info("NotifyHub retrying in %.1fs", delay)
                self._sleep(delay)

        return last_error

    def send_verification_code(self, phone: str, code: str, station_name: Optional[str] = None) -> SmsResult:
        return self.send_sms(
            to=phone,
            message=verification_sms(code, settings.verification_code_ttl_minutes, station_name),
            template_id="verification_code",
            data={"code": code, "stationName": station_name or "uitdeitp.ro"},
        )

    def send_reminder(
        self,
        phone: str,
        name: Optional[str],
        plate: str,
        expiry_date: str,
        days_until: int,
        reminder_type: str = "itp",
        station: Optional[Dict[str, Any]] = None,
        opt_out_link: Optional[str] = None,
    ) -> SmsResult:
        message = build_reminder_sms(
            name, plate, expiry_date, days_until,
            reminder_type=reminder_type, station=station, opt_out_link=opt_out_link,
        )
        return self.send_sms(
            to=phone,
            message=message,
            template_id=template_id_for(reminder_type, days_until),
            data={
                "name": name or "Client",
                "plate": plate,
                "date": str(expiry_date),
                "daysUntil": days_until,
            },
        )

    def check_health(self) -> Dict[str, Any]:
        try:
            with self._client() as client:
                response = client.get(f"{self._base_url}/api/health")
        except httpx.HTTPError as exc:
            return {"ok": False, "error": str(exc) or "Unknown error"}
        if not response.is_success:
            return {"ok": False, "error": f"HTTP {response.status_code}"}
        return {"ok": True, "status": _json_or_empty(response)}


def _json_or_empty(response: httpx.Response) -> Dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


_notifyhub: Optional[NotifyHubClient] = None


def get_notifyhub() -> NotifyHubClient:
    global _notifyhub
    if _notifyhub is None:
        _notifyhub = NotifyHubClient()
    return _notifyhub
