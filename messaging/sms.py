from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from config.settings import settings
from ops.metrics import Timer

log = logging.getLogger("coachpay.sms")

_STRIP_RE = re.compile(r"[\s\-\(\)]")
_E164_RE = re.compile(r"^\+\d{8,15}$")


class DeliveryError(Exception):
    pass


class ConfigurationError(DeliveryError):
    """No message can be sent until the gateway is configured."""


class RecipientError(DeliveryError):
    """Delivery to one recipient failed; other recipients are unaffected."""


@dataclass(frozen=True)
class DeliveryReceipt:
    to: str
    method: str  # "sms" | "test"
    message_id: str = ""


def _dest_hint(v: str, keep: int = 4) -> str:
    v = (v or "").strip()
    if not v:
        return ""
    if len(v) <= keep:
        return v
    return f"...{v[-keep:]}"


def _is_placeholder(v: str) -> bool:
    v = (v or "").strip()
    return not v or "your_" in v.lower()


def normalize_phone(
    phone: str,
    country_prefix: Optional[str] = None,
    domestic_pattern: Optional[str] = None,
    default_prefix: Optional[str] = None,
) -> str:
    raw = _STRIP_RE.sub("", phone or "")
    if not raw:
        raise RecipientError("phone_required")

    country_prefix = country_prefix if country_prefix is not None else settings.SMS_COUNTRY_PREFIX
    domestic_pattern = domestic_pattern if domestic_pattern is not None else settings.SMS_DOMESTIC_MOBILE_PATTERN
    default_prefix = default_prefix if default_prefix is not None else settings.SMS_DEFAULT_PREFIX

    if raw.startswith("+"):
        out = raw
    elif raw.startswith("00"):
        out = "+" + raw[2:]
    elif domestic_pattern and re.match(domestic_pattern, raw):
        # Drop the trunk prefix before adding the country code.
        out = country_prefix + raw.lstrip("0")
    else:
        out = default_prefix + raw

    if not _E164_RE.match(out):
        raise RecipientError(f"invalid_phone:{_dest_hint(raw)}")
    return out


class SmsGateway:
    """
    Single-message SMS client over the provider's form-encoded REST endpoint.

    Response contract: {"messages": [{"status": "0", "message-id": "..."}]}
    Any part with a status other than "0" is a rejection.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        sender_id: Optional[str] = None,
        enabled: Optional[bool] = None,
        api_url: Optional[str] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.SMS_API_KEY
        self.api_secret = api_secret if api_secret is not None else settings.SMS_API_SECRET
        self.sender_id = sender_id if sender_id is not None else settings.SMS_SENDER_ID
        self.enabled = settings.SMS_ENABLED if enabled is None else enabled
        self.api_url = api_url or settings.SMS_API_URL
        self.client = client

    def ensure_configured(self) -> None:
        if not self.enabled:
            return
        missing = [
            name
            for name, value in (("api_key", self.api_key), ("api_secret", self.api_secret), ("sender_id", self.sender_id))
            if _is_placeholder(value)
        ]
        if missing:
            raise ConfigurationError(f"sms_credentials_missing:{','.join(missing)}")

    def send(self, phone: str, message: str) -> DeliveryReceipt:
        if not (phone or "").strip():
            raise RecipientError("phone_required")
        to = normalize_phone(phone)

        if not self.enabled:
            preview = message if len(message) <= 80 else message[:80] + "..."
            log.info(
                "sms_test_mode",
                extra={"extra": {"event": "sms_test_mode", "dest": _dest_hint(to), "text": preview}},
            )
            return DeliveryReceipt(to=to, method="test")

        self.ensure_configured()

        t = Timer()
        log.info(
            "sms_send_attempt",
            extra={"extra": {"event": "sms_send_attempt", "channel": "sms", "dest": _dest_hint(to)}},
        )
        payload = {
            "api_key": self.api_key,
            "api_secret": self.api_secret,
            "from": self.sender_id,
            "to": to.lstrip("+"),
            "text": message,
        }
        try:
            if self.client is not None:
                r = self.client.post(self.api_url, data=payload, timeout=settings.SMS_TIMEOUT_SEC)
            else:
                r = httpx.post(self.api_url, data=payload, timeout=settings.SMS_TIMEOUT_SEC)
        except httpx.HTTPError as e:
            log.error(
                "sms_send_exception",
                extra={
                    "extra": {
                        "event": "sms_send_exception",
                        "channel": "sms",
                        "dest": _dest_hint(to),
                        "error_type": type(e).__name__,
                        "message": str(e),
                        "latency_ms": t.ms(),
                    }
                },
            )
            raise RecipientError(f"transport_error:{type(e).__name__}") from e

        try:
            data: Dict[str, Any] = r.json()
        except ValueError:
            data = {}
        if r.status_code >= 400 or not isinstance(data, dict):
            log.warning(
                "sms_send_failed",
                extra={"extra": {"event": "sms_send_failed", "dest": _dest_hint(to), "status_code": r.status_code}},
            )
            raise RecipientError(f"provider_http_{r.status_code}")

        parts = data.get("messages") or []
        rejected = [p for p in parts if str(p.get("status")) != "0"]
        ok = bool(parts) and not rejected

        log.info(
            "sms_send_result",
            extra={
                "extra": {
                    "event": "sms_send_result",
                    "channel": "sms",
                    "dest": _dest_hint(to),
                    "ok": ok,
                    "status_code": r.status_code,
                    "latency_ms": t.ms(),
                }
            },
        )

        if not ok:
            first = rejected[0] if rejected else {}
            status = str(first.get("status", "missing"))
            reason = first.get("error-text") or "no_messages"
            raise RecipientError(f"provider_rejected:{status}:{reason}")

        return DeliveryReceipt(to=to, method="sms", message_id=str(parts[0].get("message-id") or ""))
