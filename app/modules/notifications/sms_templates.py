"""
SMS message texts for expiry reminders.

GSM-7 messages fit 160 characters in a single part; longer messages are split
into 153-character parts (7 characters go to the concatenation header).
"""

import math
from typing import Any, Dict, Optional

from app.modules.notifications.scheduling import parse_date

SINGLE_PART_LENGTH = 160
MULTI_PART_LENGTH = 153

TYPE_LABELS = {
    "itp": "ITP",
    "rca": "RCA",
    "rovinieta": "Rovinieta",
}

DEFAULT_SMS_TEMPLATES = {
    "7d": "Bună {name}! {type} pentru {plate} expiră în {days} zile ({date}). Nu uita să te programezi!",
    "3d": "Reminder: {name}, {type} pentru {plate} expiră în {days} zile ({date})! Programează-te urgent!",
    "1d": "URGENT: {name}, {type} pentru {plate} expiră MÂINE ({date})! Programează-te astăzi!",
    "expired": "ATENȚIE: {name}, {type} pentru {plate} a EXPIRAT la data de {date}. Reînnoiește urgent!",
}

# kiosk_stations columns overriding the default texts, per bucket
STATION_TEMPLATE_COLUMNS = {
    "7d": "sms_template_5d",
    "3d": "sms_template_3d",
    "1d": "sms_template_1d",
}


def type_label(reminder_type: Optional[str]) -> str:
    if not reminder_type:
        return "ITP"
    return TYPE_LABELS.get(reminder_type.lower(), reminder_type)


def format_date(value) -> str:
    """Romanian display format dd.MM.yyyy; N/A for unparseable input."""
    try:
        return parse_date(value).strftime("%d.%m.%Y")
    except (TypeError, ValueError):
        return "N/A"


def get_template_for_days(days_until: int) -> str:
    if days_until < 0:
        return "expired"
    if days_until <= 1:
        return "1d"
    if days_until <= 3:
        return "3d"
    return "7d"


def template_id_for(reminder_type: Optional[str], days_until: int) -> str:
    """NotifyHub template identifier, e.g. itp_3d."""
    return f"{(reminder_type or 'itp').lower()}_{get_template_for_days(days_until)}"


def render_sms_template(template: str, data: Dict[str, Any]) -> str:
    """Replace {placeholders} present in data; unknown placeholders are left untouched."""
    rendered = template
    for key, value in data.items():
        if value is None:
            continue
        rendered = rendered.replace("{" + key + "}", str(value))
    return rendered


def build_reminder_sms(
    name: Optional[str],
    plate: str,
    expiry_date,
    days_until: int,
    reminder_type: Optional[str] = "itp",
    station: Optional[Dict[str, Any]] = None,
    opt_out_link: Optional[str] = None,
) -> str:
    bucket = get_template_for_days(days_until)
    template = DEFAULT_SMS_TEMPLATES[bucket]
    if station:
        custom = station.get(STATION_TEMPLATE_COLUMNS.get(bucket, ""))
        if custom:
            template = custom

    message = render_sms_template(template, {
        "name": name or "Client",
        "plate": plate,
        "date": format_date(expiry_date),
        "days": days_until,
        "type": type_label(reminder_type),
        "station_name": (station or {}).get("name"),
        "station_phone": (station or {}).get("station_phone"),
    })
    # the opt-out link is never truncated
    message = truncate_sms(message)
    if opt_out_link:
        message = f"{message} Dezabonare: {opt_out_link}"
    return message


def calculate_sms_parts(message: str) -> int:
    if not message:
        return 0
    if len(message) <= SINGLE_PART_LENGTH:
        return 1
    return math.ceil(len(message) / MULTI_PART_LENGTH)


def is_valid_sms_length(message: str, max_parts: int = 10) -> bool:
    return calculate_sms_parts(message) <= max_parts


def truncate_sms(message: str, max_parts: int = 3) -> str:
    max_length = SINGLE_PART_LENGTH if max_parts == 1 else max_parts * MULTI_PART_LENGTH
    if len(message) <= max_length:
        return message
    return message[:max_length - 3] + "..."


def verification_sms(code: str, ttl_minutes: int, station_name: Optional[str] = None) -> str:
    sender = station_name or "uitdeitp.ro"
    return f"Codul tău de verificare {sender}: {code}\nCodul expiră în {ttl_minutes} minute.\nNu ai cerut? Ignoră."
