"""
Romanian phone number and license plate validation.

Phones are stored in E.164 (+40XXXXXXXXX). Plates are stored in the compact
form (B123ABC) to save SMS characters and displayed with dashes (B-123-ABC).
"""

import re
from datetime import date
from typing import Optional

_PHONE_E164 = re.compile(r"^\+40\d{9}$")
_PLATE_COMPACT = re.compile(r"^([A-Z]{1,2})(\d{2,3})([A-Z]{3})$")
_NAME = re.compile(r"^[a-zA-ZăâîșțşţĂÂÎȘȚŞŢ\s-]+$")

MAX_EXPIRY_YEARS = 5

ROMANIAN_COUNTIES = {
    "AB": "Alba",
    "AG": "Argeș",
    "AR": "Arad",
    "B": "București",
    "BC": "Bacău",
    "BH": "Bihor",
    "BN": "Bistrița-Năsăud",
    "BR": "Brăila",
    "BT": "Botoșani",
    "BV": "Brașov",
    "BZ": "Buzău",
    "CJ": "Cluj",
    "CL": "Călărași",
    "CS": "Caraș-Severin",
    "CT": "Constanța",
    "CV": "Covasna",
    "DB": "Dâmbovița",
    "DJ": "Dolj",
    "GJ": "Gorj",
    "GL": "Galați",
    "GR": "Giurgiu",
    "HD": "Hunedoara",
    "HR": "Harghita",
    "IF": "Ilfov",
    "IL": "Ialomița",
    "IS": "Iași",
    "MH": "Mehedinți",
    "MM": "Maramureș",
    "MS": "Mureș",
    "NT": "Neamț",
    "OT": "Olt",
    "PH": "Prahova",
    "SB": "Sibiu",
    "SJ": "Sălaj",
    "SM": "Satu Mare",
    "SV": "Suceava",
    "TL": "Tulcea",
    "TM": "Timiș",
    "TR": "Teleorman",
    "VL": "Vâlcea",
    "VN": "Vrancea",
    "VS": "Vaslui",
}


def format_phone_number(phone: str) -> Optional[str]:
    """Format a Romanian phone number to E.164, or None when it is not one.

    0712345678, 40712345678, +40712345678 and 712345678 all become +40712345678.
    """
    if not phone:
        return None
    digits = re.sub(r"\D", "", phone)

    if digits.startswith("40") and len(digits) == 11:
        return f"+{digits}"
    if digits.startswith("0") and len(digits) == 10:
        return f"+40{digits[1:]}"
    if len(digits) == 9:
        return f"+40{digits}"
    return None


def is_valid_phone_number(phone: str) -> bool:
    formatted = format_phone_number(phone)
    return bool(formatted and _PHONE_E164.match(formatted))


def display_phone_number(phone: str) -> str:
    """+40712345678 -> 0712 345 678"""
    formatted = format_phone_number(phone)
    if not formatted:
        return phone
    digits = formatted[3:]
    return f"0{digits[:3]} {digits[3:6]} {digits[6:]}"


def mask_phone(phone: Optional[str]) -> str:
    """Hide the middle digits of a phone number for log lines."""
    if not phone:
        return "<none>"
    if len(phone) <= 6:
        return "***"
    return f"{phone[:4]}***{phone[-3:]}"


def normalize_plate_number(plate: str) -> str:
    """B-123-ABC / b 123 abc -> B123ABC"""
    return re.sub(r"[^A-Za-z0-9]", "", plate or "").upper()


def is_valid_plate_number(plate: str) -> bool:
    return bool(_PLATE_COMPACT.match(normalize_plate_number(plate)))


def format_plate_number(plate: str) -> Optional[str]:
    """Dashed display form (B-123-ABC), or None when the plate is invalid."""
    match = _PLATE_COMPACT.match(normalize_plate_number(plate))
    if not match:
        return None
    county, number, letters = match.groups()
    return f"{county}-{number}-{letters}"


def get_county_from_plate(plate: str) -> Optional[str]:
    formatted = format_plate_number(plate)
    if not formatted:
        return None
    return formatted.split("-")[0]


def get_county_name(plate: str) -> Optional[str]:
    code = get_county_from_plate(plate)
    return ROMANIAN_COUNTIES.get(code) if code else None


def validate_name(name: str) -> Optional[str]:
    """Return an error message, or None when the name is acceptable."""
    trimmed = (name or "").strip()
    if len(trimmed) < 2:
        return "Numele trebuie să conțină cel puțin 2 caractere"
    if not _NAME.match(trimmed):
        return "Numele poate conține doar litere și spații"
    return None


def validate_expiry_date(expiry: Optional[date], today: date) -> Optional[str]:
    """Return an error message, or None when the expiry date is acceptable."""
    if expiry is None:
        return "Selectează data expirării"
    if expiry < today:
        return "Data expirării trebuie să fie în viitor"
    try:
        max_date = today.replace(year=today.year + MAX_EXPIRY_YEARS)
    except ValueError:
        # 29 February
        max_date = today.replace(year=today.year + MAX_EXPIRY_YEARS, day=28)
    if expiry > max_date:
        return f"Data expirării prea departe în viitor (max {MAX_EXPIRY_YEARS} ani)"
    return None
