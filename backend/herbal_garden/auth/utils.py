import re
from datetime import timedelta
from typing import Optional

_DURATION_PATTERN = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$", re.IGNORECASE)
_DURATION_UNITS = {
    "": "seconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
    "w": "weeks",
}


def parse_duration(value) -> timedelta:
    """Parse a token lifetime like '7d', '12h', '30m', '45s' or a bare number of seconds"""

    if isinstance(value, timedelta):
        return value
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)

    match = _DURATION_PATTERN.match(str(value))
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")

    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit.lower()]: int(amount)})


def is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def validate_otp_format(otp: str) -> bool:
    """Validate OTP format"""

    return bool(re.match(r'^\d{6}$', otp))
