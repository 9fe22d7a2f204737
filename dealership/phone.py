import re

_NON_DIGIT = re.compile(r"\D")


def normalize_phone_india(value: str) -> str:
    """Normalizes to +91 followed by 10 digits; anything else is only trimmed."""
    digits = _NON_DIGIT.sub("", value)[-10:]
    return f"+91{digits}" if len(digits) == 10 else value.strip()


def is_valid_indian_phone(value: str) -> bool:
    """Accepts 10 digits, or 12 digits starting with the 91 country code."""
    digits = _NON_DIGIT.sub("", value)
    return len(digits) == 10 or (len(digits) == 12 and digits.startswith("91"))
