import re


def mask_phone(phone) -> str:
    if not phone:
        return ""
    return re.sub(r"\d(?=\d{4})", "*", str(phone))


def to_e164_india(phone: str) -> str:
    digits = re.sub(r"\D", "", phone or "")
    if len(digits) == 10:
        return f"+91{digits}"
    if len(digits) == 12 and digits.startswith("91"):
        return f"+{digits}"
    if len(digits) == 11 and digits.startswith("0"):
        return f"+91{digits[1:]}"
    return f"+{digits}" if digits else ""
