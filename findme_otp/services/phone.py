from __future__ import annotations


def normalize_phone(phone: str, country_code: str = "+233") -> str:
    """E.164-ish formatting: local numbers lose their leading zeros and gain the country code.

    >>> normalize_phone("0557881454")
    '+233557881454'
    >>> normalize_phone("+14155550100")
    '+14155550100'
    """
    formatted = phone.strip()
    if not formatted.startswith("+"):
        formatted = country_code + formatted.lstrip("0")
    return formatted
