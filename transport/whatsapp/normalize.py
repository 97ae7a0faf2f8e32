"""
WhatsApp Address Normalization

PURE CONVERSION - NO I/O

Turns configured phone numbers into the forms the transport expects:
- Phone number: digits only, country code first, no "+"
- JID: "<digits>@s.whatsapp.net" for individual chats

Values that already carry a JID domain are passed through unchanged.
"""

import re

USER_JID_SUFFIX = "@s.whatsapp.net"

_SEPARATORS = re.compile(r"[\s\-().]")


class NormalizationError(Exception):
    """Address could not be normalized."""
    pass


def normalize_phone_number(raw: str) -> str:
    """
    Strip formatting from a phone number.

    "+1 (555) 010-9999" -> "15550109999"

    Raises:
        NormalizationError: Empty or non-numeric input
    """
    cleaned = _SEPARATORS.sub("", raw.strip())
    if cleaned.startswith("+"):
        cleaned = cleaned[1:]

    if not cleaned:
        raise NormalizationError("Phone number is empty")
    if not cleaned.isdigit():
        raise NormalizationError(f"Phone number must contain only digits: {raw!r}")

    return cleaned


def to_jid(address: str) -> str:
    """
    Convert a phone number or JID into a JID.

    Raises:
        NormalizationError: Address is neither a JID nor a phone number
    """
    address = address.strip()
    if "@" in address:
        user, _, domain = address.partition("@")
        if not user or not domain:
            raise NormalizationError(f"Malformed JID: {address!r}")
        return address

    return f"{normalize_phone_number(address)}{USER_JID_SUFFIX}"
