"""
WhatsApp Address Normalization Tests

Phone numbers and JIDs as configured by operators.
"""

import pytest

from transport.whatsapp.normalize import (
    USER_JID_SUFFIX,
    NormalizationError,
    normalize_phone_number,
    to_jid,
)


class TestPhoneNumbers:

    @pytest.mark.parametrize(
        "raw",
        ["15550109999", "+15550109999", "+1 (555) 010-9999", " 1.555.010.9999 "],
    )
    def test_formatting_is_stripped(self, raw):
        assert normalize_phone_number(raw) == "15550109999"

    @pytest.mark.parametrize("raw", ["", "   ", "+", "555-CALL-NOW", "12ab34"])
    def test_invalid_numbers(self, raw):
        with pytest.raises(NormalizationError):
            normalize_phone_number(raw)


class TestJids:

    def test_phone_number_becomes_user_jid(self):
        assert to_jid("+44 7700 900123") == "447700900123" + USER_JID_SUFFIX

    def test_existing_jid_passes_through(self):
        assert to_jid("120363025246125486@g.us") == "120363025246125486@g.us"

    @pytest.mark.parametrize("raw", ["@s.whatsapp.net", "15550109999@", "hello"])
    def test_malformed(self, raw):
        with pytest.raises(NormalizationError):
            to_jid(raw)
