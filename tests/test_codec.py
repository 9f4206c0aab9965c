# tests/test_codec.py
"""Tests for the base64url identifier codec."""

import pytest

from aasdiscovery.codec import decode_id, encode_id
from aasdiscovery.errors import InvalidInputError


class TestCodec:
    """Test encode_id / decode_id."""

    def test_encode_is_unpadded_urlsafe(self):
        encoded = encode_id("urn:aas:test:assembler-1")
        assert "=" not in encoded
        assert "+" not in encoded
        assert "/" not in encoded

    def test_known_value(self):
        assert encode_id("a") == "YQ"
        assert decode_id("YQ") == "a"

    def test_decode_accepts_padding(self):
        assert decode_id("YQ==") == "a"

    def test_round_trip_unicode(self):
        identifier = "https://example.com/aas/Prüfstand?id=1&x=~"
        assert decode_id(encode_id(identifier)) == identifier

    @pytest.mark.parametrize("encoded", [
        "",
        "urn:aas:not-encoded:crude-oil",
        "abc$",
        "Y",
        "_w",  # decodes to 0xff, not UTF-8
    ])
    def test_malformed_rejected(self, encoded):
        with pytest.raises(InvalidInputError):
            decode_id(encoded)
