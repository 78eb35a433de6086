"""Tests for connection string parsing and shared access signature derivation."""

import base64
import hashlib
import hmac

import pytest

from provisioning_service.core.errors import ArgumentMissingError, InvalidArgumentError
from provisioning_service.core.security.sas import (
    create_shared_access_signature,
    credential_from_connection_string,
    encode_uri_component_strict,
    parse_connection_string,
)

KEY = base64.b64encode(b"0123456789abcdef").decode()


class TestParseConnectionString:
    def test_parses_fields(self) -> None:
        fields = parse_connection_string(
            f"HostName=dps.example.net;SharedAccessKeyName=owner;SharedAccessKey={KEY}"
        )
        assert fields == {
            "HostName": "dps.example.net",
            "SharedAccessKeyName": "owner",
            "SharedAccessKey": KEY,
        }

    def test_key_padding_survives_split_on_first_equals(self) -> None:
        key = base64.b64encode(b"k").decode()
        assert key.endswith("==")
        fields = parse_connection_string(
            f"HostName=h;SharedAccessKeyName=owner;SharedAccessKey={key};"
        )
        assert fields["SharedAccessKey"] == key

    @pytest.mark.parametrize("value", [None, ""])
    def test_missing(self, value) -> None:
        with pytest.raises(ArgumentMissingError):
            parse_connection_string(value)

    def test_malformed_segment(self) -> None:
        with pytest.raises(InvalidArgumentError, match="Malformed"):
            parse_connection_string("HostName=h;garbage;SharedAccessKey=k")

    def test_missing_required_fields(self) -> None:
        with pytest.raises(InvalidArgumentError, match="SharedAccessKeyName, SharedAccessKey"):
            parse_connection_string("HostName=h")


class TestSharedAccessSignature:
    def test_matches_hmac_sha256_of_uri_and_expiry(self) -> None:
        token = create_shared_access_signature("dps.example.net", "owner", KEY, 1000)

        digest = hmac.new(b"0123456789abcdef", b"dps.example.net\n1000", hashlib.sha256).digest()
        expected_sig = encode_uri_component_strict(base64.b64encode(digest).decode())
        assert token == (
            f"SharedAccessSignature sr=dps.example.net&sig={expected_sig}&se=1000&skn=owner"
        )

    def test_resource_uri_is_encoded(self) -> None:
        token = create_shared_access_signature("dps.example.net/enrollments", None, KEY, 1)
        assert token.startswith("SharedAccessSignature sr=dps.example.net%2Fenrollments&")
        assert "skn=" not in token

    def test_strict_encoding_escapes_base64_characters(self) -> None:
        assert encode_uri_component_strict("a+b/c=") == "a%2Bb%2Fc%3D"
        assert encode_uri_component_strict("(x)!*'") == "%28x%29%21%2A%27"

    def test_invalid_key(self) -> None:
        with pytest.raises(InvalidArgumentError, match="base64"):
            create_shared_access_signature("h", "owner", "not base64!", 1)

    def test_expiry_is_clock_plus_ttl(self) -> None:
        host, credential = credential_from_connection_string(
            f"HostName=dps.example.net;SharedAccessKeyName=owner;SharedAccessKey={KEY}",
            ttl_seconds=120,
            clock=lambda: 50.9,
        )
        assert host == "dps.example.net"
        assert "&se=170&" in credential
