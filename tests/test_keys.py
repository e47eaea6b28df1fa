"""
Tests for storage key encoding.
"""

import hashlib

import pytest
from Crypto.Hash import keccak

from ledgerweave.config import KeyConfig
from ledgerweave.core.errors import InvalidKeyLength, KeyTooLong
from ledgerweave.core.keys import FixedKey, KeyCodec, KeyFormat, OverflowPolicy


@pytest.mark.unit
class TestRawKeys:
    """Short and long raw keys."""

    def test_short_key_is_right_padded(self, codec):
        key = codec.encode("hello", KeyFormat.RAW)

        assert key.value == b"hello" + b"\x00" * 27
        assert key.hex == "0x68656c6c6f" + "00" * 27
        assert len(key.hex) == 66

    def test_exactly_32_bytes_is_not_hashed(self, codec):
        key = codec.encode("a" * 32, "raw")
        assert key.value == b"a" * 32

    def test_encoding_is_deterministic(self, codec):
        assert codec.encode("profile-picture", "raw") == codec.encode("profile-picture", "raw")
        assert KeyCodec().encode("x", "raw") == codec.encode("x", "raw")

    def test_equal_length_keys_do_not_collide(self, codec):
        assert codec.encode("abc", "raw") != codec.encode("abd", "raw")

    def test_case_is_preserved(self, codec):
        assert codec.encode("Key", "raw") != codec.encode("key", "raw")

    def test_long_key_is_keccak_hashed(self, codec):
        long_key = "k" * 33
        expected = keccak.new(digest_bits=256, data=long_key.encode()).digest()

        assert codec.encode(long_key, "raw").value == expected

    def test_width_counts_utf8_bytes(self, codec):
        # 17 characters, 34 bytes
        key = "é" * 17
        expected = keccak.new(digest_bits=256, data=key.encode("utf-8")).digest()

        assert codec.encode(key, "raw").value == expected

    def test_reject_policy_raises(self):
        codec = KeyCodec(overflow=OverflowPolicy.REJECT)

        with pytest.raises(KeyTooLong) as exc_info:
            codec.encode("x" * 40, "raw")

        assert exc_info.value.length == 40
        assert isinstance(exc_info.value, ValueError)

    def test_reject_policy_keeps_short_keys(self):
        codec = KeyCodec(overflow="reject")
        assert codec.encode("short", "raw").value.startswith(b"short")

    @pytest.mark.parametrize("algorithm,digest", [
        ("sha256", lambda data: hashlib.sha256(data).digest()),
        ("sha3_256", lambda data: hashlib.sha3_256(data).digest()),
        ("blake2b", lambda data: hashlib.blake2b(data, digest_size=32).digest()),
    ])
    def test_alternative_hash_algorithms(self, algorithm, digest):
        codec = KeyCodec(hash_algorithm=algorithm)
        data = ("z" * 64).encode()

        assert codec.encode("z" * 64, "raw").value == digest(data)

    def test_unsupported_algorithm(self):
        with pytest.raises(ValueError):
            KeyCodec(hash_algorithm="md5")

    def test_from_config(self):
        codec = KeyCodec.from_config(KeyConfig(overflow="reject", hash_algorithm="sha256"))

        assert codec.overflow is OverflowPolicy.REJECT
        assert codec.hash_algorithm == "sha256"


@pytest.mark.unit
class TestFixedWidthKeys:
    """Keys already in ledger form."""

    def test_passthrough(self, codec):
        hex_key = "0x" + "ab" * 32
        assert codec.encode(hex_key, KeyFormat.FIXED_WIDTH).hex == hex_key

    def test_uppercase_is_canonicalised(self, codec):
        assert codec.encode("0x" + "AB" * 32, "fixed-width").hex == "0x" + "ab" * 32

    def test_prefix_is_optional(self, codec):
        assert codec.encode("cd" * 32, "fixed-width").value == b"\xcd" * 32

    def test_raw_bytes(self, codec):
        assert codec.encode(b"\x01" * 32).value == b"\x01" * 32

    def test_wrong_width(self, codec):
        with pytest.raises(InvalidKeyLength) as exc_info:
            codec.encode("0x1234", "fixed-width")

        assert exc_info.value.length == 2
        assert exc_info.value.expected == 32

    def test_not_hex(self, codec):
        with pytest.raises(InvalidKeyLength):
            codec.encode("0x" + "zz" * 32, "fixed-width")

    def test_fixed_key_passes_through(self, codec):
        key = FixedKey(b"\x02" * 32)
        assert codec.encode(key, "raw") is key


@pytest.mark.unit
class TestAutoDetection:
    """Format detection when no format is given."""

    def test_hex_key_detected(self, codec):
        hex_key = "0x" + "a" * 64
        assert codec.encode(hex_key).hex == hex_key

    def test_plain_string_detected(self, codec):
        assert codec.encode("hello") == codec.encode("hello", "raw")

    def test_short_hex_is_treated_as_raw(self, codec):
        # Not 32 bytes, so it is an ordinary string key
        assert codec.encode("0x1234").value == b"0x1234".ljust(32, b"\x00")


@pytest.mark.unit
class TestDisplay:
    """Rendering keys for humans."""

    def test_padded_string_decodes(self, codec):
        assert codec.decode_for_display(codec.encode("hello")) == ("hello", True)

    def test_hex_string_input(self, codec):
        hex_key = codec.encode("my key").hex
        assert codec.decode_for_display(hex_key) == ("my key", True)

    def test_hashed_key_stays_hex(self, codec):
        key = codec.encode("x" * 50)
        text, decoded = codec.decode_for_display(key)

        assert not decoded
        assert text == key.hex

    def test_non_key_input_returned(self, codec):
        assert codec.decode_for_display("plain") == ("plain", False)

    def test_url_encoding(self):
        assert (
            KeyCodec.encode_for_url("declaration of independence ")
            == "declaration%20of%20independence%20"
        )
        assert KeyCodec.encode_for_url("a/b") == "a%2Fb"
