"""
Storage key encoding.

The ledger addresses records by a 32-byte key. Human keys up to 32 bytes are
stored zero-padded so they stay readable on-chain; longer keys are hashed or
rejected depending on the codec's overflow policy.
"""

import hashlib
import re
import string
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Tuple, Union
from urllib.parse import quote
import logging

from Crypto.Hash import keccak

from .errors import InvalidKeyLength, KeyTooLong

logger = logging.getLogger(__name__)

KEY_WIDTH = 32

_FIXED_KEY_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")
_PRINTABLE = set(string.printable) - set("\x0b\x0c")


class KeyFormat(Enum):
    """How an incoming key string should be interpreted."""
    RAW = "raw"
    FIXED_WIDTH = "fixed-width"
    AUTO = "auto"


class OverflowPolicy(Enum):
    """What to do with raw keys longer than KEY_WIDTH bytes."""
    HASH = "hash"
    REJECT = "reject"


@dataclass(frozen=True)
class FixedKey:
    """A 32-byte ledger key."""
    value: bytes

    @property
    def hex(self) -> str:
        """Canonical lowercase 0x-prefixed form."""
        return "0x" + self.value.hex()

    def __str__(self) -> str:
        return self.hex

    def __repr__(self) -> str:
        return f"FixedKey({self.hex[:18]}...)"


def _keccak256(data: bytes) -> bytes:
    return keccak.new(digest_bits=256, data=data).digest()


def _blake2b_256(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=KEY_WIDTH).digest()


class KeyCodec:
    """
    Deterministic mapping from storage keys to fixed-width ledger keys.

    Encoding is a pure function of (key, format, policy): the resolver relies
    on it to recognise repeated targets.
    """

    def __init__(
        self,
        overflow: Union[OverflowPolicy, str] = OverflowPolicy.HASH,
        hash_algorithm: str = "keccak256",
    ):
        """
        Initialize key codec.

        Args:
            overflow: Policy for raw keys longer than 32 bytes
            hash_algorithm: Digest for overflowing keys (keccak256, sha256, sha3_256, blake2b)
        """
        self.overflow = OverflowPolicy(overflow)
        self.hash_algorithm = hash_algorithm

        self.hash_functions: Dict[str, Callable[[bytes], bytes]] = {
            "keccak256": _keccak256,
            "sha256": lambda data: hashlib.sha256(data).digest(),
            "sha3_256": lambda data: hashlib.sha3_256(data).digest(),
            "blake2b": _blake2b_256,
        }

        if hash_algorithm not in self.hash_functions:
            raise ValueError(f"Unsupported hash algorithm: {hash_algorithm}")

    @classmethod
    def from_config(cls, config) -> "KeyCodec":
        return cls(overflow=config.overflow, hash_algorithm=config.hash_algorithm)

    def encode(
        self,
        key: Union[str, bytes, FixedKey],
        key_format: Union[KeyFormat, str] = KeyFormat.AUTO,
    ) -> FixedKey:
        """
        Encode a storage key.

        Args:
            key: Human key, hex key or raw 32 bytes
            key_format: raw, fixed-width or auto

        Returns:
            FixedKey

        Raises:
            InvalidKeyLength: fixed-width input of the wrong width
            KeyTooLong: raw input over 32 bytes with the reject policy
        """
        if isinstance(key, FixedKey):
            return key

        key_format = KeyFormat(key_format)

        if key_format is KeyFormat.AUTO:
            if isinstance(key, bytes) or _FIXED_KEY_RE.match(key):
                key_format = KeyFormat.FIXED_WIDTH
            else:
                key_format = KeyFormat.RAW

        if key_format is KeyFormat.FIXED_WIDTH:
            return self._encode_fixed(key)
        return self._encode_raw(key)

    def _encode_fixed(self, key: Union[str, bytes]) -> FixedKey:
        if isinstance(key, bytes):
            raw = key
        else:
            digits = key[2:] if key[:2].lower() == "0x" else key
            try:
                raw = bytes.fromhex(digits)
            except ValueError:
                # Not hex at all; report the character width we were given
                raise InvalidKeyLength(key, len(digits) // 2, KEY_WIDTH) from None

        if len(raw) != KEY_WIDTH:
            raise InvalidKeyLength(
                key if isinstance(key, str) else raw.hex(), len(raw), KEY_WIDTH
            )
        return FixedKey(raw)

    def _encode_raw(self, key: Union[str, bytes]) -> FixedKey:
        data = key.encode("utf-8") if isinstance(key, str) else key
        text = key if isinstance(key, str) else key.decode("utf-8", "replace")

        if len(data) <= KEY_WIDTH:
            return FixedKey(data.ljust(KEY_WIDTH, b"\x00"))

        if self.overflow is OverflowPolicy.REJECT:
            raise KeyTooLong(text, len(data), KEY_WIDTH)

        digest = self.hash_functions[self.hash_algorithm](data)
        logger.debug(
            f"Hashed {len(data)}-byte key with {self.hash_algorithm}: "
            f"{digest.hex()[:16]}..."
        )
        return FixedKey(digest)

    def decode_for_display(self, key: Union[str, FixedKey]) -> Tuple[str, bool]:
        """
        Render a fixed-width key for humans.

        Returns:
            (display_text, decoded) where decoded is True when the key was a
            zero-padded printable string
        """
        if isinstance(key, FixedKey):
            raw = key.value
            original = key.hex
        elif _FIXED_KEY_RE.match(key):
            raw = bytes.fromhex(key[2:])
            original = key
        else:
            return key, False

        try:
            text = raw.decode("utf-8").replace("\x00", "")
        except UnicodeDecodeError:
            return original, False

        if text.strip() and all(ch in _PRINTABLE for ch in text):
            return text, True
        return original, False

    @staticmethod
    def encode_for_url(key: str) -> str:
        """Percent-encode a key for use as a URL path segment."""
        return quote(key, safe="")
