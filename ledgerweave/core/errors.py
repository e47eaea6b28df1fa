"""
Error taxonomy for ledger reads.

Key and fragment errors are raised immediately by the components that detect
them. Backend errors wrap whatever the ledger client raised.
"""

from typing import Optional


class LedgerReadError(Exception):
    """Base class for every error raised while reading from the ledger."""


class InvalidKeyLength(LedgerReadError, ValueError):
    """A fixed-width key did not decode to exactly the ledger key width."""

    def __init__(self, key: str, length: int, expected: int = 32):
        self.key = key
        self.length = length
        self.expected = expected
        super().__init__(
            f"Fixed-width key {key!r} is {length} bytes, expected {expected}"
        )


class KeyTooLong(LedgerReadError, ValueError):
    """A raw key exceeds the fixed width and the codec rejects overflow."""

    def __init__(self, key: str, length: int, limit: int = 32):
        self.key = key
        self.length = length
        self.limit = limit
        super().__init__(
            f"Raw key is {length} bytes, limit is {limit}: {key[:40]!r}"
        )


class MalformedFragment(LedgerReadError):
    """A chunk fragment could not be decoded."""

    def __init__(self, index: int, reason: str):
        self.index = index
        self.reason = reason
        super().__init__(f"Fragment {index} is malformed: {reason}")


class BackendUnavailable(LedgerReadError):
    """A ledger call raised or could not be served."""

    def __init__(self, call: str, detail: str = ""):
        self.call = call
        self.detail = detail
        message = f"Ledger call {call} failed"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class RecordNotFound(LedgerReadError):
    """No record exists for the key/operator (and version) requested."""

    def __init__(self, key: str, operator: str, index: Optional[int] = None):
        self.key = key
        self.operator = operator
        self.index = index
        where = f" at index {index}" if index is not None else ""
        super().__init__(f"No stored data for {key} / {operator}{where}")


class ResolutionError(LedgerReadError):
    """Resolving one embedded reference failed."""

    def __init__(self, key: str, operator: str, depth: int, reason: str):
        self.key = key
        self.operator = operator
        self.depth = depth
        self.reason = reason
        super().__init__(
            f"Failed to resolve reference {key} (operator {operator}) "
            f"at depth {depth}: {reason}"
        )
