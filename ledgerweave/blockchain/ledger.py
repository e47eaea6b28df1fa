"""
Read-only ledger interface.

Every ledger backend exposes the same async read calls. Keys are passed as
0x-prefixed 32-byte hex strings and operators as lowercase hex addresses.
Calls return None when the ledger holds no entry.
"""

from typing import List, NamedTuple, Optional, Protocol


class RouterRecord(NamedTuple):
    """Router read result: payload is the value, or an encoded chunk count."""
    is_chunked: bool
    label: str
    payload: bytes


class PlainRecord(NamedTuple):
    """A non-chunked record."""
    label: str
    value: bytes


class ChunkMetadata(NamedTuple):
    """Metadata of a chunked record version."""
    chunk_count: int
    label: str


class LedgerClient(Protocol):
    """Calls the read path depends on."""

    async def router_get(self, key: str, operator: str) -> Optional[RouterRecord]:
        ...

    async def direct_get(self, key: str, operator: str) -> Optional[PlainRecord]:
        ...

    async def chunked_get_chunks(
        self, key: str, operator: str, start: int, end: int
    ) -> List[str]:
        ...

    async def history_get_metadata_at_index(
        self, key: str, operator: str, index: int
    ) -> Optional[ChunkMetadata]:
        ...

    async def history_get_chunks_at_index(
        self, key: str, operator: str, start: int, end: int, index: int
    ) -> List[str]:
        ...

    async def history_get_value_at_index(
        self, key: str, operator: str, index: int
    ) -> Optional[PlainRecord]:
        ...

    async def chunked_get_total_writes(self, key: str, operator: str) -> int:
        ...

    async def direct_get_total_writes(self, key: str, operator: str) -> int:
        ...


def encode_chunk_count(count: int) -> bytes:
    """ABI-style encoding of a chunk count: one big-endian 32-byte word."""
    return count.to_bytes(32, "big")


def decode_chunk_count(payload: bytes) -> int:
    """Inverse of encode_chunk_count; shorter payloads are read as-is."""
    if not payload:
        return 0
    return int.from_bytes(payload[:32], "big")
