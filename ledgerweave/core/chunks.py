"""
Chunk assembly.

The ledger caps record size, so large values are stored as ordered,
hex-encoded fragments. Assembly decodes each fragment and concatenates them in
the order given.
"""

from typing import Callable, List, Optional, Sequence, Union
import logging

from .errors import MalformedFragment

logger = logging.getLogger(__name__)

# Matches the per-chunk cap of the chunked storage contract
CHUNK_SIZE = 20 * 1000

Fragment = Union[str, bytes]


class _EmptyContent:
    """Marker for "nothing was ever written", distinct from b""."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "EMPTY"


EMPTY = _EmptyContent()


def decode_fragment(fragment: Fragment, index: int = 0) -> bytes:
    """
    Decode one hex fragment.

    Args:
        fragment: Hex string (0x prefix optional) or hex-encoded bytes
        index: Position of the fragment, reported on failure

    Returns:
        Raw fragment bytes
    """
    if isinstance(fragment, (bytes, bytearray)):
        try:
            fragment = bytes(fragment).decode("ascii")
        except UnicodeDecodeError:
            raise MalformedFragment(index, "fragment is not ASCII hex") from None

    if not isinstance(fragment, str):
        raise MalformedFragment(index, f"unexpected type {type(fragment).__name__}")

    digits = fragment[2:] if fragment[:2].lower() == "0x" else fragment
    if len(digits) % 2:
        raise MalformedFragment(index, f"odd hex length {len(digits)}")

    try:
        return bytes.fromhex(digits)
    except ValueError as e:
        raise MalformedFragment(index, str(e)) from None


class ChunkAssembler:
    """
    Reassembles content from ordered ledger fragments.

    The assembler never sorts: fragments must arrive in fetch order 0..N-1.
    An optional transform is applied to the joined bytes (for callers that
    store compressed payloads).
    """

    def __init__(self, transform: Optional[Callable[[bytes], bytes]] = None):
        self.transform = transform

    def assemble(
        self,
        fragments: Sequence[Fragment],
        chunk_count: Optional[int] = None,
    ) -> Union[bytes, _EmptyContent]:
        """
        Assemble fragments into content.

        Args:
            fragments: Hex-encoded fragments in order
            chunk_count: Chunk count reported by the record, if known

        Returns:
            Content bytes, or EMPTY when no chunk was ever written

        Raises:
            MalformedFragment: any fragment fails to decode
        """
        if chunk_count == 0 or not fragments:
            return EMPTY

        parts = [decode_fragment(fragment, i) for i, fragment in enumerate(fragments)]
        content = b"".join(parts)

        if self.transform is not None:
            content = self.transform(content)

        logger.debug(f"Assembled {len(parts)} fragments into {len(content)} bytes")
        return content


def split_fragments(data: bytes, chunk_size: int = CHUNK_SIZE) -> List[str]:
    """
    Split data into hex fragments the way the chunked store expects.

    Empty data still yields one (empty) fragment.
    """
    if chunk_size <= 0:
        raise ValueError(f"Invalid chunk_size: {chunk_size}")

    fragments = [
        "0x" + data[offset:offset + chunk_size].hex()
        for offset in range(0, len(data), chunk_size)
    ]
    return fragments or ["0x"]


def chunk_count_for(data: bytes, chunk_size: int = CHUNK_SIZE) -> int:
    """Number of fragments split_fragments would produce."""
    return max(1, -(-len(data) // chunk_size))
