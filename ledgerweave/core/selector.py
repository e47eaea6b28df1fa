"""
Storage read path selection.

Three ledger paths can serve a read: the storage router (latest value,
chunked or not), the plain record accessor (latest, never chunked), and the
historical accessors (a specific version). All of them return a ReadResult so
callers never need to know which one answered.
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, TypeVar, Union
import logging

from ..blockchain.ledger import LedgerClient, decode_chunk_count
from .chunks import EMPTY, ChunkAssembler
from .errors import BackendUnavailable, LedgerReadError, RecordNotFound
from .keys import FixedKey, KeyCodec, KeyFormat

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CHUNK_BATCH_SIZE = 50


@dataclass
class ReadResult:
    """Normalized read result."""
    label: str
    value: bytes
    is_chunked: bool

    @property
    def text(self) -> str:
        """Value decoded as UTF-8 (undecodable bytes replaced)."""
        return self.value.decode("utf-8", errors="replace")


class StorageAccessSelector:
    """
    Chooses a ledger read path and normalizes the result.

    Decision order:
        1. latest + prefer_router -> router (chunks fetched in batches)
        2. latest + direct        -> plain record
        3. version_index given    -> chunked history, falling back to the
                                     plain record history
    """

    def __init__(
        self,
        ledger: LedgerClient,
        codec: Optional[KeyCodec] = None,
        assembler: Optional[ChunkAssembler] = None,
        chunk_batch_size: int = DEFAULT_CHUNK_BATCH_SIZE,
    ):
        """
        Initialize selector.

        Args:
            ledger: Read-only ledger client
            codec: Key codec (defaults to hash-on-overflow keccak256)
            assembler: Chunk assembler
            chunk_batch_size: Maximum chunks requested per ledger call
        """
        if chunk_batch_size < 1:
            raise ValueError(f"Invalid chunk_batch_size: {chunk_batch_size}")

        self.ledger = ledger
        self.codec = codec or KeyCodec()
        self.assembler = assembler or ChunkAssembler()
        self.chunk_batch_size = chunk_batch_size

    async def _call(self, name: str, fn: Callable[..., Awaitable[T]], *args) -> T:
        try:
            return await fn(*args)
        except LedgerReadError:
            raise
        except Exception as e:
            raise BackendUnavailable(name, str(e)) from e

    async def read(
        self,
        key: Union[str, FixedKey],
        operator: str,
        version_index: Optional[int] = None,
        prefer_router: bool = True,
        key_format: Union[KeyFormat, str] = KeyFormat.AUTO,
    ) -> ReadResult:
        """
        Read one stored value.

        Args:
            key: Storage key
            operator: Address that wrote the record
            version_index: Historical version, or None for the latest
            prefer_router: Use the router for latest reads
            key_format: How to interpret ``key``

        Returns:
            ReadResult

        Raises:
            RecordNotFound: nothing stored for the request
            BackendUnavailable: a ledger call failed
            MalformedFragment: a chunk could not be decoded
        """
        fixed = self.codec.encode(key, key_format).hex
        operator = operator.lower()

        if version_index is not None:
            return await self._read_historical(fixed, operator, version_index)
        if prefer_router:
            return await self._read_via_router(fixed, operator)
        return await self._read_direct(fixed, operator)

    async def _read_via_router(self, key: str, operator: str) -> ReadResult:
        record = await self._call("router_get", self.ledger.router_get, key, operator)
        if record is None:
            raise RecordNotFound(key, operator)

        if not record.is_chunked:
            return ReadResult(record.label, bytes(record.payload), False)

        chunk_count = decode_chunk_count(bytes(record.payload))
        fragments = await self._fetch_chunks(key, operator, chunk_count)
        content = self.assembler.assemble(fragments, chunk_count)
        return ReadResult(record.label, b"" if content is EMPTY else content, True)

    async def _read_direct(self, key: str, operator: str) -> ReadResult:
        record = await self._call("direct_get", self.ledger.direct_get, key, operator)
        if record is None:
            raise RecordNotFound(key, operator)
        return ReadResult(record.label, bytes(record.value), False)

    async def _read_historical(self, key: str, operator: str, index: int) -> ReadResult:
        # Chunked history is always tried first. A miss here is normal (the
        # version may be a plain record) and is not reported.
        try:
            metadata = await self.ledger.history_get_metadata_at_index(key, operator, index)
        except Exception as e:
            logger.debug(f"No chunked version {index} for {key[:18]}...: {e}")
            metadata = None

        if metadata is not None and metadata.chunk_count > 0:
            fragments = await self._fetch_chunks(
                key, operator, metadata.chunk_count, index=index
            )
            content = self.assembler.assemble(fragments, metadata.chunk_count)
            return ReadResult(metadata.label, b"" if content is EMPTY else content, True)

        record = await self._call(
            "history_get_value_at_index",
            self.ledger.history_get_value_at_index,
            key, operator, index,
        )
        if record is None:
            raise RecordNotFound(key, operator, index)
        return ReadResult(record.label, bytes(record.value), False)

    async def _fetch_chunks(
        self,
        key: str,
        operator: str,
        chunk_count: int,
        index: Optional[int] = None,
    ) -> List[str]:
        """Fetch chunks 0..chunk_count-1, one batch in flight at a time."""
        fragments: List[str] = []

        for start in range(0, chunk_count, self.chunk_batch_size):
            end = min(start + self.chunk_batch_size, chunk_count)
            if index is None:
                batch = await self._call(
                    "chunked_get_chunks", self.ledger.chunked_get_chunks,
                    key, operator, start, end,
                )
            else:
                batch = await self._call(
                    "history_get_chunks_at_index", self.ledger.history_get_chunks_at_index,
                    key, operator, start, end, index,
                )
            if len(batch) != end - start:
                raise BackendUnavailable(
                    "chunked_get_chunks" if index is None else "history_get_chunks_at_index",
                    f"expected {end - start} chunks from {start}, got {len(batch)}",
                )
            fragments.extend(batch)

        logger.debug(f"Fetched {len(fragments)} chunks for {key[:18]}...")
        return fragments

    async def total_versions(
        self,
        key: Union[str, FixedKey],
        operator: str,
        key_format: Union[KeyFormat, str] = KeyFormat.AUTO,
    ) -> int:
        """
        Number of versions written for a key/operator pair.

        The chunked store is asked first; if it fails or reports none, the
        plain store answers.
        """
        fixed = self.codec.encode(key, key_format).hex
        operator = operator.lower()

        try:
            count = await self.ledger.chunked_get_total_writes(fixed, operator)
        except Exception as e:
            logger.debug(f"Chunked write count unavailable for {fixed[:18]}...: {e}")
            count = 0

        if count > 0:
            return int(count)

        count = await self._call(
            "direct_get_total_writes", self.ledger.direct_get_total_writes, fixed, operator
        )
        return int(count)
