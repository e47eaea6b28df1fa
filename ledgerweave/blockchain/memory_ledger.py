"""
In-memory ledger.

Serves the full read interface from dictionaries. Used in mock mode (no
node available) and by the test suite, which seeds records through the
``put`` helpers and inspects ``call_log`` to count ledger round trips.
"""

from collections import Counter
from typing import Dict, List, Optional, Set, Tuple, Union
import logging

from ..core.chunks import CHUNK_SIZE, split_fragments
from ..core.keys import FixedKey, KeyCodec
from .ledger import ChunkMetadata, PlainRecord, RouterRecord, encode_chunk_count

logger = logging.getLogger(__name__)

RecordKey = Tuple[str, str]


class InMemoryLedger:
    """Dictionary-backed ledger with per-call accounting and fault injection."""

    def __init__(self, codec: Optional[KeyCodec] = None):
        self.codec = codec or KeyCodec()
        self.connected = False

        # (key, operator) -> versions, oldest first
        self._plain: Dict[RecordKey, List[PlainRecord]] = {}
        self._chunked: Dict[RecordKey, List[Tuple[str, List[str]]]] = {}
        # (key, operator) -> kind of the most recent write ("plain"/"chunked")
        self._latest_kind: Dict[RecordKey, str] = {}

        self.call_log: List[Tuple] = []
        self.calls: Counter = Counter()
        self.failing: Set[str] = set()

    async def connect(self):
        logger.info("📦 Ledger in MOCK mode (in-memory records)")
        self.connected = True

    async def disconnect(self):
        self.connected = False

    # ------------------------------------------------------------------
    # Seeding helpers
    # ------------------------------------------------------------------

    def _record_key(self, key: Union[str, FixedKey], operator: str) -> RecordKey:
        return self.codec.encode(key).hex, operator.lower()

    def put(
        self,
        key: Union[str, FixedKey],
        operator: str,
        value: Union[str, bytes],
        label: str = "",
    ) -> int:
        """Append a plain record version; returns its index."""
        rk = self._record_key(key, operator)
        data = value.encode("utf-8") if isinstance(value, str) else value
        versions = self._plain.setdefault(rk, [])
        versions.append(PlainRecord(label, data))
        self._latest_kind[rk] = "plain"
        return len(versions) - 1

    def put_chunked(
        self,
        key: Union[str, FixedKey],
        operator: str,
        value: Union[str, bytes, List[str]],
        label: str = "",
        chunk_size: int = CHUNK_SIZE,
    ) -> int:
        """
        Append a chunked record version; returns its index.

        ``value`` may be content (split with ``chunk_size``) or a ready list
        of hex fragments. An empty list records a zero-chunk version.
        """
        rk = self._record_key(key, operator)
        if isinstance(value, list):
            fragments = list(value)
        else:
            data = value.encode("utf-8") if isinstance(value, str) else value
            fragments = split_fragments(data, chunk_size)
        versions = self._chunked.setdefault(rk, [])
        versions.append((label, fragments))
        self._latest_kind[rk] = "chunked"
        return len(versions) - 1

    def fail(self, *calls: str):
        """Make the named calls raise ConnectionError."""
        self.failing.update(calls)

    # ------------------------------------------------------------------
    # Read interface
    # ------------------------------------------------------------------

    def _enter(self, call: str, *args):
        self.call_log.append((call,) + args)
        self.calls[call] += 1
        if call in self.failing:
            raise ConnectionError(f"{call} unavailable")

    async def router_get(self, key: str, operator: str) -> Optional[RouterRecord]:
        self._enter("router_get", key, operator)
        rk = (key, operator.lower())
        kind = self._latest_kind.get(rk)
        if kind is None:
            return None
        if kind == "chunked":
            label, fragments = self._chunked[rk][-1]
            return RouterRecord(True, label, encode_chunk_count(len(fragments)))
        record = self._plain[rk][-1]
        return RouterRecord(False, record.label, record.value)

    async def direct_get(self, key: str, operator: str) -> Optional[PlainRecord]:
        self._enter("direct_get", key, operator)
        versions = self._plain.get((key, operator.lower()))
        return versions[-1] if versions else None

    async def chunked_get_chunks(
        self, key: str, operator: str, start: int, end: int
    ) -> List[str]:
        self._enter("chunked_get_chunks", key, operator, start, end)
        versions = self._chunked.get((key, operator.lower()))
        if not versions:
            return []
        return versions[-1][1][start:end]

    async def history_get_metadata_at_index(
        self, key: str, operator: str, index: int
    ) -> Optional[ChunkMetadata]:
        self._enter("history_get_metadata_at_index", key, operator, index)
        versions = self._chunked.get((key, operator.lower()), [])
        if index >= len(versions):
            return None
        label, fragments = versions[index]
        return ChunkMetadata(len(fragments), label)

    async def history_get_chunks_at_index(
        self, key: str, operator: str, start: int, end: int, index: int
    ) -> List[str]:
        self._enter("history_get_chunks_at_index", key, operator, start, end, index)
        versions = self._chunked.get((key, operator.lower()), [])
        if index >= len(versions):
            return []
        return versions[index][1][start:end]

    async def history_get_value_at_index(
        self, key: str, operator: str, index: int
    ) -> Optional[PlainRecord]:
        self._enter("history_get_value_at_index", key, operator, index)
        versions = self._plain.get((key, operator.lower()), [])
        if index >= len(versions):
            return None
        return versions[index]

    async def chunked_get_total_writes(self, key: str, operator: str) -> int:
        self._enter("chunked_get_total_writes", key, operator)
        return len(self._chunked.get((key, operator.lower()), []))

    async def direct_get_total_writes(self, key: str, operator: str) -> int:
        self._enter("direct_get_total_writes", key, operator)
        return len(self._plain.get((key, operator.lower()), []))
