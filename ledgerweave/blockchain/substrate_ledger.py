"""
Substrate ledger client

Serves the ledger read interface from a substrate node:

- ``Storage`` pallet: plain records (``Values``, ``History``, ``TotalWrites``)
- ``ChunkedStorage`` pallet: chunked records (``Metadata``, ``Chunks``,
  ``TotalWrites``), keyed by version index
- ``StorageRouterApi`` runtime API: latest value, chunked or plain

Pallet and API names come from LedgerConfig. substrate-interface is
synchronous, so every call runs in a worker thread.
"""

import asyncio
from typing import Any, List, Optional, Sequence

from loguru import logger
from substrateinterface import SubstrateInterface

from ..config import KeyConfig, LedgerConfig
from ..core.errors import BackendUnavailable
from ..core.keys import KeyCodec
from .ledger import ChunkMetadata, LedgerClient, PlainRecord, RouterRecord
from .memory_ledger import InMemoryLedger


def _to_bytes(value: Any) -> bytes:
    """Normalize a SCALE-decoded byte vector."""
    if value is None:
        return b""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        if value.startswith("0x"):
            return bytes.fromhex(value[2:])
        return value.encode("utf-8")
    if isinstance(value, (list, tuple)):
        return bytes(value)
    raise TypeError(f"Cannot read {type(value).__name__} as bytes")


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str) and not value.startswith("0x"):
        return value
    return _to_bytes(value).decode("utf-8", errors="replace")


def _to_hex(value: Any) -> str:
    if isinstance(value, str) and value.startswith("0x"):
        return value
    return "0x" + _to_bytes(value).hex()


def _fields(value: Any, names: Sequence[str]) -> List[Any]:
    """Read a decoded struct given either as a dict or a tuple."""
    if isinstance(value, dict):
        return [value.get(name) for name in names]
    return list(value)[:len(names)]


class SubstrateLedgerClient:
    """
    Read-only ledger client on top of substrate-interface.

    Endpoints are taken from ``LedgerConfig.endpoints()`` (per-chain
    overrides first) and tried in order on connect.
    """

    def __init__(self, config: Optional[LedgerConfig] = None):
        """
        Initialize client.

        Args:
            config: Ledger connection settings
        """
        self.config = config or LedgerConfig()
        self.substrate: Optional[SubstrateInterface] = None
        self.node_url: Optional[str] = None
        self.connected = False

    async def connect(self):
        """Connect to the first reachable endpoint."""
        errors = []
        for url in self.config.endpoints():
            try:
                self.substrate = await asyncio.to_thread(SubstrateInterface, url=url)
            except Exception as e:
                logger.warning("Endpoint {} unavailable: {}", url, e)
                errors.append(f"{url}: {e}")
                continue
            self.node_url = url
            self.connected = True
            logger.info("✅ Connected to ledger at {}", url)
            return

        raise BackendUnavailable("connect", "; ".join(errors) or "no endpoints configured")

    async def disconnect(self):
        """Close the node connection."""
        if self.substrate:
            self.substrate.close()
        self.substrate = None
        self.connected = False
        logger.info("Disconnected from ledger")

    async def _run(self, call: str, fn, *args):
        if self.substrate is None:
            raise BackendUnavailable(call, "not connected")
        if isinstance(fn, str):
            fn = getattr(self.substrate, fn)
        try:
            return await asyncio.to_thread(fn, *args)
        except Exception as e:
            logger.error("Ledger call {} failed: {}", call, e)
            raise BackendUnavailable(call, str(e)) from e

    async def _query(self, call: str, module: str, function: str, params: list) -> Any:
        result = await self._run(call, "query", module, function, params)
        return None if result is None else result.value

    async def _query_range(
        self, call: str, key: str, operator: str, index: int, start: int, end: int
    ) -> List[str]:
        if end <= start:
            return []

        def fetch():
            storage_keys = [
                self.substrate.create_storage_key(
                    self.config.chunked_pallet, "Chunks", [key, operator, index, i]
                )
                for i in range(start, end)
            ]
            return self.substrate.query_multi(storage_keys)

        results = await self._run(call, fetch)
        return [_to_hex(obj.value) for _, obj in results]

    async def router_get(self, key: str, operator: str) -> Optional[RouterRecord]:
        result = await self._run(
            "router_get",
            "runtime_call",
            self.config.router_api,
            "get",
            [key, operator],
        )
        value = None if result is None else result.value
        if not value:
            return None
        is_chunked, label, payload = _fields(value, ("is_chunked", "label", "payload"))
        return RouterRecord(bool(is_chunked), _to_text(label), _to_bytes(payload))

    async def direct_get(self, key: str, operator: str) -> Optional[PlainRecord]:
        value = await self._query(
            "direct_get", self.config.storage_pallet, "Values", [key, operator]
        )
        if not value:
            return None
        label, data = _fields(value, ("label", "value"))
        return PlainRecord(_to_text(label), _to_bytes(data))

    async def _latest_chunked_index(self, key: str, operator: str) -> Optional[int]:
        total = await self.chunked_get_total_writes(key, operator)
        return total - 1 if total > 0 else None

    async def chunked_get_chunks(
        self, key: str, operator: str, start: int, end: int
    ) -> List[str]:
        index = await self._latest_chunked_index(key, operator)
        if index is None:
            return []
        return await self._query_range("chunked_get_chunks", key, operator, index, start, end)

    async def history_get_metadata_at_index(
        self, key: str, operator: str, index: int
    ) -> Optional[ChunkMetadata]:
        value = await self._query(
            "history_get_metadata_at_index",
            self.config.chunked_pallet,
            "Metadata",
            [key, operator, index],
        )
        if not value:
            return None
        chunk_count, label = _fields(value, ("chunk_count", "label"))
        return ChunkMetadata(int(chunk_count or 0), _to_text(label))

    async def history_get_chunks_at_index(
        self, key: str, operator: str, start: int, end: int, index: int
    ) -> List[str]:
        return await self._query_range(
            "history_get_chunks_at_index", key, operator, index, start, end
        )

    async def history_get_value_at_index(
        self, key: str, operator: str, index: int
    ) -> Optional[PlainRecord]:
        value = await self._query(
            "history_get_value_at_index",
            self.config.storage_pallet,
            "History",
            [key, operator, index],
        )
        if not value:
            return None
        label, data = _fields(value, ("label", "value"))
        return PlainRecord(_to_text(label), _to_bytes(data))

    async def chunked_get_total_writes(self, key: str, operator: str) -> int:
        value = await self._query(
            "chunked_get_total_writes",
            self.config.chunked_pallet,
            "TotalWrites",
            [key, operator],
        )
        return int(value or 0)

    async def direct_get_total_writes(self, key: str, operator: str) -> int:
        value = await self._query(
            "direct_get_total_writes",
            self.config.storage_pallet,
            "TotalWrites",
            [key, operator],
        )
        return int(value or 0)


async def open_ledger(
    config: Optional[LedgerConfig] = None,
    keys: Optional[KeyConfig] = None,
) -> LedgerClient:
    """
    Create and connect the ledger client a configuration asks for.

    Args:
        config: Ledger settings; mock_mode selects the in-memory ledger
        keys: Key settings the in-memory ledger encodes seeded keys with

    Returns:
        Connected ledger client
    """
    config = config or LedgerConfig()

    if config.mock_mode:
        ledger = InMemoryLedger(KeyCodec.from_config(keys or KeyConfig()))
    else:
        ledger = SubstrateLedgerClient(config)

    await ledger.connect()
    return ledger
