"""
Storage reader.

One entry point that reads a stored value through the selector and inlines
any references it contains.

Quick Start:
    >>> from ledgerweave import StorageReader, InMemoryLedger
    >>>
    >>> ledger = InMemoryLedger()
    >>> ledger.put("greeting", "0xaa", "hello {{ref:key=name,op=0xaa}}")
    >>> ledger.put("name", "0xaa", "world")
    >>>
    >>> reader = StorageReader(ledger)
    >>> readout = await reader.read("greeting", "0xaa")
    >>> readout.content
    'hello world'
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union
import logging

from ..blockchain.ledger import LedgerClient
from ..config import WeaveConfig
from .chunks import ChunkAssembler
from .keys import FixedKey, KeyCodec, KeyFormat
from .references import contains_references
from .resolver import RecursiveResolver, ResolvedContent, UnresolvedReference
from .selector import StorageAccessSelector

logger = logging.getLogger(__name__)


@dataclass
class StorageReadout:
    """A stored value with its references inlined."""
    label: str
    content: str
    is_chunked: bool
    has_references: bool
    unresolved: List[UnresolvedReference] = field(default_factory=list)


class StorageReader:
    """
    Reads and resolves stored content.

    Wires a KeyCodec, ChunkAssembler, StorageAccessSelector and
    RecursiveResolver together from a WeaveConfig.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        config: Optional[WeaveConfig] = None,
        assembler: Optional[ChunkAssembler] = None,
    ):
        """
        Initialize reader.

        Args:
            ledger: Read-only ledger client
            config: Settings (defaults apply when omitted)
            assembler: Chunk assembler, e.g. one with a decompression transform
        """
        self.config = config or WeaveConfig()
        self.codec = KeyCodec.from_config(self.config.keys)
        self.selector = StorageAccessSelector(
            ledger,
            codec=self.codec,
            assembler=assembler,
            chunk_batch_size=self.config.selector.chunk_batch_size,
        )
        self.resolver = RecursiveResolver(
            self.selector,
            max_depth=self.config.resolver.max_depth,
            best_effort=self.config.resolver.best_effort,
        )

    async def read(
        self,
        key: Union[str, FixedKey],
        operator: str,
        version_index: Optional[int] = None,
        prefer_router: Optional[bool] = None,
        key_format: Union[KeyFormat, str] = KeyFormat.AUTO,
        max_depth: Optional[int] = None,
    ) -> StorageReadout:
        """
        Read a value and resolve its references.

        Args:
            key: Storage key
            operator: Address that wrote the record
            version_index: Historical version, or None for the latest
            prefer_router: Override the configured read path for latest reads
            key_format: How to interpret ``key``
            max_depth: Override the configured depth ceiling

        Returns:
            StorageReadout
        """
        if prefer_router is None:
            prefer_router = self.config.selector.prefer_router

        fixed = self.codec.encode(key, key_format)
        result = await self.selector.read(
            fixed,
            operator,
            version_index=version_index,
            prefer_router=prefer_router,
        )
        text = result.text

        if not contains_references(text):
            return StorageReadout(result.label, text, result.is_chunked, False)

        resolved = await self.resolver.resolve(
            text,
            operator,
            max_depth=max_depth,
            root_key=fixed,
            root_version_index=version_index,
        )
        logger.debug(
            f"Read {fixed.hex[:18]}... with {resolved.fetches} referenced record(s)"
        )
        return StorageReadout(
            label=result.label,
            content=resolved.content,
            is_chunked=result.is_chunked,
            has_references=True,
            unresolved=resolved.unresolved,
        )

    async def resolve_content(
        self,
        content: str,
        operator: str,
        max_depth: Optional[int] = None,
    ) -> ResolvedContent:
        """Resolve caller-supplied content (e.g. a preview before writing)."""
        return await self.resolver.resolve(content, operator, max_depth=max_depth)

    async def total_versions(
        self,
        key: Union[str, FixedKey],
        operator: str,
        key_format: Union[KeyFormat, str] = KeyFormat.AUTO,
    ) -> int:
        """Number of versions written for a key/operator pair."""
        return await self.selector.total_versions(key, operator, key_format)
