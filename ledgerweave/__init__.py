"""
ledgerweave - reconstruct large, linked content from a size-capped ledger

Records on the ledger are small, so large values are stored as ordered chunks
and documents link to other records with embedded reference tags. ledgerweave
reads them back: it finds the chunks, reassembles them, and inlines every
reference it can reach.

Quick Start:
    >>> from ledgerweave import StorageReader, WeaveConfig, open_ledger
    >>>
    >>> config = WeaveConfig()
    >>> ledger = await open_ledger(config.ledger, config.keys)
    >>> reader = StorageReader(ledger, config)
    >>>
    >>> readout = await reader.read("my-document", "0xoperator")
    >>> print(readout.content)

Features:
    - Fixed-width key encoding with hash-on-overflow
    - Chunk reassembly with batched, sequential fetching
    - Historical version reads with chunked/plain fallback
    - Depth-bounded, cycle-safe reference resolution
"""

from ledgerweave.config import (
    WeaveConfig,
    KeyConfig,
    SelectorConfig,
    ResolverConfig,
    LedgerConfig,
)
from ledgerweave.core import (
    StorageReader,
    StorageReadout,
    StorageAccessSelector,
    ReadResult,
    RecursiveResolver,
    ResolvedContent,
    UnresolvedReason,
    KeyCodec,
    KeyFormat,
    ChunkAssembler,
    EMPTY,
    parse_references,
    format_reference,
    LedgerReadError,
    ResolutionError,
)
from ledgerweave.blockchain import (
    LedgerClient,
    InMemoryLedger,
    SubstrateLedgerClient,
    open_ledger,
)

__version__ = "0.1.0"

__all__ = [
    "WeaveConfig",
    "KeyConfig",
    "SelectorConfig",
    "ResolverConfig",
    "LedgerConfig",
    "LedgerClient",
    "InMemoryLedger",
    "SubstrateLedgerClient",
    "open_ledger",
    "StorageReader",
    "StorageReadout",
    "StorageAccessSelector",
    "ReadResult",
    "RecursiveResolver",
    "ResolvedContent",
    "UnresolvedReason",
    "KeyCodec",
    "KeyFormat",
    "ChunkAssembler",
    "EMPTY",
    "parse_references",
    "format_reference",
    "LedgerReadError",
    "ResolutionError",
]
