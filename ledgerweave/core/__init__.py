"""
ledgerweave core

Read-side reconstruction of stored content:
- Key encoding (fixed-width ledger keys)
- Chunk assembly (ordered hex fragments)
- Reference parsing (embedded pointers to other records)
- Recursive resolution (depth-bounded, cycle-safe)
- Read path selection (router, direct, historical)
"""

from ledgerweave.core.errors import (
    LedgerReadError,
    InvalidKeyLength,
    KeyTooLong,
    MalformedFragment,
    BackendUnavailable,
    RecordNotFound,
    ResolutionError,
)
from ledgerweave.core.keys import KeyCodec, KeyFormat, OverflowPolicy, FixedKey
from ledgerweave.core.chunks import ChunkAssembler, EMPTY, split_fragments
from ledgerweave.core.references import (
    Reference,
    contains_references,
    parse_references,
    format_reference,
)
from ledgerweave.core.selector import StorageAccessSelector, ReadResult
from ledgerweave.core.resolver import (
    RecursiveResolver,
    ResolvedContent,
    UnresolvedReference,
    UnresolvedReason,
)
from ledgerweave.core.reader import StorageReader, StorageReadout

__all__ = [
    "LedgerReadError",
    "InvalidKeyLength",
    "KeyTooLong",
    "MalformedFragment",
    "BackendUnavailable",
    "RecordNotFound",
    "ResolutionError",
    "KeyCodec",
    "KeyFormat",
    "OverflowPolicy",
    "FixedKey",
    "ChunkAssembler",
    "EMPTY",
    "split_fragments",
    "Reference",
    "contains_references",
    "parse_references",
    "format_reference",
    "StorageAccessSelector",
    "ReadResult",
    "RecursiveResolver",
    "ResolvedContent",
    "UnresolvedReference",
    "UnresolvedReason",
    "StorageReader",
    "StorageReadout",
]
