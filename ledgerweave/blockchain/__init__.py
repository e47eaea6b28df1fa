"""
Ledger access

Read-only clients for the key/value ledger:
- In-memory ledger (mock mode, tests)
- Substrate node client
"""

from .ledger import LedgerClient, RouterRecord, PlainRecord, ChunkMetadata
from .memory_ledger import InMemoryLedger
from .substrate_ledger import SubstrateLedgerClient, open_ledger

__all__ = [
    "LedgerClient",
    "RouterRecord",
    "PlainRecord",
    "ChunkMetadata",
    "InMemoryLedger",
    "SubstrateLedgerClient",
    "open_ledger",
]
