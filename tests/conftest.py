"""
Shared fixtures for the ledgerweave test suite.
"""

import pytest

from ledgerweave.blockchain.memory_ledger import InMemoryLedger
from ledgerweave.core.keys import KeyCodec
from ledgerweave.core.resolver import RecursiveResolver
from ledgerweave.core.selector import StorageAccessSelector


@pytest.fixture
def codec():
    """Provide a default key codec."""
    return KeyCodec()


@pytest.fixture
def ledger():
    """Provide an empty in-memory ledger."""
    return InMemoryLedger()


@pytest.fixture
def selector(ledger):
    """Provide a selector over the in-memory ledger."""
    return StorageAccessSelector(ledger, chunk_batch_size=10)


@pytest.fixture
def resolver(selector):
    """Provide a strict resolver."""
    return RecursiveResolver(selector, max_depth=5)


@pytest.fixture
def lenient_resolver(selector):
    """Provide a best-effort resolver."""
    return RecursiveResolver(selector, max_depth=5, best_effort=True)


@pytest.fixture
def calls_for(ledger):
    """Count ledger calls of one kind made for a human key."""
    def count(call, key):
        fixed = ledger.codec.encode(key).hex
        return sum(1 for entry in ledger.call_log if entry[0] == call and entry[1] == fixed)
    return count
