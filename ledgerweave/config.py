"""
Configuration models for ledgerweave.

Everything that used to be process-wide (RPC overrides, pallet names, depth
limits) lives on these models and is handed to the objects that need it at
construction time.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class KeyConfig(BaseModel):
    """Storage key encoding settings."""

    overflow: str = Field(
        default="hash",
        description="Policy for raw keys longer than 32 bytes (hash, reject)"
    )
    hash_algorithm: str = Field(
        default="keccak256",
        description="Digest used when overflow=hash (keccak256, sha256, sha3_256, blake2b)"
    )

    @field_validator("overflow")
    @classmethod
    def _check_overflow(cls, value: str) -> str:
        if value not in ("hash", "reject"):
            raise ValueError(f"Unsupported overflow policy: {value}")
        return value


class SelectorConfig(BaseModel):
    """Storage read path settings."""

    chunk_batch_size: int = Field(
        default=50,
        ge=1,
        description="Maximum chunks requested per ledger call"
    )
    prefer_router: bool = Field(
        default=True,
        description="Read latest values through the storage router"
    )


class ResolverConfig(BaseModel):
    """Reference resolution settings."""

    max_depth: int = Field(
        default=3,
        ge=0,
        description="Maximum nesting depth of resolved references"
    )
    best_effort: bool = Field(
        default=False,
        description="Leave failed references in place instead of raising"
    )


class LedgerConfig(BaseModel):
    """Ledger connection settings."""

    chain_id: int = Field(default=0, description="Chain to read from")
    node_urls: List[str] = Field(
        default_factory=lambda: ["ws://localhost:9944"],
        description="Default RPC endpoints, tried in order"
    )
    rpc_overrides: Dict[int, List[str]] = Field(
        default_factory=dict,
        description="Per-chain RPC endpoints that replace node_urls"
    )
    storage_pallet: str = Field(default="Storage", description="Plain record pallet")
    chunked_pallet: str = Field(
        default="ChunkedStorage",
        description="Chunked record pallet"
    )
    router_api: str = Field(
        default="StorageRouterApi",
        description="Runtime API serving router reads"
    )
    mock_mode: bool = Field(
        default=False,
        description="Serve reads from an in-memory ledger"
    )

    def endpoints(self, chain_id: Optional[int] = None) -> List[str]:
        """RPC endpoints for a chain, overrides first."""
        chain = self.chain_id if chain_id is None else chain_id
        return list(self.rpc_overrides.get(chain) or self.node_urls)


class WeaveConfig(BaseModel):
    """Top-level configuration bundle."""

    keys: KeyConfig = Field(default_factory=KeyConfig)
    selector: SelectorConfig = Field(default_factory=SelectorConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
