"""Public API for the RLN protocol layer."""
from __future__ import annotations

from importlib import import_module

from .exceptions import (
    BackendError,
    ConflictError,
    FieldArithmeticError,
    NotFoundError,
    RlnError,
    SecretRecoveryError,
    ValidationError,
)
from .hashing import get_hash_function, set_hash_function
from .identity import Identity
from .registry import LockedRegistry, Registry, generate_merkle_proof
from .result import Result, capture
from .rln import (
    RLN,
    compute_a1,
    external_nullifier,
    gen_identifier,
    generate_proof_with,
    internal_nullifier,
    retrieve_secret,
    shamir_recovery,
    signal_hash,
    verify_proof,
    y_share,
)
from .types import CircuitArtifacts, FullProof, MerkleProof, PublicSignals, Witness

__all__ = [
    "RLN",
    "Registry",
    "LockedRegistry",
    "Identity",
    "generate_merkle_proof",
    "signal_hash",
    "external_nullifier",
    "compute_a1",
    "internal_nullifier",
    "y_share",
    "shamir_recovery",
    "retrieve_secret",
    "gen_identifier",
    "generate_proof_with",
    "verify_proof",
    "MerkleProof",
    "Witness",
    "PublicSignals",
    "FullProof",
    "CircuitArtifacts",
    "Result",
    "capture",
    "get_hash_function",
    "set_hash_function",
    "RlnError",
    "ValidationError",
    "ConflictError",
    "NotFoundError",
    "SecretRecoveryError",
    "FieldArithmeticError",
    "BackendError",
    "SnarkjsBackend",
    "MockProvingBackend",
]

_LAZY_EXPORTS = {
    "SnarkjsBackend": "snark.backend",
    "MockProvingBackend": "adapters.mock_adapter",
}


def __getattr__(name: str):
    if name in _LAZY_EXPORTS:
        module = import_module(f"{__name__}.{_LAZY_EXPORTS[name]}")
        value = getattr(module, name)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
