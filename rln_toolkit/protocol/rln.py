"""
⚠️ DRAFT — requires crypto review before production use

RLN engine: nullifiers, secret shares, proof generation and secret recovery.

Within one epoch every signal of a member is a point on the line
``y = a1 * x + identity_secret``, where ``x`` is the signal hash and ``a1``
is bound to (identity, epoch, application). One signal reveals nothing; two
signals with the same internal nullifier reveal the line, and therefore
the identity secret.

Typical flow:
    >>> registry = Registry(20)
    >>> rln = RLN(artifacts, verification_key, backend=MockProvingBackend())
    >>> registry.add_member(rln.commitment)
    >>> proof = rln.generate_proof("hello", registry.generate_merkle_proof(rln.commitment))
    >>> assert rln.verify_proof(proof)
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from . import field
from .exceptions import SecretRecoveryError, ValidationError
from .hashing import HashFunction, hash_fields
from .hashing import signal_hash as _keccak_signal_hash
from .identity import Identity
from .security import RandomnessSource
from .snark.backend import ProvingBackend, SnarkjsBackend
from .types import CircuitArtifacts, FullProof, MerkleProof, PublicSignals, Witness

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
ProofLike = Union[FullProof, PublicSignals]


# ============================================================================
# PROTOCOL DERIVATIONS
# ============================================================================


def signal_hash(signal: str) -> int:
    """Keccak-256 of the UTF-8 signal, shifted right by 8 bits."""
    return _keccak_signal_hash(signal)


def external_nullifier(
    epoch: int, rln_identifier: int, hash_fn: Optional[HashFunction] = None
) -> int:
    """Hash(epoch, rln_identifier)."""
    return hash_fields([epoch, rln_identifier], hash_fn)


def compute_a1(
    identity_secret: int, external_nullifier: int, hash_fn: Optional[HashFunction] = None
) -> int:
    """Slope of the member's share line for one epoch and application."""
    return hash_fields([identity_secret, external_nullifier], hash_fn)


def internal_nullifier(
    a1: int, rln_identifier: int, hash_fn: Optional[HashFunction] = None
) -> int:
    """Hash(a1, rln_identifier); public and identical for all signals of one epoch."""
    return hash_fields([a1, rln_identifier], hash_fn)


def y_share(a1: int, signal_hash: int, identity_secret: int) -> int:
    """Evaluate ``a1 * x + identity_secret`` at ``x = signal_hash``."""
    return field.add(field.mul(a1, signal_hash), identity_secret)


def shamir_recovery(x1: int, x2: int, y1: int, y2: int) -> int:
    """
    Recover the y-intercept of the line through (x1, y1) and (x2, y2).

    Raises:
        FieldArithmeticError: If ``x1 == x2`` in the field
    """
    slope = field.div(field.sub(y2, y1), field.sub(x2, x1))
    return field.sub(y1, field.mul(slope, x1))


def _signals_of(proof: ProofLike) -> PublicSignals:
    if isinstance(proof, FullProof):
        return proof.public_signals
    if isinstance(proof, PublicSignals):
        return proof
    raise ValidationError(f"expected FullProof or PublicSignals, got {type(proof)}")


def retrieve_secret(proof1: ProofLike, proof2: ProofLike) -> int:
    """
    Recover the identity secret shared by two proofs.

    Args:
        proof1: First proof (or its public signals)
        proof2: Second proof from the same member, epoch and application

    Returns:
        The identity secret

    Raises:
        SecretRecoveryError: If the internal nullifiers differ
        FieldArithmeticError: If both proofs carry the same signal hash
    """
    signals1 = _signals_of(proof1)
    signals2 = _signals_of(proof2)
    if signals1.internal_nullifier != signals2.internal_nullifier:
        # Different member, epoch or application
        raise SecretRecoveryError(
            "Internal nullifiers do not match! Cannot recover secret."
        )
    return shamir_recovery(
        signals1.signal_hash,
        signals2.signal_hash,
        signals1.y_share,
        signals2.y_share,
    )


def gen_identifier(rng: Optional[RandomnessSource] = None) -> int:
    """Fresh uniformly random RLN identifier."""
    return field.random_element(rng)


# ============================================================================
# PROOFS
# ============================================================================


def _witness_x(signal: Union[str, int], should_hash: bool) -> int:
    if should_hash:
        return signal_hash(signal)
    # Raw mode: the signal already is a field element (int or numeric string)
    return field.to_field(signal)


def generate_proof_with(
    identity_secret: int,
    merkle_proof: MerkleProof,
    epoch: int,
    signal: Union[str, int],
    rln_identifier: int,
    artifacts: CircuitArtifacts,
    backend: ProvingBackend,
    *,
    should_hash: bool = True,
) -> FullProof:
    """
    Produce a proof without an RLN instance.

    Useful when the identity secret and identifier are managed elsewhere
    (for example a relayer that holds several identities).

    Raises:
        ValidationError: If an input is not a valid field element
        BackendError: If the proving backend fails
    """
    witness = Witness(
        identity_secret=field.to_field(identity_secret),
        path_elements=merkle_proof.siblings,
        identity_path_index=merkle_proof.path_indices,
        x=_witness_x(signal, should_hash),
        epoch=field.to_field(epoch),
        rln_identifier=field.to_field(rln_identifier),
    )
    logger.debug("Proving with %s", backend.backend_name)
    return backend.prove(witness, artifacts)


def verify_proof(
    verification_key: Mapping[str, Any],
    full_proof: FullProof,
    backend: ProvingBackend,
) -> bool:
    """Check ``full_proof`` against ``verification_key``."""
    return backend.verify(verification_key, full_proof.public_signals, full_proof.proof)


# ============================================================================
# RLN INSTANCE
# ============================================================================


class RLN:
    """
    One RLN identity bound to one application.

    Args:
        artifacts: Circuit wasm and proving key
        verification_key: snarkjs verification key JSON
        rln_identifier: Application identifier; random if omitted
        identity: Identity or its string form; generated if omitted
        backend: Proving backend; defaults to SnarkjsBackend
        hash_fn: Domain hash override
        clock: Time source for the default epoch (seconds)
        rng: Randomness source for generated identities and identifiers
    """

    def __init__(
        self,
        artifacts: CircuitArtifacts,
        verification_key: Mapping[str, Any],
        rln_identifier: Optional[int] = None,
        identity: Union[Identity, str, None] = None,
        *,
        backend: Optional[ProvingBackend] = None,
        hash_fn: Optional[HashFunction] = None,
        clock: Clock = time.time,
        rng: Optional[RandomnessSource] = None,
    ) -> None:
        self.artifacts = artifacts
        self.verification_key = dict(verification_key)
        self.backend = backend if backend is not None else SnarkjsBackend()
        self._hash_fn = hash_fn
        self._clock = clock

        if rln_identifier is None:
            self.rln_identifier = gen_identifier(rng)
        else:
            self.rln_identifier = field.to_field(rln_identifier)

        if identity is None:
            self.identity = Identity.generate(rng)
        elif isinstance(identity, str):
            self.identity = Identity.from_string(identity)
        elif isinstance(identity, Identity):
            self.identity = identity
        else:
            raise ValidationError(f"identity must be Identity or str, got {type(identity)}")

        self.identity_secret = self.identity.secret(hash_fn)
        self.commitment = hash_fields([self.identity_secret], hash_fn)
        logger.info("RLN identity commitment created: %d", self.commitment)

    def calculate_output(self, epoch: int, signal_hash: int) -> Tuple[int, int]:
        """
        Values the circuit will output for this identity.

        Returns:
            (y_share, internal_nullifier)
        """
        ext = external_nullifier(epoch, self.rln_identifier, self._hash_fn)
        a1 = compute_a1(self.identity_secret, ext, self._hash_fn)
        return (
            y_share(a1, signal_hash, self.identity_secret),
            internal_nullifier(a1, self.rln_identifier, self._hash_fn),
        )

    def current_epoch(self) -> int:
        return int(self._clock())

    def build_witness(
        self,
        merkle_proof: MerkleProof,
        epoch: int,
        signal: Union[str, int],
        should_hash: bool = True,
    ) -> Witness:
        """Circuit inputs for one signal of this identity."""
        logger.debug("Building witness for epoch %s", epoch)
        return Witness(
            identity_secret=self.identity_secret,
            path_elements=merkle_proof.siblings,
            identity_path_index=merkle_proof.path_indices,
            x=_witness_x(signal, should_hash),
            epoch=field.to_field(epoch),
            rln_identifier=self.rln_identifier,
        )

    def generate_proof(
        self,
        signal: str,
        merkle_proof: MerkleProof,
        epoch: Optional[int] = None,
    ) -> FullProof:
        """
        Generate an RLN proof for ``signal``.

        Args:
            signal: Usually the raw message
            merkle_proof: Inclusion proof of this identity's commitment
            epoch: Time window; the clock's current whole second if omitted

        Raises:
            BackendError: If the proving backend fails
        """
        if epoch is None:
            epoch = self.current_epoch()
        witness = self.build_witness(merkle_proof, epoch, signal)
        return self.backend.prove(witness, self.artifacts)

    def verify_proof(self, full_proof: FullProof) -> bool:
        return verify_proof(self.verification_key, full_proof, self.backend)

    def export(self) -> Dict[str, str]:
        """Everything needed to rebuild this instance, as strings."""
        logger.debug("Exporting RLN instance")
        return {
            "identity": self.identity.to_string(),
            "rlnIdentifier": str(self.rln_identifier),
            "verificationKey": json.dumps(self.verification_key),
            "wasmFilePath": str(self.artifacts.wasm_path),
            "finalZkeyPath": str(self.artifacts.zkey_path),
        }

    @classmethod
    def from_export(
        cls,
        data: Mapping[str, str],
        *,
        backend: Optional[ProvingBackend] = None,
        hash_fn: Optional[HashFunction] = None,
        clock: Clock = time.time,
    ) -> "RLN":
        """
        Rebuild an instance from ``export()`` output.

        Raises:
            ValidationError: If a key is missing or a value is malformed
        """
        logger.debug("Importing RLN instance")
        try:
            artifacts = CircuitArtifacts(
                wasm_path=data["wasmFilePath"],
                zkey_path=data["finalZkeyPath"],
            )
            verification_key = json.loads(data["verificationKey"])
            rln_identifier = field.to_field(data["rlnIdentifier"])
            identity = data["identity"]
        except (KeyError, TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid RLN export: {exc}") from exc
        return cls(
            artifacts,
            verification_key,
            rln_identifier,
            identity,
            backend=backend,
            hash_fn=hash_fn,
            clock=clock,
        )
