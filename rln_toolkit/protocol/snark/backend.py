"""Groth16 proving/verification backends for RLN witnesses."""

from __future__ import annotations

import json
import logging
import os
import subprocess
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Mapping, Optional

from ..config import DEFAULT_SNARKJS_BIN, SNARKJS_BIN_ENV_VAR
from ..exceptions import BackendError, ValidationError
from ..types import CircuitArtifacts, FullProof, PublicSignals, Witness

logger = logging.getLogger(__name__)


class ProvingBackend(ABC):
    """
    Proving/verification collaborator of the RLN engine.

    Implementations must return public signals in the circuit's wire order
    and must not retry; any failure surfaces as BackendError.
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Human-readable backend name."""

    @abstractmethod
    def prove(self, witness: Witness, artifacts: CircuitArtifacts) -> FullProof:
        """Produce a proof and its public signals for ``witness``."""

    @abstractmethod
    def verify(
        self,
        verification_key: Mapping[str, Any],
        public_signals: PublicSignals,
        proof: Mapping[str, Any],
    ) -> bool:
        """Check ``proof`` against ``verification_key`` and ``public_signals``."""


class SnarkjsBackend(ProvingBackend):
    """
    Groth16 through the snarkjs CLI.

    Each call writes its inputs to a temporary directory and runs
    ``snarkjs groth16 fullprove`` or ``snarkjs groth16 verify``. No timeout
    is applied unless one is passed; deadlines belong to the caller.
    """

    _BACKEND_NAME = "snarkjs-groth16"

    def __init__(
        self,
        snarkjs_bin: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self._command = snarkjs_bin or os.getenv(SNARKJS_BIN_ENV_VAR, DEFAULT_SNARKJS_BIN)
        self._timeout = timeout

    @property
    def backend_name(self) -> str:
        return self._BACKEND_NAME

    def prove(self, witness: Witness, artifacts: CircuitArtifacts) -> FullProof:
        if not artifacts.wasm_path.exists():
            raise BackendError(f"missing circuit wasm: {artifacts.wasm_path}")
        if not artifacts.zkey_path.exists():
            raise BackendError(f"missing proving key: {artifacts.zkey_path}")

        with tempfile.TemporaryDirectory() as tmp_dir:
            tmp = Path(tmp_dir)
            input_path = tmp / "input.json"
            proof_path = tmp / "proof.json"
            public_path = tmp / "public.json"
            input_path.write_text(json.dumps(witness.to_circuit_input()), encoding="utf-8")

            result = self._run(
                [
                    "groth16",
                    "fullprove",
                    str(input_path),
                    str(artifacts.wasm_path),
                    str(artifacts.zkey_path),
                    str(proof_path),
                    str(public_path),
                ]
            )
            if result.returncode != 0:
                stderr = result.stderr.strip() or result.stdout.strip() or "unknown prover error"
                raise BackendError(f"prover failed: {stderr}")

            try:
                proof = json.loads(proof_path.read_text(encoding="utf-8"))
                signals = json.loads(public_path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                raise BackendError(f"prover produced unreadable output: {exc}") from exc

        if not isinstance(proof, dict) or not isinstance(signals, list):
            raise BackendError("prover produced malformed output")
        try:
            public_signals = PublicSignals.from_list(signals)
        except ValidationError as exc:
            raise BackendError(f"prover produced malformed public signals: {exc}") from exc
        return FullProof(proof=proof, public_signals=public_signals)

    def verify(
        self,
        verification_key: Mapping[str, Any],
        public_signals: PublicSignals,
        proof: Mapping[str, Any],
    ) -> bool:
        with tempfile.TemporaryDirectory() as tmp_dir:
            tmp = Path(tmp_dir)
            vk_path = tmp / "verification_key.json"
            public_path = tmp / "public.json"
            proof_path = tmp / "proof.json"
            vk_path.write_text(json.dumps(dict(verification_key)), encoding="utf-8")
            public_path.write_text(
                json.dumps(public_inputs_vector(public_signals)), encoding="utf-8"
            )
            proof_path.write_text(json.dumps(dict(proof)), encoding="utf-8")

            result = self._run(
                ["groth16", "verify", str(vk_path), str(public_path), str(proof_path)]
            )

        if result.returncode != 0:
            logger.warning("snarkjs verify rejected proof: %s", result.stdout.strip())
            return False
        return "OK" in result.stdout

    def _run(self, args: List[str]) -> subprocess.CompletedProcess:
        command = [self._command, *args]
        logger.debug("Running %s", " ".join(command[:3]))
        try:
            return subprocess.run(
                command,
                capture_output=True,
                text=True,
                check=False,
                timeout=self._timeout,
            )
        except FileNotFoundError as exc:
            raise BackendError(f"snarkjs executable not found: {self._command}") from exc
        except subprocess.TimeoutExpired as exc:
            raise BackendError(f"snarkjs timed out after {self._timeout}s") from exc


def public_inputs_vector(public_signals: PublicSignals) -> List[str]:
    """Ordered decimal-string vector, as verifiers expect it."""
    return [str(v) for v in public_signals.to_list()]
