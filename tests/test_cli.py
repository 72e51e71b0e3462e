"""
Test CLI commands.

Commands run in-process through click's CliRunner so the test hash
function installed by conftest applies.
"""
import json

import pytest
from click.testing import CliRunner

from rln_toolkit import __version__
from rln_toolkit.cli import main
from rln_toolkit.protocol.adapters.mock_adapter import MockProvingBackend
from rln_toolkit.protocol.hashing import signal_hash
from rln_toolkit.protocol.identity import Identity
from rln_toolkit.protocol.registry import Registry
from rln_toolkit.protocol.rln import RLN
from rln_toolkit.protocol.snark import backend as backend_module
from rln_toolkit.protocol.types import CircuitArtifacts


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def double_signal(tmp_path):
    """Two proofs by one member in one epoch, written as JSON files."""
    rln = RLN(
        CircuitArtifacts(tmp_path / "rln.wasm", tmp_path / "rln_final.zkey"),
        {},
        rln_identifier=42,
        identity=Identity(trapdoor=1, nullifier=2),
        backend=MockProvingBackend(),
    )
    registry = Registry(16)
    registry.add_member(rln.commitment)
    merkle_proof = registry.generate_merkle_proof(rln.commitment)

    paths = []
    for index, signal in enumerate(("first", "second")):
        path = tmp_path / f"proof{index}.json"
        path.write_text(json.dumps(rln.generate_proof(signal, merkle_proof, 100).to_dict()))
        paths.append(path)
    return rln, paths


def test_cli_version(runner):
    """Test that version command works."""
    result = runner.invoke(main, ["version"])
    assert result.exit_code == 0
    assert f"RLN Protocol Toolkit v{__version__}" in result.output


def test_cli_version_option(runner):
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_cli_signal_hash(runner):
    result = runner.invoke(main, ["signal-hash", "hello"])
    assert result.exit_code == 0
    assert result.output.strip() == str(signal_hash("hello"))


def test_cli_registry_info(runner, tmp_path):
    registry = Registry(16)
    registry.add_members([1, 2, 3])
    registry.slash_member(2)
    export = tmp_path / "registry.json"
    export.write_text(registry.export())

    result = runner.invoke(main, ["registry-info", str(export)])
    assert result.exit_code == 0
    assert str(registry.root) in result.output
    assert str(registry.slashed_root) in result.output
    assert "Active:        2 (3 slots)" in result.output
    assert "Slashed:       1" in result.output


def test_cli_registry_info_invalid(runner, tmp_path):
    export = tmp_path / "registry.json"
    export.write_text(json.dumps({"treeDepth": 4, "zeroValue": "0", "registry": [], "slashed": []}))
    result = runner.invoke(main, ["registry-info", str(export)])
    assert result.exit_code == 1


def test_cli_recover(runner, double_signal):
    rln, (proof1, proof2) = double_signal
    result = runner.invoke(main, ["recover", str(proof1), str(proof2)])
    assert result.exit_code == 0
    payload = json.loads(result.output)
    assert payload["identitySecret"] == str(rln.identity_secret)


def test_cli_recover_same_proof(runner, double_signal):
    _, (proof1, _) = double_signal
    result = runner.invoke(main, ["recover", str(proof1), str(proof1)])
    assert result.exit_code == 1


def test_cli_recover_mismatched_nullifiers(runner, double_signal, tmp_path):
    _, (proof1, proof2) = double_signal
    data = json.loads(proof2.read_text())
    data["publicSignals"]["internalNullifier"] = "1"
    proof2.write_text(json.dumps(data))
    result = runner.invoke(main, ["recover", str(proof1), str(proof2)])
    assert result.exit_code == 1


def test_cli_recover_invalid_file(runner, tmp_path, double_signal):
    _, (proof1, _) = double_signal
    bad = tmp_path / "bad.json"
    bad.write_text("{}")
    result = runner.invoke(main, ["recover", str(proof1), str(bad)])
    assert result.exit_code != 0
    assert "Invalid proof" in result.output


@pytest.mark.parametrize("returncode,expected_exit", [(0, 0), (1, 1)])
def test_cli_verify(runner, double_signal, tmp_path, monkeypatch, returncode, expected_exit):
    import subprocess

    _, (proof1, _) = double_signal
    vk = tmp_path / "vk.json"
    vk.write_text(json.dumps({"nPublic": 6}))

    def run(command, **kwargs):
        stdout = "[INFO]  snarkJS: OK!" if returncode == 0 else "[ERROR] snarkJS: Invalid proof"
        return subprocess.CompletedProcess(command, returncode, stdout=stdout, stderr="")

    monkeypatch.setattr(backend_module.subprocess, "run", run)
    result = runner.invoke(main, ["verify", "--vk", str(vk), str(proof1)])
    assert result.exit_code == expected_exit


def test_cli_verify_missing_snarkjs(runner, double_signal, tmp_path):
    _, (proof1, _) = double_signal
    vk = tmp_path / "vk.json"
    vk.write_text("{}")
    result = runner.invoke(
        main, ["verify", "--vk", str(vk), "--snarkjs", "/nonexistent/snarkjs", str(proof1)]
    )
    assert result.exit_code == 1
