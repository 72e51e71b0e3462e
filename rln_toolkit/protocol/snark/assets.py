"""Helpers to resolve RLN circuit artifacts with layout fallbacks."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Iterable

from ..config import DEFAULT_TREE_DEPTH, PARAMS_DIR_ENV_VAR
from ..types import CircuitArtifacts

WASM_NAME = "rln.wasm"
ZKEY_NAME = "rln_final.zkey"
VK_NAME = "verification_key.json"


def resolve_wasm(depth: int | None = None, base_dir: str | Path | None = None) -> Path:
    return _resolve_param_path(WASM_NAME, depth=depth, base_dir=base_dir)


def resolve_zkey(depth: int | None = None, base_dir: str | Path | None = None) -> Path:
    return _resolve_param_path(ZKEY_NAME, depth=depth, base_dir=base_dir)


def resolve_vk(depth: int | None = None, base_dir: str | Path | None = None) -> Path:
    return _resolve_param_path(VK_NAME, depth=depth, base_dir=base_dir)


def resolve_artifacts(
    depth: int | None = None,
    base_dir: str | Path | None = None,
) -> CircuitArtifacts:
    """
    Resolve the wasm/zkey pair for a tree depth.
    """
    return CircuitArtifacts(
        wasm_path=resolve_wasm(depth, base_dir),
        zkey_path=resolve_zkey(depth, base_dir),
    )


def load_verification_key(path_or_depth: str | Path | int | None = None) -> Dict[str, Any]:
    """
    Load a snarkjs verification key JSON.

    Accepts an explicit path, or a tree depth (or None) to resolve the
    default location.
    """
    if isinstance(path_or_depth, (str, Path)):
        path = Path(path_or_depth)
    else:
        path = resolve_vk(path_or_depth)
    return json.loads(path.read_text(encoding="utf-8"))


def _resolve_param_path(
    name: str,
    depth: int | None,
    base_dir: str | Path | None,
) -> Path:
    depth_value = depth if depth is not None else DEFAULT_TREE_DEPTH
    base_dir = Path(base_dir) if base_dir else _default_params_dir()

    candidates = [
        base_dir / f"depth-{depth_value}" / name,
        base_dir / f"rln_depth{depth_value}_{name}",
        base_dir / name,
    ]
    return _first_existing(candidates, f"RLN depth {depth_value} {name}")


def _default_repo_root() -> Path:
    return Path(__file__).resolve().parents[3]


def _default_params_dir() -> Path:
    return Path(os.getenv(PARAMS_DIR_ENV_VAR, _default_repo_root() / "circuits" / "params"))


def _first_existing(candidates: Iterable[Path], label: str) -> Path:
    candidates = list(candidates)
    for path in candidates:
        if path.exists():
            return path
    raise FileNotFoundError(
        f"Unable to resolve {label}. Checked: {', '.join(str(p) for p in candidates)}"
    )
