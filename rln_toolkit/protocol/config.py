"""
⚠️ DRAFT — requires crypto review before production use

Protocol configuration for the RLN toolkit.

This is a PROTOTYPE implementation for testing and validation.
DO NOT use in production without security audit.

All protocol arithmetic happens in the BN254 scalar field, the field the
Groth16 RLN circuit is compiled over.
"""

# ============================================================================
# FIELD SELECTION
# ============================================================================

# IMPLEMENTATION: BN254 (alt_bn128) scalar field
# - Same field circom/snarkjs use for Groth16 over BN254
# - Poseidon parameters are defined over this field
# - Cross-checked against py_ecc at import (see security.py)

CURVE_NAME = "bn254"
FIELD_MODULUS = (
    21888242871839275222246405745257275088548364400416034343698204186575808495617
)
FIELD_MODULUS_BITS = 254

# ============================================================================
# REGISTRY PARAMETERS
# ============================================================================

MIN_TREE_DEPTH = 16
MAX_TREE_DEPTH = 32
DEFAULT_TREE_DEPTH = 20
DEFAULT_ZERO_VALUE = 0
TREE_ARITY = 2

# Returned by index lookups when a commitment is not in the tree
NOT_FOUND = -1

# ============================================================================
# HASH FUNCTIONS
# ============================================================================

# Domain hash over field elements (commitments, nullifiers, tree nodes)
DOMAIN_HASH = "poseidon"
POSEIDON_SECURITY_LEVEL = 128
POSEIDON_ALPHA = 5
# circomlib instances: state width = inputs + 1, constants in poseidon_constants.json
POSEIDON_MAX_INPUTS = 2

# Message hash for signals; output is shifted right to land below the modulus
SIGNAL_HASH = "keccak256"
SIGNAL_HASH_SHIFT = 8

# ============================================================================
# IDENTITY
# ============================================================================

# Trapdoor and nullifier are sampled as 31-byte integers so they always fit
# in the field without reduction
IDENTITY_SECRET_BYTES = 31

# ============================================================================
# PROOF SERIALIZATION
# ============================================================================

SERIALIZATION_FORMAT = "CBOR"
PROOF_VERSION = 1
PUBLIC_SIGNALS_COUNT = 6
MAX_PROOF_SIZE_BYTES = 10 * 1024

# ============================================================================
# ENVIRONMENT
# ============================================================================

PARAMS_DIR_ENV_VAR = "RLN_PARAMS_DIR"
SNARKJS_BIN_ENV_VAR = "RLN_SNARKJS_BIN"
DEFAULT_SNARKJS_BIN = "snarkjs"

# ============================================================================
# VALIDATION
# ============================================================================


def validate_config() -> bool:
    """
    Validate configuration parameters.

    Returns:
        True if configuration is valid

    Raises:
        AssertionError: If configuration is invalid
    """
    assert FIELD_MODULUS.bit_length() == FIELD_MODULUS_BITS, "Field size mismatch"
    assert 0 < MIN_TREE_DEPTH <= DEFAULT_TREE_DEPTH <= MAX_TREE_DEPTH, (
        "Default tree depth out of bounds"
    )
    assert TREE_ARITY == 2, "Only binary Merkle trees are supported"
    assert POSEIDON_MAX_INPUTS >= TREE_ARITY, "Poseidon width too small for tree nodes"
    assert 0 <= DEFAULT_ZERO_VALUE < FIELD_MODULUS, "Zero value outside field"
    assert IDENTITY_SECRET_BYTES * 8 < FIELD_MODULUS_BITS, "Identity secrets too wide"
    assert SIGNAL_HASH_SHIFT >= 256 - FIELD_MODULUS_BITS, "Signal hash may exceed field"
    assert PUBLIC_SIGNALS_COUNT == 6, "RLN circuit emits six public signals"

    return True


# Auto-validate on import
validate_config()
