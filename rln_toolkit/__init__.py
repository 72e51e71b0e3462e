"""
RLN Protocol Toolkit

Rate-Limiting Nullifier primitives: a slashable membership registry and an
engine that derives nullifiers, secret shares and proofs per signal.

⚠️  EXPERIMENTAL - requires crypto review before production use
"""

__version__ = "0.1.0"

_DISCLAIMER = """
⚠️  DISCLAIMER
This toolkit is experimental. The mock proving backend offers no security,
and the Poseidon parameters must match the deployed circuit before any real
proof verifies. Do not rely on it to protect real identities.
"""


def print_disclaimer() -> None:
    print(_DISCLAIMER)
