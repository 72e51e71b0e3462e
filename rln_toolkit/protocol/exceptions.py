"""
Custom exceptions for the RLN protocol.

Every failure in the registry and the RLN engine surfaces as one of these,
synchronously, with no internal retry.
"""


class RlnError(Exception):
    """Base exception for RLN protocol errors."""

    pass


class ValidationError(RlnError):
    """Invalid parameter, e.g. tree depth out of range or a zero-value member."""

    pass


class ConflictError(RlnError):
    """Commitment already present in the set it is being added to, or in the opposing set."""

    pass


class NotFoundError(RlnError):
    """Commitment absent from the set an operation targets."""

    pass


class SecretRecoveryError(RlnError):
    """Two proofs do not share an internal nullifier."""

    pass


class FieldArithmeticError(RlnError):
    """Degenerate field operation such as division by zero."""

    pass


class BackendError(RlnError):
    """Failure reported by the proving/verification backend."""

    pass
