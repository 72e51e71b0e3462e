"""Non-cryptographic backends for tests and demos."""
