"""Salted PAN hashing."""

import hashlib


def salted_sha256(pan: str, salt: str) -> str:
    """Lowercase hex SHA-256 of the PAN with the salt appended."""
    return hashlib.sha256((pan + salt).encode("utf-8")).hexdigest()
