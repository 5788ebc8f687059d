"""Checksum helpers for published assets."""

from __future__ import annotations

import hashlib


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def checksum(data: bytes) -> str:
    """Content checksum in the ``sha256:<hex>`` form recorded for assets."""
    return f"sha256:{sha256_hex(data)}"
