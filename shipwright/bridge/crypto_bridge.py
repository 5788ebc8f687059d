"""Crypto bridge — Ed25519 release signing via PyNaCl (libsodium).

Keys travel as hex strings (32-byte seed / 32-byte verify key) so they can be
stored in CI secrets.  Detached signatures are base64, the form the update
client reads from the manifest.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import logging

import nacl.signing
from nacl.exceptions import BadSignatureError

logger = logging.getLogger(__name__)


class SigningError(RuntimeError):
    """Raised when release signing cannot proceed (missing or malformed key)."""


def generate_keypair() -> tuple[str, str]:
    """Generate a signing key-pair.

    Returns
    -------
    tuple[str, str]
        ``(private_key_hex, public_key_hex)``
    """
    sk = nacl.signing.SigningKey.generate()
    return (sk.encode().hex(), sk.verify_key.encode().hex())


def _load_signing_key(private_key: str) -> nacl.signing.SigningKey:
    if not private_key:
        raise SigningError("No release signing key configured")
    try:
        return nacl.signing.SigningKey(bytes.fromhex(private_key))
    except (ValueError, TypeError) as exc:
        raise SigningError(f"Malformed release signing key: {exc}") from exc


def sign_data(data: bytes, private_key: str) -> str:
    """Sign *data* and return the base64-encoded detached signature."""
    sk = _load_signing_key(private_key)
    return base64.b64encode(sk.sign(data).signature).decode("ascii")


def verify_data(data: bytes, signature: str, public_key: str) -> bool:
    """Return ``True`` if *signature* is valid for *data* under *public_key*.

    Malformed inputs verify as ``False``.
    """
    if not signature or not public_key:
        return False
    try:
        vk = nacl.signing.VerifyKey(bytes.fromhex(public_key))
        vk.verify(data, base64.b64decode(signature, validate=True))
        return True
    except (BadSignatureError, ValueError, binascii.Error, TypeError):
        return False


def key_fingerprint(public_key: str) -> str:
    """First 16 hex characters of SHA-256(public_key), for logs."""
    if not public_key:
        return ""
    return hashlib.sha256(public_key.encode("utf-8")).hexdigest()[:16]


class ReleaseSigner:
    """Holds the release's private signing credential.

    Parameters
    ----------
    private_key:
        Hex-encoded Ed25519 seed.  Validated eagerly so a bad secret fails
        the run before any build starts.
    """

    def __init__(self, private_key: str) -> None:
        self._key = _load_signing_key(private_key)
        self.public_key = self._key.verify_key.encode().hex()
        logger.info(
            "Release signer loaded (key fingerprint %s)",
            key_fingerprint(self.public_key),
        )

    def sign(self, data: bytes) -> str:
        """Return the base64 detached signature of *data*."""
        return base64.b64encode(self._key.sign(data).signature).decode("ascii")

    def verify(self, data: bytes, signature: str) -> bool:
        return verify_data(data, signature, self.public_key)
