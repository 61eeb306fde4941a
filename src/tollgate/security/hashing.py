"""Digest functions used before constant-time comparison.

Provides the default SHA-256 digest and an optional BLAKE3 digest. Both take
text and return raw digest bytes, so either can be handed to
``timing_safe_equal`` as its ``hash_function``.

Usage:
    from tollgate.security.hashing import get_digest_function, sha256_digest

    digest = sha256_digest("secret")
    blake = get_digest_function("blake3")("secret")
"""

from __future__ import annotations

import hashlib
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

import blake3

DigestFunction = Callable[[str], bytes]


class HashAlgorithm(Enum):
    """Supported digest algorithms."""

    SHA256 = "sha256"
    BLAKE3 = "blake3"


def _encode(text: str) -> bytes:
    # surrogatepass keeps lone surrogates from raising
    return text.encode("utf-8", "surrogatepass")


@dataclass(frozen=True)
class Hasher:
    """Text hasher bound to one algorithm.

    SHA-256 is the default. BLAKE3 produces a digest of the same size
    (32 bytes) and is considerably faster on long inputs.
    """

    algorithm: HashAlgorithm = HashAlgorithm.SHA256

    def digest(self, text: str) -> bytes:
        """Return the raw digest of ``text``.

        Args:
            text: Text to hash, encoded as UTF-8.

        Returns:
            32 digest bytes.
        """
        data = _encode(text)
        if self.algorithm == HashAlgorithm.BLAKE3:
            return blake3.blake3(data).digest()
        return hashlib.sha256(data).digest()

    def hexdigest(self, text: str) -> str:
        """Return the digest of ``text`` as lowercase hex."""
        return self.digest(text).hex()

    def __call__(self, text: str) -> bytes:
        return self.digest(text)


_sha256_hasher = Hasher(HashAlgorithm.SHA256)
_blake3_hasher = Hasher(HashAlgorithm.BLAKE3)


def sha256_digest(text: str) -> bytes:
    """Default digest function: SHA-256 of the UTF-8 text."""
    return _sha256_hasher.digest(text)


def blake3_digest(text: str) -> bytes:
    """BLAKE3 digest of the UTF-8 text."""
    return _blake3_hasher.digest(text)


def get_digest_function(name: str | HashAlgorithm) -> DigestFunction:
    """Resolve an algorithm name to a digest function.

    Args:
        name: ``"sha256"`` or ``"blake3"`` (case-insensitive), or a HashAlgorithm.

    Returns:
        Digest function taking text and returning bytes.

    Raises:
        ValueError: If the algorithm is not supported.
    """
    if isinstance(name, HashAlgorithm):
        algorithm = name
    else:
        try:
            algorithm = HashAlgorithm(name.strip().lower())
        except ValueError as e:
            supported = ", ".join(a.value for a in HashAlgorithm)
            raise ValueError(
                f"Unsupported hash algorithm: {name!r} (expected one of: {supported})"
            ) from e

    if algorithm == HashAlgorithm.BLAKE3:
        return blake3_digest
    return sha256_digest
