"""Timing-safe equality for credential comparison.

Both operands are normalized to text, digested to a fixed size, and the
digests are compared without early exit. The running time of the byte scan
depends only on the digest lengths, never on where the inputs differ.

Example:
    if await timing_safe_equal(stored_password, supplied_password):
        allow()
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any

from tollgate.security.hashing import sha256_digest

# Stands in for None; the NUL delimiters keep it apart from ordinary text.
UNDEFINED_PLACEHOLDER = "\x00tollgate:undefined\x00"

HashFunction = Callable[[str], Any]


def normalize_operand(value: Any) -> str | None:
    """Normalize a comparison operand to text.

    Cases:
        - ``str``: returned unchanged.
        - ``None``: the fixed ``UNDEFINED_PLACEHOLDER``.
        - ``bool``: ``"true"`` or ``"false"``.
        - ``int`` / ``float``: ``str(value)``.
        - anything else: ``None`` (not a valid comparison target).
    """
    if isinstance(value, str):
        return value
    if value is None:
        return UNDEFINED_PLACEHOLDER
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return None


def constant_time_compare(left: bytes, right: bytes) -> bool:
    """Compare two byte strings without early exit.

    Every position up to the longer length is inspected. Positions past the
    end of the shorter input read as zero, and a length mismatch is folded
    into the accumulator only after the scan.
    """
    left_len = len(left)
    right_len = len(right)
    result = 0
    for i in range(max(left_len, right_len)):
        x = left[i] if i < left_len else 0
        y = right[i] if i < right_len else 0
        result |= x ^ y
    result |= left_len ^ right_len
    return result == 0


async def _digest(text: str, hash_function: HashFunction) -> bytes:
    digest = hash_function(text)
    if inspect.isawaitable(digest):
        digest = await digest
    if isinstance(digest, str):
        return digest.encode("utf-8", "surrogatepass")
    if isinstance(digest, (bytes, bytearray, memoryview)):
        return bytes(digest)
    return b""


async def timing_safe_equal(
    a: Any,
    b: Any,
    hash_function: HashFunction | None = None,
) -> bool:
    """Compare two values in time independent of where they differ.

    Args:
        a: First operand.
        b: Second operand.
        hash_function: Optional digest function, sync or async, applied to
            both operands. Defaults to SHA-256.

    Returns:
        True if both normalized operands have equal digests. Operands that
        are not strings, booleans, numbers or None always compare False.
    """
    left = normalize_operand(a)
    right = normalize_operand(b)
    if left is None or right is None:
        return False

    if hash_function is None:
        hash_function = sha256_digest

    left_digest = await _digest(left, hash_function)
    right_digest = await _digest(right, hash_function)
    if not left_digest or not right_digest:
        return False

    return constant_time_compare(left_digest, right_digest)
