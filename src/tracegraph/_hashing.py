"""Deterministic 64-bit hashing primitives.

Python's built-in ``hash()`` is salted per process for strings, so graph hashes
are built from blake2b digests instead. The same graph hashes to the same value
in every run.
"""

import hashlib

type HashT = int

HASH_MASK: HashT = (1 << 64) - 1
_GOLDEN: HashT = 0x9E3779B97F4A7C15


def string_hash(text: str) -> HashT:
    """Hash a string to 64 bits."""
    digest = hashlib.blake2b(text.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "little")


def data_hash(value: object) -> HashT:
    """Hash a plain value through its ``repr``.

    Only meaningful for values whose ``repr`` is stable (numbers, strings,
    tuples and lists of those).
    """
    return string_hash(f"{type(value).__qualname__}:{value!r}")


def hash_combine(a: HashT, b: HashT) -> HashT:
    """Combine two hashes. The result depends on argument order."""
    a &= HASH_MASK
    b &= HASH_MASK
    return (a ^ (b + _GOLDEN + ((a << 6) & HASH_MASK) + (a >> 2))) & HASH_MASK


def hash_many(first: HashT, *rest: HashT) -> HashT:
    """Left fold of :func:`hash_combine` over the given hashes."""
    result = first & HASH_MASK
    for value in rest:
        result = hash_combine(result, value)
    return result
