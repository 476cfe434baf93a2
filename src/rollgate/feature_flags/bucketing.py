"""
Deterministic rollout bucketing.

A user's bucket is the first 8 bytes of SHA-256 over the UTF-8 user id,
read as an unsigned big-endian integer, modulo 100. It does not depend on
the feature or the percentage, so raising a rollout only ever adds users.
Python's built-in hash() is salted per process and must not be used here.
"""

import hashlib

BUCKET_COUNT = 100


def stable_hash(value: str) -> int:
    """Unsigned 64-bit hash of ``value`` that is identical across processes."""
    digest = hashlib.sha256(value.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")


def rollout_bucket(user_id: str) -> int:
    """Bucket in [0, 100) for a user id."""
    return stable_hash(user_id) % BUCKET_COUNT
