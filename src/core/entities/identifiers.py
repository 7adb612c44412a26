"""Time-sortable identifiers (UUID version 7)."""

import os
import time
import uuid


def new_id() -> str:
    """
    Generate a UUIDv7 string.

    The leading 48 bits carry the Unix time in milliseconds, so ids sort
    by creation time.
    """
    unix_ms = time.time_ns() // 1_000_000
    rand = int.from_bytes(os.urandom(10), "big")
    rand_a = rand >> 68  # 12 bits
    rand_b = rand & ((1 << 62) - 1)

    value = (unix_ms & ((1 << 48) - 1)) << 80
    value |= 0x7 << 76
    value |= rand_a << 64
    value |= 0b10 << 62
    value |= rand_b
    return str(uuid.UUID(int=value))
