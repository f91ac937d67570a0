"""
Sortable identifiers.

IDs follow the ULID layout: a 48-bit millisecond timestamp followed by 80
random bits, rendered as 26 Crockford base32 characters. Lexicographic
order of the string equals generation order within a process, which is
what the message cursor relies on.
"""

import os
import threading
import time
from datetime import datetime, timezone
from typing import Optional

ENCODING = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_DECODING = {char: index for index, char in enumerate(ENCODING)}

ID_LENGTH = 26
_RANDOM_BITS = 80
_RANDOM_MAX = (1 << _RANDOM_BITS) - 1
_TIMESTAMP_MAX = (1 << 48) - 1


class _MonotonicGenerator:
    def __init__(self):
        self._lock = threading.Lock()
        self._last_ms = -1
        self._last_random = 0

    def next_value(self, now_ms: Optional[int] = None) -> int:
        if now_ms is None:
            now_ms = time.time_ns() // 1_000_000
        with self._lock:
            if now_ms <= self._last_ms:
                # Clock stalled or went backwards: stay on the last timestamp
                now_ms = self._last_ms
                random_part = self._last_random + 1
                if random_part > _RANDOM_MAX:
                    now_ms += 1
                    random_part = int.from_bytes(os.urandom(10), "big")
            else:
                random_part = int.from_bytes(os.urandom(10), "big")
            if now_ms > _TIMESTAMP_MAX:
                raise ValueError("Timestamp exceeds the 48-bit ID range")
            self._last_ms = now_ms
            self._last_random = random_part
            return (now_ms << _RANDOM_BITS) | random_part


_generator = _MonotonicGenerator()


def encode(value: int) -> str:
    chars = []
    for _ in range(ID_LENGTH):
        chars.append(ENCODING[value & 31])
        value >>= 5
    return "".join(reversed(chars))


def decode(identifier: str) -> int:
    if len(identifier) != ID_LENGTH:
        raise ValueError(f"Invalid ID length: {identifier!r}")
    value = 0
    for char in identifier.upper():
        try:
            value = (value << 5) | _DECODING[char]
        except KeyError:
            raise ValueError(f"Invalid ID character {char!r} in {identifier!r}") from None
    return value


def new_id() -> str:
    """Return a new collision-resistant ID, strictly greater than the last one."""
    return encode(_generator.next_value())


def is_valid_id(identifier: str) -> bool:
    try:
        decode(identifier)
    except ValueError:
        return False
    return identifier[0] in "01234567"


def id_timestamp(identifier: str) -> datetime:
    """Creation time embedded in an ID, as an aware UTC datetime."""
    millis = decode(identifier) >> _RANDOM_BITS
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
