"""Unit tests for promptwall/utils/ulid.py.

The request id returned in X-PromptWall-Request-ID must be a 26-character,
uppercase, header-safe ULID, unique across rapid and concurrent generation.
"""

from __future__ import annotations

import threading
import time

from promptwall.utils.ulid import generate_ulid

# Crockford Base32: 0-9 and A-Z without I, L, O, U
ULID_ALPHABET = frozenset("0123456789ABCDEFGHJKMNPQRSTVWXYZ")
ULID_LENGTH = 26


def test_generate_ulid_format() -> None:
    result = generate_ulid()
    assert isinstance(result, str)
    assert len(result) == ULID_LENGTH, f"Expected 26 chars, got {len(result)}: {result!r}"
    assert set(result) <= ULID_ALPHABET, f"ULID {result!r} contains invalid characters"


def test_generate_ulid_unique_1000() -> None:
    ulids = [generate_ulid() for _ in range(1000)]
    assert len(set(ulids)) == 1000


def test_generate_ulid_lexicographic_order() -> None:
    """Timestamp is the most significant part: later ids sort after earlier ones."""
    first_batch = [generate_ulid() for _ in range(10)]
    time.sleep(0.002)  # 2ms — guarantees timestamp advances
    second_batch = [generate_ulid() for _ in range(10)]
    assert all(b > a for a in first_batch for b in second_batch)


def test_generate_ulid_thread_safe() -> None:
    results: list[str] = []
    lock = threading.Lock()

    def worker() -> None:
        ulids = [generate_ulid() for _ in range(50)]
        with lock:
            results.extend(ulids)

    threads = [threading.Thread(target=worker) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 500
    assert len(set(results)) == 500


def test_generate_ulid_valid_as_http_header_value() -> None:
    ulid = generate_ulid()
    assert all(0x20 <= ord(c) <= 0x7E for c in ulid)
    assert not any(c in set("\r\n\x00:") for c in ulid)
