"""CRC-32 checksums of byte strings and of whole files, computed in chunks."""

from __future__ import annotations

import mmap
import os
import zlib
from concurrent.futures import ThreadPoolExecutor
from functools import lru_cache
from pathlib import Path

POLYNOMIAL = 0xEDB88320
ALIGN = 4096
CHUNK_SIZE = 64 << 20  # 64 MiB

WANT_SIZE = 0x1
WANT_TIME = 0x2
WANT_CRC = 0x4

_MASK32 = 0xFFFFFFFF


def crc32_u8(crc, value):
    """Feed one byte into a running CRC (no pre- or post-inversion)."""
    crc = (crc ^ (value & 0xFF)) & _MASK32
    for _ in range(8):
        crc = (crc >> 1) ^ (POLYNOMIAL if crc & 1 else 0)
    return crc


def crc32_u32(crc, value):
    """Feed a 32-bit word, least significant byte first."""
    for byte in (value & _MASK32).to_bytes(4, "little"):
        crc = crc32_u8(crc, byte)
    return crc


def crc32_u64(crc, value):
    """Feed a 64-bit word, low half first."""
    crc = crc32_u32(crc, value & _MASK32)
    return crc32_u32(crc, (value >> 32) & _MASK32)


def compute(data):
    """Return the CRC-32 of a bytes-like object."""
    return zlib.crc32(data) & _MASK32


@lru_cache(maxsize=None)
def _shift_table():
    table = []
    crc = 0
    for _ in range(ALIGN // 4):
        crc = crc32_u32(crc, 0)
        table.append(crc)
    return tuple(table)


def combine(crc1, crc2, len2):
    """Merge the CRC of a following chunk of length len2 into crc1."""
    if len2 == 0:
        return crc1
    shift = _shift_table()[(len2 % ALIGN) // 4]
    return crc1 ^ crc32_u32(shift, crc2)


def _span_crc(view, offset, length):
    with view[offset:offset + length] as part:
        return compute(part)


def crc_file_parallel(path, n_threads=0, flag=WANT_CRC):
    """Checksum a file in CHUNK_SIZE pieces on a pool of threads.

    Returns ``(crc, length)``. The CRC is only computed when ``flag`` has the
    WANT_CRC bit; otherwise it is 0. An empty file yields ``(0xFFFFFFFF, 0)``.
    A thread count of 0 means one per CPU.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with path.open("rb") as handle:
        size = os.fstat(handle.fileno()).st_size
        if size == 0:
            return _MASK32, 0
        if not flag & WANT_CRC:
            return 0, size

        chunk = CHUNK_SIZE
        spans = [(offset, min(chunk, size - offset)) for offset in range(0, size, chunk)]
        workers = min(n_threads or os.cpu_count() or 1, len(spans))

        with mmap.mmap(handle.fileno(), 0, access=mmap.ACCESS_READ) as mapped, \
                memoryview(mapped) as view:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                crcs = list(pool.map(lambda span: _span_crc(view, *span), spans))

    final = crcs[0]
    for (_, length), chunk_crc in zip(spans[1:], crcs[1:]):
        final = combine(final, chunk_crc, length)
    return final, size