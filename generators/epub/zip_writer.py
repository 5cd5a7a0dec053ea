"""
ZIP Container Writer
====================

Writes an OCF (ZIP) container without compression. Every entry is stored
(method 0), so the compressed and uncompressed sizes are always equal.

Layout of the produced archive:
- one local file header + name + data per entry, in the given order
- one central directory record + name per entry
- the end of central directory record

All integers are little-endian. Timestamps are zero.
"""

import struct
from typing import Iterable, List

from .exceptions import ArchiveAssemblyError
from .models import ZipEntry, ZipRecord


def _make_crc_table() -> tuple:
    table = []
    for n in range(256):
        c = n
        for _ in range(8):
            c = 0xEDB88320 ^ (c >> 1) if c & 1 else c >> 1
        table.append(c)
    return tuple(table)


CRC_TABLE = _make_crc_table()

LOCAL_HEADER_SIGNATURE = 0x04034B50
CENTRAL_HEADER_SIGNATURE = 0x02014B50
END_OF_CENTRAL_DIRECTORY_SIGNATURE = 0x06054B50

VERSION = 20
METHOD_STORE = 0

# signature, version needed, flags, method, mod time, mod date,
# crc32, compressed size, uncompressed size, name length, extra length
LOCAL_HEADER = struct.Struct('<IHHHHHIIIHH')
# signature, version made by, version needed, flags, method, mod time,
# mod date, crc32, compressed size, uncompressed size, name length,
# extra length, comment length, disk start, internal attrs, external attrs,
# local header offset
CENTRAL_HEADER = struct.Struct('<IHHHHHHIIIHHHHHII')
# signature, disk number, central directory disk, entries on disk,
# total entries, central directory size, central directory offset,
# comment length
END_OF_CENTRAL_DIRECTORY = struct.Struct('<IHHHHIIH')

UINT16_MAX = 0xFFFF
UINT32_MAX = 0xFFFFFFFF


def crc32(data: bytes) -> int:
    """CRC-32 (IEEE 802.3) of ``data``."""
    crc = 0xFFFFFFFF
    for byte in data:
        crc = (crc >> 8) ^ CRC_TABLE[(crc ^ byte) & 0xFF]
    return crc ^ 0xFFFFFFFF


def _local_header(record: ZipRecord) -> bytes:
    return LOCAL_HEADER.pack(
        LOCAL_HEADER_SIGNATURE,
        VERSION,
        0,
        METHOD_STORE,
        0,
        0,
        record.crc32,
        record.size,
        record.size,
        len(record.name_bytes),
        0,
    ) + record.name_bytes


def _central_header(record: ZipRecord) -> bytes:
    return CENTRAL_HEADER.pack(
        CENTRAL_HEADER_SIGNATURE,
        VERSION,
        VERSION,
        0,
        METHOD_STORE,
        0,
        0,
        record.crc32,
        record.size,
        record.size,
        len(record.name_bytes),
        0,
        0,
        0,
        0,
        0,
        record.offset,
    ) + record.name_bytes


def build_zip(entries: Iterable[ZipEntry]) -> bytes:
    """Serialize ``entries`` into a stored ZIP archive.

    Entries are written in the order given and none are skipped.

    Raises:
        ArchiveAssemblyError: if an entry or the archive itself does not fit
            the 32-bit ZIP fields, or an entry is malformed.
    """
    records: List[ZipRecord] = []
    parts: List[bytes] = []
    offset = 0

    for entry in entries:
        if not isinstance(entry.data, (bytes, bytearray)):
            raise ArchiveAssemblyError(f"Entry {entry.name!r} has no byte data")
        data = bytes(entry.data)
        if len(data) > UINT32_MAX:
            raise ArchiveAssemblyError(f"Entry {entry.name!r} is too large for a ZIP32 archive")

        name_bytes = entry.name.encode('utf-8')
        if len(name_bytes) > UINT16_MAX:
            raise ArchiveAssemblyError(f"Entry name too long: {entry.name[:80]}...")
        if offset > UINT32_MAX:
            raise ArchiveAssemblyError("Archive exceeds the ZIP32 size limit")

        record = ZipRecord(name_bytes=name_bytes, crc32=crc32(data), size=len(data), offset=offset)
        header = _local_header(record)
        parts.append(header)
        parts.append(data)
        records.append(record)
        offset += len(header) + len(data)

    if len(records) > UINT16_MAX:
        raise ArchiveAssemblyError(f"Too many entries for a ZIP32 archive: {len(records)}")

    central_start = offset
    central_size = 0
    for record in records:
        header = _central_header(record)
        parts.append(header)
        central_size += len(header)

    if central_start > UINT32_MAX or central_size > UINT32_MAX:
        raise ArchiveAssemblyError("Archive exceeds the ZIP32 size limit")

    parts.append(END_OF_CENTRAL_DIRECTORY.pack(
        END_OF_CENTRAL_DIRECTORY_SIGNATURE,
        0,
        0,
        len(records),
        len(records),
        central_size,
        central_start,
        0,
    ))

    return b''.join(parts)
