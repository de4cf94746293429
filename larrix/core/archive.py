# larrix/core/archive.py
"""
Byte-exact ZIP writer for a staged extension tree.

Layout: one local record per file (30-byte header, name, raw-deflate
payload), the central directory mirroring those records in the same order,
then the 22-byte end-of-central-directory record. Timestamps, flags,
attributes and extra fields are always zero so identical trees produce
identical archives. No Zip64, single disk.
"""
from __future__ import annotations
import os
import struct
import tempfile
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import List

from ..errors import ArchiveError, FileSystemError
from .staging import enumerate_files, normalize

LOCAL_HEADER_SIGNATURE = 0x04034B50
CENTRAL_HEADER_SIGNATURE = 0x02014B50
END_RECORD_SIGNATURE = 0x06054B50

VERSION = 20            # 2.0: deflate
METHOD_DEFLATE = 8

LOCAL_HEADER = struct.Struct("<I5H3I2H")      # 30 bytes
CENTRAL_HEADER = struct.Struct("<I6H3I5H2I")  # 46 bytes
END_RECORD = struct.Struct("<I4H2IH")         # 22 bytes

MAX_ENTRIES = 0xFFFF
MAX_U32 = 0xFFFFFFFF

CRC_POLYNOMIAL = 0xEDB88320


def _crc_table() -> tuple:
    table = []
    for n in range(256):
        c = n
        for _ in range(8):
            c = (c >> 1) ^ CRC_POLYNOMIAL if c & 1 else c >> 1
        table.append(c)
    return tuple(table)

_CRC_TABLE = _crc_table()

def crc32_reference(data: bytes) -> int:
    """Table-driven reflected CRC-32 (IEEE), one byte per round. Slow; kept to check `crc32`."""
    crc = 0xFFFFFFFF
    table = _CRC_TABLE
    for byte in data:
        crc = table[(crc ^ byte) & 0xFF] ^ (crc >> 8)
    return (crc ^ 0xFFFFFFFF) & 0xFFFFFFFF

def crc32(data: bytes) -> int:
    """Reflected CRC-32 (IEEE). crc32(b"123456789") == 0xCBF43926."""
    return zlib.crc32(data) & 0xFFFFFFFF

def deflate_raw(data: bytes) -> bytes:
    # negative wbits: no zlib header/trailer
    compressor = zlib.compressobj(zlib.Z_DEFAULT_COMPRESSION, zlib.DEFLATED, -zlib.MAX_WBITS)
    return compressor.compress(data) + compressor.flush()


@dataclass
class ArchiveEntry:
    name: bytes
    crc: int
    payload: bytes
    size: int
    offset: int

    @property
    def compressed_size(self) -> int:
        return len(self.payload)

    def local_record(self) -> bytes:
        header = LOCAL_HEADER.pack(
            LOCAL_HEADER_SIGNATURE,
            VERSION,                # version needed to extract
            0,                      # general purpose flags
            METHOD_DEFLATE,
            0, 0,                   # mod time, mod date
            self.crc,
            self.compressed_size,
            self.size,
            len(self.name),
            0,                      # extra field length
        )
        return header + self.name + self.payload

    def central_record(self) -> bytes:
        header = CENTRAL_HEADER.pack(
            CENTRAL_HEADER_SIGNATURE,
            VERSION,                # version made by
            VERSION,                # version needed to extract
            0,                      # general purpose flags
            METHOD_DEFLATE,
            0, 0,                   # mod time, mod date
            self.crc,
            self.compressed_size,
            self.size,
            len(self.name),
            0,                      # extra field length
            0,                      # comment length
            0,                      # disk number start
            0,                      # internal attributes
            0,                      # external attributes
            self.offset,
        )
        return header + self.name


def _check_limits(entry: ArchiveEntry) -> None:
    if len(entry.name) > 0xFFFF:
        raise ArchiveError(f"File name too long for a ZIP entry: {entry.name[:60]!r}...")
    if entry.size > MAX_U32 or entry.compressed_size > MAX_U32 or entry.offset > MAX_U32:
        raise ArchiveError(f"{entry.name.decode('utf-8')} needs Zip64, which is not supported")

def encode_entries(root: Path) -> List[ArchiveEntry]:
    root = Path(root)
    files = enumerate_files(root)
    if len(files) > MAX_ENTRIES:
        raise ArchiveError(f"{len(files)} files exceed the {MAX_ENTRIES}-entry ZIP limit")

    entries: List[ArchiveEntry] = []
    cursor = 0
    for staged in files:
        name = normalize(staged.path)
        try:
            content = (root / name).read_bytes()
        except OSError as e:
            raise FileSystemError(f"Could not read {name}: {e}") from e
        entry = ArchiveEntry(
            name=name.encode("utf-8"),
            crc=crc32(content),
            payload=deflate_raw(content),
            size=len(content),
            offset=cursor,
        )
        _check_limits(entry)
        entries.append(entry)
        cursor += LOCAL_HEADER.size + len(entry.name) + entry.compressed_size
    return entries

def encode_archive(root: Path) -> bytes:
    """Serialize every file under `root` into ZIP bytes."""
    entries = encode_entries(root)
    local = b"".join(e.local_record() for e in entries)
    central = b"".join(e.central_record() for e in entries)
    if len(local) > MAX_U32 or len(central) > MAX_U32:
        raise ArchiveError("Archive exceeds 4 GiB, which needs Zip64")
    end = END_RECORD.pack(
        END_RECORD_SIGNATURE,
        0,                  # this disk
        0,                  # disk with central directory
        len(entries),       # entries on this disk
        len(entries),       # total entries
        len(central),
        len(local),         # central directory offset
        0,                  # comment length
    )
    return local + central + end

def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask

def _write_atomic(destination: Path, data: bytes) -> None:
    destination.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            # mkstemp creates 0600, a plain open would honour the umask
            os.chmod(tmp, 0o666 & ~_current_umask())
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, destination)
    except BaseException:
        try:
            os.unlink(tmp)
        except FileNotFoundError:
            pass
        raise

def create_archive(staging_root: Path, destination: Path) -> int:
    """
    Archive `staging_root` into `destination`. The file is replaced only
    once fully written; on failure no new or partial archive is left.
    Returns the archive size in bytes.
    """
    data = encode_archive(staging_root)
    destination = Path(destination)
    try:
        _write_atomic(destination, data)
    except OSError as e:
        raise FileSystemError(f"Could not write {destination}: {e}") from e
    return len(data)
