#!/usr/bin/env python3
"""
bnk.py - Wildfire BNK container codec

Reads, edits and writes the asset banks shipped with the game. A bank is a
run of payloads followed by one 48 byte directory record per entry and an
18 byte footer:

    [payload_0]...[payload_N-1][record_0]...[record_N-1][footer]

Record:  name[32]  distance_from_eof u32  size u32  uncompressed u32  flag u32
Footer:  "Wildfire"  00 00 00 00 01 00  entry_count u32

Payloads are opaque. The uncompressed size and compression flag are carried
through untouched.

Usage:
  python3 bnk.py list <file.bnk>
  python3 bnk.py extract <file.bnk> <output_folder> [entry_name]
"""

import os
import sys
from typing import Iterator, List, Optional

from binutil import pack_u32le, read_range, read_text, read_u32le
from errors import (
    BnkError,
    BoundsError,
    DuplicateNameError,
    FormatError,
    InvalidFormatError,
    NameTooLongError,
    NotFoundError,
    ValidationError,
)
from filestore import FileStore, LocalFileStore, is_plain_filename
from logging_utils import get_logger

logger = get_logger(__name__)

# =============================================================================
# FORMAT CONSTANTS
# =============================================================================

MAGIC = b'Wildfire'
RESERVED = bytes([0x00, 0x00, 0x00, 0x00, 0x01, 0x00])
FOOTER_SIZE = 18
RECORD_SIZE = 48
NAME_SIZE = 32


def encode_name(name: str) -> bytes:
    """UTF-8 encode name and NUL-pad it to the 32 byte name field."""
    encoded = name.encode('utf-8')
    if len(encoded) > NAME_SIZE:
        raise NameTooLongError(
            f"'{name}' is {len(encoded)} bytes, limit is {NAME_SIZE}"
        )
    return encoded.ljust(NAME_SIZE, b'\x00')


# =============================================================================
# ENTRY
# =============================================================================

class ArchiveEntry:
    """One named asset: 32 byte name field, payload and two pass-through fields."""

    def __init__(self, name: bytes, payload: bytes, uncompressed_size: int = 0,
                 compression_flag: int = 0):
        self.name = bytes(name)
        self.payload = bytes(payload)
        self.uncompressed_size = uncompressed_size
        self.compression_flag = compression_flag

    @classmethod
    def create(cls, name: str, payload: bytes, uncompressed_size: Optional[int] = None,
               compression_flag: int = 0) -> 'ArchiveEntry':
        """Build an entry from loose data. uncompressed_size defaults to len(payload)."""
        if uncompressed_size is None:
            uncompressed_size = len(payload)
        return cls(encode_name(name), payload, uncompressed_size, compression_flag)

    @classmethod
    def parse(cls, archive_bytes, directory_offset: int) -> 'ArchiveEntry':
        """
        Parse the directory record at directory_offset and pull its payload.

        The record stores the payload start as a distance back from the end
        of the file, so the absolute offset depends on the length of
        archive_bytes.
        """
        record = read_range(archive_bytes, directory_offset, RECORD_SIZE)
        name = record[:NAME_SIZE]
        distance = read_u32le(record, 32)
        size = read_u32le(record, 36)
        uncompressed_size = read_u32le(record, 40)
        compression_flag = read_u32le(record, 44)

        payload_start = len(archive_bytes) - distance
        if payload_start < 0 or payload_start + size > len(archive_bytes):
            raise BoundsError(
                f"entry '{read_text(name)}' payload at -{distance} "
                f"(+{size}) lies outside {len(archive_bytes)} byte archive"
            )
        payload = read_range(archive_bytes, payload_start, size)
        return cls(name, payload, uncompressed_size, compression_flag)

    @property
    def display_name(self) -> str:
        return read_text(self.name)

    def clone(self) -> 'ArchiveEntry':
        return ArchiveEntry(bytes(self.name), bytes(self.payload),
                            self.uncompressed_size, self.compression_flag)

    def rename(self, new_name: str) -> None:
        # encode_name raises before anything is assigned
        self.name = encode_name(new_name)

    def to_record(self, distance: int) -> bytes:
        return (self.name
                + pack_u32le(distance)
                + pack_u32le(len(self.payload))
                + pack_u32le(self.uncompressed_size)
                + pack_u32le(self.compression_flag))

    def __eq__(self, other):
        if not isinstance(other, ArchiveEntry):
            return NotImplemented
        return (self.name == other.name
                and self.payload == other.payload
                and self.uncompressed_size == other.uncompressed_size
                and self.compression_flag == other.compression_flag)

    def __repr__(self):
        return (f"ArchiveEntry({self.display_name!r}, {len(self.payload)} bytes, "
                f"uncompressed={self.uncompressed_size}, flag={self.compression_flag})")


# =============================================================================
# ARCHIVE
# =============================================================================

class Archive:
    """
    An ordered set of uniquely named entries parsed from a BNK file.

    Entries handed in by callers are always cloned before being stored, and
    entries handed out by clone_entry are copies, so an Archive never shares
    buffers with the outside.
    """

    def __init__(self, entries: List[ArchiveEntry], source_path=None):
        self.entries = entries
        self.source_path = source_path

    @classmethod
    def load(cls, path, store: Optional[FileStore] = None) -> 'Archive':
        store = store or LocalFileStore()
        data = store.read_bytes(path)
        archive = cls.from_bytes(data, source_path=path)
        logger.debug("Loaded %s: %d entries, %d bytes", path, len(archive), len(data))
        return archive

    @classmethod
    def from_bytes(cls, data, source_path=None) -> 'Archive':
        if len(data) < FOOTER_SIZE:
            raise InvalidFormatError(
                f"{len(data)} bytes is too short for a {FOOTER_SIZE} byte footer"
            )
        footer = data[-FOOTER_SIZE:]
        if bytes(footer[:14]) != MAGIC + RESERVED:
            raise InvalidFormatError(f"bad footer signature {bytes(footer[:14]).hex()}")

        count = read_u32le(footer, 14)
        directory_start = len(data) - FOOTER_SIZE - count * RECORD_SIZE
        if directory_start < 0:
            raise BoundsError(
                f"{count} directory records do not fit in {len(data)} bytes"
            )

        entries = []
        offset = directory_start
        for _ in range(count):
            entries.append(ArchiveEntry.parse(data, offset))
            offset += RECORD_SIZE
        return cls(entries, source_path)

    def to_bytes(self) -> bytes:
        """
        Serialise payloads, directory and footer.

        Each record's offset field is the distance from end of file to its
        payload: it starts at the total file size and shrinks by each payload
        length in list order. Payloads and records must therefore be written
        in the same order.
        """
        for entry in self.entries:
            if len(entry.name) != NAME_SIZE:
                raise FormatError(
                    f"entry name field is {len(entry.name)} bytes, expected {NAME_SIZE}"
                )

        count = len(self.entries)
        metadata_size = count * RECORD_SIZE + FOOTER_SIZE
        total = metadata_size + sum(len(e.payload) for e in self.entries)

        out = bytearray()
        for entry in self.entries:
            out += entry.payload

        trailing = total
        for entry in self.entries:
            out += entry.to_record(trailing)
            trailing -= len(entry.payload)

        out += MAGIC + RESERVED + pack_u32le(count)
        return bytes(out)

    def save(self, path=None, store: Optional[FileStore] = None) -> None:
        path = path if path is not None else self.source_path
        if path is None:
            raise ValidationError("no destination path and archive has no source path")
        store = store or LocalFileStore()
        data = self.to_bytes()
        store.write_bytes(path, data)
        logger.debug("Saved %s: %d entries, %d bytes", path, len(self), len(data))

    # -------------------------------------------------------------------------
    # lookup
    # -------------------------------------------------------------------------

    def find(self, name: str) -> Optional[int]:
        """Index of the entry called name, or None."""
        for index, entry in enumerate(self.entries):
            if entry.display_name == name:
                return index
        return None

    def _require(self, name: str) -> int:
        index = self.find(name)
        if index is None:
            raise NotFoundError(f"entry '{name}' not found in {self.source_path}")
        return index

    def names(self) -> List[str]:
        return [entry.display_name for entry in self.entries]

    def __len__(self):
        return len(self.entries)

    def __iter__(self) -> Iterator[ArchiveEntry]:
        return iter(self.entries)

    def __contains__(self, name):
        return self.find(name) is not None

    # -------------------------------------------------------------------------
    # mutation
    # -------------------------------------------------------------------------

    def clone_entry(self, name: str) -> ArchiveEntry:
        return self.entries[self._require(name)].clone()

    def add_entry(self, entry: Optional[ArchiveEntry]) -> None:
        if entry is None or not entry.payload:
            raise ValidationError("cannot add a missing or empty entry")
        name = entry.display_name
        if name in self:
            raise DuplicateNameError(f"entry '{name}' already exists in {self.source_path}")
        self.entries.append(entry.clone())
        logger.info("Added '%s' (%d bytes) to %s", name, len(entry.payload), self.source_path)

    def remove_entry(self, name: str) -> None:
        index = self._require(name)
        del self.entries[index]
        logger.info("Removed '%s' from %s", name, self.source_path)

    def replace_entry(self, name: str, new_entry: Optional[ArchiveEntry]) -> None:
        """Swap in a copy of new_entry at the slot called name, keeping the slot's name."""
        if new_entry is None:
            raise ValidationError("cannot replace with a missing entry")
        index = self._require(name)
        replacement = new_entry.clone()
        replacement.name = bytes(self.entries[index].name)
        self.entries[index] = replacement
        logger.info("Replaced '%s' in %s (%d bytes)", name, self.source_path,
                    len(replacement.payload))


# =============================================================================
# CLI
# =============================================================================

def list_archive(path):
    archive = Archive.load(path)
    print(f"{path}: {len(archive)} entries")
    for index, entry in enumerate(archive):
        print(f"  [{index:3d}] {entry.display_name:<32} {len(entry.payload):>10,} bytes"
              f"  uncompressed {entry.uncompressed_size:>10,}  flag {entry.compression_flag}")


def extract_archive(path, output_dir, name=None):
    """Write raw payloads to output_dir. Returns the number of files written."""
    archive = Archive.load(path)
    entries = [archive.clone_entry(name)] if name else list(archive)

    # entry names come from the file and become output filenames
    for entry in entries:
        if not is_plain_filename(entry.display_name):
            raise ValidationError(
                f"entry name {entry.display_name!r} is not a safe filename, nothing extracted"
            )

    os.makedirs(output_dir, exist_ok=True)
    for entry in entries:
        outpath = os.path.join(output_dir, entry.display_name)
        with open(outpath, 'wb') as out:
            out.write(entry.payload)
        print(f"  {entry.display_name} -> {len(entry.payload):,} bytes")
    return len(entries)


def main():
    if len(sys.argv) < 3 or sys.argv[1] not in ('list', 'extract'):
        print(__doc__)
        sys.exit(1)

    command, path = sys.argv[1], sys.argv[2]
    if not os.path.exists(path):
        print(f"ERROR: File not found: {path}")
        sys.exit(1)

    try:
        if command == 'list':
            list_archive(path)
        else:
            if len(sys.argv) < 4:
                print(__doc__)
                sys.exit(1)
            name = sys.argv[4] if len(sys.argv) >= 5 else None
            count = extract_archive(path, sys.argv[3], name)
            print(f"Done! Extracted {count} entries")
    except BnkError as e:
        print(f"ERROR: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
