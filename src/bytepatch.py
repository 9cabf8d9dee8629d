"""
Exact byte-sequence search and replace on whole files.

The patched file always keeps its original length: the replacement overwrites
bytes starting at the leftmost match. A replacement shorter than the search
pattern leaves the tail of the old match in place; a longer one overwrites
bytes past the match. Both are allowed but logged, since fixed-layout
binaries are only safe to patch with equal lengths.
"""

from typing import Optional, Tuple

from errors import BoundsError, NotFoundError, ValidationError
from filestore import FileStore, LocalFileStore
from logging_utils import get_logger

logger = get_logger(__name__)


def find_pattern(data, pattern: bytes, start: int = 0) -> int:
    """Naive leftmost scan. Returns the match offset or -1."""
    n, m = len(data), len(pattern)
    for pos in range(start, n - m + 1):
        if data[pos:pos + m] == pattern:
            return pos
    return -1


def patch_bytes(data, search: bytes, replace: bytes) -> Tuple[bytes, int]:
    """
    Apply one search/replace to a buffer.

    Args:
        data:    Original file contents.
        search:  Bytes to look for. Must not be empty.
        replace: Bytes written at the match offset.

    Returns:
        Tuple of (patched bytes, match offset)

    Raises:
        ValidationError: search is empty.
        NotFoundError:   search does not occur in data.
        BoundsError:     replace would run past the end of data.
    """
    if not search:
        raise ValidationError("search pattern is empty")

    offset = find_pattern(data, search)
    if offset == -1:
        raise NotFoundError(f"pattern {search.hex()} not found")

    if offset + len(replace) > len(data):
        raise BoundsError(
            f"replacement of {len(replace)} bytes at 0x{offset:X} "
            f"runs past end of {len(data)} byte file"
        )

    if len(replace) != len(search):
        logger.warning("Pattern length mismatch at 0x%X: search %d bytes, replace %d bytes",
                       offset, len(search), len(replace))

    patched = bytearray(data)
    patched[offset:offset + len(replace)] = replace
    return bytes(patched), offset


def patch(path, search: bytes, replace: bytes, store: Optional[FileStore] = None) -> int:
    """
    Patch the first occurrence of search in the file at path.

    The file is only rewritten when the pattern was found.

    Returns:
        Offset of the match.
    """
    store = store or LocalFileStore()
    data = store.read_bytes(path)
    try:
        patched, offset = patch_bytes(data, search, replace)
    except NotFoundError:
        raise NotFoundError(f"pattern {search.hex()} not found in {path}") from None

    store.write_bytes(path, patched)
    logger.info("Patched %s at 0x%X (%d bytes)", path, offset, len(replace))
    return offset
