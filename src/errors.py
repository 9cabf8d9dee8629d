"""
Exception types raised by the BNK codec, the byte patcher and the backup guard.

Every error aborts the operation that raised it; none of them leave the
target file or archive half-modified.
"""


class BnkError(Exception):
    """Base class for all patcher errors."""


class FormatError(BnkError):
    """Archive structure is inconsistent and cannot be written or read."""


class InvalidFormatError(FormatError):
    """Footer magic or reserved bytes do not match the Wildfire layout."""


class BoundsError(BnkError):
    """A computed offset or size falls outside the buffer."""


class NotFoundError(BnkError):
    """Missing archive entry or missing byte pattern."""


class DuplicateNameError(BnkError):
    """An entry with the same name already exists in the archive."""


class NameTooLongError(BnkError):
    """Entry name does not fit in the 32 byte name field."""


class ValidationError(BnkError):
    """Caller supplied an absent or empty value."""


class AlreadyExistsError(BnkError):
    """A backup for this filename was already captured in this run."""
