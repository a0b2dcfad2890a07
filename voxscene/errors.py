"""Errors raised while decoding .vox files.

Every error derives from VoxError, which is itself a ValueError, so callers
that only care about "this file could not be read" can catch either. Errors
carry the absolute byte offset and chunk tag where they were detected when
those are known.
"""

from typing import Optional


class VoxError(ValueError):
    """Base class for .vox decoding errors."""

    def __init__(
        self, message: str, offset: Optional[int] = None, tag: Optional[bytes] = None
    ):
        self.offset = offset
        self.tag = tag

        context = []
        if tag is not None:
            context.append(f"chunk {tag!r}")
        if offset is not None:
            context.append(f"offset {hex(offset)}")
        if context:
            message = f"{message} ({', '.join(context)})"

        super().__init__(message)


class InvalidSignature(VoxError):
    """The file does not start with the .vox magic bytes."""


class OutOfBounds(VoxError):
    """A cursor read would run past the end of its buffer."""


class TruncatedHeader(VoxError):
    """Fewer than 12 bytes remain where a chunk header is expected."""


class TruncatedContent(VoxError):
    """A chunk's content or children region does not fit where it was declared."""


class TruncatedVoxelList(VoxError):
    """An XYZI chunk declares more voxels than its content holds."""


class TruncatedDictEntry(VoxError):
    """A dictionary length prefix or string runs past the end of the content."""


class MalformedDictEntry(VoxError):
    """A dictionary string is present but cannot be decoded."""


class ChunkDepthExceeded(VoxError):
    """Chunks are nested deeper than the walker allows."""
