"""VoxFile structure and related functions.

The goal of this module is to read MagicaVoxel .vox files. A .vox file is an
8-byte file header followed by a tree of chunks, each laid out as:

-------------------------------------------------------------------------------
# Bytes  | Type       | Value
-------------------------------------------------------------------------------
1x4      | char       | chunk id
4        | int        | num bytes of chunk content (N)
4        | int        | num bytes of children chunks (M)
N        |            | chunk content
M        |            | children chunks
-------------------------------------------------------------------------------

Only the chunks needed to build a voxel model are interpreted (SIZE, XYZI,
RGBA, MATL). Every other chunk is kept as opaque bytes, and its children are
walked all the same.
"""

import logging
from typing import Iterator, NamedTuple, Optional, Union

from voxscene.errors import (
    ChunkDepthExceeded,
    InvalidSignature,
    MalformedDictEntry,
    OutOfBounds,
    TruncatedContent,
    TruncatedDictEntry,
    TruncatedHeader,
    TruncatedVoxelList,
)

logger = logging.getLogger(__name__)

MAGIC = b"VOX "

CHUNK_HEADER_SIZE = 12

# deepest nesting the walker follows before giving up on a file
MAX_CHUNK_DEPTH = 64

# chunks we know about but do not interpret
KNOWN_OPAQUE_TAGS = frozenset(
    {
        b"MAIN",
        b"PACK",
        b"rCAM",
        b"rOBJ",
        b"nTRN",
        b"nGRP",
        b"nSHP",
        b"MATT",
        b"LAYR",
        b"IMAP",
        b"NOTE",
    }
)


class ByteCursor:
    """Forward-only reader over .vox file bytes.

    `base` is the absolute file offset of the first byte of `data`, so cursors
    over a chunk's content still report file offsets in errors.
    """

    def __init__(self, data: bytes, base: int = 0):
        self.data = bytes(data)
        self.base = base
        self._position = 0

    @property
    def position(self) -> int:
        """Offset of the next unread byte, relative to the start of `data`."""
        return self._position

    @property
    def offset(self) -> int:
        """Absolute file offset of the next unread byte."""
        return self.base + self._position

    @property
    def remaining(self) -> int:
        return len(self.data) - self._position

    def at_end(self) -> bool:
        return self._position >= len(self.data)

    def read_bytes(self, n: int) -> bytes:
        """Read n bytes."""
        if n < 0 or n > self.remaining:
            raise OutOfBounds(
                f"Cannot read {n} bytes; {self.remaining} remaining", offset=self.offset
            )
        start = self._position
        self._position += n
        return self.data[start : self._position]

    def read_u8(self) -> int:
        """Read an unsigned 8-bit integer."""
        return self.read_bytes(1)[0]

    def read_u32(self) -> int:
        """Read an unsigned little-endian 32-bit integer."""
        return int.from_bytes(self.read_bytes(4), "little")

    def read_i32(self) -> int:
        """Read a signed little-endian 32-bit integer."""
        return int.from_bytes(self.read_bytes(4), "little", signed=True)


class String:
    """Representative of .vox file strings.

    -------------------------------------------------------------------------------
    # Bytes  | Type       | Value
    -------------------------------------------------------------------------------
    4        | int        | buffer size (in bytes)
    N        | char       | buffer (no ending \\0)
    -------------------------------------------------------------------------------
    """

    @staticmethod
    def read(cursor: ByteCursor, tag: Optional[bytes] = None) -> str:
        """Read a string from the cursor."""
        start = cursor.offset

        if cursor.remaining < 4:
            raise TruncatedDictEntry(
                "String length prefix runs past the end of the content",
                offset=start,
                tag=tag,
            )
        length = cursor.read_u32()

        if length > cursor.remaining:
            raise TruncatedDictEntry(
                f"String of {length} bytes exceeds the {cursor.remaining} bytes remaining",
                offset=start,
                tag=tag,
            )
        raw = cursor.read_bytes(length)

        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as err:
            raise MalformedDictEntry(
                f"String is not valid UTF-8: {raw!r}", offset=start, tag=tag
            ) from err


class Dict:
    """Representative of .vox file dictionaries.

    Key/value string pairs are read until the cursor is exhausted; a key that
    appears twice keeps its last value.
    """

    @staticmethod
    def read(cursor: ByteCursor, tag: Optional[bytes] = None) -> dict[str, str]:
        """Read a dictionary from the cursor."""
        dict_ = {}
        while not cursor.at_end():
            key = String.read(cursor, tag)
            value = String.read(cursor, tag)
            dict_[key] = value
        return dict_


class ChunkHeader:
    """Chunk header: id, content size and children size."""

    def __init__(self, tag: bytes, content_length: int, children_length: int, offset: int = 0):
        self.tag = tag
        self.content_length = content_length
        self.children_length = children_length
        self.offset = offset

    def __repr__(self):
        return (
            f"ChunkHeader({self.tag!r}, content={self.content_length}, "
            f"children={self.children_length}, offset={hex(self.offset)})"
        )

    @classmethod
    def read(cls, cursor: ByteCursor, limit: Optional[int] = None) -> "ChunkHeader":
        """Read a chunk header, not reading past `limit` (a cursor position)."""
        end = len(cursor.data) if limit is None else limit
        available = end - cursor.position
        if available < CHUNK_HEADER_SIZE:
            raise TruncatedHeader(
                f"Expected a {CHUNK_HEADER_SIZE}-byte chunk header; {max(available, 0)} bytes remain",
                offset=cursor.offset,
            )

        offset = cursor.offset
        tag = cursor.read_bytes(4)
        content_length = cursor.read_u32()
        children_length = cursor.read_u32()

        return cls(tag, content_length, children_length, offset)


class Chunk:
    """Chunk class."""

    id = b""

    @classmethod
    def decode(cls, content: bytes, offset: int = 0) -> "Chunk":
        """Decode the chunk's content bytes; `offset` is where they start in the file."""
        raise NotImplementedError


class SizeChunk(Chunk):
    """Size chunk class.

    -------------------------------------------------------------------------------
    # Bytes  | Type       | Value
    -------------------------------------------------------------------------------
    4        | int        | size x
    4        | int        | size y
    4        | int        | size z : gravity direction
    -------------------------------------------------------------------------------
    """

    id = b"SIZE"

    def __init__(self, size: tuple[int, int, int]):
        """SizeChunk constructor."""
        self.size = size

    @classmethod
    def decode(cls, content: bytes, offset: int = 0) -> "SizeChunk":
        if len(content) < 12:
            raise TruncatedContent(
                f"Size chunk needs 12 bytes, has {len(content)}", offset=offset, tag=cls.id
            )

        cursor = ByteCursor(content, offset)
        x = cursor.read_u32()
        y = cursor.read_u32()
        z = cursor.read_u32()

        return SizeChunk((x, y, z))


class XYZIChunk(Chunk):
    """XYZI chunk class.

    -------------------------------------------------------------------------------
    # Bytes  | Type       | Value
    -------------------------------------------------------------------------------
    4        | int        | numVoxels (N)
    4 x N    | int        | (x, y, z, colorIndex) : 1 byte for each component
    -------------------------------------------------------------------------------
    """

    id = b"XYZI"

    def __init__(self, voxels: list[tuple[int, int, int, int]]):
        """XYZIChunk constructor."""
        self.voxels = voxels

    @classmethod
    def decode(cls, content: bytes, offset: int = 0) -> "XYZIChunk":
        if len(content) < 4:
            raise TruncatedVoxelList(
                "Voxel list is missing its voxel count", offset=offset, tag=cls.id
            )

        num_voxels = int.from_bytes(content[:4], "little")
        end = 4 + 4 * num_voxels
        if len(content) < end:
            raise TruncatedVoxelList(
                f"Voxel list declares {num_voxels} voxels but holds {(len(content) - 4) // 4}",
                offset=offset,
                tag=cls.id,
            )

        voxels = [tuple(content[i : i + 4]) for i in range(4, end, 4)]

        return XYZIChunk(voxels)


class PaletteChunk(Chunk):
    """Palette chunk class.

    -------------------------------------------------------------------------------
    # Bytes  | Type     | Value
    -------------------------------------------------------------------------------
    4 x 256  | int      | (R, G, B, A) : 1 byte for each component
    -------------------------------------------------------------------------------

    Colors are kept packed as little-endian 32-bit integers (0xAABBGGRR), in
    file order.
    """

    id = b"RGBA"

    def __init__(self, colors: list[int]):
        """PaletteChunk constructor."""
        self.colors = colors

    @classmethod
    def decode(cls, content: bytes, offset: int = 0) -> "PaletteChunk":
        if len(content) < 256 * 4:
            raise TruncatedContent(
                f"Palette needs {256 * 4} bytes, has {len(content)}",
                offset=offset,
                tag=cls.id,
            )

        colors = [int.from_bytes(content[i : i + 4], "little") for i in range(0, 256 * 4, 4)]

        return PaletteChunk(colors)


class MaterialChunk(Chunk):
    """Material chunk class.

    int32	: material id
    int32	: num of key/value pairs (not trusted; pairs run to the end of content)
    DICT	: material properties
          (_type : str) _diffuse, _metal, _glass, _emit
          (_weight : float) range 0 ~ 1
          (_rough : float)
          (_spec : float)
          (_ior : float)
          (_att : float)
          (_flux : float)
          (_plastic)
    """

    id = b"MATL"

    def __init__(self, material_id: int, properties: dict[str, str], declared_count: int = 0):
        self.material_id = material_id
        self.properties = properties
        self.declared_count = declared_count

    @classmethod
    def decode(cls, content: bytes, offset: int = 0) -> "MaterialChunk":
        if len(content) < 8:
            raise TruncatedDictEntry(
                f"Material chunk needs at least 8 bytes, has {len(content)}",
                offset=offset,
                tag=cls.id,
            )

        cursor = ByteCursor(content, offset)
        material_id = cursor.read_i32()
        declared_count = cursor.read_u32()

        properties = Dict.read(cursor, cls.id)

        if declared_count != len(properties):
            logger.debug(
                "Material %d declares %d properties, found %d",
                material_id,
                declared_count,
                len(properties),
            )

        return MaterialChunk(material_id, properties, declared_count)


class OpaqueChunk(Chunk):
    """Any chunk whose content is not interpreted."""

    def __init__(self, tag: bytes, content: bytes):
        self.tag = tag
        self.content = content

    @property
    def known(self) -> bool:
        return self.tag in KNOWN_OPAQUE_TAGS


Payload = Union[SizeChunk, XYZIChunk, PaletteChunk, MaterialChunk, OpaqueChunk]

CHUNK_TYPES = {
    chunk_type.id: chunk_type
    for chunk_type in (SizeChunk, XYZIChunk, PaletteChunk, MaterialChunk)
}


def decode_content(tag: bytes, content: bytes, offset: int = 0) -> Payload:
    """Decode a chunk's content according to its tag."""
    chunk_type = CHUNK_TYPES.get(tag)
    if chunk_type is None:
        payload = OpaqueChunk(tag, content)
        if not payload.known:
            logger.debug("Unrecognized chunk %r at %s", tag, hex(offset))
        return payload

    return chunk_type.decode(content, offset)


class DecodedChunk(NamedTuple):
    header: ChunkHeader
    payload: Payload
    depth: int


def walk_chunks(
    cursor: ByteCursor, end: Optional[int] = None, max_depth: int = MAX_CHUNK_DEPTH
) -> Iterator[DecodedChunk]:
    """Walk every chunk from the cursor to `end`, parents before their children.

    `end` is a cursor position and defaults to the end of the buffer. Each
    chunk's children length is taken as the exact size of its children region;
    a chunk that would run past the region enclosing it is an error.
    """
    region_ends = [len(cursor.data) if end is None else end]

    while region_ends:
        region_end = region_ends[-1]
        if cursor.position >= region_end:
            region_ends.pop()
            continue

        header = ChunkHeader.read(cursor, limit=region_end)

        if header.content_length > region_end - cursor.position:
            raise TruncatedContent(
                f"Content of {header.content_length} bytes runs past the end of its "
                f"region at {hex(cursor.base + region_end)}",
                offset=header.offset,
                tag=header.tag,
            )
        content_offset = cursor.offset
        content = cursor.read_bytes(header.content_length)

        depth = len(region_ends) - 1
        logger.debug("%s%r at %s", "  " * depth, header.tag, hex(header.offset))
        yield DecodedChunk(header, decode_content(header.tag, content, content_offset), depth)

        children_end = cursor.position + header.children_length
        if children_end > region_end:
            raise TruncatedContent(
                f"Children of {header.children_length} bytes run past the end of their "
                f"region at {hex(cursor.base + region_end)}",
                offset=header.offset,
                tag=header.tag,
            )

        if header.children_length:
            if len(region_ends) > max_depth:
                raise ChunkDepthExceeded(
                    f"Chunks are nested deeper than {max_depth} levels",
                    offset=header.offset,
                    tag=header.tag,
                )
            region_ends.append(children_end)


def read_signature(cursor: ByteCursor):
    """Consume the .vox magic bytes, failing before anything past them is read."""
    if cursor.remaining < len(MAGIC):
        raise InvalidSignature("File is too short to be a .vox file", offset=cursor.offset)

    magic = cursor.read_bytes(len(MAGIC))
    if magic != MAGIC:
        raise InvalidSignature(f"Invalid .vox file header: {magic!r}", offset=0)


def read_file_header(cursor: ByteCursor) -> int:
    """Check the .vox magic bytes and return the file version."""
    read_signature(cursor)

    if cursor.remaining < 4:
        raise TruncatedHeader("File header is missing its version", offset=cursor.offset)

    return cursor.read_u32()


class VoxFile:
    """VoxFile class.

    Holds the file version and every decoded chunk, in file order.
    """

    def __init__(self, version: int, chunks: list[DecodedChunk]):
        """VoxFile constructor."""
        self.version = version
        self.chunks = chunks

    @staticmethod
    def read(path: str, max_depth: int = MAX_CHUNK_DEPTH) -> "VoxFile":
        """Read a .vox file from the given path.

        The rest of the file is only read once its magic bytes check out.
        """
        with open(path, "rb") as f:
            read_signature(ByteCursor(f.read(len(MAGIC))))
            data = MAGIC + f.read()

        return VoxFile.from_bytes(data, max_depth)

    @staticmethod
    def from_bytes(data: bytes, max_depth: int = MAX_CHUNK_DEPTH) -> "VoxFile":
        """Read a .vox file from bytes."""
        cursor = ByteCursor(data)

        version = read_file_header(cursor)
        logger.debug("VOX version %d", version)

        chunks = list(walk_chunks(cursor, max_depth=max_depth))

        return VoxFile(version, chunks)

    def payloads(self) -> Iterator[Payload]:
        for chunk in self.chunks:
            yield chunk.payload
