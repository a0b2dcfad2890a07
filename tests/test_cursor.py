import pytest
import voxscene
from voxscene.voxfile import ByteCursor, ChunkHeader, read_file_header

from voxbuild import raw_chunk, vox


def test_read_integers():
    cursor = ByteCursor(b"\x01\x00\x00\x00\xff\xff\xff\xff\x07")
    assert cursor.read_u32() == 1
    assert cursor.read_i32() == -1
    assert cursor.read_u8() == 7
    assert cursor.position == 9
    assert cursor.at_end()


def test_read_u32_is_unsigned():
    assert ByteCursor(b"\xff\xff\xff\xff").read_u32() == 0xFFFFFFFF


def test_read_past_end():
    cursor = ByteCursor(b"\x01\x02\x03")
    with pytest.raises(voxscene.OutOfBounds):
        cursor.read_u32()
    # failed reads do not move the cursor
    assert cursor.position == 0
    assert cursor.read_bytes(3) == b"\x01\x02\x03"


def test_offset_includes_base():
    cursor = ByteCursor(b"abcdef", base=100)
    cursor.read_bytes(2)
    assert cursor.position == 2
    assert cursor.offset == 102
    assert cursor.remaining == 4


def test_chunk_header():
    cursor = ByteCursor(raw_chunk(b"SIZE", 12, 34))
    header = ChunkHeader.read(cursor)
    assert header.tag == b"SIZE"
    assert header.content_length == 12
    assert header.children_length == 34
    assert header.offset == 0
    assert cursor.position == 12


def test_chunk_header_truncated():
    cursor = ByteCursor(b"SIZE\x0c\x00\x00\x00\x00")
    with pytest.raises(voxscene.TruncatedHeader) as err:
        ChunkHeader.read(cursor)
    assert err.value.offset == 0


def test_chunk_header_respects_limit():
    cursor = ByteCursor(raw_chunk(b"SIZE", 0, 0))
    with pytest.raises(voxscene.TruncatedHeader):
        ChunkHeader.read(cursor, limit=8)


def test_file_header():
    cursor = ByteCursor(vox(version=200))
    assert read_file_header(cursor) == 200
    assert cursor.position == 8


def test_invalid_signature_reads_only_magic():
    cursor = ByteCursor(vox(magic=b"VOXX"))
    with pytest.raises(voxscene.InvalidSignature):
        read_file_header(cursor)
    assert cursor.position == 4


def test_empty_file_is_invalid_signature():
    with pytest.raises(voxscene.InvalidSignature):
        read_file_header(ByteCursor(b""))


def test_missing_version():
    with pytest.raises(voxscene.TruncatedHeader):
        read_file_header(ByteCursor(b"VOX \x96"))
