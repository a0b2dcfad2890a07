import io

import pytest
import voxscene
from voxscene import voxfile

from voxbuild import chunk, main, matl, rgba, size, vox, xyzi


def write_vox(tmp_path, data, name="model.vox"):
    path = tmp_path / name
    path.write_bytes(data)
    return str(path)


def test_read(tmp_path):
    path = write_vox(tmp_path, vox(main(size(4, 4, 4), xyzi([(0, 0, 0, 5), (1, 2, 3, 9)]))))

    model = voxscene.load_model(path)

    assert model.version == 150
    assert model.voxels == [(0, 0, 0, 5), (1, 2, 3, 9)]
    assert model.extent.has_any
    assert model.extent.min == (0, 0, 0)
    assert model.extent.max == (1, 2, 3)
    assert model.sizes == [(4, 4, 4)]


def test_voxels_from_every_list():
    data = vox(
        main(
            size(4, 4, 4),
            xyzi([(0, 0, 0, 1), (1, 1, 1, 2)]),
            size(8, 8, 8),
            xyzi([(7, 6, 5, 3)]),
        )
    )

    model = voxscene.decode_model(data)

    assert model.voxels == [(0, 0, 0, 1), (1, 1, 1, 2), (7, 6, 5, 3)]
    assert model.extent.min == (0, 0, 0)
    assert model.extent.max == (7, 6, 5)


def test_voxels_outside_declared_size_are_kept():
    model = voxscene.decode_model(vox(main(size(1, 1, 1), xyzi([(9, 9, 9, 1)]))))
    assert model.voxels == [(9, 9, 9, 1)]


def test_no_voxels():
    model = voxscene.decode_model(vox(main(size(4, 4, 4))))
    assert model.voxels == []
    assert not model.extent.has_any
    assert model.extent.min == (None, None, None)


def test_extent_only_widens():
    model = voxscene.decode_model(
        vox(main(xyzi([(5, 5, 5, 1), (2, 8, 5, 1), (6, 1, 3, 1), (4, 4, 4, 1)])))
    )
    assert model.extent.min == (2, 1, 3)
    assert model.extent.max == (6, 8, 5)


def test_materials_by_id():
    model = voxscene.decode_model(
        vox(
            main(
                matl(1, [("_rough", "0.4"), ("_ior", "1.3"), ("_rough", "0.9")]),
                matl(2, [("_type", "_glass")]),
                matl(2, [("_type", "_metal")]),
            )
        )
    )
    assert model.materials[1].properties == {"_rough": "0.9", "_ior": "1.3"}
    assert model.materials[2].properties == {"_type": "_metal"}


def test_palette_anywhere():
    colors = [(1, 2, 3, 4)] * 256
    data = vox(main(chunk(b"nGRP", b"", rgba(colors)), xyzi([(0, 0, 0, 1)])))

    model = voxscene.decode_model(data)

    assert model.has_palette
    assert model.palette == [0x04030201] * 256


def test_default_palette_when_absent():
    model = voxscene.decode_model(vox(main(xyzi([(0, 0, 0, 1)]))))
    assert not model.has_palette
    assert model.palette is None


def test_opaque_chunks_counted():
    model = voxscene.decode_model(vox(main(chunk(b"nTRN", b"abcd"), chunk(b"NOTE"))))
    assert model.opaque_tags[b"MAIN"] == 1
    assert model.opaque_tags[b"nTRN"] == 1
    assert model.opaque_tags[b"NOTE"] == 1


def test_unknown_parent_children_are_folded():
    data = vox(main(chunk(b"QQQQ", b"\x00\x01", xyzi([(1, 1, 1, 1)]) + matl(4, [("_a", "b")]))))
    model = voxscene.decode_model(data)
    assert model.voxels == [(1, 1, 1, 1)]
    assert model.materials[4].properties == {"_a": "b"}


def test_invalid_signature(tmp_path):
    path = write_vox(tmp_path, b"PNG\x00" + vox(main())[4:])
    with pytest.raises(voxscene.InvalidSignature):
        voxscene.load_model(path)


def test_no_partial_model_on_error():
    data = vox(main(xyzi([(0, 0, 0, 1)]), chunk(b"XYZI", b"\x05\x00\x00\x00")))
    with pytest.raises(voxscene.TruncatedVoxelList):
        voxscene.decode_model(data)


def test_errors_are_value_errors():
    with pytest.raises(ValueError):
        voxscene.decode_model(b"nope")


class TrackedFile(io.BytesIO):
    """In-memory file that remembers where reading stopped when it was closed."""

    def close(self):
        self.closed_at = self.tell()
        super().close()


def test_invalid_signature_stops_reading_file(tmp_path, monkeypatch):
    path = write_vox(tmp_path, b"PNG\x00" + vox(main(xyzi([(0, 0, 0, 1)])))[4:])
    opened = []

    def tracked_open(file, mode="r"):
        with open(file, mode) as f:
            opened.append(TrackedFile(f.read()))
        return opened[-1]

    monkeypatch.setattr(voxfile, "open", tracked_open, raising=False)

    with pytest.raises(voxscene.InvalidSignature):
        voxscene.load_model(path)
    assert opened[0].closed_at == 4


def test_read_after_valid_signature(tmp_path):
    path = write_vox(tmp_path, vox(main(xyzi([(2, 3, 4, 5)])), version=200))
    vox_file = voxfile.VoxFile.read(path)
    assert vox_file.version == 200
    assert vox_file.chunks[1].header.offset == 20
