import pytest
import voxscene
from voxscene.palette import DEFAULT_PALETTE, Color, frame_extent, resolve

from voxbuild import main, matl, rgba, vox, xyzi


def test_color_packing():
    color = Color.from_packed(0x11223344)
    assert color == Color(0x44, 0x33, 0x22, 0x11)


def test_color_rgba():
    assert Color(255, 0, 51, 255).rgba() == pytest.approx((1.0, 0.0, 0.2, 1.0))


def test_default_palette():
    assert len(DEFAULT_PALETTE) == 256

    resolved = resolve(voxscene.decode_model(vox(main(xyzi([(0, 0, 0, 1)])))))

    assert not resolved.custom_palette
    assert len(resolved.colors) == 256
    assert resolved.colors[0] == Color(0, 0, 0, 0)
    assert resolved.colors[1] == Color(255, 255, 255, 255)
    assert resolved.colors[2] == Color(255, 255, 204, 255)
    assert resolved.colors[255] == Color(17, 17, 17, 255)


def test_custom_palette_after_voxels():
    colors = [(10, 20, 30, 255)] * 256
    resolved = resolve(voxscene.decode_model(vox(main(xyzi([(0, 0, 0, 1)]), rgba(colors)))))

    assert resolved.custom_palette
    assert all(color == Color(10, 20, 30, 255) for color in resolved.colors)


def test_custom_palette_slots_in_file_order():
    colors = [(i, 0, 0, 255) for i in range(256)]
    resolved = resolve(voxscene.decode_model(vox(rgba(colors), main(xyzi([])))))

    assert [color.r for color in resolved.colors] == list(range(256))
    assert resolved.materials[7].color == Color(7, 0, 0, 255)


def test_materials_get_typed_properties():
    model = voxscene.decode_model(
        vox(main(matl(5, [("_type", "_glass"), ("_ior", "1.3"), ("_rough", "0.9")])))
    )
    resolved = resolve(model)

    assert len(resolved.materials) == 256
    assert resolved.materials[5].index == 5
    assert resolved.materials[5].properties == {"_type": "_glass", "_ior": 1.3, "_rough": 0.9}
    assert resolved.materials[4].properties == {}


def test_framing():
    resolved = resolve(voxscene.decode_model(vox(main(xyzi([(0, 0, 0, 1), (2, 2, 1, 1)])))))
    assert resolved.center == pytest.approx((1.0, 1.0, 0.5))
    assert resolved.radius == pytest.approx(1.5)


def test_framing_single_voxel():
    resolved = resolve(voxscene.decode_model(vox(main(xyzi([(3, 4, 5, 1)])))))
    assert resolved.center == pytest.approx((3.0, 4.0, 5.0))
    assert resolved.radius == 0.0


def test_framing_without_voxels():
    resolved = resolve(voxscene.decode_model(vox(main())))
    assert resolved.voxels == []
    assert resolved.center == (0.0, 0.0, 0.0)
    assert resolved.radius == 0.0


def test_frame_extent_empty():
    assert frame_extent(voxscene.BoundingExtent()) == ((0.0, 0.0, 0.0), 0.0)


def test_default_palette_must_have_256_entries():
    model = voxscene.decode_model(vox(main(xyzi([(0, 0, 0, 200)]))))
    with pytest.raises(ValueError, match="256 entries"):
        resolve(model, default_palette=(0xFFFFFFFF,) * 16)


def test_custom_default_palette():
    model = voxscene.decode_model(vox(main(xyzi([(0, 0, 0, 1)]))))
    resolved = resolve(model, default_palette=(0xFF0000FF,) * 256)
    assert resolved.colors[1] == Color(255, 0, 0, 255)
