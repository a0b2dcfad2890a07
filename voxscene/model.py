"""VoxelModel class for voxscene.

The goal of this module is to fold the chunks of a .vox file into a single
voxel model: every voxel of every XYZI chunk, the bounding box around them,
the custom palette if the file has one, and the materials by id.
"""

import logging
from collections import Counter
from typing import Iterable, Optional

from voxscene import voxfile
from voxscene.voxfile import MaterialChunk, OpaqueChunk, PaletteChunk, SizeChunk, XYZIChunk

logger = logging.getLogger(__name__)


class BoundingExtent:
    """Axis-aligned box around every voxel seen so far."""

    def __init__(self):
        self.min_x: Optional[int] = None
        self.min_y: Optional[int] = None
        self.min_z: Optional[int] = None
        self.max_x: Optional[int] = None
        self.max_y: Optional[int] = None
        self.max_z: Optional[int] = None
        self.has_any = False

    def __repr__(self):
        if not self.has_any:
            return "BoundingExtent(empty)"
        return f"BoundingExtent(min={self.min}, max={self.max})"

    @property
    def min(self) -> tuple:
        return (self.min_x, self.min_y, self.min_z)

    @property
    def max(self) -> tuple:
        return (self.max_x, self.max_y, self.max_z)

    def include(self, x: int, y: int, z: int):
        if not self.has_any:
            self.min_x, self.min_y, self.min_z = x, y, z
            self.max_x, self.max_y, self.max_z = x, y, z
            self.has_any = True
            return

        self.min_x = min(self.min_x, x)
        self.min_y = min(self.min_y, y)
        self.min_z = min(self.min_z, z)
        self.max_x = max(self.max_x, x)
        self.max_y = max(self.max_y, y)
        self.max_z = max(self.max_z, z)


class VoxelModel:
    """VoxelModel class."""

    def __init__(self, version: int = 0):
        self.version = version
        self.voxels: list[tuple[int, int, int, int]] = []
        self.extent = BoundingExtent()
        self.palette: Optional[list[int]] = None
        self.materials: dict[int, MaterialChunk] = {}
        self.sizes: list[tuple[int, int, int]] = []
        self.opaque_tags: Counter = Counter()

    @property
    def has_palette(self) -> bool:
        return self.palette is not None

    def fold(self, payload: voxfile.Payload):
        """Add one decoded chunk to the model."""
        if isinstance(payload, SizeChunk):
            self.sizes.append(payload.size)
            logger.info("Size: %dx%dx%d", *payload.size)
        elif isinstance(payload, XYZIChunk):
            for voxel in payload.voxels:
                self.voxels.append(voxel)
                self.extent.include(voxel[0], voxel[1], voxel[2])
            logger.info("Number of voxels: %d", len(payload.voxels))
        elif isinstance(payload, PaletteChunk):
            self.palette = list(payload.colors)
        elif isinstance(payload, MaterialChunk):
            self.materials[payload.material_id] = payload
            logger.debug("Material %d: %s", payload.material_id, payload.properties)
        elif isinstance(payload, OpaqueChunk):
            self.opaque_tags[payload.tag] += 1
        else:
            raise TypeError(f"Cannot fold {type(payload).__name__}")

    def fold_all(self, payloads: Iterable[voxfile.Payload]) -> "VoxelModel":
        for payload in payloads:
            self.fold(payload)
        return self

    @staticmethod
    def from_voxfile(vox_file: voxfile.VoxFile) -> "VoxelModel":
        return VoxelModel(vox_file.version).fold_all(vox_file.payloads())


def decode_model(data: bytes, max_depth: int = voxfile.MAX_CHUNK_DEPTH) -> VoxelModel:
    """Decode .vox bytes into a voxel model."""
    return VoxelModel.from_voxfile(voxfile.VoxFile.from_bytes(data, max_depth))


def load_model(path: str, max_depth: int = voxfile.MAX_CHUNK_DEPTH) -> VoxelModel:
    """Read a .vox file from the given path into a voxel model."""
    return VoxelModel.from_voxfile(voxfile.VoxFile.read(path, max_depth))
