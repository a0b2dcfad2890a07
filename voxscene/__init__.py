"""Read MagicaVoxel .vox files into voxel models and scenes."""

__version__ = "0.1.0"

from voxscene.errors import (
    ChunkDepthExceeded,
    InvalidSignature,
    MalformedDictEntry,
    OutOfBounds,
    TruncatedContent,
    TruncatedDictEntry,
    TruncatedHeader,
    TruncatedVoxelList,
    VoxError,
)
from voxscene.model import BoundingExtent, VoxelModel, decode_model, load_model
from voxscene.palette import DEFAULT_PALETTE, Color, ResolvedModel, resolve
from voxscene.scene import Scene, SceneOptions, build_scene
from voxscene.voxfile import ByteCursor, ChunkHeader, VoxFile, decode_content, walk_chunks
