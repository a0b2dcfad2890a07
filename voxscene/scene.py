"""Scene class for voxscene.

A small in-memory node graph standing in for a scene-authoring engine. Nodes
have a type, a unique name and attributes; a node can be parented under more
than one transform, which is how a single box is instanced at every voxel.
The graph can be written out as JSON.
"""

import json
import logging
import math
from dataclasses import dataclass
from typing import Optional

from voxscene.palette import ResolvedModel

logger = logging.getLogger(__name__)

Vec3 = tuple[float, float, float]
Mat4 = list[list[float]]


@dataclass
class SceneOptions:
    """Settings for the nodes built around a voxel model."""

    voxel_size: float = 0.99
    voxel_radius: float = 0.33
    material_type: str = "orenNayar"
    camera_fov: float = 35.0
    resolution: tuple[int, int] = (1920, 1080)
    # from the model's center towards the camera
    camera_direction: Vec3 = (-0.8, -0.5, 0.46)


class Node:
    """Node class."""

    def __init__(self, type_: str, name: str):
        self.type = type_
        self.name = name
        self.attributes: dict = {}
        self.children: list["Node"] = []
        self.parents: list["Node"] = []

    def __repr__(self):
        return f"Node({self.type!r}, {self.name!r})"

    def __getitem__(self, key: str):
        return self.attributes[key]

    def __setitem__(self, key: str, value):
        self.attributes[key] = value

    def parent_to(self, parent: "Node"):
        self.parents.append(parent)
        parent.children.append(self)


class Scene:
    """Scene class."""

    def __init__(self):
        self.nodes: dict[str, Node] = {}
        self._world = Node("world", "world")

    def world(self) -> Node:
        return self._world

    def create_node(self, type_: str, name: str) -> Node:
        if name in self.nodes:
            raise ValueError(f"Node {name!r} already exists")
        node = Node(type_, name)
        self.nodes[name] = node
        return node

    def find_node(self, name: str) -> Optional[Node]:
        return self.nodes.get(name)

    def to_dict(self) -> dict:
        """JSON-ready description of every node; node references become names."""

        def encode(value):
            if isinstance(value, Node):
                return value.name
            if isinstance(value, dict):
                return {key: encode(item) for key, item in value.items()}
            if isinstance(value, (list, tuple)):
                return [encode(item) for item in value]
            return value

        return {
            "world": [child.name for child in self._world.children],
            "nodes": [
                {
                    "type": node.type,
                    "name": node.name,
                    "attributes": encode(node.attributes),
                    "children": [child.name for child in node.children],
                }
                for node in self.nodes.values()
            ],
        }

    def write(self, path: str):
        """Write the scene to the given path as JSON."""
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=1, allow_nan=False)


def _normalize(v: Vec3) -> Vec3:
    length = math.sqrt(sum(c * c for c in v))
    if length == 0:
        raise ValueError("Cannot normalize a zero-length vector")
    return (v[0] / length, v[1] / length, v[2] / length)


def _cross(a: Vec3, b: Vec3) -> Vec3:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def translation(x: float, y: float, z: float) -> Mat4:
    """Row-major transform with the translation in the last row."""
    return [
        [1.0, 0.0, 0.0, 0.0],
        [0.0, 1.0, 0.0, 0.0],
        [0.0, 0.0, 1.0, 0.0],
        [float(x), float(y), float(z), 1.0],
    ]


def frame_camera(
    center: Vec3, radius: float, fov: float = 35.0, direction: Vec3 = (-0.8, -0.5, 0.46)
) -> Mat4:
    """Camera transform looking at `center` from far enough to fit `radius`.

    The camera looks down its local +Z with +Y pointing down; world up is +Z.
    Radii below half a voxel are framed as half a voxel.
    """
    distance = max(radius, 0.5) / math.sin(math.radians(fov) / 2.0)
    offset = _normalize(direction)
    position = tuple(c + o * distance for c, o in zip(center, offset))

    forward = (-offset[0], -offset[1], -offset[2])
    up = (0.0, 0.0, 1.0)
    if abs(forward[2]) > 0.999:
        up = (0.0, 1.0, 0.0)
    right = _normalize(_cross(forward, up))
    down = _cross(forward, right)

    return [
        [right[0], right[1], right[2], 0.0],
        [down[0], down[1], down[2], 0.0],
        [forward[0], forward[1], forward[2], 0.0],
        [position[0], position[1], position[2], 1.0],
    ]


def build_scene(
    resolved: ResolvedModel, scene: Optional[Scene] = None, options: Optional[SceneOptions] = None
) -> Scene:
    """Create voxel, material and camera nodes for a resolved model."""
    scene = Scene() if scene is None else scene
    options = SceneOptions() if options is None else options
    world = scene.world()

    voxel = scene.create_node("box", "box1")
    voxel["radius"] = options.voxel_radius
    voxel["sizeX"] = options.voxel_size
    voxel["sizeY"] = options.voxel_size
    voxel["sizeZ"] = options.voxel_size

    xforms = []
    for i, (x, y, z, _) in enumerate(resolved.voxels):
        xform = scene.create_node("xform", f"voxXform{i}")
        xform.parent_to(world)
        voxel.parent_to(xform)
        xform["steps"] = [{"xform": translation(x, y, z)}]
        xforms.append(xform)
    logger.info("Created %d voxel nodes", len(xforms))

    materials = []
    for material in resolved.materials:
        node = scene.create_node(options.material_type, f"voxMat{material.index}")
        node["reflectance"] = material.color.rgba()
        if material.properties:
            node["properties"] = dict(material.properties)
        materials.append(node)

    for xform, (_, _, _, color_index) in zip(xforms, resolved.voxels):
        xform["material"] = materials[color_index]

    camera_xform = scene.create_node("xform", "cameraXform1")
    camera_xform.parent_to(world)
    camera_xform["steps"] = [
        {
            "xform": frame_camera(
                resolved.center, resolved.radius, options.camera_fov, options.camera_direction
            )
        }
    ]
    camera = scene.create_node("camera", "camera1")
    camera["resolution"] = list(options.resolution)
    camera["fov"] = options.camera_fov
    camera.parent_to(camera_xform)

    return scene
