from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

from wallalign.model.geometry_primitives import Point3, Quaternion, SimilarityTransform

if TYPE_CHECKING:
    import numpy.typing as npt


@dataclass(frozen=True)
class NodePose:
    """Local TRS of a scene node. Scale is per axis; solved transforms write it uniformly."""
    position: Point3 = field(default_factory=Point3.zero)
    rotation: Quaternion = field(default_factory=Quaternion.identity)
    scale: Point3 = field(default_factory=lambda: Point3(1.0, 1.0, 1.0))

    @classmethod
    def from_similarity(cls, transform: SimilarityTransform) -> NodePose:
        s = transform.scale
        return cls(position=transform.translation, rotation=transform.rotation, scale=Point3(s, s, s))

    def to_matrix(self) -> npt.NDArray[np.float64]:
        m = np.eye(4, dtype=np.float64)
        m[:3, :3] = self.rotation.to_matrix() @ np.diag(self.scale.to_array())
        m[:3, 3] = self.position.to_array()
        return m


class SceneNode:
    """
    The alignment target: a node with a local pose under an (optional) parent.

    The wall container in a scene graph. Only its local pose is written by the
    transform applicator; the parent's world matrix is treated as fixed.
    """
    def __init__(
        self,
        name: str = "wall",
        pose: NodePose | None = None,
        parent_world: npt.NDArray[np.float64] | None = None,
    ) -> None:
        self.name = name
        self.pose = pose if pose is not None else NodePose()
        if parent_world is None:
            parent_world = np.eye(4, dtype=np.float64)
        parent_world = np.asarray(parent_world, dtype=np.float64)
        if parent_world.shape != (4, 4):
            raise ValueError(f"Parent world matrix must be 4x4, got shape {parent_world.shape}")
        self.parent_world = parent_world

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, pose={self.pose})"

    @property
    def position(self) -> Point3:
        return self.pose.position

    @property
    def rotation(self) -> Quaternion:
        return self.pose.rotation

    @property
    def scale(self) -> Point3:
        return self.pose.scale

    def set_pose(self, pose: NodePose) -> None:
        self.pose = pose

    def apply_similarity(self, transform: SimilarityTransform) -> None:
        """Overwrite the local pose with a solved transform."""
        self.pose = NodePose.from_similarity(transform)

    def local_matrix(self) -> npt.NDArray[np.float64]:
        return self.pose.to_matrix()

    def world_matrix(self) -> npt.NDArray[np.float64]:
        return self.parent_world @ self.local_matrix()

    def world_to_local(self, point: Point3) -> Point3:
        return transform_point(np.linalg.inv(self.world_matrix()), point)

    def local_to_world(self, point: Point3) -> Point3:
        return transform_point(self.world_matrix(), point)


def transform_point(matrix: npt.NDArray[np.float64], point: Point3) -> Point3:
    """Apply a 4x4 homogeneous matrix to a point."""
    p = matrix @ np.append(point.to_array(), 1.0)
    return Point3.from_array(p[:3] / p[3])
