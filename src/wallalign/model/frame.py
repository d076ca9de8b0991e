"""
Orthonormal frames built from marker triangles.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from wallalign.model.geometry_primitives import Point3

if TYPE_CHECKING:
    import numpy.typing as npt

# Below this length an axis has no usable direction.
_MIN_AXIS_LENGTH = 1e-12


def normalize(v: Point3) -> Point3:
    """Unit vector along v. Raises ValueError for a (near) zero vector."""
    mag = v.magnitude
    if mag < _MIN_AXIS_LENGTH:
        raise ValueError(f"Cannot normalize a zero-length vector {v}")
    return v / mag


@dataclass(frozen=True)
class OrthonormalFrame:
    """Three mutually perpendicular unit axes, right-handed (z = x cross y)."""
    x: Point3
    y: Point3
    z: Point3

    def basis_matrix(self) -> npt.NDArray[np.float64]:
        """3x3 matrix with the axes as columns."""
        return np.column_stack([self.x.to_array(), self.y.to_array(), self.z.to_array()])


def build_frame(p1: Point3, p2: Point3, p3: Point3) -> OrthonormalFrame:
    """
    Build a right-handed orthonormal frame from 3 points.

    X axis: from p1 to p2.
    Z axis: normal of the triangle plane, x cross (p3 - p1).
    Y axis: z cross x, completes the frame.

    Raises:
        ValueError: if p1 == p2 or the points are collinear.
    """
    x = normalize(p2 - p1)
    z = normalize(x.cross(p3 - p1))
    y = normalize(z.cross(x))
    return OrthonormalFrame(x=x, y=y, z=z)


def triangle_sine(p1: Point3, p2: Point3, p3: Point3) -> float:
    """
    |sin| of the angle at p1, i.e. |(p2-p1) x (p3-p1)| / (|p2-p1| |p3-p1|).

    Scale-free collinearity measure: 0 for collinear points, 1 for a right angle.
    Returns 0.0 when either edge has zero length.
    """
    a = p2 - p1
    b = p3 - p1
    denom = a.magnitude * b.magnitude
    if denom < _MIN_AXIS_LENGTH:
        return 0.0
    return a.cross(b).magnitude / denom
