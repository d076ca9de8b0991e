"""
Geometric Primitives for marker alignment.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    import numpy.typing as npt


@dataclass(frozen=True)
class Point3:
    """
    A point (or free vector) in 3D space. Immutable.
    """
    x: float
    y: float
    z: float

    def __add__(self, other: Point3) -> Point3:
        return Point3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Point3) -> Point3:
        return Point3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> Point3:
        return Point3(self.x * scalar, self.y * scalar, self.z * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> Point3:
        if scalar == 0.0: raise ZeroDivisionError
        return Point3(self.x / scalar, self.y / scalar, self.z / scalar)

    def __neg__(self) -> Point3:
        return Point3(-self.x, -self.y, -self.z)

    def __iter__(self):
        yield self.x
        yield self.y
        yield self.z

    @property
    def magnitude(self) -> float:
        return math.sqrt(self.x**2 + self.y**2 + self.z**2)

    def dot(self, other: Point3) -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: Point3) -> Point3:
        return Point3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x
        )

    def distance_to(self, other: Point3) -> float:
        return (self - other).magnitude

    def is_finite(self) -> bool:
        return all(math.isfinite(c) for c in (self.x, self.y, self.z))

    def to_array(self) -> npt.NDArray[np.float64]:
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z}

    @classmethod
    def from_array(cls, values: Sequence[float] | npt.NDArray[np.float64]) -> Point3:
        arr = np.asarray(values, dtype=np.float64).reshape(-1)
        if arr.shape != (3,):
            raise ValueError(f"Point3 needs exactly 3 coordinates, got {arr.shape[0]}")
        return cls(float(arr[0]), float(arr[1]), float(arr[2]))

    @classmethod
    def zero(cls) -> Point3:
        return cls(0.0, 0.0, 0.0)


# Exactly 3 points by convention; cardinality is checked by the aligner.
Triad = Sequence[Point3]


def centroid(points: Sequence[Point3]) -> Point3:
    """Arithmetic mean of a non-empty sequence of points."""
    if not points:
        raise ValueError("Cannot compute the centroid of an empty point set.")
    total = Point3.zero()
    for p in points:
        total = total + p
    return total / len(points)


@dataclass(frozen=True)
class Quaternion:
    """
    Unit quaternion in (x, y, z, w) order, w last.
    """
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0

    @classmethod
    def identity(cls) -> Quaternion:
        return cls(0.0, 0.0, 0.0, 1.0)

    @property
    def norm(self) -> float:
        return math.sqrt(self.x**2 + self.y**2 + self.z**2 + self.w**2)

    def normalized(self) -> Quaternion:
        n = self.norm
        if n == 0.0:
            raise ValueError("Cannot normalize a zero quaternion.")
        return Quaternion(self.x / n, self.y / n, self.z / n, self.w / n)

    def conjugate(self) -> Quaternion:
        return Quaternion(-self.x, -self.y, -self.z, self.w)

    def __mul__(self, other: Quaternion) -> Quaternion:
        """Hamilton product self * other."""
        x0, y0, z0, w0 = self.x, self.y, self.z, self.w
        x1, y1, z1, w1 = other.x, other.y, other.z, other.w
        return Quaternion(
            w0*x1 + x0*w1 + y0*z1 - z0*y1,
            w0*y1 - x0*z1 + y0*w1 + z0*x1,
            w0*z1 + x0*y1 - y0*x1 + z0*w1,
            w0*w1 - x0*x1 - y0*y1 - z0*z1,
        )

    def rotate(self, v: Point3) -> Point3:
        """Rotate a vector by this (unit) quaternion."""
        return Point3.from_array(self.to_matrix() @ v.to_array())

    def to_matrix(self) -> npt.NDArray[np.float64]:
        """3x3 rotation matrix of this quaternion."""
        x, y, z, w = self.x, self.y, self.z, self.w
        return np.array([
            [1 - 2*(y*y + z*z), 2*(x*y - z*w),     2*(x*z + y*w)],
            [2*(x*y + z*w),     1 - 2*(x*x + z*z), 2*(y*z - x*w)],
            [2*(x*z - y*w),     2*(y*z + x*w),     1 - 2*(x*x + y*y)],
        ], dtype=np.float64)

    def to_array(self) -> npt.NDArray[np.float64]:
        return np.array([self.x, self.y, self.z, self.w], dtype=np.float64)

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z, "w": self.w}

    @classmethod
    def from_array(cls, values: Sequence[float] | npt.NDArray[np.float64]) -> Quaternion:
        arr = np.asarray(values, dtype=np.float64).reshape(-1)
        if arr.shape != (4,):
            raise ValueError(f"Quaternion needs exactly 4 components (x, y, z, w), got {arr.shape[0]}")
        return cls(float(arr[0]), float(arr[1]), float(arr[2]), float(arr[3]))


@dataclass(frozen=True)
class SimilarityTransform:
    """
    Translation + rotation + one isotropic scale.

    Maps a local point p to: translation + rotation * (scale * p).
    """
    translation: Point3
    rotation: Quaternion
    scale: float

    def __post_init__(self) -> None:
        if not (self.scale > 0.0 and math.isfinite(self.scale)):
            raise ValueError(f"Similarity scale must be finite and positive, got {self.scale}")

    @classmethod
    def identity(cls) -> SimilarityTransform:
        return cls(Point3.zero(), Quaternion.identity(), 1.0)

    def apply(self, point: Point3) -> Point3:
        return self.translation + self.rotation.rotate(point * self.scale)

    def to_matrix(self) -> npt.NDArray[np.float64]:
        """4x4 homogeneous matrix T * R * S."""
        m = np.eye(4, dtype=np.float64)
        m[:3, :3] = self.rotation.to_matrix() * self.scale
        m[:3, 3] = self.translation.to_array()
        return m

    def to_dict(self) -> dict:
        """Completion payload: position, rotation (x, y, z, w) and scalar scale."""
        return {
            "position": self.translation.to_dict(),
            "rotation": self.rotation.to_dict(),
            "scale": self.scale,
        }

    @classmethod
    def from_dict(cls, data: dict) -> SimilarityTransform:
        pos = data["position"]
        rot = data["rotation"]
        return cls(
            translation=Point3(float(pos["x"]), float(pos["y"]), float(pos["z"])),
            rotation=Quaternion(float(rot["x"]), float(rot["y"]), float(rot["z"]), float(rot["w"])),
            scale=float(data["scale"]),
        )


def apply_similarity(transform: SimilarityTransform, point: Point3) -> Point3:
    """Map a local point through a solved similarity transform."""
    return transform.apply(point)
