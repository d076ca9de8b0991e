from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

from wallalign.model.frame import OrthonormalFrame
from wallalign.model.geometry_primitives import Quaternion

if TYPE_CHECKING:
    import numpy.typing as npt


def quaternion_from_matrix(m: npt.NDArray[np.float64]) -> Quaternion:
    """
    Extract a unit quaternion from a 3x3 (or the upper-left of a 4x4) rotation matrix.

    Uses the trace-based branch selection: the trace branch when it is positive,
    otherwise the branch of the dominant diagonal element. This keeps the divisor
    away from zero for rotations near 180 degrees.
    """
    m = np.asarray(m, dtype=np.float64)
    if m.shape not in ((3, 3), (4, 4)):
        raise ValueError(f"Expected a 3x3 or 4x4 matrix, got shape {m.shape}")

    m11, m12, m13 = m[0, 0], m[0, 1], m[0, 2]
    m21, m22, m23 = m[1, 0], m[1, 1], m[1, 2]
    m31, m32, m33 = m[2, 0], m[2, 1], m[2, 2]

    trace = m11 + m22 + m33

    if trace > 0:
        s = 0.5 / math.sqrt(trace + 1.0)
        w = 0.25 / s
        x = (m32 - m23) * s
        y = (m13 - m31) * s
        z = (m21 - m12) * s
    elif m11 > m22 and m11 > m33:
        s = 2.0 * math.sqrt(1.0 + m11 - m22 - m33)
        w = (m32 - m23) / s
        x = 0.25 * s
        y = (m12 + m21) / s
        z = (m13 + m31) / s
    elif m22 > m33:
        s = 2.0 * math.sqrt(1.0 + m22 - m11 - m33)
        w = (m13 - m31) / s
        x = (m12 + m21) / s
        y = 0.25 * s
        z = (m23 + m32) / s
    else:
        s = 2.0 * math.sqrt(1.0 + m33 - m11 - m22)
        w = (m21 - m12) / s
        x = (m13 + m31) / s
        y = (m23 + m32) / s
        z = 0.25 * s

    return Quaternion(float(x), float(y), float(z), float(w)).normalized()


def rotation_between_frames(
    target: OrthonormalFrame,
    source: OrthonormalFrame
) -> npt.NDArray[np.float64]:
    """
    Rotation matrix R that maps the source frame's axes onto the target frame's axes.

    R = Target * inv(Source). For orthonormal bases the inverse equals the transpose,
    but the general inverse is used so the result does not depend on that assumption.
    """
    return target.basis_matrix() @ np.linalg.inv(source.basis_matrix())
