from __future__ import annotations

import logging
from typing import Protocol, Sequence, Union, TYPE_CHECKING

import numpy as np

from wallalign.config import AlignmentConfig, DEFAULT_CONFIG, MARKER_COUNT
from wallalign.model.frame import build_frame, triangle_sine
from wallalign.model.geometry_primitives import Point3, SimilarityTransform, centroid
from wallalign.model.node import SceneNode, transform_point
from wallalign.model.outcome import (
    AlignmentFailure,
    AlignmentOutcome,
    AlignmentResiduals,
    AlignmentSuccess,
    FailureReason,
)
from wallalign.model.rotations import quaternion_from_matrix, rotation_between_frames

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)

# The target's current world transform: a scene node or its 4x4 world matrix.
WorldTransform = Union[SceneNode, "npt.NDArray[np.float64]"]


class AlignmentSolver(Protocol):
    def solve(
        self,
        real: Sequence[Point3],
        model: Sequence[Point3],
        target: WorldTransform,
    ) -> AlignmentOutcome: ...


def _world_matrix(target: WorldTransform) -> npt.NDArray[np.float64]:
    if isinstance(target, SceneNode):
        return target.world_matrix()
    matrix = np.asarray(target, dtype=np.float64)
    if matrix.shape != (4, 4):
        raise ValueError(f"Target world transform must be a SceneNode or a 4x4 matrix, got shape {matrix.shape}")
    return matrix


def _fmt(p: Point3) -> str:
    return f"({p.x:.4f}, {p.y:.4f}, {p.z:.4f})"


def compute_alignment(
    real: Sequence[Point3],
    model: Sequence[Point3],
    target: WorldTransform,
    config: AlignmentConfig = DEFAULT_CONFIG,
) -> AlignmentOutcome:
    """
    Centroid-based similarity fit of 3 model markers onto 3 real markers.

    The model markers are given in world space and are first brought into the
    target's local space, so the result is the new LOCAL pose of the target:
    applying it to the local model markers lands them on the real markers.

    Centering both triads on their centroids spreads any shape mismatch over all
    three markers instead of pinning marker 1. Scale comes from the distance
    between markers 1 and 2 only.

    Args:
        real: 3 measured real-world marker positions.
        model: 3 corresponding model marker positions, in world space.
        target: The target's current world transform (SceneNode or 4x4 matrix).
        config: Degeneracy thresholds.

    Returns:
        AlignmentSuccess with the transform and per-marker residuals, or an
        AlignmentFailure (DEGENERATE_GEOMETRY, COLLINEAR_GEOMETRY). Never a
        partially filled transform.
    """
    if len(real) != MARKER_COUNT or len(model) != MARKER_COUNT:
        raise ValueError(f"compute_alignment needs exactly {MARKER_COUNT} markers in each set")

    n = MARKER_COUNT
    try:
        world_inv = np.linalg.inv(_world_matrix(target))
    except np.linalg.LinAlgError:
        message = "Target world transform is singular (zero scale?)"
        logger.error(message)
        return AlignmentFailure(FailureReason.DEGENERATE_GEOMETRY, message)

    # 1) Model markers in the target's local space
    model_local = [transform_point(world_inv, p) for p in model]
    logger.debug("Model LOCAL positions: " + ", ".join(_fmt(p) for p in model_local))

    # 2) Centroids
    real_centroid = centroid(real)
    model_centroid = centroid(model_local)
    logger.debug(f"Centroids: real={_fmt(real_centroid)}, model local={_fmt(model_centroid)}")

    # 3) Centering
    real_centered = [p - real_centroid for p in real]
    model_centered = [p - model_centroid for p in model_local]

    # 4) Scale from markers 1 and 2
    real_dist = real[0].distance_to(real[1])
    model_dist = model_local[0].distance_to(model_local[1])

    if model_dist < config.min_marker_distance:
        message = f"Model markers 1 and 2 are too close together ({model_dist:.3e})"
        logger.error(message)
        return AlignmentFailure(FailureReason.DEGENERATE_GEOMETRY, message)
    if real_dist < config.min_marker_distance:
        message = f"Real markers 1 and 2 are too close together ({real_dist:.3e})"
        logger.error(message)
        return AlignmentFailure(FailureReason.DEGENERATE_GEOMETRY, message)

    scale = real_dist / model_dist
    logger.debug(f"Scale factor: {scale:.6f}")

    # 5) Uniform scale of the centered model triad
    model_scaled = [p * scale for p in model_centered]

    # Orientation needs a proper triangle on both sides
    for label, triad in (("Real", real_centered), ("Model", model_scaled)):
        sine = triangle_sine(*triad)
        if sine < config.collinearity_tolerance:
            message = f"{label} markers are (nearly) collinear (sine={sine:.3e})"
            logger.error(message)
            return AlignmentFailure(FailureReason.COLLINEAR_GEOMETRY, message)

    # 6) + 7) Frames and the rotation mapping model axes onto real axes
    try:
        real_frame = build_frame(*real_centered)
        model_frame = build_frame(*model_scaled)
    except ValueError as e:
        # Triangle too small for a stable normal even though its angle passed
        message = f"Markers do not span a usable plane: {e}"
        logger.error(message)
        return AlignmentFailure(FailureReason.COLLINEAR_GEOMETRY, message)
    rotation_matrix = rotation_between_frames(real_frame, model_frame)

    # 8) Quaternion
    rotation = quaternion_from_matrix(rotation_matrix)

    # 9) Translation: the scaled, rotated model centroid lands on the real centroid
    translation = real_centroid - rotation.rotate(model_centroid * scale)

    transform = SimilarityTransform(translation=translation, rotation=rotation, scale=scale)
    logger.info(
        f"Solved transform: position={_fmt(translation)}, "
        f"quaternion=({rotation.x:.6f}, {rotation.y:.6f}, {rotation.z:.6f}, {rotation.w:.6f}), "
        f"scale={scale:.6f}"
    )

    residuals = AlignmentResiduals(
        per_point=tuple(transform.apply(model_local[i]).distance_to(real[i]) for i in range(n))
    )
    for i, err in enumerate(residuals.per_point):
        logger.debug(f"  Marker {i + 1} residual: {err:.6f} m")
    logger.info(f"Residuals: total={residuals.total:.6f} m, mean={residuals.mean:.6f} m")

    return AlignmentSuccess(transform=transform, residuals=residuals)


class TriangleAlignmentSolver:
    """
    3-marker similarity solver (centroid-based, scale from markers 1-2).
    """

    def __init__(self, config: AlignmentConfig = DEFAULT_CONFIG) -> None:
        """
        Initialize the solver.

        Args:
            config: Degeneracy thresholds used for every solve.
        """
        self.config = config

    def solve(
        self,
        real: Sequence[Point3],
        model: Sequence[Point3],
        target: WorldTransform,
    ) -> AlignmentOutcome:
        return compute_alignment(real, model, target, self.config)


def create_solver(config: AlignmentConfig = DEFAULT_CONFIG) -> AlignmentSolver:
    """Typed factory for the default solver."""
    return TriangleAlignmentSolver(config)
