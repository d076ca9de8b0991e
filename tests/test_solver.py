"""Unit tests for the 3-marker similarity alignment solver."""

import math

import numpy as np
import pytest
from scipy.spatial.transform import Rotation

from wallalign.config import AlignmentConfig
from wallalign.model.geometry_primitives import Point3, Quaternion, centroid
from wallalign.model.node import NodePose, SceneNode
from wallalign.model.outcome import AlignmentFailure, AlignmentSuccess, FailureReason
from wallalign.solvers.solver import TriangleAlignmentSolver, compute_alignment, create_solver


def _assert_points_close(actual, expected, atol=1e-5):
    np.testing.assert_allclose(
        np.array([p.to_array() for p in actual]),
        np.array([p.to_array() for p in expected]),
        atol=atol,
    )


def _assert_identity_rotation(q: Quaternion, atol=1e-6):
    assert abs(q.w) == pytest.approx(1.0, abs=atol)
    np.testing.assert_allclose([q.x, q.y, q.z], [0.0, 0.0, 0.0], atol=atol)


def test_identical_triads_give_identity(unit_triangle):
    outcome = compute_alignment(unit_triangle, unit_triangle, np.eye(4))

    assert isinstance(outcome, AlignmentSuccess)
    t = outcome.transform
    assert t.scale == pytest.approx(1.0, abs=1e-3)
    _assert_identity_rotation(t.rotation)
    _assert_points_close([t.apply(p) for p in unit_triangle], unit_triangle)
    assert outcome.residuals.max == pytest.approx(0.0, abs=1e-9)


def test_scaled_congruent_triad_recovers_scale(unit_triangle):
    real = [p * 2.0 for p in unit_triangle]

    outcome = compute_alignment(real, unit_triangle, np.eye(4))

    assert outcome.ok
    assert outcome.transform.scale == pytest.approx(2.0, abs=1e-3)


def test_end_to_end_translation_only(unit_triangle):
    real = [Point3(1, 1, 1), Point3(2, 1, 1), Point3(1, 2, 1)]

    outcome = compute_alignment(real, unit_triangle, np.eye(4))

    assert outcome.ok
    t = outcome.transform
    assert all(math.isfinite(c) for c in t.translation)
    assert t.scale == pytest.approx(1.0, abs=1e-3)
    _assert_identity_rotation(t.rotation)
    np.testing.assert_allclose(t.translation.to_array(), [1.0, 1.0, 1.0], atol=1e-6)
    _assert_points_close([t.apply(p) for p in unit_triangle], real)


@pytest.mark.parametrize("angles", [(0, 0, 90), (30, -20, 75), (180, 0, 0), (0, 180, 0), (10, 170, -95)])
def test_recovers_known_similarity(angles):
    rot = Rotation.from_euler("xyz", angles, degrees=True)
    scale = 1.75
    offset = np.array([0.4, -2.0, 3.3])
    model = [Point3(0.1, 0.2, 0.0), Point3(2.0, 0.5, -0.3), Point3(0.7, 1.9, 0.4)]
    real = [Point3.from_array(offset + scale * rot.apply(p.to_array())) for p in model]

    outcome = compute_alignment(real, model, np.eye(4))

    assert outcome.ok
    t = outcome.transform
    assert t.scale == pytest.approx(scale)
    assert abs(np.dot(t.rotation.to_array(), rot.as_quat())) == pytest.approx(1.0, abs=1e-9)
    np.testing.assert_allclose(t.translation.to_array(), offset, atol=1e-9)
    _assert_points_close([t.apply(p) for p in model], real, atol=1e-9)


def test_model_markers_are_taken_into_target_local_space():
    pose = NodePose(
        position=Point3(5.0, -1.0, 2.0),
        rotation=Quaternion.from_array(Rotation.from_euler("y", 40, degrees=True).as_quat()),
        scale=Point3(2.0, 2.0, 2.0),
    )
    node = SceneNode("wall", pose=pose)
    model_local = [Point3(0, 0, 0), Point3(1, 0, 0), Point3(0, 1, 0)]
    model_world = [node.local_to_world(p) for p in model_local]
    real = [Point3(1, 1, 1), Point3(1, 1, 2), Point3(1, 2, 1)]

    outcome = compute_alignment(real, model_world, node)

    assert outcome.ok
    # The solved pose replaces the node's local pose, so it maps LOCAL markers onto real ones
    _assert_points_close([outcome.transform.apply(p) for p in model_local], real)
    node.apply_similarity(outcome.transform)
    _assert_points_close([node.local_to_world(p) for p in model_local], real)


def test_world_matrix_and_scene_node_targets_agree(unit_triangle):
    node = SceneNode("wall", pose=NodePose(position=Point3(0.5, 0.0, -3.0)))
    real = [Point3(1, 1, 1), Point3(2, 1, 1), Point3(1, 2, 1)]

    from_node = compute_alignment(real, unit_triangle, node)
    from_matrix = compute_alignment(real, unit_triangle, node.world_matrix())

    assert from_node.transform == from_matrix.transform


def test_non_congruent_triads_distribute_error_around_centroid(unit_triangle):
    real = [Point3(0, 0, 0), Point3(1, 0, 0), Point3(0, 2, 0)]

    outcome = compute_alignment(real, unit_triangle, np.eye(4))

    assert outcome.ok
    assert outcome.residuals.max > 1e-3
    # Centroids coincide exactly
    mapped_centroid = outcome.transform.apply(centroid(unit_triangle))
    np.testing.assert_allclose(mapped_centroid.to_array(), centroid(real).to_array(), atol=1e-12)
    # No single marker is forced to zero error
    assert min(outcome.residuals.per_point) > 1e-3


def test_coincident_model_markers_are_degenerate():
    real = [Point3(0, 0, 0), Point3(1, 0, 0), Point3(0, 1, 0)]
    model = [Point3(0, 0, 0), Point3(0.00005, 0, 0), Point3(0, 1, 0)]

    outcome = compute_alignment(real, model, np.eye(4))

    assert isinstance(outcome, AlignmentFailure)
    assert outcome.reason == FailureReason.DEGENERATE_GEOMETRY
    assert not hasattr(outcome, "transform")


def test_coincident_real_markers_are_degenerate(unit_triangle):
    real = [Point3(0, 0, 0), Point3(0, 0, 0), Point3(0, 1, 0)]

    outcome = compute_alignment(real, unit_triangle, np.eye(4))

    assert outcome.reason == FailureReason.DEGENERATE_GEOMETRY


def test_collinear_real_markers_fail(unit_triangle):
    real = [Point3(0, 0, 0), Point3(1, 0, 0), Point3(2, 0, 0)]

    outcome = compute_alignment(real, unit_triangle, np.eye(4))

    assert outcome.reason == FailureReason.COLLINEAR_GEOMETRY


def test_collinear_model_markers_fail(unit_triangle):
    model = [Point3(0, 0, 0), Point3(1, 0, 0), Point3(-3, 0, 0)]

    outcome = compute_alignment(unit_triangle, model, np.eye(4))

    assert outcome.reason == FailureReason.COLLINEAR_GEOMETRY


def test_collinearity_tolerance_is_configurable(unit_triangle):
    # Nearly flat triangle: sine ~ 1e-3
    real = [Point3(0, 0, 0), Point3(1, 0, 0), Point3(0.5, 0.0005, 0)]
    strict = AlignmentConfig(collinearity_tolerance=1e-2)

    assert compute_alignment(real, unit_triangle, np.eye(4)).ok
    assert compute_alignment(real, unit_triangle, np.eye(4), strict).reason == FailureReason.COLLINEAR_GEOMETRY


def test_degenerate_failure_is_logged(caplog):
    model = [Point3(0, 0, 0), Point3(0, 0, 0), Point3(0, 1, 0)]

    with caplog.at_level("ERROR", logger="wallalign"):
        compute_alignment(model, model, np.eye(4))

    assert "too close together" in caplog.text


def test_wrong_marker_count_is_a_programming_error(unit_triangle):
    with pytest.raises(ValueError):
        compute_alignment(unit_triangle[:2], unit_triangle, np.eye(4))


def test_bad_world_matrix_shape_raises(unit_triangle):
    with pytest.raises(ValueError):
        compute_alignment(unit_triangle, unit_triangle, np.eye(3))


def test_factory_builds_triangle_solver(unit_triangle):
    config = AlignmentConfig(min_marker_distance=2.0)
    solver = create_solver(config)

    assert isinstance(solver, TriangleAlignmentSolver)
    # unit edge is shorter than the configured minimum
    assert solver.solve(unit_triangle, unit_triangle, np.eye(4)).reason == FailureReason.DEGENERATE_GEOMETRY


def test_tiny_triangle_that_passes_the_angle_check_fails_as_collinear(unit_triangle):
    # Angle at marker 1 is ~2e-6, but the normal is too short to normalize
    real = [Point3(0, 0, 0), Point3(1, 0, 0), Point3(1e-7, 2e-13, 0)]

    outcome = compute_alignment(real, unit_triangle, np.eye(4))

    assert isinstance(outcome, AlignmentFailure)
    assert outcome.reason == FailureReason.COLLINEAR_GEOMETRY


def test_singular_target_world_matrix_is_degenerate(unit_triangle):
    node = SceneNode("wall", pose=NodePose(scale=Point3(0.0, 0.0, 0.0)))

    outcome = compute_alignment(unit_triangle, unit_triangle, node)

    assert isinstance(outcome, AlignmentFailure)
    assert outcome.reason == FailureReason.DEGENERATE_GEOMETRY
