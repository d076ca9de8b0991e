"""
Triangle Alignment
==================
Calibrates a virtual wall to a physical wall from 3 marker pairs.

Flow per request:
    Idle -> Validating -> Solving -> Applying (instant | animated) -> Completed
                     +-> ValidationFailed     +-> DegenerateFailed

Validation strictly precedes solving, which strictly precedes any mutation of
the target node. Failures are logged and reported through `on_failure`; they
never mutate the node and never fire `on_complete`.

Classes:
    AlignmentState: Per-request state machine.
    TriangleAligner: Validation + solver + applicator + anchor persistence.
"""
from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any, Callable, Optional, Sequence

from wallalign.config import AlignmentConfig, DEFAULT_CONFIG, MARKER_COUNT
from wallalign.controller.applicator import TransformApplicator
from wallalign.model.anchors import AnchorStore
from wallalign.model.geometry_primitives import Point3, SimilarityTransform
from wallalign.model.node import SceneNode
from wallalign.model.outcome import AlignmentFailure, AlignmentOutcome, AlignmentSuccess, FailureReason
from wallalign.solvers.solver import AlignmentSolver, create_solver

logger = logging.getLogger(__name__)


class AlignmentState(StrEnum):
    IDLE = "idle"
    VALIDATING = "validating"
    SOLVING = "solving"
    APPLYING = "applying"
    COMPLETED = "completed"
    VALIDATION_FAILED = "validation failed"
    DEGENERATE_FAILED = "degenerate failed"


def _as_point(value: Any) -> Point3:
    if isinstance(value, Point3):
        return value
    return Point3.from_array(value)


def validate_markers(
    real: Sequence[Any],
    model: Sequence[Any]
) -> tuple[Optional[AlignmentFailure], list[Point3], list[Point3]]:
    """
    Check the exactly-3-markers precondition and coerce markers to Point3.

    Returns:
        (failure or None, real points, model points)
    """
    if len(real) != MARKER_COUNT or len(model) != MARKER_COUNT:
        return AlignmentFailure(
            FailureReason.VALIDATION,
            f"Need exactly {MARKER_COUNT} markers in each set (got {len(real)} real, {len(model)} model)"
        ), [], []

    try:
        real_pts = [_as_point(p) for p in real]
        model_pts = [_as_point(p) for p in model]
    except (TypeError, ValueError) as e:
        return AlignmentFailure(FailureReason.VALIDATION, f"Malformed marker: {e}"), [], []

    if not all(p.is_finite() for p in real_pts + model_pts):
        return AlignmentFailure(FailureReason.VALIDATION, "Marker coordinates must be finite"), [], []

    return None, real_pts, model_pts


class TriangleAligner:
    """
    Aligns a target node so its model markers coincide with measured real markers.
    """

    def __init__(
        self,
        node: SceneNode,
        config: AlignmentConfig = DEFAULT_CONFIG,
        solver: Optional[AlignmentSolver] = None,
        applicator: Optional[TransformApplicator] = None,
        on_complete: Optional[Callable[[AlignmentSuccess], None]] = None,
        on_failure: Optional[Callable[[AlignmentFailure], None]] = None,
        anchor_store: Optional[AnchorStore] = None,
        storage_key: Optional[str] = None,
    ) -> None:
        self.node = node
        self.config = config
        self.solver = solver if solver is not None else create_solver(config)
        self.applicator = applicator if applicator is not None else TransformApplicator()
        self.on_complete = on_complete
        self.on_failure = on_failure
        self.anchor_store = anchor_store
        self.storage_key = storage_key
        self.state = AlignmentState.IDLE
        self.last_outcome: Optional[AlignmentOutcome] = None
        logger.debug(f"Triangle aligner initialized on '{node.name}'")

    def align(self, real: Sequence[Any], model: Sequence[Any]) -> AlignmentOutcome:
        """
        Validate, solve and apply.

        Args:
            real: 3 real-world marker positions (world space).
            model: 3 model marker positions (world space), in the same order.

        Returns:
            The solver outcome. On success the node is updated (or an animation is
            scheduled) and `on_complete` fires once the pose is final.
        """
        self.state = AlignmentState.VALIDATING
        failure, real_pts, model_pts = validate_markers(real, model)
        if failure is not None:
            return self._fail(failure, AlignmentState.VALIDATION_FAILED)

        self.state = AlignmentState.SOLVING
        outcome = self.solver.solve(real_pts, model_pts, self.node)
        if isinstance(outcome, AlignmentFailure):
            return self._fail(outcome, AlignmentState.DEGENERATE_FAILED)

        self.state = AlignmentState.APPLYING
        self.last_outcome = outcome
        self.applicator.apply(
            self.node,
            outcome.transform,
            animate=self.config.animate,
            duration_ms=self.config.animation_duration_ms,
            on_complete=lambda _transform: self._completed(outcome),
        )
        return outcome

    def cancel(self) -> bool:
        """Cancel an in-flight animation. The node keeps its current pose."""
        cancelled = self.applicator.cancel(self.node)
        if cancelled and self.state == AlignmentState.APPLYING:
            self.state = AlignmentState.IDLE
        return cancelled

    def restore(self) -> bool:
        """
        Re-apply a previously persisted calibration, if one is stored.

        Does not fire `on_complete`.
        """
        if self.anchor_store is None or not self.storage_key:
            logger.warning("No anchor store configured, nothing to restore")
            return False

        payload = self.anchor_store.load(self.storage_key)
        if payload is None:
            logger.info(f"No stored calibration for '{self.storage_key}'")
            return False

        try:
            transform = SimilarityTransform.from_dict(payload)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Stored calibration '{self.storage_key}' is unreadable: {e}")
            return False

        self.applicator.cancel(self.node)
        self.node.apply_similarity(transform)
        logger.info(f"Restored calibration '{self.storage_key}' on '{self.node.name}'")
        return True

    def _completed(self, outcome: AlignmentSuccess) -> None:
        self.state = AlignmentState.COMPLETED
        if self.anchor_store is not None and self.storage_key:
            self.anchor_store.save(self.storage_key, outcome.payload())
        if self.on_complete is not None:
            self.on_complete(outcome)

    def _fail(self, failure: AlignmentFailure, state: AlignmentState) -> AlignmentFailure:
        self.state = state
        self.last_outcome = failure
        logger.error(f"Alignment failed ({failure.reason}): {failure.message}")
        if self.on_failure is not None:
            self.on_failure(failure)
        return failure
