"""
Transform Animation
===================
Frame-driven interpolation of a node towards a solved transform.

An animation is an explicit task object (start pose, target, start time,
duration, cancel token). It does not schedule itself; the host calls
`AnimationScheduler.tick(now_ms)` once per frame.

Classes:
    CancelToken: Cooperative cancellation flag shared with the caller.
    TransformAnimation: One interpolation from a start pose to a target transform.
    AnimationScheduler: The frame-clock driver contract.
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Optional

import numpy as np
from scipy.spatial.transform import Rotation, Slerp

from wallalign.model.geometry_primitives import Point3, Quaternion, SimilarityTransform
from wallalign.model.node import NodePose, SceneNode

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
CompletionCallback = Callable[[SimilarityTransform], None]


def monotonic_ms() -> float:
    """Default frame clock in milliseconds."""
    return time.perf_counter() * 1000.0


def ease_in_out(t: float) -> float:
    """Quadratic ease-in/out: accelerate over the first half, decelerate over the second."""
    t = min(max(t, 0.0), 1.0)
    if t < 0.5:
        return 2.0 * t * t
    return 1.0 - (-2.0 * t + 2.0) ** 2 / 2.0


class CancelToken:
    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True


class TransformAnimation:
    """
    Interpolates a node's local pose from its pose at creation time to a target.

    Position and scale are interpolated linearly, rotation spherically, all with
    the same eased parameter. The last frame snaps exactly to the target.
    """

    def __init__(
        self,
        node: SceneNode,
        target: SimilarityTransform,
        start_ms: float,
        duration_ms: float,
        on_complete: Optional[CompletionCallback] = None,
        token: Optional[CancelToken] = None,
    ) -> None:
        if duration_ms <= 0.0:
            raise ValueError(f"Animation duration must be positive, got {duration_ms}")
        self.node = node
        self.start = node.pose
        self.target = target
        self.target_pose = NodePose.from_similarity(target)
        self.start_ms = start_ms
        self.duration_ms = duration_ms
        self.on_complete = on_complete
        self.token = token if token is not None else CancelToken()
        self.finished = False

        self._start_pos = self.start.position.to_array()
        self._end_pos = self.target_pose.position.to_array()
        self._start_scale = self.start.scale.to_array()
        self._end_scale = self.target_pose.scale.to_array()
        self._slerp = Slerp(
            [0.0, 1.0],
            Rotation.from_quat([self.start.rotation.to_array(), target.rotation.to_array()]),
        )

    @property
    def running(self) -> bool:
        return not (self.finished or self.token.cancelled)

    def pose_at(self, eased: float) -> NodePose:
        position = self._start_pos + (self._end_pos - self._start_pos) * eased
        scale = self._start_scale + (self._end_scale - self._start_scale) * eased
        rotation = self._slerp([eased]).as_quat()[0]
        return NodePose(
            position=Point3.from_array(position),
            rotation=Quaternion.from_array(rotation),
            scale=Point3.from_array(scale),
        )

    def advance(self, now_ms: float) -> bool:
        """
        Advance to `now_ms`. Returns True while the animation still needs frames.
        """
        if not self.running:
            return False

        t = min((now_ms - self.start_ms) / self.duration_ms, 1.0)

        if t < 1.0:
            self.node.set_pose(self.pose_at(ease_in_out(t)))
            return True

        # Snap to exact final values
        self.node.set_pose(self.target_pose)
        self.finished = True
        logger.info(f"Animation of '{self.node.name}' complete")
        if self.on_complete is not None:
            self.on_complete(self.target)
        return False


class AnimationScheduler:
    """
    Holds live animations and advances them once per host frame.
    """

    def __init__(self, clock: Clock = monotonic_ms) -> None:
        self.clock = clock
        self._animations: list[TransformAnimation] = []

    @property
    def active(self) -> int:
        return sum(1 for a in self._animations if a.running)

    @property
    def idle(self) -> bool:
        return self.active == 0

    @property
    def pending(self) -> int:
        """Animations still held, including cancelled ones not yet dropped."""
        return len(self._animations)

    def schedule(self, animation: TransformAnimation) -> CancelToken:
        self._animations.append(animation)
        return animation.token

    def discard(self, animation: TransformAnimation) -> None:
        """Cancel an animation and drop it right away."""
        animation.token.cancel()
        self._animations = [a for a in self._animations if a is not animation]

    def tick(self, now_ms: Optional[float] = None) -> None:
        """Advance every live animation; drop the finished and cancelled ones."""
        now = self.clock() if now_ms is None else now_ms
        # Completion callbacks may schedule new animations
        current = list(self._animations)
        for animation in current:
            animation.advance(now)
        done = {id(a) for a in current if not a.running}
        self._animations = [a for a in self._animations if id(a) not in done]

    def cancel_all(self) -> None:
        for animation in self._animations:
            animation.token.cancel()
        self._animations.clear()
