from __future__ import annotations

import logging
from typing import Callable, Optional

from wallalign.controller.animation import AnimationScheduler, CancelToken, TransformAnimation
from wallalign.model.geometry_primitives import SimilarityTransform
from wallalign.model.node import SceneNode

logger = logging.getLogger(__name__)


class TransformApplicator:
    """
    Writes a solved transform to a node, instantly or through an animation.

    Only one animation per node is live at a time: a new request cancels the
    in-flight one and restarts from the node's current (possibly mid-animation)
    pose.
    """

    def __init__(self, scheduler: Optional[AnimationScheduler] = None) -> None:
        self.scheduler = scheduler if scheduler is not None else AnimationScheduler()
        self._in_flight: dict[int, TransformAnimation] = {}

    def in_flight(self, node: SceneNode) -> Optional[TransformAnimation]:
        animation = self._in_flight.get(id(node))
        if animation is not None and not animation.running:
            del self._in_flight[id(node)]
            return None
        return animation

    def cancel(self, node: SceneNode) -> bool:
        """Cancel the node's in-flight animation. Returns True if one was running."""
        animation = self.in_flight(node)
        if animation is None:
            return False
        self.scheduler.discard(animation)
        del self._in_flight[id(node)]
        logger.info(f"Cancelled in-flight animation of '{node.name}'")
        return True

    def apply(
        self,
        node: SceneNode,
        transform: SimilarityTransform,
        animate: bool = False,
        duration_ms: float = 0.0,
        on_complete: Optional[Callable[[SimilarityTransform], None]] = None,
    ) -> Optional[CancelToken]:
        """
        Apply `transform` as the node's new local pose.

        Args:
            node: Target node.
            transform: Solved similarity transform.
            animate: Interpolate over `duration_ms` instead of snapping.
            duration_ms: Animation length; <= 0 applies instantly.
            on_complete: Called exactly once with the final transform.

        Returns:
            The animation's CancelToken, or None for instant application.
        """
        self.cancel(node)

        if not animate or duration_ms <= 0.0:
            node.apply_similarity(transform)
            logger.info(f"Instant alignment of '{node.name}' complete")
            if on_complete is not None:
                on_complete(transform)
            return None

        animation = TransformAnimation(
            node=node,
            target=transform,
            start_ms=self.scheduler.clock(),
            duration_ms=duration_ms,
            on_complete=lambda final: self._finished(node, animation, final, on_complete),
        )
        self._in_flight[id(node)] = animation
        logger.debug(f"Animating '{node.name}' over {duration_ms:.0f} ms")
        return self.scheduler.schedule(animation)

    def _finished(
        self,
        node: SceneNode,
        animation: TransformAnimation,
        transform: SimilarityTransform,
        on_complete: Optional[Callable[[SimilarityTransform], None]],
    ) -> None:
        # Release the node before the callback, which may start a new alignment
        if self._in_flight.get(id(node)) is animation:
            del self._in_flight[id(node)]
        if on_complete is not None:
            on_complete(transform)

    @property
    def tracked(self) -> int:
        """Number of nodes with an animation registered."""
        return len(self._in_flight)
