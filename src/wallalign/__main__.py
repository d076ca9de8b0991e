"""
Command-line interface.

Run with: python -m wallalign markers.json [--animate] [--duration MS] [-v]

markers.json:
    {"real": [[x, y, z], ...3], "model": [[x, y, z], ...3], "target_world": optional 4x4}
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from typing import Optional, Sequence

import numpy as np

from wallalign.config import AlignmentConfig
from wallalign.controller.alignment import TriangleAligner
from wallalign.logging_config import setup_logging
from wallalign.model.node import NodePose, SceneNode
from wallalign.model.outcome import AlignmentSuccess

logger = logging.getLogger("wallalign.cli")


def _node_from_world(matrix: Optional[list]) -> SceneNode:
    """A target whose world transform is `matrix` (identity when None)."""
    if matrix is None:
        return SceneNode(name="wall")
    return SceneNode(name="wall", pose=NodePose(), parent_world=np.asarray(matrix, dtype=np.float64))


def run(path: str, config: AlignmentConfig) -> int:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    node = _node_from_world(data.get("target_world"))
    completed: list[AlignmentSuccess] = []
    aligner = TriangleAligner(node, config=config, on_complete=completed.append)

    outcome = aligner.align(data.get("real", []), data.get("model", []))
    if not outcome.ok:
        return 1

    # Drive the animation with a plain frame loop
    scheduler = aligner.applicator.scheduler
    while not scheduler.idle:
        scheduler.tick()
        time.sleep(config.frame_interval_ms / 1000.0)

    result = completed[-1]
    print(json.dumps({
        **result.payload(),
        "residuals": list(result.residuals.per_point),
    }, indent=2))
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="wallalign", description="3-marker wall calibration solver")
    parser.add_argument("markers", help="JSON file with 'real' and 'model' marker triads")
    parser.add_argument("--animate", action="store_true", help="interpolate to the solved pose")
    parser.add_argument("--duration", type=float, default=500.0, help="animation duration in ms")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        config = AlignmentConfig(animate=args.animate, animation_duration_ms=args.duration)
        return run(args.markers, config)
    except (OSError, ValueError) as e:
        logger.error(f"{e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
