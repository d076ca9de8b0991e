"""
Configuration & Defaults
========================
This module serves as the central registry for alignment settings.

Why is this file needed?
------------------------
1. Explicit settings: every knob of an alignment request (animation, duration,
   degeneracy thresholds) is a named, typed field with a documented default.
2. Validation: bad values are rejected when the config is built, not halfway
   through an alignment.

Exports:
    AlignmentConfig: Frozen settings for one aligner.
    DEFAULT_CONFIG: AlignmentConfig() with all defaults.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, fields
from typing import Any, Mapping

# Global Constants
MARKER_COUNT: int = 3
MIN_MARKER_DISTANCE: float = 1e-4  # m, between model markers 1 and 2
COLLINEARITY_TOLERANCE: float = 1e-6  # |sin| of the triangle angle at marker 1
ANIMATION_DURATION_MS: float = 500.0
FRAME_INTERVAL_MS: int = 16  # ~60 FPS


@dataclass(frozen=True)
class AlignmentConfig:
    """
    Settings for a TriangleAligner.

    Attributes:
        animate: Interpolate to the solved transform instead of snapping to it.
        animation_duration_ms: Length of the interpolation. <= 0 behaves as instant.
        min_marker_distance: Model markers 1 and 2 closer than this cannot define a scale.
        collinearity_tolerance: Triads whose normalized cross product is below this
            cannot define an orientation.
        frame_interval_ms: Tick interval of the Qt frame driver.
    """
    animate: bool = False
    animation_duration_ms: float = ANIMATION_DURATION_MS
    min_marker_distance: float = MIN_MARKER_DISTANCE
    collinearity_tolerance: float = COLLINEARITY_TOLERANCE
    frame_interval_ms: int = FRAME_INTERVAL_MS

    def __post_init__(self) -> None:
        if not isinstance(self.animate, bool):
            raise TypeError(f"animate must be a bool, got {type(self.animate).__name__}")
        for name in ("animation_duration_ms", "min_marker_distance", "collinearity_tolerance"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0.0:
                raise ValueError(f"{name} must be a finite, non-negative number, got {value}")
        if self.frame_interval_ms <= 0:
            raise ValueError(f"frame_interval_ms must be positive, got {self.frame_interval_ms}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AlignmentConfig:
        """Build a config from a plain mapping. Unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown alignment config keys: {sorted(unknown)}")
        return cls(**dict(data))


DEFAULT_CONFIG = AlignmentConfig()
