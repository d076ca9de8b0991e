"""Typed alignment outcomes: a solved transform or a tagged failure."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Union

from wallalign.model.geometry_primitives import SimilarityTransform


# ------------------------------------------------------------------------------
# Enums
# ------------------------------------------------------------------------------
class FailureReason(StrEnum):
    VALIDATION = "validation"
    DEGENERATE_GEOMETRY = "degenerate geometry"
    COLLINEAR_GEOMETRY = "collinear geometry"


# ------------------------------------------------------------------------------
# Data Structures
# ------------------------------------------------------------------------------
@dataclass(frozen=True)
class AlignmentResiduals:
    """Distance between each mapped model marker and its real counterpart."""
    per_point: tuple[float, ...] = ()

    @property
    def total(self) -> float:
        return sum(self.per_point)

    @property
    def mean(self) -> float:
        if not self.per_point:
            return 0.0
        return self.total / len(self.per_point)

    @property
    def max(self) -> float:
        return max(self.per_point, default=0.0)


@dataclass(frozen=True)
class AlignmentSuccess:
    transform: SimilarityTransform
    residuals: AlignmentResiduals = field(default_factory=AlignmentResiduals)

    ok = True

    def payload(self) -> dict:
        """Completion payload: {position, rotation (x, y, z, w), scale}."""
        return self.transform.to_dict()


@dataclass(frozen=True)
class AlignmentFailure:
    reason: FailureReason
    message: str = ""

    ok = False


AlignmentOutcome = Union[AlignmentSuccess, AlignmentFailure]
