"""
wallalign: calibrates a virtual climbing-wall model to the physical wall
from 3 pairs of corresponding markers.
"""
from importlib.metadata import version, PackageNotFoundError

from wallalign.config import AlignmentConfig
from wallalign.controller.alignment import AlignmentState, TriangleAligner
from wallalign.model.frame import OrthonormalFrame, build_frame
from wallalign.model.geometry_primitives import Point3, Quaternion, SimilarityTransform
from wallalign.model.node import NodePose, SceneNode
from wallalign.model.outcome import AlignmentFailure, AlignmentSuccess, FailureReason
from wallalign.solvers.solver import compute_alignment

try:
    __version__ = version("wallalign")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

__all__ = [
    "AlignmentConfig",
    "AlignmentFailure",
    "AlignmentState",
    "AlignmentSuccess",
    "FailureReason",
    "NodePose",
    "OrthonormalFrame",
    "Point3",
    "Quaternion",
    "SceneNode",
    "SimilarityTransform",
    "TriangleAligner",
    "build_frame",
    "compute_alignment",
]
