"""
Alignment Solvers
=================
Pure, synchronous computation of the similarity transform that maps model
markers onto real markers.

Note: This package should be pure Python/NumPy and should NOT import PySide6.
"""
from wallalign.solvers.solver import (
    AlignmentSolver,
    TriangleAlignmentSolver,
    compute_alignment,
    create_solver,
)

__all__ = ["AlignmentSolver", "TriangleAlignmentSolver", "compute_alignment", "create_solver"]
