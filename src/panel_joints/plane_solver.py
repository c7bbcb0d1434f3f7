"""
Plane-plane intersection line.

Given two non-parallel component planes, returns the infinite world-space line
they share. Parallel input is rejected upstream by are_parallel(); the solver
still guards against it and raises DegeneratePlanesError.
"""
import logging

import numpy as np

from panel_joints.contracts import (
    Component3D,
    DegeneratePlanesError,
    IntersectionLine,
)
from panel_joints.vectors import EPSILON, is_zero_vector, normalise_vector

logger = logging.getLogger(__name__)


def intersect_planes(
    n1: np.ndarray,
    p1: np.ndarray,
    n2: np.ndarray,
    p2: np.ndarray,
    eps: float = EPSILON,
) -> IntersectionLine:
    """Line shared by plane (n1, p1) and plane (n2, p2).

    The direction is normalise(n1 x n2), flipped by canonical_direction().
    The returned point is the point of the line closest to the origin: it
    solves [n1; n2; d] x = [n1.p1, n2.p2, 0].

    Raises:
        DegeneratePlanesError: planes are (nearly) parallel or the system is
            singular.
    """
    n1 = normalise_vector(n1, eps)
    n2 = normalise_vector(n2, eps)
    if is_zero_vector(n1, eps) or is_zero_vector(n2, eps):
        raise DegeneratePlanesError("Plane normal has zero length")

    direction = normalise_vector(np.cross(n1, n2), eps)
    if is_zero_vector(direction, eps):
        raise DegeneratePlanesError("Planes are parallel; no intersection line")
    direction = canonical_direction(direction, eps)

    d1 = float(np.dot(n1, p1))
    d2 = float(np.dot(n2, p2))
    A = np.array([n1, n2, direction])
    b = np.array([d1, d2, 0.0])
    try:
        point = np.linalg.solve(A, b)
    except np.linalg.LinAlgError as exc:
        raise DegeneratePlanesError(f"Plane system is singular: {exc}") from exc

    if not np.all(np.isfinite(point)):
        raise DegeneratePlanesError("Plane solve produced a non-finite point")

    return IntersectionLine(point=point, direction=direction)


def find_intersection_line(
    c1: Component3D,
    c2: Component3D,
    eps: float = EPSILON,
) -> IntersectionLine:
    """World-space intersection line of two components' planes."""
    return intersect_planes(
        c1.normal, c1.world_reference_point(),
        c2.normal, c2.world_reference_point(),
        eps,
    )


def canonical_direction(direction: np.ndarray, eps: float = EPSILON) -> np.ndarray:
    """Flip a unit direction so its first non-zero component is positive.

    Keeps segment orientation independent of normal signs and pair order.
    """
    d = np.asarray(direction, dtype=float)
    for k in range(3):
        if abs(float(d[k])) > eps:
            return d if d[k] >= 0.0 else -d
    return d
