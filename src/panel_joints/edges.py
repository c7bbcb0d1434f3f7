"""Edge-membership classification of local-frame segments."""
import logging
from typing import List, Tuple

import numpy as np
from shapely.geometry import LineString, Point

from panel_joints.contracts import Component3D, EdgeMembership, Segment3D
from panel_joints.vectors import (
    EPSILON,
    is_zero_vector,
    normalise_vector,
    plane_basis,
    transform_direction,
)

logger = logging.getLogger(__name__)


def is_segment_on_edge(
    segment: Segment3D,
    component: Component3D,
    eps: float = EPSILON,
) -> bool:
    """True iff the whole segment lies on one boundary edge of the component.

    Both endpoints must lie within eps of the same edge, measured as the
    Shapely distance to that edge in the component's local plane. The segment
    must be in the component's local frame.
    """
    verts = component.vertices
    if len(verts) < 2:
        return False

    local_normal = normalise_vector(
        transform_direction(component.inverse_transform, component.normal), eps,
    )
    if is_zero_vector(local_normal, eps):
        return False
    origin = verts[0]
    for p in (segment.start, segment.end):
        if abs(float(np.dot(p - origin, local_normal))) > eps:
            return False

    u, v = plane_basis(local_normal)
    start = Point(_to_2d(segment.start, origin, u, v))
    end = Point(_to_2d(segment.end, origin, u, v))
    for edge in _outline_edges(verts, origin, u, v, eps):
        if edge.distance(start) <= eps and edge.distance(end) <= eps:
            return True
    return False


def classify_segment(
    segment: Segment3D,
    component: Component3D,
    eps: float = EPSILON,
) -> EdgeMembership:
    if is_segment_on_edge(segment, component, eps):
        return EdgeMembership.ON_EDGE
    return EdgeMembership.INTERIOR


def _to_2d(p: np.ndarray, origin: np.ndarray, u: np.ndarray, v: np.ndarray) -> Tuple[float, float]:
    rel = p - origin
    return float(np.dot(rel, u)), float(np.dot(rel, v))


def _outline_edges(
    verts: List[np.ndarray],
    origin: np.ndarray,
    u: np.ndarray,
    v: np.ndarray,
    eps: float,
) -> List[LineString]:
    """Closed-loop edges as 2D LineStrings; zero-length edges are skipped."""
    coords = [_to_2d(p, origin, u, v) for p in verts]
    edges = []
    for i, a in enumerate(coords):
        b = coords[(i + 1) % len(coords)]
        if np.hypot(b[0] - a[0], b[1] - a[1]) < eps:
            continue
        edges.append(LineString([a, b]))
    return edges
