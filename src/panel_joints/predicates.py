"""
Geometric predicates on component pairs.

All tests run in world space: vertices are mapped through each component's
transform_3d, and the stored normal is taken as the world plane normal.
"""
import logging
from typing import Tuple

import numpy as np
from shapely.geometry import Polygon

from panel_joints.contracts import Component3D
from panel_joints.vectors import EPSILON, is_zero_vector, plane_basis

logger = logging.getLogger(__name__)


def signed_plane_distance(component: Component3D, point: np.ndarray) -> float:
    """Signed distance from a world point to the component's plane."""
    n = component.unit_normal()
    return float(np.dot(np.asarray(point, dtype=float) - component.world_reference_point(), n))


def are_parallel(c1: Component3D, c2: Component3D, eps: float = EPSILON) -> bool:
    """True iff |dot(n1, n2)| is within eps of 1. Zero normals are never parallel."""
    n1 = c1.unit_normal()
    n2 = c2.unit_normal()
    if is_zero_vector(n1, eps) or is_zero_vector(n2, eps):
        return False
    return abs(abs(float(np.dot(n1, n2))) - 1.0) < eps


def are_coplanar(c1: Component3D, c2: Component3D, eps: float = EPSILON) -> bool:
    """True iff both components lie in the same world plane.

    Normals must be parallel and each component's reference vertex must sit
    within eps of the other's plane. Checking both directions keeps the
    predicate symmetric.
    """
    if not are_parallel(c1, c2, eps):
        return False
    d12 = signed_plane_distance(c1, c2.world_reference_point())
    d21 = signed_plane_distance(c2, c1.world_reference_point())
    return abs(d12) < eps and abs(d21) < eps


def world_bounds(component: Component3D) -> Tuple[np.ndarray, np.ndarray]:
    """World-space axis-aligned bounding box (min_xyz, max_xyz)."""
    pts = component.world_vertices()
    if len(pts) == 0:
        ref = component.world_reference_point()
        return ref.copy(), ref.copy()
    return pts.min(axis=0), pts.max(axis=0)


def bounds_overlap(c1: Component3D, c2: Component3D, eps: float = EPSILON) -> bool:
    """AABB overlap test; boxes that only touch still count as overlapping."""
    a_min, a_max = world_bounds(c1)
    b_min, b_max = world_bounds(c2)
    overlap = np.minimum(a_max, b_max) - np.maximum(a_min, b_min)
    return bool(np.all(overlap >= -eps))


def project_to_plane_2d(
    component: Component3D,
    origin: np.ndarray,
    basis_u: np.ndarray,
    basis_v: np.ndarray,
) -> Polygon:
    """World outline of a component expressed in a (u, v) frame of its plane."""
    pts = component.world_vertices()
    if len(pts) < 3:
        return Polygon()
    d = pts - origin
    coords = np.column_stack([d @ basis_u, d @ basis_v])
    poly = Polygon([(float(u), float(v)) for u, v in coords])
    if not poly.is_valid:
        # Self-touching loops: buffer(0) rebuilds a valid area.
        poly = poly.buffer(0)
    return poly


def shared_plane_frame(
    c1: Component3D,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """(origin, normal, basis_u, basis_v) of c1's world plane."""
    normal = c1.unit_normal()
    u, v = plane_basis(normal)
    return c1.world_reference_point(), normal, u, v


def components_intersect(c1: Component3D, c2: Component3D, eps: float = EPSILON) -> bool:
    """Do the two components' extents meet?

    Coplanar pairs are compared as polygons in their common plane (touching
    counts). Other pairs fall back to the world AABB test.
    """
    if not bounds_overlap(c1, c2, eps):
        return False
    if not are_coplanar(c1, c2, eps):
        return True
    if is_zero_vector(c1.unit_normal(), eps):
        return False

    origin, _, u, v = shared_plane_frame(c1)
    poly_1 = project_to_plane_2d(c1, origin, u, v)
    poly_2 = project_to_plane_2d(c2, origin, u, v)
    if poly_1.is_empty or poly_2.is_empty:
        return False
    if poly_1.intersects(poly_2):
        return True
    # Near-touching within tolerance
    return float(poly_1.distance(poly_2)) <= eps
