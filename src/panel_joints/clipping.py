"""
Line-polygon clipping.

Finds the finite stretches of an infinite world-space line that lie inside a
component's bounded polygon. The polygon and the line are projected into a 2D
frame of the polygon's plane, a long LineString standing in for the line is
intersected with the Shapely outline, and the surviving pieces are mapped back
to line parameters. Works for convex and non-convex vertex loops; stretches
running along an edge are kept, single touching points are not.
"""
import logging
from typing import List, Optional, Tuple

import numpy as np
from shapely.geometry import LineString, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.ops import linemerge

from panel_joints.contracts import Component3D, IntersectionLine, Segment3D
from panel_joints.predicates import project_to_plane_2d
from panel_joints.vectors import EPSILON, is_zero_vector, plane_basis

logger = logging.getLogger(__name__)


def find_line_component_intersections(
    line: IntersectionLine,
    component: Component3D,
    eps: float = EPSILON,
    min_length: Optional[float] = None,
) -> List[Segment3D]:
    """Clip an infinite line against a component's outline.

    Args:
        line: World-space line, unit direction.
        component: Component whose world outline is the clip region.
        eps: Distance tolerance for plane membership, snapping and boundary tests.
        min_length: Drop segments shorter than this (defaults to eps).

    Returns:
        World-space segments ordered by ascending parameter along line.direction.
        Empty when the line misses the outline.
    """
    if min_length is None:
        min_length = eps

    world = component.world_vertices()
    if len(world) < 3:
        return []

    normal = component.unit_normal()
    if is_zero_vector(normal, eps):
        return []

    origin = world[0]
    # The line must lie in the component's plane.
    if abs(float(np.dot(line.point - origin, normal))) > eps:
        return []
    if abs(float(np.dot(line.direction, normal))) > eps:
        return []

    u, v = plane_basis(normal)
    outline = project_to_plane_2d(component, origin, u, v)
    p0 = np.array([
        float(np.dot(line.point - origin, u)),
        float(np.dot(line.point - origin, v)),
    ])
    d = np.array([float(np.dot(line.direction, u)), float(np.dot(line.direction, v))])
    if np.linalg.norm(d) < eps:
        return []

    segments = []
    for t0, t1 in clip_line_2d(p0, d, outline, eps):
        if t1 - t0 < min_length:
            continue
        segments.append(Segment3D(line.point_at(t0), line.point_at(t1)))

    logger.debug(
        "Line clipped against component %s: %d segment(s)",
        component.id, len(segments),
    )
    return segments


def clip_line_2d(
    p0: np.ndarray,
    d: np.ndarray,
    outline: Polygon,
    eps: float = EPSILON,
) -> List[Tuple[float, float]]:
    """Parameter intervals [t0, t1] of p0 + t * d covered by a 2D outline.

    Coordinates are snapped to an eps grid for the overlay, so a line that
    runs along an edge up to floating-point noise still follows that edge.
    Intervals closer than eps are merged; isolated touching points are dropped.
    """
    if outline.is_empty:
        return []

    dd = float(np.dot(d, d))
    minx, miny, maxx, maxy = outline.bounds
    centre = np.array([0.5 * (minx + maxx), 0.5 * (miny + maxy)])
    diagonal = float(np.hypot(maxx - minx, maxy - miny))
    t_centre = float(np.dot(centre - p0, d)) / dd
    reach = abs(t_centre) + (diagonal + 1.0) / np.sqrt(dd)

    far_line = LineString([tuple(p0 - reach * d), tuple(p0 + reach * d)])
    inter = far_line.intersection(outline, grid_size=eps)

    intervals = []
    for piece in _line_pieces(inter):
        ts = [float(np.dot(np.array(c[:2]) - p0, d)) / dd for c in piece.coords]
        intervals.append((min(ts), max(ts)))
    return _merge_intervals(intervals, eps / np.sqrt(dd))


# ─── Internal ─────────────────────────────────────────────────────────────────

def _line_pieces(geom: BaseGeometry) -> List[LineString]:
    """LineString parts of an overlay result; points are discarded."""
    if geom.is_empty:
        return []
    if geom.geom_type == "LineString":
        return [geom]
    if geom.geom_type == "MultiLineString":
        merged = linemerge(geom)
        if merged.geom_type == "LineString":
            return [merged]
        return list(merged.geoms)
    if geom.geom_type == "GeometryCollection":
        pieces: List[LineString] = []
        for g in geom.geoms:
            pieces.extend(_line_pieces(g))
        return pieces
    return []


def _merge_intervals(
    intervals: List[Tuple[float, float]],
    t_eps: float,
) -> List[Tuple[float, float]]:
    merged: List[Tuple[float, float]] = []
    for t0, t1 in sorted(intervals):
        if merged and t0 <= merged[-1][1] + t_eps:
            merged[-1] = (merged[-1][0], max(merged[-1][1], t1))
        else:
            merged.append((t0, t1))
    return merged
