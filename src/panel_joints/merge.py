"""
Coplanar component merging.

Two components lying in the same world plane whose outlines overlap (or touch)
are fused into a single logical surface with Shapely. The seam between them is
not a joint, so nothing is appended to either component.
"""
import logging
from typing import Optional

from shapely.ops import unary_union

from panel_joints.contracts import Component3D, CoplanarMerge
from panel_joints.predicates import (
    are_coplanar,
    components_intersect,
    project_to_plane_2d,
    shared_plane_frame,
)
from panel_joints.vectors import EPSILON

logger = logging.getLogger(__name__)


def merge_coplanar_components(
    c1: Component3D,
    c2: Component3D,
    eps: float = EPSILON,
) -> Optional[CoplanarMerge]:
    """Fuse two coplanar, overlapping components.

    Args:
        c1: First component; its plane frame is used for the merged outline.
        c2: Second component.
        eps: Coplanarity and touching tolerance.

    Returns:
        CoplanarMerge describing the fused surface, or None when the pair is
        not coplanar or does not overlap.
    """
    if not are_coplanar(c1, c2, eps) or not components_intersect(c1, c2, eps):
        return None

    origin, normal, u, v = shared_plane_frame(c1)
    poly_1 = project_to_plane_2d(c1, origin, u, v)
    poly_2 = project_to_plane_2d(c2, origin, u, v)
    merged = unary_union([poly_1, poly_2])
    if eps > 0 and merged.geom_type == "MultiPolygon":
        # Close hairline gaps between parts that only touch within eps.
        merged = merged.buffer(eps).buffer(-eps)

    logger.debug(
        "Merged coplanar components %s and %s (area %.6g)",
        c1.id, c2.id, merged.area,
    )
    return CoplanarMerge(
        component_ids=(c1.id, c2.id),
        plane_origin=origin,
        plane_normal=normal,
        basis_u=u,
        basis_v=v,
        outline_2d=merged,
    )
