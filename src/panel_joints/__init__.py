"""Public API for panel intersection detection and joint classification."""

from panel_joints.contracts import (
    Component3D,
    ComponentArray,
    CoplanarMerge,
    DegeneratePlanesError,
    DetectionConfig,
    DetectionResult,
    DetectionStatus,
    EdgeMembership,
    EmptyOrNullInputError,
    InvalidConfigError,
    IntersectionLine,
    Joint,
    JointType,
    PairJoint,
    PairOutcome,
    PairRelation,
    PanelJointsError,
    Segment3D,
    SegmentCountMismatch,
)
from panel_joints.clipping import find_line_component_intersections
from panel_joints.detection import (
    classify_pair,
    detect_component_intersections,
    find_and_classify_intersections,
    reset_joints,
)
from panel_joints.edges import is_segment_on_edge
from panel_joints.merge import merge_coplanar_components
from panel_joints.plane_solver import find_intersection_line
from panel_joints.predicates import are_coplanar, are_parallel, components_intersect

__all__ = [
    "Component3D",
    "ComponentArray",
    "CoplanarMerge",
    "DegeneratePlanesError",
    "DetectionConfig",
    "DetectionResult",
    "DetectionStatus",
    "EdgeMembership",
    "EmptyOrNullInputError",
    "InvalidConfigError",
    "IntersectionLine",
    "Joint",
    "JointType",
    "PairJoint",
    "PairOutcome",
    "PairRelation",
    "PanelJointsError",
    "Segment3D",
    "SegmentCountMismatch",
    "are_coplanar",
    "are_parallel",
    "classify_pair",
    "components_intersect",
    "detect_component_intersections",
    "find_and_classify_intersections",
    "find_intersection_line",
    "find_line_component_intersections",
    "is_segment_on_edge",
    "merge_coplanar_components",
    "reset_joints",
]
