"""Contracts for panel intersection detection and joint classification."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np
from shapely.geometry import MultiPolygon, Polygon

from panel_joints.vectors import (
    EPSILON,
    as_vec3,
    identity_matrix,
    invert_transform,
    normalise_vector,
    transform_direction,
    transform_point,
    transform_points,
    vec3,
)

Vec3 = Tuple[float, float, float]


# ─── Errors ──────────────────────────────────────────────────────────────────

class PanelJointsError(Exception):
    """Base exception for intersection detection errors."""
    pass


class DegeneratePlanesError(PanelJointsError):
    """Planes are (nearly) parallel; no unique intersection line exists."""
    pass


class EmptyOrNullInputError(PanelJointsError):
    """Detection was asked to run on no components."""
    pass


class InvalidConfigError(PanelJointsError, ValueError):
    """DetectionConfig failed validation."""
    pass


# ─── Enums ───────────────────────────────────────────────────────────────────

class JointType(Enum):
    """Classified joint kinds."""
    FINGER = "finger"
    HOLE = "hole"
    SLOT = "slot"


class EdgeMembership(Enum):
    ON_EDGE = "on_edge"
    INTERIOR = "interior"


class PairRelation(Enum):
    """What the sweep decided for one component pair."""
    DISJOINT = "disjoint"                    # world bounding boxes do not touch
    COPLANAR_MERGED = "coplanar_merged"
    COPLANAR_DISJOINT = "coplanar_disjoint"
    PARALLEL = "parallel"
    DEGENERATE = "degenerate"                # plane solve failed
    NO_CONTACT = "no_contact"                # line misses one or both outlines
    INTERSECTING = "intersecting"


class DetectionStatus(Enum):
    SUCCESS = "success"
    EMPTY_OR_NULL_INPUT = "empty_or_null_input"
    INVALID_CONFIG = "invalid_config"


# ─── Configuration ───────────────────────────────────────────────────────────

@dataclass
class DetectionConfig:
    """Tolerances and switches for one detection run."""

    epsilon: float = EPSILON
    edge_tolerance: Optional[float] = None       # defaults to epsilon
    min_segment_length: Optional[float] = None   # defaults to epsilon
    use_bounds_filter: bool = True
    clip_to_shared_span: bool = True             # trim paired segments to common span
    max_workers: int = 1

    @property
    def edge_eps(self) -> float:
        return self.epsilon if self.edge_tolerance is None else self.edge_tolerance

    @property
    def min_length(self) -> float:
        return self.epsilon if self.min_segment_length is None else self.min_segment_length

    def validate(self) -> None:
        if not self.epsilon > 0.0:
            raise ValueError(f"epsilon must be > 0, got {self.epsilon}")
        if self.edge_tolerance is not None and self.edge_tolerance < 0.0:
            raise ValueError(f"edge_tolerance must be >= 0, got {self.edge_tolerance}")
        if self.min_segment_length is not None and self.min_segment_length < 0.0:
            raise ValueError(
                f"min_segment_length must be >= 0, got {self.min_segment_length}"
            )
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")


# ─── Geometry records ────────────────────────────────────────────────────────

@dataclass(eq=False)
class Segment3D:
    """A finite segment. The frame (world or local) is tracked by the caller."""
    start: np.ndarray = field(default_factory=vec3)
    end: np.ndarray = field(default_factory=vec3)

    def __post_init__(self) -> None:
        self.start = as_vec3(self.start)
        self.end = as_vec3(self.end)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Segment3D):
            return NotImplemented
        return bool(
            np.array_equal(self.start, other.start)
            and np.array_equal(self.end, other.end)
        )

    def length(self) -> float:
        return float(np.linalg.norm(self.end - self.start))

    def midpoint(self) -> np.ndarray:
        return 0.5 * (self.start + self.end)

    def reversed(self) -> "Segment3D":
        return Segment3D(self.end.copy(), self.start.copy())

    def transformed(self, matrix: np.ndarray) -> "Segment3D":
        return Segment3D(
            transform_point(matrix, self.start),
            transform_point(matrix, self.end),
        )

    def copy(self) -> "Segment3D":
        return Segment3D(self.start.copy(), self.end.copy())

    def to_tuple(self) -> Tuple[Vec3, Vec3]:
        return (
            tuple(float(c) for c in self.start),
            tuple(float(c) for c in self.end),
        )

    def almost_equal(self, other: "Segment3D", eps: float = EPSILON) -> bool:
        return bool(
            np.allclose(self.start, other.start, atol=eps)
            and np.allclose(self.end, other.end, atol=eps)
        )


@dataclass(frozen=True)
class Joint:
    """A classified intersection, segment in the owning component's local frame."""
    type: JointType
    segment: Segment3D
    partner_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        start, end = self.segment.to_tuple()
        return {
            "type": self.type.value,
            "partner_id": self.partner_id,
            "segment": {"start": list(start), "end": list(end)},
        }


@dataclass(eq=False)
class Component3D:
    """
    A planar polygonal panel with its own local frame.

    Attributes:
        id: Unique (per run) integer identifier
        vertices: Ordered local-frame vertex loop; the last vertex connects to the first
        normal: Plane normal, taken as the world-frame normal of the panel
        transform_3d: Local -> world 4x4 matrix
        inverse_transform: World -> local 4x4 matrix, kept in sync by the caller
        fingers, holes, slots: Insertion-ordered joint collections
    """
    id: int
    vertices: List[np.ndarray] = field(default_factory=list)
    normal: np.ndarray = field(default_factory=lambda: vec3(0.0, 0.0, 1.0))
    transform_3d: np.ndarray = field(default_factory=identity_matrix)
    inverse_transform: np.ndarray = field(default_factory=identity_matrix)
    fingers: List[Joint] = field(default_factory=list)
    holes: List[Joint] = field(default_factory=list)
    slots: List[Joint] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.vertices = [as_vec3(v) for v in self.vertices]
        self.normal = as_vec3(self.normal)
        self.transform_3d = np.asarray(self.transform_3d, dtype=float)
        self.inverse_transform = np.asarray(self.inverse_transform, dtype=float)

    @classmethod
    def from_placement(
        cls,
        component_id: int,
        local_vertices: Sequence[Sequence[float]],
        transform: Optional[np.ndarray] = None,
        local_normal: Sequence[float] = (0.0, 0.0, 1.0),
    ) -> "Component3D":
        """Build a component from a local outline and its local -> world placement.

        The stored normal is the local normal rotated into world space and the
        inverse transform is computed once here.
        """
        if transform is None:
            transform = identity_matrix()
        transform = np.asarray(transform, dtype=float)
        world_normal = normalise_vector(
            transform_direction(transform, as_vec3(local_normal))
        )
        return cls(
            id=component_id,
            vertices=[as_vec3(v) for v in local_vertices],
            normal=world_normal,
            transform_3d=transform,
            inverse_transform=invert_transform(transform),
        )

    def add_vertex(self, x: float, y: float, z: float) -> "Component3D":
        self.vertices.append(vec3(x, y, z))
        return self

    def set_normal(self, x: float, y: float, z: float) -> "Component3D":
        self.normal = vec3(x, y, z)
        return self

    def unit_normal(self) -> np.ndarray:
        """Normalised plane normal (zero vector when degenerate)."""
        return normalise_vector(self.normal)

    def world_vertices(self) -> np.ndarray:
        """(N, 3) array of vertices mapped through transform_3d."""
        if not self.vertices:
            return np.zeros((0, 3))
        return transform_points(self.transform_3d, self.vertices)

    def world_reference_point(self) -> np.ndarray:
        """First vertex in world space; the transform origin when there are none."""
        if not self.vertices:
            return transform_point(self.transform_3d, vec3())
        return transform_point(self.transform_3d, self.vertices[0])

    # Joint collections

    def add_joint(
        self,
        joint_type: JointType,
        segment: Segment3D,
        partner_id: Optional[int] = None,
    ) -> Joint:
        joint = Joint(type=joint_type, segment=segment, partner_id=partner_id)
        self.joints_of(joint_type).append(joint)
        return joint

    def joints_of(self, joint_type: JointType) -> List[Joint]:
        if joint_type == JointType.FINGER:
            return self.fingers
        if joint_type == JointType.HOLE:
            return self.holes
        if joint_type == JointType.SLOT:
            return self.slots
        raise ValueError(f"Unknown joint type: {joint_type}")

    def all_joints(self) -> List[Joint]:
        return list(self.fingers) + list(self.holes) + list(self.slots)

    def joint_count(self) -> int:
        return len(self.fingers) + len(self.holes) + len(self.slots)

    def reset_joints(self) -> None:
        """Clear the joint collections; geometry is untouched."""
        self.fingers.clear()
        self.holes.clear()
        self.slots.clear()

    def to_summary(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "finger_joints": len(self.fingers),
            "hole_joints": len(self.holes),
            "slot_joints": len(self.slots),
            "joints": {
                "fingers": [j.to_dict() for j in self.fingers],
                "holes": [j.to_dict() for j in self.holes],
                "slots": [j.to_dict() for j in self.slots],
            },
        }


@dataclass
class ComponentArray:
    """Owning, ordered collection of the components processed by one run."""
    components: List[Component3D] = field(default_factory=list)

    def add(self, component: Component3D) -> "ComponentArray":
        self.components.append(component)
        return self

    def extend(self, components: Sequence[Component3D]) -> "ComponentArray":
        self.components.extend(components)
        return self

    def get(self, component_id: int) -> Optional[Component3D]:
        for comp in self.components:
            if comp.id == component_id:
                return comp
        return None

    def reset_joints(self) -> None:
        for comp in self.components:
            comp.reset_joints()

    def clear(self) -> None:
        """Tear down: release every component."""
        for comp in self.components:
            comp.reset_joints()
            comp.vertices.clear()
        self.components.clear()

    def results(self) -> List[Dict[str, Any]]:
        return [comp.to_summary() for comp in self.components]

    def __len__(self) -> int:
        return len(self.components)

    def __iter__(self) -> Iterator[Component3D]:
        return iter(self.components)

    def __getitem__(self, index: int) -> Component3D:
        return self.components[index]


# ─── Sweep output ────────────────────────────────────────────────────────────

@dataclass(frozen=True, eq=False)
class IntersectionLine:
    """Infinite line point + t * direction (direction is unit length)."""
    point: np.ndarray
    direction: np.ndarray

    def point_at(self, t: float) -> np.ndarray:
        return self.point + float(t) * self.direction

    def parameter_of(self, point: np.ndarray) -> float:
        return float(np.dot(np.asarray(point, dtype=float) - self.point, self.direction))


@dataclass(eq=False)
class CoplanarMerge:
    """Two coplanar, overlapping components fused into one logical surface."""
    component_ids: Tuple[int, int]
    plane_origin: np.ndarray
    plane_normal: np.ndarray
    basis_u: np.ndarray
    basis_v: np.ndarray
    outline_2d: Union[Polygon, MultiPolygon]

    @property
    def area(self) -> float:
        return float(self.outline_2d.area)

    def world_outline(self) -> List[np.ndarray]:
        """Exterior ring(s) of the merged surface lifted back to world space."""
        polygons = (
            list(self.outline_2d.geoms)
            if isinstance(self.outline_2d, MultiPolygon)
            else [self.outline_2d]
        )
        rings = []
        for poly in polygons:
            if poly.is_empty:
                continue
            coords = np.asarray(poly.exterior.coords[:-1], dtype=float)
            rings.append(
                self.plane_origin
                + coords[:, :1] * self.basis_u
                + coords[:, 1:2] * self.basis_v
            )
        return rings


@dataclass(frozen=True)
class PairJoint:
    """The two joints produced by one classified segment pair."""
    joint_i: Joint
    joint_j: Joint

    def copy(self) -> "PairJoint":
        return PairJoint(
            joint_i=replace(self.joint_i, segment=self.joint_i.segment.copy()),
            joint_j=replace(self.joint_j, segment=self.joint_j.segment.copy()),
        )


@dataclass(frozen=True)
class SegmentCountMismatch:
    """Some clipped segments of a pair found no partner on the other component."""
    component_ids: Tuple[int, int]
    segments_i: int
    segments_j: int
    unpaired_i: int = 0
    unpaired_j: int = 0

    @property
    def unclassified(self) -> int:
        return self.unpaired_i + self.unpaired_j


@dataclass(frozen=True)
class PairOutcome:
    """Result of one processed pair."""
    component_ids: Tuple[int, int]
    relation: PairRelation
    joints: Tuple[PairJoint, ...] = ()
    merge: Optional[CoplanarMerge] = None
    mismatch: Optional[SegmentCountMismatch] = None
    step: int = 0
    total_steps: int = 0

    def snapshot(self) -> "PairOutcome":
        """Copy whose segments and plane vectors share no arrays with this one.

        The joints of an applied outcome are the ones stored on the components,
        so observers get a snapshot instead.
        """
        merge = self.merge
        if merge is not None:
            merge = replace(
                merge,
                plane_origin=merge.plane_origin.copy(),
                plane_normal=merge.plane_normal.copy(),
                basis_u=merge.basis_u.copy(),
                basis_v=merge.basis_v.copy(),
            )
        return replace(
            self,
            joints=tuple(pair.copy() for pair in self.joints),
            merge=merge,
        )


@dataclass
class DetectionResult:
    status: DetectionStatus
    pairs_checked: int = 0
    joints_recorded: int = 0
    outcomes: List[PairOutcome] = field(default_factory=list)
    merges: List[CoplanarMerge] = field(default_factory=list)
    anomalies: List[SegmentCountMismatch] = field(default_factory=list)
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == DetectionStatus.SUCCESS

    def __bool__(self) -> bool:
        return self.ok

    def raise_for_status(self) -> None:
        """Raise the matching PanelJointsError for callers that prefer exceptions."""
        if self.status == DetectionStatus.EMPTY_OR_NULL_INPUT:
            raise EmptyOrNullInputError("No components to process")
        if self.status == DetectionStatus.INVALID_CONFIG:
            raise InvalidConfigError(self.message or "Invalid detection config")
