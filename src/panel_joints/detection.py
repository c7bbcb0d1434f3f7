"""
Pairwise intersection detection and finger/hole/slot joint classification.

For every unordered pair of components (i ascending, then j > i ascending):

1. Coplanar pairs that overlap are merged into one logical surface; coplanar
   pairs that do not overlap are skipped. Neither records joints.
2. Parallel, offset pairs never meet and are skipped.
3. Otherwise the planes' intersection line is clipped against both outlines,
   the segments whose spans overlap along the line are paired and trimmed to
   their shared span (or paired by index when trimming is off), moved into
   each owner's local frame and classified as on-edge or interior:

       i on edge | j on edge | i gets  | j gets
       ----------+-----------+---------+--------
          yes    |    yes    | finger  | finger
          yes    |    no     | finger  | hole
          no     |    yes    | hole    | finger
          no     |    no     | slot    | slot

classify_pair() is pure and returns both joints of a pair; the sweep applies
them to the two components afterwards, in pair order, so output is the same
whether pairs are classified serially or on a thread pool.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from panel_joints.clipping import find_line_component_intersections
from panel_joints.contracts import (
    Component3D,
    DegeneratePlanesError,
    DetectionConfig,
    DetectionResult,
    DetectionStatus,
    EdgeMembership,
    IntersectionLine,
    Joint,
    JointType,
    PairJoint,
    PairOutcome,
    PairRelation,
    Segment3D,
    SegmentCountMismatch,
)
from panel_joints.edges import classify_segment
from panel_joints.merge import merge_coplanar_components
from panel_joints.plane_solver import find_intersection_line
from panel_joints.predicates import are_coplanar, are_parallel, bounds_overlap

logger = logging.getLogger(__name__)

PairObserver = Callable[[PairOutcome], None]

_JOINT_TABLE: Dict[Tuple[bool, bool], Tuple[JointType, JointType]] = {
    (True, True): (JointType.FINGER, JointType.FINGER),
    (True, False): (JointType.FINGER, JointType.HOLE),
    (False, True): (JointType.HOLE, JointType.FINGER),
    (False, False): (JointType.SLOT, JointType.SLOT),
}


def joint_types_for(on_edge_i: bool, on_edge_j: bool) -> Tuple[JointType, JointType]:
    """Joint types for (component i, component j) given their edge membership."""
    return _JOINT_TABLE[(bool(on_edge_i), bool(on_edge_j))]


def iter_pairs(count: int) -> Iterable[Tuple[int, int]]:
    """Unordered index pairs in sweep order."""
    for i in range(count):
        for j in range(i + 1, count):
            yield i, j


def classify_pair(
    ci: Component3D,
    cj: Component3D,
    config: Optional[DetectionConfig] = None,
) -> PairOutcome:
    """Decide the relationship of one pair and build its joints.

    Components are only read. Degenerate geometry yields a DEGENERATE outcome
    instead of an exception.
    """
    if config is None:
        config = DetectionConfig()
    eps = config.epsilon
    ids = (ci.id, cj.id)

    if are_coplanar(ci, cj, eps):
        merge = merge_coplanar_components(ci, cj, eps)
        if merge is None:
            return PairOutcome(component_ids=ids, relation=PairRelation.COPLANAR_DISJOINT)
        return PairOutcome(
            component_ids=ids, relation=PairRelation.COPLANAR_MERGED, merge=merge,
        )

    if are_parallel(ci, cj, eps):
        return PairOutcome(component_ids=ids, relation=PairRelation.PARALLEL)

    if config.use_bounds_filter and not bounds_overlap(ci, cj, eps):
        return PairOutcome(component_ids=ids, relation=PairRelation.DISJOINT)

    try:
        line = find_intersection_line(ci, cj, eps)
    except DegeneratePlanesError as exc:
        logger.warning(
            "Skipping components %s and %s: %s", ci.id, cj.id, exc,
        )
        return PairOutcome(component_ids=ids, relation=PairRelation.DEGENERATE)

    segments_i = find_line_component_intersections(line, ci, eps, config.min_length)
    segments_j = find_line_component_intersections(line, cj, eps, config.min_length)

    if config.clip_to_shared_span:
        pairs, unpaired_i, unpaired_j = _pair_by_overlap(
            line, segments_i, segments_j, config.min_length,
        )
    else:
        pairs = list(zip(segments_i, segments_j))
        unpaired_i = len(segments_i) - len(pairs)
        unpaired_j = len(segments_j) - len(pairs)

    # A line that misses one outline entirely is plain "no contact".
    mismatch = None
    if segments_i and segments_j and (unpaired_i or unpaired_j):
        mismatch = SegmentCountMismatch(
            component_ids=ids,
            segments_i=len(segments_i),
            segments_j=len(segments_j),
            unpaired_i=unpaired_i,
            unpaired_j=unpaired_j,
        )
        logger.warning(
            "Components %s and %s clipped to %d vs %d segments; "
            "%d left without a partner",
            ci.id, cj.id, len(segments_i), len(segments_j),
            unpaired_i + unpaired_j,
        )

    joints: List[PairJoint] = [
        _classify_segments(ci, cj, seg_i, seg_j, config) for seg_i, seg_j in pairs
    ]

    relation = PairRelation.INTERSECTING if joints else PairRelation.NO_CONTACT
    return PairOutcome(
        component_ids=ids,
        relation=relation,
        joints=tuple(joints),
        mismatch=mismatch,
    )


def apply_outcome(ci: Component3D, cj: Component3D, outcome: PairOutcome) -> int:
    """Append an outcome's joints to its two components. Returns joints added."""
    added = 0
    for pair in outcome.joints:
        ci.joints_of(pair.joint_i.type).append(pair.joint_i)
        cj.joints_of(pair.joint_j.type).append(pair.joint_j)
        added += 2
    return added


def find_and_classify_intersections(
    components: Sequence[Component3D],
    config: Optional[DetectionConfig] = None,
    observer: Optional[PairObserver] = None,
) -> DetectionResult:
    """Run the pairwise sweep and record joints on the components.

    Args:
        components: Components to process, in sweep order.
        config: Tolerances and switches.
        observer: Called with a copy of each pair's PairOutcome after it is
            applied; mutating it does not touch the recorded joints.

    Returns:
        DetectionResult with per-pair outcomes, merges and anomalies.

    Raises:
        ValueError: config does not validate.
    """
    if config is None:
        config = DetectionConfig()
    config.validate()

    comps = list(components)
    pairs = list(iter_pairs(len(comps)))
    total = len(pairs)
    logger.info(
        "Processing %d components (%d comparisons)", len(comps), total,
    )

    if config.max_workers > 1 and total > 1:
        with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
            outcomes = list(executor.map(
                lambda p: classify_pair(comps[p[0]], comps[p[1]], config), pairs,
            ))
    else:
        outcomes = None

    result = DetectionResult(status=DetectionStatus.SUCCESS)
    for step, (i, j) in enumerate(pairs, start=1):
        ci, cj = comps[i], comps[j]
        if outcomes is None:
            outcome = classify_pair(ci, cj, config)
        else:
            outcome = outcomes[step - 1]
        outcome = replace(outcome, step=step, total_steps=total)

        result.joints_recorded += apply_outcome(ci, cj, outcome)
        result.pairs_checked += 1
        result.outcomes.append(outcome)
        if outcome.merge is not None:
            result.merges.append(outcome.merge)
        if outcome.mismatch is not None:
            result.anomalies.append(outcome.mismatch)

        logger.debug(
            "Pair %d/%d (%s, %s): %s, %d joint pair(s)",
            step, total, ci.id, cj.id, outcome.relation.value, len(outcome.joints),
        )
        if observer is not None:
            observer(outcome.snapshot())

    logger.info(
        "Detection complete: %d joints recorded, %d coplanar merges, %d anomalies",
        result.joints_recorded, len(result.merges), len(result.anomalies),
    )
    return result


def detect_component_intersections(
    components: Optional[Sequence[Component3D]],
    config: Optional[DetectionConfig] = None,
    observer: Optional[PairObserver] = None,
) -> DetectionResult:
    """Entry point: detect and classify all component intersections.

    None or an empty collection yields EMPTY_OR_NULL_INPUT and an invalid
    config yields INVALID_CONFIG; in both cases nothing is touched. Otherwise
    the whole sweep runs and the components' finger, hole and slot collections
    are populated. Call raise_for_status() on the result to get exceptions
    instead.
    """
    if components is None or len(components) == 0:
        logger.warning("No components to process")
        return DetectionResult(status=DetectionStatus.EMPTY_OR_NULL_INPUT)
    if config is None:
        config = DetectionConfig()
    try:
        config.validate()
    except ValueError as exc:
        logger.error("Invalid detection config: %s", exc)
        return DetectionResult(status=DetectionStatus.INVALID_CONFIG, message=str(exc))
    return find_and_classify_intersections(components, config, observer)


def reset_joints(components: Iterable[Component3D]) -> None:
    """Clear every component's joint collections, keeping geometry."""
    for comp in components:
        comp.reset_joints()


# ─── Internal ─────────────────────────────────────────────────────────────────

def _span(line: IntersectionLine, seg: Segment3D) -> Tuple[float, float]:
    t0 = line.parameter_of(seg.start)
    t1 = line.parameter_of(seg.end)
    return (t0, t1) if t0 <= t1 else (t1, t0)


def _pair_by_overlap(
    line: IntersectionLine,
    segments_i: Sequence[Segment3D],
    segments_j: Sequence[Segment3D],
    min_length: float,
) -> Tuple[List[Tuple[Segment3D, Segment3D]], int, int]:
    """Pair segments whose spans along the line overlap.

    Both lists are ordered along the line, so they are walked together like a
    sorted merge. Each pair is the shared span, used for both components.
    Returns (pairs, unpaired_i, unpaired_j).
    """
    spans_i = [_span(line, s) for s in segments_i]
    spans_j = [_span(line, s) for s in segments_j]
    paired_i = set()
    paired_j = set()
    pairs: List[Tuple[Segment3D, Segment3D]] = []

    a = b = 0
    while a < len(spans_i) and b < len(spans_j):
        lo = max(spans_i[a][0], spans_j[b][0])
        hi = min(spans_i[a][1], spans_j[b][1])
        if hi - lo >= min_length:
            shared = Segment3D(line.point_at(lo), line.point_at(hi))
            pairs.append((shared, shared))
            paired_i.add(a)
            paired_j.add(b)
        if spans_i[a][1] < spans_j[b][1]:
            a += 1
        else:
            b += 1

    return (
        pairs,
        len(spans_i) - len(paired_i),
        len(spans_j) - len(paired_j),
    )


def _classify_segments(
    ci: Component3D,
    cj: Component3D,
    world_i: Segment3D,
    world_j: Segment3D,
    config: DetectionConfig,
) -> PairJoint:
    local_i = world_i.transformed(ci.inverse_transform)
    local_j = world_j.transformed(cj.inverse_transform)

    on_edge_i = classify_segment(local_i, ci, config.edge_eps) == EdgeMembership.ON_EDGE
    on_edge_j = classify_segment(local_j, cj, config.edge_eps) == EdgeMembership.ON_EDGE
    type_i, type_j = joint_types_for(on_edge_i, on_edge_j)

    return PairJoint(
        joint_i=Joint(type=type_i, segment=local_i, partner_id=cj.id),
        joint_j=Joint(type=type_j, segment=local_j, partner_id=ci.id),
    )
