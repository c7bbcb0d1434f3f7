"""Tests for coplanar component merging."""
import numpy as np
import pytest

from panel_joints.contracts import Component3D
from panel_joints.merge import merge_coplanar_components


def _square(component_id, x0, y0=0.0, z=0.0, size=1.0):
    return Component3D(
        id=component_id,
        vertices=[
            (x0, y0, z), (x0 + size, y0, z),
            (x0 + size, y0 + size, z), (x0, y0 + size, z),
        ],
        normal=(0, 0, 1),
    )


class TestMergeCoplanar:
    def test_overlapping_squares(self):
        merge = merge_coplanar_components(_square(1, 0.0), _square(2, 0.5))
        assert merge is not None
        assert merge.component_ids == (1, 2)
        assert merge.outline_2d.geom_type == "Polygon"
        assert merge.area == pytest.approx(1.5)

    def test_touching_squares_fuse(self):
        merge = merge_coplanar_components(_square(1, 0.0), _square(2, 1.0))
        assert merge is not None
        assert merge.outline_2d.geom_type == "Polygon"
        assert merge.area == pytest.approx(2.0)

    def test_contained_square(self):
        merge = merge_coplanar_components(
            _square(1, 0.0, size=4.0), _square(2, 1.0, y0=1.0),
        )
        assert merge.area == pytest.approx(16.0)

    def test_disjoint_squares(self):
        assert merge_coplanar_components(_square(1, 0.0), _square(2, 3.0)) is None

    def test_offset_planes(self):
        assert merge_coplanar_components(_square(1, 0.0), _square(2, 0.0, z=1.0)) is None

    def test_not_coplanar(self, xy_square, xz_square):
        assert merge_coplanar_components(xy_square, xz_square) is None

    def test_components_untouched(self):
        a = _square(1, 0.0)
        b = _square(2, 0.5)
        before = [v.copy() for v in a.vertices]
        merge_coplanar_components(a, b)
        for v, w in zip(a.vertices, before):
            np.testing.assert_array_equal(v, w)
        assert a.joint_count() == 0
        assert b.joint_count() == 0

    def test_world_outline_lies_in_plane(self):
        merge = merge_coplanar_components(_square(1, 0.0, z=2.0), _square(2, 0.5, z=2.0))
        rings = merge.world_outline()
        assert len(rings) == 1
        ring = rings[0]
        np.testing.assert_allclose(ring[:, 2], 2.0, atol=1e-9)
        assert ring[:, 0].min() == pytest.approx(0.0)
        assert ring[:, 0].max() == pytest.approx(1.5)
