"""
Shared test fixtures for panel intersection detection tests.
"""
import math
import sys
from pathlib import Path

import numpy as np
import pytest

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from panel_joints.contracts import Component3D
from panel_joints.vectors import compose, rotation_matrix, translation_matrix

UNIT_SQUARE = [(0, 0, 0), (1, 0, 0), (1, 1, 0), (0, 1, 0)]


def make_panel(component_id, vertices, normal):
    """Panel given directly in world coordinates (identity transforms)."""
    return Component3D(
        id=component_id,
        vertices=[np.array(v, dtype=float) for v in vertices],
        normal=np.array(normal, dtype=float),
    )


def rect(x0, y0, x1, y1):
    """Local-frame rectangle loop in the z=0 plane."""
    return [(x0, y0, 0), (x1, y0, 0), (x1, y1, 0), (x0, y1, 0)]


@pytest.fixture
def xy_square():
    """Unit square in the XY plane, x and y in [0, 1]."""
    return make_panel(1, UNIT_SQUARE, (0, 0, 1))


@pytest.fixture
def xz_square():
    """Unit square in the XZ plane, x and z in [0, 1], sharing the X-axis edge."""
    return make_panel(
        2, [(0, 0, 0), (1, 0, 0), (1, 0, 1), (0, 0, 1)], (0, 1, 0),
    )


@pytest.fixture
def xz_square_placed():
    """Local unit square rotated +90 deg about X into the XZ plane."""
    return Component3D.from_placement(
        2, UNIT_SQUARE, rotation_matrix(math.pi / 2, [1, 0, 0]),
    )


@pytest.fixture
def crossing_panels():
    """Two 2x2 panels crossing through each other's middles along the X axis."""
    floor = make_panel(1, [(-1, -1, 0), (1, -1, 0), (1, 1, 0), (-1, 1, 0)], (0, 0, 1))
    wall = make_panel(2, [(-1, 0, -1), (1, 0, -1), (1, 0, 1), (-1, 0, 1)], (0, 1, 0))
    return floor, wall


@pytest.fixture
def t_junction_panels():
    """A wall standing on the middle of a floor: wall edge on floor interior."""
    floor = make_panel(1, [(0, 0, 0), (2, 0, 0), (2, 2, 0), (0, 2, 0)], (0, 0, 1))
    wall = make_panel(2, [(0, 1, 0), (2, 1, 0), (2, 1, 1), (0, 1, 1)], (0, 1, 0))
    return floor, wall


@pytest.fixture
def box_corner_panels():
    """Bottom 2x1 panel and a side panel placed at x=2 by rotation + translation."""
    bottom = Component3D.from_placement(1, rect(0, 0, 2, 1))
    side_transform = compose(
        translation_matrix([2, 0, 0]),
        rotation_matrix(-math.pi / 2, [0, 1, 0]),
    )
    side = Component3D.from_placement(2, UNIT_SQUARE, side_transform)
    return bottom, side


@pytest.fixture
def u_panel():
    """Non-convex U-shaped panel in the XY plane with a notch over x in (1, 2)."""
    return make_panel(
        1,
        [(0, 0, 0), (3, 0, 0), (3, 3, 0), (2, 3, 0),
         (2, 1, 0), (1, 1, 0), (1, 3, 0), (0, 3, 0)],
        (0, 0, 1),
    )
