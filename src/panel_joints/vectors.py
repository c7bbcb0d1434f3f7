"""
Vector and 4x4 matrix primitives.

Vectors are plain (3,) float64 numpy arrays and matrices are (4, 4) row-major
arrays applied to column vectors, the same representation the slab and part
geometry uses everywhere else. Matrix builders delegate to
trimesh.transformations.
"""
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np
from trimesh import transformations as tf

EPSILON = 1e-9


def vec3(x: float = 0.0, y: float = 0.0, z: float = 0.0) -> np.ndarray:
    """Build a (3,) float vector."""
    return np.array([x, y, z], dtype=float)


def as_vec3(value: Sequence[float]) -> np.ndarray:
    """Coerce a 3-sequence (tuple, list, array) to a (3,) float vector."""
    arr = np.asarray(value, dtype=float).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"Expected 3 coordinates, got shape {arr.shape}")
    return arr.copy()


def dot(a: np.ndarray, b: np.ndarray) -> float:
    return float(np.dot(a, b))


def cross(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return np.cross(a, b).astype(float)


def magnitude(v: np.ndarray) -> float:
    return float(np.linalg.norm(v))


def add(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return np.asarray(a, dtype=float) + np.asarray(b, dtype=float)


def subtract(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return np.asarray(a, dtype=float) - np.asarray(b, dtype=float)


def scale(v: np.ndarray, factor: float) -> np.ndarray:
    return np.asarray(v, dtype=float) * float(factor)


def normalise_vector(v: np.ndarray, eps: float = EPSILON) -> np.ndarray:
    """Return v / |v|, or the zero vector when |v| < eps.

    A zero result means "no defined direction"; callers must check it with
    is_zero_vector() before using the result.
    """
    mag = magnitude(v)
    if mag < eps:
        return np.zeros(3)
    return np.asarray(v, dtype=float) / mag


def is_zero_vector(v: np.ndarray, eps: float = EPSILON) -> bool:
    return magnitude(v) < eps


# ─── Matrices ────────────────────────────────────────────────────────────────

def identity_matrix() -> np.ndarray:
    return tf.identity_matrix()


def translation_matrix(offset: Sequence[float]) -> np.ndarray:
    return tf.translation_matrix(as_vec3(offset))


def rotation_matrix(
    angle_rad: float,
    axis: Sequence[float],
    point: Optional[Sequence[float]] = None,
) -> np.ndarray:
    """Rotation of angle_rad about axis, optionally through point."""
    return tf.rotation_matrix(
        angle_rad, as_vec3(axis), None if point is None else as_vec3(point),
    )


def compose(*matrices: np.ndarray) -> np.ndarray:
    """Compose transforms; the rightmost matrix is applied first."""
    return tf.concatenate_matrices(*matrices)


def invert_transform(matrix: np.ndarray) -> np.ndarray:
    return np.linalg.inv(np.asarray(matrix, dtype=float))


def transform_point(matrix: np.ndarray, point: np.ndarray) -> np.ndarray:
    """Apply the 3x4 affine block of a 4x4 matrix to a point (w = 1).

    The bottom row is ignored: no perspective divide.
    """
    m = np.asarray(matrix, dtype=float)
    return m[:3, :3] @ np.asarray(point, dtype=float) + m[:3, 3]


def transform_direction(matrix: np.ndarray, direction: np.ndarray) -> np.ndarray:
    """Apply only the linear 3x3 block (no translation)."""
    m = np.asarray(matrix, dtype=float)
    return m[:3, :3] @ np.asarray(direction, dtype=float)


def transform_points(matrix: np.ndarray, points: Iterable[np.ndarray]) -> np.ndarray:
    """Vectorised transform_point over an (N, 3) array."""
    pts = np.asarray(list(points), dtype=float).reshape(-1, 3)
    m = np.asarray(matrix, dtype=float)
    return pts @ m[:3, :3].T + m[:3, 3]


def plane_basis(normal: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Build an orthonormal (u, v) basis perpendicular to normal."""
    n = normalise_vector(normal)
    if is_zero_vector(n):
        raise ValueError("Normal cannot be zero.")
    if abs(n[2]) < 0.9:
        ref = np.array([0.0, 0.0, 1.0])
    else:
        ref = np.array([1.0, 0.0, 0.0])
    u = np.cross(n, ref)
    u /= np.linalg.norm(u)
    v = np.cross(n, u)
    v /= np.linalg.norm(v)
    return u, v
