"""Core identifiers, inlier thresholds and rigid/similarity transforms."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

EPS = 1e-12
HALF_PI = math.pi / 2
TWO_PI = 2 * math.pi

# Largest image identifier (image ids are unsigned 32-bit values).
MAX_NUM_IMAGES = 2**32 - 1
INVALID_IMAGE_PAIR_ID = 2**64 - 1


@dataclass
class InlierThresholdOptions:
    """Thresholds used when classifying matches, pairs and observations."""

    # Thresholds for 3D-2D matches
    max_angle_error: float = 1.0  # degrees, global positioning
    max_reprojection_error: float = 1e-2  # bundle adjustment
    min_triangulation_angle: float = 1.0  # degrees, triangulation

    # Thresholds for image pairs
    max_epipolar_error_E: float = 1.0
    max_epipolar_error_F: float = 4.0
    max_epipolar_error_H: float = 4.0

    # Thresholds for edges
    min_inlier_num: float = 30
    min_inlier_ratio: float = 0.25
    max_rotation_error: float = 10.0  # degrees, rotation averaging


def _matrix3(value) -> np.ndarray:
    matrix = np.array(value, dtype=float)
    if matrix.shape != (3, 3):
        raise ValueError(f"expected a 3x3 matrix, got shape {matrix.shape}")
    return matrix


def _vector3(value) -> np.ndarray:
    vector = np.array(value, dtype=float).reshape(-1)
    if vector.shape != (3,):
        raise ValueError(f"expected a 3-vector, got shape {vector.shape}")
    return vector


@dataclass(eq=False)
class Rigid3d:
    """Rigid transform x -> rotation @ x + translation."""

    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    translation: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        self.rotation = _matrix3(self.rotation)
        self.translation = _vector3(self.translation)

    def inverse(self) -> Rigid3d:
        rot_t = self.rotation.T
        return Rigid3d(rot_t, -rot_t @ self.translation)

    def apply(self, point) -> np.ndarray:
        """Transform a point, or an (N, 3) array of points."""
        points = np.asarray(point, dtype=float)
        return points @ self.rotation.T + self.translation

    def __mul__(self, other):
        if isinstance(other, Rigid3d):
            return Rigid3d(
                self.rotation @ other.rotation,
                self.rotation @ other.translation + self.translation,
            )
        return self.apply(other)


@dataclass(eq=False)
class Sim3d:
    """Similarity transform x -> scale * rotation @ x + translation."""

    scale: float = 1.0
    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    translation: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        self.scale = float(self.scale)
        self.rotation = _matrix3(self.rotation)
        self.translation = _vector3(self.translation)

    def inverse(self) -> Sim3d:
        inv_scale = 1.0 / self.scale
        rot_t = self.rotation.T
        return Sim3d(inv_scale, rot_t, -inv_scale * (rot_t @ self.translation))

    def apply(self, point) -> np.ndarray:
        """Transform a point, or an (N, 3) array of points."""
        points = np.asarray(point, dtype=float)
        return self.scale * (points @ self.rotation.T) + self.translation


def _check_image_id(image_id: int) -> int:
    image_id = int(image_id)
    if not 0 <= image_id <= MAX_NUM_IMAGES:
        raise ValueError(f"image id out of range: {image_id}")
    return image_id


def image_pair_to_pair_id(image_id1: int, image_id2: int) -> int:
    """Order-independent identifier of an image pair."""
    id1 = _check_image_id(image_id1)
    id2 = _check_image_id(image_id2)
    low, high = min(id1, id2), max(id1, id2)
    return MAX_NUM_IMAGES * low + high


def pair_id_to_image_pair(pair_id: int) -> tuple[int, int]:
    """Split a pair identifier into its two image ids.

    The first id is the larger one, as it is the remainder of the division.
    """
    pair_id = int(pair_id)
    if pair_id < 0:
        raise ValueError(f"pair id must be non-negative: {pair_id}")
    image_id1 = pair_id % MAX_NUM_IMAGES
    image_id2 = (pair_id - image_id1) // MAX_NUM_IMAGES
    return image_id1, image_id2