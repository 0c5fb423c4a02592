"""Relative geometry and matches between two images."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

import numpy as np

from sfmgraph.types import Rigid3d, image_pair_to_pair_id


class ConfigurationType(IntEnum):
    """Kind of two-view geometry estimated for an image pair."""

    UNDEFINED = 0
    DEGENERATE = 1
    CALIBRATED = 2
    UNCALIBRATED = 3
    PLANAR = 4
    PANORAMIC = 5
    PLANAR_OR_PANORAMIC = 6
    WATERMARK = 7
    MULTIPLE = 8


@dataclass(eq=False)
class ImagePair:
    """Two images with their relative pose, epipolar matrices and matches."""

    image_id1: int
    image_id2: int
    cam2_from_cam1: Rigid3d = field(default_factory=Rigid3d)
    pair_id: int = field(init=False)
    is_valid: bool = True
    # Initial inlier rate.
    weight: float = 0.0
    config: ConfigurationType = ConfigurationType.UNDEFINED
    E: np.ndarray = field(default_factory=lambda: np.zeros((3, 3)))
    F: np.ndarray = field(default_factory=lambda: np.zeros((3, 3)))
    H: np.ndarray = field(default_factory=lambda: np.zeros((3, 3)))
    # Rows of (feature index in image 1, feature index in image 2).
    matches: np.ndarray = field(
        default_factory=lambda: np.zeros((0, 2), dtype=np.int64)
    )
    # Row indices of the inlier matches.
    inliers: list[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.pair_id = image_pair_to_pair_id(self.image_id1, self.image_id2)
        self.matches = np.asarray(self.matches, dtype=np.int64).reshape(-1, 2)