"""Camera intrinsics with simple pinhole and radial distortion models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np


class CameraModel(Enum):
    SIMPLE_PINHOLE = "SIMPLE_PINHOLE"
    PINHOLE = "PINHOLE"
    SIMPLE_RADIAL = "SIMPLE_RADIAL"
    RADIAL = "RADIAL"


_NUM_PARAMS = {
    CameraModel.SIMPLE_PINHOLE: 3,
    CameraModel.PINHOLE: 4,
    CameraModel.SIMPLE_RADIAL: 4,
    CameraModel.RADIAL: 5,
}

_MAX_UNDISTORT_ITERATIONS = 100
_UNDISTORT_TOLERANCE = 1e-14


@dataclass(eq=False)
class Camera:
    """Intrinsic parameters of a camera."""

    model: CameraModel
    params: np.ndarray
    width: int = 0
    height: int = 0
    camera_id: int = 0
    has_prior_focal_length: bool = False
    has_refined_focal_length: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.model, str):
            try:
                self.model = CameraModel[self.model.upper()]
            except KeyError:
                raise ValueError(f"unknown camera model: {self.model}") from None
        self.params = np.array(self.params, dtype=float).reshape(-1)
        expected = _NUM_PARAMS[self.model]
        if self.params.size != expected:
            raise ValueError(
                f"{self.model.value} takes {expected} parameters, "
                f"got {self.params.size}"
            )

    @property
    def focal_length_x(self) -> float:
        return float(self.params[0])

    @property
    def focal_length_y(self) -> float:
        if self.model is CameraModel.PINHOLE:
            return float(self.params[1])
        return float(self.params[0])

    @property
    def principal_point_x(self) -> float:
        index = 2 if self.model is CameraModel.PINHOLE else 1
        return float(self.params[index])

    @property
    def principal_point_y(self) -> float:
        index = 3 if self.model is CameraModel.PINHOLE else 2
        return float(self.params[index])

    def focal(self) -> float:
        """Mean of the two focal lengths."""
        return (self.focal_length_x + self.focal_length_y) / 2.0

    def principal_point(self) -> np.ndarray:
        return np.array([self.principal_point_x, self.principal_point_y])

    def calibration_matrix(self) -> np.ndarray:
        """The 3x3 intrinsic matrix K."""
        return np.array(
            [
                [self.focal_length_x, 0.0, self.principal_point_x],
                [0.0, self.focal_length_y, self.principal_point_y],
                [0.0, 0.0, 1.0],
            ]
        )

    def _radial(self, point: np.ndarray) -> float:
        r2 = float(point @ point)
        if self.model is CameraModel.SIMPLE_RADIAL:
            return self.params[3] * r2
        if self.model is CameraModel.RADIAL:
            return self.params[3] * r2 + self.params[4] * r2 * r2
        return 0.0

    def img_from_cam(self, point) -> np.ndarray:
        """Project normalised camera coordinates to pixel coordinates."""
        p = np.asarray(point, dtype=float).reshape(2)
        distorted = p * (1.0 + self._radial(p))
        return np.array(
            [
                self.focal_length_x * distorted[0] + self.principal_point_x,
                self.focal_length_y * distorted[1] + self.principal_point_y,
            ]
        )

    def cam_from_img(self, point) -> np.ndarray:
        """Map pixel coordinates to undistorted normalised camera coordinates."""
        p = np.asarray(point, dtype=float).reshape(2)
        focal = np.array([self.focal_length_x, self.focal_length_y])
        distorted = (p - self.principal_point()) / focal
        undistorted = distorted.copy()
        if self.model in (CameraModel.SIMPLE_PINHOLE, CameraModel.PINHOLE):
            return undistorted
        for _ in range(_MAX_UNDISTORT_ITERATIONS):
            updated = distorted / (1.0 + self._radial(undistorted))
            done = np.max(np.abs(updated - undistorted)) < _UNDISTORT_TOLERANCE
            undistorted = updated
            if done:
                break
        return undistorted