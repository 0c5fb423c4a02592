"""Compute normalised feature rays from pixel features."""

from __future__ import annotations

import logging
from collections.abc import Mapping

import numpy as np

from sfmgraph.camera import Camera
from sfmgraph.scene import Image

logger = logging.getLogger(__name__)


def _unit(vector: np.ndarray) -> np.ndarray:
    norm = np.linalg.norm(vector)
    return vector / norm if norm > 0 else vector


def undistort_images(
    cameras: Mapping[int, Camera],
    images: Mapping[int, Image],
    clean_points: bool = True,
) -> int:
    """Fill features_undist of each image with unit rays of its features.

    Images whose rays already match their features in number are skipped
    unless clean_points is set. Returns the number of images processed.
    """
    pending = [
        image
        for image in images.values()
        if clean_points or len(image.features_undist) != len(image.features)
    ]

    logger.info("Undistorting images..")
    for image in pending:
        camera = cameras[image.camera_id]
        image.features_undist = [
            _unit(np.append(camera.cam_from_img(feature), 1.0))
            for feature in image.features
        ]
    logger.info("Image undistortion done")
    return len(pending)