"""Classify the matches of image pairs as inliers of their two-view geometry."""

from __future__ import annotations

import math
from collections.abc import Mapping

import numpy as np

from sfmgraph.camera import Camera
from sfmgraph.image_pair import ConfigurationType, ImagePair
from sfmgraph.rigid3d import deg_to_rad
from sfmgraph.scene import Image
from sfmgraph.two_view_geometry import (
    check_cheirality,
    essential_from_motion,
    get_orientation_signum,
    homography_error,
    sampson_error,
    sampson_error_rays,
)
from sfmgraph.types import EPS, InlierThresholdOptions
from sfmgraph.view_graph import ViewGraph

_HOMOGRAPHY_CONFIGS = frozenset(
    {
        ConfigurationType.PLANAR,
        ConfigurationType.PANORAMIC,
        ConfigurationType.PLANAR_OR_PANORAMIC,
    }
)


class ImagePairInliers:
    """Scores the matches of one image pair and stores its inliers on the pair."""

    def __init__(
        self,
        image_pair: ImagePair,
        images: Mapping[int, Image],
        options: InlierThresholdOptions,
        cameras: Mapping[int, Camera] | None = None,
    ) -> None:
        self.image_pair = image_pair
        self.images = images
        self.options = options
        self.cameras = cameras

    def score_error(self) -> float:
        """Truncated error sum of the matches; inliers are written to the pair."""
        config = self.image_pair.config
        if config in _HOMOGRAPHY_CONFIGS:
            return self._score_error_homography()
        if config == ConfigurationType.UNCALIBRATED:
            return self._score_error_fundamental()
        if config == ConfigurationType.CALIBRATED:
            return self._score_error_essential()
        return 0.0

    def _match_images(self) -> tuple[Image, Image]:
        pair = self.image_pair
        return self.images[pair.image_id1], self.images[pair.image_id2]

    def _score_error_essential(self) -> float:
        if self.cameras is None:
            raise ValueError("cameras are required to score a calibrated pair")
        pair = self.image_pair
        pose = pair.cam2_from_cam1
        essential = essential_from_motion(pose)

        # epipole_ij: centre of camera i seen in image j
        epipole12 = np.array(pose.translation, dtype=float)
        epipole21 = pose.inverse().translation
        if epipole12[2] < 0:
            epipole12 = -epipole12
        if epipole21[2] < 0:
            epipole21 = -epipole21

        pair.inliers.clear()
        image1, image2 = self._match_images()

        # Convert the threshold from pixels to normalised coordinates.
        focal1 = self.cameras[image1.camera_id].focal()
        focal2 = self.cameras[image2.camera_id].focal()
        thres = self.options.max_epipolar_error_E * 0.5 * (1.0 / focal1 + 1.0 / focal2)
        sq_threshold = thres * thres

        thres_epipole = math.cos(deg_to_rad(3.0)) + 1e-6
        thres_angle = 1.0 + 1e-6
        rotation_t = pose.rotation.T

        score = 0.0
        for k, (idx1, idx2) in enumerate(pair.matches):
            pt1 = np.asarray(image1.features_undist[int(idx1)], dtype=float)
            pt2 = np.asarray(image2.features_undist[int(idx2)], dtype=float)
            r2 = sampson_error_rays(essential, pt1, pt2)
            if r2 < sq_threshold:
                cheirality = check_cheirality(pose, pt1, pt2, 1e-2, 100.0)
                not_degenerate = (
                    float(pt1 @ (rotation_t @ pt2)) < thres_angle
                    and float(pt1 @ epipole21) < thres_epipole
                    and float(pt2 @ epipole12) < thres_epipole
                )
                if cheirality and not_degenerate:
                    score += r2
                    pair.inliers.append(k)
                    continue
            score += sq_threshold
        return score

    def _score_error_fundamental(self) -> float:
        pair = self.image_pair
        pair.inliers.clear()

        fundamental = np.asarray(pair.F, dtype=float)
        epipole = np.cross(fundamental[0], fundamental[2])
        if not np.any(np.abs(epipole) > EPS):
            epipole = np.cross(fundamental[1], fundamental[2])

        image1, image2 = self._match_images()
        thres = self.options.max_epipolar_error_F
        sq_threshold = thres * thres

        score = 0.0
        candidates: list[tuple[int, float, float]] = []
        for k, (idx1, idx2) in enumerate(pair.matches):
            pt1 = np.asarray(image1.features[int(idx1)], dtype=float)
            pt2 = np.asarray(image2.features[int(idx2)], dtype=float)
            r2 = sampson_error(fundamental, pt1, pt2)
            if r2 < sq_threshold:
                signum = get_orientation_signum(fundamental, epipole, pt1, pt2)
                candidates.append((k, signum, r2))
            else:
                score += sq_threshold

        positive = sum(1 for _, signum, _ in candidates if signum > 0)
        negative = len(candidates) - positive
        # Without a dominant orientation the pair cannot be scored.
        if positive == negative:
            return 0.0
        is_positive = positive > negative

        for k, signum, r2 in candidates:
            if (signum > 0) == is_positive:
                pair.inliers.append(k)
                score += r2
            else:
                score += sq_threshold
        return score

    def _score_error_homography(self) -> float:
        pair = self.image_pair
        pair.inliers.clear()
        image1, image2 = self._match_images()

        thres = self.options.max_epipolar_error_H
        sq_threshold = thres * thres
        homography = np.asarray(pair.H, dtype=float)

        score = 0.0
        for k, (idx1, idx2) in enumerate(pair.matches):
            pt1 = np.asarray(image1.features[int(idx1)], dtype=float)
            pt2 = np.asarray(image2.features[int(idx2)], dtype=float)
            r2 = homography_error(homography, pt1, pt2)
            if r2 < sq_threshold:
                score += r2
                pair.inliers.append(k)
            else:
                score += sq_threshold
        return score


def image_pairs_inlier_count(
    view_graph: ViewGraph,
    cameras: Mapping[int, Camera],
    images: Mapping[int, Image],
    options: InlierThresholdOptions,
    clean_inliers: bool,
) -> None:
    """Recompute the inliers of every valid pair of the view graph.

    Pairs that already have inliers are left alone unless clean_inliers is set.
    """
    for pair in view_graph.image_pairs.values():
        if not clean_inliers and pair.inliers:
            continue
        pair.inliers.clear()
        if not pair.is_valid:
            continue
        ImagePairInliers(pair, images, options, cameras).score_error()