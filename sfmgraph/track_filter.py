"""Remove track observations that disagree with the current geometry."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from itertools import combinations

import numpy as np

from sfmgraph.camera import Camera
from sfmgraph.rigid3d import deg_to_rad
from sfmgraph.scene import Image, Track
from sfmgraph.types import EPS
from sfmgraph.view_graph import ViewGraph

logger = logging.getLogger(__name__)


def _unit(vector: np.ndarray) -> np.ndarray:
    norm = np.linalg.norm(vector)
    return vector / norm if norm > 0 else vector


def filter_tracks_by_reprojection(
    view_graph: ViewGraph,
    cameras: Mapping[int, Camera],
    images: Mapping[int, Image],
    tracks: Mapping[int, Track],
    max_reprojection_error: float = 1e-2,
    in_normalized_image: bool = True,
) -> int:
    """Drop observations whose reprojection error reaches the threshold.

    The error is measured in normalised coordinates or, if
    in_normalized_image is false, in pixels. Returns the number of tracks
    that lost observations.
    """
    counter = 0
    for track in tracks.values():
        kept = []
        for image_id, feature_id in track.observations:
            image = images[image_id]
            pt_calc = image.cam_from_world.apply(track.xyz)
            if pt_calc[2] < EPS:
                continue
            pt_reproj = pt_calc[:2] / pt_calc[2]
            if in_normalized_image:
                feature = np.asarray(image.features_undist[feature_id], dtype=float)
                error = np.linalg.norm(pt_reproj - feature[:2] / (feature[2] + EPS))
            else:
                pixel = cameras[image.camera_id].img_from_cam(pt_reproj)
                error = np.linalg.norm(pixel - np.asarray(image.features[feature_id]))
            if error < max_reprojection_error:
                kept.append((image_id, feature_id))
        if len(kept) != len(track.observations):
            counter += 1
            track.observations = kept

    logger.info(
        "Filtered %d / %d tracks by reprojection error", counter, len(tracks)
    )
    return counter


def filter_tracks_by_angle(
    view_graph: ViewGraph,
    cameras: Mapping[int, Camera],
    images: Mapping[int, Image],
    tracks: Mapping[int, Track],
    max_angle_error: float = 1.0,
) -> int:
    """Drop observations whose ray deviates from the point by too large an angle.

    Cameras without a prior focal length are allowed twice the angle.
    Returns the number of tracks that lost observations.
    """
    counter = 0
    thres = math.cos(deg_to_rad(max_angle_error))
    thres_uncalib = math.cos(deg_to_rad(max_angle_error * 2))
    for track in tracks.values():
        kept = []
        for image_id, feature_id in track.observations:
            image = images[image_id]
            feature = np.asarray(image.features_undist[feature_id], dtype=float)
            pt_calc = image.cam_from_world.apply(track.xyz)
            if pt_calc[2] < EPS:
                continue
            thres_cam = (
                thres if cameras[image.camera_id].has_prior_focal_length else thres_uncalib
            )
            if float(_unit(pt_calc) @ feature) > thres_cam:
                kept.append((image_id, feature_id))
        if len(kept) != len(track.observations):
            counter += 1
            track.observations = kept

    logger.info("Filtered %d / %d tracks by angle error", counter, len(tracks))
    return counter


def filter_track_triangulation_angle(
    view_graph: ViewGraph,
    images: Mapping[int, Image],
    tracks: Mapping[int, Track],
    min_angle: float = 1.0,
) -> int:
    """Clear tracks whose viewing rays never span more than min_angle degrees.

    Returns the number of tracks cleared.
    """
    counter = 0
    thres = math.cos(deg_to_rad(min_angle))
    for track in tracks.values():
        directions = [
            _unit(track.xyz - images[image_id].center())
            for image_id, _ in track.observations
        ]
        wide_enough = any(
            float(d1 @ d2) < thres for d1, d2 in combinations(directions, 2)
        )
        if not wide_enough:
            counter += 1
            track.observations.clear()

    logger.info(
        "Filtered %d / %d tracks by too small triangulation angle", counter, len(tracks)
    )
    return counter