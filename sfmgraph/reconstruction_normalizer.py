"""Bring a reconstruction into a canonical position and scale."""

from __future__ import annotations

from collections.abc import Mapping

import numpy as np

from sfmgraph.camera import Camera
from sfmgraph.scene import Image, Track
from sfmgraph.types import Rigid3d, Sim3d


def transform_camera_world(new_from_old_world: Sim3d, cam_from_world: Rigid3d) -> Rigid3d:
    """Camera pose expressed in the transformed world.

    The camera frame is scaled with the world, so cam_from_new_world applied
    to a transformed point gives the scaled camera coordinates.
    """
    rotation = cam_from_world.rotation @ new_from_old_world.rotation.T
    translation = (
        new_from_old_world.scale * cam_from_world.translation
        - rotation @ new_from_old_world.translation
    )
    return Rigid3d(rotation, translation)


def normalize_reconstruction(
    cameras: Mapping[int, Camera],
    images: Mapping[int, Image],
    tracks: Mapping[int, Track],
    fixed_scale: bool = False,
    extent: float = 10.0,
    p0: float = 0.1,
    p1: float = 0.9,
) -> Sim3d:
    """Centre the registered cameras at the origin and scale them to extent.

    A robust bounding box between the p0 and p1 quantiles of the camera
    centres is used when there are more than three registered images.
    Returns the applied transform.
    """
    centers = [image.center() for image in images.values() if image.is_registered]
    if not centers:
        raise ValueError("no registered images to normalise")

    coords = np.sort(np.array(centers, dtype=np.float32), axis=0).astype(np.float64)
    n = len(coords)
    if n > 3:
        lo = int(p0 * (n - 1))
        hi = int(p1 * (n - 1))
    else:
        lo, hi = 0, n - 1
    if hi < lo:
        raise ValueError("p0 must not exceed p1")

    bbox_min = coords[lo]
    bbox_max = coords[hi]
    mean_coord = coords[lo : hi + 1].mean(axis=0)

    scale = 1.0
    if not fixed_scale:
        old_extent = float(np.linalg.norm(bbox_max - bbox_min))
        if old_extent >= np.finfo(float).eps:
            scale = extent / old_extent

    tform = Sim3d(scale, np.eye(3), -scale * mean_coord)

    for image in images.values():
        if image.is_registered:
            image.cam_from_world = transform_camera_world(tform, image.cam_from_world)
    for track in tracks.values():
        track.xyz = tform.apply(track.xyz)
    return tform