import math

import numpy as np
import pytest

from sfmgraph.camera import Camera
from sfmgraph.scene import Image, Track
from sfmgraph.track_filter import (
    filter_track_triangulation_angle,
    filter_tracks_by_angle,
    filter_tracks_by_reprojection,
)
from sfmgraph.types import Rigid3d
from sfmgraph.view_graph import ViewGraph


def _unit(v):
    v = np.asarray(v, dtype=float)
    return v / np.linalg.norm(v)


def test_reprojection_normalized():
    image = Image(1, 1, "a", is_registered=True,
                  features_undist=[_unit([0.25, 0.1, 1.0]), _unit([0.3, 0.1, 1.0])])
    track = Track(1, xyz=np.array([0.5, 0.2, 2.0]), observations=[(1, 0), (1, 1)])
    count = filter_tracks_by_reprojection(ViewGraph(), {}, {1: image}, {1: track})
    assert count == 1
    assert track.observations == [(1, 0)]


def test_reprojection_pixels():
    camera = Camera("SIMPLE_PINHOLE", [100.0, 0.0, 0.0])
    xyz = np.array([0.5, 0.2, 2.0])
    pixel = camera.img_from_cam(xyz[:2] / xyz[2])
    image = Image(1, 1, "a", features=[pixel, pixel + np.array([5.0, 0.0])])
    track = Track(1, xyz=xyz, observations=[(1, 0), (1, 1)])
    count = filter_tracks_by_reprojection(
        ViewGraph(), {1: camera}, {1: image}, {1: track},
        max_reprojection_error=1.0, in_normalized_image=False,
    )
    assert count == 1
    assert track.observations == [(1, 0)]


def test_reprojection_drops_point_behind_camera():
    image = Image(1, 1, "a", features_undist=[_unit([0.0, 0.0, 1.0])])
    track = Track(1, xyz=np.array([0.0, 0.0, -2.0]), observations=[(1, 0)])
    assert filter_tracks_by_reprojection(ViewGraph(), {}, {1: image}, {1: track}) == 1
    assert track.observations == []


def test_angle_threshold_depends_on_prior_focal():
    angle = math.radians(1.5)
    ray = np.array([math.sin(angle), 0.0, math.cos(angle)])
    cameras = {
        1: Camera("SIMPLE_PINHOLE", [100.0, 0.0, 0.0], has_prior_focal_length=True),
        2: Camera("SIMPLE_PINHOLE", [100.0, 0.0, 0.0], has_prior_focal_length=False),
    }
    images = {
        1: Image(1, 1, "a", features_undist=[ray]),
        2: Image(2, 2, "b", features_undist=[ray]),
    }
    track = Track(1, xyz=np.array([0.0, 0.0, 5.0]), observations=[(1, 0), (2, 0)])
    count = filter_tracks_by_angle(ViewGraph(), cameras, images, {1: track}, 1.0)
    assert count == 1
    assert track.observations == [(2, 0)]


def test_angle_missing_feature_raises():
    cameras = {1: Camera("SIMPLE_PINHOLE", [100.0, 0.0, 0.0])}
    images = {1: Image(1, 1, "a")}
    track = Track(1, xyz=np.array([0.0, 0.0, 5.0]), observations=[(1, 0)])
    with pytest.raises(IndexError):
        filter_tracks_by_angle(ViewGraph(), cameras, images, {1: track})


def test_triangulation_angle():
    images = {
        1: Image(1, 1, "a", cam_from_world=Rigid3d()),
        2: Image(2, 1, "b", cam_from_world=Rigid3d(np.eye(3), [-1.0, 0.0, 0.0])),
    }
    near = Track(1, xyz=np.array([0.0, 0.0, 5.0]), observations=[(1, 0), (2, 0)])
    far = Track(2, xyz=np.array([0.0, 0.0, 1000.0]), observations=[(1, 1), (2, 1)])
    single = Track(3, xyz=np.array([0.0, 0.0, 5.0]), observations=[(1, 2)])
    tracks = {1: near, 2: far, 3: single}
    count = filter_track_triangulation_angle(ViewGraph(), images, tracks, 1.0)
    assert count == 2
    assert near.observations == [(1, 0), (2, 0)]
    assert far.observations == []
    assert single.observations == []