import numpy as np
import pytest

from sfmgraph.reconstruction_normalizer import (
    normalize_reconstruction,
    transform_camera_world,
)
from sfmgraph.rigid3d import angle_axis_to_rotation
from sfmgraph.scene import Image, Track
from sfmgraph.types import Rigid3d, Sim3d


def _image(image_id, center, registered=True):
    rotation = angle_axis_to_rotation([0.1 * image_id, 0.0, 0.05])
    center = np.asarray(center, dtype=float)
    return Image(image_id, 1, f"{image_id}.jpg", is_registered=registered,
                 cam_from_world=Rigid3d(rotation, -rotation @ center))


def test_transform_camera_world_scales_camera_points():
    cam = Rigid3d(angle_axis_to_rotation([0.2, -0.1, 0.3]), [1.0, 2.0, 3.0])
    tform = Sim3d(2.0, angle_axis_to_rotation([0.0, 0.4, 0.0]), [-1.0, 0.5, 2.0])
    new = transform_camera_world(tform, cam)
    for point in ([0.0, 0.0, 0.0], [1.0, -2.0, 4.0], [3.0, 3.0, 3.0]):
        np.testing.assert_allclose(
            new.apply(tform.apply(point)), tform.scale * cam.apply(point), atol=1e-12
        )


def test_normalize_few_images_centres_and_scales():
    images = {i: _image(i, [2.0 * (i - 1), 1.0, 0.0]) for i in (1, 2, 3)}
    track = Track(track_id=1, xyz=np.array([1.0, 2.0, 3.0]))
    old_xyz = track.xyz.copy()
    tform = normalize_reconstruction({}, images, {1: track}, extent=10.0)

    centers = np.array([images[i].center() for i in (1, 2, 3)])
    np.testing.assert_allclose(centers.mean(axis=0), 0.0, atol=1e-9)
    assert np.linalg.norm(centers.max(axis=0) - centers.min(axis=0)) == pytest.approx(10.0)
    np.testing.assert_allclose(track.xyz, tform.apply(old_xyz))


def test_normalize_uses_robust_bounds():
    images = {i: _image(i, [float(i), 0.0, 0.0]) for i in range(11)}
    normalize_reconstruction({}, images, {}, extent=10.0, p0=0.1, p1=0.9)
    np.testing.assert_allclose(images[5].center(), 0.0, atol=1e-9)
    assert np.linalg.norm(images[9].center() - images[1].center()) == pytest.approx(10.0)


def test_fixed_scale_preserves_distances_and_skips_unregistered():
    images = {i: _image(i, [float(i), float(i * i), 0.0]) for i in (1, 2, 3)}
    images[4] = _image(4, [50.0, 0.0, 0.0], registered=False)
    before = np.linalg.norm(images[1].center() - images[3].center())
    unregistered = images[4].cam_from_world.translation.copy()

    tform = normalize_reconstruction({}, images, {}, fixed_scale=True)
    assert tform.scale == 1.0
    assert np.linalg.norm(images[1].center() - images[3].center()) == pytest.approx(before)
    np.testing.assert_array_equal(images[4].cam_from_world.translation, unregistered)


def test_no_registered_images_raises():
    with pytest.raises(ValueError):
        normalize_reconstruction({}, {1: _image(1, [0, 0, 0], registered=False)}, {})