import numpy as np
import pytest

from sfmgraph.camera import Camera
from sfmgraph.image_undistorter import undistort_images
from sfmgraph.scene import Image


def _features():
    return [np.array([150.0, 40.0]), np.array([10.0, 300.0]), np.array([320.0, 240.0])]


@pytest.mark.parametrize(
    "camera",
    [
        Camera("SIMPLE_PINHOLE", [100.0, 50.0, 40.0]),
        Camera("RADIAL", [400.0, 320.0, 240.0, 0.01, 0.001]),
    ],
)
def test_rays_are_unit_and_project_back(camera):
    image = Image(1, 7, "a.jpg", features=_features())
    count = undistort_images({7: camera}, {1: image})
    assert count == 1
    assert len(image.features_undist) == len(image.features)
    for ray, feature in zip(image.features_undist, image.features):
        assert np.linalg.norm(ray) == pytest.approx(1.0)
        assert ray[2] > 0
        back = camera.img_from_cam(ray[:2] / ray[2])
        np.testing.assert_allclose(back, feature, atol=1e-6)


def test_existing_rays_kept_without_clean():
    camera = Camera("SIMPLE_PINHOLE", [100.0, 50.0, 40.0])
    marker = [np.array([9.0, 9.0, 9.0])] * 3
    image = Image(1, 7, "a.jpg", features=_features(), features_undist=list(marker))
    assert undistort_images({7: camera}, {1: image}, clean_points=False) == 0
    np.testing.assert_array_equal(image.features_undist[0], marker[0])

    assert undistort_images({7: camera}, {1: image}, clean_points=True) == 1
    assert np.linalg.norm(image.features_undist[0]) == pytest.approx(1.0)


def test_missing_camera_raises():
    image = Image(1, 3, "a.jpg", features=_features())
    with pytest.raises(KeyError):
        undistort_images({}, {1: image})