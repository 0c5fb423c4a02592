import numpy as np
import pytest

from sfmgraph.gravity_io import read_gravity
from sfmgraph.scene import Image


def _images():
    return {1: Image(1, 1, "a.jpg"), 2: Image(2, 1, "b.jpg")}


def test_reads_known_images(tmp_path):
    path = tmp_path / "gravity.txt"
    path.write_text("a.jpg 0 1 0\nmissing.jpg 1 0 0\nb.jpg 0.1 2.0 -0.3\n")
    images = _images()
    assert read_gravity(path, images) == 2
    assert images[1].gravity_info.has_gravity is True
    assert np.allclose(images[2].gravity_info.gravity, [0.1, 2.0, -0.3])


def test_rotation_aligned_with_gravity(tmp_path):
    path = tmp_path / "gravity.txt"
    path.write_text("b.jpg 0.1 2.0 -0.3\n")
    images = _images()
    read_gravity(path, images)
    image = images[2]
    assert np.allclose(image.cam_from_world.rotation, image.gravity_info.r_align.T)
    g = np.array([0.1, 2.0, -0.3])
    # The pose rotation maps gravity onto the image's y axis.
    mapped = image.cam_from_world.rotation @ (g / np.linalg.norm(g))
    assert np.allclose(mapped, [0.0, 1.0, 0.0])
    assert images[1].gravity_info.has_gravity is False


def test_malformed_line_raises(tmp_path):
    path = tmp_path / "gravity.txt"
    path.write_text("a.jpg 0 x 0\n")
    with pytest.raises(ValueError):
        read_gravity(path, _images())


def test_short_line_raises(tmp_path):
    path = tmp_path / "gravity.txt"
    path.write_text("a.jpg 0 1\n")
    with pytest.raises(ValueError):
        read_gravity(path, _images())