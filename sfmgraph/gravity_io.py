"""Reading per-image gravity directions."""

from __future__ import annotations

import logging
import os

import numpy as np

from sfmgraph.scene import Image

logger = logging.getLogger(__name__)


def read_gravity(gravity_path: str | os.PathLike, images: dict[int, Image]) -> int:
    """Load gravity directions from a text file into the matching images.

    Each line holds an image name followed by three numbers, separated by
    single spaces: the direction of [0, 1, 0] of the image frame. The pose
    rotation of every matched image is aligned with its gravity. Returns the
    number of images that received a gravity.
    """
    name_idx = {image.file_name: image_id for image_id, image in images.items()}

    counter = 0
    with open(gravity_path, encoding="utf-8") as file:
        for line_no, raw in enumerate(file, start=1):
            line = raw.rstrip("\n")
            if not line.strip():
                continue
            parts = line.split(" ")
            if len(parts) < 4:
                raise ValueError(f"line {line_no}: expected a name and 3 numbers")
            name = parts[0]
            try:
                gravity = np.array([float(item) for item in parts[1:4]])
            except ValueError as exc:
                raise ValueError(f"line {line_no}: invalid number") from exc

            image_id = name_idx.get(name)
            if image_id is None:
                continue
            counter += 1
            image = images[image_id]
            image.gravity_info.set_gravity(gravity)
            image.cam_from_world.rotation = image.gravity_info.r_align.T.copy()

    logger.info("%d images are loaded with gravity", counter)
    return counter