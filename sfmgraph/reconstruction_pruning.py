"""Split a reconstruction into strongly covisible clusters of images."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Mapping
from itertools import combinations

from sfmgraph.image_pair import ImagePair
from sfmgraph.scene import Image, Track
from sfmgraph.types import image_pair_to_pair_id, pair_id_to_image_pair
from sfmgraph.view_graph import ViewGraph
from sfmgraph.view_graph_manipulation import (
    StrongClusterCriteria,
    establish_strong_clusters,
)

logger = logging.getLogger(__name__)

# The relative pose of a pair is only fixed with at least this many points.
_MIN_COVISIBLE_POINTS = 5
_MIN_CLUSTER_THRESHOLD = 20.0


def prune_weakly_connected_images(
    images: dict[int, Image],
    tracks: Mapping[int, Track],
    min_num_images: int = 2,
    min_num_observations: int = 0,
) -> int:
    """Cluster images by the number of 3D points they share.

    Only tracks with more than two observations count. Pairs sharing at
    least five points, between images with at least min_num_observations
    observations, form a covisibility graph whose strong clusters are
    marked on the images. Returns the number of clusters.
    """
    pair_covisibility: Counter[int] = Counter()
    observation_count: Counter[int] = Counter()
    for track in tracks.values():
        observations = track.observations
        if len(observations) <= 2:
            continue
        for image_id, _ in observations:
            observation_count[image_id] += 1
        for (image_id1, _), (image_id2, _) in combinations(observations, 2):
            if image_id1 == image_id2:
                continue
            pair_covisibility[image_pair_to_pair_id(image_id1, image_id2)] += 1

    visibility_graph = ViewGraph()
    pair_count: list[int] = []
    counter = 0
    for pair_id, count in pair_covisibility.items():
        if count < _MIN_COVISIBLE_POINTS:
            continue
        counter += 1
        image_id1, image_id2 = pair_id_to_image_pair(pair_id)
        if (
            observation_count[image_id1] < min_num_observations
            or observation_count[image_id2] < min_num_observations
        ):
            continue
        pair = ImagePair(image_id1, image_id2)
        pair.is_valid = True
        pair.weight = float(count)
        visibility_graph.image_pairs[pair_id] = pair
        pair_count.append(count)
    logger.info("Established visibility graph with %d pairs", counter)

    if not pair_count:
        raise ValueError("no image pairs share enough observed points")

    pair_count.sort()
    median_count = float(pair_count[len(pair_count) // 2])
    deviations = sorted(abs(count - median_count) for count in pair_count)
    median_deviation = deviations[len(deviations) // 2]

    logger.info(
        "Threshold for Strong Clustering: %s", median_count - median_deviation
    )
    return establish_strong_clusters(
        visibility_graph,
        images,
        StrongClusterCriteria.WEIGHT,
        max(median_count - median_deviation, _MIN_CLUSTER_THRESHOLD),
        min_num_images,
    )