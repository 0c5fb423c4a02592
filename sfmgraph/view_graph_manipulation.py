"""Sparsify, cluster and re-classify the pairs of a view graph."""

from __future__ import annotations

import logging
import random
from collections import defaultdict
from collections.abc import Mapping
from enum import Enum

from sfmgraph.camera import Camera
from sfmgraph.image_pair import ConfigurationType, ImagePair
from sfmgraph.scene import Image
from sfmgraph.two_view_geometry import fundamental_from_motion_and_cameras
from sfmgraph.union_find import UnionFind
from sfmgraph.view_graph import ViewGraph

logger = logging.getLogger(__name__)

_MAX_CLUSTER_ITERATIONS = 10
_WEAK_PAIR_FACTOR = 0.75
_MIN_PAIRS_TO_MERGE = 2


class StrongClusterCriteria(Enum):
    """Which quantity of a pair decides whether it is a strong edge."""

    INLIER_NUM = "inlier_num"
    WEIGHT = "weight"


def _is_registered(images: Mapping[int, Image], image_id: int) -> bool:
    image = images.get(image_id)
    return image is not None and image.is_registered


def sparsify_graph(
    view_graph: ViewGraph,
    images: dict[int, Image],
    expected_degree: int = 50,
    rng: random.Random | None = None,
) -> int:
    """Randomly drop edges between highly connected images.

    An edge between images of degrees d1 and d2 is always kept when either
    degree is at most expected_degree, and otherwise kept with probability
    expected_degree * average_degree / (d1 * d2). Only the largest connected
    component is kept afterwards. Returns the number of edges chosen.
    """
    rng = rng if rng is not None else random.Random()
    num_img = view_graph.keep_largest_connected_components(images)
    adjacency = view_graph.adjacency_list

    total_degree = sum(
        len(neighbors)
        for image_id, neighbors in adjacency.items()
        if _is_registered(images, image_id)
    )
    average_degree = total_degree / num_img if num_img else 0.0

    chosen_edges: set[int] = set()
    for pair_id, pair in view_graph.image_pairs.items():
        if not pair.is_valid:
            continue
        if not (
            _is_registered(images, pair.image_id1)
            and _is_registered(images, pair.image_id2)
        ):
            continue
        degree1 = len(adjacency[pair.image_id1])
        degree2 = len(adjacency[pair.image_id2])
        if degree1 <= expected_degree or degree2 <= expected_degree:
            chosen_edges.add(pair_id)
            continue
        keep_probability = (expected_degree * average_degree) / (degree1 * degree2)
        if rng.random() < keep_probability:
            chosen_edges.add(pair_id)

    for pair_id, pair in view_graph.image_pairs.items():
        if pair_id not in chosen_edges:
            pair.is_valid = False

    view_graph.keep_largest_connected_components(images)
    return len(chosen_edges)


def _is_strong(pair: ImagePair, criteria: StrongClusterCriteria, thres: float) -> bool:
    if criteria is StrongClusterCriteria.INLIER_NUM:
        return len(pair.inliers) > thres
    return pair.weight > thres


def _is_too_weak(
    pair: ImagePair, criteria: StrongClusterCriteria, thres: float
) -> bool:
    limit = _WEAK_PAIR_FACTOR * thres
    if criteria is StrongClusterCriteria.INLIER_NUM:
        return len(pair.inliers) < limit
    return pair.weight < limit


def establish_strong_clusters(
    view_graph: ViewGraph,
    images: dict[int, Image],
    criteria: StrongClusterCriteria = StrongClusterCriteria.INLIER_NUM,
    min_thres: float = 100,
    min_num_images: int = 2,
) -> int:
    """Split the graph into clusters joined by strong edges.

    Pairs above min_thres join their images. Two clusters are then merged
    when at least two pairs of at least 0.75 * min_thres link them, for up
    to ten rounds. Pairs between different clusters are invalidated and
    every image gets its cluster id. Returns the number of clusters.
    min_num_images is accepted but does not restrict the clusters.
    """
    view_graph.keep_largest_connected_components(images)

    uf: UnionFind[int] = UnionFind()
    for pair in view_graph.image_pairs.values():
        if pair.is_valid and _is_strong(pair, criteria, min_thres):
            uf.union(pair.image_id1, pair.image_id2)

    iteration = 0
    merged = True
    while merged:
        merged = False
        iteration += 1
        if iteration > _MAX_CLUSTER_ITERATIONS:
            break

        num_pairs: dict[int, dict[int, int]] = defaultdict(lambda: defaultdict(int))
        for pair in view_graph.image_pairs.values():
            if not pair.is_valid or _is_too_weak(pair, criteria, min_thres):
                continue
            root1 = uf.find(pair.image_id1)
            root2 = uf.find(pair.image_id2)
            if root1 == root2:
                continue
            num_pairs[root1][root2] += 1
            num_pairs[root2][root1] += 1

        for root1, counter in num_pairs.items():
            for root2, count in counter.items():
                if root1 <= root2:
                    continue
                if count >= _MIN_PAIRS_TO_MERGE:
                    merged = True
                    uf.union(root1, root2)

    for pair in view_graph.image_pairs.values():
        if pair.is_valid and uf.find(pair.image_id1) != uf.find(pair.image_id2):
            pair.is_valid = False

    num_comp = view_graph.mark_connected_components(images)
    logger.info(
        "Clustering take %d iterations. Images are grouped into %d clusters "
        "after strong-clustering",
        iteration,
        num_comp,
    )
    return num_comp


def update_image_pairs_config(
    view_graph: ViewGraph,
    cameras: Mapping[int, Camera],
    images: Mapping[int, Image],
) -> int:
    """Promote uncalibrated pairs between mostly calibrated cameras.

    A camera counts as calibrated when more than half of its valid pairs
    (among cameras with a prior focal length) are calibrated. Uncalibrated
    pairs between two such cameras become calibrated, and their fundamental
    matrix is recomputed from the relative pose. Returns the number of pairs
    promoted.
    """
    totals: dict[int, int] = defaultdict(int)
    calibrated: dict[int, int] = defaultdict(int)
    for pair in view_graph.image_pairs.values():
        if not pair.is_valid:
            continue
        camera_id1 = images[pair.image_id1].camera_id
        camera_id2 = images[pair.image_id2].camera_id
        if not (
            cameras[camera_id1].has_prior_focal_length
            and cameras[camera_id2].has_prior_focal_length
        ):
            continue
        if pair.config == ConfigurationType.CALIBRATED:
            for camera_id in (camera_id1, camera_id2):
                totals[camera_id] += 1
                calibrated[camera_id] += 1
        elif pair.config == ConfigurationType.UNCALIBRATED:
            for camera_id in (camera_id1, camera_id2):
                totals[camera_id] += 1

    camera_validity = {
        camera_id: total > 0 and calibrated[camera_id] / total > 0.5
        for camera_id, total in totals.items()
    }

    promoted = 0
    for pair in view_graph.image_pairs.values():
        if not pair.is_valid or pair.config != ConfigurationType.UNCALIBRATED:
            continue
        camera_id1 = images[pair.image_id1].camera_id
        camera_id2 = images[pair.image_id2].camera_id
        if camera_validity.get(camera_id1, False) and camera_validity.get(
            camera_id2, False
        ):
            pair.config = ConfigurationType.CALIBRATED
            pair.F = fundamental_from_motion_and_cameras(
                cameras[camera_id1], cameras[camera_id2], pair.cam2_from_cam1
            )
            promoted += 1
    return promoted