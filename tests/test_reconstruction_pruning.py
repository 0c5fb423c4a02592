import itertools

import pytest

from sfmgraph.reconstruction_pruning import prune_weakly_connected_images
from sfmgraph.scene import Image, Track


def make_images(ids):
    return {i: Image(image_id=i, camera_id=1, file_name=f"{i}.jpg") for i in ids}


def add_tracks(tracks, image_ids, count, feature_ids):
    for _ in range(count):
        track_id = len(tracks)
        feature = next(feature_ids)
        tracks[track_id] = Track(
            track_id=track_id,
            observations=[(image_id, feature) for image_id in image_ids],
        )


def two_group_scene():
    images = make_images(range(1, 8))
    tracks = {}
    features = itertools.count()
    add_tracks(tracks, (1, 2, 3), 50, features)
    add_tracks(tracks, (4, 5, 6), 25, features)
    add_tracks(tracks, (2, 3, 4), 6, features)
    return images, tracks, features


def assert_two_groups(images):
    group_a = {images[i].cluster_id for i in (1, 2, 3)}
    group_b = {images[i].cluster_id for i in (4, 5, 6)}
    assert len(group_a) == 1 and len(group_b) == 1
    assert group_a | group_b == {0, 1}


def test_prunes_into_two_clusters():
    images, tracks, _ = two_group_scene()
    assert prune_weakly_connected_images(images, tracks) == 2
    assert_two_groups(images)


def test_image_without_tracks_has_no_cluster():
    images, tracks, _ = two_group_scene()
    prune_weakly_connected_images(images, tracks)
    assert images[7].cluster_id == -1
    assert not images[7].is_registered


def test_short_tracks_are_ignored():
    images, tracks, features = two_group_scene()
    add_tracks(tracks, (1, 5), 200, features)
    assert prune_weakly_connected_images(images, tracks) == 2
    assert_two_groups(images)


def test_min_num_observations_excluding_every_pair_raises():
    images, tracks, _ = two_group_scene()
    with pytest.raises(ValueError):
        prune_weakly_connected_images(images, tracks, min_num_observations=10_000)


def test_no_tracks_raises():
    with pytest.raises(ValueError):
        prune_weakly_connected_images(make_images(range(1, 4)), {})