# sfmgraph

Building blocks for global structure-from-motion pipelines: rigid and
similarity transforms, two-view geometry, a view graph of image pairs, and
processors that score inliers, filter relative poses and tracks, cluster
images into strongly connected groups and normalize a reconstruction.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Overview

| Module | Contents |
| --- | --- |
| `sfmgraph.types` | `Rigid3d`, `Sim3d`, `InlierThresholdOptions`, `image_pair_to_pair_id`, `pair_id_to_image_pair` |
| `sfmgraph.rigid3d` | `calc_angle`, `calc_rotation_angle`, `calc_trans`, `calc_trans_angle`, `deg_to_rad`, `rad_to_deg`, angle-axis conversions |
| `sfmgraph.gravity` | `get_align_rot`, `rot_up_to_angle`, `angle_to_rot_up` |
| `sfmgraph.union_find` | `UnionFind` |
| `sfmgraph.camera` | `Camera`, `CameraModel` (simple pinhole, pinhole, simple radial, radial) |
| `sfmgraph.two_view_geometry` | cheirality check, essential and fundamental matrices, Sampson and homography errors |
| `sfmgraph.l1_solver` | `L1Solver`, `L1SolverOptions`, `L1SolverError`: ADMM for min ‖Ax − b‖₁ on dense or scipy sparse matrices |
| `sfmgraph.scene` | `Image`, `Track`, `GravityInfo` |
| `sfmgraph.image_pair` | `ImagePair`, `ConfigurationType` |
| `sfmgraph.view_graph` | `ViewGraph` with connected-component handling |
| `sfmgraph.tree` | `bfs`, `maximum_spanning_tree`, `WeightType` |
| `sfmgraph.gravity_io` | `read_gravity` |
| `sfmgraph.image_pair_inliers` | `ImagePairInliers`, `image_pairs_inlier_count` |
| `sfmgraph.image_undistorter` | `undistort_images` |
| `sfmgraph.reconstruction_normalizer` | `normalize_reconstruction`, `transform_camera_world` |
| `sfmgraph.relpose_filter` | `filter_rotations`, `filter_inlier_num`, `filter_inlier_ratio` |
| `sfmgraph.track_filter` | `filter_tracks_by_reprojection`, `filter_tracks_by_angle`, `filter_track_triangulation_angle` |
| `sfmgraph.view_graph_manipulation` | `sparsify_graph`, `establish_strong_clusters`, `update_image_pairs_config`, `StrongClusterCriteria` |
| `sfmgraph.reconstruction_pruning` | `prune_weakly_connected_images` |

## Example

```python
import numpy as np

from sfmgraph.types import Rigid3d, image_pair_to_pair_id, pair_id_to_image_pair
from sfmgraph.rigid3d import calc_angle, angle_axis_to_rotation
from sfmgraph.union_find import UnionFind

pose1 = Rigid3d()
pose2 = Rigid3d(rotation=angle_axis_to_rotation(np.array([0.0, np.pi / 2, 0.0])))
print(round(calc_angle(pose1, pose2), 6))   # 90.0

pair_id = image_pair_to_pair_id(7, 3)       # same id as image_pair_to_pair_id(3, 7)
print(pair_id_to_image_pair(pair_id))       # (7, 3): the larger id comes first

uf = UnionFind()
uf.union(1, 2)
print(uf.find(1) == uf.find(2))             # True
```

A typical processing pass over a view graph, given dictionaries `cameras`
(camera id to `Camera`) and `images` (image id to `Image`) and a `ViewGraph`
whose pairs carry their matches, configuration and relative geometry:

```python
from sfmgraph.types import InlierThresholdOptions
from sfmgraph.image_undistorter import undistort_images
from sfmgraph.image_pair_inliers import image_pairs_inlier_count
from sfmgraph.relpose_filter import filter_inlier_num, filter_inlier_ratio

options = InlierThresholdOptions()
undistort_images(cameras, images, True)
image_pairs_inlier_count(view_graph, cameras, images, options, True)
filter_inlier_num(view_graph, int(options.min_inlier_num))
filter_inlier_ratio(view_graph, options.min_inlier_ratio)
view_graph.keep_largest_connected_components(images)
```

The filters return the number of pairs or tracks they changed and log a
summary through the standard `logging` module. `maximum_spanning_tree`
returns the root image id and a map from image id to parent image id.

Poses follow the `cam_from_world` convention: a `Rigid3d` maps world
points into the camera frame, and `Image.center()` returns the camera
position in world coordinates.

## Gravity files

`read_gravity(path, images)` reads lines of the form
`<image name> <gx> <gy> <gz>`, separated by single spaces. Images whose
`file_name` matches get the gravity and a pose rotation aligned with it;
the function returns how many images were matched.

## What the package does not do

- It has no command-line program; everything is used from Python.
- It does not read or write feature databases or reconstruction files;
  cameras, images, tracks and image pairs are built in memory by the caller.
- It does not estimate two-view geometry from matches, nor decompose a
  relative pose from it; pairs must already carry their configuration,
  relative pose and E/F/H matrices.
- It does not run rotation averaging, global positioning, triangulation or
  bundle adjustment.
- `Camera` supports only the simple pinhole, pinhole, simple radial and
  radial models.