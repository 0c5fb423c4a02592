"""Breadth-first search and maximum spanning trees over the view graph."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Sequence
from enum import Enum
from typing import NamedTuple

from sfmgraph.scene import Image
from sfmgraph.union_find import UnionFind
from sfmgraph.view_graph import ViewGraph


class WeightType(Enum):
    INLIER_NUM = "inlier_num"
    INLIER_RATIO = "inlier_ratio"


class BFSResult(NamedTuple):
    # Parent of each vertex; the root is its own parent, unreached ones -1.
    parents: list[int]
    # Number of vertices reached besides the root.
    num_reached: int


def bfs(
    graph: Sequence[Iterable[int]],
    root: int,
    banned_edges: Iterable[tuple[int, int]] = (),
) -> BFSResult:
    """Breadth-first search over an adjacency list, skipping banned edges."""
    banned = set()
    for u, v in banned_edges:
        banned.add((u, v))
        banned.add((v, u))

    parents = [-1] * len(graph)
    parents[root] = root
    visited = {root}
    queue = deque([root])
    counter = 0
    while queue:
        current = queue.popleft()
        for neighbor in graph[current]:
            if (current, neighbor) in banned or neighbor in visited:
                continue
            visited.add(neighbor)
            parents[neighbor] = current
            queue.append(neighbor)
            counter += 1
    return BFSResult(parents, counter)


def maximum_spanning_tree(
    view_graph: ViewGraph,
    images: dict[int, Image],
    weight_type: WeightType = WeightType.INLIER_NUM,
) -> tuple[int, dict[int, int]]:
    """Maximum spanning tree of the registered images.

    Returns the root image id and a map from each image reached from the
    root to its parent; the root is its own parent.
    """
    idx_to_image_id = [i for i, image in images.items() if image.is_registered]
    if not idx_to_image_id:
        raise ValueError("no registered images")
    image_id_to_idx = {image_id: idx for idx, image_id in enumerate(idx_to_image_id)}

    use_ratio = weight_type is WeightType.INLIER_RATIO

    def strength(pair) -> float:
        return pair.weight if use_ratio else float(len(pair.inliers))

    valid_pairs = [p for p in view_graph.image_pairs.values() if p.is_valid]
    max_weight = max((strength(p) for p in valid_pairs), default=0.0)
    max_weight = max(max_weight, 0.0)

    edges = []
    for pair in valid_pairs:
        if not (images[pair.image_id1].is_registered
                and images[pair.image_id2].is_registered):
            continue
        edges.append((
            max_weight - strength(pair),
            image_id_to_idx[pair.image_id1],
            image_id_to_idx[pair.image_id2],
        ))
    edges.sort(key=lambda edge: edge[0])

    uf: UnionFind[int] = UnionFind()
    adjacency: list[list[int]] = [[] for _ in idx_to_image_id]
    for _, idx1, idx2 in edges:
        if uf.find(idx1) != uf.find(idx2):
            uf.union(idx1, idx2)
            adjacency[idx1].append(idx2)
            adjacency[idx2].append(idx1)

    parents_idx = bfs(adjacency, 0).parents
    parents = {
        idx_to_image_id[i]: idx_to_image_id[parent]
        for i, parent in enumerate(parents_idx)
        if parent != -1
    }
    return idx_to_image_id[0], parents