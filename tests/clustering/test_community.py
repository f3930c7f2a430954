"""Tests for greedy modularity community detection."""

from __future__ import annotations

import pytest

from signalgraph.clustering.community import GraphLink, GraphNode, detect_communities


def _nodes(*ids: str) -> list[GraphNode]:
    return [GraphNode(id=node_id) for node_id in ids]


def _links(*pairs: tuple[str, str]) -> list[GraphLink]:
    return [GraphLink(source=a, target=b) for a, b in pairs]


def test_empty_graph_has_no_clusters() -> None:
    result = detect_communities([], [])

    assert result.clusters == {}
    assert result.node_to_cluster == {}
    assert result.modularity == 0.0


def test_two_triangles_joined_by_a_bridge_split_in_two() -> None:
    nodes = _nodes("a", "b", "c", "d", "e", "f")
    links = _links(("a", "b"), ("b", "c"), ("a", "c"), ("d", "e"), ("e", "f"), ("d", "f"), ("c", "d"))

    result = detect_communities(nodes, links)

    assert result.clusters == {0: {"a", "b", "c"}, 1: {"d", "e", "f"}}
    assert result.node_to_cluster["a"] == 0
    assert result.node_to_cluster["f"] == 1
    assert result.modularity == pytest.approx(5 / 14)


def test_isolated_nodes_stay_singletons_with_zero_modularity() -> None:
    result = detect_communities(_nodes("x", "y", "z"), [])

    assert result.clusters == {0: {"x"}, 1: {"y"}, 2: {"z"}}
    assert result.modularity == 0.0


def test_self_loops_and_unknown_endpoints_are_ignored() -> None:
    result = detect_communities(_nodes("a", "b"), _links(("a", "a"), ("a", "ghost")))

    assert result.clusters == {0: {"a"}, 1: {"b"}}
    assert result.modularity == 0.0


def test_partition_covers_every_node_exactly_once() -> None:
    ids = [f"n{i}" for i in range(12)]
    links = _links(*[(ids[i], ids[(i * 5 + 3) % 12]) for i in range(12)], ("n0", "n1"), ("n1", "n2"))

    result = detect_communities(_nodes(*ids), links)

    seen = [node for members in result.clusters.values() for node in members]
    assert sorted(seen) == sorted(ids)
    assert len(seen) == len(set(seen))
    assert set(result.node_to_cluster) == set(ids)
    for cluster_id, members in result.clusters.items():
        assert all(result.node_to_cluster[node] == cluster_id for node in members)
    assert sorted(result.clusters) == list(range(len(result.clusters)))


def test_detection_is_deterministic() -> None:
    ids = [f"s{i}" for i in range(10)]
    links = _links(*[(ids[i], ids[j]) for i in range(10) for j in range(i + 1, 10) if (i + j) % 3 == 0])

    first = detect_communities(_nodes(*ids), links)
    second = detect_communities(_nodes(*ids), links)

    assert first.clusters == second.clusters
    assert first.modularity == second.modularity
