import math

import numpy as np
import pytest

from dualtreex import NeighborSearch, bruteforce_knn, kfn, knn
from dualtreex.neighbors import AllkFN, AllkNN, INVALID_NEIGHBOR
from dualtreex.trees import build_tree

from tests.utils.datasets import (
    clustered_points,
    duplicate_heavy_points,
    gaussian_dataset,
    gaussian_points,
    integer_grid_points,
)

TREES = ["kd", "ball", "cover"]
MODES = ["dual", "single", "naive"]


@pytest.mark.parametrize("mode", MODES)
@pytest.mark.parametrize("tree", TREES)
@pytest.mark.parametrize("policy", ["nearest", "furthest"])
def test_search_matches_bruteforce(policy, tree, mode):
    reference, queries = gaussian_dataset(
        np.random.default_rng(11), reference_points=300, queries=40, dimension=3
    )
    search = NeighborSearch(reference, policy=policy, tree=tree, mode=mode, leaf_size=8)

    neighbors, distances = search.search(queries, k=6)
    expected_neighbors, expected_distances = bruteforce_knn(
        reference, queries, k=6, policy=policy
    )

    assert neighbors.shape == (40, 6)
    np.testing.assert_allclose(distances, expected_distances, rtol=1e-12, atol=1e-12)
    np.testing.assert_array_equal(neighbors, expected_neighbors)


@pytest.mark.parametrize("mode", ["dual", "single"])
@pytest.mark.parametrize("tree", TREES)
@pytest.mark.parametrize("policy", ["nearest", "furthest"])
def test_self_search_matches_bruteforce_and_skips_self(policy, tree, mode):
    points = gaussian_points(np.random.default_rng(12), 250, 2)
    search = NeighborSearch(points, policy=policy, tree=tree, mode=mode, leaf_size=6)

    neighbors, distances = search.search(k=5)
    expected_neighbors, expected_distances = bruteforce_knn(points, k=5, policy=policy)

    np.testing.assert_allclose(distances, expected_distances, rtol=1e-12, atol=1e-12)
    np.testing.assert_array_equal(neighbors, expected_neighbors)
    for row, found in enumerate(neighbors):
        assert row not in found.tolist()


@pytest.mark.parametrize("tree", TREES)
@pytest.mark.parametrize("metric", ["manhattan", "chebyshev"])
def test_non_euclidean_metrics_are_exact(tree, metric):
    reference, queries = gaussian_dataset(
        np.random.default_rng(13), reference_points=200, queries=25, dimension=4
    )
    _, distances = knn(reference, queries, k=4, tree=tree, metric=metric, leaf_size=5)
    _, expected = bruteforce_knn(reference, queries, k=4, metric=metric)

    np.testing.assert_allclose(distances, expected, rtol=1e-12, atol=1e-12)


@pytest.mark.parametrize("tree", TREES)
def test_clustered_data_prunes_and_stays_exact(tree):
    points = clustered_points(np.random.default_rng(14), clusters=6, per_cluster=60, dimension=3)
    search = AllkNN(points, tree=tree, mode="dual", leaf_size=10)

    _, distances = search.search(k=3)
    _, expected = bruteforce_knn(points, k=3)

    np.testing.assert_allclose(distances, expected, rtol=1e-12, atol=1e-12)
    counters = search.last_counters
    assert counters is not None
    assert counters.prunes > 0
    assert counters.base_cases < points.shape[0] * (points.shape[0] - 1)


def test_four_point_scenario_resolves_tie_at_exact_distance():
    reference = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [5.0, 5.0]])
    query = np.array([[0.0, 0.0]])

    for tree in TREES:
        neighbors, distances = knn(reference, query, k=2, tree=tree, leaf_size=1)
        assert neighbors[0, 0] == 0
        assert distances[0, 0] == 0.0
        assert neighbors[0, 1] in (1, 2)
        assert distances[0, 1] == 1.0


@pytest.mark.parametrize("tree", TREES)
def test_single_reference_point_leaves_sentinels(tree):
    reference = np.array([[2.0, -1.0]])
    query = np.array([[0.0, 0.0], [2.0, -1.0]])

    neighbors, distances = knn(reference, query, k=3, tree=tree)

    assert neighbors[:, 0].tolist() == [0, 0]
    assert distances[0, 0] == pytest.approx(math.sqrt(5.0))
    assert np.all(neighbors[:, 1:] == INVALID_NEIGHBOR)
    assert np.all(np.isinf(distances[:, 1:]))


def test_single_point_self_search_is_all_sentinels():
    neighbors, distances = knn(np.array([[1.0, 1.0]]), k=3)

    assert neighbors.tolist() == [[-1, -1, -1]]
    assert np.all(np.isinf(distances))


def test_furthest_sentinels_are_zero():
    neighbors, distances = kfn(np.array([[1.0, 1.0]]), np.array([[0.0, 0.0]]), k=2)

    assert neighbors[0].tolist() == [0, INVALID_NEIGHBOR]
    assert distances[0, 1] == 0.0


def test_nearest_and_furthest_orderings_are_complementary():
    # Points on a circle: every pairwise distance is distinct for a generic angle set.
    angles = np.sort(np.random.default_rng(15).uniform(0.0, 2.0 * np.pi, size=40))
    points = np.column_stack([np.cos(angles), np.sin(angles)])
    k = points.shape[0] - 1

    near_ids, near_dist = AllkNN(points, tree="ball").search(k=k)
    far_ids, far_dist = AllkFN(points, tree="ball").search(k=k)

    np.testing.assert_array_equal(near_ids, far_ids[:, ::-1])
    np.testing.assert_allclose(near_dist, far_dist[:, ::-1])


def test_prebuilt_trees_are_accepted():
    reference, queries = gaussian_dataset(
        np.random.default_rng(16), reference_points=120, queries=30, dimension=2
    )
    reference_tree = build_tree(reference, kind="ball", metric="euclidean", leaf_size=4)
    query_tree = build_tree(queries, kind="ball", metric="euclidean", leaf_size=4)

    search = NeighborSearch(None, tree=reference_tree)
    neighbors, distances = search.search(k=2, query_tree=query_tree)
    _, expected = bruteforce_knn(reference, queries, k=2)

    np.testing.assert_allclose(distances, expected)
    assert neighbors.shape == (30, 2)


def test_mismatched_query_tree_type_is_rejected():
    points = gaussian_points(np.random.default_rng(17), 50, 2)
    search = NeighborSearch(points, tree="kd")
    other = build_tree(points, kind="cover", metric="euclidean")

    with pytest.raises(ValueError, match="matching tree types"):
        search.search(k=1, query_tree=other)


def test_search_does_not_mutate_inputs():
    reference, queries = gaussian_dataset(
        np.random.default_rng(18), reference_points=60, queries=10, dimension=2
    )
    reference_copy = reference.copy()
    queries_copy = queries.copy()

    knn(reference, queries, k=3, tree="cover")

    np.testing.assert_array_equal(reference, reference_copy)
    np.testing.assert_array_equal(queries, queries_copy)


@pytest.mark.parametrize("bad_k", [0, -2, 1.5, True])
def test_invalid_k_is_rejected(bad_k):
    points = gaussian_points(np.random.default_rng(19), 10, 2)
    with pytest.raises(ValueError):
        NeighborSearch(points).search(k=bad_k)


def test_dimension_mismatch_is_rejected():
    search = NeighborSearch(gaussian_points(np.random.default_rng(20), 10, 3))
    with pytest.raises(ValueError, match="dimensionality"):
        search.search(np.zeros((2, 2)), k=1)


def test_empty_reference_is_rejected():
    with pytest.raises(ValueError):
        NeighborSearch(np.zeros((0, 2)))


def test_unknown_mode_and_tree_are_rejected():
    points = gaussian_points(np.random.default_rng(21), 10, 2)
    with pytest.raises(ValueError):
        NeighborSearch(points, mode="parallel")
    with pytest.raises(ValueError):
        NeighborSearch(points, tree="octree")


def test_k_larger_than_reference_pads_with_sentinels():
    reference = gaussian_points(np.random.default_rng(22), 4, 2)
    neighbors, distances = knn(reference, np.zeros((1, 2)), k=6, tree="kd", leaf_size=1)

    assert sorted(neighbors[0, :4].tolist()) == [0, 1, 2, 3]
    assert neighbors[0, 4:].tolist() == [-1, -1]
    assert np.all(np.diff(distances[0, :4]) >= 0)


def _small_datasets(seed: int):
    rng = np.random.default_rng(1_000 + seed)
    count = int(rng.integers(1, 41))
    dimension = int(rng.integers(1, 4))
    yield "gaussian", gaussian_points(rng, count, dimension)
    yield "duplicates", duplicate_heavy_points(rng, count, dimension)
    yield "grid", integer_grid_points(rng, count, dimension)


def _assert_valid_rows(points, neighbors, distances, *, self_search):
    for row, (ids, dists) in enumerate(zip(neighbors, distances)):
        listed = ids[ids != INVALID_NEIGHBOR]
        assert len(set(listed.tolist())) == listed.shape[0]
        if self_search:
            assert row not in listed.tolist()
        if listed.size:
            actual = np.linalg.norm(points[listed] - points[row], axis=1)
            np.testing.assert_allclose(dists[: listed.shape[0]], actual, rtol=1e-12, atol=1e-12)


@pytest.mark.parametrize("mode", MODES)
@pytest.mark.parametrize("tree", TREES)
@pytest.mark.parametrize("policy", ["nearest", "furthest"])
def test_randomised_small_self_search_is_exact(policy, tree, mode):
    for seed in range(30):
        for label, points in _small_datasets(seed):
            k = 1 + seed % 5
            neighbors, distances = NeighborSearch(
                points, policy=policy, tree=tree, mode=mode
            ).search(k=k)
            _, expected = bruteforce_knn(points, k=k, policy=policy)

            np.testing.assert_allclose(
                distances, expected, rtol=1e-12, atol=1e-12, err_msg=f"{label} seed={seed}"
            )
            _assert_valid_rows(points, neighbors, distances, self_search=True)


@pytest.mark.parametrize("tree", TREES)
@pytest.mark.parametrize("policy", ["nearest", "furthest"])
def test_randomised_small_dual_search_with_queries_is_exact(policy, tree):
    for seed in range(20):
        rng = np.random.default_rng(2_000 + seed)
        dimension = int(rng.integers(1, 4))
        reference = duplicate_heavy_points(rng, int(rng.integers(1, 35)), dimension)
        queries = integer_grid_points(rng, int(rng.integers(1, 15)), dimension)

        _, distances = NeighborSearch(reference, policy=policy, tree=tree, mode="dual").search(
            queries, k=3
        )
        _, expected = bruteforce_knn(reference, queries, k=3, policy=policy)

        np.testing.assert_allclose(distances, expected, rtol=1e-12, atol=1e-12, err_msg=f"seed={seed}")


def test_cover_tree_self_search_on_small_gaussian_set():
    points = np.random.default_rng(0).normal(size=(34, 2))

    neighbors, distances = NeighborSearch(points, tree="cover", mode="dual").search(k=4)
    expected_neighbors, expected_distances = bruteforce_knn(points, k=4)

    np.testing.assert_allclose(distances, expected_distances, rtol=1e-12, atol=1e-12)
    np.testing.assert_array_equal(neighbors, expected_neighbors)
    assert np.all(neighbors != INVALID_NEIGHBOR)
