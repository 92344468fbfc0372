import math

import numpy as np
import pytest

from dualtreex.queries import bruteforce_range
from dualtreex.range_search import Range, RangeSearch, range_search

from tests.utils.datasets import gaussian_dataset, gaussian_points


def test_range_validation_and_predicates():
    interval = Range(1.0, 2.0)

    assert interval.contains(1.0) and interval.contains(2.0)
    assert not interval.contains(2.5)
    assert interval.contains_range(Range(1.2, 1.8))
    assert interval.overlaps(Range(1.9, 5.0))
    assert not interval.overlaps(Range(2.1, 5.0))
    assert interval.width == 1.0
    assert Range().hi == math.inf
    with pytest.raises(ValueError):
        Range(2.0, 1.0)
    with pytest.raises(ValueError):
        Range(float("nan"), 1.0)


@pytest.mark.parametrize("mode", ["dual", "single", "naive"])
@pytest.mark.parametrize("tree", ["kd", "ball", "cover"])
def test_range_search_matches_bruteforce(tree, mode):
    reference, queries = gaussian_dataset(
        np.random.default_rng(40), reference_points=200, queries=30, dimension=2
    )
    search = RangeSearch(reference, tree=tree, mode=mode, leaf_size=6)

    neighbors, distances = search.search(queries, Range(0.25, 0.9))
    expected_neighbors, expected_distances = bruteforce_range(
        reference, queries, lo=0.25, hi=0.9
    )

    assert len(neighbors) == 30
    for got, want, got_d, want_d in zip(neighbors, expected_neighbors, distances, expected_distances):
        np.testing.assert_array_equal(got, want)
        np.testing.assert_allclose(got_d, want_d)


@pytest.mark.parametrize("tree", ["kd", "ball", "cover"])
def test_range_self_search_excludes_self(tree):
    points = gaussian_points(np.random.default_rng(41), 120, 2)

    neighbors, _ = range_search(points, None, (0.0, 10.0), tree=tree)
    expected, _ = bruteforce_range(points, lo=0.0, hi=10.0)

    for row, (got, want) in enumerate(zip(neighbors, expected)):
        assert row not in got.tolist()
        np.testing.assert_array_equal(got, want)


def test_results_are_sorted_by_distance():
    points = gaussian_points(np.random.default_rng(42), 80, 3)

    _, distances = range_search(points, points[:5].copy(), (0.0, 1.5), tree="ball")

    for row in distances:
        assert np.all(np.diff(row) >= 0)
