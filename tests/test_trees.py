import numpy as np
import pytest

from dualtreex.core.metrics import Metric, get_metric
from dualtreex.trees import BallTree, CoverTree, KDTree, build_tree

from tests.utils.datasets import duplicate_heavy_points, gaussian_points


def _all_descendants_once(tree) -> None:
    stored = np.sort(tree.descendant_points(tree.root))
    np.testing.assert_array_equal(stored, np.arange(tree.num_points))


@pytest.mark.parametrize("leaf_size", [1, 3, 16])
def test_kd_tree_boxes_contain_descendants(leaf_size):
    points = gaussian_points(np.random.default_rng(30), 90, 3)
    tree = KDTree(points, get_metric("euclidean"), leaf_size=leaf_size)

    _all_descendants_once(tree)
    for node in tree.nodes:
        members = points[tree.descendant_points(node)]
        assert np.all(members >= node.bound.lo) and np.all(members <= node.bound.hi)
        if node.is_leaf:
            assert 1 <= node.num_points <= leaf_size
        else:
            assert node.num_points == 0
            assert node.num_children == 2


def test_ball_tree_radius_covers_descendants():
    points = gaussian_points(np.random.default_rng(31), 80, 2)
    metric = get_metric("manhattan")
    tree = BallTree(points, metric, leaf_size=4)

    _all_descendants_once(tree)
    for node in tree.nodes:
        members = points[tree.descendant_points(node)]
        distances = metric.pairwise(node.bound.center, members)[0]
        assert distances.max() <= node.furthest_descendant_distance + 1e-12


def test_cover_tree_structure():
    points = gaussian_points(np.random.default_rng(32), 150, 3)
    metric = get_metric("euclidean")
    tree = CoverTree(points, metric, base=1.5)

    _all_descendants_once(tree)
    for node in tree.nodes:
        assert node.num_points == 1
        if node.is_leaf:
            assert node.furthest_descendant_distance == 0.0
            continue
        assert node.child(0).point(0) == node.point(0)
        members = tree.descendant_points(node)
        distances = metric.pairwise(points[node.point(0)], points[members])[0]
        assert distances.max() <= node.furthest_descendant_distance + 1e-12
        assert node.parent is None or node.parent.children.count(node) == 1


@pytest.mark.parametrize("tree_type", ["kd", "ball", "cover"])
@pytest.mark.parametrize("seed", range(6))
def test_descendant_distance_never_shrinks_towards_the_root(tree_type, seed):
    metric = get_metric("euclidean")
    rng = np.random.default_rng(seed)
    for points in (duplicate_heavy_points(rng, 33, 2), gaussian_points(rng, 70, 3)):
        tree = build_tree(points, kind=tree_type, metric=metric, leaf_size=4)
        for node in tree.nodes:
            if node.parent is not None:
                assert node.parent.furthest_descendant_distance >= node.furthest_descendant_distance


def test_cover_tree_handles_duplicates():
    points = np.array([[0.0, 0.0]] * 4 + [[1.0, 1.0]] * 3)
    tree = CoverTree(points, get_metric("euclidean"))

    _all_descendants_once(tree)
    assert tree.root.furthest_descendant_distance == pytest.approx(np.sqrt(2.0))


def test_kd_tree_requires_minkowski_metric():
    custom = Metric("custom", lambda a, b: float(np.abs(a - b).sum()))
    with pytest.raises(ValueError, match="Minkowski"):
        KDTree(np.zeros((3, 2)), custom)


def test_tree_rejects_bad_input():
    with pytest.raises(ValueError):
        KDTree(np.zeros(5), get_metric("euclidean"))
    with pytest.raises(ValueError):
        BallTree(np.zeros((0, 2)), get_metric("euclidean"))
    with pytest.raises(ValueError):
        CoverTree(np.zeros((2, 2)), get_metric("euclidean"), base=1.0)


def test_build_tree_falls_back_to_runtime(monkeypatch: pytest.MonkeyPatch):
    from dualtreex import config as dx_config

    monkeypatch.setenv("DUALTREEX_TREE", "ball")
    monkeypatch.setenv("DUALTREEX_LEAF_SIZE", "7")
    dx_config.reset_runtime_config_cache()

    tree = build_tree(gaussian_points(np.random.default_rng(33), 40, 2))

    assert isinstance(tree, BallTree)
    assert tree.leaf_size == 7
