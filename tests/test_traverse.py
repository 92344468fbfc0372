import numpy as np

from dualtreex.algo import PRUNE, DualTreeTraverser, SingleTreeTraverser
from dualtreex.core.metrics import get_metric
from dualtreex.trees import CoverTree, KDTree

from tests.utils.datasets import gaussian_points


class _ExhaustiveRules:
    """Never prunes; records every base case it is asked for."""

    def __init__(self) -> None:
        self.pairs = []

    def base_case(self, query_index, reference_index):
        self.pairs.append((query_index, reference_index))
        return 0.0

    def score(self, query_index, reference_node):
        return 0.0

    def score_nodes(self, query_node, reference_node):
        return 0.0

    def rescore(self, query_index, reference_node, old_score):
        return old_score

    def rescore_nodes(self, query_node, reference_node, old_score):
        return old_score

    def order_scores(self, scores):
        return np.argsort(scores, kind="stable")


class _PruneEverything(_ExhaustiveRules):
    def score(self, query_index, reference_node):
        return PRUNE

    def score_nodes(self, query_node, reference_node):
        return PRUNE


def test_single_tree_visits_every_reference_point_once():
    points = gaussian_points(np.random.default_rng(80), 35, 2)
    tree = KDTree(points, get_metric("euclidean"), leaf_size=4)
    rules = _ExhaustiveRules()

    traverser = SingleTreeTraverser(rules, tree.traits)
    traverser.traverse(0, tree.root)

    assert sorted(ref for _, ref in rules.pairs) == list(range(35))
    assert traverser.stats.num_prunes == 0
    assert traverser.stats.num_leaf_pairs == sum(1 for _ in tree.leaves())


def test_dual_tree_covers_every_pair_once():
    reference = gaussian_points(np.random.default_rng(81), 25, 2)
    queries = gaussian_points(np.random.default_rng(82), 18, 2)
    metric = get_metric("euclidean")
    reference_tree = KDTree(reference, metric, leaf_size=3)
    query_tree = KDTree(queries, metric, leaf_size=5)
    rules = _ExhaustiveRules()

    DualTreeTraverser(rules, reference_tree.traits).traverse(query_tree.root, reference_tree.root)

    assert sorted(rules.pairs) == [(q, r) for q in range(18) for r in range(25)]


def test_cover_tree_traversal_skips_centroid_leaf_pairs():
    points = gaussian_points(np.random.default_rng(83), 20, 2)
    tree = CoverTree(points, get_metric("euclidean"))
    rules = _ExhaustiveRules()

    DualTreeTraverser(rules, tree.traits).traverse(tree.root, tree.root)

    # Each leaf holds exactly its centroid, which scoring already evaluated.
    assert rules.pairs == []


def test_pruned_root_is_never_descended():
    points = gaussian_points(np.random.default_rng(84), 30, 2)
    tree = KDTree(points, get_metric("euclidean"), leaf_size=4)
    rules = _PruneEverything()

    single = SingleTreeTraverser(rules, tree.traits)
    single.traverse(0, tree.root)
    dual = DualTreeTraverser(rules, tree.traits)
    dual.traverse(tree.root, tree.root)

    assert rules.pairs == []
    assert single.stats.num_prunes == 1
    assert dual.stats.num_prunes == 1
    assert dual.stats.num_visited == 0
