import collections

import numpy
import pytest

from kdindex import (EPSILON, MAX_DEPTH, MAX_ELEMENTS, Bounds, InvalidInput,
                     InvalidQuery, KdTree, Point, PointItem)


@pytest.fixture
def random_items():
    rng = numpy.random.RandomState(0)
    coords = rng.uniform(-10, 10, size=(2000, 2))
    # Snap some points to a grid to get coordinate ties.
    coords[:500] = numpy.round(coords[:500])
    return [PointItem(x, y, data=i) for i, (x, y) in enumerate(coords)]


@pytest.fixture
def random_queries():
    rng = numpy.random.RandomState(1)
    corners = rng.uniform(-12, 12, size=(100, 2, 2))
    corners.sort(axis=1)
    queries = [Bounds(c[0, 0], c[1, 0], c[0, 1], c[1, 1]) for c in corners]
    # Queries with limits on grid coordinates.
    queries += [Bounds(-3., 2., -1., 4.), Bounds(0., 0., -10., 10.),
                Bounds(-10., 10., 5., 5.)]
    return queries


def brute_force(items, query):
    return [item for item in items if query.contains(item.point())]


def ids(items):
    return collections.Counter(id(item) for item in items)


def test_small_input_is_single_leaf():
    items = [PointItem(0, 0), PointItem(1, 1), PointItem(2, 2)]
    tree = KdTree(items)
    assert tree.leaf_count == 1
    assert tree.depth == 1
    assert ids(tree.search((0, 2, 0, 2))) == ids(items)
    assert tree.search((0, 0.5, 0, 0.5)) == [items[0]]


def test_split_on_a_line():
    items = [PointItem(x, 0) for x in range(100)]
    tree = KdTree(items)
    assert tree.node_count == 3
    low, high = list(tree.leaves())
    assert low.depth == high.depth == 1
    assert [item.x for item in low.items] == list(range(50))
    assert [item.x for item in high.items] == list(range(50, 100))
    assert low.bounds == Bounds(0., 50. + EPSILON, 0., EPSILON)
    assert high.bounds == Bounds(50., 99. + EPSILON, 0., EPSILON)

    result = tree.search(tree.bounds)
    assert len(result) == 100
    assert ids(result) == ids(items)


def test_empty_input_gives_empty_tree():
    tree = KdTree([])
    assert tree.is_empty
    assert tree.bounds is None
    assert len(tree) == 0
    assert tree.depth == 0
    assert list(tree) == []
    assert tree.search((-1e9, 1e9, -1e9, 1e9)) == []


def test_coincident_items():
    items = [PointItem(3., 3., data=i) for i in range(1000)]
    tree = KdTree(items)
    assert tree.depth <= MAX_DEPTH + 1
    assert all(len(leaf.items) <= MAX_ELEMENTS for leaf in tree.leaves())
    assert ids(tree.search((3, 3, 3, 3))) == ids(items)
    assert tree.search((3.5, 4, 3, 4)) == []


def test_max_depth_caps_splitting():
    items = [PointItem(1., 1.) for _ in range(100)]
    tree = KdTree(items, max_elements=1, max_depth=3)
    assert tree.depth == 4
    assert tree.leaf_count == 8
    assert ids(tree.search((0, 2, 0, 2))) == ids(items)


def test_conservation(random_items):
    tree = KdTree(random_items)
    assert len(tree) == len(random_items)
    assert ids(tree) == ids(random_items)
    leaves = list(tree.leaves())
    assert len(leaves) == tree.leaf_count
    assert sum(len(leaf.items) for leaf in leaves) == len(random_items)


def test_leaves_are_within_bounds(random_items):
    tree = KdTree(random_items)
    for leaf in tree.leaves():
        assert len(leaf.items) <= MAX_ELEMENTS
        assert all(leaf.bounds.contains(item.point()) for item in leaf.items)


def test_search_matches_brute_force(random_items, random_queries):
    tree = KdTree(random_items)
    for query in random_queries:
        assert ids(tree.search(query)) == ids(brute_force(random_items, query))


@pytest.mark.parametrize("max_elements", [1, 7, 50, 5000])
def test_search_matches_brute_force_any_capacity(
        random_items, random_queries, max_elements):
    tree = KdTree(random_items, max_elements=max_elements)
    for query in random_queries[:20]:
        assert ids(tree.search(query)) == ids(brute_force(random_items, query))


def test_duplicate_items_returned_as_many_times():
    item = PointItem(1, 2)
    tree = KdTree([item, item, PointItem(5, 5)])
    assert tree.search((0, 2, 0, 2)) == [item, item]


def test_boundary_inclusion(random_items):
    tree = KdTree(random_items)
    xs = [item.x for item in random_items]
    ys = [item.y for item in random_items]
    right = random_items[int(numpy.argmax(xs))]
    top = random_items[int(numpy.argmax(ys))]
    assert right in tree.search((right.x, max(xs), right.y, right.y))
    assert top in tree.search((top.x, top.x, top.y, max(ys)))
    assert right in tree.search((right.x, right.x, right.y, right.y))


def test_boundary_inclusion_at_split():
    items = [PointItem(x, y) for x in range(20) for y in range(20)]
    tree = KdTree(items, max_elements=4)
    for x, y in [(0, 0), (19, 19), (10, 10), (9, 10), (10, 9)]:
        result = tree.search((x, x, y, y))
        assert [item.point() for item in result] == [Point(x, y)]


def test_repeated_queries(random_items, random_queries):
    tree = KdTree(random_items)
    for query in random_queries[:10]:
        assert ids(tree.search(query)) == ids(tree.search(query))


def test_build_is_deterministic(random_items):
    tree = KdTree(random_items)
    other = KdTree.build(random_items)
    assert tree.node_count == other.node_count
    for leaf, other_leaf in zip(tree.leaves(), other.leaves()):
        assert leaf.depth == other_leaf.depth
        assert leaf.bounds == other_leaf.bounds
        assert [id(i) for i in leaf.items] == [id(i) for i in other_leaf.items]


def test_accepts_duck_typed_items():
    Site = collections.namedtuple("Site", "name lon lat")
    Site.point = lambda self: (self.lon, self.lat)
    sites = [Site("a", 2.35, 48.85), Site("b", -0.12, 51.5)]
    tree = KdTree(iter(sites))
    assert tree.search((0, 5, 45, 50)) == [sites[0]]


def test_invalid_query():
    tree = KdTree([PointItem(0, 0)])
    with pytest.raises(InvalidQuery):
        tree.search((1, 0, 0, 1))
    with pytest.raises(InvalidQuery):
        tree.search((0, 1, 1, 0))
    with pytest.raises(InvalidQuery):
        KdTree([]).search((1, 0, 0, 1))


@pytest.mark.parametrize("kwargs", [
    {"max_elements": 0},
    {"max_depth": -1},
])
def test_invalid_parameters(kwargs):
    with pytest.raises(InvalidInput):
        KdTree([PointItem(0, 0)], **kwargs)


def test_invalid_items():
    with pytest.raises(InvalidInput):
        KdTree([PointItem(0, 0), PointItem(float("nan"), 1)])
    with pytest.raises(InvalidInput):
        KdTree([(0, 0)])


def test_repr():
    tree = KdTree([PointItem(0, 0)])
    assert repr(tree) == "<KdTree items=1 nodes=1 depth=1>"
