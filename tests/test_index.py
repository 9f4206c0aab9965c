# tests/test_index.py
"""Tests for the link index."""

from aasdiscovery.index import LinkIndex
from aasdiscovery.links import NameValue

X = NameValue("x", "1")
Y = NameValue("y", "1")
Z = NameValue("z", "1")
W = NameValue("w", "1")


def make_index():
    index = LinkIndex()
    index.add("A", {X, Y})
    index.add("B", {X, Z})
    return index


class TestLinkIndex:
    """Test LinkIndex postings and intersection."""

    def test_ids_for(self):
        index = make_index()
        assert index.ids_for(X) == frozenset({"A", "B"})
        assert index.ids_for(Y) == frozenset({"A"})
        assert index.ids_for(W) == frozenset()

    def test_intersection(self):
        index = make_index()
        assert index.intersect([X]) == {"A", "B"}
        assert index.intersect([Y]) == {"A"}
        assert index.intersect([X, Y]) == {"A"}
        assert index.intersect([Y, Z]) == set()
        assert index.intersect([W]) == set()

    def test_empty_query_matches_nothing(self):
        assert make_index().intersect([]) == set()

    def test_intersection_does_not_alias_postings(self):
        """Test mutating a result leaves the index untouched."""
        index = make_index()
        result = index.intersect([X])
        result.clear()
        assert index.intersect([X]) == {"A", "B"}

    def test_remove_drops_empty_postings(self):
        index = make_index()
        index.remove("A", {X, Y})
        assert Y not in index
        assert index.ids_for(X) == frozenset({"B"})
        assert len(index) == 2

    def test_remove_unknown_is_noop(self):
        index = make_index()
        index.remove("C", {X, W})
        assert index.ids_for(X) == frozenset({"A", "B"})

    def test_replace_moves_id(self):
        index = make_index()
        index.replace("A", frozenset({X, Y}), frozenset({X, W}))
        assert index.intersect([Y]) == set()
        assert index.intersect([W]) == {"A"}
        assert index.intersect([X]) == {"A", "B"}

    def test_from_records(self):
        index = LinkIndex.from_records({"A": {X, Y}, "B": {X, Z}})
        assert index.to_dict() == make_index().to_dict()
        assert index.pairs() == frozenset({X, Y, Z})
