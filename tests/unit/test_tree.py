# SPDX-License-Identifier: MIT OR Apache-2.0
# Copyright (c) 2025 John William Creighton (s243a)

"""
Tests for the immutable tree model: flatten, lookups and copy-on-write edits.
"""

import sys
import os
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from mindweaver.mindmap.tree import (
    TopicDocumentError,
    TreeNode,
    ancestor_ids,
    children_of,
    descendant_ids,
    find_node,
    flatten,
    index_by_id,
    insert,
    node_count,
    remove,
    update,
)


def sample_tree():
    """R -> [A, B], A -> [C, D], D -> [E]"""
    return TreeNode.from_dict({
        "id": "R", "title": "Root",
        "children": [
            {"id": "A", "title": "Alpha", "summary": "first",
             "children": [
                 {"id": "C", "title": "Gamma"},
                 {"id": "D", "title": "Delta", "children": [{"id": "E", "title": "Epsilon"}]},
             ]},
            {"id": "B", "title": "Beta", "metadata": {"k": "v"}},
        ],
    })


class TestTreeNodeDocument(unittest.TestCase):
    """Tests for conversion to and from the document shape."""

    def test_round_trip(self):
        doc = sample_tree().to_dict()
        self.assertEqual(TreeNode.from_dict(doc), sample_tree())

    def test_absent_optional_keys_stay_absent(self):
        d = TreeNode(id="x", title="X").to_dict()
        self.assertEqual(d, {"id": "x", "title": "X"})

    def test_missing_title_rejected(self):
        with self.assertRaises(TopicDocumentError):
            TreeNode.from_dict({"id": "x"})

    def test_non_list_children_rejected(self):
        with self.assertRaises(TopicDocumentError):
            TreeNode.from_dict({"id": "x", "title": "X", "children": {"id": "y"}})

    def test_metadata_values_are_strings(self):
        node = TreeNode.from_dict({"id": "x", "title": "X", "metadata": {"rda": 15}})
        self.assertEqual(node.metadata, {"rda": "15"})


class TestFlatten(unittest.TestCase):
    """Tests for pre-order flattening."""

    def test_preorder_and_count(self):
        flat = flatten(sample_tree())
        self.assertEqual([n.id for n in flat], ["R", "A", "C", "D", "E", "B"])
        self.assertEqual(len(flat), node_count(sample_tree()))

    def test_parent_precedes_children(self):
        flat = flatten(sample_tree())
        position = {n.id: i for i, n in enumerate(flat)}
        for n in flat:
            if n.parent_id is not None:
                self.assertLess(position[n.parent_id], position[n.id])

    def test_depth_parent_and_has_children(self):
        index = index_by_id(flatten(sample_tree()))
        self.assertEqual(index["R"].depth, 0)
        self.assertIsNone(index["R"].parent_id)
        self.assertEqual(index["E"].depth, 3)
        self.assertEqual(index["E"].parent_id, "D")
        self.assertTrue(index["D"].has_children)
        self.assertFalse(index["B"].has_children)
        self.assertEqual(index["B"].metadata, {"k": "v"})

    def test_empty(self):
        self.assertEqual(flatten(None), [])

    def test_children_of_keeps_order(self):
        flat = flatten(sample_tree())
        self.assertEqual([n.id for n in children_of("A", flat)], ["C", "D"])


class TestAncestorsAndDescendants(unittest.TestCase):
    """Tests for ancestor/descendant lookups."""

    def setUp(self):
        self.flat = flatten(sample_tree())

    def test_ancestor_length_matches_depth(self):
        for n in self.flat:
            ancestors = ancestor_ids(n.id, self.flat)
            self.assertEqual(len(ancestors), n.depth)
            if ancestors:
                self.assertEqual(ancestors[-1], "R")

    def test_ancestors_nearest_first(self):
        self.assertEqual(ancestor_ids("E", self.flat), ["D", "A", "R"])

    def test_ancestors_of_root_and_unknown(self):
        self.assertEqual(ancestor_ids("R", self.flat), [])
        self.assertEqual(ancestor_ids("nope", self.flat), [])

    def test_descendants(self):
        self.assertEqual(descendant_ids("A", self.flat), {"C", "D", "E"})
        self.assertEqual(descendant_ids("B", self.flat), set())
        self.assertEqual(descendant_ids("nope", self.flat), set())

    def test_descendants_partition_subtree(self):
        for n in self.flat:
            subtree = {n.id} | descendant_ids(n.id, self.flat)
            self.assertNotIn(n.id, descendant_ids(n.id, self.flat))
            expected = {x.id for x in flatten(find_node(sample_tree(), n.id))}
            self.assertEqual(subtree, expected)


class TestUpdate(unittest.TestCase):
    """Tests for copy-on-write partial updates."""

    def test_update_title(self):
        tree = sample_tree()
        new = update(tree, "C", {"title": "X"})
        index = index_by_id(flatten(new))
        self.assertEqual(index["C"].title, "X")
        self.assertEqual(index["D"].title, "Delta")
        self.assertEqual(index["A"].summary, "first")

    def test_update_shares_untouched_subtrees(self):
        tree = sample_tree()
        new = update(tree, "C", {"title": "X"})
        self.assertIs(new.children[1], tree.children[1])
        self.assertIs(new.children[0].children[1], tree.children[0].children[1])
        self.assertEqual(tree.children[0].children[0].title, "Gamma")

    def test_update_root(self):
        new = update(sample_tree(), "R", {"summary": "top"})
        self.assertEqual(new.summary, "top")
        self.assertEqual(new.title, "Root")

    def test_update_unknown_is_noop(self):
        tree = sample_tree()
        self.assertIs(update(tree, "nope", {"title": "X"}), tree)

    def test_update_ignores_structural_fields(self):
        tree = sample_tree()
        new = update(tree, "A", {"id": "Z", "children": ()})
        self.assertEqual(new.children[0].id, "A")
        self.assertEqual(len(new.children[0].children), 2)

    def test_duplicate_ids_only_first_updated(self):
        tree = insert(sample_tree(), "B", TreeNode(id="C", title="Other C"))
        new = update(tree, "C", {"title": "X"})
        titles = [n.title for n in flatten(new) if n.id == "C"]
        self.assertEqual(titles, ["X", "Other C"])


class TestInsertRemove(unittest.TestCase):
    """Tests for insert/remove."""

    def test_insert_appends_last_child(self):
        new = insert(sample_tree(), "A", TreeNode(id="N", title="New"))
        self.assertEqual([c.id for c in find_node(new, "A").children], ["C", "D", "N"])

    def test_insert_under_leaf(self):
        new = insert(sample_tree(), "B", TreeNode(id="N", title="New"))
        self.assertEqual([c.id for c in find_node(new, "B").children], ["N"])

    def test_insert_unknown_parent_is_noop(self):
        tree = sample_tree()
        self.assertIs(insert(tree, "nope", TreeNode(id="N", title="New")), tree)

    def test_insert_then_remove_round_trips(self):
        tree = sample_tree()
        new = remove(insert(tree, "D", TreeNode(id="N", title="New")), "N")
        self.assertEqual(new, tree)
        self.assertEqual(new.to_dict(), tree.to_dict())

    def test_remove_subtree(self):
        new = remove(sample_tree(), "A")
        self.assertEqual([n.id for n in flatten(new)], ["R", "B"])

    def test_remove_does_not_mutate_input(self):
        tree = sample_tree()
        remove(tree, "E")
        self.assertEqual(node_count(tree), 6)

    def test_remove_root_is_not_matched(self):
        tree = sample_tree()
        self.assertIs(remove(tree, "R"), tree)

    def test_remove_unknown_is_noop(self):
        tree = sample_tree()
        self.assertIs(remove(tree, "nope"), tree)

    def test_remove_duplicate_removes_first_only(self):
        tree = insert(sample_tree(), "B", TreeNode(id="C", title="Other C"))
        new = remove(tree, "C")
        self.assertEqual([n.title for n in flatten(new) if n.id == "C"], ["Other C"])


if __name__ == '__main__':
    unittest.main()
