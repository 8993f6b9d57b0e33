#!/usr/bin/env python
"""
Unit tests for the rtree module.

These tests verify the rooted binary node type, predicate-driven traversal,
ASCII rendering and Newick export.
"""

import io
import logging
import pytest

# Import the module to test
from bppconfig.rtree import (
    RootedTreeNode,
    traverse,
    format_ascii,
    show_ascii,
    export_newick,
    quote_label,
    SHOW_LABEL,
    SHOW_BRANCH_LENGTH,
    TRAVERSE_POSTORDER,
    TRAVERSE_PREORDER,
)

# Set up logging
logging.basicConfig(level=logging.ERROR)


def leaf(label, length=0.0):
    return RootedTreeNode(label=label, length=length)


# Fixtures
@pytest.fixture
def small_tree():
    """((A:1,B:1)X:1,C:2)R:0"""
    inner = RootedTreeNode("X", 1.0, leaf("A", 1.0), leaf("B", 1.0))
    return RootedTreeNode("R", 0.0, inner, leaf("C", 2.0))


@pytest.fixture
def balanced_tree():
    """(((A,B)W,(C,D)X)Y,((E,F)Z,G)V)R"""
    y = RootedTreeNode("Y", 1.0,
                       RootedTreeNode("W", 1.0, leaf("A"), leaf("B")),
                       RootedTreeNode("X", 1.0, leaf("C"), leaf("D")))
    v = RootedTreeNode("V", 1.0,
                       RootedTreeNode("Z", 1.0, leaf("E"), leaf("F")),
                       leaf("G"))
    return RootedTreeNode("R", 0.0, y, v)


def positions(nodes):
    return {node.label: i for i, node in enumerate(nodes)}


# Tests
def test_node_requires_zero_or_two_children():
    """Test that a node with a single child cannot be built."""
    with pytest.raises(ValueError):
        RootedTreeNode("X", 1.0, left=leaf("A"))
    with pytest.raises(ValueError):
        RootedTreeNode("X", 1.0, right=leaf("A"))


def test_node_helpers(small_tree):
    """Test leaf detection and counting."""
    assert not small_tree.is_leaf()
    assert small_tree.right.is_leaf()
    assert [n.label for n in small_tree.leaves()] == ["A", "B", "C"]
    assert small_tree.node_count() == 5
    assert small_tree.right.children() == []


def test_postorder_visits_children_first(balanced_tree):
    """Test that every inner node follows both children in postorder."""
    nodes = traverse(balanced_tree, TRAVERSE_POSTORDER, lambda node: True)

    assert len(nodes) == balanced_tree.node_count()
    assert len(set(map(id, nodes))) == len(nodes)

    order = positions(nodes)
    for node in nodes:
        if not node.is_leaf():
            assert order[node.label] > order[node.left.label]
            assert order[node.label] > order[node.right.label]
    assert nodes[-1] is balanced_tree


def test_preorder_visits_parents_first(balanced_tree):
    """Test that every inner node precedes both children in preorder."""
    nodes = traverse(balanced_tree, TRAVERSE_PREORDER, lambda node: True)

    assert len(nodes) == balanced_tree.node_count()
    order = positions(nodes)
    for node in nodes:
        if not node.is_leaf():
            assert order[node.label] < order[node.left.label]
            assert order[node.label] < order[node.right.label]
    assert [n.label for n in nodes] == ["R", "Y", "W", "A", "B", "X", "C", "D",
                                        "V", "Z", "E", "F", "G"]


def test_postorder_exact_order(small_tree):
    """Test the exact postorder sequence."""
    nodes = traverse(small_tree, TRAVERSE_POSTORDER, lambda node: True)
    assert [n.label for n in nodes] == ["A", "B", "X", "C", "R"]


@pytest.mark.parametrize("order", [TRAVERSE_POSTORDER, TRAVERSE_PREORDER])
def test_pruning_skips_subtree(balanced_tree, order):
    """Test that a false predicate on an inner node drops its subtree."""
    nodes = traverse(balanced_tree, order, lambda node: node.label != "Y")
    labels = {n.label for n in nodes}

    assert labels == {"R", "V", "Z", "E", "F", "G"}


def test_predicate_filters_leaves(balanced_tree):
    """Test that leaves are only included when the predicate accepts them."""
    nodes = traverse(balanced_tree, TRAVERSE_POSTORDER, lambda node: not node.is_leaf())
    assert [n.label for n in nodes] == ["W", "X", "Y", "Z", "V", "R"]


def test_predicate_called_once_per_visited_node(balanced_tree):
    """Test that the predicate sees each visited node once."""
    seen = []

    def record(node):
        seen.append(node.label)
        return node.label != "Z"

    traverse(balanced_tree, TRAVERSE_PREORDER, record)
    assert sorted(seen) == sorted(["R", "Y", "W", "A", "B", "X", "C", "D", "V", "Z", "G"])


def test_pruned_root_gives_nothing(small_tree):
    """Test that rejecting the root returns an empty list."""
    assert traverse(small_tree, TRAVERSE_POSTORDER, lambda node: False) == []


def test_traverse_leaf_root_fails():
    """Test that traversal cannot start at a leaf."""
    with pytest.raises(ValueError):
        traverse(leaf("A"), TRAVERSE_POSTORDER, lambda node: True)


def test_traverse_invalid_order(small_tree):
    """Test that an unknown order is rejected."""
    with pytest.raises(ValueError):
        traverse(small_tree, 99, lambda node: True)


def test_format_ascii_labels(small_tree):
    """Test the directory-style ASCII rendering."""
    expected = (
        " R\n"
        "|\n"
        "+---+ X\n"
        "|   |\n"
        "|   +--- A\n"
        "|   |\n"
        "|   +--- B\n"
        "|\n"
        "+--- C\n"
    )
    assert format_ascii(small_tree, SHOW_LABEL) == expected


def test_format_ascii_closes_last_subtree():
    """Test that no bar is drawn below the last child of a level."""
    tree = RootedTreeNode("R", 0.0, leaf("A"),
                          RootedTreeNode("Y", 1.0, leaf("B"), leaf("C")))
    expected = (
        " R\n"
        "|\n"
        "+--- A\n"
        "|\n"
        "+---+ Y\n"
        "    |\n"
        "    +--- B\n"
        "    |\n"
        "    +--- C\n"
    )
    assert format_ascii(tree, SHOW_LABEL) == expected


def test_format_ascii_branch_lengths(small_tree):
    """Test that branch lengths are shown with six decimals."""
    text = format_ascii(small_tree, SHOW_LABEL | SHOW_BRANCH_LENGTH)
    lines = text.splitlines()

    assert lines[0] == " R 0.000000"
    assert lines[2] == "+---+ X 1.000000"
    assert lines[-1] == "+--- C 2.000000"


def test_format_ascii_without_options(small_tree):
    """Test rendering the bare topology."""
    lines = format_ascii(small_tree, 0).splitlines()
    assert lines[2] == "+---+"
    assert lines[4] == "|   +---"


def test_show_ascii_writes_to_file(small_tree):
    """Test printing to a stream."""
    out = io.StringIO()
    show_ascii(small_tree, SHOW_LABEL, file=out)
    assert out.getvalue() == format_ascii(small_tree, SHOW_LABEL)


def test_export_newick(small_tree):
    """Test default Newick export."""
    assert export_newick(small_tree) == (
        "((A:1.000000,B:1.000000)X:1.000000,C:2.000000)R:0.000000;"
    )


def test_export_newick_unlabelled_inner_nodes():
    """Test that inner nodes without labels only carry their length."""
    tree = RootedTreeNode(None, 0.0, leaf("A", 0.5), leaf("B", 0.25))
    assert export_newick(tree) == "(A:0.500000,B:0.250000):0.000000;"


def test_export_newick_serializer(small_tree):
    """Test that the serializer formats every node."""
    newick = export_newick(small_tree, serializer=lambda node: node.label or "")
    assert newick == "((A,B)X,C)R;"


def test_export_newick_single_leaf():
    """Test exporting a lone leaf."""
    assert export_newick(leaf("A", 1.5)) == "A:1.500000;"


def test_export_newick_none():
    """Test that an empty tree exports nothing."""
    assert export_newick(None) is None


@pytest.mark.parametrize("label,expected", [
    ("A", "A"),
    ("sp_1", "sp_1"),
    ("A B", "'A B'"),
    ("C:D", "'C:D'"),
    ("x,y", "'x,y'"),
    ("(z)", "'(z)'"),
    ("a;b", "'a;b'"),
    ("[c]", "'[c]'"),
    ("it's", "'it''s'"),
    (None, ""),
])
def test_quote_label(label, expected):
    """Test that labels with Newick punctuation or blanks are quoted."""
    assert quote_label(label) == expected


def test_export_newick_quotes_labels():
    """Test that leaf and inner labels are quoted where needed."""
    tree = RootedTreeNode("anc x", 0.0, leaf("A B", 1.0), leaf("it's", 1.0))
    assert export_newick(tree) == "('A B':1.000000,'it''s':1.000000)'anc x':0.000000;"


def caterpillar(depth):
    """Build a tree where every inner node has a leaf as its right child."""
    root = leaf("L0", 1.0)
    for i in range(1, depth + 1):
        root = RootedTreeNode(f"N{i}", 1.0, root, leaf(f"L{i}", 1.0))
    return root


def test_deep_tree_traversal():
    """Test that traversal handles trees deeper than the recursion limit."""
    tree = caterpillar(1500)

    postorder = traverse(tree, TRAVERSE_POSTORDER, lambda node: True)
    assert len(postorder) == 3001
    assert postorder[0].label == "L0"
    assert postorder[-1] is tree

    preorder = traverse(tree, TRAVERSE_PREORDER, lambda node: True)
    assert len(preorder) == 3001
    assert preorder[0] is tree


def test_deep_tree_export_and_ascii():
    """Test Newick export and ASCII rendering of a very deep tree."""
    tree = caterpillar(1500)

    newick = export_newick(tree)
    assert newick.startswith("(" * 1500 + "L0:1.000000,L1:1.000000)N1:1.000000")
    assert newick.endswith(",L1500:1.000000)N1500:1.000000;")

    lines = format_ascii(tree, SHOW_LABEL).splitlines()
    assert len(lines) == 2 * 3000 + 1
    assert lines[0] == " N1500"
