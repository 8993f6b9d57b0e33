#!/usr/bin/env python
"""
Rooted Tree Module - Strictly binary rooted trees

This module provides the node type for rooted binary trees together with
predicate-driven preorder/postorder traversal, an ASCII renderer and a
Newick exporter.
"""

import sys
import logging

# Options for show_ascii()
SHOW_LABEL = 1
SHOW_BRANCH_LENGTH = 2

# Traversal orders
TRAVERSE_POSTORDER = 1
TRAVERSE_PREORDER = 2

# Columns per indentation level in ASCII output
INDENT_SPACE = 4

# Characters that force a label to be quoted in Newick output
NEWICK_SPECIAL = " \t\r\n:,();[]'"

logger = logging.getLogger(__name__)


class RootedTreeNode:
    """A node of a rooted binary tree; leaves have no children, inner nodes two."""

    def __init__(self, label=None, length=0.0, left=None, right=None):
        """
        Args:
            label (str, optional): Node label (expected on leaves).
            length (float): Length of the branch leading to this node.
            left (RootedTreeNode, optional): Left child.
            right (RootedTreeNode, optional): Right child.

        Raises:
            ValueError: If exactly one child is given.
        """
        if (left is None) != (right is None):
            raise ValueError(f"Node {label!r} must have either two children or none")

        self.label = label
        self.length = length
        self.left = left
        self.right = right

    def is_leaf(self):
        return self.left is None

    def children(self):
        if self.is_leaf():
            return []
        return [self.left, self.right]

    def leaves(self):
        """Return the leaves below this node from left to right."""
        return [node for node in _walk(self) if node.is_leaf()]

    def node_count(self):
        return sum(1 for _ in _walk(self))

    def __repr__(self):
        kind = "leaf" if self.is_leaf() else "inner"
        return f"RootedTreeNode({kind}, label={self.label!r}, length={self.length})"


def _walk(node):
    """Yield node and its descendants in preorder."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        if not current.is_leaf():
            stack.append(current.right)
            stack.append(current.left)


def _traverse_postorder(root, predicate, output):
    stack = [(root, False)]
    while stack:
        node, expanded = stack.pop()
        if expanded:
            output.append(node)
            continue

        if not predicate(node):
            continue

        if node.is_leaf():
            output.append(node)
        else:
            stack.append((node, True))
            stack.append((node.right, False))
            stack.append((node.left, False))


def _traverse_preorder(root, predicate, output):
    stack = [root]
    while stack:
        node = stack.pop()
        if not predicate(node):
            continue

        output.append(node)
        if not node.is_leaf():
            stack.append(node.right)
            stack.append(node.left)


def traverse(root, order, predicate):
    """
    Collect the nodes of a tree in the requested order.

    The predicate is called once for each visited node. For a leaf it only
    decides whether the leaf is collected. For an inner node a false result
    also skips everything below it.

    Args:
        root (RootedTreeNode): Root of the tree; must be an inner node.
        order (int): TRAVERSE_POSTORDER or TRAVERSE_PREORDER.
        predicate (callable): Function taking a node and returning a bool.

    Returns:
        list: The collected nodes.

    Raises:
        ValueError: If root is a leaf or the order is unknown.
    """
    if root is None or root.is_leaf():
        raise ValueError("Traversal must start at an inner node")

    output = []
    if order == TRAVERSE_POSTORDER:
        _traverse_postorder(root, predicate, output)
    elif order == TRAVERSE_PREORDER:
        _traverse_preorder(root, predicate, output)
    else:
        raise ValueError(f"Invalid traversal value: {order}")

    return output


def _node_info(node, options):
    info = ""
    if options & SHOW_LABEL:
        info += f" {node.label if node.label is not None else ''}"
    if options & SHOW_BRANCH_LENGTH:
        info += f" {node.length:f}"
    return info


def _indent_level(root):
    """Depth of the deepest empty child slot below root."""
    deepest = 0
    stack = [(root, 0)]
    while stack:
        node, depth = stack.pop()
        if node.is_leaf():
            deepest = max(deepest, depth + 1)
        else:
            stack.append((node.left, depth + 1))
            stack.append((node.right, depth + 1))
    return deepest


def _ascii_lines(root, active, options, lines):
    """Draw the subtrees of root; 'mark' steps update the open-level markers."""
    pad = " " * (INDENT_SPACE - 1)

    stack = [('draw', root.right, 1), ('mark', 0, 2), ('draw', root.left, 1), ('mark', 0, 1)]
    while stack:
        step, item, value = stack.pop()
        if step == 'mark':
            active[item] = value
            continue

        node, level = item, value

        # spacer line with the vertical bars of the open levels
        lines.append("".join(("|" if active[i] else " ") + pad for i in range(level)))

        prefix = "".join(("|" if active[i] else " ") + pad for i in range(level - 1))
        connector = "+" + "-" * (INDENT_SPACE - 1)
        if not node.is_leaf():
            connector += "+"
        lines.append(prefix + connector + _node_info(node, options))

        # the right subtree is the last one drawn at this level
        if active[level - 1] == 2:
            active[level - 1] = 0

        if not node.is_leaf():
            stack.append(('draw', node.right, level + 1))
            stack.append(('mark', level, 2))
            stack.append(('draw', node.left, level + 1))
            stack.append(('mark', level, 1))


def format_ascii(root, options=SHOW_LABEL):
    """
    Render a tree as ASCII art, one node per line.

    Args:
        root (RootedTreeNode): Root of the tree.
        options (int): Bitwise OR of SHOW_LABEL and SHOW_BRANCH_LENGTH.

    Returns:
        str: The rendered tree, newline terminated.
    """
    indent_max = _indent_level(root)

    # 0 = closed, 1 = left subtree pending, 2 = drawing the last subtree
    active = [0] * (indent_max + 1)

    lines = [_node_info(root, options)]
    if not root.is_leaf():
        _ascii_lines(root, active, options, lines)

    return "".join(line.rstrip() + "\n" for line in lines)


def show_ascii(root, options=SHOW_LABEL, file=None):
    """Print a tree as ASCII art to file (stdout by default)."""
    (file or sys.stdout).write(format_ascii(root, options))


def quote_label(label):
    """
    Quote a label for Newick output if it holds Newick punctuation or blanks.

    Inner single quotes are doubled.
    """
    if label is None:
        return ""
    if any(char in NEWICK_SPECIAL for char in label):
        return "'" + label.replace("'", "''") + "'"
    return label


def _default_serializer(node):
    return f"{quote_label(node.label)}:{node.length:f}"


def _export(root, serializer):
    """Assemble the Newick text bottom-up with an explicit stack."""
    parts = []
    stack = [(root, False)]
    while stack:
        node, expanded = stack.pop()
        if node.is_leaf():
            parts.append(serializer(node))
        elif expanded:
            right = parts.pop()
            left = parts.pop()
            parts.append(f"({left},{right}){serializer(node)}")
        else:
            stack.append((node, True))
            stack.append((node.right, False))
            stack.append((node.left, False))

    return parts.pop()


def export_newick(root, serializer=None):
    """
    Write a tree in Newick format.

    Args:
        root (RootedTreeNode): Root of the tree.
        serializer (callable, optional): Function taking a node and returning
                                         the text written after the node's
                                         subtree (label, length, annotations).
                                         Defaults to 'label:length' with
                                         labels quoted where needed.

    Returns:
        str: Newick string terminated by ';', or None if root is None.
    """
    if root is None:
        return None

    newick = _export(root, serializer or _default_serializer) + ";"
    logger.debug(f"Exported tree with {root.node_count()} nodes to newick")
    return newick
