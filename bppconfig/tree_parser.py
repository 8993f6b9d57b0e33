#!/usr/bin/env python
"""
Tree Parser Module - Parses Newick species trees into rooted binary trees

This module reads Newick strings or files with DendroPy and converts the
result into RootedTreeNode objects. Only strictly binary trees are accepted.
"""

import os
import logging
import dendropy

from bppconfig.rtree import RootedTreeNode


class TreeParser:
    """Parses Newick format trees into RootedTreeNode trees."""

    def __init__(self, config=None):
        """
        Initialize the tree parser.

        Args:
            config (dict, optional): Configuration dictionary. Can include
                                     'schema' with DendroPy newick reader
                                     keyword arguments.
        """
        self.config = config or {}
        self.tree = None
        self.root = None
        self.logger = logging.getLogger(__name__)

    def parse_from_file(self, filepath):
        """
        Parse a Newick tree from a file path.

        Args:
            filepath (str): Path to the Newick tree file.

        Returns:
            RootedTreeNode: Root of the parsed tree.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ValueError: If the file cannot be parsed as a binary Newick tree.
        """
        if not os.path.exists(filepath):
            raise FileNotFoundError(f"Tree file not found: {filepath}")

        self.logger.info(f"Parsing tree from file: {filepath}")

        try:
            self.tree = dendropy.Tree.get(
                path=filepath,
                schema="newick",
                **self._get_schema_kwargs()
            )
        except Exception as e:
            self.logger.error(f"Failed to parse tree file: {str(e)}")
            raise ValueError(f"Could not parse tree file: {str(e)}")

        return self._convert()

    def parse_from_string(self, newick_string):
        """
        Parse a Newick tree from a string.

        Args:
            newick_string (str): Newick tree string.

        Returns:
            RootedTreeNode: Root of the parsed tree.

        Raises:
            ValueError: If the string cannot be parsed as a binary Newick tree.
        """
        self.logger.info("Parsing tree from string")

        try:
            self.tree = dendropy.Tree.get(
                data=newick_string,
                schema="newick",
                **self._get_schema_kwargs()
            )
        except Exception as e:
            self.logger.error(f"Failed to parse tree string: {str(e)}")
            raise ValueError(f"Could not parse tree string: {str(e)}")

        return self._convert()

    def get_rooted_tree(self):
        """
        Return the root of the last parsed tree.

        Raises:
            ValueError: If no tree has been parsed yet.
        """
        if self.root is None:
            raise ValueError("No tree has been parsed yet")

        return self.root

    def _get_schema_kwargs(self):
        """
        Get keyword arguments for the DendroPy newick reader.

        Returns:
            dict: Schema-specific keyword arguments.
        """
        # Species names are kept exactly as written in the control file
        schema_kwargs = {
            'preserve_underscores': True,
            'suppress_internal_node_taxa': True,
            'suppress_leaf_node_taxa': False,
            'case_sensitive_taxon_labels': True,
            'rooting': 'force-rooted',
        }

        # Add any schema-specific settings from config
        if 'schema' in self.config:
            schema_kwargs.update(self.config['schema'])

        return schema_kwargs

    def _convert(self):
        """Convert the parsed DendroPy tree into RootedTreeNode objects."""
        converted = {}

        for node in self.tree.postorder_node_iter():
            children = node.child_nodes()
            length = node.edge.length if node.edge.length is not None else 0.0

            if not children:
                label = node.taxon.label if node.taxon is not None else node.label
                converted[node] = RootedTreeNode(label=label, length=length)
            elif len(children) == 2:
                converted[node] = RootedTreeNode(
                    label=node.label,
                    length=length,
                    left=converted.pop(children[0]),
                    right=converted.pop(children[1])
                )
            else:
                message = f"Tree is not binary: node with {len(children)} children"
                self.logger.error(message)
                raise ValueError(message)

        self.root = converted[self.tree.seed_node]
        self._log_tree_stats()

        return self.root

    def _log_tree_stats(self):
        """Log statistics about the parsed tree."""
        num_tips = len(self.root.leaves())
        num_nodes = self.root.node_count()

        self.logger.info(f"Tree parsed successfully with {num_tips} tips "
                         f"and {num_nodes - num_tips} internal nodes")
