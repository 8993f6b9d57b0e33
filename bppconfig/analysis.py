#!/usr/bin/env python
"""
Analysis Setup Module - Prepares the inputs of an analysis run

This module coordinates reading a control file, building the species
tree declared in its 'species&tree' record and rendering or writing that
tree for downstream tools.
"""

import os
import time
import logging

from bppconfig.control_file import ControlFileParser
from bppconfig.tree_parser import TreeParser
from bppconfig.rtree import show_ascii, export_newick, SHOW_LABEL


class AnalysisSetup:
    """Orchestrates control file loading and species tree construction."""

    def __init__(self, config=None):
        """
        Initialize with optional configuration.

        Args:
            config (dict, optional): Nested settings; 'control' is handed to
                                     the ControlFileParser, 'tree' to the
                                     TreeParser and 'arch' overrides the
                                     instruction set of the control file.
        """
        self.config = config or {}
        self.logger = logging.getLogger(__name__)

        self.options = None
        self.species_tree = None

        self.control_parser = ControlFileParser(config=self.config.get('control', {}))
        self.tree_parser = TreeParser(config=self.config.get('tree', {}))

        self.stats = {
            'start_time': None,
            'end_time': None,
            'elapsed_time': None,
            'species_count': None,
            'tree_nodes': None,
        }

    def load_control_file(self, filepath):
        """
        Read the control file and apply command line overrides.

        Args:
            filepath (str): Path to the control file.

        Returns:
            ControlConfig: The populated configuration.
        """
        self.stats['start_time'] = time.time()

        self.options = self.control_parser.parse_from_file(filepath)

        arch = self.config.get('arch')
        if arch:
            self.logger.info(f"Instruction set forced to {arch} from the command line")
            self.options.arch = arch.lower()

        self.stats['species_count'] = self.options.species_count
        self.stats['end_time'] = time.time()
        self.stats['elapsed_time'] = self.stats['end_time'] - self.stats['start_time']

        self.logger.info(f"Control file loaded in {self.stats['elapsed_time']:.2f} seconds")
        return self.options

    def build_species_tree(self):
        """
        Build the species tree from the captured Newick text.

        Returns:
            RootedTreeNode: Root of the species tree.

        Raises:
            ValueError: If no control file or species tree is available, or
                        the tree tips differ from the declared species.
        """
        if self.options is None:
            raise ValueError("No control file loaded. Call load_control_file() first.")

        if not self.options.species_tree_newick:
            raise ValueError("Control file does not declare a species tree")

        tree = self.tree_parser.parse_from_string(self.options.species_tree_newick)

        tips = sorted(leaf.label for leaf in tree.leaves())
        declared = sorted(self.options.species_labels)
        if tips != declared:
            message = (f"Species tree tips {','.join(tips)} do not match "
                       f"declared species {self.options.reorder}")
            self.logger.error(message)
            raise ValueError(message)

        self.species_tree = tree
        self.stats['tree_nodes'] = tree.node_count()
        self.logger.info(f"Species tree built with {len(tips)} species")

        return self.species_tree

    def show_species_tree(self, options=SHOW_LABEL, file=None):
        """Print the species tree as ASCII art."""
        if self.species_tree is None:
            self.build_species_tree()

        show_ascii(self.species_tree, options, file=file)

    def write_species_tree(self, output_path):
        """
        Write the species tree to file in Newick format.

        Args:
            output_path (str): Path to output file.

        Returns:
            bool: True if the tree was written successfully, False otherwise.
        """
        if self.species_tree is None:
            self.logger.error("No species tree available to write")
            return False

        # Ensure output directory exists
        output_dir = os.path.dirname(output_path)
        if output_dir and not os.path.exists(output_dir):
            os.makedirs(output_dir)

        try:
            with open(output_path, 'w') as f:
                f.write(export_newick(self.species_tree) + "\n")
            self.logger.info(f"Species tree written to {output_path}")
            return True
        except OSError as e:
            self.logger.error(f"Failed to write tree: {str(e)}")
            return False
