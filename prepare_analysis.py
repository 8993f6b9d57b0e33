#!/usr/bin/env python
"""
BPP Control File Tool - Main Script

Reads a BPP control file, reports the resulting options and builds the
species tree declared in it. This script serves as the command-line
interface to the analysis setup.
"""

import sys
import argparse
import logging
import time
from bppconfig.analysis import AnalysisSetup
from bppconfig.config_model import ARCH_CHOICES
from bppconfig.rtree import SHOW_LABEL, SHOW_BRANCH_LENGTH


# Set up logging
def setup_logging(log_level, log_file=None):
    """Configure logging system based on specified log level and optional log file."""
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    # Basic configuration for console logging
    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Add file handler if log_file is specified
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)

        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        file_handler.setFormatter(formatter)

        logging.getLogger().addHandler(file_handler)

        logging.info(f"Logging to file: {log_file}")


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Read a BPP control file and prepare its species tree",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        "--cfile", "-c",
        required=True,
        help="Control file to read"
    )

    parser.add_argument(
        "--arch",
        type=str.lower,
        choices=ARCH_CHOICES,
        help="Force a specific vector instruction set (default: from control file or auto)"
    )

    parser.add_argument(
        "--show-tree",
        action="store_true",
        help="Print the species tree as ASCII art"
    )

    parser.add_argument(
        "--branch-lengths",
        action="store_true",
        help="Include branch lengths when printing the species tree"
    )

    parser.add_argument(
        "--newick-out",
        help="Write the species tree in Newick format to this file"
    )

    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error", "critical"],
        default="info",
        help="Set logging level"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Only report warnings and fatal errors"
    )

    parser.add_argument(
        "--log-file",
        help="Path to output log file"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version="%(prog)s 0.1.0"
    )

    return parser.parse_args(argv)


def main(argv=None):
    """Main function."""
    args = parse_args(argv)

    setup_logging("warning" if args.quiet else args.log_level, args.log_file)
    logger = logging.getLogger(__name__)

    start_time = time.time()

    config = {
        'arch': args.arch,
        'control': {},
        'tree': {},
    }

    setup = AnalysisSetup(config=config)

    try:
        options = setup.load_control_file(args.cfile)

        for name, value in sorted(options.as_dict().items()):
            logger.debug(f"{name} = {value}")

        if options.species_tree_newick:
            setup.build_species_tree()

            if args.show_tree:
                display = SHOW_LABEL
                if args.branch_lengths:
                    display |= SHOW_BRANCH_LENGTH
                setup.show_species_tree(display)

            if args.newick_out and not setup.write_species_tree(args.newick_out):
                return 1
        elif args.show_tree or args.newick_out:
            logger.warning("Control file has no 'species&tree' record, nothing to show")

        elapsed_time = time.time() - start_time
        logger.info(f"Control file processed in {elapsed_time:.2f} seconds")

    except Exception as e:
        logger.error(f"Error while reading control file: {str(e)}")
        logger.error("Exception details:", exc_info=True)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
