#!/usr/bin/env python
"""
Control File Module - Interprets BPP control files

This module reads a control file line by line, dispatches every
'key = value' line to the grammar of the matching option and stores the
result in a ControlConfig. Unknown options are skipped. Any malformed
option aborts parsing with a ControlFileError naming the option and line.
"""

import io
import os
import time
import logging

from bppconfig.line_reader import LineReader
from bppconfig.config_model import (ControlConfig, ARCH_CHOICES,
                                    SPECIES_PRIOR_UNIFORM_LABELED,
                                    SPECIES_PRIOR_UNIFORM_ROOTED)
from bppconfig.value_parser import get_token, get_string, MissingAssignmentError
from bppconfig import record_grammars as grammars


class ControlFileError(ValueError):
    """Fatal error in the contents of a control file."""

    def __init__(self, message, option=None, line_number=None, filename=None):
        super().__init__(message)
        self.option = option
        self.line_number = line_number
        self.filename = filename


class ControlFileParser:
    """Parses a control file into a ControlConfig."""

    # option name -> handler method
    OPTIONS = {
        'seed': '_parse_seed',
        'arch': '_parse_arch',
        'nloci': '_parse_nloci',
        'print': '_parse_print',
        'burnin': '_parse_burnin',
        'seqfile': '_parse_seqfile',
        'outfile': '_parse_outfile',
        'usedata': '_parse_usedata',
        'nsample': '_parse_nsample',
        'imapfile': '_parse_imapfile',
        'mcmcfile': '_parse_mcmcfile',
        'tauprior': '_parse_tauprior',
        'heredity': '_not_implemented',
        'finetune': '_parse_finetune',
        'sampfreq': '_parse_sampfreq',
        'cleandata': '_parse_cleandata',
        'locusrate': '_not_implemented',
        'thetaprior': '_parse_thetaprior',
        'speciestree': '_parse_speciestree',
        'species&tree': '_parse_speciesandtree',
        'sequenceerror': '_not_implemented',
        'speciesmodelprior': '_parse_speciesmodelprior',
        'speciesdelimitation': '_parse_speciesdelimitation',
    }

    def __init__(self, config=None):
        """
        Initialize the parser.

        Args:
            config (dict, optional): Parser settings. Can include 'chunk_size'
                                     (characters per read) and 'clock' (a
                                     callable returning the time used for
                                     'seed = -1').
        """
        self.config = config or {}
        self.logger = logging.getLogger(__name__)

        self.chunk_size = self.config.get('chunk_size', LineReader.DEFAULT_CHUNK_SIZE)
        self.clock = self.config.get('clock', time.time)

        # parse session state
        self.options = None
        self.filename = None
        self.reader = None

    @property
    def line_number(self):
        """Number of lines read so far in the current parse."""
        return self.reader.line_number if self.reader is not None else 0

    def parse_from_file(self, filepath):
        """
        Parse a control file from a file path.

        Args:
            filepath (str): Path to the control file.

        Returns:
            ControlConfig: The populated configuration.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ControlFileError: If the file contents are malformed.
        """
        if not os.path.exists(filepath):
            raise FileNotFoundError(f"Control file not found: {filepath}")

        self.logger.info(f"Parsing control file: {filepath}")

        with open(filepath, 'r') as stream:
            return self.parse_stream(stream, filename=str(filepath))

    def parse_from_string(self, text, filename="<string>"):
        """Parse control file contents held in a string."""
        return self.parse_stream(io.StringIO(text), filename=filename)

    def parse_stream(self, stream, filename="<stream>"):
        """
        Parse a control file from an open text stream.

        Args:
            stream: Readable text stream positioned at the start of the file.
            filename (str): Name used in error messages.

        Returns:
            ControlConfig: The populated configuration.

        Raises:
            ControlFileError: If the stream contents are malformed.
        """
        self.options = ControlConfig()
        self.options.cfile = filename
        self.filename = filename
        self.reader = LineReader(stream, chunk_size=self.chunk_size)

        recognized = 0
        while True:
            line = self.reader.next_line()
            if line is None:
                break

            try:
                token = get_token(line)
            except MissingAssignmentError:
                self._fail(f"Line {self.line_number} of {filename} does not contain a '=' character")

            if token is None:
                continue

            key, value = token
            handler = self.OPTIONS.get(key.lower())
            if handler is None:
                self.logger.debug(f"Ignoring unknown option '{key}' (line {self.line_number})")
                continue

            getattr(self, handler)(key, value)
            recognized += 1

        self.logger.info(f"Read {recognized} options from {self.line_number} lines of {filename}")

        options = self.options
        self.reader = None
        return options

    def _fail(self, message, option=None):
        """Log and raise a fatal control file error."""
        self.logger.error(message)
        raise ControlFileError(message, option=option,
                               line_number=self.line_number, filename=self.filename)

    def _read_long(self, key, value, message, accept=None):
        number = grammars.parse_long_option(value)
        if number is None or (accept is not None and not accept(number)):
            self._fail(f"{message} (line {self.line_number})", option=key)
        return number

    def _read_string(self, key, value):
        consumed, text = get_string(value)
        if not consumed:
            self._fail(f"Option {key} expects a string (line {self.line_number})", option=key)
        return text

    def _parse_seed(self, key, value):
        seed = self._read_long(key, value, "Option 'seed' expects one integer")
        if seed == -1:
            seed = int(self.clock())
            self.logger.debug(f"Seed taken from clock: {seed}")
        self.options.seed = seed

    def _parse_arch(self, key, value):
        arch = self._read_string(key, value)
        if arch.lower() not in ARCH_CHOICES:
            self._fail(f"Invalid instruction set ({arch}) (line {self.line_number})", option=key)
        self.options.arch = arch.lower()

    def _parse_nloci(self, key, value):
        self.options.nloci = self._read_long(
            key, value, "Option 'nloci' expects one positive integer",
            accept=lambda n: n >= 1)

    def _parse_burnin(self, key, value):
        self.options.burnin = self._read_long(
            key, value, "Option 'burnin' expects one positive (or zero) integer",
            accept=lambda n: n >= 0)

    def _parse_usedata(self, key, value):
        self.options.usedata = self._read_long(
            key, value, "Option 'usedata' expects value 0 or 1",
            accept=lambda n: n in (0, 1))

    def _parse_nsample(self, key, value):
        self.options.nsample = self._read_long(
            key, value, "Option 'nsample' expects a positive integer",
            accept=lambda n: n > 0)

    def _parse_sampfreq(self, key, value):
        self.options.sampfreq = self._read_long(
            key, value, "Option 'sampfreq' expects a positive integer",
            accept=lambda n: n > 0)

    def _parse_cleandata(self, key, value):
        self.options.cleandata = self._read_long(
            key, value, "Option 'cleandata' expects value 0 or 1",
            accept=lambda n: n in (0, 1))

    def _parse_speciesmodelprior(self, key, value):
        # only the two uniform priors are supported
        self.options.speciesmodelprior = self._read_long(
            key, value, "Option 'speciesmodelprior' expects an integer",
            accept=lambda n: n in (SPECIES_PRIOR_UNIFORM_LABELED, SPECIES_PRIOR_UNIFORM_ROOTED))

    def _parse_seqfile(self, key, value):
        self.options.seqfile = self._read_string(key, value)

    def _parse_outfile(self, key, value):
        self.options.outfile = self._read_string(key, value)

    def _parse_imapfile(self, key, value):
        self.options.imapfile = self._read_string(key, value)

    def _parse_mcmcfile(self, key, value):
        self.options.mcmcfile = self._read_string(key, value)

    def _parse_print(self, key, value):
        flags = grammars.parse_print(value)
        if flags is None:
            self._fail(f"Option 'print' expects four bits (line {self.line_number})", option=key)

        self.options.print_samples = flags.samples
        self.options.print_locusrate = flags.locusrate
        self.options.print_hscalars = flags.hscalars
        self.options.print_genetrees = flags.genetrees

    def _parse_thetaprior(self, key, value):
        prior = grammars.parse_thetaprior(value, default_estimate=self.options.estimate_theta)
        if prior is None:
            self._fail(f"Option 'thetaprior' expects two doubles (line {self.line_number})",
                       option=key)

        self.options.theta_alpha = prior.alpha
        self.options.theta_beta = prior.beta
        self.options.estimate_theta = prior.estimate

    def _parse_tauprior(self, key, value):
        prior = grammars.parse_tauprior(value)
        if prior is None:
            self._fail(f"Option 'tauprior' expects two doubles (line {self.line_number})",
                       option=key)

        self.options.tau_alpha = prior.alpha
        self.options.tau_beta = prior.beta

    def _parse_finetune(self, key, value):
        finetune = grammars.parse_finetune(value)
        if finetune is None:
            self._fail(f"Option 'finetune' in wrong format (line {self.line_number})", option=key)

        if finetune.reset:
            self.options.finetune_reset = 1
        for field in grammars.FINETUNE_FIELDS:
            setattr(self.options, f"finetune_{field}", getattr(finetune, field))

    def _parse_speciestree(self, key, value):
        record = grammars.parse_speciestree(value)
        if record is None:
            self._fail(f"Erroneous format of options speciestree (line {self.line_number})",
                       option=key)

        self.options.speciestree = record.selector
        self.options.speciestree_tail = record.tail

    def _parse_speciesdelimitation(self, key, value):
        record = grammars.parse_speciesdelimitation(value)
        if record is None:
            self._fail(f"Erroneous format of option {key} (line {self.line_number})", option=key)

        self.options.delimit = record.delimit
        if record.method is not None:
            self.options.rjmcmc_method = record.method
        if record.epsilon is not None:
            self.options.rjmcmc_epsilon = record.epsilon
        if record.alpha is not None:
            self.options.rjmcmc_alpha = record.alpha
            self.options.rjmcmc_mean = record.mean

    def _parse_speciesandtree(self, key, value):
        """Parse the three-line 'species&tree' record."""
        record = grammars.parse_speciesandtree(value)
        if record is None:
            self._fail(f"Erroneous format of 'species&tree' (line {self.line_number})", option=key)

        # old BPP format: a line of per-species counts followed by the tree
        if self.reader.next_line() is None:
            self._fail(f"Incomplete 'species&tree' record (line {self.line_number})", option=key)

        line = self.reader.next_line()
        if line is None:
            self._fail(f"Incomplete 'species&tree' record (line {self.line_number})", option=key)

        consumed, newick = get_string(line)
        if not consumed:
            self._fail(f"Expected newick tree string in 'species&tree' (line {self.line_number})",
                       option=key)

        self.options.species_count = record.count
        self.options.species_labels = record.labels
        self.options.reorder = record.reorder
        self.options.species_tree_newick = newick
        self.logger.debug(f"Species tree declared for {record.count} species: {newick}")

    def _not_implemented(self, key, value):
        self._fail(f"Not implemented ({key}) (line {self.line_number})", option=key)
