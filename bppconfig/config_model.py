#!/usr/bin/env python
"""
Configuration Model Module - Holds the options read from a control file

Every option has a fixed default that is set when the model is created.
The control file parser overwrites only the options present in the file;
afterwards the model is meant to be treated as read-only.
"""

from bppconfig.record_grammars import THETA_ESTIMATE

# Instruction sets accepted by 'arch'
ARCH_CHOICES = ('cpu', 'sse', 'avx', 'avx2')

# Species model priors accepted by 'speciesmodelprior'
SPECIES_PRIOR_UNIFORM_LABELED = 0
SPECIES_PRIOR_UNIFORM_ROOTED = 1


class ControlConfig:
    """Options of one analysis run, initialized to their defaults."""

    def __init__(self):
        # control file this model was read from
        self.cfile = None

        # general
        self.seed = -1
        self.arch = None
        self.nloci = 0
        self.usedata = 1
        self.cleandata = 0

        # files
        self.seqfile = None
        self.outfile = None
        self.imapfile = None
        self.mcmcfile = None

        # MCMC length
        self.burnin = 100
        self.nsample = 0
        self.sampfreq = 10

        # priors
        self.theta_alpha = 0.0
        self.theta_beta = 0.0
        self.estimate_theta = THETA_ESTIMATE
        self.tau_alpha = 0.0
        self.tau_beta = 0.0

        # finetune step sizes
        self.finetune_reset = 0
        self.finetune_gtage = 5.0
        self.finetune_gtspr = 0.001
        self.finetune_theta = 0.001
        self.finetune_tau = 0.001
        self.finetune_mix = 0.3
        self.finetune_locusrate = 0.33
        self.finetune_seqerr = 0.001

        # output switches
        self.print_samples = 1
        self.print_locusrate = 0
        self.print_hscalars = 0
        self.print_genetrees = 0

        # species delimitation
        self.delimit = 0
        self.rjmcmc_method = -1
        self.rjmcmc_epsilon = -1.0
        self.rjmcmc_alpha = -1.0
        self.rjmcmc_mean = -1.0
        self.speciesmodelprior = SPECIES_PRIOR_UNIFORM_ROOTED

        # species tree
        self.speciestree = 0
        self.speciestree_tail = None
        self.species_count = 0
        self.species_labels = []
        self.reorder = None
        self.species_tree_newick = None

    @property
    def estimate_species_tree(self):
        return self.speciestree == 1

    def as_dict(self):
        """
        Return the options as a plain dictionary.

        Returns:
            dict: Option names mapped to their current values.
        """
        options = dict(vars(self))
        options['species_labels'] = list(self.species_labels)
        return options

    def __repr__(self):
        return f"ControlConfig(cfile={self.cfile!r}, species={self.reorder!r})"
