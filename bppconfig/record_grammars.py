#!/usr/bin/env python
"""
Record Grammars Module - Parses the structured values of control file options

Each grammar walks one value string with a ValueCursor and returns a named
tuple when every field was read and nothing but blanks or a comment is left.
Any other outcome returns None and the caller treats it as a fatal error.
"""

from collections import namedtuple

from bppconfig.value_parser import (
    ValueCursor,
    FLAG_ABSENT,
    FLAG_PRESENT,
    WHITESPACE,
)

# Values of the theta estimation switch
THETA_INTEGRATE = 0
THETA_ESTIMATE = 1

# Species delimitation rjMCMC algorithms
RJMCMC_ALGORITHM_0 = 0
RJMCMC_ALGORITHM_1 = 1

ThetaPrior = namedtuple('ThetaPrior', ['alpha', 'beta', 'estimate'])
TauPrior = namedtuple('TauPrior', ['alpha', 'beta'])
Finetune = namedtuple('Finetune', [
    'reset', 'gtage', 'gtspr', 'theta', 'tau', 'mix', 'locusrate', 'seqerr'
])
PrintFlags = namedtuple('PrintFlags', ['samples', 'locusrate', 'hscalars', 'genetrees'])
SpeciesDelimitation = namedtuple('SpeciesDelimitation', [
    'delimit', 'method', 'epsilon', 'alpha', 'mean'
])
SpeciesTree = namedtuple('SpeciesTree', ['selector', 'tail'])
SpeciesAndTree = namedtuple('SpeciesAndTree', ['count', 'labels', 'reorder'])

# Order of the step sizes following the reset flag in 'finetune'
FINETUNE_FIELDS = Finetune._fields[1:]


def parse_long_option(value):
    """Parse a value holding exactly one integer."""
    cursor = ValueCursor(value)
    number = cursor.read_long()
    if number is None or not cursor.at_end():
        return None
    return number


def parse_thetaprior(value, default_estimate=THETA_ESTIMATE):
    """
    Parse 'thetaprior = alpha beta [E]'.

    Args:
        value (str): Text after the '='.
        default_estimate (int): Switch value kept when no flag is given.

    Returns:
        ThetaPrior: Parsed prior, or None if malformed.
    """
    cursor = ValueCursor(value)

    alpha = cursor.read_double()
    if alpha is None:
        return None

    beta = cursor.read_double()
    if beta is None:
        return None

    flag = cursor.read_flag()
    if flag == FLAG_ABSENT:
        estimate = default_estimate
    elif flag == FLAG_PRESENT:
        estimate = THETA_INTEGRATE
    else:
        return None

    if not cursor.at_end():
        return None

    return ThetaPrior(alpha, beta, estimate)


def parse_tauprior(value):
    """Parse 'tauprior = alpha beta'."""
    cursor = ValueCursor(value)

    alpha = cursor.read_double()
    if alpha is None:
        return None

    beta = cursor.read_double()
    if beta is None:
        return None

    if not cursor.at_end():
        return None

    return TauPrior(alpha, beta)


def parse_finetune(value):
    """
    Parse 'finetune = R: gtage gtspr theta tau mix locusrate seqerr'.

    R is a single '0' or '1' directly followed (blanks allowed) by a colon.

    Returns:
        Finetune: Reset flag and the seven step sizes, or None if malformed.
    """
    cursor = ValueCursor(value)

    reset = cursor.read_char('01')
    if reset is None:
        return None

    if cursor.read_char(':') is None:
        return None

    steps = []
    for _ in FINETUNE_FIELDS:
        step = cursor.read_double()
        if step is None:
            return None
        steps.append(step)

    if not cursor.at_end():
        return None

    return Finetune(int(reset), *steps)


def parse_print(value):
    """Parse 'print = samples locusrate hscalars genetrees'."""
    cursor = ValueCursor(value)

    flags = []
    for _ in PrintFlags._fields:
        flag = cursor.read_long()
        if flag is None:
            return None
        flags.append(flag)

    if not cursor.at_end():
        return None

    return PrintFlags(*flags)


def parse_speciesdelimitation(value):
    """
    Parse 'speciesdelimitation'.

    Accepted forms:
        0
        1 0 epsilon
        1 1 alpha mean

    Returns:
        SpeciesDelimitation: Parsed record with unused fields set to None,
                             or None if malformed.
    """
    cursor = ValueCursor(value)

    delimit = cursor.read_long()
    if delimit is None:
        return None

    if delimit == 0:
        if not cursor.at_end():
            return None
        return SpeciesDelimitation(0, None, None, None, None)

    if delimit != 1:
        return None

    method = cursor.read_long()
    if method not in (RJMCMC_ALGORITHM_0, RJMCMC_ALGORITHM_1):
        return None

    first = cursor.read_double()
    if first is None:
        return None

    if method == RJMCMC_ALGORITHM_0:
        record = SpeciesDelimitation(1, method, first, None, None)
    else:
        mean = cursor.read_double()
        if mean is None:
            return None
        record = SpeciesDelimitation(1, method, None, first, mean)

    if not cursor.at_end():
        return None

    return record


def parse_speciestree(value):
    """
    Parse 'speciestree = selector [pslider expandratio shrinkratio]'.

    Only the selector is validated; any trailing text is returned raw.
    """
    cursor = ValueCursor(value)

    selector = cursor.read_long()
    if selector not in (0, 1):
        return None

    tail = cursor.read_string()
    return SpeciesTree(selector, tail)


def parse_speciesandtree(value):
    """
    Parse the first line of a 'species&tree' record: 'count label1 label2 ...'.

    Returns:
        SpeciesAndTree: Declared count, the labels and the comma-joined
                        reorder list, or None if the number of labels does not
                        match the count.
    """
    cursor = ValueCursor(value)

    count = cursor.read_long()
    if count is None:
        return None

    names = cursor.read_string()
    if names is None:
        return None

    labels = split_labels(names)
    if len(labels) != count:
        return None

    return SpeciesAndTree(count, labels, ','.join(labels))


def split_labels(text):
    """Split on the control file's whitespace set only."""
    labels = []
    current = []
    for char in text:
        if char in WHITESPACE:
            if current:
                labels.append(''.join(current))
                current = []
        else:
            current.append(char)
    if current:
        labels.append(''.join(current))
    return labels
