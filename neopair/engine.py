#!/usr/bin/env python
# coding=utf-8
"""
engine.py

Part of neopair
Generates self/neo peptide pairs from groups of missense mutations.

Licensed under the MIT license.

The MIT License (MIT)
Copyright (c) 2018 Mary A. Wood, Austin Nguyen,
                   Abhinav Nellore, and Reid Thompson

Permission is hereby granted, free of charge, to any person obtaining a copy
of this software and associated documentation files (the "Software"), to deal
in the Software without restriction, including without limitation the rights
to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
copies of the Software, and to permit persons to whom the Software is
furnished to do so, subject to the following conditions:

The above copyright notice and this permission notice shall be included in all
copies or substantial portions of the Software.

THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
SOFTWARE.
"""
import warnings
import numpy
from intervaltree import Interval, IntervalTree

from .missense import MissenseTable
from .peptides import (
    PeptidePair,
    PeptidePairRecord,
    PeptideRange,
    ValidationError,
    sort_key,
)

# Lookup-failure policies for whole-table generation
FAIL = "fail"
SKIP = "skip"
lookup_policies = (FAIL, SKIP)


class ConfigurationError(RuntimeError):
    """ Raised when the engine is used before it has a sequence resolver """


class SequenceLookupError(LookupError):
    """ Raised when no germline sequence exists for a gene/transcript """


def candidate_windows(position, window_length, sequence_length):
    """ Lists every window of a given length that contains a position

        position: 1-based mutated position
        window_length: number of residues per window
        sequence_length: number of residues in the protein

        Return value: list of PeptideRanges lying within
            [1, sequence_length], ordered by lower bound
    """
    first = max(1, position - window_length + 1)
    last = min(position, sequence_length - window_length + 1)
    return [
        PeptideRange(lower, lower + window_length - 1)
        for lower in range(first, last + 1)
    ]


def peptide_windows(positions, window_length, sequence_length):
    """ Unites the candidate windows of several mutated positions

        positions: iterable of 1-based mutated positions
        window_length: number of residues per window
        sequence_length: number of residues in the protein

        Return value: list of distinct PeptideRanges sorted by lower bound
    """
    tree = IntervalTree()
    for position in positions:
        for window in candidate_windows(position, window_length, sequence_length):
            # Half-open interval; identical windows collapse in the tree
            tree.add(Interval(window.lower, window.upper + 1))
    return [
        PeptideRange(interval.begin, interval.end - 1)
        for interval in sorted(tree, key=lambda interval: interval.begin)
    ]


class PeptidePairEngine(object):
    """ Derives self/neo peptide pairs from groups of missense mutations

        The engine is configured once with a sequence resolver, an object
        whose lookup(hugo_symbol, transcript_id) method returns a germline
        amino acid sequence or None, and may then generate pairs any
        number of times.

        Init vars
        -------------
        resolver: sequence resolver; if None, initialize() must be called
            before generating
        on_missing: "fail" to raise SequenceLookupError when whole-table
            generation meets a gene without a sequence, "skip" to warn and
            move on to the next group
    """

    def __init__(self, resolver=None, on_missing=FAIL):
        if on_missing not in lookup_policies:
            raise ConfigurationError(
                "".join(
                    [
                        "Lookup failure policy must be one of ",
                        "{",
                        ", ".join('"' + policy + '"' for policy in lookup_policies),
                        "}, not ",
                        repr(on_missing),
                    ]
                )
            )
        self.on_missing = on_missing
        self._resolver = None
        if resolver is not None:
            self.initialize(resolver)

    def initialize(self, resolver):
        """ Installs the sequence resolver; may only be done once """
        if self._resolver is not None:
            raise ConfigurationError("Peptide pair engine is already initialized")
        if resolver is None:
            raise ConfigurationError("Sequence resolver may not be None")
        self._resolver = resolver

    @property
    def initialized(self):
        return self._resolver is not None

    def _require_resolver(self):
        if self._resolver is None:
            raise ConfigurationError(
                "Peptide pair engine must be initialized with a sequence "
                "resolver before generating peptide pairs"
            )
        return self._resolver

    def native_sequence(self, group):
        """ Resolves the germline sequence for a group's gene and transcript """
        sequence = self._require_resolver().lookup(
            group.hugo_symbol, group.transcript_id
        )
        if sequence is None:
            if group.transcript_id is None:
                target = group.hugo_symbol
            else:
                target = "".join([group.hugo_symbol, " (", group.transcript_id, ")"])
            raise SequenceLookupError(
                "".join(["No germline sequence found for ", target])
            )
        return sequence

    def generate(self, source, window_length):
        """ Generates peptide pair records for a group or a whole table

            source: MissenseGroup or MissenseTable
            window_length: number of residues per peptide

            Return value: list of PeptidePairRecords
        """
        if isinstance(source, MissenseTable):
            return self.generate_table(source, window_length)
        return self.generate_group(source, window_length)

    def generate_group(self, group, window_length):
        """ Generates peptide pair records for one MissenseGroup

            Every window of window_length residues that contains at least
            one mutated position and fits inside the protein is emitted
            once, in order of its lower bound.

            group: MissenseGroup
            window_length: number of residues per peptide

            Return value: list of PeptidePairRecords
        """
        self._require_resolver()
        window_length = _check_window_length(window_length)
        native = self.native_sequence(group)
        mutant = group.mutate(native)
        if len(native) < window_length:
            warnings.warn(
                "".join(
                    [
                        group.hugo_symbol,
                        " sequence has ",
                        str(len(native)),
                        " residues, fewer than the window length of ",
                        str(window_length),
                        "; no peptides generated for ",
                        group.tumor_barcode,
                    ]
                ),
                Warning,
            )
            return []
        return [
            PeptidePairRecord(
                group.tumor_barcode,
                group.hugo_symbol,
                window,
                PeptidePair(
                    native[window.lower - 1 : window.upper],
                    mutant[window.lower - 1 : window.upper],
                ),
            )
            for window in peptide_windows(
                group.view_positions(), window_length, len(native)
            )
        ]

    def generate_table(self, table, window_length):
        """ Generates peptide pair records for every group in a MissenseTable

            Genes without a germline sequence are handled according to the
            engine's on_missing policy.

            table: MissenseTable
            window_length: number of residues per peptide

            Return value: list of PeptidePairRecords ordered by tumor
                barcode, HUGO symbol, and window lower bound
        """
        self._require_resolver()
        window_length = _check_window_length(window_length)
        records = []
        for group in table.groups():
            try:
                records.extend(self.generate_group(group, window_length))
            except SequenceLookupError as e:
                if self.on_missing == FAIL:
                    raise
                warnings.warn(
                    "".join(["Skipping ", group.tumor_barcode, ": ", str(e)]),
                    Warning,
                )
        records.sort(key=sort_key)
        return records


def _check_window_length(window_length):
    if isinstance(window_length, bool) or not isinstance(
        window_length, (int, numpy.integer)
    ):
        raise ValidationError(
            "".join(["Window length must be an integer, not ", repr(window_length)])
        )
    if window_length < 1:
        raise ValidationError(
            "".join(["Window length must be >= 1, not ", str(window_length)])
        )
    return int(window_length)
