#!/usr/bin/env python
# coding=utf-8
"""
peptides.py

Part of neopair
Defines self-peptides, neo-peptides, and the records that pair them.

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
import collections

# IUPAC one-letter codes, including the ambiguity codes B, J, X, Z and
# the nonstandard residues O (pyrrolysine) and U (selenocysteine)
amino_acids = frozenset("ABCDEFGHIJKLMNOPQRSTUVWXYZ")

SELF = "SELF"
NEO = "NEO"

_delimiter = "\t"
_columns = [
    "TumorBarcode",
    "HugoSymbol",
    "Range_Lower",
    "Range_Upper",
    "Self_Peptide",
    "Neo_Peptide",
]


class ValidationError(ValueError):
    """ Raised when mutation, sequence, or peptide data are inconsistent """


def validate_peptide(sequence):
    """ Checks that a sequence is made of uppercase one-letter residue codes

        sequence: peptide sequence string

        Return value: the sequence, unchanged
    """
    if not sequence:
        raise ValidationError("Empty peptide sequence")
    invalid = set(sequence) - amino_acids
    if invalid:
        raise ValidationError(
            "".join(
                [
                    "Invalid residue code(s) ",
                    ",".join(sorted(invalid)),
                    " in peptide ",
                    sequence,
                ]
            )
        )
    return sequence


class Peptide(str):
    """ Amino acid sequence tagged with the role it plays in a pair """

    peptide_type = None

    def __new__(cls, sequence):
        return str.__new__(cls, validate_peptide(str(sequence)))

    def __repr__(self):
        return "%s(%r)" % (type(self).__name__, str(self))


class SelfPeptide(Peptide):
    """ Peptide fragment of the germline protein """

    peptide_type = SELF


class NeoPeptide(Peptide):
    """ Peptide fragment of the tumor-mutant protein """

    peptide_type = NEO


class PeptidePair(collections.namedtuple("PeptidePair", ["self", "neo"])):
    """ Self- and neo-peptide of equal length taken from the same window """

    __slots__ = ()

    def __new__(cls, self_peptide, neo_peptide):
        self_peptide = SelfPeptide(self_peptide)
        neo_peptide = NeoPeptide(neo_peptide)
        if len(self_peptide) != len(neo_peptide):
            raise ValidationError(
                "".join(
                    [
                        "Peptide lengths differ: ",
                        self_peptide,
                        " (",
                        str(len(self_peptide)),
                        ") vs. ",
                        neo_peptide,
                        " (",
                        str(len(neo_peptide)),
                        ")",
                    ]
                )
            )
        return super(PeptidePair, cls).__new__(cls, self_peptide, neo_peptide)

    def mutated_offsets(self):
        """ Lists 0-based offsets where the neo-peptide differs from self """
        return [
            i for i, (native, mutant) in enumerate(zip(self.self, self.neo))
            if native != mutant
        ]


class PeptideRange(collections.namedtuple("PeptideRange", ["lower", "upper"])):
    """ Inclusive, 1-based range of protein positions """

    __slots__ = ()

    def __new__(cls, lower, upper):
        lower, upper = int(lower), int(upper)
        if lower < 1 or upper < lower:
            raise ValidationError(
                "Invalid peptide range [%d, %d]" % (lower, upper)
            )
        return super(PeptideRange, cls).__new__(cls, lower, upper)

    @property
    def length(self):
        return self.upper - self.lower + 1

    def __contains__(self, position):
        return self.lower <= position <= self.upper


class PeptidePairRecord(
    collections.namedtuple(
        "PeptidePairRecord",
        ["tumor_barcode", "hugo_symbol", "peptide_range", "peptide_pair"],
    )
):
    """ Associates a peptide pair with the tumor sample, gene, and window
        from which it originated.

        tumor_barcode: tumor in which the mutation(s) occurred
        hugo_symbol: HUGO symbol of the mutated gene
        peptide_range: PeptideRange of the window in the protein
        peptide_pair: PeptidePair covering that window
    """

    __slots__ = ()

    def __new__(cls, tumor_barcode, hugo_symbol, peptide_range, peptide_pair):
        peptide_range = PeptideRange(*peptide_range)
        peptide_pair = PeptidePair(*peptide_pair)
        if peptide_range.length != len(peptide_pair.self):
            raise ValidationError(
                "".join(
                    [
                        "Peptide range [",
                        str(peptide_range.lower),
                        ", ",
                        str(peptide_range.upper),
                        "] does not match peptide length ",
                        str(len(peptide_pair.self)),
                    ]
                )
            )
        return super(PeptidePairRecord, cls).__new__(
            cls, tumor_barcode, hugo_symbol, peptide_range, peptide_pair
        )

    @property
    def self_peptide(self):
        return self.peptide_pair.self

    @property
    def neo_peptide(self):
        return self.peptide_pair.neo

    @staticmethod
    def header():
        """ Returns the header line for peptide pair flat files """
        return _delimiter.join(_columns)

    @classmethod
    def parse(cls, line):
        """ Creates a record from one delimited line of a flat file

            line: line formatted by PeptidePairRecord.format()

            Return value: PeptidePairRecord
        """
        tokens = line.rstrip("\r\n").split(_delimiter)
        if len(tokens) != len(_columns):
            raise ValidationError(
                "".join(
                    [
                        "Expected ",
                        str(len(_columns)),
                        " fields in peptide pair record, found ",
                        str(len(tokens)),
                        ": ",
                        line.rstrip("\r\n"),
                    ]
                )
            )
        try:
            lower, upper = int(tokens[2]), int(tokens[3])
        except ValueError:
            raise ValidationError(
                "".join(["Non-integer peptide range in line: ", line.rstrip("\r\n")])
            )
        return cls(
            tokens[0],
            tokens[1],
            (lower, upper),
            (tokens[4], tokens[5]),
        )

    def format(self):
        """ Formats this record as one delimited line (no newline) """
        return _delimiter.join(
            [
                self.tumor_barcode,
                self.hugo_symbol,
                str(self.peptide_range.lower),
                str(self.peptide_range.upper),
                str(self.peptide_pair.self),
                str(self.peptide_pair.neo),
            ]
        )

    def __str__(self):
        return "PeptidePairRecord(%s, %s, [%d, %d]: %s => %s)" % (
            self.tumor_barcode,
            self.hugo_symbol,
            self.peptide_range.lower,
            self.peptide_range.upper,
            self.peptide_pair.self,
            self.peptide_pair.neo,
        )


def sort_key(record):
    """ Orders records by tumor barcode, HUGO symbol, then window start """
    return (record.tumor_barcode, record.hugo_symbol, record.peptide_range.lower)
