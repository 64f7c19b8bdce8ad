#!/usr/bin/env python
# coding=utf-8
"""
missense.py

Part of neopair
Indexes, groups, and deduplicates somatic missense mutations.

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
import numpy

from .peptides import ValidationError, amino_acids


class ProteinChange(
    collections.namedtuple("ProteinChange", ["position", "native", "mutant"])
):
    """ Single-residue substitution at a 1-based protein position """

    __slots__ = ()

    def __new__(cls, position, native, mutant):
        if isinstance(position, bool) or not isinstance(
            position, (int, numpy.integer)
        ):
            raise ValidationError(
                "".join(["Protein position must be an integer, not ", repr(position)])
            )
        if position < 1:
            raise ValidationError(
                "".join(["Protein position must be >= 1, not ", str(position)])
            )
        for residue in (native, mutant):
            if residue not in amino_acids:
                raise ValidationError(
                    "".join(["Invalid residue code ", repr(residue)])
                )
        return super(ProteinChange, cls).__new__(cls, int(position), native, mutant)

    def format(self):
        """ Returns the compact notation, e.g. G532S """
        return "".join([self.native, str(self.position), self.mutant])


class MissenseRecord(
    collections.namedtuple(
        "MissenseRecord",
        [
            "tumor_barcode",
            "transcript_id",
            "hugo_symbol",
            "protein_change",
            "cell_fraction",
        ],
    )
):
    """ One missense mutation observed in one tumor sample

        tumor_barcode: tumor in which the mutation occurred
        transcript_id: Ensembl transcript ID, or None if not reported
        hugo_symbol: HUGO symbol of the mutated gene
        protein_change: ProteinChange describing the substitution
        cell_fraction: cancer cell fraction, in [0, 1]
    """

    __slots__ = ()

    def __new__(
        cls, tumor_barcode, transcript_id, hugo_symbol, protein_change, cell_fraction
    ):
        cell_fraction = float(cell_fraction)
        if not 0.0 <= cell_fraction <= 1.0:
            raise ValidationError(
                "".join(
                    [
                        "Cell fraction must lie in [0, 1], not ",
                        str(cell_fraction),
                        " (",
                        tumor_barcode,
                        ", ",
                        hugo_symbol,
                        ")",
                    ]
                )
            )
        return super(MissenseRecord, cls).__new__(
            cls,
            tumor_barcode,
            transcript_id,
            hugo_symbol,
            ProteinChange(*protein_change),
            cell_fraction,
        )

    @property
    def position(self):
        return self.protein_change.position

    def has_transcript_id(self):
        return self.transcript_id is not None

    @staticmethod
    def resolve_duplicate(previous, current):
        """ Chooses between two records at the same protein position

            The record with the greater cell fraction wins; on a tie the
            later record (current) is kept.

            Return value: previous or current
        """
        if previous.cell_fraction > current.cell_fraction:
            return previous
        return current


def filter_cell_fraction(records, threshold):
    """ Retains records whose cell fraction is strictly above a threshold """
    return [record for record in records if record.cell_fraction > threshold]


def filter_transcript(records, transcript_id):
    """ Retains records whose transcript matches transcript_id

        A transcript_id of None retains records that have no transcript.
    """
    return [record for record in records if record.transcript_id == transcript_id]


def filter_primary_transcript(records):
    """ Retains only records on the most common transcript

        records: missense records for a single tumor sample and gene

        Return value: the input records (as a list) if there are fewer than
            two of them or they share one transcript; records from the
            unique most common transcript otherwise; an empty list if no
            single transcript is most common
    """
    records = list(records)
    if len(records) < 2:
        return records
    transcript_counts = collections.Counter(
        record.transcript_id for record in records
    )
    if len(transcript_counts) == 1:
        return records
    top_count = max(transcript_counts.values())
    primary = [
        transcript_id
        for transcript_id, count in transcript_counts.items()
        if count == top_count
    ]
    if len(primary) == 1:
        return filter_transcript(records, primary[0])
    return []


class MissenseGroup(object):
    """ All missense mutations for one tumor sample, gene, and transcript

        Mutations are keyed by protein position. Every member must share
        the tumor barcode and HUGO symbol, and transcripts must be either
        all absent or all present and equal. Two records at the same
        position collapse into the one with the greater cell fraction.
    """

    def __init__(self, records):
        records = list(records)
        if not records:
            raise ValidationError("No mutation records")
        first = records[0]
        self.tumor_barcode = first.tumor_barcode
        self.hugo_symbol = first.hugo_symbol
        self.transcript_id = first.transcript_id
        self._position_map = {}
        for record in records:
            self._validate(record)
            self._upsert(record)
        self._positions = tuple(sorted(self._position_map))

    @classmethod
    def create(cls, records):
        return cls(records)

    def _validate(self, record):
        if record.hugo_symbol != self.hugo_symbol:
            raise ValidationError(
                "".join(
                    [
                        "Inconsistent HUGO symbols: [",
                        record.hugo_symbol,
                        " != ",
                        self.hugo_symbol,
                        "]",
                    ]
                )
            )
        if record.tumor_barcode != self.tumor_barcode:
            raise ValidationError(
                "".join(
                    [
                        "Inconsistent barcodes: [",
                        record.tumor_barcode,
                        " != ",
                        self.tumor_barcode,
                        "]",
                    ]
                )
            )
        if record.has_transcript_id() != (self.transcript_id is not None):
            raise ValidationError("Mixed present and absent transcripts")
        if record.transcript_id != self.transcript_id:
            raise ValidationError(
                "".join(
                    [
                        "Inconsistent transcripts: [",
                        record.transcript_id,
                        " != ",
                        self.transcript_id,
                        "]",
                    ]
                )
            )

    def _upsert(self, record):
        """ Stores a record at its position, resolving any collision

            Return value: True iff the position was already occupied
        """
        previous = self._position_map.get(record.position)
        if previous is None:
            self._position_map[record.position] = record
            return False
        self._position_map[record.position] = MissenseRecord.resolve_duplicate(
            previous, record
        )
        return True

    def view_positions(self):
        """ Returns the ascending 1-based mutated positions as a tuple """
        return self._positions

    def protein_changes(self):
        return [self._position_map[p].protein_change for p in self._positions]

    def mutate(self, native_sequence):
        """ Applies every protein change to a native sequence

            native_sequence: germline amino acid sequence

            Return value: mutant amino acid sequence. Raises
                ValidationError if a position lies past the end of the
                sequence or the residue found there differs from the
                native residue of the change.
        """
        changes = self.protein_changes()
        residues = numpy.array(list(native_sequence), dtype="<U1")
        offsets = numpy.array([change.position - 1 for change in changes])
        if offsets[-1] >= len(residues):
            raise ValidationError(
                "".join(
                    [
                        "Mutation at position ",
                        str(changes[-1].position),
                        " lies beyond the ",
                        str(len(residues)),
                        "-residue sequence of ",
                        self.hugo_symbol,
                        " in ",
                        self.tumor_barcode,
                    ]
                )
            )
        expected = numpy.array([change.native for change in changes], dtype="<U1")
        mismatched = numpy.flatnonzero(residues[offsets] != expected)
        if len(mismatched):
            change = changes[mismatched[0]]
            raise ValidationError(
                "".join(
                    [
                        "Native residue mismatch for ",
                        self.hugo_symbol,
                        " in ",
                        self.tumor_barcode,
                        ": expected ",
                        change.native,
                        " at position ",
                        str(change.position),
                        ", found ",
                        str(residues[change.position - 1]),
                    ]
                )
            )
        residues[offsets] = [change.mutant for change in changes]
        return "".join(residues.tolist())

    def sort_key(self):
        """ Orders groups by tumor barcode, HUGO symbol, then transcript """
        return (self.tumor_barcode, self.hugo_symbol, self.transcript_id or "")

    def __iter__(self):
        for position in self._positions:
            yield self._position_map[position]

    def __len__(self):
        return len(self._positions)

    def __repr__(self):
        return "".join(
            [
                "MissenseGroup(",
                ", ".join(
                    [
                        self.tumor_barcode,
                        self.hugo_symbol,
                        str(self.transcript_id),
                        "[" + ", ".join(c.format() for c in self.protein_changes()) + "]",
                    ]
                ),
                ")",
            ]
        )


class MissenseTable(object):
    """ Indexes missense records by tumor barcode and HUGO symbol

        Records are kept in insertion order. No consistency checks are
        made here; they happen when groups are built.
    """

    def __init__(self, records=()):
        # barcode -> symbol -> list of records
        self._table = collections.OrderedDict()
        for record in records:
            self._table.setdefault(
                record.tumor_barcode, collections.OrderedDict()
            ).setdefault(record.hugo_symbol, []).append(record)

    @classmethod
    def load(cls, records):
        return cls(records)

    def contains(self, barcode, symbol):
        return barcode in self._table and symbol in self._table[barcode]

    def count(self, barcode, symbol=None):
        """ Counts mutations in a tumor, or in one gene of a tumor """
        if symbol is not None:
            return len(self.lookup(barcode, symbol))
        return sum(
            len(records) for records in self._table.get(barcode, {}).values()
        )

    def lookup(self, barcode, symbol):
        """ Returns a tuple of the records for a tumor and gene, possibly empty """
        return tuple(self._table.get(barcode, {}).get(symbol, ()))

    def view_barcodes(self):
        return self._table.keys()

    def view_symbols(self, barcode):
        return self._table.get(barcode, collections.OrderedDict()).keys()

    def records(self):
        for symbol_dict in self._table.values():
            for records in symbol_dict.values():
                for record in records:
                    yield record

    def group(self, barcode):
        """ Partitions a tumor's records into MissenseGroups

            barcode: tumor barcode of interest

            Return value: list of MissenseGroups, one per distinct
                (HUGO symbol, transcript) pair, ordered by symbol and then
                transcript (absent transcripts first)
        """
        partitions = collections.OrderedDict()
        for symbol, records in self._table.get(barcode, {}).items():
            for record in records:
                partitions.setdefault(
                    (symbol, record.transcript_id), []
                ).append(record)
        groups = [MissenseGroup(records) for records in partitions.values()]
        groups.sort(key=MissenseGroup.sort_key)
        return groups

    def groups(self):
        """ Returns the MissenseGroups of every tumor, ordered by barcode """
        groups = []
        for barcode in sorted(self._table):
            groups.extend(self.group(barcode))
        return groups

    def filter_primary_transcripts(self):
        """ Returns a new table restricted to each gene's primary transcript """
        return MissenseTable(
            record
            for barcode, symbol_dict in self._table.items()
            for records in symbol_dict.values()
            for record in filter_primary_transcript(records)
        )

    def __len__(self):
        return sum(1 for _ in self.records())
