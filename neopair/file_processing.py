#!/usr/bin/env python
# coding=utf-8
"""
file_processing.py

Part of neopair
Includes functions for processing input and output files.

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
import contextlib
import datetime
import gzip
import io
import re
import sys
import warnings

from .missense import MissenseRecord, ProteinChange
from .peptides import PeptidePairRecord, ValidationError
from .resolver import ProteinDatabase, normalize_sequence
from .version import version_number

_three_letter_codes = {
    "Ala": "A",
    "Arg": "R",
    "Asn": "N",
    "Asp": "D",
    "Asx": "B",
    "Cys": "C",
    "Gln": "Q",
    "Glu": "E",
    "Glx": "Z",
    "Gly": "G",
    "His": "H",
    "Ile": "I",
    "Leu": "L",
    "Xle": "J",
    "Lys": "K",
    "Met": "M",
    "Phe": "F",
    "Pro": "P",
    "Pyl": "O",
    "Sec": "U",
    "Ser": "S",
    "Thr": "T",
    "Trp": "W",
    "Tyr": "Y",
    "Val": "V",
    "Xaa": "X",
}

_protein_change_pattern = re.compile(
    r"^(?:p\.)?([A-Z][a-z]{2}|[A-Z])(\d+)([A-Z][a-z]{2}|[A-Z])$"
)

_barcode_column = "Tumor_Sample_Barcode"
_symbol_column = "Hugo_Symbol"
_transcript_column = "Transcript_ID"
_classification_column = "Variant_Classification"
_protein_change_columns = ["HGVSp_Short", "Protein_Change"]
_cell_fraction_columns = ["ccf", "CCF", "Cancer_Cell_Fraction"]
_missing_values = set(["", "NA", ".", "N/A"])


@contextlib.contextmanager
def xopen(gzipped, *args):
    """ Passes args on to the appropriate opener, gzip or regular.

        gzipped: True iff gzip.open() should be used to open rather than
            open(); False iff open() should be used; None if input should be
            read and guessed; '-' for stdin
        *args: unnamed arguments to pass

        Yield value: text file object
    """
    if gzipped == "-":
        fh = sys.stdin
    else:
        if not args:
            raise IOError("Must provide filename")
        if gzipped is None:
            with open(args[0], "rb") as binary_input_stream:
                # Check for magic number
                gzipped = binary_input_stream.read(2) == b"\x1f\x8b"
        if gzipped:
            fh = io.TextIOWrapper(gzip.open(args[0], "rb"))
        else:
            fh = open(*args)
    try:
        yield fh
    finally:
        if fh is not sys.stdin:
            fh.close()


def parse_protein_change(code):
    """ Parses a single-residue substitution such as G532S or p.Gly532Ser

        code: protein change string, with or without the p. prefix

        Return value: ProteinChange
    """
    match = _protein_change_pattern.match(code.strip())
    if match is None:
        raise ValidationError(
            "".join(["Not a missense protein change: ", repr(code)])
        )
    native, position, mutant = match.groups()
    native = _three_letter_codes.get(native, native)
    mutant = _three_letter_codes.get(mutant, mutant)
    if len(native) != 1 or len(mutant) != 1:
        raise ValidationError("".join(["Unknown residue in ", repr(code)]))
    return ProteinChange(int(position), native, mutant)


def _find_column(header, candidates):
    for candidate in candidates:
        if candidate in header:
            return header[candidate]
    return None


def read_missense_records(maf, default_cell_fraction=1.0):
    """ Reads missense mutations from a tab-delimited MAF file

        Rows whose Variant_Classification is present and is not
        Missense_Mutation are skipped.

        maf: path to MAF file (may be gzipped)
        default_cell_fraction: cell fraction to assign when the file has
            no cell fraction column

        Return value: list of MissenseRecords in file order
    """
    records = []
    header = None
    with xopen(None, maf) as maf_stream:
        for line_number, line in enumerate(maf_stream, 1):
            if line[0] == "#" or not line.strip():
                continue
            tokens = line.rstrip("\r\n").split("\t")
            if header is None:
                header = dict((name, i) for i, name in enumerate(tokens))
                for column in [_barcode_column, _symbol_column]:
                    if column not in header:
                        raise ValidationError(
                            "".join(["MAF file ", maf, " has no ", column, " column"])
                        )
                change_pos = _find_column(header, _protein_change_columns)
                if change_pos is None:
                    raise ValidationError(
                        "".join(
                            [
                                "MAF file ",
                                maf,
                                " needs one of the columns ",
                                ", ".join(_protein_change_columns),
                            ]
                        )
                    )
                barcode_pos = header[_barcode_column]
                symbol_pos = header[_symbol_column]
                transcript_pos = header.get(_transcript_column)
                classification_pos = header.get(_classification_column)
                fraction_pos = _find_column(header, _cell_fraction_columns)
                if fraction_pos is None:
                    warnings.warn(
                        "".join(
                            [
                                "No cell fraction column in ",
                                maf,
                                "; using ",
                                str(default_cell_fraction),
                                " for every mutation",
                            ]
                        ),
                        Warning,
                    )
                continue
            if len(tokens) != len(header):
                raise ValidationError(
                    "".join(
                        [
                            "Line ",
                            str(line_number),
                            " of ",
                            maf,
                            " has ",
                            str(len(tokens)),
                            " fields; expected ",
                            str(len(header)),
                        ]
                    )
                )
            if (
                classification_pos is not None
                and tokens[classification_pos] != "Missense_Mutation"
            ):
                continue
            transcript_id = None
            if (
                transcript_pos is not None
                and tokens[transcript_pos] not in _missing_values
            ):
                transcript_id = tokens[transcript_pos]
            try:
                if fraction_pos is None:
                    cell_fraction = default_cell_fraction
                else:
                    cell_fraction = float(tokens[fraction_pos])
                records.append(
                    MissenseRecord(
                        tokens[barcode_pos],
                        transcript_id,
                        tokens[symbol_pos],
                        parse_protein_change(tokens[change_pos]),
                        cell_fraction,
                    )
                )
            except ValueError as e:
                raise ValidationError(
                    "".join(
                        ["Line ", str(line_number), " of ", maf, ": ", str(e)]
                    )
                )
    return records


def header_label(header, label):
    """ Extracts a labeled value such as gene_symbol:ABR from a FASTA header

        header: FASTA header line, with or without the leading >
        label: label including its colon, e.g. "transcript:"

        Return value: the value after the label, or None if absent
    """
    for token in header.lstrip(">").split():
        if token.startswith(label):
            return token[len(label):]
    return None


def read_protein_fasta(fasta):
    """ Reads an Ensembl peptide FASTA file into a ProteinDatabase

        Each header must carry gene_symbol: and may carry transcript:
        labels; entries without a gene symbol or without sequence lines
        are skipped.

        fasta: path to FASTA file (may be gzipped)

        Return value: ProteinDatabase
    """
    entries = []
    skipped = {"symbol": 0, "sequence": 0}

    def add_entry(header, sequence_lines):
        symbol = header_label(header, "gene_symbol:")
        if symbol is None:
            skipped["symbol"] += 1
            return
        if not normalize_sequence("".join(sequence_lines)):
            skipped["sequence"] += 1
            return
        entries.append(
            (symbol, header_label(header, "transcript:"), "".join(sequence_lines))
        )

    header, sequence_lines = None, []
    with xopen(None, fasta) as fasta_stream:
        for line in fasta_stream:
            line = line.strip()
            if not line:
                continue
            if line[0] == ">":
                if header is not None:
                    add_entry(header, sequence_lines)
                header, sequence_lines = line, []
            elif header is None:
                raise ValidationError(
                    "".join(["FASTA file ", fasta, " does not begin with a header"])
                )
            else:
                sequence_lines.append(line)
    if header is not None:
        add_entry(header, sequence_lines)
    if skipped["symbol"]:
        warnings.warn(
            "".join(
                [
                    "Skipped ",
                    str(skipped["symbol"]),
                    " FASTA entries without a gene_symbol label in ",
                    fasta,
                ]
            ),
            Warning,
        )
    if skipped["sequence"]:
        warnings.warn(
            "".join(
                [
                    "Skipped ",
                    str(skipped["sequence"]),
                    " FASTA entries without a sequence in ",
                    fasta,
                ]
            ),
            Warning,
        )
    return ProteinDatabase(entries)


def write_results(output_file, records):
    """ Writes peptide pair records out to file

        output_file: path to output file; use - for stdout
        records: iterable of PeptidePairRecords, written in the given order

        No return value.
    """
    if output_file == "-":
        output_stream = sys.stdout
    else:
        output_stream = open(output_file, "w")
    try:
        print(
            "".join(
                ["# neopair version ", version_number, "; run ", str(datetime.date.today())]
            ),
            file=output_stream,
        )
        print(PeptidePairRecord.header(), file=output_stream)
        for record in records:
            print(record.format(), file=output_stream)
    finally:
        if output_stream is not sys.stdout:
            output_stream.close()


def read_results(input_file):
    """ Reads peptide pair records written by write_results()

        input_file: path to peptide pair file; use - for stdin

        Return value: list of PeptidePairRecords in file order
    """
    header = PeptidePairRecord.header()
    records = []
    with xopen("-" if input_file == "-" else None, input_file) as input_stream:
        for line in input_stream:
            line = line.rstrip("\r\n")
            if not line or line[0] == "#" or line == header:
                continue
            records.append(PeptidePairRecord.parse(line))
    return records
