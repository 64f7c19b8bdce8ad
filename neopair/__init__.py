#!/usr/bin/env python
# coding=utf-8
"""
neopair

Catalogs somatic missense mutations and derives paired self/neo peptides
for downstream immunogenicity screening.

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
import argparse
import sys
import warnings

from .version import version_number
from .peptides import (
    ValidationError,
    SelfPeptide,
    NeoPeptide,
    PeptidePair,
    PeptideRange,
    PeptidePairRecord,
    sort_key,
)
from .missense import (
    ProteinChange,
    MissenseRecord,
    MissenseGroup,
    MissenseTable,
    filter_cell_fraction,
    filter_transcript,
    filter_primary_transcript,
)
from .resolver import ProteinDatabase
from .engine import (
    PeptidePairEngine,
    ConfigurationError,
    SequenceLookupError,
    candidate_windows,
    peptide_windows,
    lookup_policies,
)
from .file_processing import (
    parse_protein_change,
    read_missense_records,
    read_protein_fasta,
    read_results,
    write_results,
)

_help_intro = (
    """neopair derives paired self- and neo-peptides from somatic missense mutations."""
)


def help_formatter(prog):
    """ So formatter_class's max_help_position can be changed. """
    return argparse.HelpFormatter(prog, max_help_position=40)


def main(argv=None):
    """ Entry point for neopair software """
    parser = argparse.ArgumentParser(
        description=_help_intro, formatter_class=help_formatter
    )
    parser.add_argument(
        "--version", action="version", version="neopair " + version_number
    )
    subparsers = parser.add_subparsers(
        help=(
            'subcommands; add "-h" or "--help" ' "after a subcommand for its parameters"
        ),
        dest="subparser_name",
    )
    call_parser = subparsers.add_parser(
        "call", help="generates self/neo peptide pairs from missense mutations"
    )
    sort_parser = subparsers.add_parser(
        "sort",
        help="sorts a peptide pair file by tumor, gene, and peptide position",
    )
    # Call parser options (generates peptide pairs)
    call_parser.add_argument(
        "-m", "--maf", type=str, required=True, help="input path to missense MAF file"
    )
    call_parser.add_argument(
        "-f",
        "--fasta",
        type=str,
        required=True,
        help="input path to Ensembl peptide FASTA with gene_symbol labels",
    )
    call_parser.add_argument(
        "-o",
        "--output",
        type=str,
        required=False,
        default="-",
        help="path to output file; use - for stdout",
    )
    call_parser.add_argument(
        "-k",
        "--kmer-size",
        type=str,
        required=False,
        default="9",
        help="peptide window length",
    )
    call_parser.add_argument(
        "--on-missing",
        type=str,
        required=False,
        default="fail",
        help="what to do with genes lacking a germline sequence: "
        '"fail" stops the run, "skip" warns and continues',
    )
    call_parser.add_argument(
        "--min-ccf",
        type=str,
        required=False,
        help="keep only mutations with cancer cell fraction above this value",
    )
    call_parser.add_argument(
        "--primary-transcript",
        required=False,
        action="store_true",
        default=False,
        help="keep only mutations on the most common transcript of each "
        "tumor/gene pair",
    )
    # Sort parser options (reorders an existing peptide pair file)
    sort_parser.add_argument(
        "-i",
        "--input",
        type=str,
        required=False,
        default="-",
        help="input path to peptide pair file; use - for stdin",
    )
    sort_parser.add_argument(
        "-o",
        "--output",
        type=str,
        required=False,
        default="-",
        help="path to output file; use - for stdout",
    )
    args = parser.parse_args(argv)
    if args.subparser_name == "call":
        try:
            window_length = int(args.kmer_size)
        except ValueError:
            raise RuntimeError(
                "".join(["--kmer-size must be an integer, not ", args.kmer_size])
            )
        if window_length < 1:
            raise RuntimeError("--kmer-size must be at least 1")
        if args.on_missing not in lookup_policies:
            raise RuntimeError(
                "--on-missing must be one of " '{"fail", "skip"}'
            )
        records = read_missense_records(args.maf)
        if args.min_ccf is not None:
            try:
                threshold = float(args.min_ccf)
            except ValueError:
                raise RuntimeError(
                    "".join(["--min-ccf must be a number, not ", args.min_ccf])
                )
            records = filter_cell_fraction(records, threshold)
        if not records:
            warnings.warn(
                "".join(["No missense mutations to process from ", args.maf]),
                Warning,
            )
        table = MissenseTable.load(records)
        if args.primary_transcript:
            table = table.filter_primary_transcripts()
        engine = PeptidePairEngine(
            read_protein_fasta(args.fasta), on_missing=args.on_missing
        )
        pair_records = engine.generate(table, window_length)
        write_results(args.output, pair_records)
        if not pair_records:
            print("No peptide pairs found", file=sys.stderr)
    elif args.subparser_name == "sort":
        pair_records = read_results(args.input)
        pair_records.sort(key=sort_key)
        write_results(args.output, pair_records)
    else:
        parser.print_usage()


if __name__ == "__main__":
    main()
