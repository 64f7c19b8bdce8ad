#!/usr/bin/env python
# coding=utf-8
"""
test___init__.py

Tests file processing and the neopair command-line driver.

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

import gzip
import io
import os
import shutil
import tempfile
import unittest
import warnings
from unittest import mock

from neopair import *

neopair_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def predicate(line):
    """ whether line is part of the neopair output body """
    return not line.startswith("# neopair version")


class TestProteinChangeParsing(unittest.TestCase):
    """Tests parsing of protein change strings"""

    def test_short_codes(self):
        """Fails if one-letter codes are misparsed"""
        self.assertEqual(parse_protein_change("G532S"), ProteinChange(532, "G", "S"))
        self.assertEqual(parse_protein_change("p.T17K"), ProteinChange(17, "T", "K"))

    def test_long_codes(self):
        """Fails if three-letter codes are misparsed"""
        self.assertEqual(
            parse_protein_change("p.Gly532Ser"), ProteinChange(532, "G", "S")
        )
        self.assertEqual(
            parse_protein_change("p.Asx12Glx"), ProteinChange(12, "B", "Z")
        )

    def test_not_missense(self):
        """Fails if non-missense changes parse"""
        for code in ["p.R273*", "p.Gly532Ter", "p.V600_K601delinsE", "", "G0S"]:
            self.assertRaises(ValidationError, parse_protein_change, code)


class TestFileProcessing(unittest.TestCase):
    """Tests reading inputs and writing outputs"""

    def setUp(self):
        """Sets up paths"""
        self.base_dir = os.path.join(neopair_dir, "tests")
        self.maf = os.path.join(self.base_dir, "ppe_missense.maf")
        self.fasta = os.path.join(self.base_dir, "ppe_proteins.fa")
        self.temp_dir = tempfile.mkdtemp()

    def test_read_maf(self):
        """Fails if MAF rows are misread or non-missense rows are kept"""
        records = read_missense_records(self.maf)
        self.assertEqual(len(records), 12)
        self.assertEqual(
            records[0],
            MissenseRecord(
                "barcode1", "ENST00000302538", "ABR", ProteinChange(17, "T", "K"), 0.8
            ),
        )
        self.assertEqual(records[-1].transcript_id, "ENST00000999999")

    def test_default_cell_fraction(self):
        """Fails if a MAF without cell fractions is not defaulted"""
        maf = os.path.join(self.temp_dir, "no_ccf.maf")
        with open(maf, "w") as maf_stream:
            print("Tumor_Sample_Barcode\tHugo_Symbol\tTranscript_ID\tProtein_Change",
                  file=maf_stream)
            print("barcode1\tABR\tNA\tT17K", file=maf_stream)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            records = read_missense_records(maf)
        self.assertEqual(len([w for w in caught if w.category is Warning]), 1)
        self.assertEqual(records[0].cell_fraction, 1.0)
        self.assertIsNone(records[0].transcript_id)

    def test_malformed_maf(self):
        """Fails if malformed MAF rows are accepted"""
        maf = os.path.join(self.temp_dir, "bad.maf")
        with open(maf, "w") as maf_stream:
            print("Tumor_Sample_Barcode\tHugo_Symbol\tHGVSp_Short\tccf", file=maf_stream)
            print("barcode1\tABR\tp.T17K\t1.7", file=maf_stream)
        self.assertRaises(ValidationError, read_missense_records, maf)
        with open(maf, "w") as maf_stream:
            print("Tumor_Sample_Barcode\tHGVSp_Short", file=maf_stream)
        self.assertRaises(ValidationError, read_missense_records, maf)

    def test_results_round_trip(self):
        """Fails if written records do not read back unchanged"""
        engine = PeptidePairEngine(read_protein_fasta(self.fasta), on_missing="skip")
        table = MissenseTable.load(read_missense_records(self.maf))
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            records = engine.generate(table, 9)
        out_file = os.path.join(self.temp_dir, "pairs.tsv")
        write_results(out_file, records)
        with open(out_file) as out_stream:
            lines = out_stream.read().splitlines()
        self.assertFalse(predicate(lines[0]))
        self.assertEqual(lines[1], PeptidePairRecord.header())
        self.assertEqual(len(lines), len(records) + 2)
        self.assertEqual(read_results(out_file), records)

    def test_gzipped_inputs(self):
        """Fails if gzipped inputs read differently from plain text"""
        gzipped_maf = os.path.join(self.temp_dir, "ppe_missense.maf.gz")
        gzipped_fasta = os.path.join(self.temp_dir, "ppe_proteins.fa.gz")
        for source, destination in [
            (self.maf, gzipped_maf),
            (self.fasta, gzipped_fasta),
        ]:
            with open(source) as source_stream:
                with gzip.open(destination, "wt") as destination_stream:
                    destination_stream.write(source_stream.read())
        self.assertEqual(
            read_missense_records(gzipped_maf), read_missense_records(self.maf)
        )
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            plain = read_protein_fasta(self.fasta)
            gzipped = read_protein_fasta(gzipped_fasta)
        self.assertEqual(gzipped.symbols(), plain.symbols())
        self.assertEqual(len(gzipped), len(plain))
        for symbol in plain.symbols():
            self.assertEqual(gzipped.lookup(symbol), plain.lookup(symbol))
        self.assertEqual(
            gzipped.lookup("ABR", "ENST00000291107"),
            plain.lookup("ABR", "ENST00000291107"),
        )

    def test_empty_fasta_entry(self):
        """Fails if a FASTA entry without residues is registered"""
        fasta = os.path.join(self.temp_dir, "empty.fa")
        with open(fasta, "w") as fasta_stream:
            print(">ENSP1 pep transcript:ENST1 gene_symbol:GENE1", file=fasta_stream)
            print(">ENSP2 pep transcript:ENST2 gene_symbol:GENE2", file=fasta_stream)
            print("*", file=fasta_stream)
            print(">ENSP3 pep transcript:ENST3 gene_symbol:GENE3", file=fasta_stream)
            print("MKV", file=fasta_stream)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            database = read_protein_fasta(fasta)
        caught = [w for w in caught if w.category is Warning]
        self.assertEqual(len(caught), 1)
        self.assertIn("2 FASTA entries without a sequence", str(caught[0].message))
        self.assertNotIn("GENE1", database)
        self.assertNotIn("GENE2", database)
        self.assertIsNone(database.lookup("GENE1", "ENST1"))
        self.assertEqual(database.lookup("GENE3"), "MKV")

    def test_results_from_stdin(self):
        """Fails if records piped through stdin are misread"""
        records = [
            PeptidePairRecord("barcode1", "ABR", (5, 7), ("FGH", "FGY")),
            PeptidePairRecord("barcode2", "ABR", (1, 3), ("ACD", "VCD")),
        ]
        out_file = os.path.join(self.temp_dir, "pairs.tsv")
        write_results(out_file, records)
        with open(out_file) as out_stream:
            contents = out_stream.read()
        with mock.patch("sys.stdin", io.StringIO(contents)):
            self.assertEqual(read_results("-"), records)

    def tearDown(self):
        """Removes temporary files"""
        shutil.rmtree(self.temp_dir, ignore_errors=True)


class TestMain(unittest.TestCase):
    """Tests the command-line driver"""

    def setUp(self):
        """Sets up paths"""
        self.base_dir = os.path.join(neopair_dir, "tests")
        self.maf = os.path.join(self.base_dir, "ppe_missense.maf")
        self.fasta = os.path.join(self.base_dir, "ppe_proteins.fa")
        self.temp_dir = tempfile.mkdtemp()
        self.out_file = os.path.join(self.temp_dir, "neopair.out")

    def test_call(self):
        """Fails if call mode writes the wrong records"""
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            main(["call", "-m", self.maf, "-f", self.fasta, "-o", self.out_file,
                  "--on-missing", "skip"])
        records = read_results(self.out_file)
        self.assertEqual(len(records), 44)
        self.assertEqual(records[0].peptide_range, PeptideRange(9, 17))

    def test_call_filters(self):
        """Fails if cell fraction and transcript filters are not applied"""
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            main(["call", "-m", self.maf, "-f", self.fasta, "-o", self.out_file,
                  "--on-missing", "skip", "--min-ccf", "0.55",
                  "--primary-transcript"])
        records = read_results(self.out_file)
        # barcode1 keeps T17K and S176A; barcode2 keeps A1V and D3E
        self.assertEqual(len(records), 9 + 9 + 3)
        self.assertEqual(
            sorted(set(r.tumor_barcode for r in records)), ["barcode1", "barcode2"]
        )

    def test_call_fail(self):
        """Fails if the default policy does not stop at a missing gene"""
        self.assertRaises(
            SequenceLookupError,
            main,
            ["call", "-m", self.maf, "-f", self.fasta, "-o", self.out_file],
        )

    def test_bad_options(self):
        """Fails if invalid option values are accepted"""
        self.assertRaises(
            RuntimeError,
            main,
            ["call", "-m", self.maf, "-f", self.fasta, "-o", self.out_file,
             "-k", "nine"],
        )
        self.assertRaises(
            RuntimeError,
            main,
            ["call", "-m", self.maf, "-f", self.fasta, "-o", self.out_file,
             "--on-missing", "ignore"],
        )

    def test_sort(self):
        """Fails if sort mode does not order records"""
        in_file = os.path.join(self.temp_dir, "unsorted.tsv")
        records = [
            PeptidePairRecord("barcode2", "ABR", (1, 3), ("ACD", "VCD")),
            PeptidePairRecord("barcode1", "ABR", (5, 7), ("FGH", "FGY")),
            PeptidePairRecord("barcode1", "ABR", (2, 4), ("CDE", "CEE")),
        ]
        write_results(in_file, records)
        main(["sort", "-i", in_file, "-o", self.out_file])
        self.assertEqual(read_results(self.out_file), sorted(records, key=sort_key))

    def test_sort_stdin(self):
        """Fails if sort mode does not read records from stdin"""
        in_file = os.path.join(self.temp_dir, "unsorted.tsv")
        records = [
            PeptidePairRecord("barcode2", "ABR", (1, 3), ("ACD", "VCD")),
            PeptidePairRecord("barcode1", "ABR", (2, 4), ("CDE", "CEE")),
        ]
        write_results(in_file, records)
        with open(in_file) as in_stream:
            contents = in_stream.read()
        with mock.patch("sys.stdin", io.StringIO(contents)):
            main(["sort", "-i", "-", "-o", self.out_file])
        self.assertEqual(read_results(self.out_file), records[::-1])

    def tearDown(self):
        """Removes temporary files"""
        shutil.rmtree(self.temp_dir, ignore_errors=True)


if __name__ == "__main__":
    unittest.main()
