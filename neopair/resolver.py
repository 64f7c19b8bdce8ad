#!/usr/bin/env python
# coding=utf-8
"""
resolver.py

Part of neopair
Resolves gene symbols and transcripts to germline protein sequences.

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


def strip_version(identifier):
    """ Removes an Ensembl version suffix, e.g. ENST00000302538.10 -> ENST00000302538 """
    return identifier.split(".")[0]


def normalize_sequence(sequence):
    """ Uppercases a protein sequence and drops a terminal stop (*) """
    return "".join(sequence.split()).upper().rstrip("*")


class ProteinDatabase(object):
    """ Read-only lookup of germline protein sequences

        Entries are (HUGO symbol, transcript ID or None, sequence) triples.
        A lookup naming a transcript returns that transcript's sequence; a
        lookup without one returns the gene's primary sequence, its longest
        registered isoform (the first registered wins ties).
        Entries whose sequence is empty after normalization are ignored.
    """

    def __init__(self, entries=()):
        self._by_transcript = {}
        self._primary = {}
        for hugo_symbol, transcript_id, sequence in entries:
            sequence = normalize_sequence(sequence)
            if not sequence:
                continue
            if transcript_id is not None:
                self._by_transcript.setdefault(
                    (hugo_symbol, strip_version(transcript_id)), sequence
                )
            if hugo_symbol not in self._primary or len(sequence) > len(
                self._primary[hugo_symbol]
            ):
                self._primary[hugo_symbol] = sequence

    @classmethod
    def from_mapping(cls, mapping):
        """ Builds a database from a dictionary

            mapping: dictionary linking either a HUGO symbol or a
                (HUGO symbol, transcript ID) tuple to a sequence

            Return value: ProteinDatabase
        """
        entries = []
        for key, sequence in mapping.items():
            if isinstance(key, tuple):
                entries.append((key[0], key[1], sequence))
            else:
                entries.append((key, None, sequence))
        return cls(entries)

    def lookup(self, hugo_symbol, transcript_id=None):
        """ Finds the germline sequence for a gene

            hugo_symbol: HUGO symbol of the gene
            transcript_id: Ensembl transcript ID, or None for the gene's
                primary sequence

            Return value: amino acid sequence, or None if not found
        """
        if transcript_id is not None:
            return self._by_transcript.get(
                (hugo_symbol, strip_version(transcript_id))
            )
        return self._primary.get(hugo_symbol)

    def symbols(self):
        return sorted(self._primary)

    def __contains__(self, hugo_symbol):
        return hugo_symbol in self._primary

    def __len__(self):
        return len(self._primary)
