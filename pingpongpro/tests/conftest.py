# -*- coding: utf-8 -*-

# This file is part of PingPongPro.
# Ping-pong signature detection for small-RNA sequencing data.
#
# Licensed under MIT License.

"""Shared fixtures: in-memory stack counts and small BAM files."""
import os

import numpy as np
import pytest
import pysam

from pingpongpro.core.genome import GenomeCounts, GenomeCountsBuilder, STRAND_MINUS, STRAND_PLUS


def make_counts(plus=(), minus=()):
    """GenomeCounts from ``(contig, position, reads, uridine)`` tuples."""
    builder = GenomeCountsBuilder()
    for strand, entries in ((STRAND_PLUS, plus), (STRAND_MINUS, minus)):
        for contig, position, reads, uridine in entries:
            builder.add(strand, contig, position, reads, uridine)
    return builder.build()


def random_counts(seed, n_contigs=3, n_stacks=400, span=2000):
    """Dense random stacks so that most offsets find partners."""
    rng = np.random.default_rng(seed)
    builder = GenomeCountsBuilder()
    for c in range(n_contigs):
        contig = f'chr{c + 1}'
        for strand in (STRAND_PLUS, STRAND_MINUS):
            positions = rng.choice(span, size=n_stacks, replace=False)
            heights = rng.integers(1, 30, size=n_stacks) + rng.choice([0.0, 0.5, 0.25], size=n_stacks)
            uridine = rng.random(n_stacks) < 0.4
            for p, h, u in zip(positions, heights, uridine):
                builder.add(strand, contig, int(p), float(h), bool(u))
    return builder.build()


@pytest.fixture
def scenario_a():
    """Plus stack at 100 and minus stack at 110: a 10 nt overlap."""
    return make_counts(plus=[('chr1', 100, 5.0, True)], minus=[('chr1', 110, 5.0, True)])


@pytest.fixture
def scenario_b():
    """Plus stack at 100 and minus stack at 105: a 5 nt overlap."""
    return make_counts(plus=[('chr1', 100, 5.0, True)], minus=[('chr1', 105, 5.0, True)])


@pytest.fixture
def empty_counts():
    return GenomeCounts()


# --- BAM fixtures ---

HEADER = {
    'HD': {'VN': '1.0', 'SO': 'unsorted'},
    'SQ': [{'SN': 'chr1', 'LN': 5000}, {'SN': 'chr2', 'LN': 5000}],
}


def make_read(name, seq, start, reverse=False, contig=0, cigar=None, nh=None, unmapped=False):
    a = pysam.AlignedSegment()
    a.query_name = name
    a.query_sequence = seq
    a.query_qualities = pysam.qualitystring_to_array('I' * len(seq))
    if unmapped:
        a.flag = 4
        a.reference_id = -1
        a.reference_start = -1
        return a
    a.flag = 16 if reverse else 0
    a.reference_id = contig
    a.reference_start = start
    a.mapping_quality = 255
    if cigar is None:
        cigar = [(pysam.CMATCH, len(seq))]
    # an empty list leaves the CIGAR unset ('*')
    if cigar:
        a.cigartuples = cigar
    if nh is not None:
        a.set_tag('NH', nh)
    return a


def write_bam(path, reads, header=None):
    with pysam.AlignmentFile(str(path), 'wb', header=header or HEADER) as outf:
        for a in reads:
            outf.write(a)
    return str(path)


@pytest.fixture
def pingpong_bam(tmp_path):
    """Three plus reads at 100 and two minus reads ending at 110 on chr1.

    Plus reads start with T, minus reads end with A (a 5' U on the minus
    strand), plus a background pair on chr2 and one unmapped read.
    """
    seq_plus = 'T' + 'G' * 24
    seq_minus = 'C' * 24 + 'A'
    reads = [
        make_read('p1', seq_plus, 100),
        make_read('p2', seq_plus, 100),
        make_read('p3', seq_plus, 100),
        make_read('m1', seq_minus, 85, reverse=True),
        make_read('m2', seq_minus, 85, reverse=True),
        make_read('q1', 'G' * 25, 300, contig=1),
        make_read('q2', 'C' * 25, 280, reverse=True, contig=1),
        make_read('u1', 'ACGT' * 5, -1, unmapped=True),
    ]
    return write_bam(os.path.join(tmp_path, 'pingpong.bam'), reads)
