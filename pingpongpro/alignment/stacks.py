# -*- coding: utf-8 -*-

# This file is part of PingPongPro.
# Ping-pong signature detection for small-RNA sequencing data.
#
# Licensed under MIT License.

"""Counting of read stacks in SAM/BAM files.

Reads are stacked by the genomic position of their 5' end: the alignment
start on the plus strand, the alignment end on the minus strand.
"""

import logging as lg
from collections import Counter, OrderedDict

import pysam

from ..core.genome import STRAND_MINUS, STRAND_PLUS, GenomeCountsBuilder

MULTIHITS = ('weighted', 'discard', 'unique')


def _print_progress(nrecords, infolev=5000000):
    mrecords = nrecords / 1e6
    msg = f'...processed {mrecords:.1f}M alignments'
    if nrecords % infolev == 0:
        lg.info(msg)
    else:
        lg.debug(msg)


def read_weight(aln, multihits):
    """Amount a read adds to its stack under the given multi-hit policy.

    ``weighted`` splits a read evenly over its ``NH`` alignments,
    ``discard`` drops reads with more than one alignment and ``unique``
    counts every alignment fully.
    """
    if multihits == 'unique':
        return 1.0
    nh = aln.get_tag('NH') if aln.has_tag('NH') else 1
    if multihits == 'weighted':
        return 1.0 / nh
    return 1.0 if nh == 1 else 0.0


def five_prime_end(aln):
    """Stack of an aligned read.

    Returns:
        (strand, position, uridine) tuple. Minus-strand reads are stored
        reverse-complemented, so their 5' uridine shows up as a trailing A.
    """
    seq = aln.query_sequence or ''
    cigar = aln.cigartuples or []
    if aln.is_reverse:
        clipped = 0
        if len(cigar) > 1 and cigar[-1][0] == pysam.CSOFT_CLIP:
            clipped = cigar[-1][1]
        i = len(seq) - clipped - 1
        uridine = 0 <= i < len(seq) and seq[i] in 'Aa'
        # a record without CIGAR covers no reference bases
        end = aln.reference_end
        if end is None:
            end = aln.reference_start
        return STRAND_MINUS, end, uridine

    clipped = 0
    if cigar and cigar[0][0] == pysam.CSOFT_CLIP:
        clipped = cigar[0][1]
    uridine = clipped < len(seq) and seq[clipped] in 'Tt'
    return STRAND_PLUS, aln.reference_start, uridine


def count_stacks(paths, min_read_length=1, max_read_length=1000, multihits='weighted',
                 builder=None, threads=1):
    """Sum read weights per 5' position over one or more alignment files.

    Args:
        paths: SAM/BAM paths; ``'-'`` reads from stdin.
        min_read_length, max_read_length: Reads whose sequence length lies
            outside this range are ignored.
        multihits: One of ``weighted``, ``discard`` or ``unique``.
        builder: Optional GenomeCountsBuilder to add to.
        threads: Decompression threads passed to pysam.

    Returns:
        (GenomeCounts, run_info) tuple.
    """
    if min_read_length > max_read_length:
        raise ValueError(
            f'maximum read length ({max_read_length}) must not be lower than '
            f'minimum read length ({min_read_length})')
    if multihits not in MULTIHITS:
        raise ValueError(f'Unknown multihits mode "{multihits}". Choose from: {", ".join(MULTIHITS)}')

    builder = builder or GenomeCountsBuilder()
    alninfo = Counter()
    references = None

    for path in paths:
        lg.info(f'Counting reads in {path}')
        with pysam.AlignmentFile(path, 'r', check_sq=False, threads=threads) as sf:
            # contig names must mean the same thing in every input
            if references is None:
                references = tuple(sf.references)
            elif tuple(sf.references) != references:
                raise ValueError(f"@SQ header lines of '{path}' differ from those of previous input files")

            for aln in sf.fetch(until_eof=True):
                alninfo['total_alignments'] += 1
                if alninfo['total_alignments'] % 1000000 == 0:
                    _print_progress(alninfo['total_alignments'])

                if aln.is_unmapped or aln.reference_start < 0:
                    alninfo['unmapped'] += 1
                    continue

                seqlen = len(aln.query_sequence or '')
                if not min_read_length <= seqlen <= max_read_length:
                    alninfo['length_filtered'] += 1
                    continue

                weight = read_weight(aln, multihits)
                if weight <= 0:
                    alninfo['multihit_discarded'] += 1
                    continue

                strand, position, uridine = five_prime_end(aln)
                builder.add(strand, aln.reference_name, position, weight, uridine)
                alninfo['counted_plus' if strand == STRAND_PLUS else 'counted_minus'] += 1

    counts = builder.build()
    run_info = OrderedDict()
    for f in ['total_alignments', 'unmapped', 'length_filtered', 'multihit_discarded',
              'counted_plus', 'counted_minus']:
        run_info[f] = alninfo[f]
    run_info['stacks_plus'] = counts.num_stacks(STRAND_PLUS)
    run_info['stacks_minus'] = counts.num_stacks(STRAND_MINUS)
    lg.debug(str(run_info))
    return counts, run_info
