# -*- coding: utf-8 -*-

# This file is part of PingPongPro.
# Ping-pong signature detection for small-RNA sequencing data.
#
# Licensed under MIT License.

"""Report generation for PingPongPro.

Functions accept individual data pieces rather than the pipeline object,
so they can be used on their own.
"""

import logging as lg

import numpy as np
import pandas as pd

from ..compute.stock import pair_features
from .genome import STRAND_MINUS, STRAND_PLUS
from .histogram import log_max_joint_frequency, stack_frequencies
from .params import NOT_URIDINE, URIDINE

BEDGRAPH_COLUMNS = ['chrom', 'start', 'end', 'score']


def _run_info_comment(run_info):
    _comment = ['## RunInfo']
    _comment += ['{}:{}'.format(*tup) for tup in run_info.items()]
    return '\t'.join(_comment) + '\n'


def write_histogram(histogram, filename, run_info=None):
    """Write a histogram as long-format TSV."""
    with open(filename, 'w') as outh:
        if run_info:
            outh.write(_run_info_comment(run_info))
        histogram.to_frame().to_csv(outh, sep='\t', index=False)


def write_significance(significance, filename, run_info=None):
    """Write per-cell background statistics and scores as TSV."""
    _report = significance.to_frame()
    _report = _report.round({'background_mean': 4, 'background_stddev': 4, 'zscore': 4, 'score': 4})
    with open(filename, 'w') as outh:
        if run_info:
            outh.write(_run_info_comment(run_info))
        _report.to_csv(outh, sep='\t', index=False, na_rep='NA')


def find_pingpong_loci(counts, table, collapsed, significance, min_stack_height=1, min_score=0.0):
    """Stacks paired at the ping-pong overlap whose cell score passes *min_score*.

    Args:
        counts: GenomeCounts.
        table: HeightFrequencyTable of *counts*.
        collapsed: Collapsed JointOverlapHistogram the scores belong to.
        significance: SignificanceTable of *collapsed*.
        min_stack_height: Both stacks of a pair need at least this height.
        min_score: Minimum significance score.

    Returns:
        DataFrame with bedGraph columns. The plus stack is reported at its
        start, the minus stack at its 5' nucleotide.
    """
    params = collapsed.params
    if collapsed.n_bins == 0 or counts.is_empty:
        return pd.DataFrame(columns=BEDGRAPH_COLUMNS)

    log_max_joint = log_max_joint_frequency(table)
    frames = []
    for contig, plus in counts.items(STRAND_PLUS):
        minus = counts.get(STRAND_MINUS, contig)
        if len(minus) == 0:
            continue
        plus_freq = stack_frequencies(table, plus)
        minus_freq = stack_frequencies(table, minus)
        for feats in pair_features(plus, minus, plus_freq, minus_freq, log_max_joint, params):
            feats = feats.subset(feats.overlap == params.pingpong_overlap)
            if len(feats) == 0:
                continue
            pu = np.where(plus.uridine[feats.plus_index], URIDINE, NOT_URIDINE)
            mu = np.where(minus.uridine[feats.minus_index], URIDINE, NOT_URIDINE)
            score = significance.score_of(collapsed.bin_of(feats.height_bin), pu, mu, feats.local_bin)
            keep = (~np.isnan(score)) & (score >= min_score) \
                & (plus.reads[feats.plus_index] >= min_stack_height) \
                & (minus.reads[feats.minus_index] >= min_stack_height)
            if not np.any(keep):
                continue
            plus_pos = plus.positions[feats.plus_index[keep]]
            minus_pos = minus.positions[feats.minus_index[keep]]
            frames.append(pd.DataFrame({
                'chrom': contig,
                'start': np.concatenate([plus_pos, minus_pos - 1]),
                'end': np.concatenate([plus_pos + 1, minus_pos]),
                'score': np.concatenate([score[keep], score[keep]]),
            }))

    if not frames:
        return pd.DataFrame(columns=BEDGRAPH_COLUMNS)
    loci = pd.concat(frames, ignore_index=True)
    # a nucleotide can be reported by two different pairs
    loci = loci.groupby(['chrom', 'start', 'end'], as_index=False, sort=False)['score'].max()
    loci = loci.sort_values(['chrom', 'start'], kind='stable').reset_index(drop=True)
    lg.info(f'{len(loci)} loci with ping-pong signature')
    return loci[BEDGRAPH_COLUMNS]


def write_bedgraph(loci, filename, track_name='pingpongpro'):
    with open(filename, 'w') as outh:
        outh.write(f'track type=bedGraph name="{track_name}"\n')
        loci.to_csv(outh, sep='\t', header=False, index=False, float_format='%.4f')
