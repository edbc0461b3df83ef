# -*- coding: utf-8 -*-

# This file is part of PingPongPro.
# Ping-pong signature detection for small-RNA sequencing data.
#
# Licensed under MIT License.

"""Scoring of the ping-pong overlap against the background overlaps.

For every (height-score bin, plus uridine, minus uridine, local height) cell
the background overlaps give a mean and standard deviation. The ping-pong
count is standardised against them and damped by ``value / (value + mean)``
so that cells with tiny absolute counts do not look significant only because
the background barely varies. Cells where either denominator is zero get NaN
and are not reportable.
"""

import logging as lg
from dataclasses import dataclass

import numpy as np
import pandas as pd
from scipy import stats

from .params import LOCAL_HEIGHT_LABELS, URIDINE_LABELS


@dataclass(frozen=True)
class SignificanceTable:
    """Per-cell statistics, every array of shape ``(n_bins, 2, 2, 2)``."""
    mean: np.ndarray
    stddev: np.ndarray
    value: np.ndarray
    zscore: np.ndarray
    pvalue: np.ndarray
    score: np.ndarray
    bin_edges: np.ndarray

    @property
    def n_bins(self):
        return self.score.shape[0]

    @property
    def defined(self):
        """True where the score exists."""
        return ~np.isnan(self.score)

    def score_of(self, bins, plus_uridine, minus_uridine, local_height):
        """Vectorised score lookup (NaN where undefined)."""
        return self.score[bins, plus_uridine, minus_uridine, local_height]

    def to_frame(self):
        idx = np.indices(self.score.shape).reshape(4, -1)
        return pd.DataFrame({
            'bin': idx[0],
            'first_original_bin': self.bin_edges[idx[0]],
            'last_original_bin': self.bin_edges[idx[0] + 1] - 1,
            'plus_uridine': np.array(URIDINE_LABELS)[idx[1]],
            'minus_uridine': np.array(URIDINE_LABELS)[idx[2]],
            'local_height': np.array(LOCAL_HEIGHT_LABELS)[idx[3]],
            'background_mean': self.mean.ravel(),
            'background_stddev': self.stddev.ravel(),
            'pingpong_count': self.value.ravel(),
            'zscore': self.zscore.ravel(),
            'pvalue': self.pvalue.ravel(),
            'score': self.score.ravel(),
        })


def estimate_significance(histogram, ddof=1):
    """Score the ping-pong overlap of a (collapsed) histogram.

    Args:
        histogram: JointOverlapHistogram, normally the collapsed one.
        ddof: Delta degrees of freedom of the background standard deviation.

    Returns:
        SignificanceTable.
    """
    if not histogram.collapsed:
        lg.warning('Estimating significance on an uncollapsed histogram')

    background = histogram.background
    value = histogram.signal.copy()
    if background.shape[0] > ddof:
        mean = background.mean(axis=0)
        stddev = background.std(axis=0, ddof=ddof)
    else:
        mean = np.zeros_like(value)
        stddev = np.zeros_like(value)

    defined = (stddev > 0) & (value + mean > 0)
    with np.errstate(divide='ignore', invalid='ignore'):
        zscore = np.where(defined, (value - mean) / stddev, np.nan)
        score = np.where(defined, zscore * value / (value + mean), np.nan)
    pvalue = np.where(defined, stats.norm.sf(np.nan_to_num(zscore)), np.nan)

    lg.info(f'Significance: {int(defined.sum())} of {defined.size} cells defined')
    return SignificanceTable(
        mean=mean,
        stddev=stddev,
        value=value,
        zscore=zscore,
        pvalue=pvalue,
        score=score,
        bin_edges=histogram.bin_edges.copy(),
    )
