# -*- coding: utf-8 -*-

# This file is part of PingPongPro.
# Ping-pong signature detection for small-RNA sequencing data.
#
# Licensed under MIT License.

"""Merging of adjacent height-score bins.

The background overlaps later provide a mean and variance for every cell,
which is meaningless for empty cells. Bins are therefore merged, lowest
first, until every background cell of the merged bin holds some mass. The
ping-pong overlap follows the same boundaries but never forces a merge.
"""

import logging as lg

import numpy as np

from .histogram import JointOverlapHistogram


def collapse_boundaries(histogram):
    """Start index (in original bins) of every collapsed bin."""
    params = histogram.params
    bg = histogram.background            # (n_background, n_bins, 2, 2, 2)
    n_bins = histogram.n_bins

    starts = []
    b = 0
    while b < n_bins:
        starts.append(b)
        acc = np.zeros(bg.shape[:1] + bg.shape[2:], dtype=np.float64)
        while True:
            acc += bg[:, b]
            b += 1
            # stop when no background cell is empty or all bins are used up
            if b >= n_bins or np.all(acc > 0):
                break
    lg.debug(f'Collapsed {n_bins} bins into {len(starts)} '
             f'(background overlaps: {len(params.background_overlaps)})')
    return np.array(starts, dtype=np.int64)


def collapse_bins(histogram):
    """Return a new histogram with merged height-score bins.

    Counts are summed, so the mass of every (overlap, uridine, local height)
    cell is preserved. A histogram without any mass collapses into zero bins.
    """
    params = histogram.params
    n_bins = histogram.n_bins
    edges_in = histogram.bin_edges

    if histogram.total == 0 or n_bins == 0:
        shape = (params.n_overlaps, 0, 2, 2, 2)
        return JointOverlapHistogram(np.zeros(shape), params,
                                     bin_edges=edges_in[:1], collapsed=True)

    starts = collapse_boundaries(histogram)
    counts = np.add.reduceat(histogram.counts, starts, axis=1)
    # boundaries are expressed in the bins of the uncollapsed histogram
    bin_edges = np.append(edges_in[starts], edges_in[-1])
    return JointOverlapHistogram(counts, params, bin_edges=bin_edges, collapsed=True)
