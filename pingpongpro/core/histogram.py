# -*- coding: utf-8 -*-

# This file is part of PingPongPro.
# Ping-pong signature detection for small-RNA sequencing data.
#
# Licensed under MIT License.

"""Joint overlap histogram: construction and projections.

For every plus-strand stack the minus strand is scanned at each tested
overlap. Each partner found is scored by the joint rarity of the two stack
heights (``heightScoreBin``) and by how much it stands out from the other
partners in the window (``localHeightBin``), and counted under its 5'
uridine categories. Overlaps other than the ping-pong overlap form the
background the signal is later tested against.
"""

import functools
import logging as lg
from multiprocessing import Pool

import numpy as np
import pandas as pd

from ..compute import get_kernel
from ..compute.backend import get_backend
from .frequency import round_heights
from .genome import STRAND_MINUS, STRAND_PLUS
from .params import LOCAL_HEIGHT_LABELS, URIDINE_LABELS, BinningParams

# projection name -> axis of the histogram array
DIMENSIONS = {
    'height_score': 1,
    'plus_uridine': 2,
    'minus_uridine': 3,
    'local_height': 4,
}


class JointOverlapHistogram:
    """Dense ``(overlap, heightScoreBin, plusUridine, minusUridine, localHeightBin)`` counts.

    Attributes:
        counts: float64 array of shape ``(n_overlaps, n_bins, 2, 2, 2)``.
        params: BinningParams used to build the histogram.
        bin_edges: Original height-score bin boundaries of every bin
            (length ``n_bins + 1``). Identity before collapsing.
    """

    def __init__(self, counts, params=None, bin_edges=None, collapsed=False):
        self.params = params or BinningParams()
        self.counts = np.asarray(counts, dtype=np.float64)
        if self.counts.ndim != 5 or self.counts.shape[0] != self.params.n_overlaps \
                or self.counts.shape[2:] != (2, 2, 2):
            raise ValueError(f'Unexpected histogram shape {self.counts.shape}')
        if bin_edges is None:
            bin_edges = np.arange(self.n_bins + 1, dtype=np.int64)
        self.bin_edges = np.asarray(bin_edges, dtype=np.int64)
        if len(self.bin_edges) != self.n_bins + 1:
            raise ValueError('bin_edges must have n_bins + 1 entries')
        self.collapsed = collapsed

    @classmethod
    def zeros(cls, params=None):
        params = params or BinningParams()
        shape = (params.n_overlaps, params.height_score_bins, 2, 2, 2)
        return cls(np.zeros(shape, dtype=np.float64), params)

    @property
    def n_bins(self):
        return self.counts.shape[1]

    @property
    def total(self):
        return float(self.counts.sum())

    def counts_at(self, overlap):
        return self.counts[self.params.overlap_index(overlap)]

    @property
    def signal(self):
        """Counts at the ping-pong overlap, shape ``(n_bins, 2, 2, 2)``."""
        return self.counts_at(self.params.pingpong_overlap)

    @property
    def background(self):
        """Counts at all other overlaps, shape ``(n_background, n_bins, 2, 2, 2)``."""
        idx = [self.params.overlap_index(o) for o in self.params.background_overlaps]
        return self.counts[idx]

    def mass_by_overlap(self):
        sums = self.counts.reshape(self.params.n_overlaps, -1).sum(axis=1)
        return dict(zip(self.params.overlaps, sums.tolist()))

    def project(self, dimension):
        """Sum over all but one dimension, per overlap.

        Args:
            dimension: One of ``height_score``, ``plus_uridine``,
                ``minus_uridine`` or ``local_height``.

        Returns:
            Array of shape ``(n_overlaps, size of dimension)``.
        """
        if dimension not in DIMENSIONS:
            raise ValueError(f'Unknown dimension "{dimension}". Choose from: {", ".join(DIMENSIONS)}')
        axis = DIMENSIONS[dimension]
        return self.counts.sum(axis=tuple(a for a in DIMENSIONS.values() if a != axis))

    def bin_of(self, original_bins):
        """Map original height-score bins to bins of this histogram."""
        return np.searchsorted(self.bin_edges, original_bins, side='right') - 1

    def collapse(self):
        from .collapse import collapse_bins
        return collapse_bins(self)

    def to_frame(self):
        """Long-format DataFrame with one row per cell."""
        idx = np.indices(self.counts.shape).reshape(5, -1)
        return pd.DataFrame({
            'overlap': idx[0] + self.params.min_overlap,
            'bin': idx[1],
            'first_original_bin': self.bin_edges[idx[1]],
            'last_original_bin': self.bin_edges[idx[1] + 1] - 1,
            'plus_uridine': np.array(URIDINE_LABELS)[idx[2]],
            'minus_uridine': np.array(URIDINE_LABELS)[idx[3]],
            'local_height': np.array(LOCAL_HEIGHT_LABELS)[idx[4]],
            'count': self.counts.ravel(),
        })

    def __str__(self):
        return '<JointOverlapHistogram overlaps={}..{} bins={} total={:g}{}>'.format(
            self.params.min_overlap, self.params.max_overlap, self.n_bins, self.total,
            ' collapsed' if self.collapsed else '')


def log_max_joint_frequency(table):
    """``log10`` of the squared frequency of the smallest height in *table*.

    Two stacks of the smallest height form the most common pair, which
    defines the top of the height-score scale.
    """
    min_freq = table.min_height_frequency
    if min_freq is None:
        raise ValueError('Height frequency table is empty')
    return float(np.log10(float(min_freq) * float(min_freq)))


def stack_frequencies(table, stacks):
    """Height frequency of every stack; every height must be in *table*."""
    freq = table.lookup(round_heights(stacks.reads))
    if np.any(freq < 1):
        raise ValueError('Stack height missing from the height frequency table')
    return freq


def _contig_histogram(stacks, table, log_max_joint, params, backend):
    """Partial histogram of one contig (runs in a worker process)."""
    plus, minus = stacks
    partial = JointOverlapHistogram.zeros(params).counts
    kernel = get_kernel(backend)
    kernel(partial, plus, minus,
           stack_frequencies(table, plus), stack_frequencies(table, minus),
           log_max_joint, params)
    return partial


def build_histogram(counts, table, params=None, backend=None, ncpu=1):
    """Populate a :class:`JointOverlapHistogram` from genome counts.

    Args:
        counts: GenomeCounts.
        table: HeightFrequencyTable built from *counts*.
        params: BinningParams (defaults if None).
        backend: Kernel name; the active backend if None.
        ncpu: Number of worker processes. Contigs are distributed over
            workers and their partial histograms summed.
    """
    params = params or BinningParams()
    hist = JointOverlapHistogram.zeros(params)
    if counts.is_empty or len(table) == 0:
        lg.info('No stacks to score, histogram is empty')
        return hist

    backend = backend or get_backend().name
    log_max_joint = log_max_joint_frequency(table)

    tasks = []
    for contig, plus in counts.items(STRAND_PLUS):
        minus = counts.get(STRAND_MINUS, contig)
        if len(minus) > 0:
            tasks.append((plus, minus))
    lg.info(f'Scoring {len(tasks)} contigs with stacks on both strands')

    _func = functools.partial(
        _contig_histogram,
        table=table,
        log_max_joint=log_max_joint,
        params=params,
        backend=backend,
    )
    if ncpu > 1 and len(tasks) > 1:
        with Pool(processes=min(ncpu, len(tasks))) as pool:
            result = pool.map_async(_func, tasks)
            for partial in result.get():
                hist.counts += partial
    else:
        for stacks in tasks:
            hist.counts += _func(stacks)

    lg.debug(f'Histogram mass by overlap: {hist.mass_by_overlap()}')
    return hist
