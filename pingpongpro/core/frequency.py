# -*- coding: utf-8 -*-

# This file is part of PingPongPro.
# Ping-pong signature detection for small-RNA sequencing data.
#
# Licensed under MIT License.

"""Genome-wide frequency of (rounded) stack heights."""

import numpy as np


def round_heights(reads):
    """Round stack heights to the nearest integer, halves rounding up."""
    return np.floor(np.asarray(reads, dtype=np.float64) + 0.5).astype(np.int64)


class HeightFrequencyTable:
    """Number of stacks (both strands, all contigs) per rounded height.

    Rare heights get low frequencies, so the product of two frequencies
    measures how unusual a pair of stacks is.
    """

    def __init__(self, heights=None, counts=None):
        if heights is None:
            heights = np.empty(0, dtype=np.int64)
            counts = np.empty(0, dtype=np.int64)
        self.heights = np.asarray(heights, dtype=np.int64)
        self.counts = np.asarray(counts, dtype=np.int64)
        if self.heights.shape != self.counts.shape:
            raise ValueError('heights and counts must have the same shape')
        if len(self.heights) > 1 and np.any(np.diff(self.heights) <= 0):
            raise ValueError('heights must be sorted and unique')

    @classmethod
    def from_counts(cls, counts):
        """Tabulate the rounded heights of every entry in *counts*."""
        heights, freqs = np.unique(round_heights(counts.all_reads()), return_counts=True)
        return cls(heights, freqs)

    def __len__(self):
        return len(self.heights)

    def __getitem__(self, height):
        i = np.searchsorted(self.heights, height)
        if i < len(self.heights) and self.heights[i] == height:
            return int(self.counts[i])
        return 0

    def __eq__(self, other):
        if not isinstance(other, HeightFrequencyTable):
            return NotImplemented
        return (np.array_equal(self.heights, other.heights)
                and np.array_equal(self.counts, other.counts))

    @property
    def total(self):
        return int(self.counts.sum())

    @property
    def min_height_frequency(self):
        """Frequency of the smallest height present, None if empty."""
        if len(self.heights) == 0:
            return None
        return int(self.counts[0])

    def lookup(self, heights):
        """Vectorised frequency lookup; 0 where a height is absent."""
        heights = np.asarray(heights, dtype=np.int64)
        if len(self.heights) == 0:
            return np.zeros(heights.shape, dtype=np.float64)
        idx = np.searchsorted(self.heights, heights)
        idx_c = np.minimum(idx, len(self.heights) - 1)
        hit = (idx < len(self.heights)) & (self.heights[idx_c] == heights)
        return np.where(hit, self.counts[idx_c], 0).astype(np.float64)

    def as_dict(self):
        return {int(h): int(c) for h, c in zip(self.heights, self.counts)}
