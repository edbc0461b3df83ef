# -*- coding: utf-8 -*-

# This file is part of PingPongPro.
# Ping-pong signature detection for small-RNA sequencing data.
#
# Licensed under MIT License.

"""Binning constants and tunable parameters."""

from dataclasses import dataclass

# true ping-pong stacks overlap by this many nt
PING_PONG_OVERLAP = 10

# overlaps in [MIN_OVERLAP, MAX_OVERLAP] other than PING_PONG_OVERLAP
# estimate the background
MIN_OVERLAP = 0
MAX_OVERLAP = 20

HEIGHT_SCORE_BINS = 1000

# separates ping-pong partners from arbitrary neighbours
LOCAL_HEIGHT_THRESHOLD = 0.2

# expected fraction of reads with uridine at the 5' end in non-piRNA data
URIDINE_PROBABILITY = 0.25

# histogram category indices
URIDINE = 0
NOT_URIDINE = 1
ABOVE_LOCAL_COVERAGE = 0
BELOW_LOCAL_COVERAGE = 1

URIDINE_LABELS = ('uridine', 'not uridine')
LOCAL_HEIGHT_LABELS = ('above average', 'average')


@dataclass(frozen=True)
class BinningParams:
    """Parameters of the joint overlap histogram."""
    min_overlap: int = MIN_OVERLAP
    max_overlap: int = MAX_OVERLAP
    pingpong_overlap: int = PING_PONG_OVERLAP
    height_score_bins: int = HEIGHT_SCORE_BINS
    local_height_threshold: float = LOCAL_HEIGHT_THRESHOLD
    uridine_probability: float = URIDINE_PROBABILITY

    def __post_init__(self):
        if self.max_overlap <= self.min_overlap:
            raise ValueError(
                f'max_overlap ({self.max_overlap}) must be greater than min_overlap ({self.min_overlap})')
        if not self.min_overlap <= self.pingpong_overlap <= self.max_overlap:
            raise ValueError(
                f'pingpong_overlap ({self.pingpong_overlap}) must lie within '
                f'[{self.min_overlap}, {self.max_overlap}]')
        if self.height_score_bins < 1:
            raise ValueError('height_score_bins must be at least 1')
        if not 0.0 <= self.uridine_probability <= 1.0:
            raise ValueError('uridine_probability must lie within [0, 1]')

    @property
    def n_overlaps(self):
        return self.max_overlap - self.min_overlap + 1

    @property
    def overlaps(self):
        return list(range(self.min_overlap, self.max_overlap + 1))

    @property
    def background_overlaps(self):
        return [o for o in self.overlaps if o != self.pingpong_overlap]

    def overlap_index(self, overlap):
        if not self.min_overlap <= overlap <= self.max_overlap:
            raise IndexError(f'overlap {overlap} outside [{self.min_overlap}, {self.max_overlap}]')
        return overlap - self.min_overlap

    def uridine_prior(self):
        """Prior mass of each (plus, minus) uridine category, summing to 1."""
        pi = self.uridine_probability
        return ((pi * pi, pi * (1 - pi)),
                ((1 - pi) * pi, (1 - pi) * (1 - pi)))
