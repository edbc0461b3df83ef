# This file is part of PingPongPro.
# Ping-pong signature detection for small-RNA sequencing data.
#
# Licensed under MIT License.

"""Vectorised numpy kernel for the joint overlap histogram.

Plus-strand stacks are processed in chunks; every chunk looks up all
candidate partners with one ``searchsorted`` call, so memory stays bounded
by ``chunk_size * n_overlaps``.
"""

from dataclasses import dataclass

import numpy as np

from ..core.params import (
    ABOVE_LOCAL_COVERAGE,
    BELOW_LOCAL_COVERAGE,
    NOT_URIDINE,
    URIDINE,
)

DEFAULT_CHUNK_SIZE = 1 << 16


@dataclass(frozen=True)
class PairFeatures:
    """Scored (plus stack, minus partner) pairs of one chunk."""
    plus_index: np.ndarray        # index into the plus-strand ContigStacks
    minus_index: np.ndarray       # index into the minus-strand ContigStacks
    overlap: np.ndarray
    height_bin: np.ndarray
    local_bin: np.ndarray

    def __len__(self):
        return len(self.plus_index)

    def subset(self, mask):
        return PairFeatures(
            plus_index=self.plus_index[mask],
            minus_index=self.minus_index[mask],
            overlap=self.overlap[mask],
            height_bin=self.height_bin[mask],
            local_bin=self.local_bin[mask],
        )


def height_score_bin(joint_freq, log_max_joint, n_bins):
    """Map joint height frequencies to log-scaled bins in [0, n_bins - 1]."""
    log_joint = np.log10(joint_freq)
    if log_max_joint == 0:
        ratio = np.where(log_joint > 0, 1.0, 0.0)
    else:
        ratio = log_joint / log_max_joint
    bins = np.floor(ratio * (n_bins - 1) + 0.5)
    return np.clip(bins, 0, n_bins - 1).astype(np.int64)


def pair_features(plus, minus, plus_freq, minus_freq, log_max_joint, params,
                  chunk_size=DEFAULT_CHUNK_SIZE):
    """Yield :class:`PairFeatures` for every plus stack with partners.

    Args:
        plus, minus: ContigStacks of the same contig.
        plus_freq, minus_freq: Height frequency of every stack (parallel to
            the ContigStacks arrays).
        log_max_joint: ``log10`` of the normalisation ceiling.
        params: BinningParams.
    """
    n_minus = len(minus)
    if len(plus) == 0 or n_minus == 0:
        return
    offsets = np.arange(params.min_overlap, params.max_overlap + 1, dtype=np.int64)
    n_offsets = len(offsets)

    for start in range(0, len(plus), chunk_size):
        stop = min(start + chunk_size, len(plus))
        targets = plus.positions[start:stop, None] + offsets[None, :]
        idx = np.searchsorted(minus.positions, targets)
        idx_c = np.minimum(idx, n_minus - 1)
        found = (idx < n_minus) & (minus.positions[idx_c] == targets)
        heights = np.where(found, minus.reads[idx_c], 0.0)

        max_height = heights.max(axis=1)
        mean_height = heights.sum(axis=1) / n_offsets
        # stacks without any partner in the vicinity cannot be scored
        rows, cols = np.nonzero(found & (max_height > 0)[:, None])
        if len(rows) == 0:
            continue

        minus_index = idx_c[rows, cols]
        partner = minus.reads[minus_index]
        joint = plus_freq[start + rows] * minus_freq[minus_index]

        adjusted_mean = mean_height[rows] - partner / n_offsets
        local_score = (partner - adjusted_mean) / max_height[rows]

        yield PairFeatures(
            plus_index=start + rows,
            minus_index=minus_index,
            overlap=offsets[cols],
            height_bin=height_score_bin(joint, log_max_joint, params.height_score_bins),
            local_bin=np.where(local_score < params.local_height_threshold,
                               BELOW_LOCAL_COVERAGE, ABOVE_LOCAL_COVERAGE),
        )


def accumulate_contig(hist, plus, minus, plus_freq, minus_freq, log_max_joint, params):
    """Add the contributions of one contig to *hist* in place."""
    prior = params.uridine_prior()
    for feats in pair_features(plus, minus, plus_freq, minus_freq, log_max_joint, params):
        k = feats.overlap - params.min_overlap
        signal = feats.overlap == params.pingpong_overlap

        # observed 5' bases at the ping-pong overlap
        pu = np.where(plus.uridine[feats.plus_index[signal]], URIDINE, NOT_URIDINE)
        mu = np.where(minus.uridine[feats.minus_index[signal]], URIDINE, NOT_URIDINE)
        np.add.at(hist, (k[signal], feats.height_bin[signal], pu, mu, feats.local_bin[signal]), 1.0)

        # background overlaps spread one unit over all base combinations
        bg = ~signal
        for plus_cat in (URIDINE, NOT_URIDINE):
            for minus_cat in (URIDINE, NOT_URIDINE):
                np.add.at(
                    hist,
                    (k[bg], feats.height_bin[bg], plus_cat, minus_cat, feats.local_bin[bg]),
                    prior[plus_cat][minus_cat],
                )
    return hist
