# This file is part of PingPongPro.
# Ping-pong signature detection for small-RNA sequencing data.
#
# Licensed under MIT License.

"""Numba-compiled kernel for the joint overlap histogram.

Walks the plus and minus stacks of one contig with two pointers, so no
per-pair temporaries are allocated. Produces the same histogram as
:func:`pingpongpro.compute.stock.accumulate_contig`.
"""

import numpy as np
from numba import njit

from ..core.params import (
    ABOVE_LOCAL_COVERAGE,
    BELOW_LOCAL_COVERAGE,
    NOT_URIDINE,
    URIDINE,
)


# --- Numba JIT kernels (defined at module level for compilation caching) ---

@njit(cache=True)
def _height_score_bin(joint_freq, log_max_joint, n_bins):
    log_joint = np.log10(joint_freq)
    if log_max_joint == 0:
        ratio = 1.0 if log_joint > 0 else 0.0
    else:
        ratio = log_joint / log_max_joint
    b = np.floor(ratio * (n_bins - 1) + 0.5)
    if b < 0:
        return 0
    if b > n_bins - 1:
        return n_bins - 1
    return int(b)


@njit(cache=True)
def _accumulate_kernel(hist,
                       plus_pos, plus_reads, plus_uridine, plus_freq,
                       minus_pos, minus_reads, minus_uridine, minus_freq,
                       log_max_joint, min_overlap, max_overlap, pingpong_overlap,
                       local_threshold, prior):
    n_bins = hist.shape[1]
    n_offsets = max_overlap - min_overlap + 1
    n_minus = len(minus_pos)
    partners = np.empty(n_offsets, dtype=np.int64)
    heights = np.zeros(n_offsets, dtype=np.float64)
    j = 0
    for i in range(len(plus_pos)):
        p = plus_pos[i]
        # plus stacks are sorted, so the window start never moves back
        while j < n_minus and minus_pos[j] < p + min_overlap:
            j += 1

        for k in range(n_offsets):
            partners[k] = -1
            heights[k] = 0.0
        max_height = 0.0
        m = j
        while m < n_minus and minus_pos[m] <= p + max_overlap:
            k = minus_pos[m] - p - min_overlap
            partners[k] = m
            heights[k] = minus_reads[m]
            if minus_reads[m] > max_height:
                max_height = minus_reads[m]
            m += 1
        if max_height <= 0:
            continue
        mean_height = heights.sum() / n_offsets

        for k in range(n_offsets):
            m = partners[k]
            if m < 0:
                continue
            partner = minus_reads[m]
            b = _height_score_bin(plus_freq[i] * minus_freq[m], log_max_joint, n_bins)
            local_score = (partner - (mean_height - partner / n_offsets)) / max_height
            lb = BELOW_LOCAL_COVERAGE if local_score < local_threshold else ABOVE_LOCAL_COVERAGE

            if k + min_overlap == pingpong_overlap:
                pu = URIDINE if plus_uridine[i] else NOT_URIDINE
                mu = URIDINE if minus_uridine[m] else NOT_URIDINE
                hist[k, b, pu, mu, lb] += 1.0
            else:
                for pu in range(2):
                    for mu in range(2):
                        hist[k, b, pu, mu, lb] += prior[pu, mu]
    return hist


def accumulate_contig(hist, plus, minus, plus_freq, minus_freq, log_max_joint, params):
    """Add the contributions of one contig to *hist* in place."""
    if len(plus) == 0 or len(minus) == 0:
        return hist
    _accumulate_kernel(
        hist,
        plus.positions, plus.reads, plus.uridine, np.ascontiguousarray(plus_freq, dtype=np.float64),
        minus.positions, minus.reads, minus.uridine, np.ascontiguousarray(minus_freq, dtype=np.float64),
        float(log_max_joint),
        int(params.min_overlap), int(params.max_overlap), int(params.pingpong_overlap),
        float(params.local_height_threshold),
        np.array(params.uridine_prior(), dtype=np.float64),
    )
    return hist
