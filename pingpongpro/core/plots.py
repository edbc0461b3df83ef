# -*- coding: utf-8 -*-

# This file is part of PingPongPro.
# Ping-pong signature detection for small-RNA sequencing data.
#
# Licensed under MIT License.

"""Histogram plots of the background estimation (requires matplotlib)."""

import logging as lg

import numpy as np

from .params import LOCAL_HEIGHT_LABELS, URIDINE_LABELS

# (dimension, title, x-axis labels, log-scaled y-axis)
PROJECTIONS = [
    ('height_score', 'height score', None, True),
    ('plus_uridine', 'base content at 5-prime end on forward strand', URIDINE_LABELS, False),
    ('minus_uridine', 'base content at 5-prime end on reverse strand', URIDINE_LABELS, False),
    ('local_height', 'local height score', LOCAL_HEIGHT_LABELS, False),
]


def plot_projection(histogram, dimension, title, filename, labels=None, log_scale=False, dpi=100):
    """Plot one projection: background overlaps as grey bars, ping-pong as a red line."""
    import matplotlib
    matplotlib.use('Agg')
    import matplotlib.pyplot as plt
    from matplotlib.patches import Patch

    params = histogram.params
    bars = histogram.project(dimension)
    if log_scale:
        with np.errstate(divide='ignore'):
            bars = np.log10(bars)
        bars[~np.isfinite(bars)] = 0
        bars = np.maximum(bars, 0)

    x = np.arange(bars.shape[1])
    fig, ax = plt.subplots(figsize=(8, 6))
    try:
        for overlap, row in zip(params.overlaps, bars):
            if overlap == params.pingpong_overlap:
                continue
            ax.bar(x, row, width=1.0, align='edge', color='black', alpha=0.1, linewidth=0)
        signal = bars[params.overlap_index(params.pingpong_overlap)]
        if len(signal):
            ax.step(np.append(x, len(x)), np.append(signal, signal[-1]),
                    where='post', color='red', linewidth=2)

        ax.set_xlabel(title)
        ax.set_ylabel('log10(frequency)' if log_scale else 'frequency')
        ax.set_xlim(0, max(len(x), 1))
        if labels:
            ax.set_xticks(x + 0.5)
            ax.set_xticklabels(labels)
        ax.legend(
            handles=[Patch(color='red', label=f'{params.pingpong_overlap} nt overlap'),
                     Patch(color='black', alpha=0.3, label='arbitrary overlaps')],
            loc='upper center', ncol=2,
        )
        fig.savefig(filename, dpi=dpi)
    finally:
        plt.close(fig)
    lg.debug(f'Wrote plot {filename}')
    return filename


def plot_histograms(histogram, outfile_path):
    """Plot every projection of *histogram*.

    Args:
        outfile_path: Callable mapping a file suffix to an output path.

    Returns:
        List of written files.
    """
    written = []
    for dimension, title, labels, log_scale in PROJECTIONS:
        filename = outfile_path(title.replace(' ', '_') + '.png')
        written.append(plot_projection(histogram, dimension, title, filename,
                                       labels=labels, log_scale=log_scale))
    return written
