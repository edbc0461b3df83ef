# -*- coding: utf-8 -*-

# This file is part of PingPongPro.
# Ping-pong signature detection for small-RNA sequencing data.
#
# Licensed under MIT License.

""" PingPongPro scan

"""
import os
import sys
import logging as lg

from . import SubcommandOptions, configure_logging, collect_output_files
from .console import Stopwatch
from ..compute import backend
from ..core.model import PingPong

# Option groups shared with `resume`
STATISTICS_OPTS = """
    - Statistics Options:
        - height_score_bins:
            type: int
            default: 1000
            help: Number of bins of the height score before collapsing.
        - local_height_threshold:
            type: float
            default: 0.2
            help: >
                  Local height score above which a pair counts as standing
                  out from the stacks around it.
        - uridine_probability:
            type: float
            default: 0.25
            help: >
                  Prior probability of a 5' uridine, used to spread the
                  background overlaps over the uridine cells.
        - min_stack_height:
            alias: s
            type: float
            default: 1
            help: Minimum height of both stacks of a reported pair.
        - min_score:
            type: float
            default: 0.0
            help: Minimum significance score of a reported pair.
"""

REPORTING_OPTS = """
    - Reporting Options:
        - quiet:
            action: store_true
            help: Silence (most) output.
        - verbose:
            alias: v
            action: store_true
            help: Show detailed progress and timing.
        - debug:
            action: store_true
            help: Print debug messages.
        - logfile:
            type: argparse.FileType('w')
            help: Log output to this file.
        - outdir:
            alias: o
            default: .
            help: Output directory.
        - exp_tag:
            default: pingpongpro
            help: Experiment tag, prefix of every output file.
        - bedgraph:
            alias: b
            action: store_true
            help: Write the loci with ping-pong signature as bedGraph.
        - plot:
            alias: p
            action: store_true
            help: Plot the histogram projections (needs matplotlib).
    - Performance Options:
        - ncpu:
            default: 1
            type: int
            help: Number of worker processes.
        - backend:
            default: numba
            choices:
                - numba
                - stock
            help: Kernel used to fill the histogram.
"""


class ScanOptions(SubcommandOptions):

    OPTS = """
    - Input Options:
        - input:
            alias: i
            action: append
            help: >
                  SAM/BAM file of mapped small-RNA reads. Repeat to combine
                  several files with identical @SQ header lines. Reads from
                  stdin when omitted.
        - min_read_length:
            alias: l
            type: int
            default: 1
            help: Ignore reads shorter than this.
        - max_read_length:
            alias: L
            type: int
            default: 1000
            help: Ignore reads longer than this.
        - multihits:
            alias: m
            default: weighted
            choices:
                - weighted
                - discard
                - unique
            help: >
                  Treatment of reads with multiple alignments (NH tag).
                  "weighted" - each alignment counts 1/NH; "discard" -
                  reads with NH > 1 are ignored; "unique" - every alignment
                  counts fully.
""" + STATISTICS_OPTS + REPORTING_OPTS

    def __init__(self, args):
        super().__init__(args)
        if self.logfile is None:
            self.logfile = sys.stderr
        self.samfiles = self.input or ['-']
        if not hasattr(self, 'version'):
            from .. import __version__
            self.version = __version__


def report(ts, opts, console, stopwatch):
    """Run statistics on loaded counts and write every requested output."""
    stopwatch.start('Histogram')
    ts.build_histogram()
    console.pair_counts(ts.run_info)

    stopwatch.start('Statistics')
    ts.collapse()
    ts.estimate_significance()
    console.collapsed_bins(ts.histogram.n_bins, ts.collapsed.n_bins)

    stopwatch.start('Reports')
    ts.output_report(opts.outfile_path('histogram.tsv'),
                     opts.outfile_path('significance.tsv'))
    if opts.bedgraph:
        console.loci(len(ts.output_bedgraph(opts.outfile_path('pingpong.bedGraph'))))
    if opts.plot:
        from ..core.plots import plot_histograms
        plot_histograms(ts.collapsed, opts.outfile_path)
    stopwatch.stop()

    ts.print_summary(lg.INFO)
    console.outputs(opts.outdir, collect_output_files(opts.outdir, opts.exp_tag))
    console.timings(stopwatch)


def run(args):
    """Count stacks, save a checkpoint and report ping-pong statistics.

    Args:
        args: Parsed argparse namespace.
    """
    opts = ScanOptions(args)
    console = configure_logging(opts)
    _be = backend.configure(opts.backend)
    lg.info('\n{}\n'.format(opts))
    os.makedirs(opts.outdir, exist_ok=True)
    stopwatch = Stopwatch()

    console.banner(opts.version)
    console.inputs(
        [('Alignment', 'stdin' if path == '-' else os.path.basename(path)) for path in opts.samfiles]
        + [('Multi-hits', opts.multihits), ('Backend', backend.backend_display_name(_be))]
    )

    stopwatch.start('Count stacks')
    ts = PingPong(opts)
    ts.load_alignment()
    console.stack_counts(ts.run_info)

    stopwatch.start('Checkpoint')
    ts.save(opts.outfile_path('checkpoint.npz'))

    report(ts, opts, console, stopwatch)
    lg.info(f'pingpongpro scan complete ({stopwatch.total:.1f}s)')
    return ts
