# This file is part of PingPongPro.
# Ping-pong signature detection for small-RNA sequencing data.
#
# Licensed under MIT License.

"""PingPongPro pipeline: stack counting, binning and scoring.

Every stage runs to completion and stores its result on the object before
the next stage starts:

    counts -> height_table -> histogram -> collapsed -> significance
"""

import logging as lg
from collections import OrderedDict

from ..alignment.stacks import count_stacks
from .frequency import HeightFrequencyTable
from .genome import STRAND_MINUS, STRAND_PLUS, GenomeCounts
from .histogram import build_histogram
from .params import BinningParams
from .reporter import find_pingpong_loci, write_bedgraph, write_histogram, write_significance
from .significance import estimate_significance


def _option(opts, name, default):
    value = getattr(opts, name, None)
    return default if value is None else value


def binning_params(opts):
    """BinningParams from options, falling back to defaults for missing ones."""
    _defaults = BinningParams()
    return BinningParams(
        height_score_bins=_option(opts, 'height_score_bins', _defaults.height_score_bins),
        local_height_threshold=_option(opts, 'local_height_threshold', _defaults.local_height_threshold),
        uridine_probability=_option(opts, 'uridine_probability', _defaults.uridine_probability),
    )


def str2num(s):
    try:
        return int(s)
    except ValueError:
        try:
            return float(s)
        except ValueError:
            return s


class PingPong:
    """Stack counts plus every statistic derived from them."""

    def __init__(self, opts, counts=None, run_info=None):

        self.opts = opts  # Command line options
        self.params = binning_params(opts)
        self.run_info = OrderedDict()  # Information about the run
        self.counts = counts  # GenomeCounts
        self.height_table = None  # HeightFrequencyTable
        self.histogram = None  # JointOverlapHistogram, full resolution
        self.collapsed = None  # JointOverlapHistogram, merged bins
        self.significance = None  # SignificanceTable

        self.run_info['version'] = getattr(self.opts, 'version', None)
        if run_info:
            for k, v in run_info.items():
                if k != 'version':
                    self.run_info[k] = v

    def load_alignment(self):
        self.counts, alninfo = count_stacks(
            self.opts.samfiles,
            min_read_length=self.opts.min_read_length,
            max_read_length=self.opts.max_read_length,
            multihits=self.opts.multihits,
            threads=getattr(self.opts, 'ncpu', 1),
        )
        self.run_info.update(alninfo)

    def save(self, filename):
        self.counts.save(filename, self.run_info)

    @classmethod
    def load(cls, opts, filename):
        counts, run_info = GenomeCounts.load(filename)
        return cls(opts, counts, OrderedDict((k, str2num(v)) for k, v in run_info.items()))

    def build_histogram(self):
        self.height_table = HeightFrequencyTable.from_counts(self.counts)
        self.run_info['distinct_heights'] = len(self.height_table)
        self.histogram = build_histogram(
            self.counts,
            self.height_table,
            self.params,
            backend=getattr(self.opts, 'backend', None),
            ncpu=getattr(self.opts, 'ncpu', 1),
        )
        _mass = self.histogram.mass_by_overlap()
        self.run_info['pingpong_pairs'] = int(round(_mass[self.params.pingpong_overlap]))
        self.run_info['background_pairs'] = int(round(
            sum(v for k, v in _mass.items() if k != self.params.pingpong_overlap)))
        return self.histogram

    def collapse(self):
        self.collapsed = self.histogram.collapse()
        self.run_info['collapsed_bins'] = self.collapsed.n_bins
        return self.collapsed

    def estimate_significance(self):
        self.significance = estimate_significance(self.collapsed)
        return self.significance

    def run_statistics(self):
        """Run every stage after counting."""
        self.build_histogram()
        self.collapse()
        self.estimate_significance()

    def find_loci(self):
        return find_pingpong_loci(
            self.counts,
            self.height_table,
            self.collapsed,
            self.significance,
            min_stack_height=getattr(self.opts, 'min_stack_height', 1),
            min_score=getattr(self.opts, 'min_score', 0.0),
        )

    def output_report(self, histogram_filename, significance_filename):
        """Write the collapsed histogram and significance TSV reports."""
        write_histogram(self.collapsed, histogram_filename, self.run_info)
        write_significance(self.significance, significance_filename, self.run_info)

    def output_bedgraph(self, filename):
        loci = self.find_loci()
        self.run_info['reported_loci'] = len(loci)
        write_bedgraph(loci, filename, track_name=getattr(self.opts, 'exp_tag', 'pingpongpro'))
        return loci

    def print_summary(self, loglev=lg.WARNING):
        _d = self.run_info
        lg.log(loglev, 'Stack Summary:')
        lg.log(loglev, '    {} alignments read.'.format(_d.get('total_alignments', 'NA')))
        lg.log(loglev, '        {} unmapped.'.format(_d.get('unmapped', 'NA')))
        lg.log(loglev, '        {} outside read length range.'.format(_d.get('length_filtered', 'NA')))
        lg.log(loglev, '        {} discarded multi-hits.'.format(_d.get('multihit_discarded', 'NA')))
        lg.log(loglev, '--')
        lg.log(loglev, '    {} stacks on the plus strand.'.format(self.counts.num_stacks(STRAND_PLUS)))
        lg.log(loglev, '    {} stacks on the minus strand.'.format(self.counts.num_stacks(STRAND_MINUS)))
        if 'pingpong_pairs' in _d:
            lg.log(loglev, '--')
            lg.log(loglev, '    {} pairs at the ping-pong overlap.'.format(_d['pingpong_pairs']))
            lg.log(loglev, '    {} pairs at background overlaps.'.format(_d['background_pairs']))
        lg.log(loglev, '\n')

    def __str__(self):
        if hasattr(self.opts, 'samfiles'):
            return f'<PingPong samfiles={self.opts.samfiles}>'
        elif hasattr(self.opts, 'checkpoint'):
            return f'<PingPong checkpoint={self.opts.checkpoint}>'
        else:
            return '<PingPong>'
