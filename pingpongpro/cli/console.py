# -*- coding: utf-8 -*-

# This file is part of PingPongPro.
# Ping-pong signature detection for small-RNA sequencing data.
#
# Licensed under MIT License.

"""Progress report of a PingPongPro run on stdout.

Logging keeps going to stderr (or ``--logfile``). The Console prints the
run as a reader follows it: inputs, stacks counted, stack pairs per overlap
class, collapsed bins, reported loci, written files and stage timings.
"""

import sys
from time import perf_counter

from ..core.genome import STRAND_MINUS, STRAND_PLUS


class Stopwatch:
    """Named, consecutive timing segments of one run.

    Starting a stage ends the running one, so a run is timed by calling
    ``start()`` at every stage boundary and ``stop()`` once at the end.
    """

    def __init__(self):
        self._timings = []        # [(name, seconds)]
        self._first = None
        self._running = None      # (name, start time)

    def start(self, name):
        now = perf_counter()
        self._close(now)
        self._running = (name, now)
        if self._first is None:
            self._first = now

    def stop(self):
        self._close(perf_counter())

    def _close(self, now):
        if self._running is not None:
            name, began = self._running
            self._timings.append((name, now - began))
            self._running = None

    @property
    def total(self):
        return perf_counter() - self._first if self._first is not None else 0.0

    @property
    def timings(self):
        return list(self._timings)


class Console:
    """Stdout reporter with four verbosity levels."""

    QUIET = 0
    NORMAL = 1
    VERBOSE = 2
    DEBUG = 3

    def __init__(self, level=NORMAL, stream=None):
        self.level = level
        self.stream = stream or sys.stdout
        self._bold = hasattr(self.stream, 'isatty') and self.stream.isatty()

    def _say(self, text='', indent=2, level=NORMAL):
        if self.level >= level:
            print(' ' * indent + text if text else '', file=self.stream)

    def banner(self, version):
        title = f'PingPongPro v{version}'
        if self._bold:
            title = f'\033[1m{title}\033[0m'
        self._say()
        self._say(f'{title} -- ping-pong signature detection', indent=0)
        self._say()

    def inputs(self, items):
        """Print the ``Input`` section from (label, value) pairs."""
        self._say('Input')
        for label, value in items:
            self._say(f'{label + ":":<14}{value}', indent=4)
        self._say()

    def stack_counts(self, run_info):
        """Summary of alignment counting."""
        self._say('Counting stacks... done')
        self._say('{:,} alignments -- {:,} plus, {:,} minus stacks'.format(
            int(run_info.get('total_alignments', 0)),
            int(run_info.get('stacks_plus', 0)),
            int(run_info.get('stacks_minus', 0))), indent=4)
        for key, label in (('unmapped', 'unmapped'),
                           ('length_filtered', 'outside read length range'),
                           ('multihit_discarded', 'discarded multi-hits')):
            self._say(f'{int(run_info.get(key, 0)):,} {label}', indent=6, level=self.VERBOSE)

    def checkpoint_loaded(self, counts):
        self._say('Loaded checkpoint')
        self._say('{:,} plus, {:,} minus stacks'.format(
            counts.num_stacks(STRAND_PLUS), counts.num_stacks(STRAND_MINUS)), indent=4)

    def pair_counts(self, run_info):
        """Stack pairs at the ping-pong overlap versus the background overlaps."""
        pingpong = int(run_info.get('pingpong_pairs', 0))
        background = int(run_info.get('background_pairs', 0))
        self._say('Scoring stack pairs... done')
        self._say(f'{pingpong:,} pairs at the ping-pong overlap, '
                  f'{background:,} at background overlaps', indent=4)
        if pingpong == 0:
            self._say('No ping-pong candidates.')

    def collapsed_bins(self, n_original, n_collapsed):
        self._say(f'Collapsed {n_original:,} height score bins into {n_collapsed:,}',
                  indent=4, level=self.VERBOSE)

    def loci(self, n_loci):
        self._say(f'{n_loci:,} loci with ping-pong signature')

    def outputs(self, outdir, files):
        if not files:
            return
        self._say()
        self._say(f'Output ({len(files)} files in {outdir}/)')
        for f in files:
            self._say(f, indent=4)

    def timings(self, stopwatch):
        """Stage timings with their share of the whole run."""
        timings = stopwatch.timings
        if not timings:
            return
        total = stopwatch.total
        self._say()
        self._say('Timing')
        for name, seconds in timings:
            share = f'{seconds / total:>6.0%}' if total > 0 else ''
            self._say(f'{name:<18}{seconds:>6.1f}s{share}', indent=4)
        self._say('-' * 30, indent=4)
        self._say(f'{"Total":<18}{total:>6.1f}s', indent=4)
        self._say()
