# -*- coding: utf-8 -*-

# This file is part of PingPongPro.
# Ping-pong signature detection for small-RNA sequencing data.
#
# Licensed under MIT License.

""" PingPongPro resume

Repeats the statistics of a previous scan from its checkpoint, e.g. with
different binning parameters, without reading the alignments again.
"""
import os
import sys
import logging as lg

from . import SubcommandOptions, configure_logging
from .console import Stopwatch
from .scan import REPORTING_OPTS, STATISTICS_OPTS, report
from ..compute import backend
from ..core.model import PingPong


class ResumeOptions(SubcommandOptions):

    OPTS = """
    - Input Options:
        - checkpoint:
            positional: True
            help: Path to checkpoint file.
""" + STATISTICS_OPTS + REPORTING_OPTS

    def __init__(self, args):
        super().__init__(args)
        if self.logfile is None:
            self.logfile = sys.stderr
        if not hasattr(self, 'version'):
            from .. import __version__
            self.version = __version__


def run(args):
    """Resume from checkpoint: load saved stacks and run the statistics.

    Args:
        args: Parsed argparse namespace.
    """
    opts = ResumeOptions(args)
    console = configure_logging(opts)
    _be = backend.configure(opts.backend)
    lg.info('\n{}\n'.format(opts))
    os.makedirs(opts.outdir, exist_ok=True)
    stopwatch = Stopwatch()

    console.banner(opts.version)
    console.inputs([('Checkpoint', os.path.basename(opts.checkpoint)),
                    ('Backend', backend.backend_display_name(_be))])

    stopwatch.start('Load checkpoint')
    lg.info('Loading PingPong object from file...')
    ts = PingPong.load(opts, opts.checkpoint)
    console.checkpoint_loaded(ts.counts)

    report(ts, opts, console, stopwatch)
    lg.info(f'pingpongpro resume complete ({stopwatch.total:.1f}s)')
    return ts
