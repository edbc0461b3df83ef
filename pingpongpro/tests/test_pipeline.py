# -*- coding: utf-8 -*-

# This file is part of PingPongPro.
# Ping-pong signature detection for small-RNA sequencing data.
#
# Licensed under MIT License.

"""End-to-end tests: PingPong pipeline object and the command line.

Tests cover:
- PingPong stages on a small BAM, checkpoint save and load
- Option parsing for scan and resume
- scan and resume writing their output files
"""
import io
import os

import pytest

from pingpongpro import __version__
from pingpongpro.__main__ import build_parser, main
from pingpongpro.cli.console import Console, Stopwatch
from pingpongpro.cli.scan import ScanOptions
from pingpongpro.core.model import PingPong, binning_params

from conftest import write_bam


class MockOpts:
    def __init__(self, outdir, samfiles=None):
        self.samfiles = samfiles or []
        self.min_read_length = 1
        self.max_read_length = 1000
        self.multihits = 'weighted'
        self.min_stack_height = 1
        self.min_score = 0.0
        self.ncpu = 1
        self.backend = 'stock'
        self.height_score_bins = 100
        self.local_height_threshold = 0.2
        self.uridine_probability = 0.25
        self.outdir = outdir
        self.exp_tag = 'test'
        self.version = __version__

    def outfile_path(self, suffix):
        basename = f'{self.exp_tag}-{suffix}'
        return os.path.join(self.outdir, basename)


class TestPingPong:

    def test_stages(self, tmp_path, pingpong_bam):
        opts = MockOpts(str(tmp_path), [pingpong_bam])
        ts = PingPong(opts)
        ts.load_alignment()
        ts.run_statistics()

        assert ts.run_info['stacks_plus'] == 2
        assert ts.run_info['pingpong_pairs'] == 1
        assert ts.run_info['background_pairs'] == 1
        assert ts.histogram.n_bins == 100
        assert ts.collapsed.collapsed
        assert ts.significance.n_bins == ts.collapsed.n_bins
        assert 'PingPong samfiles' in str(ts)

    def test_checkpoint(self, tmp_path, pingpong_bam):
        opts = MockOpts(str(tmp_path), [pingpong_bam])
        ts = PingPong(opts)
        ts.load_alignment()
        ts.save(opts.outfile_path('checkpoint.npz'))

        loaded = PingPong.load(opts, opts.outfile_path('checkpoint.npz'))
        assert loaded.run_info['total_alignments'] == 8
        assert loaded.counts.num_stacks() == ts.counts.num_stacks()
        loaded.run_statistics()
        ts.run_statistics()
        assert (loaded.collapsed.counts == ts.collapsed.counts).all()

    def test_reports(self, tmp_path, pingpong_bam):
        opts = MockOpts(str(tmp_path), [pingpong_bam])
        ts = PingPong(opts)
        ts.load_alignment()
        ts.run_statistics()
        ts.output_report(opts.outfile_path('histogram.tsv'), opts.outfile_path('significance.tsv'))
        loci = ts.output_bedgraph(opts.outfile_path('pingpong.bedGraph'))
        assert loci[['chrom', 'start', 'end']].values.tolist() == [['chr1', 100, 101], ['chr1', 109, 110]]
        assert (loci['score'] > 0).all()
        assert ts.run_info['reported_loci'] == 2
        for suffix in ('histogram.tsv', 'significance.tsv', 'pingpong.bedGraph'):
            assert os.path.exists(opts.outfile_path(suffix))

    def test_binning_params(self, tmp_path):
        opts = MockOpts(str(tmp_path))
        opts.uridine_probability = 0.5
        params = binning_params(opts)
        assert params.height_score_bins == 100
        assert params.uridine_probability == 0.5

    def test_zero_bins_rejected(self, tmp_path):
        opts = MockOpts(str(tmp_path))
        opts.height_score_bins = 0
        with pytest.raises(ValueError):
            binning_params(opts)

    def test_missing_options_use_defaults(self):
        params = binning_params(object())
        assert params.height_score_bins == 1000
        assert params.uridine_probability == 0.25


class TestOptions:

    def test_scan_defaults(self):
        args = build_parser().parse_args(['scan'])
        opts = ScanOptions(args)
        assert opts.samfiles == ['-']
        assert opts.multihits == 'weighted'
        assert opts.height_score_bins == 1000
        assert opts.local_height_threshold == 0.2
        assert opts.backend == 'numba'
        assert opts.outfile_path('histogram.tsv') == os.path.join('.', 'pingpongpro-histogram.tsv')
        assert 'Input Options' in str(opts)

    def test_scan_inputs(self):
        args = build_parser().parse_args(['scan', '-i', 'a.bam', '--input', 'b.bam',
                                          '--multihits', 'discard', '--ncpu', '4'])
        opts = ScanOptions(args)
        assert opts.samfiles == ['a.bam', 'b.bam']
        assert opts.multihits == 'discard'
        assert opts.ncpu == 4

    def test_short_flags(self):
        args = build_parser().parse_args(['scan', '-i', 'a.bam', '-o', 'out', '-b', '-p', '-v',
                                          '-s', '3', '-l', '18', '-L', '30', '-m', 'unique'])
        opts = ScanOptions(args)
        assert opts.outdir == 'out'
        assert opts.bedgraph and opts.plot and opts.verbose
        assert opts.min_stack_height == 3.0
        assert (opts.min_read_length, opts.max_read_length) == (18, 30)
        assert opts.multihits == 'unique'

    def test_invalid_choice(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(['scan', '--multihits', 'random'])

    def test_resume(self):
        args = build_parser().parse_args(['resume', 'run-checkpoint.npz', '--bedgraph'])
        assert args.checkpoint == 'run-checkpoint.npz'
        assert args.bedgraph

    def test_no_arguments(self):
        with pytest.raises(SystemExit):
            main([])


class TestCommandLine:

    def test_scan_and_resume(self, tmp_path, pingpong_bam):
        outdir = os.path.join(tmp_path, 'out')
        main(['scan', '-i', pingpong_bam, '--outdir', outdir, '--exp_tag', 'run',
              '--backend', 'stock', '--bedgraph', '--quiet'])
        for suffix in ('checkpoint.npz', 'histogram.tsv', 'significance.tsv', 'pingpong.bedGraph'):
            assert os.path.exists(os.path.join(outdir, f'run-{suffix}'))

        main(['resume', os.path.join(outdir, 'run-checkpoint.npz'), '--outdir', outdir,
              '--exp_tag', 'again', '--backend', 'stock', '--height_score_bins', '10', '--quiet'])
        with open(os.path.join(outdir, 'again-histogram.tsv')) as fh:
            header = fh.readline()
        assert header.startswith('## RunInfo')
        assert 'total_alignments:8' in header

    def test_scan_empty_input(self, tmp_path, capsys):
        bam = write_bam(os.path.join(tmp_path, 'empty.bam'), [])
        outdir = os.path.join(tmp_path, 'out')
        main(['scan', '-i', bam, '-o', outdir, '--exp_tag', 'empty', '--backend', 'stock', '-b'])
        assert 'No ping-pong candidates.' in capsys.readouterr().out

        with open(os.path.join(outdir, 'empty-pingpong.bedGraph')) as fh:
            assert fh.read().splitlines() == ['track type=bedGraph name="empty"']
        for suffix in ('histogram.tsv', 'significance.tsv'):
            with open(os.path.join(outdir, f'empty-{suffix}')) as fh:
                lines = fh.read().splitlines()
            # run info and column names, no cells
            assert len(lines) == 2
            assert lines[0].startswith('## RunInfo')
        assert os.path.exists(os.path.join(outdir, 'empty-checkpoint.npz'))


class TestConsole:

    def test_quiet(self):
        stream = io.StringIO()
        console = Console(level=Console.QUIET, stream=stream)
        console.banner('0.1.0')
        console.pair_counts({'pingpong_pairs': 0, 'background_pairs': 0})
        assert stream.getvalue() == ''

    def test_run_summary(self):
        stream = io.StringIO()
        console = Console(stream=stream)
        console.banner('0.1.0')
        console.inputs([('Alignment', 'a.bam'), ('Multi-hits', 'weighted')])
        console.stack_counts({'total_alignments': 1500, 'stacks_plus': 12, 'stacks_minus': 7})
        console.pair_counts({'pingpong_pairs': 3, 'background_pairs': 41})
        console.collapsed_bins(1000, 17)
        console.loci(6)
        out = stream.getvalue()
        assert 'PingPongPro v0.1.0' in out
        assert 'a.bam' in out
        assert '1,500 alignments -- 12 plus, 7 minus stacks' in out
        assert '3 pairs at the ping-pong overlap, 41 at background overlaps' in out
        assert '6 loci with ping-pong signature' in out
        assert 'No ping-pong candidates.' not in out
        # bin counts only in verbose mode
        assert 'Collapsed' not in out

    def test_verbose(self):
        stream = io.StringIO()
        console = Console(level=Console.VERBOSE, stream=stream)
        console.stack_counts({'total_alignments': 10, 'unmapped': 4})
        console.collapsed_bins(1000, 17)
        out = stream.getvalue()
        assert '4 unmapped' in out
        assert 'Collapsed 1,000 height score bins into 17' in out

    def test_timings(self):
        stream = io.StringIO()
        console = Console(stream=stream)
        stopwatch = Stopwatch()
        stopwatch.start('Count stacks')
        stopwatch.start('Histogram')
        stopwatch.stop()
        console.timings(stopwatch)
        out = stream.getvalue()
        assert [t[0] for t in stopwatch.timings] == ['Count stacks', 'Histogram']
        assert 'Count stacks' in out
        assert 'Total' in out

    def test_no_timings(self):
        stream = io.StringIO()
        Console(stream=stream).timings(Stopwatch())
        assert stream.getvalue() == ''
