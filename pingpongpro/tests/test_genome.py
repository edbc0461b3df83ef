# -*- coding: utf-8 -*-

# This file is part of PingPongPro.
# Ping-pong signature detection for small-RNA sequencing data.
#
# Licensed under MIT License.

"""Tests for stack containers, the height frequency table and BinningParams."""
import os

import numpy as np
import pytest
from numpy.testing import assert_array_equal

from pingpongpro.core.frequency import HeightFrequencyTable, round_heights
from pingpongpro.core.genome import (
    ContigStacks, GenomeCounts, GenomeCountsBuilder, STRAND_MINUS, STRAND_PLUS,
)
from pingpongpro.core.params import BinningParams

from conftest import make_counts, random_counts


class TestContigStacks:

    def test_from_arrays_sorts(self):
        cs = ContigStacks.from_arrays([30, 10, 20], [3.0, 1.0, 2.0], [True, False, False])
        assert_array_equal(cs.positions, [10, 20, 30])
        assert_array_equal(cs.reads, [1.0, 2.0, 3.0])
        assert_array_equal(cs.uridine, [False, False, True])

    def test_arrays_read_only(self):
        cs = ContigStacks.from_arrays([1, 2], [1.0, 1.0], [False, False])
        with pytest.raises(ValueError):
            cs.reads[0] = 5.0

    def test_duplicate_positions(self):
        with pytest.raises(ValueError):
            ContigStacks.from_arrays([5, 5], [1.0, 2.0], [False, False])

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            ContigStacks.from_arrays([5, 6], [1.0], [False, False])

    def test_find(self):
        cs = ContigStacks.from_arrays([10, 20, 30], [1.0, 2.0, 3.0], [False] * 3)
        assert cs.find(20) == 1
        assert cs.find(25) == -1
        assert cs.find(99) == -1
        assert ContigStacks.empty().find(0) == -1


class TestGenomeCountsBuilder:

    def test_heights_accumulate(self):
        counts = make_counts(plus=[('chr1', 10, 1.0, True), ('chr1', 10, 0.5, False)])
        cs = counts.get(STRAND_PLUS, 'chr1')
        assert len(cs) == 1
        assert cs.reads[0] == pytest.approx(1.5)

    def test_uridine_majority(self):
        counts = make_counts(plus=[
            ('chr1', 10, 1.0, True), ('chr1', 10, 1.0, False),
            ('chr1', 20, 1.0, True), ('chr1', 20, 2.0, False),
        ])
        cs = counts.get(STRAND_PLUS, 'chr1')
        assert_array_equal(cs.uridine, [True, False])

    def test_zero_weight_ignored(self):
        builder = GenomeCountsBuilder()
        builder.add(STRAND_PLUS, 'chr1', 10, 0.0, True)
        assert builder.build().is_empty

    def test_strands_are_separate(self):
        counts = make_counts(plus=[('chr1', 10, 1.0, False)], minus=[('chr1', 10, 2.0, False)])
        assert counts.num_stacks(STRAND_PLUS) == 1
        assert counts.num_stacks(STRAND_MINUS) == 1
        assert counts.num_stacks() == 2
        assert len(counts.get(STRAND_MINUS, 'chr2')) == 0


class TestGenomeCounts:

    def test_empty(self, empty_counts):
        assert empty_counts.is_empty
        assert len(empty_counts.all_reads()) == 0

    def test_checkpoint_roundtrip(self, tmp_path):
        counts = random_counts(seed=1, n_contigs=2, n_stacks=50)
        filename = os.path.join(tmp_path, 'test-checkpoint.npz')
        counts.save(filename, {'total_alignments': 123, 'multihits': 'weighted'})
        loaded, run_info = GenomeCounts.load(filename)

        assert run_info['total_alignments'] == '123'
        assert run_info['multihits'] == 'weighted'
        for strand in (STRAND_PLUS, STRAND_MINUS):
            assert loaded.contigs(strand) == counts.contigs(strand)
            for contig, cs in counts.items(strand):
                other = loaded.get(strand, contig)
                assert_array_equal(other.positions, cs.positions)
                assert_array_equal(other.reads, cs.reads)
                assert_array_equal(other.uridine, cs.uridine)

    def test_save_empty(self, tmp_path, empty_counts):
        filename = os.path.join(tmp_path, 'empty.npz')
        empty_counts.save(filename)
        loaded, run_info = GenomeCounts.load(filename)
        assert loaded.is_empty
        assert len(run_info) == 0


class TestHeightFrequencyTable:

    def test_round_half_up(self):
        assert_array_equal(round_heights([0.5, 1.5, 2.49, 2.5, 3.0]), [1, 2, 2, 3, 3])

    def test_counts_both_strands(self):
        counts = make_counts(
            plus=[('chr1', 1, 1.0, False), ('chr1', 2, 2.4, False)],
            minus=[('chr1', 1, 0.5, False), ('chr2', 7, 5.0, False)],
        )
        table = HeightFrequencyTable.from_counts(counts)
        assert table.as_dict() == {1: 2, 2: 1, 5: 1}
        assert table.total == 4
        assert table.min_height_frequency == 2
        assert table[3] == 0

    def test_idempotent(self):
        counts = random_counts(seed=3)
        assert HeightFrequencyTable.from_counts(counts) == HeightFrequencyTable.from_counts(counts)

    def test_lookup(self):
        table = HeightFrequencyTable([1, 4], [7, 2])
        assert_array_equal(table.lookup([1, 2, 4, 9]), [7.0, 0.0, 2.0, 0.0])
        assert_array_equal(HeightFrequencyTable().lookup([1]), [0.0])

    def test_empty(self, empty_counts):
        table = HeightFrequencyTable.from_counts(empty_counts)
        assert len(table) == 0
        assert table.min_height_frequency is None

    def test_unsorted_heights(self):
        with pytest.raises(ValueError):
            HeightFrequencyTable([3, 1], [1, 1])


class TestBinningParams:

    def test_defaults(self):
        params = BinningParams()
        assert params.n_overlaps == 21
        assert params.overlap_index(10) == 10
        assert 10 not in params.background_overlaps
        assert len(params.background_overlaps) == 20

    def test_prior_sums_to_one(self):
        for pi in (0.0, 0.25, 0.6, 1.0):
            prior = np.array(BinningParams(uridine_probability=pi).uridine_prior())
            assert prior.sum() == pytest.approx(1.0)

    @pytest.mark.parametrize('kwargs', [
        {'min_overlap': 5, 'max_overlap': 5},
        {'pingpong_overlap': 25},
        {'height_score_bins': 0},
        {'uridine_probability': 1.5},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            BinningParams(**kwargs)

    def test_overlap_out_of_range(self):
        with pytest.raises(IndexError):
            BinningParams().overlap_index(21)
