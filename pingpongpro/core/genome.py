# -*- coding: utf-8 -*-

# This file is part of PingPongPro.
# Ping-pong signature detection for small-RNA sequencing data.
#
# Licensed under MIT License.

"""Genome-wide stack counts, grouped by strand and contig.

Alignment counting accumulates stacks through :class:`GenomeCountsBuilder`;
``build()`` freezes them into :class:`GenomeCounts`, whose per-contig arrays
are sorted by position and treated as read-only by every later stage.
"""

import logging as lg
from collections import OrderedDict, defaultdict
from dataclasses import dataclass

import numpy as np

STRAND_PLUS = 0
STRAND_MINUS = 1
STRANDS = (STRAND_PLUS, STRAND_MINUS)


@dataclass(frozen=True)
class ContigStacks:
    """Stacks of one strand of one contig.

    All three arrays are parallel; ``positions`` is sorted and unique.
    """
    positions: np.ndarray         # int64
    reads: np.ndarray             # float64, accumulated stack heights
    uridine: np.ndarray           # bool, uridine at the 5' end

    def __len__(self):
        return len(self.positions)

    @classmethod
    def empty(cls):
        return cls(
            positions=np.empty(0, dtype=np.int64),
            reads=np.empty(0, dtype=np.float64),
            uridine=np.empty(0, dtype=bool),
        )

    @classmethod
    def from_arrays(cls, positions, reads, uridine):
        """Build from unsorted arrays. Positions must be unique."""
        positions = np.asarray(positions, dtype=np.int64)
        reads = np.asarray(reads, dtype=np.float64)
        uridine = np.asarray(uridine, dtype=bool)
        if not (len(positions) == len(reads) == len(uridine)):
            raise ValueError('positions, reads and uridine must have the same length')
        order = np.argsort(positions, kind='stable')
        positions, reads, uridine = positions[order], reads[order], uridine[order]
        if len(positions) > 1 and np.any(np.diff(positions) == 0):
            raise ValueError('duplicate stack positions')
        for arr in (positions, reads, uridine):
            arr.setflags(write=False)
        return cls(positions=positions, reads=reads, uridine=uridine)

    def find(self, position):
        """Index of the stack at *position*, or -1."""
        i = np.searchsorted(self.positions, position)
        if i < len(self.positions) and self.positions[i] == position:
            return int(i)
        return -1


class GenomeCounts:
    """Per-strand, per-contig stack heights and 5' uridine flags."""

    def __init__(self, strands=None):
        # strands: [ {contig: ContigStacks}, {contig: ContigStacks} ]
        if strands is None:
            strands = (OrderedDict(), OrderedDict())
        self._strands = tuple(OrderedDict(s) for s in strands)
        if len(self._strands) != 2:
            raise ValueError('GenomeCounts requires exactly two strands')

    def contigs(self, strand):
        return list(self._strands[strand].keys())

    def get(self, strand, contig):
        """Stacks of *contig* on *strand* (empty if there are none)."""
        return self._strands[strand].get(contig, ContigStacks.empty())

    def items(self, strand):
        return self._strands[strand].items()

    def num_stacks(self, strand=None):
        strands = STRANDS if strand is None else (strand,)
        return sum(len(cs) for s in strands for cs in self._strands[s].values())

    @property
    def is_empty(self):
        return self.num_stacks() == 0

    def all_reads(self):
        """Heights of every (strand, contig, position) entry as one array."""
        parts = [cs.reads for s in STRANDS for cs in self._strands[s].values()]
        if not parts:
            return np.empty(0, dtype=np.float64)
        return np.concatenate(parts)

    def save(self, filename, run_info=None):
        arrays = {}
        contig_list = []
        for strand in STRANDS:
            for i, (contig, cs) in enumerate(self._strands[strand].items()):
                contig_list.append((strand, contig))
                key = f'{strand}_{i}'
                arrays[f'_pos_{key}'] = cs.positions
                arrays[f'_reads_{key}'] = cs.reads
                arrays[f'_uridine_{key}'] = cs.uridine
        run_info = run_info or {}
        np.savez(
            filename,
            _contig_strands=np.array([s for s, _ in contig_list], dtype=np.int8),
            _contig_names=np.array([c for _, c in contig_list], dtype=str),
            _run_info=np.array([(str(k), str(v)) for k, v in run_info.items()], dtype=str).reshape(-1, 2),
            **arrays,
        )
        lg.debug(f'Saved {self.num_stacks()} stacks to {filename}')

    @classmethod
    def load(cls, filename):
        """Load a checkpoint written by :meth:`save`.

        Returns:
            (GenomeCounts, run_info) tuple.
        """
        with np.load(filename) as loader:
            strands = (OrderedDict(), OrderedDict())
            counters = [0, 0]
            for strand, contig in zip(loader['_contig_strands'], loader['_contig_names']):
                strand = int(strand)
                key = f'{strand}_{counters[strand]}'
                counters[strand] += 1
                strands[strand][str(contig)] = ContigStacks.from_arrays(
                    loader[f'_pos_{key}'],
                    loader[f'_reads_{key}'],
                    loader[f'_uridine_{key}'],
                )
            run_info = OrderedDict((str(k), v) for k, v in loader['_run_info'])
        return cls(strands), run_info

    def __str__(self):
        return '<GenomeCounts plus={} minus={}>'.format(
            self.num_stacks(STRAND_PLUS), self.num_stacks(STRAND_MINUS))


class GenomeCountsBuilder:
    """Accumulates stack heights while alignments are read.

    Heights only ever increase. A stack is flagged as uridine when reads with
    uridine at the 5' end carry at least half of its weight.
    """

    def __init__(self):
        # strand -> contig -> position -> [reads, uridine_reads]
        self._stacks = (defaultdict(dict), defaultdict(dict))

    def add(self, strand, contig, position, weight, uridine):
        if weight <= 0:
            return
        contig_stacks = self._stacks[strand][contig]
        acc = contig_stacks.get(position)
        if acc is None:
            acc = contig_stacks[position] = [0.0, 0.0]
        acc[0] += weight
        if uridine:
            acc[1] += weight

    def build(self):
        strands = (OrderedDict(), OrderedDict())
        for strand in STRANDS:
            for contig, stacks in self._stacks[strand].items():
                if not stacks:
                    continue
                positions = np.fromiter(stacks.keys(), dtype=np.int64, count=len(stacks))
                acc = np.array(list(stacks.values()), dtype=np.float64).reshape(-1, 2)
                strands[strand][contig] = ContigStacks.from_arrays(
                    positions, acc[:, 0], acc[:, 1] * 2 >= acc[:, 0])
        return GenomeCounts(strands)
