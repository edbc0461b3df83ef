# -*- coding: utf-8 -*-

# This file is part of PingPongPro.
# Ping-pong signature detection for small-RNA sequencing data.
#
# Licensed under MIT License.

"""Histogram accumulation kernels.

Callers use ``get_kernel()`` and never import a kernel module directly; the
active backend (see :mod:`pingpongpro.compute.backend`) decides which one
runs. Every kernel has the signature::

    accumulate_contig(hist, plus, minus, plus_freq, minus_freq,
                      log_max_joint, params)

and adds the contributions of one contig to ``hist`` in place.
"""

from .backend import BACKENDS  # noqa: F401


def get_kernel(name=None):
    """Return the ``accumulate_contig`` function of backend *name*.

    Defaults to the active backend.
    """
    from .backend import get_backend

    if name is None:
        name = get_backend().name
    if name == 'numba':
        from .numba_kernels import accumulate_contig
        return accumulate_contig
    if name == 'stock':
        from .stock import accumulate_contig
        return accumulate_contig
    raise ValueError(f'Unknown backend "{name}". Choose from: {", ".join(BACKENDS)}')
