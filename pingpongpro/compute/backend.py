# -*- coding: utf-8 -*-

# This file is part of PingPongPro.
# Ping-pong signature detection for small-RNA sequencing data.
#
# Licensed under MIT License.

"""Selection of the histogram accumulation kernel.

Two kernels produce identical histograms:

- ``numba`` -- compiled two-pointer scan (default)
- ``stock`` -- vectorised numpy, no compilation step
"""
import logging as lg
from dataclasses import dataclass

BACKENDS = ('numba', 'stock')


@dataclass
class BackendInfo:
    """Information about the active compute backend."""
    name: str = 'numba'
    numba_version: str = None
    threading_layer: str = None


# Module-level singleton
_active_backend: BackendInfo = None


def configure(name='numba'):
    """Activate the kernel called *name*."""
    global _active_backend

    if name not in BACKENDS:
        raise ValueError(f'Unknown backend "{name}". Choose from: {", ".join(BACKENDS)}')

    numba_version = threading_layer = None
    if name == 'numba':
        import numba
        numba_version = numba.__version__
        threading_layer = getattr(numba.config, 'THREADING_LAYER', 'default')
        lg.info(f'Backend: numba (numba={numba_version}, threading={threading_layer})')
    else:
        lg.info('Backend: stock (numpy only)')

    _active_backend = BackendInfo(
        name=name,
        numba_version=numba_version,
        threading_layer=threading_layer,
    )
    return _active_backend


def get_backend():
    """Return the active backend info. Defaults to numba if unconfigured."""
    global _active_backend
    if _active_backend is None:
        _active_backend = BackendInfo()
    return _active_backend


def backend_display_name(be):
    """Human-readable backend name for console output."""
    names = {
        'numba': 'CPU-Optimized (Numba)',
        'stock': 'CPU (numpy)',
    }
    return names.get(be.name, be.name)
