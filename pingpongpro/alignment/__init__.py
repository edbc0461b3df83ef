# This file is part of PingPongPro.
# Ping-pong signature detection for small-RNA sequencing data.
#
# Licensed under MIT License.

from .stacks import MULTIHITS, count_stacks  # noqa: F401
