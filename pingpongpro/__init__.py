# -*- coding: utf-8 -*-

# This file is part of PingPongPro.
# Ping-pong signature detection for small-RNA sequencing data.
#
# Licensed under MIT License.

__version__ = '0.1.0'
