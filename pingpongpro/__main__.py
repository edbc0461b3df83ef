#! /usr/bin/env python
# -*- coding: utf-8 -*-

# This file is part of PingPongPro.
# Ping-pong signature detection for small-RNA sequencing data.
#
# Licensed under MIT License.

""" Main functionality of PingPongPro

"""
import sys
import argparse

from pingpongpro import __version__
from .cli import scan as cli_scan
from .cli import resume as cli_resume


USAGE = ''' %(prog)s <command> [<args>]

The most commonly used commands are:
   scan           Detect ping-pong signatures in mapped small-RNA reads
   resume         Resume previous run from checkpoint file

'''


def build_parser():
    parser = argparse.ArgumentParser(
        description='Detection of ping-pong signatures in small-RNA sequencing data',
    )
    parser.add_argument('--version',
        action='version',
        version=__version__,
        default=__version__,
    )

    subparser = parser.add_subparsers(help='Sub-command help', dest='subcommand')

    ''' Parser for scan '''
    scan_parser = subparser.add_parser('scan',
        description='''Detect ping-pong signatures in mapped small-RNA reads''',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    cli_scan.ScanOptions.add_arguments(scan_parser)
    scan_parser.set_defaults(func=cli_scan.run)

    ''' Parser for resume '''
    resume_parser = subparser.add_parser('resume',
        description='''Resume a previous pingpongpro run''',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    cli_resume.ResumeOptions.add_arguments(resume_parser)
    resume_parser.set_defaults(func=cli_resume.run)
    return parser


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) == 0:
        empty_parser = argparse.ArgumentParser(
            description='Detection of ping-pong signatures in small-RNA sequencing data',
            usage=USAGE,
        )
        empty_parser.print_help(sys.stderr)
        sys.exit(1)

    args = build_parser().parse_args(argv)
    args.func(args)


if __name__ == '__main__':
    main()
