#!/usr/bin/env python3
"""
BPM Sweep Runner

Estimates the tempo of a 16-bit PCM WAV file and prints the strongest
candidates with the time of the first beat.

Usage:
    # Top 3 tempo candidates
    bpm-sweep song.wav

    # More candidates, narrower range
    bpm-sweep song.wav --top 5 --min-bpm 80 --max-bpm 180

    # Settings from YAML, JSON output
    bpm-sweep song.wav --config sweep.yaml --json

    # Debug logging on stderr
    bpm-sweep song.wav -v
"""

import argparse
import json
import logging
import sys

import yaml

from .analyzer import TempoAnalyzer
from .config import AnalysisConfig
from .errors import WavFormatError
from .peaks import format_candidates

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='bpm-sweep',
        description='Estimate tempo and first-beat phase of a PCM WAV file')
    parser.add_argument('file', nargs='?', help='16-bit PCM WAV file')
    parser.add_argument('--top', type=int, default=None,
                        help='Number of tempo candidates to report (default 3)')
    parser.add_argument('--frame-size', type=int, default=None,
                        help='Samples per loudness frame (default 1024)')
    parser.add_argument('--min-bpm', type=int, default=None,
                        help='Lowest candidate tempo (default 60)')
    parser.add_argument('--max-bpm', type=int, default=None,
                        help='Highest candidate tempo (default 240)')
    parser.add_argument('--config', default=None, help='YAML settings file')
    parser.add_argument('--json', action='store_true', help='Print results as JSON')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging on stderr')
    return parser


def load_config(args) -> AnalysisConfig:
    config = AnalysisConfig.from_yaml(args.config) if args.config else AnalysisConfig()
    return config.override(
        frame_size=args.frame_size,
        min_bpm=args.min_bpm,
        max_bpm=args.max_bpm,
        peak_count=args.top,
    )


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
    )

    if not args.file:
        parser.print_usage()
        return 0

    try:
        config = load_config(args)
    except (OSError, ValueError, yaml.YAMLError) as e:
        parser.error(f"bad settings: {e}")
    logger.debug("settings: %s", config)

    try:
        result = TempoAnalyzer(config).analyze_file(args.file)
    except (WavFormatError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.json:
        doc = {'file': args.file}
        doc.update(result.to_dict())
        json.dump(doc, sys.stdout, indent=2)
        print()
    elif result.peaks:
        print(format_candidates(result.peaks))
    else:
        print("No tempo peaks found")
    return 0


if __name__ == '__main__':
    sys.exit(main())
