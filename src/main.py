#!/usr/bin/env python3
"""
Bracket layout command line tool.

Lays out a tournament YAML file and prints the geometry.

Usage:
    python src/main.py data/tournaments/summer-double.yaml
    python src/main.py <tournament.yaml> --width 1280 --height 720 --format json
    python src/main.py <tournament.yaml> --config layout.yaml --format summary

Exit codes:
    0: Success
    1: Tournament file not found or unreadable
    2: Invalid layout configuration
"""
import argparse
import json
import logging
import sys

import yaml

from bracket_engine import LayoutConfigError, TournamentNotFoundError, compute_bracket, load_tournament
from bracket_engine.config import load_config_file


def print_summary(tournament, result):
    """Human readable overview of the laid-out bracket."""
    print(f"\n--- {tournament.name} ({result.topology}) ---")
    for entry in result.rounds:
        label = entry['label'] or f"Round {entry['round']}"
        print(f"  [{entry['segment']}] {label}: {entry['match_count']} match(es) at x={entry['x']:g}, y={entry['y']:g}")
    box = result.view_box
    print(f"\nView box: {box.width:g} x {box.height:g} at ({box.x:g}, {box.y:g})")
    print(f"Zoom: {result.zoom:.3f}")
    stats = result.stats
    print(f"Progress: {stats['completed_matches']}/{stats['total_matches']} matches completed")
    if stats['champion']:
        print(f"Champion: {stats['champion']}")
    if result.warnings:
        print("\nWarnings:")
        for warning in result.warnings:
            print(f"  - {warning}")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Compute bracket layout geometry for a tournament YAML file'
    )
    parser.add_argument(
        'tournament',
        help='Path to the tournament YAML file'
    )
    parser.add_argument(
        '--width',
        type=float,
        default=800,
        help='Container width in pixels (default: 800)'
    )
    parser.add_argument(
        '--height',
        type=float,
        default=600,
        help='Container height in pixels (default: 600)'
    )
    parser.add_argument(
        '--config',
        help='Layout options YAML file'
    )
    parser.add_argument(
        '--format',
        choices=['yaml', 'json', 'summary'],
        default='yaml',
        help='Output format (default: yaml)'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Log debug output to stderr'
    )

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    try:
        tournament = load_tournament(args.tournament)
    except (TournamentNotFoundError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        config = load_config_file(args.config) if args.config else None
        result = compute_bracket(tournament, container_width=args.width, container_height=args.height,
                                 config=config)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except LayoutConfigError as e:
        print(f"Invalid layout configuration: {e}", file=sys.stderr)
        return 2

    if args.format == 'summary':
        print_summary(tournament, result)
    elif args.format == 'json':
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(yaml.safe_dump(result.to_dict(), default_flow_style=False, sort_keys=False))
    return 0


if __name__ == '__main__':
    sys.exit(main())
