"""
The full bracket pipeline.

compute_bracket() runs the stages in order:
    resolver -> layout strategy -> connector router -> viewport fitter -> view state

and returns everything a presentation layer needs in one BracketLayout.
Tournaments are read from YAML files with load_tournament().
"""
import logging
import os
from typing import Dict, List, Optional

import yaml

from .config import HORIZONTAL, LayoutConfig, merge_config, responsive_config
from .connectors import route_connectors
from .double_elimination import double_round_labels
from .elimination import round_labels
from .errors import TournamentNotFoundError
from .formats import layout
from .models import (
    SINGLE_ELIMINATION, DOUBLE_ELIMINATION, BARRAGE, WINNER, LOSER, GRAND_FINAL, ACTIVE, COMPLETED,
    Match, Tournament,
)
from .structure import group_matches_by_round, placement_matches, resolve_structure, resolve_topology, sanitize_matches
from .view_state import initial_view_state
from .viewport import (
    bracket_dimensions, compute_optimal_zoom, compute_view_box, round_positions,
)

logger = logging.getLogger(__name__)


class BracketLayout:
    """Result of one pipeline run; derived, never mutated."""

    def __init__(self, topology, config, edges, positions, connectors, view_box, zoom,
                 view_state, labels, rounds, stats, warnings):
        self.topology = topology
        self.config = config
        self.edges = edges
        self.positions = positions
        self.connectors = connectors
        self.view_box = view_box
        self.zoom = zoom
        self.view_state = view_state
        self.labels = labels
        self.rounds = rounds
        self.stats = stats
        self.warnings = warnings

    def position_of(self, match_id):
        return next((p for p in self.positions if p.match_id == match_id), None)

    def to_dict(self) -> Dict:
        return {
            'topology': self.topology,
            'config': self.config.to_dict(),
            'edges': [e.to_dict() for e in self.edges],
            'positions': [p.to_dict() for p in self.positions],
            'connectors': [c.to_dict() for c in self.connectors],
            'view_box': self.view_box.to_dict(),
            'zoom': self.zoom,
            'view_state': self.view_state.to_dict(),
            'rounds': self.rounds,
            'stats': self.stats,
            'warnings': list(self.warnings),
        }

    def __repr__(self):
        return (f"BracketLayout(topology={self.topology}, positions={len(self.positions)}, "
                f"connectors={len(self.connectors)}, warnings={len(self.warnings)})")


def labels_for(matches: List[Match], topology: str) -> Dict[str, Dict[int, str]]:
    """Display label of every round, per segment."""
    grouped = group_matches_by_round(matches, topology)
    if topology == DOUBLE_ELIMINATION:
        return double_round_labels(grouped)
    rounds = grouped.get(WINNER, [])
    if topology in (SINGLE_ELIMINATION, BARRAGE):
        return {WINNER: round_labels(rounds)}
    return {WINNER: {number: f"Round {number}" for number, _ in rounds}}


def champion_of(matches: List[Match], topology: str) -> Optional[str]:
    """Team id of the tournament winner, once the deciding match is completed."""
    grouped = group_matches_by_round(matches, topology)
    if topology == DOUBLE_ELIMINATION:
        finals = [m for _, ms in grouped.get(GRAND_FINAL, []) for m in ms]
        if not finals:
            return None
        if len(finals) > 1 and finals[1].winner_slot() is not None:
            return finals[1].winner
        slot = finals[0].winner_slot()
        # The losers bracket winner taking the first final forces the reset
        if slot == 0 or (slot == 1 and len(finals) == 1):
            return finals[0].winner
        return None
    if topology not in (SINGLE_ELIMINATION, BARRAGE):
        return None
    rounds = grouped.get(WINNER, [])
    if not rounds or len(rounds[-1][1]) != 1:
        return None
    final = rounds[-1][1][0]
    return final.winner if final.winner_slot() is not None else None


def bracket_stats(matches: List[Match], topology: str) -> Dict:
    """
    Completion counts per segment, the champion if decided, and the current
    round: the lowest round with active matches, else the last round.
    """
    segments = {}
    for segment, rounds in group_matches_by_round(matches, topology).items():
        segment_matches = [m for _, ms in rounds for m in ms]
        completed = sum(1 for m in segment_matches if m.status == COMPLETED)
        segments[segment] = {
            'total': len(segment_matches),
            'completed': completed,
            'rounds': len(rounds),
        }
    total = sum(s['total'] for s in segments.values())
    active_rounds = [m.round for m in matches if m.status == ACTIVE]
    if active_rounds:
        current_round = min(active_rounds)
    else:
        current_round = max((m.round for m in matches), default=None)
    completed = sum(s['completed'] for s in segments.values())
    return {
        'total_matches': total,
        'completed_matches': completed,
        'progress': round(completed / total, 3) if total else 0.0,
        'segments': {k: segments[k] for k in (WINNER, LOSER, GRAND_FINAL) if k in segments},
        'current_round': current_round,
        'champion': champion_of(matches, topology),
    }


def find_matches(matches: List[Match], query: str) -> List[Match]:
    """
    Search matches by match id, team name or team id (case-insensitive).

    A query of the form 'status:<status>' filters by status instead.
    Results keep input order; an empty query finds nothing.
    """
    query = str(query or '').strip().lower()
    if not query:
        return []
    if query.startswith('status:'):
        status = query[len('status:'):].strip()
        return [m for m in matches if str(m.status).lower() == status]

    def haystack(match):
        yield str(match.id)
        for team in match.teams:
            if team is not None:
                yield str(team.name)
                yield str(team.id)

    return [m for m in matches if any(query in text.lower() for text in haystack(m))]


def highlighted_match_ids(matches: List[Match], team_id) -> List[str]:
    """Ids of the matches a highlighted team plays in."""
    if team_id is None:
        return []
    team_id = str(team_id)
    return [m.id for m in matches
            if any(team is not None and str(team.id) == team_id for team in m.teams)]


def _requested_orientation(config) -> Optional[str]:
    if isinstance(config, LayoutConfig):
        return config.orientation
    if isinstance(config, dict):
        return config.get('orientation')
    return None


def compute_bracket(source, topology: Optional[str] = None, container_width=800, container_height=600,
                    config=None, standings=None) -> BracketLayout:
    """
    Lay out a tournament for a container.

    Args:
        source: Tournament, or a flat list of Match
        topology: Tournament type tag; defaults to the tournament's own type
        container_width: Display width in pixels
        container_height: Display height in pixels
        config: Partial layout options merged over the responsive defaults
        standings: Optional swiss standings (team ids best first, or id -> rank)

    Returns:
        BracketLayout

    Raises:
        LayoutConfigError: if config is invalid; raised before any layout runs
    """
    warnings = []
    if isinstance(source, Tournament):
        matches = source.matches
        topology = topology or source.topology
        warnings.extend(source.warnings)
    else:
        matches = list(source or [])
    tag = resolve_topology(topology or SINGLE_ELIMINATION, warnings)

    base = responsive_config(matches, tag, container_width, container_height,
                             orientation=_requested_orientation(config) or HORIZONTAL)
    merged = merge_config(base, config)

    clean = sanitize_matches(matches, warnings)
    edges = resolve_structure(clean, tag, warnings)
    positions = layout(clean, tag, merged, standings=standings, edges=edges, warnings=warnings)
    connectors = route_connectors(positions, edges, merged.orientation)

    view_box = compute_view_box(positions, merged.padding)
    zoom = compute_optimal_zoom(positions, container_width, container_height, merged)
    view_state = initial_view_state(positions, container_width, container_height, merged)

    laid_out = placement_matches(clean) if tag == BARRAGE else clean
    labels = labels_for(laid_out, tag)
    rounds = round_positions(positions, labels, laid_out)

    logger.debug("Laid out %d matches (%s) into %sx%s: %s, zoom %.3f",
                 len(positions), tag, container_width, container_height,
                 bracket_dimensions(positions), zoom)
    return BracketLayout(
        topology=tag,
        config=merged,
        edges=edges,
        positions=positions,
        connectors=connectors,
        view_box=view_box,
        zoom=zoom,
        view_state=view_state,
        labels=labels,
        rounds=rounds,
        stats=bracket_stats(laid_out, tag),
        warnings=warnings,
    )


def load_tournament(path: str, data_dir: Optional[str] = None) -> Tournament:
    """
    Load a tournament from a YAML file.

    Args:
        path: File path, or a slug looked up as <data_dir>/<slug>.yaml
        data_dir: Directory searched for slugs

    Raises:
        TournamentNotFoundError: no such file, or the file is not a tournament
    """
    candidates = [path]
    if data_dir and not os.path.isabs(path):
        candidates = [os.path.join(data_dir, path), os.path.join(data_dir, f"{path}.yaml")]
    file_path = next((c for c in candidates if os.path.isfile(c)), None)
    if file_path is None:
        raise TournamentNotFoundError(f"Tournament not found: {path}")
    with open(file_path, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise TournamentNotFoundError(f"Tournament file {file_path} is not valid YAML: {e}") from e
    if not isinstance(data, dict):
        raise TournamentNotFoundError(f"Tournament file {file_path} does not contain a tournament")
    data.setdefault('id', os.path.splitext(os.path.basename(file_path))[0])
    tournament = Tournament.from_dict(data)
    logger.info("Loaded %r from %s", tournament, file_path)
    return tournament
