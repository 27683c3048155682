"""
Topology registry and the grid-style layouts (swiss, round-robin, barrage).

Each topology tag maps to one LayoutStrategy; new topologies are added with
register_layout() instead of another branch in a conditional.
"""
import logging
from typing import Dict, List, Optional

from .double_elimination import DoubleEliminationLayout
from .elimination import SingleEliminationLayout
from .layout import LayoutStrategy, place_node
from .models import (
    SINGLE_ELIMINATION, DOUBLE_ELIMINATION, SWISS, ROUND_ROBIN, BARRAGE, WINNER,
    Match, MatchPosition, normalize_topology,
)
from .structure import (
    group_matches_by_round, placement_matches, register_resolver, resolve_barrage, resolve_topology,
)

logger = logging.getLogger(__name__)


def standings_rank(standings, warnings: Optional[List[str]] = None) -> Dict[str, int]:
    """
    Normalize standings to team id -> rank (0 is best).

    Accepts a list of team ids, best first, or a mapping of team id -> rank.
    Anything else is ignored with a warning.
    """
    if standings is None:
        return {}
    if isinstance(standings, dict):
        return {str(team): rank for team, rank in standings.items()}
    if not isinstance(standings, (list, tuple)):
        message = f"Ignoring standings of type {type(standings).__name__}; expected a list or mapping"
        logger.warning(message)
        if warnings is not None:
            warnings.append(message)
        return {}
    return {str(team): rank for rank, team in enumerate(standings)}


class GridLayout(LayoutStrategy):
    """One column per round, matches stacked in a stable order within the column."""

    def ranking(self, standings, warnings=None) -> Dict[str, int]:
        return {}

    def order_round(self, round_matches: List[Match], ranks: Dict[str, int]) -> List[Match]:
        return round_matches

    def layout(self, matches: List[Match], config=None, edges=None, standings=None,
               warnings=None) -> List[MatchPosition]:
        clean, config = self.prepare(matches, config)
        rounds = group_matches_by_round(clean, self.topology).get(WINNER, [])
        ranks = self.ranking(standings, warnings)
        positions = []
        for i, (_, round_matches) in enumerate(rounds):
            main = i * config.step
            for p, match in enumerate(self.order_round(round_matches, ranks)):
                positions.append(place_node(match, main, p * config.pitch, config, p, WINNER))
        return positions


class SwissLayout(GridLayout):
    """Swiss rounds, ordered by the current standings of the paired teams when supplied."""
    topology = SWISS

    def ranking(self, standings, warnings=None):
        return standings_rank(standings, warnings)

    def order_round(self, round_matches, ranks):
        if not ranks:
            return round_matches
        unranked = len(ranks) + 1

        def best_rank(match):
            team_ranks = [ranks.get(str(team.id), unranked) for team in match.teams if team is not None]
            return min(team_ranks, default=unranked)

        # sorted() is stable, so ties keep generation order
        return sorted(round_matches, key=best_rank)


class RoundRobinLayout(GridLayout):
    """Round-robin rotation rounds in generation order."""
    topology = ROUND_ROBIN


class BarrageLayout(LayoutStrategy):
    """Placement playoff: the single elimination tree over placement-flagged matches."""
    topology = BARRAGE

    def __init__(self):
        self.tree = SingleEliminationLayout()

    def layout(self, matches: List[Match], config=None, edges=None, standings=None,
               warnings=None) -> List[MatchPosition]:
        clean, config = self.prepare(matches, config)
        subset = placement_matches(clean)
        if edges is None:
            edges = resolve_barrage(subset, warnings)
        return self.tree.layout(subset, config, edges=edges, warnings=warnings)


LAYOUT_STRATEGIES: Dict[str, LayoutStrategy] = {
    SINGLE_ELIMINATION: SingleEliminationLayout(),
    DOUBLE_ELIMINATION: DoubleEliminationLayout(),
    SWISS: SwissLayout(),
    ROUND_ROBIN: RoundRobinLayout(),
    BARRAGE: BarrageLayout(),
}


def register_layout(topology: str, strategy: LayoutStrategy, resolver=None) -> None:
    """
    Register a layout strategy for a topology tag.

    Args:
        topology: Topology tag, e.g. 'ladder'
        strategy: LayoutStrategy instance
        resolver: Optional function (matches, warnings) -> edges; topologies
                  without one have no progression edges
    """
    tag = normalize_topology(topology)
    LAYOUT_STRATEGIES[tag] = strategy
    register_resolver(tag, resolver or (lambda matches, warnings=None: []))
    logger.debug("Registered layout %r for %s", strategy, tag)


def get_layout_strategy(topology: str, warnings: Optional[List[str]] = None) -> LayoutStrategy:
    return LAYOUT_STRATEGIES[resolve_topology(topology, warnings)]


def layout(matches: List[Match], topology: str, config=None, standings=None, edges=None,
           warnings: Optional[List[str]] = None) -> List[MatchPosition]:
    """
    Lay out a tournament's matches for its topology.

    Args:
        matches: Flat match list
        topology: Tournament type tag
        config: LayoutConfig or partial dict of options
        standings: Optional swiss standings (team ids best first, or id -> rank)
        edges: Pre-resolved progression edges; resolved on demand when None
        warnings: Optional list that structural warnings are appended to

    Returns:
        List of MatchPosition in segment, round, index order
    """
    strategy = get_layout_strategy(topology, warnings)
    return strategy.layout(matches, config, edges=edges, standings=standings, warnings=warnings)
