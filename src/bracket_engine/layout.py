"""
Shared contract and helpers for the topology layout strategies.

Strategies work in (main, cross) coordinates: rounds advance along the main
axis, matches of a round stack along the cross axis. The configured
orientation maps these onto x/y.
"""
from typing import List, Optional, Tuple

from .config import LayoutConfig, merge_config
from .models import MatchPosition, Point, Size, Match, ProgressionEdge
from .structure import sanitize_matches


class LayoutStrategy:
    """
    Base class for a topology layout.

    Subclasses implement layout(); identical inputs must always produce
    identical positions, in segment, round, index order.
    """
    topology = None

    def layout(self, matches: List[Match], config: Optional[LayoutConfig] = None,
               edges: Optional[List[ProgressionEdge]] = None, standings=None,
               warnings: Optional[List[str]] = None) -> List[MatchPosition]:
        raise NotImplementedError

    def prepare(self, matches: List[Match], config) -> Tuple[List[Match], LayoutConfig]:
        if not isinstance(config, LayoutConfig):
            config = merge_config(None, config)
        return sanitize_matches(matches, report=False), config

    def __repr__(self):
        return f"{type(self).__name__}(topology={self.topology})"


def place_node(match: Match, main, cross, config: LayoutConfig, index: int,
               segment: Optional[str] = None) -> MatchPosition:
    """Build a MatchPosition from main/cross coordinates."""
    if config.horizontal:
        point = Point(main, cross)
    else:
        point = Point(cross, main)
    return MatchPosition(match.id, point, Size(config.node_width, config.node_height),
                         round=match.round, index=index, segment=segment)


def cross_of(position: MatchPosition, config: LayoutConfig):
    return position.position.y if config.horizontal else position.position.x


def main_of(position: MatchPosition, config: LayoutConfig):
    return position.position.x if config.horizontal else position.position.y


def cross_extent(positions: List[MatchPosition], config: LayoutConfig):
    """Far cross-axis edge of a group of positions (0 when empty)."""
    return max((cross_of(p, config) + config.node_cross for p in positions), default=0)
