"""
Connector routing between dependent matches.

Paths are pure geometry: endpoints plus a routing hint. Curves, elbows and
colours are left to the renderer.
"""
import logging
from typing import List, Optional

from .models import EDGE_STYLES, ConnectorPath, MatchPosition, Point, ProgressionEdge

logger = logging.getLogger(__name__)

# Fraction along the cross axis where each team slot is anchored
SLOT_ANCHORS = {0: 0.25, 1: 0.75}
CENTER_ANCHOR = 0.5


def slot_anchor(slot: Optional[int]) -> float:
    return SLOT_ANCHORS.get(slot, CENTER_ANCHOR)


def trailing_point(position: MatchPosition, fraction: float, horizontal: bool = True) -> Point:
    """Point on the edge facing the next round."""
    if horizontal:
        return Point(position.right, position.position.y + position.size.height * fraction)
    return Point(position.position.x + position.size.width * fraction, position.bottom)


def leading_point(position: MatchPosition, fraction: float, horizontal: bool = True) -> Point:
    """Point on the edge facing the previous round."""
    if horizontal:
        return Point(position.position.x, position.position.y + position.size.height * fraction)
    return Point(position.position.x + position.size.width * fraction, position.position.y)


def routing_hint(start: Point, end: Point, horizontal: bool = True) -> str:
    """
    'straight' when both ends share the cross coordinate, 'backward' when the
    destination's leading edge lies behind the source's trailing edge (a drop
    into an earlier or the same column), 'curved' otherwise.
    """
    start_main, end_main = (start.x, end.x) if horizontal else (start.y, end.y)
    if end_main < start_main:
        return 'backward'
    aligned = start.y == end.y if horizontal else start.x == end.x
    return 'straight' if aligned else 'curved'


def route_connectors(positions: List[MatchPosition], edges: List[ProgressionEdge],
                     orientation: str = 'horizontal') -> List[ConnectorPath]:
    """
    Compute one connector per progression edge.

    The path leaves the source's trailing edge at the travelling team's slot
    (centre when the result is not known yet) and enters the destination's
    leading edge at the assigned slot, so two feeders of one match never share
    an endpoint. Edges whose matches have no position are skipped.
    """
    horizontal = orientation != 'vertical'
    by_id = {p.match_id: p for p in positions}
    paths = []
    for edge in edges:
        source = by_id.get(edge.source_id)
        destination = by_id.get(edge.destination_id)
        if source is None or destination is None:
            logger.debug("Skipping connector %s -> %s: match not laid out",
                         edge.source_id, edge.destination_id)
            continue
        start = trailing_point(source, slot_anchor(edge.source_slot), horizontal)
        end = leading_point(destination, slot_anchor(edge.destination_slot), horizontal)
        paths.append(ConnectorPath(
            start, end,
            kind=edge.kind,
            style=EDGE_STYLES.get(edge.kind, 'solid'),
            routing=routing_hint(start, end, horizontal),
            source_id=edge.source_id,
            destination_id=edge.destination_id,
        ))
    return paths
