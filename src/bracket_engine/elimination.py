"""
Single elimination bracket layout.

Round 1 matches stack evenly along the cross axis; every later match sits at
the midpoint of its two feeder slots, so the drawing is a classic binary
tree. Slots without a feeder (byes, stale data) use the coordinate the slot
would have in a full tree, which keeps the tree aligned.
"""
from typing import Dict, List, Optional

from .config import LayoutConfig
from .layout import LayoutStrategy, place_node
from .models import SINGLE_ELIMINATION, WINNER, WINNER_ADVANCE, Match, MatchPosition, ProgressionEdge
from .structure import Rounds, group_matches_by_round, resolve_single_elimination


def get_round_name(teams_in_round: int) -> str:
    """Get the name of a round based on number of teams."""
    if teams_in_round == 2:
        return "Final"
    elif teams_in_round == 4:
        return "Semifinal"
    elif teams_in_round == 8:
        return "Quarterfinal"
    else:
        return f"Round of {teams_in_round}"


def round_labels(rounds: Rounds) -> Dict[int, str]:
    """
    Label each round by the teams it would hold in a full tree.

    The capacity is counted back from the final, so a first round thinned by
    byes is still called e.g. "Quarterfinal".
    """
    labels = {}
    total = len(rounds)
    for i, (round_number, round_matches) in enumerate(rounds):
        teams = max(2 ** (total - i), 2 * len(round_matches))
        labels[round_number] = get_round_name(teams)
    return labels


def _feeders(edges: Optional[List[ProgressionEdge]]) -> Dict[str, Dict[int, str]]:
    feeders = {}
    for edge in edges or []:
        if edge.kind == WINNER_ADVANCE:
            feeders.setdefault(edge.destination_id, {})[edge.destination_slot] = edge.source_id
    return feeders


def tree_cross_positions(rounds: Rounds, edges: Optional[List[ProgressionEdge]], pitch) -> Dict[str, float]:
    """
    Cross-axis coordinate of every match in one segment.

    A round smaller than the previous one halves the tree: each match sits
    between its two feeder slots. A round of the same size (losers bracket
    drop-in rounds) lines each match up with its single in-segment feeder.

    Returns dict of match id -> cross coordinate, starting at 0.
    """
    feeders = _feeders(edges)
    coords = []

    def virtual(i, q):
        if q < len(coords[i]):
            return coords[i][q]
        if i == 0:
            return q * pitch
        if len(rounds[i][1]) < len(rounds[i - 1][1]):
            return (virtual(i - 1, 2 * q) + virtual(i - 1, 2 * q + 1)) / 2
        return virtual(i - 1, q)

    for i, (_, round_matches) in enumerate(rounds):
        if i == 0:
            coords.append([p * pitch for p in range(len(round_matches))])
            continue

        previous = {m.id: q for q, m in enumerate(rounds[i - 1][1])}
        halving = len(round_matches) < len(rounds[i - 1][1])
        row = []
        coords.append(row)
        for p, match in enumerate(round_matches):
            slots = {s: previous[src] for s, src in feeders.get(match.id, {}).items() if src in previous}
            if halving:
                points = [coords[i - 1][slots[s]] if s in slots else virtual(i - 1, 2 * p + s) for s in (0, 1)]
                value = (points[0] + points[1]) / 2
            elif slots:
                value = sum(coords[i - 1][q] for q in slots.values()) / len(slots)
            else:
                value = virtual(i - 1, p)
            # Never closer than one pitch to the match above
            if row and value < row[-1] + pitch:
                value = row[-1] + pitch
            row.append(value)

    return {m.id: coords[i][p] for i, (_, ms) in enumerate(rounds) for p, m in enumerate(ms)}


def layout_tree(rounds: Rounds, edges: Optional[List[ProgressionEdge]], config: LayoutConfig,
                segment: str = WINNER, cross_offset=0) -> List[MatchPosition]:
    """Place one elimination tree; round index i sits at main = i * step."""
    cross = tree_cross_positions(rounds, edges, config.pitch)
    positions = []
    for i, (_, round_matches) in enumerate(rounds):
        main = i * config.step
        for p, match in enumerate(round_matches):
            positions.append(place_node(match, main, cross[match.id] + cross_offset, config, p, segment))
    return positions


class SingleEliminationLayout(LayoutStrategy):
    topology = SINGLE_ELIMINATION

    def layout(self, matches: List[Match], config=None, edges=None, standings=None,
               warnings=None) -> List[MatchPosition]:
        clean, config = self.prepare(matches, config)
        if not clean:
            return []
        if edges is None:
            edges = resolve_single_elimination(clean, warnings)
        rounds = group_matches_by_round(clean, SINGLE_ELIMINATION).get(WINNER, [])
        return layout_tree(rounds, edges, config, WINNER)
