"""
Double elimination bracket layout.

In double elimination:
- Winners Bracket: teams that haven't lost yet, drawn as a single elimination tree
- Losers Bracket: teams that have lost once, drawn as its own tree below the
  winners bracket, separated by a fixed band so the two never overlap
- Grand Final: one round past the later of the two finals, centred between them
- Bracket Reset: if present, one more round further on, level with the Grand Final
"""
import logging
from typing import Dict, List

from .elimination import layout_tree
from .layout import LayoutStrategy, cross_extent, cross_of, place_node
from .models import DOUBLE_ELIMINATION, WINNER, LOSER, GRAND_FINAL, Match, MatchPosition
from .structure import Rounds, group_matches_by_round, resolve_double_elimination

logger = logging.getLogger(__name__)


def get_losers_round_name(round_num: int, total_losers_rounds: int) -> str:
    """Get the name for a losers bracket round (0-indexed)."""
    rounds_from_end = total_losers_rounds - round_num - 1
    if rounds_from_end == 0:
        return "Losers Final"
    elif rounds_from_end == 1:
        return "Losers Semifinal"
    else:
        return f"Losers Round {round_num + 1}"


def get_winners_round_name(teams_in_round: int) -> str:
    """Get the name for a winners bracket round."""
    if teams_in_round == 2:
        return "Winners Final"
    elif teams_in_round == 4:
        return "Winners Semifinal"
    elif teams_in_round == 8:
        return "Winners Quarterfinal"
    else:
        return f"Winners Round of {teams_in_round}"


def calculate_losers_bracket_rounds(winners_rounds: int) -> int:
    """
    Calculate number of rounds in losers bracket.
    For a winners bracket of R rounds the losers bracket has 2 * (R - 1)
    rounds.

    Pattern: minor, major, minor, major, ... ending with a major round
    """
    if winners_rounds < 2:
        return 0
    return 2 * (winners_rounds - 1)


def double_round_labels(grouped: Dict[str, Rounds]) -> Dict[str, Dict[int, str]]:
    """Round labels per segment, e.g. {'winner': {1: 'Winners Semifinal', ...}}."""
    winner_rounds = grouped.get(WINNER, [])
    loser_rounds = grouped.get(LOSER, [])
    labels = {
        WINNER: {number: get_winners_round_name(max(2 ** (len(winner_rounds) - i), 2 * len(round_matches)))
                 for i, (number, round_matches) in enumerate(winner_rounds)},
        LOSER: {number: get_losers_round_name(i, len(loser_rounds))
                for i, (number, _) in enumerate(loser_rounds)},
        GRAND_FINAL: {},
    }
    for i, (number, _) in enumerate(grouped.get(GRAND_FINAL, [])):
        labels[GRAND_FINAL][number] = "Grand Final" if i == 0 else "Bracket Reset"
    return labels


class DoubleEliminationLayout(LayoutStrategy):
    topology = DOUBLE_ELIMINATION

    def layout(self, matches: List[Match], config=None, edges=None, standings=None,
               warnings=None) -> List[MatchPosition]:
        clean, config = self.prepare(matches, config)
        if not clean:
            return []
        if edges is None:
            edges = resolve_double_elimination(clean, warnings)

        grouped = group_matches_by_round(clean, DOUBLE_ELIMINATION)
        winner_rounds = grouped.get(WINNER, [])
        loser_rounds = grouped.get(LOSER, [])
        expected = calculate_losers_bracket_rounds(len(winner_rounds))
        if loser_rounds and len(loser_rounds) != expected:
            logger.debug("Losers bracket has %d rounds, expected %d for %d winners rounds",
                         len(loser_rounds), expected, len(winner_rounds))

        winner_positions = layout_tree(winner_rounds, edges, config, WINNER)
        loser_offset = cross_extent(winner_positions, config) + config.separation if winner_positions else 0
        loser_positions = layout_tree(loser_rounds, edges, config, LOSER, cross_offset=loser_offset)

        # Grand final: centred between the two bracket finals
        centres = []
        for positions, rounds in ((winner_positions, winner_rounds), (loser_positions, loser_rounds)):
            if rounds:
                final_id = rounds[-1][1][0].id
                final = next(p for p in positions if p.match_id == final_id)
                centres.append(cross_of(final, config) + config.node_cross / 2)
        cross = sum(centres) / len(centres) - config.node_cross / 2 if centres else 0

        final_positions = []
        first_index = max(len(winner_rounds), len(loser_rounds))
        grand_finals = [m for _, round_matches in grouped.get(GRAND_FINAL, []) for m in round_matches]
        for j, match in enumerate(grand_finals):
            main = (first_index + j) * config.step
            final_positions.append(place_node(match, main, cross, config, j, GRAND_FINAL))

        return winner_positions + loser_positions + final_positions
