"""
Bracket structure resolution.

Turns a flat match list into progression edges ("winner of A fills slot N of
B", "loser of A fills slot N of C"). The resolver is total over stale or
partial input: anything it cannot place is dropped with a warning instead of
raising.

Double elimination convention:
- Winners Round 1 losers pair off into Losers Round 1 (W1-M1 and W1-M2 meet
  in L1-M1).
- Winners Round k >= 2 losers re-enter one round behind, into the top slot of
  Losers Round 2(k-1), match for match.
- Losers rounds alternate minor (halving) and major (drop-in) rounds; the
  resolver decides which by comparing match counts, so odd-sized draws still
  resolve.
- Winners and Losers finals feed the Grand Final slots 0 and 1; a second
  Grand Final match is the bracket reset.
"""
import logging
from typing import Callable, Dict, List, Optional, Tuple

from .models import (
    SINGLE_ELIMINATION, DOUBLE_ELIMINATION, SWISS, ROUND_ROBIN, BARRAGE,
    WINNER, LOSER, GRAND_FINAL, WINNER_ADVANCE, LOSER_DROP,
    Match, ProgressionEdge, normalize_topology,
)

logger = logging.getLogger(__name__)

Rounds = List[Tuple[int, List[Match]]]


def _warn(warnings: Optional[List[str]], message: str, report: bool = True) -> None:
    if report:
        logger.warning(message)
    if warnings is not None:
        warnings.append(message)


def sanitize_matches(matches: List[Match], warnings: Optional[List[str]] = None,
                     report: bool = True) -> List[Match]:
    """Drop matches without a usable round and duplicate ids, keeping input order."""
    seen = set()
    clean = []
    for match in matches or []:
        if match.id in seen:
            _warn(warnings, f"Duplicate match id {match.id}; keeping the first occurrence", report)
            continue
        if not isinstance(match.round, int) or isinstance(match.round, bool) or match.round < 1:
            _warn(warnings, f"Match {match.id} has invalid round {match.round!r}; skipped", report)
            continue
        seen.add(match.id)
        clean.append(match)
    return clean


def placement_matches(matches: List[Match]) -> List[Match]:
    """Matches flagged for the barrage placement stage, or all matches if none are flagged."""
    flagged = [m for m in matches if m.is_placement]
    return flagged if flagged else list(matches)


def segment_of(match: Match, topology: str) -> str:
    """Segment a match is laid out in; only double elimination has more than one."""
    if topology != DOUBLE_ELIMINATION:
        return WINNER
    if match.bracket_segment in (LOSER, GRAND_FINAL):
        return match.bracket_segment
    return WINNER


def group_matches_by_round(matches: List[Match], topology: str) -> Dict[str, Rounds]:
    """
    Group matches by segment and round.

    Returns dict of segment -> [(round_number, ordered matches)], rounds
    ascending. Within a round, matches are ordered by match_number, then by
    their position in the input.
    """
    buckets = {}
    for index, match in enumerate(matches):
        segment = segment_of(match, topology)
        buckets.setdefault(segment, {}).setdefault(match.round, []).append((index, match))

    grouped = {}
    for segment, rounds in buckets.items():
        ordered = []
        for round_number in sorted(rounds):
            entries = sorted(
                rounds[round_number],
                key=lambda e: (e[1].match_number is None,
                               e[1].match_number if e[1].match_number is not None else 0,
                               e[0]))
            ordered.append((round_number, [m for _, m in entries]))
        grouped[segment] = ordered
    return grouped


def _edge(source: Match, destination: Match, slot: int, kind: str) -> ProgressionEdge:
    source_slot = source.winner_slot()
    if kind == LOSER_DROP and source_slot is not None:
        source_slot = 1 - source_slot
    team = source.team_in_slot(source_slot)
    return ProgressionEdge(source.id, destination.id, slot, kind,
                           source_slot=source_slot, team_id=team.id if team else None)


def _advance_edges(rounds: Rounds, label: str, warnings: Optional[List[str]],
                   count_driven: bool = False) -> List[ProgressionEdge]:
    """
    Winner-advance edges inside one segment.

    Halving rounds send position p to floor(p/2), slot p % 2. With
    count_driven, a next round of the same size is a drop-in round and
    position p feeds position p, slot 1.
    """
    edges = []
    for i in range(len(rounds) - 1):
        round_number, round_matches = rounds[i]
        next_round, next_matches = rounds[i + 1]
        if next_round != round_number + 1:
            _warn(warnings, f"{label} bracket skips from round {round_number} to round {next_round}")
        drop_in = count_driven and len(next_matches) >= len(round_matches)
        for p, match in enumerate(round_matches):
            if drop_in:
                target, slot = p, 1
            else:
                target, slot = p // 2, p % 2
            if target >= len(next_matches):
                _warn(warnings, f"Match {match.id} feeds a missing {label.lower()} match "
                                f"(round {next_round}, position {target + 1}); edge dropped")
                continue
            edges.append(_edge(match, next_matches[target], slot, WINNER_ADVANCE))
    return edges


def resolve_single_elimination(matches: List[Match], warnings: Optional[List[str]] = None) -> List[ProgressionEdge]:
    rounds = group_matches_by_round(matches, SINGLE_ELIMINATION).get(WINNER, [])
    return _advance_edges(rounds, 'Winners', warnings)


def resolve_barrage(matches: List[Match], warnings: Optional[List[str]] = None) -> List[ProgressionEdge]:
    return resolve_single_elimination(placement_matches(matches), warnings)


def losers_drop_target(winners_round_index: int, position: int) -> Tuple[int, int, int]:
    """
    Where the loser of a winners bracket match re-enters the losers bracket.

    Args:
        winners_round_index: 0-based index of the winners round
        position: 0-based position of the match within that round

    Returns:
        (losers_round_index, position, slot), all 0-based
    """
    if winners_round_index == 0:
        return 0, position // 2, position % 2
    return 2 * winners_round_index - 1, position, 0


def resolve_double_elimination(matches: List[Match], warnings: Optional[List[str]] = None) -> List[ProgressionEdge]:
    grouped = group_matches_by_round(matches, DOUBLE_ELIMINATION)
    winner_rounds = grouped.get(WINNER, [])
    loser_rounds = grouped.get(LOSER, [])
    grand_finals = [m for _, round_matches in grouped.get(GRAND_FINAL, []) for m in round_matches]

    edges = _advance_edges(winner_rounds, 'Winners', warnings)
    edges.extend(_advance_edges(loser_rounds, 'Losers', warnings, count_driven=True))

    # Losers of the winners bracket drop into the losers bracket
    for k, (round_number, round_matches) in enumerate(winner_rounds):
        for p, match in enumerate(round_matches):
            losers_index, target, slot = losers_drop_target(k, p)
            if losers_index >= len(loser_rounds) or target >= len(loser_rounds[losers_index][1]):
                _warn(warnings, f"Loser of {match.id} has no losers bracket match to drop into; edge dropped")
                continue
            edges.append(_edge(match, loser_rounds[losers_index][1][target], slot, LOSER_DROP))

    finals = [(winner_rounds, 0, 'Winners'), (loser_rounds, 1, 'Losers')]
    if not grand_finals:
        if winner_rounds and loser_rounds:
            _warn(warnings, "Double elimination bracket has no grand final; final edges dropped")
        return edges

    grand_final = grand_finals[0]
    for rounds, slot, label in finals:
        if not rounds:
            continue
        final_matches = rounds[-1][1]
        edges.append(_edge(final_matches[0], grand_final, slot, WINNER_ADVANCE))
        for extra in final_matches[1:]:
            _warn(warnings, f"{label} final round has more than one match; {extra.id} has no destination")

    if len(grand_finals) > 1:
        reset = grand_finals[1]
        edges.append(_edge(grand_final, reset, 0, WINNER_ADVANCE))
        edges.append(_edge(grand_final, reset, 1, LOSER_DROP))
    for extra in grand_finals[2:]:
        _warn(warnings, f"Unexpected extra grand final match {extra.id}; ignored")
    return edges


def _no_progression(matches: List[Match], warnings: Optional[List[str]] = None) -> List[ProgressionEdge]:
    """Swiss and round-robin pairings are round-local."""
    return []


RESOLVERS: Dict[str, Callable] = {
    SINGLE_ELIMINATION: resolve_single_elimination,
    DOUBLE_ELIMINATION: resolve_double_elimination,
    SWISS: _no_progression,
    ROUND_ROBIN: _no_progression,
    BARRAGE: resolve_barrage,
}


def register_resolver(topology: str, resolver: Callable) -> None:
    RESOLVERS[normalize_topology(topology)] = resolver


def resolve_topology(topology: str, warnings: Optional[List[str]] = None, report: bool = True) -> str:
    """Normalize a topology tag, falling back to single elimination for unknown tags."""
    tag = normalize_topology(topology)
    if tag not in RESOLVERS:
        _warn(warnings, f"Unknown tournament type {topology!r}; using {SINGLE_ELIMINATION}", report)
        return SINGLE_ELIMINATION
    return tag


def resolve_structure(matches: List[Match], topology: str,
                      warnings: Optional[List[str]] = None) -> List[ProgressionEdge]:
    """
    Resolve the progression graph of a tournament.

    Args:
        matches: Flat match list, in generation order
        topology: Tournament type tag
        warnings: Optional list that structural warnings are appended to

    Returns:
        List of ProgressionEdge; never raises for inconsistent match data
    """
    tag = resolve_topology(topology, warnings)
    clean = sanitize_matches(matches, warnings)
    return RESOLVERS[tag](clean, warnings)
