"""
Read model consumed by the layout engine and the derived geometry it produces.

Tournaments and matches come from upstream storage and are never mutated here.
Edges, positions, connectors and view boxes are recomputed on every call.
"""
import logging
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

# Topology tags
SINGLE_ELIMINATION = 'single-elimination'
DOUBLE_ELIMINATION = 'double-elimination'
SWISS = 'swiss'
ROUND_ROBIN = 'round-robin'
BARRAGE = 'barrage'
TOPOLOGIES = (SINGLE_ELIMINATION, DOUBLE_ELIMINATION, SWISS, ROUND_ROBIN, BARRAGE)

# Bracket segments
WINNER = 'winner'
LOSER = 'loser'
GRAND_FINAL = 'grand-final'
SEGMENTS = (WINNER, LOSER, GRAND_FINAL)

# Match statuses and allowed lifecycle moves
SCHEDULED = 'scheduled'
ACTIVE = 'active'
COMPLETED = 'completed'
CANCELLED = 'cancelled'
MATCH_STATUSES = (SCHEDULED, ACTIVE, COMPLETED, CANCELLED)
STATUS_TRANSITIONS = {
    SCHEDULED: (ACTIVE, CANCELLED),
    ACTIVE: (COMPLETED, CANCELLED),
    COMPLETED: (),
    CANCELLED: (),
}

# Edge kinds and connector styles
WINNER_ADVANCE = 'winner-advance'
LOSER_DROP = 'loser-drop'
EDGE_STYLES = {WINNER_ADVANCE: 'solid', LOSER_DROP: 'dashed'}

PLACEMENT_STAGES = ('placement', 'barrage')


def normalize_segment(value) -> Optional[str]:
    """Map loose segment spellings ('Winners', 'grand_final', ...) to a segment tag."""
    if value is None:
        return None
    text = str(value).strip().lower().replace('_', '-').replace(' ', '-')
    if not text or text == 'none':
        return None
    if text in ('winner', 'winners', 'upper'):
        return WINNER
    if text in ('loser', 'losers', 'lower'):
        return LOSER
    if text in ('grand-final', 'grandfinal', 'final', 'gf'):
        return GRAND_FINAL
    return text


def normalize_topology(value) -> str:
    """Map loose topology spellings ('double', 'round_robin', ...) to a topology tag."""
    text = str(value or '').strip().lower().replace('_', '-').replace(' ', '-')
    aliases = {
        'single': SINGLE_ELIMINATION,
        'double': DOUBLE_ELIMINATION,
        'roundrobin': ROUND_ROBIN,
        'pool-play': ROUND_ROBIN,
    }
    return aliases.get(text, text)


class Team:
    def __init__(self, name, team_id=None, attributes=None):
        self.name = name
        self.id = team_id if team_id is not None else name
        self.attributes = attributes if attributes else {}

    @classmethod
    def from_value(cls, value) -> Optional['Team']:
        """Build a team from a YAML slot value; None and 'TBD' mean unresolved."""
        if value is None:
            return None
        if isinstance(value, Team):
            return value
        if isinstance(value, dict):
            name = value.get('name', value.get('id'))
            if name is None:
                return None
            extra = {k: v for k, v in value.items() if k not in ('id', 'name')}
            return cls(name, team_id=value.get('id'), attributes=extra)
        text = str(value).strip()
        if not text or text.upper() == 'TBD':
            return None
        return cls(text)

    def to_dict(self) -> Dict:
        return {'id': self.id, 'name': self.name}

    def __eq__(self, other):
        return isinstance(other, Team) and self.id == other.id and self.name == other.name

    def __hash__(self):
        return hash((self.id, self.name))

    def __repr__(self):
        return f"Team(name={self.name}, id={self.id})"


class Match:
    def __init__(self, match_id, round, bracket_segment=None, team1=None, team2=None,
                 status=SCHEDULED, winner=None, court=None, scheduled_time=None,
                 match_number=None, stage=None):
        self.id = match_id
        self.round = round
        self.bracket_segment = normalize_segment(bracket_segment)
        self.team1 = team1
        self.team2 = team2
        self.status = status
        self.winner = winner  # team id
        self.court = court
        self.scheduled_time = scheduled_time
        self.match_number = match_number
        self.stage = stage

    @classmethod
    def from_dict(cls, data: Dict) -> 'Match':
        match_number = data.get('match_number')
        return cls(
            match_id=str(data['id']),
            round=data.get('round'),
            bracket_segment=data.get('bracket', data.get('bracket_segment')),
            team1=Team.from_value(data.get('team1')),
            team2=Team.from_value(data.get('team2')),
            status=data.get('status', SCHEDULED),
            winner=data.get('winner'),
            court=data.get('court'),
            scheduled_time=data.get('scheduled_time'),
            match_number=int(match_number) if match_number is not None else None,
            stage=data.get('stage'),
        )

    @property
    def teams(self):
        return (self.team1, self.team2)

    @property
    def is_placement(self) -> bool:
        return str(self.stage or '').lower() in PLACEMENT_STAGES

    def winner_slot(self) -> Optional[int]:
        """Slot (0 or 1) holding the winner, once the match is completed."""
        if self.status != COMPLETED or self.winner is None:
            return None
        for slot, team in enumerate(self.teams):
            if team is not None and team.id == self.winner:
                return slot
        return None

    def team_in_slot(self, slot: Optional[int]) -> Optional[Team]:
        if slot is None:
            return None
        return self.teams[slot]

    def can_transition(self, new_status: str) -> bool:
        return new_status in STATUS_TRANSITIONS.get(self.status, ())

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'round': self.round,
            'bracket': self.bracket_segment,
            'match_number': self.match_number,
            'team1': self.team1.to_dict() if self.team1 else None,
            'team2': self.team2.to_dict() if self.team2 else None,
            'status': self.status,
            'winner': self.winner,
            'court': self.court,
            'scheduled_time': self.scheduled_time,
            'stage': self.stage,
        }

    def __repr__(self):
        return (f"Match(id={self.id}, round={self.round}, bracket={self.bracket_segment}, "
                f"teams={self.team1}/{self.team2}, status={self.status})")


class Tournament:
    def __init__(self, tournament_id, name, topology, matches=None, warnings=None):
        self.id = tournament_id
        self.name = name
        self.topology = normalize_topology(topology)
        self.matches = list(matches) if matches else []
        self.warnings = list(warnings) if warnings else []  # problems found while loading

    @classmethod
    def from_dict(cls, data: Dict) -> 'Tournament':
        """Build a tournament, skipping stored matches that cannot be read."""
        data = data or {}
        raw_matches = data.get('matches') or []
        warnings = []
        if not isinstance(raw_matches, list):
            warnings.append(f"Ignoring matches of type {type(raw_matches).__name__}; expected a list")
            raw_matches = []
        matches = []
        for index, raw in enumerate(raw_matches):
            if not isinstance(raw, dict):
                warnings.append(f"Match entry {index} is not a mapping; skipped")
                continue
            try:
                matches.append(Match.from_dict(raw))
            except KeyError as e:
                warnings.append(f"Match entry {index} is missing {e}; skipped")
            except (TypeError, ValueError) as e:
                warnings.append(f"Match entry {index} is invalid ({e}); skipped")
        for message in warnings:
            logger.warning(message)
        return cls(
            tournament_id=data.get('id'),
            name=data.get('name', data.get('id')),
            topology=data.get('type', data.get('topology', SINGLE_ELIMINATION)),
            matches=matches,
            warnings=warnings,
        )

    def __repr__(self):
        return f"Tournament(id={self.id}, name={self.name}, type={self.topology}, matches={len(self.matches)})"


class _Value:
    """Small immutable-by-convention record compared by its fields."""
    _fields = ()

    def to_dict(self) -> Dict:
        result = {}
        for field in self._fields:
            value = getattr(self, field)
            result[field] = value.to_dict() if isinstance(value, _Value) else value
        return result

    def __eq__(self, other):
        return type(self) is type(other) and self.to_dict() == other.to_dict()

    def __hash__(self):
        return hash(tuple(repr(getattr(self, f)) for f in self._fields))

    def __repr__(self):
        args = ', '.join(f"{f}={getattr(self, f)!r}" for f in self._fields)
        return f"{type(self).__name__}({args})"


class Point(_Value):
    _fields = ('x', 'y')

    def __init__(self, x, y):
        self.x = x
        self.y = y


class Size(_Value):
    _fields = ('width', 'height')

    def __init__(self, width, height):
        self.width = width
        self.height = height


class ViewBox(_Value):
    _fields = ('x', 'y', 'width', 'height')

    def __init__(self, x, y, width, height):
        self.x = x
        self.y = y
        self.width = width
        self.height = height


class ProgressionEdge(_Value):
    _fields = ('source_id', 'destination_id', 'destination_slot', 'kind', 'source_slot', 'team_id')

    def __init__(self, source_id, destination_id, destination_slot, kind=WINNER_ADVANCE,
                 source_slot=None, team_id=None):
        self.source_id = source_id
        self.destination_id = destination_id
        self.destination_slot = destination_slot
        self.kind = kind
        self.source_slot = source_slot  # slot of the travelling team, when known
        self.team_id = team_id


class MatchPosition(_Value):
    _fields = ('match_id', 'position', 'size', 'round', 'index', 'segment')

    def __init__(self, match_id, position: Point, size: Size, round=None, index=None, segment=None):
        self.match_id = match_id
        self.position = position
        self.size = size
        self.round = round
        self.index = index
        self.segment = segment

    @property
    def right(self):
        return self.position.x + self.size.width

    @property
    def bottom(self):
        return self.position.y + self.size.height

    def intersects(self, other: 'MatchPosition') -> bool:
        """True when the two rectangles overlap with positive area."""
        return (self.position.x < other.right and other.position.x < self.right
                and self.position.y < other.bottom and other.position.y < self.bottom)


class ConnectorPath(_Value):
    _fields = ('from_point', 'to_point', 'kind', 'style', 'routing', 'source_id', 'destination_id')

    def __init__(self, from_point: Point, to_point: Point, kind=WINNER_ADVANCE, style=None,
                 routing='curved', source_id=None, destination_id=None):
        self.from_point = from_point
        self.to_point = to_point
        self.kind = kind
        self.style = style or EDGE_STYLES.get(kind, 'solid')
        self.routing = routing
        self.source_id = source_id
        self.destination_id = destination_id


def matches_by_id(matches: List[Match]) -> Dict[str, Match]:
    """Index matches by id, keeping the first occurrence of a duplicate id."""
    index = {}
    for match in matches:
        index.setdefault(match.id, match)
    return index
