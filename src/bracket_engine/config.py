"""
Layout configuration: defaults, per-topology spacing, the responsive pre-pass,
and merge/validation of caller overrides.

Partial configs always merge over the responsive defaults computed for the
container, so callers only need to name the options they care about.
"""
import logging
from typing import Dict, List, Optional

import yaml

from .errors import LayoutConfigError
from .models import (
    SINGLE_ELIMINATION, DOUBLE_ELIMINATION, SWISS, ROUND_ROBIN, BARRAGE,
    WINNER, LOSER, GRAND_FINAL, Match, normalize_topology,
)

logger = logging.getLogger(__name__)

HORIZONTAL = 'horizontal'
VERTICAL = 'vertical'
ORIENTATIONS = (HORIZONTAL, VERTICAL)

DEFAULT_LAYOUT = {
    'node_width': 200,
    'node_height': 80,
    'round_gap': 120,
    'match_gap': 40,
    'segment_gap': None,
    'orientation': HORIZONTAL,
    'min_zoom': 0.1,
    'max_zoom': 3.0,
    'fit_max_zoom': 1.0,
    'zoom_step': 1.2,
    'padding': 50,
    'min_node_width': 100,
    'min_node_height': 40,
}

# Gap between rounds and between matches, per topology
FORMAT_SPACING = {
    SINGLE_ELIMINATION: {'round_gap': 120, 'match_gap': 40},
    DOUBLE_ELIMINATION: {'round_gap': 80, 'match_gap': 30},
    SWISS: {'round_gap': 50, 'match_gap': 20},
    ROUND_ROBIN: {'round_gap': 100, 'match_gap': 25},
    BARRAGE: {'round_gap': 80, 'match_gap': 35},
}

# (max container width, node width, node height, round gap, match gap, padding)
BREAKPOINTS = [
    (768, 150, 60, 70, 20, 20),    # mobile
    (1024, 180, 70, 90, 30, 30),   # tablet
]

_NON_NEGATIVE = ('round_gap', 'match_gap', 'segment_gap', 'padding')
_POSITIVE = ('node_width', 'node_height', 'min_zoom', 'max_zoom', 'fit_max_zoom',
             'zoom_step', 'min_node_width', 'min_node_height')


class LayoutConfig:
    """A validated, fully populated layout configuration."""

    def __init__(self, **options):
        values = dict(DEFAULT_LAYOUT)
        values.update(options)
        for key, value in values.items():
            setattr(self, key, value)

    @property
    def horizontal(self) -> bool:
        return self.orientation == HORIZONTAL

    @property
    def node_main(self):
        """Node extent along the round axis."""
        return self.node_width if self.horizontal else self.node_height

    @property
    def node_cross(self):
        """Node extent along the axis matches are stacked on."""
        return self.node_height if self.horizontal else self.node_width

    @property
    def pitch(self):
        return self.node_cross + self.match_gap

    @property
    def step(self):
        return self.node_main + self.round_gap

    @property
    def separation(self):
        """Cross-axis band kept between the winner and loser trees."""
        return self.segment_gap if self.segment_gap is not None else 2 * self.match_gap

    def to_dict(self) -> Dict:
        return {key: getattr(self, key) for key in DEFAULT_LAYOUT}

    def __eq__(self, other):
        return isinstance(other, LayoutConfig) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"LayoutConfig({self.to_dict()})"


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(values: Dict) -> None:
    """Raise LayoutConfigError if the merged options are not usable."""
    for key in _NON_NEGATIVE:
        value = values.get(key)
        if value is None and key == 'segment_gap':
            continue
        if not _is_number(value):
            raise LayoutConfigError(f"'{key}' must be a number, got {value!r}")
        if value < 0:
            raise LayoutConfigError(f"'{key}' must not be negative, got {value}")
    for key in _POSITIVE:
        value = values.get(key)
        if not _is_number(value):
            raise LayoutConfigError(f"'{key}' must be a number, got {value!r}")
        if value <= 0:
            raise LayoutConfigError(f"'{key}' must be positive, got {value}")
    if values['min_zoom'] > values['max_zoom']:
        raise LayoutConfigError(
            f"min_zoom ({values['min_zoom']}) is greater than max_zoom ({values['max_zoom']})")
    if values['orientation'] not in ORIENTATIONS:
        raise LayoutConfigError(
            f"orientation must be one of {', '.join(ORIENTATIONS)}, got {values['orientation']!r}")


def merge_config(base=None, overrides=None) -> LayoutConfig:
    """
    Merge caller overrides over a base configuration and validate the result.

    Args:
        base: LayoutConfig or dict of options (defaults when None)
        overrides: LayoutConfig or partial dict; None values are ignored

    Raises:
        LayoutConfigError: unknown option or invalid value
    """
    values = dict(DEFAULT_LAYOUT)
    for layer in (base, overrides):
        if layer is None:
            continue
        if isinstance(layer, LayoutConfig):
            layer = layer.to_dict()
        if not isinstance(layer, dict):
            raise LayoutConfigError(f"Layout config must be a mapping, got {type(layer).__name__}")
        unknown = sorted(set(layer) - set(DEFAULT_LAYOUT))
        if unknown:
            raise LayoutConfigError(f"Unknown layout option(s): {', '.join(unknown)}")
        values.update({k: v for k, v in layer.items() if v is not None})
    validate_config(values)
    return LayoutConfig(**values)


def format_defaults(topology: str) -> Dict:
    """Desktop defaults with the topology's spacing applied."""
    values = dict(DEFAULT_LAYOUT)
    values.update(FORMAT_SPACING.get(normalize_topology(topology), {}))
    return values


def _breakpoint_defaults(values: Dict, container_width) -> Dict:
    for max_width, node_width, node_height, round_gap, match_gap, padding in BREAKPOINTS:
        if container_width < max_width:
            values.update({
                'node_width': node_width,
                'node_height': node_height,
                'round_gap': round_gap,
                'match_gap': match_gap,
                'padding': padding,
            })
            break
    return values


def _grid_extent(matches: List[Match], topology: str):
    """Estimate (columns, stacked slots) of the laid-out bracket."""
    groups = {}
    for match in matches:
        if not isinstance(match.round, int) or match.round < 1:
            continue
        segment = match.bracket_segment or WINNER
        if topology != DOUBLE_ELIMINATION:
            segment = WINNER
        groups.setdefault(segment, {}).setdefault(match.round, 0)
        groups[segment][match.round] += 1

    def columns(segment):
        return len(groups.get(segment, {}))

    def widest(segment):
        return max(groups.get(segment, {}).values(), default=0)

    if topology == DOUBLE_ELIMINATION:
        cols = max(columns(WINNER), columns(LOSER)) + columns(GRAND_FINAL)
        slots = widest(WINNER) + widest(LOSER) + (1 if widest(LOSER) else 0)
        return cols, slots
    return columns(WINNER), widest(WINNER)


def responsive_config(matches: Optional[List[Match]], topology: str,
                      container_width, container_height,
                      orientation: str = HORIZONTAL) -> LayoutConfig:
    """
    Derive node size and spacing from the container and the bracket size.

    Breakpoints pick the base node size; brackets that still overflow the
    container shrink nodes and gaps together, never below the minimum legible
    node size.
    """
    topology = normalize_topology(topology)
    values = _breakpoint_defaults(format_defaults(topology), container_width or 0)
    if orientation in ORIENTATIONS:
        values['orientation'] = orientation
    if not matches or not container_width or not container_height \
            or container_width <= 0 or container_height <= 0:
        return merge_config(values)

    cols, slots = _grid_extent(matches, topology)
    if cols == 0 or slots == 0:
        return merge_config(values)

    horizontal = values['orientation'] == HORIZONTAL
    node_main = values['node_width'] if horizontal else values['node_height']
    node_cross = values['node_height'] if horizontal else values['node_width']
    main_extent = cols * node_main + (cols - 1) * values['round_gap']
    cross_extent = slots * node_cross + (slots - 1) * values['match_gap']
    available_main = (container_width if horizontal else container_height) - 2 * values['padding']
    available_cross = (container_height if horizontal else container_width) - 2 * values['padding']

    factor = 1.0
    if available_main > 0:
        factor = min(factor, available_main / main_extent)
    if available_cross > 0:
        factor = min(factor, available_cross / cross_extent)
    floor = max(values['min_node_width'] / values['node_width'],
                values['min_node_height'] / values['node_height'])
    factor = max(factor, min(floor, 1.0))
    if factor < 1.0:
        logger.debug("Shrinking %s layout by %.3f to fit %sx%s container",
                     topology, factor, container_width, container_height)
        for key in ('node_width', 'node_height', 'round_gap', 'match_gap'):
            values[key] = round(values[key] * factor, 2)
    return merge_config(values)


def load_config_file(file_path: str) -> Dict:
    """Load layout options from YAML, either top-level or under a 'layout' key."""
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise LayoutConfigError(f"Failed to parse {file_path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise LayoutConfigError(f"{file_path} must contain a mapping of layout options")
    if 'layout' in data:
        data = data['layout'] or {}
        if not isinstance(data, dict):
            raise LayoutConfigError(f"'layout' in {file_path} must be a mapping")
    return data
