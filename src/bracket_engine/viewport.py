"""
Viewport fitting: bounding box, optimal zoom and centering offset.

All functions are total: empty positions, zero-size boxes and zero-size
containers fall back to a default box and a neutral scale of 1.0.
"""
from typing import Dict, List, Optional

from .config import DEFAULT_LAYOUT, LayoutConfig
from .models import COMPLETED, Match, MatchPosition, Point, ViewBox

DEFAULT_VIEW_BOX = (0, 0, 800, 600)
DEFAULT_PADDING = DEFAULT_LAYOUT['padding']
NEUTRAL_SCALE = 1.0


def _option(config: Optional[LayoutConfig], name: str):
    return getattr(config, name) if config is not None else DEFAULT_LAYOUT[name]


def bracket_dimensions(positions: List[MatchPosition]) -> Dict:
    """Width and height of the tight bounding box of all nodes."""
    if not positions:
        return {'width': 0, 'height': 0}
    min_x = min(p.position.x for p in positions)
    min_y = min(p.position.y for p in positions)
    max_x = max(p.right for p in positions)
    max_y = max(p.bottom for p in positions)
    return {'width': max_x - min_x, 'height': max_y - min_y}


def compute_view_box(positions: List[MatchPosition], padding=DEFAULT_PADDING) -> ViewBox:
    """Bounding box of all node rectangles, grown by padding on every side."""
    if not positions:
        return ViewBox(*DEFAULT_VIEW_BOX)
    min_x = min(p.position.x for p in positions)
    min_y = min(p.position.y for p in positions)
    max_x = max(p.right for p in positions)
    max_y = max(p.bottom for p in positions)
    return ViewBox(
        min_x - padding,
        min_y - padding,
        max_x - min_x + 2 * padding,
        max_y - min_y + 2 * padding,
    )


def clamp_scale(scale, config: Optional[LayoutConfig] = None):
    return max(_option(config, 'min_zoom'), min(_option(config, 'max_zoom'), scale))


def compute_optimal_zoom(positions: List[MatchPosition], container_width, container_height,
                         config: Optional[LayoutConfig] = None) -> float:
    """
    Largest scale at which the padded bracket fits the container.

    Clamped to [min_zoom, min(max_zoom, fit_max_zoom)] so fitting never
    magnifies a small bracket past 100% by default.
    """
    if not positions or not container_width or not container_height \
            or container_width <= 0 or container_height <= 0:
        return NEUTRAL_SCALE
    box = compute_view_box(positions, _option(config, 'padding'))
    if box.width <= 0 or box.height <= 0:
        return NEUTRAL_SCALE
    scale = min(container_width / box.width, container_height / box.height)
    upper = min(_option(config, 'max_zoom'), _option(config, 'fit_max_zoom'))
    return max(_option(config, 'min_zoom'), min(upper, scale))


def compute_responsive_dimensions(positions: List[MatchPosition], container_width, container_height,
                                  config: Optional[LayoutConfig] = None) -> Dict:
    """
    Scale and translation that centre the bracket in the container.

    The transform is screen = world * scale + translate.
    """
    scale = compute_optimal_zoom(positions, container_width, container_height, config)
    box = compute_view_box(positions, _option(config, 'padding'))
    width = container_width if container_width and container_width > 0 else box.width * scale
    height = container_height if container_height and container_height > 0 else box.height * scale
    return {
        'scale': scale,
        'translate_x': (width - box.width * scale) / 2 - box.x * scale,
        'translate_y': (height - box.height * scale) / 2 - box.y * scale,
    }


def is_point_in_rect(point: Point, position: MatchPosition) -> bool:
    return (position.position.x <= point.x <= position.right
            and position.position.y <= point.y <= position.bottom)


def find_match_at_point(point: Point, positions: List[MatchPosition]) -> Optional[MatchPosition]:
    """First node containing a world-space point, or None."""
    return next((p for p in positions if is_point_in_rect(point, p)), None)


def screen_to_world(point: Point, scale, translate_x, translate_y) -> Point:
    return Point((point.x - translate_x) / scale, (point.y - translate_y) / scale)


def round_positions(positions: List[MatchPosition], labels: Optional[Dict] = None,
                    matches: Optional[List[Match]] = None) -> List[Dict]:
    """
    One navigation entry per (segment, round): where the column starts, how
    many matches it holds and what share of them is completed.
    """
    status = {m.id: m.status for m in matches or []}
    groups = {}
    for position in positions:
        key = (position.segment, position.round)
        groups.setdefault(key, []).append(position)
    entries = []
    for (segment, round_number), members in groups.items():
        label = None
        if labels:
            label = labels.get(segment, {}).get(round_number)
        completed = sum(1 for p in members if status.get(p.match_id) == COMPLETED)
        entries.append({
            'segment': segment,
            'round': round_number,
            'label': label,
            'x': min(p.position.x for p in members),
            'y': min(p.position.y for p in members),
            'match_count': len(members),
            'completed': completed,
            'progress': round(completed / len(members), 3),
        })
    return entries
