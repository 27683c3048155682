"""
Interactive pan/zoom/selection state.

The view state is a value: every transition takes the current state and
returns a new one, so transitions can be tested on their own and the caller
simply keeps the latest result. Transitions that are not allowed from the
current mode return the state unchanged.

Modes:
- idle: at rest; zoom, pan_start and pan_to are accepted
- panning: between pan_start and pan_end; pan_move accumulates deltas
- zooming: an animated zoom in flight; finish_zoom settles it
"""
import logging
from typing import Dict, List, Optional

from .config import LayoutConfig, merge_config
from .models import MatchPosition, Point
from .viewport import clamp_scale, compute_responsive_dimensions

logger = logging.getLogger(__name__)

IDLE = 'idle'
PANNING = 'panning'
ZOOMING = 'zooming'
MODES = (IDLE, PANNING, ZOOMING)


class ViewState:
    _fields = ('scale', 'translate_x', 'translate_y', 'selected_match_id', 'highlighted_team_id',
               'mode', 'pointer', 'target_scale', 'show_details')

    def __init__(self, scale=1.0, translate_x=0.0, translate_y=0.0, selected_match_id=None,
                 highlighted_team_id=None, mode=IDLE, pointer=None, target_scale=None,
                 show_details=False):
        self.scale = scale
        self.translate_x = translate_x
        self.translate_y = translate_y
        self.selected_match_id = selected_match_id
        self.highlighted_team_id = highlighted_team_id
        self.mode = mode
        self.pointer = pointer  # last pointer position while panning
        self.target_scale = target_scale  # scale an animated zoom is heading to
        self.show_details = show_details

    def replace(self, **changes) -> 'ViewState':
        values = {field: getattr(self, field) for field in self._fields}
        values.update(changes)
        return ViewState(**values)

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> 'ViewState':
        data = dict(data or {})
        pointer = data.get('pointer')
        if isinstance(pointer, dict):
            data['pointer'] = Point(pointer['x'], pointer['y'])
        elif isinstance(pointer, (list, tuple)):
            data['pointer'] = Point(*pointer)
        elif not isinstance(pointer, Point):
            data['pointer'] = None
        return cls(**{k: v for k, v in data.items() if k in cls._fields})

    def to_dict(self) -> Dict:
        result = {field: getattr(self, field) for field in self._fields}
        if self.pointer is not None:
            result['pointer'] = self.pointer.to_dict()
        return result

    def __eq__(self, other):
        return isinstance(other, ViewState) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"ViewState(mode={self.mode}, scale={self.scale}, translate=({self.translate_x}, "
                f"{self.translate_y}), selected={self.selected_match_id})")


def _config(config) -> LayoutConfig:
    return config if isinstance(config, LayoutConfig) else merge_config(None, config)


def _ignored(state: ViewState, transition: str) -> ViewState:
    logger.debug("Ignoring %s while %s", transition, state.mode)
    return state


def initial_view_state(positions: List[MatchPosition], container_width, container_height,
                       config=None) -> ViewState:
    """Fitted view for freshly laid-out positions."""
    fit = compute_responsive_dimensions(positions, container_width, container_height, _config(config))
    return ViewState(scale=fit['scale'], translate_x=fit['translate_x'], translate_y=fit['translate_y'])


def zoom_to(state: ViewState, scale, config=None, anchor: Optional[Point] = None,
            animate: bool = False) -> ViewState:
    """
    Zoom to a scale clamped to the configured bounds.

    With an anchor (screen coordinates), that point stays fixed on screen.
    With animate, the state enters 'zooming' and finish_zoom() settles it.
    """
    if state.mode != IDLE:
        return _ignored(state, 'zoom')
    new_scale = clamp_scale(scale, _config(config))
    translate_x, translate_y = state.translate_x, state.translate_y
    if anchor is not None and state.scale:
        ratio = new_scale / state.scale
        translate_x = anchor.x - (anchor.x - translate_x) * ratio
        translate_y = anchor.y - (anchor.y - translate_y) * ratio
    if animate:
        return state.replace(mode=ZOOMING, target_scale=new_scale,
                             translate_x=translate_x, translate_y=translate_y)
    return state.replace(scale=new_scale, translate_x=translate_x, translate_y=translate_y)


def zoom_in(state: ViewState, config=None, anchor: Optional[Point] = None, animate: bool = False) -> ViewState:
    config = _config(config)
    return zoom_to(state, state.scale * config.zoom_step, config, anchor, animate)


def zoom_out(state: ViewState, config=None, anchor: Optional[Point] = None, animate: bool = False) -> ViewState:
    config = _config(config)
    return zoom_to(state, state.scale / config.zoom_step, config, anchor, animate)


def finish_zoom(state: ViewState) -> ViewState:
    if state.mode != ZOOMING:
        return _ignored(state, 'finish_zoom')
    return state.replace(mode=IDLE, scale=state.target_scale, target_scale=None)


def pan_start(state: ViewState, x, y) -> ViewState:
    if state.mode != IDLE:
        return _ignored(state, 'pan_start')
    return state.replace(mode=PANNING, pointer=Point(x, y))


def pan_move(state: ViewState, x, y) -> ViewState:
    if state.mode != PANNING:
        return _ignored(state, 'pan_move')
    if state.pointer is None:
        # no anchor yet; this move becomes the anchor
        return state.replace(pointer=Point(x, y))
    dx = x - state.pointer.x
    dy = y - state.pointer.y
    return state.replace(translate_x=state.translate_x + dx, translate_y=state.translate_y + dy,
                         pointer=Point(x, y))


def pan_end(state: ViewState) -> ViewState:
    if state.mode != PANNING:
        return _ignored(state, 'pan_end')
    return state.replace(mode=IDLE, pointer=None)


def pan_to(state: ViewState, x, y) -> ViewState:
    if state.mode != IDLE:
        return _ignored(state, 'pan_to')
    return state.replace(translate_x=x, translate_y=y)


def reset_view(state: ViewState, positions: List[MatchPosition], container_width, container_height,
               config=None) -> ViewState:
    """Re-fit the bracket and clear selection, from any mode."""
    return initial_view_state(positions, container_width, container_height, config)


def select_match(state: ViewState, match_id) -> ViewState:
    return state.replace(selected_match_id=match_id, show_details=match_id is not None)


def highlight_team(state: ViewState, team_id) -> ViewState:
    return state.replace(highlighted_team_id=team_id)


def clear_selection(state: ViewState) -> ViewState:
    return state.replace(selected_match_id=None, highlighted_team_id=None, show_details=False)


def reconcile_view_state(state: ViewState, positions: List[MatchPosition], container_width,
                         container_height, config=None) -> ViewState:
    """Reset the view when the selected match is no longer part of the layout."""
    if state.selected_match_id is None:
        return state
    if any(p.match_id == state.selected_match_id for p in positions):
        return state
    logger.debug("Selected match %s disappeared; resetting view", state.selected_match_id)
    return reset_view(state, positions, container_width, container_height, config)
