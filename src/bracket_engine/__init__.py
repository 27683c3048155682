"""Bracket layout engine: progression graph, geometry, viewport and view state."""
from .bracket import BracketLayout, compute_bracket, find_matches, highlighted_match_ids, load_tournament
from .config import LayoutConfig, load_config_file, merge_config, responsive_config
from .connectors import route_connectors
from .errors import BracketEngineError, LayoutConfigError, TournamentNotFoundError
from .formats import get_layout_strategy, layout, register_layout
from .layout import LayoutStrategy
from .models import (
    ConnectorPath, Match, MatchPosition, Point, ProgressionEdge, Size, Team, Tournament, ViewBox,
)
from .structure import resolve_structure
from .view_state import (
    ViewState, clear_selection, finish_zoom, highlight_team, initial_view_state, pan_end, pan_move,
    pan_start, pan_to, reconcile_view_state, reset_view, select_match, zoom_in, zoom_out, zoom_to,
)
from .viewport import (
    compute_optimal_zoom, compute_responsive_dimensions, compute_view_box, find_match_at_point,
)
