"""
Unit tests for the interactive view state transitions.
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket_engine.config import LayoutConfig
from bracket_engine.models import MatchPosition, Point, Size
from bracket_engine.view_state import (
    ViewState, IDLE, PANNING, ZOOMING,
    initial_view_state, zoom_in, zoom_out, zoom_to, finish_zoom,
    pan_start, pan_move, pan_end, pan_to, reset_view,
    select_match, highlight_team, clear_selection, reconcile_view_state,
)


@pytest.fixture
def positions():
    return [
        MatchPosition("sf1", Point(0, 0), Size(200, 80)),
        MatchPosition("sf2", Point(0, 120), Size(200, 80)),
        MatchPosition("final", Point(320, 60), Size(200, 80)),
    ]


@pytest.fixture
def config():
    return LayoutConfig()


class TestViewStateValue:
    """Tests for the ViewState value."""

    def test_defaults(self):
        """A fresh state is idle at 100%."""
        state = ViewState()
        assert state.mode == IDLE
        assert state.scale == 1.0
        assert state.selected_match_id is None
        assert not state.show_details

    def test_replace_returns_new_value(self):
        """replace() never mutates the original."""
        state = ViewState()
        moved = state.replace(translate_x=10)
        assert state.translate_x == 0.0
        assert moved.translate_x == 10

    def test_dict_round_trip(self):
        """States survive a JSON-style round trip, pointer included."""
        state = ViewState(scale=2.0, mode=PANNING, pointer=Point(3, 4), selected_match_id="m")
        assert ViewState.from_dict(state.to_dict()) == state

    def test_from_dict_ignores_unknown_keys(self):
        """Unknown keys are dropped."""
        assert ViewState.from_dict({'scale': 2, 'colour': 'red'}).scale == 2

    def test_from_dict_none(self):
        """None gives the default state."""
        assert ViewState.from_dict(None) == ViewState()


class TestInitialView:
    """Tests for initial_view_state and reset_view."""

    def test_initial_is_fitted(self, positions, config):
        """The initial view centres the bracket."""
        state = initial_view_state(positions, 800, 600, config)
        assert state.scale == 1.0
        assert state.translate_x == pytest.approx(140)
        assert state.translate_y == pytest.approx(200)
        assert state.mode == IDLE

    def test_reset_from_any_mode(self, positions, config):
        """Reset works mid-pan and clears the selection."""
        state = initial_view_state(positions, 800, 600, config)
        state = select_match(highlight_team(state, "Team 1"), "sf1")
        state = pan_move(pan_start(state, 0, 0), 50, 50)
        reset = reset_view(state, positions, 800, 600, config)
        assert reset == initial_view_state(positions, 800, 600, config)
        assert reset.selected_match_id is None
        assert reset.highlighted_team_id is None
        assert not reset.show_details
        assert reset.mode == IDLE


class TestZoom:
    """Tests for zoom transitions."""

    def test_zoom_in_step(self, config):
        """Zooming in multiplies by the zoom step."""
        assert zoom_in(ViewState(), config).scale == pytest.approx(1.2)
        assert zoom_out(ViewState(), config).scale == pytest.approx(1 / 1.2)

    def test_zoom_in_clamped(self, config):
        """Repeated zoom in never exceeds max_zoom."""
        state = ViewState()
        for _ in range(50):
            state = zoom_in(state, config)
            assert state.scale <= 3.0
        assert state.scale == 3.0

    def test_zoom_out_clamped(self, config):
        """Repeated zoom out never drops below min_zoom."""
        state = ViewState()
        for _ in range(50):
            state = zoom_out(state, config)
            assert state.scale >= 0.1
        assert state.scale == 0.1

    def test_custom_bounds(self):
        """Configured bounds are honoured."""
        config = LayoutConfig(min_zoom=0.5, max_zoom=1.5)
        state = zoom_in(zoom_in(zoom_in(ViewState(), config), config), config)
        assert state.scale == 1.5

    def test_animated_zoom(self, config):
        """An animated zoom goes through the zooming mode."""
        state = zoom_in(ViewState(), config, animate=True)
        assert state.mode == ZOOMING
        assert state.scale == 1.0
        assert state.target_scale == pytest.approx(1.2)
        settled = finish_zoom(state)
        assert settled.mode == IDLE
        assert settled.scale == pytest.approx(1.2)
        assert settled.target_scale is None

    def test_zoom_ignored_while_zooming(self, config):
        """A second zoom during an animation is ignored."""
        state = zoom_in(ViewState(), config, animate=True)
        assert zoom_in(state, config) is state

    def test_finish_zoom_when_idle(self):
        """finish_zoom outside an animation is a no-op."""
        state = ViewState()
        assert finish_zoom(state) is state

    def test_anchor_stays_fixed(self, config):
        """The anchor point maps to the same world point before and after."""
        state = ViewState(scale=1.0, translate_x=100, translate_y=50)
        anchor = Point(300, 250)
        zoomed = zoom_in(state, config, anchor=anchor)
        before = ((anchor.x - state.translate_x) / state.scale, (anchor.y - state.translate_y) / state.scale)
        after = ((anchor.x - zoomed.translate_x) / zoomed.scale, (anchor.y - zoomed.translate_y) / zoomed.scale)
        assert after == pytest.approx(before)

    def test_zoom_to(self, config):
        """zoom_to clamps arbitrary targets."""
        assert zoom_to(ViewState(), 10, config).scale == 3.0
        assert zoom_to(ViewState(), 2, config).scale == 2


class TestPan:
    """Tests for pan transitions."""

    def test_pan_sequence(self):
        """Pointer deltas accumulate into the translation."""
        state = pan_start(ViewState(translate_x=10, translate_y=20), 100, 100)
        assert state.mode == PANNING
        state = pan_move(state, 130, 90)
        state = pan_move(state, 140, 80)
        assert (state.translate_x, state.translate_y) == (50, 0)
        state = pan_end(state)
        assert state.mode == IDLE
        assert state.pointer is None

    def test_pan_move_without_pointer_anchors(self):
        """A panning state without a pointer takes the first move as its anchor."""
        state = ViewState.from_dict({'mode': 'panning', 'translate_x': 5})
        anchored = pan_move(state, 40, 60)
        assert (anchored.translate_x, anchored.translate_y) == (5, 0)
        assert anchored.pointer == Point(40, 60)
        moved = pan_move(anchored, 50, 70)
        assert (moved.translate_x, moved.translate_y) == (15, 10)

    def test_pan_move_requires_panning(self):
        """pan_move while idle is ignored."""
        state = ViewState()
        assert pan_move(state, 10, 10) is state

    def test_pan_end_requires_panning(self):
        """pan_end while idle is ignored."""
        state = ViewState()
        assert pan_end(state) is state

    def test_pan_start_requires_idle(self, config):
        """Panning cannot start during an animated zoom."""
        state = zoom_in(ViewState(), config, animate=True)
        assert pan_start(state, 0, 0) is state

    def test_zoom_ignored_while_panning(self, config):
        """Zooming is only allowed from idle."""
        state = pan_start(ViewState(), 0, 0)
        assert zoom_in(state, config) is state

    def test_pan_to(self):
        """pan_to sets the translation directly."""
        state = pan_to(ViewState(), -40, 15)
        assert (state.translate_x, state.translate_y) == (-40, 15)
        panning = pan_start(ViewState(), 0, 0)
        assert pan_to(panning, 1, 1) is panning


class TestSelection:
    """Tests for selection transitions."""

    def test_select_match(self):
        """Selecting a match shows its details."""
        state = select_match(ViewState(), "sf1")
        assert state.selected_match_id == "sf1"
        assert state.show_details

    def test_selection_keeps_geometry(self):
        """Selection changes data only."""
        state = ViewState(scale=2, translate_x=5)
        selected = highlight_team(select_match(state, "m"), "Team 1")
        assert (selected.scale, selected.translate_x) == (2, 5)
        assert selected.highlighted_team_id == "Team 1"

    def test_clear_selection(self):
        """clear_selection drops match, team and details."""
        state = clear_selection(highlight_team(select_match(ViewState(), "m"), "t"))
        assert state.selected_match_id is None
        assert state.highlighted_team_id is None
        assert not state.show_details

    def test_reconcile_keeps_present_selection(self, positions, config):
        """A selection that still exists is kept."""
        state = select_match(ViewState(scale=2), "sf1")
        assert reconcile_view_state(state, positions, 800, 600, config) is state

    def test_reconcile_resets_stale_selection(self, positions, config):
        """A selection that disappeared resets the view."""
        state = select_match(ViewState(scale=2), "gone")
        reconciled = reconcile_view_state(state, positions, 800, 600, config)
        assert reconciled.selected_match_id is None
        assert reconciled == initial_view_state(positions, 800, 600, config)
