"""
Flask web application for the bracket layout engine.

Serves computed bracket geometry as JSON. Tournaments are read from YAML files
under DATA_DIR/tournaments; nothing is ever written back.
"""
import os
import re
import glob
import yaml
from filelock import FileLock
from flask import Flask, request, jsonify

from bracket_engine import (
    LayoutConfigError, Match, TournamentNotFoundError, ViewState, compute_bracket, find_matches,
    highlighted_match_ids, load_tournament, merge_config,
)
from bracket_engine import view_state as views
from bracket_engine.models import Point

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('TOURNAMENT_DATA_DIR', os.path.join(BASE_DIR, 'data'))

DEFAULT_CONTAINER = (800, 600)
SLUG_PATTERN = re.compile(r'^[a-z0-9][a-z0-9_-]*$')


def _tournaments_dir() -> str:
    return os.path.join(DATA_DIR, 'tournaments')


def _data_lock() -> FileLock:
    """Lock guarding reads of the tournament directory."""
    os.makedirs(DATA_DIR, exist_ok=True)
    return FileLock(os.path.join(DATA_DIR, '.lock'), timeout=10)


def load_tournament_index() -> list:
    """Summaries of every tournament file, sorted by slug."""
    summaries = []
    with _data_lock():
        for file_path in sorted(glob.glob(os.path.join(_tournaments_dir(), '*.yaml'))):
            slug = os.path.splitext(os.path.basename(file_path))[0]
            try:
                with open(file_path, 'r', encoding='utf-8') as f:
                    data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                app.logger.warning(f'Failed to parse {file_path}: {e}')
                continue
            if not isinstance(data, dict):
                app.logger.warning(f'Skipping {file_path}: not a tournament')
                continue
            summaries.append({
                'slug': slug,
                'name': data.get('name', slug),
                'type': data.get('type'),
                'matches': len(data.get('matches') or []),
            })
    return summaries


def load_stored_tournament(slug: str):
    """Load a tournament by slug, under the data lock."""
    if not SLUG_PATTERN.match(slug):
        raise TournamentNotFoundError(f'Tournament not found: {slug}')
    with _data_lock():
        return load_tournament(f'{slug}.yaml', data_dir=_tournaments_dir())


def _container(data: dict) -> tuple:
    """Container width and height from a payload; raises ValueError on malformed values."""
    container = data.get('container') or {}
    if not isinstance(container, dict):
        raise ValueError('container must be an object with width and height')
    size = []
    for key, default in zip(('width', 'height'), DEFAULT_CONTAINER):
        value = container.get(key, default)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f'container {key} must be a number')
        size.append(value)
    return tuple(size)


def _matches_from_payload(data: dict) -> list:
    """Build matches from a JSON payload; raises ValueError on malformed entries."""
    raw = data.get('matches') or []
    if not isinstance(raw, list):
        raise ValueError('matches must be a list')
    try:
        return [Match.from_dict(m) for m in raw]
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f'Invalid match data: {e}') from e


def _bad_request(message: str):
    return jsonify({'success': False, 'error': message}), 400


@app.errorhandler(LayoutConfigError)
def handle_layout_config_error(error):
    app.logger.info(f'Rejected layout config: {error}')
    return jsonify({'success': False, 'error': str(error)}), 400


@app.errorhandler(TournamentNotFoundError)
def handle_tournament_not_found(error):
    return jsonify({'success': False, 'error': str(error)}), 404


@app.route('/api/tournaments', methods=['GET'])
def api_tournaments():
    """List stored tournaments."""
    return jsonify({'success': True, 'tournaments': load_tournament_index()})


@app.route('/api/bracket/<slug>', methods=['GET'])
def api_bracket(slug):
    """Bracket geometry for a stored tournament."""
    tournament = load_stored_tournament(slug)
    width = request.args.get('width', DEFAULT_CONTAINER[0], type=float)
    height = request.args.get('height', DEFAULT_CONTAINER[1], type=float)
    result = compute_bracket(tournament, container_width=width, container_height=height)
    if result.warnings:
        app.logger.warning(f'Tournament {slug} has {len(result.warnings)} structural warning(s)')
    return jsonify({'success': True, 'tournament': {'id': tournament.id, 'name': tournament.name},
                    'bracket': result.to_dict()})


@app.route('/api/bracket/<slug>/search', methods=['GET'])
def api_bracket_search(slug):
    """Find matches of a stored tournament by team, match id or 'status:<status>'."""
    tournament = load_stored_tournament(slug)
    found = find_matches(tournament.matches, request.args.get('q', ''))
    team_id = request.args.get('team')
    return jsonify({
        'success': True,
        'matches': [m.to_dict() for m in found],
        'highlighted': highlighted_match_ids(tournament.matches, team_id),
    })


@app.route('/api/bracket/layout', methods=['POST'])
def api_bracket_layout():
    """Bracket geometry for posted match data."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _bad_request('Expected a JSON object.')
    try:
        matches = _matches_from_payload(data)
        width, height = _container(data)
    except ValueError as e:
        return _bad_request(str(e))
    result = compute_bracket(matches, data.get('type'), width, height,
                             config=data.get('config'), standings=data.get('standings'))
    return jsonify({'success': True, 'bracket': result.to_dict()})


def _zoom(step):
    def apply(state, data, config):
        anchor = data.get('anchor')
        point = Point(anchor['x'], anchor['y']) if anchor else None
        return step(state, config, anchor=point, animate=bool(data.get('animate')))
    return apply


def _reset(state, data, config):
    matches = _matches_from_payload(data)
    width, height = _container(data)
    result = compute_bracket(matches, data.get('type'), width, height,
                             config=data.get('config'), standings=data.get('standings'))
    return views.reset_view(state, result.positions, width, height, result.config)


VIEW_ACTIONS = {
    'zoom-in': _zoom(views.zoom_in),
    'zoom-out': _zoom(views.zoom_out),
    'finish-zoom': lambda state, data, config: views.finish_zoom(state),
    'pan-start': lambda state, data, config: views.pan_start(state, data['x'], data['y']),
    'pan-move': lambda state, data, config: views.pan_move(state, data['x'], data['y']),
    'pan-end': lambda state, data, config: views.pan_end(state),
    'pan-to': lambda state, data, config: views.pan_to(state, data['x'], data['y']),
    'select': lambda state, data, config: views.select_match(state, data.get('match_id')),
    'highlight': lambda state, data, config: views.highlight_team(state, data.get('team_id')),
    'clear': lambda state, data, config: views.clear_selection(state),
    'reset': _reset,
}


@app.route('/api/bracket/view/<action>', methods=['POST'])
def api_view_action(action):
    """Apply one view transition to the posted state."""
    handler = VIEW_ACTIONS.get(action)
    if handler is None:
        return jsonify({'success': False, 'error': f'Unknown view action: {action}'}), 404
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _bad_request('Expected a JSON object.')
    config = merge_config(None, data.get('config'))
    try:
        state = ViewState.from_dict(data.get('state'))
        new_state = handler(state, data, config)
    except LayoutConfigError:
        raise
    except (KeyError, TypeError, ValueError) as e:
        return _bad_request(f'Invalid {action} request: {e}')
    return jsonify({'success': True, 'state': new_state.to_dict()})


if __name__ == '__main__':
    app.run(debug=True, port=5000)
