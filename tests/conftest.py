"""
Shared pytest fixtures for bracket layout engine tests.

Running tests:
    pytest tests/                  - full suite
    pytest tests/ -m "not slow"   - skip the randomized property checks
"""
import pytest
import sys
import os
import yaml

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket_engine.models import Match, Team, COMPLETED, SCHEDULED


def build_single_elimination(num_teams, completed_rounds=0):
    """
    Build a full single elimination draw for a power-of-two team count.

    Match ids are 'R<round>-M<n>'. Rounds up to completed_rounds are
    completed with the top slot winning.
    """
    matches = []
    current = [Team(f"Team {i + 1}") for i in range(num_teams)]
    round_num = 1
    while len(current) >= 2:
        advancing = []
        for p in range(len(current) // 2):
            team1, team2 = current[2 * p], current[2 * p + 1]
            done = round_num <= completed_rounds and team1 is not None and team2 is not None
            matches.append(Match(
                f"R{round_num}-M{p + 1}", round_num,
                team1=team1, team2=team2,
                status=COMPLETED if done else SCHEDULED,
                winner=team1.id if done else None,
                match_number=p + 1,
            ))
            advancing.append(team1 if done else None)
        current = advancing
        round_num += 1
    return matches


def build_double_elimination(num_teams, with_reset=False):
    """
    Build a double elimination draw for a power-of-two team count.

    Winners rounds are 'W<r>-M<n>', losers rounds 'L<r>-M<n>', the grand
    final 'GF' and the optional bracket reset 'GF-reset'.
    """
    matches = []
    winners_rounds = num_teams.bit_length() - 1
    for r in range(1, winners_rounds + 1):
        for p in range(num_teams // 2 ** r):
            matches.append(Match(f"W{r}-M{p + 1}", r, 'winner', match_number=p + 1))
    for r in range(1, 2 * (winners_rounds - 1) + 1):
        count = num_teams // 2 ** ((r + 1) // 2 + 1)
        for p in range(count):
            matches.append(Match(f"L{r}-M{p + 1}", r, 'loser', match_number=p + 1))
    matches.append(Match("GF", 1, 'grand-final', match_number=1))
    if with_reset:
        matches.append(Match("GF-reset", 2, 'grand-final', match_number=1))
    return matches


@pytest.fixture
def four_team_matches():
    """4-team single elimination: two semifinals and a final."""
    return build_single_elimination(4)


@pytest.fixture
def eight_team_matches():
    """8-team single elimination: 4 + 2 + 1 matches."""
    return build_single_elimination(8)


@pytest.fixture
def eight_team_double():
    """8-team double elimination with a grand final but no reset."""
    return build_double_elimination(8)


@pytest.fixture
def eight_team_double_with_reset():
    """8-team double elimination including the bracket reset match."""
    return build_double_elimination(8, with_reset=True)


@pytest.fixture
def swiss_matches():
    """Two swiss rounds of two matches each."""
    return [
        Match('S1-M1', 1, team1=Team('Aces'), team2=Team('Blockers')),
        Match('S1-M2', 1, team1=Team('Diggers'), team2=Team('Setters')),
        Match('S2-M1', 2, team1=Team('Blockers'), team2=Team('Diggers')),
        Match('S2-M2', 2, team1=Team('Aces'), team2=Team('Setters')),
    ]


@pytest.fixture
def tournament_yaml():
    """Raw YAML read model of a 4-team single elimination tournament."""
    return {
        'id': 'spring-cup',
        'name': 'Spring Cup',
        'type': 'single-elimination',
        'matches': [
            {'id': 'sf1', 'round': 1, 'match_number': 1, 'team1': 'Sharks', 'team2': 'Ninjas',
             'status': 'completed', 'winner': 'Sharks', 'court': 'Court 1', 'scheduled_time': '09:00'},
            {'id': 'sf2', 'round': 1, 'match_number': 2, 'team1': 'Bums', 'team2': 'Force',
             'status': 'completed', 'winner': 'Force', 'court': 'Court 2', 'scheduled_time': '09:00'},
            {'id': 'final', 'round': 2, 'match_number': 1, 'team1': 'Sharks', 'team2': 'Force',
             'status': 'active'},
        ],
    }


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch, tournament_yaml):
    """Temporary data directory holding one stored tournament."""
    import app as app_module

    tournaments_dir = tmp_path / "tournaments"
    tournaments_dir.mkdir()
    (tournaments_dir / "spring-cup.yaml").write_text(
        yaml.dump(tournament_yaml, default_flow_style=False))

    monkeypatch.setattr(app_module, 'DATA_DIR', str(tmp_path))
    return str(tmp_path)


@pytest.fixture
def client(temp_data_dir):
    """Create a Flask test client bound to the temporary data directory."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client
