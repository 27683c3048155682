"""
Tests for the command line tool.
"""
import pytest
import sys
import os
import json
import yaml

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from main import main


@pytest.fixture
def tournament_file(tmp_path, tournament_yaml):
    path = tmp_path / "spring-cup.yaml"
    path.write_text(yaml.dump(tournament_yaml))
    return str(path)


class TestMain:
    """Tests for main()."""

    def test_yaml_output(self, tournament_file, capsys):
        """Default output is YAML geometry."""
        assert main([tournament_file]) == 0
        data = yaml.safe_load(capsys.readouterr().out)
        assert len(data['positions']) == 3
        assert data['topology'] == 'single-elimination'

    def test_json_output(self, tournament_file, capsys):
        """JSON output for the requested container."""
        assert main([tournament_file, '--width', '1600', '--height', '900', '--format', 'json']) == 0
        data = json.loads(capsys.readouterr().out)
        assert data['config']['node_width'] == 200
        assert len(data['connectors']) == 2

    def test_summary_output(self, tournament_file, capsys):
        """The summary names rounds and progress."""
        assert main([tournament_file, '--format', 'summary']) == 0
        out = capsys.readouterr().out
        assert "Spring Cup" in out
        assert "Semifinal" in out
        assert "Final" in out
        assert "Progress: 2/3" in out

    def test_config_file(self, tournament_file, tmp_path, capsys):
        """A layout file is merged into the config."""
        config = tmp_path / "layout.yaml"
        config.write_text("layout:\n  orientation: vertical\n  match_gap: 12\n")
        assert main([tournament_file, '--config', str(config), '--format', 'json']) == 0
        data = json.loads(capsys.readouterr().out)
        assert data['config']['orientation'] == 'vertical'
        assert data['config']['match_gap'] == 12

    def test_missing_tournament(self, tmp_path, capsys):
        """A missing file exits with 1."""
        assert main([str(tmp_path / "nope.yaml")]) == 1
        assert "not found" in capsys.readouterr().err

    def test_invalid_config(self, tournament_file, tmp_path, capsys):
        """An invalid layout file exits with 2."""
        config = tmp_path / "layout.yaml"
        config.write_text("round_gap: -5\n")
        assert main([tournament_file, '--config', str(config)]) == 2
        assert "round_gap" in capsys.readouterr().err

    def test_missing_config_file(self, tournament_file, tmp_path):
        """A missing layout file exits with 1."""
        assert main([tournament_file, '--config', str(tmp_path / "none.yaml")]) == 1

    def test_unreadable_match_reported(self, tmp_path, tournament_yaml, capsys):
        """A stored match without an id is skipped and listed under the warnings."""
        tournament_yaml['matches'].append({'round': 2})
        path = tmp_path / "cup.yaml"
        path.write_text(yaml.dump(tournament_yaml))
        assert main([str(path), '--format', 'summary']) == 0
        out = capsys.readouterr().out
        assert "Progress: 2/3" in out
        assert "Warnings:" in out
        assert "missing 'id'" in out
