"""Tests for the statusline-watch command line."""

import json
from pathlib import Path

import pytest

from statusline.__main__ import build_parser, main, print_event
from statusline.models import StatusLineEvent


class TestBuildParser:
    def test_team_and_agents(self) -> None:
        args = build_parser().parse_args(["teamA", "agent1", "agent2"])

        assert args.team == "teamA"
        assert args.agents == ["agent1", "agent2"]
        assert args.polling is None
        assert args.config is None

    def test_options(self) -> None:
        args = build_parser().parse_args(
            ["--teams-dir", "/srv/teams", "--polling", "--log-level", "DEBUG", "teamA", "agent1"]
        )

        assert args.teams_dir == "/srv/teams"
        assert args.polling is True
        assert args.log_level == "DEBUG"

    def test_requires_an_agent(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["teamA"])


class TestMain:
    def test_missing_config_file_exits_with_error(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = main(["--config", str(tmp_path / "missing.yaml"), "teamA", "agent1"])

        assert code == 1
        assert "Configuration error" in capsys.readouterr().err

    def test_unknown_log_level_exits_with_error(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = main(["--teams-dir", str(tmp_path), "--log-level", "CHATTY", "teamA", "agent1"])

        assert code == 1
        assert "Unknown log level" in capsys.readouterr().err


def test_print_event_writes_one_json_line(capsys: pytest.CaptureFixture[str]) -> None:
    event = StatusLineEvent(
        agent_name="agent1",
        data={"model": {"display_name": "Sonnet"}},
        timestamp="2025-01-15T10:30:00+00:00",
    )

    print_event(event)

    out = capsys.readouterr().out
    assert out.endswith("\n")
    assert json.loads(out) == event.to_dict()
