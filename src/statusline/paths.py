"""Directory layout for per-agent statusline logs.

Each team owns a directory under the teams root; its agents' status updates
are appended to ``<teams_dir>/<team>/statusline/<agent>.jsonl``.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_TEAMS_DIR = "~/.claude/teams"
STATUSLINE_SUBDIR = "statusline"
LOG_SUFFIX = ".jsonl"


def _validate_name(kind: str, name: str) -> str:
    """Reject names that would escape their parent directory.

    Args:
        kind: Label used in the error message ("team" or "agent").
        name: Name to validate.

    Returns:
        The name unchanged.

    Raises:
        ValueError: If the name is empty, "." / "..", or contains a separator.
    """
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise ValueError(f"Invalid {kind} name: {name!r}")
    return name


def default_teams_dir() -> Path:
    """Return the default teams root with ``~`` expanded."""
    return Path(DEFAULT_TEAMS_DIR).expanduser()


def team_dir(team_name: str, teams_dir: str | Path | None = None) -> Path:
    """Return the directory holding everything for one team."""
    root = Path(teams_dir).expanduser() if teams_dir is not None else default_teams_dir()
    return root / _validate_name("team", team_name)


def status_line_dir(team_name: str, teams_dir: str | Path | None = None) -> Path:
    """Return the directory where a team's statusline logs are written."""
    return team_dir(team_name, teams_dir) / STATUSLINE_SUBDIR


def status_line_log_path(
    team_name: str,
    agent_name: str,
    teams_dir: str | Path | None = None,
) -> Path:
    """Return the JSONL log path for one agent of a team."""
    return status_line_dir(team_name, teams_dir) / f"{_validate_name('agent', agent_name)}{LOG_SUFFIX}"
