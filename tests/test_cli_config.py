from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]


def _run_cli(tmp_path: Path, *args: str) -> subprocess.CompletedProcess[str]:
    config_file = tmp_path / "config.toml"
    if not config_file.exists():
        config_file.write_text("[recompute]\nworkers = 2\n", encoding="utf-8")
    cmd = [
        sys.executable,
        "-m",
        "ranking_electoral.config_manager",
        "--config",
        str(config_file),
        *args,
    ]
    env = {
        key: value
        for key, value in os.environ.items()
        if not key.startswith("RANKING_ELECTORAL__")
    }
    env["PYTHONPATH"] = str(ROOT)
    return subprocess.run(cmd, check=False, capture_output=True, text=True, env=env, cwd=ROOT)


def test_validate_success(tmp_path: Path) -> None:
    result = _run_cli(tmp_path, "--validate")
    assert result.returncode == 0
    assert "Configuration OK" in result.stdout
    assert "balanced=0.45/0.45/0.10" in result.stdout


def test_explain_reports_source(tmp_path: Path) -> None:
    env_path = tmp_path / ".env"
    env_path.write_text("RANKING_ELECTORAL__RECOMPUTE__WORKERS=6\n", encoding="utf-8")
    result = _run_cli(tmp_path, "--explain", "recompute.workers")
    assert result.returncode == 0
    assert "recompute.workers = 6" in result.stdout
    assert "RANKING_ELECTORAL__RECOMPUTE__WORKERS" in result.stdout


def test_set_updates_file_and_creates_backup(tmp_path: Path) -> None:
    config_file = tmp_path / "config.toml"
    config_file.write_text("[scoring.company]\ncap = 60\n", encoding="utf-8")
    result = _run_cli(tmp_path, "--set", "scoring.company.cap=50")
    assert result.returncode == 0
    assert "scoring.company.cap" in result.stdout
    data = config_file.read_text(encoding="utf-8")
    assert "cap = 50" in data
    backups = list((tmp_path / "backups").glob("config.toml.*.bak"))
    assert backups, "CLI updates must generate backups"


def test_validate_failure_reports_error(tmp_path: Path) -> None:
    config_file = tmp_path / "config.toml"
    config_file.write_text("[recompute]\nworkers = 'oops'\n", encoding="utf-8")
    result = _run_cli(tmp_path, "--validate")
    assert result.returncode == 1
    assert "recompute.workers" in result.stderr
    assert "file" in result.stderr


def test_dump_defaults_lists_penalty_categories(tmp_path: Path) -> None:
    result = _run_cli(tmp_path, "--dump-defaults")
    assert result.returncode == 0
    assert "enabled_categories" in result.stdout
    assert '"reinfo"' in result.stdout
