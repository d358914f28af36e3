from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ranking_electoral.config_manager import Config, ConfigError, load_config, save_config
from ranking_electoral.config_schema import DEFAULT_CONFIG, iter_field_docs


def _flatten(mapping: dict[str, object], prefix: str = "") -> set[str]:
    keys: set[str] = set()
    for name, value in mapping.items():
        path = f"{prefix}.{name}" if prefix else name
        if isinstance(value, dict):
            keys.add(path)
            keys.update(_flatten(value, path))
        else:
            keys.add(path)
    return keys


def test_precedence_env_overrides(tmp_path: Path) -> None:
    config_file = tmp_path / "config.toml"
    config_file.write_text("[recompute]\nworkers = 2\n", encoding="utf-8")
    env_file = tmp_path / ".env"
    env_file.write_text("RANKING_ELECTORAL__RECOMPUTE__WORKERS=6\n", encoding="utf-8")
    environ = {"RANKING_ELECTORAL__RECOMPUTE__WORKERS": "8"}
    config = load_config(config_file, environ=environ)
    assert config.recompute.workers == 8
    provenance = config._metadata.provenance["recompute.workers"]
    assert provenance.layer == "env"
    assert provenance.env_var == "RANKING_ELECTORAL__RECOMPUTE__WORKERS"


def test_env_file_layer_beats_toml(tmp_path: Path) -> None:
    config_file = tmp_path / "config.toml"
    config_file.write_text("[scoring.penal]\nfirm_each = 60\n", encoding="utf-8")
    (tmp_path / ".env").write_text(
        "RANKING_ELECTORAL__SCORING__PENAL__FIRM_EACH=65\n", encoding="utf-8"
    )
    config = load_config(config_file, environ={})
    assert config.scoring.penal.firm_each == 65
    assert config._metadata.provenance["scoring.penal.firm_each"].layer == "env-file"


def test_save_config_creates_backups(tmp_path: Path) -> None:
    config_file = tmp_path / "config.toml"
    config_file.write_text("[scoring.penal]\nfirm_each = 70\n", encoding="utf-8")
    config = load_config(config_file, environ={})
    data = config.model_dump(mode="python")
    data["scoring"]["penal"]["firm_each"] = 75
    updated = Config.model_validate(data)
    updated._metadata = config._metadata
    save_config(updated)
    data["scoring"]["penal"]["firm_each"] = 80
    updated = Config.model_validate(data)
    updated._metadata = config._metadata
    save_config(updated)
    backups_dir = config_file.parent / "backups"
    backups = list(backups_dir.glob("config.toml.*.bak"))
    assert backups, "second save should produce a timestamped backup"


def test_save_config_stores_optional_none_as_blank(tmp_path: Path) -> None:
    config_file = tmp_path / "config.toml"
    config_file.write_text("[database]\nport = 5432\n", encoding="utf-8")
    config = load_config(config_file, environ={})
    data = config.model_dump(mode="python")
    data["database"]["port"] = None
    updated = Config.model_validate(data)
    updated._metadata = config._metadata
    save_config(updated)
    content = config_file.read_text(encoding="utf-8")
    assert "port = \"\"" in content
    assert load_config(config_file, environ={}).database.port is None


def test_blank_database_port_normalized(tmp_path: Path) -> None:
    config_file = tmp_path / "config.toml"
    config_file.write_text("[database]\nport = \"\"\n", encoding="utf-8")
    config = load_config(config_file, environ={})
    assert config.database.port is None


def test_validation_errors_report_source(tmp_path: Path) -> None:
    config_file = tmp_path / "config.toml"
    config_file.write_text("[scoring.penal]\nfirm_each = 'abc'\n", encoding="utf-8")
    with pytest.raises(ConfigError) as excinfo:
        load_config(config_file, environ={})
    assert "scoring.penal.firm_each" in str(excinfo.value)
    assert "file" in str(excinfo.value)


def test_unknown_penalty_category_rejected(tmp_path: Path) -> None:
    config_file = tmp_path / "config.toml"
    config_file.write_text(
        "[scoring.integrity]\nenabled_categories = [\"penal\", \"astrology\"]\n",
        encoding="utf-8",
    )
    with pytest.raises(ConfigError) as excinfo:
        load_config(config_file, environ={})
    assert "astrology" in str(excinfo.value)


def test_enabled_categories_kept_in_canonical_order(tmp_path: Path) -> None:
    config_file = tmp_path / "config.toml"
    config_file.write_text(
        "[scoring.integrity]\nenabled_categories = [\"voting\", \"penal\", \"civil\"]\n",
        encoding="utf-8",
    )
    config = load_config(config_file, environ={})
    assert config.scoring.integrity.enabled_categories == ["penal", "civil", "voting"]


def test_composite_weights_must_sum_to_one(tmp_path: Path) -> None:
    config_file = tmp_path / "config.toml"
    config_file.write_text(
        "[scoring.composites.merit]\ncompetence = 0.9\nintegrity = 0.3\ntransparency = 0.1\n",
        encoding="utf-8",
    )
    with pytest.raises(ConfigError):
        load_config(config_file, environ={})


def test_schema_keys_cover_defaults() -> None:
    schema_keys = {
        entry["name"]
        for entry in iter_field_docs(DEFAULT_CONFIG)
        if not entry.get("is_nested")
    }
    default_keys = _flatten(DEFAULT_CONFIG.model_dump(mode="python"))
    assert schema_keys.issubset(default_keys)


@pytest.mark.parametrize(
    "path",
    [
        "scoring.integrity.base",
        "scoring.integrity.enabled_categories",
        "scoring.penal.firm_each",
        "scoring.company.cap",
        "scoring.composites.balanced",
        "recompute.workers",
        "recompute.name_match_threshold",
        "database.driver",
        "logging.level",
    ],
)
def test_implicit_keys_are_defined(path: str) -> None:
    schema_keys = {
        entry["name"]
        for entry in iter_field_docs(DEFAULT_CONFIG)
        if not entry.get("is_nested")
    }
    if path == "scoring.composites.balanced":
        assert f"{path}.competence" in schema_keys
    else:
        assert path in schema_keys
