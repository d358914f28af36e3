"""Layered configuration loader and CLI for Ranking Electoral."""
from __future__ import annotations

import argparse
import json
import os
import shutil
import sys
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional, Sequence

import tomli_w
from dotenv import dotenv_values
from pydantic import ValidationError

try:  # Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for Py <3.11
    import tomli as tomllib  # type: ignore[no-redef]

from ranking_electoral.config_schema import Config, DEFAULT_CONFIG, iter_field_docs

DEFAULT_ENV_PREFIX = "RANKING_ELECTORAL"
DEFAULT_CONFIG_FILENAME = "config.toml"
DEFAULT_ENV_FILENAME = ".env"
BACKUP_DIRNAME = "backups"
MASK = "***masked***"
LOAD_ORDER = ("defaults", "file", "env-file", "env")


@dataclass(frozen=True)
class ConfigValueOrigin:
    """Where a single configuration value came from."""

    layer: str
    source: str
    env_var: str | None = None

    def render(self) -> str:
        details = [item for item in (self.env_var, self.source) if item]
        if details:
            return f"{self.layer} ({', '.join(details)})"
        return self.layer


@dataclass
class ConfigMetadata:
    """Paths and per-key provenance attached to a loaded configuration."""

    config_path: Path
    env_path: Optional[Path]
    env_prefix: str
    provenance: Dict[str, ConfigValueOrigin] = field(default_factory=dict)
    load_order: tuple[str, ...] = LOAD_ORDER

    def describe_sources(self) -> list[str]:
        env_file = f".env file: {self.env_path}" if self.env_path else ".env file: not found"
        return [
            "defaults: built into ranking_electoral.config_schema",
            f"config file: {self.config_path}",
            env_file,
            f"environment prefix: {self.env_prefix}__*",
        ]

    def origin_of(self, key: str) -> str:
        origin = self.provenance.get(key)
        return origin.render() if origin else "unknown"


class ConfigError(RuntimeError):
    """Raised when configuration loading or validation fails."""


def _project_root() -> Path:
    return Path(__file__).resolve().parents[1]


def _default_paths() -> tuple[Path, Path]:
    root = _project_root()
    return root / DEFAULT_CONFIG_FILENAME, root / DEFAULT_ENV_FILENAME


def _is_secret(path: str) -> bool:
    leaf = path.lower().rsplit(".", 1)[-1]
    return any(token in leaf for token in ("password", "secret", "token"))


def _copy_tree(mapping: Mapping[str, Any]) -> Dict[str, Any]:
    copied: Dict[str, Any] = {}
    for key, value in mapping.items():
        if isinstance(value, Mapping):
            copied[key] = _copy_tree(value)
        elif isinstance(value, list):
            copied[key] = [
                _copy_tree(item) if isinstance(item, Mapping) else item for item in value
            ]
        else:
            copied[key] = value
    return copied


def _merge_layer(
    target: MutableMapping[str, Any],
    updates: Mapping[str, Any],
    provenance: Dict[str, ConfigValueOrigin],
    *,
    origin: ConfigValueOrigin,
    prefix: str = "",
) -> None:
    for key, value in updates.items():
        dotted = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            branch = target.get(key)
            if not isinstance(branch, MutableMapping):
                branch = target[key] = {}
            _merge_layer(branch, value, provenance, origin=origin, prefix=dotted)
        else:
            target[key] = value
            provenance[dotted] = origin


def _coerce_text(value: str) -> Any:
    """Interpret an environment string as bool, null, number, JSON or text."""

    text = value.strip()
    if not text:
        return ""
    lowered = text.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    if lowered in {"null", "none"}:
        return None
    if text.lstrip("-").isdigit():
        return int(text)
    try:
        return float(text)
    except ValueError:
        pass
    if text[0] + text[-1] in ("[]", "{}"):
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return text
    return text


def _env_key_to_path(raw_key: str, prefix: str) -> str:
    if not raw_key.startswith(prefix + "__"):
        raise ConfigError(f"Environment override '{raw_key}' does not start with {prefix}__")
    segments = [segment for segment in raw_key[len(prefix) + 2 :].split("__") if segment]
    if not segments:
        raise ConfigError(f"Environment override '{raw_key}' is missing key segments")
    return ".".join(segment.lower() for segment in segments)


def _assign_path(target: MutableMapping[str, Any], path: str, value: Any) -> None:
    *parents, leaf = path.split(".")
    current = target
    for segment in parents:
        child = current.get(segment)
        if not isinstance(child, MutableMapping):
            child = current[segment] = {}
        current = child
    current[leaf] = value


def _apply_env_layer(
    merged: MutableMapping[str, Any],
    variables: Mapping[str, str],
    provenance: Dict[str, ConfigValueOrigin],
    *,
    prefix: str,
    layer: str,
    source: str,
) -> None:
    for key, value in variables.items():
        if value is None or not key.startswith(prefix + "__"):
            continue
        path = _env_key_to_path(key, prefix)
        _assign_path(merged, path, _coerce_text(value))
        provenance[path] = ConfigValueOrigin(layer=layer, source=source, env_var=key)


def _to_toml_payload(value: Any) -> Any:
    if isinstance(value, Config):
        return _to_toml_payload(value.model_dump(mode="python"))
    if isinstance(value, Mapping):
        return {key: _to_toml_payload(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_to_toml_payload(item) for item in value]
    if isinstance(value, Path):
        return str(value)
    if value is None:
        # TOML has no null; optional fields are stored as empty strings.
        return ""
    return value


def _write_atomic(path: Path, payload: Mapping[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        prefix=".ranking-config-", dir=str(path.parent), delete=False
    ) as handle:
        tmp_path = Path(handle.name)
        tomli_w.dump(payload, handle)
    try:
        if path.exists():
            stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
            backup_dir = path.parent / BACKUP_DIRNAME
            backup_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(path, backup_dir / f"{path.name}.{stamp}.bak")
        os.replace(tmp_path, path)
    except OSError as exc:
        tmp_path.unlink(missing_ok=True)
        raise ConfigError(f"Failed to persist configuration: {exc}") from exc


def _load_toml(path: Path) -> Mapping[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError:
        return {}
    except (tomllib.TOMLDecodeError, OSError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _detect_env_path(config_path: Path) -> Path:
    sibling = config_path.parent / DEFAULT_ENV_FILENAME
    if sibling.exists():
        return sibling
    project_env = _default_paths()[1]
    return project_env if project_env.exists() else sibling


def _format_validation_error(
    error: ValidationError,
    provenance: Mapping[str, ConfigValueOrigin],
) -> ConfigError:
    lines: list[str] = []
    for record in error.errors():
        location = ".".join(str(part) for part in record.get("loc", ()))
        origin = provenance.get(location)
        detail = record.get("msg", "invalid value")
        received = record.get("input")
        if received is not None and not _is_secret(location) and not isinstance(received, dict):
            detail += f" (received={received!r})"
        if origin:
            detail += f" [{origin.render()}]"
        lines.append(f"{location or '<root>'}: {detail}")
    return ConfigError("Configuration validation failed:\n - " + "\n - ".join(lines))


def load_config(
    path: Path | None = None,
    *,
    env_prefix: str = DEFAULT_ENV_PREFIX,
    environ: Mapping[str, str] | None = None,
) -> Config:
    """Merge defaults, ``config.toml``, ``.env`` and process variables.

    Later layers win. Every leaf value keeps a :class:`ConfigValueOrigin`
    so validation errors and ``--explain`` can point to the layer that set it.
    """

    config_path = path if path else _default_paths()[0]
    env_path = _detect_env_path(config_path)
    runtime_env = os.environ if environ is None else environ

    provenance: Dict[str, ConfigValueOrigin] = {}
    defaults = DEFAULT_CONFIG.model_dump(mode="python")
    merged = _copy_tree(defaults)
    _merge_layer(
        merged,
        defaults,
        provenance,
        origin=ConfigValueOrigin("defaults", "ranking_electoral.config_schema.DEFAULT_CONFIG"),
    )

    file_data = _load_toml(config_path)
    if file_data:
        _merge_layer(
            merged, file_data, provenance, origin=ConfigValueOrigin("file", str(config_path))
        )

    if env_path.exists():
        _apply_env_layer(
            merged,
            dotenv_values(env_path, verbose=False),
            provenance,
            prefix=env_prefix,
            layer="env-file",
            source=str(env_path),
        )
    _apply_env_layer(
        merged, runtime_env, provenance, prefix=env_prefix, layer="env", source="process"
    )

    try:
        config = Config.model_validate(merged)
    except ValidationError as exc:
        raise _format_validation_error(exc, provenance) from exc
    config._metadata = ConfigMetadata(
        config_path=config_path,
        env_path=env_path if env_path.exists() else None,
        env_prefix=env_prefix,
        provenance=provenance,
    )
    return config


def save_config(config: Config, path: Path | None = None) -> Path:
    """Persist ``config`` atomically, keeping a timestamped backup."""

    metadata = getattr(config, "_metadata", None)
    target = path or (metadata.config_path if metadata else _default_paths()[0])
    _write_atomic(target, _to_toml_payload(config))
    return target


def _flatten(mapping: Mapping[str, Any], prefix: str = "") -> Dict[str, Any]:
    flat: Dict[str, Any] = {}
    for key, value in mapping.items():
        dotted = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(_flatten(value, dotted))
        else:
            flat[dotted] = value
    return flat


def _resolve_value(mapping: Mapping[str, Any], path: str) -> Any:
    current: Any = mapping
    for segment in path.split("."):
        if not isinstance(current, Mapping) or segment not in current:
            raise ConfigError(f"Unknown configuration key: {path}")
        current = current[segment]
    return current


def _render(key: str, value: Any) -> str:
    if _is_secret(key):
        return MASK
    if isinstance(value, Path):
        return str(value)
    try:
        return json.dumps(value, ensure_ascii=False, default=str)
    except TypeError:
        return repr(value)


def _diff_configs(before: Mapping[str, Any], after: Mapping[str, Any]) -> list[str]:
    old_flat, new_flat = _flatten(before), _flatten(after)
    return [
        f"{key}: {_render(key, old_flat.get(key))} -> {_render(key, new_flat.get(key))}"
        for key in sorted(set(old_flat) | set(new_flat))
        if old_flat.get(key) != new_flat.get(key)
    ]


def _format_schema_table() -> str:
    headers = ("Field", "Type", "Default", "Description", "Constraints", "Example")
    lines = [
        "| " + " | ".join(headers) + " |",
        "| " + " | ".join("---" for _ in headers) + " |",
    ]
    for entry in iter_field_docs(DEFAULT_CONFIG):
        default = "" if entry["default"] is None else _render(entry["name"], entry["default"])
        example = ", ".join(str(item) for item in entry["examples"])
        row = (
            entry["name"],
            str(entry["type"]),
            default,
            entry["description"],
            entry["constraints"],
            example,
        )
        lines.append("| " + " | ".join(row) + " |")
    return "\n".join(lines)


def _explain(config: Config, key: str) -> str:
    metadata: ConfigMetadata | None = getattr(config, "_metadata", None)
    if metadata is None:
        raise ConfigError("Configuration metadata is unavailable")
    value = _resolve_value(config.model_dump(mode="python"), key)
    return f"{key} = {_render(key, value)}\nsource: {metadata.origin_of(key)}"


def _apply_updates(config: Config, updates: Mapping[str, str]) -> Config:
    baseline = config.model_dump(mode="python")
    known = set(_flatten(baseline))
    updated = _copy_tree(baseline)
    metadata: ConfigMetadata | None = getattr(config, "_metadata", None)
    for key, raw_value in updates.items():
        if key not in known:
            parent = key.rpartition(".")[0]
            if not parent or not isinstance(_resolve_value(baseline, parent), Mapping):
                raise ConfigError(f"Unknown configuration key: {key}")
        _assign_path(updated, key, _coerce_text(raw_value))
        if metadata:
            metadata.provenance[key] = ConfigValueOrigin(layer="cli", source="runtime")
    try:
        new_config = Config.model_validate(updated)
    except ValidationError as exc:
        raise _format_validation_error(exc, metadata.provenance if metadata else {}) from exc
    new_config._metadata = metadata
    return new_config


def _parse_set_arguments(items: Sequence[str]) -> Dict[str, str]:
    updates: Dict[str, str] = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep:
            raise ConfigError(f"Invalid --set argument: '{item}'")
        updates[key.strip()] = value
    return updates


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Ranking Electoral configuration utilities",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--config", type=Path, help="Path to the TOML configuration file")
    parser.add_argument(
        "--env-prefix",
        default=DEFAULT_ENV_PREFIX,
        help="Environment variable prefix (e.g. RANKING_ELECTORAL__RECOMPUTE__WORKERS)",
    )
    actions = parser.add_mutually_exclusive_group(required=True)
    actions.add_argument("--validate", action="store_true", help="Validate the active configuration")
    actions.add_argument("--dump-defaults", action="store_true", help="Print built-in defaults as TOML")
    actions.add_argument("--print-schema", action="store_true", help="Print a Markdown table of all fields")
    actions.add_argument("--show-sources", action="store_true", help="Show configuration source precedence")
    actions.add_argument("--explain", metavar="KEY", help="Explain where a field value originates")
    actions.add_argument(
        "--set",
        nargs="+",
        metavar="KEY=VALUE",
        help="Apply validated updates and persist them to the config file",
    )
    args = parser.parse_args(argv)

    try:
        if args.dump_defaults:
            sys.stdout.write(tomli_w.dumps(_to_toml_payload(DEFAULT_CONFIG)))
            return 0
        if args.print_schema:
            sys.stdout.write(_format_schema_table() + "\n")
            return 0

        config = load_config(args.config, env_prefix=args.env_prefix)
        metadata: ConfigMetadata | None = getattr(config, "_metadata", None)
        if args.validate:
            weights = config.scoring.composites
            print(
                "Configuration OK "
                f"(scoring {config.scoring.version}, "
                f"balanced={weights.balanced.competence:.2f}/"
                f"{weights.balanced.integrity:.2f}/{weights.balanced.transparency:.2f})"
            )
            return 0
        if args.show_sources:
            if metadata is None:
                raise ConfigError("Metadata unavailable for source display")
            print("Active configuration sources:")
            for item in metadata.describe_sources():
                print(f"- {item}")
            return 0
        if args.explain:
            print(_explain(config, args.explain))
            return 0
        if args.set:
            new_config = _apply_updates(config, _parse_set_arguments(args.set))
            save_path = save_config(new_config, args.config)
            for line in _diff_configs(
                config.model_dump(mode="python"), new_config.model_dump(mode="python")
            ):
                print(line)
            print(f"Saved configuration to {save_path}")
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI entry point
    raise SystemExit(main())
