"""Load FreezeConfig from sitefreeze.yaml / sitefreeze.toml if present.

Merges file config with CLI kwargs. CLI overrides file.  Unlike a lenient
settings reader, every key is checked: unknown keys, wrong types and
unreadable files raise ConfigError so a run never starts half-configured.
"""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from pathlib import Path

import yaml

from sitefreeze._errors import ConfigError
from sitefreeze.config import FreezeConfig, SitePaths

CONFIG_FILENAMES = ("sitefreeze.yaml", "sitefreeze.yml", "sitefreeze.toml")

# key -> accepted value types
_SCALAR_KEYS: dict[str, tuple[type, ...]] = {
    "base_url": (str,),
    "index_filename": (str,),
    "rss_filename": (str,),
    "max_workers": (int,),
    "fetch_timeout": (int, float),
    "content_file": (str, Path),
    "backend": (str,),
}
_SECTION_KEYS = ("backends", "paths")
_PATH_KEYS = ("core_path", "images_path", "images_rel_path", "theme_path")


def load_config(root: Path, **overrides: object) -> FreezeConfig:
    """Load FreezeConfig from root, optionally merging a config file.

    Looks for sitefreeze.yaml, sitefreeze.yml, or sitefreeze.toml in root.
    Overrides whose value is None are ignored, so CLI flags that were not
    given do not mask file values.

    Raises:
        ConfigError: If the file cannot be parsed or contains invalid keys.

    """
    root = Path(root).resolve()
    file_config = _read_config_file(root)
    merged = {**file_config, **{k: v for k, v in overrides.items() if v is not None}}
    return _build_config(root, merged)


def _read_config_file(root: Path) -> dict[str, object]:
    """Read config from yaml/toml if present. Returns empty dict otherwise."""
    for name in CONFIG_FILENAMES:
        path = root / name
        if not path.is_file():
            continue
        if path.suffix == ".toml":
            return _parse_toml(path)
        return _parse_yaml(path)
    return {}


def _parse_yaml(path: Path) -> dict[str, object]:
    """Parse YAML config."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        msg = f"Failed to read {path}: {exc}"
        raise ConfigError(msg) from exc
    return _flatten_section(data, path)


def _parse_toml(path: Path) -> dict[str, object]:
    """Parse TOML config."""
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        msg = f"Failed to read {path}: {exc}"
        raise ConfigError(msg) from exc
    return _flatten_section(data, path)


def _flatten_section(data: object, path: Path) -> dict[str, object]:
    """Extract sitefreeze.* keys into top-level config."""
    if not isinstance(data, dict):
        msg = f"{path}: expected a mapping at the top level"
        raise ConfigError(msg)
    result: dict[str, object] = {}
    section = data.get("sitefreeze")
    if section is not None:
        if not isinstance(section, dict):
            msg = f"{path}: 'sitefreeze' must be a mapping"
            raise ConfigError(msg)
        result.update(section)
    for k, v in data.items():
        if k != "sitefreeze":
            result[k] = v
    return result


def _build_config(root: Path, data: Mapping[str, object]) -> FreezeConfig:
    """Validate merged settings and construct the frozen config."""
    known = set(_SCALAR_KEYS) | set(_SECTION_KEYS)
    unknown = sorted(set(data) - known)
    if unknown:
        msg = f"Unknown configuration keys: {', '.join(unknown)}"
        raise ConfigError(msg)

    kwargs: dict[str, object] = {}
    for key, types in _SCALAR_KEYS.items():
        if key not in data:
            continue
        value = data[key]
        # bool is an int subclass; reject it for numeric keys
        if isinstance(value, bool) or not isinstance(value, types):
            msg = f"Configuration key {key!r} has invalid value {value!r}"
            raise ConfigError(msg)
        kwargs[key] = value

    if "content_file" in kwargs:
        kwargs["content_file"] = Path(str(kwargs["content_file"]))
    if "fetch_timeout" in kwargs:
        kwargs["fetch_timeout"] = float(kwargs["fetch_timeout"])  # type: ignore[arg-type]

    if "backends" in data:
        kwargs["backends"] = _validate_backends(data["backends"])
    if "paths" in data:
        kwargs["paths"] = _parse_paths(root, data["paths"])

    return FreezeConfig(root=root, **kwargs)  # type: ignore[arg-type]


def _validate_backends(value: object) -> dict[str, dict[str, object]]:
    """Check the shape of the backends table; contents are parsed at resolve time."""
    if not isinstance(value, dict):
        msg = "'backends' must be a mapping of backend name to settings"
        raise ConfigError(msg)
    result: dict[str, dict[str, object]] = {}
    for name, section in value.items():
        if not isinstance(section, dict):
            msg = f"Backend {name!r} settings must be a mapping"
            raise ConfigError(msg)
        result[str(name)] = dict(section)
    return result


def _parse_paths(root: Path, value: object) -> SitePaths:
    """Build SitePaths, filling missing entries from the default layout."""
    if not isinstance(value, dict):
        msg = "'paths' must be a mapping"
        raise ConfigError(msg)
    unknown = sorted(set(value) - set(_PATH_KEYS))
    if unknown:
        msg = f"Unknown path keys: {', '.join(unknown)}"
        raise ConfigError(msg)
    for key, item in value.items():
        if not isinstance(item, str):
            msg = f"Path {key!r} must be a string, got {item!r}"
            raise ConfigError(msg)

    defaults = SitePaths.for_root(root)

    def _resolve(key: str, default: Path) -> Path:
        if key not in value:
            return default
        path = Path(value[key]).expanduser()
        return path if path.is_absolute() else root / path

    return SitePaths(
        core_path=_resolve("core_path", defaults.core_path),
        images_path=_resolve("images_path", defaults.images_path),
        images_rel_path=str(value.get("images_rel_path", defaults.images_rel_path)).strip("/"),
        theme_path=_resolve("theme_path", defaults.theme_path),
    )
