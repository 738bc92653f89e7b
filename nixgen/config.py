"""Configuration loading for nixgen (.nixgen.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .graph import CyclePolicy, DiscoveryMode
from .models import SchemaError

CONFIG_FILENAME = ".nixgen.yml"


class ConfigError(SchemaError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class DiscoveryConfig:
    """How the dependency closure of the root type is discovered."""

    mode: DiscoveryMode = DiscoveryMode.TRANSITIVE
    cycles: CyclePolicy = CyclePolicy.WARN


@dataclass
class MappingConfig:
    """Type mapping switches."""

    strict_map_keys: bool = False


@dataclass
class ModuleConfig:
    """Settings for the ``module`` output mode."""

    name: Optional[str] = None
    imports: List[str] = field(default_factory=list)
    config_lines: List[str] = field(default_factory=list)


@dataclass
class NixgenConfig:
    """Represents the settings defined in .nixgen.yml."""

    root: Path
    backend: Optional[str] = None
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    mapping: MappingConfig = field(default_factory=MappingConfig)
    module: ModuleConfig = field(default_factory=ModuleConfig)
    templates_dir: Optional[Path] = None


def load_config(config_path: Path) -> NixgenConfig:
    """Load configuration from disk; a missing file yields the defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return NixgenConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")
    return config_from_dict(data, root=root)


def config_from_dict(data: Dict[str, Any], *, root: Path) -> NixgenConfig:
    discovery_data = _as_dict(data.get("discovery"), "discovery")
    discovery = DiscoveryConfig()
    if discovery_data:
        discovery.mode = _as_enum(DiscoveryMode, discovery_data.get("mode"), "discovery.mode") or discovery.mode
        discovery.cycles = _as_enum(CyclePolicy, discovery_data.get("cycles"), "discovery.cycles") or discovery.cycles

    mapping_data = _as_dict(data.get("mapping"), "mapping")
    mapping = MappingConfig()
    if mapping_data:
        strict = _as_bool(mapping_data.get("strict_map_keys"), "mapping.strict_map_keys")
        mapping.strict_map_keys = bool(strict)

    module_data = _as_dict(data.get("module"), "module")
    module = ModuleConfig()
    if module_data:
        module.name = _as_str(module_data.get("name"))
        module.imports = _as_str_list(module_data.get("imports"))
        module.config_lines = _as_str_list(module_data.get("config"))

    templates_dir_str = _as_str(data.get("templates_dir"))
    templates_dir = root / templates_dir_str if templates_dir_str else None

    return NixgenConfig(
        root=root,
        backend=_as_str(data.get("backend")),
        discovery=discovery,
        mapping=mapping,
        module=module,
        templates_dir=templates_dir,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = Path(config_path).expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any, key: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping")
    return value


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_bool(value: Any, key: str) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    raise ConfigError(f"'{key}' must be a boolean")


def _as_enum(enum_type: Any, value: Any, key: str) -> Any:
    if value is None:
        return None
    try:
        return enum_type(str(value).strip().lower())
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_type)
        raise ConfigError(f"'{key}' must be one of: {allowed}") from exc


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "DiscoveryConfig",
    "MappingConfig",
    "ModuleConfig",
    "NixgenConfig",
    "config_from_dict",
    "load_config",
]
