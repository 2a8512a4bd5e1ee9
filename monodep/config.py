"""Configuration loading for monodep (.monodeprc and friends)."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Sequence

import yaml

from .logging import get_logger

DynamicImportPolicy = Literal["off", "warn", "strict"]
OwnershipPolicy = Literal["root-shared", "workspace-explicit"]

_CONFIG_NAMESPACE = "monodep"
_CONFIG_FILES = (
    ".monodeprc",
    ".monodeprc.json",
    ".monodeprc.yaml",
    ".monodeprc.yml",
    "monodep.config.json",
    "monodep.config.yaml",
    "monodep.config.yml",
)

logger = get_logger("config")


class ConfigError(RuntimeError):
    """Raised when a configuration source cannot be parsed."""


@dataclass
class MonodepConfig:
    """Settings read from the workspace root configuration source."""

    ignore_patterns: List[str] = field(default_factory=list)
    ignore_dependencies: List[str] = field(default_factory=list)
    skip_packages: List[str] = field(default_factory=list)
    check_outdated: bool = True
    dynamic_import_policy: DynamicImportPolicy = "off"
    check_installed_peers: bool = False
    ownership_report: bool = False
    ownership_policy: OwnershipPolicy = "root-shared"
    source: Optional[Path] = None


def load_config(root: Path) -> MonodepConfig:
    """Load configuration from ``root``, falling back to defaults on any error."""
    try:
        data, source = _find_config(Path(root))
    except ConfigError as exc:
        logger.warning("Failed to load config: %s", exc)
        return MonodepConfig()
    if data is None:
        return MonodepConfig()
    config = parse_config(data)
    config.source = source
    logger.debug("Loaded config from %s", source)
    return config


def parse_config(data: Dict[str, Any]) -> MonodepConfig:
    """Build a config from a raw mapping, ignoring keys with invalid values."""
    config = MonodepConfig()
    config.ignore_patterns = _as_str_list(data.get("ignorePatterns"))
    config.ignore_dependencies = _as_str_list(data.get("ignoreDependencies"))
    config.skip_packages = _as_str_list(data.get("skipPackages"))

    check_outdated = _as_bool(data.get("checkOutdated"))
    if check_outdated is not None:
        config.check_outdated = check_outdated

    policy = _as_str(data.get("dynamicImportPolicy"))
    if policy in ("warn", "strict"):
        config.dynamic_import_policy = policy  # type: ignore[assignment]

    config.check_installed_peers = _as_bool(data.get("checkInstalledPeers")) is True
    config.ownership_report = _as_bool(data.get("ownershipReport")) is True
    if _as_str(data.get("ownershipPolicy")) == "workspace-explicit":
        config.ownership_policy = "workspace-explicit"
    return config


def _find_config(root: Path) -> tuple[Optional[Dict[str, Any]], Optional[Path]]:
    package_json = root / "package.json"
    if package_json.is_file():
        try:
            manifest = json.loads(package_json.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            manifest = None
        if isinstance(manifest, dict) and isinstance(manifest.get(_CONFIG_NAMESPACE), dict):
            return manifest[_CONFIG_NAMESPACE], package_json

    for filename in _CONFIG_FILES:
        candidate = root / filename
        if candidate.is_file():
            return _read_config(candidate), candidate
    return None, None


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}

    try:
        if path.suffix == ".json":
            loaded = json.loads(text)
        else:
            loaded = yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "ConfigError",
    "DynamicImportPolicy",
    "MonodepConfig",
    "OwnershipPolicy",
    "load_config",
    "parse_config",
]
