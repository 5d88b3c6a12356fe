"""Locate, load and write parrot configuration files.

The first existing file in :func:`config_paths` wins; environment variables
are layered on top of it before validation.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml
from pydantic import ValidationError

from .schema import ParrotConfig

logger = logging.getLogger(__name__)

ENV_CONFIG_PATH = "PARROT_CONFIG"


class ConfigError(RuntimeError):
    """Raised when a configuration file cannot be read or validated."""


def config_paths(env: Optional[Mapping[str, str]] = None) -> List[Path]:
    env = os.environ if env is None else env
    paths: List[Path] = []
    if env.get(ENV_CONFIG_PATH):
        paths.append(Path(env[ENV_CONFIG_PATH]).expanduser())
    paths.append(Path("/etc/parrot/config.yaml"))
    config_home = env.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    paths.append(Path(config_home).expanduser() / "parrot" / "config.yaml")
    paths.append(Path.home() / ".parrot.yaml")
    paths.append(Path("./parrot.yaml"))
    return paths


def find_config(env: Optional[Mapping[str, str]] = None) -> Optional[Path]:
    for path in config_paths(env):
        if path.is_file():
            return path
    return None


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"error loading config from {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"error loading config from {path}: top level must be a mapping")
    return data


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name)
    if not isinstance(section, dict):
        section = {}
        data[name] = section
    return section


def apply_env_overrides(data: Dict[str, Any], env: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    env = os.environ if env is None else env
    api = _section(data, "api")
    local = _section(data, "local")
    general = _section(data, "general")

    for var, section, key in (
        ("PARROT_API_KEY", api, "api_key"),
        ("PARROT_API_ENDPOINT", api, "endpoint"),
        ("PARROT_API_MODEL", api, "model"),
        ("PARROT_OLLAMA_ENDPOINT", local, "endpoint"),
        ("PARROT_OLLAMA_MODEL", local, "model"),
        ("PARROT_PERSONALITY", general, "personality"),
    ):
        if env.get(var):
            section[key] = env[var]

    if env.get("PARROT_FALLBACK_ONLY") == "true":
        general["fallback_only"] = True
    if env.get("PARROT_DEBUG") == "true":
        general["debug"] = True
    if env.get("PARROT_NO_COLOR") == "true" or env.get("NO_COLOR"):
        general["colors"] = False
    if env.get("PARROT_ENHANCED") == "true":
        general["enhanced"] = True
    return data


def load_config(
    path: Optional[str | Path] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
) -> Tuple[ParrotConfig, Optional[Path]]:
    """Return the validated snapshot and the file it came from (None for defaults)."""
    source = Path(path).expanduser() if path else find_config(env)
    data: Dict[str, Any] = {}
    if source is not None:
        if not source.is_file():
            raise ConfigError(f"config file not found: {source}")
        data = _read_yaml(source)
        logger.debug("Loaded config from %s", source)
    apply_env_overrides(data, env)
    try:
        return ParrotConfig.model_validate(data), source
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration: {exc}") from exc


def write_sample_config(path: str | Path, *, force: bool = False) -> Path:
    target = Path(path).expanduser()
    if target.exists() and not force:
        raise ConfigError(f"{target} already exists (use --force to overwrite)")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(yaml.safe_dump(ParrotConfig().dump(), sort_keys=False), encoding="utf-8")
    return target
