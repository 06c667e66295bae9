"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ───────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml  -- Static defaults checked into the repo
#   2. .env file           -- Local developer overrides (not committed)
#   3. Environment vars    -- Set at deploy time
#
# load_settings() reads the YAML file, flattens its sections onto Settings
# field names, and hands to Settings only the values that neither .env nor
# the environment already provide.
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError
from pydantic_settings import DotEnvSettingsSource, EnvSettingsSource

from src.config.settings import Settings
from src.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)

# (section, key) in config.yaml -> Settings field name.
_YAML_FIELDS: dict[tuple[str, str], str] = {
    ("app", "env"): "app_env",
    ("chunking", "chunk_size_tokens"): "chunk_size_tokens",
    ("chunking", "overlap_tokens"): "chunk_overlap_tokens",
    ("chunking", "preserve_structure"): "preserve_structure",
    ("safety", "max_text_length"): "max_text_length",
    ("safety", "max_chunks_per_file"): "max_chunks_per_file",
    ("upload", "max_file_size"): "max_file_size",
    ("upload", "min_file_size"): "min_file_size",
    ("upload", "max_filename_length"): "max_filename_length",
    ("embedding", "batch_size"): "embed_batch_size",
    ("embedding", "batch_delay_seconds"): "embed_batch_delay_seconds",
    ("dedup", "db_path"): "dedup_db_path",
    ("logging", "level"): "log_level",
    ("logging", "json"): "log_json",
}


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Read *path* as YAML; a missing file yields an empty dict."""
    config_path = Path(path)
    if not config_path.exists():
        return {}
    try:
        with open(config_path, encoding="utf-8") as f:
            # safe_load never constructs arbitrary Python objects.
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(message=f"Cannot parse {config_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(message=f"{config_path} must contain a mapping at the top level")
    return data


def _flatten(yaml_config: dict[str, Any]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for section, entries in yaml_config.items():
        if not isinstance(entries, dict):
            logger.debug("config_section_ignored", section=section)
            continue
        for key, value in entries.items():
            field = _YAML_FIELDS.get((section, key))
            if field is None:
                logger.debug("config_key_ignored", section=section, key=key)
                continue
            values[field] = value
    return values


def _externally_set(env_file: str | Path | None) -> set[str]:
    """Field names that the environment or the .env file provide."""
    names = set(EnvSettingsSource(Settings)())
    if env_file is not None and Path(env_file).exists():
        names |= set(DotEnvSettingsSource(Settings, env_file=env_file)())
    return names


def load_settings(path: str | Path = "config/config.yaml", env_file: str | Path | None = ".env") -> Settings:
    """Build :class:`Settings` from YAML defaults, ``.env`` and the environment.

    Args:
        path: Path to the YAML configuration file.
        env_file: ``.env`` file to read, or ``None`` to skip it.

    Returns:
        Fully resolved settings.

    Raises:
        ConfigurationError: A value is out of range or the YAML is malformed.
    """
    yaml_values = _flatten(load_yaml(path))
    overridden = _externally_set(env_file)
    defaults = {k: v for k, v in yaml_values.items() if k not in overridden}
    try:
        return Settings(_env_file=env_file, **defaults)
    except ValidationError as exc:
        raise ConfigurationError(message=f"Invalid configuration: {exc}") from exc
