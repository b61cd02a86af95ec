"""Configuration loader with YAML and environment variable support.

This module provides a configuration loader that reads from ~/.config/seqgraph/config.yaml
and allows environment variable overrides using SEQGRAPH_* prefix.

Environment variables:
- SEQGRAPH_GRAPH_PATH: Override graph directory
- SEQGRAPH_PARSE_WORKERS: Override number of parser threads
- SEQGRAPH_CACHE_ENABLED: Enable/disable the page cache ("true"/"false")
- SEQGRAPH_CACHE_DIR: Override cache directory
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from seqgraph.models.config import Configuration


def default_config_path() -> Path:
    """Location of the user config file (~/.config/seqgraph/config.yaml)."""
    return Path.home() / ".config" / "seqgraph" / "config.yaml"


def load_config(config_path: Optional[Path] = None) -> Configuration:
    """Load configuration from YAML file with environment variable overrides.

    Args:
        config_path: Path to config file. If None, uses ~/.config/seqgraph/config.yaml

    Returns:
        Validated Configuration object

    Raises:
        FileNotFoundError: If config file doesn't exist and no overrides are set
        ValueError: If config file is invalid
    """
    if config_path is None:
        config_path = default_config_path()

    if config_path.exists():
        try:
            with config_path.open() as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping")
    else:
        data = {}

    data = _apply_env_overrides(data)

    if not data.get("graph"):
        raise FileNotFoundError(
            f"Configuration file not found at {config_path} and SEQGRAPH_GRAPH_PATH is not set.\n"
            "Either create a config file or set environment variables.\n\n"
            "Example config.yaml:\n\n"
            "graph:\n"
            "  path: ~/Documents/notes\n\n"
            "parsing:\n"
            "  workers: 4\n\n"
            "cache:\n"
            "  enabled: true\n"
        )

    # Pydantic will validate the structure
    return Configuration(**data)


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    """Apply environment variable overrides to configuration data.

    Environment variables use the format: SEQGRAPH_SECTION_KEY
    For example: SEQGRAPH_GRAPH_PATH sets data['graph']['path']

    Args:
        data: Base configuration dictionary from YAML

    Returns:
        Configuration dictionary with environment overrides applied
    """
    if env_graph_path := os.getenv("SEQGRAPH_GRAPH_PATH"):
        data.setdefault("graph", {})["path"] = env_graph_path

    if env_workers := os.getenv("SEQGRAPH_PARSE_WORKERS"):
        try:
            data.setdefault("parsing", {})["workers"] = int(env_workers)
        except ValueError:
            pass  # Invalid value, ignore

    if env_cache_enabled := os.getenv("SEQGRAPH_CACHE_ENABLED"):
        data.setdefault("cache", {})["enabled"] = env_cache_enabled.strip().lower() in ("1", "true", "yes")

    if env_cache_dir := os.getenv("SEQGRAPH_CACHE_DIR"):
        data.setdefault("cache", {})["directory"] = env_cache_dir

    return data
