# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Flowgraph Configuration - Single source of truth.
YAML is king. Env vars only for overrides.

All engine tunables (timeouts, retries, preview caps, logging) live in
one plain-text file so a run can be reproduced from what's on disk.
"""

import os
import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import ConfigurationError


DEFAULT_CONFIG_PATH = "configs/flowgraph.yaml"


# =============================================================================
# CONFIGURATION DATACLASS
# =============================================================================

@dataclass(frozen=True)
class Config:
    """
    Immutable engine configuration.
    All values from YAML. No hidden state.
    """

    # -- Execution --
    node_timeout: float = 300.0
    max_retries: int = 0
    mock_mode: bool = False

    # -- Executors --
    http_timeout: float = 30.0
    max_preview_delay: float = 5.0
    email_from: str = "noreply@workflow.app"
    simulated_latency: float = 0.0

    # -- Logging --
    log_level: str = "INFO"
    log_format: str = "json"
    execution_log_dir: Optional[str] = None

    @property
    def execution_log_path(self) -> Optional[Path]:
        if not self.execution_log_dir:
            return None
        return Path(self.execution_log_dir)


# =============================================================================
# LOADER
# =============================================================================

def load_config(path: str = DEFAULT_CONFIG_PATH) -> Config:
    """
    Load configuration from YAML.
    Returns defaults if file doesn't exist.

    Raises:
        ConfigurationError: If the file exists but is not a YAML mapping
    """
    if not Path(path).exists():
        return Config()

    with open(path) as f:
        try:
            y = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}")

    if not isinstance(y, dict):
        raise ConfigurationError(f"Config root must be a mapping: {path}")

    # Helper to safely navigate nested dicts
    def get(d: dict, *keys, default=None):
        for k in keys:
            if not isinstance(d, dict):
                return default
            d = d.get(k, {})
        return d if d != {} else default

    defaults = Config()

    try:
        return Config(
            # Execution
            node_timeout=float(get(y, "execution", "node_timeout", default=defaults.node_timeout)),
            max_retries=int(get(y, "execution", "max_retries", default=defaults.max_retries)),
            mock_mode=bool(get(y, "execution", "mock_mode", default=defaults.mock_mode)),

            # Executors
            http_timeout=float(get(y, "executors", "http", "timeout", default=defaults.http_timeout)),
            max_preview_delay=float(
                get(y, "executors", "delay", "max_preview_delay", default=defaults.max_preview_delay)
            ),
            email_from=get(y, "executors", "email", "from", default=defaults.email_from),
            simulated_latency=float(
                get(y, "executors", "simulated_latency", default=defaults.simulated_latency)
            ),

            # Logging
            log_level=os.getenv("FLOWGRAPH_LOG_LEVEL") or get(y, "logging", "level", default="INFO"),
            log_format=get(y, "logging", "format", default="json"),
            execution_log_dir=get(y, "logging", "execution_log_dir"),
        )
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value in {path}: {e}")


# =============================================================================
# GLOBAL INSTANCE
# =============================================================================

_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create global config instance."""
    global _config
    if _config is None:
        config_path = os.getenv("FLOWGRAPH_CONFIG_PATH", DEFAULT_CONFIG_PATH)
        _config = load_config(config_path)
    return _config


def reload_config() -> Config:
    """Force reload configuration."""
    global _config
    _config = None
    return get_config()
