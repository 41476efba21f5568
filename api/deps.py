"""
API Dependencies

Dependency injection for the API. Provides the process-wide ChainNode the
routes operate on.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Optional

from core.config.runtime import RuntimeConfig
from core.node import ChainNode

logger = logging.getLogger(__name__)

_node: Optional[ChainNode] = None
_node_lock = threading.Lock()


def _load_runtime_config() -> RuntimeConfig:
    """Load RuntimeConfig from config file, then overlay environment variables.

    Search order for config file:
      1. ./privpay.json
      2. ./.privpay.json
      3. ~/.config/privpay/config.json

    Environment variables ALWAYS override config file values.
    The .env file is loaded automatically by core.config.runtime on import.
    """
    search_paths = [
        Path.cwd() / "privpay.json",
        Path.cwd() / ".privpay.json",
        Path.home() / ".config" / "privpay" / "config.json",
    ]

    config: RuntimeConfig | None = None

    for path in search_paths:
        if path.exists():
            try:
                with open(path) as f:
                    data = json.load(f)
                config = RuntimeConfig.from_dict(data)
            except (OSError, ValueError, TypeError) as e:
                logger.warning(f"Failed to parse {path}: {e}")
                continue
            logger.info(f"Loaded config from {path}")
            break

    if config is None:
        # No config file found, start with defaults
        config = RuntimeConfig()

    # Always apply environment variable overrides
    return config.with_env_overrides()


def get_node() -> ChainNode:
    """Return the node served by this process, building it on first use."""
    global _node
    with _node_lock:
        if _node is None:
            _node = ChainNode.from_config(_load_runtime_config())
        return _node


def set_node(node: Optional[ChainNode]) -> None:
    """Replace the served node (tests, embedding). None resets to lazy build."""
    global _node
    with _node_lock:
        _node = node
