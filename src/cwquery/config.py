"""Engine configuration.

a small pydantic model loaded from yaml. nothing is read from the
environment, the host passes a file (or nothing).
"""

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class EngineConfig(BaseModel):
    """Process-level settings for the query engine."""

    # rewrite legacy aliases into dynamic label templates during migration
    dynamic_labels: bool = False
    # used when a query says "default" or leaves region empty
    default_region: str = "us-east-1"
    max_concurrent_requests: int = Field(default=4, ge=1)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"


def load_config_from(path: str | Path) -> EngineConfig:
    """Load engine configuration from a YAML file.

    an empty file gives the defaults, which is handy for templates.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    config = EngineConfig(**data)
    logger.debug("loaded config from %s: %s", path, config)
    return config
