"""
Pool Configuration.

Deployment-time parameters for a staking pool, loadable from YAML or JSON.

Example YAML::

    pool_id: lp-rewards
    owner: ops-multisig
    rewards_distribution: treasury
    rewards_duration: 604800
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

DEFAULT_REWARDS_DURATION = 7 * 24 * 3600


class PoolConfig(BaseModel):
    """Configuration for one staking pool."""

    pool_id: str = Field(..., min_length=1, description="Pool identifier used in events and metrics")
    owner: str = Field(..., min_length=1, description="Principal allowed to reconfigure the pool")
    rewards_distribution: str = Field(..., min_length=1, description="Principal allowed to fund rewards")
    rewards_duration: int = Field(
        default=DEFAULT_REWARDS_DURATION, gt=0, description="Default reward period in seconds"
    )
    pool_address: Optional[str] = Field(
        default=None, description="Holder the pool's assets are kept under; defaults to pool_id"
    )
    metrics_enabled: bool = Field(default=True)

    @property
    def address(self) -> str:
        return self.pool_address or self.pool_id

    @classmethod
    def from_yaml(cls, yaml_content: str) -> "PoolConfig":
        """Load configuration from YAML."""
        data = yaml.safe_load(yaml_content) or {}
        return cls(**data)

    @classmethod
    def from_json(cls, json_content: str) -> "PoolConfig":
        """Load configuration from JSON."""
        return cls(**json.loads(json_content))

    @classmethod
    def from_file(cls, path: str | Path) -> "PoolConfig":
        """Load configuration from a ``.yaml``/``.yml`` or ``.json`` file."""
        path = Path(path)
        content = path.read_text()
        if path.suffix == ".json":
            return cls.from_json(content)
        return cls.from_yaml(content)

    def to_yaml(self) -> str:
        """Export configuration as YAML."""
        return yaml.dump(self.model_dump(exclude_none=True), default_flow_style=False)
