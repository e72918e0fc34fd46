"""Tree settings loaded from environment variables."""
from __future__ import annotations

import logging
import os
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RemovalPolicy(str, Enum):
    """What happens to the children of a removed count-1 node."""

    SUBTREE = "subtree"  # drop the node together with everything below it
    SPLICE = "splice"  # reattach the children, promoting the in-order successor


class TreeSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    removal_policy: RemovalPolicy = RemovalPolicy.SUBTREE
    depth_alert_threshold: int = Field(0, ge=0)
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def known_level(cls, v):
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level {v!r}")
        return level

    @classmethod
    def from_env(cls) -> "TreeSettings":
        """Build settings from ``BST_*`` environment variables.

        Raises ``pydantic.ValidationError`` (a ``ValueError``) when a value
        is not accepted.
        """
        return cls(
            removal_policy=os.getenv("BST_REMOVAL_POLICY", "subtree").lower(),
            depth_alert_threshold=os.getenv("BST_DEPTH_ALERT_THRESHOLD", "0"),
            log_level=os.getenv("BST_LOG_LEVEL", "WARNING"),
        )


__all__ = ["RemovalPolicy", "TreeSettings"]
