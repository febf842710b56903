"""Polling configuration."""

from __future__ import annotations

import os
from enum import Enum

from pydantic import BaseModel, Field

MAX_INTERFACES = 48


class InterfaceStrategy(str, Enum):
    AUTO = "auto"  # table walk, per-column fallback
    TABLE = "table"
    COLUMNS = "columns"


class PollSettings(BaseModel):
    """Per-exchange SNMP settings shared by every query of a poll run."""

    timeout: float = Field(default=5.0, gt=0)
    retries: int = Field(default=1, ge=0)
    max_repetitions: int = Field(default=25, ge=1)
    interface_strategy: InterfaceStrategy = InterfaceStrategy.AUTO

    @classmethod
    def from_env(cls, **overrides: object) -> PollSettings:
        """Build settings from ``DEVICEHEALTH_*`` environment variables.

        Keyword overrides that are not ``None`` win over the environment.
        """
        values: dict[str, object] = {}
        env_map = {
            "timeout": "DEVICEHEALTH_SNMP_TIMEOUT",
            "retries": "DEVICEHEALTH_SNMP_RETRIES",
            "max_repetitions": "DEVICEHEALTH_SNMP_MAX_REPETITIONS",
            "interface_strategy": "DEVICEHEALTH_INTERFACE_STRATEGY",
        }
        for field_name, env_var in env_map.items():
            raw = os.getenv(env_var)
            if raw:
                values[field_name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(values)
