"""Pydantic models for threshold evaluation and per-asset monitoring."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from devicehealth.poller.models import DeviceAddress, DeviceMetrics


class AlertRule(str, Enum):
    CPU = "cpu"
    MEMORY = "memory"
    STORAGE = "storage"
    INTERFACE = "interface"
    HA = "ha"  # accepted, not evaluated yet


class Thresholds(BaseModel):
    """Usage percentages above which a rule fires."""

    cpu: int = 80
    memory: int = 90
    storage: int = 90


class AlertEvaluationResult(BaseModel):
    exceeded: bool = False
    alerts: list[str] = Field(default_factory=list)


class AssetConfig(BaseModel):
    """SNMP monitoring settings of one asset record.

    List-valued settings are comma-separated strings, as stored on the asset.
    """

    id: str
    name: str = ""
    ip_address: Optional[str] = None
    snmp_enabled: bool = True
    snmp_community: Optional[str] = None
    snmp_port: int = 161
    snmp_metrics: Optional[str] = None  # None -> cpu,memory
    cpu_threshold: int = 80
    memory_threshold: int = 90
    storage_threshold: int = 90
    alert_rules: str = "cpu,memory"
    watched_interfaces: Optional[str] = None

    @field_validator("snmp_port", "cpu_threshold", "memory_threshold", "storage_threshold", mode="before")
    @classmethod
    def _null_means_default(cls, v: object, info: ValidationInfo) -> object:
        if v is None:
            return cls.model_fields[info.field_name].default
        return v

    @field_validator("alert_rules", mode="before")
    @classmethod
    def _null_rules_mean_none(cls, v: object) -> object:
        return "" if v is None else v

    @property
    def display_name(self) -> str:
        return self.name or self.ip_address or self.id

    @property
    def address(self) -> DeviceAddress:
        if not self.ip_address or not self.snmp_community:
            raise ValueError(f"SNMP not configured for asset {self.id}")
        return DeviceAddress(host=self.ip_address, community=self.snmp_community, port=self.snmp_port)

    @property
    def thresholds(self) -> Thresholds:
        return Thresholds(cpu=self.cpu_threshold, memory=self.memory_threshold, storage=self.storage_threshold)


class AlertNotice(BaseModel):
    """What a notifier receives when an asset exceeds its thresholds."""

    asset_id: str
    asset_name: str
    result: AlertEvaluationResult
    critical_count: int = 0
    high_count: int = 0


class AssetStatus(BaseModel):
    asset_id: str
    asset_name: str = ""
    metrics: Optional[DeviceMetrics] = None
    evaluation: Optional[AlertEvaluationResult] = None
    notified: bool = False
    error: Optional[str] = None
