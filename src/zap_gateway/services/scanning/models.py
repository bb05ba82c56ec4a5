"""Scan operation models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ScanKind(StrEnum):
    """ZAP scan operations exposed by the gateway."""

    SPIDER = "spider"
    ACTIVE = "active"


class ScanOptions(BaseModel):
    """Caller-tunable options for starting a scan.

    Limits such as thread counts and maximum durations come from
    configuration and cannot be raised per request.
    """

    model_config = ConfigDict(frozen=True)

    recurse: bool = True
    policy: str | None = None
    max_depth: int | None = Field(default=None, ge=0)


class ScanJob(BaseModel):
    """A scan started in ZAP."""

    model_config = ConfigDict(frozen=True)

    scan_id: str
    kind: ScanKind
    target_url: str
