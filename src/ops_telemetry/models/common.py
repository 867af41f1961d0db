from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, TypeVar

T = TypeVar("T")

STATUS_OK = "OK"
STATUS_WARN = "WARN"
STATUS_ERROR = "ERROR"


@dataclass(frozen=True)
class CollectorResult(Generic[T]):
    ts: datetime
    status: str
    warning_count: int
    data: T
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def build(cls, ts: datetime, data: T, warnings: list[str], failed: bool = False) -> CollectorResult[T]:
        if failed:
            status = STATUS_ERROR
        else:
            status = STATUS_OK if not warnings else STATUS_WARN
        return cls(ts=ts, status=status, warning_count=len(warnings), data=data, warnings=list(warnings))
