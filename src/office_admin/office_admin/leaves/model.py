from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import LeaveStatus, LeaveType


@dataclass(frozen=True)
class LeaveRequest:
    request_id: int
    requester_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: Optional[str]
    status: LeaveStatus
    created_at: datetime
    decided_by: Optional[int] = None
    decided_at: Optional[datetime] = None
    reject_reason: Optional[str] = None

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1
