from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import LeaveStatus, LeaveType
from .model import LeaveRequest


class LeaveRepository(Protocol):
    def create_leave(
        self,
        *,
        requester_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        reason: Optional[str],
        created_at: datetime,
    ) -> int:
        raise NotImplementedError

    def get_leave(self, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def decide_leave(
        self,
        *,
        request_id: int,
        status: LeaveStatus,
        decided_by: int,
        decided_at: datetime,
        reject_reason: Optional[str] = None,
    ) -> bool:
        """Move a pending request to ``status``; False when it is no longer pending."""

        raise NotImplementedError

    def list_leaves(
        self,
        *,
        status: Optional[LeaveStatus] = None,
        requester_ids: Optional[Sequence[int]] = None,
        limit: int = 200,
    ) -> Sequence[LeaveRequest]:
        raise NotImplementedError
