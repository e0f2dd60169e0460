from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class Actor:
    """An employee as seen by the workflow core.

    Note: Resolved from the actor directory for every operation; the core
    never keeps it around between calls.
    """

    actor_id: int
    full_name: str
    role: Role
    supervisor_id: Optional[int] = None
    active: bool = True
