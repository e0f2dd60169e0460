from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Actor


class ActorDirectory(Protocol):
    """Read-only view over the external employee directory."""

    def resolve(self, actor_id: int) -> Optional[Actor]:
        raise NotImplementedError

    def list_subordinate_ids(self, supervisor_id: int) -> Sequence[int]:
        raise NotImplementedError
