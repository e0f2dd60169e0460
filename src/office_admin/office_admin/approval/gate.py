"""Approval gate.

Stateless authorization predicates evaluated before any state machine is
consulted. The ``is_*``/``may_*`` functions only answer allow/deny; the
``require_*`` helpers turn a deny into ``ForbiddenError``.
"""

from __future__ import annotations

import logging
from typing import AbstractSet, Optional

from ..core.enums import Role
from ..core.exceptions import ForbiddenError
from ..directory.model import Actor

logger = logging.getLogger(__name__)


def is_allowed(actor: Optional[Actor], required_roles: AbstractSet[Role]) -> bool:
    if actor is None or not actor.active:
        return False
    return actor.role in required_roles


def is_supervisor_of(actor: Actor, subject: Actor) -> bool:
    return subject.supervisor_id is not None and subject.supervisor_id == actor.actor_id


def may_decide_for(actor: Optional[Actor], subject: Actor, *, override_roles: AbstractSet[Role]) -> bool:
    """Supervisor-gated decision: the subject's direct supervisor, or an override role.

    Nobody decides for themselves, override role included.
    """
    if actor is None or not actor.active:
        return False
    if actor.actor_id == subject.actor_id:
        return False
    if actor.role in override_roles:
        return True
    return actor.role == Role.SUPERVISOR and is_supervisor_of(actor, subject)


def require_role(actor: Optional[Actor], required_roles: AbstractSet[Role], *, operation: str) -> Actor:
    if not is_allowed(actor, required_roles):
        logger.warning(
            "Denied %s for actor=%s role=%s",
            operation,
            getattr(actor, "actor_id", None),
            getattr(getattr(actor, "role", None), "value", None),
        )
        raise ForbiddenError(f"Not allowed to {operation}")
    return actor  # type: ignore[return-value]


def require_owner(actor: Actor, owner_id: int, *, operation: str) -> None:
    if actor.actor_id != int(owner_id):
        logger.warning("Denied %s for actor=%s: owned by %s", operation, actor.actor_id, owner_id)
        raise ForbiddenError(f"Only the requester may {operation}")


def require_decider(actor: Optional[Actor], subject: Actor, *, override_roles: AbstractSet[Role], operation: str) -> Actor:
    if not may_decide_for(actor, subject, override_roles=override_roles):
        logger.warning("Denied %s for actor=%s on subject=%s", operation, getattr(actor, "actor_id", None), subject.actor_id)
        raise ForbiddenError(f"Only the direct supervisor may {operation}")
    return actor  # type: ignore[return-value]
