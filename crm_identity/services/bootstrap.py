"""Seed lifecycle states and roles. Idempotent: safe to run repeatedly."""

import logging

from sqlalchemy.orm import Session

from crm_identity.models import LifecycleState, Role
from crm_identity.services.lifecycle import (
    ACTIVE_STATE_NAME,
    DEFAULT_ACTIVE_STATE_ID,
    ELIMINATED_STATE_ID,
    ELIMINATED_STATE_NAME,
    INACTIVE_STATE_NAME,
    PENDING_STATE_NAME,
)

logger = logging.getLogger(__name__)

LIFECYCLE_STATES: tuple[tuple[int, str, str], ...] = (
    (DEFAULT_ACTIVE_STATE_ID, ACTIVE_STATE_NAME, "Visible and usable"),
    (2, INACTIVE_STATE_NAME, "Temporarily disabled"),
    (3, PENDING_STATE_NAME, "Awaiting activation"),
    (ELIMINATED_STATE_ID, ELIMINATED_STATE_NAME, "Soft-deleted"),
)

ROLES: tuple[tuple[str, str], ...] = (
    ("ADMIN", "Back-office administrator"),
    ("USER", "Regular user"),
)


def seed_reference_data(session: Session) -> tuple[int, int]:
    """Insert missing lifecycle states and roles. Returns (states_added, roles_added)."""
    states_added = 0
    for state_id, name, description in LIFECYCLE_STATES:
        if session.get(LifecycleState, state_id) is None:
            session.add(LifecycleState(id=state_id, name=name, description=description))
            states_added += 1

    existing_roles = {name for (name,) in session.query(Role.name).all()}
    roles_added = 0
    for name, description in ROLES:
        if name not in existing_roles:
            session.add(Role(name=name, description=description))
            roles_added += 1

    session.commit()
    if states_added or roles_added:
        logger.info("Seeded reference data: states=%s roles=%s", states_added, roles_added)
    return (states_added, roles_added)
