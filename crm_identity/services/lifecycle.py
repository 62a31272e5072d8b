"""Lifecycle state registry and the shared fetch-then-assert lookup convention.

Every soft-deletable entity carries a state_id. Two ids are special and are
resolved once from settings:

- DEFAULT_ACTIVE_STATE_ID: assumed when a caller asks for an entity without
  naming a state.
- ELIMINATED_STATE_ID: the soft-deleted state; list reads drop these rows.

find_by_id_and_state_id looks the row up by primary key first and only then
compares its state. A row that exists under another state is reported as not
found, and passing ELIMINATED_STATE_ID fetches a soft-deleted row on purpose.
"""

from typing import Any, TypeVar

from sqlalchemy.orm import Query, Session

from crm_identity.core.config import settings
from crm_identity.core.errors import NotFoundError
from crm_identity.models import LifecycleState

DEFAULT_ACTIVE_STATE_ID: int = settings.DEFAULT_ACTIVE_STATE_ID
ELIMINATED_STATE_ID: int = settings.ELIMINATED_STATE_ID

# Names of the seeded reference rows, keyed by id.
ACTIVE_STATE_NAME = "ACTIVE"
INACTIVE_STATE_NAME = "INACTIVE"
PENDING_STATE_NAME = "PENDING"
ELIMINATED_STATE_NAME = "ELIMINATED"

ModelT = TypeVar("ModelT")


def effective_state_id(state_id: int | None) -> int:
    """Return state_id, or the default active id when it is None."""
    return DEFAULT_ACTIVE_STATE_ID if state_id is None else state_id


def find_state_by_id(session: Session, state_id: int) -> LifecycleState:
    """Return the lifecycle state with this id. Raises NotFoundError if absent."""
    state = session.get(LifecycleState, state_id)
    if state is None:
        raise NotFoundError(f"State with ID {state_id} not found")
    return state


def find_state_by_name(session: Session, name: str) -> LifecycleState:
    """Return the lifecycle state with this name. Raises NotFoundError if absent."""
    state = session.query(LifecycleState).filter(LifecycleState.name == name).first()
    if state is None:
        raise NotFoundError(f"State {name} not found")
    return state


def get_eliminated_state(session: Session) -> LifecycleState:
    """Return the eliminated (soft-deleted) state singleton."""
    state = session.get(LifecycleState, ELIMINATED_STATE_ID)
    if state is None:
        raise NotFoundError(f"Eliminated state (ID {ELIMINATED_STATE_ID}) not found")
    return state


def list_states(session: Session) -> list[LifecycleState]:
    """Return every lifecycle state ordered by id."""
    return session.query(LifecycleState).order_by(LifecycleState.id).all()


def find_by_id_and_state_id(
    session: Session,
    model: type[ModelT],
    entity_id: Any,
    state_id: int | None = None,
) -> ModelT:
    """
    Fetch `model` by id, then assert its state.

    Raises NotFoundError when the id does not resolve or when the entity's
    state_id differs from the requested one (default: the active state).
    """
    label = getattr(model, "__name__", "Entity")
    entity = session.get(model, entity_id)
    if entity is None:
        raise NotFoundError(f"{label} with ID {entity_id} not found")
    expected = effective_state_id(state_id)
    if getattr(entity, "state_id", None) != expected:
        raise NotFoundError(f"{label} with ID {entity_id} and state ID {expected} not found")
    return entity


def exclude_eliminated(query: Query, model: Any) -> Query:
    """Narrow a query on `model` to rows that are not in the eliminated state."""
    return query.filter(model.state_id != ELIMINATED_STATE_ID)
