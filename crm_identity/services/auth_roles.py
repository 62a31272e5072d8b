"""Role assignments: grant roles to credentials, soft-delete them, and read them back.

Two surfaces live here:

- Response-producing functions (create_auth_roles, get_all_auth_roles, ...)
  run one unit of work each and return AuthRolesResponse projections.
- Entity functions (find_auth_roles_by_id, save_auth_roles, grant_role, ...)
  only flush, so other services can compose them inside their own unit of
  work and commit once.

A pair (auth_id, role_id) may be held at most once among rows that are not
eliminated. The partial unique index on auth_role_assignments enforces it;
the query below is only a fast path, and index violations are reported as
the same ConflictError.
"""

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from crm_identity.core.errors import ConflictError, NotFoundError
from crm_identity.models import AuthRole, Credential, LifecycleState, Role
from crm_identity.models.auth_role import ACTIVE_PAIR_INDEX_NAME
from crm_identity.schemas.auth_roles import AuthRolesDto, AuthRolesResponse
from crm_identity.services.lifecycle import (
    exclude_eliminated,
    find_by_id_and_state_id,
    find_state_by_id,
    get_eliminated_state,
)
from crm_identity.services.roles import find_role_by_id

logger = logging.getLogger(__name__)

DUPLICATE_ROLE_MESSAGE = "Auth already has this role assigned"

# SQLite reports the partial unique index by its columns, not its name.
_SQLITE_PAIR_MESSAGE = "auth_role_assignments.auth_id, auth_role_assignments.role_id"


def _is_active_pair_conflict(error: IntegrityError) -> bool:
    constraint_name = getattr(getattr(error.orig, "diag", None), "constraint_name", None)
    if constraint_name == ACTIVE_PAIR_INDEX_NAME:
        return True
    message = str(error.orig) if error.orig else str(error)
    return ACTIVE_PAIR_INDEX_NAME in message or _SQLITE_PAIR_MESSAGE in message


def _flush_or_conflict(session: Session) -> None:
    try:
        session.flush()
    except IntegrityError as exc:
        session.rollback()
        if _is_active_pair_conflict(exc):
            raise ConflictError(DUPLICATE_ROLE_MESSAGE) from exc
        raise


def _commit(session: Session) -> None:
    try:
        _flush_or_conflict(session)
        session.commit()
    except Exception:
        session.rollback()
        raise


def active_pair_exists(session: Session, auth_id: int, role_id: int) -> bool:
    """True when a non-eliminated assignment of role_id to auth_id exists."""
    query = session.query(AuthRole.id).filter(
        AuthRole.auth_id == auth_id,
        AuthRole.role_id == role_id,
    )
    return exclude_eliminated(query, AuthRole).first() is not None


def _ensure_pair_available(session: Session, auth_id: int, role_id: int) -> None:
    if active_pair_exists(session, auth_id, role_id):
        logger.info("Rejected duplicate role assignment: auth_id=%s role_id=%s", auth_id, role_id)
        raise ConflictError(DUPLICATE_ROLE_MESSAGE)


def _find_credential(session: Session, auth_id: int) -> Credential:
    credential = session.get(Credential, auth_id)
    if credential is None:
        raise NotFoundError(f"Auth with ID {auth_id} not found")
    return credential


def _resolve_references(
    session: Session, dto: AuthRolesDto
) -> tuple[Credential, Role, LifecycleState]:
    credential = _find_credential(session, dto.auth_id)
    role = find_role_by_id(session, dto.role_id)
    state = find_state_by_id(session, dto.state_id)
    return credential, role, state


def _related(entity: object, name: str) -> object | None:
    """Related row or None when it cannot be loaded."""
    try:
        return getattr(entity, name, None)
    except SQLAlchemyError:
        return None


def map_auth_roles_to_response(assignment: AuthRole) -> AuthRolesResponse:
    """Project an assignment to its response, leaving display fields None for missing relations."""
    credential = _related(assignment, "credential")
    role = _related(assignment, "role")
    state = _related(assignment, "state")
    return AuthRolesResponse(
        id=assignment.id,
        auth_id=credential.id if credential is not None else assignment.auth_id,
        auth_email=getattr(credential, "email", None),
        auth_username=getattr(credential, "username", None),
        role_id=role.id if role is not None else assignment.role_id,
        role_name=getattr(role, "name", None),
        state_id=state.id if state is not None else assignment.state_id,
        state_name=getattr(state, "name", None),
        created_at=assignment.created_at,
        updated_at=assignment.updated_at,
    )


# Entity operations (flush only)


def find_auth_roles_by_id(session: Session, assignment_id: int) -> AuthRole:
    assignment = session.get(AuthRole, assignment_id)
    if assignment is None:
        raise NotFoundError(f"AuthRoles with ID {assignment_id} not found")
    return assignment


def find_auth_roles_by_id_and_state_id(
    session: Session, assignment_id: int, state_id: int | None = None
) -> AuthRole:
    return find_by_id_and_state_id(session, AuthRole, assignment_id, state_id)


def find_auth_roles_by_auth_id(session: Session, auth_id: int) -> list[AuthRole]:
    """Every assignment of a credential, in any state."""
    return (
        session.query(AuthRole)
        .filter(AuthRole.auth_id == auth_id)
        .order_by(AuthRole.id)
        .all()
    )


def save_auth_roles(session: Session, assignment: AuthRole) -> AuthRole:
    session.add(assignment)
    _flush_or_conflict(session)
    return assignment


def delete_auth_roles_entity(session: Session, assignment: AuthRole) -> AuthRole:
    """Soft delete: move the assignment to the eliminated state."""
    assignment.state = get_eliminated_state(session)
    _flush_or_conflict(session)
    return assignment


def grant_role(
    session: Session, credential: Credential, role: Role, state: LifecycleState
) -> AuthRole:
    """Assign role to credential inside the caller's unit of work."""
    if credential.id is not None and role.id is not None:
        _ensure_pair_available(session, credential.id, role.id)
    assignment = AuthRole(credential=credential, role=role, state=state)
    return save_auth_roles(session, assignment)


def active_role_names(session: Session, auth_id: int) -> list[str]:
    """Names of the roles a credential currently holds (eliminated grants excluded)."""
    query = (
        session.query(Role.name)
        .join(AuthRole, AuthRole.role_id == Role.id)
        .filter(AuthRole.auth_id == auth_id)
    )
    rows = exclude_eliminated(query, AuthRole).order_by(Role.name).all()
    return [name for (name,) in rows]


# Response-producing operations (one unit of work each)


def create_auth_roles(session: Session, dto: AuthRolesDto) -> AuthRolesResponse:
    """
    Grant dto.role_id to dto.auth_id in state dto.state_id.

    Raises ConflictError if the pair is already held by a non-eliminated row
    (nothing is written), NotFoundError if the credential, role or state does
    not exist.
    """
    _ensure_pair_available(session, dto.auth_id, dto.role_id)
    credential, role, state = _resolve_references(session, dto)
    assignment = AuthRole(credential=credential, role=role, state=state)
    session.add(assignment)
    _commit(session)
    logger.info(
        "Role assigned: id=%s auth_id=%s role_id=%s state_id=%s",
        assignment.id,
        dto.auth_id,
        dto.role_id,
        dto.state_id,
    )
    return map_auth_roles_to_response(assignment)


def update_auth_roles(
    session: Session, assignment_id: int, dto: AuthRolesDto
) -> AuthRolesResponse:
    """
    Replace the credential, role and state of an assignment.

    Moving onto a different pair runs the same duplicate check as creation.
    """
    assignment = find_auth_roles_by_id(session, assignment_id)
    if (assignment.auth_id, assignment.role_id) != (dto.auth_id, dto.role_id):
        _ensure_pair_available(session, dto.auth_id, dto.role_id)
    credential, role, state = _resolve_references(session, dto)
    assignment.credential = credential
    assignment.role = role
    assignment.state = state
    _commit(session)
    logger.info("Role assignment updated: id=%s", assignment_id)
    return map_auth_roles_to_response(assignment)


def delete_auth_roles(session: Session, assignment_id: int) -> None:
    """Soft-delete an assignment; the row stays and keeps answering by-id lookups."""
    assignment = find_auth_roles_by_id(session, assignment_id)
    try:
        delete_auth_roles_entity(session, assignment)
        session.commit()
    except Exception:
        session.rollback()
        raise
    logger.info("Role assignment eliminated: id=%s", assignment_id)


def get_auth_roles_by_id(session: Session, assignment_id: int) -> AuthRolesResponse:
    return map_auth_roles_to_response(find_auth_roles_by_id(session, assignment_id))


def get_all_auth_roles(session: Session) -> list[AuthRolesResponse]:
    query = exclude_eliminated(session.query(AuthRole), AuthRole).order_by(AuthRole.id)
    return [map_auth_roles_to_response(a) for a in query.all()]


def get_auth_roles_by_auth_id(session: Session, auth_id: int) -> list[AuthRolesResponse]:
    query = session.query(AuthRole).filter(AuthRole.auth_id == auth_id)
    query = exclude_eliminated(query, AuthRole).order_by(AuthRole.id)
    return [map_auth_roles_to_response(a) for a in query.all()]


def get_auth_roles_by_role_id(session: Session, role_id: int) -> list[AuthRolesResponse]:
    query = session.query(AuthRole).filter(AuthRole.role_id == role_id)
    query = exclude_eliminated(query, AuthRole).order_by(AuthRole.id)
    return [map_auth_roles_to_response(a) for a in query.all()]


def get_auth_roles_by_state_id(session: Session, state_id: int) -> list[AuthRolesResponse]:
    """Assignments in exactly this state (the eliminated id returns soft-deleted rows)."""
    find_state_by_id(session, state_id)
    query = session.query(AuthRole).filter(AuthRole.state_id == state_id).order_by(AuthRole.id)
    return [map_auth_roles_to_response(a) for a in query.all()]
