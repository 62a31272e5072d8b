"""Role reference data lookups."""

from sqlalchemy.orm import Session

from crm_identity.core.errors import NotFoundError
from crm_identity.models import Role


def find_role_by_id(session: Session, role_id: int) -> Role:
    role = session.get(Role, role_id)
    if role is None:
        raise NotFoundError(f"Role with ID {role_id} not found")
    return role


def find_role_by_name(session: Session, name: str) -> Role:
    role = session.query(Role).filter(Role.name == name).first()
    if role is None:
        raise NotFoundError(f"Role {name} not found")
    return role
