"""Role assignment endpoints (admin only)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from crm_identity.api.v1.auth import require_admin
from crm_identity.core.database import get_db
from crm_identity.schemas.auth import CurrentPrincipal
from crm_identity.schemas.auth_roles import AuthRolesDto, AuthRolesResponse
from crm_identity.services import auth_roles as service

router = APIRouter()

Admin = Annotated[CurrentPrincipal, Depends(require_admin)]
Db = Annotated[Session, Depends(get_db)]


@router.post("", response_model=AuthRolesResponse, status_code=status.HTTP_201_CREATED)
def create_auth_roles(body: AuthRolesDto, _admin: Admin, db: Db) -> AuthRolesResponse:
    """Grant a role. 409 if the credential already holds it."""
    return service.create_auth_roles(db, body)


@router.get("", response_model=list[AuthRolesResponse])
def list_auth_roles(_admin: Admin, db: Db) -> list[AuthRolesResponse]:
    """All assignments except eliminated ones."""
    return service.get_all_auth_roles(db)


@router.get("/auth/{auth_id}", response_model=list[AuthRolesResponse])
def list_auth_roles_by_auth(auth_id: int, _admin: Admin, db: Db) -> list[AuthRolesResponse]:
    return service.get_auth_roles_by_auth_id(db, auth_id)


@router.get("/role/{role_id}", response_model=list[AuthRolesResponse])
def list_auth_roles_by_role(role_id: int, _admin: Admin, db: Db) -> list[AuthRolesResponse]:
    return service.get_auth_roles_by_role_id(db, role_id)


@router.get("/state/{state_id}", response_model=list[AuthRolesResponse])
def list_auth_roles_by_state(state_id: int, _admin: Admin, db: Db) -> list[AuthRolesResponse]:
    return service.get_auth_roles_by_state_id(db, state_id)


@router.get("/{assignment_id}", response_model=AuthRolesResponse)
def get_auth_roles(assignment_id: int, _admin: Admin, db: Db) -> AuthRolesResponse:
    return service.get_auth_roles_by_id(db, assignment_id)


@router.put("/{assignment_id}", response_model=AuthRolesResponse)
def update_auth_roles(
    assignment_id: int, body: AuthRolesDto, _admin: Admin, db: Db
) -> AuthRolesResponse:
    return service.update_auth_roles(db, assignment_id, body)


@router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_auth_roles(assignment_id: int, _admin: Admin, db: Db) -> Response:
    """Soft delete: the assignment moves to the eliminated state."""
    service.delete_auth_roles(db, assignment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
