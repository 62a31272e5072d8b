"""Read-only lifecycle state endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from crm_identity.core.database import get_db
from crm_identity.schemas.lifecycle import LifecycleStateResponse
from crm_identity.services.lifecycle import find_state_by_id, list_states

router = APIRouter()


@router.get("", response_model=list[LifecycleStateResponse])
def get_states(db: Session = Depends(get_db)) -> list[LifecycleStateResponse]:
    return [LifecycleStateResponse.model_validate(s) for s in list_states(db)]


@router.get("/{state_id}", response_model=LifecycleStateResponse)
def get_state(state_id: int, db: Session = Depends(get_db)) -> LifecycleStateResponse:
    return LifecycleStateResponse.model_validate(find_state_by_id(db, state_id))
