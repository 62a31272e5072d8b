"""API v1 routes."""

from fastapi import APIRouter

from crm_identity.api.v1 import auth, auth_roles, health, otp, states

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(states.router, prefix="/states", tags=["states"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(otp.router, prefix="/otp", tags=["otp"])
router.include_router(auth_roles.router, prefix="/auth-roles", tags=["auth-roles"])
