"""SQLAlchemy ORM models."""

from crm_identity.models.auth_role import AuthRole
from crm_identity.models.base import Base
from crm_identity.models.credential import Credential
from crm_identity.models.lifecycle_state import LifecycleState
from crm_identity.models.otp import OneTimePasscode
from crm_identity.models.role import Role

__all__ = ["AuthRole", "Base", "Credential", "LifecycleState", "OneTimePasscode", "Role"]
