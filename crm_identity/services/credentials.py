"""Credential store: provision and update login credentials for principals.

A credential is created on behalf of a higher-level principal (admin, user)
together with its default role grant. Both writes commit together or not at
all.
"""

import logging
import re

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from crm_identity.core.errors import ConflictError, InputValidationError, NotFoundError
from crm_identity.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN, hash_password, verify_password
from crm_identity.models import Credential, LifecycleState
from crm_identity.services.auth_roles import grant_role
from crm_identity.services.contact import is_email
from crm_identity.services.lifecycle import DEFAULT_ACTIVE_STATE_ID, find_state_by_id
from crm_identity.services.roles import find_role_by_name

logger = logging.getLogger(__name__)

DEFAULT_USERNAME = "user"
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def _validate_email(email: str | None) -> str:
    if email is None or not email.strip():
        raise InputValidationError("Email is required")
    if not is_email(email):
        raise InputValidationError("Invalid email format")
    return email.strip()


def _validate_password(raw_password: str | None) -> str:
    if raw_password is None or not raw_password.strip():
        raise InputValidationError("Password is required")
    if len(raw_password) > PASSWORD_MAX_LEN:
        raise InputValidationError(f"Password must be at most {PASSWORD_MAX_LEN} characters")
    return raw_password


def validate_new_password(raw_password: str | None) -> str:
    """Password chosen by its owner in reset flows: required, PASSWORD_MIN_LEN to PASSWORD_MAX_LEN characters."""
    raw_password = _validate_password(raw_password)
    if len(raw_password) < PASSWORD_MIN_LEN:
        raise InputValidationError(f"Password must be at least {PASSWORD_MIN_LEN} characters")
    return raw_password


def _username_base(display_name: str | None) -> str:
    """'Ana Maria!' -> 'ana.maria'; empty after cleaning -> 'user'."""
    cleaned = _NON_ALNUM.sub("", (display_name or "").lower()).strip()
    cleaned = _WHITESPACE.sub(".", cleaned)
    return cleaned or DEFAULT_USERNAME


def generate_unique_username(session: Session, display_name: str | None) -> str:
    """Derive a username from a display name, suffixing .1, .2, ... until unused."""
    base = _username_base(display_name)
    candidate = base
    counter = 1
    while session.query(Credential.id).filter(Credential.username == candidate).first() is not None:
        candidate = f"{base}.{counter}"
        counter += 1
    return candidate


def _translate_integrity_error(exc: IntegrityError) -> ConflictError:
    message = str(exc.orig) if exc.orig else str(exc)
    if "email" in message:
        return ConflictError("A credential with this email already exists")
    if "username" in message:
        return ConflictError("A credential with this username already exists")
    return ConflictError("Credential conflicts with an existing record")


def find_credential_by_id(session: Session, auth_id: int) -> Credential:
    credential = session.get(Credential, auth_id)
    if credential is None:
        raise NotFoundError(f"Auth with ID {auth_id} not found")
    return credential


def find_credential_by_login(session: Session, login: str) -> Credential | None:
    """Credential whose email, username or contact equals login, if any."""
    value = (login or "").strip()
    if not value:
        return None
    return (
        session.query(Credential)
        .filter(
            or_(
                Credential.email == value,
                Credential.username == value,
                Credential.contact == value,
            )
        )
        .first()
    )


def create_auth_for_entity(
    session: Session,
    email: str,
    display_name: str | None,
    raw_password: str,
    phone: str | None,
    linked_id: int | None,
    state: LifecycleState,
    entity_type: str,
    role_name: str,
) -> Credential:
    """
    Create the credential for a principal and grant it role_name.

    Raises InputValidationError for a missing or malformed email or a blank
    password, NotFoundError for an unknown role, ConflictError when the email
    is already registered. Nothing is persisted on failure.
    """
    email = _validate_email(email)
    raw_password = _validate_password(raw_password)
    logger.info("Creating credential for entity_type=%s email=%s", entity_type, email)

    try:
        username = generate_unique_username(session, display_name)
        credential = Credential(
            email=email,
            username=username,
            password_hash=hash_password(raw_password),
            contact=phone,
            entity_type=entity_type,
            linked_id=linked_id,
            state=state,
        )
        session.add(credential)
        session.flush()
        role = find_role_by_name(session, role_name)
        grant_role(session, credential, role, state)
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise _translate_integrity_error(exc) from exc
    except Exception:
        session.rollback()
        raise

    logger.info(
        "Credential created: id=%s entity_type=%s username=%s role=%s",
        credential.id,
        entity_type,
        username,
        role_name,
    )
    return credential


def update_auth_for_entity(
    session: Session,
    existing: Credential | None,
    email: str,
    raw_password: str | None,
    phone: str | None,
    state_id: int | None = None,
    state: LifecycleState | None = None,
) -> Credential | None:
    """
    Update a principal's credential in place.

    A blank raw_password keeps the current hash. state takes precedence over
    state_id; with neither, the state is unchanged. Returns None without
    touching storage when the principal has no credential.
    """
    if existing is None:
        logger.debug("No linked credential to update; skipping")
        return None

    email = _validate_email(email)
    try:
        existing.email = email
        if raw_password is not None and raw_password.strip():
            existing.password_hash = hash_password(_validate_password(raw_password))
            logger.debug("Password updated for credential id=%s", existing.id)
        existing.contact = phone
        if state is not None:
            existing.state = state
        elif state_id is not None:
            existing.state = find_state_by_id(session, state_id)
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise _translate_integrity_error(exc) from exc
    except Exception:
        session.rollback()
        raise

    logger.info("Credential updated: id=%s", existing.id)
    return existing


def is_active_credential_by_auth_id(
    session: Session, auth_id: int, entity_type: str | None = None
) -> bool:
    """
    Status check for authorization gates: True only for an existing, active
    credential (of entity_type, when given). Any failure answers False.
    """
    try:
        credential = session.get(Credential, auth_id)
        if credential is None:
            return False
        if entity_type is not None and (credential.entity_type or "").upper() != entity_type.upper():
            return False
        return credential.state_id == DEFAULT_ACTIVE_STATE_ID
    except Exception as e:
        logger.error("Error checking credential status for auth ID %s: %s", auth_id, e)
        return False


def authenticate_credential(session: Session, login: str, raw_password: str) -> Credential | None:
    """Return the active credential matching login and password, else None."""
    credential = find_credential_by_login(session, login)
    if credential is None:
        return None
    if not verify_password(raw_password or "", credential.password_hash):
        return None
    if credential.state_id != DEFAULT_ACTIVE_STATE_ID:
        return None
    return credential
