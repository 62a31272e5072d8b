"""
Create a credential (e.g. first back-office admin). Run from project root:
  python -m crm_identity.scripts.create_credential EMAIL DISPLAY_NAME PASSWORD [entity_type]
Example:
  python -m crm_identity.scripts.create_credential ana@example.com "Ana Maria" your-secure-password ADMIN
"""
import argparse
import sys

from crm_identity.core.database import SessionLocal
from crm_identity.core.errors import IdentityError
from crm_identity.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from crm_identity.services.credentials import create_auth_for_entity
from crm_identity.services.lifecycle import DEFAULT_ACTIVE_STATE_ID, find_state_by_id


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a CRM credential (no registration UI).")
    parser.add_argument("email", help="Login email")
    parser.add_argument("display_name", help="Name the username is derived from")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("entity_type", nargs="?", default="ADMIN", choices=["ADMIN", "USER"])
    parser.add_argument("--phone", default=None, help="Optional phone contact")
    args = parser.parse_args()

    if len(args.password) < PASSWORD_MIN_LEN or len(args.password) > PASSWORD_MAX_LEN:
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        state = find_state_by_id(db, DEFAULT_ACTIVE_STATE_ID)
        credential = create_auth_for_entity(
            db,
            email=args.email,
            display_name=args.display_name,
            raw_password=args.password,
            phone=args.phone,
            linked_id=None,
            state=state,
            entity_type=args.entity_type,
            role_name=args.entity_type,
        )
        print(
            f"Created credential '{credential.username}' (id={credential.id}) "
            f"with role '{args.entity_type}'."
        )
        return 0
    except IdentityError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
