"""
Insert the lifecycle states and roles the service expects. Run after migrations:
  python -m crm_identity.scripts.seed_reference_data
"""
import logging
import sys

from crm_identity.core.database import SessionLocal
from crm_identity.services.bootstrap import seed_reference_data

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")


def main() -> int:
    db = SessionLocal()
    try:
        states_added, roles_added = seed_reference_data(db)
        print(f"Seeded {states_added} lifecycle state(s) and {roles_added} role(s).")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
